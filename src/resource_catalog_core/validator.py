"""Immutability checks for read-only catalogs."""

from __future__ import annotations

import structlog

from resource_catalog_core.core import RecordSchema
from resource_catalog_core.exceptions import MutabilityViolationError

logger = structlog.get_logger(__name__)


class SchemaValidator:
    """Rejects record types whose fields can be changed from outside.

    Tables are shared by reference between every consumer, so a read-only
    catalog requires each non-transient field of the record type, its
    supertypes and its composed types to be structurally read-only.
    """

    def validate(self, schema: RecordSchema) -> None:
        """Check every schema reachable from ``schema``.

        Raises:
            MutabilityViolationError: On the first externally mutable field.
        """
        for related in schema.walk():
            for spec in related.fields:
                if spec.transient:
                    continue
                if spec.assignable:
                    raise MutabilityViolationError(
                        related.name, spec.name, "can be assigned publicly"
                    )
                if spec.setter is not None:
                    raise MutabilityViolationError(
                        related.name, spec.name, f"has a setter [{spec.setter}]"
                    )
        logger.debug("SCHEMA_VALIDATED", record=schema.name)
