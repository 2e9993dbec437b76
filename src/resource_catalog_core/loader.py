"""Table loader building storage tables from resource files.

This module reads a located resource file, hands its bytes to the codec
registered for the file extension and indexes the decoded records by the
record type's identity field.
"""

from __future__ import annotations

import structlog

from resource_catalog_core.codec_registration import create_codec_registry
from resource_catalog_core.codecs import CodecRegistry
from resource_catalog_core.core import ResourceDefinition
from resource_catalog_core.exceptions import ResourceParseError
from resource_catalog_core.storage import StorageTable

# Get logger for this module
logger = structlog.get_logger(__name__)


class TableLoader:
    """Loads one StorageTable per resource definition."""

    def __init__(self, codecs: CodecRegistry | None = None) -> None:
        self.codecs = codecs if codecs is not None else create_codec_registry()

    def load(self, definition: ResourceDefinition) -> StorageTable:
        """Parse the definition's file into a table keyed by identity value.

        Args:
            definition: Record type and the file backing it.

        Returns:
            A fresh, unused StorageTable.

        Raises:
            IdentityFieldError: If the record type has no single identity field.
            ResourceParseError: If the file cannot be read or decoded.
            DuplicateIdentityValueError: If two rows share an identity value.
        """
        schema = definition.schema
        path = definition.path
        # Validate the identity field before touching the file
        schema.identity_field()

        codec = self.codecs.get(definition.extension)
        if codec is None:
            raise ResourceParseError(
                path, f"no codec registered for extension [{definition.extension}]"
            )

        try:
            data = path.read_bytes()
            records = codec.decode(data, schema)
        except Exception as e:
            raise ResourceParseError(path, e) from e

        try:
            table = StorageTable.from_records(schema, records, source=str(path))
        except (AttributeError, TypeError) as e:
            raise ResourceParseError(path, e) from e

        logger.info(
            "TABLE_LOADED",
            record=schema.name,
            path=str(path),
            row_count=len(table),
        )
        return table
