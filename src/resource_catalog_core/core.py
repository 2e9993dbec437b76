"""Core data model of the resource catalog.

This module provides the declarative descriptors the catalog works with. The
catalog never inspects classes itself: the scanner turns record classes into
``RecordSchema`` instances, and everything downstream consumes those.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from resource_catalog_core.exceptions import IdentityFieldError


class CatalogState(enum.Enum):
    """Lifecycle states of a ResourceCatalog."""

    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"
    PARTIALLY_RECYCLED = "partially_recycled"


@dataclass(frozen=True)
class FieldSpec:
    """Description of a single record field."""

    name: str
    type: Any
    identity: bool = False
    transient: bool = False
    # True when plain attribute assignment from outside the record works
    assignable: bool = False
    setter: str | None = None


@dataclass(frozen=True)
class IdentityField:
    """The single field whose value keys a record within its table."""

    name: str
    type: Any


@dataclass(frozen=True, eq=False)
class RecordSchema:
    """Declarative description of a resource record type.

    Attributes:
        name: Record type name, also the stem of its data file.
        factory: Callable building a record from decoded field values.
        fields: Fields declared by the record type, supertypes included.
        related: Schemas of supertypes and composed types reachable from
            the record type; only consulted for mutability checks.
        record_class: The class the schema was built from, if any.
    """

    name: str
    factory: Callable[..., Any]
    fields: tuple[FieldSpec, ...]
    related: tuple[RecordSchema, ...] = ()
    record_class: type | None = None

    def field_names(self) -> list[str]:
        return [spec.name for spec in self.fields]

    def get_field(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def identity_field(self) -> IdentityField:
        """Return the identity field of this record type.

        Raises:
            IdentityFieldError: If zero or several fields are marked identity.
        """
        marked = [spec for spec in self.fields if spec.identity]
        if len(marked) != 1:
            raise IdentityFieldError(self.name, [spec.name for spec in marked])
        return IdentityField(name=marked[0].name, type=marked[0].type)

    def walk(self) -> Iterator[RecordSchema]:
        """Yield this schema and every related schema once."""
        seen: set[int] = set()
        pending = [self]
        while pending:
            schema = pending.pop()
            if id(schema) in seen:
                continue
            seen.add(id(schema))
            yield schema
            pending.extend(schema.related)

    def __repr__(self) -> str:
        return f"RecordSchema({self.name!r})"


@dataclass(frozen=True)
class ResourceDefinition:
    """A record type together with the single file that backs it."""

    schema: RecordSchema
    path: Path = field(compare=False)

    @property
    def record_name(self) -> str:
        return self.schema.name

    @property
    def extension(self) -> str:
        return self.path.suffix.lstrip(".").lower()
