"""In-memory keyed tables of resource records."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, Generic, TypeVar

from resource_catalog_core.core import RecordSchema
from resource_catalog_core.exceptions import (
    DuplicateIdentityValueError,
    RecordNotFoundError,
    ResourceReleasedError,
)

K = TypeVar("K")
R = TypeVar("R")

_MISSING = object()


class StorageTable(Generic[K, R]):
    """Read-only mapping from identity value to record for one record type.

    A table is built once and never written afterwards, so lookups need no
    locking. Recycling drops the rows; the table object stays behind so the
    catalog can still report what it used to hold.
    """

    def __init__(self, schema: RecordSchema, rows: dict[K, R]) -> None:
        self.schema = schema
        self.identity = schema.identity_field()
        self._rows: dict[K, R] | None = rows
        self.used = False
        self.recyclable = True

    @classmethod
    def from_records(
        cls, schema: RecordSchema, records: Iterable[R], source: str = "<memory>"
    ) -> StorageTable[K, R]:
        """Build a table keyed by each record's identity value.

        Raises:
            DuplicateIdentityValueError: If two records share an identity value.
        """
        identity = schema.identity_field()
        rows: dict[Any, Any] = {}
        for record in records:
            key = getattr(record, identity.name)
            if key in rows:
                raise DuplicateIdentityValueError(schema.name, key, source)
            rows[key] = record
        return cls(schema, rows)

    @property
    def record_name(self) -> str:
        return self.schema.name

    @property
    def identity_type(self) -> Any:
        return self.identity.type

    @property
    def released(self) -> bool:
        return self._rows is None

    def _live_rows(self) -> dict[K, R]:
        if self._rows is None:
            raise ResourceReleasedError(self.record_name)
        return self._rows

    def lookup(self, key: K) -> R:
        """Return the record with the given identity value.

        Raises:
            RecordNotFoundError: If no record has this identity value.
            ResourceReleasedError: If the table has been recycled.
        """
        rows = self._live_rows()
        record = rows.get(key, _MISSING)
        if record is _MISSING:
            raise RecordNotFoundError(self.record_name, key)
        return record

    def get(self, key: K, default: R | None = None) -> R | None:
        return self._live_rows().get(key, default)

    def contains(self, key: K) -> bool:
        return key in self._live_rows()

    __contains__ = contains

    def keys(self) -> list[K]:
        return list(self._live_rows())

    def values(self) -> list[R]:
        return list(self._live_rows().values())

    def __iter__(self) -> Iterator[R]:
        return iter(self.values())

    def __len__(self) -> int:
        return len(self._live_rows())

    def mark_used(self) -> None:
        self.used = True
        self.recyclable = False

    def release(self) -> bool:
        """Drop the rows unless the table is bound or pinned.

        Returns:
            True if the rows were released by this call.
        """
        if self.used or not self.recyclable or self._rows is None:
            return False
        self._rows = None
        return True

    def __repr__(self) -> str:
        size = "released" if self.released else f"{len(self._rows)} rows"
        return f"StorageTable({self.record_name!r}, {size})"
