"""Binding of catalog tables to consumer slots."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

import structlog

from resource_catalog_core.catalog import ResourceCatalog, record_name_of
from resource_catalog_core.exceptions import KeyTypeMismatchError, SlotDeclarationError
from resource_catalog_core.injection import ResourceSlot
from resource_catalog_core.storage import StorageTable

logger = structlog.get_logger(__name__)

# Type names a key type may carry as a word to hold the identity type
_KEY_ALIASES = {
    "int": {"int", "integer", "long"},
    "str": {"str", "string"},
    "float": {"float", "double"},
    "bool": {"bool", "boolean"},
}
_NAME_WORDS = re.compile(r"[A-Z]?[a-z0-9]+|[A-Z]+(?![a-z])")


def key_type_compatible(key_type: Any, identity_type: Any) -> bool:
    """Whether a slot keyed by ``key_type`` can hold ``identity_type`` keys.

    A key type accepts an identity type when it is ``Any`` or ``object``, when
    the identity type is the key type or one of its subclasses, or when one of
    the words of the key type's name is the identity type's name or a known
    alias of it. ``Integer`` and ``BoxedInt`` fit an ``int`` identity;
    ``Point`` and ``str`` do not.
    """
    if key_type is Any or key_type is object or key_type is identity_type:
        return True
    if isinstance(key_type, type) and isinstance(identity_type, type):
        if issubclass(identity_type, key_type):
            return True
    key_name = getattr(key_type, "__name__", None)
    identity_name = getattr(identity_type, "__name__", None)
    if not key_name or not identity_name:
        return False
    identity_name = identity_name.lower()
    aliases = _KEY_ALIASES.get(identity_name, {identity_name})
    return any(word.lower() in aliases for word in _NAME_WORDS.findall(key_name))


class InjectionBinder:
    """Hands catalog tables to consumer slots after a key type check."""

    def __init__(self, catalog: ResourceCatalog) -> None:
        self.catalog = catalog
        # Holds the owner too; id() values are reused once an owner is collected
        self._bound: dict[tuple[int, str], tuple[Any, StorageTable]] = {}

    def bind(self, slot: ResourceSlot) -> StorageTable:
        """Validate one slot, assign the table to it and mark the table used.

        Re-binding a slot that was already bound returns the same table
        without checking it again.

        Raises:
            UndefinedResourceError: If the record type is not in the catalog.
            ResourceReleasedError: If the table has been recycled.
            KeyTypeMismatchError: If the key type cannot hold identity values.
            SlotDeclarationError: If the slot does not name a key type.
        """
        slot_key = (id(slot.owner), slot.field)
        cached = self._bound.get(slot_key)
        if cached is not None and cached[0] is slot.owner:
            return cached[1]

        if slot.key_type is None or slot.record_type is None:
            raise SlotDeclarationError(
                f"[{slot.describe()}] must name both the key type and the record type"
            )

        table = self.catalog.get(slot.record_type)
        identity_type = table.identity_type
        if not key_type_compatible(slot.key_type, identity_type):
            raise KeyTypeMismatchError(table.record_name, slot.key_type, identity_type)

        setattr(slot.owner, slot.field, table)
        table.mark_used()
        self._bound[slot_key] = (slot.owner, table)
        logger.debug(
            "SLOT_BOUND",
            slot=slot.describe(),
            record=record_name_of(slot.record_type),
        )
        return table

    def bind_all(self, slots: Iterable[ResourceSlot]) -> int:
        """Bind slots in order, stopping at the first failure.

        Returns:
            Number of slots bound.
        """
        count = 0
        for slot in slots:
            self.bind(slot)
            count += 1
        logger.info("SLOTS_BOUND", slot_count=count)
        return count
