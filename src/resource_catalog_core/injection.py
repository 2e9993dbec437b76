"""Consumer-side declaration of storage table slots.

A consumer asks for a table by annotating an attribute::

    class Shop:
        items: Annotated[StorageTable[int, Item], Inject]

``enumerate_slots`` turns live objects into ``ResourceSlot`` tuples that the
InjectionBinder can bind.
"""

from __future__ import annotations

import typing
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from resource_catalog_core.exceptions import SlotDeclarationError
from resource_catalog_core.storage import StorageTable


class _InjectMarker:
    def __repr__(self) -> str:
        return "Inject"


Inject = _InjectMarker()


@dataclass(frozen=True)
class ResourceSlot:
    """One attribute of one consumer requesting a table."""

    owner: Any
    field: str
    key_type: Any
    record_type: Any

    def describe(self) -> str:
        return f"{type(self.owner).__name__}.{self.field}"


def slot_types(annotation: Any, where: str) -> tuple[Any, Any]:
    """Return (key type, record type) of a ``StorageTable[K, R]`` annotation."""
    if typing.get_origin(annotation) is not StorageTable:
        raise SlotDeclarationError(f"[{where}] must be declared as StorageTable[K, R]")
    args = typing.get_args(annotation)
    if len(args) != 2 or any(isinstance(arg, typing.TypeVar) for arg in args):
        raise SlotDeclarationError(
            f"[{where}] must name both the key type and the record type"
        )
    return args[0], args[1]


def enumerate_slots(objects: Iterable[Any]) -> list[ResourceSlot]:
    """Collect every ``Inject``-annotated attribute of the given objects.

    Raises:
        SlotDeclarationError: If a marked attribute is not a parameterised
            StorageTable.
    """
    slots = []
    for owner in objects:
        owner_type = owner if isinstance(owner, type) else type(owner)
        hints = typing.get_type_hints(owner_type, include_extras=True)
        for name, hint in hints.items():
            if typing.get_origin(hint) is not typing.Annotated:
                continue
            annotation, *markers = typing.get_args(hint)
            if not any(marker is Inject for marker in markers):
                continue
            key_type, record_type = slot_types(annotation, f"{owner_type.__name__}.{name}")
            slots.append(ResourceSlot(owner, name, key_type, record_type))
    return slots
