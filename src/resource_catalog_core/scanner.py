"""Discovery of resource record classes.

Record classes are marked with ``@resource`` and name their identity field
with the ``Id`` marker::

    @resource
    @dataclass(frozen=True)
    class Item:
        id: Annotated[int, Id]
        name: str

``describe_record`` turns such a class into the ``RecordSchema`` the catalog
works with, and ``scan_resources`` finds every marked class below a set of
packages.
"""

from __future__ import annotations

import dataclasses
import importlib
import inspect
import pkgutil
import typing
from collections.abc import Iterable
from typing import Any

import structlog

from resource_catalog_core.core import FieldSpec, RecordSchema

logger = structlog.get_logger(__name__)

RESOURCE_ATTR = "__resource_name__"


class _Marker:
    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return self.name


Id = _Marker("Id")
Transient = _Marker("Transient")

_schema_cache: dict[type, RecordSchema] = {}


def resource(cls: type | None = None, *, name: str | None = None):
    """Mark a class as a resource record type.

    Can be used bare (``@resource``) or with a file name override
    (``@resource(name="ItemConfig")``).
    """

    def wrap(target: type) -> type:
        setattr(target, RESOURCE_ATTR, name or target.__name__)
        return target

    if cls is None:
        return wrap
    return wrap(cls)


def is_resource(cls: Any) -> bool:
    return isinstance(cls, type) and RESOURCE_ATTR in cls.__dict__


def describe_record(cls: type) -> RecordSchema:
    """Build the schema of a record class, its supertypes and composed types."""
    schema = _schema_cache.get(cls)
    if schema is None:
        schema = _describe(cls, {}, set())
        _schema_cache[cls] = schema
    return schema


def _describe(cls: type, done: dict[type, RecordSchema], visiting: set[type]) -> RecordSchema:
    if cls in done:
        return done[cls]
    visiting.add(cls)

    frozen = _is_frozen(cls)
    hints = typing.get_type_hints(cls, include_extras=True)
    fields = []
    composed: list[type] = []
    for field_name, hint in hints.items():
        if typing.get_origin(hint) is typing.ClassVar:
            continue
        value_type, markers = _unwrap(hint)
        static = inspect.getattr_static(cls, field_name, None)
        assignable = (
            not frozen
            and not field_name.startswith("_")
            and not isinstance(static, property)
        )
        fields.append(
            FieldSpec(
                name=field_name,
                type=value_type,
                identity=any(marker is Id for marker in markers),
                transient=any(marker is Transient for marker in markers),
                assignable=assignable,
                setter=_setter_name(cls, field_name),
            )
        )
        composed.extend(_composed_classes(value_type))

    related_classes = [
        base for base in cls.__mro__[1:]
        if base is not object and inspect.get_annotations(base)
    ]
    related_classes.extend(composed)
    # Classes still in `visiting` are cyclic references described further up
    related = tuple(
        _describe(other, done, visiting)
        for other in dict.fromkeys(related_classes)
        if other not in visiting
    )

    schema = RecordSchema(
        name=cls.__dict__.get(RESOURCE_ATTR, cls.__name__),
        factory=cls,
        fields=tuple(fields),
        related=related,
        record_class=cls,
    )
    visiting.discard(cls)
    done[cls] = schema
    return schema


def _unwrap(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    if typing.get_origin(hint) is typing.Annotated:
        value_type, *markers = typing.get_args(hint)
        return value_type, tuple(markers)
    return hint, ()


def _is_frozen(cls: type) -> bool:
    if dataclasses.is_dataclass(cls):
        return cls.__dataclass_params__.frozen
    return issubclass(cls, tuple) and hasattr(cls, "_fields")


def _setter_name(cls: type, field_name: str) -> str | None:
    """Name of a property setter or set_<field> method writing the field."""
    public_name = field_name.lstrip("_")
    for candidate in dict.fromkeys((field_name, public_name)):
        accessor = inspect.getattr_static(cls, candidate, None)
        if isinstance(accessor, property) and accessor.fset is not None:
            return candidate
    method = f"set_{public_name}"
    if callable(getattr(cls, method, None)):
        return method
    return None


def _composed_classes(value_type: Any) -> list[type]:
    """User-defined classes reachable through a field type."""
    args = typing.get_args(value_type)
    if args:
        found = []
        for arg in args:
            found.extend(_composed_classes(arg))
        return found
    if (
        isinstance(value_type, type)
        and value_type.__module__ not in ("builtins", "typing")
        and inspect.get_annotations(value_type)
    ):
        return [value_type]
    return []


def scan_resources(packages: Iterable[str]) -> list[RecordSchema]:
    """Import every module below ``packages`` and describe marked classes.

    Returns:
        One schema per resource class, ordered by record name.
    """
    packages = list(packages)
    classes: dict[str, type] = {}
    for package_name in packages:
        package = importlib.import_module(package_name)
        modules = [package]
        if hasattr(package, "__path__"):
            for _, module_name, _ in pkgutil.walk_packages(
                package.__path__, prefix=package.__name__ + "."
            ):
                modules.append(importlib.import_module(module_name))

        for module in modules:
            for candidate in vars(module).values():
                if is_resource(candidate) and candidate.__module__ == module.__name__:
                    classes[f"{candidate.__module__}.{candidate.__qualname__}"] = candidate

    schemas = sorted((describe_record(cls) for cls in classes.values()), key=lambda s: s.name)
    logger.info(
        "RESOURCES_SCANNED",
        packages=packages,
        records=[schema.name for schema in schemas],
    )
    return schemas
