"""Custom exceptions for the resource catalog."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any


class CatalogError(Exception):
    """Base exception for catalog-related errors."""

    pass


class ConfigurationError(CatalogError):
    """Raised when there's a configuration-related error."""

    pass


class CatalogStateError(CatalogError):
    """Raised when an operation is not allowed in the catalog's current state."""

    pass


class CatalogLoadError(CatalogError):
    """Base for errors that abort catalog construction."""

    pass


class ResourceNotFoundError(CatalogLoadError):
    """Raised when no data file matches a record type."""

    def __init__(self, record_name: str, search_roots: Iterable[Path | str]) -> None:
        self.record_name = record_name
        self.search_roots = [str(root) for root in search_roots]
        super().__init__(
            f"No resource file found for [{record_name}] in {self.search_roots}"
        )


class AmbiguousResourceError(CatalogLoadError):
    """Raised when more than one data file matches a record type."""

    def __init__(self, record_name: str, candidates: Iterable[Path]) -> None:
        self.record_name = record_name
        self.candidates = sorted(str(path) for path in candidates)
        super().__init__(
            f"Multiple resource files found for [{record_name}]: "
            f"{', '.join(self.candidates)}"
        )


class DuplicateDefinitionError(CatalogLoadError):
    """Raised when a record type is defined more than once."""

    def __init__(self, record_name: str) -> None:
        self.record_name = record_name
        super().__init__(f"Resource definition for [{record_name}] already exists")


class ResourceParseError(CatalogLoadError):
    """Raised when a resource file cannot be read or decoded."""

    def __init__(self, path: Path | str, cause: BaseException | str) -> None:
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Failed to parse resource file [{self.path}]: {cause}")


class IdentityFieldError(CatalogLoadError):
    """Raised when a record type does not declare exactly one identity field."""

    def __init__(self, record_name: str, identity_fields: Iterable[str]) -> None:
        self.record_name = record_name
        self.identity_fields = list(identity_fields)
        if self.identity_fields:
            detail = f"has several identity fields {self.identity_fields}"
        else:
            detail = "has no identity field"
        super().__init__(f"Record type [{record_name}] {detail}")


class MutabilityViolationError(CatalogLoadError):
    """Raised when a read-only record type exposes a mutable field."""

    def __init__(self, record_name: str, field_name: str, reason: str) -> None:
        self.record_name = record_name
        self.field_name = field_name
        self.reason = reason
        super().__init__(
            f"Field [{field_name}] of record type [{record_name}] {reason}; "
            "make it read-only or enable the writeable option"
        )


class DuplicateIdentityValueError(CatalogLoadError):
    """Raised when two rows of one file share an identity value."""

    def __init__(self, record_name: str, identity: Any, path: Path | str) -> None:
        self.record_name = record_name
        self.identity = identity
        self.path = str(path)
        super().__init__(
            f"Duplicate identity [{identity!r}] for [{record_name}] in [{self.path}]"
        )


class UndefinedResourceError(CatalogError):
    """Raised when a record type was never loaded into the catalog."""

    def __init__(self, record_name: str) -> None:
        self.record_name = record_name
        super().__init__(f"No storage table is defined for [{record_name}]")


class ResourceReleasedError(CatalogError):
    """Raised when accessing a table whose rows were recycled."""

    def __init__(self, record_name: str) -> None:
        self.record_name = record_name
        super().__init__(
            f"Storage table [{record_name}] was never injected and has been "
            "released to save memory; inject it or disable the recycle option"
        )


class BindingError(CatalogError):
    """Base for errors raised while binding a consumer slot."""

    pass


class KeyTypeMismatchError(BindingError):
    """Raised when a slot's key type cannot represent the identity type."""

    def __init__(self, record_name: str, key_type: Any, identity_type: Any) -> None:
        self.record_name = record_name
        self.key_type = key_type
        self.identity_type = identity_type
        super().__init__(
            f"Slot key type [{_type_name(key_type)}] does not match identity "
            f"type [{_type_name(identity_type)}] of [{record_name}]"
        )


class SlotDeclarationError(BindingError):
    """Raised when an injection slot is not declared as StorageTable[K, R]."""

    pass


class RecordNotFoundError(KeyError):
    """Raised when a key is absent from a live storage table."""

    def __init__(self, record_name: str, key: Any) -> None:
        self.record_name = record_name
        self.key = key
        super().__init__(f"No [{record_name}] record with identity [{key!r}]")

    def __str__(self) -> str:
        return str(self.args[0])


def _type_name(value: Any) -> str:
    return getattr(value, "__name__", None) or str(value)
