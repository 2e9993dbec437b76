"""Resource catalog owning every loaded storage table.

The catalog moves through ``EMPTY -> LOADING -> LOADED`` and, once the
lifecycle sweep has released unused tables, ``PARTIALLY_RECYCLED``. Loading
is all or nothing: the first failing record type aborts the load and the
catalog goes back to ``EMPTY`` without exposing any table.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

import structlog

from resource_catalog_core.config import CatalogConfig
from resource_catalog_core.core import CatalogState, RecordSchema, ResourceDefinition
from resource_catalog_core.exceptions import (
    CatalogStateError,
    DuplicateDefinitionError,
    ResourceReleasedError,
    UndefinedResourceError,
)
from resource_catalog_core.loader import TableLoader
from resource_catalog_core.locator import ResourceFileLocator
from resource_catalog_core.storage import StorageTable
from resource_catalog_core.validator import SchemaValidator

# Get logger for this module
logger = structlog.get_logger(__name__)


def record_name_of(record_type: Any) -> str:
    """Name under which a record class, schema or name is catalogued."""
    if isinstance(record_type, str):
        return record_type
    if isinstance(record_type, RecordSchema):
        return record_type.name
    if isinstance(record_type, type) and "__resource_name__" in record_type.__dict__:
        return record_type.__resource_name__
    return getattr(record_type, "__name__", str(record_type))


class ResourceCatalog:
    """Holds one StorageTable per record type."""

    def __init__(
        self,
        config: CatalogConfig,
        locator: ResourceFileLocator | None = None,
        validator: SchemaValidator | None = None,
        loader: TableLoader | None = None,
    ) -> None:
        self.config = config
        self.locator = locator or ResourceFileLocator()
        self.validator = validator or SchemaValidator()
        self.loader = loader or TableLoader()
        self.state = CatalogState.EMPTY
        # Set by the lifecycle sweep, which runs once per catalog
        self.swept = False
        self._definitions: dict[str, ResourceDefinition] = {}
        self._tables: dict[str, StorageTable] = {}

    @property
    def tables(self) -> Mapping[str, StorageTable]:
        return MappingProxyType(self._tables)

    @property
    def definitions(self) -> Mapping[str, ResourceDefinition]:
        return MappingProxyType(self._definitions)

    def load(self, schemas: Iterable[RecordSchema]) -> None:
        """Locate, validate and load every candidate record type.

        Args:
            schemas: Every record type found by the scanner.

        Raises:
            CatalogStateError: If the catalog is not empty.
            CatalogLoadError: The first load failure; nothing is published.
        """
        if self.state is not CatalogState.EMPTY:
            raise CatalogStateError(f"Cannot load a catalog in state [{self.state.value}]")

        self.state = CatalogState.LOADING
        definitions: dict[str, ResourceDefinition] = {}
        tables: dict[str, StorageTable] = {}
        logger.info(
            "CATALOG_LOADING",
            search_roots=[str(root) for root in self.config.search_roots],
            writeable=self.config.writeable,
        )

        try:
            for schema in schemas:
                if schema.name in definitions:
                    raise DuplicateDefinitionError(schema.name)

                path = self.locator.locate(
                    schema.name, self.config.search_roots, self.config.accepted_extensions
                )
                definition = ResourceDefinition(schema=schema, path=path)
                definitions[schema.name] = definition

                if not self.config.writeable:
                    self.validator.validate(schema)

                tables[schema.name] = self.loader.load(definition)
        except Exception as e:
            self.state = CatalogState.EMPTY
            logger.error("CATALOG_LOAD_FAILED", error=str(e))
            raise

        self._definitions = definitions
        self._tables = tables
        self.state = CatalogState.LOADED
        logger.info("CATALOG_LOADED", table_count=len(tables))

    def get(self, record_type: Any) -> StorageTable:
        """Return the table for a record class, schema or name.

        Raises:
            UndefinedResourceError: If the record type was never loaded.
            ResourceReleasedError: If the table was recycled.
        """
        name = record_name_of(record_type)
        table = self._tables.get(name)
        if table is None:
            raise UndefinedResourceError(name)
        if table.released:
            raise ResourceReleasedError(name)
        return table

    def replace(self, record_type: Any, table: StorageTable) -> StorageTable:
        """Swap in a new table for an already defined record type.

        Holders of the previous table keep their reference and must call
        ``get`` again to see the new one.

        Returns:
            The table that was replaced.
        """
        if self.state not in (CatalogState.LOADED, CatalogState.PARTIALLY_RECYCLED):
            raise CatalogStateError(f"Cannot replace tables in state [{self.state.value}]")
        name = record_name_of(record_type)
        previous = self._tables.get(name)
        if previous is None:
            raise UndefinedResourceError(name)
        if table.record_name != name:
            raise CatalogStateError(
                f"Cannot replace table [{name}] with a table for [{table.record_name}]"
            )
        if table.released:
            raise CatalogStateError(f"Cannot replace table [{name}] with a released table")

        tables = dict(self._tables)
        tables[name] = table
        self._tables = tables
        logger.info("TABLE_REPLACED", record=name, row_count=len(table))
        return previous

    def __contains__(self, record_type: Any) -> bool:
        return record_name_of(record_type) in self._tables

    def __len__(self) -> int:
        return len(self._tables)
