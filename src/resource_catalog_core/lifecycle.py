"""Post-binding sweep releasing tables nobody asked for."""

from __future__ import annotations

import structlog

from resource_catalog_core.catalog import ResourceCatalog
from resource_catalog_core.core import CatalogState
from resource_catalog_core.exceptions import CatalogStateError

logger = structlog.get_logger(__name__)


class LifecycleController:
    """Runs the recycle sweep once all startup bindings are done."""

    def sweep(self, catalog: ResourceCatalog, recycling_enabled: bool) -> list[str]:
        """Release the rows of every unbound table, or pin them all.

        Must run after the last binding: a table bound later would find its
        rows already gone.

        Args:
            catalog: A catalog in the LOADED state.
            recycling_enabled: When False every table is pinned instead.

        Returns:
            Names of the record types whose rows were released.

        Raises:
            CatalogStateError: If the catalog is not LOADED or has already
                been swept.
        """
        if catalog.state is not CatalogState.LOADED or catalog.swept:
            raise CatalogStateError(
                f"Cannot sweep a catalog in state [{catalog.state.value}]"
            )
        catalog.swept = True

        if not recycling_enabled:
            for table in catalog.tables.values():
                table.recyclable = False
            logger.info("RECYCLING_DISABLED", table_count=len(catalog.tables))
            return []

        released = [name for name, table in catalog.tables.items() if table.release()]
        if released:
            catalog.state = CatalogState.PARTIALLY_RECYCLED
        logger.info(
            "TABLES_RECYCLED",
            released=released,
            kept=len(catalog.tables) - len(released),
        )
        return released
