"""Startup pipeline for the resource catalog.

This module runs the whole startup sequence in order: scan record types,
load the catalog, bind consumer slots, then sweep unused tables. Every step
is synchronous and any failure aborts startup.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from resource_catalog_core.binder import InjectionBinder
from resource_catalog_core.catalog import ResourceCatalog
from resource_catalog_core.codecs import CodecRegistry
from resource_catalog_core.config import CatalogConfig
from resource_catalog_core.core import RecordSchema
from resource_catalog_core.injection import enumerate_slots
from resource_catalog_core.lifecycle import LifecycleController
from resource_catalog_core.loader import TableLoader
from resource_catalog_core.scanner import describe_record, scan_resources

# Get logger for this module
logger = structlog.get_logger(__name__)


def bootstrap_catalog(
    config: CatalogConfig,
    consumers: Iterable[Any] = (),
    record_types: Iterable[type | RecordSchema] | None = None,
    codecs: CodecRegistry | None = None,
) -> ResourceCatalog:
    """Build a catalog, inject it into consumers and recycle unused tables.

    Args:
        config: Catalog configuration.
        consumers: Application objects whose ``Inject`` slots get bound.
        record_types: Record classes or schemas to load. Defaults to the
            resource classes found under ``config.scan_packages``.
        codecs: Codec registry, defaults to the built-in codecs.

    Returns:
        The catalog, LOADED or PARTIALLY_RECYCLED.
    """
    logger.info(
        "CATALOG_STARTING",
        scan_packages=config.scan_packages,
        recycle=config.recycle,
    )

    try:
        if record_types is None:
            schemas = scan_resources(config.scan_packages)
        else:
            schemas = [
                item if isinstance(item, RecordSchema) else describe_record(item)
                for item in record_types
            ]

        catalog = ResourceCatalog(config, loader=TableLoader(codecs))
        catalog.load(schemas)

        binder = InjectionBinder(catalog)
        binder.bind_all(enumerate_slots(consumers))

        released = LifecycleController().sweep(catalog, config.recycle)

        logger.info(
            "CATALOG_READY",
            state=catalog.state.value,
            table_count=len(catalog),
            released_count=len(released),
        )
        return catalog

    except Exception as e:
        logger.exception("CATALOG_STARTUP_ERROR", error=str(e))
        raise  # Fail fast
