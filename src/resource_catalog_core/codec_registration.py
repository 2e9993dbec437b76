"""Codec registration for the resource catalog.

This module provides a centralized way to register the format codecs with a
CodecRegistry, keyed by the file extension they decode.
"""

from resource_catalog_core.codecs import CodecRegistry, CsvCodec, JsonCodec, XlsxCodec


def create_codec_registry() -> CodecRegistry:
    """Create a new registry with all built-in codecs registered.

    Returns:
        Registry decoding csv, xlsx and json resource files
    """
    registry = CodecRegistry()

    registry.register("csv", CsvCodec())
    registry.register("xlsx", XlsxCodec())
    registry.register("json", JsonCodec())

    return registry
