"""Format codecs turning resource file bytes into typed records.

Delimited text and spreadsheets share one layout: the first row holds the
field names, every following non-blank row is a record. Structured text is a
JSON array of objects. All formats coerce raw values to the field types
declared by the record schema before building the record.
"""

from __future__ import annotations

import csv
import io
import json
import types
import typing
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from openpyxl import load_workbook

from resource_catalog_core.core import RecordSchema

_TRUE_VALUES = {"true", "1", "yes", "y", "on"}
_FALSE_VALUES = {"false", "0", "no", "n", "off", ""}


class Codec(Protocol):
    """Decodes the bytes of one resource file into records."""

    def decode(self, data: bytes, schema: RecordSchema) -> list[Any]: ...


class CodecRegistry:
    """Maps file extensions to codecs."""

    def __init__(self) -> None:
        self._codecs: dict[str, Codec] = {}

    def register(self, extension: str, codec: Codec) -> None:
        self._codecs[extension.lstrip(".").lower()] = codec

    def get(self, extension: str) -> Codec | None:
        return self._codecs.get(extension.lstrip(".").lower())

    def extensions(self) -> list[str]:
        return sorted(self._codecs)


def coerce_value(value: Any, target: Any) -> Any:
    """Convert a raw cell or JSON value to the declared field type."""
    if value is None or target is Any:
        return value

    origin = typing.get_origin(target) or target
    if origin is typing.Annotated:
        return coerce_value(value, typing.get_args(target)[0])
    if origin in (typing.Union, types.UnionType):
        options = [arg for arg in typing.get_args(target) if arg is not type(None)]
        return coerce_value(value, options[0]) if len(options) == 1 else value

    if origin is bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"Cannot convert {value!r} to bool")
    if origin is int:
        if isinstance(value, bool):
            raise ValueError(f"Cannot convert {value!r} to int")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"Cannot convert {value!r} to int without losing precision")
            return int(value)
        return int(value.strip()) if isinstance(value, str) else int(value)
    if origin is float:
        return float(value)
    if origin is str:
        return value if isinstance(value, str) else str(value)
    if origin in (list, tuple, set, frozenset, dict):
        if isinstance(value, str):
            value = json.loads(value) if value.strip() else origin()
        args = typing.get_args(target)
        if origin is dict or not args:
            return origin(value)
        return origin(coerce_value(item, args[0]) for item in value)
    return value


def build_record(schema: RecordSchema, values: dict[str, Any]) -> Any:
    """Coerce known fields and build a record through the schema factory.

    Values for names that are not fields of the record are ignored. Missing
    fields are left to the factory's own defaults.
    """
    kwargs = {}
    for name, raw in values.items():
        spec = schema.get_field(name)
        if spec is None or spec.transient:
            continue
        if raw is None or (raw == "" and spec.type is not str):
            # empty cell, fall back to the record default
            continue
        try:
            kwargs[name] = coerce_value(raw, spec.type)
        except (TypeError, ValueError) as e:
            raise ValueError(f"field [{name}] value {raw!r}: {e}") from e
    return schema.factory(**kwargs)


def records_from_rows(schema: RecordSchema, rows: Iterable[Sequence[Any]]) -> list[Any]:
    """Build records from header-first tabular rows."""
    iterator = iter(rows)
    header = None
    for row in iterator:
        if _is_blank(row):
            continue
        header = [str(cell).strip() if cell is not None else "" for cell in row]
        break
    if header is None:
        return []

    records = []
    for line_number, row in enumerate(iterator, start=2):
        if _is_blank(row):
            continue
        values = {name: cell for name, cell in zip(header, row) if name}
        try:
            records.append(build_record(schema, values))
        except (TypeError, ValueError) as e:
            raise ValueError(f"row {line_number}: {e}") from e
    return records


def _is_blank(row: Sequence[Any]) -> bool:
    return all(cell is None or str(cell).strip() == "" for cell in row)


class CsvCodec:
    """Delimited-text codec."""

    def __init__(self, delimiter: str = ",", encoding: str = "utf-8-sig") -> None:
        self.delimiter = delimiter
        self.encoding = encoding

    def decode(self, data: bytes, schema: RecordSchema) -> list[Any]:
        text = data.decode(self.encoding)
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=self.delimiter)
        return records_from_rows(schema, reader)


class XlsxCodec:
    """Spreadsheet codec reading the first worksheet of an .xlsx workbook."""

    def decode(self, data: bytes, schema: RecordSchema) -> list[Any]:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        try:
            sheet = workbook.worksheets[0]
            return records_from_rows(schema, sheet.iter_rows(values_only=True))
        finally:
            workbook.close()


class JsonCodec:
    """Structured-text codec for a JSON array of objects."""

    def decode(self, data: bytes, schema: RecordSchema) -> list[Any]:
        payload = json.loads(data.decode("utf-8-sig"))
        if not isinstance(payload, list):
            raise ValueError("expected a JSON array of objects")
        records = []
        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                raise ValueError(f"item {index} is not a JSON object")
            try:
                records.append(build_record(schema, item))
            except (TypeError, ValueError) as e:
                raise ValueError(f"item {index}: {e}") from e
        return records
