"""Unit tests for the core module."""

from pathlib import Path

import pytest

from resource_catalog_core.core import FieldSpec, IdentityField, RecordSchema, ResourceDefinition
from resource_catalog_core.exceptions import IdentityFieldError


def make_schema(name="Item", fields=None, related=()):
    if fields is None:
        fields = (FieldSpec("id", int, identity=True), FieldSpec("name", str))
    return RecordSchema(name=name, factory=dict, fields=tuple(fields), related=related)


class TestRecordSchema:
    """Test cases for RecordSchema."""

    def test_identity_field(self):
        """Test the single identity field is returned with its type."""
        assert make_schema().identity_field() == IdentityField(name="id", type=int)

    def test_missing_identity_field(self):
        """Test a schema without an identity field is rejected."""
        schema = make_schema(fields=[FieldSpec("name", str)])

        with pytest.raises(IdentityFieldError, match="no identity field"):
            schema.identity_field()

    def test_several_identity_fields(self):
        """Test a schema with two identity fields is rejected."""
        schema = make_schema(
            fields=[FieldSpec("a", int, identity=True), FieldSpec("b", int, identity=True)]
        )

        with pytest.raises(IdentityFieldError) as exc_info:
            schema.identity_field()

        assert exc_info.value.identity_fields == ["a", "b"]

    def test_get_field(self):
        """Test fields are found by name."""
        schema = make_schema()

        assert schema.get_field("name").type is str
        assert schema.get_field("missing") is None
        assert schema.field_names() == ["id", "name"]

    def test_walk_visits_related_schemas_once(self):
        """Test walk yields every reachable schema exactly once."""
        shared = make_schema("Stats", fields=[FieldSpec("hp", int)])
        base = make_schema("Base", fields=[FieldSpec("id", int)], related=(shared,))
        schema = make_schema(related=(base, shared))

        names = sorted(s.name for s in schema.walk())

        assert names == ["Base", "Item", "Stats"]


class TestResourceDefinition:
    """Test cases for ResourceDefinition."""

    def test_extension_is_normalized(self):
        """Test the extension is lower-cased without its dot."""
        definition = ResourceDefinition(schema=make_schema(), path=Path("/data/Item.CSV"))

        assert definition.extension == "csv"
        assert definition.record_name == "Item"

    def test_definitions_are_keyed_by_record_type(self):
        """Test two definitions of one record type compare equal."""
        schema = make_schema()

        first = ResourceDefinition(schema=schema, path=Path("/a/Item.csv"))
        second = ResourceDefinition(schema=schema, path=Path("/b/Item.json"))

        assert first == second
