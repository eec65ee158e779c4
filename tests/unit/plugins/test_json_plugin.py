#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for JSON parsing and serialization."""

import pytest

from mimetree import Engine
from mimetree.ast.nodes import make_node
from mimetree.constants import JSON_TAG
from mimetree.exceptions import ParsingError, SerializationError
from mimetree.plugin import create_plugin, create_typed_hook
from mimetree.plugins import json_plugin
from mimetree.plugins.json import json_kind, node_to_value, serialize_json, value_to_node

DOCUMENT = '{"name": "mimetree", "tags": ["a", 1, true, null], "nested": {"x": 1.5}}'


@pytest.mark.unit
class TestJsonParsing:
    """Tests for JsonParser and value_to_node."""

    @pytest.mark.asyncio
    async def test_kinds_and_keys(self, engine):
        """Test node kinds and keys for objects and arrays."""
        tree = await engine.parse(DOCUMENT, JSON_TAG)
        assert tree.kind == "object"
        assert tree.get("key") == "root"
        assert [child.get("key") for child in tree.children] == ["name", "tags", "nested"]

        tags = tree.children[1]
        assert tags.kind == "array"
        assert [child.get("key") for child in tags.children] == ["0", "1", "2", "3"]
        assert [child.kind for child in tags.children] == ["string", "number", "boolean", "null"]

    @pytest.mark.asyncio
    async def test_values_are_json_text(self, engine):
        """Test that every node keeps the JSON text of its subtree."""
        tree = await engine.parse(DOCUMENT, JSON_TAG)
        assert tree.children[0].get("value") == '"mimetree"'
        assert tree.children[2].get("value") == '{"x": 1.5}'
        assert tree.children[1].children[3].get("value") == "null"

    @pytest.mark.asyncio
    async def test_scalar_document(self, engine):
        """Test a document that is a single scalar."""
        tree = await engine.parse("42", JSON_TAG)
        assert tree.kind == "number"
        assert tree.children is None

    @pytest.mark.asyncio
    async def test_invalid_json(self, engine):
        """Test that malformed input raises ParsingError."""
        with pytest.raises(ParsingError) as exc_info:
            await engine.parse("{not json", JSON_TAG)
        assert exc_info.value.tag == JSON_TAG

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "null"),
            (True, "boolean"),
            (3, "number"),
            (2.5, "number"),
            ("s", "string"),
            ([], "array"),
            ({}, "object"),
        ],
    )
    def test_json_kind(self, value, expected):
        """Test the JSON type names."""
        assert json_kind(value) == expected

    def test_unicode_kept(self):
        """Test that non-ASCII text is not escaped."""
        assert value_to_node("café").get("value") == '"café"'


@pytest.mark.unit
class TestJsonSerialization:
    """Tests for serialize_json."""

    @pytest.mark.asyncio
    async def test_round_trip(self, engine):
        """Test that the document is rebuilt unchanged."""
        tree = await engine.parse(DOCUMENT, JSON_TAG)
        assert engine.serialize(tree) == DOCUMENT

    @pytest.mark.asyncio
    async def test_hook_replacements_reflected(self):
        """Test that nodes moved to another tag by a hook disappear from the output."""

        def hide(node, ctx):
            return node.copy(tag="text/x-hidden")

        engine = Engine([json_plugin, create_plugin("hide", hooks=[create_typed_hook(JSON_TAG, hide, kind="null")])])
        tree = await engine.parse(DOCUMENT, JSON_TAG)
        assert engine.serialize(tree) == '{"name": "mimetree", "tags": ["a", 1, true], "nested": {"x": 1.5}}'

    def test_subtree(self):
        """Test serializing a subtree on its own."""
        assert serialize_json(value_to_node({"a": [1, 2]})) == '{"a": [1, 2]}'

    def test_invalid_leaf_value(self):
        """Test that a leaf holding invalid JSON raises SerializationError."""
        with pytest.raises(SerializationError):
            node_to_value(make_node("string", key="k", value="not json"))
