#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugins/json.py
"""JSON support.

Every JSON value becomes a node whose ``kind`` is its JSON type (``object``,
``array``, ``string``, ``number``, ``boolean``, ``null``). Each node records
its ``key`` (``"root"`` for the document, the member name inside objects and
the position as a string inside arrays) and ``value``, the JSON text of the
whole subtree at parse time.

The serializer rebuilds the document from the tree structure, so nodes removed
or replaced by hooks are reflected in the output.

"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from mimetree.ast.nodes import Node
from mimetree.constants import JSON_TAG
from mimetree.exceptions import ParsingError, SerializationError
from mimetree.plugin import PluginDefinition, TypeSupport, create_plugin

if TYPE_CHECKING:
    from mimetree.engine import Engine

logger = logging.getLogger(__name__)

ROOT_KEY = "root"


def json_kind(value: Any) -> str:
    """Return the JSON type name of a decoded value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def value_to_node(value: Any, key: str = ROOT_KEY) -> Node:
    """Convert a decoded JSON value to a raw node tree."""
    data = {"key": key, "value": json.dumps(value, ensure_ascii=False)}
    if isinstance(value, dict):
        return Node(kind="object", data=data, children=[value_to_node(v, k) for k, v in value.items()])
    if isinstance(value, list):
        return Node(kind="array", data=data, children=[value_to_node(v, str(i)) for i, v in enumerate(value)])
    return Node(kind=json_kind(value), data=data)


def node_to_value(node: Node) -> Any:
    """Rebuild the Python value represented by a JSON node tree."""
    if node.kind == "object":
        return {child.get("key"): node_to_value(child) for child in node.children or []}
    if node.kind == "array":
        return [node_to_value(child) for child in node.children or []]
    try:
        return json.loads(node.get("value", "null"))
    except json.JSONDecodeError as e:
        raise SerializationError(
            f"Invalid JSON value for key '{node.get('key')}': {node.get('value')!r}", tag=JSON_TAG, original_error=e
        ) from e


class JsonParser:
    """Parse JSON text into a created tree."""

    def __init__(self, engine: Engine) -> None:
        """Initialize the parser."""
        self.engine = engine

    async def parse(self, text: str) -> Node:
        """Parse JSON text and send every node through the factory.

        Raises
        ------
        ParsingError
            If ``text`` is not valid JSON

        """
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParsingError(f"Invalid JSON: {e}", tag=JSON_TAG, original_error=e) from e
        return await self.engine.create_tree(value_to_node(value), JSON_TAG)


def serialize_json(node: Node) -> str:
    """Serialize a JSON node tree back to JSON text."""
    return json.dumps(node_to_value(node), ensure_ascii=False)


def json_plugin(engine: Engine) -> PluginDefinition:
    """Plugin factory registering ``application/json`` parsing and serialization."""
    parser = JsonParser(engine)
    return create_plugin(
        "json",
        supports=[
            TypeSupport(
                tag=JSON_TAG,
                parser=parser.parse,
                serializer=serialize_json,
                extensions=(".json",),
                aliases=("text/json",),
            )
        ],
    )
