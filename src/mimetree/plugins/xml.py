#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugins/xml.py
"""XML support built on lxml, plus a generic XML dump of any tree.

Parsing
-------
The parser never resolves entities and never touches the network. Node kinds:

- ``root``: the document; ``declaration`` keeps the XML declaration, if any
- ``element``: ``name`` (Clark notation for namespaced names), ``attributes``
  and ``nsmap`` (namespaces declared on this element)
- ``text``: ``value``; element text and tails both become text nodes
- ``comment``: ``value``
- ``processing_instruction``: ``target`` and ``value``
- ``entity``: ``name`` of an unresolved entity reference

Tree dump
---------
:class:`XmlTreeSerializer` is registered for ``*/* -> application/xml``. It
writes one element per node, named after the node's kind, with a ``mimeType``
attribute and the node's own serialization as CDATA, followed by its children.

"""

from __future__ import annotations

import html
import io
import logging
import re
from typing import TYPE_CHECKING, Any, Optional

from mimetree.ast.nodes import Node
from mimetree.constants import DEPS_XML, GLOBAL_WILDCARD_TAG, XML_TAG
from mimetree.exceptions import ParsingError, SerializationError
from mimetree.options import XmlSerializerOptions
from mimetree.plugin import PluginDefinition, PluginFactory, SerializerSpec, TypeSupport, create_plugin
from mimetree.utils.decorators import requires_dependencies

if TYPE_CHECKING:
    from mimetree.engine import Engine

logger = logging.getLogger(__name__)

_XML_DECLARATION_RE = re.compile(r"^\s*(<\?xml\b[^>]*\?>)")
_INVALID_NAME_CHARS_RE = re.compile(r"[^A-Za-z0-9_.\-]")


def xml_element_name(kind: str) -> str:
    """Turn a node kind into a valid XML element name.

    >>> xml_element_name("block_code")
    'block_code'
    >>> xml_element_name("2col:x")
    '_2col_x'

    """
    name = _INVALID_NAME_CHARS_RE.sub("_", kind) or "node"
    if not (name[0].isalpha() or name[0] == "_"):
        name = f"_{name}"
    return name


def cdata_sections(value: str) -> list[Any]:
    """Split text into lxml CDATA sections, none of which contains ``]]>``.

    Each terminator is cut between ``]]`` and ``>``, so ``"a]]>b"`` is written
    as ``<![CDATA[a]]]]><![CDATA[>b]]>``.
    """
    from lxml import etree

    pieces = value.split("]]>")
    last = len(pieces) - 1
    return [
        etree.CDATA(f"{'>' if i else ''}{piece}{']]' if i < last else ''}") for i, piece in enumerate(pieces)
    ]


class XmlParser:
    """Parse XML text into a created tree.

    Parameters
    ----------
    engine : Engine
        Engine whose factory creates the nodes

    """

    def __init__(self, engine: Engine) -> None:
        """Initialize the parser."""
        self.engine = engine

    @requires_dependencies("xml", DEPS_XML)
    def build_raw_tree(self, text: str) -> Node:
        """Return the raw (untagged) tree for ``text``."""
        from lxml import etree

        parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)
        try:
            root_element = etree.fromstring(text.encode("utf-8"), parser)
        except etree.XMLSyntaxError as e:
            raise ParsingError(f"Invalid XML: {e}", tag=XML_TAG, original_error=e) from e

        preceding = list(root_element.itersiblings(preceding=True))
        preceding.reverse()
        following = list(root_element.itersiblings())

        data: dict[str, Any] = {}
        match = _XML_DECLARATION_RE.match(text)
        if match:
            data["declaration"] = match.group(1)

        children = [self._convert(item, None) for item in [*preceding, root_element, *following]]
        return Node(kind="root", data=data, children=children)

    async def parse(self, text: str) -> Node:
        """Parse XML text and send every node through the factory."""
        return await self.engine.create_tree(self.build_raw_tree(text), XML_TAG)

    def _convert(self, item: Any, parent: Any) -> Node:
        from lxml import etree

        if item.tag is etree.Comment:
            return Node(kind="comment", data={"value": item.text or ""})
        if item.tag is etree.ProcessingInstruction:
            return Node(kind="processing_instruction", data={"target": item.target, "value": item.text or ""})
        if item.tag is etree.Entity:
            return Node(kind="entity", data={"name": item.name})

        parent_nsmap = parent.nsmap if parent is not None else {}
        nsmap = {prefix: uri for prefix, uri in item.nsmap.items() if parent_nsmap.get(prefix) != uri}

        children = []
        if item.text:
            children.append(Node(kind="text", data={"value": item.text}))
        for child in item:
            children.append(self._convert(child, item))
            if child.tail:
                children.append(Node(kind="text", data={"value": child.tail}))

        return Node(
            kind="element",
            data={"name": item.tag, "attributes": dict(item.attrib), "nsmap": nsmap},
            children=children,
        )


class XmlSerializer:
    """Emit XML from a tree of XML nodes."""

    @requires_dependencies("xml", DEPS_XML)
    def __call__(self, node: Node) -> str:
        """Serialize a node and its descendants."""
        if node.kind == "root":
            body = "\n".join(self._emit(child) for child in node.children or [])
            declaration = node.get("declaration")
            return f"{declaration}\n{body}" if declaration else body
        return self._emit(node)

    def _emit(self, node: Node) -> str:
        from lxml import etree

        kind = node.kind
        if kind == "text":
            return html.escape(node.get("value", ""), quote=False)
        if kind == "entity":
            return f"&{node.get('name')};"
        if kind in ("comment", "processing_instruction", "element"):
            return etree.tostring(self._build(node, None), encoding="unicode", with_tail=False)
        raise SerializationError(f"Unknown XML node kind: '{kind}'", tag=XML_TAG)

    def _build(self, node: Node, parent: Any) -> Any:
        from lxml import etree

        kind = node.kind
        if kind == "comment":
            built = etree.Comment(node.get("value", ""))
        elif kind == "processing_instruction":
            built = etree.ProcessingInstruction(node.get("target"), node.get("value") or None)
        elif kind == "entity":
            built = etree.Entity(node.get("name"))
        elif kind == "element":
            nsmap = node.get("nsmap") or None
            attributes = node.get("attributes") or {}
            if parent is None:
                built = etree.Element(node.get("name"), attributes, nsmap=nsmap)
            else:
                built = etree.SubElement(parent, node.get("name"), attributes, nsmap=nsmap)
            self._fill(built, node)
            return built
        else:
            raise SerializationError(f"Unknown XML node kind: '{kind}'", tag=XML_TAG)

        if parent is not None:
            parent.append(built)
        return built

    def _fill(self, element: Any, node: Node) -> None:
        last = None
        for child in node.children or []:
            if child.kind == "text":
                value = child.get("value", "")
                if last is None:
                    element.text = (element.text or "") + value
                else:
                    last.tail = (last.tail or "") + value
                continue
            last = self._build(child, element)


class XmlTreeSerializer:
    """Dump any tree as XML, one element per node.

    Parameters
    ----------
    engine : Engine
        Engine used to serialize each node to its own tag for the CDATA payload
    options : XmlSerializerOptions, optional
        Indentation settings

    """

    def __init__(self, engine: Engine, options: Optional[XmlSerializerOptions] = None) -> None:
        """Initialize the serializer."""
        self.engine = engine
        self.options = options or XmlSerializerOptions()

    @requires_dependencies("xml", DEPS_XML)
    def __call__(self, node: Node) -> str:
        """Serialize ``node`` and its subtree."""
        from lxml import etree

        buffer = io.BytesIO()
        try:
            with etree.xmlfile(buffer, encoding="utf-8") as xf:
                self._dump(xf, node, 0)
        except ValueError as e:
            raise SerializationError(f"Cannot dump '{node.kind}' as XML: {e}", tag=XML_TAG, original_error=e) from e
        return buffer.getvalue().decode("utf-8")

    def _dump(self, xf: Any, node: Node, depth: int) -> None:
        from lxml import etree

        name = xml_element_name(node.kind)
        attributes = {"mimeType": node.tag} if node.tag else {}
        value = self.engine.serialize(node) if node.tag else None
        children = node.children or []

        if not value and not children:
            xf.write(etree.Element(name, attributes))
            return

        child_indent = "\n" + self.options.indent * (depth + 1)
        with xf.element(name, attributes):
            if value:
                xf.write(child_indent, *cdata_sections(value))
            for child in children:
                xf.write(child_indent)
                self._dump(xf, child, depth + 1)
            xf.write("\n" + self.options.indent * depth)


def xml_plugin(engine: Engine) -> PluginDefinition:
    """Plugin factory registering ``application/xml`` parsing and serialization."""
    parser = XmlParser(engine)
    return create_plugin(
        "xml",
        supports=[
            TypeSupport(
                tag=XML_TAG,
                parser=parser.parse,
                serializer=XmlSerializer(),
                extensions=(".xml",),
                aliases=("text/xml",),
            )
        ],
    )


def xml_tree_serializer_plugin(options: Optional[XmlSerializerOptions] = None) -> PluginFactory:
    """Return a plugin factory registering the ``*/* -> application/xml`` tree dump."""

    def factory(engine: Engine) -> PluginDefinition:
        return create_plugin(
            "xml-tree-serializer",
            serializers=[SerializerSpec(GLOBAL_WILDCARD_TAG, XML_TAG, XmlTreeSerializer(engine, options))],
        )

    return factory