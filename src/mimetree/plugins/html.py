#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugins/html.py
"""HTML support built on BeautifulSoup.

Node kinds
----------
- ``root``: the document
- ``element``: ``tag_name`` and ``properties`` (attribute dict; multi-valued
  attributes such as ``class`` are joined with spaces)
- ``text``: ``value``
- ``comment``: ``value``
- ``doctype``: ``value``
- ``directive``: ``value``, the verbatim markup of CDATA sections,
  processing instructions and declarations

The serializer skips ``root`` nodes nested below the top, which is where the
link crawl plugin attaches fetched pages.

"""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING, Any

from mimetree.ast.nodes import Node
from mimetree.constants import DEPS_HTML, HTML_TAG
from mimetree.exceptions import SerializationError
from mimetree.plugin import PluginDefinition, TypeSupport, create_plugin
from mimetree.utils.decorators import requires_dependencies

if TYPE_CHECKING:
    from mimetree.engine import Engine

logger = logging.getLogger(__name__)

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Elements whose text content is emitted without entity escaping
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})


def is_html_element(node: Node, tag_name: str | None = None) -> bool:
    """Whether a node is an HTML element, optionally of a given tag name."""
    if node.tag != HTML_TAG or node.kind != "element":
        return False
    return tag_name is None or node.get("tag_name") == tag_name


class HtmlParser:
    """Parse HTML text into a created tree.

    Parameters
    ----------
    engine : Engine
        Engine whose factory creates the nodes
    features : str, default "html.parser"
        BeautifulSoup tree builder

    """

    def __init__(self, engine: Engine, features: str = "html.parser") -> None:
        """Initialize the parser."""
        self.engine = engine
        self.features = features

    @requires_dependencies("html", DEPS_HTML)
    def build_raw_tree(self, text: str) -> Node:
        """Return the raw (untagged) tree for ``text``."""
        from bs4 import BeautifulSoup

        soup = BeautifulSoup(text, self.features)
        return Node(kind="root", children=[self._convert(child) for child in soup.contents])

    async def parse(self, text: str) -> Node:
        """Parse HTML text and send every node through the factory."""
        return await self.engine.create_tree(self.build_raw_tree(text), HTML_TAG)

    def _convert(self, element: Any) -> Node:
        from bs4.element import Comment, Doctype, PreformattedString, Tag

        if isinstance(element, Tag):
            properties = {
                name: " ".join(value) if isinstance(value, list) else value for name, value in element.attrs.items()
            }
            return Node(
                kind="element",
                data={"tag_name": element.name, "properties": properties},
                children=[self._convert(child) for child in element.contents],
            )
        if isinstance(element, Doctype):
            return Node(kind="doctype", data={"value": str(element)})
        if isinstance(element, Comment):
            return Node(kind="comment", data={"value": str(element)})
        if isinstance(element, PreformattedString):
            return Node(kind="directive", data={"value": element.output_ready()})
        return Node(kind="text", data={"value": str(element)})


def _content_children(node: Node) -> list[Node]:
    # Nested roots are documents attached by hooks (e.g. crawled pages)
    return [child for child in node.children or [] if child.kind != "root"]


class HtmlSerializer:
    """Emit HTML from a tree of HTML nodes."""

    def __call__(self, node: Node) -> str:
        """Serialize a node and its descendants."""
        parts: list[str] = []
        self._emit(node, parts, raw_text=False)
        return "".join(parts)

    def _emit(self, node: Node, parts: list[str], raw_text: bool) -> None:
        kind = node.kind
        if kind == "root":
            for child in _content_children(node):
                self._emit(child, parts, raw_text=False)
        elif kind == "element":
            self._emit_element(node, parts)
        elif kind == "text":
            value = node.get("value", "")
            parts.append(value if raw_text else html.escape(value, quote=False))
        elif kind == "comment":
            parts.append(f"<!--{node.get('value', '')}-->")
        elif kind == "doctype":
            parts.append(f"<!DOCTYPE {node.get('value', 'html')}>")
        elif kind == "directive":
            parts.append(node.get("value", ""))
        else:
            raise SerializationError(f"Unknown HTML node kind: '{kind}'", tag=HTML_TAG)

    def _emit_element(self, node: Node, parts: list[str]) -> None:
        tag_name = node.get("tag_name")
        if not tag_name:
            raise SerializationError("HTML element without tag_name", tag=HTML_TAG)

        attributes = "".join(
            f' {name}="{html.escape(str(value), quote=True)}"'
            for name, value in (node.get("properties") or {}).items()
            if value is not None
        )
        parts.append(f"<{tag_name}{attributes}>")
        if tag_name in VOID_ELEMENTS:
            return

        raw_text = tag_name in RAW_TEXT_ELEMENTS
        for child in _content_children(node):
            self._emit(child, parts, raw_text=raw_text)
        parts.append(f"</{tag_name}>")


def html_plugin(engine: Engine) -> PluginDefinition:
    """Plugin factory registering ``text/html`` parsing and serialization."""
    parser = HtmlParser(engine)
    return create_plugin(
        "html",
        supports=[
            TypeSupport(
                tag=HTML_TAG,
                parser=parser.parse,
                serializer=HtmlSerializer(),
                extensions=(".html", ".htm", ".xhtml"),
                aliases=("application/xhtml+xml",),
            )
        ],
    )
