#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugins/markdown.py
"""Markdown support built on mistune.

Parsing
-------
mistune's AST renderer produces a list of token dicts. Each token becomes a
node whose ``kind`` is the token type and whose ``data`` holds every other key
of the token (``attrs``, ``raw``, ``style``...). Tokens with a ``children``
list become parent nodes. The tokens are wrapped in a ``root`` node that also
keeps the reference-link definitions collected by the block parser.

Serialization
-------------
Nodes are turned back into tokens and rendered with mistune's
``MarkdownRenderer``. Serializing a ``heading`` emits its whole section: the
heading plus the following siblings up to the next heading of the same or a
higher level.

"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, Optional

from mimetree.ast.nodes import Node
from mimetree.constants import DEPS_MARKDOWN, MARKDOWN_TAG
from mimetree.exceptions import ParsingError, SerializationError
from mimetree.plugin import PluginDefinition, TypeSupport, create_plugin
from mimetree.utils.decorators import requires_dependencies

if TYPE_CHECKING:
    from mimetree.engine import Engine

logger = logging.getLogger(__name__)

ROOT_KIND = "root"
HEADING_KIND = "heading"

# Block separators only; the renderer spaces blocks itself
_SKIPPED_TOKENS = frozenset({"blank_line"})


def is_markdown_node(node: Node) -> bool:
    """Whether a node belongs to the markdown tree."""
    return node.tag == MARKDOWN_TAG


def heading_level(node: Node) -> Optional[int]:
    """Return the level of a heading node, or None for other kinds."""
    if node.kind != HEADING_KIND:
        return None
    return node.get("attrs", {}).get("level")


class MarkdownParser:
    """Parse markdown text into a created tree.

    Parameters
    ----------
    engine : Engine
        Engine whose factory creates the nodes
    parallel : bool, default = False
        Create sibling subtrees concurrently

    """

    def __init__(self, engine: Engine, parallel: bool = False) -> None:
        """Initialize the parser."""
        self.engine = engine
        self.parallel = parallel

    @requires_dependencies("markdown", DEPS_MARKDOWN)
    def tokenize(self, text: str) -> tuple[list[dict[str, Any]], dict[str, Any]]:
        """Run mistune and return ``(tokens, ref_links)``."""
        import mistune

        markdown = mistune.create_markdown(renderer=None)
        try:
            tokens, state = markdown.parse(text)
        except Exception as e:
            raise ParsingError(f"Failed to parse markdown: {e}", tag=MARKDOWN_TAG, original_error=e) from e
        return tokens, dict(state.env.get("ref_links", {}))

    def build_raw_tree(self, text: str) -> Node:
        """Return the raw (untagged) tree for ``text``."""
        tokens, ref_links = self.tokenize(text)
        return Node(
            kind=ROOT_KIND,
            data={"ref_links": ref_links},
            children=self._tokens_to_nodes(tokens),
        )

    async def parse(self, text: str) -> Node:
        """Parse markdown text and send every node through the factory."""
        return await self.engine.create_tree(self.build_raw_tree(text), MARKDOWN_TAG, parallel=self.parallel)

    def _tokens_to_nodes(self, tokens: list[dict[str, Any]]) -> list[Node]:
        return [self._token_to_node(token) for token in tokens if token["type"] not in _SKIPPED_TOKENS]

    def _token_to_node(self, token: dict[str, Any]) -> Node:
        data = {key: value for key, value in token.items() if key not in ("type", "children")}
        children = None
        if "children" in token:
            children = self._tokens_to_nodes(token["children"])
        return Node(kind=token["type"], data=data, children=children)


class MarkdownSerializer:
    """Render markdown nodes back to text."""

    @requires_dependencies("markdown", DEPS_MARKDOWN)
    def __call__(self, node: Node) -> str:
        """Serialize a node (root, heading section, or any other node)."""
        from mistune.core import BlockState
        from mistune.renderers.markdown import MarkdownRenderer

        tokens = [self._node_to_token(n) for n in self._nodes_to_render(node)]
        state = BlockState()
        state.env["ref_links"] = copy.deepcopy(self._find_ref_links(node))

        try:
            return MarkdownRenderer()(tokens, state)
        except (AttributeError, KeyError, TypeError) as e:
            raise SerializationError(
                f"Cannot render markdown node '{node.kind}': {e}", tag=MARKDOWN_TAG, original_error=e
            ) from e

    def _nodes_to_render(self, node: Node) -> list[Node]:
        if node.kind == ROOT_KIND:
            return self._renderable_children(node)
        if node.kind == HEADING_KIND:
            return self._heading_section(node)
        return [node]

    @staticmethod
    def _renderable_children(node: Node) -> list[Node]:
        # Nested roots come from content attached by hooks (e.g. crawled pages)
        return [
            child
            for child in node.children or []
            if child.kind != ROOT_KIND and (child.tag is None or child.tag == node.tag)
        ]

    def _heading_section(self, node: Node) -> list[Node]:
        parent = node.parent
        if parent is None or node.index is None:
            return [node]

        level = heading_level(node) or 1
        section = [node]
        for sibling in (parent.children or [])[node.index + 1 :]:
            if sibling.kind == ROOT_KIND or (sibling.tag is not None and sibling.tag != node.tag):
                continue
            sibling_level = heading_level(sibling)
            if sibling_level is not None and sibling_level <= level:
                break
            section.append(sibling)
        return section

    def _node_to_token(self, node: Node) -> dict[str, Any]:
        token = {"type": node.kind, **copy.deepcopy(node.data)}
        if node.children is not None:
            token["children"] = [self._node_to_token(child) for child in self._renderable_children(node)]
        return token

    @staticmethod
    def _find_ref_links(node: Node) -> dict[str, Any]:
        current: Optional[Node] = node
        while current is not None:
            if current.kind == ROOT_KIND and "ref_links" in current.data:
                return current.data["ref_links"]
            current = current.parent
        return {}


def markdown_plugin(engine: Engine) -> PluginDefinition:
    """Plugin factory registering ``text/markdown`` parsing and serialization."""
    parser = MarkdownParser(engine)
    return create_plugin(
        "markdown",
        supports=[
            TypeSupport(
                tag=MARKDOWN_TAG,
                parser=parser.parse,
                serializer=MarkdownSerializer(),
                extensions=(".md", ".markdown", ".mdown"),
                aliases=("text/x-markdown",),
            )
        ],
    )
