#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugins/text.py
"""Plain text support.

Text is split into a natural-language tree::

    root
    ├── paragraph
    │   ├── sentence
    │   │   ├── word
    │   │   │   └── text
    │   │   ├── whitespace
    │   │   ├── punctuation
    │   │   └── symbol
    │   └── whitespace
    └── whitespace

Every character of the input ends up in exactly one leaf, so serializing
concatenates leaf values and gives the input back (after newline
normalization, when enabled).

The plugin also hooks ``text/markdown:text`` nodes and attaches the parsed
``text/plain`` tree of their content as a child.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import TYPE_CHECKING, Any, Optional

from mimetree.ast.nodes import Node
from mimetree.ast.transforms import add_children, walk
from mimetree.constants import MARKDOWN_TAG, PLAIN_TEXT_TAG
from mimetree.options import PlainTextOptions
from mimetree.plugin import PluginDefinition, PluginFactory, TypeSupport, create_plugin, create_typed_hook

if TYPE_CHECKING:
    from mimetree.engine import Engine

logger = logging.getLogger(__name__)

# Blank line(s) separating paragraphs, with surrounding whitespace
_PARAGRAPH_BREAK_RE = re.compile(r"(\n[ \t]*\n\s*)")

# A sentence runs up to terminal punctuation (plus closing quotes/brackets)
# followed by whitespace, or to the end of the paragraph
_SENTENCE_RE = re.compile(r"\S.*?(?:[.!?…]+[\"')\]’”]*(?=\s|$)|$)", re.S)

_TOKEN_RE = re.compile(r"(?P<word>\w+(?:['’]\w+)*)|(?P<whitespace>\s+)|(?P<other>.)", re.S)


def _whitespace(value: str) -> Node:
    return Node(kind="whitespace", data={"value": value})


def _character(value: str) -> Node:
    kind = "punctuation" if unicodedata.category(value).startswith("P") else "symbol"
    return Node(kind=kind, data={"value": value})


def tokenize_sentence(sentence: str) -> list[Node]:
    """Split one sentence into word, whitespace, punctuation and symbol nodes."""
    nodes = []
    for match in _TOKEN_RE.finditer(sentence):
        value = match.group()
        if match.lastgroup == "word":
            nodes.append(Node(kind="word", children=[Node(kind="text", data={"value": value})]))
        elif match.lastgroup == "whitespace":
            nodes.append(_whitespace(value))
        else:
            nodes.append(_character(value))
    return nodes


def split_sentences(paragraph: str) -> list[Node]:
    """Split a paragraph into sentence nodes and the whitespace between them."""
    nodes = []
    position = 0
    for match in _SENTENCE_RE.finditer(paragraph):
        if match.start() > position:
            nodes.append(_whitespace(paragraph[position : match.start()]))
        nodes.append(Node(kind="sentence", children=tokenize_sentence(match.group())))
        position = match.end()
    if position < len(paragraph):
        nodes.append(_whitespace(paragraph[position:]))
    return nodes


def build_text_tree(text: str) -> Node:
    """Return the raw (untagged) natural-language tree for ``text``.

    Examples
    --------
        >>> tree = build_text_tree("Hi there. Bye!")
        >>> [child.kind for child in tree.children[0].children]
        ['sentence', 'whitespace', 'sentence']

    """
    children = []
    for piece in _PARAGRAPH_BREAK_RE.split(text):
        if not piece:
            continue
        if piece.isspace():
            children.append(_whitespace(piece))
        else:
            children.append(Node(kind="paragraph", children=split_sentences(piece)))
    return Node(kind="root", children=children)


def serialize_text(node: Node) -> str:
    """Concatenate the values of every leaf under ``node``."""
    return "".join(leaf.get("value", "") for leaf in walk(node) if leaf.children is None)


class TextParser:
    """Parse plain text into a created tree.

    Parameters
    ----------
    engine : Engine
        Engine whose factory creates the nodes
    options : PlainTextOptions, optional
        Parsing options

    """

    def __init__(self, engine: Engine, options: Optional[PlainTextOptions] = None) -> None:
        """Initialize the parser."""
        self.engine = engine
        self.options = options or PlainTextOptions()

    async def parse(self, text: str) -> Node:
        """Parse text and send every node through the factory."""
        if self.options.normalize_newlines:
            text = text.replace("\r\n", "\n").replace("\r", "\n")
        return await self.engine.create_tree(build_text_tree(text), PLAIN_TEXT_TAG)


def text_plugin(options: Optional[PlainTextOptions] = None) -> PluginFactory:
    """Return a plugin factory registering ``text/plain`` and the markdown text hook.

    Parameters
    ----------
    options : PlainTextOptions, optional
        Parsing options

    Returns
    -------
    PluginFactory
        Factory to pass to :class:`~mimetree.engine.Engine`

    """

    def factory(engine: Engine) -> PluginDefinition:
        parser = TextParser(engine, options)

        async def attach_text_tree(node: Node, context: Any) -> Node:
            value = node.get("raw")
            if not value:
                return node
            text_root = await engine.parse(value, PLAIN_TEXT_TAG)
            return add_children(node, [text_root])

        return create_plugin(
            "text",
            supports=[
                TypeSupport(tag=PLAIN_TEXT_TAG, parser=parser.parse, serializer=serialize_text, extensions=(".txt",))
            ],
            hooks=[create_typed_hook(MARKDOWN_TAG, attach_text_tree, kind="text")],
        )

    return factory
