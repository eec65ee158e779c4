#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/ast/utils.py
"""Utility functions for inspecting trees.

Functions
---------
extract_text : Concatenate the textual leaf values of a subtree
build_rich_tree : Build a ``rich.tree.Tree`` for terminal display

Examples
--------
    >>> from mimetree.ast.nodes import make_node
    >>> from mimetree.ast.utils import extract_text
    >>> heading = make_node("heading", children=[make_node("text", raw="Hello "), make_node("text", raw="world")])
    >>> extract_text(heading, joiner="")
    'Hello world'

"""

from __future__ import annotations

from typing import Any, Union

from mimetree.ast.nodes import Node
from mimetree.ast.transforms import walk

TEXT_KEYS = ("value", "raw")
_MAX_LABEL_VALUE = 40


def _text_of(node: Node) -> str | None:
    for key in TEXT_KEYS:
        value = node.data.get(key)
        if isinstance(value, str):
            return value
    return None


def extract_text(node_or_nodes: Union[Node, list[Node]], joiner: str = " ") -> str:
    """Extract the text carried by the leaves of one or more subtrees.

    Only leaves are inspected; a leaf contributes its ``value`` or ``raw``
    payload entry when that entry is a string.

    Parameters
    ----------
    node_or_nodes : Node or list of Node
        Subtree root(s) to extract from
    joiner : str, default = " "
        Separator placed between leaf texts

    Returns
    -------
    str
        The joined text

    """
    roots = node_or_nodes if isinstance(node_or_nodes, list) else [node_or_nodes]
    parts = []
    for root in roots:
        for node in walk(root):
            if node.children is None:
                text = _text_of(node)
                if text:
                    parts.append(text)
    return joiner.join(parts)


def _label(node: Node) -> str:
    from rich.markup import escape

    label = f"[bold]{escape(node.kind)}[/bold] [dim]{escape(node.tag or '<raw>')}[/dim]"
    node_id = node.data.get("id")
    if node_id:
        label += f" [cyan]#{escape(str(node_id))}[/cyan]"
    text = _text_of(node)
    if text:
        shown = text if len(text) <= _MAX_LABEL_VALUE else text[: _MAX_LABEL_VALUE - 3] + "..."
        label += f" {escape(repr(shown))}"
    return label


def build_rich_tree(node: Node) -> Any:
    """Build a ``rich`` tree renderable mirroring ``node``.

    Returns
    -------
    rich.tree.Tree
        Renderable suitable for ``Console.print``

    """
    from rich.tree import Tree

    def _add(branch: Any, current: Node) -> None:
        for child in current.children or []:
            _add(branch.add(_label(child)), child)

    tree = Tree(_label(node))
    _add(tree, node)
    return tree
