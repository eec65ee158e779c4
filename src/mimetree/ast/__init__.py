#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/ast/__init__.py
"""Unified content tree.

The module consists of:

- nodes: the generic ``Node`` shape shared by every format
- transforms: pure walker functions that keep parent/index consistent
- utils: text extraction and terminal display helpers

Examples
--------
    >>> from mimetree.ast import Node, add_children
    >>> root = add_children(Node(kind="root", tag="text/plain"), [Node(kind="word", tag="text/plain")])
    >>> root.children[0].index
    0

"""

from mimetree.ast.nodes import Node, make_node
from mimetree.ast.transforms import (
    add_children,
    filter_tree,
    find_nodes,
    is_parent_node,
    map_tree,
    purify,
    set_parent_and_index,
    strip_ancillary,
    walk,
)
from mimetree.ast.utils import extract_text

__all__ = [
    "Node",
    "make_node",
    "add_children",
    "filter_tree",
    "find_nodes",
    "is_parent_node",
    "map_tree",
    "purify",
    "set_parent_and_index",
    "strip_ancillary",
    "walk",
    "extract_text",
]
