#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/ast/transforms.py
"""Tree walking and transformation utilities.

The functions here never mutate the tree they are given. Every operation that
changes structure returns new node shells and then repairs the parent/index
bookkeeping on those new shells via :func:`set_parent_and_index`, which is the
only mutating step in this module.

Functions
---------
- map_tree: Apply a sync or async transform to every node, rebuilding parents
- add_children: Append children to a node, returning a new node
- set_parent_and_index: Refresh the position of each direct child
- filter_tree: Drop subtrees whose root fails a predicate
- purify: Keep only the nodes that share the root's tag
- strip_ancillary: Copy a tree without position bookkeeping
- walk / find_nodes: Read-only pre-order traversal helpers

"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Callable, Iterable, Iterator, Union

from mimetree.ast.nodes import Node

NodeTransform = Callable[[Node], Union[Node, Awaitable[Node]]]
NodePredicate = Callable[[Node], bool]


def is_parent_node(node: Node) -> bool:
    """Check whether a node carries a children list."""
    return node.children is not None


def set_parent_and_index(parent: Node) -> Node:
    """Set ``parent`` and ``index`` on each direct child of ``parent``.

    Parameters
    ----------
    parent : Node
        Node whose children should be normalized. Leaves are returned as-is.

    Returns
    -------
    Node
        The same ``parent`` object

    """
    if parent.children is None:
        return parent
    for index, child in enumerate(parent.children):
        child.set_position(parent, index)
    return parent


def _rebuild(node: Node) -> Node:
    """Copy every shell of a subtree and repair bookkeeping at every level."""
    if node.children is None:
        return node.copy()
    return set_parent_and_index(node.copy(children=[_rebuild(child) for child in node.children]))


async def map_tree(node: Node, transform: NodeTransform, parallel: bool = False) -> Node:
    """Apply ``transform`` to a node and then to each of its (new) children.

    The node itself is transformed first. If the result is a parent, its
    children are mapped recursively and reassembled into a new parent.

    Parameters
    ----------
    node : Node
        Root of the subtree to map
    transform : callable
        ``(node) -> Node`` or ``(node) -> Awaitable[Node]``
    parallel : bool, default = False
        Map siblings concurrently with ``asyncio.gather`` instead of
        sequentially left to right. Applies at every depth.

    Returns
    -------
    Node
        The rebuilt subtree

    Raises
    ------
    TypeError
        If the transform does not return a Node

    """
    result = transform(node)
    if inspect.isawaitable(result):
        result = await result
    if not isinstance(result, Node):
        raise TypeError(f"Tree transform returned {type(result).__name__} for node of kind '{node.kind}'")

    if result.children is None:
        return result.copy()

    if parallel:
        children = await asyncio.gather(*(map_tree(child, transform, parallel=True) for child in result.children))
    else:
        children = [await map_tree(child, transform) for child in result.children]

    return set_parent_and_index(result.copy(children=list(children)))


def add_children(node: Node, new_children: Iterable[Node]) -> Node:
    """Return a copy of ``node`` with ``new_children`` appended.

    A leaf becomes a parent whose children are exactly ``new_children``.
    Parent and index are consistent at every level of the returned tree.

    Examples
    --------
    >>> from mimetree.ast.nodes import make_node
    >>> parent = add_children(make_node("root"), [make_node("text", value="a")])
    >>> parent.children[0].parent is parent
    True

    """
    existing = node.children or []
    children = [_rebuild(child) for child in [*existing, *new_children]]
    return set_parent_and_index(node.copy(children=children))


def filter_tree(node: Node, predicate: NodePredicate) -> Node:
    """Remove every subtree whose root does not satisfy ``predicate``.

    The root is always kept, regardless of the predicate. Survivors are
    filtered recursively.

    Parameters
    ----------
    node : Node
        Tree to filter
    predicate : callable
        Function returning True for nodes to keep

    Returns
    -------
    Node
        New filtered tree with refreshed parent/index

    """
    if node.children is None:
        return node.copy()
    kept = [filter_tree(child, predicate) for child in node.children if predicate(child)]
    return set_parent_and_index(node.copy(children=kept))


def purify(node: Node) -> Node:
    """Keep only the nodes whose tag equals the root's tag."""
    root_tag = node.tag
    return filter_tree(node, lambda n: n.tag == root_tag)


def strip_ancillary(node: Node) -> Node:
    """Copy a tree dropping parent/index at every level."""
    if node.children is None:
        return node.copy()
    return node.copy(children=[strip_ancillary(child) for child in node.children])


def walk(node: Node) -> Iterator[Node]:
    """Yield every node of a tree in pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if current.children:
            stack.extend(reversed(current.children))


def find_nodes(node: Node, predicate: NodePredicate) -> list[Node]:
    """Collect the nodes of a tree that satisfy ``predicate``, in pre-order."""
    return [n for n in walk(node) if predicate(n)]
