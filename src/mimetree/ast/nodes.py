#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/ast/nodes.py
"""Generic tagged tree node.

Every format handled by the engine is represented with the same ``Node``
shape: a format-specific ``kind`` discriminator, the content-type ``tag`` the
node belongs to, an opaque ``data`` payload and an optional list of children.

Structure
---------
A node is either a leaf (``children is None``) or a parent (``children`` is a
list, possibly empty). Parents expose their position bookkeeping to their
children: after every structural change the walker functions in
:mod:`mimetree.ast.transforms` set ``child.parent`` and ``child.index``.

The parent reference is held weakly so that detached subtrees do not keep the
whole original tree alive. Neither ``parent`` nor ``index`` takes part in
equality, ``repr`` or :meth:`Node.copy`.

"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Node:
    """A node of the unified content tree.

    Parameters
    ----------
    kind : str
        Format-specific discriminator (e.g. ``"heading"``, ``"array"``)
    tag : str or None, default = None
        Content-type tag; ``None`` only for raw nodes that have not been
        through the node factory
    data : dict, default = empty dict
        Format-specific payload
    children : list of Node or None, default = None
        ``None`` for a leaf, a list for a parent

    Attributes
    ----------
    index : int or None
        Position among the parent's children at the last normalization

    """

    kind: str
    tag: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)
    children: Optional[list[Node]] = None
    index: Optional[int] = field(default=None, init=False, compare=False, repr=False)
    _parent: Optional[weakref.ReferenceType[Node]] = field(default=None, init=False, compare=False, repr=False)

    @property
    def parent(self) -> Optional[Node]:
        """Owning parent node, or None for a root or detached node."""
        if self._parent is None:
            return None
        return self._parent()

    @property
    def is_parent(self) -> bool:
        """Whether the node carries a children list."""
        return self.children is not None

    def get(self, key: str, default: Any = None) -> Any:
        """Return a payload value."""
        return self.data.get(key, default)

    def set_position(self, parent: Optional[Node], index: Optional[int]) -> None:
        """Record the node's place in a parent.

        Only the walker should call this, and only on nodes it just produced.
        """
        self._parent = weakref.ref(parent) if parent is not None else None
        self.index = index

    def copy(self, **changes: Any) -> Node:
        """Return a shallow copy with optional field overrides.

        The payload dict and the children list are copied (children themselves
        are shared). Position bookkeeping is never carried over.

        Parameters
        ----------
        **changes : Any
            Replacement values for ``kind``, ``tag``, ``data`` or ``children``

        Returns
        -------
        Node
            New detached node

        """
        unknown = set(changes) - {"kind", "tag", "data", "children"}
        if unknown:
            raise TypeError(f"Unknown node fields: {', '.join(sorted(unknown))}")

        data = changes.get("data", self.data)
        children = changes.get("children", self.children)
        return Node(
            kind=changes.get("kind", self.kind),
            tag=changes.get("tag", self.tag),
            data=dict(data),
            children=list(children) if children is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a plain-dict view of the subtree without position bookkeeping."""
        result: dict[str, Any] = {"kind": self.kind, "tag": self.tag, "data": dict(self.data)}
        if self.children is not None:
            result["children"] = [child.to_dict() for child in self.children]
        return result


def make_node(kind: str, children: Optional[list[Node]] = None, tag: Optional[str] = None, **data: Any) -> Node:
    """Build a raw node from keyword payload.

    >>> make_node("text", value="hi").data
    {'value': 'hi'}

    """
    return Node(kind=kind, tag=tag, data=data, children=children)
