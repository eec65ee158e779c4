#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugins/identity.py
"""Attach a unique ``id`` to every created node."""

from __future__ import annotations

import uuid
from typing import Any, Callable, Optional

from mimetree.ast.nodes import Node
from mimetree.constants import GLOBAL_WILDCARD_TAG
from mimetree.plugin import PluginDefinition, create_plugin, create_typed_hook

IdGenerator = Callable[[], str]


def default_id() -> str:
    """Return a random hex id."""
    return uuid.uuid4().hex


def has_id(node: Node) -> bool:
    """Whether the node carries an id."""
    return bool(node.get("id"))


def identity_plugin(generate_id: Optional[IdGenerator] = None) -> PluginDefinition:
    """Plugin assigning ``data["id"]`` to every node of every tag.

    Nodes that already have an id keep it.

    Parameters
    ----------
    generate_id : callable, optional
        ``() -> str``; defaults to :func:`default_id`

    """
    generator = generate_id or default_id

    def assign_id(node: Node, context: Any) -> Node:
        if has_id(node):
            return node
        return node.copy(data={**node.data, "id": generator()})

    return create_plugin("identity", hooks=[create_typed_hook(GLOBAL_WILDCARD_TAG, assign_id)])
