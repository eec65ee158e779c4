#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/factory.py
"""Node creation pipeline.

Every node that enters a tree goes through :meth:`NodeFactory.create`, which
stamps the node with its tag and runs the matching creation hooks.

Hook execution
--------------
Hooks are gathered from the registry in specificity order
(``tag:kind``, ``tag``, ``major/*``, ``*/*``) and run strictly one after the
other. Each hook receives the current node plus the context object given at
registration, and returns the node to pass on. Async hooks are awaited before
the next hook starts.

Exceptions raised by a hook are not caught: they abort the chain and reach the
caller unchanged. A hook that returns ``None`` violates the contract and
raises :class:`~mimetree.exceptions.HookError`.

Concurrency
-----------
Hook contexts are shared by reference between every node (and every
concurrent branch of a parallel ``map_tree``). The factory does not lock them.

"""

from __future__ import annotations

import inspect
import logging
from typing import Optional

from mimetree.ast.nodes import Node
from mimetree.exceptions import HookError, TagResolutionError
from mimetree.registry import TypeRegistry

logger = logging.getLogger(__name__)


class NodeFactory:
    """Create tagged nodes and run their creation hooks.

    Parameters
    ----------
    registry : TypeRegistry
        Registry the hooks are looked up in

    """

    def __init__(self, registry: TypeRegistry) -> None:
        """Initialize the factory."""
        self._registry = registry

    async def create(self, raw: Node, tag: Optional[str] = None) -> Node:
        """Tag a raw node and run every applicable creation hook.

        Parameters
        ----------
        raw : Node
            Node to create. It is not modified.
        tag : str, optional
            Tag to use when ``raw.tag`` is not set

        Returns
        -------
        Node
            The node returned by the last hook (or the tagged copy of ``raw``
            when no hook applies)

        Raises
        ------
        TagResolutionError
            If neither ``raw.tag`` nor ``tag`` is set
        HookError
            If a hook returns None

        """
        resolved_tag = raw.tag or tag
        if not resolved_tag:
            raise TagResolutionError(raw.kind)

        node = raw.copy(tag=resolved_tag)

        # The chain is fixed by the kind the node was created with
        for registration in self._registry.lookup_creation_hooks(resolved_tag, raw.kind):
            if registration.match is not None and not registration.match(node):
                logger.debug(f"Hook '{registration.name}' declined node '{node.kind}' ({resolved_tag})")
                continue

            try:
                result = registration.hook(node, registration.context)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                logger.debug(f"Hook '{registration.name}' failed on node '{node.kind}' ({resolved_tag}): {e!r}")
                raise

            if result is None:
                raise HookError(
                    f"Creation hook '{registration.name}' returned None for node '{node.kind}' ({resolved_tag})",
                    hook_name=registration.name,
                )
            node = result

        return node
