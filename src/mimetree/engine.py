#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/engine.py
"""Engine facade: parse, create and serialize trees.

The engine owns a :class:`~mimetree.registry.TypeRegistry` and a
:class:`~mimetree.factory.NodeFactory`. Plugins are registered once, before
any parsing starts; the registry is not designed for concurrent mutation.

Examples
--------
    >>> import asyncio
    >>> from mimetree import Engine
    >>> from mimetree.plugins import identity_plugin, markdown_plugin
    >>> engine = Engine([identity_plugin(), markdown_plugin])
    >>> tree = asyncio.run(engine.parse("# Title\\n\\nBody text.", "text/markdown"))
    >>> engine.serialize(tree).rstrip()
    '# Title\\n\\nBody text.'

"""

from __future__ import annotations

import importlib.metadata
import inspect
import logging
from typing import Iterable, Optional

from mimetree.ast.nodes import Node
from mimetree.ast.transforms import map_tree, purify
from mimetree.constants import PLUGIN_ENTRY_POINT_GROUP
from mimetree.exceptions import (
    ParserNotFoundError,
    TagResolutionError,
    TypeNotRegisteredError,
    ValidationError,
)
from mimetree.factory import NodeFactory
from mimetree.plugin import PluginDefinition, PluginLike
from mimetree.registry import TypeRegistry, is_null_serializer
from mimetree.utils.decorators import debug_timer

logger = logging.getLogger(__name__)


class Engine:
    """Content transformation engine.

    Parameters
    ----------
    plugins : iterable of PluginDefinition or plugin factory, optional
        Plugins registered in order
    discover : bool, default = False
        Also load plugins exposed through the ``mimetree.plugins`` entry point group

    Attributes
    ----------
    registry : TypeRegistry
        The engine's registry
    factory : NodeFactory
        Factory running creation hooks against ``registry``

    """

    def __init__(self, plugins: Iterable[PluginLike] = (), *, discover: bool = False) -> None:
        """Initialize the engine and register plugins."""
        self.registry = TypeRegistry()
        self.factory = NodeFactory(self.registry)
        self._plugins: list[PluginDefinition] = []

        for plugin in plugins:
            self.use(plugin)

        if discover:
            self._discover_plugins()

    @property
    def plugin_names(self) -> list[str]:
        """Names of the registered plugins, in registration order."""
        return [plugin.name for plugin in self._plugins]

    def use(self, plugin: PluginLike) -> Engine:
        """Register one plugin.

        Parameters
        ----------
        plugin : PluginDefinition or callable
            A definition, or a factory receiving this engine and returning one

        Returns
        -------
        Engine
            ``self``, for chaining

        Raises
        ------
        ValidationError
            If a factory does not return a PluginDefinition

        """
        definition = plugin if isinstance(plugin, PluginDefinition) else plugin(self)
        if not isinstance(definition, PluginDefinition):
            raise ValidationError(
                f"Plugin factory returned {type(definition).__name__}, expected PluginDefinition",
                parameter_name="plugin",
                parameter_value=plugin,
            )

        for support in definition.supports:
            self.registry.register_support(
                support.tag,
                support.parser,
                support.serializer,
                extensions=support.extensions,
                aliases=support.aliases,
            )
        for spec in definition.serializers:
            self.registry.register_serializer(spec.from_tag, spec.to_tag, spec.serializer)
        for hook in definition.hooks:
            self.registry.register_creation_hook(hook.tag, hook.hook, match=hook.match, context=hook.context)

        self._plugins.append(definition)
        logger.debug(
            f"Registered plugin '{definition.name}' ({len(definition.supports)} types, "
            f"{len(definition.serializers)} serializers, {len(definition.hooks)} hooks)"
        )
        return self

    async def parse(self, input: str, tag: str) -> Node:
        """Parse input text as the given tag.

        Parameters
        ----------
        input : str
            Source text
        tag : str
            Tag of the input

        Returns
        -------
        Node
            Root of the created tree

        Raises
        ------
        TypeNotRegisteredError
            If no plugin supports ``tag``
        ParserNotFoundError
            If ``tag`` is supported without a parser

        """
        if not self.registry.is_registered(tag):
            raise TypeNotRegisteredError(tag, self.registry.registered_tags())

        parser = self.registry.lookup_parser(tag)
        if parser is None:
            raise ParserNotFoundError(tag)

        with debug_timer(logger, f"Parsing ({tag})"):
            result = parser(input)
            if inspect.isawaitable(result):
                result = await result
        return result

    def serialize(self, node: Node, to_tag: Optional[str] = None) -> Optional[str]:
        """Serialize a tree to a target tag.

        The tree is purified to the root's tag first, so nodes of other
        formats attached by hooks never reach the serializer.

        Parameters
        ----------
        node : Node
            Root of the tree (or subtree) to serialize
        to_tag : str, optional
            Target tag; defaults to ``node.tag``

        Returns
        -------
        str or None
            Serializer output, or None when no serializer is registered

        Raises
        ------
        TagResolutionError
            If ``node`` has no tag

        """
        if node.tag is None:
            raise TagResolutionError(node.kind)

        target = to_tag or node.tag
        serializer = self.registry.lookup_serializer(node.tag, target)
        if is_null_serializer(serializer):
            logger.debug(f"Null serializer for {node.tag} -> {target}")
            return None

        pure = purify(node)
        # Keep the subtree's place so serializers can look at its siblings
        if node.parent is not None:
            pure.set_position(node.parent, node.index)

        with debug_timer(logger, f"Serializing ({node.tag} -> {target})"):
            return serializer(pure)

    async def create(self, raw: Node, tag: Optional[str] = None) -> Node:
        """Create a node through the factory; see :meth:`NodeFactory.create`."""
        return await self.factory.create(raw, tag)

    async def create_tree(self, raw_root: Node, tag: str, parallel: bool = False) -> Node:
        """Send every untagged node of a raw tree through the factory.

        Nodes that already carry a tag were created by a hook and are kept
        as they are.

        Parameters
        ----------
        raw_root : Node
            Raw tree produced by a format parser
        tag : str
            Tag assigned to the untagged nodes
        parallel : bool, default = False
            Create sibling subtrees concurrently

        Returns
        -------
        Node
            The created tree with consistent parent/index

        """

        async def _create(node: Node) -> Node:
            if node.tag is not None:
                return node
            return await self.factory.create(node, tag)

        return await map_tree(raw_root, _create, parallel=parallel)

    def detect_tag(self, value: str) -> Optional[str]:
        """Resolve a filename, URL or content type to a supported tag."""
        return self.registry.detect_tag(value)

    def _discover_plugins(self) -> None:
        """Register third-party plugins exposed via entry points."""
        for entry_point in importlib.metadata.entry_points(group=PLUGIN_ENTRY_POINT_GROUP):
            dist_name = entry_point.dist.name if entry_point.dist else "unknown"
            try:
                plugin = entry_point.load()
                self.use(plugin)
                logger.info(f"Registered plugin '{entry_point.name}' from package '{dist_name}'")
            except Exception as e:
                logger.warning(f"Failed to load plugin '{entry_point.name}' from '{dist_name}': {e}")
