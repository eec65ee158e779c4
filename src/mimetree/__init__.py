"""mimetree - parse content of many types into one tree, hook every node, serialize anywhere.

Documents of different content types (markdown, HTML, JSON, XML, plain text)
are parsed into a single tree of :class:`~mimetree.ast.nodes.Node` objects
tagged with their content type. Plugins register parsers, serializers and
creation hooks; hooks observe and replace each node as it is created, which is
how ids are assigned, links crawled and images downloaded.

Examples
--------
Parse markdown, giving every node an id:

    >>> import asyncio
    >>> from mimetree import Engine
    >>> from mimetree.plugins import identity_plugin, markdown_plugin
    >>> engine = Engine([identity_plugin(), markdown_plugin])
    >>> tree = asyncio.run(engine.parse("# Title\\n\\nBody text.", "text/markdown"))
    >>> tree.children[0].kind
    'heading'

Dump any tree as XML:

    >>> from mimetree.plugins import xml_tree_serializer_plugin
    >>> _ = engine.use(xml_tree_serializer_plugin())
    >>> print(engine.serialize(tree, "application/xml"))  # doctest: +SKIP

See Also
--------
mimetree.plugins : built-in plugins
mimetree.ast : tree model and walker functions

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

__version__ = "0.1.0"

from mimetree.ast.nodes import Node, make_node
from mimetree.engine import Engine
from mimetree.exceptions import (
    DependencyError,
    FormatError,
    HookError,
    MimeTreeError,
    NetworkSecurityError,
    ParserNotFoundError,
    ParsingError,
    SecurityError,
    SerializationError,
    TagResolutionError,
    TypeNotRegisteredError,
    ValidationError,
)
from mimetree.plugin import (
    CreationHook,
    PluginDefinition,
    SerializerSpec,
    TypeSupport,
    create_plugin,
    create_typed_hook,
)
from mimetree.registry import TypeRegistry, is_null_serializer

__all__ = [
    "__version__",
    # Core
    "Engine",
    "Node",
    "make_node",
    "TypeRegistry",
    "is_null_serializer",
    # Plugin API
    "CreationHook",
    "PluginDefinition",
    "SerializerSpec",
    "TypeSupport",
    "create_plugin",
    "create_typed_hook",
    # Exceptions
    "MimeTreeError",
    "ValidationError",
    "TagResolutionError",
    "FormatError",
    "TypeNotRegisteredError",
    "ParserNotFoundError",
    "ParsingError",
    "SerializationError",
    "HookError",
    "SecurityError",
    "NetworkSecurityError",
    "DependencyError",
]
