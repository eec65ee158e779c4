#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugin.py
"""Plugin definitions.

A plugin is a declarative bundle of registrations applied to an engine:
supported types (parser plus identity serializer), extra serializers and
creation hooks. Plugins that need the engine itself (to parse nested content
or create synthesized nodes) are written as factories, callables that receive
the engine and return a :class:`PluginDefinition`.

Examples
--------
Declare a plugin that tags every markdown heading:

    >>> def mark_heading(node, context):
    ...     return node.copy(data={**node.data, "marked": True})
    >>> plugin = create_plugin(
    ...     "heading-marker",
    ...     hooks=[create_typed_hook("text/markdown", mark_heading, kind="heading")],
    ... )

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Union

from mimetree.registry import CreationHookFn, MatchFn, ParserFn, SerializerFn
from mimetree.tags import subtype_tag

if TYPE_CHECKING:
    from mimetree.engine import Engine


@dataclass
class TypeSupport:
    """A tag the plugin can parse (and serialize back to itself).

    Parameters
    ----------
    tag : str
        Concrete tag
    parser : callable, optional
        ``(text) -> Node``, sync or async; None for a serializer-only support
    serializer : callable, optional
        Identity serializer ``(node) -> str``
    extensions : tuple of str
        File extensions resolved to ``tag``
    aliases : tuple of str
        Other content types resolved to ``tag``

    """

    tag: str
    parser: Optional[ParserFn] = None
    serializer: Optional[SerializerFn] = None
    extensions: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()


@dataclass
class SerializerSpec:
    """A ``(from, to)`` serializer registration; wildcards allowed."""

    from_tag: str
    to_tag: str
    serializer: SerializerFn


@dataclass
class CreationHook:
    """A creation hook registration."""

    tag: str
    hook: CreationHookFn
    match: Optional[MatchFn] = None
    context: Any = None


@dataclass
class PluginDefinition:
    """Everything a plugin registers on an engine.

    Parameters
    ----------
    name : str
        Plugin name used in logs
    supports : list of TypeSupport
        Supported types
    serializers : list of SerializerSpec
        Additional serializers
    hooks : list of CreationHook
        Creation hooks, in registration order

    """

    name: str
    supports: list[TypeSupport] = field(default_factory=list)
    serializers: list[SerializerSpec] = field(default_factory=list)
    hooks: list[CreationHook] = field(default_factory=list)


PluginFactory = Callable[["Engine"], PluginDefinition]
PluginLike = Union[PluginDefinition, PluginFactory]


def create_plugin(
    name: str,
    *,
    supports: Iterable[TypeSupport] = (),
    serializers: Iterable[SerializerSpec] = (),
    hooks: Iterable[CreationHook] = (),
) -> PluginDefinition:
    """Build a :class:`PluginDefinition` from iterables of registrations."""
    return PluginDefinition(name=name, supports=list(supports), serializers=list(serializers), hooks=list(hooks))


def create_typed_hook(
    tag: str,
    hook: CreationHookFn,
    *,
    kind: Optional[str] = None,
    match: Optional[MatchFn] = None,
    context: Any = None,
) -> CreationHook:
    """Build a hook registration, optionally narrowed to one node kind.

    Parameters
    ----------
    tag : str
        Tag or wildcard to hook into
    hook : callable
        ``(node, context) -> Node``, sync or async
    kind : str, optional
        When given, the hook is registered at ``tag:kind``
    match : callable, optional
        Additional ``(node) -> bool`` filter
    context : Any, optional
        Shared object passed to every invocation

    Returns
    -------
    CreationHook
        The registration

    """
    key = subtype_tag(tag, kind) if kind else tag
    return CreationHook(tag=key, hook=hook, match=match, context=context)
