#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/registry.py
"""Registry of parsers, serializers and creation hooks keyed by tag.

Each :class:`~mimetree.engine.Engine` owns one ``TypeRegistry``. Plugins
populate it at registration time; afterwards it is only read.

Lookup rules
------------
- Parsers are looked up by exact tag.
- Serializers are looked up by ``(from, to)``, then ``(major(from)/*, to)``,
  then ``(*/*, to)``. A miss resolves to :func:`null_serializer`.
- Creation hooks are gathered from ``tag:kind``, ``tag``, ``major/*`` and
  ``*/*``, most specific first. Every level contributes; specificity decides
  only the order.

"""

from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from mimetree.ast.nodes import Node
from mimetree.constants import EXTRA_MIME_TYPES
from mimetree.exceptions import ValidationError
from mimetree.tags import creation_hook_keys, parse_tag, serializer_lookup_keys, strip_parameters, validate_tag

logger = logging.getLogger(__name__)

ParserFn = Callable[[str], Union[Node, Awaitable[Node]]]
SerializerFn = Callable[[Node], Optional[str]]
CreationHookFn = Callable[[Node, Any], Union[Node, Awaitable[Node]]]
MatchFn = Callable[[Node], bool]

for _extension, _mime_type in EXTRA_MIME_TYPES.items():
    mimetypes.add_type(_mime_type, _extension)


def null_serializer(node: Node) -> None:
    """Serializer used when no registration matches; always returns None."""
    return None


def is_null_serializer(serializer: SerializerFn) -> bool:
    """Check whether a resolved serializer is the null serializer."""
    return serializer is null_serializer


def _callable_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


@dataclass(frozen=True)
class HookRegistration:
    """A creation hook together with its optional filter and context.

    Parameters
    ----------
    key : str
        Registration key (concrete, kind-qualified or wildcard tag)
    hook : callable
        ``(node, context) -> Node`` or an awaitable of Node
    match : callable, optional
        ``(node) -> bool``; when it returns False the hook is skipped
    context : Any, optional
        Shared state handed to the hook by reference on every call

    """

    key: str
    hook: CreationHookFn
    match: Optional[MatchFn] = None
    context: Any = None

    @property
    def name(self) -> str:
        """Readable hook name for log and error messages."""
        return _callable_name(self.hook)


class TypeRegistry:
    """Tag-indexed registry for one engine.

    Attributes
    ----------
    _parsers : dict
        Supported tags mapped to their parser (None for serializer-only support)
    _serializers : dict
        ``(from_tag, to_tag)`` mapped to the serializer
    _hooks : dict
        Registration key mapped to the ordered hook registrations
    _extensions : dict
        File extensions (lowercase, with dot) mapped to supported tags
    _aliases : dict
        Alternative content types mapped to supported tags

    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._parsers: dict[str, Optional[ParserFn]] = {}
        self._serializers: dict[tuple[str, str], SerializerFn] = {}
        self._hooks: dict[str, list[HookRegistration]] = {}
        self._extensions: dict[str, str] = {}
        self._aliases: dict[str, str] = {}

    def register_support(
        self,
        tag: str,
        parser: Optional[ParserFn],
        serializer: Optional[SerializerFn] = None,
        *,
        extensions: Iterable[str] = (),
        aliases: Iterable[str] = (),
    ) -> None:
        """Declare a concrete tag as supported.

        The identity serializer ``(tag, tag)`` is registered as well; when no
        serializer is given the null serializer is used.

        Parameters
        ----------
        tag : str
            Concrete tag (no wildcard, no kind qualifier)
        parser : callable or None
            Parser for the tag; None declares a serializer-only support
        serializer : callable, optional
            Identity serializer for the tag
        extensions : iterable of str, optional
            File extensions resolved to this tag by :meth:`detect_tag`
        aliases : iterable of str, optional
            Other content types resolved to this tag by :meth:`detect_tag`

        Raises
        ------
        ValidationError
            If the tag is malformed, a wildcard, or kind-qualified

        """
        parsed = parse_tag(tag)
        if parsed.is_wildcard or parsed.subtype:
            raise ValidationError(
                f"Only concrete tags can be supported, got: {tag!r}", parameter_name="tag", parameter_value=tag
            )
        tag = parsed.base

        if tag in self._parsers:
            logger.debug(f"Re-registering support for '{tag}'")
        else:
            logger.debug(f"Registered support for '{tag}'")

        self._parsers[tag] = parser
        self._serializers[(tag, tag)] = serializer or null_serializer

        for extension in extensions:
            normalized = extension.lower() if extension.startswith(".") else f".{extension.lower()}"
            self._extensions[normalized] = tag
        for alias in aliases:
            self._aliases[strip_parameters(alias)] = tag

    def register_serializer(self, from_tag: str, to_tag: str, serializer: SerializerFn) -> None:
        """Register a serializer for a ``(from, to)`` pair; wildcards allowed."""
        key = (validate_tag(from_tag), validate_tag(to_tag))
        if key in self._serializers:
            logger.debug(f"Overriding serializer {key[0]} -> {key[1]}")
        self._serializers[key] = serializer
        logger.debug(f"Registered serializer {key[0]} -> {key[1]}: {_callable_name(serializer)}")

    def register_creation_hook(
        self,
        tag: str,
        hook: CreationHookFn,
        match: Optional[MatchFn] = None,
        context: Any = None,
    ) -> HookRegistration:
        """Append a creation hook for a tag key.

        Parameters
        ----------
        tag : str
            Concrete tag, kind-qualified tag (``text/markdown:image``),
            ``major/*`` or ``*/*``
        hook : callable
            ``(node, context) -> Node``, sync or async
        match : callable, optional
            Filter deciding whether the hook applies to a node
        context : Any, optional
            Object passed to every invocation of ``hook``

        Returns
        -------
        HookRegistration
            The stored registration

        """
        key = validate_tag(tag)
        registration = HookRegistration(key=key, hook=hook, match=match, context=context)
        self._hooks.setdefault(key, []).append(registration)
        logger.debug(f"Registered creation hook '{registration.name}' for '{key}'")
        return registration

    def lookup_parser(self, tag: str) -> Optional[ParserFn]:
        """Return the parser for a tag, or None."""
        return self._parsers.get(tag)

    def lookup_serializer(self, from_tag: str, to_tag: str) -> SerializerFn:
        """Resolve the serializer for a conversion, widening ``from_tag``.

        Returns
        -------
        callable
            The first registered serializer among ``(from, to)``,
            ``(major(from)/*, to)`` and ``(*/*, to)``; otherwise
            :func:`null_serializer`

        """
        for key in serializer_lookup_keys(from_tag, to_tag):
            serializer = self._serializers.get(key)
            if serializer is not None:
                return serializer
        logger.debug(f"No serializer registered for {from_tag} -> {to_tag}")
        return null_serializer

    def lookup_creation_hooks(self, tag: str, kind: Optional[str] = None) -> list[HookRegistration]:
        """Return every hook that applies to a node, most specific key first."""
        hooks: list[HookRegistration] = []
        for key in creation_hook_keys(tag, kind):
            hooks.extend(self._hooks.get(key, ()))
        return hooks

    def is_registered(self, tag: str) -> bool:
        """Whether a tag was declared through :meth:`register_support`."""
        return tag in self._parsers

    def registered_tags(self) -> list[str]:
        """Return the supported tags in sorted order."""
        return sorted(self._parsers)

    def detect_tag(self, value: str) -> Optional[str]:
        """Resolve a filename, URL or content type to a supported tag.

        Strategies, in order:

        1. Content type (parameters stripped), directly or through an alias
        2. Registered file extensions
        3. The ``mimetypes`` table, again resolving aliases

        Parameters
        ----------
        value : str
            Content type such as ``text/html; charset=utf-8``, a filename or a URL

        Returns
        -------
        str or None
            A supported tag, or None when nothing registered matches

        """
        if not value:
            return None

        candidate = strip_parameters(value)
        resolved = self._resolve(candidate)
        if resolved:
            return resolved

        path = value.split("?", 1)[0].split("#", 1)[0]
        extension = os.path.splitext(path)[1].lower()
        if extension and extension in self._extensions:
            logger.debug(f"Tag detected from extension '{extension}': {self._extensions[extension]}")
            return self._extensions[extension]

        guessed, _ = mimetypes.guess_type(path)
        if guessed:
            resolved = self._resolve(guessed)
            if resolved:
                logger.debug(f"Tag detected via mimetypes for '{value}': {resolved}")
                return resolved

        return None

    def _resolve(self, content_type: str) -> Optional[str]:
        content_type = content_type.lower()
        if content_type in self._parsers:
            return content_type
        alias = self._aliases.get(content_type)
        if alias and alias in self._parsers:
            return alias
        return None
