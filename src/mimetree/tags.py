#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/tags.py
"""Tag parsing, validation and specificity chains.

A tag is a ``major/minor`` content-type string such as ``text/markdown``.
Two wildcard forms exist (``major/*`` and ``*/*``) and a concrete tag may be
qualified with a node kind after a colon (``text/markdown:image``) so that a
creation hook can target a single kind within one format.

The lookup helpers in this module compute the ordered key chains the registry
walks when resolving serializers and creation hooks. Both are cached since the
same handful of ``(tag, kind)`` pairs is looked up for every node of a tree.

"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import NamedTuple, Optional

from mimetree.constants import GLOBAL_WILDCARD_TAG, SUBTYPE_SEPARATOR, TAG_SEPARATOR, WILDCARD
from mimetree.exceptions import ValidationError

_TOKEN_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9!#$&^_.+\-]*$")


class ParsedTag(NamedTuple):
    """Components of a tag string."""

    major: str
    minor: str
    subtype: Optional[str] = None

    @property
    def base(self) -> str:
        """Return the tag without its subtype qualifier."""
        return f"{self.major}{TAG_SEPARATOR}{self.minor}"

    @property
    def is_wildcard(self) -> bool:
        """Whether the tag is ``major/*`` or ``*/*``."""
        return self.minor == WILDCARD


def parse_tag(tag: str) -> ParsedTag:
    """Split and validate a tag.

    Parameters
    ----------
    tag : str
        Tag such as ``text/markdown``, ``text/*``, ``*/*`` or ``text/markdown:image``

    Returns
    -------
    ParsedTag
        The parsed components

    Raises
    ------
    ValidationError
        If the tag is malformed

    Examples
    --------
    >>> parse_tag("text/markdown:image")
    ParsedTag(major='text', minor='markdown', subtype='image')

    """
    if not isinstance(tag, str) or not tag:
        raise ValidationError(f"Invalid tag: {tag!r}", parameter_name="tag", parameter_value=tag)

    base, sep, subtype = tag.partition(SUBTYPE_SEPARATOR)
    if sep and not subtype:
        raise ValidationError(f"Empty subtype in tag: {tag!r}", parameter_name="tag", parameter_value=tag)

    if base.count(TAG_SEPARATOR) != 1:
        raise ValidationError(
            f"Tag must have the form 'major/minor': {tag!r}", parameter_name="tag", parameter_value=tag
        )

    major, minor = base.split(TAG_SEPARATOR)
    if not major or not minor:
        raise ValidationError(f"Tag has an empty component: {tag!r}", parameter_name="tag", parameter_value=tag)

    if major == WILDCARD and minor != WILDCARD:
        raise ValidationError(f"Invalid wildcard tag: {tag!r}", parameter_name="tag", parameter_value=tag)

    for part in (major, minor):
        if part != WILDCARD and not _TOKEN_RE.match(part):
            raise ValidationError(f"Invalid characters in tag: {tag!r}", parameter_name="tag", parameter_value=tag)

    if subtype:
        if minor == WILDCARD:
            raise ValidationError(
                f"Wildcard tags cannot carry a subtype: {tag!r}", parameter_name="tag", parameter_value=tag
            )
        return ParsedTag(major.lower(), minor.lower(), subtype)

    return ParsedTag(major.lower(), minor.lower())


def validate_tag(tag: str) -> str:
    """Validate a tag and return its normalized (lowercase type) form."""
    parsed = parse_tag(tag)
    if parsed.subtype:
        return f"{parsed.base}{SUBTYPE_SEPARATOR}{parsed.subtype}"
    return parsed.base


def major_type(tag: str) -> str:
    """Return the major part of a tag, e.g. ``text`` for ``text/markdown``."""
    return tag.split(TAG_SEPARATOR, 1)[0]


def major_wildcard(tag: str) -> str:
    """Return the ``major/*`` wildcard for a tag."""
    return f"{major_type(tag)}{TAG_SEPARATOR}{WILDCARD}"


def subtype_tag(tag: str, kind: str) -> str:
    """Return the kind-qualified form of a tag, e.g. ``text/markdown:image``."""
    return f"{tag}{SUBTYPE_SEPARATOR}{kind}"


def strip_parameters(content_type: str) -> str:
    """Drop parameters from a content-type value.

    >>> strip_parameters("text/html; charset=UTF-8")
    'text/html'

    """
    return content_type.split(";", 1)[0].strip().lower()


def tag_matches(pattern: str, tag: str) -> bool:
    """Check whether a concrete tag falls under a (possibly wildcard) pattern."""
    if pattern == GLOBAL_WILDCARD_TAG:
        return True
    if pattern.endswith(f"{TAG_SEPARATOR}{WILDCARD}"):
        return major_type(pattern) == major_type(tag)
    return pattern == tag


@lru_cache(maxsize=512)
def serializer_lookup_keys(from_tag: str, to_tag: str) -> tuple[tuple[str, str], ...]:
    """Return the ``(from, to)`` keys tried for a serializer, most specific first."""
    keys = [(from_tag, to_tag), (major_wildcard(from_tag), to_tag), (GLOBAL_WILDCARD_TAG, to_tag)]
    # A wildcard from_tag collapses some levels onto the same key
    return tuple(dict.fromkeys(keys))


@lru_cache(maxsize=1024)
def creation_hook_keys(tag: str, kind: Optional[str]) -> tuple[str, ...]:
    """Return the hook registration keys for a node, most specific first.

    The chain is ``tag:kind``, ``tag``, ``major/*``, ``*/*``.

    >>> creation_hook_keys("text/markdown", "image")
    ('text/markdown:image', 'text/markdown', 'text/*', '*/*')

    """
    keys = []
    if kind:
        keys.append(subtype_tag(tag, kind))
    keys.extend([tag, major_wildcard(tag), GLOBAL_WILDCARD_TAG])
    return tuple(dict.fromkeys(keys))
