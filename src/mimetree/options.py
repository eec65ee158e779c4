#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/options.py
"""Configuration options for the built-in plugins.

All options are frozen dataclasses. Use :meth:`CloneFrozenMixin.create_updated`
to derive a modified copy:

    >>> options = CrawlOptions()
    >>> options.create_updated(max_depth=2).max_depth
    2

"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, replace
from typing import Any

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from mimetree.constants import (
    DEFAULT_BLOCKED_DOMAINS,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_MAX_CONTENT_SIZE,
    DEFAULT_MAX_CRAWL_DEPTH,
    DEFAULT_MAX_IMAGE_SIZE,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_USER_AGENT,
    DEFAULT_XML_INDENT,
    ENV_USER_AGENT,
)


def _default_user_agent() -> str:
    return os.getenv(ENV_USER_AGENT) or DEFAULT_USER_AGENT


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities."""

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class FetchOptions(CloneFrozenMixin):
    """Options shared by every plugin that downloads resources.

    Parameters
    ----------
    timeout : float, default 5.0
        Request timeout in seconds
    max_content_size : int, default 5MB
        Maximum accepted response body size in bytes
    user_agent : str
        User-Agent header; defaults to ``MIMETREE_USER_AGENT`` or
        ``mimetree-fetcher/1.0``
    max_redirects : int, default 3
        Maximum number of redirects to follow

    """

    timeout: float = field(default=DEFAULT_FETCH_TIMEOUT, metadata={"help": "Request timeout in seconds"})
    max_content_size: int = field(
        default=DEFAULT_MAX_CONTENT_SIZE, metadata={"help": "Maximum response size in bytes"}
    )
    user_agent: str = field(default_factory=_default_user_agent, metadata={"help": "User-Agent header"})
    max_redirects: int = field(default=DEFAULT_MAX_REDIRECTS, metadata={"help": "Maximum redirects to follow"})

    def __post_init__(self) -> None:
        """Validate numeric ranges.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.max_content_size <= 0:
            raise ValueError(f"max_content_size must be positive, got {self.max_content_size}")
        if self.max_redirects < 0:
            raise ValueError(f"max_redirects must be non-negative, got {self.max_redirects}")


@dataclass(frozen=True)
class CrawlOptions(FetchOptions):
    """Options for the link crawl plugin.

    Parameters
    ----------
    current_domain_only : bool, default False
        Only follow links on the domain of the first crawled page
    allowed_domains : tuple of str, default ()
        When non-empty, only links to these domains (or their subdomains) are followed
    blocked_domains : tuple of str
        Domains never fetched; localhost addresses by default
    max_depth : int, default 1
        Maximum crawl depth; pages nested deeper are not fetched

    """

    current_domain_only: bool = field(default=False, metadata={"help": "Stay on the first crawled domain"})
    allowed_domains: tuple[str, ...] = field(default=(), metadata={"help": "Domains allowed to be fetched"})
    blocked_domains: tuple[str, ...] = field(
        default=DEFAULT_BLOCKED_DOMAINS, metadata={"help": "Domains never fetched"}
    )
    max_depth: int = field(default=DEFAULT_MAX_CRAWL_DEPTH, metadata={"help": "Maximum crawl depth"})

    def __post_init__(self) -> None:
        """Validate crawl limits in addition to the fetch options."""
        super().__post_init__()
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")


@dataclass(frozen=True)
class BlobImageOptions(FetchOptions):
    """Options for the blob image plugin; images may be up to 20MB by default."""

    max_content_size: int = field(
        default=DEFAULT_MAX_IMAGE_SIZE, metadata={"help": "Maximum image size in bytes"}
    )


@dataclass(frozen=True)
class XmlSerializerOptions(CloneFrozenMixin):
    """Options for the generic XML tree dump.

    Parameters
    ----------
    indent : str, default "\\t"
        String repeated once per nesting level

    """

    indent: str = field(default=DEFAULT_XML_INDENT, metadata={"help": "Indentation unit"})


@dataclass(frozen=True)
class PlainTextOptions(CloneFrozenMixin):
    """Options for the plain text plugin.

    Parameters
    ----------
    normalize_newlines : bool, default True
        Convert ``\\r\\n`` and ``\\r`` to ``\\n`` before parsing

    """

    normalize_newlines: bool = field(default=True, metadata={"help": "Normalize line endings"})
