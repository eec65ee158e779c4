#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugins/link_crawl.py
"""Follow links while parsing and attach the linked documents.

The hook is registered at ``text/*`` and fires for markdown ``link`` nodes and
HTML ``<a>`` elements. For each allowed, not yet processed URL it fetches the
target, resolves its tag from the response content type (or the URL) and, when
that tag is supported, parses the body and attaches the parsed tree as a child
of the link node. Nested parses fire the same hook, one level deeper.

Fetch failures, error statuses and unsupported content types are logged as
warnings and the link is left unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from mimetree.ast.nodes import Node
from mimetree.ast.transforms import add_children
from mimetree.constants import TEXT_WILDCARD_TAG
from mimetree.exceptions import NetworkSecurityError, ParsingError
from mimetree.options import CrawlOptions
from mimetree.plugin import PluginDefinition, PluginFactory, create_plugin, create_typed_hook
from mimetree.plugins.html import is_html_element
from mimetree.plugins.markdown import is_markdown_node
from mimetree.utils.network import fetch_resource, is_url_allowed, normalize_url

if TYPE_CHECKING:
    from mimetree.engine import Engine

logger = logging.getLogger(__name__)


@dataclass
class CrawlContext:
    """Mutable crawl state shared by every invocation of the hook.

    Not safe for concurrent use: parse with ``parallel=False`` when crawling.

    Attributes
    ----------
    started_at : datetime
        When the crawl context was created
    current_depth : int
        Nesting level of the parse currently running
    processed_urls : set of str
        Normalized URLs already fetched
    current_domain : str, optional
        URL of the first page fetched, used by ``current_domain_only``

    """

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    current_depth: int = 0
    processed_urls: set[str] = field(default_factory=set)
    current_domain: Optional[str] = None


def is_markdown_link(node: Node) -> bool:
    """Whether a node is a markdown link."""
    return is_markdown_node(node) and node.kind == "link"


def is_html_link(node: Node) -> bool:
    """Whether a node is an HTML anchor element."""
    return is_html_element(node, "a")


def is_link(node: Node) -> bool:
    """Whether a node is a markdown link or an HTML anchor."""
    return is_markdown_link(node) or is_html_link(node)


def link_url(node: Node) -> Optional[str]:
    """Return the target URL of a link node."""
    if is_markdown_link(node):
        return (node.get("attrs") or {}).get("url")
    if is_html_link(node):
        href = (node.get("properties") or {}).get("href")
        return str(href) if href else None
    return None


def link_crawl_plugin(
    options: Optional[CrawlOptions] = None,
    context: Optional[CrawlContext] = None,
    client: Any = None,
) -> PluginFactory:
    """Return a plugin factory that crawls links found while parsing.

    Parameters
    ----------
    options : CrawlOptions, optional
        Domain policy, depth limit and fetch limits
    context : CrawlContext, optional
        Shared crawl state; a fresh one is created when omitted
    client : httpx.AsyncClient, optional
        Client used for every fetch; when omitted each fetch opens its own

    Returns
    -------
    PluginFactory
        Factory to pass to :class:`~mimetree.engine.Engine`

    """
    options = options or CrawlOptions()
    context = context if context is not None else CrawlContext()

    def factory(engine: Engine) -> PluginDefinition:
        async def crawl(node: Node, ctx: CrawlContext) -> Node:
            import httpx

            if ctx.current_depth > options.max_depth:
                logger.debug(f"Max crawl depth {options.max_depth} reached, not following links")
                return node

            raw_url = link_url(node)
            if not raw_url:
                return node

            url = normalize_url(raw_url)
            if url in ctx.processed_urls:
                logger.debug(f"Already crawled {url}")
                return node

            if not is_url_allowed(
                url,
                blocked_domains=options.blocked_domains,
                allowed_domains=options.allowed_domains,
                current_domain=ctx.current_domain,
                current_domain_only=options.current_domain_only,
            ):
                logger.debug(f"URL not allowed by crawl policy: {url}")
                return node

            try:
                result = await fetch_resource(url, options, client=client)
            except NetworkSecurityError as e:
                logger.warning(f"Refused to fetch {url}: {e}")
                return node
            except httpx.HTTPError as e:
                logger.warning(f"Error fetching {url}: {e}")
                return node

            if not result.is_success:
                logger.warning(f"Failed to fetch {url}: status {result.status_code}")
                return node

            ctx.processed_urls.add(url)
            if ctx.current_domain is None:
                ctx.current_domain = url

            tag = engine.detect_tag(result.content_type) or engine.detect_tag(url)
            if tag is None or engine.registry.lookup_parser(tag) is None:
                logger.warning(f"Unsupported content type '{result.content_type}' for {url}")
                return node

            ctx.current_depth += 1
            try:
                child = await engine.parse(result.text, tag)
            except ParsingError as e:
                logger.warning(f"Could not parse {url} as {tag}: {e}")
                return node
            finally:
                ctx.current_depth -= 1

            logger.debug(f"Attached crawled {tag} document from {url}")
            return add_children(node, [child])

        return create_plugin(
            "link-crawl",
            hooks=[create_typed_hook(TEXT_WILDCARD_TAG, crawl, match=is_link, context=context)],
        )

    return factory
