"""Network fetching utilities with size limits and URL policy checks.

Plugins that download resources (link crawl, blob image) go through
:func:`fetch_resource`. It streams the response body and aborts as soon as the
configured size limit is exceeded, refuses non-HTTP(S) URLs, and honours the
``MIMETREE_DISABLE_NETWORK`` kill switch.

Functions
---------
- fetch_resource: Fetch a URL with an ``httpx.AsyncClient``
- create_http_client: Build a client configured from FetchOptions
- normalize_url: Canonical URL form used for crawl bookkeeping
- is_url_allowed: Domain allow/block policy
- is_network_disabled: Check the global kill switch
"""

#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/utils/network.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from email.message import Message
from typing import Any, Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from mimetree.constants import DEPS_NETWORK, ENV_DISABLE_NETWORK
from mimetree.exceptions import NetworkSecurityError
from mimetree.options import FetchOptions
from mimetree.utils.decorators import requires_dependencies

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


@dataclass(frozen=True)
class FetchResult:
    """A fetched resource.

    Parameters
    ----------
    url : str
        Final URL after redirects
    status_code : int
        HTTP status code
    content : bytes
        Response body
    content_type : str
        Media type without parameters, lowercased ("" when absent)
    text : str
        Body decoded with the response charset (UTF-8 when undeclared)

    """

    url: str
    status_code: int
    content: bytes
    content_type: str
    text: str

    @property
    def is_success(self) -> bool:
        """Whether the status code is 2xx."""
        return 200 <= self.status_code < 300


def is_network_disabled() -> bool:
    """Check if network access is globally disabled via environment variable.

    Returns
    -------
    bool
        True if network access should be disabled, False otherwise

    """
    return os.getenv(ENV_DISABLE_NETWORK, "").lower() in ("true", "1", "yes", "on")


def parse_content_type(content_type: str) -> str:
    """Parse a content-type header to its main MIME type.

    Examples
    --------
    >>> parse_content_type("text/html; charset=UTF-8")
    'text/html'
    >>> parse_content_type("")
    ''

    """
    if not content_type:
        return ""

    msg = Message()
    msg["content-type"] = content_type
    return msg.get_content_type().lower()


def normalize_url(url: str) -> str:
    """Normalize a URL for crawl bookkeeping.

    The fragment is dropped, query parameters are sorted by name (keeping the
    relative order of repeated names) and an empty path becomes ``/``.
    Unparseable input is returned unchanged.

    Examples
    --------
    >>> normalize_url("https://Example.com?b=2&a=1#top")
    'https://example.com/?a=1&b=2'

    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    if not parts.scheme or not parts.netloc:
        return url

    query = urlencode(sorted(parse_qsl(parts.query, keep_blank_values=True), key=lambda item: item[0]))
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, query, ""))


def _hostname(url: str) -> Optional[str]:
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return None
    return hostname.lower() if hostname else None


def _domain_matches(hostname: str, domain: str) -> bool:
    domain = domain.lower().lstrip(".")
    return hostname == domain or hostname.endswith(f".{domain}")


def is_url_allowed(
    url: str,
    *,
    blocked_domains: Iterable[str] = (),
    allowed_domains: Iterable[str] = (),
    current_domain: Optional[str] = None,
    current_domain_only: bool = False,
) -> bool:
    """Apply the domain policy to a URL.

    Parameters
    ----------
    url : str
        Absolute URL to check
    blocked_domains : iterable of str
        Domains (and their subdomains) that are never allowed
    allowed_domains : iterable of str
        When non-empty, only these domains (and subdomains) are allowed
    current_domain : str, optional
        URL or hostname of the page the crawl started from
    current_domain_only : bool, default False
        Restrict to ``current_domain`` when it is known

    Returns
    -------
    bool
        True when the URL may be fetched

    """
    hostname = _hostname(url)
    if not hostname or urlsplit(url).scheme not in ("http", "https"):
        return False

    if any(_domain_matches(hostname, blocked) for blocked in blocked_domains):
        return False

    if current_domain_only and current_domain:
        current_hostname = _hostname(current_domain) or current_domain.lower()
        return hostname == current_hostname

    allowed = list(allowed_domains)
    if allowed:
        return any(_domain_matches(hostname, domain) for domain in allowed)

    return True


def validate_fetch_url(url: str) -> None:
    """Reject URLs that are not absolute HTTP(S) URLs.

    Raises
    ------
    NetworkSecurityError
        If the scheme is unsupported or the hostname is missing

    """
    try:
        parsed = urlsplit(url)
    except ValueError as e:
        raise NetworkSecurityError(f"Invalid URL format: {url}", original_error=e) from e

    if parsed.scheme not in ("http", "https"):
        raise NetworkSecurityError(f"Unsupported URL scheme: {parsed.scheme or '<none>'}")
    if not parsed.hostname:
        raise NetworkSecurityError("URL missing hostname")


@requires_dependencies("network", DEPS_NETWORK)
def create_http_client(options: Optional[FetchOptions] = None, transport: Any = None) -> Any:
    """Create an ``httpx.AsyncClient`` configured from fetch options.

    Every outgoing request, redirects included, is validated by an event hook.

    Parameters
    ----------
    options : FetchOptions, optional
        Timeout, redirect limit and User-Agent
    transport : httpx.AsyncBaseTransport, optional
        Custom transport (e.g. ``httpx.MockTransport`` in tests)

    Returns
    -------
    httpx.AsyncClient
        Configured client; the caller is responsible for closing it

    """
    import httpx

    options = options or FetchOptions()

    async def validate_request_url(request: httpx.Request) -> None:
        validate_fetch_url(str(request.url))

    return httpx.AsyncClient(
        timeout=options.timeout,
        follow_redirects=True,
        max_redirects=options.max_redirects,
        headers={"User-Agent": options.user_agent},
        event_hooks={"request": [validate_request_url]},
        transport=transport,
    )


@requires_dependencies("network", DEPS_NETWORK)
async def fetch_resource(url: str, options: Optional[FetchOptions] = None, client: Any = None) -> FetchResult:
    """Fetch a URL, enforcing the size limit while streaming.

    Parameters
    ----------
    url : str
        Absolute HTTP(S) URL
    options : FetchOptions, optional
        Limits and headers; defaults to ``FetchOptions()``
    client : httpx.AsyncClient, optional
        Client to use. When omitted a client is created for this call and
        closed afterwards.

    Returns
    -------
    FetchResult
        The response, whatever its status code

    Raises
    ------
    NetworkSecurityError
        If network access is disabled, the URL is rejected, or the body
        exceeds ``options.max_content_size``
    httpx.HTTPError
        On transport failures and timeouts

    """
    options = options or FetchOptions()

    if is_network_disabled():
        raise NetworkSecurityError(
            f"Network access is globally disabled via {ENV_DISABLE_NETWORK} environment variable"
        )

    validate_fetch_url(url)

    owns_client = client is None
    if owns_client:
        client = create_http_client(options)

    try:
        async with client.stream("GET", url, headers={"User-Agent": options.user_agent}) as response:
            content_length = response.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > options.max_content_size:
                raise NetworkSecurityError(
                    f"Content size {content_length} exceeds maximum {options.max_content_size} for {url}"
                )

            chunks = []
            total_size = 0
            async for chunk in response.aiter_bytes(chunk_size=_CHUNK_SIZE):
                total_size += len(chunk)
                if total_size > options.max_content_size:
                    raise NetworkSecurityError(
                        f"Response too large: exceeded {options.max_content_size} bytes while streaming {url}"
                    )
                chunks.append(chunk)

            content = b"".join(chunks)
            try:
                text = content.decode(response.charset_encoding or "utf-8", errors="replace")
            except LookupError:
                logger.debug(f"Unknown charset '{response.charset_encoding}' for {url}, decoding as UTF-8")
                text = content.decode("utf-8", errors="replace")

            logger.debug(f"Fetched {total_size} bytes from {url} (status {response.status_code})")
            return FetchResult(
                url=str(response.url),
                status_code=response.status_code,
                content=content,
                content_type=parse_content_type(response.headers.get("content-type", "")),
                text=text,
            )
    finally:
        if owns_client:
            await client.aclose()
