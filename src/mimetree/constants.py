#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/constants.py
"""Constants and default values for the mimetree engine.

This module centralizes tag names, wildcard forms, dependency declarations
and the default values used by the built-in plugin options.

"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Tags
# =============================================================================

TAG_SEPARATOR: Final = "/"
SUBTYPE_SEPARATOR: Final = ":"
WILDCARD: Final = "*"
GLOBAL_WILDCARD_TAG: Final = "*/*"

MARKDOWN_TAG: Final = "text/markdown"
HTML_TAG: Final = "text/html"
PLAIN_TEXT_TAG: Final = "text/plain"
JSON_TAG: Final = "application/json"
XML_TAG: Final = "application/xml"
TEXT_WILDCARD_TAG: Final = "text/*"
IMAGE_WILDCARD_TAG: Final = "image/*"

# Extensions the standard library ``mimetypes`` table may not know about
EXTRA_MIME_TYPES: Final[dict[str, str]] = {
    ".md": MARKDOWN_TAG,
    ".markdown": MARKDOWN_TAG,
    ".mdown": MARKDOWN_TAG,
    ".json": JSON_TAG,
    ".xml": XML_TAG,
}

# =============================================================================
# Network defaults
# =============================================================================

DEFAULT_USER_AGENT: Final = "mimetree-fetcher/1.0"
DEFAULT_FETCH_TIMEOUT: Final = 5.0
DEFAULT_MAX_CONTENT_SIZE: Final = 5 * 1024 * 1024  # 5MB
DEFAULT_MAX_IMAGE_SIZE: Final = 20 * 1024 * 1024  # 20MB
DEFAULT_MAX_REDIRECTS: Final = 3
DEFAULT_MAX_CRAWL_DEPTH: Final = 1
DEFAULT_BLOCKED_DOMAINS: Final[tuple[str, ...]] = ("localhost", "127.0.0.1", "0.0.0.0")

ENV_USER_AGENT: Final = "MIMETREE_USER_AGENT"
ENV_DISABLE_NETWORK: Final = "MIMETREE_DISABLE_NETWORK"
ENV_LOG_LEVEL: Final = "MIMETREE_LOG_LEVEL"

# =============================================================================
# Serialization defaults
# =============================================================================

DEFAULT_XML_INDENT: Final = "\t"
DEFAULT_STORAGE_DIR: Final = ".storage"

# Entry point group scanned by Engine(discover=True)
PLUGIN_ENTRY_POINT_GROUP: Final = "mimetree.plugins"

# =============================================================================
# Optional dependencies as (install_name, import_name, version_spec)
# =============================================================================

DEPS_MARKDOWN = [("mistune", "mistune", ">=3.0.0")]
DEPS_HTML = [("beautifulsoup4", "bs4", ">=4.12.0")]
DEPS_XML = [("lxml", "lxml", ">=4.9.0")]
DEPS_NETWORK = [("httpx", "httpx", ">=0.27.0")]
DEPS_IMAGE = [("Pillow", "PIL", ">=9.0.0")]
