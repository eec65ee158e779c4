#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugins/blob_image.py
"""Download images referenced by markdown and HTML and attach them as blobs.

For every markdown ``image`` node and HTML ``<img>`` element the plugin
fetches the source, sniffs the payload's type from its magic bytes, stores it
through a blob store and attaches a synthesized ``blob`` node tagged
``image/<subtype>`` as a child. The blob node is created through the engine,
so hooks registered for ``image/*`` fire on it.

Payloads that are not images are skipped. HTTP error statuses raise.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union
from urllib.parse import urlsplit

from mimetree.ast.nodes import Node
from mimetree.ast.transforms import add_children
from mimetree.ast.utils import extract_text
from mimetree.constants import DEFAULT_STORAGE_DIR, HTML_TAG, MARKDOWN_TAG
from mimetree.exceptions import MimeTreeError
from mimetree.options import BlobImageOptions
from mimetree.plugin import PluginDefinition, PluginFactory, create_plugin, create_typed_hook
from mimetree.plugins.html import is_html_element
from mimetree.plugins.identity import has_id
from mimetree.utils.images import detect_image_type, filename_from_url, read_image_size
from mimetree.utils.network import fetch_resource

if TYPE_CHECKING:
    from mimetree.engine import Engine

logger = logging.getLogger(__name__)

BlobStore = Callable[[str, bytes], Awaitable[str]]


class FileSystemStore:
    """Blob store writing files into a directory.

    Parameters
    ----------
    directory : str or Path, default ".storage"
        Target directory, created on first write

    """

    def __init__(self, directory: Union[str, Path] = DEFAULT_STORAGE_DIR) -> None:
        """Initialize the store."""
        self.directory = Path(directory)

    async def __call__(self, filename: str, content: bytes) -> str:
        """Write ``content`` and return the file path."""
        # Never let a remote name escape the storage directory
        path = self.directory / Path(filename).name
        await asyncio.to_thread(self._write, path, content)
        logger.debug(f"Stored {len(content)} bytes at {path}")
        return str(path)

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)


def _markdown_image_data(node: Node) -> dict[str, Optional[str]]:
    attrs = node.get("attrs") or {}
    return {
        "src": attrs.get("url"),
        "alt": extract_text(node.children or [], joiner="") or None,
        "title": attrs.get("title"),
    }


def _html_image_data(node: Node) -> dict[str, Optional[str]]:
    properties = node.get("properties") or {}
    return {name: properties.get(name) for name in ("src", "alt", "title")}


def _is_remote(src: str) -> bool:
    parts = urlsplit(src)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def blob_image_plugin(
    store: Optional[BlobStore] = None,
    options: Optional[BlobImageOptions] = None,
    client: Any = None,
) -> PluginFactory:
    """Return a plugin factory that downloads and stores referenced images.

    Parameters
    ----------
    store : callable, optional
        ``async (filename, content) -> location``; defaults to a
        :class:`FileSystemStore` in ``.storage``
    options : BlobImageOptions, optional
        Fetch limits
    client : httpx.AsyncClient, optional
        Client used for every fetch; when omitted each fetch opens its own

    Returns
    -------
    PluginFactory
        Factory to pass to :class:`~mimetree.engine.Engine`

    """
    store = store or FileSystemStore()
    options = options or BlobImageOptions()

    def factory(engine: Engine) -> PluginDefinition:
        async def attach_image(node: Node, image: dict[str, Optional[str]]) -> Node:
            src = image.get("src")
            if not src:
                return node
            if not _is_remote(src):
                logger.debug(f"Skipping image with non-remote source: {src}")
                return node

            result = await fetch_resource(src, options, client=client)
            if not result.is_success:
                raise MimeTreeError(f"Unable to get image from {src}: status {result.status_code}")

            image_type = detect_image_type(result.content)
            if image_type is None:
                logger.debug(f"Content at {src} is not an image, skipping")
                return node

            filename = f"{node.get('id')}.{image_type.ext}" if has_id(node) else filename_from_url(src, image_type.ext)
            path = await store(filename, result.content)
            size = read_image_size(result.content)

            blob = await engine.create(
                Node(
                    kind="blob",
                    data={
                        "filename": filename,
                        "path": path,
                        "src": src,
                        "alt": image.get("alt"),
                        "title": image.get("title"),
                        "width": size.width,
                        "height": size.height,
                        "orientation": size.orientation,
                    },
                ),
                image_type.mime,
            )
            return add_children(node, [blob])

        async def markdown_image(node: Node, context: Any) -> Node:
            return await attach_image(node, _markdown_image_data(node))

        async def html_image(node: Node, context: Any) -> Node:
            return await attach_image(node, _html_image_data(node))

        return create_plugin(
            "blob-image",
            hooks=[
                create_typed_hook(MARKDOWN_TAG, markdown_image, kind="image"),
                create_typed_hook(HTML_TAG, html_image, kind="element", match=lambda n: is_html_element(n, "img")),
            ],
        )

    return factory
