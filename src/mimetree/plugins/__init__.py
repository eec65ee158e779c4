#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/plugins/__init__.py
"""Built-in plugins.

Format plugins (``markdown_plugin``, ``html_plugin``, ``json_plugin``,
``xml_plugin``) are plugin factories and are passed to the engine as they
are. Configurable plugins are functions returning a factory or a definition:

    >>> from mimetree import Engine
    >>> from mimetree.plugins import identity_plugin, markdown_plugin, xml_tree_serializer_plugin
    >>> engine = Engine([identity_plugin(), markdown_plugin, xml_tree_serializer_plugin()])

"""

from mimetree.plugins.blob_image import FileSystemStore, blob_image_plugin
from mimetree.plugins.html import html_plugin
from mimetree.plugins.identity import has_id, identity_plugin
from mimetree.plugins.json import json_plugin
from mimetree.plugins.link_crawl import CrawlContext, link_crawl_plugin
from mimetree.plugins.markdown import markdown_plugin
from mimetree.plugins.text import text_plugin
from mimetree.plugins.xml import xml_plugin, xml_tree_serializer_plugin

__all__ = [
    "CrawlContext",
    "FileSystemStore",
    "blob_image_plugin",
    "has_id",
    "html_plugin",
    "identity_plugin",
    "json_plugin",
    "link_crawl_plugin",
    "markdown_plugin",
    "text_plugin",
    "xml_plugin",
    "xml_tree_serializer_plugin",
]
