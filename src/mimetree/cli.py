"""Command-line interface for mimetree.

Reads a document from stdin, parses it as FROM_TAG with the built-in plugins,
prints the resulting tree and the document serialized to TO_TAG (FROM_TAG when
omitted).

Examples
--------
Parse markdown and render it back:
    $ mimetree text/markdown < README.md

Dump an HTML page as an XML tree, without crawling or image downloads:
    $ mimetree text/html application/xml --no-crawl --no-images < page.html

Only follow links to one domain, with debug logging:
    $ mimetree text/markdown --allowed-domain example.com --log-level DEBUG < notes.md

Split markdown text into sentences and words:
    $ mimetree text/markdown --text --no-crawl --no-images < notes.md
"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from mimetree import __version__
from mimetree.ast.nodes import Node
from mimetree.constants import DEFAULT_STORAGE_DIR
from mimetree.engine import Engine
from mimetree.exceptions import MimeTreeError
from mimetree.logging_utils import configure_logging, default_log_level
from mimetree.options import CrawlOptions
from mimetree.plugin import PluginLike
from mimetree.plugins import (
    FileSystemStore,
    blob_image_plugin,
    html_plugin,
    identity_plugin,
    json_plugin,
    link_crawl_plugin,
    markdown_plugin,
    text_plugin,
    xml_plugin,
    xml_tree_serializer_plugin,
)

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mimetree",
        description="Parse stdin into a unified content tree and serialize it to another type.",
    )
    parser.add_argument("from_tag", metavar="FROM_TAG", help="Content type of the input, e.g. text/markdown")
    parser.add_argument(
        "to_tag", metavar="TO_TAG", nargs="?", default=None, help="Content type to serialize to (default: FROM_TAG)"
    )
    parser.add_argument("--version", action="version", version=f"mimetree {__version__}")

    plugins = parser.add_argument_group("plugins")
    plugins.add_argument("--text", action="store_true", help="Split text into paragraphs, sentences and words")
    plugins.add_argument("--no-crawl", action="store_true", help="Do not follow links")
    plugins.add_argument(
        "--allowed-domain",
        action="append",
        default=[],
        dest="allowed_domains",
        metavar="DOMAIN",
        help="Only follow links to this domain (repeatable)",
    )
    plugins.add_argument("--no-images", action="store_true", help="Do not download images")
    plugins.add_argument(
        "--storage-dir",
        default=DEFAULT_STORAGE_DIR,
        help=f"Directory downloaded images are stored in (default: {DEFAULT_STORAGE_DIR})",
    )

    output = parser.add_argument_group("output")
    output.add_argument("--no-tree", action="store_true", help="Do not print the parsed tree")
    output.add_argument(
        "--log-level",
        default=default_log_level(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (default: MIMETREE_LOG_LEVEL or WARNING)",
    )
    output.add_argument("--log-file", help="Also write log output to this file")
    output.add_argument("--trace", action="store_true", help="Include timestamps and logger names in log output")
    return parser


def build_plugins(args: argparse.Namespace) -> list[PluginLike]:
    """Select the plugins enabled by the command-line flags, in registration order."""
    plugins: list[PluginLike] = [identity_plugin()]
    if args.text:
        plugins.append(text_plugin())
    plugins.extend([markdown_plugin, html_plugin, json_plugin, xml_plugin, xml_tree_serializer_plugin()])
    if not args.no_crawl:
        plugins.append(link_crawl_plugin(CrawlOptions(allowed_domains=tuple(args.allowed_domains))))
    if not args.no_images:
        plugins.append(blob_image_plugin(FileSystemStore(args.storage_dir)))
    return plugins


def print_tree(node: Node) -> None:
    """Print a tree to stdout with rich."""
    from rich.console import Console

    from mimetree.ast.utils import build_rich_tree

    Console().print(build_rich_tree(node))


async def run(
    source: str, from_tag: str, to_tag: str, plugins: list[PluginLike], show_tree: bool = True
) -> Optional[str]:
    """Parse ``source`` and return it serialized to ``to_tag``."""
    engine = Engine(plugins)
    tree = await engine.parse(source, from_tag)
    if show_tree:
        print_tree(tree)
    return engine.serialize(tree, to_tag)


def main(args: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    configure_logging(parsed_args.log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)

    to_tag = parsed_args.to_tag or parsed_args.from_tag
    source = sys.stdin.read()

    try:
        output = asyncio.run(
            run(source, parsed_args.from_tag, to_tag, build_plugins(parsed_args), show_tree=not parsed_args.no_tree)
        )
    except MimeTreeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if output is None:
        print(f"Error: No serializer from {parsed_args.from_tag} to {to_tag}", file=sys.stderr)
        return 1

    if not parsed_args.no_tree:
        print("\nBack to string:\n")
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
