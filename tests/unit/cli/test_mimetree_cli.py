#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for the command-line interface."""

import io
import logging

import pytest

from mimetree import Engine
from mimetree.cli import build_plugins, create_parser, main

OFFLINE = ["--no-crawl", "--no-images"]


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def stdin(monkeypatch):
    def feed(text):
        monkeypatch.setattr("sys.stdin", io.StringIO(text))

    return feed


@pytest.mark.unit
class TestArguments:
    """Tests for argument parsing and plugin selection."""

    def test_defaults(self):
        """Test default argument values."""
        args = create_parser().parse_args(["text/markdown"])
        assert args.from_tag == "text/markdown"
        assert args.to_tag is None
        assert not args.no_crawl
        assert args.allowed_domains == []

    def test_log_level_case_insensitive(self):
        """Test that log levels are upper-cased."""
        args = create_parser().parse_args(["text/html", "--log-level", "debug"])
        assert args.log_level == "DEBUG"

    def test_missing_from_tag(self, capsys):
        """Test the usage error exit code."""
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_version(self, capsys):
        """Test --version."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "mimetree" in capsys.readouterr().out

    def test_all_plugins(self):
        """Test the default plugin set and its order."""
        args = create_parser().parse_args(["text/markdown", "--text"])
        engine = Engine(build_plugins(args))
        assert engine.plugin_names == [
            "identity",
            "text",
            "markdown",
            "html",
            "json",
            "xml",
            "xml-tree-serializer",
            "link-crawl",
            "blob-image",
        ]

    def test_offline_plugins(self):
        """Test that network plugins can be disabled."""
        args = create_parser().parse_args(["text/markdown", *OFFLINE])
        names = Engine(build_plugins(args)).plugin_names
        assert "link-crawl" not in names
        assert "blob-image" not in names
        assert "text" not in names


@pytest.mark.unit
class TestMain:
    """Tests for running the CLI end to end on stdin."""

    def test_markdown_round_trip(self, stdin, capsys):
        """Test serializing back to the input type."""
        stdin("# Title\n\nBody text.\n")
        assert main(["text/markdown", *OFFLINE, "--no-tree"]) == 0
        assert capsys.readouterr().out.strip() == "# Title\n\nBody text."

    def test_tree_printed(self, stdin, capsys):
        """Test that the parsed tree is printed before the output."""
        stdin("# Title\n")
        assert main(["text/markdown", *OFFLINE]) == 0
        out = capsys.readouterr().out
        assert "heading" in out
        assert "text/markdown" in out
        assert "Back to string:" in out
        assert out.rstrip().endswith("# Title")

    def test_xml_dump(self, stdin, capsys):
        """Test converting HTML to the XML tree dump."""
        stdin("<p>Hello</p>")
        assert main(["text/html", "application/xml", *OFFLINE, "--no-tree"]) == 0
        out = capsys.readouterr().out
        assert out.startswith('<root mimeType="text/html">')
        assert "<![CDATA[<p>Hello</p>]]>" in out

    def test_json(self, stdin, capsys):
        """Test JSON input."""
        stdin('{"a": [1, 2]}')
        assert main(["application/json", *OFFLINE, "--no-tree"]) == 0
        assert capsys.readouterr().out.strip() == '{"a": [1, 2]}'

    def test_unknown_tag(self, stdin, capsys):
        """Test that unregistered input types fail with exit code 1."""
        stdin("data")
        assert main(["text/unknown", *OFFLINE, "--no-tree"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_parse_error(self, stdin, capsys):
        """Test that parse failures fail with exit code 1."""
        stdin("{broken")
        assert main(["application/json", *OFFLINE, "--no-tree"]) == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_no_serializer(self, stdin, capsys):
        """Test that an unreachable output type fails with exit code 1."""
        stdin("# Title\n")
        assert main(["text/markdown", "application/pdf", *OFFLINE, "--no-tree"]) == 1
        assert "No serializer from text/markdown to application/pdf" in capsys.readouterr().err
