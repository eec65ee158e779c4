#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for markdown parsing and serialization."""

import pytest

from mimetree import Engine
from mimetree.ast.nodes import make_node
from mimetree.ast.transforms import walk
from mimetree.constants import MARKDOWN_TAG
from mimetree.exceptions import SerializationError
from mimetree.plugins import markdown_plugin
from mimetree.plugins.markdown import MarkdownParser, heading_level, is_markdown_node


def headings(tree):
    return [node for node in tree.children if node.kind == "heading"]


@pytest.mark.unit
class TestMarkdownParsing:
    """Tests for MarkdownParser."""

    @pytest.mark.asyncio
    async def test_token_kinds(self, engine):
        """Test that token types become node kinds."""
        tree = await engine.parse("# Title\n\nBody *text*.\n", MARKDOWN_TAG)
        assert tree.kind == "root"
        assert [child.kind for child in tree.children] == ["heading", "paragraph"]
        heading = tree.children[0]
        assert heading_level(heading) == 1
        assert heading.children[0].kind == "text"
        assert heading.children[0].get("raw") == "Title"

    @pytest.mark.asyncio
    async def test_every_node_tagged(self, engine, sample_markdown):
        """Test that parsing tags the whole tree."""
        tree = await engine.parse(sample_markdown, MARKDOWN_TAG)
        assert {node.tag for node in walk(tree)} == {MARKDOWN_TAG}

    @pytest.mark.asyncio
    async def test_ref_links_kept_on_root(self, engine):
        """Test that reference definitions are stored on the root."""
        tree = await engine.parse("See [the docs][ref].\n\n[ref]: https://example.com/docs\n", MARKDOWN_TAG)
        ref_links = tree.get("ref_links")
        assert ref_links["REF"]["url"] == "https://example.com/docs"

    def test_raw_tree_untagged(self):
        """Test that the raw tree has no tags."""
        raw = MarkdownParser(Engine()).build_raw_tree("Hello\n")
        assert all(node.tag is None for node in walk(raw))

    @pytest.mark.asyncio
    async def test_blank_lines_not_nodes(self, engine):
        """Test that blank lines between blocks and list items leave no nodes."""
        source = "# Title\n\n\n- one\n\n- two\n\nEnd.\n"
        tree = await engine.parse(source, MARKDOWN_TAG)
        assert [child.kind for child in tree.children] == ["heading", "list", "paragraph"]
        assert "blank_line" not in {node.kind for node in walk(tree)}
        output = engine.serialize(tree)
        assert output.startswith("# Title\n\n- one\n")
        assert "- two" in output
        assert output.rstrip().endswith("End.")

    def test_is_markdown_node(self):
        """Test the tag check."""
        assert is_markdown_node(make_node("paragraph", tag=MARKDOWN_TAG))
        assert not is_markdown_node(make_node("paragraph", tag="text/html"))
        assert not is_markdown_node(make_node("paragraph"))

    def test_heading_level_other_kinds(self):
        """Test heading_level on non-heading nodes."""
        assert heading_level(make_node("paragraph")) is None


@pytest.mark.unit
class TestMarkdownSerialization:
    """Tests for MarkdownSerializer."""

    @pytest.mark.asyncio
    async def test_round_trip(self, engine):
        """Test that simple markdown renders back unchanged."""
        source = "# Title\n\nSome **bold** text and a [link](https://example.com).\n"
        tree = await engine.parse(source, MARKDOWN_TAG)
        assert engine.serialize(tree).strip() == source.strip()

    @pytest.mark.asyncio
    async def test_reference_links_rendered(self, engine):
        """Test that reference links survive serialization."""
        tree = await engine.parse("See [the docs][ref].\n\n[ref]: https://example.com/docs\n", MARKDOWN_TAG)
        output = engine.serialize(tree)
        assert "[the docs][ref]" in output
        assert "[ref]: https://example.com/docs" in output

    @pytest.mark.asyncio
    async def test_heading_section(self, engine, sample_markdown):
        """Test that a heading serializes up to the next same-or-higher heading."""
        tree = await engine.parse(sample_markdown, MARKDOWN_TAG)
        section = engine.serialize(headings(tree)[1])
        assert section.startswith("## Section 2")
        assert "- Item 1" in section
        assert "### Code Block" in section
        assert 'print("Hello, World!")' in section
        assert "Appendix" not in section
        assert "Sample Document" not in section

    @pytest.mark.asyncio
    async def test_nested_heading_section(self, engine, sample_markdown):
        """Test that a lower-level heading stops at a higher one."""
        tree = await engine.parse(sample_markdown, MARKDOWN_TAG)
        section = engine.serialize(headings(tree)[2])
        assert section.startswith("### Code Block")
        assert "hello_world" in section
        assert "Appendix" not in section

    @pytest.mark.asyncio
    async def test_last_heading_section(self, engine, sample_markdown):
        """Test that the last section runs to the end of the document."""
        tree = await engine.parse(sample_markdown, MARKDOWN_TAG)
        section = engine.serialize(headings(tree)[-1])
        assert section.strip() == "# Appendix\n\nThe end."

    @pytest.mark.asyncio
    async def test_single_node(self, engine):
        """Test serializing a paragraph on its own."""
        tree = await engine.parse("# Title\n\nJust this.\n", MARKDOWN_TAG)
        paragraph = next(node for node in tree.children if node.kind == "paragraph")
        assert engine.serialize(paragraph).strip() == "Just this."

    @pytest.mark.asyncio
    async def test_foreign_children_skipped(self, engine):
        """Test that attached subtrees of other tags are not rendered."""
        tree = await engine.parse("Hello\n", MARKDOWN_TAG)
        paragraph = tree.children[0]
        paragraph.children.append(make_node("blob", tag="image/png", filename="x.png"))
        assert engine.serialize(tree).strip() == "Hello"

    def test_unknown_kind_raises(self):
        """Test that a kind mistune cannot render is a SerializationError."""
        engine = Engine([markdown_plugin])
        node = make_node("root", tag=MARKDOWN_TAG, children=[make_node("not_a_token", tag=MARKDOWN_TAG)])
        with pytest.raises(SerializationError):
            engine.serialize(node)
