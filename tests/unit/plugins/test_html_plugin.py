#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for HTML parsing and serialization."""

import pytest

from mimetree.ast.nodes import make_node
from mimetree.ast.transforms import find_nodes
from mimetree.constants import HTML_TAG
from mimetree.exceptions import SerializationError
from mimetree.plugins.html import HtmlParser, HtmlSerializer, is_html_element

DOCUMENT = (
    "<!DOCTYPE html><html><head><title>T</title></head>"
    '<body><p class="lead intro">x &amp; y<br></p><!-- note -->'
    "<script>if (a < b) { go(); }</script></body></html>"
)


@pytest.mark.unit
class TestHtmlParsing:
    """Tests for HtmlParser."""

    @pytest.mark.asyncio
    async def test_node_kinds(self, engine):
        """Test doctype, element, text and comment nodes."""
        tree = await engine.parse(DOCUMENT, HTML_TAG)
        assert tree.kind == "root"
        assert [child.kind for child in tree.children] == ["doctype", "element"]
        assert tree.children[0].get("value") == "html"

        comments = find_nodes(tree, lambda n: n.kind == "comment")
        assert [c.get("value") for c in comments] == [" note "]

    @pytest.mark.asyncio
    async def test_multi_valued_attributes_joined(self, engine):
        """Test that class lists become a single string."""
        tree = await engine.parse(DOCUMENT, HTML_TAG)
        paragraph = find_nodes(tree, lambda n: is_html_element(n, "p"))[0]
        assert paragraph.get("properties") == {"class": "lead intro"}
        assert paragraph.children[0].get("value") == "x & y"

    @pytest.mark.asyncio
    async def test_void_elements_have_no_content(self, engine):
        """Test that <br> is parsed without children."""
        tree = await engine.parse(DOCUMENT, HTML_TAG)
        br = find_nodes(tree, lambda n: is_html_element(n, "br"))[0]
        assert br.children == []

    def test_is_html_element(self):
        """Test the element predicate."""
        img = make_node("element", tag=HTML_TAG, tag_name="img", properties={})
        assert is_html_element(img)
        assert is_html_element(img, "img")
        assert not is_html_element(img, "a")
        assert not is_html_element(make_node("element", tag="application/xml", tag_name="img"))

    @pytest.mark.asyncio
    async def test_nested_inline_elements(self, engine):
        """Test a fragment with an element nested inside text."""
        tree = await engine.parse('<p>hi <a href="x">y</a></p>', HTML_TAG)
        paragraph = tree.children[0]
        assert [child.kind for child in paragraph.children] == ["text", "element"]
        anchor = paragraph.children[1]
        assert anchor.get("tag_name") == "a"
        assert anchor.get("properties") == {"href": "x"}
        assert anchor.children[0].get("value") == "y"
        assert engine.serialize(tree) == '<p>hi <a href="x">y</a></p>'

    def test_preformatted_strings_become_directives(self, engine):
        """Test that CDATA sections keep their verbatim markup."""
        from bs4.element import CData

        node = HtmlParser(engine)._convert(CData("x < y"))
        assert node.kind == "directive"
        assert node.get("value") == "<![CDATA[x < y]]>"


@pytest.mark.unit
class TestHtmlSerialization:
    """Tests for HtmlSerializer."""

    @pytest.mark.asyncio
    async def test_round_trip(self, engine):
        """Test that the document is emitted back unchanged."""
        tree = await engine.parse(DOCUMENT, HTML_TAG)
        assert engine.serialize(tree) == DOCUMENT

    @pytest.mark.asyncio
    async def test_attribute_escaping(self, engine):
        """Test that attribute values are quoted safely."""
        tree = await engine.parse("<a title='say \"hi\"' href=\"/x?a=1&amp;b=2\">go</a>", HTML_TAG)
        assert engine.serialize(tree) == '<a title="say &quot;hi&quot;" href="/x?a=1&amp;b=2">go</a>'

    def test_text_escaping(self):
        """Test that text outside raw-text elements is escaped."""
        node = make_node(
            "element", tag_name="p", properties={}, children=[make_node("text", value="<b> & </b>")]
        )
        assert HtmlSerializer()(node) == "<p>&lt;b&gt; &amp; &lt;/b&gt;</p>"

    def test_raw_text_elements(self):
        """Test that style content is not escaped."""
        node = make_node("element", tag_name="style", properties={}, children=[make_node("text", value="a > b {}")])
        assert HtmlSerializer()(node) == "<style>a > b {}</style>"

    def test_none_properties_skipped(self):
        """Test that attributes set to None are omitted."""
        node = make_node("element", tag_name="input", properties={"disabled": None, "type": "text"})
        assert HtmlSerializer()(node) == '<input type="text">'

    def test_unknown_kind(self):
        """Test that unknown kinds raise SerializationError."""
        with pytest.raises(SerializationError):
            HtmlSerializer()(make_node("mystery"))

    def test_missing_tag_name(self):
        """Test that elements need a tag_name."""
        with pytest.raises(SerializationError, match="tag_name"):
            HtmlSerializer()(make_node("element", properties={}))
