#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for the tree walker functions."""

import asyncio

import pytest

from mimetree.ast.nodes import Node, make_node
from mimetree.ast.transforms import (
    add_children,
    filter_tree,
    find_nodes,
    is_parent_node,
    map_tree,
    purify,
    strip_ancillary,
    walk,
)
from mimetree.ast.utils import extract_text


def assert_consistent(node: Node) -> None:
    """Assert parent/index bookkeeping at every level of a tree."""
    for index, child in enumerate(node.children or []):
        assert child.parent is node
        assert child.index == index
        assert_consistent(child)


def sample_tree() -> Node:
    return make_node(
        "root",
        tag="text/markdown",
        children=[
            make_node("heading", tag="text/markdown", children=[make_node("text", tag="text/markdown", raw="Title")]),
            make_node(
                "paragraph",
                tag="text/markdown",
                children=[
                    make_node("text", tag="text/markdown", raw="Body"),
                    make_node("blob", tag="image/png", filename="a.png"),
                ],
            ),
            make_node("blob", tag="image/png", children=[make_node("text", tag="image/png", value="nested")]),
        ],
    )


@pytest.mark.unit
class TestMapTree:
    """Tests for map_tree."""

    @pytest.mark.asyncio
    async def test_sync_transform(self):
        """Test a synchronous transform applied to every node."""
        result = await map_tree(sample_tree(), lambda n: n.copy(data={**n.data, "seen": True}))
        assert all(n.get("seen") for n in walk(result))
        assert_consistent(result)

    @pytest.mark.asyncio
    async def test_async_transform(self):
        """Test an awaitable transform."""

        async def mark(node):
            await asyncio.sleep(0)
            return node.copy(data={**node.data, "seen": True})

        result = await map_tree(sample_tree(), mark)
        assert all(n.get("seen") for n in walk(result))

    @pytest.mark.asyncio
    async def test_input_not_mutated(self):
        """Test that the input tree is left untouched."""
        tree = sample_tree()
        await map_tree(tree, lambda n: n.copy(data={**n.data, "seen": True}))
        assert not any(n.get("seen") for n in walk(tree))

    @pytest.mark.asyncio
    async def test_parent_transformed_before_children(self):
        """Test pre-order visiting in sequential mode."""
        order = []

        def record(node):
            order.append(node.kind)
            return node

        await map_tree(sample_tree(), record)
        assert order == ["root", "heading", "text", "paragraph", "text", "blob", "blob", "text"]

    @pytest.mark.asyncio
    async def test_children_of_replacement_are_mapped(self):
        """Test that children added by the transform are visited too."""

        def expand(node):
            if node.kind == "leaf":
                return add_children(node, [make_node("added")])
            return node.copy(data={**node.data, "seen": True})

        result = await map_tree(make_node("root", children=[make_node("leaf")]), expand)
        assert result.children[0].children[0].get("seen")
        assert_consistent(result)

    @pytest.mark.asyncio
    async def test_parallel_matches_sequential(self):
        """Test that parallel mapping builds the same tree."""

        async def mark(node):
            await asyncio.sleep(0)
            return node.copy(data={**node.data, "seen": True})

        sequential = await map_tree(sample_tree(), mark)
        parallel = await map_tree(sample_tree(), mark, parallel=True)
        assert parallel == sequential
        assert_consistent(parallel)

    @pytest.mark.asyncio
    async def test_non_node_result_rejected(self):
        """Test that a transform returning something else raises TypeError."""
        with pytest.raises(TypeError):
            await map_tree(sample_tree(), lambda n: None)


@pytest.mark.unit
class TestAddChildren:
    """Tests for add_children."""

    def test_appends_after_existing(self):
        """Test that new children follow the existing ones."""
        node = make_node("root", children=[make_node("a")])
        result = add_children(node, [make_node("b"), make_node("c")])
        assert [child.kind for child in result.children] == ["a", "b", "c"]
        assert len(node.children) == 1

    def test_leaf_becomes_parent(self):
        """Test adding children to a leaf."""
        result = add_children(make_node("text", raw="x"), [make_node("root")])
        assert is_parent_node(result)
        assert result.get("raw") == "x"

    def test_consistent_at_every_level(self):
        """Test parent/index repair for nested new children."""
        nested = make_node("root", children=[make_node("p", children=[make_node("w"), make_node("w")])])
        result = add_children(make_node("link"), [nested])
        assert_consistent(result)


@pytest.mark.unit
class TestFilterTree:
    """Tests for filter_tree, purify and strip_ancillary."""

    def test_always_true_keeps_structure(self):
        """Test that an always-true predicate yields an equal tree."""
        tree = sample_tree()
        result = filter_tree(tree, lambda n: True)
        assert result == tree
        assert result is not tree
        assert_consistent(result)

    def test_root_always_kept(self):
        """Test that the root survives a predicate rejecting everything."""
        result = filter_tree(sample_tree(), lambda n: False)
        assert result.kind == "root"
        assert result.children == []

    def test_rejected_subtree_removed(self):
        """Test that a rejected node takes its descendants with it."""
        result = filter_tree(sample_tree(), lambda n: n.kind != "paragraph")
        assert [child.kind for child in result.children] == ["heading", "blob"]

    def test_purify_removes_foreign_tags_at_every_depth(self):
        """Test that purify keeps only the root's tag."""
        result = purify(sample_tree())
        assert {n.tag for n in walk(result)} == {"text/markdown"}
        assert [child.kind for child in result.children] == ["heading", "paragraph"]
        assert [child.kind for child in result.children[1].children] == ["text"]
        assert_consistent(result)

    def test_strip_ancillary(self):
        """Test that stripped copies are detached at every level."""
        tree = add_children(make_node("root"), [make_node("p", children=[make_node("w")])])
        stripped = strip_ancillary(tree)
        assert stripped == tree
        assert all(n.parent is None and n.index is None for n in walk(stripped))


@pytest.mark.unit
class TestReadHelpers:
    """Tests for walk, find_nodes and extract_text."""

    def test_walk_pre_order(self):
        """Test pre-order traversal."""
        assert [n.kind for n in walk(sample_tree())] == [
            "root",
            "heading",
            "text",
            "paragraph",
            "text",
            "blob",
            "blob",
            "text",
        ]

    def test_find_nodes(self):
        """Test predicate search."""
        blobs = find_nodes(sample_tree(), lambda n: n.kind == "blob")
        assert len(blobs) == 2

    def test_extract_text(self):
        """Test text extraction from leaves."""
        tree = sample_tree()
        assert extract_text(tree.children[0]) == "Title"
        assert extract_text(tree.children[:2], joiner="|") == "Title|Body"
