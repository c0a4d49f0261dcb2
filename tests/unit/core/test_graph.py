"""Tests for the BranchGraph model."""

from branchtree.core.graph import (
    ORPHAN_BRANCH_ANNOTATION_KEY,
    BranchEdge,
    BranchGraph,
    BranchHead,
    BranchKind,
    BranchNode,
    BranchNodeMetadata,
    FlagAnnotation,
    TextAnnotation,
)
from tests.test_utils.graph_builders import canonical_diamond, make_graph


def _node(name: str) -> BranchNode:
    return BranchNode(name=name, kind=BranchKind.LOCAL, head=BranchHead(oid="abc"))


def test_from_parts_orders_nodes_by_name() -> None:
    """Test that nodes are keyed and ordered by name regardless of input order."""
    graph = BranchGraph.from_parts(
        nodes=[_node("zeta"), _node("alpha"), _node("mid")],
        edges=[],
        root_candidates=["alpha"],
        current_branch=None,
    )

    assert graph.names() == ["alpha", "mid", "zeta"]
    assert len(graph) == 3
    assert "mid" in graph
    assert "missing" not in graph


def test_from_parts_accepts_dangling_edges() -> None:
    """Test that construction performs no validation of edge endpoints."""
    graph = BranchGraph.from_parts(
        nodes=[_node("main")],
        edges=[BranchEdge(parent="main", child="deleted")],
        root_candidates=[],
        current_branch="gone",
    )

    assert graph.children_of("main") == ["deleted"]
    assert graph.get("deleted") is None
    assert graph.current_branch == "gone"


def test_empty_graph() -> None:
    """Test the empty graph helper."""
    graph = BranchGraph.empty()

    assert graph.is_empty()
    assert list(graph) == []


def test_parents_of_returns_full_parent_set_in_edge_order() -> None:
    """Test that parents_of reports every declared parent, not just the primary one."""
    graph = canonical_diamond()

    assert graph.parents_of("merge") == ["left", "right"]
    assert graph.nodes["merge"].topology.primary_parent == "left"
    assert graph.nodes["merge"].topology.secondary_parents == ["right"]
    assert graph.parents_of("main") == []


def test_parents_of_deduplicates_repeated_edges() -> None:
    """Test that duplicate edges do not produce duplicate parents or children."""
    graph = make_graph([("main", "a"), ("main", "a")])

    assert graph.parents_of("a") == ["main"]
    assert graph.children_of("main") == ["a"]


def test_orphan_flag_annotation() -> None:
    """Test that is_orphan reads the orphan flag annotation."""
    flagged = BranchNode(
        name="stray",
        kind=BranchKind.LOCAL,
        head=BranchHead(oid="abc"),
        metadata=BranchNodeMetadata(
            annotations={ORPHAN_BRANCH_ANNOTATION_KEY: FlagAnnotation(True)}
        ),
    )
    text_valued = BranchNode(
        name="other",
        kind=BranchKind.LOCAL,
        head=BranchHead(oid="abc"),
        metadata=BranchNodeMetadata(
            annotations={ORPHAN_BRANCH_ANNOTATION_KEY: TextAnnotation("yes")}
        ),
    )

    assert flagged.is_orphan
    assert not text_valued.is_orphan
    assert not _node("plain").is_orphan
