"""Tests for cycle detection and cross-reference tracking."""

from branchtree.core.cycles import (
    branches_in_cycles,
    build_cross_references,
    detect_circular_dependencies,
    reference_counts,
)
from branchtree.core.graph import BranchGraph
from tests.test_utils.graph_builders import canonical_diamond, make_graph, payment_graph


def test_three_branch_cycle_detected() -> None:
    """Test A -> B -> C -> A is reported with the loop closed."""
    graph = make_graph([("A", "B"), ("B", "C"), ("C", "A")])

    cycles = detect_circular_dependencies(graph)

    assert cycles == [["A", "B", "C", "A"]]
    assert {"A", "B", "C"} <= set(cycles[0])


def test_no_cycles_in_tree() -> None:
    """Test that an acyclic graph reports nothing."""
    assert detect_circular_dependencies(payment_graph()) == []


def test_diamond_is_not_a_cycle() -> None:
    """Test that reconverging paths are not mistaken for a cycle."""
    assert detect_circular_dependencies(canonical_diamond()) == []


def test_disjoint_cycles_all_reported() -> None:
    """Test that the search restarts from every unvisited branch."""
    graph = make_graph([("a", "b"), ("b", "a"), ("x", "y"), ("y", "z"), ("z", "x")])

    cycles = detect_circular_dependencies(graph)

    assert cycles == [["a", "b", "a"], ["x", "y", "z", "x"]]


def test_self_loop() -> None:
    """Test a branch declared as its own parent."""
    graph = make_graph([("main", "loop"), ("loop", "loop")])

    assert detect_circular_dependencies(graph) == [["loop", "loop"]]


def test_cycle_entered_mid_chain_is_suffix_of_path() -> None:
    """Test that the cycle excludes the path leading into it."""
    graph = make_graph([("main", "a"), ("a", "b"), ("b", "a")])

    assert detect_circular_dependencies(graph) == [["a", "b", "a"]]


def test_deep_chain_does_not_hit_recursion_limit() -> None:
    """Test that a very long chain is handled without recursion."""
    edges = [(f"b{i:05d}", f"b{i + 1:05d}") for i in range(2000)]
    graph = make_graph(edges + [("b02000", "b00000")])

    cycles = detect_circular_dependencies(graph)

    assert len(cycles) == 1
    assert len(cycles[0]) == 2002


def test_edges_to_missing_branches_are_ignored() -> None:
    """Test that stale edges do not break the search."""
    graph = make_graph([("main", "a")])
    stale = BranchGraph(
        nodes={"main": graph.nodes["main"]},
        edges=list(graph.edges),
        root_candidates=["main"],
    )

    assert detect_circular_dependencies(stale) == []


def test_branches_in_cycles() -> None:
    """Test flattening cycles into member names."""
    assert branches_in_cycles([["a", "b", "a"], ["x", "x"]]) == {"a", "b", "x"}


def test_cross_references_only_for_multiple_parents() -> None:
    """Test that only branches with more than one parent are recorded."""
    assert build_cross_references(canonical_diamond()) == {"merge": ["left", "right"]}
    assert build_cross_references(payment_graph()) == {}


def test_reference_counts() -> None:
    """Test counting how many branches list each branch as a child."""
    graph = canonical_diamond()

    counts = reference_counts(graph)

    assert counts == {"left": 1, "right": 1, "merge": 2}
    assert "main" not in counts
