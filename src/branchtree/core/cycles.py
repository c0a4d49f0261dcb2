"""Cycle detection and cross-reference tracking for branch graphs."""

import logging
from collections import Counter
from collections.abc import Iterable, Iterator

from branchtree.core.graph import BranchGraph

logger = logging.getLogger(__name__)

_UNVISITED = 0
_ON_PATH = 1
_DONE = 2


def detect_circular_dependencies(graph: BranchGraph) -> list[list[str]]:
    """Find cycles in the forward (parent -> child) edges.

    Depth-first search starting from every unvisited branch in name order.
    Each edge back to a branch on the current path records the loop as the
    path suffix starting at that branch, closed by repeating it:
    ["a", "b", "c", "a"].

    Returns:
        Every cycle found, in discovery order
    """
    state: dict[str, int] = {}
    cycles: list[list[str]] = []

    for start in graph.nodes:
        if state.get(start, _UNVISITED) != _UNVISITED:
            continue

        path = [start]
        state[start] = _ON_PATH
        stack: list[tuple[str, Iterator[str]]] = [(start, _children(graph, start))]

        while stack:
            node, children = stack[-1]
            child = next(children, None)

            if child is None:
                stack.pop()
                path.pop()
                state[node] = _DONE
                continue

            child_state = state.get(child, _UNVISITED)
            if child_state == _ON_PATH:
                cycle = path[path.index(child) :] + [child]
                logger.debug("Circular dependency: %s", " -> ".join(cycle))
                cycles.append(cycle)
            elif child_state == _UNVISITED:
                state[child] = _ON_PATH
                path.append(child)
                stack.append((child, _children(graph, child)))

    return cycles


def _children(graph: BranchGraph, name: str) -> Iterator[str]:
    # Edges pointing at branches that no longer exist are skipped
    return iter([child for child in graph.children_of(name) if child in graph])


def branches_in_cycles(cycles: Iterable[list[str]]) -> set[str]:
    """Flatten cycles into the set of participating branch names."""
    members: set[str] = set()
    for cycle in cycles:
        members.update(cycle)
    return members


def build_cross_references(graph: BranchGraph) -> dict[str, list[str]]:
    """Map each branch with more than one declared parent to its parents."""
    cross_refs: dict[str, list[str]] = {}
    for name in graph.nodes:
        parents = graph.parents_of(name)
        if len(parents) > 1:
            cross_refs[name] = parents
    return cross_refs


def reference_counts(graph: BranchGraph) -> dict[str, int]:
    """How many branches list each branch among their children."""
    counts: Counter[str] = Counter()
    for node in graph:
        counts.update(set(node.topology.children))
    return dict(counts)
