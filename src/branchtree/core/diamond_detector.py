"""Detection of diamond (diverge then reconverge) dependency patterns.

A diamond exists where a branch declares two or more parents whose ancestry
meets again at a common ancestor:

    main
    ├── left ──┐
    └── right ─┴── merge

The detection is a bounded heuristic rather than an exhaustive enumeration.
Every walk is capped so malformed or cyclic declarations cannot stall it, and
each merge point yields at most one pattern (the first common ancestor, by
approximate distance, that produces two paths).
"""

import logging
from dataclasses import dataclass, field, replace

from branchtree.core.graph import BranchGraph

logger = logging.getLogger(__name__)

# Hop cap for the first-parent distance walk used to rank common ancestors
MAX_DISTANCE_HOPS = 20
# Longest backward path accepted between a merge parent and the ancestor
MAX_PATH_LENGTH = 15
# Visited-node cap for forward reachability checks
MAX_REACHABILITY_NODES = 50


@dataclass(frozen=True)
class DiamondPattern:
    """A convergence pattern rooted at `ancestor` and closing at `merge_point`.

    left_path and right_path list the branches strictly between the ancestor
    and the merge point's parents, ordered from the ancestor side.
    """

    ancestor: str
    merge_point: str
    left_path: list[str] = field(default_factory=list)
    right_path: list[str] = field(default_factory=list)
    depth: int = 2
    is_nested: bool = False

    def path_members(self) -> set[str]:
        return set(self.left_path) | set(self.right_path)


def detect_diamond_patterns(graph: BranchGraph) -> list[DiamondPattern]:
    """Find diamond patterns in the graph.

    Args:
        graph: Graph to analyze; the full parent set of each branch comes from
            its edges

    Returns:
        Patterns sorted by ascending depth, with nesting flags applied
    """
    patterns: list[DiamondPattern] = []

    for merge_point in graph.nodes:
        parents = graph.parents_of(merge_point)
        if len(parents) < 2:
            continue

        pattern = _analyze_merge_point(graph, merge_point, parents)
        if pattern is not None:
            logger.debug(
                "Diamond %s -> %s (depth %d)", pattern.ancestor, pattern.merge_point, pattern.depth
            )
            patterns.append(pattern)

    patterns.sort(key=lambda p: p.depth)
    return _mark_nested(graph, patterns)


def _analyze_merge_point(
    graph: BranchGraph, merge_point: str, parents: list[str]
) -> DiamondPattern | None:
    for ancestor in _common_ancestors(graph, parents):
        pattern = _construct_diamond(graph, ancestor, merge_point, parents)
        if pattern is not None:
            return pattern
    return None


def _common_ancestors(graph: BranchGraph, branches: list[str]) -> list[str]:
    """Ancestors shared by every branch, closest to branches[0] first."""
    if len(branches) < 2:
        return []

    common = _all_ancestors(graph, branches[0])
    for branch in branches[1:]:
        common &= _all_ancestors(graph, branch)

    return sorted(common, key=lambda a: (_distance_to(graph, a, branches[0]), a))


def _all_ancestors(graph: BranchGraph, branch: str) -> set[str]:
    ancestors: set[str] = set()
    visited: set[str] = set()
    to_visit = [branch]

    while to_visit:
        current = to_visit.pop()
        if current in visited:
            continue
        visited.add(current)

        for parent in graph.parents_of(current):
            ancestors.add(parent)
            to_visit.append(parent)

    return ancestors


def _distance_to(graph: BranchGraph, ancestor: str, start: str) -> int:
    """Approximate hop count from `start` to `ancestor` along first parents."""
    distance = 0
    current = start
    visited: set[str] = set()

    while current in graph:
        if current in visited or current == ancestor:
            break
        visited.add(current)

        distance += 1
        if distance > MAX_DISTANCE_HOPS:
            break

        parents = graph.parents_of(current)
        if not parents:
            break
        current = parents[0]

    return distance


def _construct_diamond(
    graph: BranchGraph, ancestor: str, merge_point: str, merge_parents: list[str]
) -> DiamondPattern | None:
    paths: list[list[str]] = []
    for parent in merge_parents:
        path = _path_between(graph, ancestor, parent)
        if path is not None:
            paths.append(path)

    if len(paths) < 2:
        return None

    return DiamondPattern(
        ancestor=ancestor,
        merge_point=merge_point,
        left_path=paths[0],
        right_path=paths[1],
        depth=max(len(p) for p in paths) + 2,
    )


def _path_between(graph: BranchGraph, ancestor: str, start: str) -> list[str] | None:
    """Walk first parents from `start` until `ancestor` is reached.

    Returns the branches strictly between the two, ordered from the ancestor
    side, or None when the walk dead-ends, loops or gets too long.
    """
    path: list[str] = []
    current = start
    visited: set[str] = set()

    while current in graph:
        if current in visited:
            break
        visited.add(current)

        if current == ancestor:
            return path

        if current != start:
            path.insert(0, current)

        if len(path) > MAX_PATH_LENGTH:
            break

        parents = graph.parents_of(current)
        if not parents:
            break
        current = parents[0]

    return None


def _mark_nested(graph: BranchGraph, patterns: list[DiamondPattern]) -> list[DiamondPattern]:
    nested: set[int] = set()
    for i, inner in enumerate(patterns):
        for j, outer in enumerate(patterns):
            if i == j or inner.depth >= outer.depth:
                continue
            if _is_contained(graph, inner, outer):
                nested.add(i)
                break

    return [
        replace(pattern, is_nested=True) if i in nested else pattern
        for i, pattern in enumerate(patterns)
    ]


def _is_contained(graph: BranchGraph, inner: DiamondPattern, outer: DiamondPattern) -> bool:
    return is_reachable(graph, outer.ancestor, inner.ancestor) and is_reachable(
        graph, inner.merge_point, outer.merge_point
    )


def is_reachable(graph: BranchGraph, source: str, target: str) -> bool:
    """Whether `target` can be reached from `source` by following children.

    Gives up (returns False) after visiting MAX_REACHABILITY_NODES branches.
    """
    if source == target:
        return True

    visited: set[str] = set()
    to_visit = [source]

    while to_visit:
        current = to_visit.pop()
        if current in visited:
            continue
        visited.add(current)

        if current == target:
            return True

        if len(visited) > MAX_REACHABILITY_NODES:
            break

        to_visit.extend(graph.children_of(current))

    return False
