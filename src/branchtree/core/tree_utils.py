"""Pure topology functions over a BranchGraph.

Every function here is side-effect free. Functions that look like mutation
return a new BranchGraph and leave their input untouched; nothing in this
module changes the persisted dependency declarations.
"""

import logging
from dataclasses import replace

from branchtree.core.graph import (
    ORPHAN_BRANCH_ANNOTATION_KEY,
    BranchEdge,
    BranchGraph,
    BranchNode,
    FlagAnnotation,
)
from branchtree.core.repo_state import RepoState

logger = logging.getLogger(__name__)


def determine_render_root(
    graph: BranchGraph,
    state: RepoState,
    override: str | None,
) -> str | None:
    """Pick the branch to start rendering from.

    Priority:
    1. explicit override, when it names a branch in the graph
    2. configured default root, when present in the graph
    3. first root candidate
    4. current branch
    5. any branch

    Returns:
        Branch name, or None only when the graph is empty
    """
    if override is not None and override in graph:
        return override

    default_root = state.default_root()
    if default_root is not None and default_root in graph:
        return default_root

    if graph.root_candidates:
        return graph.root_candidates[0]

    if graph.current_branch is not None:
        return graph.current_branch

    for name in graph.nodes:
        return name

    return None


def default_root_branch(state: RepoState) -> str | None:
    """Default root, falling back to the first configured root."""
    default_root = state.default_root()
    if default_root is not None:
        return default_root

    roots = state.root_branch_names()
    if roots:
        return roots[0]

    return None


def find_orphaned_branches(graph: BranchGraph, state: RepoState) -> set[str]:
    """Branches with no declared parent that are not configured roots.

    A branch counts as having a parent if either its primary parent is set in
    the graph or the state declares a dependency for it (even one whose parent
    no longer exists).
    """
    orphans: set[str] = set()
    for node in graph:
        if node.topology.primary_parent is not None:
            continue
        if state.dependency_parents(node.name):
            continue
        if state.is_root(node.name):
            continue
        orphans.add(node.name)
    return orphans


def attach_orphans_to_default_root(graph: BranchGraph, state: RepoState) -> BranchGraph:
    """Return a graph where parentless branches hang off the default root.

    Only affects rendering; the persisted state is untouched. The input graph
    is returned as-is when there is no default root in the graph or nothing to
    attach.
    """
    root = default_root_branch(state)
    if root is None or root not in graph:
        return graph

    orphans = [
        node.name
        for node in graph
        if node.topology.primary_parent is None
        and node.name != root
        and not state.is_root(node.name)
    ]
    if not orphans:
        return graph

    logger.debug("Attaching %d orphaned branches to %s", len(orphans), root)

    new_nodes: dict[str, BranchNode] = dict(graph.nodes)
    for name in orphans:
        node = graph.nodes[name]
        new_nodes[name] = replace(node, topology=replace(node.topology, primary_parent=root))

    root_node = graph.nodes[root]
    children = list(root_node.topology.children)
    for name in orphans:
        if name not in children:
            children.append(name)
    new_nodes[root] = replace(
        root_node, topology=replace(root_node.topology, children=sorted(children))
    )

    existing_edges = {(edge.parent, edge.child) for edge in graph.edges}
    new_edges = list(graph.edges)
    for name in orphans:
        if (root, name) not in existing_edges:
            new_edges.append(BranchEdge(parent=root, child=name))

    return BranchGraph(
        nodes=new_nodes,
        edges=new_edges,
        root_candidates=list(graph.root_candidates),
        current_branch=graph.current_branch,
    )


def annotate_orphaned_branches(graph: BranchGraph, orphans: set[str]) -> BranchGraph:
    """Return a graph with the orphan flag set on every branch in `orphans`.

    Nodes not named in `orphans` are reused as-is. An empty set returns the
    input graph.
    """
    if not orphans:
        return graph

    new_nodes: dict[str, BranchNode] = {}
    for name, node in graph.nodes.items():
        if name not in orphans:
            new_nodes[name] = node
            continue
        annotations = dict(node.metadata.annotations)
        annotations[ORPHAN_BRANCH_ANNOTATION_KEY] = FlagAnnotation(True)
        new_nodes[name] = replace(node, metadata=replace(node.metadata, annotations=annotations))

    return BranchGraph(
        nodes=new_nodes,
        edges=list(graph.edges),
        root_candidates=list(graph.root_candidates),
        current_branch=graph.current_branch,
    )


def filter_branch_graph(
    graph: BranchGraph, pattern: str
) -> tuple[BranchGraph, set[str]] | None:
    """Restrict a graph to branches matching `pattern` and their ancestors.

    Matching is a case-insensitive substring test on the branch name. The
    ancestor closure follows primary parents only.

    Args:
        graph: Graph to filter
        pattern: Substring to look for

    Returns:
        (filtered graph, names that matched directly), or None when no branch
        matches
    """
    needle = pattern.lower()
    direct_matches = {name for name in graph.nodes if needle in name.lower()}
    if not direct_matches:
        return None

    allowed = set(direct_matches)
    stack = sorted(direct_matches)
    while stack:
        node = graph.get(stack.pop())
        if node is None:
            continue
        parent = node.topology.primary_parent
        if parent is None or parent in allowed or parent not in graph:
            continue
        allowed.add(parent)
        stack.append(parent)

    new_nodes: dict[str, BranchNode] = {}
    for name, node in graph.nodes.items():
        if name not in allowed:
            continue
        topology = replace(
            node.topology,
            secondary_parents=[p for p in node.topology.secondary_parents if p in allowed],
            children=[c for c in node.topology.children if c in allowed],
        )
        new_nodes[name] = replace(node, topology=topology)

    filtered = BranchGraph(
        nodes=new_nodes,
        edges=[e for e in graph.edges if e.parent in allowed and e.child in allowed],
        root_candidates=[r for r in graph.root_candidates if r in allowed],
        current_branch=graph.current_branch if graph.current_branch in allowed else None,
    )
    return filtered, direct_matches
