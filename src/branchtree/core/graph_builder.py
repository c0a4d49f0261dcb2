"""Assemble a BranchGraph from branch enumeration and the repository state."""

import logging

from branchtree.core.git.abc import BranchInfo
from branchtree.core.graph import (
    BranchEdge,
    BranchGraph,
    BranchHead,
    BranchNode,
    BranchNodeMetadata,
    BranchTopology,
)
from branchtree.core.repo_state import RepoState

logger = logging.getLogger(__name__)


def build_branch_graph(
    branches: list[BranchInfo],
    state: RepoState,
    *,
    current_branch: str | None,
) -> BranchGraph:
    """Build the dependency graph for the enumerated branches.

    The first declared parent of a branch becomes its primary parent; any
    further declared parents are recorded as secondary parents. Declarations
    naming a branch that was not enumerated are ignored for this graph.

    Args:
        branches: Branch descriptors from the git gateway
        state: Persisted dependency table and associations
        current_branch: Checked-out branch, if any

    Returns:
        BranchGraph with one node per enumerated branch
    """
    known = {info.name for info in branches}

    parents_by_child: dict[str, list[str]] = {}
    children_by_parent: dict[str, list[str]] = {}
    edges: list[BranchEdge] = []

    for dep in state.dependencies:
        if dep.child not in known or dep.parent not in known:
            logger.debug(
                "Ignoring dependency %s -> %s: branch not present", dep.parent, dep.child
            )
            continue

        parents = parents_by_child.setdefault(dep.child, [])
        if dep.parent in parents:
            continue
        parents.append(dep.parent)
        children_by_parent.setdefault(dep.parent, []).append(dep.child)
        edges.append(BranchEdge(parent=dep.parent, child=dep.child))

    nodes: list[BranchNode] = []
    for info in branches:
        parents = parents_by_child.get(info.name, [])
        association = state.association_for(info.name)

        nodes.append(
            BranchNode(
                name=info.name,
                kind=info.kind,
                head=BranchHead(
                    oid=info.oid,
                    summary=info.summary,
                    author=info.author,
                    committed_at=info.committed_at,
                ),
                upstream=info.upstream,
                topology=BranchTopology(
                    primary_parent=parents[0] if parents else None,
                    secondary_parents=parents[1:],
                    children=sorted(children_by_parent.get(info.name, [])),
                ),
                metadata=BranchNodeMetadata(
                    issue_key=association.issue_key if association else None,
                    pr_number=association.pr_number if association else None,
                ),
            )
        )

    return BranchGraph.from_parts(
        nodes=nodes,
        edges=edges,
        root_candidates=_root_candidates(branches, state, current_branch),
        current_branch=current_branch if current_branch in known else None,
    )


def _root_candidates(
    branches: list[BranchInfo], state: RepoState, current_branch: str | None
) -> list[str]:
    known = {info.name for info in branches}

    candidates = [name for name in state.root_branch_names() if name in known]
    if candidates:
        return candidates

    if current_branch is not None and current_branch in known:
        return [current_branch]

    if branches:
        return [branches[0].name]

    return []
