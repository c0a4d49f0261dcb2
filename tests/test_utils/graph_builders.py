"""Helpers for building BranchGraph and RepoState fixtures in tests."""

from branchtree.core.graph import (
    BranchEdge,
    BranchGraph,
    BranchHead,
    BranchKind,
    BranchNode,
    BranchNodeMetadata,
    BranchTopology,
)
from branchtree.core.repo_state import (
    BranchAssociation,
    BranchDependency,
    RepoState,
    RootBranch,
)


def make_graph(
    edges: list[tuple[str, str]],
    *,
    nodes: list[str] | None = None,
    roots: list[str] | None = None,
    current: str | None = None,
    issues: dict[str, str] | None = None,
    prs: dict[str, int] | None = None,
) -> BranchGraph:
    """Build a consistent graph from (parent, child) pairs.

    The first parent listed for a child becomes its primary parent; children
    keep edge order. Every name mentioned in an edge becomes a node, plus any
    extra names in `nodes`.
    """
    names: list[str] = []
    for parent, child in edges:
        for name in (parent, child):
            if name not in names:
                names.append(name)
    for name in nodes or []:
        if name not in names:
            names.append(name)

    parents: dict[str, list[str]] = {}
    children: dict[str, list[str]] = {}
    for parent, child in edges:
        parents.setdefault(child, []).append(parent)
        children.setdefault(parent, []).append(child)

    issues = issues or {}
    prs = prs or {}

    branch_nodes = [
        BranchNode(
            name=name,
            kind=BranchKind.LOCAL,
            head=BranchHead(oid="0" * 40),
            topology=BranchTopology(
                primary_parent=parents[name][0] if name in parents else None,
                secondary_parents=parents.get(name, [])[1:],
                children=children.get(name, []),
            ),
            metadata=BranchNodeMetadata(issue_key=issues.get(name), pr_number=prs.get(name)),
        )
        for name in names
    ]

    if roots is None:
        roots = [name for name in names if name not in parents]

    return BranchGraph.from_parts(
        nodes=branch_nodes,
        edges=[BranchEdge(parent=p, child=c) for p, c in edges],
        root_candidates=roots,
        current_branch=current,
    )


def make_state(
    dependencies: list[tuple[str, str]] | None = None,
    *,
    roots: list[str] | None = None,
    default_root: str | None = None,
    issues: dict[str, str] | None = None,
    prs: dict[str, int] | None = None,
) -> RepoState:
    """Build a RepoState from (parent, child) dependency pairs."""
    root_names = list(roots or [])
    if default_root is not None and default_root not in root_names:
        root_names.insert(0, default_root)

    associations: dict[str, BranchAssociation] = {}
    for name in sorted(set(issues or {}) | set(prs or {})):
        associations[name] = BranchAssociation(
            branch=name,
            issue_key=(issues or {}).get(name),
            pr_number=(prs or {}).get(name),
        )

    return RepoState(
        dependencies=[BranchDependency(child=c, parent=p) for p, c in dependencies or []],
        root_branches=[RootBranch(branch=r, is_default=r == default_root) for r in root_names],
        associations=associations,
    )


def payment_graph() -> BranchGraph:
    """main -> feature/payment -> {api, ui}; main -> feature/other."""
    return make_graph(
        [
            ("main", "feature/payment"),
            ("main", "feature/other"),
            ("feature/payment", "feature/payment-api"),
            ("feature/payment", "feature/payment-ui"),
        ]
    )


def canonical_diamond() -> BranchGraph:
    """main -> {left, right} -> merge."""
    return make_graph(
        [
            ("main", "left"),
            ("main", "right"),
            ("left", "merge"),
            ("right", "merge"),
        ]
    )
