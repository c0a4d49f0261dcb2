"""Branch graph domain model.

The graph separates the *topology* of the declared branch dependencies from
the per-branch metadata so renderers and analyzers can layer annotations on
top without rebuilding the structure.

A BranchGraph is never mutated after construction. Operations that look like
mutation (orphan attachment, annotation, filtering) live in
branchtree.core.tree_utils and return new graphs.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import cached_property

# Annotation key used to flag branches without a declared parent
ORPHAN_BRANCH_ANNOTATION_KEY = "branchtree.orphan"


class BranchKind(Enum):
    """Categorisation of a branch within the graph."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class BranchHead:
    """Commit the branch points to. Informational only."""

    oid: str
    summary: str | None = None
    author: str | None = None
    committed_at: datetime | None = None


@dataclass(frozen=True)
class FlagAnnotation:
    value: bool


@dataclass(frozen=True)
class TextAnnotation:
    value: str


AnnotationValue = FlagAnnotation | TextAnnotation


@dataclass(frozen=True)
class BranchTopology:
    """Structural relationships of a branch.

    primary_parent decides where the branch is drawn in a tree.
    secondary_parents records the remaining declared parents; the two are kept
    as separate fields because "where it is drawn" and "what it depends on"
    only coincide outside diamonds.
    """

    primary_parent: str | None = None
    secondary_parents: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BranchNodeMetadata:
    """Issue/PR associations and free-form annotations for a branch."""

    issue_key: str | None = None
    pr_number: int | None = None
    annotations: dict[str, AnnotationValue] = field(default_factory=dict)

    def has_flag(self, key: str) -> bool:
        value = self.annotations.get(key)
        return isinstance(value, FlagAnnotation) and value.value


@dataclass(frozen=True)
class BranchNode:
    """A single branch: identity, head commit, topology and metadata."""

    name: str
    kind: BranchKind
    head: BranchHead
    upstream: str | None = None
    topology: BranchTopology = field(default_factory=BranchTopology)
    metadata: BranchNodeMetadata = field(default_factory=BranchNodeMetadata)

    @property
    def is_orphan(self) -> bool:
        return self.metadata.has_flag(ORPHAN_BRANCH_ANNOTATION_KEY)


@dataclass(frozen=True)
class BranchEdge:
    """Directed relationship: `parent` is a declared parent of `child`."""

    parent: str
    child: str


@dataclass(frozen=True)
class BranchGraph:
    """Branch nodes keyed by name, plus the edges that connect them.

    Invariants expected from builders (not enforced here, since dependency
    declarations are user-edited and may already be inconsistent):
    - every edge endpoint names a node
    - node.topology.children matches the edges leaving that node
    - primary_parent, when set, names an existing node

    Every algorithm reading a graph guards against violations instead.
    """

    nodes: dict[str, BranchNode]
    edges: list[BranchEdge]
    root_candidates: list[str]
    current_branch: str | None = None

    @staticmethod
    def from_parts(
        nodes: Iterable[BranchNode],
        edges: Iterable[BranchEdge],
        root_candidates: Iterable[str],
        current_branch: str | None,
    ) -> "BranchGraph":
        """Assemble a graph from its constituent parts.

        Nodes are keyed by name and ordered by name so every traversal over
        the graph is deterministic. No validation is performed.
        """
        node_map = {node.name: node for node in nodes}
        return BranchGraph(
            nodes={name: node_map[name] for name in sorted(node_map)},
            edges=list(edges),
            root_candidates=list(root_candidates),
            current_branch=current_branch,
        )

    @staticmethod
    def empty() -> "BranchGraph":
        return BranchGraph(nodes={}, edges=[], root_candidates=[], current_branch=None)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, name: object) -> bool:
        return name in self.nodes

    def __iter__(self) -> Iterator[BranchNode]:
        return iter(self.nodes.values())

    def is_empty(self) -> bool:
        return not self.nodes

    def get(self, name: str) -> BranchNode | None:
        return self.nodes.get(name)

    def names(self) -> list[str]:
        return list(self.nodes)

    @cached_property
    def _parents_index(self) -> dict[str, list[str]]:
        index: dict[str, list[str]] = {}
        for edge in self.edges:
            parents = index.setdefault(edge.child, [])
            if edge.parent not in parents:
                parents.append(edge.parent)
        return index

    @cached_property
    def _children_index(self) -> dict[str, list[str]]:
        index: dict[str, list[str]] = {}
        for edge in self.edges:
            children = index.setdefault(edge.parent, [])
            if edge.child not in children:
                children.append(edge.child)
        return index

    def parents_of(self, name: str) -> list[str]:
        """Full declared parent set of a branch, in edge order."""
        return list(self._parents_index.get(name, []))

    def children_of(self, name: str) -> list[str]:
        """Children of a branch according to the edge list."""
        return list(self._children_index.get(name, []))
