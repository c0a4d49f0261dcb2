"""Text rendering of branch graphs as indented, annotated trees.

The renderer walks the graph from one or more roots and writes one line per
branch to a text sink. It stays bounded on any input:

- descent stops at `max_depth` with a truncation line
- a branch reached a second time (diamond merge point, cycle) is drawn as a
  reference line instead of being expanded again
- very wide subtrees are collapsed into a single pruning line
- long child lists are split into pages

All bookkeeping for one render (visited branches, statistics) lives in a
_RenderPass that is created per `render` call, so two renders never share
state.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

from branchtree.core.cycles import (
    branches_in_cycles,
    build_cross_references,
    detect_circular_dependencies,
    reference_counts,
)
from branchtree.core.diamond_detector import detect_diamond_patterns
from branchtree.core.graph import BranchGraph, BranchNode
from branchtree.core.tree_symbols import (
    LineRole,
    TreeStyle,
    child_prefix,
    connector,
    display_width,
)

logger = logging.getLogger(__name__)

# Below this depth a node with more than DEEP_NESTING_CHILD_LIMIT children is pruned
DEEP_NESTING_DEPTH = 15
DEEP_NESTING_CHILD_LIMIT = 10
# Cap on branches counted when sizing a pruned subtree
MAX_SUBTREE_COUNT = 1000
# Cycles listed individually in the header
MAX_LISTED_CYCLES = 3
# Distance between badge columns
BADGE_COLUMN_SPACING = 12


@dataclass(frozen=True)
class DeepNestingConfig:
    """Limits applied while rendering large or deep trees.

    None for max_depth or max_branches_per_level disables that limit.
    prune_threshold only controls the "large tree" notice; the per-subtree
    pruning rules apply whenever enable_pruning is set.
    """

    max_depth: int | None = 20
    max_branches_per_level: int | None = 50
    enable_pagination: bool = True
    page_size: int = 10
    show_depth_indicators: bool = True
    enable_pruning: bool = True
    prune_threshold: int = 100


@dataclass
class RenderStats:
    """Counters accumulated over one render pass."""

    total_branches: int = 0
    max_depth_reached: int = 0
    branches_pruned: int = 0
    circular_deps_detected: int = 0
    memory_usage_estimate: int = 0


def calculate_max_tree_width(
    graph: BranchGraph,
    roots: list[str],
    *,
    max_depth: int | None,
    connector_width: Callable[[str], int] | None = None,
) -> int:
    """Widest `prefix + connector + name` over every line the render would draw.

    Uses the same depth limit and visited bookkeeping as a render pass, so
    branches drawn as references or past the depth limit do not count. The
    walk uses an explicit stack, so chains of any length are measured.

    Args:
        graph: Graph to measure
        roots: Branches the render starts from
        max_depth: Depth limit of the render (None for unlimited)
        connector_width: Terminal cells taken by the connector drawn in front
            of a branch (defaults to a plain four-cell connector)

    Returns:
        Width in terminal cells, including two columns of padding
    """
    visited: set[str] = set()
    max_width = 0

    # (name, depth, prefix width)
    stack: list[tuple[str, int, int]] = [(root, 0, 0) for root in reversed(roots)]
    while stack:
        name, depth, prefix_width = stack.pop()
        if max_depth is not None and depth > max_depth:
            continue
        if name in visited:
            continue
        visited.add(name)

        node = graph.get(name)
        if node is None:
            continue

        label = name + " (current)" if name == graph.current_branch else name
        width = prefix_width + display_width(label)
        if depth > 0:
            width += connector_width(name) if connector_width is not None else 4
        max_width = max(max_width, width)

        children_prefix_width = prefix_width + 4 if depth > 0 else prefix_width
        stack.extend(
            (child, depth + 1, children_prefix_width) for child in reversed(node.topology.children)
        )

    return max_width + 2


@dataclass(frozen=True)
class _Visit:
    name: str
    depth: int
    prefix: str
    is_last: bool


@dataclass
class _RenderPass:
    sink: TextIO
    config: DeepNestingConfig
    tree_width: int
    stats: RenderStats
    visited: set[str]

    def emit(self, line: str) -> None:
        self.sink.write(line + "\n")


class TreeRenderer:
    """Renders a BranchGraph from a list of roots.

    Cycle, diamond and cross-reference analysis is done once at construction
    and shared by every subsequent render.
    """

    def __init__(
        self,
        graph: BranchGraph,
        roots: list[str],
        *,
        color: bool = False,
        highlighted: frozenset[str] | set[str] = frozenset(),
    ) -> None:
        self._graph = graph
        self._roots = list(roots)
        self._style = TreeStyle(color=color)
        self._highlighted = frozenset(highlighted)

        self.cross_references = build_cross_references(graph)
        self.cycles = detect_circular_dependencies(graph)
        self.diamonds = detect_diamond_patterns(graph)

        self._cycle_members = branches_in_cycles(self.cycles)
        self._reference_counts = reference_counts(graph)
        self._diamond_ancestors = {d.ancestor for d in self.diamonds}
        self._diamond_merges = {d.merge_point for d in self.diamonds}
        self._diamond_paths: set[str] = set()
        for diamond in self.diamonds:
            self._diamond_paths |= diamond.path_members()

    def render(self, sink: TextIO, config: DeepNestingConfig | None = None) -> RenderStats:
        """Write the tree to `sink`.

        Args:
            sink: Text stream receiving the rendered lines
            config: Limits for this render (defaults to DeepNestingConfig())

        Returns:
            Statistics for this render pass
        """
        if config is None:
            config = DeepNestingConfig()

        render_pass = _RenderPass(
            sink=sink,
            config=config,
            tree_width=calculate_max_tree_width(
                self._graph,
                self._roots,
                max_depth=config.max_depth,
                connector_width=self._connector_width,
            ),
            stats=RenderStats(
                total_branches=len(self._graph),
                circular_deps_detected=len(self.cycles),
            ),
            visited=set(),
        )

        self._write_header(render_pass)

        for i, root in enumerate(self._roots):
            if i > 0:
                render_pass.emit("")
            self._render_from(render_pass, root)

        render_pass.stats.memory_usage_estimate = self._estimate_memory_usage(render_pass)

        if config.show_depth_indicators:
            self._write_footer(render_pass)

        return render_pass.stats

    def _write_header(self, render_pass: _RenderPass) -> None:
        if self.cycles:
            render_pass.emit(f"⚠️  {len(self.cycles)} circular dependencies detected")
            for i, cycle in enumerate(self.cycles[:MAX_LISTED_CYCLES]):
                render_pass.emit(f"  Cycle {i + 1}: {' → '.join(cycle)}")
            if len(self.cycles) > MAX_LISTED_CYCLES:
                render_pass.emit(f"  ... and {len(self.cycles) - MAX_LISTED_CYCLES} more")
            render_pass.emit("")

        config = render_pass.config
        total = render_pass.stats.total_branches
        if config.enable_pruning and total > config.prune_threshold:
            render_pass.emit(
                f"🌳 Large tree detected ({total} branches). Applying intelligent pruning..."
            )
            render_pass.emit("")

    def _write_footer(self, render_pass: _RenderPass) -> None:
        stats = render_pass.stats
        render_pass.emit("")
        render_pass.emit("📊 Rendering Statistics:")
        render_pass.emit(f"  Total branches: {stats.total_branches}")
        render_pass.emit(f"  Max depth reached: {stats.max_depth_reached}")
        if stats.branches_pruned > 0:
            render_pass.emit(f"  Branches pruned: {stats.branches_pruned}")
        if stats.circular_deps_detected > 0:
            render_pass.emit(f"  Circular dependencies: {stats.circular_deps_detected}")
        render_pass.emit(f"  Memory estimate: {stats.memory_usage_estimate} bytes")

    def _render_from(self, render_pass: _RenderPass, root: str) -> None:
        """Draw the tree below `root`, depth first, using an explicit stack."""
        stack: list[_Visit | str] = [_Visit(name=root, depth=0, prefix="", is_last=True)]
        while stack:
            step = stack.pop()
            if isinstance(step, str):
                render_pass.emit(step)
                continue
            stack.extend(reversed(self._render_branch(render_pass, step)))

    def _render_branch(self, render_pass: _RenderPass, visit: _Visit) -> list[_Visit | str]:
        """Emit the line for one branch.

        Returns:
            What follows it, in output order: child visits, and page
            separator lines between pages of children
        """
        name, depth, prefix, is_last = visit.name, visit.depth, visit.prefix, visit.is_last
        config = render_pass.config
        stats = render_pass.stats
        stats.max_depth_reached = max(stats.max_depth_reached, depth)

        if config.max_depth is not None and depth > config.max_depth:
            render_pass.emit(
                prefix
                + connector(LineRole.PLAIN, is_last=is_last)
                + f"... [truncated at depth {self._style.highlight_count(config.max_depth)}] ..."
            )
            stats.branches_pruned += 1
            return []

        in_cycle = name in self._cycle_members

        if name in render_pass.visited:
            render_pass.emit(self._reference_line(name, depth, prefix, is_last, in_cycle))
            return []
        render_pass.visited.add(name)

        node = self._graph.get(name)
        if node is None:
            logger.debug("Skipping %s: referenced but not present in the graph", name)
            return []

        children = node.topology.children

        if config.enable_pruning and _should_prune(len(children), depth, config):
            logger.debug("Pruning subtree of %s (%d children)", name, len(children))
            line = prefix + (connector(LineRole.PLAIN, is_last=is_last) if depth > 0 else "")
            render_pass.emit(
                line
                + f"{name} ... [pruned subtree with "
                + f"{self._style.highlight_count(len(children))} children] ..."
            )
            stats.branches_pruned += self._count_subtree_size(node)
            return []

        render_pass.emit(self._branch_line(render_pass, node, depth, prefix, is_last, in_cycle))

        next_prefix = child_prefix(prefix, is_last=is_last) if depth > 0 else prefix
        count = len(children)
        page_size = config.page_size
        paginate = config.enable_pagination and page_size > 0 and count > page_size

        steps: list[_Visit | str] = []
        for i, child in enumerate(children):
            if paginate and i > 0 and i % page_size == 0:
                end = min(i + page_size, count)
                steps.append(
                    next_prefix
                    + "├── ... Page "
                    + f"{self._style.page_number(i // page_size + 1)} "
                    + f"({self._style.page_number(i + 1)}-{self._style.page_number(end)}"
                    + f" of {self._style.page_number(count)}) ..."
                )
            steps.append(
                _Visit(name=child, depth=depth + 1, prefix=next_prefix, is_last=i == count - 1)
            )
        return steps

    def _reference_line(
        self, name: str, depth: int, prefix: str, is_last: bool, in_cycle: bool
    ) -> str:
        line = prefix
        if depth > 0:
            role = LineRole.CIRCULAR if in_cycle else LineRole.REFERENCE
            line += connector(role, is_last=is_last)
        line += self._style.reference(name)
        if in_cycle:
            line += self._style.circular_tag()
        return line

    def _branch_line(
        self,
        render_pass: _RenderPass,
        node: BranchNode,
        depth: int,
        prefix: str,
        is_last: bool,
        in_cycle: bool,
    ) -> str:
        line = prefix
        if depth > 0:
            line += connector(self._role_for(node.name, in_cycle), is_last=is_last)

        line += self._style.branch_name(
            node.name,
            is_current=node.name == self._graph.current_branch,
            is_match=node.name in self._highlighted,
        )

        if node.is_orphan:
            line += self._style.orphan_tag()

        if render_pass.config.show_depth_indicators and depth > 0:
            line += self._style.depth_tag(depth)

        if depth > 5 and node.topology.children:
            line += self._style.children_tag(len(node.topology.children))

        refs = self._reference_counts.get(node.name, 0)
        if refs > 1:
            line += self._style.refs_tag(refs)

        if in_cycle:
            line += self._style.circular_tag()

        return self._append_badges(line, node, render_pass.tree_width)

    def _connector_width(self, name: str) -> int:
        role = self._role_for(name, name in self._cycle_members)
        return display_width(connector(role, is_last=True))

    def _role_for(self, name: str, in_cycle: bool) -> LineRole:
        if in_cycle:
            return LineRole.CIRCULAR
        if name in self._diamond_ancestors:
            return LineRole.DIAMOND_ANCESTOR
        if name in self._diamond_merges:
            return LineRole.DIAMOND_MERGE
        if name in self._diamond_paths:
            return LineRole.DIAMOND_PATH
        return LineRole.PLAIN

    def _append_badges(self, line: str, node: BranchNode, tree_width: int) -> str:
        """Append issue, PR and cross-reference badges at aligned columns."""
        issue_key = node.metadata.issue_key
        pr_number = node.metadata.pr_number
        other_parents = [
            parent
            for parent in self.cross_references.get(node.name, [])
            if parent != node.topology.primary_parent
        ]

        if not issue_key and pr_number is None and not other_parents:
            return line

        issue_column = max(display_width(line) + 2, tree_width)
        pr_column = issue_column + BADGE_COLUMN_SPACING
        also_column = pr_column + BADGE_COLUMN_SPACING

        if issue_key:
            line = _pad_to(line, issue_column) + self._style.issue_badge(issue_key)
        if pr_number is not None:
            line = _pad_to(line, pr_column) + self._style.pr_badge(pr_number)
        if other_parents:
            line = _pad_to(line, also_column) + self._style.also_badge(other_parents)

        return line

    def _count_subtree_size(self, node: BranchNode) -> int:
        """Branches in the subtree rooted at `node`, including it (capped)."""
        count = 1
        visited: set[str] = set()
        to_visit = list(node.topology.children)

        while to_visit:
            name = to_visit.pop()
            if name in visited:
                continue
            visited.add(name)

            child = self._graph.get(name)
            if child is not None:
                count += 1
                to_visit.extend(c for c in child.topology.children if c not in visited)

            if count > MAX_SUBTREE_COUNT:
                break

        return count

    def _estimate_memory_usage(self, render_pass: _RenderPass) -> int:
        size = 0
        for name, node in self._graph.nodes.items():
            size += len(name) * 2
            size += sum(len(parent) for parent in self._graph.parents_of(name))
            size += sum(len(child) for child in node.topology.children)
            size += 64
        size += len(self.cross_references) * 64
        size += len(render_pass.visited) * 32
        return size


def _should_prune(child_count: int, depth: int, config: DeepNestingConfig) -> bool:
    if depth > DEEP_NESTING_DEPTH and child_count > DEEP_NESTING_CHILD_LIMIT:
        return True
    if config.max_branches_per_level is not None and child_count > config.max_branches_per_level:
        return True
    return False


def _pad_to(line: str, column: int) -> str:
    # At least one space so adjacent badges never run together
    return line + " " * max(column - display_width(line), 1)


def render_tree(
    graph: BranchGraph,
    roots: list[str],
    sink: TextIO,
    config: DeepNestingConfig | None = None,
    *,
    color: bool = False,
    highlighted: frozenset[str] | set[str] = frozenset(),
) -> RenderStats:
    """Render `graph` from `roots` into `sink` and return the statistics."""
    renderer = TreeRenderer(graph, roots, color=color, highlighted=highlighted)
    return renderer.render(sink, config)
