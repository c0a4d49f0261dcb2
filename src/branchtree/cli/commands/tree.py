import io
import logging
import os
from dataclasses import replace

import click

from branchtree.cli.core import load_repo_graph
from branchtree.cli.ensure import Ensure
from branchtree.cli.output import machine_output, user_output
from branchtree.core.context import BranchtreeContext
from branchtree.core.global_config import GlobalConfig
from branchtree.core.tree_renderer import DeepNestingConfig, render_tree
from branchtree.core.tree_utils import (
    annotate_orphaned_branches,
    attach_orphans_to_default_root,
    determine_render_root,
    filter_branch_graph,
    find_orphaned_branches,
)

logger = logging.getLogger(__name__)

# Enable debug logging if BRANCHTREE_DEBUG environment variable is set
if os.getenv("BRANCHTREE_DEBUG"):
    logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")


def _resolve_color(flag: bool | None, config: GlobalConfig) -> bool:
    if flag is not None:
        return flag
    if config.color == "always":
        return True
    if config.color == "never":
        return False
    return click.get_text_stream("stdout").isatty()


def _render_config(
    config: GlobalConfig,
    *,
    max_depth: int | None,
    page_size: int | None,
    pagination: bool | None,
    pruning: bool | None,
    depth_indicators: bool | None,
) -> DeepNestingConfig:
    """Global config defaults with any command-line overrides applied."""
    render_config = config.deep_nesting_config()
    if max_depth is not None:
        render_config = replace(render_config, max_depth=max_depth)
    if page_size is not None:
        render_config = replace(render_config, page_size=page_size)
    if pagination is not None:
        render_config = replace(render_config, enable_pagination=pagination)
    if pruning is not None:
        render_config = replace(render_config, enable_pruning=pruning)
    if depth_indicators is not None:
        render_config = replace(render_config, show_depth_indicators=depth_indicators)
    return render_config


@click.command("tree")
@click.option(
    "-i",
    "--include",
    "pattern",
    help="Only show branches whose name contains PATTERN (case-insensitive), plus their ancestors.",
)
@click.option("-r", "--root", "root_override", help="Branch to render from.")
@click.option("--all-roots", is_flag=True, help="Render every root branch, not just the default.")
@click.option("--remote", is_flag=True, help="Include remote-tracking branches.")
@click.option("--max-depth", type=click.IntRange(min=0), help="Stop descending below this depth.")
@click.option("--page-size", type=click.IntRange(min=1), help="Children shown per page.")
@click.option("--pagination/--no-pagination", default=None, help="Split long child lists.")
@click.option("--pruning/--no-pruning", default=None, help="Collapse oversized subtrees.")
@click.option(
    "--depth-indicators/--no-depth-indicators",
    default=None,
    help="Show [depth:n] tags and the statistics footer.",
)
@click.option("--color/--no-color", default=None, help="Force coloured output on or off.")
@click.option(
    "--attach-orphans/--no-attach-orphans",
    default=None,
    help="Draw branches without a declared parent under the default root.",
)
@click.pass_obj
def tree_cmd(
    ctx: BranchtreeContext,
    pattern: str | None,
    root_override: str | None,
    all_roots: bool,
    remote: bool,
    max_depth: int | None,
    page_size: int | None,
    pagination: bool | None,
    pruning: bool | None,
    depth_indicators: bool | None,
    color: bool | None,
    attach_orphans: bool | None,
) -> None:
    """Show the branch dependency tree.

    Examples:
        branchtree tree
        branchtree tree --include payment
        branchtree tree --root develop --max-depth 5
        branchtree tree --all-roots --no-depth-indicators
    """
    repo_graph = load_repo_graph(ctx, include_remote=remote)
    graph = repo_graph.graph
    state = repo_graph.state

    Ensure.invariant(not graph.is_empty(), "No branches found")

    if root_override is not None:
        Ensure.invariant(root_override in graph, f"Branch '{root_override}' not found")

    orphans = find_orphaned_branches(graph, state)
    graph = annotate_orphaned_branches(graph, orphans)

    should_attach = ctx.global_config.attach_orphans if attach_orphans is None else attach_orphans
    if should_attach:
        graph = attach_orphans_to_default_root(graph, state)

    highlighted: set[str] = set()
    if pattern is not None:
        filtered = Ensure.not_none(
            filter_branch_graph(graph, pattern), f"No branches match '{pattern}'"
        )
        graph, highlighted = filtered

    # Parentless non-root branches: orphans left unattached, and branches whose
    # declared parents are all missing from the repository
    detached = sorted(
        node.name
        for node in graph
        if node.topology.primary_parent is None and not state.is_root(node.name)
    )

    if all_roots and root_override is None:
        roots = [name for name in dict.fromkeys(graph.root_candidates) if name in graph]
        roots += [name for name in detached if name not in roots]
    else:
        root = determine_render_root(graph, state, root_override)
        roots = [Ensure.not_none(root, "Nothing to render")]

    if not all_roots:
        unattached = [name for name in detached if name not in roots]
        if unattached:
            user_output(
                f"{len(unattached)} branch(es) without a parent in the tree not shown: "
                + ", ".join(unattached)
            )

    use_color = _resolve_color(color, ctx.global_config)
    render_config = _render_config(
        ctx.global_config,
        max_depth=max_depth,
        page_size=page_size,
        pagination=pagination,
        pruning=pruning,
        depth_indicators=depth_indicators,
    )

    logger.debug("Rendering %d branches from roots %s", len(graph), roots)

    buffer = io.StringIO()
    render_tree(graph, roots, buffer, render_config, color=use_color, highlighted=highlighted)
    machine_output(buffer.getvalue(), nl=False, color=use_color)
