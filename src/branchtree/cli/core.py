"""Shared command plumbing: turn the repository into a BranchGraph."""

from dataclasses import dataclass
from pathlib import Path

import click

from branchtree.cli.ensure import Ensure
from branchtree.cli.output import user_output, warning
from branchtree.core.context import BranchtreeContext
from branchtree.core.graph import BranchGraph
from branchtree.core.graph_builder import build_branch_graph
from branchtree.core.repo_state import RepoState


@dataclass(frozen=True)
class RepoGraph:
    """Graph for the repository at `root` plus the state it was built from."""

    root: Path
    graph: BranchGraph
    state: RepoState


def load_repo_graph(ctx: BranchtreeContext, *, include_remote: bool) -> RepoGraph:
    """Enumerate branches, load the dependency state and build the graph.

    A malformed state file is reported as a warning and treated as empty so
    the branches can still be listed.
    """
    repo_root = Ensure.in_repository(ctx)

    try:
        state = ctx.repo_state_store.load(repo_root)
    except ValueError as e:
        warning(f"{e}. Continuing without declared dependencies.")
        state = RepoState.empty()

    try:
        branches = ctx.git.list_branches(repo_root, include_remote=include_remote)
    except RuntimeError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    graph = build_branch_graph(
        branches,
        state,
        current_branch=ctx.git.get_current_branch(ctx.cwd),
    )
    return RepoGraph(root=repo_root, graph=graph, state=state)
