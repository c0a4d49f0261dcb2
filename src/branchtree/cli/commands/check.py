import click
from rich.table import Table

from branchtree.cli.core import load_repo_graph
from branchtree.cli.output import print_table, user_output
from branchtree.core.context import BranchtreeContext
from branchtree.core.cycles import build_cross_references, detect_circular_dependencies
from branchtree.core.diamond_detector import detect_diamond_patterns
from branchtree.core.tree_utils import find_orphaned_branches


@click.command("check")
@click.option("--remote", is_flag=True, help="Include remote-tracking branches.")
@click.pass_obj
def check_cmd(ctx: BranchtreeContext, remote: bool) -> None:
    """Report cycles, diamonds, multi-parent branches and orphans.

    Exits with status 1 when circular dependencies are declared.
    """
    repo_graph = load_repo_graph(ctx, include_remote=remote)
    graph = repo_graph.graph

    cycles = detect_circular_dependencies(graph)
    diamonds = detect_diamond_patterns(graph)
    cross_refs = build_cross_references(graph)
    orphans = sorted(find_orphaned_branches(graph, repo_graph.state))

    if cycles:
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Cycle", style="red")
        for i, cycle in enumerate(cycles, start=1):
            table.add_row(str(i), " → ".join(cycle))
        print_table("Circular dependencies", table)

    if diamonds:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Ancestor", style="cyan")
        table.add_column("Merge point", style="cyan")
        table.add_column("Depth", justify="right")
        table.add_column("Nested")
        for diamond in diamonds:
            table.add_row(
                diamond.ancestor,
                diamond.merge_point,
                str(diamond.depth),
                "yes" if diamond.is_nested else "no",
            )
        print_table("Diamond patterns", table)

    if cross_refs:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Branch", style="cyan")
        table.add_column("Parents")
        for name, parents in cross_refs.items():
            table.add_row(name, ", ".join(parents))
        print_table("Branches with multiple parents", table)

    if orphans:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Branch", style="yellow")
        for name in orphans:
            table.add_row(name)
        print_table("Branches without a declared parent", table)

    user_output(
        f"{len(graph)} branches, {len(cycles)} cycles, {len(diamonds)} diamonds, "
        f"{len(cross_refs)} multi-parent branches, {len(orphans)} orphans"
    )

    if cycles:
        user_output(click.style("Error: ", fg="red") + "circular dependencies declared")
        raise SystemExit(1)
