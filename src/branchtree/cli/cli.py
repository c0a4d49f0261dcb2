import click

from branchtree.cli.commands.check import check_cmd
from branchtree.cli.commands.tree import tree_cmd
from branchtree.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="branchtree")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Show user-declared branch dependencies as a tree."""
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context()


cli.add_command(tree_cmd)
cli.add_command(check_cmd)


def main() -> None:
    """CLI entry point used by the `branchtree` console script."""
    cli()
