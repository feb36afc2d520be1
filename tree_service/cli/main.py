"""Main CLI entry point for tree-service."""

import click

from tree_service import __version__
from tree_service.cli.commands import tree
from tree_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="tree-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Tree Service CLI - hierarchical queries over adjacency-list tables.

    \b
    Command Groups:
      tree       Ancestors, descendants, depth and containment queries

    \b
    Quick Start:
      tree-service tree --table categories roots
      tree-service tree --table categories descendants 1 --to-depth 2
      tree-service tree --table categories --format json ancestors 7
    """
    ctx.ensure_object(dict)


cli.add_command(tree.tree)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
