import logging
from pathlib import Path

import click

from omnidev.cli.commands.outdated_cmd import outdated_cmd
from omnidev.cli.commands.sync_cmd import sync_cmd
from omnidev.cli.commands.verify_cmd import verify_cmd
from omnidev.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="omnidev")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Fetch, lock and sync agent capabilities declared in omni.toml."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(Path.cwd())


cli.add_command(sync_cmd)
cli.add_command(outdated_cmd)
cli.add_command(verify_cmd)


def main() -> None:
    """CLI entry point used by the `omnidev` console script."""
    cli()
