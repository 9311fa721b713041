"""Outdated command: report capability sources with upstream changes."""

import click
from rich.console import Console
from rich.table import Table

from omnidev.capability.exceptions import CapabilitySourceError
from omnidev.capability.sources import SourceUpdateInfo, check_for_updates
from omnidev.cli.output import error_output, user_output
from omnidev.config.loader import load_config
from omnidev.config.models import InvalidConfigError
from omnidev.context import OmniContext


def _status_display(info: SourceUpdateInfo) -> str:
    if info.error is not None:
        return f"[red]error: {info.error}[/red]"
    if info.has_update:
        return "[yellow]update available[/yellow]"
    return "[green]up to date[/green]"


@click.command("outdated")
@click.pass_obj
def outdated_cmd(ctx: OmniContext) -> None:
    """Show which capability sources have updates available.

    Nothing is fetched or written; run `omnidev sync` to apply updates.
    """
    try:
        config = load_config(ctx.project_root)
    except (CapabilitySourceError, InvalidConfigError) as e:
        error_output(str(e))
        raise SystemExit(1) from e

    updates = check_for_updates(ctx.project_root, config, runner=ctx.runner)
    if not updates:
        user_output("No capability sources configured")
        return

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Capability", style="cyan", no_wrap=True)
    table.add_column("Current", no_wrap=True)
    table.add_column("Latest", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    for info in updates:
        table.add_row(info.id, info.current_version, info.latest_version, _status_display(info))

    # stderr, consistent with user_output
    console = Console(stderr=True, force_terminal=True, width=200)
    console.print(table)

    outdated = sum(1 for info in updates if info.has_update)
    if outdated:
        user_output(click.style(f"{outdated} capability source(s) can be updated", fg="yellow"))
    else:
        user_output(click.style("All capability sources are up to date", fg="green"))
