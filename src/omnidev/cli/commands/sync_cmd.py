"""Sync command: fetch sources and materialize enabled capabilities."""

import click

from omnidev.capability.exceptions import CapabilitySourceError
from omnidev.cli.output import error_output, user_output, warning_output
from omnidev.config.models import InvalidConfigError
from omnidev.context import OmniContext
from omnidev.sync import SyncResult, run_sync


def _report(result: SyncResult) -> None:
    for fetched in result.fetch.results:
        status = "updated" if fetched.updated else "up to date"
        wrapped = " (wrapped)" if fetched.wrapped else ""
        user_output(f"  {fetched.id}: {fetched.version}{wrapped} - {status}")

    for capability_id in result.fetch.mcp.removed:
        user_output(f"  Removed MCP capability {capability_id}")

    cleanup = result.cleanup
    if cleanup.total:
        user_output(f"Removed {cleanup.total} stale resource(s)")
        for name in cleanup.deleted_skills:
            user_output(f"  skill {name}")
        for name in cleanup.deleted_rules:
            user_output(f"  rule {name}")
        for name in cleanup.deleted_commands:
            user_output(f"  command {name}")
        for name in cleanup.deleted_subagents:
            user_output(f"  subagent {name}")

    for warning in result.warnings:
        warning_output(warning)

    user_output(
        click.style("✓", fg="green")
        + f" Synced {len(result.capabilities)} capabilit"
        + ("y" if len(result.capabilities) == 1 else "ies")
    )


@click.command("sync")
@click.option("--profile", "profile", default=None, help="Profile to sync (default: active)")
@click.pass_obj
def sync_cmd(ctx: OmniContext, profile: str | None) -> None:
    """Fetch capability sources and write enabled capabilities.

    Examples:

    \b
      # Sync the active profile
      omnidev sync

    \b
      # Sync a named profile
      omnidev sync --profile research
    """
    user_output("Syncing capabilities...")
    try:
        result = run_sync(ctx, profile)
    except (CapabilitySourceError, InvalidConfigError) as e:
        error_output(str(e))
        raise SystemExit(1) from e

    _report(result)
