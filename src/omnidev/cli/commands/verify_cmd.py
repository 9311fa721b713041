"""Verify command: compare installed capabilities with the lock file."""

import click

from omnidev.capability.lock import load_lock_file, verify_integrity
from omnidev.cli.output import user_output
from omnidev.context import OmniContext


@click.command("verify")
@click.pass_obj
def verify_cmd(ctx: OmniContext) -> None:
    """Check every locked capability against what is on disk.

    Exits non-zero when any capability differs from its lock entry.
    """
    lock = load_lock_file(ctx.project_root)
    if not lock.capabilities:
        user_output("No locked capabilities")
        return

    problems = 0
    for capability_id, entry in lock.capabilities.items():
        problem = verify_integrity(ctx.project_root, capability_id, entry, ctx.runner)
        if problem is None:
            user_output(f"{click.style('✓', fg='green')} {capability_id} {entry.version}")
            continue
        problems += 1
        user_output(f"{click.style('✗', fg='red')} {capability_id}: {problem}")

    if problems:
        raise SystemExit(1)
