"""Production implementation of CommandRunner using subprocess."""

import logging
import os
import subprocess
from pathlib import Path

from omnidev.gateway.command_runner.abc import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


def copied_env_for_git_subprocess() -> dict[str, str]:
    """Copy of the current environment with interactive git prompts disabled.

    A credential prompt would otherwise block a sync forever since no timeout
    is applied to git invocations.
    """
    env = os.environ.copy()
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


class RealCommandRunner(CommandRunner):
    """Runs commands with subprocess.run and captures text output."""

    def run(self, cmd: str, args: list[str], cwd: Path | None) -> CommandResult:
        logger.debug("running %s %s (cwd=%s)", cmd, " ".join(args), cwd)
        completed = subprocess.run(
            [cmd, *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
            env=copied_env_for_git_subprocess(),
        )
        return CommandResult(
            exit_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
