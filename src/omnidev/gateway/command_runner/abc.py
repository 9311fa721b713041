"""Abstract base class for running external commands.

Git is the only external program omnidev talks to. Routing every invocation
through this interface keeps source resolution testable with an in-memory fake.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of a finished command."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner(ABC):
    """Abstract interface for running a command to completion."""

    @abstractmethod
    def run(self, cmd: str, args: list[str], cwd: Path | None) -> CommandResult:
        """Run a command and capture its output.

        A non-zero exit code is reported in the result, never raised. Callers
        decide which failures are fatal.

        Args:
            cmd: Executable name (e.g., "git")
            args: Arguments passed to the executable
            cwd: Working directory, or None to inherit the current one

        Returns:
            CommandResult with exit code and decoded stdout/stderr
        """
        ...
