"""Fake CommandRunner for testing."""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import NamedTuple, TypeVar

from omnidev.gateway.command_runner.abc import CommandResult, CommandRunner


T = TypeVar("T")


class RecordedCommand(NamedTuple):
    """Record of a command invocation.

    Attributes:
        argv: Executable followed by its arguments
        cwd: Working directory the command was run in
    """

    argv: tuple[str, ...]
    cwd: Path | None


# Side effects receive the full argv and cwd so fakes of commands like
# `git clone` can create the directories the real command would.
SideEffect = Callable[[tuple[str, ...], Path | None], None]


class FakeCommandRunner(CommandRunner):
    """In-memory fake implementation of CommandRunner.

    Constructor Injection:
    ---------------------
    - results: Mapping of argv prefix -> CommandResult. The longest matching
      prefix wins. Unmatched commands succeed with empty output.
    - side_effects: Mapping of argv prefix -> callable invoked before the
      result is returned (e.g., create a clone directory).

    Mutation Tracking:
    -----------------
    - commands: Every RecordedCommand in invocation order

    Examples:
    ---------
        runner = FakeCommandRunner(
            results={("git", "rev-parse", "HEAD"): CommandResult(0, "abc123\\n", "")},
        )
        runner.run("git", ["rev-parse", "HEAD"], repo)
        assert runner.commands[0].argv == ("git", "rev-parse", "HEAD")
    """

    def __init__(
        self,
        *,
        results: Mapping[tuple[str, ...], CommandResult] | None = None,
        side_effects: Mapping[tuple[str, ...], SideEffect] | None = None,
    ) -> None:
        self._results = dict(results or {})
        self._side_effects = dict(side_effects or {})
        self._commands: list[RecordedCommand] = []

    @property
    def commands(self) -> list[RecordedCommand]:
        return list(self._commands)

    def argvs(self) -> list[tuple[str, ...]]:
        """Return just the argv of every recorded command."""
        return [command.argv for command in self._commands]

    def set_result(self, prefix: tuple[str, ...], result: CommandResult) -> None:
        """Replace the configured result for a prefix between test phases."""
        self._results[prefix] = result

    def run(self, cmd: str, args: list[str], cwd: Path | None) -> CommandResult:
        argv = (cmd, *args)
        self._commands.append(RecordedCommand(argv=argv, cwd=cwd))

        side_effect = _longest_prefix_match(self._side_effects, argv)
        if side_effect is not None:
            side_effect(argv, cwd)

        result = _longest_prefix_match(self._results, argv)
        if result is None:
            return CommandResult(exit_code=0, stdout="", stderr="")
        return result


def _longest_prefix_match(table: Mapping[tuple[str, ...], T], argv: tuple[str, ...]) -> T | None:
    best_key: tuple[str, ...] | None = None
    for key in table:
        if argv[: len(key)] != key:
            continue
        if best_key is None or len(key) > len(best_key):
            best_key = key
    if best_key is None:
        return None
    return table[best_key]
