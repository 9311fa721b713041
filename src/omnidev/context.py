"""Dependencies threaded through omnidev commands."""

from dataclasses import dataclass
from pathlib import Path

from omnidev.capability.plugins import EntryPointPluginLoader, NullPluginLoader, PluginLoader
from omnidev.gateway.command_runner.abc import CommandRunner
from omnidev.gateway.command_runner.real import RealCommandRunner
from omnidev.gateway.time.abc import Time
from omnidev.gateway.time.real import RealTime


@dataclass(frozen=True)
class OmniContext:
    """Immutable context created at the CLI entry point.

    Every path below the CLI is derived from project_root; nothing consults
    the process working directory.
    """

    project_root: Path
    runner: CommandRunner
    time: Time
    plugin_loader: PluginLoader

    @staticmethod
    def for_test(
        project_root: Path,
        runner: CommandRunner | None = None,
        time: Time | None = None,
        plugin_loader: PluginLoader | None = None,
    ) -> "OmniContext":
        """Create a context with in-memory fakes for anything not supplied."""
        from omnidev.gateway.command_runner.fake import FakeCommandRunner
        from omnidev.gateway.time.fake import FakeTime

        return OmniContext(
            project_root=project_root,
            runner=runner if runner is not None else FakeCommandRunner(),
            time=time if time is not None else FakeTime(),
            plugin_loader=plugin_loader if plugin_loader is not None else NullPluginLoader(),
        )


def create_context(project_root: Path) -> OmniContext:
    """Create the production context with real implementations."""
    return OmniContext(
        project_root=project_root,
        runner=RealCommandRunner(),
        time=RealTime(),
        plugin_loader=EntryPointPluginLoader(),
    )
