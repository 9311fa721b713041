"""Tests for capability sync hooks."""

from pathlib import Path

from omnidev.capability.plugins import (
    CapabilityPlugin,
    EntryPointPluginLoader,
    NullPluginLoader,
    StaticPluginLoader,
    SyncHookContext,
    run_sync_hooks,
)
from omnidev.capability.registry import LoadedCapability


def _loaded(capability_id: str, tmp_path: Path) -> LoadedCapability:
    return LoadedCapability(
        id=capability_id,
        path=tmp_path / capability_id,
        name=capability_id,
        version=None,
        description=None,
        skills=[],
        rules=[],
        commands=[],
        subagents=[],
        mcp=None,
    )


class RecordingPlugin(CapabilityPlugin):
    def __init__(self) -> None:
        self.contexts: list[SyncHookContext] = []

    def sync(self, context: SyncHookContext) -> None:
        self.contexts.append(context)


class FailingPlugin(CapabilityPlugin):
    def sync(self, context: SyncHookContext) -> None:
        raise RuntimeError("boom")


def test_static_loader_runs_matching_hooks(tmp_path: Path) -> None:
    plugin = RecordingPlugin()
    capabilities = [_loaded("tasks", tmp_path), _loaded("other", tmp_path)]

    warnings = run_sync_hooks(tmp_path, capabilities, StaticPluginLoader({"tasks": plugin}))

    assert warnings == []
    assert [context.capability.id for context in plugin.contexts] == ["tasks"]
    assert plugin.contexts[0].project_root == tmp_path


def test_failing_hook_becomes_warning_and_others_still_run(tmp_path: Path) -> None:
    recorder = RecordingPlugin()
    loader = StaticPluginLoader({"bad": FailingPlugin(), "good": recorder})

    warnings = run_sync_hooks(
        tmp_path, [_loaded("bad", tmp_path), _loaded("good", tmp_path)], loader
    )

    assert warnings == ["Sync hook of bad failed: boom"]
    assert len(recorder.contexts) == 1


def test_default_hook_is_a_no_op(tmp_path: Path) -> None:
    class Quiet(CapabilityPlugin):
        pass

    warnings = run_sync_hooks(
        tmp_path, [_loaded("quiet", tmp_path)], StaticPluginLoader({"quiet": Quiet()})
    )

    assert warnings == []


def test_null_loader_finds_nothing(tmp_path: Path) -> None:
    assert NullPluginLoader().load(_loaded("tasks", tmp_path)) is None


def test_entry_point_loader_without_registrations(tmp_path: Path) -> None:
    loader = EntryPointPluginLoader(group="omnidev.tests.no-such-group")

    assert loader.load(_loaded("tasks", tmp_path)) is None

