"""End-to-end tests of the sync pipeline using file:// sources."""

import json
from pathlib import Path

import pytest

from omnidev.capability.exceptions import CapabilityIdCollisionError
from omnidev.capability.plugins import CapabilityPlugin, StaticPluginLoader, SyncHookContext
from omnidev.context import OmniContext
from omnidev.gateway.time.fake import FakeTime
from omnidev.paths import (
    get_command_path,
    get_instructions_path,
    get_lock_file_path,
    get_manifest_path,
    get_mcp_json_path,
    get_omni_gitignore_path,
    get_rule_path,
    get_skill_dir,
)
from omnidev.state.manifest import load_manifest
from omnidev.sync import run_sync
from tests.helpers import write_tree

OMNI_TOML = """\
[capabilities.sources]
tasks = "file://./caps/tasks"
notes = "file://./caps/notes"

[profiles.default]
capabilities = ["tasks", "notes"]

[profiles.research]
capabilities = ["tasks", "ghost"]

[mcps.db]
command = "db-mcp"
"""


@pytest.fixture
def project(tmp_project: Path) -> Path:
    (tmp_project / "omni.toml").write_text(OMNI_TOML, encoding="utf-8")
    write_tree(
        tmp_project / "caps" / "tasks",
        {"skills/plan/SKILL.md": "plan", "commands/ship.md": "ship"},
    )
    write_tree(
        tmp_project / "caps" / "notes",
        {"skills/jot/SKILL.md": "jot", "rules/style.md": "style"},
    )
    return tmp_project


def test_first_sync_materializes_everything(project: Path) -> None:
    result = run_sync(OmniContext.for_test(project), None)

    assert [capability.id for capability in result.capabilities] == ["tasks", "notes", "db"]
    assert (get_skill_dir(project, "plan") / "SKILL.md").read_text() == "plan"
    assert (get_skill_dir(project, "jot") / "SKILL.md").read_text() == "jot"
    assert get_command_path(project, "ship").exists()
    assert get_rule_path(project, "style").exists()
    assert result.mcp_servers == ["db"]
    assert json.loads(get_mcp_json_path(project).read_text())["mcpServers"] == {
        "db": {"command": "db-mcp"}
    }
    assert result.manifest_written
    assert get_manifest_path(project).exists()
    assert get_lock_file_path(project).exists()
    assert result.warnings == []


def test_switching_profile_cleans_up_disabled_capability(project: Path) -> None:
    time = FakeTime()
    run_sync(OmniContext.for_test(project, time=time), None)
    time.advance(60)

    result = run_sync(OmniContext.for_test(project, time=time), "research")

    assert result.cleanup.deleted_skills == ["jot"]
    assert result.cleanup.deleted_rules == ["style"]
    assert not get_skill_dir(project, "jot").exists()
    assert not get_rule_path(project, "style").exists()
    assert get_skill_dir(project, "plan").exists()
    assert result.warnings == ["Capability not found: ghost"]
    assert result.manifest_written


def test_repeat_sync_leaves_manifest_alone(project: Path) -> None:
    run_sync(OmniContext.for_test(project), None)
    manifest_text = get_manifest_path(project).read_text()

    result = run_sync(OmniContext.for_test(project, time=FakeTime()), None)

    assert not result.manifest_written
    assert not result.fetch.lock_written
    assert result.cleanup.total == 0
    assert get_manifest_path(project).read_text() == manifest_text


def test_instructions_and_gitignore_follow_enabled_capabilities(project: Path) -> None:
    write_tree(
        project / "caps" / "notes",
        {
            "capability.toml": '[capability]\nid = "notes"\ngitignore = ["notes.sqlite"]\n',
            "definition.md": "Notes keep context.\n",
        },
    )
    time = FakeTime()

    first = run_sync(OmniContext.for_test(project, time=time), None)

    instructions = first.instructions.read_text(encoding="utf-8")
    assert first.instructions == get_instructions_path(project)
    assert "#### definition (from notes)\n\nNotes keep context." in instructions
    assert "#### style (from notes)\n\nstyle" in instructions
    assert "# notes capability\nnotes.sqlite\n" in get_omni_gitignore_path(project).read_text()
    assert load_manifest(project).capabilities["notes"].docs == ["definition"]

    time.advance(60)
    run_sync(OmniContext.for_test(project, time=time), "research")

    assert "Notes keep context." not in get_instructions_path(project).read_text()
    assert "notes.sqlite" not in get_omni_gitignore_path(project).read_text()


def test_removed_mcp_leaves_mcp_json(project: Path) -> None:
    run_sync(OmniContext.for_test(project), None)
    (project / "omni.toml").write_text(OMNI_TOML.split("[mcps.db]")[0], encoding="utf-8")

    result = run_sync(OmniContext.for_test(project), None)

    assert result.fetch.mcp.removed == ["db"]
    assert json.loads(get_mcp_json_path(project).read_text())["mcpServers"] == {}


def test_sync_hooks_run_and_failures_are_warnings(project: Path) -> None:
    seen: list[str] = []

    class Recorder(CapabilityPlugin):
        def sync(self, context: SyncHookContext) -> None:
            seen.append(context.capability.id)

    class Broken(CapabilityPlugin):
        def sync(self, context: SyncHookContext) -> None:
            raise ValueError("bad hook")

    loader = StaticPluginLoader({"tasks": Recorder(), "notes": Broken()})

    result = run_sync(OmniContext.for_test(project, plugin_loader=loader), None)

    assert seen == ["tasks"]
    assert result.warnings == ["Sync hook of notes failed: bad hook"]


def test_failing_source_is_a_warning(project: Path) -> None:
    (project / "omni.toml").write_text(
        OMNI_TOML.replace("file://./caps/notes", "file://./caps/missing"), encoding="utf-8"
    )

    result = run_sync(OmniContext.for_test(project), None)

    assert result.warnings[0].startswith("Failed to fetch notes:")
    assert "Capability not found: notes" in result.warnings


def test_config_collision_propagates(project: Path) -> None:
    (project / "omni.toml").write_text(
        OMNI_TOML + '\n[mcps.tasks]\ncommand = "x"\n', encoding="utf-8"
    )

    with pytest.raises(CapabilityIdCollisionError):
        run_sync(OmniContext.for_test(project), None)
