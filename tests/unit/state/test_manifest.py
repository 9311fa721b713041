"""Tests for the resource manifest and stale artifact cleanup."""

import json
from pathlib import Path

import pytest

from omnidev.capability.exceptions import InvalidManifestError
from omnidev.capability.registry import LoadedCapability
from omnidev.capability.wrapping import ContentItem
from omnidev.config.models import McpConfig
from omnidev.paths import (
    get_command_path,
    get_manifest_path,
    get_rule_path,
    get_skill_dir,
    get_subagent_path,
)
from omnidev.state.manifest import (
    CapabilityResources,
    ResourceManifest,
    build_manifest,
    cleanup_stale_resources,
    empty_manifest,
    load_manifest,
    parse_manifest,
    save_manifest,
)
from tests.helpers import write_tree

NOW = "2025-01-01T12:00:00Z"


def _manifest(capabilities: dict[str, CapabilityResources]) -> ResourceManifest:
    return ResourceManifest(version=1, synced_at=NOW, capabilities=capabilities)


def _item(name: str) -> ContentItem:
    return ContentItem(name=name, path=Path(f"/nowhere/{name}"), is_folder=False)


def test_missing_manifest_loads_empty(tmp_project: Path) -> None:
    manifest = load_manifest(tmp_project)

    assert manifest.capabilities == {}


def test_round_trip_uses_camel_case_timestamp(tmp_project: Path) -> None:
    manifest = _manifest({"tasks": CapabilityResources(skills=["plan"], mcps=["tasks"])})

    save_manifest(tmp_project, manifest)

    raw = json.loads(get_manifest_path(tmp_project).read_text(encoding="utf-8"))
    assert raw["syncedAt"] == NOW
    assert raw["capabilities"]["tasks"]["skills"] == ["plan"]
    assert load_manifest(tmp_project) == manifest


def test_unreadable_manifest_loads_empty(tmp_project: Path) -> None:
    path = get_manifest_path(tmp_project)
    path.parent.mkdir(parents=True)
    path.write_text("{not json", encoding="utf-8")

    assert load_manifest(tmp_project).capabilities == {}


@pytest.mark.parametrize("version", [None, [1], "1", True, 1.5])
def test_non_integer_version_loads_empty(tmp_project: Path, version: object) -> None:
    path = get_manifest_path(tmp_project)
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"version": version, "capabilities": {}}), encoding="utf-8")

    assert load_manifest(tmp_project) == empty_manifest("")


@pytest.mark.parametrize("name", ["", ".", "..", "../etc", "a\\b"])
def test_unsafe_names_are_rejected(name: str) -> None:
    content = json.dumps({"version": 1, "capabilities": {"x": {"skills": [name]}}})

    with pytest.raises(InvalidManifestError, match="invalid name"):
        parse_manifest(content)


def test_docs_are_recorded_and_optional_on_read() -> None:
    content = json.dumps({"version": 1, "capabilities": {"x": {"skills": ["a"]}}})

    assert parse_manifest(content).capabilities["x"] == CapabilityResources(skills=["a"])

    capability = LoadedCapability(
        id="x",
        path=Path("/nowhere"),
        name="x",
        version=None,
        description=None,
        skills=[],
        rules=[],
        commands=[],
        subagents=[],
        mcp=None,
        docs=[_item("definition"), _item("guide")],
    )
    assert build_manifest([capability], NOW).capabilities["x"].docs == ["definition", "guide"]


def test_build_manifest_records_artifact_names() -> None:
    capability = LoadedCapability(
        id="tasks",
        path=Path("/nowhere"),
        name="tasks",
        version=None,
        description=None,
        skills=[_item("plan")],
        rules=[_item("style")],
        commands=[_item("ship")],
        subagents=[_item("reviewer")],
        mcp=McpConfig(command="tasks-mcp"),
    )

    manifest = build_manifest([capability], NOW)

    assert manifest.capabilities == {
        "tasks": CapabilityResources(
            skills=["plan"],
            rules=["style"],
            commands=["ship"],
            subagents=["reviewer"],
            mcps=["tasks"],
        )
    }


class TestCleanup:
    def test_disabled_capability_artifacts_are_deleted(self, tmp_project: Path) -> None:
        write_tree(get_skill_dir(tmp_project, "foo"), {"SKILL.md": "foo"})
        write_tree(get_skill_dir(tmp_project, "bar"), {"SKILL.md": "bar"})
        previous = _manifest({"old": CapabilityResources(skills=["foo"])})

        result = cleanup_stale_resources(tmp_project, previous, {"new"})

        assert result.deleted_skills == ["foo"]
        assert result.total == 1
        assert not get_skill_dir(tmp_project, "foo").exists()
        assert get_skill_dir(tmp_project, "bar").exists()

    def test_enabled_capability_is_untouched(self, tmp_project: Path) -> None:
        write_tree(get_skill_dir(tmp_project, "foo"), {"SKILL.md": "foo"})
        previous = _manifest({"kept": CapabilityResources(skills=["foo"])})

        result = cleanup_stale_resources(tmp_project, previous, {"kept"})

        assert result.total == 0
        assert get_skill_dir(tmp_project, "foo").exists()

    def test_every_artifact_kind_is_removed(self, tmp_project: Path) -> None:
        for path in (
            get_rule_path(tmp_project, "style"),
            get_command_path(tmp_project, "ship"),
            get_subagent_path(tmp_project, "reviewer"),
        ):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("x", encoding="utf-8")
        previous = _manifest(
            {
                "old": CapabilityResources(
                    rules=["style"], commands=["ship"], subagents=["reviewer"]
                )
            }
        )

        result = cleanup_stale_resources(tmp_project, previous, set())

        assert result.deleted_rules == ["style"]
        assert result.deleted_commands == ["ship"]
        assert result.deleted_subagents == ["reviewer"]
        assert not get_rule_path(tmp_project, "style").exists()

    def test_already_missing_artifacts_are_skipped(self, tmp_project: Path) -> None:
        previous = _manifest({"old": CapabilityResources(skills=["gone"], rules=["gone"])})

        result = cleanup_stale_resources(tmp_project, previous, set())

        assert result.total == 0

    def test_unlisted_files_survive(self, tmp_project: Path) -> None:
        handwritten = get_command_path(tmp_project, "mine")
        handwritten.parent.mkdir(parents=True)
        handwritten.write_text("mine", encoding="utf-8")
        previous = _manifest({"old": CapabilityResources(commands=["ship"])})

        cleanup_stale_resources(tmp_project, previous, set())

        assert handwritten.exists()
