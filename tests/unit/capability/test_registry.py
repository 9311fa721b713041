"""Tests for loading enabled capabilities from .omni/capabilities/."""

from pathlib import Path

import pytest

from omnidev.capability.registry import (
    find_marker_file,
    load_capability,
    load_enabled_capabilities,
)
from omnidev.capability.wrapping import COMMAND_FILES, ContentItem
from omnidev.config.models import McpConfig
from omnidev.paths import get_capability_path
from tests.helpers import write_tree


def _capability(project_root: Path, capability_id: str, files: dict[str, str]) -> Path:
    directory = get_capability_path(project_root, capability_id)
    write_tree(directory, files)
    return directory


def test_load_capability_reads_descriptor_and_content(tmp_project: Path) -> None:
    directory = _capability(
        tmp_project,
        "tasks",
        {
            "capability.toml": (
                '[capability]\nid = "tasks"\nname = "Tasks"\n'
                'version = "2.0.0"\ndescription = "Task tracking"\n'
            ),
            "skills/plan/SKILL.md": "plan",
            "skills/notes.md": "notes",
            "rules/style.md": "style",
            "rules/extra.mdc": "extra",
            "rules/ignore.txt": "no",
            "commands/ship.md": "ship",
            "agents/reviewer/AGENT.md": "review",
        },
    )
    warnings: list[str] = []

    capability = load_capability("tasks", directory, warnings)

    assert capability.name == "Tasks"
    assert capability.version == "2.0.0"
    assert capability.description == "Task tracking"
    assert [skill.name for skill in capability.skills] == ["notes", "plan"]
    assert [rule.name for rule in capability.rules] == ["extra", "style"]
    assert [command.name for command in capability.commands] == ["ship"]
    assert [agent.name for agent in capability.subagents] == ["reviewer"]
    assert capability.mcp is None
    assert warnings == []


def test_load_capability_without_descriptor_uses_id(tmp_project: Path) -> None:
    directory = _capability(tmp_project, "bare", {"skills/x/SKILL.md": "x"})

    capability = load_capability("bare", directory, [])

    assert capability.name == "bare"
    assert capability.version is None


def test_mcp_table_is_loaded(tmp_project: Path) -> None:
    directory = _capability(
        tmp_project,
        "db",
        {
            "capability.toml": (
                '[capability]\nid = "db"\n\n[mcp]\ncommand = "db-mcp"\nargs = ["--ro"]\n'
            )
        },
    )

    capability = load_capability("db", directory, [])

    assert capability.mcp == McpConfig(command="db-mcp", args=["--ro"])


def test_invalid_mcp_table_becomes_warning(tmp_project: Path) -> None:
    directory = _capability(
        tmp_project,
        "api",
        {"capability.toml": '[capability]\nid = "api"\n\n[mcp]\ntransport = "http"\n'},
    )
    warnings: list[str] = []

    capability = load_capability("api", directory, warnings)

    assert capability.mcp is None
    assert warnings == ["api: http transport requires 'url'"]


def test_docs_are_definition_then_markdown_under_docs(tmp_project: Path) -> None:
    directory = _capability(
        tmp_project,
        "tasks",
        {
            "definition.md": "# Tasks",
            "docs/usage.md": "usage",
            "docs/api.md": "api",
            "docs/diagram.png": "png",
            "docs/nested/deep.md": "deep",
        },
    )

    capability = load_capability("tasks", directory, [])

    assert [doc.name for doc in capability.docs] == ["definition", "api", "usage"]
    assert capability.docs[0].path == directory / "definition.md"


def test_capability_without_docs(tmp_project: Path) -> None:
    directory = _capability(tmp_project, "bare", {"rules/a.md": "a"})

    assert load_capability("bare", directory, []).docs == []


def test_gitignore_patterns_are_loaded(tmp_project: Path) -> None:
    directory = _capability(
        tmp_project,
        "tasks",
        {"capability.toml": '[capability]\nid = "tasks"\ngitignore = ["tasks/", " *.db ", ""]\n'},
    )

    capability = load_capability("tasks", directory, [])

    assert capability.gitignore == ["tasks/", "*.db"]


def test_invalid_gitignore_becomes_warning(tmp_project: Path) -> None:
    directory = _capability(
        tmp_project,
        "tasks",
        {"capability.toml": '[capability]\nid = "tasks"\ngitignore = "tasks/"\n'},
    )
    warnings: list[str] = []

    capability = load_capability("tasks", directory, warnings)

    assert capability.gitignore == []
    assert warnings == ["tasks: capability.gitignore must be a list of strings"]


def test_missing_capabilities_are_reported(tmp_project: Path) -> None:
    _capability(tmp_project, "present", {"rules/a.md": "a"})

    load = load_enabled_capabilities(tmp_project, ["present", "absent"])

    assert [capability.id for capability in load.capabilities] == ["present"]
    assert load.warnings == ["Capability not found: absent"]


def test_find_marker_file(tmp_path: Path) -> None:
    write_tree(tmp_path, {"commands/ship/command.md": "ship", "commands/flat.md": "flat"})

    folder = ContentItem(name="ship", path=tmp_path / "commands" / "ship", is_folder=True)
    flat = ContentItem(name="flat", path=tmp_path / "commands" / "flat.md", is_folder=False)

    assert find_marker_file(folder, COMMAND_FILES) == tmp_path / "commands" / "ship" / "command.md"
    assert find_marker_file(flat, COMMAND_FILES) == tmp_path / "commands" / "flat.md"


def test_find_marker_file_missing(tmp_path: Path) -> None:
    (tmp_path / "empty").mkdir()
    item = ContentItem(name="empty", path=tmp_path / "empty", is_folder=True)

    with pytest.raises(FileNotFoundError):
        find_marker_file(item, COMMAND_FILES)
