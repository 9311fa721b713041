"""Materialize capability content into the directories agents read.

- skills    -> .claude/skills/<name>/ (flat skills/foo.md becomes foo/SKILL.md)
- rules     -> .cursor/rules/omnidev-<name>.mdc
- commands  -> .claude/commands/<name>.md
- subagents -> .claude/agents/<name>.md

Files are copied verbatim; their frontmatter is not interpreted here.
"""

import logging
import shutil
from pathlib import Path

from omnidev.capability.registry import LoadedCapability, find_marker_file
from omnidev.capability.wrapping import AGENT_FILES, COMMAND_FILES, ContentItem
from omnidev.paths import get_command_path, get_rule_path, get_skill_dir, get_subagent_path

logger = logging.getLogger(__name__)


def _copy_file(source: Path, target: Path) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(source.read_bytes())
    return target


def write_skill(project_root: Path, skill: ContentItem) -> Path:
    target = get_skill_dir(project_root, skill.name)
    if target.is_symlink() or target.is_file():
        target.unlink()
    elif target.exists():
        shutil.rmtree(target)

    if skill.is_folder:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(skill.path, target)
    else:
        _copy_file(skill.path, target / "SKILL.md")
    return target


def write_rule(project_root: Path, rule: ContentItem) -> Path:
    return _copy_file(rule.path, get_rule_path(project_root, rule.name))


def write_command(project_root: Path, command: ContentItem) -> Path:
    source = find_marker_file(command, COMMAND_FILES)
    return _copy_file(source, get_command_path(project_root, command.name))


def write_subagent(project_root: Path, subagent: ContentItem) -> Path:
    source = find_marker_file(subagent, AGENT_FILES)
    return _copy_file(source, get_subagent_path(project_root, subagent.name))


def materialize_capabilities(
    project_root: Path, capabilities: list[LoadedCapability]
) -> list[Path]:
    """Write every enabled capability's content.

    When two capabilities provide an item of the same kind and name, the one
    enabled later wins and a warning is logged.

    Returns:
        Paths written, in order
    """
    written: list[Path] = []
    owners: dict[tuple[str, str], str] = {}

    def claim(kind: str, name: str, capability_id: str) -> None:
        previous_owner = owners.get((kind, name))
        if previous_owner is not None and previous_owner != capability_id:
            logger.warning(
                "%s %r from %s replaces the one from %s", kind, name, capability_id, previous_owner
            )
        owners[(kind, name)] = capability_id

    for capability in capabilities:
        for skill in capability.skills:
            claim("skill", skill.name, capability.id)
            written.append(write_skill(project_root, skill))
        for rule in capability.rules:
            claim("rule", rule.name, capability.id)
            written.append(write_rule(project_root, rule))
        for command in capability.commands:
            claim("command", command.name, capability.id)
            written.append(write_command(project_root, command))
        for subagent in capability.subagents:
            claim("subagent", subagent.name, capability.id)
            written.append(write_subagent(project_root, subagent))
    return written
