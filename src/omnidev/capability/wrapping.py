"""Wrapping of repositories that ship agent content without a capability.toml.

Many repositories publish skills, commands or agents in the layout Claude
plugins use but have no omnidev descriptor. Such directories are "wrapped":
their folder names are normalized, their content is discovered and a
capability.toml is synthesized for them.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from omnidev.capability.descriptor import has_authored_capability_toml, render_descriptor

logger = logging.getLogger(__name__)

# Recognized content directories, preferred spelling first.
CONTENT_DIR_ALIASES: dict[str, tuple[str, ...]] = {
    "skills": ("skills", "skill"),
    "agents": ("agents", "agent", "subagents", "subagent"),
    "commands": ("commands", "command"),
    "rules": ("rules", "rule"),
    "docs": ("docs", "doc", "documentation"),
}

# Marker files for folder-form content items.
SKILL_FILES = ("SKILL.md", "skill.md", "Skill.md")
AGENT_FILES = ("AGENT.md", "agent.md", "Agent.md", "SUBAGENT.md", "subagent.md")
COMMAND_FILES = ("COMMAND.md", "command.md", "Command.md")

FOLDER_RENAMES = (
    ("skill", "skills"),
    ("command", "commands"),
    ("rule", "rules"),
    ("agent", "agents"),
    ("subagent", "subagents"),
)

PLUGIN_JSON_PATH = Path(".claude-plugin") / "plugin.json"
README_DESCRIPTION_LIMIT = 200

GENERATED_HEADER = [
    "Auto-generated by omnidev - DO NOT EDIT",
    "This capability was wrapped from an external repository",
]


@dataclass(frozen=True)
class ContentItem:
    """A skill, agent or command found in a wrapped directory.

    Attributes:
        name: Folder name, or file name without the .md suffix
        path: Folder or file holding the item
        is_folder: True for folder form (skills/foo/SKILL.md)
    """

    name: str
    path: Path
    is_folder: bool


@dataclass(frozen=True)
class DiscoveredContent:
    skills: list[ContentItem]
    agents: list[ContentItem]
    commands: list[ContentItem]
    rules_dir: Path | None
    docs_dir: Path | None


@dataclass(frozen=True)
class PluginAuthor:
    name: str | None
    email: str | None


@dataclass(frozen=True)
class PluginMetadata:
    """Fields read from .claude-plugin/plugin.json."""

    name: str | None
    version: str | None
    description: str | None
    author: PluginAuthor | None


@dataclass(frozen=True)
class WrapProvenance:
    """Where wrapped content came from, recorded under [capability.metadata].

    Git sources set repository and commit; file sources set source_path and
    content_hash.
    """

    repository: str | None = None
    commit: str | None = None
    source_path: str | None = None
    content_hash: str | None = None


def find_first_existing_dir(directory: Path, names: tuple[str, ...]) -> Path | None:
    for name in names:
        candidate = directory / name
        if candidate.is_dir():
            return candidate
    return None


def should_wrap(directory: Path) -> bool:
    """Whether a fetched directory needs a synthesized capability.toml.

    True when there is no hand-authored descriptor and the directory has a
    plugin.json or any recognized content directory.
    """
    if has_authored_capability_toml(directory):
        return False
    if (directory / PLUGIN_JSON_PATH).is_file():
        return True
    for names in CONTENT_DIR_ALIASES.values():
        if find_first_existing_dir(directory, names) is not None:
            return True
    return False


def normalize_folder_names(directory: Path) -> list[tuple[str, str]]:
    """Rename singular content folders to their plural form.

    A rename happens only when the plural does not already exist, so nothing
    is ever overwritten or deleted.

    Returns:
        (from, to) pairs that were renamed
    """
    renamed: list[tuple[str, str]] = []
    for singular, plural in FOLDER_RENAMES:
        source = directory / singular
        target = directory / plural
        if not source.is_dir() or target.exists():
            continue
        try:
            source.rename(target)
        except OSError as e:
            logger.warning("Failed to rename %s to %s: %s", source, target, e)
            continue
        renamed.append((singular, plural))
    return renamed


def _find_content_items(directory: Path, marker_files: tuple[str, ...]) -> list[ContentItem]:
    items: list[ContentItem] = []
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            if any((entry / marker).is_file() for marker in marker_files):
                items.append(ContentItem(name=entry.name, path=entry, is_folder=True))
        elif entry.is_file() and entry.suffix.lower() == ".md":
            items.append(ContentItem(name=entry.stem, path=entry, is_folder=False))
    return items


def _discover_items(directory: Path, kind: str, marker_files: tuple[str, ...]) -> list[ContentItem]:
    content_dir = find_first_existing_dir(directory, CONTENT_DIR_ALIASES[kind])
    if content_dir is None:
        return []
    return _find_content_items(content_dir, marker_files)


def discover_content(directory: Path) -> DiscoveredContent:
    return DiscoveredContent(
        skills=_discover_items(directory, "skills", SKILL_FILES),
        agents=_discover_items(directory, "agents", AGENT_FILES),
        commands=_discover_items(directory, "commands", COMMAND_FILES),
        rules_dir=find_first_existing_dir(directory, CONTENT_DIR_ALIASES["rules"]),
        docs_dir=find_first_existing_dir(directory, CONTENT_DIR_ALIASES["docs"]),
    )


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def read_plugin_json(directory: Path) -> PluginMetadata | None:
    path = directory / PLUGIN_JSON_PATH
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Failed to parse plugin.json in %s: %s", directory, e)
        return None
    if not isinstance(data, dict):
        return None

    author: PluginAuthor | None = None
    raw_author = data.get("author")
    if isinstance(raw_author, dict):
        author = PluginAuthor(
            name=_optional_str(raw_author, "name"),
            email=_optional_str(raw_author, "email"),
        )

    return PluginMetadata(
        name=_optional_str(data, "name"),
        version=_optional_str(data, "version"),
        description=_optional_str(data, "description"),
        author=author,
    )


def read_readme_description(directory: Path) -> str | None:
    """First prose paragraph of README.md, capped at 200 characters.

    Headings, images, blank lines and fenced code blocks are skipped.
    """
    path = directory / "README.md"
    if not path.is_file():
        return None
    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        logger.warning("Failed to read README.md in %s: %s", directory, e)
        return None

    description = ""
    in_code_block = False
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("```"):
            in_code_block = not in_code_block
            continue
        if in_code_block or not stripped:
            continue
        if stripped.startswith("#") or stripped.startswith("!["):
            continue
        description = f"{description} {stripped}" if description else stripped
        if len(description) >= README_DESCRIPTION_LIMIT:
            break

    if len(description) > README_DESCRIPTION_LIMIT:
        description = description[: README_DESCRIPTION_LIMIT - 3] + "..."
    return description or None


def _pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def describe_content(content: DiscoveredContent) -> str | None:
    """Summarize discovered items, e.g. "3 skills, 1 command"."""
    parts: list[str] = []
    if content.skills:
        parts.append(_pluralize(len(content.skills), "skill"))
    if content.agents:
        parts.append(_pluralize(len(content.agents), "agent"))
    if content.commands:
        parts.append(_pluralize(len(content.commands), "command"))
    if not parts:
        return None
    return ", ".join(parts)


def generate_capability_toml(
    capability_id: str,
    directory: Path,
    source: str,
    version: str,
    content: DiscoveredContent,
    provenance: WrapProvenance,
) -> str:
    """Render the synthesized descriptor for a wrapped directory.

    Description precedence: plugin.json, README.md, content counts, and
    finally "Wrapped from <source>".
    """
    plugin = read_plugin_json(directory)

    description = None
    if plugin is not None:
        description = plugin.description
    if description is None:
        description = read_readme_description(directory)
    if description is None:
        description = describe_content(content)
    if description is None:
        description = f"Wrapped from {source}"

    name = plugin.name if plugin is not None and plugin.name else f"{capability_id} (wrapped)"

    capability: dict[str, Any] = {
        "id": capability_id,
        "name": name,
        "version": version,
        "description": description,
    }

    if plugin is not None and plugin.author is not None:
        author = {
            key: value
            for key, value in (("name", plugin.author.name), ("email", plugin.author.email))
            if value is not None
        }
        if author:
            capability["author"] = author

    metadata: dict[str, Any] = {"wrapped": True}
    for key in ("repository", "commit", "source_path", "content_hash"):
        value = getattr(provenance, key)
        if value is not None:
            metadata[key] = value
    capability["metadata"] = metadata

    return render_descriptor(GENERATED_HEADER, {"capability": capability})
