"""Load enabled capabilities from .omni/capabilities/ for materialization."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from omnidev.capability.descriptor import get_capability_table, read_capability_toml
from omnidev.capability.exceptions import TransportFieldMissingError
from omnidev.capability.mcp import mcp_table
from omnidev.capability.wrapping import (
    CONTENT_DIR_ALIASES,
    ContentItem,
    discover_content,
    find_first_existing_dir,
)
from omnidev.config.models import InvalidConfigError, McpConfig, parse_mcp_config
from omnidev.paths import get_capability_path

logger = logging.getLogger(__name__)

RULE_SUFFIXES = (".md", ".mdc")
DEFINITION_FILE = "definition.md"


@dataclass(frozen=True)
class LoadedCapability:
    """A capability directory read from disk.

    Attributes:
        id: Capability id (directory name under .omni/capabilities/)
        path: Capability directory
        name: Display name from capability.toml, or the id
        version: Declared version, if any
        description: Declared description, if any
        skills: Skills, folder form or flat .md files
        rules: Rule files under rules/
        commands: Slash commands
        subagents: Agent definitions
        mcp: MCP server this capability registers, if any
        docs: definition.md followed by the markdown files under docs/
        gitignore: Patterns the capability adds to .omni/.gitignore
    """

    id: str
    path: Path
    name: str
    version: str | None
    description: str | None
    skills: list[ContentItem]
    rules: list[ContentItem]
    commands: list[ContentItem]
    subagents: list[ContentItem]
    mcp: McpConfig | None
    docs: list[ContentItem] = field(default_factory=list)
    gitignore: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RegistryLoad:
    capabilities: list[LoadedCapability]
    warnings: list[str]


def find_marker_file(item: ContentItem, marker_files: tuple[str, ...]) -> Path:
    """The markdown file holding a content item's text."""
    if not item.is_folder:
        return item.path
    for marker in marker_files:
        candidate = item.path / marker
        if candidate.is_file():
            return candidate
    raise FileNotFoundError(f"No {' / '.join(marker_files)} in {item.path}")


def _discover_rules(directory: Path) -> list[ContentItem]:
    rules_dir = find_first_existing_dir(directory, CONTENT_DIR_ALIASES["rules"])
    if rules_dir is None:
        return []
    return [
        ContentItem(name=entry.stem, path=entry, is_folder=False)
        for entry in sorted(rules_dir.iterdir(), key=lambda p: p.name)
        if entry.is_file() and entry.suffix.lower() in RULE_SUFFIXES
    ]


def _discover_docs(directory: Path, docs_dir: Path | None) -> list[ContentItem]:
    docs: list[ContentItem] = []
    definition = directory / DEFINITION_FILE
    if definition.is_file():
        docs.append(ContentItem(name=definition.stem, path=definition, is_folder=False))
    if docs_dir is not None:
        docs.extend(
            ContentItem(name=entry.stem, path=entry, is_folder=False)
            for entry in sorted(docs_dir.iterdir(), key=lambda p: p.name)
            if entry.is_file() and entry.suffix.lower() == ".md"
        )
    return docs


def _gitignore_patterns(
    capability_id: str, capability: dict[str, Any], warnings: list[str]
) -> list[str]:
    value = capability.get("gitignore")
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        logger.warning("Ignoring gitignore patterns of %s", capability_id)
        warnings.append(f"{capability_id}: capability.gitignore must be a list of strings")
        return []
    return [pattern.strip() for pattern in value if pattern.strip()]


def _optional_str(table: dict[str, Any], key: str) -> str | None:
    value = table.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def _load_mcp(
    capability_id: str, data: dict[str, Any] | None, warnings: list[str]
) -> McpConfig | None:
    if data is None:
        return None
    table = data.get("mcp")
    if not isinstance(table, dict):
        return None
    try:
        mcp = parse_mcp_config(table, f"{capability_id}: mcp")
        mcp_table(mcp)
    except (InvalidConfigError, TransportFieldMissingError) as e:
        logger.warning("Ignoring MCP server of %s: %s", capability_id, e)
        warnings.append(f"{capability_id}: {e}")
        return None
    return mcp


def load_capability(
    capability_id: str, directory: Path, warnings: list[str]
) -> LoadedCapability:
    data = read_capability_toml(directory)
    capability = get_capability_table(data) if data is not None else {}
    content = discover_content(directory)
    return LoadedCapability(
        id=capability_id,
        path=directory,
        name=_optional_str(capability, "name") or capability_id,
        version=_optional_str(capability, "version"),
        description=_optional_str(capability, "description"),
        skills=content.skills,
        rules=_discover_rules(directory),
        commands=content.commands,
        subagents=content.agents,
        mcp=_load_mcp(capability_id, data, warnings),
        docs=_discover_docs(directory, content.docs_dir),
        gitignore=_gitignore_patterns(capability_id, capability, warnings),
    )


def load_enabled_capabilities(project_root: Path, enabled_ids: list[str]) -> RegistryLoad:
    """Load every enabled capability that is present on disk.

    Enabled ids with no directory (not fetched, or failed to fetch) produce a
    warning and are left out.
    """
    capabilities: list[LoadedCapability] = []
    warnings: list[str] = []
    for capability_id in enabled_ids:
        directory = get_capability_path(project_root, capability_id)
        if not directory.is_dir():
            logger.warning("Capability not found: %s", capability_id)
            warnings.append(f"Capability not found: {capability_id}")
            continue
        capabilities.append(load_capability(capability_id, directory, warnings))
    return RegistryLoad(capabilities=capabilities, warnings=warnings)
