"""Resource manifest: which generated artifacts belong to which capability.

The manifest written by one sync is the "previous" manifest of the next.
Comparing it with the currently enabled ids tells the reconciler exactly
which artifacts to delete, without scanning output directories and without
touching files omnidev did not create.
"""

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from omnidev.capability.exceptions import InvalidManifestError
from omnidev.capability.registry import LoadedCapability
from omnidev.paths import (
    get_command_path,
    get_manifest_path,
    get_rule_path,
    get_skill_dir,
    get_subagent_path,
)

logger = logging.getLogger(__name__)

MANIFEST_VERSION = 1


@dataclass(frozen=True)
class CapabilityResources:
    skills: list[str] = field(default_factory=list)
    rules: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)
    subagents: list[str] = field(default_factory=list)
    mcps: list[str] = field(default_factory=list)
    docs: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ResourceManifest:
    """Snapshot of the artifacts materialized by one sync.

    Attributes:
        version: Schema version
        synced_at: ISO 8601 timestamp of the sync
        capabilities: Capability id -> resources it materialized
    """

    version: int
    synced_at: str
    capabilities: dict[str, CapabilityResources]


@dataclass(frozen=True)
class CleanupResult:
    deleted_skills: list[str] = field(default_factory=list)
    deleted_rules: list[str] = field(default_factory=list)
    deleted_commands: list[str] = field(default_factory=list)
    deleted_subagents: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.deleted_skills)
            + len(self.deleted_rules)
            + len(self.deleted_commands)
            + len(self.deleted_subagents)
        )


def empty_manifest(synced_at: str) -> ResourceManifest:
    return ResourceManifest(version=MANIFEST_VERSION, synced_at=synced_at, capabilities={})


def build_manifest(capabilities: list[LoadedCapability], synced_at: str) -> ResourceManifest:
    """Project loaded capabilities onto the names of the artifacts they produce."""
    return ResourceManifest(
        version=MANIFEST_VERSION,
        synced_at=synced_at,
        capabilities={
            capability.id: CapabilityResources(
                skills=[skill.name for skill in capability.skills],
                rules=[rule.name for rule in capability.rules],
                commands=[command.name for command in capability.commands],
                subagents=[subagent.name for subagent in capability.subagents],
                mcps=[capability.id] if capability.mcp is not None else [],
                docs=[doc.name for doc in capability.docs],
            )
            for capability in capabilities
        },
    )


def _names(resources: dict[str, Any], key: str, capability_id: str) -> list[str]:
    value = resources.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidManifestError(
            f"capabilities.{capability_id}.{key} must be a list of strings"
        )
    for name in value:
        # Names become path components under .claude/ and .cursor/
        if name in ("", ".", "..") or "/" in name or "\\" in name:
            raise InvalidManifestError(
                f"capabilities.{capability_id}.{key} has invalid name {name!r}"
            )
    return list(value)


def parse_manifest(content: str) -> ResourceManifest:
    """Parse manifest.json text.

    Raises:
        InvalidManifestError: If the text is not JSON or has the wrong shape
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidManifestError(str(e)) from e
    if not isinstance(data, dict):
        raise InvalidManifestError("manifest must be a JSON object")

    raw_capabilities = data.get("capabilities", {})
    if not isinstance(raw_capabilities, dict):
        raise InvalidManifestError("'capabilities' must be an object")

    capabilities: dict[str, CapabilityResources] = {}
    for capability_id, resources in raw_capabilities.items():
        if not isinstance(resources, dict):
            raise InvalidManifestError(f"capabilities.{capability_id} must be an object")
        capabilities[capability_id] = CapabilityResources(
            skills=_names(resources, "skills", capability_id),
            rules=_names(resources, "rules", capability_id),
            commands=_names(resources, "commands", capability_id),
            subagents=_names(resources, "subagents", capability_id),
            mcps=_names(resources, "mcps", capability_id),
            docs=_names(resources, "docs", capability_id),
        )

    version = data.get("version", MANIFEST_VERSION)
    if not isinstance(version, int) or isinstance(version, bool):
        raise InvalidManifestError(f"'version' must be an integer: {version!r}")

    synced_at = data.get("syncedAt", "")
    return ResourceManifest(
        version=version,
        synced_at=synced_at if isinstance(synced_at, str) else "",
        capabilities=capabilities,
    )


def load_manifest(project_root: Path) -> ResourceManifest:
    """Load the previous manifest.

    A missing or unreadable manifest loads as empty, which means the next
    cleanup deletes nothing.
    """
    path = get_manifest_path(project_root)
    if not path.exists():
        return empty_manifest("")
    try:
        return parse_manifest(path.read_text(encoding="utf-8"))
    except (InvalidManifestError, UnicodeDecodeError) as e:
        logger.warning("Ignoring unreadable manifest %s: %s", path, e)
        return empty_manifest("")


def manifest_to_json(manifest: ResourceManifest) -> dict[str, Any]:
    return {
        "version": manifest.version,
        "syncedAt": manifest.synced_at,
        "capabilities": {
            capability_id: {
                "skills": resources.skills,
                "rules": resources.rules,
                "commands": resources.commands,
                "subagents": resources.subagents,
                "mcps": resources.mcps,
                "docs": resources.docs,
            }
            for capability_id, resources in manifest.capabilities.items()
        },
    }


def save_manifest(project_root: Path, manifest: ResourceManifest) -> None:
    path = get_manifest_path(project_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(manifest_to_json(manifest), indent=2) + "\n", encoding="utf-8")


def _remove_path(path: Path) -> bool:
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


def cleanup_stale_resources(
    project_root: Path, previous: ResourceManifest, current_ids: set[str]
) -> CleanupResult:
    """Delete artifacts of capabilities that were enabled last sync but not now.

    Only capabilities in the previous manifest and absent from current_ids
    are touched. Artifacts that are already gone are skipped. MCP servers
    are pruned by the .mcp.json sync instead.
    """
    result = CleanupResult()
    for capability_id, resources in previous.capabilities.items():
        if capability_id in current_ids:
            continue
        logger.debug("cleaning up resources of disabled capability %s", capability_id)

        for name in resources.skills:
            if _remove_path(get_skill_dir(project_root, name)):
                result.deleted_skills.append(name)
        for name in resources.rules:
            if _remove_path(get_rule_path(project_root, name)):
                result.deleted_rules.append(name)
        for name in resources.commands:
            if _remove_path(get_command_path(project_root, name)):
                result.deleted_commands.append(name)
        for name in resources.subagents:
            if _remove_path(get_subagent_path(project_root, name)):
                result.deleted_subagents.append(name)
    return result
