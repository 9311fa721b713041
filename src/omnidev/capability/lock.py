"""Lock file (omni.lock.toml) recording what is installed for each capability."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import tomli
import tomli_w

from omnidev.capability.content_hash import compute_directory_hash
from omnidev.capability.exceptions import GitCommandError, InvalidLockFileError
from omnidev.capability.git import GitClient, short_commit
from omnidev.capability.source_config import is_file_source, parse_file_source_path
from omnidev.capability.version import VersionSource
from omnidev.gateway.command_runner.abc import CommandRunner
from omnidev.paths import get_capability_path, get_lock_file_path

logger = logging.getLogger(__name__)

LOCK_HEADER = (
    "# Auto-generated by omnidev - DO NOT EDIT\n"
    "# Records installed capability versions for reproducibility\n"
)

INTEGRITY_MODIFIED = "content modified locally"

_VERSION_SOURCES = ("capability.toml", "plugin.json", "package.json", "commit", "content_hash")


@dataclass(frozen=True)
class LockEntry:
    """Installed state of one capability.

    `commit` is set for git sources and `content_hash` for file sources.
    `pinned_version` records the version the config asked for, if any, and
    `path` the repository subdirectory a git capability was copied from.
    """

    source: str
    version: str
    updated_at: str
    version_source: VersionSource | None = None
    commit: str | None = None
    content_hash: str | None = None
    pinned_version: str | None = None
    path: str | None = None

    def to_toml(self) -> dict[str, str]:
        data = {"source": self.source, "version": self.version}
        optional = (
            ("version_source", self.version_source),
            ("commit", self.commit),
            ("content_hash", self.content_hash),
            ("pinned_version", self.pinned_version),
            ("path", self.path),
        )
        for key, value in optional:
            if value is not None:
                data[key] = value
        data["updated_at"] = self.updated_at
        return data


@dataclass(frozen=True)
class LockFile:
    capabilities: dict[str, LockEntry] = field(default_factory=dict)


def _optional_str(table: dict[str, Any], key: str, capability_id: str) -> str | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidLockFileError(f"capabilities.{capability_id}.{key} must be a string")
    return value


def _parse_entry(capability_id: str, table: Any) -> LockEntry:
    if not isinstance(table, dict):
        raise InvalidLockFileError(f"capabilities.{capability_id} must be a table")
    source = _optional_str(table, "source", capability_id)
    version = _optional_str(table, "version", capability_id)
    if source is None or version is None:
        raise InvalidLockFileError(
            f"capabilities.{capability_id} requires 'source' and 'version'"
        )
    version_source = _optional_str(table, "version_source", capability_id)
    if version_source is not None and version_source not in _VERSION_SOURCES:
        raise InvalidLockFileError(
            f"capabilities.{capability_id}.version_source is unknown: {version_source}"
        )
    return LockEntry(
        source=source,
        version=version,
        updated_at=_optional_str(table, "updated_at", capability_id) or "",
        version_source=cast(VersionSource | None, version_source),
        commit=_optional_str(table, "commit", capability_id),
        content_hash=_optional_str(table, "content_hash", capability_id),
        pinned_version=_optional_str(table, "pinned_version", capability_id),
        path=_optional_str(table, "path", capability_id),
    )


def parse_lock_file(content: str) -> LockFile:
    """Parse lock file text.

    Raises:
        InvalidLockFileError: If the text is not valid TOML or has the wrong shape
    """
    try:
        data = tomli.loads(content)
    except tomli.TOMLDecodeError as e:
        raise InvalidLockFileError(str(e)) from e

    capabilities = data.get("capabilities", {})
    if not isinstance(capabilities, dict):
        raise InvalidLockFileError("'capabilities' must be a table")
    return LockFile(
        capabilities={
            capability_id: _parse_entry(capability_id, table)
            for capability_id, table in capabilities.items()
        }
    )


def load_lock_file(project_root: Path) -> LockFile:
    """Load omni.lock.toml.

    Returns an empty lock when the file is missing or cannot be parsed; a
    broken lock only costs a refetch.
    """
    path = get_lock_file_path(project_root)
    if not path.exists():
        return LockFile()
    try:
        return parse_lock_file(path.read_text(encoding="utf-8"))
    except (InvalidLockFileError, UnicodeDecodeError) as e:
        logger.warning("Ignoring unreadable lock file %s: %s", path, e)
        return LockFile()


def render_lock_file(lock: LockFile, now: str) -> str:
    document = {
        "capabilities": {
            capability_id: entry.to_toml() for capability_id, entry in lock.capabilities.items()
        }
    }
    return f"{LOCK_HEADER}# Last updated: {now}\n\n{tomli_w.dumps(document)}"


def save_lock_file(project_root: Path, lock: LockFile, now: str) -> None:
    """Write omni.lock.toml. Failures propagate."""
    path = get_lock_file_path(project_root)
    path.write_text(render_lock_file(lock, now), encoding="utf-8")


def lock_entries_differ(existing: LockEntry | None, new: LockEntry) -> bool:
    """Whether recording `new` changes what the lock says is installed."""
    if existing is None:
        return True
    return (
        existing.source != new.source
        or existing.path != new.path
        or existing.pinned_version != new.pinned_version
        or existing.commit != new.commit
        or existing.content_hash != new.content_hash
    )


def check_version_mismatch(
    entry: LockEntry | None, new_commit: str | None, new_version: str
) -> str | None:
    """Warn when a capability's code moved but its declared version did not.

    Only hand-declared capability.toml versions are checked; fallback
    versions are derived from the commit and always move with it. A lock
    entry without a commit counts as a move to any commit.
    """
    if entry is None or entry.commit == new_commit:
        return None
    if entry.version != new_version:
        return None
    if entry.version_source != "capability.toml":
        return None
    before = short_commit(entry.commit) if entry.commit is not None else "none"
    after = short_commit(new_commit) if new_commit is not None else "none"
    return f"version {new_version} unchanged but commit moved from {before} to {after}"


def verify_integrity(
    project_root: Path, capability_id: str, entry: LockEntry, runner: CommandRunner
) -> str | None:
    """Compare what is on disk with what the lock recorded.

    Git entries are checked against the checkout's HEAD (entries copied out of
    a monorepo have no checkout and are not checked). File entries are checked
    by rehashing the source directory.

    Returns:
        None when consistent, otherwise a short description of the problem
    """
    target = get_capability_path(project_root, capability_id)

    if entry.content_hash is not None and is_file_source(entry.source):
        source_path = parse_file_source_path(entry.source, project_root)
        if not source_path.is_dir():
            return f"source directory missing: {source_path}"
        if compute_directory_hash(source_path) != entry.content_hash:
            return INTEGRITY_MODIFIED
        return None

    if entry.commit is not None:
        if not target.exists():
            return "not installed"
        if not (target / ".git").is_dir():
            return None
        try:
            commit = GitClient(runner).head_commit(target)
        except GitCommandError as e:
            return f"unable to read commit: {e.stderr}"
        if commit != entry.commit:
            return INTEGRITY_MODIFIED
    return None
