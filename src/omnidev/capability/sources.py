"""Resolve every configured capability source and keep the lock file current."""

import logging
from dataclasses import dataclass
from pathlib import Path

from omnidev.capability.exceptions import CapabilitySourceError
from omnidev.capability.fetch import FetchResult, fetch_capability_source
from omnidev.capability.git import GitClient, short_commit
from omnidev.capability.lock import (
    LockEntry,
    LockFile,
    check_version_mismatch,
    load_lock_file,
    lock_entries_differ,
    save_lock_file,
)
from omnidev.capability.mcp import McpGenerationResult, generate_mcp_capabilities
from omnidev.capability.source_config import (
    FileSourceConfig,
    GitSourceConfig,
    parse_source_config,
    source_display,
    source_to_git_url,
)
from omnidev.config.models import OmniConfig
from omnidev.gateway.command_runner.abc import CommandRunner
from omnidev.gateway.time.abc import Time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFetchBatch:
    """Outcome of fetching every configured source.

    Attributes:
        results: One FetchResult per source that was fetched successfully
        warnings: Per-source failures and version mismatch notices
        mcp: What happened to the [mcps] pseudo-capabilities
        lock_written: Whether omni.lock.toml was rewritten
    """

    results: list[FetchResult]
    warnings: list[str]
    mcp: McpGenerationResult
    lock_written: bool


@dataclass(frozen=True)
class SourceUpdateInfo:
    id: str
    source: str
    current_version: str
    latest_version: str
    has_update: bool
    error: str | None = None


def _build_lock_entry(
    raw_source: str,
    config: GitSourceConfig | FileSourceConfig,
    result: FetchResult,
    updated_at: str,
) -> LockEntry:
    pinned_version = config.ref if isinstance(config, GitSourceConfig) else None
    path = config.path if isinstance(config, GitSourceConfig) else None
    return LockEntry(
        source=raw_source,
        version=result.version,
        updated_at=updated_at,
        version_source=result.version_source,
        commit=result.commit,
        content_hash=result.content_hash,
        pinned_version=pinned_version,
        path=path,
    )


def fetch_all_capability_sources(
    project_root: Path,
    config: OmniConfig,
    *,
    runner: CommandRunner,
    time: Time,
) -> SourceFetchBatch:
    """Fetch every source in [capabilities.sources], one after another.

    MCP pseudo-capabilities are generated first. A failing source becomes a
    warning and the rest of the batch continues. The lock file is loaded
    once and written once, only when an entry is new or its commit or
    content hash changed.
    """
    mcp = generate_mcp_capabilities(project_root, config.mcps)
    warnings = list(mcp.warnings)

    lock = load_lock_file(project_root)
    entries = dict(lock.capabilities)
    lock_changed = False
    results: list[FetchResult] = []

    for capability_id, raw in config.capabilities.sources.items():
        previous = entries.get(capability_id)
        try:
            source_config = parse_source_config(raw)
            result = fetch_capability_source(
                project_root, capability_id, source_config, previous, runner
            )
        except (CapabilitySourceError, OSError) as e:
            logger.warning("Failed to fetch %s: %s", capability_id, e)
            warnings.append(f"Failed to fetch {capability_id}: {e}")
            continue

        results.append(result)

        mismatch = check_version_mismatch(previous, result.commit, result.version)
        if mismatch is not None:
            warnings.append(f"{capability_id}: {mismatch}")

        entry = _build_lock_entry(source_display(raw), source_config, result, time.now_iso())
        if lock_entries_differ(previous, entry):
            entries[capability_id] = entry
            lock_changed = True

    if lock_changed:
        save_lock_file(project_root, LockFile(capabilities=entries), time.now_iso())

    return SourceFetchBatch(results=results, warnings=warnings, mcp=mcp, lock_written=lock_changed)


def _check_git_source(
    capability_id: str,
    config: GitSourceConfig,
    entry: LockEntry | None,
    git: GitClient,
) -> SourceUpdateInfo:
    remote = git.ls_remote(source_to_git_url(config.source), config.ref)
    latest = short_commit(remote) if remote is not None else "unknown"
    if entry is None or entry.commit is None:
        return SourceUpdateInfo(
            id=capability_id,
            source=config.source,
            current_version="not installed",
            latest_version=latest,
            has_update=True,
        )
    return SourceUpdateInfo(
        id=capability_id,
        source=config.source,
        current_version=entry.version,
        latest_version=latest,
        has_update=remote is not None and remote != entry.commit,
    )


def check_for_updates(
    project_root: Path, config: OmniConfig, *, runner: CommandRunner
) -> list[SourceUpdateInfo]:
    """Report which sources have upstream changes, without fetching them.

    File sources are local and never report updates.
    """
    lock = load_lock_file(project_root)
    git = GitClient(runner)
    updates: list[SourceUpdateInfo] = []

    for capability_id, raw in config.capabilities.sources.items():
        entry = lock.capabilities.get(capability_id)
        try:
            source_config = parse_source_config(raw)
            if isinstance(source_config, FileSourceConfig):
                updates.append(
                    SourceUpdateInfo(
                        id=capability_id,
                        source=source_config.source,
                        current_version=entry.version if entry is not None else "local",
                        latest_version="local",
                        has_update=False,
                    )
                )
                continue
            updates.append(_check_git_source(capability_id, source_config, entry, git))
        except CapabilitySourceError as e:
            logger.warning("Failed to check %s: %s", capability_id, e)
            updates.append(
                SourceUpdateInfo(
                    id=capability_id,
                    source=source_display(raw),
                    current_version=entry.version if entry is not None else "unknown",
                    latest_version="unknown",
                    has_update=False,
                    error=str(e),
                )
            )
    return updates
