"""Fetch backends: realize a capability source under .omni/capabilities/<id>/."""

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from omnidev.capability.content_hash import (
    DEFAULT_EXCLUDE_PATTERNS,
    compute_directory_hash,
    short_hash,
)
from omnidev.capability.descriptor import (
    is_generated_descriptor,
    read_capability_toml,
    write_descriptor,
)
from omnidev.capability.exceptions import (
    PathNotFoundInRepoError,
    SourceNotADirectoryError,
    SourceNotFoundError,
)
from omnidev.capability.git import GitClient, short_commit
from omnidev.capability.lock import LockEntry
from omnidev.capability.source_config import (
    FileSourceConfig,
    GitSourceConfig,
    SourceConfig,
    parse_file_source_path,
    same_repository,
    source_to_git_url,
    source_to_repository_url,
)
from omnidev.capability.version import VersionSource, detect_version
from omnidev.capability.wrapping import (
    WrapProvenance,
    discover_content,
    generate_capability_toml,
    normalize_folder_names,
    should_wrap,
)
from omnidev.gateway.command_runner.abc import CommandRunner
from omnidev.paths import CAPABILITY_TOML, get_capability_path, get_temp_dir

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of realizing one capability source.

    Attributes:
        id: Capability id
        path: Materialized directory
        version: Display version
        version_source: Where the display version came from
        commit: Full commit SHA (git sources only)
        content_hash: Directory hash of the source (file sources only)
        updated: True when the materialized content changed during this fetch
        wrapped: True when the directory carries a synthesized capability.toml
    """

    id: str
    path: Path
    version: str
    version_source: VersionSource
    commit: str | None
    content_hash: str | None
    updated: bool
    wrapped: bool


def _replace_directory(source: Path, target: Path) -> None:
    if target.exists():
        shutil.rmtree(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(
        source,
        target,
        symlinks=True,
        ignore=shutil.ignore_patterns(*DEFAULT_EXCLUDE_PATTERNS),
    )


def _finalize(
    capability_id: str,
    target: Path,
    source: str,
    *,
    updated: bool,
    fallback: str,
    fallback_source: VersionSource,
    provenance: WrapProvenance,
) -> tuple[str, VersionSource, bool]:
    """Wrap the directory if needed and resolve its display version.

    Returns:
        (version, version_source, wrapped)
    """
    if updated or not (target / CAPABILITY_TOML).exists():
        wrapped = should_wrap(target)
        if wrapped:
            normalize_folder_names(target)
            content = discover_content(target)
            # Probed before writing so the generated descriptor never counts
            # as an authored version.
            version, _ = detect_version(target, fallback, fallback_source)
            descriptor = generate_capability_toml(
                capability_id, target, source, version, content, provenance
            )
            write_descriptor(target, descriptor)
            logger.debug("wrapped %s from %s", capability_id, source)
    else:
        data = read_capability_toml(target)
        wrapped = data is not None and is_generated_descriptor(data)

    version, version_source = detect_version(target, fallback, fallback_source)
    return version, version_source, wrapped


def _fetch_repository(git: GitClient, url: str, target: Path, ref: str | None) -> bool:
    """Clone or update a whole-repository capability. Returns updated."""
    if (target / ".git").is_dir():
        origin = git.origin_url(target)
        if origin == url:
            git.fetch(target, ref)
            current = git.head_commit(target)
            fetched = git.fetched_commit(target)
            if current == fetched:
                logger.debug("%s is up to date at %s", target, short_commit(current))
                return False
            git.reset_to_fetched(target)
            return True
        logger.debug("origin of %s moved from %s to %s", target, origin, url)

    if target.exists():
        # Left over from a different source; the directory is ours.
        logger.debug("replacing capability directory %s", target)
        shutil.rmtree(target)
    git.clone(url, target, ref)
    return True


def _resolve_repository_path(clone_dir: Path, repo_path: str) -> Path:
    root = clone_dir.resolve()
    subdirectory = (clone_dir / repo_path).resolve()
    if not subdirectory.is_relative_to(root) or not subdirectory.is_dir():
        raise PathNotFoundInRepoError(repo_path)
    return subdirectory


def _copy_is_current(
    previous: LockEntry | None, config: GitSourceConfig, commit: str, target: Path
) -> bool:
    if previous is None or not target.exists():
        return False
    return (
        previous.commit == commit
        and previous.path == config.path
        and same_repository(previous.source, config.source)
    )


def fetch_git_source(
    project_root: Path,
    capability_id: str,
    config: GitSourceConfig,
    previous: LockEntry | None,
    runner: CommandRunner,
) -> FetchResult:
    """Realize a git source.

    Without `path` the whole repository is kept as a shallow clone in the
    target. With `path` the repository is cloned into a temporary directory
    under .omni/_temp/ and only the subdirectory is copied out; the copy is
    skipped when the repository, path and commit all match the previously
    locked ones.
    """
    git = GitClient(runner)
    url = source_to_git_url(config.source)
    target = get_capability_path(project_root, capability_id)

    if config.path is None:
        updated = _fetch_repository(git, url, target, config.ref)
        commit = git.head_commit(target)
    else:
        temp_root = get_temp_dir(project_root)
        temp_root.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(dir=temp_root, prefix=f"{capability_id}-") as tmp:
            clone_dir = Path(tmp) / "repo"
            git.clone(url, clone_dir, config.ref)
            commit = git.head_commit(clone_dir)
            subdirectory = _resolve_repository_path(clone_dir, config.path)
            if _copy_is_current(previous, config, commit, target):
                logger.debug("%s unchanged at %s", capability_id, short_commit(commit))
                updated = False
            else:
                _replace_directory(subdirectory, target)
                updated = True

    version, version_source, wrapped = _finalize(
        capability_id,
        target,
        config.source,
        updated=updated,
        fallback=short_commit(commit),
        fallback_source="commit",
        provenance=WrapProvenance(
            repository=source_to_repository_url(config.source), commit=commit
        ),
    )
    return FetchResult(
        id=capability_id,
        path=target,
        version=version,
        version_source=version_source,
        commit=commit,
        content_hash=None,
        updated=updated,
        wrapped=wrapped,
    )


def fetch_file_source(
    project_root: Path,
    capability_id: str,
    config: FileSourceConfig,
    previous: LockEntry | None,
) -> FetchResult:
    """Realize a file:// source by copying it when its content hash changed."""
    source_path = parse_file_source_path(config.source, project_root)
    if not source_path.exists():
        raise SourceNotFoundError(source_path)
    if not source_path.is_dir():
        raise SourceNotADirectoryError(source_path)

    target = get_capability_path(project_root, capability_id)
    content_hash = compute_directory_hash(source_path)

    if previous is not None and previous.content_hash == content_hash and target.exists():
        logger.debug("%s unchanged at %s", capability_id, short_hash(content_hash))
        updated = False
    else:
        _replace_directory(source_path, target)
        updated = True

    version, version_source, wrapped = _finalize(
        capability_id,
        target,
        config.source,
        updated=updated,
        fallback=short_hash(content_hash),
        fallback_source="content_hash",
        provenance=WrapProvenance(source_path=str(source_path), content_hash=content_hash),
    )
    return FetchResult(
        id=capability_id,
        path=target,
        version=version,
        version_source=version_source,
        commit=None,
        content_hash=content_hash,
        updated=updated,
        wrapped=wrapped,
    )


def fetch_capability_source(
    project_root: Path,
    capability_id: str,
    config: SourceConfig,
    previous: LockEntry | None,
    runner: CommandRunner,
) -> FetchResult:
    if isinstance(config, FileSourceConfig):
        return fetch_file_source(project_root, capability_id, config, previous)
    return fetch_git_source(project_root, capability_id, config, previous, runner)
