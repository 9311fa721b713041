"""Normalization of capability source declarations.

A source is declared in omni.toml either as a shorthand string or as a table:

    [capabilities.sources]
    obsidian = "github:kepano/obsidian-skills"
    pinned = "github:acme/pack#v1.2.0"
    foo = { source = "github:acme/monorepo", path = "plugins/foo", version = "v2" }
    local = "file://./my-capabilities/local"
    mirror = "ssh://git@git.internal/acme/pack.git"

Any source without the file:// prefix is cloned with git.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from omnidev.capability.exceptions import InvalidSourceConfigError

FILE_SOURCE_PREFIX = "file://"
GITHUB_PREFIX = "github:"
LATEST_VERSION = "latest"


@dataclass(frozen=True)
class GitSourceConfig:
    """A capability fetched from a git repository.

    Attributes:
        source: URL or github:owner/repo shorthand
        version: Branch, tag or commit to pin, "latest", or None
        path: Subdirectory inside the repository holding the capability
    """

    source: str
    version: str | None = None
    path: str | None = None

    @property
    def ref(self) -> str | None:
        """The git ref to check out, or None to follow the default branch."""
        if self.version is None or self.version == LATEST_VERSION:
            return None
        return self.version


@dataclass(frozen=True)
class FileSourceConfig:
    """A capability copied from a local directory (file:// prefix)."""

    source: str


SourceConfig = GitSourceConfig | FileSourceConfig


def is_git_source(source: str) -> bool:
    """Anything other than a file:// path is handed to git as a clone URL."""
    return bool(source.strip()) and not is_file_source(source)


def is_file_source(source: str) -> bool:
    return source.startswith(FILE_SOURCE_PREFIX)


def parse_file_source_path(source: str, project_root: Path) -> Path:
    """Resolve the directory a file:// source points at.

    Relative paths are resolved against the project root.
    """
    if not is_file_source(source):
        raise InvalidSourceConfigError(f"Invalid file source: {source}")
    path = Path(source[len(FILE_SOURCE_PREFIX) :]).expanduser()
    if not path.is_absolute():
        path = project_root / path
    return path


def source_to_git_url(source: str) -> str:
    """Convert a source to a URL git can clone."""
    if source.startswith(GITHUB_PREFIX):
        repo = source[len(GITHUB_PREFIX) :]
        return f"https://github.com/{repo}.git"
    return source


def source_to_repository_url(source: str) -> str:
    """Browsable repository URL recorded in wrapped descriptors."""
    if source.startswith(GITHUB_PREFIX):
        return f"https://github.com/{source[len(GITHUB_PREFIX) :]}"
    return source


def _split_github_ref(source: str) -> tuple[str, str | None]:
    if source.startswith(GITHUB_PREFIX) and "#" in source:
        url, ref = source.split("#", 1)
        return url, ref or None
    return source, None


def same_repository(a: str, b: str) -> bool:
    """Whether two declared sources clone the same repository, ignoring refs."""
    first, _ = _split_github_ref(a)
    second, _ = _split_github_ref(b)
    return source_to_git_url(first) == source_to_git_url(second)


def _check_repository_path(path: str) -> None:
    pure = PurePosixPath(path)
    if not pure.parts or pure.is_absolute() or ".." in pure.parts:
        raise InvalidSourceConfigError(
            f"Source 'path' must be relative to the repository root: {path}"
        )


def _optional_str(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidSourceConfigError(f"Source field '{key}' must be a string: {value!r}")
    return value


def parse_source_config(raw: str | dict[str, Any]) -> SourceConfig:
    """Parse a shorthand string or table into a typed source config.

    Raises:
        InvalidSourceConfigError: If the declaration is malformed
    """
    if isinstance(raw, str):
        if is_file_source(raw):
            return FileSourceConfig(source=raw)
        if not is_git_source(raw):
            raise InvalidSourceConfigError("Capability source must not be empty")
        url, ref = _split_github_ref(raw)
        return GitSourceConfig(source=url, version=ref)

    if not isinstance(raw, dict):
        raise InvalidSourceConfigError(f"Capability source must be a string or table: {raw!r}")

    source = _optional_str(raw, "source")
    if source is None:
        raise InvalidSourceConfigError("Capability source table is missing 'source'")

    path = _optional_str(raw, "path")
    # "ref" is the older spelling of "version"
    version = _optional_str(raw, "version") or _optional_str(raw, "ref")

    if is_file_source(source):
        if path is not None or version is not None:
            raise InvalidSourceConfigError(
                f"'path' and 'version' only apply to git sources: {source}"
            )
        return FileSourceConfig(source=source)

    if not is_git_source(source):
        raise InvalidSourceConfigError("Capability source must not be empty")
    if path is not None:
        _check_repository_path(path)

    url, shorthand_ref = _split_github_ref(source)
    return GitSourceConfig(source=url, version=version or shorthand_ref, path=path)


def source_display(raw: str | dict[str, Any]) -> str:
    """The source string recorded in the lock file for a declaration."""
    if isinstance(raw, str):
        return raw
    source = raw.get("source")
    if isinstance(source, str):
        return source
    return repr(raw)
