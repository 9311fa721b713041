"""Exceptions raised while resolving capability sources."""

from pathlib import Path


class CapabilitySourceError(Exception):
    """Base class for failures that abort a single capability fetch."""


class InvalidSourceConfigError(CapabilitySourceError):
    """A source declaration could not be normalized."""


class SourceNotFoundError(CapabilitySourceError):
    """A file:// source points at a path that does not exist."""

    def __init__(self, source_path: Path) -> None:
        self.source_path = source_path
        super().__init__(f"File source not found: {source_path}")


class SourceNotADirectoryError(CapabilitySourceError):
    """A file:// source points at something other than a directory."""

    def __init__(self, source_path: Path) -> None:
        self.source_path = source_path
        super().__init__(f"File source must be a directory: {source_path}")


class GitCommandError(CapabilitySourceError):
    """A git invocation exited non-zero.

    The captured stderr is kept on the exception and included in the message
    so per-source warnings explain what git complained about.
    """

    operation = "run git"

    def __init__(self, target: str, stderr: str) -> None:
        self.target = target
        self.stderr = stderr.strip()
        super().__init__(f"Failed to {self.operation} {target}: {self.stderr}")


class CloneFailedError(GitCommandError):
    operation = "clone"


class FetchFailedError(GitCommandError):
    operation = "fetch in"


class ResetFailedError(GitCommandError):
    operation = "reset"


class PathNotFoundInRepoError(CapabilitySourceError):
    """The subdirectory declared by a monorepo source is missing after clone."""

    def __init__(self, repo_path: str) -> None:
        self.repo_path = repo_path
        super().__init__(f"Path not found in repository: {repo_path}")


class TransportFieldMissingError(CapabilitySourceError):
    """An MCP server definition lacks the field its transport requires."""

    def __init__(self, transport: str, field: str) -> None:
        self.transport = transport
        self.field = field
        super().__init__(f"{transport} transport requires '{field}'")


class CapabilityIdCollisionError(CapabilitySourceError):
    """The same capability id is declared by more than one config section."""

    def __init__(self, capability_ids: list[str]) -> None:
        self.capability_ids = capability_ids
        joined = ", ".join(sorted(capability_ids))
        super().__init__(
            f"Capability ids declared both as sources and as [mcps] entries: {joined}"
        )


class InvalidLockFileError(Exception):
    """omni.lock.toml could not be parsed. Recovered to an empty lock."""


class InvalidManifestError(Exception):
    """The resource manifest could not be parsed. Recovered to an empty manifest."""
