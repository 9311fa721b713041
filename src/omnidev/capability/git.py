"""Thin git client used by the fetch backends.

All git work goes through a CommandRunner so tests can substitute
FakeCommandRunner for the real binary.
"""

from pathlib import Path

from omnidev.capability.exceptions import (
    CloneFailedError,
    FetchFailedError,
    GitCommandError,
    ResetFailedError,
)
from omnidev.gateway.command_runner.abc import CommandRunner

SHORT_COMMIT_LENGTH = 7


def short_commit(commit: str) -> str:
    return commit[:SHORT_COMMIT_LENGTH]


def parse_ls_remote_commit(output: str) -> str | None:
    """Pick the commit from `git ls-remote` output.

    Annotated tags list the tag object first and the peeled commit on a
    `^{}` line; the peeled commit is preferred when present.
    """
    fallback: str | None = None
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        parts = line.split(maxsplit=1)
        commit = parts[0].strip()
        if not commit:
            continue
        ref = parts[1].strip() if len(parts) > 1 else ""
        if ref.endswith("^{}"):
            return commit
        if fallback is None:
            fallback = commit
    return fallback


class GitClient:
    """Shallow clone, fetch and reset operations on capability checkouts."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def clone(self, url: str, target: Path, ref: str | None) -> None:
        args = ["clone", "--depth", "1"]
        if ref is not None:
            args.extend(["--branch", ref])
        args.extend([url, str(target)])
        target.parent.mkdir(parents=True, exist_ok=True)
        result = self._runner.run("git", args, None)
        if not result.ok:
            raise CloneFailedError(url, result.stderr)

    def head_commit(self, repo: Path) -> str:
        result = self._runner.run("git", ["rev-parse", "HEAD"], repo)
        if not result.ok:
            raise GitCommandError(str(repo), result.stderr)
        return result.stdout.strip()

    def fetch(self, repo: Path, ref: str | None) -> None:
        args = ["fetch", "--depth", "1", "origin"]
        if ref is not None:
            args.append(ref)
        result = self._runner.run("git", args, repo)
        if not result.ok:
            raise FetchFailedError(str(repo), result.stderr)

    def fetched_commit(self, repo: Path) -> str:
        """Commit retrieved by the last fetch, with annotated tags peeled."""
        result = self._runner.run("git", ["rev-parse", "FETCH_HEAD^{commit}"], repo)
        if not result.ok:
            raise FetchFailedError(str(repo), result.stderr)
        return result.stdout.strip()

    def reset_to_fetched(self, repo: Path) -> None:
        """Move the checkout to FETCH_HEAD.

        Shallow histories share no merge base with the fetched commit, so a
        fast-forward is not possible.
        """
        result = self._runner.run("git", ["reset", "--hard", "FETCH_HEAD"], repo)
        if not result.ok:
            raise ResetFailedError(str(repo), result.stderr)

    def origin_url(self, repo: Path) -> str | None:
        """URL of the checkout's origin remote, None when it has none."""
        result = self._runner.run("git", ["remote", "get-url", "origin"], repo)
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def ls_remote(self, url: str, ref: str | None) -> str | None:
        """Commit a remote URL has for ref (or HEAD), without a local checkout."""
        result = self._runner.run("git", ["ls-remote", url, ref or "HEAD"], None)
        if not result.ok:
            raise FetchFailedError(url, result.stderr)
        return parse_ls_remote_commit(result.stdout)
