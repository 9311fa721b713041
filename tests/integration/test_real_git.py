"""Fetch backends against real git repositories on the local filesystem."""

import shutil
import subprocess
from pathlib import Path

import pytest

from omnidev.capability.fetch import fetch_git_source
from omnidev.capability.git import GitClient
from omnidev.capability.lock import LockEntry
from omnidev.capability.source_config import GitSourceConfig
from omnidev.gateway.command_runner.real import RealCommandRunner
from tests.helpers import write_tree

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed"),
]


def _git(repo: Path, *args: str) -> str:
    completed = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return completed.stdout.strip()


def _commit_all(repo: Path, message: str) -> str:
    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", message)
    return _git(repo, "rev-parse", "HEAD")


@pytest.fixture
def upstream(tmp_path: Path) -> Path:
    repo = tmp_path / "upstream"
    repo.mkdir()
    _git(repo, "init", "-q", "-b", "main")
    write_tree(
        repo,
        {
            "skills/plan/SKILL.md": "plan",
            "plugins/foo/commands/ship.md": "ship",
        },
    )
    _commit_all(repo, "initial")
    return repo


def test_whole_repository_clone_then_update(tmp_project: Path, upstream: Path) -> None:
    runner = RealCommandRunner()
    config = GitSourceConfig(source=upstream.as_uri())

    first = fetch_git_source(tmp_project, "pack", config, None, runner)
    assert first.updated
    assert first.wrapped
    assert first.commit == _git(upstream, "rev-parse", "HEAD")
    assert (first.path / "skills" / "plan" / "SKILL.md").read_text() == "plan"

    write_tree(upstream, {"skills/review/SKILL.md": "review"})
    new_commit = _commit_all(upstream, "add review")
    previous = LockEntry(
        source=config.source, version=first.version, updated_at="t", commit=first.commit
    )

    second = fetch_git_source(tmp_project, "pack", config, previous, runner)

    assert second.updated
    assert second.commit == new_commit
    assert (second.path / "skills" / "review" / "SKILL.md").exists()

    third = fetch_git_source(tmp_project, "pack", config, previous, runner)

    assert not third.updated
    assert third.commit == new_commit


def test_whole_repository_follows_changed_source(
    tmp_path: Path, tmp_project: Path, upstream: Path
) -> None:
    other = tmp_path / "other"
    other.mkdir()
    _git(other, "init", "-q", "-b", "main")
    write_tree(other, {"rules/other.md": "other"})
    other_commit = _commit_all(other, "other")
    runner = RealCommandRunner()
    fetch_git_source(tmp_project, "pack", GitSourceConfig(source=upstream.as_uri()), None, runner)

    result = fetch_git_source(
        tmp_project, "pack", GitSourceConfig(source=other.as_uri()), None, runner
    )

    assert result.updated
    assert result.commit == other_commit
    assert (result.path / "rules" / "other.md").exists()
    assert not (result.path / "skills").exists()


def test_subdirectory_is_copied_out(tmp_project: Path, upstream: Path) -> None:
    config = GitSourceConfig(source=upstream.as_uri(), path="plugins/foo")

    result = fetch_git_source(tmp_project, "foo", config, None, RealCommandRunner())

    assert (result.path / "commands" / "ship.md").read_text() == "ship"
    assert not (result.path / ".git").exists()
    assert list((tmp_project / ".omni" / "_temp").iterdir()) == []


def test_changed_subdirectory_at_same_commit(tmp_project: Path, upstream: Path) -> None:
    runner = RealCommandRunner()
    foo = GitSourceConfig(source=upstream.as_uri(), path="plugins/foo")
    first = fetch_git_source(tmp_project, "foo", foo, None, runner)
    previous = LockEntry(
        source=foo.source, version=first.version, updated_at="t", commit=first.commit, path=foo.path
    )

    skills = GitSourceConfig(source=upstream.as_uri(), path="skills")
    second = fetch_git_source(tmp_project, "foo", skills, previous, runner)

    assert second.commit == first.commit
    assert second.updated
    assert (second.path / "plan" / "SKILL.md").read_text() == "plan"
    assert not (second.path / "commands").exists()


def test_ls_remote_reports_upstream_head(upstream: Path) -> None:
    commit = GitClient(RealCommandRunner()).ls_remote(upstream.as_uri(), None)

    assert commit == _git(upstream, "rev-parse", "HEAD")
