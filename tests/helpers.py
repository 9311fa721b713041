"""Builders shared by omnidev tests."""

from pathlib import Path

from omnidev.gateway.command_runner.abc import CommandResult
from omnidev.gateway.command_runner.fake import FakeCommandRunner, SideEffect

COMMIT_A = "a" * 40
COMMIT_B = "b" * 40
PACK_URL = "https://github.com/acme/pack.git"


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(exit_code=0, stdout=stdout, stderr="")


def failed(stderr: str) -> CommandResult:
    return CommandResult(exit_code=128, stdout="", stderr=stderr)


def write_tree(root: Path, files: dict[str, str]) -> None:
    """Create files (relative posix path -> text) under root."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def clone_creates(files: dict[str, str]) -> SideEffect:
    """Side effect for `git clone` that materializes a checkout at the target."""

    def _clone(argv: tuple[str, ...], cwd: Path | None) -> None:
        target = Path(argv[-1])
        (target / ".git").mkdir(parents=True)
        write_tree(target, files)

    return _clone


def fake_git(
    *,
    head: str = COMMIT_A,
    remote: str | None = None,
    origin: str = PACK_URL,
    clone_files: dict[str, str] | None = None,
) -> FakeCommandRunner:
    """FakeCommandRunner answering the git commands the fetch backends issue.

    `remote` is the commit a fetch retrieves; it defaults to `head`.
    """
    results: dict[tuple[str, ...], CommandResult] = {
        ("git", "rev-parse", "HEAD"): ok(f"{head}\n"),
        ("git", "rev-parse", "FETCH_HEAD^{commit}"): ok(f"{remote or head}\n"),
        ("git", "remote", "get-url", "origin"): ok(f"{origin}\n"),
    }
    side_effects: dict[tuple[str, ...], SideEffect] = {}
    if clone_files is not None:
        side_effects[("git", "clone")] = clone_creates(clone_files)
    return FakeCommandRunner(results=results, side_effects=side_effects)
