"""Deterministic content hashing for capability directories."""

import hashlib
from collections.abc import Iterator, Sequence
from pathlib import Path

# VCS, package manager and cache directories never contribute to a hash.
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".cache",
    ".venv",
)

SHORT_HASH_LENGTH = 12


def _is_excluded(name: str, relative_path: str, exclude_patterns: Sequence[str]) -> bool:
    for pattern in exclude_patterns:
        cleaned = pattern.strip("/")
        if not cleaned:
            continue
        if name == cleaned or relative_path == cleaned:
            return True
        if relative_path.startswith(cleaned + "/"):
            return True
    return False


def _iter_files(
    root: Path, directory: Path, exclude_patterns: Sequence[str]
) -> Iterator[tuple[str, Path]]:
    """Yield (relative posix path, file path) pairs in sorted order.

    Entries are sorted by name at every level, so the overall order is the
    lexicographic order of the path components regardless of how the
    filesystem lists them. Symlinks are skipped without being followed.
    """
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        relative = entry.relative_to(root).as_posix()
        if entry.is_symlink():
            continue
        if _is_excluded(entry.name, relative, exclude_patterns):
            continue
        if entry.is_dir():
            yield from _iter_files(root, entry, exclude_patterns)
        elif entry.is_file():
            yield relative, entry


def compute_directory_hash(
    directory: Path,
    exclude_patterns: Sequence[str] = DEFAULT_EXCLUDE_PATTERNS,
) -> str:
    """Compute a SHA-256 digest over every (relative path, bytes) pair in a tree.

    Args:
        directory: Root of the tree to hash
        exclude_patterns: Entry names or relative path prefixes to skip

    Returns:
        Hex digest. Two trees with the same non-excluded (path, content) pairs
        hash identically.
    """
    digest = hashlib.sha256()
    files = sorted(_iter_files(directory, directory, exclude_patterns))
    for relative, path in files:
        # Length prefixes keep path and content boundaries unambiguous.
        for data in (relative.encode("utf-8"), path.read_bytes()):
            digest.update(len(data).to_bytes(8, "big"))
            digest.update(data)
    return digest.hexdigest()


def short_hash(content_hash: str) -> str:
    """Abbreviated content hash used as a fallback display version."""
    return content_hash[:SHORT_HASH_LENGTH]
