"""Display version detection for fetched capabilities."""

import json
import logging
from pathlib import Path
from typing import Any, Literal

from omnidev.capability.descriptor import (
    get_capability_table,
    is_generated_descriptor,
    read_capability_toml,
)

logger = logging.getLogger(__name__)

VersionSource = Literal["capability.toml", "plugin.json", "package.json", "commit", "content_hash"]


def _read_json_version(path: Path) -> str | None:
    if not path.is_file():
        return None
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.debug("ignoring unparseable %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        return None
    version = data.get("version")
    if isinstance(version, str) and version:
        return version
    return None


def _read_authored_toml_version(directory: Path) -> str | None:
    data = read_capability_toml(directory)
    if data is None or is_generated_descriptor(data):
        return None
    version = get_capability_table(data).get("version")
    if isinstance(version, str) and version:
        return version
    return None


def detect_version(
    directory: Path,
    fallback: str,
    fallback_source: VersionSource,
) -> tuple[str, VersionSource]:
    """Resolve the display version of a capability directory.

    Probes, first hit wins:
    1. capability.toml [capability].version (hand-authored descriptors only)
    2. .claude-plugin/plugin.json "version"
    3. package.json "version"
    4. the caller's fallback (short commit or short content hash)

    Unreadable or malformed metadata falls through to the next probe; this
    never raises for content problems.
    """
    version = _read_authored_toml_version(directory)
    if version is not None:
        return version, "capability.toml"

    version = _read_json_version(directory / ".claude-plugin" / "plugin.json")
    if version is not None:
        return version, "plugin.json"

    version = _read_json_version(directory / "package.json")
    if version is not None:
        return version, "package.json"

    return fallback, fallback_source
