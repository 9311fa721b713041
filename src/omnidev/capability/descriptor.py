"""Reading and writing capability.toml descriptors.

Descriptors synthesized by omnidev carry `wrapped = true` under
`[capability.metadata]`. That marker is how later runs tell a generated
descriptor apart from one a capability author wrote by hand.
"""

import logging
from pathlib import Path
from typing import Any

import tomli
import tomli_w

from omnidev.paths import CAPABILITY_TOML

logger = logging.getLogger(__name__)


def read_capability_toml(directory: Path) -> dict[str, Any] | None:
    """Parse directory/capability.toml.

    Returns:
        Parsed document, or None when the file is missing or not valid TOML
    """
    path = directory / CAPABILITY_TOML
    if not path.is_file():
        return None
    try:
        with open(path, "rb") as f:
            return tomli.load(f)
    except (tomli.TOMLDecodeError, UnicodeDecodeError) as e:
        logger.debug("ignoring unparseable %s: %s", path, e)
        return None


def get_capability_table(data: dict[str, Any]) -> dict[str, Any]:
    capability = data.get("capability")
    if isinstance(capability, dict):
        return capability
    return {}


def get_metadata_table(data: dict[str, Any]) -> dict[str, Any]:
    metadata = get_capability_table(data).get("metadata")
    if isinstance(metadata, dict):
        return metadata
    return {}


def is_generated_descriptor(data: dict[str, Any]) -> bool:
    return get_metadata_table(data).get("wrapped") is True


def is_generated_mcp_descriptor(data: dict[str, Any]) -> bool:
    return get_metadata_table(data).get("generated_from_omni_toml") is True


def has_authored_capability_toml(directory: Path) -> bool:
    """Whether directory holds a capability.toml that omnidev did not generate.

    An unparseable descriptor still counts as authored: it is the author's
    file and must not be overwritten by wrapping.
    """
    if not (directory / CAPABILITY_TOML).is_file():
        return False
    data = read_capability_toml(directory)
    if data is None:
        return True
    return not is_generated_descriptor(data)


def render_descriptor(header_lines: list[str], document: dict[str, Any]) -> str:
    header = "".join(f"# {line}\n" for line in header_lines)
    return f"{header}\n{tomli_w.dumps(document)}"


def write_descriptor(directory: Path, content: str) -> bool:
    """Write capability.toml unless it already holds exactly this content.

    Returns:
        True if the file was written
    """
    path = directory / CAPABILITY_TOML
    if path.is_file() and path.read_text(encoding="utf-8") == content:
        return False
    path.write_text(content, encoding="utf-8")
    return True
