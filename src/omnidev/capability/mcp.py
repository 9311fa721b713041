"""Pseudo-capabilities generated from the [mcps] section of omni.toml.

Each [mcps.<id>] entry becomes .omni/capabilities/<id>/capability.toml with
an [mcp] table, so MCP servers flow through the same registry, manifest and
.mcp.json sync as fetched capabilities.
"""

import logging
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from omnidev.capability.descriptor import (
    is_generated_mcp_descriptor,
    read_capability_toml,
    render_descriptor,
    write_descriptor,
)
from omnidev.capability.exceptions import TransportFieldMissingError
from omnidev.config.models import McpConfig
from omnidev.paths import get_capabilities_dir, get_capability_path

logger = logging.getLogger(__name__)

MCP_HEADER = ["Auto-generated by omnidev from omni.toml [mcps] section - DO NOT EDIT"]
MCP_CAPABILITY_VERSION = "1.0.0"


@dataclass(frozen=True)
class McpGenerationResult:
    written: list[str]
    removed: list[str]
    warnings: list[str]


def mcp_table(mcp: McpConfig) -> dict[str, Any]:
    """The [mcp] table for a server definition.

    Raises:
        TransportFieldMissingError: If the transport's required field is absent
    """
    table: dict[str, Any] = {"transport": mcp.transport}
    if mcp.is_remote:
        if mcp.url is None:
            raise TransportFieldMissingError(mcp.transport, "url")
        table["url"] = mcp.url
        if mcp.headers:
            table["headers"] = dict(mcp.headers)
        return table

    if mcp.command is None:
        raise TransportFieldMissingError(mcp.transport, "command")
    table["command"] = mcp.command
    if mcp.args:
        table["args"] = list(mcp.args)
    if mcp.cwd is not None:
        table["cwd"] = mcp.cwd
    if mcp.env:
        table["env"] = dict(mcp.env)
    return table


def render_mcp_capability_toml(capability_id: str, mcp: McpConfig) -> str:
    document = {
        "capability": {
            "id": capability_id,
            "name": f"{capability_id} (MCP)",
            "version": MCP_CAPABILITY_VERSION,
            "description": "MCP server defined in omni.toml",
            "metadata": {"wrapped": True, "generated_from_omni_toml": True},
        },
        "mcp": mcp_table(mcp),
    }
    return render_descriptor(MCP_HEADER, document)


def cleanup_stale_mcp_capabilities(project_root: Path, current_ids: set[str]) -> list[str]:
    """Delete generated MCP pseudo-capabilities whose id left [mcps].

    Only directories whose descriptor carries generated_from_omni_toml are
    considered; fetched capabilities are never touched.

    Returns:
        Removed capability ids
    """
    capabilities_dir = get_capabilities_dir(project_root)
    if not capabilities_dir.is_dir():
        return []

    removed: list[str] = []
    for entry in sorted(capabilities_dir.iterdir(), key=lambda p: p.name):
        if not entry.is_dir() or entry.is_symlink() or entry.name in current_ids:
            continue
        data = read_capability_toml(entry)
        if data is None or not is_generated_mcp_descriptor(data):
            continue
        shutil.rmtree(entry)
        logger.debug("removed stale MCP capability %s", entry.name)
        removed.append(entry.name)
    return removed


def generate_mcp_capabilities(
    project_root: Path, mcps: Mapping[str, McpConfig]
) -> McpGenerationResult:
    """Write one pseudo-capability per [mcps] entry and prune stale ones.

    A definition missing its transport's required field produces a warning;
    its id still counts as configured, so an existing directory is kept.
    """
    written: list[str] = []
    warnings: list[str] = []
    for capability_id, mcp in mcps.items():
        try:
            content = render_mcp_capability_toml(capability_id, mcp)
        except TransportFieldMissingError as e:
            logger.warning("Skipping MCP %s: %s", capability_id, e)
            warnings.append(f"{capability_id}: {e}")
            continue
        target = get_capability_path(project_root, capability_id)
        target.mkdir(parents=True, exist_ok=True)
        if write_descriptor(target, content):
            written.append(capability_id)

    removed = cleanup_stale_mcp_capabilities(project_root, set(mcps))
    return McpGenerationResult(written=written, removed=removed, warnings=warnings)
