"""Keep .mcp.json in step with the enabled capabilities' MCP servers.

Servers are keyed by capability id. Servers omnidev registered during the
previous sync (recorded in the previous manifest) are removed before the
current set is added, so entries a user wrote by hand survive every sync.
"""

import json
import logging
from pathlib import Path
from typing import Any

from omnidev.capability.exceptions import TransportFieldMissingError
from omnidev.capability.registry import LoadedCapability
from omnidev.config.models import McpConfig
from omnidev.paths import get_mcp_json_path
from omnidev.state.manifest import ResourceManifest

logger = logging.getLogger(__name__)


def read_mcp_json(project_root: Path) -> dict[str, Any]:
    """Read .mcp.json, returning a document with an `mcpServers` object.

    Other top-level keys are preserved. Invalid JSON loads as empty.
    """
    path = get_mcp_json_path(project_root)
    if not path.exists():
        return {"mcpServers": {}}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Ignoring unreadable %s: %s", path, e)
        return {"mcpServers": {}}
    if not isinstance(data, dict):
        return {"mcpServers": {}}
    if not isinstance(data.get("mcpServers"), dict):
        data["mcpServers"] = {}
    return data


def write_mcp_json(project_root: Path, document: dict[str, Any]) -> None:
    path = get_mcp_json_path(project_root)
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")


def build_mcp_server_config(mcp: McpConfig) -> dict[str, Any]:
    """The .mcp.json entry for a server.

    Raises:
        TransportFieldMissingError: If http/sse lacks url or stdio lacks command
    """
    if mcp.is_remote:
        if mcp.url is None:
            raise TransportFieldMissingError(mcp.transport, "url")
        remote: dict[str, Any] = {"type": mcp.transport, "url": mcp.url}
        if mcp.headers:
            remote["headers"] = dict(mcp.headers)
        return remote

    if mcp.command is None:
        raise TransportFieldMissingError(mcp.transport, "command")
    server: dict[str, Any] = {"command": mcp.command}
    if mcp.args:
        server["args"] = list(mcp.args)
    if mcp.env:
        server["env"] = dict(mcp.env)
    return server


def sync_mcp_json(
    project_root: Path,
    capabilities: list[LoadedCapability],
    previous: ResourceManifest,
) -> list[str]:
    """Rewrite .mcp.json for the enabled capabilities.

    Returns:
        Names of the servers omnidev now manages
    """
    document = read_mcp_json(project_root)
    servers: dict[str, Any] = document["mcpServers"]

    for resources in previous.capabilities.values():
        for name in resources.mcps:
            servers.pop(name, None)

    registered: list[str] = []
    for capability in capabilities:
        if capability.mcp is None:
            continue
        servers[capability.id] = build_mcp_server_config(capability.mcp)
        registered.append(capability.id)

    if not registered and not get_mcp_json_path(project_root).exists():
        return registered
    write_mcp_json(project_root, document)
    return registered
