"""In-memory representation of omni.toml."""

import re
from dataclasses import dataclass, field
from typing import Any, Literal, cast

McpTransport = Literal["stdio", "http", "sse"]
MCP_TRANSPORTS: tuple[McpTransport, ...] = ("stdio", "http", "sse")

# Ids name directories under .omni/capabilities/ and keys in .mcp.json.
CAPABILITY_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class InvalidConfigError(Exception):
    """omni.toml (or omni.local.toml) is malformed."""


@dataclass(frozen=True)
class McpConfig:
    """An MCP server definition.

    stdio servers need `command`; http and sse servers need `url`. Missing
    fields are reported when the server is registered, not when it is parsed.
    """

    transport: McpTransport = "stdio"
    command: str | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_remote(self) -> bool:
        return self.transport in ("http", "sse")


@dataclass(frozen=True)
class ProfileConfig:
    capabilities: list[str]


@dataclass(frozen=True)
class CapabilitiesConfig:
    """The [capabilities] table.

    Example:
      [capabilities]
      always_enabled = ["tasks"]
      always_disabled = []

      [capabilities.groups]
      writing = ["obsidian", "docs"]

      [capabilities.sources]
      obsidian = "github:kepano/obsidian-skills"
    """

    # Raw declarations; each is normalized when fetched so one bad entry
    # does not prevent the others from loading.
    sources: dict[str, str | dict[str, Any]] = field(default_factory=dict)
    always_enabled: list[str] = field(default_factory=list)
    always_disabled: list[str] = field(default_factory=list)
    groups: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class OmniConfig:
    project: str | None = None
    active_profile: str | None = None
    capabilities: CapabilitiesConfig = field(default_factory=CapabilitiesConfig)
    profiles: dict[str, ProfileConfig] = field(default_factory=dict)
    mcps: dict[str, McpConfig] = field(default_factory=dict)


def validate_capability_id(capability_id: str, where: str) -> str:
    if not CAPABILITY_ID_PATTERN.match(capability_id):
        raise InvalidConfigError(f"{where}: invalid capability id {capability_id!r}")
    return capability_id


def _table(data: dict[str, Any], key: str, where: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise InvalidConfigError(f"{where}{key} must be a table")
    return value


def _str_list(value: Any, where: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidConfigError(f"{where} must be a list of strings")
    return list(value)


def _str_map(value: Any, where: str) -> dict[str, str]:
    if not isinstance(value, dict):
        raise InvalidConfigError(f"{where} must be a table")
    return {str(k): str(v) for k, v in value.items()}


def _optional_str(data: dict[str, Any], key: str, where: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidConfigError(f"{where}.{key} must be a string")
    return value


def parse_mcp_config(data: dict[str, Any], where: str) -> McpConfig:
    """Parse an MCP server table ([mcps.<id>] or a capability's [mcp])."""
    transport = data.get("transport", "stdio")
    if transport not in MCP_TRANSPORTS:
        raise InvalidConfigError(f"{where}.transport must be one of {', '.join(MCP_TRANSPORTS)}")
    return McpConfig(
        transport=cast(McpTransport, transport),
        command=_optional_str(data, "command", where),
        args=_str_list(data.get("args", []), f"{where}.args"),
        env=_str_map(data.get("env", {}), f"{where}.env"),
        cwd=_optional_str(data, "cwd", where),
        url=_optional_str(data, "url", where),
        headers=_str_map(data.get("headers", {}), f"{where}.headers"),
    )


def parse_omni_config(data: dict[str, Any]) -> OmniConfig:
    """Build an OmniConfig from a merged TOML document.

    Raises:
        InvalidConfigError: If a table or field has the wrong type
    """
    capabilities = _table(data, "capabilities", "")

    sources: dict[str, str | dict[str, Any]] = {}
    for capability_id, raw in _table(capabilities, "sources", "capabilities.").items():
        validate_capability_id(capability_id, "capabilities.sources")
        if not isinstance(raw, (str, dict)):
            raise InvalidConfigError(
                f"capabilities.sources.{capability_id} must be a string or table"
            )
        sources[capability_id] = raw

    groups = {
        name: _str_list(members, f"capabilities.groups.{name}")
        for name, members in _table(capabilities, "groups", "capabilities.").items()
    }

    profiles: dict[str, ProfileConfig] = {}
    for name, profile in _table(data, "profiles", "").items():
        if not isinstance(profile, dict):
            raise InvalidConfigError(f"profiles.{name} must be a table")
        profiles[name] = ProfileConfig(
            capabilities=_str_list(profile.get("capabilities", []), f"profiles.{name}.capabilities")
        )

    mcps: dict[str, McpConfig] = {}
    for capability_id, table in _table(data, "mcps", "").items():
        validate_capability_id(capability_id, "mcps")
        if not isinstance(table, dict):
            raise InvalidConfigError(f"mcps.{capability_id} must be a table")
        mcps[capability_id] = parse_mcp_config(table, f"mcps.{capability_id}")

    return OmniConfig(
        project=_optional_str(data, "project", "omni.toml"),
        active_profile=_optional_str(data, "active_profile", "omni.toml"),
        capabilities=CapabilitiesConfig(
            sources=sources,
            always_enabled=_str_list(
                capabilities.get("always_enabled", []), "capabilities.always_enabled"
            ),
            always_disabled=_str_list(
                capabilities.get("always_disabled", []), "capabilities.always_disabled"
            ),
            groups=groups,
        ),
        profiles=profiles,
        mcps=mcps,
    )
