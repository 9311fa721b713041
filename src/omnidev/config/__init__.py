"""Project configuration (omni.toml and omni.local.toml).

Import from submodules:
- models: OmniConfig, CapabilitiesConfig, ProfileConfig, McpConfig
- loader: load_config
- profiles: resolve_enabled_capabilities
"""
