"""Project .mcp.json maintenance.

Import from submodules:
- manager: sync_mcp_json, read_mcp_json, build_mcp_server_config
"""
