"""Capability source resolution.

Import from submodules:
- content_hash: compute_directory_hash
- version: detect_version
- source_config: parse_source_config, GitSourceConfig, FileSourceConfig
- git: GitClient
- fetch: fetch_capability_source, FetchResult
- wrapping: should_wrap, normalize_folder_names, discover_content, generate_capability_toml
- descriptor: read_capability_toml, write_descriptor
- lock: load_lock_file, save_lock_file, check_version_mismatch, verify_integrity
- mcp: generate_mcp_capabilities
- sources: fetch_all_capability_sources, check_for_updates
- registry: load_enabled_capabilities
- plugins: PluginLoader, NullPluginLoader, EntryPointPluginLoader
"""
