"""Project-relative locations of omnidev state and generated artifacts.

Every helper takes the project root explicitly; nothing here consults the
process working directory.
"""

from pathlib import Path

OMNI_DIR_NAME = ".omni"
CONFIG_FILE_NAME = "omni.toml"
LOCAL_CONFIG_FILE_NAME = "omni.local.toml"
LOCK_FILE_NAME = "omni.lock.toml"
CAPABILITY_TOML = "capability.toml"
RULE_FILE_PREFIX = "omnidev-"


def get_omni_dir(project_root: Path) -> Path:
    return project_root / OMNI_DIR_NAME


def get_capabilities_dir(project_root: Path) -> Path:
    """Directory holding one materialized subdirectory per capability id."""
    return get_omni_dir(project_root) / "capabilities"


def get_capability_path(project_root: Path, capability_id: str) -> Path:
    return get_capabilities_dir(project_root) / capability_id


def get_temp_dir(project_root: Path) -> Path:
    """Parent directory for short-lived clones of monorepo sources."""
    return get_omni_dir(project_root) / "_temp"


def get_lock_file_path(project_root: Path) -> Path:
    return project_root / LOCK_FILE_NAME


def get_manifest_path(project_root: Path) -> Path:
    return get_omni_dir(project_root) / "state" / "manifest.json"


def get_config_path(project_root: Path) -> Path:
    return project_root / CONFIG_FILE_NAME


def get_local_config_path(project_root: Path) -> Path:
    return project_root / LOCAL_CONFIG_FILE_NAME


def get_mcp_json_path(project_root: Path) -> Path:
    return project_root / ".mcp.json"


def get_skill_dir(project_root: Path, skill_name: str) -> Path:
    return project_root / ".claude" / "skills" / skill_name


def get_command_path(project_root: Path, command_name: str) -> Path:
    return project_root / ".claude" / "commands" / f"{command_name}.md"


def get_subagent_path(project_root: Path, subagent_name: str) -> Path:
    return project_root / ".claude" / "agents" / f"{subagent_name}.md"


def get_rule_path(project_root: Path, rule_name: str) -> Path:
    return project_root / ".cursor" / "rules" / f"{RULE_FILE_PREFIX}{rule_name}.mdc"


def get_instructions_path(project_root: Path) -> Path:
    """Generated instructions combining capability docs and rules."""
    return get_omni_dir(project_root) / "instructions.md"


def get_omni_gitignore_path(project_root: Path) -> Path:
    return get_omni_dir(project_root) / ".gitignore"
