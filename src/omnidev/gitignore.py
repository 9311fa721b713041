"""Rebuild .omni/.gitignore from a fixed base plus capability patterns."""

import logging
from pathlib import Path

from omnidev.capability.registry import LoadedCapability
from omnidev.paths import get_omni_gitignore_path

logger = logging.getLogger(__name__)

BASE_GITIGNORE = """# OmniDev working files - always ignored
# These files change frequently and are machine-specific

# Secrets
.env

# Runtime state
state/

# Temporary clones
_temp/

# Logs
*.log

# ============================================
# Capability-specific patterns (auto-managed)
# ============================================
"""


def render_gitignore(capabilities: list[LoadedCapability]) -> str:
    sections = [
        f"\n# {capability.id} capability\n" + "".join(f"{p}\n" for p in capability.gitignore)
        for capability in capabilities
        if capability.gitignore
    ]
    return BASE_GITIGNORE + "".join(sections)


def rebuild_gitignore(project_root: Path, capabilities: list[LoadedCapability]) -> Path:
    """Overwrite .omni/.gitignore. Patterns of disabled capabilities drop out."""
    path = get_omni_gitignore_path(project_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_gitignore(capabilities), encoding="utf-8")
    logger.debug("wrote %s", path)
    return path
