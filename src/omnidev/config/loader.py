"""Load and merge omni.toml with its local override file."""

import logging
from pathlib import Path
from typing import Any

import tomli

from omnidev.capability.exceptions import CapabilityIdCollisionError
from omnidev.config.models import InvalidConfigError, OmniConfig, parse_omni_config
from omnidev.paths import get_config_path, get_local_config_path

logger = logging.getLogger(__name__)


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            return tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise InvalidConfigError(f"{path.name}: {e}") from e


def merge_config_data(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge two TOML documents.

    Tables merge key by key (so profiles and sources merge per name); any
    other value in `override` replaces the one in `base`.
    """
    merged = dict(base)
    for key, value in override.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merged[key] = merge_config_data(existing, value)
        else:
            merged[key] = value
    return merged


def load_config(project_root: Path) -> OmniConfig:
    """Load omni.toml merged with omni.local.toml (local wins).

    Missing files load as empty configuration.

    Raises:
        InvalidConfigError: If either file is malformed
        CapabilityIdCollisionError: If an id is both a source and an [mcps] entry
    """
    data = _read_toml(get_config_path(project_root))
    local = _read_toml(get_local_config_path(project_root))
    if local:
        logger.debug("merging %s", get_local_config_path(project_root))
        data = merge_config_data(data, local)

    config = parse_omni_config(data)

    collisions = sorted(set(config.capabilities.sources) & set(config.mcps))
    if collisions:
        raise CapabilityIdCollisionError(collisions)
    return config
