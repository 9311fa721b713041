"""Resolve which capabilities are enabled for a profile."""

import logging

from omnidev.config.models import OmniConfig

logger = logging.getLogger(__name__)

GROUP_PREFIX = "group:"
DEFAULT_PROFILE = "default"


def _expand_groups(entries: list[str], groups: dict[str, list[str]]) -> list[str]:
    expanded: list[str] = []
    for entry in entries:
        if not entry.startswith(GROUP_PREFIX):
            expanded.append(entry)
            continue
        group_name = entry[len(GROUP_PREFIX) :]
        members = groups.get(group_name)
        if members is None:
            logger.warning("Unknown capability group: %s", group_name)
            continue
        expanded.extend(members)
    return expanded


def resolve_profile_name(config: OmniConfig, profile_name: str | None) -> str:
    if profile_name is not None:
        return profile_name
    if config.active_profile is not None:
        return config.active_profile
    return DEFAULT_PROFILE


def resolve_enabled_capabilities(config: OmniConfig, profile_name: str | None) -> list[str]:
    """Capability ids enabled for a profile, in declaration order.

    always_enabled and the profile's list are unioned (with `group:<name>`
    references expanded) together with every [mcps] pseudo-capability, then
    always_disabled ids are removed.
    """
    name = resolve_profile_name(config, profile_name)
    profile = config.profiles.get(name)
    if profile is None and profile_name is not None:
        logger.warning("Unknown profile: %s", profile_name)

    capabilities = config.capabilities
    always = _expand_groups(capabilities.always_enabled, capabilities.groups)
    from_profile = _expand_groups(
        profile.capabilities if profile is not None else [], capabilities.groups
    )
    disabled = set(_expand_groups(capabilities.always_disabled, capabilities.groups))

    enabled: list[str] = []
    for capability_id in [*always, *from_profile, *config.mcps]:
        if capability_id in disabled or capability_id in enabled:
            continue
        enabled.append(capability_id)
    return enabled
