"""Optional code-level hooks capabilities can contribute to a sync.

Capability content is mostly static files. A capability that needs to run
code during `omnidev sync` ships a CapabilityPlugin, found through a
PluginLoader. The default loader finds nothing.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from importlib.metadata import entry_points
from pathlib import Path

from omnidev.capability.registry import LoadedCapability

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "omnidev.capabilities"


@dataclass(frozen=True)
class SyncHookContext:
    project_root: Path
    capability: LoadedCapability


class CapabilityPlugin(ABC):
    """Code contributed by a capability. Every hook is optional."""

    def sync(self, context: SyncHookContext) -> None:
        """Called once per sync after the capability has been loaded."""
        return None


class PluginLoader(ABC):
    @abstractmethod
    def load(self, capability: LoadedCapability) -> CapabilityPlugin | None:
        """Return the plugin for a capability, or None if it has none."""
        ...


class NullPluginLoader(PluginLoader):
    def load(self, capability: LoadedCapability) -> CapabilityPlugin | None:
        return None


class StaticPluginLoader(PluginLoader):
    """Plugins supplied up front, keyed by capability id."""

    def __init__(self, plugins: Mapping[str, CapabilityPlugin]) -> None:
        self._plugins = dict(plugins)

    def load(self, capability: LoadedCapability) -> CapabilityPlugin | None:
        return self._plugins.get(capability.id)


class EntryPointPluginLoader(PluginLoader):
    """Plugins registered by installed distributions.

    An entry point named after the capability id in the
    `omnidev.capabilities` group must resolve to a CapabilityPlugin subclass
    or instance.
    """

    def __init__(self, group: str = ENTRY_POINT_GROUP) -> None:
        self._group = group

    def load(self, capability: LoadedCapability) -> CapabilityPlugin | None:
        matches = entry_points(group=self._group, name=capability.id)
        for entry_point in matches:
            target = entry_point.load()
            plugin = target() if isinstance(target, type) else target
            if not isinstance(plugin, CapabilityPlugin):
                raise TypeError(
                    f"Entry point {entry_point.value} is not a CapabilityPlugin"
                )
            return plugin
        return None


def run_sync_hooks(
    project_root: Path, capabilities: list[LoadedCapability], loader: PluginLoader
) -> list[str]:
    """Run each capability's sync hook.

    A failing hook is logged and reported as a warning; it never stops the
    sync or the remaining hooks.

    Returns:
        Warnings for hooks that failed
    """
    warnings: list[str] = []
    for capability in capabilities:
        try:
            plugin = loader.load(capability)
            if plugin is None:
                continue
            plugin.sync(SyncHookContext(project_root=project_root, capability=capability))
        except Exception as e:
            logger.warning("Sync hook of %s failed: %s", capability.id, e, exc_info=True)
            warnings.append(f"Sync hook of {capability.id} failed: {e}")
    return warnings
