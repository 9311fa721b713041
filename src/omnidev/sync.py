"""The sync pipeline behind `omnidev sync`.

1. Load omni.toml (+ omni.local.toml)
2. Fetch every capability source and refresh the lock file
3. Resolve the enabled ids for the profile and load those capabilities
4. Run capability sync hooks
5. Delete artifacts of capabilities that are no longer enabled
6. Write the enabled capabilities' content
7. Rewrite .mcp.json
8. Regenerate .omni/instructions.md and .omni/.gitignore
9. Save the new resource manifest if it changed
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from omnidev.capability.plugins import run_sync_hooks
from omnidev.capability.registry import LoadedCapability, load_enabled_capabilities
from omnidev.capability.sources import SourceFetchBatch, fetch_all_capability_sources
from omnidev.config.loader import load_config
from omnidev.config.profiles import resolve_enabled_capabilities
from omnidev.context import OmniContext
from omnidev.gitignore import rebuild_gitignore
from omnidev.instructions import write_instructions
from omnidev.mcp_json.manager import sync_mcp_json
from omnidev.state.manifest import (
    CleanupResult,
    build_manifest,
    cleanup_stale_resources,
    load_manifest,
    save_manifest,
)
from omnidev.writers import materialize_capabilities

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    fetch: SourceFetchBatch
    enabled_ids: list[str]
    capabilities: list[LoadedCapability]
    cleanup: CleanupResult
    written: list[Path]
    mcp_servers: list[str]
    instructions: Path
    gitignore: Path
    manifest_written: bool
    warnings: list[str]


def run_sync(ctx: OmniContext, profile: str | None) -> SyncResult:
    """Run a full sync for ctx.project_root.

    Per-source fetch failures, missing capabilities and failing hooks become
    warnings. Config errors and failures to write the lock file, manifest,
    .mcp.json or the generated .omni files propagate.
    """
    project_root = ctx.project_root
    config = load_config(project_root)

    batch = fetch_all_capability_sources(
        project_root, config, runner=ctx.runner, time=ctx.time
    )
    warnings = list(batch.warnings)

    enabled_ids = resolve_enabled_capabilities(config, profile)
    logger.debug("enabled capabilities: %s", ", ".join(enabled_ids) or "(none)")
    loaded = load_enabled_capabilities(project_root, enabled_ids)
    warnings.extend(loaded.warnings)

    warnings.extend(run_sync_hooks(project_root, loaded.capabilities, ctx.plugin_loader))

    previous = load_manifest(project_root)
    current_ids = {capability.id for capability in loaded.capabilities}
    cleanup = cleanup_stale_resources(project_root, previous, current_ids)

    written = materialize_capabilities(project_root, loaded.capabilities)
    mcp_servers = sync_mcp_json(project_root, loaded.capabilities, previous)
    instructions = write_instructions(project_root, loaded.capabilities)
    gitignore = rebuild_gitignore(project_root, loaded.capabilities)

    manifest = build_manifest(loaded.capabilities, ctx.time.now_iso())
    manifest_written = manifest.capabilities != previous.capabilities
    if manifest_written:
        save_manifest(project_root, manifest)

    return SyncResult(
        fetch=batch,
        enabled_ids=enabled_ids,
        capabilities=loaded.capabilities,
        cleanup=cleanup,
        written=written,
        mcp_servers=mcp_servers,
        instructions=instructions,
        gitignore=gitignore,
        manifest_written=manifest_written,
        warnings=warnings,
    )
