"""Sync state kept under .omni/state/.

Import from submodules:
- manifest: ResourceManifest, load_manifest, save_manifest, cleanup_stale_resources
"""
