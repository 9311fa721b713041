"""Shared fixtures for omnidev tests."""

from pathlib import Path

import pytest


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Alias for tmp_path with semantic meaning as a project directory.

    Tests that use 'tmp_project' communicate that they operate on a project
    root (omni.toml, .omni/, .claude/ live underneath it).
    """
    project = tmp_path / "project"
    project.mkdir()
    return project
