"""Pytest configuration for the marketplace validator tests."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Add scripts directory to Python path for imports
SCRIPTS_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(SCRIPTS_DIR))


def write_json(path: Path, data: Any) -> Path:
    """Write data as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    """An empty repository checkout."""
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def valid_marketplace() -> dict[str, Any]:
    """A marketplace.json with every recommended field and no plugins."""
    return {
        "name": "team-tools",
        "description": "Plugins used by the team",
        "version": "1.0.0",
        "owner": {"name": "Team", "email": "team@example.com"},
        "plugins": [],
    }


@pytest.fixture
def valid_manifest() -> dict[str, Any]:
    """A plugin.json for a plugin named "demo" that produces no findings."""
    return {
        "name": "demo",
        "version": "1.2.3",
        "description": "Demo plugin",
        "author": {"name": "Team", "email": "team@example.com"},
        "license": "MIT",
        "keywords": ["demo"],
        "hooks": {"hooks": {}},
    }


@pytest.fixture
def make_plugin(repo_root: Path) -> Callable[..., Path]:
    """Factory that creates plugins/<name>/ with an optional manifest and README."""

    def _make_plugin(
        name: str,
        manifest: dict[str, Any] | None = None,
        *,
        readme: bool = True,
    ) -> Path:
        plugin_dir = repo_root / "plugins" / name
        plugin_dir.mkdir(parents=True, exist_ok=True)
        if manifest is not None:
            write_json(plugin_dir / ".claude-plugin" / "plugin.json", manifest)
        if readme:
            (plugin_dir / "README.md").write_text(f"# {name}\n", encoding="utf-8")
        return plugin_dir

    return _make_plugin
