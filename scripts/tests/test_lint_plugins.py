"""Tests for lint_plugins.py."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from conftest import write_json
from diagnostics import Diagnostics, Severity
from lint_plugins import (
    check_plugin_readme,
    find_plugin_dirs,
    lint_plugins,
    main,
    validate_plugin_manifest,
)

LABEL = "demo/.claude-plugin/plugin.json"


def lint_manifest(plugin_dir: Path, name: str = "demo") -> tuple[bool, Diagnostics]:
    diagnostics = Diagnostics()
    valid = validate_plugin_manifest(plugin_dir, name, diagnostics)
    return valid, diagnostics


class TestRequiredFields:
    """Tests for name, version and description."""

    def test_valid_manifest(
        self, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should accept a complete manifest without findings."""
        valid, diagnostics = lint_manifest(make_plugin("demo", valid_manifest))
        assert valid
        assert diagnostics.errors == []
        assert diagnostics.warnings == []

    @pytest.mark.parametrize("field", ["name", "version", "description"])
    def test_missing_required_field(
        self, field: str, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should error on each missing required field."""
        del valid_manifest[field]
        valid, diagnostics = lint_manifest(make_plugin("demo", valid_manifest))
        assert not valid
        assert diagnostics.errors == [f"{LABEL} missing required field: {field}"]

    def test_name_mismatch_is_warning(
        self, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should allow a manifest name that differs from the directory."""
        valid_manifest["name"] = "demo-alias"
        valid, diagnostics = lint_manifest(make_plugin("demo", valid_manifest))
        assert valid
        assert diagnostics.warnings == [
            f'{LABEL} name "demo-alias" doesn\'t match directory name "demo"'
        ]

    @pytest.mark.parametrize("version", ["1.0", "v1.2.3", "latest"])
    def test_non_semver_version_warns(
        self, version: str, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should warn about versions without a leading major.minor.patch."""
        valid_manifest["version"] = version
        valid, diagnostics = lint_manifest(make_plugin("demo", valid_manifest))
        assert valid
        assert diagnostics.warnings == [f"{LABEL} version should follow semver: {version}"]

    def test_prerelease_version_passes(
        self, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should accept a pre-release suffix after major.minor.patch."""
        valid_manifest["version"] = "2.0.0-rc.1"
        _valid, diagnostics = lint_manifest(make_plugin("demo", valid_manifest))
        assert diagnostics.warnings == []


class TestRecommendedFields:
    """Tests for author, license, keywords and components."""

    def test_missing_recommended_fields(self, make_plugin: Callable[..., Path]) -> None:
        """Should warn, never error, about recommended fields."""
        manifest = {"name": "demo", "version": "1.0.0", "description": "Demo", "keywords": []}
        valid, diagnostics = lint_manifest(make_plugin("demo", manifest))
        assert valid
        assert diagnostics.errors == []
        assert diagnostics.warnings == [
            f"{LABEL} missing recommended field: author",
            f"{LABEL} missing recommended field: license",
            f"{LABEL} missing keywords for discoverability",
            f"{LABEL} should have at least one component "
            "(commands, agents, skills, hooks, or mcpServers)",
        ]

    def test_wrong_metadata_types_warn(
        self, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should warn about metadata fields of the wrong type."""
        valid_manifest["author"] = "Team"
        valid_manifest["keywords"] = ["ok", 3]
        valid, diagnostics = lint_manifest(make_plugin("demo", valid_manifest))
        assert valid
        assert diagnostics.warnings == [
            f"{LABEL}: author: 'Team' is not of type 'object'",
            f"{LABEL}: keywords -> 1: 3 is not of type 'string'",
        ]


class TestComponents:
    """Tests for component declarations inside the manifest."""

    def test_missing_skills_directory(
        self, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should produce exactly one error citing the missing skills path."""
        valid_manifest["skills"] = "./skills"
        valid, diagnostics = lint_manifest(make_plugin("demo", valid_manifest))
        assert not valid
        assert diagnostics.errors == [f"{LABEL} skills path does not exist: ./skills"]

    def test_command_object_rules(
        self, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should error on a command without prompt or file but not on one with both."""
        valid_manifest["commands"] = [
            {"name": "empty", "description": "Nothing"},
            {"name": "both", "description": "Both", "prompt": "Hi", "file": "./hi.md"},
        ]
        valid, diagnostics = lint_manifest(make_plugin("demo", valid_manifest))
        assert not valid
        assert diagnostics.errors == [f'{LABEL} command "empty" must have either prompt or file']

    def test_declared_components_are_all_checked(
        self, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should keep checking later components after an earlier one failed."""
        valid_manifest["commands"] = "./commands"
        valid_manifest["agents"] = {"bad": True}
        valid_manifest["mcpServers"] = "./.mcp.json"
        valid, diagnostics = lint_manifest(make_plugin("demo", valid_manifest))
        assert not valid
        assert diagnostics.errors == [
            f"{LABEL} commands path does not exist: ./commands",
            f"{LABEL} agents must be an array or string path",
            f"{LABEL} mcpServers path does not exist: ./.mcp.json",
        ]

    def test_components_on_disk(
        self, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should accept components that exist and are documented."""
        plugin_dir = make_plugin("demo", valid_manifest)
        (plugin_dir / "agents").mkdir()
        (plugin_dir / "agents" / "reviewer.md").write_text(
            "---\ndescription: Reviews code\n---\n", encoding="utf-8"
        )
        write_json(
            plugin_dir / "hooks" / "hooks.json",
            {"hooks": {"Stop": [{"hooks": [{"type": "command", "command": "echo done"}]}]}},
        )
        valid_manifest["agents"] = ["./agents/reviewer.md"]
        valid_manifest["hooks"] = "./hooks/hooks.json"
        write_json(plugin_dir / ".claude-plugin" / "plugin.json", valid_manifest)

        valid, diagnostics = lint_manifest(plugin_dir)

        assert valid
        assert diagnostics.errors == []
        assert diagnostics.warnings == []


class TestManifestLoading:
    """Tests for missing and broken manifests."""

    def test_missing_manifest(self, make_plugin: Callable[..., Path]) -> None:
        """Should record a single error for a plugin without plugin.json."""
        valid, diagnostics = lint_manifest(make_plugin("demo"))
        assert not valid
        assert diagnostics.errors == ["Plugin demo missing .claude-plugin/plugin.json"]

    def test_invalid_json(self, make_plugin: Callable[..., Path]) -> None:
        """Should record a single error for unparsable JSON."""
        plugin_dir = make_plugin("demo")
        manifest = plugin_dir / ".claude-plugin" / "plugin.json"
        manifest.parent.mkdir(parents=True)
        manifest.write_text("{", encoding="utf-8")

        valid, diagnostics = lint_manifest(plugin_dir)

        assert not valid
        assert len(diagnostics.errors) == 1
        assert diagnostics.errors[0].startswith(f"{LABEL} is not valid JSON")

    def test_not_an_object(self, make_plugin: Callable[..., Path]) -> None:
        """Should reject a manifest holding a JSON array."""
        valid, diagnostics = lint_manifest(make_plugin("demo", []))
        assert not valid
        assert diagnostics.errors == [f"{LABEL} must contain a JSON object, got list"]


class TestReadme:
    """Tests for check_plugin_readme."""

    def test_present(self, make_plugin: Callable[..., Path]) -> None:
        """Should note an existing README.md."""
        diagnostics = Diagnostics()
        assert check_plugin_readme(make_plugin("demo"), "demo", diagnostics)
        assert diagnostics.warnings == []

    def test_missing_is_warning(self, make_plugin: Callable[..., Path]) -> None:
        """Should only warn when README.md is missing."""
        diagnostics = Diagnostics()
        assert not check_plugin_readme(make_plugin("demo", readme=False), "demo", diagnostics)
        assert diagnostics.errors == []
        assert diagnostics.warnings == ["Plugin demo missing README.md"]


class TestLintPlugins:
    """Tests for directory discovery and the command-line entry point."""

    def test_find_plugin_dirs_sorted(
        self, repo_root: Path, make_plugin: Callable[..., Path]
    ) -> None:
        """Should list plugin directories by name and skip files."""
        make_plugin("zeta")
        make_plugin("alpha")
        (repo_root / "plugins" / "notes.txt").write_text("x", encoding="utf-8")
        assert [p.name for p in find_plugin_dirs(repo_root / "plugins")] == ["alpha", "zeta"]

    def test_missing_manifest_does_not_stop_run(
        self,
        repo_root: Path,
        make_plugin: Callable[..., Path],
        valid_manifest: dict[str, Any],
    ) -> None:
        """Should report one error for the broken plugin and still lint the others."""
        make_plugin("broken")
        make_plugin("demo", valid_manifest)

        results = lint_plugins(repo_root / "plugins")

        assert list(results) == ["broken", "demo"]
        assert results["broken"].errors == ["Plugin broken missing .claude-plugin/plugin.json"]
        assert results["demo"].errors == []
        assert "Plugin demo manifest is valid" in results["demo"].messages(Severity.SUCCESS)
        assert main(["--root", str(repo_root)]) == 1

    def test_no_plugins_directory(self, repo_root: Path) -> None:
        """Should pass when there is no plugins directory."""
        assert lint_plugins(repo_root / "plugins") == {}
        assert main(["--root", str(repo_root)]) == 0

    def test_empty_plugins_directory(self, repo_root: Path) -> None:
        """Should pass when the plugins directory is empty."""
        (repo_root / "plugins").mkdir()
        assert main(["--root", str(repo_root)]) == 0

    def test_warnings_pass_unless_strict(
        self, repo_root: Path, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should exit 0 with warnings, and 1 in strict mode."""
        make_plugin("demo", valid_manifest, readme=False)
        assert main(["--root", str(repo_root)]) == 0
        assert main(["--root", str(repo_root), "--strict"]) == 1

    def test_idempotent(
        self, repo_root: Path, make_plugin: Callable[..., Path], valid_manifest: dict[str, Any]
    ) -> None:
        """Should produce identical findings on repeated runs."""
        valid_manifest["skills"] = "./skills"
        make_plugin("demo", valid_manifest)
        make_plugin("other")

        first = lint_plugins(repo_root / "plugins")
        second = lint_plugins(repo_root / "plugins")

        assert {name: d.entries for name, d in first.items()} == {
            name: d.entries for name, d in second.items()
        }
        assert main(["--root", str(repo_root)]) == main(["--root", str(repo_root)]) == 1
