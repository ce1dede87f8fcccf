#!/usr/bin/env -S uv run --script --quiet
# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "jsonschema>=4.20.0",
#   "pyyaml>=6.0.0",
#   "rich>=13.0.0",
# ]
# ///
"""
Lint the manifest of every plugin under plugins/.

For each plugins/<name>/ directory this checks:
- .claude-plugin/plugin.json exists and is a JSON object
- Required fields (name, version, description) and recommended fields
  (author, license, keywords)
- At least one component (commands, agents, skills, hooks, mcpServers)
- commands/agents/skills declarations: path prefixes, referenced files, inline
  definitions and markdown front matter
- hooks/mcpServers declarations: referenced files and configuration shape
- README.md is present

A plugin with a broken manifest is reported and the next plugin is still linted.

Usage:
    ./scripts/lint_plugins.py                  # Lint this repository
    ./scripts/lint_plugins.py --root ../other  # Lint another checkout
    ./scripts/lint_plugins.py --strict         # Warnings fail the run

Exit codes:
    0 - All plugins passed (warnings allowed unless --strict), or no plugins found
    1 - Errors found
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from rich.markup import escape
from rich.table import Table

from components import (
    CONFIG_COMPONENTS,
    LIST_COMPONENTS,
    validate_component,
    validate_config_component,
)
from diagnostics import (
    Diagnostics,
    calculate_exit_code,
    console,
    count_totals,
    print_summary,
    render_diagnostics,
)
from manifest_io import (
    DEFAULT_PLUGIN_ROOT,
    MANIFEST_DIR,
    PLUGIN_MANIFEST_FILE,
    README_FILE,
    has_semver_prefix,
    is_declared,
    load_json_file,
    manifest_path,
    validate_json_schema,
)

REPO_ROOT = Path(__file__).resolve().parent.parent

COMPONENT_FIELDS = ("commands", "agents", "skills", "hooks", "mcpServers")

# Types of the metadata fields; mismatches are reported as warnings
PLUGIN_METADATA_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": True,
    "properties": {
        "name": {"type": "string"},
        "version": {"type": "string"},
        "description": {"type": "string"},
        "author": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "email": {"type": "string"},
                "url": {"type": "string"},
            },
        },
        "homepage": {"type": "string"},
        "repository": {"type": "string"},
        "license": {"type": "string"},
        "keywords": {"type": "array", "items": {"type": "string"}},
    },
}


def check_required_fields(
    manifest: dict[str, Any], plugin_name: str, label: str, diagnostics: Diagnostics
) -> bool:
    valid = True

    name = manifest.get("name")
    if not is_declared(name):
        diagnostics.error(f"{label} missing required field: name")
        valid = False
    elif name != plugin_name:
        # Aliasing is allowed, so this is not an error
        diagnostics.warn(f'{label} name "{name}" doesn\'t match directory name "{plugin_name}"')

    version = manifest.get("version")
    if not is_declared(version):
        diagnostics.error(f"{label} missing required field: version")
        valid = False
    elif not has_semver_prefix(version):
        diagnostics.warn(f"{label} version should follow semver: {version}")

    if not is_declared(manifest.get("description")):
        diagnostics.error(f"{label} missing required field: description")
        valid = False

    return valid


def check_recommended_fields(
    manifest: dict[str, Any], label: str, diagnostics: Diagnostics
) -> None:
    if not is_declared(manifest.get("author")):
        diagnostics.warn(f"{label} missing recommended field: author")

    if not is_declared(manifest.get("license")):
        diagnostics.warn(f"{label} missing recommended field: license")

    keywords = manifest.get("keywords")
    if not is_declared(keywords) or (isinstance(keywords, (list, dict)) and not keywords):
        diagnostics.warn(f"{label} missing keywords for discoverability")

    for problem in validate_json_schema(manifest, PLUGIN_METADATA_SCHEMA, label):
        diagnostics.warn(problem)

    if not any(is_declared(manifest.get(field)) for field in COMPONENT_FIELDS):
        diagnostics.warn(
            f"{label} should have at least one component "
            "(commands, agents, skills, hooks, or mcpServers)"
        )


def validate_plugin_manifest(plugin_dir: Path, plugin_name: str, diagnostics: Diagnostics) -> bool:
    """Validate plugins/<name>/.claude-plugin/plugin.json.

    Args:
        plugin_dir: Plugin root directory
        plugin_name: Expected plugin name (the directory's base name)
        diagnostics: Collector for findings

    Returns:
        True if no error was recorded for this manifest
    """
    path = manifest_path(plugin_dir)
    label = f"{plugin_name}/{MANIFEST_DIR}/{PLUGIN_MANIFEST_FILE}"

    if not path.exists():
        diagnostics.error(f"Plugin {plugin_name} missing {MANIFEST_DIR}/{PLUGIN_MANIFEST_FILE}")
        return False

    manifest, load_error = load_json_file(path, label)
    if load_error:
        diagnostics.error(load_error)
        return False

    if not isinstance(manifest, dict):
        diagnostics.error(f"{label} must contain a JSON object, got {type(manifest).__name__}")
        return False

    plugin_valid = check_required_fields(manifest, plugin_name, label, diagnostics)
    check_recommended_fields(manifest, label, diagnostics)

    for kind in LIST_COMPONENTS:
        value = manifest.get(kind.field)
        if is_declared(value):
            plugin_valid = (
                validate_component(kind, value, plugin_dir, label, diagnostics) and plugin_valid
            )

    for config_kind in CONFIG_COMPONENTS:
        value = manifest.get(config_kind.field)
        if is_declared(value):
            plugin_valid = (
                validate_config_component(config_kind, value, plugin_dir, label, diagnostics)
                and plugin_valid
            )

    if plugin_valid:
        diagnostics.success(f"Plugin {plugin_name} manifest is valid")

    return plugin_valid


def check_plugin_readme(plugin_dir: Path, plugin_name: str, diagnostics: Diagnostics) -> bool:
    if not (plugin_dir / README_FILE).is_file():
        diagnostics.warn(f"Plugin {plugin_name} missing {README_FILE}")
        return False
    diagnostics.success(f"Plugin {plugin_name} has {README_FILE}")
    return True


def find_plugin_dirs(plugins_dir: Path) -> list[Path]:
    """Return the plugin directories under plugins_dir, sorted by name."""
    return sorted(
        (entry for entry in plugins_dir.iterdir() if entry.is_dir()), key=lambda p: p.name
    )


def lint_plugin(plugin_dir: Path) -> Diagnostics:
    diagnostics = Diagnostics()
    validate_plugin_manifest(plugin_dir, plugin_dir.name, diagnostics)
    check_plugin_readme(plugin_dir, plugin_dir.name, diagnostics)
    return diagnostics


def lint_plugins(plugins_dir: Path) -> dict[str, Diagnostics]:
    """Lint every plugin directory; an absent plugins_dir yields no results."""
    if not plugins_dir.is_dir():
        return {}
    return {
        plugin_dir.name: lint_plugin(plugin_dir) for plugin_dir in find_plugin_dirs(plugins_dir)
    }


def print_results_table(results: dict[str, Diagnostics]) -> None:
    table = Table(title="Plugin Lint Summary", show_header=True, header_style="bold cyan")
    table.add_column("Plugin", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Errors", justify="center")
    table.add_column("Warnings", justify="center")

    for plugin_name, diagnostics in results.items():
        errors = len(diagnostics.errors)
        warnings = len(diagnostics.warnings)
        table.add_row(
            escape(plugin_name),
            "[red]✗[/red]" if errors else "[green]✓[/green]",
            f"[red]{errors}[/red]" if errors else "[green]0[/green]",
            f"[yellow]{warnings}[/yellow]" if warnings else "[green]0[/green]",
        )

    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lint the plugin manifests under plugins/",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Linting passed (or no plugins found)
  1 - Linting failed (errors found, or warnings in strict mode)
        """,
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=REPO_ROOT,
        help="Repository root containing the plugins/ directory (default: this repository)",
    )
    parser.add_argument(
        "--strict", action="store_true", help="Treat warnings as errors (useful for CI/CD)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Lint all plugins and return the exit code."""
    args = build_parser().parse_args(argv)
    plugins_dir = args.root / DEFAULT_PLUGIN_ROOT

    console.print("[bold cyan]🔍 Linting plugin manifests[/bold cyan]\n")

    if not plugins_dir.is_dir():
        console.print("[cyan]ℹ[/cyan] No plugins directory found, skipping plugin linting")
        return 0

    results = lint_plugins(plugins_dir)
    if not results:
        console.print("[cyan]ℹ[/cyan] No plugins found in plugins directory")
        return 0

    console.print(f"[cyan]ℹ[/cyan] Found {len(results)} plugin(s) to validate")

    for plugin_name, diagnostics in results.items():
        console.print(f"\n[bold]📦 Validating plugin: {escape(plugin_name)}[/bold]")
        console.rule(style="dim")
        render_diagnostics(diagnostics)

    console.print()
    print_results_table(results)

    total_errors, total_warnings = count_totals(results.values())
    print_summary("Linting", total_errors, total_warnings, strict=args.strict)
    return calculate_exit_code(total_errors, total_warnings, strict=args.strict)


if __name__ == "__main__":
    sys.exit(main())
