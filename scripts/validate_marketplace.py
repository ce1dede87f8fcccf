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
Validate the marketplace manifest (.claude-plugin/marketplace.json).

Checks:
- Top-level fields: name (kebab-case), owner (name, email), plugins array
- Recommended fields: description, version
- Every plugin entry: name (kebab-case, unique), source, description, version
- Local sources: plugin directory exists under pluginRoot and has its own
  .claude-plugin/plugin.json
- Remote sources: github sources carry a repo, url sources carry a url

Usage:
    ./scripts/validate_marketplace.py                  # Validate this repository
    ./scripts/validate_marketplace.py --root ../other  # Validate another checkout
    ./scripts/validate_marketplace.py --strict         # Warnings fail the run

Exit codes:
    0 - Validation passed (warnings allowed unless --strict)
    1 - Errors found, marketplace.json missing or unparsable
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

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
    MARKETPLACE_FILE,
    PLUGIN_MANIFEST_FILE,
    is_declared,
    is_kebab_case,
    load_json_file,
    looks_like_email,
    manifest_path,
    marketplace_path,
)

REPO_ROOT = Path(__file__).resolve().parent.parent

# Required field of a remote source object, keyed by source kind
REMOTE_SOURCE_FIELDS = {
    "github": "repo",
    "url": "url",
}


def load_marketplace(root: Path, diagnostics: Diagnostics) -> dict[str, Any] | None:
    """Load marketplace.json, recording a fatal error when it cannot be used."""
    path = marketplace_path(root)
    if not path.exists():
        diagnostics.error(f"{MARKETPLACE_FILE} not found at: {path}")
        return None

    data, load_error = load_json_file(path, MARKETPLACE_FILE)
    if load_error:
        diagnostics.error(load_error)
        return None

    if not isinstance(data, dict):
        diagnostics.error(
            f"{MARKETPLACE_FILE} must contain a JSON object, got {type(data).__name__}"
        )
        return None

    return data


def plugin_root_of(marketplace: dict[str, Any]) -> str:
    """Directory that string sources are relative to."""
    plugin_root = marketplace.get("pluginRoot")
    if not is_declared(plugin_root):
        metadata = marketplace.get("metadata")
        if isinstance(metadata, dict):
            plugin_root = metadata.get("pluginRoot")
    return plugin_root if isinstance(plugin_root, str) and plugin_root else DEFAULT_PLUGIN_ROOT


def validate_marketplace(marketplace: dict[str, Any], diagnostics: Diagnostics) -> None:
    """Validate the top-level fields of marketplace.json."""
    diagnostics.info(f"Validating {MARKETPLACE_FILE} structure...")

    name = marketplace.get("name")
    if not is_declared(name):
        diagnostics.error(f"{MARKETPLACE_FILE} missing required field: name")
    elif not is_kebab_case(name):
        diagnostics.error(f"{MARKETPLACE_FILE} name must be kebab-case: {name}")
    else:
        diagnostics.success(f"Marketplace name: {name}")

    owner = marketplace.get("owner")
    if not is_declared(owner):
        diagnostics.error(f"{MARKETPLACE_FILE} missing required field: owner")
    elif not isinstance(owner, dict):
        diagnostics.error(f"{MARKETPLACE_FILE} owner must be an object")
    else:
        owner_valid = True
        if not is_declared(owner.get("name")):
            diagnostics.error(f"{MARKETPLACE_FILE} owner missing required field: name")
            owner_valid = False
        email = owner.get("email")
        if not is_declared(email):
            diagnostics.error(f"{MARKETPLACE_FILE} owner missing required field: email")
            owner_valid = False
        elif not looks_like_email(email):
            diagnostics.warn(f"{MARKETPLACE_FILE} owner.email may not be valid: {email}")
        if owner_valid:
            diagnostics.success(f"Owner: {owner.get('name')} <{email}>")

    plugins = marketplace.get("plugins")
    if not isinstance(plugins, list):
        diagnostics.error(f"{MARKETPLACE_FILE} missing required field: plugins (must be an array)")
    else:
        diagnostics.success(f"Found {len(plugins)} plugin(s)")

    if not is_declared(marketplace.get("description")):
        diagnostics.warn(f"{MARKETPLACE_FILE} missing recommended field: description")

    if not is_declared(marketplace.get("version")):
        diagnostics.warn(f"{MARKETPLACE_FILE} missing recommended field: version")


def validate_plugin_source(
    source: Any,
    plugin_label: str,
    root: Path,
    plugin_root: str,
    diagnostics: Diagnostics,
) -> None:
    """Validate the source of one plugin entry."""
    if isinstance(source, str):
        plugin_dir = root / plugin_root / source
        if not plugin_dir.is_dir():
            diagnostics.error(f"{plugin_label} source path does not exist: {source}")
            return
        if not manifest_path(plugin_dir).exists():
            diagnostics.error(
                f"{plugin_label} missing {MANIFEST_DIR}/{PLUGIN_MANIFEST_FILE} at: "
                f"{manifest_path(plugin_dir)}"
            )
            return
        diagnostics.success(f"{plugin_label}: local source {source}")
        return

    if isinstance(source, dict):
        kind = source.get("source")
        if not is_declared(kind):
            diagnostics.error(f"{plugin_label} source object missing 'source' field")
            return

        required = REMOTE_SOURCE_FIELDS.get(kind) if isinstance(kind, str) else None
        if required is None:
            # The set of source kinds is open-ended
            diagnostics.warn(f"{plugin_label} unknown source type: {kind}")
        elif not is_declared(source.get(required)):
            diagnostics.error(f"{plugin_label} {kind} source missing '{required}' field")
        else:
            diagnostics.success(f"{plugin_label}: {kind} source {source[required]}")
        return

    diagnostics.error(f"{plugin_label} source must be string or object")


def validate_plugin_entries(
    marketplace: dict[str, Any], root: Path, diagnostics: Diagnostics
) -> None:
    """Validate every entry of the plugins array."""
    plugins = marketplace.get("plugins")
    if not isinstance(plugins, list):
        return

    diagnostics.info("Validating plugin entries...")

    plugin_root = plugin_root_of(marketplace)
    seen_names: set[str] = set()

    for index, plugin in enumerate(plugins, start=1):
        entry_label = f"Plugin #{index}"

        if not isinstance(plugin, dict):
            diagnostics.error(f"{entry_label} must be an object")
            continue

        name = plugin.get("name")
        if not is_declared(name):
            diagnostics.error(f"{entry_label} missing required field: name")
            continue
        if not is_kebab_case(name):
            diagnostics.error(f"{entry_label} name must be kebab-case: {name}")

        # Only repeats are flagged, never the first occurrence
        name_key = str(name)
        if name_key in seen_names:
            diagnostics.error(f"Duplicate plugin name: {name}")
        seen_names.add(name_key)

        plugin_label = f"{entry_label} ({name})"

        source = plugin.get("source")
        if not is_declared(source):
            diagnostics.error(f"{plugin_label} missing required field: source")
            continue

        validate_plugin_source(source, plugin_label, root, plugin_root, diagnostics)

        if not is_declared(plugin.get("description")):
            diagnostics.warn(f"{plugin_label} missing recommended field: description")

        if not is_declared(plugin.get("version")):
            diagnostics.warn(f"{plugin_label} missing recommended field: version")


def check_marketplace(root: Path) -> Diagnostics:
    """Run every marketplace check against the repository at root."""
    diagnostics = Diagnostics()

    marketplace = load_marketplace(root, diagnostics)
    if marketplace is None:
        return diagnostics

    validate_marketplace(marketplace, diagnostics)
    validate_plugin_entries(marketplace, root, diagnostics)
    return diagnostics


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate the plugin marketplace manifest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Validation passed
  1 - Validation failed (errors found, or warnings in strict mode)
        """,
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=REPO_ROOT,
        help="Repository root holding .claude-plugin/marketplace.json (default: this repository)",
    )
    parser.add_argument(
        "--strict", action="store_true", help="Treat warnings as errors (useful for CI/CD)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Validate the marketplace and return the exit code."""
    args = build_parser().parse_args(argv)

    console.print("[bold cyan]🔍 Validating plugin marketplace[/bold cyan]\n")

    diagnostics = check_marketplace(args.root)
    render_diagnostics(diagnostics)

    total_errors, total_warnings = count_totals([diagnostics])
    print_summary("Validation", total_errors, total_warnings, strict=args.strict)
    return calculate_exit_code(total_errors, total_warnings, strict=args.strict)


if __name__ == "__main__":
    sys.exit(main())
