"""
File loading and path helpers shared by the marketplace validators.

Everything here converts filesystem and parsing failures into plain error strings so
the validators can record them and keep going.
"""

from __future__ import annotations

import json
import os.path
import re
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError, UnknownType

MANIFEST_DIR = ".claude-plugin"
MARKETPLACE_FILE = "marketplace.json"
PLUGIN_MANIFEST_FILE = "plugin.json"
README_FILE = "README.md"
DEFAULT_PLUGIN_ROOT = "plugins"

# Relative references inside manifests must start with this prefix
RELATIVE_PREFIX = "./"

KEBAB_CASE_PATTERN = re.compile(r"[a-z0-9-]+")
# Only a leading major.minor.patch is required, pre-release suffixes are fine
SEMVER_PREFIX_PATTERN = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def is_kebab_case(value: Any) -> bool:
    return isinstance(value, str) and KEBAB_CASE_PATTERN.fullmatch(value) is not None


def has_semver_prefix(value: Any) -> bool:
    return SEMVER_PREFIX_PATTERN.match(str(value)) is not None


def looks_like_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.fullmatch(value) is not None


def is_declared(value: Any) -> bool:
    """Return True when a manifest field carries a value.

    None, empty strings, False and zero count as absent. Empty lists and objects
    count as present so that their shape still gets checked.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return value != 0
    return True


def manifest_path(plugin_dir: Path) -> Path:
    return plugin_dir / MANIFEST_DIR / PLUGIN_MANIFEST_FILE


def marketplace_path(root: Path) -> Path:
    return root / MANIFEST_DIR / MARKETPLACE_FILE


def resolve_plugin_path(
    base_dir: Path, relative_path: str, context: str
) -> tuple[Path | None, str | None]:
    """Resolve a manifest-relative path, refusing paths that leave base_dir.

    Args:
        base_dir: Directory the reference is relative to
        relative_path: Path string taken from a manifest
        context: Prefix for the error message

    Returns:
        Tuple of (resolved_path, error_message). If error, path is None.
    """
    try:
        base_resolved = base_dir.resolve()
        # normpath collapses ".." before the containment check, Path("/") does not
        normalized = Path(os.path.normpath(os.path.join(str(base_resolved), relative_path)))
        try:
            normalized.relative_to(base_resolved)
        except ValueError:
            return None, f"{context} path escapes the plugin directory: {relative_path}"
        return normalized, None
    except (OSError, ValueError) as e:
        return None, f"{context} path is invalid: {relative_path} ({e})"


def load_json_file(path: Path, label: str) -> tuple[Any, str | None]:
    """Read and parse a JSON file.

    Args:
        path: File to read
        label: Name used in the error message, e.g. "marketplace.json"

    Returns:
        Tuple of (parsed_json, error_message). On failure data is None.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f), None
    except FileNotFoundError:
        return None, f"{label} not found at: {path}"
    except PermissionError:
        return None, f"{label}: permission denied reading {path}"
    except json.JSONDecodeError as e:
        return None, f"{label} is not valid JSON: line {e.lineno}, column {e.colno}: {e.msg}"
    except UnicodeDecodeError:
        return None, f"{label} is not valid UTF-8 (ensure the file is text, not binary)"
    except OSError as e:
        return None, f"{label}: cannot read file: {e}"


def read_frontmatter(file_path: Path) -> tuple[dict[str, Any] | None, str | None]:
    """Parse the YAML front matter block at the top of a markdown file.

    Returns:
        Tuple of (frontmatter_mapping, problem). On failure the mapping is None.
    """
    try:
        content = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        return None, f"file is not valid UTF-8 (error at byte {e.start}: {e.reason})"
    except OSError as e:
        return None, f"cannot read file: {e}"

    if not content.startswith("---"):
        return None, "missing YAML front matter (must start with ---)"

    parts = content.split("---", 2)
    if len(parts) < 3:
        return None, "malformed front matter (missing closing ---)"

    try:
        frontmatter = yaml.safe_load(parts[1].strip())
    except yaml.YAMLError as e:
        return None, f"invalid YAML in front matter: {e}"

    if not isinstance(frontmatter, dict):
        return None, (
            "front matter must be a YAML mapping (key-value pairs), "
            f"got {type(frontmatter).__name__}"
        )

    return frontmatter, None


def missing_frontmatter_fields(file_path: Path, required_fields: tuple[str, ...]) -> list[str]:
    """List problems with a markdown definition's front matter, empty when fine."""
    frontmatter, problem = read_frontmatter(file_path)
    if frontmatter is None:
        return [problem or "unreadable front matter"]

    problems: list[str] = []
    for field_name in required_fields:
        if field_name not in frontmatter:
            problems.append(f"missing '{field_name}' in front matter")
        elif not frontmatter[field_name]:
            problems.append(f"'{field_name}' in front matter is empty or null")
    return problems


def validate_json_schema(data: Any, schema: dict[str, Any], context: str) -> list[str]:
    """Validate JSON data against a JSON Schema Draft 7 definition.

    Args:
        data: Parsed JSON value to validate
        schema: JSON Schema dict (Draft 7 format)
        context: Human-readable context for messages

    Returns:
        List of formatted messages with context and field paths
    """
    problems: list[str] = []

    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        return [f"{context}: INTERNAL ERROR - invalid schema definition: {e.message}"]
    validator = Draft7Validator(schema)

    try:
        for error in sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.path))):
            path = " -> ".join(str(p) for p in error.path) if error.path else "root"
            problems.append(f"{context}: {path}: {error.message}")
    except RecursionError:
        problems.append(f"{context}: data structure too deeply nested (recursion limit)")
    except UnknownType as e:
        problems.append(f"{context}: unknown type in schema: {e}")

    return problems
