"""
Validation of the component declarations in a plugin manifest.

``commands``, ``agents`` and ``skills`` accept either a directory path string or a
list whose elements are path strings or inline definitions. Each declaration is first
classified into one of the dataclasses below, then checked branch by branch.

``hooks`` and ``mcpServers`` accept a path to a JSON file or an inline object; their
content is checked against JSON Schemas and only ever produces warnings.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from diagnostics import Diagnostics
from manifest_io import (
    RELATIVE_PREFIX,
    is_declared,
    load_json_file,
    missing_frontmatter_fields,
    resolve_plugin_path,
    validate_json_schema,
)


@dataclass(frozen=True)
class ComponentKind:
    """Rules for one list-style component field of plugin.json."""

    field: str
    singular: str
    # Fields of which an inline definition needs at least one; None means inline
    # definitions are not a supported shape and are skipped
    inline_body: tuple[str, ...] | None
    # Whether unsupported shapes are reported or silently ignored
    strict_shape: bool
    frontmatter_fields: tuple[str, ...]
    # File that marks a directory as a single definition, e.g. skills/<name>/SKILL.md
    definition_file: str | None = None


COMMANDS = ComponentKind(
    field="commands",
    singular="command",
    inline_body=("prompt", "file"),
    strict_shape=True,
    frontmatter_fields=("description",),
)
AGENTS = ComponentKind(
    field="agents",
    singular="agent",
    inline_body=("prompt",),
    strict_shape=True,
    frontmatter_fields=("description",),
)
SKILLS = ComponentKind(
    field="skills",
    singular="skill",
    inline_body=None,
    strict_shape=False,
    frontmatter_fields=("name", "description"),
    definition_file="SKILL.md",
)

LIST_COMPONENTS = (COMMANDS, AGENTS, SKILLS)


@dataclass(frozen=True)
class DirectoryRef:
    path: str


@dataclass(frozen=True)
class PathEntry:
    number: int
    path: str


@dataclass(frozen=True)
class InlineEntry:
    number: int
    definition: dict[str, Any]


@dataclass(frozen=True)
class UnknownEntry:
    number: int
    value: Any


ComponentEntry = PathEntry | InlineEntry | UnknownEntry


@dataclass(frozen=True)
class EntryList:
    entries: tuple[ComponentEntry, ...]


@dataclass(frozen=True)
class InvalidShape:
    value: Any


ComponentDeclaration = DirectoryRef | EntryList | InvalidShape


def classify_entry(number: int, value: Any) -> ComponentEntry:
    """Classify one list element; number is 1-based."""
    if isinstance(value, str):
        return PathEntry(number, value)
    if isinstance(value, dict):
        return InlineEntry(number, value)
    return UnknownEntry(number, value)


def classify_declaration(value: Any) -> ComponentDeclaration:
    if isinstance(value, str):
        return DirectoryRef(value)
    if isinstance(value, list):
        return EntryList(tuple(classify_entry(i, item) for i, item in enumerate(value, start=1)))
    return InvalidShape(value)


def existing_target(
    plugin_dir: Path,
    reference: str,
    context: str,
    missing_message: str,
    diagnostics: Diagnostics,
) -> Path | None:
    """Resolve a manifest reference and record an error unless it exists."""
    target, error = resolve_plugin_path(plugin_dir, reference, context)
    if error:
        diagnostics.error(error)
        return None
    if target is None or not target.exists():
        diagnostics.error(missing_message)
        return None
    return target


def _display_path(plugin_dir: Path, target: Path) -> str:
    try:
        return RELATIVE_PREFIX + target.relative_to(plugin_dir.resolve()).as_posix()
    except ValueError:
        return str(target)


def _check_definition_file(
    kind: ComponentKind, plugin_dir: Path, file_path: Path, label: str, diagnostics: Diagnostics
) -> None:
    for problem in missing_frontmatter_fields(file_path, kind.frontmatter_fields):
        diagnostics.warn(
            f"{label} {kind.singular} definition {_display_path(plugin_dir, file_path)}: {problem}"
        )


def check_definitions(
    kind: ComponentKind, plugin_dir: Path, target: Path, label: str, diagnostics: Diagnostics
) -> None:
    """Check the front matter of the markdown definitions found at target.

    Only ever records warnings.
    """
    if target.is_file():
        if target.suffix == ".md":
            _check_definition_file(kind, plugin_dir, target, label, diagnostics)
        return

    if not target.is_dir():
        return

    if kind.definition_file is None:
        for md_file in sorted(target.glob("*.md")):
            _check_definition_file(kind, plugin_dir, md_file, label, diagnostics)
        return

    marker = target / kind.definition_file
    if marker.is_file():
        _check_definition_file(kind, plugin_dir, marker, label, diagnostics)
        return

    for definition_dir in sorted(d for d in target.iterdir() if d.is_dir()):
        marker = definition_dir / kind.definition_file
        if not marker.is_file():
            diagnostics.warn(
                f"{label} {kind.singular} directory {_display_path(plugin_dir, definition_dir)} "
                f"missing {kind.definition_file}"
            )
            continue
        _check_definition_file(kind, plugin_dir, marker, label, diagnostics)


def _check_directory_ref(
    kind: ComponentKind, ref: DirectoryRef, plugin_dir: Path, label: str, diagnostics: Diagnostics
) -> bool:
    # Prefix and existence are reported independently
    valid = True
    if not ref.path.startswith(RELATIVE_PREFIX):
        diagnostics.error(f"{label} {kind.field} path must start with '{RELATIVE_PREFIX}'")
        valid = False

    target = existing_target(
        plugin_dir,
        ref.path,
        f"{label} {kind.field}",
        f"{label} {kind.field} path does not exist: {ref.path}",
        diagnostics,
    )
    if target is None:
        return False

    check_definitions(kind, plugin_dir, target, label, diagnostics)
    return valid


def _check_path_entry(
    kind: ComponentKind, entry: PathEntry, plugin_dir: Path, label: str, diagnostics: Diagnostics
) -> bool:
    if not entry.path.startswith(RELATIVE_PREFIX):
        diagnostics.error(
            f"{label} {kind.singular} #{entry.number} path must start with '{RELATIVE_PREFIX}'"
        )
        return False

    target = existing_target(
        plugin_dir,
        entry.path,
        f"{label} {kind.singular} #{entry.number}",
        f"{label} {kind.singular} file does not exist: {entry.path}",
        diagnostics,
    )
    if target is None:
        return False

    diagnostics.success(f"{kind.singular.capitalize()} file exists: {entry.path}")
    check_definitions(kind, plugin_dir, target, label, diagnostics)
    return True


def _check_inline_entry(
    kind: ComponentKind,
    body_fields: tuple[str, ...],
    entry: InlineEntry,
    label: str,
    diagnostics: Diagnostics,
) -> bool:
    definition = entry.definition
    name = definition.get("name")
    display = f'"{name}"' if is_declared(name) else f"#{entry.number}"
    valid = True

    if not is_declared(name):
        diagnostics.error(f"{label} {kind.singular} #{entry.number} missing name")
        valid = False

    if not is_declared(definition.get("description")):
        diagnostics.warn(f"{label} {kind.singular} {display} missing description")

    # Having more than one body field is allowed
    if not any(is_declared(definition.get(body)) for body in body_fields):
        if len(body_fields) == 1:
            diagnostics.error(f"{label} {kind.singular} {display} missing {body_fields[0]}")
        else:
            diagnostics.error(
                f"{label} {kind.singular} {display} must have either "
                f"{' or '.join(body_fields)}"
            )
        valid = False

    return valid


def validate_component(
    kind: ComponentKind, value: Any, plugin_dir: Path, label: str, diagnostics: Diagnostics
) -> bool:
    """Validate one commands/agents/skills declaration.

    Args:
        kind: Rules for the field being checked
        value: Raw value from plugin.json
        plugin_dir: Plugin root that relative paths resolve against
        label: Prefix for messages, e.g. "my-plugin/.claude-plugin/plugin.json"
        diagnostics: Collector for findings

    Returns:
        False if any error was recorded for this declaration
    """
    declaration = classify_declaration(value)

    if isinstance(declaration, DirectoryRef):
        return _check_directory_ref(kind, declaration, plugin_dir, label, diagnostics)

    if isinstance(declaration, InvalidShape):
        if not kind.strict_shape:
            return True
        diagnostics.error(f"{label} {kind.field} must be an array or string path")
        return False

    valid = True
    for entry in declaration.entries:
        if isinstance(entry, PathEntry):
            valid = _check_path_entry(kind, entry, plugin_dir, label, diagnostics) and valid
        elif kind.inline_body is None:
            # Skills have no inline form; anything but a path is ignored
            continue
        elif isinstance(entry, InlineEntry):
            valid = (
                _check_inline_entry(kind, kind.inline_body, entry, label, diagnostics) and valid
            )
        else:
            diagnostics.error(
                f"{label} {kind.singular} #{entry.number} must be a path string or an object"
            )
            valid = False
    return valid


# Hook events and hook types accepted in hooks configuration
VALID_HOOK_EVENTS = {
    "PreToolUse",
    "PostToolUse",
    "UserPromptSubmit",
    "Notification",
    "Stop",
    "SubagentStop",
    "SessionStart",
    "SessionEnd",
    "PreCompact",
}
VALID_HOOK_TYPES = {"command", "prompt", "validation", "notification"}

HOOKS_CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["hooks"],
    "properties": {
        "description": {"type": "string"},
        "hooks": {
            "type": "object",
            "propertyNames": {"enum": sorted(VALID_HOOK_EVENTS)},
            "additionalProperties": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["hooks"],
                    "properties": {
                        "matcher": {"type": "string"},
                        "hooks": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "required": ["type"],
                                "properties": {
                                    "type": {"enum": sorted(VALID_HOOK_TYPES)},
                                    "command": {"type": "string"},
                                    "prompt": {"type": "string"},
                                    "timeout": {"type": "number", "minimum": 0},
                                },
                            },
                        },
                    },
                },
            },
        },
    },
}

MCP_SERVER_SCHEMA = {
    "type": "object",
    "anyOf": [{"required": ["command"]}, {"required": ["url"]}],
    "properties": {
        "command": {"type": "string", "minLength": 1},
        "args": {"type": "array", "items": {"type": "string"}},
        "env": {"type": "object", "additionalProperties": {"type": "string"}},
        "url": {"type": "string", "minLength": 1},
    },
}

MCP_SERVERS_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": MCP_SERVER_SCHEMA,
}

MCP_CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["mcpServers"],
    "properties": {"mcpServers": {"type": "object", "additionalProperties": MCP_SERVER_SCHEMA}},
}


@dataclass(frozen=True)
class ConfigKind:
    """Rules for a component field holding a JSON configuration."""

    field: str
    inline_schema: dict[str, Any]
    file_schema: dict[str, Any]


HOOKS = ConfigKind(
    field="hooks", inline_schema=HOOKS_CONFIG_SCHEMA, file_schema=HOOKS_CONFIG_SCHEMA
)
MCP_SERVERS = ConfigKind(
    field="mcpServers", inline_schema=MCP_SERVERS_SCHEMA, file_schema=MCP_CONFIG_SCHEMA
)

CONFIG_COMPONENTS = (HOOKS, MCP_SERVERS)


def validate_config_component(
    kind: ConfigKind, value: Any, plugin_dir: Path, label: str, diagnostics: Diagnostics
) -> bool:
    """Validate a hooks or mcpServers declaration.

    Path problems and unreadable files are errors; content that does not match the
    schema is reported as warnings.
    """
    if isinstance(value, dict):
        for problem in validate_json_schema(value, kind.inline_schema, f"{label} {kind.field}"):
            diagnostics.warn(problem)
        return True

    if not isinstance(value, str):
        diagnostics.error(f"{label} {kind.field} must be an object or string path")
        return False

    valid = True
    if not value.startswith(RELATIVE_PREFIX):
        diagnostics.error(f"{label} {kind.field} path must start with '{RELATIVE_PREFIX}'")
        valid = False

    target = existing_target(
        plugin_dir,
        value,
        f"{label} {kind.field}",
        f"{label} {kind.field} path does not exist: {value}",
        diagnostics,
    )
    if target is None:
        return False

    if not target.is_file():
        diagnostics.error(f"{label} {kind.field} path must point to a JSON file: {value}")
        return False

    config, load_error = load_json_file(target, f"{label} {kind.field} file {value}")
    if load_error:
        diagnostics.error(load_error)
        return False

    context = f"{label} {kind.field} file {value}"
    for problem in validate_json_schema(config, kind.file_schema, context):
        diagnostics.warn(problem)
    return valid
