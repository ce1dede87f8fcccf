"""
Diagnostic collection and console rendering shared by the marketplace validators.

Checks never print directly. They record findings on a ``Diagnostics`` object in the
order they are found, and the command-line entry points render them with rich once
validation is finished:

    diagnostics = Diagnostics()
    diagnostics.error("marketplace.json missing required field: name")
    render_diagnostics(diagnostics)
    exit_code = calculate_exit_code(len(diagnostics.errors), len(diagnostics.warnings))
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

# Emoji codes are disabled so text such as ":fire:" in a manifest prints as written
console = Console(emoji=False)
err_console = Console(stderr=True, emoji=False)


class Severity(str, Enum):
    """Severity of a single diagnostic line."""

    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


# Marker and rich style used when printing each severity
SEVERITY_MARKERS: dict[Severity, tuple[str, str]] = {
    Severity.ERROR: ("✗ ERROR:", "bold red"),
    Severity.WARNING: ("⚠ WARNING:", "yellow"),
    Severity.SUCCESS: ("✓", "green"),
    Severity.INFO: ("ℹ", "cyan"),
}


@dataclass(frozen=True)
class Diagnostic:
    """A single recorded finding."""

    severity: Severity
    message: str


@dataclass
class Diagnostics:
    """Ordered accumulator of findings for one validation pass."""

    entries: list[Diagnostic] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.entries.append(Diagnostic(Severity.ERROR, message))

    def warn(self, message: str) -> None:
        self.entries.append(Diagnostic(Severity.WARNING, message))

    def success(self, message: str) -> None:
        self.entries.append(Diagnostic(Severity.SUCCESS, message))

    def info(self, message: str) -> None:
        self.entries.append(Diagnostic(Severity.INFO, message))

    def messages(self, severity: Severity) -> list[str]:
        return [entry.message for entry in self.entries if entry.severity is severity]

    @property
    def errors(self) -> list[str]:
        return self.messages(Severity.ERROR)

    @property
    def warnings(self) -> list[str]:
        return self.messages(Severity.WARNING)


def print_diagnostic(diagnostic: Diagnostic) -> None:
    """Print one diagnostic line; errors go to stderr."""
    marker, style = SEVERITY_MARKERS[diagnostic.severity]
    target = err_console if diagnostic.severity is Severity.ERROR else console
    # Messages quote user data such as "plugins[0]", which rich would read as markup.
    # soft_wrap keeps every finding on one line whatever the console width.
    target.print(
        f"[{style}]{marker}[/{style}] {escape(diagnostic.message)}", soft_wrap=True
    )


def render_diagnostics(diagnostics: Diagnostics) -> None:
    for diagnostic in diagnostics.entries:
        print_diagnostic(diagnostic)


def count_totals(results: Iterable[Diagnostics]) -> tuple[int, int]:
    """Return (total_errors, total_warnings) across several result sets."""
    total_errors = 0
    total_warnings = 0
    for result in results:
        total_errors += len(result.errors)
        total_warnings += len(result.warnings)
    return total_errors, total_warnings


def calculate_exit_code(total_errors: int, total_warnings: int, *, strict: bool = False) -> int:
    """Calculate the process exit code for a run.

    Args:
        total_errors: Number of recorded errors
        total_warnings: Number of recorded warnings
        strict: If True, warnings cause failure

    Returns:
        0 when the run passed, 1 otherwise
    """
    return 1 if strict and total_warnings > 0 or total_errors > 0 else 0


def print_summary(
    label: str, total_errors: int, total_warnings: int, *, strict: bool = False
) -> None:
    """Print the closing pass/fail panel for a run.

    Args:
        label: What was validated, e.g. "Validation" or "Linting"
        total_errors: Number of recorded errors
        total_warnings: Number of recorded warnings
        strict: Whether warnings were treated as errors
    """
    console.print()
    if total_errors > 0 or (strict and total_warnings > 0):
        if total_errors == 0:
            message = (
                f"✗ {label} failed due to {total_warnings} warning(s) "
                "(warnings treated as errors in strict mode)"
            )
        else:
            message = (
                f"✗ {label} failed with {total_errors} error(s) ({total_warnings} warning(s))"
            )
        style = "red"
    elif total_warnings > 0:
        message = f"✓ {label} passed with {total_warnings} warning(s)"
        style = "green"
    else:
        message = f"✓ {label} passed successfully"
        style = "green"

    console.print(Panel.fit(f"[bold {style}]{escape(message)}[/bold {style}]", border_style=style))
