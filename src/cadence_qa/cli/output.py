"""Rich output formatting for the cadence-qa CLI.

Centralizes the Rich-based formatting used by the commands:
- Color schemes for severities, outcomes and score levels
- Table builders with consistent styling
- Panel and error formatting helpers
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any, Literal

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cadence_qa.models import (
    QualityScore,
    RetryAttempt,
    RetryResult,
    Severity,
    ValidationIssue,
)
from cadence_qa.scoring import QualityAssessment

# Quiet and JSON modes are handled by guards in each command, not by this instance
console = Console()


# =============================================================================
# Color schemes
# =============================================================================


class StatusColors:
    """Color mappings shared by all commands."""

    SEVERITY: dict[Severity, str] = {
        Severity.CRITICAL: "red",
        Severity.WARNING: "yellow",
        Severity.INFO: "blue",
    }

    OUTCOME: dict[str, str] = {
        "clean": "green",
        "recovered": "cyan",
        "fallback": "yellow",
        "failed": "red",
    }

    LEVEL: dict[str, str] = {
        "excellent": "green",
        "good": "cyan",
        "fair": "yellow",
        "poor": "red",
    }

    @classmethod
    def get_severity_color(cls, severity: Severity) -> str:
        return cls.SEVERITY.get(severity, "white")

    @classmethod
    def get_outcome_color(cls, outcome: str) -> str:
        return cls.OUTCOME.get(outcome, "white")

    @classmethod
    def get_score_color(cls, value: int, threshold: int = 80) -> str:
        if value >= threshold:
            return "green"
        if value >= 60:
            return "yellow"
        return "red"


def format_ms(milliseconds: float) -> str:
    """Format a millisecond duration (e.g. "850ms", "2.4s")."""
    if milliseconds < 1000:
        return f"{milliseconds:.0f}ms"
    return f"{milliseconds / 1000:.1f}s"


def print_json(data: Any, console_instance: Console | None = None) -> None:
    """Print JSON without Rich markup or highlighting."""
    out = console_instance or console
    out.print(json.dumps(data, indent=2), markup=False, highlight=False, soft_wrap=True)


# =============================================================================
# Table builders
# =============================================================================


def create_issues_table(issues: Sequence[ValidationIssue], title: str = "Issues") -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Line", justify="right", style="cyan", width=5)
    table.add_column("Severity", width=9)
    table.add_column("Type", width=26)
    table.add_column("Message", no_wrap=False)
    table.add_column("Fix", justify="center", width=4)
    for issue in issues:
        color = StatusColors.get_severity_color(issue.severity)
        table.add_row(
            str(issue.location.line),
            f"[{color}]{issue.severity.value}[/{color}]",
            issue.type,
            escape(issue.message),
            "\u2713" if issue.auto_fixable else "",
        )
    return table


def create_score_table(score: QualityScore, threshold: int = 80) -> Table:
    table = Table(title="Quality Score", show_header=True, header_style="bold")
    table.add_column("Dimension", style="cyan")
    table.add_column("Score", justify="right", width=6)
    for name, value in score.to_dict().items():
        color = StatusColors.get_score_color(value, threshold)
        label = name.replace("_", " ").title()
        if name == "overall":
            label = f"[bold]{label}[/bold]"
        table.add_row(label, f"[{color}]{value}[/{color}]")
    return table


def create_history_table(history: Sequence[RetryAttempt]) -> Table:
    table = Table(title="Retry History", show_header=True, header_style="bold")
    table.add_column("#", justify="right", width=3)
    table.add_column("Level", width=9)
    table.add_column("Temp", justify="right", width=5)
    table.add_column("Score", justify="right", width=6)
    table.add_column("Fixes", justify="right", width=5)
    table.add_column("Time", justify="right", width=8)
    table.add_column("Result", no_wrap=False)
    for attempt in history:
        fixes = sum(len(c.corrections) for c in attempt.correction_attempts)
        if attempt.success:
            outcome = "[green]\u2713 accepted[/green]"
        else:
            outcome = "[red]\u2717 " + escape(", ".join(attempt.failure_reasons)) + "[/red]"
        table.add_row(
            str(attempt.attempt_number),
            attempt.enhancement_level.value,
            f"{attempt.temperature:.2f}",
            str(attempt.quality_score.overall),
            str(fixes),
            format_ms(attempt.processing_time),
            outcome,
        )
    return table


def create_simple_table(show_header: bool = False) -> Table:
    """Key/value table without box styling."""
    return Table(show_header=show_header, box=None)


# =============================================================================
# Panels
# =============================================================================


def create_assessment_panel(assessment: QualityAssessment) -> Panel:
    color = StatusColors.LEVEL.get(assessment.level, "white")
    ready = "[green]yes[/green]" if assessment.production_ready else "[red]no[/red]"
    lines = [
        f"Level: [{color}]{assessment.level.upper()}[/{color}]",
        f"Production ready: {ready}",
    ]
    if assessment.recommendations:
        lines.extend(["", "[bold]Recommendations[/bold]"])
        lines.extend(f"  - {escape(r)}" for r in assessment.recommendations)
    return Panel("\n".join(lines), title="Assessment", border_style=color)


def create_result_panel(result: RetryResult) -> Panel:
    """Summary panel for a finished generation session."""
    color = StatusColors.get_outcome_color(result.outcome)
    lines = [
        f"Outcome: [{color}]{result.outcome.upper()}[/{color}]",
        f"Attempts: {result.total_attempts}",
        f"Final score: {result.final_quality_score.overall}",
        f"Issues detected: {result.metrics.issues_detected}",
        f"Issues fixed: {result.metrics.issues_fixed}",
    ]
    if result.recovery_strategies_used:
        lines.append("Strategies: " + ", ".join(result.recovery_strategies_used))
    if result.failure_patterns:
        lines.extend(["", "[bold]Failure patterns[/bold]"])
        lines.extend(
            f"  - {p.type} (x{p.frequency})" for p in result.failure_patterns
        )
    border = "green" if result.success else "red"
    return Panel("\n".join(lines), title="Session Summary", border_style=border)


# =============================================================================
# Error formatting
# =============================================================================


def output_error(
    message: str,
    *,
    error_code: str | None = None,
    hints: list[str] | None = None,
    severity: Literal["error", "warning"] = "error",
    json_output: bool = False,
    console_instance: Console | None = None,
    **json_extras: str | int | float | bool | None,
) -> None:
    """Output a formatted error or warning, as Rich markup or JSON.

    Args:
        message: The error message to display.
        error_code: Optional error code (e.g., "CFG_001").
        hints: Optional list of hint strings for the user.
        severity: "error" (red) or "warning" (yellow).
        json_output: If True, output as JSON instead of Rich markup.
        console_instance: Console to print to. Defaults to module console.
        **json_extras: Extra key-value pairs included in JSON output only.
    """
    out = console_instance or console
    color = "red" if severity == "error" else "yellow"
    label = "Error" if severity == "error" else "Warning"

    if json_output:
        result: dict[str, Any] = {"success": False, "message": message}
        if error_code:
            result["error_code"] = error_code
        if hints:
            result["hints"] = hints
        result.update(json_extras)
        print_json(result, out)
        return

    if error_code:
        prefix = f"[{color}]{label} \\[{error_code}]:[/{color}] "
    else:
        prefix = f"[{color}]{label}:[/{color}] "
    out.print(f"{prefix}{escape(message)}")

    if hints:
        out.print()
        out.print("[dim]Hints:[/dim]")
        for hint in hints:
            out.print(f"  - {hint}")


__all__ = [
    "StatusColors",
    "console",
    "create_assessment_panel",
    "create_history_table",
    "create_issues_table",
    "create_result_panel",
    "create_score_table",
    "create_simple_table",
    "format_ms",
    "output_error",
    "print_json",
]
