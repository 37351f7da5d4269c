"""Validate command for the cadence-qa CLI.

Runs every validation check against an existing contract file.

Exit codes:
  0: No critical issues (warnings/info OK)
  1: One or more critical issues
  2: Cannot validate (file unreadable or empty, bad option value)
"""

from __future__ import annotations

from pathlib import Path

import typer

from cadence_qa.models import Severity
from cadence_qa.validation.runner import ValidationRunner, all_issues

from ..helpers import (
    build_file_context,
    configure_global_logging,
    is_quiet,
    parse_category,
    read_source,
)
from ..output import console, create_issues_table, print_json


def validate(
    contract_file: Path = typer.Argument(
        ...,
        help="Path to a Cadence contract file",
    ),
    category: str | None = typer.Option(
        None,
        "--category",
        "-c",
        help="Contract category (nft, fungible-token, dao, marketplace, defi, utility, generic); "
        "inferred from the source when omitted",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output validation results as JSON",
    ),
) -> None:
    """Validate a Cadence contract file."""
    configure_global_logging(console)

    code = read_source(contract_file, console, json_output)
    context = build_file_context(code, parse_category(category, console))
    results = ValidationRunner().validate(code, context)
    issues = all_issues(results)
    critical = sum(1 for i in issues if i.severity == Severity.CRITICAL)
    valid = critical == 0

    if json_output:
        print_json({
            "valid": valid,
            "category": context.contract_type.category.value,
            "results": [r.to_dict() for r in results],
        })
    elif not is_quiet() or not valid:
        console.print(
            f"\nValidating [cyan]{contract_file.name}[/cyan] "
            f"as [cyan]{context.contract_type.category.value}[/cyan]"
        )
        if issues:
            console.print(create_issues_table(issues))
        warnings = sum(1 for i in issues if i.severity == Severity.WARNING)
        if valid:
            console.print(f"[green]✓ Valid[/green] ({warnings} warning(s))")
        else:
            console.print(
                f"[red]✗ Invalid[/red] ({critical} critical, {warnings} warning(s))"
            )

    if not valid:
        raise typer.Exit(1)


__all__ = ["validate"]
