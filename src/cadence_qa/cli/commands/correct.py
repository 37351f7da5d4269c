"""Correct command for the cadence-qa CLI."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from cadence_qa.correction import AutoCorrectionEngine

from ..helpers import configure_global_logging, is_quiet, read_source
from ..output import console, create_simple_table, output_error, print_json


def correct(
    contract_file: Path = typer.Argument(
        ...,
        help="Path to a Cadence contract file",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the corrected contract here (default: print it)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the correction result as JSON",
    ),
) -> None:
    """Apply automatic fixes to a Cadence contract file.

    Exit code 1 when correction failed: a text with critical issues had
    nothing fixable, or the fixes were rolled back.
    """
    configure_global_logging(console)

    code = read_source(contract_file, console, json_output)
    engine = AutoCorrectionEngine()
    result = engine.correct_code(code)

    if output is not None:
        try:
            output.write_text(result.corrected_code, encoding="utf-8")
        except OSError as e:
            output_error(f"Cannot write {output}: {e}", json_output=json_output)
            raise typer.Exit(2) from None

    if json_output:
        print_json({
            "success": result.success,
            "corrections": [c.to_dict() for c in result.corrections],
            "quality_improvement": result.quality_improvement,
            "corrected_code": result.corrected_code if output is None else None,
            "output": str(output) if output else None,
        })
    else:
        if result.corrections and not is_quiet():
            table = create_simple_table(show_header=True)
            table.add_column("Line", justify="right", style="cyan")
            table.add_column("Type")
            table.add_column("Original", style="red")
            table.add_column("Corrected", style="green")
            for c in result.corrections:
                table.add_row(
                    str(c.location.line), c.type, escape(c.original), escape(c.corrected)
                )
            console.print(table)
            console.print(f"[green]Applied {len(result.corrections)} correction(s)[/green]")
        elif not is_quiet():
            console.print("[yellow]No automatic corrections available[/yellow]")

        if output is None:
            console.print(
                result.corrected_code, markup=False, highlight=False, soft_wrap=True, end=""
            )
        elif not is_quiet():
            console.print(f"Wrote [cyan]{output}[/cyan]")

    if not result.success:
        raise typer.Exit(1)


__all__ = ["correct"]
