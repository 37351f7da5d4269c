"""Classify and fallback commands for the cadence-qa CLI."""

from __future__ import annotations

from pathlib import Path

import typer

from cadence_qa.fallback.classifier import classify_contract_type
from cadence_qa.fallback.generator import FallbackGenerator
from cadence_qa.models import ContractType

from ..helpers import configure_global_logging, is_quiet, parse_category
from ..output import console, create_simple_table, output_error, print_json


def classify(
    prompt: str = typer.Argument(..., help="Natural-language contract request"),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the classification as JSON",
    ),
) -> None:
    """Classify a contract request by category, complexity and features."""
    configure_global_logging(console)

    classification = classify_contract_type(prompt)
    if json_output:
        print_json(classification.to_dict())
        return

    table = create_simple_table()
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Category", classification.category.value)
    table.add_row("Complexity", classification.complexity.value)
    table.add_row("Confidence", f"{classification.confidence:.0%}")
    table.add_row("Features", ", ".join(classification.features) or "-")
    if not is_quiet():
        table.add_row("Keywords", ", ".join(classification.keywords) or "-")
    console.print(table)


def fallback(
    prompt: str = typer.Argument(..., help="Natural-language contract request"),
    category: str | None = typer.Option(
        None,
        "--category",
        "-c",
        help="Template category; classified from the prompt when omitted",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the contract here (default: print it)",
    ),
) -> None:
    """Render the fallback template contract for a request."""
    configure_global_logging(console)

    parsed = parse_category(category, console)
    contract_type = ContractType(category=parsed) if parsed is not None else None
    code = FallbackGenerator().generate_fallback_contract(prompt, contract_type)

    if output is None:
        console.print(code, markup=False, highlight=False, soft_wrap=True, end="")
        return
    try:
        output.write_text(code, encoding="utf-8")
    except OSError as e:
        output_error(f"Cannot write {output}: {e}")
        raise typer.Exit(2) from None
    if not is_quiet():
        console.print(f"Wrote [cyan]{output}[/cyan]")


__all__ = ["classify", "fallback"]
