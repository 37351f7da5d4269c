"""Score command for the cadence-qa CLI."""

from __future__ import annotations

from pathlib import Path

import typer

from cadence_qa.scoring import QualityScoreCalculator
from cadence_qa.validation.runner import ValidationRunner

from ..helpers import (
    build_file_context,
    configure_global_logging,
    load_config,
    parse_category,
    parse_experience,
    read_source,
)
from ..output import console, create_assessment_panel, create_score_table, print_json


def score(
    contract_file: Path = typer.Argument(
        ...,
        help="Path to a Cadence contract file",
    ),
    category: str | None = typer.Option(
        None,
        "--category",
        "-c",
        help="Contract category; inferred from the source when omitted",
    ),
    experience: str = typer.Option(
        "intermediate",
        "--experience",
        "-e",
        help="User experience level (beginner, intermediate, expert)",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        help="YAML configuration file (weights and thresholds)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the score as JSON",
    ),
) -> None:
    """Score a Cadence contract file.

    Exit code 0 when the overall score meets the configured quality
    threshold, 1 otherwise.
    """
    configure_global_logging(console)

    config = load_config(config_file, console, json_output)
    code = read_source(contract_file, console, json_output)
    context = build_file_context(
        code,
        parse_category(category, console),
        parse_experience(experience, console),
        config,
    )
    results = ValidationRunner().validate(code, context)
    calculator = QualityScoreCalculator.from_config(config)
    quality = calculator.calculate_quality_score(
        results,
        contract_type=context.contract_type,
        requirements=context.quality_requirements,
    )
    assessment = calculator.get_quality_assessment(quality)
    passed = calculator.meets_quality_threshold(quality, config.quality_threshold)

    if json_output:
        print_json({
            "score": quality.to_dict(),
            "assessment": assessment.to_dict(),
            "threshold": config.quality_threshold,
            "passed": passed,
        })
    else:
        console.print(create_score_table(quality, config.quality_threshold))
        console.print(create_assessment_panel(assessment))

    if not passed:
        raise typer.Exit(1)


__all__ = ["score"]
