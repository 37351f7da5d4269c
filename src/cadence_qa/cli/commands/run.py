"""Run command for the cadence-qa CLI.

Executes a full generation session: enhanced prompts, validation, scoring,
auto-correction, recovery strategies and the fallback template. Responses
come from the Anthropic API, or from recorded files with --replay.

Exit codes:
  0: Session succeeded (clean, recovered or fallback)
  1: Session failed
  2: Bad input (config file, option values, missing API key)
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.markup import escape
from rich.panel import Panel

from cadence_qa.backends.anthropic_api import AnthropicGenerator
from cadence_qa.backends.base import Generator
from cadence_qa.backends.replay import ReplayGenerator
from cadence_qa.core.config import QAConfig
from cadence_qa.core.errors import ConfigurationError
from cadence_qa.models import (
    ContractCategory,
    ContractType,
    GenerationRequest,
    RetryResult,
    UserExperience,
)
from cadence_qa.orchestrator import RetryRecoverySystem

from ..helpers import (
    configure_global_logging,
    is_quiet,
    is_verbose,
    load_config,
    parse_category,
    parse_experience,
)
from ..output import (
    console,
    create_history_table,
    create_result_panel,
    output_error,
    print_json,
)


def run(
    prompt: str = typer.Argument(..., help="Natural-language contract request"),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        help="YAML configuration file",
    ),
    replay: list[Path] | None = typer.Option(
        None,
        "--replay",
        "-r",
        help="Recorded response file; repeat for one file per attempt. "
        "Skips the API entirely.",
    ),
    max_retries: int | None = typer.Option(
        None,
        "--max-retries",
        "-m",
        min=0,
        help="Maximum attempts (default: max_retry_attempts from config)",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Add strict-mode instructions to every prompt",
    ),
    temperature: float = typer.Option(
        0.7,
        "--temperature",
        "-t",
        min=0.0,
        max=1.0,
        help="Upper bound for the sampling temperature",
    ),
    category: str | None = typer.Option(
        None,
        "--category",
        "-c",
        help="Contract category; classified from the prompt when omitted",
    ),
    experience: str = typer.Option(
        "intermediate",
        "--experience",
        "-e",
        help="User experience level (beginner, intermediate, expert)",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the final contract here",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the full session result as JSON",
    ),
) -> None:
    """Generate a contract with retries, recovery and fallback."""
    configure_global_logging(console)

    config = load_config(config_file, console, json_output)
    parsed_category = parse_category(category, console)
    user_experience = parse_experience(experience, console)

    generator: Generator
    if replay:
        try:
            generator = ReplayGenerator.from_files(replay)
        except OSError as e:
            output_error(f"Cannot read replay file: {e}", json_output=json_output)
            raise typer.Exit(2) from None
    else:
        generator = AnthropicGenerator.from_config(config.backend)

    try:
        generator.check_ready()
    except ConfigurationError as e:
        output_error(
            e.message,
            error_code=e.code.value,
            hints=["Set the API key variable or use --replay"],
            json_output=json_output,
        )
        raise typer.Exit(2) from None

    request = GenerationRequest(
        prompt=prompt,
        temperature=temperature,
        max_retries=max_retries if max_retries is not None else config.max_retry_attempts,
        strict_mode=strict,
    )

    if not is_quiet() and not json_output:
        console.print(Panel(
            f"Backend: {generator.name}\n"
            f"Attempts: up to {request.max_retries}\n"
            f"Threshold: {config.quality_threshold}\n"
            f"Strict mode: {'on' if strict else 'off'}",
            title="Generation Session",
        ))

    result = asyncio.run(
        _run_session(config, request, generator, parsed_category, user_experience)
    )

    if output is not None and result.final_code:
        try:
            output.write_text(result.final_code, encoding="utf-8")
        except OSError as e:
            output_error(f"Cannot write {output}: {e}", json_output=json_output)
            raise typer.Exit(2) from None

    if json_output:
        print_json(result.to_dict())
    else:
        _print_result(result, output)

    if not result.success:
        raise typer.Exit(1)


async def _run_session(
    config: QAConfig,
    request: GenerationRequest,
    generator: Generator,
    category: ContractCategory | None,
    experience: UserExperience,
) -> RetryResult:
    system = RetryRecoverySystem(config)
    contract_type = ContractType(category=category) if category is not None else None
    context = system.build_context(request, contract_type, experience)
    try:
        return await system.execute_with_retry(request, context, generator)
    finally:
        await generator.close()


def _print_result(result: RetryResult, output: Path | None) -> None:
    if is_quiet():
        if not result.success:
            console.print("[red]Generation failed[/red]")
        return

    console.print(create_history_table(result.retry_history))
    console.print(create_result_panel(result))

    if is_verbose():
        for pattern in result.failure_patterns:
            for solution in pattern.suggested_solutions:
                console.print(f"[dim]{pattern.type}:[/dim] {escape(solution)}")

    if output is not None:
        console.print(f"Wrote [cyan]{output}[/cyan]")
    elif result.final_code:
        console.print()
        console.print(result.final_code, markup=False, highlight=False, soft_wrap=True, end="")


__all__ = ["run"]
