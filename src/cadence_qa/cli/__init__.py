"""cadence-qa CLI.

The CLI is built with Typer; global options live on the app callback and
each command lives in its own module under ``commands``.

Package structure:
    cli/
    ├── __init__.py     # app assembly and global options
    ├── helpers.py      # output/logging state, input loading
    ├── output.py       # Rich formatting
    └── commands/
        ├── validate.py # validate
        ├── score.py    # score
        ├── correct.py  # correct
        ├── classify.py # classify, fallback
        └── run.py      # run
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from cadence_qa import __version__

from . import helpers as helpers
from .commands import classify, correct, fallback, run, score, validate
from .helpers import (
    OutputLevel,
    configure_global_logging,
    set_log_file,
    set_log_format,
    set_log_level,
    set_output_level,
)
from .output import console

app = typer.Typer(
    name="cadence-qa",
    help="Quality assurance for AI-generated Cadence smart contracts",
    add_completion=False,
    no_args_is_help=True,
)


# =============================================================================
# Global option callbacks
# =============================================================================


def version_callback(value: bool) -> None:
    if value:
        console.print(f"cadence-qa v{__version__}")
        raise typer.Exit()


def verbose_callback(value: bool) -> None:
    if value:
        set_output_level(OutputLevel.VERBOSE)


def quiet_callback(value: bool) -> None:
    if value:
        set_output_level(OutputLevel.QUIET)


def log_level_callback(value: str | None) -> str | None:
    if value:
        set_log_level(value)
    return value


def log_file_callback(value: Path | None) -> Path | None:
    if value:
        set_log_file(value)
    return value


def log_format_callback(value: str | None) -> str | None:
    if value:
        set_log_format(value)
    return value


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        callback=verbose_callback,
        is_eager=True,
        help="Show detailed output",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        callback=quiet_callback,
        is_eager=True,
        help="Show minimal output (errors only)",
    ),
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            callback=log_level_callback,
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="CADENCE_QA_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            callback=log_file_callback,
            help="Path for JSON log file output",
            envvar="CADENCE_QA_LOG_FILE",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            callback=log_format_callback,
            help="Log format: json, console, or both",
            envvar="CADENCE_QA_LOG_FORMAT",
        ),
    ] = None,
) -> None:
    """cadence-qa - validate, score, correct and generate Cadence contracts."""
    configure_global_logging(console)


app.command()(validate)
app.command()(score)
app.command()(correct)
app.command()(classify)
app.command()(fallback)
app.command()(run)


__all__ = [
    "OutputLevel",
    "app",
    "console",
    "main",
]
