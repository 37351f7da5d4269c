"""Shared utilities for cadence-qa CLI commands.

This module contains helpers used across multiple command modules:
- Output level state (--verbose / --quiet)
- Logging configuration state (--log-level / --log-format / --log-file)
- Config and source file loading with the CLI exit-code convention
- Session context construction for single-file commands
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

import typer
from rich.console import Console

from cadence_qa.core.config import QAConfig, get_quality_requirements
from cadence_qa.core.errors import ConfigurationError
from cadence_qa.core.logging import configure_logging, get_logger
from cadence_qa.fallback.classifier import classify_contract_type
from cadence_qa.models import (
    ContractCategory,
    ContractType,
    GenerationContext,
    UserExperience,
)

_logger = get_logger("cli")


class ErrorMessages:
    """Constants for CLI error messages."""

    FILE_READ_ERROR = "Cannot read file"
    CONFIG_LOAD_ERROR = "Error loading config"
    EMPTY_INPUT = "Input is empty"


# =============================================================================
# Output level management
# =============================================================================


class OutputLevel(str, Enum):
    """Output verbosity level."""

    QUIET = "quiet"  # errors only
    NORMAL = "normal"
    VERBOSE = "verbose"


_output_level: OutputLevel = OutputLevel.NORMAL


def get_output_level() -> OutputLevel:
    return _output_level


def set_output_level(level: OutputLevel) -> None:
    global _output_level
    _output_level = level


def is_verbose() -> bool:
    return _output_level == OutputLevel.VERBOSE


def is_quiet() -> bool:
    return _output_level == OutputLevel.QUIET


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """CLI logging configuration collected from the global options."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: Path | None = None
    format: Literal["json", "console", "both"] = "console"
    configured: bool = False


_log_config = CliLoggingConfig()


def get_log_config() -> CliLoggingConfig:
    return _log_config


def set_log_level(level: str) -> None:
    """Set the log level.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR).
    """
    _log_config.level = level.upper()  # type: ignore[assignment]


def set_log_file(path: Path | None) -> None:
    """Set the log file path.

    A log file switches the format to "both": human-readable output stays
    on stderr and JSON lines go to the file.
    """
    _log_config.file = path
    if path:
        _log_config.format = "both"


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt  # type: ignore[assignment]


def configure_global_logging(console: Console) -> None:
    """Configure logging from the global CLI options.

    Only configures once per process.

    Args:
        console: Rich console for error output.

    Raises:
        typer.Exit: If logging configuration fails.
    """
    if _log_config.configured:
        return

    try:
        configure_logging(
            level=_log_config.level,
            format=_log_config.format,
            file_path=_log_config.file,
        )
        _log_config.configured = True
    except (ValueError, AttributeError) as e:
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def reset_logging_state() -> None:
    """Reset logging state so tests can reconfigure it."""
    global _log_config, _output_level
    _log_config = CliLoggingConfig()
    _output_level = OutputLevel.NORMAL


# =============================================================================
# Input loading
# =============================================================================


def read_source(path: Path, console: Console, json_output: bool = False) -> str:
    """Read a contract source file, exiting with code 2 when it cannot be read."""
    from .output import output_error

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        output_error(
            f"{ErrorMessages.FILE_READ_ERROR}: {e}",
            json_output=json_output,
            console_instance=console,
        )
        raise typer.Exit(2) from None
    if not text.strip():
        output_error(
            f"{ErrorMessages.EMPTY_INPUT}: {path}",
            json_output=json_output,
            console_instance=console,
        )
        raise typer.Exit(2)
    return text


def load_config(path: Path | None, console: Console, json_output: bool = False) -> QAConfig:
    """Load QAConfig from YAML, or defaults when no path is given."""
    from .output import output_error

    if path is None:
        return QAConfig()
    try:
        return QAConfig.from_yaml(path)
    except ConfigurationError as e:
        output_error(
            f"{ErrorMessages.CONFIG_LOAD_ERROR}: {e.message}",
            error_code=e.code.value,
            hints=[str(msg) for msg in e.context.get("errors", [])],
            json_output=json_output,
            console_instance=console,
        )
        raise typer.Exit(2) from None


def parse_category(value: str | None, console: Console) -> ContractCategory | None:
    """Parse a --category option value."""
    if value is None:
        return None
    try:
        return ContractCategory(value.lower())
    except ValueError:
        choices = ", ".join(c.value for c in ContractCategory)
        console.print(f"[red]Unknown category:[/red] {value} (choose from {choices})")
        raise typer.Exit(2) from None


def parse_experience(value: str, console: Console) -> UserExperience:
    try:
        return UserExperience(value.lower())
    except ValueError:
        choices = ", ".join(e.value for e in UserExperience)
        console.print(f"[red]Unknown experience level:[/red] {value} (choose from {choices})")
        raise typer.Exit(2) from None


def build_file_context(
    code: str,
    category: ContractCategory | None,
    experience: UserExperience = UserExperience.INTERMEDIATE,
    config: QAConfig | None = None,
) -> GenerationContext:
    """Context for checking an existing file outside a generation session.

    Without an explicit category the source text itself is classified.
    """
    if category is None:
        contract_type = classify_contract_type(code).to_contract_type()
    else:
        contract_type = ContractType(category=category)
    _logger.debug("file_context_built", category=contract_type.category.value)
    return GenerationContext(
        user_prompt="",
        contract_type=contract_type,
        quality_requirements=get_quality_requirements(experience, config),
        user_experience=experience,
    )


__all__ = [
    "CliLoggingConfig",
    "ErrorMessages",
    "OutputLevel",
    "build_file_context",
    "configure_global_logging",
    "get_log_config",
    "get_output_level",
    "is_quiet",
    "is_verbose",
    "load_config",
    "parse_category",
    "parse_experience",
    "read_source",
    "reset_logging_state",
    "set_log_file",
    "set_log_format",
    "set_log_level",
    "set_output_level",
]
