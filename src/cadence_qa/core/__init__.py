"""Core infrastructure: configuration, errors and structured logging."""

from cadence_qa.core.config import QAConfig, get_quality_requirements
from cadence_qa.core.errors import (
    ConfigurationError,
    CorrectionError,
    ErrorCode,
    GenerationError,
    QAError,
)
from cadence_qa.core.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "CorrectionError",
    "ErrorCode",
    "GenerationError",
    "QAConfig",
    "QAError",
    "configure_logging",
    "get_logger",
    "get_quality_requirements",
]
