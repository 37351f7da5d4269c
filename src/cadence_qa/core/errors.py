"""Error codes and exception hierarchy.

Every failure the pipeline can describe carries an ErrorCode. Code
prefixes group related failures:

    GEN_xxx  - text generation (service, timeout, response shape)
    VAL_xxx  - validation findings
    COR_xxx  - auto-correction
    CFG_xxx  - configuration
    PERF_xxx - performance limits
    SYS_xxx  - unexpected system failures

Generation errors are recoverable unless a backend reports a configuration
failure; the orchestrator retries only recoverable ones. The
orchestrator itself never raises; these exceptions surface from the
collaborators (backends, configuration loading) and are recorded as data.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode(str, Enum):
    """Structured error codes."""

    GENERATION_SERVICE_UNAVAILABLE = "GEN_001"
    GENERATION_TIMEOUT = "GEN_002"
    GENERATION_INVALID_RESPONSE = "GEN_003"
    GENERATION_EMPTY_RESPONSE = "GEN_004"
    GENERATION_RATE_LIMITED = "GEN_005"

    VALIDATION_SYNTAX = "VAL_001"
    VALIDATION_UNDEFINED_VALUES = "VAL_002"
    VALIDATION_INCOMPLETE = "VAL_003"
    VALIDATION_TYPE = "VAL_004"
    VALIDATION_LOGIC = "VAL_005"

    CORRECTION_FAILED = "COR_001"
    CORRECTION_NO_FIXES = "COR_002"
    CORRECTION_WORSE_QUALITY = "COR_003"
    CORRECTION_TIMEOUT = "COR_004"

    CONFIG_INVALID = "CFG_001"
    CONFIG_MISSING = "CFG_002"
    CONFIG_INVALID_THRESHOLD = "CFG_003"

    PERFORMANCE_GENERATION_SLOW = "PERF_001"
    PERFORMANCE_VALIDATION_SLOW = "PERF_002"
    PERFORMANCE_MEMORY = "PERF_003"

    SYSTEM_UNEXPECTED = "SYS_001"
    SYSTEM_SERVICE_UNAVAILABLE = "SYS_002"
    SYSTEM_RESOURCE_EXHAUSTED = "SYS_003"

    @property
    def prefix(self) -> str:
        return self.value.split("_")[0]

    def get_severity(self) -> ErrorSeverity:
        """Default severity for this code."""
        return _SEVERITY_BY_CODE.get(self, ErrorSeverity.MEDIUM)

    @property
    def is_recoverable(self) -> bool:
        """Whether retrying the failed step can plausibly succeed."""
        return self.prefix in ("GEN", "VAL", "COR", "PERF")


_SEVERITY_BY_CODE: dict[ErrorCode, ErrorSeverity] = {
    ErrorCode.GENERATION_SERVICE_UNAVAILABLE: ErrorSeverity.HIGH,
    ErrorCode.GENERATION_TIMEOUT: ErrorSeverity.MEDIUM,
    ErrorCode.GENERATION_INVALID_RESPONSE: ErrorSeverity.MEDIUM,
    ErrorCode.GENERATION_EMPTY_RESPONSE: ErrorSeverity.MEDIUM,
    ErrorCode.GENERATION_RATE_LIMITED: ErrorSeverity.MEDIUM,
    ErrorCode.VALIDATION_SYNTAX: ErrorSeverity.HIGH,
    ErrorCode.VALIDATION_UNDEFINED_VALUES: ErrorSeverity.HIGH,
    ErrorCode.VALIDATION_INCOMPLETE: ErrorSeverity.HIGH,
    ErrorCode.VALIDATION_TYPE: ErrorSeverity.MEDIUM,
    ErrorCode.VALIDATION_LOGIC: ErrorSeverity.MEDIUM,
    ErrorCode.CORRECTION_FAILED: ErrorSeverity.MEDIUM,
    ErrorCode.CORRECTION_NO_FIXES: ErrorSeverity.LOW,
    ErrorCode.CORRECTION_WORSE_QUALITY: ErrorSeverity.MEDIUM,
    ErrorCode.CORRECTION_TIMEOUT: ErrorSeverity.MEDIUM,
    ErrorCode.CONFIG_INVALID: ErrorSeverity.HIGH,
    ErrorCode.CONFIG_MISSING: ErrorSeverity.HIGH,
    ErrorCode.CONFIG_INVALID_THRESHOLD: ErrorSeverity.HIGH,
    ErrorCode.PERFORMANCE_GENERATION_SLOW: ErrorSeverity.LOW,
    ErrorCode.PERFORMANCE_VALIDATION_SLOW: ErrorSeverity.LOW,
    ErrorCode.PERFORMANCE_MEMORY: ErrorSeverity.HIGH,
    ErrorCode.SYSTEM_UNEXPECTED: ErrorSeverity.CRITICAL,
    ErrorCode.SYSTEM_SERVICE_UNAVAILABLE: ErrorSeverity.CRITICAL,
    ErrorCode.SYSTEM_RESOURCE_EXHAUSTED: ErrorSeverity.CRITICAL,
}


class QAError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        code: Structured error code.
        severity: Severity, defaults to the code's default severity.
        recoverable: Whether a retry may succeed.
        context: Extra diagnostic key/values.
    """

    default_code = ErrorCode.SYSTEM_UNEXPECTED

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        severity: ErrorSeverity | None = None,
        recoverable: bool | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.severity = severity or self.code.get_severity()
        self.recoverable = self.code.is_recoverable if recoverable is None else recoverable
        self.context = dict(context or {})

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "context": self.context,
        }


class GenerationError(QAError):
    default_code = ErrorCode.GENERATION_SERVICE_UNAVAILABLE


class ValidationError(QAError):
    default_code = ErrorCode.VALIDATION_SYNTAX


class CorrectionError(QAError):
    default_code = ErrorCode.CORRECTION_FAILED


class ConfigurationError(QAError):
    default_code = ErrorCode.CONFIG_INVALID


class PerformanceError(QAError):
    default_code = ErrorCode.PERFORMANCE_GENERATION_SLOW


def classify_generation_error(exc: BaseException, timeout: float | None = None) -> GenerationError:
    """Map an arbitrary exception raised by a generate call to a GenerationError.

    Args:
        exc: The exception raised by (or on behalf of) the generate call.
        timeout: Deadline in seconds, recorded for timeouts.

    Returns:
        The exception itself when it already is a GenerationError, otherwise
        a new GenerationError with the best-matching code.
    """
    if isinstance(exc, GenerationError):
        return exc
    if isinstance(exc, QAError):
        # Keeps its own code, so configuration failures stay non-recoverable
        return GenerationError(
            exc.message,
            code=exc.code,
            recoverable=exc.recoverable,
            context={**exc.context, "exception_type": type(exc).__name__},
        )
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return GenerationError(
            f"Generation timed out after {timeout}s" if timeout else "Generation timed out",
            code=ErrorCode.GENERATION_TIMEOUT,
            context={"timeout_seconds": timeout},
        )

    text = str(exc).lower()
    if "rate limit" in text or "429" in text or "too many requests" in text:
        code = ErrorCode.GENERATION_RATE_LIMITED
    elif "empty" in text:
        code = ErrorCode.GENERATION_EMPTY_RESPONSE
    elif isinstance(exc, (ConnectionError, OSError)) or "unavailable" in text:
        code = ErrorCode.GENERATION_SERVICE_UNAVAILABLE
    elif isinstance(exc, (TypeError, ValueError)):
        code = ErrorCode.GENERATION_INVALID_RESPONSE
    else:
        code = ErrorCode.GENERATION_SERVICE_UNAVAILABLE
    return GenerationError(
        str(exc) or type(exc).__name__,
        code=code,
        context={"exception_type": type(exc).__name__},
    )


__all__ = [
    "ConfigurationError",
    "CorrectionError",
    "ErrorCode",
    "ErrorSeverity",
    "GenerationError",
    "PerformanceError",
    "QAError",
    "ValidationError",
    "classify_generation_error",
]
