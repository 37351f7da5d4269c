"""Structured logging for cadence-qa.

Wraps structlog with pipeline-specific context: every entry logged inside a
generation session carries the session id and the current attempt number.

Example usage:
    from cadence_qa.core.logging import SessionContext, get_logger, with_context

    configure_logging(level="DEBUG", format="console")
    logger = get_logger("orchestrator")

    ctx = SessionContext(category="nft")
    with with_context(ctx.with_attempt(2)):
        logger.info("attempt_started")  # includes session_id, attempt, category
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Field names whose values never reach a log sink
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "api-key",
    "token",
    "secret",
    "password",
    "credential",
    "bearer",
    "authorization",
})


@dataclass(frozen=True)
class SessionContext:
    """Immutable correlation context for one generation session.

    Attributes:
        session_id: Unique id of the session (UUID by default).
        attempt: Current attempt number, None outside the attempt loop.
        component: Component currently doing the work.
        category: Contract category being generated, if known.
    """

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    attempt: int | None = None
    component: str = "orchestrator"
    category: str | None = None

    def with_attempt(self, attempt: int) -> SessionContext:
        return replace(self, attempt=attempt)

    def with_component(self, component: str) -> SessionContext:
        return replace(self, component=component)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dict for log entries, dropping unset fields."""
        result: dict[str, Any] = {
            "session_id": self.session_id,
            "component": self.component,
        }
        if self.attempt is not None:
            result["attempt"] = self.attempt
        if self.category is not None:
            result["category"] = self.category
        return result


# ContextVar keeps concurrent sessions (separate asyncio tasks) isolated
_current_context: ContextVar[SessionContext | None] = ContextVar(
    "cadence_qa_context", default=None
)


def get_current_context() -> SessionContext | None:
    return _current_context.get()


@contextmanager
def with_context(ctx: SessionContext) -> Iterator[SessionContext]:
    """Set the SessionContext for the duration of a block.

    Args:
        ctx: The context to make current.

    Yields:
        The context that was set.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _sanitize_value(key: str, value: Any) -> Any:
    key_lower = key.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields.

    Nested dicts are sanitized one level deep.
    """
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {k: _sanitize_value(k, v) for k, v in value.items()}
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds SessionContext fields.

    Explicitly bound fields take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            if key not in event_dict:
                event_dict[key] = value
    return event_dict


class QALogger:
    """Component logger wrapping structlog.

    The underlying structlog logger is resolved on every call so that
    module-level loggers created at import time still honour a
    configuration applied later via configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        """Initialize a logger for a component.

        Args:
            component: Component name (e.g., "orchestrator", "scoring").
            **initial_context: Additional context to bind.
        """
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> QALogger:
        """Return a new logger with additional bound context."""
        new_logger = QALogger.__new__(QALogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def unbind(self, *keys: str) -> QALogger:
        """Return a new logger with the given keys removed."""
        new_logger = QALogger.__new__(QALogger)
        new_logger._component = self._component
        new_logger._context = {k: v for k, v in self._context.items() if k not in keys}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def critical(self, event: str, **kw: Any) -> None:
        self._get_logger().critical(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an error with traceback; call from inside an except block."""
        self._get_logger().exception(event, **kw)


def _build_processors(
    renderer: Processor,
    include_timestamps: bool,
    include_context: bool,
) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
    ]
    if include_context:
        processors.append(_add_context)
    if include_timestamps:
        processors.append(_add_timestamp)
    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console", "both"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 50,
    backup_count: int = 5,
    include_timestamps: bool = True,
    include_context: bool = True,
) -> None:
    """Configure structured logging.

    Call once at startup, before any logging occurs.

    Args:
        level: Minimum log level to capture.
        format: "json" for structured output, "console" for human-readable,
            "both" for console to stderr plus JSON to file (requires file_path).
        file_path: Optional log file; rotated at max_file_size_mb.
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Add ISO8601 UTC timestamps.
        include_context: Add SessionContext fields when a context is active.

    Raises:
        ValueError: If format="both" but file_path is not provided.
    """
    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        handlers.append(logging.StreamHandler(sys.stderr))

    if file_path is not None and format in ("json", "both"):
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                file_path,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )
    elif format == "json":
        handlers.append(logging.StreamHandler(sys.stdout))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    renderer: Processor
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    # cache_logger_on_first_use=False so import-time loggers pick up reconfiguration
    structlog.configure(
        processors=_build_processors(renderer, include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> QALogger:
    """Get a logger bound to a component.

    Example:
        logger = get_logger("scoring")
        logger.debug("score_computed", overall=87)
    """
    return QALogger(component, **initial_context)


__all__ = [
    "QALogger",
    "SENSITIVE_PATTERNS",
    "SessionContext",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
