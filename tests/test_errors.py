"""Tests for error codes and generation error classification."""

import asyncio

import pytest

from cadence_qa.core.errors import (
    ConfigurationError,
    CorrectionError,
    ErrorCode,
    ErrorSeverity,
    GenerationError,
    QAError,
    classify_generation_error,
)


class TestErrorCode:
    """Tests for ErrorCode properties."""

    def test_prefix(self) -> None:
        assert ErrorCode.GENERATION_TIMEOUT.prefix == "GEN"
        assert ErrorCode.CONFIG_INVALID_THRESHOLD.prefix == "CFG"
        assert ErrorCode.PERFORMANCE_MEMORY.prefix == "PERF"

    def test_codes_are_unique(self) -> None:
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))

    @pytest.mark.parametrize(
        "code,recoverable",
        [
            (ErrorCode.GENERATION_RATE_LIMITED, True),
            (ErrorCode.VALIDATION_SYNTAX, True),
            (ErrorCode.CORRECTION_FAILED, True),
            (ErrorCode.CONFIG_MISSING, False),
            (ErrorCode.SYSTEM_UNEXPECTED, False),
        ],
    )
    def test_is_recoverable(self, code: ErrorCode, recoverable: bool) -> None:
        assert code.is_recoverable is recoverable

    def test_severity(self) -> None:
        assert ErrorCode.SYSTEM_UNEXPECTED.get_severity() == ErrorSeverity.CRITICAL
        assert ErrorCode.CORRECTION_NO_FIXES.get_severity() == ErrorSeverity.LOW
        assert ErrorCode.GENERATION_SERVICE_UNAVAILABLE.get_severity() == ErrorSeverity.HIGH


class TestQAError:
    """Tests for the exception hierarchy."""

    def test_default_codes(self) -> None:
        assert GenerationError("x").code == ErrorCode.GENERATION_SERVICE_UNAVAILABLE
        assert CorrectionError("x").code == ErrorCode.CORRECTION_FAILED
        assert ConfigurationError("x").code == ErrorCode.CONFIG_INVALID
        assert QAError("x").code == ErrorCode.SYSTEM_UNEXPECTED

    def test_str_includes_code(self) -> None:
        assert str(GenerationError("boom")) == "[GEN_001] boom"

    def test_recoverable_override(self) -> None:
        error = GenerationError("auth", recoverable=False)
        assert error.recoverable is False

    def test_to_dict(self) -> None:
        error = ConfigurationError(
            "bad", code=ErrorCode.CONFIG_MISSING, context={"path": "qa.yaml"}
        )
        assert error.to_dict() == {
            "error": "ConfigurationError",
            "code": "CFG_002",
            "message": "bad",
            "severity": "high",
            "recoverable": False,
            "context": {"path": "qa.yaml"},
        }


class TestClassifyGenerationError:
    """Tests for mapping arbitrary exceptions to GenerationError."""

    def test_generation_error_passes_through(self) -> None:
        original = GenerationError("x", code=ErrorCode.GENERATION_EMPTY_RESPONSE)
        assert classify_generation_error(original) is original

    def test_timeout(self) -> None:
        error = classify_generation_error(asyncio.TimeoutError(), timeout=5.0)
        assert error.code == ErrorCode.GENERATION_TIMEOUT
        assert error.context["timeout_seconds"] == 5.0
        assert "5.0s" in error.message

    @pytest.mark.parametrize(
        "exc,code",
        [
            (RuntimeError("Rate limit exceeded"), ErrorCode.GENERATION_RATE_LIMITED),
            (RuntimeError("HTTP 429"), ErrorCode.GENERATION_RATE_LIMITED),
            (RuntimeError("empty completion"), ErrorCode.GENERATION_EMPTY_RESPONSE),
            (ConnectionError("reset by peer"), ErrorCode.GENERATION_SERVICE_UNAVAILABLE),
            (ValueError("bad payload"), ErrorCode.GENERATION_INVALID_RESPONSE),
            (RuntimeError("something odd"), ErrorCode.GENERATION_SERVICE_UNAVAILABLE),
        ],
    )
    def test_mapping(self, exc: Exception, code: ErrorCode) -> None:
        error = classify_generation_error(exc)
        assert error.code == code
        assert error.recoverable is True
        assert error.context["exception_type"] == type(exc).__name__

    def test_message_falls_back_to_type_name(self) -> None:
        assert classify_generation_error(RuntimeError()).message == "RuntimeError"

    def test_configuration_error_stays_non_recoverable(self) -> None:
        original = ConfigurationError(
            "API key not found", code=ErrorCode.CONFIG_MISSING, context={"api_key_env": "KEY"}
        )
        error = classify_generation_error(original)
        assert isinstance(error, GenerationError)
        assert error.code == ErrorCode.CONFIG_MISSING
        assert error.recoverable is False
        assert error.message == "API key not found"
        assert error.context == {"api_key_env": "KEY", "exception_type": "ConfigurationError"}
