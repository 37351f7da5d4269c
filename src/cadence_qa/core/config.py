"""Configuration models for the quality-assurance pipeline.

All settings are pydantic models so that YAML files and programmatic
construction go through the same validation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import pydantic
import yaml
from pydantic import BaseModel, Field, model_validator

from cadence_qa.core.errors import ConfigurationError, ErrorCode
from cadence_qa.models import (
    PerformanceLimits,
    QualityRequirements,
    UserExperience,
)


class QualityWeights(BaseModel):
    """Weights of the five scoring dimensions. Must sum to 1.0."""

    syntax: float = Field(default=0.25, ge=0, le=1)
    logic: float = Field(default=0.25, ge=0, le=1)
    completeness: float = Field(default=0.25, ge=0, le=1)
    best_practices: float = Field(default=0.15, ge=0, le=1)
    production_readiness: float = Field(default=0.10, ge=0, le=1)

    @model_validator(mode="after")
    def _check_sum(self) -> QualityWeights:
        total = (
            self.syntax
            + self.logic
            + self.completeness
            + self.best_practices
            + self.production_readiness
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"quality weights must sum to 1.0, got {total:.4f}")
        return self


class QualityThresholds(BaseModel):
    """Score thresholds used for gating and assessment levels."""

    minimum: int = Field(default=60, ge=0, le=100, description="Per-dimension gate")
    good: int = Field(default=75, ge=0, le=100)
    excellent: int = Field(default=90, ge=0, le=100)
    production_ready: int = Field(default=85, ge=0, le=100)

    @model_validator(mode="after")
    def _check_order(self) -> QualityThresholds:
        if not self.minimum <= self.good <= self.excellent:
            raise ValueError("thresholds must satisfy minimum <= good <= excellent")
        return self


class PerformanceRequirements(BaseModel):
    """Per-session time and retry limits (times in milliseconds)."""

    max_generation_time: int = Field(
        default=30000, ge=1000, description="Deadline for a single generate call (ms)"
    )
    max_validation_time: int = Field(
        default=5000, ge=100, description="Soft budget for validating one candidate (ms)"
    )
    max_retry_attempts: int = Field(default=3, ge=0, le=10)

    def to_limits(self) -> PerformanceLimits:
        return PerformanceLimits(
            max_generation_time=self.max_generation_time,
            max_validation_time=self.max_validation_time,
            max_retry_attempts=self.max_retry_attempts,
        )


class LogConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    format: Literal["json", "console", "both"] = Field(
        default="console",
        description="json for structured, console for human-readable, "
        "both for console to stderr and JSON to file",
    )
    file_path: Path | None = Field(default=None)
    max_file_size_mb: int = Field(default=50, gt=0, le=1000)
    backup_count: int = Field(default=5, ge=0, le=100)
    include_timestamps: bool = Field(default=True)
    include_context: bool = Field(default=True)

    @model_validator(mode="after")
    def _check_file_path_required(self) -> LogConfig:
        if self.format == "both" and self.file_path is None:
            raise ValueError("file_path is required when format='both'")
        return self


class BackendConfig(BaseModel):
    """Settings for the Anthropic generation backend."""

    model: str = Field(default="claude-sonnet-4-20250514")
    api_key_env: str = Field(
        default="ANTHROPIC_API_KEY",
        description="Environment variable holding the API key",
    )
    max_tokens: int = Field(default=4096, gt=0)
    timeout_seconds: float = Field(default=60.0, gt=0)


class QAConfig(BaseModel):
    """Top-level pipeline configuration."""

    max_retry_attempts: int = Field(
        default=3, ge=0, le=10, description="Default attempt budget for a request"
    )
    quality_threshold: int = Field(
        default=80, ge=0, le=100, description="Minimum overall score to accept code"
    )
    enable_auto_correction: bool = Field(default=True)
    enable_fallback_generation: bool = Field(default=True)
    enable_recovery_strategies: bool = Field(default=True)
    strict_mode_threshold: int = Field(
        default=3,
        ge=1,
        description="Attempt number from which strict-mode instructions are always added",
    )
    timeout_per_attempt: float | None = Field(
        default=None,
        gt=0,
        description="Deadline per generate call in seconds; "
        "defaults to performance.max_generation_time",
    )
    weights: QualityWeights = Field(default_factory=QualityWeights)
    thresholds: QualityThresholds = Field(default_factory=QualityThresholds)
    performance: PerformanceRequirements = Field(default_factory=PerformanceRequirements)
    logging: LogConfig = Field(default_factory=LogConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)

    @property
    def attempt_timeout(self) -> float:
        """Effective per-attempt deadline in seconds."""
        if self.timeout_per_attempt is not None:
            return self.timeout_per_attempt
        return self.performance.max_generation_time / 1000

    @classmethod
    def from_yaml(cls, path: Path) -> QAConfig:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                return cls._from_data(yaml.safe_load(f))
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read config file {path}: {e}",
                code=ErrorCode.CONFIG_MISSING,
                context={"path": str(path)},
            ) from e

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> QAConfig:
        """Load configuration from a YAML string."""
        return cls._from_data(yaml.safe_load(yaml_str))

    @classmethod
    def _from_data(cls, data: object) -> QAConfig:
        if data is None:
            return cls()
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            code = ErrorCode.CONFIG_INVALID
            if any(err["loc"] and err["loc"][0] == "quality_threshold" for err in e.errors()):
                code = ErrorCode.CONFIG_INVALID_THRESHOLD
            raise ConfigurationError(
                f"Invalid configuration: {e.error_count()} error(s)",
                code=code,
                context={"errors": [err["msg"] for err in e.errors()]},
            ) from e


# Base minimum score per experience level; beginners get the strictest bar
_EXPERIENCE_MINIMUMS: dict[UserExperience, int] = {
    UserExperience.BEGINNER: 90,
    UserExperience.INTERMEDIATE: 85,
    UserExperience.EXPERT: 75,
}

_EXPERIENCE_FEATURES: dict[UserExperience, frozenset[str]] = {
    UserExperience.BEGINNER: frozenset(
        {"complete-documentation", "error-handling", "input-validation"}
    ),
    UserExperience.INTERMEDIATE: frozenset(),
    UserExperience.EXPERT: frozenset(),
}

DEFAULT_PROHIBITED_PATTERNS = frozenset({"undefined", "null", "// TODO", "// FIXME"})


def get_quality_requirements(
    user_experience: UserExperience = UserExperience.INTERMEDIATE,
    config: QAConfig | None = None,
) -> QualityRequirements:
    """Build the acceptance requirements for a user experience level.

    Args:
        user_experience: Experience level of the requesting user.
        config: Pipeline configuration providing performance limits.

    Returns:
        Immutable QualityRequirements for one session.
    """
    config = config or QAConfig()
    return QualityRequirements(
        minimum_quality_score=_EXPERIENCE_MINIMUMS[user_experience],
        required_features=_EXPERIENCE_FEATURES[user_experience],
        prohibited_patterns=DEFAULT_PROHIBITED_PATTERNS,
        performance=config.performance.to_limits(),
    )


__all__ = [
    "BackendConfig",
    "DEFAULT_PROHIBITED_PATTERNS",
    "LogConfig",
    "PerformanceRequirements",
    "QAConfig",
    "QualityThresholds",
    "QualityWeights",
    "get_quality_requirements",
]
