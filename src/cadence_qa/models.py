"""Core data model for the quality-assurance pipeline.

Every record produced during a generation session lives here:
- Request / classification / requirements inputs
- ValidationIssue and ValidationResult findings
- QualityScore and correction records
- RetryAttempt, FailurePattern, GenerationMetrics and RetryResult outputs

Records describing a finished step (issues, results, attempts) are frozen
so that an attempt's findings cannot be mutated once recorded.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


class ContractCategory(str, Enum):
    """Closed set of contract categories the pipeline understands."""

    NFT = "nft"
    FUNGIBLE_TOKEN = "fungible-token"
    DAO = "dao"
    MARKETPLACE = "marketplace"
    DEFI = "defi"
    UTILITY = "utility"
    GENERIC = "generic"


class Complexity(str, Enum):
    SIMPLE = "simple"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class UserExperience(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


class Severity(str, Enum):
    """Severity of a validation finding.

    - CRITICAL: blocks acceptance, heaviest score penalty
    - WARNING: should be fixed, moderate penalty
    - INFO: advisory, small penalty
    """

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ValidationType(str, Enum):
    """Scoring dimension a validation result belongs to."""

    SYNTAX = "syntax"
    LOGIC = "logic"
    COMPLETENESS = "completeness"
    BEST_PRACTICES = "best-practices"


class EnhancementLevel(str, Enum):
    """Strictness tier used when building the prompt for an attempt."""

    BASIC = "basic"
    MODERATE = "moderate"
    STRICT = "strict"
    MAXIMUM = "maximum"

    @classmethod
    def for_attempt(cls, attempt_number: int) -> EnhancementLevel:
        """Map a 1-based attempt number to its enhancement level."""
        if attempt_number <= 1:
            return cls.BASIC
        if attempt_number == 2:
            return cls.MODERATE
        if attempt_number == 3:
            return cls.STRICT
        return cls.MAXIMUM


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class GenerationRequest:
    """Immutable description of what to generate and the retry budget."""

    prompt: str
    """Natural-language description of the contract."""

    context_text: str = ""
    """Extra caller-supplied context appended to the prompt."""

    temperature: float = 0.7
    """Upper bound for the sampling temperature of every attempt."""

    max_retries: int = 3
    """Maximum generation attempts requested by the caller."""

    strict_mode: bool = False
    """Add strict-mode instructions to every prompt."""


@dataclass(frozen=True)
class ContractType:
    """Classification of the artifact being generated."""

    category: ContractCategory = ContractCategory.GENERIC
    complexity: Complexity = Complexity.SIMPLE
    features: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "complexity": self.complexity.value,
            "features": sorted(self.features),
        }


@dataclass(frozen=True)
class PerformanceLimits:
    """Time and retry limits for one session (times in milliseconds)."""

    max_generation_time: int = 30000
    max_validation_time: int = 5000
    max_retry_attempts: int = 3


@dataclass(frozen=True)
class QualityRequirements:
    """Acceptance contract for a generation session."""

    minimum_quality_score: int = 80
    required_features: frozenset[str] = frozenset()
    prohibited_patterns: frozenset[str] = frozenset()
    performance: PerformanceLimits = field(default_factory=PerformanceLimits)


@dataclass(frozen=True)
class GenerationContext:
    """Context threaded through every attempt of a session.

    ``previous_attempts`` only ever grows; use ``with_attempts`` to derive
    the context for the next attempt instead of mutating this one.
    """

    user_prompt: str
    contract_type: ContractType = field(default_factory=ContractType)
    quality_requirements: QualityRequirements = field(default_factory=QualityRequirements)
    user_experience: UserExperience = UserExperience.INTERMEDIATE
    previous_attempts: tuple[RetryAttempt, ...] = ()

    def with_attempts(self, attempts: tuple[RetryAttempt, ...]) -> GenerationContext:
        """Return a copy carrying the given attempt history."""
        if len(attempts) < len(self.previous_attempts):
            raise ValueError("previous_attempts cannot shrink within a session")
        return replace(self, previous_attempts=attempts)


# =============================================================================
# Validation findings
# =============================================================================


@dataclass(frozen=True)
class IssueLocation:
    line: int
    column: int


@dataclass(frozen=True)
class ValidationIssue:
    """A single finding in a candidate text.

    Attributes:
        severity: CRITICAL, WARNING or INFO.
        type: Machine-readable issue type (e.g. "undefined-value").
        location: 1-based line and column of the finding.
        message: Human-readable description.
        suggested_fix: Replacement text or instruction, if known.
        auto_fixable: Whether the auto-correction engine may act on it.
    """

    severity: Severity
    type: str
    location: IssueLocation
    message: str
    suggested_fix: str | None = None
    auto_fixable: bool = False

    @property
    def is_blocking(self) -> bool:
        """Critical issues that correction cannot resolve block production use."""
        return self.severity == Severity.CRITICAL and not self.auto_fixable

    def format_short(self) -> str:
        """Format as a single-line summary."""
        return f"[{self.type}] Line {self.location.line}: {self.message}"

    def format_full(self) -> str:
        """Format with the suggested fix, when there is one."""
        lines = [self.format_short()]
        if self.suggested_fix:
            lines.append(f"         Suggestion: {self.suggested_fix}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "type": self.type,
            "location": {"line": self.location.line, "column": self.location.column},
            "message": self.message,
            "suggested_fix": self.suggested_fix,
            "auto_fixable": self.auto_fixable,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Findings of one validation dimension for one candidate text."""

    type: ValidationType
    issues: tuple[ValidationIssue, ...] = ()
    score: float | None = None

    @property
    def passed(self) -> bool:
        return not any(i.severity == Severity.CRITICAL for i in self.issues)

    def count(self, severity: Severity) -> int:
        return sum(1 for i in self.issues if i.severity == severity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "passed": self.passed,
            "issues": [i.to_dict() for i in self.issues],
            "score": self.score,
        }


@dataclass(frozen=True)
class QualityScore:
    """Multi-dimensional quality score, every value in [0, 100]."""

    overall: int = 0
    syntax: int = 0
    logic: int = 0
    completeness: int = 0
    best_practices: int = 0
    production_readiness: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "overall": self.overall,
            "syntax": self.syntax,
            "logic": self.logic,
            "completeness": self.completeness,
            "best_practices": self.best_practices,
            "production_readiness": self.production_readiness,
        }


# =============================================================================
# Correction records
# =============================================================================


@dataclass(frozen=True)
class Correction:
    """One rewrite applied by the auto-correction engine."""

    type: str
    location: IssueLocation
    original: str
    corrected: str
    reasoning: str
    confidence: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "location": {"line": self.location.line, "column": self.location.column},
            "original": self.original,
            "corrected": self.corrected,
            "reasoning": self.reasoning,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class CorrectionResult:
    """Output of ``AutoCorrectionEngine.correct_code``."""

    corrected_code: str
    corrections: tuple[Correction, ...]
    success: bool
    quality_improvement: float


@dataclass(frozen=True)
class CorrectionAttempt:
    """Record of one auto-correction pass nested inside an attempt."""

    attempt_number: int
    corrections: tuple[Correction, ...]
    success: bool
    quality_improvement: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt_number": self.attempt_number,
            "corrections": [c.to_dict() for c in self.corrections],
            "success": self.success,
            "quality_improvement": self.quality_improvement,
        }


# =============================================================================
# Session records
# =============================================================================


@dataclass(frozen=True)
class RetryAttempt:
    """One generate/validate/score/correct cycle, append-only history entry.

    Times are in milliseconds.
    """

    attempt_number: int
    enhanced_prompt: str
    generated_code: str
    validation_results: tuple[ValidationResult, ...]
    quality_score: QualityScore
    correction_attempts: tuple[CorrectionAttempt, ...]
    success: bool
    failure_reasons: tuple[str, ...]
    enhancement_level: EnhancementLevel
    temperature: float
    processing_time: float
    generation_time: float = 0.0
    validation_time: float = 0.0
    correction_time: float = 0.0

    @property
    def issue_count(self) -> int:
        return sum(len(r.issues) for r in self.validation_results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt_number": self.attempt_number,
            "enhanced_prompt": self.enhanced_prompt,
            "generated_code": self.generated_code,
            "validation_results": [r.to_dict() for r in self.validation_results],
            "quality_score": self.quality_score.to_dict(),
            "correction_attempts": [c.to_dict() for c in self.correction_attempts],
            "success": self.success,
            "failure_reasons": list(self.failure_reasons),
            "enhancement_level": self.enhancement_level.value,
            "temperature": self.temperature,
            "processing_time": self.processing_time,
        }


@dataclass(frozen=True)
class FailurePattern:
    """Failure type aggregated across the attempts of a session."""

    type: str
    frequency: int = 1
    common_causes: tuple[str, ...] = ()
    suggested_solutions: tuple[str, ...] = ()

    def merge(self, other: FailurePattern, max_causes: int = 5) -> FailurePattern:
        """Fold another occurrence of the same failure type into this one."""
        if other.type != self.type:
            raise ValueError(f"Cannot merge pattern {other.type!r} into {self.type!r}")
        causes = list(self.common_causes)
        for cause in other.common_causes:
            if cause not in causes and len(causes) < max_causes:
                causes.append(cause)
        solutions = list(self.suggested_solutions)
        for solution in other.suggested_solutions:
            if solution not in solutions:
                solutions.append(solution)
        return FailurePattern(
            type=self.type,
            frequency=self.frequency + other.frequency,
            common_causes=tuple(causes),
            suggested_solutions=tuple(solutions),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "frequency": self.frequency,
            "common_causes": list(self.common_causes),
            "suggested_solutions": list(self.suggested_solutions),
        }


def merge_failure_patterns(
    existing: tuple[FailurePattern, ...],
    new: list[FailurePattern] | tuple[FailurePattern, ...],
) -> tuple[FailurePattern, ...]:
    """Merge new patterns into an existing sequence, keyed by type.

    Order of first appearance is preserved; repeated types increment
    frequency instead of duplicating.
    """
    merged: dict[str, FailurePattern] = {p.type: p for p in existing}
    for pattern in new:
        current = merged.get(pattern.type)
        merged[pattern.type] = current.merge(pattern) if current else pattern
    return tuple(merged.values())


@dataclass(frozen=True)
class GenerationMetrics:
    """Deterministic summary of a session (times in milliseconds)."""

    attempt_count: int
    total_generation_time: float
    validation_time: float
    correction_time: float
    final_quality_score: int
    issues_detected: int
    issues_fixed: int
    start_time: datetime
    end_time: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt_count": self.attempt_count,
            "total_generation_time": self.total_generation_time,
            "validation_time": self.validation_time,
            "correction_time": self.correction_time,
            "final_quality_score": self.final_quality_score,
            "issues_detected": self.issues_detected,
            "issues_fixed": self.issues_fixed,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }


@dataclass(frozen=True)
class RetryResult:
    """Terminal record of a generation session."""

    success: bool
    final_code: str
    total_attempts: int
    retry_history: tuple[RetryAttempt, ...]
    final_quality_score: QualityScore
    fallback_used: bool
    failure_patterns: tuple[FailurePattern, ...]
    recovery_strategies_used: tuple[str, ...]
    metrics: GenerationMetrics

    @property
    def outcome(self) -> str:
        """Short label: clean, recovered, fallback or failed."""
        if not self.success:
            return "failed"
        if self.fallback_used:
            return "fallback"
        if self.recovery_strategies_used:
            return "recovered"
        return "clean"

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "outcome": self.outcome,
            "final_code": self.final_code,
            "total_attempts": self.total_attempts,
            "retry_history": [a.to_dict() for a in self.retry_history],
            "final_quality_score": self.final_quality_score.to_dict(),
            "fallback_used": self.fallback_used,
            "failure_patterns": [p.to_dict() for p in self.failure_patterns],
            "recovery_strategies_used": list(self.recovery_strategies_used),
            "metrics": self.metrics.to_dict(),
        }
