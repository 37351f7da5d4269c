"""Weighted multi-dimensional quality scoring.

Scores five dimensions from the validation results of one candidate and
combines them into an overall score:

    overall = sum(weight[d] * score[d])   (weights sum to 1.0)

Per-dimension scores start at 100 (or the result's own raw score) and lose
fixed points per issue severity. A dimension nobody validated scores 50.
Every value is clamped to [0, 100] after penalties are summed.

Production readiness is a gate rather than an average: it is 0 whenever
syntax, logic or completeness is below the minimum threshold.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from cadence_qa.core.config import QAConfig, QualityThresholds, QualityWeights
from cadence_qa.core.logging import get_logger
from cadence_qa.models import (
    ContractCategory,
    ContractType,
    QualityRequirements,
    QualityScore,
    Severity,
    ValidationResult,
    ValidationType,
)

_logger = get_logger("scoring")

UNSCORED_DIMENSION = 50

SYNTAX_PENALTIES: dict[Severity, int] = {
    Severity.CRITICAL: 25,
    Severity.WARNING: 10,
    Severity.INFO: 2,
}

BEST_PRACTICE_PENALTIES: dict[Severity, int] = {
    Severity.CRITICAL: 15,
    Severity.WARNING: 8,
    Severity.INFO: 3,
}

# Extra logic deductions for missing load-bearing features, per category
CATEGORY_DEDUCTIONS: dict[ContractCategory, dict[str, int]] = {
    ContractCategory.NFT: {
        "missing-metadata-views": 15,
        "missing-transfer-support": 20,
    },
    ContractCategory.FUNGIBLE_TOKEN: {
        "missing-total-supply": 20,
        "missing-withdraw-deposit": 20,
        "missing-balance-field": 15,
    },
    ContractCategory.DAO: {
        "missing-voting-function": 25,
        "missing-proposal-execution": 20,
    },
    ContractCategory.MARKETPLACE: {
        "missing-listing-resource": 20,
        "missing-purchase-function": 20,
    },
    ContractCategory.DEFI: {
        "missing-swap-or-stake": 20,
    },
    ContractCategory.UTILITY: {},
    ContractCategory.GENERIC: {},
}

PRODUCTION_BLOCKER_PENALTY = 30


def clamp(value: float) -> int:
    return int(max(0, min(100, round(value))))


@dataclass
class QualityAssessment:
    """Human-oriented summary of a QualityScore."""

    level: str
    production_ready: bool
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "production_ready": self.production_ready,
            "recommendations": self.recommendations,
        }


class QualityScoreCalculator:
    """Pure scorer from validation results to a QualityScore."""

    def __init__(
        self,
        weights: QualityWeights | None = None,
        thresholds: QualityThresholds | None = None,
    ) -> None:
        self.weights = weights or QualityWeights()
        self.thresholds = thresholds or QualityThresholds()

    @classmethod
    def from_config(cls, config: QAConfig) -> QualityScoreCalculator:
        return cls(weights=config.weights, thresholds=config.thresholds)

    def calculate_quality_score(
        self,
        results: Sequence[ValidationResult],
        contract_type: ContractType | None = None,
        requirements: QualityRequirements | None = None,
        weights: QualityWeights | None = None,
    ) -> QualityScore:
        """Score a set of validation results.

        Args:
            results: One or more results per validation dimension.
            contract_type: Drives category-specific logic deductions.
            requirements: Required features scale the completeness score.
            weights: Overrides the calculator's weights for this call.

        Returns:
            A QualityScore with every dimension in [0, 100].
        """
        weights = weights or self.weights
        category = contract_type.category if contract_type else ContractCategory.GENERIC

        syntax = self._dimension(results, ValidationType.SYNTAX, SYNTAX_PENALTIES)
        logic = self._dimension(
            results, ValidationType.LOGIC, SYNTAX_PENALTIES, CATEGORY_DEDUCTIONS[category]
        )
        completeness = self._completeness(results, requirements)
        best_practices = self._dimension(
            results, ValidationType.BEST_PRACTICES, BEST_PRACTICE_PENALTIES
        )
        production = self._production_readiness(
            results, syntax, logic, completeness, best_practices
        )

        overall = clamp(
            weights.syntax * syntax
            + weights.logic * logic
            + weights.completeness * completeness
            + weights.best_practices * best_practices
            + weights.production_readiness * production
        )
        score = QualityScore(
            overall=overall,
            syntax=syntax,
            logic=logic,
            completeness=completeness,
            best_practices=best_practices,
            production_readiness=production,
        )
        _logger.debug("quality_scored", **score.to_dict())
        return score

    def _dimension(
        self,
        results: Sequence[ValidationResult],
        dimension: ValidationType,
        penalties: dict[Severity, int],
        deductions: dict[str, int] | None = None,
    ) -> int:
        selected = [r for r in results if r.type == dimension]
        if not selected:
            return UNSCORED_DIMENSION
        raw = [r.score for r in selected if r.score is not None]
        value = float(min(raw)) if raw else 100.0
        for result in selected:
            for issue in result.issues:
                value -= penalties[issue.severity]
                if deductions:
                    value -= deductions.get(issue.type, 0)
        return clamp(value)

    def _completeness(
        self,
        results: Sequence[ValidationResult],
        requirements: QualityRequirements | None,
    ) -> int:
        value = self._dimension(results, ValidationType.COMPLETENESS, SYNTAX_PENALTIES)
        if requirements is None or not requirements.required_features:
            return value
        if not any(r.type == ValidationType.COMPLETENESS for r in results):
            return value
        missing = sum(
            1
            for r in results
            if r.type == ValidationType.COMPLETENESS
            for i in r.issues
            if i.type == "missing-required-feature"
        )
        required = len(requirements.required_features)
        ratio = max(0.0, 1 - missing / required)
        return clamp(value * (0.5 + 0.5 * ratio))

    def _production_readiness(
        self,
        results: Sequence[ValidationResult],
        syntax: int,
        logic: int,
        completeness: int,
        best_practices: int,
    ) -> int:
        t = self.thresholds
        if min(syntax, logic, completeness) < t.minimum:
            return 0

        average = (syntax + logic + completeness + best_practices) / 4
        if average >= t.excellent:
            value = 100.0
        elif average >= t.good:
            value = 85.0
        elif average >= t.minimum:
            value = 70.0
        else:
            value = average - 10

        blockers = sum(1 for r in results for i in r.issues if i.is_blocking)
        return clamp(value - PRODUCTION_BLOCKER_PENALTY * blockers)

    def meets_quality_threshold(self, score: QualityScore, threshold: int) -> bool:
        return score.overall >= threshold

    def is_production_ready(self, score: QualityScore) -> bool:
        return score.production_readiness >= self.thresholds.production_ready

    def get_quality_assessment(self, score: QualityScore) -> QualityAssessment:
        """Summarize a score as a level plus actionable recommendations."""
        t = self.thresholds
        if score.overall >= t.excellent:
            level = "excellent"
        elif score.overall >= t.good:
            level = "good"
        elif score.overall >= t.minimum:
            level = "fair"
        else:
            level = "poor"

        recommendations: list[str] = []
        if score.syntax < 70:
            recommendations.append("Fix syntax errors: balance brackets and remove legacy syntax")
        if score.logic < 70:
            recommendations.append(
                "Implement the interfaces and functions required for this contract type"
            )
        if score.completeness < 70:
            recommendations.append("Complete empty functions and add an init() function")
        if score.best_practices < 70:
            recommendations.append("Follow Cadence best practices: events, comments, no placeholders")
        production_ready = self.is_production_ready(score)
        if not production_ready:
            recommendations.append("Resolve all critical issues before deploying")
        return QualityAssessment(
            level=level,
            production_ready=production_ready,
            recommendations=recommendations,
        )
