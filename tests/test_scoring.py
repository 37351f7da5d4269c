"""Tests for the weighted quality scorer."""

import pytest

from cadence_qa.core.config import QAConfig, QualityWeights
from cadence_qa.models import (
    ContractCategory,
    ContractType,
    GenerationContext,
    IssueLocation,
    QualityRequirements,
    QualityScore,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationType,
)
from cadence_qa.scoring import QualityScoreCalculator, clamp
from cadence_qa.validation.runner import ValidationRunner


def _issue(severity: Severity, issue_type: str = "x", fixable: bool = False) -> ValidationIssue:
    return ValidationIssue(
        severity=severity,
        type=issue_type,
        location=IssueLocation(1, 1),
        message="m",
        auto_fixable=fixable,
    )


def _result(dimension: ValidationType, *issues: ValidationIssue, score: float | None = None):
    return ValidationResult(type=dimension, issues=tuple(issues), score=score)


def _all_clean() -> list[ValidationResult]:
    return [_result(t) for t in ValidationType]


@pytest.fixture
def calculator() -> QualityScoreCalculator:
    return QualityScoreCalculator()


class TestClamp:
    @pytest.mark.parametrize("value,expected", [(-20, 0), (0, 0), (55.4, 55), (130, 100)])
    def test_clamp(self, value: float, expected: int) -> None:
        assert clamp(value) == expected


class TestDimensions:
    """Tests for per-dimension penalties."""

    def test_all_clean_is_perfect(self, calculator: QualityScoreCalculator) -> None:
        score = calculator.calculate_quality_score(_all_clean())
        assert score == QualityScore(100, 100, 100, 100, 100, 100)

    def test_unscored_dimensions_default_to_fifty(
        self, calculator: QualityScoreCalculator
    ) -> None:
        score = calculator.calculate_quality_score([])
        assert score.syntax == score.logic == score.completeness == score.best_practices == 50
        # 50 is below the per-dimension minimum of 60
        assert score.production_readiness == 0
        assert score.overall == 45

    def test_penalties_clamped_at_zero(self, calculator: QualityScoreCalculator) -> None:
        results = _all_clean()
        results[0] = _result(
            ValidationType.SYNTAX, *[_issue(Severity.CRITICAL) for _ in range(10)]
        )
        assert calculator.calculate_quality_score(results).syntax == 0

    def test_severity_penalties(self, calculator: QualityScoreCalculator) -> None:
        results = _all_clean()
        results[0] = _result(
            ValidationType.SYNTAX,
            _issue(Severity.CRITICAL),
            _issue(Severity.WARNING),
            _issue(Severity.INFO),
        )
        results[3] = _result(
            ValidationType.BEST_PRACTICES,
            _issue(Severity.WARNING),
            _issue(Severity.INFO),
        )
        score = calculator.calculate_quality_score(results)
        assert score.syntax == 100 - 25 - 10 - 2
        assert score.best_practices == 100 - 8 - 3

    def test_raw_score_is_starting_point(self, calculator: QualityScoreCalculator) -> None:
        results = _all_clean()
        results[1] = _result(ValidationType.LOGIC, _issue(Severity.WARNING), score=80)
        assert calculator.calculate_quality_score(results).logic == 70

    def test_category_deductions(self, calculator: QualityScoreCalculator) -> None:
        results = _all_clean()
        results[1] = _result(
            ValidationType.LOGIC, _issue(Severity.CRITICAL, "missing-transfer-support")
        )
        nft = calculator.calculate_quality_score(
            results, contract_type=ContractType(category=ContractCategory.NFT)
        )
        generic = calculator.calculate_quality_score(results)
        assert nft.logic == 100 - 25 - 20
        assert generic.logic == 75

    def test_required_features_scale_completeness(
        self, calculator: QualityScoreCalculator
    ) -> None:
        results = _all_clean()
        results[2] = _result(
            ValidationType.COMPLETENESS, _issue(Severity.WARNING, "missing-required-feature")
        )
        requirements = QualityRequirements(required_features=frozenset({"a", "b"}))
        score = calculator.calculate_quality_score(results, requirements=requirements)
        # (100 - 10) * (0.5 + 0.5 * 1/2)
        assert score.completeness == 68


class TestProductionReadiness:
    """Tests for the production gate."""

    def test_gate_on_low_dimension(self, calculator: QualityScoreCalculator) -> None:
        results = _all_clean()
        results[2] = _result(
            ValidationType.COMPLETENESS, *[_issue(Severity.CRITICAL) for _ in range(2)]
        )
        score = calculator.calculate_quality_score(results)
        assert score.completeness == 50
        assert score.production_readiness == 0

    def test_blocking_issue_penalty(self, calculator: QualityScoreCalculator) -> None:
        results = _all_clean()
        results[0] = _result(ValidationType.SYNTAX, _issue(Severity.CRITICAL))
        score = calculator.calculate_quality_score(results)
        assert score.syntax == 75
        assert score.production_readiness == 100 - 30

    def test_fixable_issue_is_not_blocking(self, calculator: QualityScoreCalculator) -> None:
        results = _all_clean()
        results[0] = _result(ValidationType.SYNTAX, _issue(Severity.CRITICAL, fixable=True))
        assert calculator.calculate_quality_score(results).production_readiness == 100


class TestOverall:
    def test_weighted_sum(self, calculator: QualityScoreCalculator) -> None:
        results = _all_clean()
        results[0] = _result(ValidationType.SYNTAX, _issue(Severity.CRITICAL, fixable=True))
        score = calculator.calculate_quality_score(results)
        # 0.25*75 + 0.25*100 + 0.25*100 + 0.15*100 + 0.10*100
        assert score.overall == 94

    def test_weights_override(self, calculator: QualityScoreCalculator) -> None:
        results = _all_clean()
        results[0] = _result(
            ValidationType.SYNTAX, *[_issue(Severity.CRITICAL) for _ in range(4)]
        )
        weights = QualityWeights(
            syntax=1.0, logic=0.0, completeness=0.0, best_practices=0.0, production_readiness=0.0
        )
        assert calculator.calculate_quality_score(results, weights=weights).overall == 0

    def test_from_config(self) -> None:
        config = QAConfig(
            weights=QualityWeights(
                syntax=0.2, logic=0.2, completeness=0.2, best_practices=0.2,
                production_readiness=0.2,
            )
        )
        assert QualityScoreCalculator.from_config(config).weights.syntax == 0.2

    def test_every_value_in_range(
        self,
        calculator: QualityScoreCalculator,
        broken_code: str,
        generic_context: GenerationContext,
    ) -> None:
        results = ValidationRunner().validate(broken_code, generic_context)
        score = calculator.calculate_quality_score(results)
        for value in score.to_dict().values():
            assert 0 <= value <= 100
        assert score.overall < 80


class TestRealCode:
    """Scores of the shared fixture contracts."""

    def test_clean_contract(
        self,
        calculator: QualityScoreCalculator,
        clean_code: str,
        generic_context: GenerationContext,
    ) -> None:
        results = ValidationRunner().validate(clean_code, generic_context)
        assert calculator.calculate_quality_score(results).overall == 100

    def test_undefined_value_contract(
        self, calculator: QualityScoreCalculator, generic_context: GenerationContext
    ) -> None:
        code = "access(all) contract T { var x: String = undefined init() {} }"
        results = ValidationRunner().validate(code, generic_context)
        score = calculator.calculate_quality_score(results)
        assert score.syntax == 75
        assert score.logic == 100
        assert score.completeness == 100
        assert score.overall >= 80

    def test_broken_contract(
        self,
        calculator: QualityScoreCalculator,
        broken_code: str,
        generic_context: GenerationContext,
    ) -> None:
        results = ValidationRunner().validate(broken_code, generic_context)
        score = calculator.calculate_quality_score(results)
        assert score.syntax == 25
        assert score.completeness == 40
        assert score.production_readiness == 0
        assert score.overall == 55


class TestAssessment:
    """Tests for the human-oriented summary."""

    def test_excellent(self, calculator: QualityScoreCalculator) -> None:
        assessment = calculator.get_quality_assessment(QualityScore(95, 95, 95, 95, 95, 100))
        assert assessment.level == "excellent"
        assert assessment.production_ready
        assert assessment.recommendations == []

    @pytest.mark.parametrize(
        "overall,level", [(90, "excellent"), (80, "good"), (75, "good"), (60, "fair"), (59, "poor")]
    )
    def test_levels(self, calculator: QualityScoreCalculator, overall: int, level: str) -> None:
        score = QualityScore(overall, 100, 100, 100, 100, 100)
        assert calculator.get_quality_assessment(score).level == level

    def test_recommendations(self, calculator: QualityScoreCalculator) -> None:
        assessment = calculator.get_quality_assessment(QualityScore(40, 30, 90, 50, 90, 0))
        text = " ".join(assessment.recommendations)
        assert "syntax" in text
        assert "empty functions" in text
        assert "Resolve all critical issues" in text
        assert not assessment.production_ready
        assert assessment.to_dict()["level"] == "poor"

    def test_thresholds(self, calculator: QualityScoreCalculator) -> None:
        assert calculator.is_production_ready(QualityScore(production_readiness=85))
        assert not calculator.is_production_ready(QualityScore(production_readiness=84))
        assert calculator.meets_quality_threshold(QualityScore(overall=80), 80)
        assert not calculator.meets_quality_threshold(QualityScore(overall=79), 80)
