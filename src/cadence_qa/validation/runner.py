"""Validation runner that applies every check to a candidate text."""

from __future__ import annotations

import time

from cadence_qa.core.logging import get_logger
from cadence_qa.models import GenerationContext, Severity, ValidationIssue, ValidationResult
from cadence_qa.validation.base import ValidationCheck
from cadence_qa.validation.completeness import CompletenessCheck
from cadence_qa.validation.contracts import ContractSpecificValidator
from cadence_qa.validation.practices import BestPracticesCheck
from cadence_qa.validation.syntax import SyntaxCheck
from cadence_qa.validation.undefined import UndefinedValueDetector

_logger = get_logger("validation.runner")


def create_default_checks() -> list[ValidationCheck]:
    """Default checks, in reporting order."""
    return [
        UndefinedValueDetector(),
        SyntaxCheck(),
        CompletenessCheck(),
        ContractSpecificValidator(),
        BestPracticesCheck(),
    ]


class ValidationRunner:
    """Runs a list of checks and collects one ValidationResult per check.

    Results are a pure function of the text and context.
    """

    def __init__(self, checks: list[ValidationCheck] | None = None) -> None:
        self._checks: list[ValidationCheck] = (
            checks if checks is not None else create_default_checks()
        )

    def add_check(self, check: ValidationCheck) -> None:
        self._checks.append(check)

    @property
    def check_ids(self) -> list[str]:
        return [c.check_id for c in self._checks]

    def validate(self, code: str, context: GenerationContext) -> list[ValidationResult]:
        start = time.monotonic()
        results = [check.check(code, context) for check in self._checks]
        elapsed_ms = (time.monotonic() - start) * 1000

        critical = sum(r.count(Severity.CRITICAL) for r in results)
        _logger.debug(
            "validation_completed",
            checks=len(results),
            critical=critical,
            duration_ms=round(elapsed_ms, 2),
        )
        budget = context.quality_requirements.performance.max_validation_time
        if elapsed_ms > budget:
            _logger.warning(
                "validation_slow",
                duration_ms=round(elapsed_ms, 2),
                budget_ms=budget,
            )
        return results


def validate_code(code: str, context: GenerationContext) -> list[ValidationResult]:
    """Run the default checks against a candidate text."""
    return ValidationRunner().validate(code, context)


def all_issues(results: list[ValidationResult] | tuple[ValidationResult, ...]) -> list[ValidationIssue]:
    """Flatten the issues of several results."""
    return [issue for result in results for issue in result.issues]
