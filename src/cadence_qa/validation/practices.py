"""Best-practices check: prohibited patterns, events and documentation."""

from __future__ import annotations

import re

from cadence_qa.models import (
    GenerationContext,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationType,
)
from cadence_qa.validation.base import make_issue, mask_non_code

_EVENT_DECLARATION = re.compile(r"\bevent\s+\w+\s*\(")
_CONTRACT = re.compile(r"\bcontract\s+\w+")


def _pattern_regex(pattern: str) -> re.Pattern[str]:
    # Word-like patterns match whole words only; others match literally
    if re.fullmatch(r"\w+", pattern):
        return re.compile(rf"\b{re.escape(pattern)}\b")
    return re.compile(re.escape(pattern))


class BestPracticesCheck:
    @property
    def check_id(self) -> str:
        return "best-practices"

    def check(self, code: str, context: GenerationContext | None = None) -> ValidationResult:
        issues: list[ValidationIssue] = []
        prohibited = context.quality_requirements.prohibited_patterns if context else frozenset()
        for pattern in sorted(prohibited):
            match = _pattern_regex(pattern).search(code)
            if match:
                issues.append(
                    make_issue(
                        code,
                        match.start(),
                        Severity.WARNING,
                        "prohibited-pattern",
                        f"Prohibited pattern '{pattern}' found",
                    )
                )

        masked = mask_non_code(code)
        if _CONTRACT.search(masked) and not _EVENT_DECLARATION.search(masked):
            issues.append(
                make_issue(
                    code,
                    0,
                    Severity.INFO,
                    "missing-events",
                    "Contract declares no events",
                    suggested_fix="Emit events for state changes",
                )
            )
        if "//" not in code and "/*" not in code:
            issues.append(
                make_issue(
                    code,
                    0,
                    Severity.INFO,
                    "missing-documentation",
                    "Code has no comments",
                )
            )
        return ValidationResult(type=ValidationType.BEST_PRACTICES, issues=tuple(issues))
