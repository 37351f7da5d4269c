"""Rule-based auto-correction of generated code.

The engine only acts on issue types that the validation layer marked as
auto-fixable, and each rule is a local text substitution:

    undefined-value              undefined -> default for the declared type
    incomplete-declaration       `let x: T =`  -> `let x: T = <default>`
    incomplete-assignment        `x =`         -> `x = nil`
    incomplete-type-annotation   `let x:`      -> `let x: AnyStruct`
    legacy-syntax                `pub `        -> `access(all) `
    trailing-comma               `f(a, )`      -> `f(a )`

Fixes are located by re-scanning the current text, never by trusting stale
offsets. A pass that would raise the number of critical findings is rolled
back, and running the engine on its own output changes nothing.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from cadence_qa.core.logging import get_logger
from cadence_qa.models import (
    Correction,
    CorrectionResult,
    Severity,
    ValidationIssue,
)
from cadence_qa.validation.base import location_at, mask_non_code
from cadence_qa.validation.syntax import LEGACY_TOKENS, TRAILING_COMMA, SyntaxCheck, bracket_balance
from cadence_qa.validation.undefined import UNDEFINED_LITERAL, UndefinedValueDetector

_logger = get_logger("correction")

FIXABLE_TYPES = frozenset({
    "undefined-value",
    "incomplete-declaration",
    "incomplete-assignment",
    "incomplete-type-annotation",
    "legacy-syntax",
    "trailing-comma",
})

_INCOMPLETE_TYPES = frozenset({
    "incomplete-declaration",
    "incomplete-assignment",
    "incomplete-type-annotation",
})

# Estimated score gain per resolved finding, by severity
_IMPROVEMENT_WEIGHTS: dict[Severity, float] = {
    Severity.CRITICAL: 25.0,
    Severity.WARNING: 10.0,
    Severity.INFO: 2.0,
}


@dataclass(frozen=True)
class _Edit:
    start: int
    end: int
    replacement: str
    correction: Correction


class AutoCorrectionEngine:
    """Applies safe, local fixes for auto-fixable issues."""

    def __init__(self) -> None:
        self._undefined = UndefinedValueDetector()
        self._syntax = SyntaxCheck()

    def scan(self, code: str) -> list[ValidationIssue]:
        """Findings the engine knows how to reason about."""
        return self._undefined.scan(code) + self._syntax.scan(code)

    def correct_code(
        self,
        code: str,
        issues: Sequence[ValidationIssue] | None = None,
    ) -> CorrectionResult:
        """Correct the auto-fixable issues in a text.

        Args:
            code: Candidate text.
            issues: Findings for this text. Only types that appear here as
                auto-fixable are corrected. When None, the engine scans the
                text itself.

        Returns:
            CorrectionResult; success is True when fixes were applied or the
            text had no critical findings to begin with.
        """
        before = self.scan(code)
        if issues is None:
            issues = before
        allowed = {i.type for i in issues if i.auto_fixable} & FIXABLE_TYPES
        critical_before = sum(1 for i in before if i.severity == Severity.CRITICAL)

        edits = self._plan_edits(code, before, allowed)
        if not edits:
            return CorrectionResult(
                corrected_code=code,
                corrections=(),
                success=critical_before == 0,
                quality_improvement=0.0,
            )

        corrected = _apply_edits(code, edits)
        valid, problems = self.validate_corrections(code, corrected)
        if not valid:
            _logger.warning("correction_rolled_back", problems=problems)
            return CorrectionResult(
                corrected_code=code,
                corrections=(),
                success=False,
                quality_improvement=0.0,
            )

        after = self.scan(corrected)
        improvement = _weighted(before) - _weighted(after)
        corrections = tuple(e.correction for e in edits)
        _logger.info(
            "code_corrected",
            corrections=len(corrections),
            critical_before=critical_before,
            critical_after=sum(1 for i in after if i.severity == Severity.CRITICAL),
        )
        return CorrectionResult(
            corrected_code=corrected,
            corrections=corrections,
            success=True,
            quality_improvement=max(0.0, improvement),
        )

    def validate_corrections(self, original: str, corrected: str) -> tuple[bool, list[str]]:
        """Check that a correction did not make the text worse.

        Returns:
            (is_valid, problems) where problems describes each regression.
        """
        problems: list[str] = []
        original_masked = mask_non_code(original)
        corrected_masked = mask_non_code(corrected)

        undefined_before = len(UNDEFINED_LITERAL.findall(original_masked))
        undefined_after = len(UNDEFINED_LITERAL.findall(corrected_masked))
        if undefined_after > undefined_before:
            problems.append("correction introduced new undefined values")

        unbalanced_before = set(bracket_balance(original_masked))
        unbalanced_after = set(bracket_balance(corrected_masked))
        if unbalanced_after - unbalanced_before:
            problems.append("correction introduced new bracket imbalance")

        critical_before = _count_critical(self.scan(original))
        critical_after = _count_critical(self.scan(corrected))
        if critical_after > critical_before:
            problems.append(
                f"critical issues increased from {critical_before} to {critical_after}"
            )
        return not problems, problems

    def _plan_edits(
        self,
        code: str,
        findings: list[ValidationIssue],
        allowed: set[str],
    ) -> list[_Edit]:
        masked = mask_non_code(code)
        edits: list[_Edit] = []

        if "undefined-value" in allowed:
            fixes = [i for i in findings if i.type == "undefined-value"]
            for match, issue in zip(UNDEFINED_LITERAL.finditer(masked), fixes, strict=False):
                value = issue.suggested_fix or "nil"
                edits.append(
                    _edit(code, match.start(), match.end(), value, "undefined-value",
                          f"Replaced undefined with {value}")
                )

        line_offsets = _line_offsets(code)
        for issue in findings:
            if issue.type not in _INCOMPLETE_TYPES or issue.type not in allowed:
                continue
            end = line_offsets[issue.location.line - 1] + issue.location.column
            value = issue.suggested_fix or "nil"
            edits.append(
                _edit(code, end, end, f" {value}", issue.type,
                      f"Completed statement with {value}", confidence=0.8)
            )

        if "legacy-syntax" in allowed:
            for pattern, _, message, replacement in LEGACY_TOKENS:
                if replacement is None:
                    continue
                for match in pattern.finditer(masked):
                    edits.append(
                        _edit(code, match.start(), match.end(), replacement, "legacy-syntax",
                              message)
                    )

        if "trailing-comma" in allowed:
            for match in TRAILING_COMMA.finditer(masked):
                edits.append(
                    _edit(code, match.start(), match.start() + 1, "", "trailing-comma",
                          "Removed trailing comma")
                )

        return _non_overlapping(edits)


def _edit(
    code: str,
    start: int,
    end: int,
    replacement: str,
    issue_type: str,
    reasoning: str,
    confidence: float = 1.0,
) -> _Edit:
    return _Edit(
        start=start,
        end=end,
        replacement=replacement,
        correction=Correction(
            type=issue_type,
            location=location_at(code, start),
            original=code[start:end],
            corrected=replacement,
            reasoning=reasoning,
            confidence=confidence,
        ),
    )


def _line_offsets(code: str) -> list[int]:
    offsets = [0]
    for i, ch in enumerate(code):
        if ch == "\n":
            offsets.append(i + 1)
    return offsets


def _non_overlapping(edits: list[_Edit]) -> list[_Edit]:
    edits = sorted(edits, key=lambda e: (e.start, e.end))
    kept: list[_Edit] = []
    last_end = -1
    for edit in edits:
        if edit.start < last_end:
            continue
        kept.append(edit)
        last_end = max(edit.end, edit.start + 1) if edit.start == edit.end else edit.end
    return kept


def _apply_edits(code: str, edits: list[_Edit]) -> str:
    result = code
    for edit in sorted(edits, key=lambda e: e.start, reverse=True):
        result = result[:edit.start] + edit.replacement + result[edit.end:]
    return result


def _count_critical(issues: list[ValidationIssue]) -> int:
    return sum(1 for i in issues if i.severity == Severity.CRITICAL)


def _weighted(issues: list[ValidationIssue]) -> float:
    return sum(_IMPROVEMENT_WEIGHTS[i.severity] for i in issues)
