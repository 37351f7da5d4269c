"""Shallow syntax check.

This is a heuristic gate, not a parser: it balances brackets across the
whole text and scans for legacy tokens that current Cadence rejects.
Comments and string literals are ignored by both scans.
"""

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

BRACKET_PAIRS: dict[str, str] = {"{": "}", "[": "]", "(": ")"}

# (pattern, issue type, message, replacement or None when no safe substitution exists)
LEGACY_TOKENS: list[tuple[re.Pattern[str], str, str, str | None]] = [
    (
        re.compile(r"\bpub(?:\(set\))?\s+"),
        "legacy-syntax",
        "Legacy 'pub' access modifier; use access(all)",
        "access(all) ",
    ),
    (
        re.compile(r"\bpriv\s+"),
        "legacy-syntax",
        "Legacy 'priv' access modifier; use access(self)",
        "access(self) ",
    ),
    (
        re.compile(r"\bAuthAccount\b"),
        "legacy-syntax",
        "Legacy AuthAccount type; use auth(Storage) &Account with explicit entitlements",
        None,
    ),
    (
        re.compile(r"\bPublicAccount\b"),
        "legacy-syntax",
        "Legacy PublicAccount type; use &Account",
        None,
    ),
]

TRAILING_COMMA = re.compile(r",(\s*\))")


def bracket_balance(masked: str) -> dict[str, tuple[int, int]]:
    """Count each bracket kind in already-masked text.

    Returns:
        Mapping of opening bracket to (net count, offset of the offending
        bracket). Net count is positive for missing closers and negative
        for extra closers; offset points at the last unmatched opener or
        the first extra closer.
    """
    result: dict[str, tuple[int, int]] = {}
    for opener, closer in BRACKET_PAIRS.items():
        depth = 0
        open_stack: list[int] = []
        first_extra = -1
        for i, ch in enumerate(masked):
            if ch == opener:
                depth += 1
                open_stack.append(i)
            elif ch == closer:
                depth -= 1
                if open_stack:
                    open_stack.pop()
                elif first_extra == -1:
                    first_extra = i
        if depth > 0:
            result[opener] = (depth, open_stack[-1] if open_stack else 0)
        elif depth < 0:
            result[opener] = (depth, max(first_extra, 0))
    return result


class SyntaxCheck:
    """Bracket balancing and legacy token scanning."""

    @property
    def check_id(self) -> str:
        return "syntax"

    def check(self, code: str, context: GenerationContext | None = None) -> ValidationResult:
        return ValidationResult(type=ValidationType.SYNTAX, issues=tuple(self.scan(code)))

    def scan(self, code: str) -> list[ValidationIssue]:
        masked = mask_non_code(code)
        issues = self._bracket_issues(code, masked)
        issues.extend(self._legacy_issues(code, masked))
        issues.extend(self._trailing_comma_issues(code, masked))
        return issues

    def _bracket_issues(self, code: str, masked: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for opener, (count, offset) in bracket_balance(masked).items():
            closer = BRACKET_PAIRS[opener]
            if count > 0:
                detail = f"{count} missing closing '{closer}'"
            else:
                detail = f"{-count} extra closing '{closer}'"
            issues.append(
                make_issue(
                    code,
                    offset,
                    Severity.CRITICAL,
                    "bracket-mismatch",
                    f"Unmatched {opener} brackets ({detail})",
                )
            )
        return issues

    def _legacy_issues(self, code: str, masked: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for pattern, issue_type, message, replacement in LEGACY_TOKENS:
            for match in pattern.finditer(masked):
                issues.append(
                    make_issue(
                        code,
                        match.start(),
                        Severity.CRITICAL,
                        issue_type,
                        message,
                        suggested_fix=replacement.strip() if replacement else None,
                        auto_fixable=replacement is not None,
                    )
                )
        return issues

    def _trailing_comma_issues(self, code: str, masked: str) -> list[ValidationIssue]:
        return [
            make_issue(
                code,
                match.start(),
                Severity.WARNING,
                "trailing-comma",
                "Trailing comma before closing parenthesis",
                suggested_fix="remove the comma",
                auto_fixable=True,
            )
            for match in TRAILING_COMMA.finditer(masked)
        ]
