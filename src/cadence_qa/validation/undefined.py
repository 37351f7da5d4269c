"""Undefined-value detection.

Generators frequently leave JavaScript-style placeholders behind: the
literal ``undefined``, declarations that stop at ``=``, or annotations that
stop at ``:``. Each of these is a critical, auto-fixable finding whose
suggested fix is a default value for the declared type.

Two structural findings are reported as well: value-returning functions
without a ``return`` and ``switch`` statements without a ``default`` case.
"""

from __future__ import annotations

import re

from cadence_qa.core.logging import get_logger
from cadence_qa.models import (
    GenerationContext,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationType,
)
from cadence_qa.validation.base import find_block_end, iter_lines, make_issue, mask_non_code

_logger = get_logger("validation.undefined")

UNDEFINED_LITERAL = re.compile(r"\bundefined\b")
_TYPED_DECLARATION_PREFIX = re.compile(r"\b(?:var|let)\s+\w+\s*:\s*([^=]+?)\s*=\s*$")
_INCOMPLETE_DECLARATION = re.compile(r"\b(?:var|let)\s+(\w+)\s*:\s*([^=]+?)\s*=\s*$")
_INCOMPLETE_ASSIGNMENT = re.compile(r"\b(\w+)\s*=\s*$")
_INCOMPLETE_ANNOTATION = re.compile(r"(?:\b(?:var|let)\s+\w+|\))\s*:\s*$")
# A statement may continue on the next line; these match its first token there
_STATEMENT_KEYWORDS = (
    "access", "case", "contract", "default", "destroy", "emit", "event", "for", "fun",
    "if", "import", "init", "let", "priv", "pub", "resource", "return", "struct",
    "switch", "transaction", "var", "while",
)
_TYPE_CONTINUATION = re.compile(r"\s*(?:[A-Z@&\[{]|auth\b)")
_VALUE_CONTINUATION = re.compile(
    r"\s*(?!(?:" + "|".join(_STATEMENT_KEYWORDS) + r")\b)[\w\"(\[{<&@!-]"
)
_TYPED_FUNCTION = re.compile(
    r"\bfun\s+(\w+)\s*\([^)]*\)\s*:\s*((?:[^{\n]|\{[^{}\n]*\})+)\{"
)
_SWITCH = re.compile(r"\bswitch\b[^{]*\{")
_CASE_LABEL = re.compile(r"^\s*(?:case\b|default\s*:)")

_INTEGER_TYPES = re.compile(r"^U?Int(?:8|16|32|64|128|256)?$|^Word(?:8|16|32|64)$")
_FIXED_POINT_TYPES = frozenset({"UFix64", "Fix64"})


def default_value_for_type(type_name: str | None) -> str:
    """Return a literal default for a Cadence type annotation.

    Unknown and optional types default to ``nil``.
    """
    if not type_name:
        return "nil"
    t = type_name.strip()
    if t.endswith("?"):
        return "nil"
    if t == "String":
        return '""'
    if _INTEGER_TYPES.match(t):
        return "0"
    if t in _FIXED_POINT_TYPES:
        return "0.0"
    if t == "Bool":
        return "false"
    if t == "Address":
        return "0x0"
    if t.startswith("["):
        return "[]"
    if t.startswith("{"):
        return "{}"
    return "nil"


class UndefinedValueDetector:
    """Detects placeholder values and incomplete statements."""

    @property
    def check_id(self) -> str:
        return "undefined-scan"

    def check(self, code: str, context: GenerationContext | None = None) -> ValidationResult:
        return ValidationResult(type=ValidationType.SYNTAX, issues=tuple(self.scan(code)))

    def scan(self, code: str) -> list[ValidationIssue]:
        """Scan a text and return all findings, ordered by position."""
        masked = mask_non_code(code)
        issues = (
            self._literal_issues(code, masked)
            + self._incomplete_statement_issues(code, masked)
            + self._missing_return_issues(code, masked)
            + self._missing_default_issues(code, masked)
        )
        issues.sort(key=lambda i: (i.location.line, i.location.column))
        if issues:
            _logger.debug("undefined_scan_findings", count=len(issues))
        return issues

    def _literal_issues(self, code: str, masked: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for match in UNDEFINED_LITERAL.finditer(masked):
            line_start = masked.rfind("\n", 0, match.start()) + 1
            declared = _TYPED_DECLARATION_PREFIX.search(masked[line_start:match.start()])
            declared_type = declared.group(1) if declared else None
            suggestion = default_value_for_type(declared_type)
            message = (
                f"Undefined value used for {declared_type} declaration"
                if declared_type
                else "Undefined value used as a placeholder"
            )
            issues.append(
                make_issue(
                    code,
                    match.start(),
                    Severity.CRITICAL,
                    "undefined-value",
                    message,
                    suggested_fix=suggestion,
                    auto_fixable=True,
                )
            )
        return issues

    def _incomplete_statement_issues(self, code: str, masked: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for offset, line in iter_lines(masked):
            stripped = line.rstrip()
            if not stripped:
                continue
            end = offset + len(stripped) - 1
            continues_value = _VALUE_CONTINUATION.match(masked, end + 1) is not None

            declaration = _INCOMPLETE_DECLARATION.search(stripped)
            if declaration and not continues_value:
                name, type_name = declaration.group(1), declaration.group(2).strip()
                issues.append(
                    make_issue(
                        code,
                        end,
                        Severity.CRITICAL,
                        "incomplete-declaration",
                        f"Declaration of '{name}' has no value",
                        suggested_fix=default_value_for_type(type_name),
                        auto_fixable=True,
                    )
                )
                continue

            assignment = _INCOMPLETE_ASSIGNMENT.search(stripped)
            if assignment and not continues_value:
                issues.append(
                    make_issue(
                        code,
                        end,
                        Severity.CRITICAL,
                        "incomplete-assignment",
                        f"Assignment to '{assignment.group(1)}' has no value",
                        suggested_fix="nil",
                        auto_fixable=True,
                    )
                )
                continue

            if (
                _INCOMPLETE_ANNOTATION.search(stripped)
                and not _CASE_LABEL.match(stripped)
                and not _TYPE_CONTINUATION.match(masked, end + 1)
            ):
                issues.append(
                    make_issue(
                        code,
                        end,
                        Severity.CRITICAL,
                        "incomplete-type-annotation",
                        "Type annotation has no type",
                        suggested_fix="AnyStruct",
                        auto_fixable=True,
                    )
                )
        return issues

    def _missing_return_issues(self, code: str, masked: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for match in _TYPED_FUNCTION.finditer(masked):
            name, return_type = match.group(1), match.group(2).strip()
            if return_type == "Void":
                continue
            body_end = find_block_end(masked, match.end() - 1)
            if body_end == -1:
                # Unclosed body is reported by the bracket check
                continue
            body = masked[match.end():body_end]
            if re.search(r"\breturn\b|\bpanic\s*\(", body):
                continue
            issues.append(
                make_issue(
                    code,
                    match.start(),
                    Severity.CRITICAL,
                    "missing-return",
                    f"Function '{name}' returns {return_type} but has no return statement",
                )
            )
        return issues

    def _missing_default_issues(self, code: str, masked: str) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for match in _SWITCH.finditer(masked):
            body_end = find_block_end(masked, match.end() - 1)
            body = masked[match.end():body_end] if body_end != -1 else masked[match.end():]
            if re.search(r"\bdefault\s*:", body):
                continue
            issues.append(
                make_issue(
                    code,
                    match.start(),
                    Severity.WARNING,
                    "missing-default",
                    "Switch statement has no default case",
                )
            )
        return issues
