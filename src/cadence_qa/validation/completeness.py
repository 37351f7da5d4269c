"""Completeness check: empty bodies, missing initializers, required features."""

from __future__ import annotations

import re

from cadence_qa.models import (
    GenerationContext,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationType,
)
from cadence_qa.validation.base import make_issue, mask_non_code, top_level_text

EMPTY_FUNCTION = re.compile(
    r"access\([^)]+\)\s+(?:view\s+)?fun\s+(\w+)\s*\([^)]*\)(?:\s*:\s*[^{\n]+?)?\s*\{\s*\}"
)
CONTRACT_DECLARATION = re.compile(r"access\(all\)\s+contract\s+(?!interface\b)(\w+)")
INITIALIZER = re.compile(r"\binit\s*\(")

# How a named feature is recognised in the text; unknown names fall back
# to a case-insensitive search for the name itself.
FEATURE_DETECTORS: dict[str, re.Pattern[str]] = {
    "complete-documentation": re.compile(r"///|/\*\*"),
    "error-handling": re.compile(r"\bpanic\s*\(|\bpre\s*\{|\bpost\s*\{|\bassert\s*\("),
    "input-validation": re.compile(r"\bpre\s*\{|\bassert\s*\("),
    "events": re.compile(r"\bevent\s+\w+\s*\("),
    "metadata": re.compile(r"MetadataViews|resolveView"),
}

# Plain line comments count as documentation once there are this many
MIN_DOC_COMMENTS = 3


def has_feature(code: str, feature: str) -> bool:
    if feature == "complete-documentation" and code.count("//") >= MIN_DOC_COMMENTS:
        return True
    detector = FEATURE_DETECTORS.get(feature)
    if detector is not None:
        return detector.search(code) is not None
    return re.search(re.escape(feature), code, re.IGNORECASE) is not None


def _has_contract_initializer(masked: str, declaration_end: int) -> bool:
    # Initializers of nested resources and structs do not count
    open_index = masked.find("{", declaration_end)
    if open_index == -1:
        return False
    return INITIALIZER.search(top_level_text(masked, open_index)) is not None


class CompletenessCheck:
    """Flags unimplemented code and required features that are absent."""

    @property
    def check_id(self) -> str:
        return "completeness"

    def check(self, code: str, context: GenerationContext | None = None) -> ValidationResult:
        masked = mask_non_code(code)
        issues: list[ValidationIssue] = []

        for match in EMPTY_FUNCTION.finditer(masked):
            issues.append(
                make_issue(
                    code,
                    match.start(),
                    Severity.CRITICAL,
                    "incomplete-function",
                    f"Function '{match.group(1)}' has an empty body",
                )
            )

        declaration = CONTRACT_DECLARATION.search(masked)
        if declaration and not _has_contract_initializer(masked, declaration.end()):
            issues.append(
                make_issue(
                    code,
                    declaration.start(),
                    Severity.WARNING,
                    "missing-init",
                    f"Contract '{declaration.group(1)}' has no init() function",
                    suggested_fix="Add an init() function that sets every field",
                )
            )

        if context is not None:
            for feature in sorted(context.quality_requirements.required_features):
                if not has_feature(code, feature):
                    issues.append(
                        make_issue(
                            code,
                            0,
                            Severity.WARNING,
                            "missing-required-feature",
                            f"Required feature '{feature}' is not present",
                        )
                    )

        return ValidationResult(type=ValidationType.COMPLETENESS, issues=tuple(issues))
