"""Tests for completeness, best-practices and the validation runner."""

from dataclasses import replace

import pytest

from cadence_qa.models import (
    GenerationContext,
    QualityRequirements,
    Severity,
    ValidationResult,
    ValidationType,
)
from cadence_qa.validation import (
    BestPracticesCheck,
    CompletenessCheck,
    ValidationRunner,
    all_issues,
    create_default_checks,
    validate_code,
)
from cadence_qa.validation.completeness import has_feature


def _types(result: ValidationResult) -> list[str]:
    return [i.type for i in result.issues]


# =============================================================================
# CompletenessCheck
# =============================================================================


class TestCompletenessCheck:
    """Tests for empty bodies, initializers and required features."""

    def test_clean_code(self, clean_code: str, generic_context: GenerationContext) -> None:
        result = CompletenessCheck().check(clean_code, generic_context)
        assert result.type == ValidationType.COMPLETENESS
        assert result.issues == ()

    def test_empty_function(self, generic_context: GenerationContext) -> None:
        code = (
            "access(all) contract A {\n"
            "    access(all) fun doWork() {}\n"
            "    init() {}\n"
            "}\n"
        )
        result = CompletenessCheck().check(code, generic_context)
        assert _types(result) == ["incomplete-function"]
        assert result.issues[0].severity == Severity.CRITICAL
        assert "doWork" in result.issues[0].message

    def test_empty_view_function_with_return_type(
        self, generic_context: GenerationContext
    ) -> None:
        code = "access(all) contract A {\n    access(all) view fun ok(): Bool {\n    }\n    init() {}\n}\n"
        assert _types(CompletenessCheck().check(code, generic_context)) == [
            "incomplete-function"
        ]

    def test_missing_init(self, generic_context: GenerationContext) -> None:
        code = "access(all) contract A {\n    access(all) let x: Int\n}\n"
        result = CompletenessCheck().check(code, generic_context)
        assert _types(result) == ["missing-init"]
        assert result.issues[0].severity == Severity.WARNING

    def test_nested_resource_init_does_not_count(
        self, generic_context: GenerationContext
    ) -> None:
        code = (
            "access(all) contract Vaults {\n"
            "    access(all) var total: Int\n"
            "\n"
            "    access(all) resource R {\n"
            "        access(all) let id: UInt64\n"
            "        init(id: UInt64) {\n"
            "            self.id = id\n"
            "        }\n"
            "    }\n"
            "}\n"
        )
        result = CompletenessCheck().check(code, generic_context)
        assert _types(result) == ["missing-init"]
        assert "Vaults" in result.issues[0].message

    def test_contract_init_after_nested_resource(
        self, generic_context: GenerationContext
    ) -> None:
        code = (
            "access(all) contract Vaults {\n"
            "    access(all) var total: Int\n"
            "    access(all) resource R {\n"
            "        init() {}\n"
            "    }\n"
            "    init() {\n"
            "        self.total = 0\n"
            "    }\n"
            "}\n"
        )
        assert CompletenessCheck().check(code, generic_context).issues == ()

    def test_contract_interface_needs_no_init(self, generic_context: GenerationContext) -> None:
        code = "access(all) contract interface Shape {\n    access(all) fun area(): UFix64\n}\n"
        assert CompletenessCheck().check(code, generic_context).issues == ()

    def test_required_features(self, clean_code: str) -> None:
        context = GenerationContext(
            user_prompt="p",
            quality_requirements=QualityRequirements(
                required_features=frozenset({"error-handling", "events"})
            ),
        )
        result = CompletenessCheck().check(clean_code, context)
        assert _types(result) == ["missing-required-feature"]
        assert "error-handling" in result.issues[0].message


class TestHasFeature:
    def test_documentation_by_comment_count(self) -> None:
        assert has_feature("// a\n// b\n// c\n", "complete-documentation")
        assert not has_feature("// a\n", "complete-documentation")
        assert has_feature("/// doc comment\n", "complete-documentation")

    def test_error_handling(self) -> None:
        assert has_feature('panic("no")', "error-handling")
        assert has_feature("pre {\n x > 0\n}", "input-validation")

    def test_unknown_feature_searches_name(self) -> None:
        assert has_feature("// royalties are paid here", "royalties")
        assert not has_feature("access(all) contract A {}", "royalties")


# =============================================================================
# BestPracticesCheck
# =============================================================================


class TestBestPracticesCheck:
    """Tests for prohibited patterns, events and comments."""

    def test_clean_code(self, clean_code: str, generic_context: GenerationContext) -> None:
        result = BestPracticesCheck().check(clean_code, generic_context)
        assert result.type == ValidationType.BEST_PRACTICES
        assert result.issues == ()

    def test_missing_events_and_comments(self, generic_context: GenerationContext) -> None:
        code = "access(all) contract A {\n    init() {}\n}\n"
        result = BestPracticesCheck().check(code, generic_context)
        assert sorted(_types(result)) == ["missing-documentation", "missing-events"]
        assert all(i.severity == Severity.INFO for i in result.issues)

    def test_prohibited_patterns(self, clean_code: str) -> None:
        context = GenerationContext(
            user_prompt="p",
            quality_requirements=QualityRequirements(
                prohibited_patterns=frozenset({"// TODO", "null"})
            ),
        )
        code = clean_code + "// TODO: remove\n"
        result = BestPracticesCheck().check(code, context)
        assert _types(result) == ["prohibited-pattern"]
        assert "// TODO" in result.issues[0].message

    def test_word_patterns_match_whole_words(self, clean_code: str) -> None:
        context = GenerationContext(
            user_prompt="p",
            quality_requirements=QualityRequirements(prohibited_patterns=frozenset({"null"})),
        )
        code = clean_code.replace("Simple counter contract", "nullable fields ahead")
        assert BestPracticesCheck().check(code, context).issues == ()


# =============================================================================
# ValidationRunner
# =============================================================================


class TestValidationRunner:
    """Tests for running every check against a text."""

    def test_default_checks_order(self) -> None:
        assert ValidationRunner().check_ids == [
            "undefined-scan",
            "syntax",
            "completeness",
            "contract-structure",
            "best-practices",
        ]
        assert len(create_default_checks()) == 5

    def test_clean_code_has_no_issues(
        self, clean_code: str, generic_context: GenerationContext
    ) -> None:
        results = ValidationRunner().validate(clean_code, generic_context)
        assert [r.type for r in results] == [
            ValidationType.SYNTAX,
            ValidationType.SYNTAX,
            ValidationType.COMPLETENESS,
            ValidationType.LOGIC,
            ValidationType.BEST_PRACTICES,
        ]
        assert all_issues(results) == []

    def test_broken_code(self, broken_code: str, generic_context: GenerationContext) -> None:
        issues = all_issues(validate_code(broken_code, generic_context))
        types = {i.type for i in issues}
        assert {
            "missing-return",
            "bracket-mismatch",
            "legacy-syntax",
            "incomplete-function",
            "missing-init",
        } <= types
        assert not any(i.auto_fixable for i in issues if i.severity == Severity.CRITICAL)

    def test_deterministic(self, broken_code: str, generic_context: GenerationContext) -> None:
        runner = ValidationRunner()
        assert runner.validate(broken_code, generic_context) == runner.validate(
            broken_code, generic_context
        )

    def test_custom_checks(self, clean_code: str, generic_context: GenerationContext) -> None:
        runner = ValidationRunner(checks=[])
        runner.add_check(BestPracticesCheck())
        assert runner.check_ids == ["best-practices"]
        assert len(runner.validate(clean_code, generic_context)) == 1

    def test_slow_validation_still_returns(
        self, clean_code: str, generic_context: GenerationContext
    ) -> None:
        limits = replace(generic_context.quality_requirements.performance, max_validation_time=0)
        context = replace(
            generic_context,
            quality_requirements=replace(generic_context.quality_requirements, performance=limits),
        )
        assert len(ValidationRunner().validate(clean_code, context)) == 5

    @pytest.mark.parametrize("code", ["", "\n\n", "}}}{{{"])
    def test_degenerate_input(self, code: str, generic_context: GenerationContext) -> None:
        results = ValidationRunner().validate(code, generic_context)
        assert len(results) == 5
