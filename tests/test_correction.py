"""Tests for the rule-based auto-correction engine."""

from dataclasses import replace

import pytest

from cadence_qa.correction import FIXABLE_TYPES, AutoCorrectionEngine
from cadence_qa.validation.syntax import SyntaxCheck

UNDEFINED_CONTRACT = "access(all) contract T { var x: String = undefined init() {} }"


@pytest.fixture
def engine() -> AutoCorrectionEngine:
    return AutoCorrectionEngine()


class TestUndefinedValues:
    """Tests for replacing undefined placeholders."""

    def test_replaces_with_typed_default(self, engine: AutoCorrectionEngine) -> None:
        result = engine.correct_code(UNDEFINED_CONTRACT)
        assert result.success
        assert 'var x: String = ""' in result.corrected_code
        assert len(result.corrections) == 1
        correction = result.corrections[0]
        assert correction.type == "undefined-value"
        assert correction.original == "undefined"
        assert correction.corrected == '""'
        assert correction.location.line == 1
        assert result.quality_improvement == 25.0

    def test_rescan_is_clean(self, engine: AutoCorrectionEngine) -> None:
        corrected = engine.correct_code(UNDEFINED_CONTRACT).corrected_code
        assert engine.scan(corrected) == []

    def test_several_types(self, engine: AutoCorrectionEngine) -> None:
        code = (
            "access(all) contract Bank {\n"
            "    access(all) var name: String = undefined\n"
            "    access(all) var balance: UFix64 = undefined\n"
            "    access(all) var open: Bool = undefined\n"
            "    init() {}\n"
            "}\n"
        )
        corrected = engine.correct_code(code).corrected_code
        assert 'name: String = ""' in corrected
        assert "balance: UFix64 = 0.0" in corrected
        assert "open: Bool = false" in corrected
        assert "undefined" not in corrected

    def test_string_literals_untouched(self, engine: AutoCorrectionEngine) -> None:
        code = 'access(all) let a: String = "undefined"\naccess(all) var b: Int = undefined\n'
        corrected = engine.correct_code(code).corrected_code
        assert '"undefined"' in corrected
        assert "b: Int = 0" in corrected


class TestIncompleteStatements:
    def test_declaration(self, engine: AutoCorrectionEngine) -> None:
        result = engine.correct_code("access(all) let owner: Address =\n")
        assert result.corrected_code == "access(all) let owner: Address = 0x0\n"
        assert result.corrections[0].confidence == 0.8

    def test_annotation(self, engine: AutoCorrectionEngine) -> None:
        result = engine.correct_code("access(all) var flag:\n")
        assert result.corrected_code == "access(all) var flag: AnyStruct\n"

    def test_assignment(self, engine: AutoCorrectionEngine) -> None:
        result = engine.correct_code("fun f() {\n    self.count =\n}\n")
        assert "self.count = nil\n" in result.corrected_code

    def test_multi_line_return_type_untouched(self, engine: AutoCorrectionEngine) -> None:
        code = (
            "access(all) contract C {\n"
            "    access(all) fun f():\n"
            "        String {\n"
            '        return ""\n'
            "    }\n"
            "\n"
            "    init() {}\n"
            "}\n"
        )
        result = engine.correct_code(code)
        assert result.corrected_code == code
        assert result.corrections == ()

    def test_multi_line_value_untouched(self, engine: AutoCorrectionEngine) -> None:
        code = "access(all) let total: Int =\n    42\n"
        assert engine.correct_code(code).corrected_code == code


class TestLegacySyntax:
    """Tests for access modifier rewrites."""

    def test_pub_to_access_all(self, engine: AutoCorrectionEngine, legacy_code: str) -> None:
        result = engine.correct_code(legacy_code)
        assert result.success
        assert len(result.corrections) == 4
        assert "pub " not in result.corrected_code
        assert "access(all) contract Legacy" in result.corrected_code
        assert "access(all) fun ping()" in result.corrected_code
        assert SyntaxCheck().scan(result.corrected_code) == []

    def test_priv_to_access_self(self, engine: AutoCorrectionEngine) -> None:
        result = engine.correct_code("priv let secret: Int = 0\n")
        assert result.corrected_code == "access(self) let secret: Int = 0\n"

    def test_auth_account_not_fixable(self, engine: AutoCorrectionEngine) -> None:
        code = "access(all) fun setup(acct: AuthAccount) {\n    log(acct)\n}\n"
        result = engine.correct_code(code)
        assert result.corrected_code == code
        assert result.corrections == ()
        assert result.success is False


class TestTrailingComma:
    def test_removed(self, engine: AutoCorrectionEngine) -> None:
        result = engine.correct_code("emit Sold(id: 1, price: 2.0, )\n")
        assert result.corrected_code == "emit Sold(id: 1, price: 2.0 )\n"
        assert result.corrections[0].type == "trailing-comma"


class TestEngineBehavior:
    """Tests for idempotence, issue filtering and rollback."""

    def test_idempotent(self, engine: AutoCorrectionEngine, legacy_code: str) -> None:
        once = engine.correct_code(legacy_code).corrected_code
        again = engine.correct_code(once)
        assert again.corrected_code == once
        assert again.corrections == ()
        assert again.success

    def test_clean_code_untouched(self, engine: AutoCorrectionEngine, clean_code: str) -> None:
        result = engine.correct_code(clean_code)
        assert result.corrected_code == clean_code
        assert result.success
        assert result.quality_improvement == 0.0

    def test_only_listed_issue_types_are_fixed(self, engine: AutoCorrectionEngine) -> None:
        code = "pub var a: Int = undefined\n"
        legacy_only = [i for i in engine.scan(code) if i.type == "legacy-syntax"]
        result = engine.correct_code(code, legacy_only)
        assert result.corrected_code == "access(all) var a: Int = undefined\n"

    def test_non_fixable_issues_ignored(self, engine: AutoCorrectionEngine) -> None:
        code = "pub var a: Int = 0\n"
        blocked = [replace(i, auto_fixable=False) for i in engine.scan(code)]
        assert engine.correct_code(code, blocked).corrections == ()

    def test_fixable_types(self) -> None:
        assert "legacy-syntax" in FIXABLE_TYPES
        assert "bracket-mismatch" not in FIXABLE_TYPES
        assert "missing-return" not in FIXABLE_TYPES


class TestValidateCorrections:
    def test_accepts_improvement(self, engine: AutoCorrectionEngine) -> None:
        valid, problems = engine.validate_corrections(
            "var x: Int = undefined\n", "var x: Int = 0\n"
        )
        assert valid
        assert problems == []

    def test_rejects_new_undefined(self, engine: AutoCorrectionEngine) -> None:
        valid, problems = engine.validate_corrections(
            "var x: Int = 0\n", "var x: Int = undefined\n"
        )
        assert not valid
        assert any("undefined" in p for p in problems)

    def test_rejects_new_bracket_imbalance(self, engine: AutoCorrectionEngine) -> None:
        valid, problems = engine.validate_corrections("fun f() {}\n", "fun f() {\n")
        assert not valid
        assert any("bracket" in p for p in problems)
        assert any("critical issues increased" in p for p in problems)
