"""Tests for contract-type structural validation."""

import pytest

from cadence_qa.fallback.generator import FallbackGenerator
from cadence_qa.fallback.templates import template_for
from cadence_qa.models import (
    ContractCategory,
    ContractType,
    GenerationContext,
    Severity,
    ValidationType,
)
from cadence_qa.validation.contracts import (
    CATEGORY_REQUIREMENTS,
    ContractSpecificValidator,
    requirements_for,
)


@pytest.fixture
def validator() -> ContractSpecificValidator:
    return ContractSpecificValidator()


class TestChecklists:
    def test_every_category_has_a_checklist(self) -> None:
        assert set(CATEGORY_REQUIREMENTS) == set(ContractCategory)

    def test_generic_entries_first(self) -> None:
        names = [r.name for r in requirements_for(ContractCategory.NFT)]
        assert names[0] == "contract-declaration"
        assert "collection-resource" in names


class TestGenericValidation:
    def test_clean_code(self, validator: ContractSpecificValidator, clean_code: str) -> None:
        result = validator.validate(clean_code, ContractCategory.GENERIC)
        assert result.is_valid
        assert result.compliance_score == 100
        assert result.missing_features == []

    def test_missing_declaration(self, validator: ContractSpecificValidator) -> None:
        result = validator.validate("pub contract Old {}\n", ContractCategory.GENERIC)
        assert result.missing_features == ["contract-declaration"]
        assert result.compliance_score == 0
        assert result.issues[0].severity == Severity.CRITICAL


class TestCategoryValidation:
    """Tests for category checklists and extra checks."""

    def test_counter_is_not_an_nft(
        self, validator: ContractSpecificValidator, clean_code: str
    ) -> None:
        result = validator.validate(clean_code, ContractCategory.NFT)
        assert not result.is_valid
        assert "nft-resource" in result.missing_features
        assert "collection-resource" in result.missing_features
        # 1 of 6 required entries present
        assert result.compliance_score == 17
        optional = [i for i in result.issues if i.type == "missing-metadata-views"]
        assert optional[0].severity == Severity.WARNING

    def test_dao_double_vote(self, validator: ContractSpecificValidator) -> None:
        code = (
            "access(all) contract Gov {\n"
            "    access(all) struct Proposal {\n"
            "        access(all) var votesFor: UInt64\n"
            "        access(all) var executed: Bool\n"
            "        init() { self.votesFor = 0; self.executed = false }\n"
            "    }\n"
            "    access(all) fun createProposal() {}\n"
            "    access(all) fun vote(id: UInt64) { }\n"
            "    access(all) fun execute(id: UInt64) { }\n"
            "    access(all) let votingPeriod: UFix64\n"
            "    init() { self.votingPeriod = 1.0 }\n"
            "}\n"
        )
        result = validator.validate(code, ContractCategory.DAO)
        types = [i.type for i in result.issues]
        assert "missing-double-vote-prevention" in types
        assert "missing-vote-counting" not in types
        assert result.compliance_score == 100

    def test_fungible_token_mint_without_supply(
        self, validator: ContractSpecificValidator
    ) -> None:
        code = (
            "access(all) contract Coin {\n"
            "    access(all) let totalSupply: UFix64\n"
            "    access(all) fun mintTokens(amount: UFix64) { }\n"
            "    init() { self.totalSupply = 0.0 }\n"
            "}\n"
        )
        result = validator.validate(code, ContractCategory.FUNGIBLE_TOKEN)
        types = [i.type for i in result.issues]
        # `self.totalSupply = 0.0` counts as a supply update
        assert "missing-supply-tracking" not in types
        assert "missing-amount-validation" in types

    def test_check_returns_logic_result(
        self, validator: ContractSpecificValidator, clean_code: str
    ) -> None:
        context = GenerationContext(
            user_prompt="p", contract_type=ContractType(category=ContractCategory.UTILITY)
        )
        result = validator.check(clean_code, context)
        assert result.type == ValidationType.LOGIC
        assert result.passed

    def test_to_dict(self, validator: ContractSpecificValidator, clean_code: str) -> None:
        data = validator.validate(clean_code, ContractCategory.DEFI).to_dict()
        assert data["category"] == "defi"
        assert data["is_valid"] is False
        assert "fungibletoken-interface" in data["missing_features"]


class TestFallbackTemplatesComply:
    """Every fallback template satisfies its own category checklist."""

    @pytest.mark.parametrize("category", list(ContractCategory))
    def test_template_has_no_critical_issues(
        self, validator: ContractSpecificValidator, category: ContractCategory
    ) -> None:
        code = FallbackGenerator().render(template_for(category), "Sample")
        result = validator.validate(code, category)
        assert result.is_valid, [i.type for i in result.issues]
        assert result.compliance_score == 100
