"""Tests for prompt classification."""

import pytest

from cadence_qa.fallback.classifier import (
    classify_contract_type,
    determine_complexity,
    extract_features,
)
from cadence_qa.models import Complexity, ContractCategory


class TestCategory:
    """Tests for keyword-scored categories."""

    @pytest.mark.parametrize(
        "prompt,category",
        [
            ("Create an NFT collection for digital art", ContractCategory.NFT),
            ("Build a fungible token with burn support", ContractCategory.FUNGIBLE_TOKEN),
            ("A DAO for governance voting on proposals", ContractCategory.DAO),
            ("Marketplace to buy and sell listings with a fee", ContractCategory.MARKETPLACE),
            ("Staking pool with yield rewards", ContractCategory.DEFI),
            ("A simple counter utility", ContractCategory.UTILITY),
            ("Hello world", ContractCategory.GENERIC),
            ("", ContractCategory.GENERIC),
        ],
    )
    def test_categories(self, prompt: str, category: ContractCategory) -> None:
        assert classify_contract_type(prompt).category == category

    def test_tie_keeps_earlier_category(self) -> None:
        # One NFT hit and one marketplace hit
        assert classify_contract_type("nft marketplace").category == ContractCategory.NFT

    def test_confidence(self) -> None:
        assert classify_contract_type("Create an NFT collection for digital art").confidence == 1.0
        assert classify_contract_type("An NFT please").confidence == pytest.approx(1 / 3)
        assert classify_contract_type("Hello world").confidence == 0.0

    def test_keywords_sorted_and_lowercased(self) -> None:
        result = classify_contract_type("NFT nft Collection")
        assert result.keywords == ["collection", "nft"]


class TestComplexity:
    @pytest.mark.parametrize(
        "prompt,complexity",
        [
            ("A simple counter", Complexity.SIMPLE),
            ("An advanced staking pool", Complexity.ADVANCED),
            ("A standard token", Complexity.INTERMEDIATE),
            ("A multi-sig wallet", Complexity.ADVANCED),
            ("Counter", Complexity.SIMPLE),
        ],
    )
    def test_indicators(self, prompt: str, complexity: Complexity) -> None:
        assert determine_complexity(prompt, []) == complexity

    def test_length_fallback(self) -> None:
        assert determine_complexity("x" * 150, []) == Complexity.INTERMEDIATE
        assert determine_complexity("x" * 301, []) == Complexity.ADVANCED
        assert determine_complexity("token", ["a"] * 9) == Complexity.ADVANCED


class TestFeatures:
    def test_nft_features(self) -> None:
        features = extract_features("NFT with royalties and metadata", ContractCategory.NFT)
        assert features == ["royalties", "metadata"]

    def test_generic_has_no_features(self) -> None:
        assert extract_features("anything with royalties", ContractCategory.GENERIC) == []

    def test_classification_carries_features(self) -> None:
        result = classify_contract_type("NFT collection with royalties and batch minting")
        assert result.category == ContractCategory.NFT
        assert "royalties" in result.features
        assert "batch-minting" in result.features

        contract_type = result.to_contract_type()
        assert contract_type.category == ContractCategory.NFT
        assert "royalties" in contract_type.features

    def test_to_dict(self) -> None:
        data = classify_contract_type("Staking pool with yield rewards").to_dict()
        assert data["category"] == "defi"
        assert data["confidence"] == 1.0
        assert "staking" in data["features"]
