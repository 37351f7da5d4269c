"""Keyword-scored contract-type classification of natural-language prompts."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from cadence_qa.models import Complexity, ContractCategory, ContractType

CATEGORY_KEYWORDS: dict[ContractCategory, tuple[re.Pattern[str], ...]] = {
    ContractCategory.NFT: (
        re.compile(r"\b(nfts?|non.?fungible|collectibles?|art|digital.?assets?|collection)\b", re.I),
        re.compile(r"\b(mint|metadata|unique)\b", re.I),
        re.compile(r"\b(erc.?721)\b", re.I),
    ),
    ContractCategory.FUNGIBLE_TOKEN: (
        re.compile(r"\b(fungible|coins?|currency|tokens?)\b", re.I),
        re.compile(r"\b(transfer|balance|supply|burn|vault)\b", re.I),
        re.compile(r"\b(erc.?20)\b", re.I),
    ),
    ContractCategory.MARKETPLACE: (
        re.compile(r"\b(marketplace|market|trading|buy|sell|auctions?)\b", re.I),
        re.compile(r"\b(listings?|purchase|bids?|offers?|trade)\b", re.I),
        re.compile(r"\b(commission|fees?|royalty|royalties)\b", re.I),
    ),
    ContractCategory.DAO: (
        re.compile(r"\b(dao|governance|voting|proposals?)\b", re.I),
        re.compile(r"\b(votes?|ballot|decision|consensus)\b", re.I),
        re.compile(r"\b(members?|stakeholders?|community)\b", re.I),
    ),
    ContractCategory.DEFI: (
        re.compile(r"\b(defi|staking|yield|farming|liquidity)\b", re.I),
        re.compile(r"\b(pool|swap|exchange|lending|borrowing)\b", re.I),
        re.compile(r"\b(rewards?|interest|apy|apr)\b", re.I),
    ),
    ContractCategory.UTILITY: (
        re.compile(r"\b(utility|tool|helper|service|registry|counter)\b", re.I),
        re.compile(r"\b(multi.?sig|wallet|escrow)\b", re.I),
        re.compile(r"\b(oracle|bridge|proxy)\b", re.I),
    ),
}

COMPLEXITY_INDICATORS: tuple[tuple[Complexity, tuple[str, ...]], ...] = (
    (Complexity.ADVANCED, ("advanced", "complex", "sophisticated", "enterprise", "custom", "multi")),
    (Complexity.INTERMEDIATE, ("standard", "complete", "full", "comprehensive")),
    (Complexity.SIMPLE, ("basic", "simple", "minimal", "easy", "starter")),
)

CATEGORY_FEATURES: dict[ContractCategory, dict[str, re.Pattern[str]]] = {
    ContractCategory.NFT: {
        "royalties": re.compile(r"\broyalt(?:y|ies)\b", re.I),
        "metadata": re.compile(r"\b(?:metadata|attributes)\b", re.I),
        "batch-minting": re.compile(r"\b(?:batch|bulk).?mint", re.I),
        "reveal": re.compile(r"\b(?:reveal|hidden)\b", re.I),
        "burning": re.compile(r"\bburn", re.I),
    },
    ContractCategory.FUNGIBLE_TOKEN: {
        "burning": re.compile(r"\bburn", re.I),
        "pausable": re.compile(r"\bpaus(?:e|able)\b", re.I),
        "capped-supply": re.compile(r"\b(?:cap|capped|max(?:imum)? supply)\b", re.I),
        "admin": re.compile(r"\b(?:admin|owner)\b", re.I),
    },
    ContractCategory.MARKETPLACE: {
        "auctions": re.compile(r"\b(?:auctions?|bidding)\b", re.I),
        "royalties": re.compile(r"\broyalt(?:y|ies)\b", re.I),
        "escrow": re.compile(r"\bescrow\b", re.I),
        "bundles": re.compile(r"\b(?:bundles?|batch)\b", re.I),
    },
    ContractCategory.DAO: {
        "timelock": re.compile(r"\b(?:timelock|delay)\b", re.I),
        "quorum": re.compile(r"\bquorum\b", re.I),
        "delegation": re.compile(r"\bdelegat(?:e|ion)\b", re.I),
        "treasury": re.compile(r"\btreasury\b", re.I),
    },
    ContractCategory.DEFI: {
        "staking": re.compile(r"\bstak(?:e|ing)\b", re.I),
        "swaps": re.compile(r"\bswaps?\b", re.I),
        "rewards": re.compile(r"\brewards?\b", re.I),
        "lending": re.compile(r"\b(?:lend|lending|borrow)", re.I),
    },
    ContractCategory.UTILITY: {
        "multisig": re.compile(r"\bmulti.?sig", re.I),
        "oracle": re.compile(r"\boracle\b", re.I),
        "escrow": re.compile(r"\bescrow\b", re.I),
    },
    ContractCategory.GENERIC: {},
}


@dataclass
class ContractClassification:
    """Result of classifying a prompt."""

    category: ContractCategory
    complexity: Complexity
    features: list[str] = field(default_factory=list)
    confidence: float = 0.0
    keywords: list[str] = field(default_factory=list)

    def to_contract_type(self) -> ContractType:
        return ContractType(
            category=self.category,
            complexity=self.complexity,
            features=frozenset(self.features),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "complexity": self.complexity.value,
            "features": self.features,
            "confidence": round(self.confidence, 3),
            "keywords": self.keywords,
        }


def determine_complexity(prompt: str, keywords: list[str]) -> Complexity:
    lowered = prompt.lower()
    for level, indicators in COMPLEXITY_INDICATORS:
        if any(re.search(rf"\b{indicator}", lowered) for indicator in indicators):
            return level
    if len(prompt) > 300 or len(keywords) > 8:
        return Complexity.ADVANCED
    if len(prompt) > 100 or len(keywords) > 4:
        return Complexity.INTERMEDIATE
    return Complexity.SIMPLE


def extract_features(prompt: str, category: ContractCategory) -> list[str]:
    return [name for name, pattern in CATEGORY_FEATURES[category].items() if pattern.search(prompt)]


def classify_contract_type(prompt: str) -> ContractClassification:
    """Classify a prompt by keyword scoring.

    The category with the most keyword hits wins; ties keep the earlier
    category in CATEGORY_KEYWORDS order. A prompt with no hits is generic.
    Confidence is min(hits / 3, 1).
    """
    best = ContractCategory.GENERIC
    best_keywords: list[str] = []
    for category, patterns in CATEGORY_KEYWORDS.items():
        keywords = [m.group(0).lower() for p in patterns for m in p.finditer(prompt)]
        if len(keywords) > len(best_keywords):
            best, best_keywords = category, keywords

    return ContractClassification(
        category=best,
        complexity=determine_complexity(prompt, best_keywords),
        features=extract_features(prompt, best),
        confidence=min(len(best_keywords) / 3, 1.0),
        keywords=sorted(set(best_keywords)),
    )
