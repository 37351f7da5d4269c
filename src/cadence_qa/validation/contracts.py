"""Contract-type structural checks.

Each contract category has a fixed checklist of interfaces, resources and
functions. The checklist is diffed against the text: a missing required
element is a critical issue, a missing recommended one a warning. Some
categories add extra checks that look at how features are implemented
(e.g. a DAO that counts votes but never prevents double voting).

Checklists are a lookup table keyed by ContractCategory, so adding a
category means adding one entry here.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from cadence_qa.core.logging import get_logger
from cadence_qa.models import (
    ContractCategory,
    GenerationContext,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidationType,
)
from cadence_qa.validation.base import make_issue, mask_non_code

_logger = get_logger("validation.contracts")


@dataclass(frozen=True)
class FeatureRequirement:
    """One checklist entry."""

    name: str
    pattern: re.Pattern[str]
    required: bool
    description: str

    @property
    def issue_type(self) -> str:
        return f"missing-{self.name}"


def _req(name: str, pattern: str, description: str, required: bool = True) -> FeatureRequirement:
    return FeatureRequirement(name, re.compile(pattern), required, description)


GENERIC_REQUIREMENTS: tuple[FeatureRequirement, ...] = (
    _req(
        "contract-declaration",
        r"access\(all\)\s+contract\s+(?:interface\s+)?\w+",
        "Contract declaration with access(all) visibility",
    ),
)

CATEGORY_REQUIREMENTS: dict[ContractCategory, tuple[FeatureRequirement, ...]] = {
    ContractCategory.NFT: (
        _req(
            "nonfungibletoken-interface",
            r"import\s+NonFungibleToken\s+from|NonFungibleToken\.",
            "Implements the NonFungibleToken standard",
        ),
        _req(
            "metadata-views",
            r"import\s+MetadataViews\s+from|MetadataViews\.",
            "MetadataViews support for wallets and marketplaces",
            required=False,
        ),
        _req("collection-resource", r"resource\s+Collection\s*[:{]", "Collection resource"),
        _req("nft-resource", r"resource\s+NFT\s*[:{]", "NFT resource"),
        _req("mint-function", r"fun\s+mint\w*\s*\(", "Minting function"),
        _req(
            "metadata-fields",
            r"\b(?:name|description|thumbnail)\s*:",
            "Name, description or thumbnail metadata fields",
            required=False,
        ),
        _req(
            "view-resolver",
            r"resolveView\s*\(|getViews\s*\(",
            "resolveView/getViews implementation",
            required=False,
        ),
        _req(
            "transfer-support",
            r"CollectionPublic|fun\s+deposit\s*\(|fun\s+withdraw\s*\(",
            "Deposit and withdraw for transfers",
        ),
    ),
    ContractCategory.FUNGIBLE_TOKEN: (
        _req(
            "fungibletoken-interface",
            r"import\s+FungibleToken\s+from|FungibleToken\.",
            "Implements the FungibleToken standard",
        ),
        _req("vault-resource", r"resource\s+Vault\s*[:{]", "Vault resource"),
        _req(
            "minter",
            r"resource\s+(?:Minter|Administrator)\b|fun\s+mint\w*\s*\(",
            "Minter resource or mint function",
        ),
        _req("total-supply", r"\btotalSupply\b", "totalSupply tracking"),
        _req("withdraw-deposit", r"fun\s+(?:withdraw|deposit)\s*\(", "Withdraw and deposit"),
        _req("balance-field", r"\bbalance\s*:", "Balance field on the vault"),
        _req(
            "vault-public",
            r"\bReceiver\b|\bBalance\b|VaultPublic",
            "Public receiver/balance interfaces",
        ),
        _req(
            "admin-resource",
            r"resource\s+(?:Admin|Administrator)\b",
            "Administrator resource",
            required=False,
        ),
    ),
    ContractCategory.DAO: (
        _req("proposal-resource", r"(?:resource|struct)\s+Proposal\b", "Proposal type"),
        _req("voting-function", r"fun\s+(?:vote|castVote)\w*\s*\(", "Voting function"),
        _req(
            "proposal-creation",
            r"fun\s+(?:createProposal|propose)\w*\s*\(",
            "Proposal creation function",
        ),
        _req(
            "voting-period",
            r"votingPeriod|endTime|deadline|duration",
            "Voting period or deadline",
        ),
        _req(
            "proposal-execution",
            r"fun\s+(?:execute|executeProposal)\w*\s*\(",
            "Proposal execution function",
        ),
        _req(
            "governance-token",
            r"governanceToken|GovernanceToken",
            "Governance token integration",
            required=False,
        ),
        _req("quorum", r"\bquorum\b", "Quorum requirement", required=False),
        _req("membership", r"\bmember", "Membership management", required=False),
    ),
    ContractCategory.MARKETPLACE: (
        _req(
            "listing-resource",
            r"(?:resource|struct)\s+(?:Listing|SaleListing)\b",
            "Listing type",
        ),
        _req("purchase-function", r"fun\s+(?:purchase|buy)\w*\s*\(", "Purchase function"),
        _req("payment-handling", r"FungibleToken\.Vault|\bpayment\b", "Payment handling"),
        _req(
            "listing-management",
            r"fun\s+(?:createListing|removeListing|list\w*)\s*\(",
            "Create and remove listings",
        ),
        _req(
            "access-control",
            r"access\((?:self|contract|account)\)|\bpre\s*\{",
            "Restricted access or preconditions",
        ),
        _req(
            "commission",
            r"commission|royalt|\bfee",
            "Commission or royalty handling",
            required=False,
        ),
        _req("escrow", r"escrow|\bvault\b|Vault", "Escrow of listed assets", required=False),
        _req("events", r"\bevent\s+\w+", "Events for listings and sales", required=False),
    ),
    ContractCategory.DEFI: (
        _req(
            "fungibletoken-interface",
            r"import\s+FungibleToken\s+from|FungibleToken\.",
            "Uses the FungibleToken standard",
        ),
        _req(
            "liquidity-pool",
            r"(?:resource|struct)\s+\w*(?:Pool|Vault)\b",
            "Pool or vault holding liquidity",
        ),
        _req(
            "swap-or-stake",
            r"fun\s+(?:swap|stake|addLiquidity|lend|borrow|deposit)\w*\s*\(",
            "Swap, stake or liquidity function",
        ),
        _req(
            "slippage-protection",
            r"slippage|minAmount\w*|minimumOut\w*",
            "Slippage protection",
            required=False,
        ),
        _req(
            "reward-accounting",
            r"reward|\bfee|interest",
            "Reward, fee or interest accounting",
            required=False,
        ),
    ),
    ContractCategory.UTILITY: (
        _req(
            "public-functions",
            r"access\(all\)\s+(?:view\s+)?fun\s+\w+",
            "Public functions exposing the utility",
        ),
        _req("events", r"\bevent\s+\w+", "Events for state changes", required=False),
    ),
    ContractCategory.GENERIC: (),
}


@dataclass(frozen=True)
class ExtraCheck:
    """Implementation-level check run only when ``applies`` matches."""

    issue_type: str
    severity: Severity
    message: str
    applies: Callable[[str], bool]


def _has(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern)
    return lambda code: compiled.search(code) is not None


def _present_without(present: str, missing: str) -> Callable[[str], bool]:
    has_present, has_missing = _has(present), _has(missing)
    return lambda code: has_present(code) and not has_missing(code)


CATEGORY_EXTRA_CHECKS: dict[ContractCategory, tuple[ExtraCheck, ...]] = {
    ContractCategory.NFT: (
        ExtraCheck(
            "missing-nft-id",
            Severity.WARNING,
            "NFT resource has no id field",
            _present_without(r"resource\s+NFT\b", r"\blet\s+id\s*:"),
        ),
        ExtraCheck(
            "missing-collection-size",
            Severity.INFO,
            "Collection does not expose its size",
            _present_without(r"resource\s+Collection\b", r"getLength|getIDs"),
        ),
    ),
    ContractCategory.FUNGIBLE_TOKEN: (
        ExtraCheck(
            "missing-balance-validation",
            Severity.WARNING,
            "withdraw does not check the available balance",
            _present_without(r"fun\s+withdraw\s*\(", r"balance\s*>=|<=\s*self\.balance"),
        ),
        ExtraCheck(
            "missing-amount-validation",
            Severity.WARNING,
            "Amounts are never checked to be positive",
            _present_without(r"\bamount\s*:", r"amount\s*>\s*0"),
        ),
        ExtraCheck(
            "missing-supply-tracking",
            Severity.CRITICAL,
            "Tokens are minted without updating totalSupply",
            _present_without(r"fun\s+mint\w*\s*\(", r"totalSupply\s*=|totalSupply\s*\+"),
        ),
    ),
    ContractCategory.DAO: (
        ExtraCheck(
            "missing-proposal-state",
            Severity.WARNING,
            "Proposals have no status tracking",
            _present_without(r"\bProposal\b", r"status|executed|isActive|state"),
        ),
        ExtraCheck(
            "missing-vote-counting",
            Severity.CRITICAL,
            "Votes are cast but never counted",
            _present_without(
                r"fun\s+(?:vote|castVote)\w*\s*\(",
                r"votesFor|yesVotes|forVotes|voteCount|tally",
            ),
        ),
        ExtraCheck(
            "missing-double-vote-prevention",
            Severity.CRITICAL,
            "Nothing prevents an account from voting twice",
            _present_without(r"fun\s+(?:vote|castVote)\w*\s*\(", r"voters|hasVoted|\bvoted\b"),
        ),
    ),
    ContractCategory.MARKETPLACE: (
        ExtraCheck(
            "missing-price-validation",
            Severity.WARNING,
            "Listing prices are never validated",
            _present_without(r"\bprice\b", r"price\s*>\s*0"),
        ),
        ExtraCheck(
            "missing-ownership-verification",
            Severity.CRITICAL,
            "Listings are created without verifying ownership",
            _present_without(r"fun\s+(?:createListing|list\w*)\s*\(", r"\bowner\b|borrow"),
        ),
        ExtraCheck(
            "missing-payment-distribution",
            Severity.CRITICAL,
            "Payment is accepted but never deposited to the seller",
            _present_without(r"fun\s+(?:purchase|buy)\w*\s*\(", r"\.deposit\s*\("),
        ),
    ),
    ContractCategory.DEFI: (),
    ContractCategory.UTILITY: (),
    ContractCategory.GENERIC: (),
}


@dataclass
class ContractValidationResult:
    """Outcome of a contract-specific validation pass."""

    category: ContractCategory
    issues: list[ValidationIssue] = field(default_factory=list)
    missing_features: list[str] = field(default_factory=list)
    compliance_score: int = 100
    """Share of required checklist entries present, 0-100."""

    @property
    def is_valid(self) -> bool:
        return not any(i.severity == Severity.CRITICAL for i in self.issues)

    def to_validation_result(self) -> ValidationResult:
        return ValidationResult(type=ValidationType.LOGIC, issues=tuple(self.issues))

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "is_valid": self.is_valid,
            "issues": [i.to_dict() for i in self.issues],
            "missing_features": self.missing_features,
            "compliance_score": self.compliance_score,
        }


def requirements_for(category: ContractCategory) -> tuple[FeatureRequirement, ...]:
    """Full checklist for a category, generic entries first."""
    return GENERIC_REQUIREMENTS + CATEGORY_REQUIREMENTS[category]


class ContractSpecificValidator:
    """Diffs a category checklist against a candidate text."""

    @property
    def check_id(self) -> str:
        return "contract-structure"

    def check(self, code: str, context: GenerationContext) -> ValidationResult:
        return self.validate(code, context.contract_type.category).to_validation_result()

    def validate(self, code: str, category: ContractCategory) -> ContractValidationResult:
        masked = mask_non_code(code)
        result = ContractValidationResult(category=category)

        checklist = requirements_for(category)
        required_total = sum(1 for r in checklist if r.required)
        required_present = 0
        for requirement in checklist:
            if requirement.pattern.search(masked):
                if requirement.required:
                    required_present += 1
                continue
            result.missing_features.append(requirement.name)
            result.issues.append(
                make_issue(
                    code,
                    0,
                    Severity.CRITICAL if requirement.required else Severity.WARNING,
                    requirement.issue_type,
                    f"Missing {requirement.description.lower()}",
                    suggested_fix=f"Add {requirement.description.lower()}",
                )
            )

        for extra in CATEGORY_EXTRA_CHECKS[category]:
            if extra.applies(masked):
                result.issues.append(
                    make_issue(code, 0, extra.severity, extra.issue_type, extra.message)
                )

        if required_total:
            result.compliance_score = round(100 * required_present / required_total)
        _logger.debug(
            "contract_validated",
            category=category.value,
            missing=len(result.missing_features),
            compliance=result.compliance_score,
        )
        return result
