"""Template-based fallback contract generation.

When every generation attempt has failed, FallbackGenerator renders a
known-good template for the prompt's category. The operation is total:
empty or unparseable prompts and template errors all end in the emergency
contract rather than an exception.
"""

from __future__ import annotations

import re

import jinja2

from cadence_qa.core.logging import get_logger
from cadence_qa.fallback.classifier import classify_contract_type
from cadence_qa.fallback.templates import (
    EMERGENCY_CONTRACT,
    HEADER,
    FallbackTemplate,
    template_for,
)
from cadence_qa.models import ContractType
from cadence_qa.validation.base import mask_non_code
from cadence_qa.validation.syntax import bracket_balance
from cadence_qa.validation.undefined import UNDEFINED_LITERAL

_logger = get_logger("fallback")

_NAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bcontract\s+(?:called|named)\s+[\"']?(\w+)", re.I),
    re.compile(r"\b(?:called|named)\s+[\"']?(\w+)", re.I),
    re.compile(r"\bcreate\s+(?:a\s+|an\s+)?(\w+)\s+contract\b", re.I),
    re.compile(r"\b(\w+)\s+contract\b", re.I),
    re.compile(r"\b(\w+)\s+(?:nft|token|collection)s?\b", re.I),
)

# Words that describe a contract rather than name it
_NAME_STOPWORDS = frozenset({
    "a", "an", "the", "my", "our", "new", "this", "that", "simple", "basic",
    "smart", "complete", "advanced", "standard", "custom", "cadence", "flow",
    "create", "build", "make", "write", "generate", "deploy", "contract",
    "nft", "nfts", "token", "tokens", "fungible", "dao", "defi", "marketplace",
    "utility", "staking", "governance", "collection",
})

# Names the templates already declare inside the contract
_RESERVED_NAMES = frozenset({
    "nft", "collection", "vault", "listing", "proposal", "administrator",
    "nftminter", "stakepool", "emergencyfallback",
})

_VALID_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]{2,63}$")
_CONTRACT_DECLARATION = re.compile(r"access\(all\)\s+contract\s+\w+")
_INITIALIZER = re.compile(r"\binit\s*\([^)]*\)")
_ACCESS_MODIFIER = re.compile(r"\baccess\(")


def extract_contract_name(prompt: str) -> str | None:
    """Pull a usable contract name out of a prompt, if it names one.

    >>> extract_contract_name("Create a contract called ArtGallery")
    'ArtGallery'
    """
    for pattern in _NAME_PATTERNS:
        for match in pattern.finditer(prompt):
            candidate = match.group(1)
            lowered = candidate.lower()
            if lowered in _NAME_STOPWORDS or lowered in _RESERVED_NAMES:
                continue
            if not _VALID_NAME.match(candidate):
                continue
            return candidate[0].upper() + candidate[1:]
    return None


def is_usable_prompt(prompt: str) -> bool:
    """A prompt is usable when it contains at least one real word."""
    return bool(re.search(r"[A-Za-z]{2,}", prompt or ""))


class FallbackGenerator:
    """Renders category templates into complete contracts."""

    def __init__(self, jinja_env: jinja2.Environment | None = None) -> None:
        self.env = jinja_env or jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )

    def generate_fallback_contract(
        self,
        prompt: str,
        contract_type: ContractType | None = None,
    ) -> str:
        """Render the fallback contract for a prompt.

        Args:
            prompt: Original user request; used for the contract name and,
                when contract_type is None, for classification.
            contract_type: Category to render. Classified from the prompt
                when omitted.

        Returns:
            Complete contract text. Never raises.
        """
        if not is_usable_prompt(prompt):
            _logger.warning("fallback_emergency", reason="unusable prompt")
            return EMERGENCY_CONTRACT

        if contract_type is None:
            contract_type = classify_contract_type(prompt).to_contract_type()
        template = template_for(contract_type.category)
        name = extract_contract_name(prompt) or template.default_name

        try:
            code = self.render(template, name)
        except jinja2.TemplateError as e:
            _logger.error("fallback_render_failed", template=template.template_id, error=str(e))
            return EMERGENCY_CONTRACT

        valid, problems = self.validate_fallback_quality(code)
        if not valid:
            _logger.error(
                "fallback_template_invalid",
                template=template.template_id,
                problems=problems,
            )
            return EMERGENCY_CONTRACT

        _logger.info(
            "fallback_generated",
            template=template.template_id,
            category=contract_type.category.value,
            contract_name=name,
        )
        return code

    def render(self, template: FallbackTemplate, name: str) -> str:
        header = self.env.from_string(HEADER).render(template_id=template.template_id)
        body = self.env.from_string(template.source).render(name=name)
        return f"{header}\n{body}"

    def validate_fallback_quality(self, code: str) -> tuple[bool, list[str]]:
        """Structural sanity checks for fallback output.

        Returns:
            (is_valid, problems)
        """
        problems: list[str] = []
        masked = mask_non_code(code)
        for opener, (net, _) in bracket_balance(masked).items():
            problems.append(f"Unbalanced {opener} brackets ({net:+d})")
        if not _CONTRACT_DECLARATION.search(masked):
            problems.append("Missing access(all) contract declaration")
        if not _INITIALIZER.search(masked):
            problems.append("Missing init() function")
        if UNDEFINED_LITERAL.search(code):
            problems.append("Contains undefined values")
        if not _ACCESS_MODIFIER.search(masked):
            problems.append("Missing access modifiers")
        return not problems, problems
