"""Progressive prompt enhancement for generation retries.

Each attempt gets a stricter prompt and a lower temperature than the one
before it:

    attempt 1 -> basic     (0.7)
    attempt 2 -> moderate  (0.5)
    attempt 3 -> strict    (0.35)
    attempt 4+ -> maximum  (0.2)

Rules are cumulative: a level repeats every rule of the levels below it and
adds its own. Category and experience text comes from lookup tables keyed by
the enums, and every failure type seen earlier in the session becomes one
"must avoid" clause paired with its suggested solutions.

Prompts are rendered with Jinja2 so the wording lives in templates rather
than in string concatenation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jinja2

from cadence_qa.core.logging import get_logger
from cadence_qa.models import (
    ContractCategory,
    EnhancementLevel,
    FailurePattern,
    GenerationContext,
    UserExperience,
)

_logger = get_logger("prompts.enhancer")

LEVEL_TEMPERATURES: dict[EnhancementLevel, float] = {
    EnhancementLevel.BASIC: 0.7,
    EnhancementLevel.MODERATE: 0.5,
    EnhancementLevel.STRICT: 0.35,
    EnhancementLevel.MAXIMUM: 0.2,
}

LEVEL_ORDER: tuple[EnhancementLevel, ...] = (
    EnhancementLevel.BASIC,
    EnhancementLevel.MODERATE,
    EnhancementLevel.STRICT,
    EnhancementLevel.MAXIMUM,
)

LEVEL_RULES: dict[EnhancementLevel, tuple[str, ...]] = {
    EnhancementLevel.BASIC: (
        "Write complete, working implementations",
        "Give every variable a concrete value",
        "Use Cadence 1.0 syntax throughout: access(all), never pub",
    ),
    EnhancementLevel.MODERATE: (
        "Double-check every variable initialization for a concrete value",
        "Verify every function signature has a full implementation",
        "Add error handling with pre/post conditions to public functions",
        "Make sure no 'undefined' value appears anywhere",
        "Confirm that every bracket and parenthesis is matched",
    ),
    EnhancementLevel.STRICT: (
        "TRIPLE-CHECK: no undefined values anywhere in the code",
        "VALIDATE: braces, brackets and parentheses match exactly",
        "VERIFY: every function has a complete body with a return where one is declared",
        "ENSURE: every resource has complete lifecycle management",
        "REVIEW: access control uses access(all), access(self), access(contract), access(account)",
    ),
    EnhancementLevel.MAXIMUM: (
        "ZERO TOLERANCE: any placeholder or undefined value causes rejection",
        "NO PARTIAL CODE: never leave a function body empty or a statement unfinished",
        "DEPLOYABLE AS-IS: the contract must compile without modification",
        "MINIMAL SURFACE: prefer a smaller complete contract over a larger incomplete one",
    ),
}

CATEGORY_REQUIREMENTS: dict[ContractCategory, tuple[str, ...]] = {
    ContractCategory.NFT: (
        "Implement the NonFungibleToken standard with NFT and Collection resources",
        "Support MetadataViews (Display at minimum) with concrete default values",
        "Provide deposit, withdraw and getIDs on the collection",
        "Emit events for minting and transfers",
    ),
    ContractCategory.FUNGIBLE_TOKEN: (
        "Implement the FungibleToken standard with a Vault resource",
        "Track totalSupply and update it on every mint and burn",
        "Validate amounts and balances in withdraw and deposit",
        "Restrict minting to an administrator resource",
    ),
    ContractCategory.DAO: (
        "Model proposals with a status and a voting deadline",
        "Count votes and prevent an account from voting twice",
        "Implement proposal creation, voting and execution",
        "Restrict administrative actions to members or an admin resource",
    ),
    ContractCategory.MARKETPLACE: (
        "Model listings with a price and seller address",
        "Validate prices and verify ownership before listing",
        "Deposit payments to the seller and handle commission",
        "Emit events for listing, purchase and removal",
    ),
    ContractCategory.DEFI: (
        "Hold liquidity in a pool or vault resource using FungibleToken",
        "Protect swaps with a minimum-output (slippage) parameter",
        "Account for fees and rewards explicitly",
    ),
    ContractCategory.UTILITY: (
        "Expose the utility through access(all) functions with complete bodies",
        "Keep state minimal and initialize all of it in init()",
        "Emit events for state changes",
    ),
    ContractCategory.GENERIC: (
        "Declare the contract with access(all) and initialize all state in init()",
    ),
}

EXPERIENCE_GUIDANCE: dict[UserExperience, str] = {
    UserExperience.BEGINNER: (
        "The user is new to Cadence: comment every section, use descriptive names "
        "and write clear error messages in pre-conditions."
    ),
    UserExperience.INTERMEDIATE: (
        "Balance simplicity with completeness; comment non-obvious logic."
    ),
    UserExperience.EXPERT: (
        "The user is an expert: use entitlements and capability-based security where "
        "they fit, and keep comments brief."
    ),
}

BASE_INSTRUCTIONS = """\
You are an expert Cadence 1.0 developer for the Flow blockchain.
Generate one complete, deployable smart contract. Reply with code only.

Cadence 1.0 rules:
- Never use the pub keyword; use access(all), access(self), access(contract) or access(account)
- Never use AuthAccount; use auth(Storage) &Account with entitlements
- Never write undefined; use defaults (String "", integers 0, UFix64 0.0, Bool false, [] and {})
- Never leave a function body empty or a TODO/FIXME comment behind
- Every opened brace, bracket and parenthesis must be closed"""

SYSTEM_TEMPLATE = """\
{{ base_instructions }}

ENHANCEMENT LEVEL: {{ level | upper }}
{% for rule in rules %}
- {{ rule }}
{% endfor %}

{{ category | upper }} REQUIREMENTS:
{% for item in category_requirements %}
- {{ item }}
{% endfor %}

{{ experience_guidance }}
{% if complexity == "advanced" %}
Advanced contract: split logic into small, complete functions.
{% elif complexity == "simple" %}
Simple contract: keep it minimal, but complete.
{% endif %}
"""

USER_TEMPLATE = """\
{% if attempt_number > 1 %}
RETRY ATTEMPT {{ attempt_number }}{% if max_attempts %}/{{ max_attempts }}{% endif %}: \
the previous output did not meet the quality bar.

{% endif %}
{{ base_prompt }}
{% if failures %}

MUST AVOID (previous attempts failed on these):
{% for failure in failures %}
- {{ failure.type }} (seen {{ failure.frequency }}x)\
{% if failure.common_causes %}: {{ failure.common_causes[0] }}{% endif %}

{% for solution in failure.suggested_solutions %}
  * {{ solution }}
{% endfor %}
{% endfor %}
{% endif %}
{% if strict %}

STRICT MODE: output must pass validation on the first try. Re-read the whole \
contract before answering and fix every unmatched bracket, empty function and \
missing value.
{% endif %}

Target quality score: {{ minimum_score }}/100 or higher.
"""


@dataclass(frozen=True)
class EnhancementOptions:
    """Per-attempt inputs to the enhancer."""

    attempt_number: int = 1
    previous_failures: tuple[FailurePattern, ...] = ()
    strict_mode: bool = False
    temperature: float = 0.7
    """Upper bound requested by the caller."""

    max_attempts: int | None = None


@dataclass(frozen=True)
class EnhancedPrompt:
    system_prompt: str
    user_prompt: str
    enhancement_level: EnhancementLevel
    temperature: float

    @property
    def combined(self) -> str:
        """System and user prompt joined for single-string generators."""
        return f"{self.system_prompt.rstrip()}\n\n{self.user_prompt.strip()}\n"


def cumulative_rules(level: EnhancementLevel) -> list[str]:
    """All rules up to and including ``level``."""
    rules: list[str] = []
    for current in LEVEL_ORDER:
        rules.extend(LEVEL_RULES[current])
        if current == level:
            break
    return rules


def temperature_for(level: EnhancementLevel, requested: float) -> float:
    return min(requested, LEVEL_TEMPERATURES[level])


def distinct_failures(failures: tuple[FailurePattern, ...]) -> list[FailurePattern]:
    """One entry per failure type, first occurrence wins."""
    seen: dict[str, FailurePattern] = {}
    for failure in failures:
        seen.setdefault(failure.type, failure)
    return list(seen.values())


class PromptEnhancer:
    """Builds the escalating prompt/temperature pair for each attempt."""

    def __init__(
        self,
        strict_mode_threshold: int = 3,
        jinja_env: jinja2.Environment | None = None,
    ) -> None:
        """Initialize the enhancer.

        Args:
            strict_mode_threshold: Attempt number from which the strict-mode
                block is included even for non-strict requests.
            jinja_env: Optional custom Jinja2 environment.
        """
        self.strict_mode_threshold = strict_mode_threshold
        self.env = jinja_env or jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._system_template = self.env.from_string(SYSTEM_TEMPLATE)
        self._user_template = self.env.from_string(USER_TEMPLATE)

    def enhance_prompt(
        self,
        base_prompt: str,
        context: GenerationContext,
        options: EnhancementOptions | None = None,
    ) -> EnhancedPrompt:
        """Build the prompt for one attempt.

        Args:
            base_prompt: The user's request (plus any extra context text).
            context: Session context providing category, experience and
                quality requirements.
            options: Attempt number, accumulated failures and limits.

        Returns:
            EnhancedPrompt whose level depends only on the attempt number.
        """
        options = options or EnhancementOptions()
        level = EnhancementLevel.for_attempt(options.attempt_number)
        strict = options.strict_mode or options.attempt_number >= self.strict_mode_threshold

        system_prompt = self._system_template.render(**self._system_vars(context, level))
        user_prompt = self._user_template.render(
            attempt_number=options.attempt_number,
            max_attempts=options.max_attempts,
            base_prompt=base_prompt.strip(),
            failures=distinct_failures(options.previous_failures),
            strict=strict,
            minimum_score=context.quality_requirements.minimum_quality_score,
        )
        temperature = temperature_for(level, options.temperature)

        _logger.debug(
            "prompt_enhanced",
            attempt=options.attempt_number,
            level=level.value,
            temperature=temperature,
            failure_types=len(options.previous_failures),
            strict=strict,
        )
        return EnhancedPrompt(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            enhancement_level=level,
            temperature=temperature,
        )

    def _system_vars(self, context: GenerationContext, level: EnhancementLevel) -> dict[str, Any]:
        contract_type = context.contract_type
        return {
            "base_instructions": BASE_INSTRUCTIONS,
            "level": level.value,
            "rules": cumulative_rules(level),
            "category": contract_type.category.value.replace("-", " "),
            "category_requirements": CATEGORY_REQUIREMENTS[contract_type.category],
            "experience_guidance": EXPERIENCE_GUIDANCE[context.user_experience],
            "complexity": contract_type.complexity.value,
        }
