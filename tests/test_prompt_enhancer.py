"""Tests for progressive prompt enhancement."""

import pytest

from cadence_qa.models import (
    Complexity,
    ContractCategory,
    ContractType,
    EnhancementLevel,
    FailurePattern,
    GenerationContext,
    QualityRequirements,
    UserExperience,
)
from cadence_qa.prompts.enhancer import (
    LEVEL_RULES,
    LEVEL_TEMPERATURES,
    EnhancementOptions,
    PromptEnhancer,
    cumulative_rules,
    distinct_failures,
    temperature_for,
)

BASE = "Create a simple counter contract"


@pytest.fixture
def enhancer() -> PromptEnhancer:
    return PromptEnhancer()


class TestLevels:
    """Tests for level selection and temperature schedule."""

    @pytest.mark.parametrize(
        "attempt,level,temperature",
        [
            (1, EnhancementLevel.BASIC, 0.7),
            (2, EnhancementLevel.MODERATE, 0.5),
            (3, EnhancementLevel.STRICT, 0.35),
            (4, EnhancementLevel.MAXIMUM, 0.2),
            (6, EnhancementLevel.MAXIMUM, 0.2),
        ],
    )
    def test_level_and_temperature(
        self,
        enhancer: PromptEnhancer,
        generic_context: GenerationContext,
        attempt: int,
        level: EnhancementLevel,
        temperature: float,
    ) -> None:
        prompt = enhancer.enhance_prompt(
            BASE, generic_context, EnhancementOptions(attempt_number=attempt)
        )
        assert prompt.enhancement_level == level
        assert prompt.temperature == temperature

    def test_temperature_never_exceeds_request(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        prompt = enhancer.enhance_prompt(
            BASE, generic_context, EnhancementOptions(attempt_number=1, temperature=0.3)
        )
        assert prompt.temperature == 0.3
        assert temperature_for(EnhancementLevel.STRICT, 0.3) == 0.3

    def test_temperature_schedule_is_non_increasing(self) -> None:
        values = [LEVEL_TEMPERATURES[level] for level in EnhancementLevel]
        assert values == sorted(values, reverse=True)

    def test_strict_mode_does_not_change_level(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        prompt = enhancer.enhance_prompt(
            BASE, generic_context, EnhancementOptions(attempt_number=1, strict_mode=True)
        )
        assert prompt.enhancement_level == EnhancementLevel.BASIC


class TestRules:
    def test_rules_are_cumulative(self) -> None:
        strict = cumulative_rules(EnhancementLevel.STRICT)
        for rule in LEVEL_RULES[EnhancementLevel.BASIC] + LEVEL_RULES[EnhancementLevel.MODERATE]:
            assert rule in strict
        assert not set(LEVEL_RULES[EnhancementLevel.MAXIMUM]) & set(strict)

    def test_system_prompt_lists_level_rules(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        prompt = enhancer.enhance_prompt(
            BASE, generic_context, EnhancementOptions(attempt_number=4)
        )
        assert "ENHANCEMENT LEVEL: MAXIMUM" in prompt.system_prompt
        assert "ZERO TOLERANCE" in prompt.system_prompt
        assert "Write complete, working implementations" in prompt.system_prompt


class TestUserPrompt:
    """Tests for retry, failure and strict-mode sections."""

    def test_first_attempt(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        prompt = enhancer.enhance_prompt(BASE, generic_context)
        assert BASE in prompt.user_prompt
        assert "RETRY ATTEMPT" not in prompt.user_prompt
        assert "MUST AVOID" not in prompt.user_prompt
        assert "STRICT MODE" not in prompt.user_prompt
        assert "Target quality score: 80/100" in prompt.user_prompt

    def test_retry_header(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        prompt = enhancer.enhance_prompt(
            BASE, generic_context, EnhancementOptions(attempt_number=2, max_attempts=3)
        )
        assert "RETRY ATTEMPT 2/3: the previous output" in prompt.user_prompt

    def test_failures_listed_once_per_type(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        failures = (
            FailurePattern(
                "undefined-value",
                frequency=2,
                common_causes=("Undefined value used for String declaration",),
                suggested_solutions=("Initialize every variable",),
            ),
            FailurePattern("undefined-value", frequency=1),
            FailurePattern("bracket-mismatch"),
        )
        prompt = enhancer.enhance_prompt(
            BASE,
            generic_context,
            EnhancementOptions(attempt_number=2, previous_failures=failures),
        )
        text = prompt.user_prompt
        assert "MUST AVOID" in text
        assert "- undefined-value (seen 2x): Undefined value used for String declaration" in text
        assert "  * Initialize every variable" in text
        assert text.count("- undefined-value") == 1
        assert "- bracket-mismatch (seen 1x)" in text

    def test_strict_mode_flag(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        prompt = enhancer.enhance_prompt(
            BASE, generic_context, EnhancementOptions(attempt_number=1, strict_mode=True)
        )
        assert "STRICT MODE" in prompt.user_prompt

    def test_strict_mode_from_threshold(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        second = enhancer.enhance_prompt(
            BASE, generic_context, EnhancementOptions(attempt_number=2)
        )
        third = enhancer.enhance_prompt(
            BASE, generic_context, EnhancementOptions(attempt_number=3)
        )
        assert "STRICT MODE" not in second.user_prompt
        assert "STRICT MODE" in third.user_prompt

    def test_custom_strict_threshold(self, generic_context: GenerationContext) -> None:
        prompt = PromptEnhancer(strict_mode_threshold=2).enhance_prompt(
            BASE, generic_context, EnhancementOptions(attempt_number=2)
        )
        assert "STRICT MODE" in prompt.user_prompt

    def test_target_score_from_requirements(self, enhancer: PromptEnhancer) -> None:
        context = GenerationContext(
            user_prompt=BASE,
            quality_requirements=QualityRequirements(minimum_quality_score=90),
        )
        assert "Target quality score: 90/100" in enhancer.enhance_prompt(BASE, context).user_prompt


class TestContextSections:
    def test_category_requirements(self, enhancer: PromptEnhancer) -> None:
        context = GenerationContext(
            user_prompt="nft",
            contract_type=ContractType(
                category=ContractCategory.FUNGIBLE_TOKEN, complexity=Complexity.ADVANCED
            ),
            user_experience=UserExperience.BEGINNER,
        )
        system = enhancer.enhance_prompt("Create a token", context).system_prompt
        assert "FUNGIBLE TOKEN REQUIREMENTS:" in system
        assert "totalSupply" in system
        assert "new to Cadence" in system
        assert "Advanced contract" in system

    def test_combined_contains_both_parts(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        prompt = enhancer.enhance_prompt(BASE, generic_context)
        assert prompt.combined.startswith("You are an expert Cadence 1.0 developer")
        assert BASE in prompt.combined
        assert prompt.combined.endswith("\n")

    def test_deterministic(
        self, enhancer: PromptEnhancer, generic_context: GenerationContext
    ) -> None:
        options = EnhancementOptions(attempt_number=3, strict_mode=True)
        first = enhancer.enhance_prompt(BASE, generic_context, options)
        second = enhancer.enhance_prompt(BASE, generic_context, options)
        assert first == second


class TestDistinctFailures:
    def test_first_occurrence_wins(self) -> None:
        failures = (FailurePattern("a", frequency=3), FailurePattern("b"), FailurePattern("a"))
        result = distinct_failures(failures)
        assert [f.type for f in result] == ["a", "b"]
        assert result[0].frequency == 3
