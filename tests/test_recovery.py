"""Tests for the recovery strategy registry."""

from unittest.mock import AsyncMock

import pytest

from cadence_qa.models import FailurePattern, GenerationContext, GenerationRequest
from cadence_qa.recovery import (
    RECOVERY_TEMPERATURE,
    RecoveryRegistry,
    RecoveryStrategy,
    create_default_registry,
    regenerate_with,
)


def _strategy(name: str, priority: int, applies: bool = True) -> RecoveryStrategy:
    return RecoveryStrategy(
        name=name,
        description=f"{name} strategy",
        priority=priority,
        should_apply=lambda patterns, attempt: applies,
        apply=regenerate_with("do better"),
    )


# =============================================================================
# Registry
# =============================================================================


class TestRecoveryRegistry:
    """Tests for registration and lookup."""

    def test_empty(self) -> None:
        registry = RecoveryRegistry()
        assert registry.count() == 0
        assert registry.find_applicable([], 1) == []
        assert registry.get_by_name("missing") is None

    def test_register_and_lookup(self) -> None:
        registry = RecoveryRegistry()
        strategy = _strategy("one", 1)
        registry.register(strategy)
        assert registry.count() == 1
        assert registry.get_by_name("one") is strategy
        assert registry.all_strategies() == [strategy]

    def test_duplicate_name_rejected(self) -> None:
        registry = RecoveryRegistry()
        registry.register(_strategy("one", 1))
        with pytest.raises(ValueError, match="already registered"):
            registry.register(_strategy("one", 5))

    def test_priority_order(self) -> None:
        registry = RecoveryRegistry()
        registry.register(_strategy("low", 1))
        registry.register(_strategy("high", 9))
        registry.register(_strategy("skipped", 20, applies=False))
        registry.register(_strategy("also-low", 1))
        names = [s.name for s in registry.find_applicable([], 1)]
        assert names == ["high", "low", "also-low"]

    def test_all_strategies_is_a_copy(self) -> None:
        registry = RecoveryRegistry()
        registry.all_strategies().append(_strategy("x", 1))
        assert registry.count() == 0


# =============================================================================
# Built-in strategies
# =============================================================================


class TestDefaultRegistry:
    """Tests for the built-in strategies and their predicates."""

    def test_contents(self) -> None:
        registry = create_default_registry()
        priorities = {s.name: s.priority for s in registry.all_strategies()}
        assert priorities == {
            "undefined-value-recovery": 10,
            "syntax-error-recovery": 8,
            "completeness-recovery": 6,
        }

    def test_undefined_needs_second_attempt(self) -> None:
        registry = create_default_registry()
        patterns = [FailurePattern("undefined-value")]
        assert registry.find_applicable(patterns, 1) == []
        names = [s.name for s in registry.find_applicable(patterns, 2)]
        assert names == ["undefined-value-recovery"]

    @pytest.mark.parametrize(
        "failure", ["incomplete-declaration", "incomplete-assignment", "incomplete-type-annotation"]
    )
    def test_incomplete_statements_count_as_undefined(self, failure: str) -> None:
        names = [
            s.name
            for s in create_default_registry().find_applicable([FailurePattern(failure)], 3)
        ]
        assert names == ["undefined-value-recovery"]

    @pytest.mark.parametrize("failure", ["bracket-mismatch", "legacy-syntax", "trailing-comma"])
    def test_syntax(self, failure: str) -> None:
        names = [
            s.name
            for s in create_default_registry().find_applicable([FailurePattern(failure)], 1)
        ]
        assert names == ["syntax-error-recovery"]

    @pytest.mark.parametrize("failure", ["incomplete-function", "missing-init", "missing-return"])
    def test_completeness(self, failure: str) -> None:
        names = [
            s.name
            for s in create_default_registry().find_applicable([FailurePattern(failure)], 1)
        ]
        assert names == ["completeness-recovery"]

    def test_combined_failures_ordered(self) -> None:
        patterns = [
            FailurePattern("missing-init"),
            FailurePattern("bracket-mismatch"),
            FailurePattern("undefined-value"),
        ]
        names = [s.name for s in create_default_registry().find_applicable(patterns, 2)]
        assert names == [
            "undefined-value-recovery",
            "syntax-error-recovery",
            "completeness-recovery",
        ]

    def test_unrelated_failures(self) -> None:
        patterns = [FailurePattern("quality-below-threshold"), FailurePattern("generation-error")]
        assert create_default_registry().find_applicable(patterns, 3) == []


# =============================================================================
# Regeneration action
# =============================================================================


class TestRegenerateWith:
    """Tests for the prompt and temperature the built-in actions use."""

    @pytest.mark.asyncio
    async def test_prompt_and_temperature(self) -> None:
        generate = AsyncMock(return_value="access(all) contract X {}")
        request = GenerationRequest(prompt="Create a counter", temperature=0.7)
        context = GenerationContext(user_prompt=request.prompt)
        patterns = [
            FailurePattern("bracket-mismatch", common_causes=("Unclosed { opened", "second")),
            FailurePattern("legacy-syntax"),
        ]

        code = await regenerate_with("Balance every bracket.")(
            request, context, patterns, generate
        )

        assert code == "access(all) contract X {}"
        prompt, temperature = generate.await_args.args
        assert temperature == RECOVERY_TEMPERATURE
        assert prompt.startswith("Create a counter\n\nIMPORTANT: Balance every bracket.")
        assert "Previous output was rejected for:\n- Unclosed { opened" in prompt
        assert "second" not in prompt

    @pytest.mark.asyncio
    async def test_cooler_request_temperature_kept(self) -> None:
        generate = AsyncMock(return_value="")
        request = GenerationRequest(prompt="p", temperature=0.1, context_text="Uses Flow")
        context = GenerationContext(user_prompt="p")

        await regenerate_with("x")(request, context, [], generate)

        prompt, temperature = generate.await_args.args
        assert temperature == 0.1
        assert "Uses Flow" in prompt
        assert "rejected" not in prompt
