"""Recovery strategies tried between failed attempts.

A strategy is a plain record: a name, a priority, a predicate over the
session's failure patterns and an async action that produces new candidate
code. The orchestrator asks the registry for the strategies that apply,
highest priority first, and stops at the first one whose output passes the
quality threshold.

The built-in strategies regenerate through the caller's generate function
with a prompt that spells out the failure being recovered from.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from cadence_qa.backends.base import GenerateFn
from cadence_qa.core.logging import get_logger
from cadence_qa.models import FailurePattern, GenerationContext, GenerationRequest

_logger = get_logger("recovery")


RecoveryPredicate = Callable[[Sequence[FailurePattern], int], bool]
RecoveryAction = Callable[
    [GenerationRequest, GenerationContext, Sequence[FailurePattern], GenerateFn],
    Awaitable[str],
]

# Recovery runs cold: the goal is the most conservative output possible
RECOVERY_TEMPERATURE = 0.2

_UNDEFINED_TYPES = frozenset({
    "undefined-value",
    "incomplete-declaration",
    "incomplete-assignment",
    "incomplete-type-annotation",
})
_SYNTAX_TYPES = frozenset({"bracket-mismatch", "legacy-syntax", "trailing-comma"})
_COMPLETENESS_TYPES = frozenset({"incomplete-function", "missing-init", "missing-return"})


@dataclass(frozen=True)
class RecoveryStrategy:
    """A named, prioritized recovery action."""

    name: str
    description: str
    priority: int
    should_apply: RecoveryPredicate
    apply: RecoveryAction


def has_failure(patterns: Sequence[FailurePattern], types: frozenset[str]) -> bool:
    return any(p.type in types for p in patterns)


def regenerate_with(instruction: str) -> RecoveryAction:
    """Build an action that regenerates with an extra instruction appended."""

    async def action(
        request: GenerationRequest,
        context: GenerationContext,
        patterns: Sequence[FailurePattern],
        generate: GenerateFn,
    ) -> str:
        causes = [cause for p in patterns for cause in p.common_causes[:1]]
        sections = [request.prompt.strip()]
        if request.context_text:
            sections.append(request.context_text.strip())
        sections.append(f"IMPORTANT: {instruction}")
        if causes:
            rejected = "\n".join(f"- {cause}" for cause in causes)
            sections.append(f"Previous output was rejected for:\n{rejected}")
        prompt = "\n\n".join(sections)
        return await generate(prompt, min(request.temperature, RECOVERY_TEMPERATURE))

    return action


class RecoveryRegistry:
    """Registry of recovery strategies.

    Example:
        registry = RecoveryRegistry()
        registry.register(my_strategy)
        for strategy in registry.find_applicable(patterns, attempt_number):
            ...
    """

    def __init__(self) -> None:
        self._strategies: list[RecoveryStrategy] = []

    def register(self, strategy: RecoveryStrategy) -> None:
        if self.get_by_name(strategy.name) is not None:
            raise ValueError(f"Recovery strategy {strategy.name!r} is already registered")
        self._strategies.append(strategy)

    def all_strategies(self) -> list[RecoveryStrategy]:
        return list(self._strategies)

    def get_by_name(self, name: str) -> RecoveryStrategy | None:
        for strategy in self._strategies:
            if strategy.name == name:
                return strategy
        return None

    def find_applicable(
        self,
        patterns: Sequence[FailurePattern],
        attempt_number: int,
    ) -> list[RecoveryStrategy]:
        """Strategies whose predicate holds, highest priority first.

        Registration order breaks priority ties.
        """
        applicable = [s for s in self._strategies if s.should_apply(patterns, attempt_number)]
        applicable.sort(key=lambda s: s.priority, reverse=True)
        if applicable:
            _logger.debug(
                "recovery_strategies_applicable",
                strategies=[s.name for s in applicable],
                attempt=attempt_number,
            )
        return applicable

    def count(self) -> int:
        return len(self._strategies)


def create_default_registry() -> RecoveryRegistry:
    """Registry with the built-in strategies.

    - undefined-value-recovery (10): placeholder values seen, from attempt 2
    - syntax-error-recovery (8): unmatched brackets or legacy syntax
    - completeness-recovery (6): empty bodies, missing init or return
    """
    registry = RecoveryRegistry()
    registry.register(
        RecoveryStrategy(
            name="undefined-value-recovery",
            description="Regenerate with explicit default values for every declaration",
            priority=10,
            should_apply=lambda patterns, attempt: (
                attempt >= 2 and has_failure(patterns, _UNDEFINED_TYPES)
            ),
            apply=regenerate_with(
                'Use concrete default values, never "undefined". Strings default to "", '
                "numbers to 0 or 0.0, Bool to false, arrays to [] and dictionaries to {}."
            ),
        )
    )
    registry.register(
        RecoveryStrategy(
            name="syntax-error-recovery",
            description="Regenerate with Cadence 1.0 syntax and balanced brackets",
            priority=8,
            should_apply=lambda patterns, attempt: has_failure(patterns, _SYNTAX_TYPES),
            apply=regenerate_with(
                "Use modern Cadence 1.0 syntax (access(all), never pub) "
                "and make sure every bracket is matched."
            ),
        )
    )
    registry.register(
        RecoveryStrategy(
            name="completeness-recovery",
            description="Regenerate with complete function bodies and an initializer",
            priority=6,
            should_apply=lambda patterns, attempt: has_failure(patterns, _COMPLETENESS_TYPES),
            apply=regenerate_with(
                "Implement every function completely, return a value from every "
                "function that declares one, and initialize all state in init()."
            ),
        )
    )
    return registry
