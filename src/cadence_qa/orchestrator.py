"""Retry/recovery orchestration for AI contract generation.

RetryRecoverySystem drives one generation session to a terminal RetryResult:

    for attempt in 1..N:
        ENHANCE  -> escalated prompt and temperature for this attempt
        GENERATE -> caller's generate(prompt, temperature) under a deadline
        VALIDATE -> ValidationResult per check
        SCORE    -> QualityScore
        CORRECT  -> one auto-correction pass when below threshold
        DECIDE   -> accept, or record failure patterns
        RECOVER  -> applicable recovery strategies, first success wins
    FALLBACK     -> template contract, accepted regardless of score

N is min(request.max_retries, requirements.performance.max_retry_attempts).
Attempts run strictly in order because each prompt depends on the failure
history of the attempts before it. Session state is an immutable
accumulator folded through the loop, so concurrent sessions share nothing.

execute_with_retry never raises. Generation errors, timeouts, quality
failures and crashing collaborators end up in failure_reasons and
failure_patterns; the only hard failure is a fallback that itself raises
after all attempts are spent. A non-recoverable generation error (bad
credentials, missing configuration) skips the remaining attempts.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from cadence_qa.backends.base import GenerateFn
from cadence_qa.core.config import QAConfig, get_quality_requirements
from cadence_qa.core.errors import (
    CorrectionError,
    ErrorCode,
    GenerationError,
    PerformanceError,
    classify_generation_error,
)
from cadence_qa.core.logging import SessionContext, get_logger, with_context
from cadence_qa.correction import AutoCorrectionEngine
from cadence_qa.fallback.classifier import classify_contract_type
from cadence_qa.fallback.generator import FallbackGenerator
from cadence_qa.metrics import build_metrics
from cadence_qa.models import (
    ContractType,
    CorrectionAttempt,
    EnhancementLevel,
    FailurePattern,
    GenerationContext,
    GenerationRequest,
    QualityScore,
    RetryAttempt,
    RetryResult,
    Severity,
    UserExperience,
    ValidationResult,
    merge_failure_patterns,
)
from cadence_qa.prompts.enhancer import EnhancementOptions, PromptEnhancer, temperature_for
from cadence_qa.recovery import RecoveryRegistry, create_default_registry
from cadence_qa.scoring import QualityScoreCalculator
from cadence_qa.validation.runner import ValidationRunner, all_issues

_logger = get_logger("orchestrator")

FALLBACK_PROMPT = "FALLBACK_GENERATION"
FALLBACK_STRATEGY = "fallback-generation"
GENERATION_ERROR = "generation-error"
NON_RECOVERABLE_ERROR = "non-recoverable-error"
ATTEMPT_ERROR = "attempt-error"
BELOW_THRESHOLD = "quality-below-threshold"

FAILURE_SOLUTIONS: dict[str, tuple[str, ...]] = {
    GENERATION_ERROR: ("Check AI service availability", "Reduce prompt complexity"),
    NON_RECOVERABLE_ERROR: ("Check backend configuration and credentials",),
    ATTEMPT_ERROR: ("Check the validation and scoring setup",),
    "undefined-value": (
        "Initialize every variable with a concrete default value",
        "Never use undefined; use nil only for optional types",
    ),
    "incomplete-declaration": ("Give every declaration a value after '='",),
    "incomplete-assignment": ("Finish every assignment with a value",),
    "incomplete-type-annotation": ("Write an explicit type after every ':'",),
    "missing-return": ("Return a value from every function that declares a return type",),
    "bracket-mismatch": ("Close every opened brace, bracket and parenthesis",),
    "legacy-syntax": (
        "Use access(all) instead of pub",
        "Use auth(Storage) &Account instead of AuthAccount",
    ),
    "incomplete-function": ("Implement every function body",),
    "missing-init": ("Add an init() that initializes all contract state",),
    BELOW_THRESHOLD: ("Follow every requirement listed in the prompt",),
}


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 3)


def base_prompt_for(request: GenerationRequest) -> str:
    """The user prompt plus any caller-supplied context."""
    if request.context_text.strip():
        return f"{request.prompt.strip()}\n\nAdditional context:\n{request.context_text.strip()}"
    return request.prompt.strip()


def extract_failure_patterns(results: Sequence[ValidationResult]) -> list[FailurePattern]:
    """One FailurePattern per critical or warning issue type, in order of appearance."""
    patterns: list[FailurePattern] = []
    for issue in all_issues(list(results)):
        if issue.severity == Severity.INFO:
            continue
        solutions = FAILURE_SOLUTIONS.get(issue.type, ())
        if issue.suggested_fix:
            solutions = (*solutions, f"Suggested fix: {issue.suggested_fix}")
        patterns.append(
            FailurePattern(
                type=issue.type,
                common_causes=(issue.message,),
                suggested_solutions=solutions,
            )
        )
    return list(merge_failure_patterns((), patterns))


def failure_reasons_for(results: Sequence[ValidationResult]) -> tuple[str, ...]:
    """Distinct critical issue types, or the generic below-threshold reason."""
    reasons: list[str] = []
    for issue in all_issues(list(results)):
        if issue.severity == Severity.CRITICAL and issue.type not in reasons:
            reasons.append(issue.type)
    return tuple(reasons) or (BELOW_THRESHOLD,)


@dataclass(frozen=True)
class _Evaluation:
    code: str
    results: tuple[ValidationResult, ...]
    score: QualityScore
    validation_time: float = 0.0


@dataclass(frozen=True)
class _SessionState:
    """Accumulator folded through the attempt loop."""

    history: tuple[RetryAttempt, ...] = ()
    patterns: tuple[FailurePattern, ...] = ()
    strategies_used: tuple[str, ...] = ()

    def record(
        self,
        attempt: RetryAttempt,
        patterns: Sequence[FailurePattern] = (),
    ) -> _SessionState:
        return replace(
            self,
            history=(*self.history, attempt),
            patterns=merge_failure_patterns(self.patterns, patterns),
        )

    def recovered(self, attempt: RetryAttempt, strategy: str) -> _SessionState:
        """Replace the last attempt with its recovered version."""
        return replace(
            self,
            history=(*self.history[:-1], attempt),
            strategies_used=(*self.strategies_used, strategy),
        )

    def best_attempt(self) -> RetryAttempt | None:
        """Highest-scoring attempt; the earliest wins ties."""
        if not self.history:
            return None
        return max(self.history, key=lambda a: a.quality_score.overall)


class RetryRecoverySystem:
    """Drives generation sessions to a RetryResult.

    Every collaborator can be injected; defaults are built from ``config``.
    The instance holds no per-session state, so one system can serve
    concurrent sessions.
    """

    def __init__(
        self,
        config: QAConfig | None = None,
        enhancer: PromptEnhancer | None = None,
        scorer: QualityScoreCalculator | None = None,
        correction_engine: AutoCorrectionEngine | None = None,
        fallback_generator: FallbackGenerator | None = None,
        recovery_registry: RecoveryRegistry | None = None,
        validator: ValidationRunner | None = None,
    ) -> None:
        self.config = config or QAConfig()
        self.enhancer = enhancer or PromptEnhancer(
            strict_mode_threshold=self.config.strict_mode_threshold
        )
        self.scorer = scorer or QualityScoreCalculator.from_config(self.config)
        self.correction_engine = correction_engine or AutoCorrectionEngine()
        self.fallback_generator = fallback_generator or FallbackGenerator()
        self.recovery_registry = (
            recovery_registry if recovery_registry is not None else create_default_registry()
        )
        self.validator = validator or ValidationRunner()

    @property
    def quality_threshold(self) -> int:
        return self.config.quality_threshold

    def build_context(
        self,
        request: GenerationRequest,
        contract_type: ContractType | None = None,
        user_experience: UserExperience = UserExperience.INTERMEDIATE,
    ) -> GenerationContext:
        """Derive a session context, classifying the prompt when no type is given."""
        if contract_type is None:
            contract_type = classify_contract_type(request.prompt).to_contract_type()
        return GenerationContext(
            user_prompt=request.prompt,
            contract_type=contract_type,
            quality_requirements=get_quality_requirements(user_experience, self.config),
            user_experience=user_experience,
        )

    def max_attempts_for(self, request: GenerationRequest, context: GenerationContext) -> int:
        limit = context.quality_requirements.performance.max_retry_attempts
        return max(0, min(request.max_retries, limit))

    async def execute_with_retry(
        self,
        request: GenerationRequest,
        context: GenerationContext | None,
        generate: GenerateFn,
    ) -> RetryResult:
        """Run a full generation session.

        Args:
            request: Prompt, temperature ceiling, retry budget and strictness.
            context: Session context; derived from the request when None.
            generate: Async text generator ``(prompt, temperature) -> text``.
                It may raise or hang; both end the attempt as a
                generation error.

        Returns:
            RetryResult. success is False only when every attempt failed
            and the fallback could not produce code either.
        """
        start_time = datetime.now(UTC)
        try:
            if context is None:
                context = self.build_context(request)
            session = SessionContext(category=context.contract_type.category.value)
            with with_context(session):
                return await self._run_session(request, context, generate, session, start_time)
        except Exception as e:
            # Attempt crashes are recorded in the loop; this covers session setup
            _logger.exception("session_crashed", error=str(e))
            return self._failure_result(_SessionState(), start_time)

    async def _run_session(
        self,
        request: GenerationRequest,
        context: GenerationContext,
        generate: GenerateFn,
        session: SessionContext,
        start_time: datetime,
    ) -> RetryResult:
        max_attempts = self.max_attempts_for(request, context)
        _logger.info(
            "session_started",
            category=context.contract_type.category.value,
            max_attempts=max_attempts,
            threshold=self.quality_threshold,
            strict=request.strict_mode,
        )

        state = _SessionState()
        for number in range(1, max_attempts + 1):
            with with_context(session.with_attempt(number)):
                attempt_start = time.monotonic()
                try:
                    attempt, patterns = await self._run_attempt(
                        number,
                        request,
                        context.with_attempts(state.history),
                        state.patterns,
                        generate,
                        max_attempts,
                    )
                except Exception as e:
                    # Injected collaborators may raise; the attempt is recorded as failed
                    _logger.exception("attempt_crashed", error=str(e))
                    attempt, patterns = self._crashed_attempt(number, request, e, attempt_start)
                state = state.record(attempt, patterns)

                if attempt.success:
                    _logger.info(
                        "attempt_succeeded",
                        score=attempt.quality_score.overall,
                        corrected=bool(attempt.correction_attempts),
                    )
                    return self._result(state, attempt, start_time)

                _logger.warning(
                    "attempt_failed",
                    score=attempt.quality_score.overall,
                    threshold=self.quality_threshold,
                    reasons=list(attempt.failure_reasons),
                )

                if NON_RECOVERABLE_ERROR in attempt.failure_reasons:
                    _logger.error("attempts_stopped", reasons=list(attempt.failure_reasons))
                    break

                if self.config.enable_recovery_strategies:
                    recovered = await self._try_recovery(
                        number, request, context.with_attempts(state.history), state, generate
                    )
                    if recovered is not None:
                        recovered_attempt, strategy = recovered
                        state = state.recovered(recovered_attempt, strategy)
                        return self._result(state, recovered_attempt, start_time)

        if self.config.enable_fallback_generation:
            number = len(state.history) + 1
            with with_context(session.with_attempt(number).with_component("fallback")):
                _logger.info("fallback_activated", failed_attempts=len(state.history))
                try:
                    fallback = self._fallback_attempt(number, request, context)
                except Exception as e:
                    _logger.error("fallback_failed", error=str(e))
                else:
                    state = replace(
                        state.record(fallback),
                        strategies_used=(*state.strategies_used, FALLBACK_STRATEGY),
                    )
                    return self._result(state, fallback, start_time, fallback_used=True)

        _logger.error("session_failed", attempts=len(state.history))
        return self._failure_result(state, start_time)

    # ─── Attempt ───────────────────────────────────────────────────

    async def _run_attempt(
        self,
        number: int,
        request: GenerationRequest,
        context: GenerationContext,
        previous_failures: tuple[FailurePattern, ...],
        generate: GenerateFn,
        max_attempts: int,
    ) -> tuple[RetryAttempt, list[FailurePattern]]:
        attempt_start = time.monotonic()

        enhanced = self.enhancer.enhance_prompt(
            base_prompt_for(request),
            context,
            EnhancementOptions(
                attempt_number=number,
                previous_failures=previous_failures,
                strict_mode=request.strict_mode,
                temperature=request.temperature,
                max_attempts=max_attempts,
            ),
        )
        _logger.debug(
            "attempt_started",
            level=enhanced.enhancement_level.value,
            temperature=enhanced.temperature,
        )

        generation_start = time.monotonic()
        try:
            code = await self._generate(generate, enhanced.combined, enhanced.temperature)
        except GenerationError as e:
            _logger.warning("generation_error", **e.to_dict())
            reason = GENERATION_ERROR if e.recoverable else NON_RECOVERABLE_ERROR
            attempt = RetryAttempt(
                attempt_number=number,
                enhanced_prompt=enhanced.combined,
                generated_code="",
                validation_results=(),
                quality_score=QualityScore(),
                correction_attempts=(),
                success=False,
                failure_reasons=(reason,),
                enhancement_level=enhanced.enhancement_level,
                temperature=enhanced.temperature,
                processing_time=_elapsed_ms(attempt_start),
                generation_time=_elapsed_ms(generation_start),
            )
            pattern = FailurePattern(
                type=reason,
                common_causes=(e.message,),
                suggested_solutions=FAILURE_SOLUTIONS[reason],
            )
            return attempt, [pattern]
        generation_time = _elapsed_ms(generation_start)
        self._check_generation_time(generation_time, context)

        evaluation = self._evaluate(code, context)
        correction_attempts: tuple[CorrectionAttempt, ...] = ()
        correction_time = 0.0
        if evaluation.score.overall < self.quality_threshold and self.config.enable_auto_correction:
            correction_start = time.monotonic()
            evaluation, correction = self._correct(number, evaluation, context)
            correction_time = _elapsed_ms(correction_start)
            if correction is not None:
                correction_attempts = (correction,)

        success = evaluation.score.overall >= self.quality_threshold
        attempt = RetryAttempt(
            attempt_number=number,
            enhanced_prompt=enhanced.combined,
            generated_code=evaluation.code,
            validation_results=evaluation.results,
            quality_score=evaluation.score,
            correction_attempts=correction_attempts,
            success=success,
            failure_reasons=() if success else failure_reasons_for(evaluation.results),
            enhancement_level=enhanced.enhancement_level,
            temperature=enhanced.temperature,
            processing_time=_elapsed_ms(attempt_start),
            generation_time=generation_time,
            validation_time=evaluation.validation_time,
            correction_time=correction_time,
        )
        if success:
            return attempt, []

        patterns = extract_failure_patterns(evaluation.results)
        if not patterns:
            patterns = [
                FailurePattern(
                    type=BELOW_THRESHOLD,
                    common_causes=(
                        f"Overall score {evaluation.score.overall} below {self.quality_threshold}",
                    ),
                    suggested_solutions=FAILURE_SOLUTIONS[BELOW_THRESHOLD],
                )
            ]
        return attempt, patterns

    def _crashed_attempt(
        self,
        number: int,
        request: GenerationRequest,
        error: Exception,
        attempt_start: float,
    ) -> tuple[RetryAttempt, list[FailurePattern]]:
        level = EnhancementLevel.for_attempt(number)
        attempt = RetryAttempt(
            attempt_number=number,
            enhanced_prompt=base_prompt_for(request),
            generated_code="",
            validation_results=(),
            quality_score=QualityScore(),
            correction_attempts=(),
            success=False,
            failure_reasons=(ATTEMPT_ERROR,),
            enhancement_level=level,
            temperature=temperature_for(level, request.temperature),
            processing_time=_elapsed_ms(attempt_start),
        )
        pattern = FailurePattern(
            type=ATTEMPT_ERROR,
            common_causes=(f"{type(error).__name__}: {error}",),
            suggested_solutions=FAILURE_SOLUTIONS[ATTEMPT_ERROR],
        )
        return attempt, [pattern]

    async def _generate(self, generate: GenerateFn, prompt: str, temperature: float) -> str:
        """Call generate under the per-attempt deadline.

        On timeout the pending call is cancelled, so a late result can never
        reach session state.
        """
        timeout = self.config.attempt_timeout
        try:
            code = await asyncio.wait_for(generate(prompt, temperature), timeout=timeout)
        except Exception as e:
            raise classify_generation_error(e, timeout) from e
        if not isinstance(code, str):
            raise GenerationError(
                f"Generator returned {type(code).__name__}, expected text",
                code=ErrorCode.GENERATION_INVALID_RESPONSE,
            )
        if not code.strip():
            raise GenerationError(
                "Generator returned an empty response",
                code=ErrorCode.GENERATION_EMPTY_RESPONSE,
            )
        return code

    def _check_generation_time(self, elapsed_ms: float, context: GenerationContext) -> None:
        budget = context.quality_requirements.performance.max_generation_time
        if elapsed_ms > budget:
            warning = PerformanceError(
                f"Generation took {elapsed_ms:.0f}ms (budget {budget}ms)",
                code=ErrorCode.PERFORMANCE_GENERATION_SLOW,
                context={"elapsed_ms": elapsed_ms, "budget_ms": budget},
            )
            _logger.warning("generation_slow", **warning.to_dict())

    def _evaluate(self, code: str, context: GenerationContext) -> _Evaluation:
        start = time.monotonic()
        results = tuple(self.validator.validate(code, context))
        score = self.scorer.calculate_quality_score(
            results,
            contract_type=context.contract_type,
            requirements=context.quality_requirements,
        )
        return _Evaluation(code, results, score, _elapsed_ms(start))

    def _correct(
        self,
        number: int,
        evaluation: _Evaluation,
        context: GenerationContext,
    ) -> tuple[_Evaluation, CorrectionAttempt | None]:
        """One correction pass; the corrected text is kept only if it scores no worse."""
        try:
            outcome = self.correction_engine.correct_code(
                evaluation.code, all_issues(list(evaluation.results))
            )
        except Exception as e:
            error = CorrectionError(
                f"Auto-correction raised: {e}",
                context={"exception_type": type(e).__name__},
            )
            _logger.warning("correction_failed", **error.to_dict())
            return evaluation, CorrectionAttempt(number, (), False, 0.0)

        if not outcome.corrections:
            _logger.debug("correction_no_fixes", code=ErrorCode.CORRECTION_NO_FIXES.value)
            return evaluation, CorrectionAttempt(number, (), False, 0.0)

        corrected = self._evaluate(outcome.corrected_code, context)
        improvement = corrected.score.overall - evaluation.score.overall
        if improvement < 0:
            _logger.warning(
                "correction_discarded",
                code=ErrorCode.CORRECTION_WORSE_QUALITY.value,
                before=evaluation.score.overall,
                after=corrected.score.overall,
            )
            return evaluation, CorrectionAttempt(number, (), False, 0.0)

        _logger.info(
            "correction_applied",
            corrections=len(outcome.corrections),
            before=evaluation.score.overall,
            after=corrected.score.overall,
        )
        merged = replace(
            corrected,
            validation_time=evaluation.validation_time + corrected.validation_time,
        )
        return merged, CorrectionAttempt(
            number, outcome.corrections, improvement > 0, float(improvement)
        )

    # ─── Recovery and fallback ─────────────────────────────────────

    async def _try_recovery(
        self,
        number: int,
        request: GenerationRequest,
        context: GenerationContext,
        state: _SessionState,
        generate: GenerateFn,
    ) -> tuple[RetryAttempt, str] | None:
        failed = state.history[-1]
        timeout = self.config.attempt_timeout
        for strategy in self.recovery_registry.find_applicable(state.patterns, number):
            start = time.monotonic()
            _logger.info("recovery_strategy_started", strategy=strategy.name)
            try:
                code = await asyncio.wait_for(
                    strategy.apply(request, context, state.patterns, generate),
                    timeout=timeout,
                )
            except Exception as e:
                error = classify_generation_error(e, timeout)
                _logger.warning("recovery_strategy_failed", strategy=strategy.name, error=str(error))
                continue
            if not isinstance(code, str) or not code.strip():
                _logger.warning("recovery_strategy_empty", strategy=strategy.name)
                continue

            try:
                evaluation = self._evaluate(code, context)
            except Exception as e:
                _logger.exception("recovery_strategy_crashed", strategy=strategy.name, error=str(e))
                continue
            if evaluation.score.overall < self.quality_threshold:
                _logger.info(
                    "recovery_strategy_below_threshold",
                    strategy=strategy.name,
                    score=evaluation.score.overall,
                )
                continue

            _logger.info(
                "recovery_strategy_succeeded",
                strategy=strategy.name,
                score=evaluation.score.overall,
            )
            recovered = replace(
                failed,
                generated_code=code,
                validation_results=evaluation.results,
                quality_score=evaluation.score,
                success=True,
                failure_reasons=(),
                processing_time=failed.processing_time + _elapsed_ms(start),
                validation_time=failed.validation_time + evaluation.validation_time,
            )
            return recovered, strategy.name
        return None

    def _fallback_attempt(
        self,
        number: int,
        request: GenerationRequest,
        context: GenerationContext,
    ) -> RetryAttempt:
        start = time.monotonic()
        code = self.fallback_generator.generate_fallback_contract(
            request.prompt, context.contract_type
        )
        generation_time = _elapsed_ms(start)
        evaluation = self._evaluate(code, context)
        _logger.info("fallback_generated", score=evaluation.score.overall)
        return RetryAttempt(
            attempt_number=number,
            enhanced_prompt=FALLBACK_PROMPT,
            generated_code=code,
            validation_results=evaluation.results,
            quality_score=evaluation.score,
            correction_attempts=(),
            success=True,
            failure_reasons=(),
            enhancement_level=EnhancementLevel.MAXIMUM,
            temperature=0.0,
            processing_time=_elapsed_ms(start),
            generation_time=generation_time,
            validation_time=evaluation.validation_time,
        )

    # ─── Results ───────────────────────────────────────────────────

    def _result(
        self,
        state: _SessionState,
        final: RetryAttempt,
        start_time: datetime,
        fallback_used: bool = False,
    ) -> RetryResult:
        result = RetryResult(
            success=True,
            final_code=final.generated_code,
            total_attempts=len(state.history),
            retry_history=state.history,
            final_quality_score=final.quality_score,
            fallback_used=fallback_used,
            failure_patterns=state.patterns,
            recovery_strategies_used=state.strategies_used,
            metrics=build_metrics(state.history, start_time, datetime.now(UTC)),
        )
        _logger.info(
            "session_completed",
            outcome=result.outcome,
            attempts=result.total_attempts,
            score=result.final_quality_score.overall,
        )
        return result

    def _failure_result(self, state: _SessionState, start_time: datetime) -> RetryResult:
        best = state.best_attempt()
        return RetryResult(
            success=False,
            final_code=best.generated_code if best else "",
            total_attempts=len(state.history),
            retry_history=state.history,
            final_quality_score=best.quality_score if best else QualityScore(),
            fallback_used=False,
            failure_patterns=state.patterns,
            recovery_strategies_used=state.strategies_used,
            metrics=build_metrics(state.history, start_time, datetime.now(UTC)),
        )
