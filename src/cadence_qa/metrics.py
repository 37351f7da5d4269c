"""Session metrics and retry statistics.

Everything here is computed from RetryResult / RetryAttempt values in
memory. Nothing is written to disk or sent over the network; an external
collector can read MetricsCollector.summary() and export it however it
likes.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from cadence_qa.models import GenerationMetrics, RetryAttempt, RetryResult


def build_metrics(
    history: Sequence[RetryAttempt],
    start_time: datetime,
    end_time: datetime,
) -> GenerationMetrics:
    """Summarize an attempt history.

    The final quality score is the overall score of the last attempt in
    the history (the accepted one on success).
    """
    final = history[-1] if history else None
    return GenerationMetrics(
        attempt_count=len(history),
        total_generation_time=sum(a.generation_time for a in history),
        validation_time=sum(a.validation_time for a in history),
        correction_time=sum(a.correction_time for a in history),
        final_quality_score=final.quality_score.overall if final else 0,
        issues_detected=sum(a.issue_count for a in history),
        issues_fixed=sum(len(c.corrections) for a in history for c in a.correction_attempts),
        start_time=start_time,
        end_time=end_time,
    )


@dataclass
class RetryStatistics:
    average_quality_improvement: float = 0.0
    most_common_failures: list[str] = field(default_factory=list)
    enhancement_effectiveness: dict[str, float] = field(default_factory=dict)
    correction_success_rate: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "average_quality_improvement": self.average_quality_improvement,
            "most_common_failures": self.most_common_failures,
            "enhancement_effectiveness": self.enhancement_effectiveness,
            "correction_success_rate": self.correction_success_rate,
        }


def get_retry_statistics(history: Sequence[RetryAttempt]) -> RetryStatistics:
    """Analyze how a session's attempts evolved.

    - average_quality_improvement: (last - first) / (n - 1) overall score
    - most_common_failures: up to five failure reasons by frequency
    - enhancement_effectiveness: summed score change per enhancement level,
      attributed to the level of the attempt that produced the change
    - correction_success_rate: successful / total correction passes
    """
    if not history:
        return RetryStatistics()

    scores = [a.quality_score.overall for a in history]
    improvement = (scores[-1] - scores[0]) / (len(scores) - 1) if len(scores) > 1 else 0.0

    reasons = Counter(reason for a in history for reason in a.failure_reasons)
    most_common = [reason for reason, _ in reasons.most_common(5)]

    effectiveness: dict[str, float] = defaultdict(float)
    for previous, current in zip(history, history[1:], strict=False):
        delta = current.quality_score.overall - previous.quality_score.overall
        effectiveness[current.enhancement_level.value] += delta

    passes = [c for a in history for c in a.correction_attempts]
    success_rate = sum(1 for c in passes if c.success) / len(passes) if passes else 0.0

    return RetryStatistics(
        average_quality_improvement=improvement,
        most_common_failures=most_common,
        enhancement_effectiveness=dict(effectiveness),
        correction_success_rate=success_rate,
    )


class MetricsCollector:
    """In-memory aggregate over completed sessions.

    Instances share nothing; create one per scope that needs its own
    numbers (per process, per test, per API route).
    """

    def __init__(self) -> None:
        self._results: list[tuple[RetryResult, str | None]] = []

    def record(self, result: RetryResult, category: str | None = None) -> None:
        """Record a finished session, optionally tagged with its category."""
        self._results.append((result, category))

    @property
    def total_sessions(self) -> int:
        return len(self._results)

    @property
    def successful_sessions(self) -> int:
        return sum(1 for r, _ in self._results if r.success)

    @property
    def success_rate(self) -> float:
        return self.successful_sessions / self.total_sessions if self._results else 0.0

    @property
    def fallback_rate(self) -> float:
        if not self._results:
            return 0.0
        return sum(1 for r, _ in self._results if r.fallback_used) / self.total_sessions

    @property
    def average_attempts(self) -> float:
        if not self._results:
            return 0.0
        return sum(r.total_attempts for r, _ in self._results) / self.total_sessions

    @property
    def average_quality(self) -> float:
        if not self._results:
            return 0.0
        return sum(r.final_quality_score.overall for r, _ in self._results) / self.total_sessions

    def quality_by_category(self) -> dict[str, float]:
        """Average final quality per recorded category (untagged sessions skipped)."""
        grouped: dict[str, list[int]] = defaultdict(list)
        for result, category in self._results:
            if category is not None:
                grouped[category].append(result.final_quality_score.overall)
        return {category: sum(v) / len(v) for category, v in grouped.items()}

    def outcome_counts(self) -> dict[str, int]:
        return dict(Counter(r.outcome for r, _ in self._results))

    def summary(self) -> dict[str, Any]:
        return {
            "total_sessions": self.total_sessions,
            "successful_sessions": self.successful_sessions,
            "success_rate": self.success_rate,
            "fallback_rate": self.fallback_rate,
            "average_attempts": self.average_attempts,
            "average_quality": self.average_quality,
            "quality_by_category": self.quality_by_category(),
            "outcomes": self.outcome_counts(),
        }

    def reset(self) -> None:
        self._results.clear()
