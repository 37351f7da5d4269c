"""Replay backend that returns canned responses in order."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from cadence_qa.backends.base import Generator, extract_code
from cadence_qa.core.errors import ErrorCode, GenerationError


class ReplayGenerator(Generator):
    """Serve recorded responses, one per call.

    Useful for offline runs and tests: every call returns the next response
    and records the (prompt, temperature) it was called with.
    """

    def __init__(self, responses: Iterable[str]) -> None:
        self._responses = list(responses)
        self._index = 0
        self.calls: list[tuple[str, float]] = []

    @classmethod
    def from_files(cls, paths: Iterable[Path]) -> ReplayGenerator:
        return cls(path.read_text(encoding="utf-8") for path in paths)

    @property
    def name(self) -> str:
        return "replay"

    @property
    def remaining(self) -> int:
        return len(self._responses) - self._index

    async def generate(self, prompt: str, temperature: float) -> str:
        self.calls.append((prompt, temperature))
        if self._index >= len(self._responses):
            raise GenerationError(
                f"Replay exhausted after {len(self._responses)} response(s)",
                code=ErrorCode.GENERATION_EMPTY_RESPONSE,
            )
        response = self._responses[self._index]
        self._index += 1
        return extract_code(response)
