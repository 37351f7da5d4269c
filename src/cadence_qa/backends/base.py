"""Abstract base for text generation backends."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

GenerateFn = Callable[[str, float], Awaitable[str]]
"""The generation function a session consumes: (prompt, temperature) -> text."""

_FENCE = re.compile(r"```[ \t]*(?:cadence|cdc|swift)?[ \t]*\n(.*?)(?:\n```|\Z)", re.S | re.I)


def extract_code(text: str) -> str:
    """Return the code inside the first Markdown fence, or the text itself.

    An unterminated fence yields everything after the opening line.
    """
    match = _FENCE.search(text)
    if match:
        return match.group(1).strip() + "\n"
    return text


class Generator(ABC):
    """Base class for generation backends.

    Instances are callable with the GenerateFn signature, so a backend can
    be passed directly to RetryRecoverySystem.execute_with_retry.
    """

    @abstractmethod
    async def generate(self, prompt: str, temperature: float) -> str:
        """Generate code for a prompt.

        Args:
            prompt: Fully enhanced prompt.
            temperature: Sampling temperature for this attempt.

        Returns:
            Generated code with any Markdown fences removed.

        Raises:
            GenerationError: The backend could not produce text.
        """
        ...

    async def __call__(self, prompt: str, temperature: float) -> str:
        return await self.generate(prompt, temperature)

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name."""
        ...

    def check_ready(self) -> None:  # noqa: B027
        """Fail fast before a session starts.

        Raises:
            ConfigurationError: The backend is missing required settings.
        """

    async def close(self) -> None:  # noqa: B027
        """Release backend resources. No-op by default."""
