"""Anthropic API backend using the official SDK.

SDK exceptions are translated into GenerationError codes so the
orchestrator can record why an attempt failed.
"""

from __future__ import annotations

import os

import anthropic

from cadence_qa.backends.base import Generator, extract_code
from cadence_qa.core.config import BackendConfig
from cadence_qa.core.errors import ConfigurationError, ErrorCode, GenerationError
from cadence_qa.core.logging import get_logger

_logger = get_logger("backends.anthropic")


class AnthropicGenerator(Generator):
    """Generate contract code through the Anthropic Messages API."""

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key_env: str = "ANTHROPIC_API_KEY",
        max_tokens: int = 4096,
        timeout_seconds: float = 60.0,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            model: Model ID to use.
            api_key_env: Environment variable containing the API key.
            max_tokens: Maximum tokens per response.
            timeout_seconds: SDK request timeout.
            client: Pre-built client (tests inject a fake here).
        """
        self.model = model
        self.api_key_env = api_key_env
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self._client = client

    @classmethod
    def from_config(cls, config: BackendConfig) -> AnthropicGenerator:
        return cls(
            model=config.model,
            api_key_env=config.api_key_env,
            max_tokens=config.max_tokens,
            timeout_seconds=config.timeout_seconds,
        )

    @property
    def name(self) -> str:
        return "anthropic-api"

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            api_key = os.environ.get(self.api_key_env)
            if not api_key:
                raise ConfigurationError(
                    f"API key not found in environment variable: {self.api_key_env}",
                    code=ErrorCode.CONFIG_MISSING,
                    context={"api_key_env": self.api_key_env},
                )
            self._client = anthropic.AsyncAnthropic(api_key=api_key, timeout=self.timeout_seconds)
        return self._client

    def check_ready(self) -> None:
        self._get_client()

    async def generate(self, prompt: str, temperature: float) -> str:
        client = self._get_client()
        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.RateLimitError as e:
            raise GenerationError(
                f"Rate limited: {e}", code=ErrorCode.GENERATION_RATE_LIMITED
            ) from e
        except anthropic.AuthenticationError as e:
            raise GenerationError(
                f"Authentication failed: {e}",
                code=ErrorCode.GENERATION_SERVICE_UNAVAILABLE,
                recoverable=False,
            ) from e
        except anthropic.APITimeoutError as e:
            raise GenerationError(
                f"API timeout after {self.timeout_seconds}s: {e}",
                code=ErrorCode.GENERATION_TIMEOUT,
            ) from e
        except anthropic.APIConnectionError as e:
            raise GenerationError(
                f"Connection error: {e}", code=ErrorCode.GENERATION_SERVICE_UNAVAILABLE
            ) from e
        except anthropic.APIStatusError as e:
            code = (
                ErrorCode.GENERATION_RATE_LIMITED
                if e.status_code == 429
                else ErrorCode.GENERATION_SERVICE_UNAVAILABLE
            )
            raise GenerationError(
                str(e), code=code, context={"status_code": e.status_code}
            ) from e

        text = "".join(block.text for block in response.content if hasattr(block, "text"))
        if not text.strip():
            raise GenerationError(
                "Model returned no text", code=ErrorCode.GENERATION_EMPTY_RESPONSE
            )
        if response.usage:
            _logger.debug(
                "generation_usage",
                model=self.model,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )
        return extract_code(text)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
