"""Text generation backends."""

from cadence_qa.backends.anthropic_api import AnthropicGenerator
from cadence_qa.backends.base import GenerateFn, Generator, extract_code
from cadence_qa.backends.replay import ReplayGenerator

__all__ = ["AnthropicGenerator", "GenerateFn", "Generator", "ReplayGenerator", "extract_code"]
