"""Prompt construction for generation attempts."""

from cadence_qa.prompts.enhancer import (
    LEVEL_TEMPERATURES,
    EnhancedPrompt,
    EnhancementOptions,
    PromptEnhancer,
    cumulative_rules,
)

__all__ = [
    "LEVEL_TEMPERATURES",
    "EnhancedPrompt",
    "EnhancementOptions",
    "PromptEnhancer",
    "cumulative_rules",
]
