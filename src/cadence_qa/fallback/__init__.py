"""Template-based fallback contracts and prompt classification."""

from cadence_qa.fallback.classifier import (
    ContractClassification,
    classify_contract_type,
    determine_complexity,
    extract_features,
)
from cadence_qa.fallback.generator import (
    FallbackGenerator,
    extract_contract_name,
    is_usable_prompt,
)
from cadence_qa.fallback.templates import (
    EMERGENCY_CONTRACT,
    FALLBACK_MARKER,
    TEMPLATES,
    FallbackTemplate,
    template_for,
)

__all__ = [
    "EMERGENCY_CONTRACT",
    "FALLBACK_MARKER",
    "TEMPLATES",
    "ContractClassification",
    "FallbackGenerator",
    "FallbackTemplate",
    "classify_contract_type",
    "determine_complexity",
    "extract_contract_name",
    "extract_features",
    "is_usable_prompt",
    "template_for",
]
