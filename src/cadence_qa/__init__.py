"""cadence-qa: quality assurance for AI-generated Cadence smart contracts."""

from cadence_qa.core.config import QAConfig
from cadence_qa.models import (
    ContractCategory,
    ContractType,
    GenerationContext,
    GenerationRequest,
    QualityScore,
    RetryResult,
)
from cadence_qa.orchestrator import RetryRecoverySystem

__version__ = "0.1.0"

__all__ = [
    "ContractCategory",
    "ContractType",
    "GenerationContext",
    "GenerationRequest",
    "QAConfig",
    "QualityScore",
    "RetryRecoverySystem",
    "RetryResult",
    "__version__",
]
