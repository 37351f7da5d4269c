"""Validation and detection checks for generated contract code.

Each check produces one ValidationResult tagged with its scoring dimension:
- UndefinedValueDetector, SyntaxCheck: syntax
- CompletenessCheck: completeness
- ContractSpecificValidator: logic
- BestPracticesCheck: best-practices
"""

from cadence_qa.validation.base import ValidationCheck, mask_non_code
from cadence_qa.validation.completeness import CompletenessCheck
from cadence_qa.validation.contracts import (
    ContractSpecificValidator,
    ContractValidationResult,
    requirements_for,
)
from cadence_qa.validation.practices import BestPracticesCheck
from cadence_qa.validation.runner import (
    ValidationRunner,
    all_issues,
    create_default_checks,
    validate_code,
)
from cadence_qa.validation.syntax import SyntaxCheck, bracket_balance
from cadence_qa.validation.undefined import UndefinedValueDetector, default_value_for_type

__all__ = [
    "BestPracticesCheck",
    "CompletenessCheck",
    "ContractSpecificValidator",
    "ContractValidationResult",
    "SyntaxCheck",
    "UndefinedValueDetector",
    "ValidationCheck",
    "ValidationRunner",
    "all_issues",
    "bracket_balance",
    "create_default_checks",
    "default_value_for_type",
    "mask_non_code",
    "requirements_for",
    "validate_code",
]
