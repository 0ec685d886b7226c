"""
errors/ - Error taxonomy
"""

from .taxonomy import (
    ErrorCategory,
    PipecheckError,
    ValidatorConfigurationError,
    ValidationFailedError,
)

__all__ = [
    "ErrorCategory",
    "PipecheckError",
    "ValidatorConfigurationError",
    "ValidationFailedError",
]
