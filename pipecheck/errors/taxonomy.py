"""
errors/taxonomy.py - Error classification

Violation categories reported by validators, and the exceptions raised for
programming errors. Invalid configurations are never reported by raising:
they produce a ValidationResult.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from ..validators.taxonomy import ValidationResult


class ErrorCategory(Enum):
    """Kind of violation a rule reports."""
    STRUCTURAL = "structural"      # Missing or empty required fields
    REFERENTIAL = "referential"    # Dangling step or endpoint references
    SEMANTIC = "semantic"          # Values out of range or wrong shape
    TOPOLOGICAL = "topological"    # Intra- or inter-pipeline loops


class PipecheckError(Exception):
    """Base class for pipecheck exceptions."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "message": str(self),
        }


class ValidatorConfigurationError(PipecheckError):
    """Raised when a composite is assembled from unusable validators."""

    def __init__(self, message: str, validator: Optional[Any] = None):
        self.validator = validator
        super().__init__(message)


class ValidationFailedError(PipecheckError):
    """
    Raised by ValidationResult.raise_for_errors().

    For callers that map an invalid verdict onto an exception; the
    validation core itself never raises it.
    """

    def __init__(self, result: "ValidationResult"):
        self.result = result
        count = len(result.errors)
        first = result.errors[0] if result.errors else "no details"
        super().__init__(f"Validation failed with {count} error(s): {first}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["result"] = self.result.to_dict()
        return data
