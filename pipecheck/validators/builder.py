"""
validators/builder.py - Fluent assembly of composite validators

    validator = (
        CompositeValidatorBuilder.create()
        .with_name("pipeline")
        .add_validators(get_pipeline_validators(settings))
        .build()
    )

Validators are checked when added, so a bad registration fails at assembly
time rather than during validation.
"""

from __future__ import annotations
from typing import Any, FrozenSet, List
import collections.abc
import logging

from ..core.enums import ValidationMode
from ..errors.taxonomy import ErrorCategory, ValidatorConfigurationError
from .composite import CompositeValidator
from .taxonomy import (
    ALL_MODES,
    BaseRuleValidator,
    RuleValidator,
    ValidationResult,
    failure,
    success,
)

logger = logging.getLogger(__name__)


# =============================================================================
# TEST STUBS
# =============================================================================

class EmptyValidator(BaseRuleValidator):
    """Always succeeds."""

    modes = ALL_MODES
    order = 0

    def validate(self, config: Any) -> ValidationResult:
        return success()


class FailingValidator(BaseRuleValidator):
    """Always fails with a fixed message."""

    category = ErrorCategory.STRUCTURAL
    modes = ALL_MODES
    order = 0

    def __init__(self, message: str = "Validation failed"):
        self.message = message

    def validate(self, config: Any) -> ValidationResult:
        return failure(self.message)


# =============================================================================
# BUILDER
# =============================================================================

class CompositeValidatorBuilder:
    """Builder for CompositeValidator."""

    def __init__(self):
        self._name = "CompositeValidator"
        self._validators: List[RuleValidator] = []
        self._sort_by_priority = True

    @classmethod
    def create(cls) -> "CompositeValidatorBuilder":
        return cls()

    def with_name(self, name: str) -> "CompositeValidatorBuilder":
        self._name = name
        return self

    def add_validator(self, validator: RuleValidator) -> "CompositeValidatorBuilder":
        self._check(validator)
        self._validators.append(validator)
        return self

    def add_validators(self, *validators: Any) -> "CompositeValidatorBuilder":
        """Add validators given as arguments, or as a single iterable."""
        if len(validators) == 1 and not isinstance(validators[0], RuleValidator) \
                and isinstance(validators[0], collections.abc.Iterable):
            validators = tuple(validators[0])

        for validator in validators:
            self.add_validator(validator)
        return self

    def with_explicit_order(self) -> "CompositeValidatorBuilder":
        """Run validators in registration order, ignoring priority."""
        self._sort_by_priority = False
        return self

    def with_empty_validation(self) -> "CompositeValidatorBuilder":
        """Replace all validators with one that always succeeds."""
        self._validators = [EmptyValidator()]
        return self

    def with_failing_validation(self, message: str = "Validation failed") -> "CompositeValidatorBuilder":
        """Replace all validators with one that always fails."""
        self._validators = [FailingValidator(message)]
        return self

    def build(self) -> CompositeValidator:
        logger.debug(
            f"Building {self._name} with {len(self._validators)} validators "
            f"(sort_by_priority={self._sort_by_priority})"
        )
        return CompositeValidator(
            self._name,
            self._validators,
            sort_by_priority=self._sort_by_priority,
        )

    @staticmethod
    def _check(validator: Any) -> None:
        if not isinstance(validator, RuleValidator):
            raise ValidatorConfigurationError(
                f"{validator!r} is not a rule validator "
                f"(needs validate, name, supported_modes and priority)",
                validator=validator,
            )

        modes: FrozenSet[ValidationMode] = validator.supported_modes()
        if not modes:
            raise ValidatorConfigurationError(
                f"Validator '{validator.name()}' supports no validation mode",
                validator=validator,
            )
