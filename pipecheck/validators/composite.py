"""
validators/composite.py - Mode-aware composite validator

Runs the validators registered for the requested mode, lowest priority first,
and folds their results left to right. A composite is itself a rule validator,
so composites nest.
"""

from __future__ import annotations
from typing import Any, FrozenSet, Iterable, List, Tuple
import logging

from ..core.enums import ValidationMode
from .taxonomy import (
    DEFAULT_PRIORITY,
    RuleValidator,
    ValidationResult,
    failure,
    success,
)

logger = logging.getLogger(__name__)

NULL_CONFIG = "Configuration cannot be null"


class CompositeValidator:
    """
    Ordered collection of rule validators.

    validate() holds no state between calls: the same configuration and mode
    always produce the same result, and concurrent calls are safe as long as
    no validators are added meanwhile.
    """

    def __init__(
        self,
        name: str,
        validators: Iterable[RuleValidator] = (),
        sort_by_priority: bool = True,
    ):
        self._name = name
        self._validators: List[RuleValidator] = list(validators)
        self.sort_by_priority = sort_by_priority

    @property
    def validators(self) -> Tuple[RuleValidator, ...]:
        return tuple(self._validators)

    def add_validator(self, validator: RuleValidator) -> "CompositeValidator":
        self._validators.append(validator)
        return self

    def selected_validators(self, mode: ValidationMode) -> List[RuleValidator]:
        """Validators supporting `mode`, in execution order."""
        selected = [v for v in self._validators if mode in v.supported_modes()]
        if self.sort_by_priority:
            # sort() is stable: equal priorities keep registration order
            selected.sort(key=lambda v: v.priority())
        return selected

    def validate(
        self,
        config: Any,
        mode: ValidationMode = ValidationMode.PRODUCTION,
    ) -> ValidationResult:
        if config is None:
            return failure(NULL_CONFIG)

        selected = self.selected_validators(mode)
        logger.debug(
            f"{self._name}: running {len(selected)}/{len(self._validators)} "
            f"validators in {mode.value} mode: {[v.name() for v in selected]}"
        )

        result = success()
        for validator in selected:
            outcome = self._run(validator, config, mode)
            logger.debug(
                f"{self._name}: {validator.name()} -> "
                f"{len(outcome.errors)} error(s), {len(outcome.warnings)} warning(s)"
            )
            result = result.combine(outcome)

        logger.info(
            f"{self._name} ({mode.value}): valid={result.valid}, "
            f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
        )
        return result

    def _run(self, validator: RuleValidator, config: Any, mode: ValidationMode) -> ValidationResult:
        try:
            if isinstance(validator, CompositeValidator):
                return validator.validate(config, mode)
            return validator.validate(config) or success()
        except Exception as e:
            logger.exception(f"{self._name}: validator {validator.name()} raised")
            return failure(f"Validator '{validator.name()}' failed: {type(e).__name__}: {e}")

    # RuleValidator capability, for nesting

    def name(self) -> str:
        return self._name

    def supported_modes(self) -> FrozenSet[ValidationMode]:
        modes: FrozenSet[ValidationMode] = frozenset()
        for validator in self._validators:
            modes = modes | validator.supported_modes()
        return modes

    def priority(self) -> int:
        if not self._validators:
            return DEFAULT_PRIORITY
        return min(v.priority() for v in self._validators)

    def __repr__(self) -> str:
        return f"CompositeValidator(name={self._name!r}, validators={len(self._validators)})"
