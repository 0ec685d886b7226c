"""
validators/taxonomy.py - Validation results and the validator contract

Defines:
- ValidationResult: immutable verdict (errors + warnings), combinable
- RuleValidator: the capability every validator satisfies
- BaseRuleValidator: optional base supplying the default name/modes/priority

Results combine left to right: validity is AND-ed, errors and warnings are
concatenated in order, nothing is dropped or deduplicated.
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import reduce
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
    runtime_checkable,
)
import logging

from ..core.enums import ValidationMode
from ..errors.taxonomy import ErrorCategory, ValidationFailedError

logger = logging.getLogger(__name__)


ALL_MODES: FrozenSet[ValidationMode] = frozenset(ValidationMode)
PRODUCTION_ONLY: FrozenSet[ValidationMode] = frozenset({ValidationMode.PRODUCTION})
DEFAULT_PRIORITY = 100


# =============================================================================
# VALIDATION RESULT
# =============================================================================

@dataclass(frozen=True)
class ValidationResult:
    """
    Verdict of one or more validators.

    `valid` is derived from `errors`, so a result carrying errors is never
    valid. Warnings never affect validity.
    """
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def __post_init__(self):
        # Accept lists from callers but store tuples
        object.__setattr__(self, "errors", tuple(self.errors))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def has_issues(self) -> bool:
        return self.has_errors or self.has_warnings

    def combine(self, other: Optional["ValidationResult"]) -> "ValidationResult":
        """Concatenate errors and warnings, this result first."""
        if other is None:
            return self
        return ValidationResult(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )

    def raise_for_errors(self) -> "ValidationResult":
        """Raise ValidationFailedError if invalid, else return self."""
        if not self.valid:
            raise ValidationFailedError(self)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def success() -> ValidationResult:
    """Valid result with no errors or warnings."""
    return ValidationResult()


def success_with_warnings(warnings: Iterable[str]) -> ValidationResult:
    """Valid result carrying warnings."""
    return ValidationResult(warnings=tuple(warnings))


def failure(
    errors: Union[str, Iterable[str]],
    warnings: Iterable[str] = (),
) -> ValidationResult:
    """Invalid result; a single string counts as one error."""
    if isinstance(errors, str):
        errors = (errors,)
    return ValidationResult(errors=tuple(errors), warnings=tuple(warnings))


def result_of(errors: Sequence[str], warnings: Sequence[str] = ()) -> ValidationResult:
    """Result from collected messages: failure if any error, else success."""
    if errors:
        return failure(errors, warnings)
    if warnings:
        return success_with_warnings(warnings)
    return success()


def combine_all(results: Iterable[Optional[ValidationResult]]) -> ValidationResult:
    """Left fold of combine(), starting from success()."""
    return reduce(lambda acc, r: acc.combine(r), results, success())


# =============================================================================
# VALIDATOR CONTRACT
# =============================================================================

@runtime_checkable
class RuleValidator(Protocol):
    """
    One rule evaluated against one configuration object.

    validate() reports violations as data and never raises for well-typed
    input. Lower priority() runs first inside a composite.
    """

    def validate(self, config: Any) -> ValidationResult:
        ...

    def name(self) -> str:
        ...

    def supported_modes(self) -> FrozenSet[ValidationMode]:
        ...

    def priority(self) -> int:
        ...


class BaseRuleValidator:
    """
    Defaults for rule validators.

    Subclasses set the class attributes and implement validate().
    """

    category: ErrorCategory = ErrorCategory.STRUCTURAL
    modes: FrozenSet[ValidationMode] = PRODUCTION_ONLY
    order: int = DEFAULT_PRIORITY

    def validate(self, config: Any) -> ValidationResult:
        raise NotImplementedError("Subclasses must implement validate()")

    def name(self) -> str:
        return type(self).__name__

    def supported_modes(self) -> FrozenSet[ValidationMode]:
        return self.modes

    def priority(self) -> int:
        return self.order

    def describe(self) -> Dict[str, Any]:
        """Metadata for logs and inspection."""
        return {
            "name": self.name(),
            "category": self.category.value,
            "priority": self.priority(),
            "modes": sorted(m.value for m in self.supported_modes()),
        }

    def __repr__(self) -> str:
        return f"{self.name()}(priority={self.priority()})"
