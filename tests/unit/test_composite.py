"""
Unit tests for validators/composite.py

Tests mode selection, priority ordering, folding and crash isolation.
"""

import logging

import pytest

from pipecheck.core.enums import ValidationMode
from pipecheck.validators.composite import CompositeValidator
from pipecheck.validators.taxonomy import (
    ALL_MODES,
    BaseRuleValidator,
    ValidationResult,
    failure,
    success,
    success_with_warnings,
)


class Stub(BaseRuleValidator):
    """Returns a fixed result and records calls."""

    def __init__(self, label, order=100, modes=ALL_MODES, result=None):
        self.label = label
        self.order = order
        self.modes = frozenset(modes)
        self.result = result if result is not None else failure(label)
        self.calls = []

    def name(self):
        return self.label

    def validate(self, config):
        self.calls.append(config)
        return self.result


class Exploding(BaseRuleValidator):
    modes = ALL_MODES

    def validate(self, config):
        raise RuntimeError("kaboom")


PRODUCTION = frozenset({ValidationMode.PRODUCTION})
DESIGN = frozenset({ValidationMode.DESIGN})


class TestSelection:
    """Test validator selection by mode and priority."""

    def test_sorted_by_priority(self):
        """Test lower priority runs first."""
        composite = CompositeValidator("c", [Stub("late", 300), Stub("early", 10), Stub("mid", 100)])
        result = composite.validate("cfg")
        assert result.errors == ("early", "mid", "late")

    def test_ties_keep_registration_order(self):
        composite = CompositeValidator("c", [Stub("b", 50), Stub("a", 50), Stub("first", 1)])
        assert composite.validate("cfg").errors == ("first", "b", "a")

    def test_explicit_order(self):
        """Test sort_by_priority=False keeps registration order."""
        composite = CompositeValidator("c", [Stub("late", 300), Stub("early", 10)], sort_by_priority=False)
        assert composite.validate("cfg").errors == ("late", "early")

    def test_mode_filter(self):
        """Test validators not supporting the mode are skipped."""
        prod = Stub("prod", modes=PRODUCTION)
        design = Stub("design", modes=DESIGN)
        composite = CompositeValidator("c", [prod, design])

        assert composite.validate("cfg", ValidationMode.DESIGN).errors == ("design",)
        assert prod.calls == []
        assert composite.validate("cfg", ValidationMode.TESTING) == success()

    def test_default_mode_is_production(self):
        composite = CompositeValidator("c", [Stub("prod", modes=PRODUCTION), Stub("design", modes=DESIGN)])
        assert composite.validate("cfg").errors == ("prod",)

    def test_selected_validators(self):
        a, b, c = Stub("a", 20, PRODUCTION), Stub("b", 10, DESIGN), Stub("c", 5, ALL_MODES)
        composite = CompositeValidator("c", [a, b, c])
        assert composite.selected_validators(ValidationMode.PRODUCTION) == [c, a]
        assert composite.selected_validators(ValidationMode.DESIGN) == [c, b]


class TestValidate:
    """Test result folding."""

    def test_every_selected_validator_runs(self):
        """Test failures do not stop evaluation."""
        stubs = [Stub("one"), Stub("two", result=success()), Stub("three")]
        result = CompositeValidator("c", stubs).validate("cfg")
        assert all(s.calls == ["cfg"] for s in stubs)
        assert result.errors == ("one", "three")

    def test_warnings_kept(self):
        composite = CompositeValidator("c", [
            Stub("w", result=success_with_warnings(["careful"])),
            Stub("e", result=failure("bad", ["also careful"])),
        ])
        result = composite.validate("cfg")
        assert result.errors == ("bad",)
        assert result.warnings == ("careful", "also careful")

    def test_empty_composite_succeeds(self):
        assert CompositeValidator("c").validate("cfg") == success()

    def test_null_config(self):
        """Test null config is one error and no rule runs."""
        stub = Stub("never")
        result = CompositeValidator("c", [stub]).validate(None)
        assert result.errors == ("Configuration cannot be null",)
        assert stub.calls == []

    def test_exception_becomes_error(self, caplog):
        """Test a crashing validator is reported and others still run."""
        after = Stub("after", order=200)
        composite = CompositeValidator("c", [Exploding(), after])

        with caplog.at_level(logging.ERROR, logger="pipecheck"):
            result = composite.validate("cfg")

        assert result.errors == (
            "Validator 'Exploding' failed: RuntimeError: kaboom",
            "after",
        )
        assert "Exploding" in caplog.text

    def test_deterministic(self):
        composite = CompositeValidator("c", [Stub("a", 2), Stub("b", 1)])
        assert composite.validate("cfg") == composite.validate("cfg")


class TestNesting:
    """Test composites as rule validators."""

    def test_capability(self):
        composite = CompositeValidator("outer", [Stub("a", 30, PRODUCTION), Stub("b", 20, DESIGN)])
        assert composite.name() == "outer"
        assert composite.supported_modes() == PRODUCTION | DESIGN
        assert composite.priority() == 20

    def test_empty_capability(self):
        composite = CompositeValidator("empty")
        assert composite.supported_modes() == frozenset()
        assert composite.priority() == 100

    def test_nested_composite_receives_mode(self):
        """Test the outer mode is forwarded to the inner composite."""
        inner = CompositeValidator("inner", [Stub("inner-design", modes=DESIGN), Stub("inner-prod", modes=PRODUCTION)])
        outer = CompositeValidator("outer", [inner, Stub("outer", order=500)])

        result = outer.validate("cfg", ValidationMode.DESIGN)

        assert result.errors == ("inner-design", "outer")

    def test_add_validator_chains(self):
        composite = CompositeValidator("c")
        assert composite.add_validator(Stub("a")).add_validator(Stub("b")) is composite
        assert [v.name() for v in composite.validators] == ["a", "b"]

    def test_validators_is_a_copy(self):
        composite = CompositeValidator("c", [Stub("a")])
        assert isinstance(composite.validators, tuple)
