"""
core/enums.py - Pipeline configuration enums

Closed value sets shared by the configuration model and the validators.
"""

from __future__ import annotations
from enum import Enum


class StepKind(Enum):
    """Role of a step inside its pipeline."""
    SOURCE = "source"          # Entry point, produces data, consumes nothing
    PROCESSOR = "processor"    # Consumes and produces
    SINK = "sink"              # Terminal, consumes only


class TransportKind(Enum):
    """How data reaches a step or an output endpoint."""
    INTERNAL = "internal"      # In-process call by the engine
    GRPC = "grpc"
    KAFKA = "kafka"


class ValidationMode(Enum):
    """
    Operating context of a validation call.

    PRODUCTION runs every rule. DESIGN and TESTING only run rules that are
    safe for incomplete drafts.
    """
    PRODUCTION = "production"
    DESIGN = "design"
    TESTING = "testing"
