"""
validators/structural.py - Structural rules

RequiredFieldsValidator, NamingConventionValidator and StepTypeValidator check
the shape of a single pipeline; ClusterRequiredFieldsValidator checks the
cluster envelope.
"""

from __future__ import annotations
from typing import List, Optional
import logging
import re

from ..bootstrap.config import ValidationSettings
from ..core.enums import StepKind
from ..core.models import ClusterConfig, PipelineConfig, StepConfig
from ..errors.taxonomy import ErrorCategory
from .taxonomy import (
    ALL_MODES,
    BaseRuleValidator,
    ValidationResult,
    failure,
    result_of,
)

logger = logging.getLogger(__name__)

NULL_PIPELINE = "Pipeline configuration cannot be null"
NULL_CLUSTER = "Cluster configuration cannot be null"


def step_prefix(step_id: str) -> str:
    return f"Step '{step_id}': "


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


# =============================================================================
# REQUIRED FIELDS
# =============================================================================

class RequiredFieldsValidator(BaseRuleValidator):
    """
    Fields every pipeline needs, even as a draft.

    Runs in every mode.
    """

    category = ErrorCategory.STRUCTURAL
    modes = ALL_MODES
    order = 10

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)

        errors: List[str] = []
        warnings: List[str] = []

        if is_blank(config.name):
            errors.append("Pipeline name must not be empty")

        if not config.steps:
            errors.append("Pipeline must contain at least one step")

        for step_key, step in config.steps.items():
            self._validate_step(step_key, step, errors, warnings)

        return result_of(errors, warnings)

    def _validate_step(
        self,
        step_key: str,
        step: Optional[StepConfig],
        errors: List[str],
        warnings: List[str],
    ) -> None:
        prefix = step_prefix(step_key)

        if step is None:
            errors.append(prefix + "Step configuration cannot be null")
            return

        if is_blank(step.step_id):
            errors.append(prefix + "Step id must not be empty")
        elif step.step_id != step_key:
            errors.append(prefix + f"Step id '{step.step_id}' does not match its key")

        if step.kind is None:
            errors.append(prefix + "Step kind is required")

        if is_blank(step.description):
            warnings.append(prefix + "Step should have a meaningful description")


# =============================================================================
# NAMING CONVENTION
# =============================================================================

class NamingConventionValidator(BaseRuleValidator):
    """Pipeline names, step ids and output names follow the identifier pattern."""

    category = ErrorCategory.SEMANTIC
    order = 50

    def __init__(self, settings: Optional[ValidationSettings] = None):
        self.settings = settings or ValidationSettings()
        self._pattern = re.compile(self.settings.name_pattern)

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)

        errors: List[str] = []

        if not is_blank(config.name):
            errors.extend(self._check("Pipeline name", config.name))

        for step_key, step in config.steps.items():
            if not is_blank(step_key):
                errors.extend(self._check("Step id", step_key))
            if step is None:
                continue
            for output_name in step.outputs:
                errors.extend(
                    step_prefix(step_key) + message
                    for message in self._check("Output name", output_name)
                )

        return result_of(errors)

    def _check(self, label: str, value: str) -> List[str]:
        problems = []
        if "." in value:
            problems.append(f"{label} '{value}' must not contain '.' (reserved as topic delimiter)")
        elif not self._pattern.fullmatch(value):
            problems.append(
                f"{label} '{value}' must start with a letter and contain only "
                f"letters, digits, '-' or '_'"
            )
        if len(value) > self.settings.max_name_length:
            problems.append(
                f"{label} '{value}' exceeds {self.settings.max_name_length} characters"
            )
        return problems


# =============================================================================
# STEP TYPE
# =============================================================================

class StepTypeValidator(BaseRuleValidator):
    """
    Step kind constrains the step's shape.

    SOURCE: no inbound consumption, at least one output.
    SINK: no outputs.
    PROCESSOR: expected to have both; missing either is a warning.
    """

    category = ErrorCategory.STRUCTURAL
    order = 300

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)
        if not config.steps:
            return result_of([])

        errors: List[str] = []
        warnings: List[str] = []
        source_count = 0
        sink_count = 0

        for step_id, step in config.steps.items():
            if step is None or step.kind is None:
                continue  # RequiredFieldsValidator reports these

            if step.kind == StepKind.SOURCE:
                source_count += 1
            elif step.kind == StepKind.SINK:
                sink_count += 1

            self._validate_constraints(step_id, step, errors, warnings)

        if source_count == 0:
            warnings.append("Pipeline has no SOURCE step - data must come from external sources")
        elif source_count > 1:
            warnings.append(
                f"Pipeline has multiple SOURCE steps ({source_count}) - consider if this is intended"
            )
        if sink_count == 0:
            warnings.append("Pipeline has no SINK step - ensure data has a destination")

        return result_of(errors, warnings)

    def _validate_constraints(
        self,
        step_id: str,
        step: StepConfig,
        errors: List[str],
        warnings: List[str],
    ) -> None:
        prefix = step_prefix(step_id)
        has_inputs = bool(step.listen_topics())
        has_outputs = bool(step.outputs)

        if step.kind == StepKind.SOURCE:
            if has_inputs:
                errors.append(prefix + "SOURCE steps must not declare Kafka inputs")
            if not has_outputs:
                errors.append(prefix + "SOURCE steps must have at least one output")

        elif step.kind == StepKind.SINK:
            if has_outputs:
                errors.append(prefix + "SINK steps must not have outputs")
            if not has_inputs:
                warnings.append(prefix + "SINK steps typically have inputs to process")

        elif step.kind == StepKind.PROCESSOR:
            if not has_inputs:
                warnings.append(prefix + "PROCESSOR steps typically have inputs")
            if not has_outputs:
                warnings.append(prefix + "PROCESSOR steps typically have outputs")


# =============================================================================
# CLUSTER REQUIRED FIELDS
# =============================================================================

class ClusterRequiredFieldsValidator(BaseRuleValidator):
    """Cluster name is set and pipelines are keyed by their own names."""

    category = ErrorCategory.STRUCTURAL
    modes = ALL_MODES
    order = 10

    def validate(self, config: Optional[ClusterConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_CLUSTER)

        errors: List[str] = []
        warnings: List[str] = []

        if is_blank(config.name):
            errors.append("Cluster name must not be empty")

        if not config.pipelines:
            warnings.append("Cluster contains no pipelines")

        for key, pipeline in config.pipelines.items():
            if pipeline is None:
                errors.append(f"Pipeline '{key}': Pipeline configuration cannot be null")
            elif pipeline.name != key:
                errors.append(f"Pipeline '{key}': Pipeline name '{pipeline.name}' does not match its key")

        return result_of(errors, warnings)
