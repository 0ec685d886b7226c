"""
validators/referential.py - Reference rules

Dangling step references and unroutable outputs.
"""

from __future__ import annotations
from typing import Collection, Iterator, List, Optional, Tuple
import logging

from ..core.enums import TransportKind
from ..core.models import ClusterConfig, OutputTarget, PipelineConfig
from ..errors.taxonomy import ErrorCategory
from .structural import NULL_CLUSTER, NULL_PIPELINE, step_prefix
from .taxonomy import (
    ALL_MODES,
    BaseRuleValidator,
    ValidationResult,
    failure,
    result_of,
)

logger = logging.getLogger(__name__)


def iter_outputs(pipeline: PipelineConfig) -> Iterator[Tuple[str, str, OutputTarget]]:
    """(step_id, output_name, target) in canonical order, skipping null steps."""
    for step_id, step in pipeline.steps.items():
        if step is None:
            continue
        for output_name, target in step.outputs.items():
            yield step_id, output_name, target


class StepReferenceValidator(BaseRuleValidator):
    """
    Every intra-pipeline output names a step of the same pipeline.

    Runs in every mode: a dangling reference is never a valid draft.
    """

    category = ErrorCategory.REFERENTIAL
    modes = ALL_MODES
    order = 100

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)

        errors: List[str] = []

        for step_id, output_name, target in iter_outputs(config):
            if target is None or target.target_step_id is None:
                continue
            prefix = step_prefix(step_id)
            if not target.target_step_id.strip():
                errors.append(prefix + f"Output '{output_name}' has an empty target step")
            elif not config.has_step(target.target_step_id):
                errors.append(
                    prefix + f"Output '{output_name}' references unknown step '{target.target_step_id}'"
                )

        return result_of(errors)


class OutputRoutingValidator(BaseRuleValidator):
    """
    Every output resolves to a step or to an endpoint.

    With `known_endpoints` (endpoint keys, e.g. the keys of a cluster
    consumption index) an endpoint nobody consumes is an error too.
    """

    category = ErrorCategory.REFERENTIAL
    order = 400

    def __init__(self, known_endpoints: Optional[Collection[str]] = None):
        self.known_endpoints = frozenset(known_endpoints) if known_endpoints is not None else None

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)

        errors: List[str] = []

        for step_id, output_name, target in iter_outputs(config):
            message = self._route_error(config, output_name, target)
            if message:
                errors.append(step_prefix(step_id) + message)

        return result_of(errors)

    def _route_error(
        self,
        pipeline: PipelineConfig,
        output_name: str,
        target: Optional[OutputTarget],
    ) -> Optional[str]:
        label = f"Output '{output_name}'"

        if target is None or (target.target_step_id is None and target.transport is None):
            return f"{label} has no target step or transport"

        if target.target_step_id is not None and target.transport is not None:
            return f"{label} must target either a step or a transport, not both"

        if target.target_step_id is not None:
            if not pipeline.has_step(target.target_step_id):
                return f"{label} cannot be routed: unknown step '{target.target_step_id}'"
            return None

        if target.transport.kind == TransportKind.INTERNAL:
            return f"{label} uses INTERNAL transport but names no target step"

        endpoint = target.endpoint_key()
        if endpoint is None:
            return f"{label} transport does not identify an endpoint"

        if self.known_endpoints is not None and endpoint not in self.known_endpoints:
            return f"{label} endpoint '{endpoint}' is not consumed by any step"

        return None


class ClusterOutputRoutingValidator(BaseRuleValidator):
    """Every endpoint written in a cluster is consumed somewhere in it."""

    category = ErrorCategory.REFERENTIAL
    order = 400

    def validate(self, config: Optional[ClusterConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_CLUSTER)

        errors: List[str] = []

        for pipeline_name, pipeline in config.pipelines.items():
            if pipeline is None:
                continue
            for step_id, output_name, target in iter_outputs(pipeline):
                if target is None or not target.is_inter:
                    continue
                endpoint = target.endpoint_key()
                if endpoint and not config.consumers_of(endpoint):
                    errors.append(
                        f"Pipeline '{pipeline_name}': " + step_prefix(step_id)
                        + f"Output '{output_name}' endpoint '{endpoint}' is not consumed by any step"
                    )

        return result_of(errors)
