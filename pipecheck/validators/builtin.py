"""
validators/builtin.py - Default validator sets

Registration order below is the order validators were historically wired in;
the composite re-sorts by priority unless built with explicit order.
"""

from __future__ import annotations
from typing import List, Optional
import logging

from ..bootstrap.config import ValidationSettings
from ..core.enums import ValidationMode
from ..core.models import ClusterConfig
from .builder import CompositeValidatorBuilder
from .composite import CompositeValidator
from .referential import (
    ClusterOutputRoutingValidator,
    OutputRoutingValidator,
    StepReferenceValidator,
)
from .semantic import (
    KafkaTopicNamingValidator,
    ProcessorInfoValidator,
    RetryConfigValidator,
    TransportConfigValidator,
)
from .structural import (
    NULL_CLUSTER,
    ClusterRequiredFieldsValidator,
    NamingConventionValidator,
    RequiredFieldsValidator,
    StepTypeValidator,
)
from .taxonomy import RuleValidator, ValidationResult, failure
from .topology import InterPipelineLoopValidator, IntraPipelineLoopValidator

logger = logging.getLogger(__name__)


# =============================================================================
# VALIDATOR SETS
# =============================================================================

def get_pipeline_validators(
    settings: Optional[ValidationSettings] = None,
    cluster_name: Optional[str] = None,
) -> List[RuleValidator]:
    """Rules applied to a single PipelineConfig."""
    settings = settings or ValidationSettings()
    return [
        RequiredFieldsValidator(),
        NamingConventionValidator(settings),
        StepReferenceValidator(),
        ProcessorInfoValidator(settings),
        RetryConfigValidator(settings),
        TransportConfigValidator(),
        OutputRoutingValidator(),
        KafkaTopicNamingValidator(settings, cluster_name=cluster_name),
        IntraPipelineLoopValidator(),
        StepTypeValidator(),
    ]


def get_cluster_validators() -> List[RuleValidator]:
    """Rules applied to a ClusterConfig as a whole."""
    return [
        ClusterRequiredFieldsValidator(),
        ClusterOutputRoutingValidator(),
        InterPipelineLoopValidator(),
    ]


def create_pipeline_validator(
    settings: Optional[ValidationSettings] = None,
    cluster_name: Optional[str] = None,
) -> CompositeValidator:
    return (
        CompositeValidatorBuilder.create()
        .with_name("PipelineValidator")
        .add_validators(get_pipeline_validators(settings, cluster_name=cluster_name))
        .build()
    )


def create_cluster_validator() -> CompositeValidator:
    return (
        CompositeValidatorBuilder.create()
        .with_name("ClusterValidator")
        .add_validators(get_cluster_validators())
        .build()
    )


# =============================================================================
# CLUSTER ENTRY POINT
# =============================================================================

def validate_cluster(
    cluster: Optional[ClusterConfig],
    mode: ValidationMode = ValidationMode.PRODUCTION,
    settings: Optional[ValidationSettings] = None,
) -> ValidationResult:
    """
    Validate a cluster and every pipeline in it.

    Cluster-level results come first, then each pipeline's results in
    cluster order, prefixed with "Pipeline '<name>': ". Null pipelines are
    reported by the cluster rules and skipped here.
    """
    if cluster is None:
        return failure(NULL_CLUSTER)

    result = create_cluster_validator().validate(cluster, mode)
    pipeline_validator = create_pipeline_validator(settings, cluster_name=cluster.name)

    for key, pipeline in cluster.pipelines.items():
        if pipeline is None:
            continue
        outcome = pipeline_validator.validate(pipeline, mode)
        prefix = f"Pipeline '{key}': "
        result = result.combine(ValidationResult(
            errors=[prefix + e for e in outcome.errors],
            warnings=[prefix + w for w in outcome.warnings],
        ))

    logger.info(
        f"Cluster '{cluster.name}' ({mode.value}): valid={result.valid}, "
        f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
    )
    return result
