"""
validators/ - Rule validators, loop detectors and composites

Provides:
- ValidationResult and the RuleValidator capability
- Structural, referential and semantic rules
- Intra- and inter-pipeline loop detectors
- CompositeValidator and its builder
- Default validator sets (builtin)
"""

from .taxonomy import (
    ALL_MODES,
    PRODUCTION_ONLY,
    DEFAULT_PRIORITY,
    ValidationResult,
    RuleValidator,
    BaseRuleValidator,
    success,
    success_with_warnings,
    failure,
    result_of,
    combine_all,
)
from .structural import (
    RequiredFieldsValidator,
    NamingConventionValidator,
    StepTypeValidator,
    ClusterRequiredFieldsValidator,
)
from .referential import (
    StepReferenceValidator,
    OutputRoutingValidator,
    ClusterOutputRoutingValidator,
)
from .semantic import (
    ProcessorInfoValidator,
    RetryConfigValidator,
    TransportConfigValidator,
    KafkaTopicNamingValidator,
    compile_topic_template,
)
from .topology import (
    find_first_cycle,
    build_step_graph,
    build_pipeline_graph,
    IntraPipelineLoopValidator,
    InterPipelineLoopValidator,
)
from .composite import (
    CompositeValidator,
)
from .builder import (
    CompositeValidatorBuilder,
    EmptyValidator,
    FailingValidator,
)
from .builtin import (
    get_pipeline_validators,
    get_cluster_validators,
    create_pipeline_validator,
    create_cluster_validator,
    validate_cluster,
)

__all__ = [
    # Taxonomy
    "ALL_MODES",
    "PRODUCTION_ONLY",
    "DEFAULT_PRIORITY",
    "ValidationResult",
    "RuleValidator",
    "BaseRuleValidator",
    "success",
    "success_with_warnings",
    "failure",
    "result_of",
    "combine_all",
    # Rules
    "RequiredFieldsValidator",
    "NamingConventionValidator",
    "StepTypeValidator",
    "ClusterRequiredFieldsValidator",
    "StepReferenceValidator",
    "OutputRoutingValidator",
    "ClusterOutputRoutingValidator",
    "ProcessorInfoValidator",
    "RetryConfigValidator",
    "TransportConfigValidator",
    "KafkaTopicNamingValidator",
    "compile_topic_template",
    # Topology
    "find_first_cycle",
    "build_step_graph",
    "build_pipeline_graph",
    "IntraPipelineLoopValidator",
    "InterPipelineLoopValidator",
    # Composition
    "CompositeValidator",
    "CompositeValidatorBuilder",
    "EmptyValidator",
    "FailingValidator",
    # Builtin
    "get_pipeline_validators",
    "get_cluster_validators",
    "create_pipeline_validator",
    "create_cluster_validator",
    "validate_cluster",
]
