"""
core/ - Configuration model

Immutable pipeline and cluster snapshots consumed by the validators.
"""

from .enums import (
    StepKind,
    TransportKind,
    ValidationMode,
)
from .models import (
    RetryPolicy,
    KafkaTransportConfig,
    GrpcTransportConfig,
    TransportConfig,
    KafkaInputDefinition,
    OutputTarget,
    StepConfig,
    PipelineConfig,
    ConsumerRef,
    ClusterConfig,
    build_consumption_index,
    kafka_endpoint,
    grpc_endpoint,
)

__all__ = [
    # Enums
    "StepKind",
    "TransportKind",
    "ValidationMode",
    # Models
    "RetryPolicy",
    "KafkaTransportConfig",
    "GrpcTransportConfig",
    "TransportConfig",
    "KafkaInputDefinition",
    "OutputTarget",
    "StepConfig",
    "PipelineConfig",
    "ConsumerRef",
    "ClusterConfig",
    "build_consumption_index",
    "kafka_endpoint",
    "grpc_endpoint",
]
