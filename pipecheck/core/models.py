"""
core/models.py - Pipeline configuration model

Read-only snapshots of pipeline and cluster configuration, as handed over by
the configuration loader. Validators only read these objects.

Fields are deliberately permissive (optional, unconstrained values): a value
that is well-typed but wrong must reach the validators so it can be reported
as a violation instead of failing at parse time.

Topology:
    ClusterConfig -> PipelineConfig -> StepConfig -> OutputTarget
    OutputTarget.target_step_id   intra-pipeline edge
    OutputTarget.transport        endpoint (Kafka topic / gRPC service),
                                  resolved through ClusterConfig.consumption_index
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import StepKind, TransportKind

logger = logging.getLogger(__name__)

DLQ_SUFFIX = ".dlq"


class _Snapshot(BaseModel):
    """Base for immutable configuration snapshots."""
    model_config = ConfigDict(frozen=True)


# =============================================================================
# RETRY
# =============================================================================

class RetryPolicy(_Snapshot):
    """Retry behaviour of a step."""
    max_attempts: int = Field(0, description="Retries after the first failure; 0 disables retry")
    backoff_ms: int = Field(0, description="Initial backoff between attempts")
    max_backoff_ms: Optional[int] = Field(None, description="Upper bound for exponential backoff")


# =============================================================================
# TRANSPORT
# =============================================================================

class KafkaTransportConfig(_Snapshot):
    """Kafka producer settings for an output."""
    topic: Optional[str] = Field(None, description="Target topic")
    partition_key_field: str = "pipedocId"
    compression_type: str = "snappy"
    batch_size: int = 16384
    linger_ms: int = 10
    producer_properties: Dict[str, str] = Field(default_factory=dict)

    @property
    def dlq_topic(self) -> Optional[str]:
        """Dead letter topic, always derived from the main topic."""
        return f"{self.topic}{DLQ_SUFFIX}" if self.topic else None


class GrpcTransportConfig(_Snapshot):
    """gRPC target, by discovery name or explicit address."""
    service_name: Optional[str] = Field(None, description="Service registry name of the target")
    host: Optional[str] = None
    port: Optional[int] = None
    client_properties: Dict[str, str] = Field(default_factory=dict)


class TransportConfig(_Snapshot):
    """Transport of a step or of an output endpoint."""
    kind: TransportKind = TransportKind.INTERNAL
    kafka: Optional[KafkaTransportConfig] = None
    grpc: Optional[GrpcTransportConfig] = None

    @classmethod
    def internal(cls) -> "TransportConfig":
        return cls(kind=TransportKind.INTERNAL)

    @classmethod
    def for_kafka(cls, topic: str, **kwargs) -> "TransportConfig":
        return cls(kind=TransportKind.KAFKA, kafka=KafkaTransportConfig(topic=topic, **kwargs))

    @classmethod
    def for_grpc(
        cls,
        service_name: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> "TransportConfig":
        return cls(
            kind=TransportKind.GRPC,
            grpc=GrpcTransportConfig(service_name=service_name, host=host, port=port),
        )

    def endpoint_key(self) -> Optional[str]:
        """
        Key of the endpoint this transport addresses.

        Returns None for INTERNAL transports and for configs missing the
        fields that identify an endpoint.
        """
        if self.kind == TransportKind.KAFKA:
            if self.kafka and self.kafka.topic and self.kafka.topic.strip():
                return kafka_endpoint(self.kafka.topic)
            return None

        if self.kind == TransportKind.GRPC and self.grpc:
            if self.grpc.service_name and self.grpc.service_name.strip():
                return grpc_endpoint(self.grpc.service_name)
            if self.grpc.host and self.grpc.port is not None:
                return grpc_endpoint(f"{self.grpc.host}:{self.grpc.port}")

        return None


def kafka_endpoint(topic: str) -> str:
    """Endpoint key for a Kafka topic."""
    return f"kafka:{topic}"


def grpc_endpoint(target: str) -> str:
    """Endpoint key for a gRPC service name or host:port."""
    return f"grpc:{target}"


# =============================================================================
# STEPS
# =============================================================================

class KafkaInputDefinition(_Snapshot):
    """Topics a step consumes."""
    listen_topics: List[str] = Field(default_factory=list)
    consumer_group: Optional[str] = None


class OutputTarget(_Snapshot):
    """
    Binding of a named step output.

    Exactly one of target_step_id (intra edge) and transport (inter edge)
    is expected; OutputRoutingValidator reports anything else.
    """
    target_step_id: Optional[str] = Field(None, description="Step in the same pipeline")
    transport: Optional[TransportConfig] = Field(None, description="Endpoint consumed elsewhere")

    @classmethod
    def to_step(cls, step_id: str) -> "OutputTarget":
        return cls(target_step_id=step_id)

    @classmethod
    def to_topic(cls, topic: str) -> "OutputTarget":
        return cls(transport=TransportConfig.for_kafka(topic))

    @classmethod
    def to_service(cls, service_name: str) -> "OutputTarget":
        return cls(transport=TransportConfig.for_grpc(service_name=service_name))

    @property
    def is_intra(self) -> bool:
        return self.target_step_id is not None and self.transport is None

    @property
    def is_inter(self) -> bool:
        return self.transport is not None and self.target_step_id is None

    def endpoint_key(self) -> Optional[str]:
        if self.transport is None:
            return None
        return self.transport.endpoint_key()


class StepConfig(_Snapshot):
    """One processing step."""
    step_id: str = ""
    kind: Optional[StepKind] = None
    processor: str = Field("", description="Processor descriptor, '<module>:<type>'")
    description: Optional[str] = None
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    timeout_ms: Optional[int] = None
    transport: TransportConfig = Field(default_factory=TransportConfig)
    kafka_inputs: List[KafkaInputDefinition] = Field(default_factory=list)
    outputs: Dict[str, OutputTarget] = Field(default_factory=dict)

    def listen_topics(self) -> List[str]:
        """All topics from kafka inputs, in declaration order."""
        return [topic for kafka_input in self.kafka_inputs for topic in kafka_input.listen_topics]

    def consumed_endpoints(self) -> List[str]:
        """Endpoint keys this step consumes, in declaration order, without repeats."""
        endpoints: List[str] = []
        for topic in self.listen_topics():
            if topic and topic.strip():
                endpoints.append(kafka_endpoint(topic))

        own = self.transport.endpoint_key()
        if own:
            endpoints.append(own)

        return list(dict.fromkeys(endpoints))


# =============================================================================
# PIPELINES AND CLUSTERS
# =============================================================================

class PipelineConfig(_Snapshot):
    """
    A named graph of steps.

    Insertion order of `steps` is the canonical traversal order.
    """
    name: str = ""
    steps: Dict[str, Optional[StepConfig]] = Field(default_factory=dict)

    @classmethod
    def of(cls, name: str, steps: Iterable[StepConfig]) -> "PipelineConfig":
        """Build from steps keyed by their own ids."""
        return cls(name=name, steps={step.step_id: step for step in steps})

    def has_step(self, step_id: Optional[str]) -> bool:
        return step_id is not None and self.steps.get(step_id) is not None


class ConsumerRef(_Snapshot):
    """A (pipeline, step) pair consuming an endpoint."""
    pipeline: str
    step_id: str


class ClusterConfig(_Snapshot):
    """
    Named collection of pipelines plus the endpoint consumption index.

    The index is assembled once, across all pipelines, by
    build_consumption_index() when the cluster is created without one
    (constructor, model_validate or from_pipelines). An index passed in
    explicitly is kept as is.
    """
    name: str = ""
    pipelines: Dict[str, Optional[PipelineConfig]] = Field(default_factory=dict)
    consumption_index: Dict[str, List[ConsumerRef]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _index_consumers(self) -> "ClusterConfig":
        if "consumption_index" not in self.model_fields_set:
            # Frozen model: bypass the assignment guard once, at creation
            object.__setattr__(self, "consumption_index", build_consumption_index(self.pipelines))
        return self

    @classmethod
    def from_pipelines(
        cls,
        name: str,
        pipelines: Union[Mapping[str, PipelineConfig], Iterable[PipelineConfig]],
    ) -> "ClusterConfig":
        if isinstance(pipelines, Mapping):
            by_name = dict(pipelines)
        else:
            by_name = {pipeline.name: pipeline for pipeline in pipelines}

        return cls(name=name, pipelines=by_name)

    def consumers_of(self, endpoint: str) -> List[ConsumerRef]:
        return list(self.consumption_index.get(endpoint, []))


def build_consumption_index(
    pipelines: Mapping[str, PipelineConfig],
) -> Dict[str, List[ConsumerRef]]:
    """
    Map every consumed endpoint to the steps consuming it.

    Consumers are listed in pipeline order, then step order, then declaration
    order within the step.
    """
    index: Dict[str, List[ConsumerRef]] = {}

    for pipeline_name, pipeline in pipelines.items():
        if pipeline is None:
            continue
        for step_id, step in pipeline.steps.items():
            if step is None:
                continue
            for endpoint in step.consumed_endpoints():
                index.setdefault(endpoint, []).append(
                    ConsumerRef(pipeline=pipeline_name, step_id=step_id)
                )

    logger.debug(
        f"Consumption index built: {len(index)} endpoints across {len(pipelines)} pipelines"
    )
    return index
