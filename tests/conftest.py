"""
pipecheck Test Configuration and Fixtures

Factories for steps, pipelines and clusters, plus the reference
configurations used across the unit tests.
"""

import pytest
from typing import Dict, List, Optional

from pipecheck.core.enums import StepKind
from pipecheck.core.models import (
    ClusterConfig,
    KafkaInputDefinition,
    OutputTarget,
    PipelineConfig,
    RetryPolicy,
    StepConfig,
)


def build_step(
    step_id: str,
    kind: Optional[StepKind] = StepKind.PROCESSOR,
    outputs: Optional[Dict[str, OutputTarget]] = None,
    listen: Optional[List[str]] = None,
    processor: str = "module:Processor",
    description: Optional[str] = "test step",
    **kwargs,
) -> StepConfig:
    """StepConfig with sensible defaults."""
    kafka_inputs = [KafkaInputDefinition(listen_topics=listen)] if listen else []
    return StepConfig(
        step_id=step_id,
        kind=kind,
        processor=processor,
        description=description,
        outputs=outputs or {},
        kafka_inputs=kafka_inputs,
        **kwargs,
    )


def chain(*step_ids: str) -> Dict[str, OutputTarget]:
    """Outputs named after their targets: chain("B") -> {"to-B": B}."""
    return {f"to-{step_id}": OutputTarget.to_step(step_id) for step_id in step_ids}


@pytest.fixture
def make_step():
    """Factory fixture for StepConfig."""
    return build_step


@pytest.fixture
def make_pipeline():
    """Factory fixture: make_pipeline("P", step, step, ...)."""
    def _make(name: str, *steps: StepConfig) -> PipelineConfig:
        return PipelineConfig.of(name, steps)
    return _make


@pytest.fixture
def valid_pipeline() -> PipelineConfig:
    """SOURCE -> PROCESSOR -> SINK, free of errors in every mode."""
    return PipelineConfig.of("orders", [
        build_step("extract", StepKind.SOURCE, outputs={"parsed": OutputTarget.to_step("enrich")},
                   processor="parser:Extractor"),
        build_step("enrich", StepKind.PROCESSOR, outputs={"enriched": OutputTarget.to_step("store")},
                   processor="enricher:Enricher"),
        build_step("store", StepKind.SINK, processor="sink:Writer"),
    ])


@pytest.fixture
def loop_pipeline() -> PipelineConfig:
    """Pipeline 'P' with A -> B -> C -> A."""
    return PipelineConfig.of("P", [
        build_step("A", outputs=chain("B")),
        build_step("B", outputs=chain("C")),
        build_step("C", outputs=chain("A")),
    ])


@pytest.fixture
def dangling_pipeline() -> PipelineConfig:
    """Step A routes to a step that does not exist."""
    return PipelineConfig.of("P", [
        build_step("A", StepKind.SOURCE, outputs={"out": OutputTarget.to_step("Z")}),
    ])


def _ingest_enrich(close_loop: bool) -> ClusterConfig:
    ingest = PipelineConfig.of("ingest", [
        build_step(
            "collect",
            outputs={"raw": OutputTarget.to_topic("t1")},
            listen=["t2"] if close_loop else None,
        ),
    ])
    enrich = PipelineConfig.of("enrich", [
        build_step("annotate", outputs={"annotated": OutputTarget.to_topic("t2")}, listen=["t1"]),
    ])
    return ClusterConfig.from_pipelines("c", [ingest, enrich])


@pytest.fixture
def looping_cluster() -> ClusterConfig:
    """ingest -> t1 -> enrich -> t2 -> ingest."""
    return _ingest_enrich(close_loop=True)


@pytest.fixture
def open_cluster() -> ClusterConfig:
    """ingest -> t1 -> enrich; nobody consumes t2."""
    return _ingest_enrich(close_loop=False)


@pytest.fixture
def retry_step():
    """Factory fixture: step with the given retry policy."""
    def _make(max_attempts: int, backoff_ms: int, max_backoff_ms: Optional[int] = None) -> StepConfig:
        return build_step(
            "retrying",
            retry=RetryPolicy(
                max_attempts=max_attempts,
                backoff_ms=backoff_ms,
                max_backoff_ms=max_backoff_ms,
            ),
        )
    return _make


def _document_step(step_id: str, writes: str, listens: str) -> dict:
    return {
        "step_id": step_id,
        "kind": "processor",
        "processor": "module:Processor",
        "description": "test step",
        "kafka_inputs": [{"listen_topics": [listens]}],
        "outputs": {
            "out": {"transport": {"kind": "kafka", "kafka": {"topic": writes}}},
        },
    }


@pytest.fixture
def looping_cluster_document() -> dict:
    """ingest -> t1 -> enrich -> t2 -> ingest, as a parsed document without an index."""
    return {
        "name": "c",
        "pipelines": {
            "ingest": {"name": "ingest", "steps": {"collect": _document_step("collect", "t1", "t2")}},
            "enrich": {"name": "enrich", "steps": {"annotate": _document_step("annotate", "t2", "t1")}},
        },
    }
