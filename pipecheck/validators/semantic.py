"""
validators/semantic.py - Value and shape rules

ProcessorInfoValidator, RetryConfigValidator, TransportConfigValidator and
KafkaTopicNamingValidator. Thresholds come from ValidationSettings.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import logging
import re

from ..bootstrap.config import ValidationSettings
from ..core.enums import TransportKind
from ..core.models import DLQ_SUFFIX, PipelineConfig, StepConfig, TransportConfig
from ..errors.taxonomy import ErrorCategory
from .structural import NULL_PIPELINE, is_blank, step_prefix
from .taxonomy import BaseRuleValidator, ValidationResult, failure, result_of

logger = logging.getLogger(__name__)

MAX_PORT = 65535
TOPIC_CHARS = re.compile(r"^[A-Za-z0-9._-]+\Z")


# =============================================================================
# PROCESSOR INFO
# =============================================================================

class ProcessorInfoValidator(BaseRuleValidator):
    """Each step names its processor as '<module>:<type>'."""

    category = ErrorCategory.SEMANTIC
    order = 150

    def __init__(self, settings: Optional[ValidationSettings] = None):
        self.settings = settings or ValidationSettings()
        self._pattern = re.compile(self.settings.processor_pattern)

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)

        errors: List[str] = []

        for step_id, step in config.steps.items():
            if step is None:
                continue
            prefix = step_prefix(step_id)
            if is_blank(step.processor):
                errors.append(prefix + "Processor descriptor must not be empty")
            elif not self._pattern.fullmatch(step.processor):
                errors.append(
                    prefix + f"Processor descriptor '{step.processor}' must have the form '<module>:<type>'"
                )

        return result_of(errors)


# =============================================================================
# RETRY
# =============================================================================

class RetryConfigValidator(BaseRuleValidator):
    """
    Retry policy and timeout of each step.

    Errors:
        max_attempts < 0
        attempts > 0 with backoff <= 0, backoff above the ceiling,
        or max_backoff_ms below backoff_ms
        timeout_ms <= 0

    Warnings:
        attempts, backoff or timeout above the advisory thresholds

    With max_attempts == 0 retry is disabled and backoff is not checked.
    """

    category = ErrorCategory.SEMANTIC
    order = 200

    def __init__(self, settings: Optional[ValidationSettings] = None):
        self.settings = settings or ValidationSettings()

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)

        errors: List[str] = []
        warnings: List[str] = []

        for step_id, step in config.steps.items():
            if step is None:
                continue
            self._validate_retry(step_prefix(step_id), step, errors, warnings)
            self._validate_timeout(step_prefix(step_id), step, errors, warnings)

        return result_of(errors, warnings)

    def _validate_retry(
        self,
        prefix: str,
        step: StepConfig,
        errors: List[str],
        warnings: List[str],
    ) -> None:
        retry = step.retry
        s = self.settings

        if retry.max_attempts < 0:
            errors.append(prefix + f"max attempts must be >= 0, got {retry.max_attempts}")
            return

        if retry.max_attempts == 0:
            return

        if retry.backoff_ms <= 0:
            errors.append(prefix + "backoff duration must be > 0 when attempts > 0")
        elif retry.backoff_ms > s.max_backoff_ceiling_ms:
            errors.append(
                prefix + f"backoff {retry.backoff_ms}ms exceeds maximum of {s.max_backoff_ceiling_ms}ms"
            )
        elif retry.backoff_ms > s.backoff_warning_ms:
            warnings.append(
                prefix + f"backoff {retry.backoff_ms}ms is longer than {s.backoff_warning_ms}ms"
            )

        if retry.max_backoff_ms is not None and retry.max_backoff_ms < retry.backoff_ms:
            errors.append(
                prefix + f"max backoff {retry.max_backoff_ms}ms must be >= backoff {retry.backoff_ms}ms"
            )

        if retry.max_attempts > s.max_attempts_warning:
            warnings.append(
                prefix + f"max attempts {retry.max_attempts} is unusually high (> {s.max_attempts_warning})"
            )

    def _validate_timeout(
        self,
        prefix: str,
        step: StepConfig,
        errors: List[str],
        warnings: List[str],
    ) -> None:
        if step.timeout_ms is None:
            return
        if step.timeout_ms <= 0:
            errors.append(prefix + f"timeout must be > 0, got {step.timeout_ms}ms")
        elif step.timeout_ms > self.settings.step_timeout_warning_ms:
            warnings.append(
                prefix + f"timeout {step.timeout_ms}ms is longer than {self.settings.step_timeout_warning_ms}ms"
            )


# =============================================================================
# TRANSPORT
# =============================================================================

class TransportConfigValidator(BaseRuleValidator):
    """
    Kind-specific fields of the step transport and of every output transport.

    KAFKA needs a topic; GRPC needs a service name, or a host and a port
    in 1..65535. Sections that do not match the kind are ignored with a
    warning.
    """

    category = ErrorCategory.SEMANTIC
    order = 250

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)

        errors: List[str] = []
        warnings: List[str] = []

        for step_id, step in config.steps.items():
            if step is None:
                continue
            prefix = step_prefix(step_id)
            self._check(prefix + "Transport", step.transport, errors, warnings)

            for output_name, target in step.outputs.items():
                if target is None or target.transport is None:
                    continue
                self._check(
                    prefix + f"Output '{output_name}' transport",
                    target.transport,
                    errors,
                    warnings,
                )

        return result_of(errors, warnings)

    def _check(
        self,
        label: str,
        transport: TransportConfig,
        errors: List[str],
        warnings: List[str],
    ) -> None:
        kind = transport.kind

        if not isinstance(kind, TransportKind):
            errors.append(f"{label} has unknown kind '{kind}'")
            return

        if kind == TransportKind.KAFKA:
            kafka = transport.kafka
            if kafka is None or is_blank(kafka.topic):
                errors.append(f"{label}: KAFKA transport requires a topic")
            else:
                if kafka.batch_size <= 0:
                    errors.append(f"{label}: batch size must be > 0, got {kafka.batch_size}")
                if kafka.linger_ms < 0:
                    errors.append(f"{label}: linger must be >= 0, got {kafka.linger_ms}ms")
            if transport.grpc is not None:
                warnings.append(f"{label}: gRPC settings are ignored for KAFKA transport")

        elif kind == TransportKind.GRPC:
            grpc = transport.grpc
            if grpc is None:
                errors.append(f"{label}: GRPC transport requires a service name or host and port")
            else:
                if is_blank(grpc.service_name) and (is_blank(grpc.host) or grpc.port is None):
                    errors.append(f"{label}: GRPC transport requires a service name or host and port")
                if grpc.port is not None and not 1 <= grpc.port <= MAX_PORT:
                    errors.append(f"{label}: port {grpc.port} is out of range 1..{MAX_PORT}")
            if transport.kafka is not None:
                warnings.append(f"{label}: Kafka settings are ignored for GRPC transport")

        else:
            if transport.kafka is not None or transport.grpc is not None:
                warnings.append(f"{label}: transport settings are ignored for INTERNAL transport")


# =============================================================================
# KAFKA TOPIC NAMING
# =============================================================================

_PLACEHOLDER = re.compile(r"(\{pipeline\}|\{step\}|\{cluster\})")
_SEGMENT = r"[A-Za-z0-9_-]+"


def compile_topic_template(template: str, cluster_name: Optional[str] = None) -> re.Pattern[str]:
    """
    Regex for a topic template such as '{pipeline}.{step}.input'.

    {pipeline} and {step} become named groups; {cluster} matches the given
    cluster name, or any segment when none is given.
    """
    parts = []
    seen = set()

    for token in _PLACEHOLDER.split(template):
        if token == "{cluster}":
            parts.append(re.escape(cluster_name) if cluster_name else _SEGMENT)
        elif token in ("{pipeline}", "{step}"):
            group = token[1:-1]
            parts.append(f"(?P={group})" if group in seen else f"(?P<{group}>{_SEGMENT})")
            seen.add(group)
        else:
            parts.append(re.escape(token))

    return re.compile("^" + "".join(parts) + r"\Z")


class KafkaTopicNamingValidator(BaseRuleValidator):
    """
    Kafka topics follow the configured naming convention.

    Covers listen topics, output topics and the step's own Kafka transport.
    Whitelisted topics skip the convention but not the character and length
    checks. A listen topic that is another step's input topic in the same
    pipeline is reported as a warning.
    """

    category = ErrorCategory.SEMANTIC
    order = 450

    def __init__(
        self,
        settings: Optional[ValidationSettings] = None,
        cluster_name: Optional[str] = None,
    ):
        self.settings = settings or ValidationSettings()
        self.cluster_name = cluster_name
        self._template = compile_topic_template(self.settings.topic_template, cluster_name)
        self._whitelist = frozenset(self.settings.topic_whitelist)

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)

        errors: List[str] = []
        warnings: List[str] = []

        for step_id, step in config.steps.items():
            if step is None:
                continue
            prefix = step_prefix(step_id)

            for label, topic in self._topics_of(step):
                errors.extend(prefix + message for message in self._check(label, topic))

            for topic in step.listen_topics():
                owner = self._owning_step(config, topic)
                if owner and owner != step_id:
                    warnings.append(
                        prefix + f"Listen topic '{topic}' is the input topic of step '{owner}'; "
                        f"consider an intra-pipeline output"
                    )

        return result_of(errors, warnings)

    def _topics_of(self, step: StepConfig) -> List[Tuple[str, str]]:
        topics: List[Tuple[str, str]] = []

        for topic in step.listen_topics():
            topics.append(("Listen topic", topic))

        if step.transport.kind == TransportKind.KAFKA and step.transport.kafka:
            topics.append(("Transport topic", step.transport.kafka.topic))

        for output_name, target in step.outputs.items():
            if target is None or target.transport is None:
                continue
            transport = target.transport
            if transport.kind == TransportKind.KAFKA and transport.kafka:
                topics.append((f"Output '{output_name}' topic", transport.kafka.topic))

        # Blank topics are TransportConfigValidator's concern
        return [(label, topic) for label, topic in topics if not is_blank(topic)]

    def _check(self, label: str, topic: str) -> List[str]:
        problems = []
        s = self.settings

        if not TOPIC_CHARS.fullmatch(topic):
            problems.append(
                f"{label} '{topic}' contains invalid characters (allowed: letters, digits, '.', '_', '-')"
            )
        if len(topic) > s.max_topic_length:
            problems.append(f"{label} '{topic}' exceeds {s.max_topic_length} characters")

        if problems or topic in self._whitelist:
            return problems

        if self._match(topic) is None:
            problems.append(f"{label} '{topic}' does not follow naming convention '{s.topic_template}'")

        return problems

    def _match(self, topic: str) -> Optional[Dict[str, str]]:
        if self.settings.allow_dlq_topics and topic.endswith(DLQ_SUFFIX):
            topic = topic[: -len(DLQ_SUFFIX)]
        match = self._template.fullmatch(topic)
        return match.groupdict() if match else None

    def _owning_step(self, pipeline: PipelineConfig, topic: str) -> Optional[str]:
        groups = self._match(topic)
        if not groups or groups.get("pipeline") != pipeline.name:
            return None
        step_id = groups.get("step")
        return step_id if pipeline.has_step(step_id) else None
