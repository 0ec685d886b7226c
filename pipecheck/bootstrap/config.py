"""
bootstrap/config.py - Validation configuration

Provides configuration loading from files, environment variables, and defaults.

The validators never read configuration on their own: an application loads a
PipecheckConfig once and passes its ValidationSettings to the validator
factories in pipecheck.validators.builtin.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional
from pathlib import Path
import os
import json
import logging

logger = logging.getLogger(__name__)


DEFAULT_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_-]*$"
DEFAULT_PROCESSOR_PATTERN = r"^[A-Za-z0-9_.-]+:[A-Za-z0-9_.-]+$"
DEFAULT_TOPIC_TEMPLATE = "{pipeline}.{step}.input"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class ValidationSettings:
    """Thresholds and patterns used by the rule validators."""

    # Naming
    name_pattern: str = DEFAULT_NAME_PATTERN
    max_name_length: int = 64

    # Processor descriptors
    processor_pattern: str = DEFAULT_PROCESSOR_PATTERN

    # Retry
    max_backoff_ceiling_ms: int = 300_000     # Hard limit, 5 minutes
    backoff_warning_ms: int = 60_000          # Advisory, 1 minute
    max_attempts_warning: int = 10
    step_timeout_warning_ms: int = 300_000

    # Kafka topics
    topic_template: str = DEFAULT_TOPIC_TEMPLATE
    topic_whitelist: List[str] = field(default_factory=list)
    max_topic_length: int = 249
    allow_dlq_topics: bool = True

    @classmethod
    def from_env(cls) -> "ValidationSettings":
        return cls(
            name_pattern=os.getenv("PIPECHECK_NAME_PATTERN", DEFAULT_NAME_PATTERN),
            max_name_length=int(os.getenv("PIPECHECK_MAX_NAME_LENGTH", "64")),
            processor_pattern=os.getenv("PIPECHECK_PROCESSOR_PATTERN", DEFAULT_PROCESSOR_PATTERN),
            max_backoff_ceiling_ms=int(os.getenv("PIPECHECK_MAX_BACKOFF_MS", "300000")),
            backoff_warning_ms=int(os.getenv("PIPECHECK_BACKOFF_WARNING_MS", "60000")),
            max_attempts_warning=int(os.getenv("PIPECHECK_MAX_ATTEMPTS_WARNING", "10")),
            step_timeout_warning_ms=int(os.getenv("PIPECHECK_STEP_TIMEOUT_WARNING_MS", "300000")),
            topic_template=os.getenv("PIPECHECK_TOPIC_TEMPLATE", DEFAULT_TOPIC_TEMPLATE),
            topic_whitelist=_env_list("PIPECHECK_TOPIC_WHITELIST"),
            max_topic_length=int(os.getenv("PIPECHECK_MAX_TOPIC_LENGTH", "249")),
            allow_dlq_topics=_env_bool("PIPECHECK_ALLOW_DLQ_TOPICS", "true"),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationSettings":
        """Create settings from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown validation settings: {unknown}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=os.getenv("PIPECHECK_LOG_LEVEL", "INFO"),
            format=os.getenv("PIPECHECK_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        )


@dataclass
class PipecheckConfig:
    """Root configuration."""

    validation: ValidationSettings = field(default_factory=ValidationSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "PipecheckConfig":
        """Create configuration from environment variables."""
        return cls(
            validation=ValidationSettings.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "PipecheckConfig":
        """Load configuration from JSON file."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using environment")
            return cls.from_env()

        with open(path) as f:
            data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "PipecheckConfig":
        """Environment first, file values override."""
        config = cls.from_env()

        if "validation" in data:
            merged = config.validation.to_dict()
            merged.update(data["validation"])
            config.validation = ValidationSettings.from_dict(merged)

        if "logging" in data:
            for key, value in data["logging"].items():
                if hasattr(config.logging, key):
                    setattr(config.logging, key, value)

        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validation": self.validation.to_dict(),
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
            },
        }


def load_config(filepath: Optional[str] = None) -> PipecheckConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to JSON config file

    Returns:
        A new PipecheckConfig; nothing is cached between calls
    """
    if filepath:
        return PipecheckConfig.from_file(filepath)

    for path in ("./pipecheck.json", "./config/pipecheck.json"):
        if Path(path).exists():
            logger.info(f"Loading config from: {path}")
            return PipecheckConfig.from_file(path)

    return PipecheckConfig.from_env()


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Apply a LoggingConfig to the pipecheck logger hierarchy."""
    config = config or LoggingConfig()

    root = logging.getLogger("pipecheck")
    root.setLevel(config.level.upper())

    if not any(getattr(h, "_pipecheck", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(config.format))
        handler._pipecheck = True
        root.addHandler(handler)
