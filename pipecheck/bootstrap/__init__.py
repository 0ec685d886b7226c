"""
bootstrap/ - Configuration and logging setup
"""

from .config import (
    ValidationSettings,
    LoggingConfig,
    PipecheckConfig,
    load_config,
    configure_logging,
)

__all__ = [
    "ValidationSettings",
    "LoggingConfig",
    "PipecheckConfig",
    "load_config",
    "configure_logging",
]
