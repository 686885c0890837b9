"""Utility modules: scenario config loading and structured logging."""

from silotherm.utils.config import ConfigError, ConfigLoader, ScenarioConfig
from silotherm.utils.logging import StructuredLogger, get_logger

__all__ = [
    "ConfigLoader",
    "ConfigError",
    "ScenarioConfig",
    "StructuredLogger",
    "get_logger",
]
