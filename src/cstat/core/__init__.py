"""Core module - configuration, schemas and errors."""

from __future__ import annotations

from cstat.core.config import dump_config, load_config
from cstat.core.constants import (
    DEFAULT_BASE_PATH,
    DEFAULT_CONTAINER_PATTERN,
    DEFAULT_DISCOVERY_INTERVAL_SECONDS,
)
from cstat.core.errors import (
    ConfigurationError,
    CstatError,
    NotInitializedError,
    ScanError,
)
from cstat.core.schemas import CollectorConfig, MetricFileNames

__all__ = [
    "CollectorConfig",
    "ConfigurationError",
    "CstatError",
    "DEFAULT_BASE_PATH",
    "DEFAULT_CONTAINER_PATTERN",
    "DEFAULT_DISCOVERY_INTERVAL_SECONDS",
    "dump_config",
    "load_config",
    "MetricFileNames",
    "NotInitializedError",
    "ScanError",
]
