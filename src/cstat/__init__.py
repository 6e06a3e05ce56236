"""cstat - Linux container statistics from the cgroup filesystem."""

from __future__ import annotations

from cstat.core.errors import ConfigurationError, CstatError, NotInitializedError, ScanError
from cstat.core.schemas import CollectorConfig, MetricFileNames
from cstat.monitoring.base import ContainerStats
from cstat.monitoring.collector import Collector, CollectorState, init
from cstat.monitoring.sink import ErrorSink, SinkState

__version__ = "0.1.0"

__all__ = [
    "Collector",
    "CollectorConfig",
    "CollectorState",
    "ConfigurationError",
    "ContainerStats",
    "CstatError",
    "ErrorSink",
    "init",
    "MetricFileNames",
    "NotInitializedError",
    "ScanError",
    "SinkState",
    "__version__",
]
