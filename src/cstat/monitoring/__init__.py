"""Monitoring module - cgroup container discovery and statistics.

Components:
- discovery: walks the cgroup hierarchy and binds metric files
- parsers: convert accounting pseudo-files into counters
- store: lock-guarded container ID -> ContainerStats mapping
- collector: background discovery thread and snapshot entry point
"""

from __future__ import annotations

from cstat.monitoring.base import (
    BlkDevice,
    BlkIOStat,
    BlkServiced,
    ContainerStats,
    CPUStat,
    MemStat,
    MetricFamily,
)
from cstat.monitoring.collector import Collector, CollectorState, init
from cstat.monitoring.discovery import compile_container_pattern, discover, walk_paths
from cstat.monitoring.parsers import (
    parse_blkio_device,
    parse_blkio_serviced,
    parse_cpu_stat,
    parse_memory_stat,
)
from cstat.monitoring.sink import ErrorSink, SinkState
from cstat.monitoring.store import StatsStore

__all__ = [
    "BlkDevice",
    "BlkIOStat",
    "BlkServiced",
    "Collector",
    "CollectorState",
    "compile_container_pattern",
    "ContainerStats",
    "CPUStat",
    "discover",
    "ErrorSink",
    "init",
    "MemStat",
    "MetricFamily",
    "parse_blkio_device",
    "parse_blkio_serviced",
    "parse_cpu_stat",
    "parse_memory_stat",
    "SinkState",
    "StatsStore",
    "walk_paths",
]
