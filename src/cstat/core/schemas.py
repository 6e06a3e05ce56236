"""Pydantic schemas for cstat configuration.

The collector is configured through a single ``CollectorConfig`` value
instead of process-wide settings, so several independent collectors can
run in the same process.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from cstat.core.constants import (
    BLKIO_BYTES_FILE,
    BLKIO_IOPS_FILE,
    CPUACCT_STAT_FILE,
    DEFAULT_BASE_PATH,
    DEFAULT_CONTAINER_PATTERN,
    DEFAULT_DISCOVERY_INTERVAL_SECONDS,
    MEMORY_STAT_FILE,
)


class MetricFileNames(BaseModel):
    """Base names of the pseudo-files backing each metric family.

    Attributes:
        memory: Memory accounting file (cache and RSS)
        cpu: CPU accounting file (user and system time)
        blkio_bytes: Per-device byte counts
        blkio_iops: Per-device operation counts
    """

    memory: str = Field(default=MEMORY_STAT_FILE, min_length=1)
    cpu: str = Field(default=CPUACCT_STAT_FILE, min_length=1)
    blkio_bytes: str = Field(default=BLKIO_BYTES_FILE, min_length=1)
    blkio_iops: str = Field(default=BLKIO_IOPS_FILE, min_length=1)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def check_distinct(self) -> MetricFileNames:
        """Each file name may feed only one metric family."""
        names = [self.memory, self.cpu, self.blkio_bytes, self.blkio_iops]
        if len(set(names)) != len(names):
            raise ValueError(f"Metric file names must be distinct, got {names}")
        return self


class CollectorConfig(BaseModel):
    """Top-level collector configuration.

    Loaded from YAML/JSON files or built directly in code. The container
    pattern is kept as text and compiled when the collector starts.
    """

    base_path: Path = Field(default=Path(DEFAULT_BASE_PATH), description="Directory to scan")
    container_pattern: str = Field(
        default=DEFAULT_CONTAINER_PATTERN,
        description="Regex applied to every path; its single capture group is the container ID",
    )
    discovery_interval_seconds: float = Field(
        default=DEFAULT_DISCOVERY_INTERVAL_SECONDS,
        gt=0,
        description="Pause between two discovery passes",
    )
    metric_files: MetricFileNames = Field(default_factory=MetricFileNames)

    model_config = {"extra": "forbid"}
