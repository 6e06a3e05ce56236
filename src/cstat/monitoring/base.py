"""Data model for per-container statistics.

Every container known to the store is represented by one ``ContainerStats``
holding the latest counters for each metric family and the paths of the
pseudo-files they were read from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class MetricFamily(str, Enum):
    """Metric families read for every container."""

    MEMORY = "memory"
    CPU = "cpu"
    BLKIO_BYTES = "blkio_bytes"  # Per-device byte counts
    BLKIO_IOPS = "blkio_iops"  # Per-device operation counts


@dataclass
class CPUStat:
    """Accumulated CPU time from cpuacct.stat (kernel-reported units)."""

    user: int = 0
    system: int = 0
    timestamp: datetime | None = None


@dataclass
class MemStat:
    """Memory usage from memory.stat (bytes)."""

    cache: int = 0
    rss: int = 0
    timestamp: datetime | None = None


@dataclass
class BlkDevice:
    """Block device tallies for one major:minor pair."""

    major: int = 0
    minor: int = 0
    read: int = 0
    write: int = 0
    sync: int = 0
    async_: int = 0

    @property
    def device_id(self) -> str:
        """Device identifier as major:minor."""
        return f"{self.major}:{self.minor}"

    def to_dict(self) -> dict[str, int | str]:
        return {
            "device": self.device_id,
            "read": self.read,
            "write": self.write,
            "sync": self.sync,
            "async": self.async_,
        }


@dataclass
class BlkServiced:
    """Per-device tallies from one blkio accounting file."""

    devices: list[BlkDevice] = field(default_factory=list)
    timestamp: datetime | None = None


@dataclass
class BlkIOStat:
    """Block device input/output statistics."""

    bytes: BlkServiced = field(default_factory=BlkServiced)
    iops: BlkServiced = field(default_factory=BlkServiced)


@dataclass
class ContainerStats:
    """Latest readings for one container.

    ``bindings`` maps each discovered metric family to the absolute path of
    its backing file. Families without a binding are never read.
    """

    container_id: str
    memory: MemStat = field(default_factory=MemStat)
    cpu: CPUStat = field(default_factory=CPUStat)
    blkio: BlkIOStat = field(default_factory=BlkIOStat)
    bindings: dict[MetricFamily, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""

        def _ts(value: datetime | None) -> str | None:
            return value.isoformat() if value is not None else None

        return {
            "container_id": self.container_id,
            "memory": {
                "cache": self.memory.cache,
                "rss": self.memory.rss,
                "timestamp": _ts(self.memory.timestamp),
            },
            "cpu": {
                "user": self.cpu.user,
                "system": self.cpu.system,
                "timestamp": _ts(self.cpu.timestamp),
            },
            "blkio": {
                "bytes": {
                    "devices": [d.to_dict() for d in self.blkio.bytes.devices],
                    "timestamp": _ts(self.blkio.bytes.timestamp),
                },
                "iops": {
                    "devices": [d.to_dict() for d in self.blkio.iops.devices],
                    "timestamp": _ts(self.blkio.iops.timestamp),
                },
            },
            "bindings": {family.value: path for family, path in self.bindings.items()},
        }
