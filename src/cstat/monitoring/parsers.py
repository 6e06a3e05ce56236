"""Parsers for cgroup v1 accounting pseudo-files.

Each parser takes the full text of one file and the counters object from
the previous read, and updates the counters in place. Parsers never raise:
a malformed value sets its counter to zero, and missing or short lines
leave counters untouched.

Formats:
    cpuacct.stat (positional, labels ignored):
        user 5
        system 7

    memory.stat (positional, only the first two lines are used):
        cache 100
        rss 200
        ...

    blkio.throttle.io_service_bytes / blkio.throttle.io_serviced:
        8:0 Read 1024
        8:0 Write 2048
        8:0 Sync 512
        8:0 Async 2560
        8:0 Total 3072
        Total 3072
"""

from __future__ import annotations

from datetime import UTC, datetime

from cstat.monitoring.base import (
    BlkDevice,
    BlkServiced,
    ContainerStats,
    CPUStat,
    MemStat,
    MetricFamily,
)

# Operation label -> BlkDevice attribute
BLKIO_OPERATIONS = {
    "Read": "read",
    "Write": "write",
    "Sync": "sync",
    "Async": "async_",
}


def _parse_uint(value: str) -> int:
    """Parse an unsigned decimal counter, 0 if malformed."""
    if value.isascii() and value.isdigit():
        return int(value)
    return 0


def _positional_values(content: str) -> list[int | None] | None:
    """Return the second field of lines 0 and 1, or None for fewer than two lines.

    A line with fewer than two fields yields None for its slot.
    """
    lines = content.split("\n")
    if len(lines) < 2:
        return None

    values: list[int | None] = []
    for line in lines[:2]:
        fields = line.split()
        values.append(_parse_uint(fields[1]) if len(fields) >= 2 else None)
    return values


def parse_cpu_stat(content: str, stat: CPUStat) -> None:
    """Update ``stat`` from cpuacct.stat content (line 0 user, line 1 system)."""
    values = _positional_values(content)
    if values is None:
        return

    user, system = values
    if user is not None:
        stat.user = user
    if system is not None:
        stat.system = system
    stat.timestamp = datetime.now(UTC)


def parse_memory_stat(content: str, stat: MemStat) -> None:
    """Update ``stat`` from memory.stat content (line 0 cache, line 1 RSS)."""
    values = _positional_values(content)
    if values is None:
        return

    cache, rss = values
    if cache is not None:
        stat.cache = cache
    if rss is not None:
        stat.rss = rss
    stat.timestamp = datetime.now(UTC)


def parse_blkio_device(lines: list[str]) -> BlkDevice:
    """Build one device record from its group of ``<maj:min> <Op> <value>`` rows."""
    device = BlkDevice()
    for line in lines:
        fields = line.split()
        if len(fields) != 3:
            continue
        device_str, op, value = fields

        major_minor = device_str.split(":")
        if len(major_minor) > 1:
            device.major = _parse_uint(major_minor[0])
            device.minor = _parse_uint(major_minor[1])

        attr = BLKIO_OPERATIONS.get(op)
        if attr is not None:
            setattr(device, attr, _parse_uint(value))
    return device


def parse_blkio_serviced(content: str, stat: BlkServiced) -> None:
    """Replace the device list of ``stat`` from a blkio accounting file.

    Rows are grouped by their device field: a new group starts whenever the
    device differs from the previous valid row, so the rows of one device
    must be contiguous. Rows without exactly three fields are skipped.
    """
    stat.timestamp = datetime.now(UTC)
    stat.devices = []

    last_device = ""
    group: list[str] = []
    for line in content.split("\n"):
        fields = line.split()
        if len(fields) != 3:
            continue
        device_str = fields[0]

        if device_str != last_device and group:
            stat.devices.append(parse_blkio_device(group))
            group = []
        group.append(line)
        last_device = device_str

    if group:
        stat.devices.append(parse_blkio_device(group))


def apply_metric(entry: ContainerStats, family: MetricFamily, content: str) -> None:
    """Feed ``content`` to the parser of ``family`` on ``entry``."""
    if family is MetricFamily.MEMORY:
        parse_memory_stat(content, entry.memory)
    elif family is MetricFamily.CPU:
        parse_cpu_stat(content, entry.cpu)
    elif family is MetricFamily.BLKIO_BYTES:
        parse_blkio_serviced(content, entry.blkio.bytes)
    elif family is MetricFamily.BLKIO_IOPS:
        parse_blkio_serviced(content, entry.blkio.iops)
