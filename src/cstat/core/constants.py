"""Shared constants for cstat.

Defaults for the scan root, container naming convention and the cgroup v1
accounting files read for each metric family.
"""

from __future__ import annotations

# Mount point of the cgroup hierarchy on most distributions.
DEFAULT_BASE_PATH = "/sys/fs/cgroup"

# Docker under systemd names container cgroups docker-<64 hex>.scope.
# The single capture group is used as the container ID.
DEFAULT_CONTAINER_PATTERN = r".*docker-([0-9a-z]{64})\.scope.*"

# Seconds between two discovery passes.
DEFAULT_DISCOVERY_INTERVAL_SECONDS = 30.0

MEMORY_STAT_FILE = "memory.stat"
CPUACCT_STAT_FILE = "cpuacct.stat"
BLKIO_BYTES_FILE = "blkio.throttle.io_service_bytes"
BLKIO_IOPS_FILE = "blkio.throttle.io_serviced"
