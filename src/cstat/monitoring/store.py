"""Thread-safe store of per-container statistics.

A single lock serialises discovery passes and snapshot passes, so callers
only ever observe the store after a whole pass has been applied. Both
passes do blocking filesystem I/O while holding the lock.
"""

from __future__ import annotations

import copy
import logging
import re
import threading
from collections.abc import Callable
from pathlib import Path

from cstat.core.errors import ScanError
from cstat.core.schemas import MetricFileNames
from cstat.monitoring.base import ContainerStats, MetricFamily
from cstat.monitoring.discovery import discover
from cstat.monitoring.parsers import apply_metric

logger = logging.getLogger(__name__)

# Order in which the metric files of one container are read
READ_ORDER = (
    MetricFamily.MEMORY,
    MetricFamily.CPU,
    MetricFamily.BLKIO_BYTES,
    MetricFamily.BLKIO_IOPS,
)


def read_metric_file(path: str) -> str:
    """Read the full content of a metric pseudo-file.

    Undecodable bytes become U+FFFD, so the parsers zero that counter
    instead of the whole pass failing.
    """
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()


class StatsStore:
    """Mapping of container ID to its latest ``ContainerStats``.

    Entries are created by discovery and evicted by ``snapshot()`` as soon
    as one of their bound files no longer exists.
    """

    def __init__(
        self,
        pattern: re.Pattern[str],
        metric_files: MetricFileNames | None = None,
        reader: Callable[[str], str] | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            pattern: Compiled container pattern with one capture group
            metric_files: Base names of the metric files to bind
            reader: Function returning the text of a file, used by snapshot()
        """
        self._pattern = pattern
        self._metric_files = metric_files or MetricFileNames()
        self._reader = reader or read_metric_file
        self._containers: dict[str, ContainerStats] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._containers)

    def container_ids(self) -> list[str]:
        with self._lock:
            return list(self._containers)

    def get(self, container_id: str) -> ContainerStats | None:
        """Return a copy of one entry, or None if it is not known."""
        with self._lock:
            entry = self._containers.get(container_id)
            return copy.deepcopy(entry) if entry is not None else None

    def apply_discovery(self, root: Path | str) -> None:
        """Walk ``root`` and register new containers and metric files.

        Raises:
            ScanError: If the traversal cannot start (e.g. root missing)
        """
        with self._lock:
            before = len(self._containers)
            try:
                discover(root, self._pattern, self._metric_files, self._containers)
            except OSError as e:
                raise ScanError(root, str(e)) from e
            logger.debug(
                f"Discovery pass over {root}: {len(self._containers)} containers "
                f"({len(self._containers) - before} new)"
            )

    def snapshot(self) -> dict[str, ContainerStats]:
        """Re-read every bound metric file and return the updated statistics.

        A container whose bound file has vanished is assumed to have exited
        and is evicted. Any other read failure aborts the pass; entries
        already refreshed in this pass keep their new values.

        Returns:
            Copy of the container ID to ContainerStats mapping

        Raises:
            OSError: If a bound file exists but cannot be read
        """
        with self._lock:
            for container_id, entry in list(self._containers.items()):
                if not self._refresh(entry):
                    logger.debug(f"Evicting container {container_id[:12]}: metric file gone")
                    del self._containers[container_id]
            return copy.deepcopy(self._containers)

    def _refresh(self, entry: ContainerStats) -> bool:
        """Read all bound files of ``entry``. Returns False if one has vanished."""
        for family in READ_ORDER:
            path = entry.bindings.get(family)
            if not path:
                continue
            try:
                content = self._reader(path)
            except FileNotFoundError:
                return False
            apply_metric(entry, family, content)
        return True
