"""Collector: periodic container discovery plus on-demand snapshots.

Usage:
    sink = ErrorSink()
    collector = init(CollectorConfig(base_path=Path("/sys/fs/cgroup")), sink)
    collector.wait_ready(timeout=5.0)
    for container_id, stats in collector.snapshot().items():
        print(container_id, stats.memory.rss, stats.cpu.user)

A background thread walks the scan root every ``discovery_interval_seconds``.
The first discovery failure is fatal: the error is offered once on the sink
and discovery never runs again, though snapshots keep working on the
containers already known.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from types import TracebackType

from cstat.core.errors import NotInitializedError, ScanError
from cstat.core.schemas import CollectorConfig
from cstat.monitoring.base import ContainerStats
from cstat.monitoring.discovery import compile_container_pattern
from cstat.monitoring.sink import ErrorSink
from cstat.monitoring.store import StatsStore

logger = logging.getLogger(__name__)


class CollectorState(str, Enum):
    """Lifecycle of a Collector."""

    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    FAILED = "failed"  # Discovery stopped after a scan error
    STOPPED = "stopped"  # Discovery stopped by stop()


class Collector:
    """Owns the stats store and the background discovery thread."""

    def __init__(
        self,
        config: CollectorConfig | None = None,
        error_sink: ErrorSink | None = None,
        reader: Callable[[str], str] | None = None,
    ) -> None:
        """Initialize the collector without starting it.

        Args:
            config: Collector configuration (defaults if omitted)
            error_sink: Optional sink notified of a fatal discovery error
            reader: Optional file reader passed to the store
        """
        self._config = config or CollectorConfig()
        self._error_sink = error_sink
        self._reader = reader
        self._store: StatsStore | None = None
        self._state = CollectorState.UNINITIALIZED
        self._error: ScanError | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._ready = threading.Event()

    @property
    def config(self) -> CollectorConfig:
        return self._config

    @property
    def state(self) -> CollectorState:
        with self._lock:
            return self._state

    @property
    def error(self) -> ScanError | None:
        """The scan error that stopped discovery, if any."""
        with self._lock:
            return self._error

    def start(self) -> None:
        """Compile the container pattern and start background discovery.

        Raises:
            ConfigurationError: If the container pattern is invalid
            RuntimeError: If the collector was already started
        """
        with self._lock:
            if self._state is not CollectorState.UNINITIALIZED:
                raise RuntimeError(
                    f"Collector already started or stopped (state: {self._state.value})"
                )

            pattern = compile_container_pattern(self._config.container_pattern)
            self._store = StatsStore(pattern, self._config.metric_files, self._reader)
            self._state = CollectorState.RUNNING

        logger.debug(
            f"Starting discovery of {self._config.base_path} "
            f"every {self._config.discovery_interval_seconds}s"
        )
        self._thread = threading.Thread(
            target=self._discovery_loop, name="cstat-discovery", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop background discovery and close the error sink.

        Data already collected stays readable through snapshot(). A
        collector stopped before start() can no longer be started.
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)

        with self._lock:
            if self._state in (CollectorState.UNINITIALIZED, CollectorState.RUNNING):
                self._state = CollectorState.STOPPED
        if self._error_sink is not None:
            self._error_sink.close()

    def wait_ready(self, timeout: float | None = None) -> bool:
        """Wait for the first successful discovery pass.

        Returns:
            True if a discovery pass has completed
        """
        return self._ready.wait(timeout)

    def snapshot(self) -> dict[str, ContainerStats]:
        """Read current statistics for every known container.

        Raises:
            NotInitializedError: If start() has not been called
            OSError: If a bound metric file exists but cannot be read
        """
        store = self._store
        if store is None:
            raise NotInitializedError("not initialized")
        return store.snapshot()

    def _discovery_loop(self) -> None:
        """Background loop that rescans the cgroup hierarchy."""
        store = self._store
        if store is None:
            return
        while not self._stop_event.is_set():
            try:
                store.apply_discovery(self._config.base_path)
            except ScanError as e:
                self._fail(e)
                return
            except Exception as e:
                error = ScanError(self._config.base_path, f"unexpected error: {e!r}")
                error.__cause__ = e
                self._fail(error)
                return
            self._ready.set()

            if self._stop_event.wait(self._config.discovery_interval_seconds):
                break

    def _fail(self, error: ScanError) -> None:
        logger.debug(f"Discovery stopped permanently: {error}")
        with self._lock:
            self._error = error
            self._state = CollectorState.FAILED
        if self._error_sink is not None:
            delivered = self._error_sink.offer(error)
            if not delivered:
                logger.debug("No consumer waiting on error sink, scan error dropped")

    def __enter__(self) -> Collector:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()


def init(
    config: CollectorConfig | None = None,
    error_sink: ErrorSink | None = None,
) -> Collector:
    """Create and start a collector.

    Raises:
        ConfigurationError: If the container pattern is invalid
    """
    collector = Collector(config, error_sink)
    collector.start()
    return collector
