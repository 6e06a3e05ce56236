"""Tests for StatsStore discovery and snapshot passes."""

import re
import threading
from pathlib import Path

import pytest
from conftest import CONTAINER_A, CONTAINER_B, make_container

from cstat.core.constants import DEFAULT_CONTAINER_PATTERN
from cstat.core.errors import ScanError
from cstat.monitoring.store import StatsStore, read_metric_file


def make_store(reader=None) -> StatsStore:
    return StatsStore(re.compile(DEFAULT_CONTAINER_PATTERN), reader=reader)


class TestApplyDiscovery:
    """Tests for discovery through the store."""

    def test_registers_container(self, cgroup_root: Path) -> None:
        store = make_store()
        store.apply_discovery(cgroup_root)

        assert len(store) == 1
        assert store.container_ids() == [CONTAINER_A]
        entry = store.get(CONTAINER_A)
        assert entry is not None
        assert len(entry.bindings) == 4

    def test_missing_root_raises_scan_error(self, tmp_path: Path) -> None:
        store = make_store()
        missing = tmp_path / "missing"

        with pytest.raises(ScanError) as exc_info:
            store.apply_discovery(missing)

        assert exc_info.value.root == missing
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)
        assert len(store) == 0

    def test_get_returns_copy(self, cgroup_root: Path) -> None:
        store = make_store()
        store.apply_discovery(cgroup_root)

        entry = store.get(CONTAINER_A)
        assert entry is not None
        entry.memory.cache = 999
        entry.bindings.clear()

        fresh = store.get(CONTAINER_A)
        assert fresh is not None
        assert fresh.memory.cache == 0
        assert len(fresh.bindings) == 4

    def test_get_unknown(self) -> None:
        assert make_store().get("nope") is None


class TestSnapshot:
    """Tests for the read pass."""

    def test_scenario_memory_and_cpu(self, tmp_path: Path) -> None:
        container_id = "0123456789abcdef" * 4
        make_container(
            tmp_path,
            container_id,
            {"memory.stat": "cache 100\nrss 200\n", "cpuacct.stat": "user 5\nsystem 7\n"},
        )
        store = make_store()
        store.apply_discovery(tmp_path)

        stats = store.snapshot()

        assert list(stats) == [container_id]
        entry = stats[container_id]
        assert (entry.memory.cache, entry.memory.rss) == (100, 200)
        assert (entry.cpu.user, entry.cpu.system) == (5, 7)
        assert entry.blkio.bytes.devices == []
        assert entry.blkio.bytes.timestamp is None

    def test_invalid_utf8_zeroes_counter(self, tmp_path: Path) -> None:
        scope = make_container(tmp_path, CONTAINER_A, {"cpuacct.stat": "user 5\nsystem 7\n"})
        (scope / "memory.stat").write_bytes(b"cache 100\nrss \xff\n")
        store = make_store()
        store.apply_discovery(tmp_path)

        stats = store.snapshot()

        entry = stats[CONTAINER_A]
        assert (entry.memory.cache, entry.memory.rss) == (100, 0)
        assert entry.memory.timestamp is not None
        assert entry.cpu.user == 5

    def test_all_families(self, cgroup_root: Path) -> None:
        store = make_store()
        store.apply_discovery(cgroup_root)

        entry = store.snapshot()[CONTAINER_A]

        assert len(entry.blkio.bytes.devices) == 2
        assert entry.blkio.bytes.devices[0].read == 4096
        assert len(entry.blkio.iops.devices) == 1
        assert entry.blkio.iops.devices[0].write == 20

    def test_empty_store(self) -> None:
        assert make_store().snapshot() == {}

    def test_reflects_file_changes(self, cgroup_root: Path) -> None:
        store = make_store()
        store.apply_discovery(cgroup_root)
        store.snapshot()

        memory_file = cgroup_root / "system.slice" / f"docker-{CONTAINER_A}.scope" / "memory.stat"
        memory_file.write_text("cache 300\nrss 400\n")

        entry = store.snapshot()[CONTAINER_A]
        assert (entry.memory.cache, entry.memory.rss) == (300, 400)

    def test_snapshot_is_independent_copy(self, cgroup_root: Path) -> None:
        store = make_store()
        store.apply_discovery(cgroup_root)

        stats = store.snapshot()
        stats[CONTAINER_A].cpu.user = 12345
        del stats[CONTAINER_A]

        entry = store.get(CONTAINER_A)
        assert entry is not None
        assert entry.cpu.user == 5

    def test_vanished_file_evicts_container(self, cgroup_root: Path) -> None:
        make_container(cgroup_root, CONTAINER_B)
        store = make_store()
        store.apply_discovery(cgroup_root)
        assert len(store.snapshot()) == 2

        (cgroup_root / "system.slice" / f"docker-{CONTAINER_A}.scope" / "memory.stat").unlink()
        stats = store.snapshot()

        assert CONTAINER_A not in stats
        assert CONTAINER_B in stats
        assert store.container_ids() == [CONTAINER_B]

    def test_vanished_container_directory(self, cgroup_root: Path) -> None:
        store = make_store()
        store.apply_discovery(cgroup_root)

        scope = cgroup_root / "system.slice" / f"docker-{CONTAINER_A}.scope"
        for f in scope.iterdir():
            f.unlink()
        scope.rmdir()

        assert store.snapshot() == {}
        assert len(store) == 0

    def test_evicted_container_rediscovered(self, cgroup_root: Path) -> None:
        store = make_store()
        store.apply_discovery(cgroup_root)
        memory_file = cgroup_root / "system.slice" / f"docker-{CONTAINER_A}.scope" / "memory.stat"
        memory_file.unlink()
        store.snapshot()
        assert len(store) == 0

        memory_file.write_text("cache 1\nrss 2\n")
        store.apply_discovery(cgroup_root)

        assert store.snapshot()[CONTAINER_A].memory.rss == 2

    def test_other_read_error_propagates(self, cgroup_root: Path) -> None:
        make_container(cgroup_root, CONTAINER_B)
        failing = str(
            cgroup_root / "system.slice" / f"docker-{CONTAINER_B}.scope" / "cpuacct.stat"
        )

        def reader(path: str) -> str:
            if path == failing:
                raise PermissionError(13, "Permission denied", path)
            return read_metric_file(path)

        store = make_store(reader)
        store.apply_discovery(cgroup_root)

        with pytest.raises(PermissionError):
            store.snapshot()

        # Entries refreshed before the failure keep their new values
        updated = store.get(CONTAINER_A)
        assert updated is not None
        assert updated.cpu.user == 5
        assert updated.blkio.iops.timestamp is not None

        # The failing entry was updated up to the failing file, and is not evicted
        partial = store.get(CONTAINER_B)
        assert partial is not None
        assert partial.memory.cache == 100
        assert partial.cpu.timestamp is None
        assert partial.blkio.bytes.timestamp is None

    def test_unbound_family_not_read(self, tmp_path: Path) -> None:
        make_container(tmp_path, CONTAINER_A, {"memory.stat": "cache 1\nrss 2\n"})
        read_paths: list[str] = []

        def reader(path: str) -> str:
            read_paths.append(path)
            return read_metric_file(path)

        store = make_store(reader)
        store.apply_discovery(tmp_path)
        store.snapshot()

        assert len(read_paths) == 1
        assert read_paths[0].endswith("memory.stat")

    def test_read_order(self, cgroup_root: Path) -> None:
        families: list[str] = []

        def reader(path: str) -> str:
            families.append(Path(path).name)
            return read_metric_file(path)

        store = make_store(reader)
        store.apply_discovery(cgroup_root)
        store.snapshot()

        assert families == [
            "memory.stat",
            "cpuacct.stat",
            "blkio.throttle.io_service_bytes",
            "blkio.throttle.io_serviced",
        ]


class TestLocking:
    """Tests for serialisation of passes."""

    def test_discovery_waits_for_snapshot_pass(self, cgroup_root: Path) -> None:
        in_read = threading.Event()
        release = threading.Event()

        def slow_reader(path: str) -> str:
            in_read.set()
            release.wait(5)
            return read_metric_file(path)

        slow_store = make_store(slow_reader)
        slow_store.apply_discovery(cgroup_root)
        worker = threading.Thread(target=slow_store.snapshot)
        worker.start()
        assert in_read.wait(5)

        discovery_done = threading.Event()

        def discover() -> None:
            slow_store.apply_discovery(cgroup_root)
            discovery_done.set()

        other = threading.Thread(target=discover)
        other.start()
        # Discovery cannot run while the snapshot pass holds the lock
        assert not discovery_done.wait(0.2)

        release.set()
        worker.join(5)
        other.join(5)
        assert discovery_done.is_set()

    def test_concurrent_snapshots(self, cgroup_root: Path) -> None:
        store = make_store()
        store.apply_discovery(cgroup_root)
        results: list[int] = []
        errors: list[Exception] = []

        def poll() -> None:
            try:
                for _ in range(20):
                    results.append(store.snapshot()[CONTAINER_A].memory.rss)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=poll) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10)

        assert errors == []
        assert results == [200] * 80
