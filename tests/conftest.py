"""Shared fixtures: fake cgroup trees under tmp_path."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

import pytest

CONTAINER_A = "a" * 64
CONTAINER_B = "b" * 64

MEMORY_STAT = "cache 100\nrss 200\nrss_huge 0\nmapped_file 12\n"
CPUACCT_STAT = "user 5\nsystem 7\n"
BLKIO_BYTES = (
    "8:0 Read 4096\n"
    "8:0 Write 8192\n"
    "8:0 Sync 1024\n"
    "8:0 Async 11264\n"
    "8:0 Total 12288\n"
    "8:16 Read 512\n"
    "8:16 Write 256\n"
    "8:16 Sync 128\n"
    "8:16 Async 640\n"
    "8:16 Total 768\n"
    "Total 13056\n"
)
BLKIO_IOPS = (
    "8:0 Read 10\n"
    "8:0 Write 20\n"
    "8:0 Sync 5\n"
    "8:0 Async 25\n"
    "8:0 Total 30\n"
    "Total 30\n"
)

ALL_FILES = {
    "memory.stat": MEMORY_STAT,
    "cpuacct.stat": CPUACCT_STAT,
    "blkio.throttle.io_service_bytes": BLKIO_BYTES,
    "blkio.throttle.io_serviced": BLKIO_IOPS,
}


def make_container(
    root: Path,
    container_id: str,
    files: dict[str, str] | None = None,
    slice_dir: str = "system.slice",
) -> Path:
    """Create docker-<id>.scope under ``root/slice_dir`` with the given files."""
    scope = root / slice_dir / f"docker-{container_id}.scope"
    scope.mkdir(parents=True, exist_ok=True)
    for name, content in (ALL_FILES if files is None else files).items():
        (scope / name).write_text(content)
    return scope


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def cgroup_root(tmp_path: Path) -> Path:
    """A cgroup root holding one container with all four metric files."""
    root = tmp_path / "cgroup"
    root.mkdir()
    make_container(root, CONTAINER_A)
    return root
