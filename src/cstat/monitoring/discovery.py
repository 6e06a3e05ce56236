"""Container discovery by walking the cgroup hierarchy.

Every path below the scan root is matched against the container pattern.
A matching directory registers its container; a matching file whose base
name is one of the known metric files is bound to the container's entry.

With cgroup v1 each controller has its own hierarchy, e.g.:
    /sys/fs/cgroup/memory/system.slice/docker-<id>.scope/memory.stat
    /sys/fs/cgroup/cpuacct/system.slice/docker-<id>.scope/cpuacct.stat
    /sys/fs/cgroup/blkio/system.slice/docker-<id>.scope/blkio.throttle.io_serviced

All of them resolve to the same container ID, so one entry collects the
bindings of every hierarchy.
"""

from __future__ import annotations

import logging
import os
import re
import stat
from collections.abc import Iterator
from pathlib import Path

from cstat.core.errors import ConfigurationError
from cstat.core.schemas import MetricFileNames
from cstat.monitoring.base import ContainerStats, MetricFamily

logger = logging.getLogger(__name__)


def compile_container_pattern(pattern: str) -> re.Pattern[str]:
    """Compile the container pattern and check it has exactly one capture group.

    Raises:
        ConfigurationError: If the pattern is not a valid regex or does not
            contain exactly one capture group
    """
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid container pattern {pattern!r}: {e}") from e

    if compiled.groups != 1:
        raise ConfigurationError(
            f"Container pattern {pattern!r} must contain exactly one capture group, "
            f"found {compiled.groups}"
        )
    return compiled


def family_by_file_name(metric_files: MetricFileNames) -> dict[str, MetricFamily]:
    """Map each metric file base name to the family it feeds."""
    return {
        metric_files.memory: MetricFamily.MEMORY,
        metric_files.cpu: MetricFamily.CPU,
        metric_files.blkio_bytes: MetricFamily.BLKIO_BYTES,
        metric_files.blkio_iops: MetricFamily.BLKIO_IOPS,
    }


def _list_dir(path: str) -> list[os.DirEntry[str]]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda e: e.name)


def _walk_entries(entries: list[os.DirEntry[str]]) -> Iterator[tuple[str, bool]]:
    """Yield ``entries`` and their descendants, skipping anything that vanished."""
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            logger.debug(f"Skipping {entry.path}: {e}")
            continue
        yield entry.path, is_dir
        if not is_dir:
            continue

        try:
            children = _list_dir(entry.path)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {entry.path}: {e}")
            continue
        yield from _walk_entries(children)


def walk_paths(root: Path | str) -> Iterator[tuple[str, bool]]:
    """Yield ``(path, is_dir)`` for ``root`` and every entry below it.

    Entries are visited depth first in lexical order, each directory before
    its contents. Symlinks are not followed.

    Raises:
        OSError: If the root itself cannot be stat'ed or listed. Errors on
            entries below the root are swallowed.
    """
    root = os.fspath(root)
    root_is_dir = stat.S_ISDIR(os.lstat(root).st_mode)
    # Listing the root must succeed, only its descendants are best effort
    entries = _list_dir(root) if root_is_dir else []

    yield root, root_is_dir
    yield from _walk_entries(entries)


def discover(
    root: Path | str,
    pattern: re.Pattern[str],
    metric_files: MetricFileNames,
    containers: dict[str, ContainerStats],
) -> None:
    """Run one discovery pass over ``root``, updating ``containers`` in place.

    Only directory matches create entries; files are bound only to
    containers that already have one.

    Raises:
        OSError: If the traversal cannot start
    """
    families = family_by_file_name(metric_files)

    for path, is_dir in walk_paths(root):
        match = pattern.search(path)
        if match is None or match.group(1) is None:
            continue
        container_id = match.group(1)

        if is_dir:
            if container_id not in containers:
                logger.debug(f"Discovered container {container_id[:12]} at {path}")
                containers[container_id] = ContainerStats(container_id=container_id)
            continue

        entry = containers.get(container_id)
        if entry is None:
            continue
        family = families.get(os.path.basename(path))
        if family is not None:
            entry.bindings[family] = os.path.abspath(path)
