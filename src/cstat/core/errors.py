"""Exception hierarchy for cstat.

Errors that are absorbed by design (a vanished subtree during a walk, a
vanished metric file during a snapshot) have no class here.
"""

from __future__ import annotations

from pathlib import Path


class CstatError(Exception):
    """Base class for all cstat errors."""


class ConfigurationError(CstatError, ValueError):
    """The container pattern is invalid."""


class ScanError(CstatError):
    """The scan root could not be traversed at all."""

    def __init__(self, root: Path | str, reason: str) -> None:
        self.root = Path(root)
        self.reason = reason
        super().__init__(f"error walking path '{root}': {reason}")


class NotInitializedError(CstatError, RuntimeError):
    """A snapshot was requested before the collector was started."""
