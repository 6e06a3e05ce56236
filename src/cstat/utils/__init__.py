"""Utils module - Shared utilities."""

from __future__ import annotations

from cstat.utils.logging import get_logger, setup_logging

__all__ = ["setup_logging", "get_logger"]
