"""
Run Log - Append-only structured log of a generation run.

The run log is the engine's user-visible diagnostic channel. Entries are
also mirrored to the Python logger so service deployments see them.
"""

from __future__ import annotations
import logging
from typing import Any

from .state import LogEntry
from ..logging_util import get_logger


_LEVELS = {
    "normal": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class RunLog:
    """
    Ordered list of LogEntry records.

    Usage:
        log = RunLog(debug_mode=True)
        log.log("Target Draw #1: ACCEPTED", {"card": "Raider"})
        log.log("Instruction recorded", verbose_only=True)

    Verbose-only entries are dropped unless debug_mode is on. A silent log
    records nothing at all.
    """

    def __init__(
        self,
        debug_mode: bool = False,
        silent: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.debug_mode = debug_mode
        self.silent = silent
        self.logger = logger or get_logger("questgen.engine")
        self.entries: list[LogEntry] = []

    def log(
        self,
        message: str,
        data: dict[str, Any] | None = None,
        verbose_only: bool = False,
        level: str = "normal",
    ) -> LogEntry | None:
        """Append an entry. Returns None when the entry was suppressed."""
        if self.silent:
            return None
        if verbose_only and not self.debug_mode:
            return None

        entry = LogEntry(
            timestamp=len(self.entries),
            message=message,
            data=data,
            level=level,
        )
        self.entries.append(entry)

        py_level = logging.DEBUG if verbose_only else _LEVELS.get(level, logging.INFO)
        if data:
            self.logger.log(py_level, "[%d] %s %s", entry.timestamp, message, data)
        else:
            self.logger.log(py_level, "[%d] %s", entry.timestamp, message)
        return entry

    def warning(self, message: str, data: dict[str, Any] | None = None) -> LogEntry | None:
        return self.log(message, data, level="warning")

    def error(self, message: str, data: dict[str, Any] | None = None) -> LogEntry | None:
        return self.log(message, data, level="error")

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)
