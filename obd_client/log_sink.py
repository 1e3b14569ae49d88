"""Append-only telemetry record sinks.

A sink receives ``(category, timestamp, payload)`` records: one per raw
frame and one per decoded value.  Sessions treat sinks as best-effort;
see ``Session._emit``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, NamedTuple, Optional

# Record timestamps and file names follow the adapter log convention.
_RECORD_TS_FORMAT = "%d-%m-%Y_%H:%M:%S"
_FILENAME_TS_FORMAT = "%d-%m-%Y_%H-%M-%S"


class LogRecord(NamedTuple):
    category: str
    timestamp: datetime
    payload: str


class LogSink(ABC):
    """Destination for telemetry records."""

    @abstractmethod
    def record(self, category: str, timestamp: datetime, payload: str) -> None:
        """Append one record."""


class NullLogSink(LogSink):
    def record(self, category: str, timestamp: datetime, payload: str) -> None:
        return None


class MemoryLogSink(LogSink):
    """Keeps records in a list; useful for tests and short sessions."""

    def __init__(self) -> None:
        self.records: List[LogRecord] = []

    def record(self, category: str, timestamp: datetime, payload: str) -> None:
        self.records.append(LogRecord(category, timestamp, payload))

    def categories(self) -> List[str]:
        return [r.category for r in self.records]


class FileLogSink(LogSink):
    """Writes ``CATEGORY;dd-mm-YYYY_HH:MM:SS;payload`` lines to one file.

    The file is created inside *directory* on the first record and named
    after the time the sink was constructed.
    """

    def __init__(self, directory: str | Path, *, now: Optional[datetime] = None) -> None:
        started = now or datetime.now()
        self._directory = Path(directory)
        self.path = self._directory / f"{started.strftime(_FILENAME_TS_FORMAT)}_log.txt"

    def record(self, category: str, timestamp: datetime, payload: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        line = format_record(category, timestamp, payload)
        with open(self.path, "a", encoding="utf-8") as fh:
            fh.write(line + "\n")


def format_record(category: str, timestamp: datetime, payload: str) -> str:
    return f"{category};{timestamp.strftime(_RECORD_TS_FORMAT)};{payload}"
