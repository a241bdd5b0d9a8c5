"""
Log formatters.

Each writer can use a different formatter.
  - default:  "ERR: Disk full (app/storage.py:42)"
  - detailed: timestamp, severity, error number, message, location and trace
  - json:     one JSON object per event for machine parsing
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from dispatchlog.records import LogEvent, TraceFrame


class LogFormatter(ABC):
    """Base formatter. Transforms LogEvent → writer representation."""

    @abstractmethod
    def format(self, event: LogEvent) -> Any: ...


class DefaultFormatter(LogFormatter):
    """
    Minimal single-line format used when a writer has no formatter.
    Example: WARN: Cache miss rate high (app/cache.py:88)
    """

    def format(self, event: LogEvent) -> str:
        location = event.location
        if location:
            return f"{event.severity_name}: {event.message} ({location})"
        return f"{event.severity_name}: {event.message}"


class DetailedFormatter(LogFormatter):
    """
    Multi-line plain text format for log files.
    Example:
        [2026-02-12 14:32:05] ERR #1045: Access denied (app/db.py:17)
            connect() at app/db.py:17
            Repository.load() at app/repo.py:52
    """

    def __init__(self, max_frames: int | None = None):
        self.max_frames = max_frames

    def format(self, event: LogEvent) -> str:
        ts = event.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        number = f" #{event.number}" if event.number else ""
        head = f"[{ts}] {event.severity_name}{number}: {event.message}"
        if event.location:
            head = f"{head} ({event.location})"

        frames = event.context
        if self.max_frames is not None:
            frames = frames[: self.max_frames]
        lines = [head]
        lines.extend(f"    {_describe_frame(f)}" for f in frames)
        return "\n".join(lines)


class JsonFormatter(LogFormatter):
    """
    Structured JSON for machine parsing.
    One JSON object per event.
    """

    def __init__(self, include_context: bool = True):
        self.include_context = include_context

    def format(self, event: LogEvent) -> str:
        obj = event.to_dict()
        if not self.include_context:
            obj.pop("errcontext")
        return json.dumps(obj, default=str)


def _describe_frame(frame: Any) -> str:
    if isinstance(frame, TraceFrame):
        return frame.describe()
    return str(frame)
