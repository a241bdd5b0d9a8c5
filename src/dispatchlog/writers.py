"""
Log writers (output destinations).

One dispatcher, many writers. Each writer owns its filters and at most one
formatter and is invoked independently of its peers:

    write(event):  filters (all must accept) → formatter → _write()

Shipped backends: Stream (stdout/stderr), File (append) and Memory
(bounded ring buffer). Network and mail delivery live outside this package;
they subclass LogWriter and implement _write().
"""

import sys
import threading
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Any, TextIO

from dispatchlog.filters import LogFilter
from dispatchlog.formatters import DefaultFormatter, DetailedFormatter, LogFormatter
from dispatchlog.records import LogEvent
from dispatchlog.severity import Severity


class LogWriter(ABC):
    """Base writer. Receives events, filters and formats them, then outputs."""

    def __init__(self, name: str | None = None, formatter: LogFormatter | None = None):
        self.name = name or type(self).__name__
        self._formatter = formatter
        self._filters: list[LogFilter] = []

    # ── Formatter ─────────────────────────────────────────────────

    @property
    def formatter(self) -> LogFormatter:
        if self._formatter is None:
            self._formatter = self._default_formatter()
        return self._formatter

    @formatter.setter
    def formatter(self, value: LogFormatter | None) -> None:
        self._formatter = value

    def set_formatter(self, formatter: LogFormatter | None) -> None:
        """Attach a formatter. None restores the writer's default."""
        self._formatter = formatter

    def _default_formatter(self) -> LogFormatter:
        """Subclass-specific default."""
        return DefaultFormatter()

    # ── Filters ───────────────────────────────────────────────────

    def add_filter(self, log_filter: LogFilter) -> None:
        if not isinstance(log_filter, LogFilter):
            raise TypeError(f"Expected LogFilter, got {type(log_filter).__name__}")
        self._filters.append(log_filter)

    def remove_filter(self, log_filter: LogFilter) -> bool:
        """Detach a filter. Returns True if it was attached."""
        try:
            self._filters.remove(log_filter)
        except ValueError:
            return False
        return True

    def clear_filters(self) -> None:
        self._filters.clear()

    @property
    def filters(self) -> tuple[LogFilter, ...]:
        return tuple(self._filters)

    def accepts(self, event: LogEvent) -> bool:
        """True when every filter accepts. No filters = accept everything."""
        return all(f.accepts(event.severity) for f in tuple(self._filters))

    # ── Output ────────────────────────────────────────────────────

    def write(self, event: LogEvent) -> bool:
        """
        Filter, format and output one event.

        Returns False when a filter rejected the event (nothing written).
        Formatter and backend errors propagate to the caller.
        """
        if not self.accepts(event):
            return False
        representation = self.formatter.format(event)
        self._write(representation, event)
        return True

    @abstractmethod
    def _write(self, representation: Any, event: LogEvent) -> None:
        """Perform the output side effect."""
        ...

    def flush(self) -> None:
        """Flush any buffered output. Override in buffered writers."""
        pass

    def close(self) -> None:
        """Cleanup. Override if the writer holds resources."""
        self.flush()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class StreamWriter(LogWriter):
    """
    Writes to stdout/stderr with optional ANSI color coding.
    ERR and more severe go to stderr, everything else to stdout,
    unless an explicit stream is given.
    """

    COLORS = {
        Severity.EMERG: "\033[1;97;41m",   # bold white on red
        Severity.ALERT: "\033[1;91m",      # bold bright red
        Severity.CRIT: "\033[91m",         # bright red
        Severity.ERR: "\033[31m",          # red
        Severity.WARN: "\033[33m",         # yellow
        Severity.NOTICE: "\033[97m",       # bright white
        Severity.INFO: "\033[37m",         # white/default
        Severity.DEBUG: "\033[36m",        # cyan
    }
    RESET = "\033[0m"

    def __init__(
        self,
        name: str = "stream",
        formatter: LogFormatter | None = None,
        stream: TextIO | str | None = None,
        color: bool = False,
    ):
        super().__init__(name, formatter)
        if isinstance(stream, str) and stream not in ("stdout", "stderr"):
            raise ValueError(f"Unknown stream '{stream}'. Use 'stdout' or 'stderr'")
        self.stream = stream
        self.color = color

    def _write(self, representation: Any, event: LogEvent) -> None:
        text = str(representation)
        if self.color:
            text = f"{self.COLORS.get(event.severity, '')}{text}{self.RESET}"
        print(text, file=self._resolve_stream(event), flush=True)

    def _resolve_stream(self, event: LogEvent) -> TextIO:
        if self.stream == "stdout":
            return sys.stdout
        if self.stream == "stderr":
            return sys.stderr
        if self.stream is not None:
            return self.stream
        return sys.stderr if event.severity <= Severity.ERR else sys.stdout


class FileWriter(LogWriter):
    """
    Appends one representation per event to a file.
    Parent directories are created on first write.
    """

    def __init__(
        self,
        path: str | Path,
        name: str = "file",
        formatter: LogFormatter | None = None,
        encoding: str = "utf-8",
    ):
        super().__init__(name, formatter)
        self.path = Path(path)
        self.encoding = encoding
        self._file: TextIO | None = None
        self._lock = threading.Lock()

    def _default_formatter(self) -> LogFormatter:
        return DetailedFormatter()

    def _write(self, representation: Any, event: LogEvent) -> None:
        with self._lock:
            if self._file is None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._file = open(self.path, "a", encoding=self.encoding)
            self._file.write(f"{representation}\n")

    def flush(self) -> None:
        with self._lock:
            if self._file:
                self._file.flush()

    def close(self) -> None:
        with self._lock:
            if self._file:
                self._file.close()
                self._file = None


class MemoryWriter(LogWriter):
    """
    Ring buffer of the last N events and their representations.
    Does not grow unbounded.
    """

    def __init__(
        self,
        name: str = "memory",
        formatter: LogFormatter | None = None,
        capacity: int = 1000,
    ):
        super().__init__(name, formatter)
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._buffer: deque[tuple[LogEvent, Any]] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._buffer.maxlen or 0

    def _write(self, representation: Any, event: LogEvent) -> None:
        with self._lock:
            self._buffer.append((event, representation))

    def get_recent(self, n: int = 100, severity: Severity | None = None) -> list[LogEvent]:
        """Most recent events, optionally only those at exactly `severity`."""
        with self._lock:
            events = [event for event, _ in self._buffer]
        if severity is not None:
            events = [e for e in events if e.severity == severity]
        return events[-n:] if n > 0 else []

    def get_formatted(self, n: int = 100) -> list[Any]:
        with self._lock:
            formatted = [rep for _, rep in self._buffer]
        return formatted[-n:] if n > 0 else []

    @property
    def events(self) -> list[LogEvent]:
        with self._lock:
            return [event for event, _ in self._buffer]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    @property
    def count(self) -> int:
        return len(self._buffer)
