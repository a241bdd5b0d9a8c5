"""
Dispatcher: routes normalized log events to registered writers.

One dispatcher, many writers. Each call to log():
    1. normalizes the message into a fresh LogEvent
    2. snapshots the writer list
    3. hands the same event to every writer in registration order

Writers are isolated from each other: a writer that raises is recorded as a
delivery failure and the remaining writers still receive the event. log()
itself never raises. Failures are visible through failure_count,
recent_failures and the optional on_error callback.

Usage:
    log = Dispatcher()
    log.add_writer(StreamWriter(), Severity.WARN, "<=")
    log.log("Disk almost full", Severity.WARN)
    log.err(exc)
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Optional

from dispatchlog.config import DispatcherConfig, build_writer
from dispatchlog.filters import PriorityFilter
from dispatchlog.normalize import normalize
from dispatchlog.records import LogEvent
from dispatchlog.severity import Severity, severity_name
from dispatchlog.writers import LogWriter


@dataclass(frozen=True)
class DeliveryFailure:
    """A writer (or its formatter) raised while handling an event."""
    writer: LogWriter
    event: LogEvent
    error: BaseException


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one writer for one event."""
    writer: LogWriter
    delivered: bool
    error: BaseException | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


ErrorCallback = Callable[[DeliveryFailure], Any]


class Dispatcher:
    """
    Holds the ordered writer collection and implements log().

    Construct one explicitly and pass it around, or use the process-wide
    default via Dispatcher.instance().
    """

    _instance: Optional["Dispatcher"] = None
    _instance_lock = threading.Lock()

    # Re-export severities for convenience: Dispatcher.ERR, etc.
    EMERG = Severity.EMERG
    ALERT = Severity.ALERT
    CRIT = Severity.CRIT
    ERR = Severity.ERR
    WARN = Severity.WARN
    NOTICE = Severity.NOTICE
    INFO = Severity.INFO
    DEBUG = Severity.DEBUG

    def __init__(self, on_error: ErrorCallback | None = None, failure_window: int = 100) -> None:
        self._writers: list[LogWriter] = []
        self._lock = threading.RLock()
        self._on_error = on_error
        self._failure_count = 0
        self._recent_failures: deque[DeliveryFailure] = deque(maxlen=failure_window)

    @classmethod
    def instance(cls) -> "Dispatcher":
        """Get or create the process-wide default dispatcher."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """
        Drop the default dispatcher. For testing only.
        Closes its writers before resetting.
        """
        with cls._instance_lock:
            if cls._instance is not None:
                cls._instance.close()
                cls._instance = None

    # ── Configuration ─────────────────────────────────────────────

    def configure(self, config: DispatcherConfig | dict) -> list[LogWriter]:
        """
        Build and register writers from a config dict (parsed YAML).

        Expected structure:
            writers:
                console: {type: stream, priority: WARN, comparison: "<="}
                errors:  {type: file, path: logs/errors.log, priority: ERR}
                recent:  {type: memory, capacity: 500, formatter: json}

        Returns the writers added, in order.
        """
        if not isinstance(config, DispatcherConfig):
            config = DispatcherConfig.from_dict(config)
        added = []
        for name, writer_cfg in config.writers.items():
            writer = build_writer(name, writer_cfg)
            self.add_writer(writer, writer_cfg.priority, writer_cfg.comparison)
            added.append(writer)
        return added

    # ── Writer Management ─────────────────────────────────────────

    def get_writers(self) -> tuple[LogWriter, ...]:
        """Registered writers in registration order."""
        with self._lock:
            return tuple(self._writers)

    def clear_writers(self) -> None:
        """Remove all writers. Their resources are left to the writers."""
        with self._lock:
            self._writers.clear()

    def remove_writer(self, writer: LogWriter) -> None:
        """Remove every registration of a writer. Unknown writers are ignored."""
        with self._lock:
            self._writers = [w for w in self._writers if w is not writer]

    def add_writer(
        self,
        writer: LogWriter,
        priority: int | str | None = None,
        comparison: str = "=",
    ) -> None:
        """
        Register a writer, optionally behind a priority filter.

        `comparison` acts on the integer severity values, where more
        serious events are lower numbers. "=" (default) only passes the
        given priority; "<=" passes events of *at least* that priority.
        """
        if not isinstance(writer, LogWriter):
            raise TypeError(f"Expected LogWriter, got {type(writer).__name__}")
        if priority is not None:
            writer.add_filter(PriorityFilter(priority, comparison))
        with self._lock:
            self._writers.append(writer)

    # ── Core Logging ──────────────────────────────────────────────

    def log(self, message: Any, severity: int | str | None = None) -> None:
        """
        Dispatch a message to every registered writer.

        `message` may be a string, an exception (origin and traceback are
        captured) or a mapping with errno/errstr/errfile/errline/errcontext
        keys. `severity` defaults to NOTICE.
        """
        self.dispatch(message, severity)

    def dispatch(self, message: Any, severity: int | str | None = None) -> tuple[DispatchResult, ...]:
        """log() returning one DispatchResult per writer."""
        event = normalize(message, severity)
        with self._lock:
            writers = tuple(self._writers)

        results = []
        for writer in writers:
            try:
                # Writers returning None follow the void write contract
                delivered = writer.write(event) is not False
            except Exception as exc:
                self._record_failure(DeliveryFailure(writer, event, exc))
                results.append(DispatchResult(writer, False, exc))
            else:
                results.append(DispatchResult(writer, delivered))
        return tuple(results)

    def _record_failure(self, failure: DeliveryFailure) -> None:
        with self._lock:
            self._failure_count += 1
            self._recent_failures.append(failure)
        callback = self._on_error
        if callback is None:
            return
        try:
            callback(failure)
        except Exception:
            # A broken error hook must not break logging either
            pass

    # ── Failure Side-Channel ──────────────────────────────────────

    @property
    def on_error(self) -> ErrorCallback | None:
        return self._on_error

    @on_error.setter
    def on_error(self, callback: ErrorCallback | None) -> None:
        self._on_error = callback

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def recent_failures(self) -> list[DeliveryFailure]:
        with self._lock:
            return list(self._recent_failures)

    def reset_failures(self) -> None:
        with self._lock:
            self._failure_count = 0
            self._recent_failures.clear()

    # ── Convenience Methods ───────────────────────────────────────

    def emerg(self, message: Any) -> None:
        self.log(message, Severity.EMERG)

    def alert(self, message: Any) -> None:
        self.log(message, Severity.ALERT)

    def crit(self, message: Any) -> None:
        self.log(message, Severity.CRIT)

    def err(self, message: Any) -> None:
        self.log(message, Severity.ERR)

    def warn(self, message: Any) -> None:
        self.log(message, Severity.WARN)

    def notice(self, message: Any) -> None:
        self.log(message, Severity.NOTICE)

    def info(self, message: Any) -> None:
        self.log(message, Severity.INFO)

    def debug(self, message: Any) -> None:
        self.log(message, Severity.DEBUG)

    critical = crit
    error = err
    warning = warn

    # ── Status ────────────────────────────────────────────────────

    def status(self) -> dict:
        """Current dispatcher state for display."""
        writers = self.get_writers()
        return {
            "writers": [
                {
                    "name": writer.name,
                    "type": type(writer).__name__,
                    "formatter": type(writer.formatter).__name__,
                    "filters": [f.describe() for f in writer.filters],
                }
                for writer in writers
            ],
            "failure_count": self._failure_count,
            "last_failure": self._describe_last_failure(),
        }

    def _describe_last_failure(self) -> dict | None:
        failures = self.recent_failures
        if not failures:
            return None
        last = failures[-1]
        return {
            "writer": last.writer.name,
            "severity": severity_name(last.event.severity),
            "message": last.event.message,
            "error": f"{type(last.error).__name__}: {last.error}",
        }

    # ── Cleanup ───────────────────────────────────────────────────

    def flush(self) -> None:
        """Flush all writers."""
        for writer in self.get_writers():
            writer.flush()

    def close(self) -> None:
        """Close all writers. Call during shutdown."""
        for writer in self.get_writers():
            writer.close()
