"""
dispatchlog: leveled logging facade.

Takes a message (string, exception or map of error details), assigns it a
severity and sends it to one or more writers, each with its own filters and
formatter.

    import dispatchlog
    from dispatchlog import Severity, StreamWriter, FileWriter

    dispatchlog.add_writer(FileWriter("logs/errors.log"), Severity.ERR)
    dispatchlog.add_writer(StreamWriter(), Severity.WARN, "<=")

    dispatchlog.log("My notice event")                  # NOTICE
    dispatchlog.log("My error event", Severity.ERR)
    dispatchlog.log(exc, Severity.ERR)                  # includes traceback

The module-level functions use the process-wide Dispatcher.instance().
Libraries and tests should construct and pass their own Dispatcher.
"""

from typing import Any

from dispatchlog.severity import Severity, compare, severity_name
from dispatchlog.records import LogEvent, TraceFrame
from dispatchlog.normalize import normalize
from dispatchlog.filters import LogFilter, PriorityFilter
from dispatchlog.formatters import LogFormatter, DefaultFormatter, DetailedFormatter, JsonFormatter
from dispatchlog.writers import LogWriter, StreamWriter, FileWriter, MemoryWriter
from dispatchlog.config import DispatcherConfig, WriterConfig
from dispatchlog.dispatcher import Dispatcher, DispatchResult, DeliveryFailure


def log(message: Any, severity: int | str | None = None) -> None:
    """Dispatch through the default dispatcher. Never raises."""
    Dispatcher.instance().log(message, severity)


def add_writer(writer: LogWriter, priority: int | str | None = None, comparison: str = "=") -> None:
    Dispatcher.instance().add_writer(writer, priority, comparison)


def remove_writer(writer: LogWriter) -> None:
    Dispatcher.instance().remove_writer(writer)


def clear_writers() -> None:
    Dispatcher.instance().clear_writers()


def get_writers() -> tuple[LogWriter, ...]:
    return Dispatcher.instance().get_writers()


__all__ = [
    "Severity",
    "compare",
    "severity_name",
    "LogEvent",
    "TraceFrame",
    "normalize",
    "LogFilter",
    "PriorityFilter",
    "LogFormatter",
    "DefaultFormatter",
    "DetailedFormatter",
    "JsonFormatter",
    "LogWriter",
    "StreamWriter",
    "FileWriter",
    "MemoryWriter",
    "DispatcherConfig",
    "WriterConfig",
    "Dispatcher",
    "DispatchResult",
    "DeliveryFailure",
    "log",
    "add_writer",
    "remove_writer",
    "clear_writers",
    "get_writers",
]
