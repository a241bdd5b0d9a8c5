"""
Log events.

A LogEvent is the canonical record produced by normalization and shared,
unchanged, by every writer in one dispatch.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from dispatchlog.severity import Severity, severity_name

DEFAULT_MESSAGE = "(no message)"


@dataclass(frozen=True)
class TraceFrame:
    """One captured stack frame."""
    file: str = ""
    line: int | None = None
    function: str = ""
    cls: str = ""

    def describe(self) -> str:
        func = f"{self.cls}.{self.function}" if self.cls else self.function
        loc = f"{self.file}:{self.line}" if self.line is not None else self.file
        if func and loc:
            return f"{func}() at {loc}"
        return func or loc


@dataclass(frozen=True)
class LogEvent:
    """
    Immutable log event. Created fresh for each Dispatcher.log() call.

    `message` is always non-empty; every other field defaults to empty
    rather than None-propagating into writers.
    """
    message: str
    severity: Severity = Severity.NOTICE
    number: str = ""
    file: str = ""
    line: int | None = None
    context: tuple[Any, ...] = field(default_factory=tuple)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not isinstance(self.message, str) or not self.message:
            object.__setattr__(self, "message", str(self.message or "") or DEFAULT_MESSAGE)
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, "severity", Severity.from_value(self.severity))
        if not isinstance(self.context, tuple):
            object.__setattr__(self, "context", tuple(self.context or ()))

    @property
    def severity_name(self) -> str:
        return severity_name(self.severity)

    @property
    def location(self) -> str:
        """"file:line", "file" or "" depending on what is known."""
        if self.file and self.line is not None:
            return f"{self.file}:{self.line}"
        return self.file

    def with_severity(self, severity: Severity) -> "LogEvent":
        return replace(self, severity=severity)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], severity: Severity = Severity.NOTICE) -> "LogEvent":
        """
        Build an event from a structured map.

        Accepts the classic error keys (errno, errstr, errfile, errline,
        errcontext) as well as the field names (number, message, file,
        line, context). Missing keys default to empty.
        """
        def pick(*keys: str) -> Any:
            for key in keys:
                value = data.get(key)
                if value not in (None, ""):
                    return value
            return None

        number = pick("errno", "number")
        context = pick("errcontext", "context")
        if isinstance(context, (str, bytes, Mapping)) or not isinstance(context, Iterable):
            context = (context,) if context is not None else ()
        else:
            context = tuple(context)
        return cls(
            message=str(pick("errstr", "message") or DEFAULT_MESSAGE),
            severity=severity,
            number="" if number is None else str(number),
            file=str(pick("errfile", "file") or ""),
            line=_coerce_line(pick("errline", "line")),
            context=context,
        )

    def to_dict(self) -> dict[str, Any]:
        """Export using the classic error keys."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "priority": int(self.severity),
            "priorityName": self.severity_name,
            "errno": self.number,
            "errstr": self.message,
            "errfile": self.file,
            "errline": self.line,
            "errcontext": [_serialize_frame(f) for f in self.context],
        }


def _coerce_line(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _serialize_frame(frame: Any) -> Any:
    """Make a context entry JSON-serializable."""
    if isinstance(frame, TraceFrame):
        return {
            "file": frame.file,
            "line": frame.line,
            "function": frame.function,
            "class": frame.cls,
        }
    if isinstance(frame, (str, int, float, bool, type(None))):
        return frame
    if isinstance(frame, (list, tuple)):
        return [_serialize_frame(i) for i in frame]
    if isinstance(frame, Mapping):
        return {str(k): _serialize_frame(v) for k, v in frame.items()}
    return str(frame)
