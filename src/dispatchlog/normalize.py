"""
Event normalization: heterogeneous caller input → LogEvent.

Accepted message shapes:
    str            call site and stack captured at the log() call
    BaseException  message, origin and traceback taken from the exception
    Mapping        structured error map (errno/errstr/errfile/errline/errcontext)
    LogEvent       passed through with the requested severity

Normalization never raises.
"""

import os
import sys
import traceback
from collections.abc import Mapping
from types import CodeType, FrameType, TracebackType
from typing import Any

from dispatchlog.records import LogEvent, TraceFrame
from dispatchlog.severity import Severity

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


def resolve_severity(severity: Any) -> Severity:
    """None → NOTICE; names and ints are resolved; anything invalid → NOTICE."""
    if severity is None:
        return Severity.NOTICE
    try:
        return Severity.from_value(severity)
    except (ValueError, TypeError):
        return Severity.NOTICE


def normalize(message: Any, severity: Any = None) -> LogEvent:
    """Convert any supported message shape into a LogEvent."""
    level = resolve_severity(severity)
    try:
        match message:
            case LogEvent():
                return message.with_severity(level)
            case BaseException():
                return from_exception(message, level)
            case str():
                return from_string(message, level)
            case Mapping():
                return LogEvent.from_mapping(message, level)
            case _:
                return from_string(_safe_str(message), level)
    except Exception:
        return LogEvent(message=_safe_str(message), severity=level)


def from_exception(exc: BaseException, severity: Severity = Severity.NOTICE) -> LogEvent:
    """
    Exception → LogEvent.

    file/line point at the frame that raised; context is the traceback,
    innermost frame first. An exception that was never raised has no
    traceback, so its origin and context stay empty.
    """
    frames = extract_traceback(exc.__traceback__)
    origin = frames[0] if frames else TraceFrame()
    return LogEvent(
        message=str(exc) or type(exc).__name__,
        severity=severity,
        file=origin.file,
        line=origin.line,
        context=frames,
    )


def from_string(message: str, severity: Severity = Severity.NOTICE) -> LogEvent:
    """
    String → LogEvent with the caller's location.

    Frames inside this package (dispatcher, facade functions) are not the
    caller and are skipped. An empty stack leaves file/line empty.
    """
    frames = capture_stack()
    origin = frames[0] if frames else TraceFrame()
    return LogEvent(
        message=message,
        severity=severity,
        file=origin.file,
        line=origin.line,
        context=frames,
    )


def capture_stack() -> tuple[TraceFrame, ...]:
    """Current stack, innermost first, without the leading dispatchlog frames."""
    frame: FrameType | None = sys._getframe(1)
    while frame is not None and _is_internal(frame):
        frame = frame.f_back
    frames = []
    while frame is not None:
        frames.append(_frame_to_trace(frame, frame.f_lineno))
        frame = frame.f_back
    return tuple(frames)


def extract_traceback(tb: TracebackType | None) -> tuple[TraceFrame, ...]:
    """Traceback frames, innermost (raising) frame first."""
    frames = [_frame_to_trace(frame, lineno) for frame, lineno in traceback.walk_tb(tb)]
    frames.reverse()
    return tuple(frames)


def _frame_to_trace(frame: FrameType, lineno: int | None) -> TraceFrame:
    code = frame.f_code
    return TraceFrame(
        file=code.co_filename,
        line=lineno,
        function=code.co_name,
        cls=_owner_class(frame, code),
    )


def _owner_class(frame: FrameType, code: CodeType) -> str:
    """Class name for methods, else "". Read from co_qualname where available."""
    qualname = getattr(code, "co_qualname", None)
    if qualname is not None:
        owner, _, _ = qualname.rpartition(".")
        owner = owner.rpartition(".")[2]
        return "" if owner == "<locals>" else owner
    # Python 3.10: no co_qualname, fall back to `self` / `cls`
    f_locals = frame.f_locals
    if "self" in f_locals:
        return type(f_locals["self"]).__name__
    owner = f_locals.get("cls")
    if isinstance(owner, type):
        return owner.__name__
    return ""


def _is_internal(frame: FrameType) -> bool:
    filename = os.path.abspath(frame.f_code.co_filename)
    return os.path.dirname(filename) == _PACKAGE_DIR


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"
