"""
Tests for LogEvent and event normalization.

Covers:
- LogEvent defaults, immutability and export
- Structured map input (classic error keys and field names)
- String input: caller location capture
- Exception input: origin and traceback capture
- Severity defaulting
"""

import dataclasses
import json
import os
import sys
from collections import deque
from unittest.mock import patch

import pytest

from dispatchlog.normalize import (
    extract_traceback,
    from_string,
    normalize,
    resolve_severity,
)
from dispatchlog.records import DEFAULT_MESSAGE, LogEvent, TraceFrame
from dispatchlog.severity import Severity

THIS_FILE = os.path.basename(__file__)


def _raise_boom():
    raise ValueError("boom")


def _raise_boom_from_x():
    """Raise from code compiled as file 'x', line 42."""
    code = compile("\n" * 41 + "raise RuntimeError('boom')\n", "x", "exec")
    exec(code, {})


# ═══════════════════════════════════════════════════════════════════
#  LogEvent
# ═══════════════════════════════════════════════════════════════════

class TestLogEvent:
    def test_defaults(self):
        event = LogEvent(message="hello")
        assert event.severity is Severity.NOTICE
        assert event.number == ""
        assert event.file == ""
        assert event.line is None
        assert event.context == ()
        assert event.timestamp.tzinfo is not None

    def test_immutable(self):
        event = LogEvent(message="hello")
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.message = "changed"

    def test_empty_message_populated(self):
        assert LogEvent(message="").message == DEFAULT_MESSAGE

    def test_context_stored_as_tuple(self):
        event = LogEvent(message="m", context=["a", "b"])
        assert event.context == ("a", "b")

    def test_severity_coerced(self):
        event = LogEvent(message="m", severity=3)
        assert event.severity is Severity.ERR
        assert event.severity_name == "ERR"

    def test_location(self):
        assert LogEvent(message="m", file="a.py", line=3).location == "a.py:3"
        assert LogEvent(message="m", file="a.py").location == "a.py"
        assert LogEvent(message="m").location == ""

    def test_with_severity_returns_copy(self):
        event = LogEvent(message="m", severity=Severity.INFO)
        other = event.with_severity(Severity.ERR)
        assert other is not event
        assert event.severity is Severity.INFO
        assert other.severity is Severity.ERR

    def test_to_dict_uses_classic_keys(self):
        event = LogEvent(
            message="Access denied",
            severity=Severity.ERR,
            number="1045",
            file="db.py",
            line=17,
            context=(TraceFrame("db.py", 17, "connect", "Database"),),
        )
        d = event.to_dict()
        assert d["errno"] == "1045"
        assert d["errstr"] == "Access denied"
        assert d["errfile"] == "db.py"
        assert d["errline"] == 17
        assert d["priority"] == 3
        assert d["priorityName"] == "ERR"
        assert d["errcontext"][0] == {
            "file": "db.py", "line": 17, "function": "connect", "class": "Database",
        }
        json.dumps(d)  # serializable


# ═══════════════════════════════════════════════════════════════════
#  Structured map input
# ═══════════════════════════════════════════════════════════════════

class TestMappingInput:
    def test_classic_keys(self):
        event = normalize({
            "errno": 256,
            "errstr": "Template not found",
            "errfile": "view.py",
            "errline": "88",
            "errcontext": ["frame-1", "frame-2"],
        }, Severity.WARN)
        assert event.number == "256"
        assert event.message == "Template not found"
        assert event.file == "view.py"
        assert event.line == 88
        assert event.context == ("frame-1", "frame-2")
        assert event.severity is Severity.WARN

    def test_field_names(self):
        event = normalize({"message": "disk full", "file": "io.py", "line": 9})
        assert event.message == "disk full"
        assert event.file == "io.py"
        assert event.line == 9

    def test_missing_fields_default_empty(self):
        event = normalize({"errstr": "only a message"})
        assert event.number == ""
        assert event.file == ""
        assert event.line is None
        assert event.context == ()

    def test_missing_message_is_populated(self):
        event = normalize({"errno": 5})
        assert event.message == DEFAULT_MESSAGE

    def test_non_numeric_line_dropped(self):
        event = normalize({"errstr": "m", "errline": "unknown"})
        assert event.line is None

    def test_iterable_context_expanded(self):
        event = normalize({"errstr": "m", "errcontext": (f"frame-{i}" for i in range(3))})
        assert event.context == ("frame-0", "frame-1", "frame-2")

        event = normalize({"errstr": "m", "errcontext": deque(["a", "b"])})
        assert event.context == ("a", "b")

        event = normalize({"errstr": "m", "errcontext": {"only"}})
        assert event.context == ("only",)

    def test_scalar_context_wrapped(self):
        assert normalize({"errstr": "m", "errcontext": "frame"}).context == ("frame",)
        assert normalize({"errstr": "m", "errcontext": 7}).context == (7,)

    def test_single_context_value_wrapped(self):
        event = normalize({"errstr": "m", "errcontext": {"user": 7}})
        assert event.context == ({"user": 7},)


# ═══════════════════════════════════════════════════════════════════
#  String input
# ═══════════════════════════════════════════════════════════════════

class TestStringInput:
    def test_captures_caller_location(self):
        event, line = normalize("here"), sys._getframe().f_lineno
        assert event.message == "here"
        assert os.path.basename(event.file) == THIS_FILE
        assert event.line == line
        assert event.number == ""

    def test_context_is_call_stack(self):
        event = normalize("here")
        assert event.context
        assert isinstance(event.context[0], TraceFrame)
        assert event.context[0].function == "test_context_is_call_stack"
        assert event.context[0].cls == "TestStringInput"

    def test_owner_class_of_nested_function_empty(self):
        def inner():
            return normalize("nested")

        event = inner()
        assert event.context[0].function == "inner"
        assert event.context[0].cls == ""
        assert event.context[1].cls == "TestStringInput"

    @pytest.mark.skipif(sys.version_info < (3, 11), reason="needs co_qualname")
    def test_owner_class_without_self(self):
        class Service:
            @staticmethod
            def run():
                return normalize("static")

        event = Service.run()
        assert event.context[0].function == "run"
        assert event.context[0].cls == "Service"

    def test_no_internal_frames_in_context(self):
        event = normalize("here")
        package_dir = os.path.dirname(os.path.abspath(normalize.__code__.co_filename))
        assert all(
            os.path.dirname(os.path.abspath(f.file)) != package_dir
            for f in event.context
        )

    def test_empty_stack_leaves_location_empty(self):
        with patch("dispatchlog.normalize.capture_stack", return_value=()):
            event = from_string("top level", Severity.INFO)
        assert event.message == "top level"
        assert event.file == ""
        assert event.line is None
        assert event.context == ()

    def test_empty_string_message(self):
        assert normalize("").message == DEFAULT_MESSAGE

    def test_other_objects_rendered_as_string(self):
        event = normalize(12345)
        assert event.message == "12345"
        assert os.path.basename(event.file) == THIS_FILE


# ═══════════════════════════════════════════════════════════════════
#  Exception input
# ═══════════════════════════════════════════════════════════════════

class TestExceptionInput:
    def test_origin_and_trace(self):
        try:
            _raise_boom()
        except ValueError as exc:
            event = normalize(exc, Severity.ERR)

        assert event.message == "boom"
        assert event.severity is Severity.ERR
        assert os.path.basename(event.file) == THIS_FILE
        assert event.line == _raise_boom.__code__.co_firstlineno + 1
        assert event.number == ""
        assert event.context[0].function == "_raise_boom"
        assert event.context[-1].function == "test_origin_and_trace"

    def test_file_x_line_42(self):
        try:
            _raise_boom_from_x()
        except RuntimeError as exc:
            event = normalize(exc)
            trace = extract_traceback(exc.__traceback__)

        assert event.message == "boom"
        assert event.file == "x"
        assert event.line == 42
        assert event.context
        assert event.context == trace

    def test_never_raised_exception(self):
        event = normalize(KeyError("missing"))
        assert event.message == "'missing'"
        assert event.file == ""
        assert event.line is None
        assert event.context == ()

    def test_empty_message_uses_type_name(self):
        try:
            raise TimeoutError()
        except TimeoutError as exc:
            event = normalize(exc)
        assert event.message == "TimeoutError"


# ═══════════════════════════════════════════════════════════════════
#  Severity defaulting and pass-through
# ═══════════════════════════════════════════════════════════════════

class TestSeverityResolution:
    def test_none_defaults_to_notice(self):
        assert normalize("m").severity is Severity.NOTICE
        assert resolve_severity(None) is Severity.NOTICE

    def test_emerg_is_not_defaulted(self):
        assert normalize("m", Severity.EMERG).severity is Severity.EMERG
        assert normalize("m", 0).severity is Severity.EMERG

    def test_names_resolved(self):
        assert normalize("m", "warn").severity is Severity.WARN

    def test_invalid_severity_never_raises(self):
        assert normalize("m", 99).severity is Severity.NOTICE
        assert normalize("m", "loud").severity is Severity.NOTICE
        assert normalize("m", object()).severity is Severity.NOTICE

    def test_event_passthrough_restamped(self):
        original = LogEvent(message="prebuilt", file="a.py", line=1)
        event = normalize(original, Severity.CRIT)
        assert event.message == "prebuilt"
        assert event.file == "a.py"
        assert event.severity is Severity.CRIT
        assert original.severity is Severity.NOTICE

    def test_unprintable_object(self):
        class Unprintable:
            def __str__(self):
                raise RuntimeError("no")

        event = normalize(Unprintable())
        assert event.message.startswith("<unprintable")
