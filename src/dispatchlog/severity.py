"""
Severity levels and priority comparison.

Eight syslog-style levels, lower value = more severe:
    EMERG(0) < ALERT(1) < CRIT(2) < ERR(3) < WARN(4) < NOTICE(5) < INFO(6) < DEBUG(7)

Comparisons always act on the integer values, never on the labels.
"""

import operator
from enum import IntEnum
from typing import Callable


class Severity(IntEnum):
    """Syslog severity levels."""
    EMERG = 0    # Emergency: system is unusable
    ALERT = 1    # Alert: action must be taken immediately
    CRIT = 2     # Critical: critical conditions
    ERR = 3      # Error: error conditions
    WARN = 4     # Warning: warning conditions
    NOTICE = 5   # Notice: normal but significant condition
    INFO = 6     # Informational: informational messages
    DEBUG = 7    # Debug: debug messages

    @classmethod
    def from_name(cls, name: str) -> "Severity":
        """Resolve level from string name, case-insensitive."""
        name_upper = name.strip().upper()
        name_upper = _NAME_ALIASES.get(name_upper, name_upper)
        try:
            return cls[name_upper]
        except KeyError:
            raise ValueError(
                f"Unknown severity '{name}'. "
                f"Valid severities: {', '.join(m.name for m in cls)}"
            ) from None

    @classmethod
    def from_value(cls, value: "int | str | Severity") -> "Severity":
        """Resolve severity from an int, a name or a Severity."""
        if isinstance(value, bool):
            raise TypeError("Expected int or str for severity, got bool")
        if isinstance(value, str):
            return cls.from_name(value)
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise ValueError(
                    f"No severity with value {value}. "
                    f"Valid values: {', '.join(f'{m.name}={m.value}' for m in cls)}"
                ) from None
        raise TypeError(f"Expected int or str for severity, got {type(value).__name__}")


_NAME_ALIASES: dict[str, str] = {
    "EMERGENCY": "EMERG",
    "CRITICAL": "CRIT",
    "ERROR": "ERR",
    "WARNING": "WARN",
}

# Map for display: severity int → name string
SEVERITY_NAMES: dict[int, str] = {member.value: member.name for member in Severity}


def severity_name(value: int) -> str:
    """Get display name for a severity value. Falls back to numeric string."""
    return SEVERITY_NAMES.get(value, str(value))


# ── Comparison ────────────────────────────────────────────────────────

COMPARISON_OPERATORS: dict[str, Callable[[int, int], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

# Alternative spellings accepted in configuration
_OPERATOR_ALIASES: dict[str, str] = {
    "==": "=",
    "<>": "!=",
}


def resolve_operator(op: str) -> str:
    """Canonicalise a comparison operator, raising ValueError if unknown."""
    if not isinstance(op, str):
        raise TypeError(f"Expected str for comparison operator, got {type(op).__name__}")
    canonical = _OPERATOR_ALIASES.get(op.strip(), op.strip())
    if canonical not in COMPARISON_OPERATORS:
        raise ValueError(
            f"Unknown comparison operator '{op}'. "
            f"Valid operators: {', '.join(COMPARISON_OPERATORS)}"
        )
    return canonical


def compare(op: str, severity: int, threshold: int) -> bool:
    """
    Apply `op` to the numeric values: ``severity <op> threshold``.

    "<=" against WARN therefore means "WARN or more severe".
    """
    return COMPARISON_OPERATORS[resolve_operator(op)](int(severity), int(threshold))
