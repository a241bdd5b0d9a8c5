"""
Writer filters.

A filter is a pure predicate over an event's severity. A writer only
processes an event when every attached filter accepts it.
"""

from abc import ABC, abstractmethod

from dispatchlog.severity import Severity, compare, resolve_operator


class LogFilter(ABC):
    """Base filter."""

    @abstractmethod
    def accepts(self, severity: int) -> bool: ...

    def describe(self) -> str:
        return type(self).__name__


class PriorityFilter(LogFilter):
    """
    Accepts events whose severity satisfies ``severity <comparison> threshold``.

    Values are compared numerically with lower = more severe, so:
        PriorityFilter(Severity.ERR)               only ERR
        PriorityFilter(Severity.WARN, "<=")        WARN and anything more severe

    Invalid thresholds and operators raise here, at construction, never
    during dispatch.
    """

    def __init__(self, threshold: int | str, comparison: str = "="):
        self._threshold = Severity.from_value(threshold)
        self._comparison = resolve_operator(comparison)

    @property
    def threshold(self) -> Severity:
        return self._threshold

    @property
    def comparison(self) -> str:
        return self._comparison

    def accepts(self, severity: int) -> bool:
        return compare(self._comparison, severity, self._threshold)

    def describe(self) -> str:
        return f"priority {self._comparison} {self._threshold.name}"

    def __repr__(self) -> str:
        return f"PriorityFilter({self._threshold.name}, {self._comparison!r})"
