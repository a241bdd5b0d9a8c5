"""
Pydantic configuration schemas for dispatchlog.

Mirrors the writer setup as validated Python models so that a YAML file
can describe every writer, its priority filter and its formatter.
Invalid severities, comparison operators and writer types are rejected
when the document is validated, never at dispatch time.

Usage:
    config = DispatcherConfig.from_yaml("logging.yaml")
    Dispatcher.instance().configure(config)
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, field_validator, model_validator

from dispatchlog.formatters import (
    DefaultFormatter,
    DetailedFormatter,
    JsonFormatter,
    LogFormatter,
)
from dispatchlog.severity import Severity, resolve_operator
from dispatchlog.writers import FileWriter, LogWriter, MemoryWriter, StreamWriter


class WriterType(str, Enum):
    STREAM = "stream"
    FILE = "file"
    MEMORY = "memory"


class FormatterType(str, Enum):
    DEFAULT = "default"
    DETAILED = "detailed"
    JSON = "json"


class WriterConfig(BaseModel):
    type: WriterType
    priority: Optional[int | str] = None
    comparison: str = "="
    formatter: Optional[FormatterType] = None
    stream: Optional[str] = None              # stream: stdout | stderr
    color: bool = False                       # stream
    path: Optional[str] = None                # file
    encoding: str = "utf-8"                   # file
    capacity: int = 1000                      # memory

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, value: int | str | None) -> Severity | None:
        if value is None:
            return None
        return Severity.from_value(value)

    @field_validator("comparison")
    @classmethod
    def validate_comparison(cls, value: str) -> str:
        return resolve_operator(value)

    @field_validator("stream")
    @classmethod
    def validate_stream(cls, value: str | None) -> str | None:
        if value is not None and value not in ("stdout", "stderr"):
            raise ValueError(f"stream must be 'stdout' or 'stderr', got '{value}'")
        return value

    @model_validator(mode="after")
    def validate_backend(self) -> "WriterConfig":
        if self.type == WriterType.FILE and not self.path:
            raise ValueError("file writer requires 'path'")
        if self.type == WriterType.MEMORY and self.capacity < 1:
            raise ValueError(f"memory writer capacity must be >= 1, got {self.capacity}")
        return self


class DispatcherConfig(BaseModel):
    writers: dict[str, WriterConfig] = {}

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DispatcherConfig":
        """Load and validate from a YAML file."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.from_yaml_string(raw)

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "DispatcherConfig":
        """Load and validate from a YAML string."""
        data = yaml.safe_load(yaml_string) or {}
        return cls.model_validate(data)

    @classmethod
    def from_dict(cls, data: dict) -> "DispatcherConfig":
        """Load and validate from a dict."""
        return cls.model_validate(data)


def build_formatter(formatter_type: FormatterType | str | None) -> LogFormatter | None:
    """Formatter for a config name. None means the writer's default."""
    if formatter_type is None:
        return None
    formatter_type = FormatterType(formatter_type)
    if formatter_type == FormatterType.DETAILED:
        return DetailedFormatter()
    if formatter_type == FormatterType.JSON:
        return JsonFormatter()
    return DefaultFormatter()


def build_writer(name: str, cfg: WriterConfig) -> LogWriter:
    """Build a writer from its config. Filters are attached by the dispatcher."""
    formatter = build_formatter(cfg.formatter)
    if cfg.type == WriterType.STREAM:
        return StreamWriter(name=name, formatter=formatter, stream=cfg.stream, color=cfg.color)
    if cfg.type == WriterType.FILE:
        return FileWriter(path=cfg.path, name=name, formatter=formatter, encoding=cfg.encoding)
    if cfg.type == WriterType.MEMORY:
        return MemoryWriter(name=name, formatter=formatter, capacity=cfg.capacity)
    raise ValueError(f"Unknown writer type '{cfg.type}' for writer '{name}'")
