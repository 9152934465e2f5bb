"""Exceptions raised while building, reading, or writing scramble configs."""

from __future__ import annotations


class ScramblerError(Exception):
    """Base class for pgdump-scrambler errors."""


class MalformedConfigError(ScramblerError, ValueError):
    """Raised when a YAML document does not have the expected shape."""


class UnsafeYAMLError(MalformedConfigError):
    """Raised when a YAML document uses tags that could build arbitrary objects."""


class DuplicateNameError(ScramblerError, ValueError):
    """Raised when a table or column name is supplied more than once."""

    def __init__(self, kind: str, name: str, container: str | None = None) -> None:
        self.kind = kind
        self.name = name
        self.container = container
        where = f" in {container}" if container else ""
        super().__init__(f"Duplicate {kind} name '{name}'{where}")
