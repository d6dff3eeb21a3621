"""Result type for operations that always return a value.

Loads and saves in GameDex never raise for missing files, transient I/O
errors or corrupt JSON. They return an ``Outcome`` whose ``value`` is usable
either way and whose ``error`` says what went wrong, if anything.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

# Error codes shared across stores
MISSING = "missing"
CORRUPT = "corrupt"
IO_ERROR = "io_error"
SCAN_IN_PROGRESS = "scan_in_progress"
NOT_CONFIGURED = "not_configured"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, value: T, error: str) -> "Outcome[T]":
        return cls(value=value, error=error)
