"""
Result Types
============

A small ``Ok | Err`` sum type shared by every pipeline step and collaborator.

Usage:
    outcome = Ok({"prompt": "..."})
    if outcome.success:
        print(outcome.value["prompt"])

    failure = Err.from_exception(exc)
    failure.to_dict()  # {"success": False, "error": "...", "errorKind": "upstream"}
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Coarse error taxonomy used to tag failed outcomes."""

    VALIDATION = "validation"
    UPSTREAM = "upstream"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "data": self.value}


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying an error kind and a human-readable message."""

    kind: ErrorKind
    message: str

    @property
    def success(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Err":
        """Build an Err from any exception, keeping our own error kinds."""
        kind = getattr(exc, "kind", ErrorKind.INTERNAL)
        if not isinstance(kind, ErrorKind):
            kind = ErrorKind.INTERNAL
        message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
        return cls(kind=kind, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, "errorKind": self.kind.value}


Result = Union[Ok[T], Err]
