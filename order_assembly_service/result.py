"""Minimal Result[T, E] used to pass stage outcomes without raising."""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")

_UNSET = object()


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """Outcome of a pipeline stage: either a value or an error, never both."""

    _value: object = _UNSET
    _error: object = _UNSET

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        return cls(_value=value)

    @classmethod
    def err(cls, error: E) -> "Result[T, E]":
        return cls(_error=error)

    @property
    def is_ok(self) -> bool:
        return self._error is _UNSET

    @property
    def is_err(self) -> bool:
        return not self.is_ok

    @property
    def value(self) -> T:
        if self.is_err:
            raise ValueError(f"Called value on Result.err: {self._error!r}")
        return self._value  # type: ignore[return-value]

    @property
    def error(self) -> E:
        if self.is_ok:
            raise ValueError("Called error on Result.ok")
        return self._error  # type: ignore[return-value]
