from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class ProvideValue(Generic[T]):
    """Dependency override that always hands out the same fake."""

    def __init__(self, value: T) -> None:
        self._value = value

    def __call__(self) -> T:
        return self._value
