"""
Lazy - a value computed on first read and cached afterwards.

A Lazy is either Unresolved (holding a getter) or Resolved (holding a value).
Reading resolves it once; overriding fixes it as Resolved with the given value.
"""

from typing import Any, Callable, Generic
from typing_extensions import TypeVar


T = TypeVar('T', default=Any)

_UNRESOLVED = object()


class Lazy(Generic[T]):
    """Memoized accessor over a two-state field."""

    __slots__ = ("_getter", "_value")

    def __init__(self, getter: Callable[[], T]):
        self._getter = getter
        self._value: Any = _UNRESOLVED

    @classmethod
    def of(cls, value: T) -> "Lazy[T]":
        """Build an already resolved Lazy."""
        lazy = cls(lambda: value)
        lazy._value = value
        return lazy

    @property
    def resolved(self) -> bool:
        return self._value is not _UNRESOLVED

    def resolve(self) -> T:
        """
        Return the cached value, computing it on the first call.

        If the getter raises, the Lazy stays Unresolved and the next call
        tries again.
        """
        if self._value is _UNRESOLVED:
            self._value = self._getter()
        return self._value

    def override(self, value: T) -> None:
        """Replace the value, resolved or not."""
        self._value = value

    def __repr__(self) -> str:
        if self.resolved:
            return f"Lazy(resolved={self._value!r})"
        return "Lazy(<unresolved>)"
