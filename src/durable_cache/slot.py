"""
Durable Cache — Memory Slot

Single optional in-process holder for the last known value of one cache
instance. An empty slot and a slot holding None are different states.
"""

from typing import Generic, TypeVar

V = TypeVar("V")

_EMPTY = object()


class MemorySlot(Generic[V]):
    """One-value in-memory holder owned by a single cache instance."""

    __slots__ = ("_value",)

    def __init__(self) -> None:
        self._value: object = _EMPTY

    @property
    def is_populated(self) -> bool:
        return self._value is not _EMPTY

    @property
    def value(self) -> V:
        """
        The held value.

        Raises:
            LookupError: If the slot is empty
        """
        if self._value is _EMPTY:
            raise LookupError("memory slot is empty")
        return self._value  # type: ignore[return-value]

    def fill(self, value: V) -> None:
        self._value = value

    def clear(self) -> None:
        self._value = _EMPTY

    def __repr__(self) -> str:
        if self._value is _EMPTY:
            return "MemorySlot(<empty>)"
        return f"MemorySlot({self._value!r})"
