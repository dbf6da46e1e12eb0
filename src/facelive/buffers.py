"""Fixed-capacity FIFO buffer."""

from collections import deque
from typing import Callable, Deque, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """FIFO buffer that overwrites its oldest element when full.

    Not thread-safe; the owner serializes access.

    Args:
        capacity: Maximum number of stored elements.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._items: Deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, value: T) -> None:
        """Append a value, discarding the oldest one if the buffer is full."""
        self._items.append(value)

    def pop_oldest(self) -> Optional[T]:
        """Remove and return the oldest value, or None if empty."""
        if not self._items:
            return None
        return self._items.popleft()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def is_full(self) -> bool:
        return len(self._items) == self._capacity

    def last(self) -> Optional[T]:
        """Most recently pushed value, or None if empty."""
        if not self._items:
            return None
        return self._items[-1]

    def get(self, index: int) -> Optional[T]:
        """Value at index (0 = oldest), or None if out of range."""
        if index < 0 or index >= len(self._items):
            return None
        return self._items[index]

    def reduce(self, fn: Callable[[T, T], T]) -> Optional[T]:
        """Fold the stored values in insertion order.

        Returns None for an empty buffer and the single value unchanged
        when only one is stored.
        """
        if not self._items:
            return None
        it = iter(self._items)
        acc = next(it)
        for value in it:
            acc = fn(acc, value)
        return acc

    def clear(self) -> None:
        self._items.clear()

    def __repr__(self) -> str:
        return f"RingBuffer(capacity={self._capacity}, items={list(self._items)!r})"


__all__ = ["RingBuffer"]
