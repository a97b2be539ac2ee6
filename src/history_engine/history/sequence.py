"""Ordered storage for committed history entries."""

from __future__ import annotations

from typing import Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")


class EntrySequence(Generic[T]):
    """Index-addressable list of entries with optional capacity eviction.

    Truncation removes the discarded suffix physically, so repeated
    undo/commit cycles never leave unreachable entries behind.
    """

    def __init__(self, initial: T, *, capacity: Optional[int] = None) -> None:
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._entries: List[T] = [initial]
        self._capacity = capacity

    @property
    def capacity(self) -> Optional[int]:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> T:
        if index < 0 or index >= len(self._entries):
            raise IndexError(index)
        return self._entries[index]

    def snapshot(self) -> Sequence[T]:
        """Return the entries without exposing internal mutability."""

        return tuple(self._entries)

    def truncate(self, length: int) -> int:
        """Drop every entry at ``length`` and beyond; return how many went."""

        discarded = max(len(self._entries) - length, 0)
        if discarded:
            del self._entries[length:]
        return discarded

    def append(self, value: T) -> int:
        """Append ``value`` and return the number of oldest entries evicted."""

        self._entries.append(value)
        if self._capacity is None:
            return 0
        overflow = len(self._entries) - self._capacity
        if overflow <= 0:
            return 0
        del self._entries[:overflow]
        return overflow

    def replace(self, value: T) -> None:
        self._entries = [value]


__all__ = ["EntrySequence"]
