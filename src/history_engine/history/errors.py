"""Error types raised by history stores."""

from __future__ import annotations


class HistoryError(RuntimeError):
    """Base class for history failures."""


class InvalidStateError(HistoryError):
    """Raised when a store's sequence or pointer no longer satisfy its invariants."""

    def __init__(self, message: str, *, length: int, pointer: int) -> None:
        super().__init__(f"{message} (length={length}, pointer={pointer})")
        self.length = length
        self.pointer = pointer


class IndexOutOfRangeError(HistoryError, IndexError):
    """Raised when direct navigation targets an index outside the history."""

    def __init__(self, index: int, *, length: int) -> None:
        super().__init__(f"History index {index} out of range [0, {length})")
        self.index = index
        self.length = length


__all__ = ["HistoryError", "InvalidStateError", "IndexOutOfRangeError"]
