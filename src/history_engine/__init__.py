"""Bounded undo/redo history with synchronous change notification."""

__all__ = [
    "adapters",
    "history",
    "runtime",
]

__version__ = "0.1.0"
