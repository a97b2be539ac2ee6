"""Bounded undo/redo history with branch truncation and change notification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Tuple, TypeVar

from history_engine.runtime import telemetry
from history_engine.runtime.settings import HistorySettings

from .errors import IndexOutOfRangeError, InvalidStateError
from .sequence import EntrySequence
from .subscriptions import Callback, SubscriberList, Unsubscribe

T = TypeVar("T")

Comparator = Callable[[T, T], bool]


@dataclass(frozen=True, slots=True)
class HistorySnapshot(Generic[T]):
    """Read-only copy of a store's sequence and pointer."""

    entries: Tuple[T, ...]
    pointer: int

    @property
    def current(self) -> T:
        return self.entries[self.pointer]

    @property
    def can_undo(self) -> bool:
        return self.pointer > 0

    @property
    def can_redo(self) -> bool:
        return self.pointer < len(self.entries) - 1


class HistoryStore(Generic[T]):
    """Linear history of committed values with a movable pointer.

    ``commit`` discards every entry after the pointer before appending, so a
    redo branch abandoned by a new commit is gone for good. ``undo`` and
    ``redo`` only move the pointer. Subscribers are called synchronously,
    once per successful mutation, after the new state is fully in place.

    Entries are opaque: nothing is compared unless ``comparator`` is given,
    in which case a commit it reports as equal to ``current()`` is skipped.
    With ``capacity`` set, the oldest entries are evicted once a commit would
    exceed it.

    Stores do no locking. Hosts that share one across threads must serialize
    every call themselves; unsynchronized commits race and the last write
    wins.
    """

    def __init__(
        self,
        initial: T,
        *,
        capacity: Optional[int] = None,
        comparator: Optional[Comparator[T]] = None,
        clamp_navigation: bool = False,
        name: str = "history",
        logger_name: Optional[str] = None,
    ) -> None:
        self.name = name
        self._sequence: EntrySequence[T] = EntrySequence(initial, capacity=capacity)
        self._pointer = 0
        self._comparator = comparator
        self._clamp_navigation = clamp_navigation
        self._subscribers = SubscriberList()
        self._logger_name = logger_name

    @classmethod
    def from_settings(
        cls,
        initial: T,
        settings: Optional[HistorySettings] = None,
        **options: object,
    ) -> "HistoryStore[T]":
        resolved = settings or HistorySettings.from_env()
        options.setdefault("capacity", resolved.capacity)
        options.setdefault("clamp_navigation", resolved.clamp_navigation)
        return cls(initial, **options)  # type: ignore[arg-type]

    # -- queries -----------------------------------------------------------

    @property
    def pointer(self) -> int:
        return self._pointer

    @property
    def capacity(self) -> Optional[int]:
        return self._sequence.capacity

    @property
    def entries(self) -> Tuple[T, ...]:
        return tuple(self._sequence.snapshot())

    def __len__(self) -> int:
        return len(self._sequence)

    def current(self) -> T:
        self._ensure_valid()
        return self._sequence[self._pointer]

    def can_undo(self) -> bool:
        self._ensure_valid()
        return self._pointer > 0

    def can_redo(self) -> bool:
        self._ensure_valid()
        return self._pointer < len(self._sequence) - 1

    def snapshot(self) -> HistorySnapshot[T]:
        self._ensure_valid()
        return HistorySnapshot(entries=self.entries, pointer=self._pointer)

    # -- mutations ---------------------------------------------------------

    def commit(self, value: T) -> None:
        """Make ``value`` the new tip, discarding any redo branch."""

        self._ensure_valid()
        with self._span("commit") as handle:
            if self._comparator is not None and self._comparator(
                self._sequence[self._pointer], value
            ):
                self._record("commit.skipped")
                return

            discarded = self._sequence.truncate(self._pointer + 1)
            evicted = self._sequence.append(value)
            self._pointer = len(self._sequence) - 1
            if discarded:
                handle.add_metadata("discarded", discarded)
            if evicted:
                handle.add_metadata("evicted", evicted)
            self._subscribers.notify()

    def update(self, fn: Callable[[T], T]) -> None:
        """Commit ``fn(current())``."""

        self.commit(fn(self.current()))

    def undo(self) -> bool:
        if not self.can_undo():
            self._record("undo.boundary")
            return False
        with self._span("undo"):
            self._pointer -= 1
            self._subscribers.notify()
        return True

    def redo(self) -> bool:
        if not self.can_redo():
            self._record("redo.boundary")
            return False
        with self._span("redo"):
            self._pointer += 1
            self._subscribers.notify()
        return True

    def go_to(self, index: int) -> bool:
        """Move the pointer straight to ``index``.

        Out-of-range indices raise ``IndexOutOfRangeError`` unless the store
        was built with ``clamp_navigation=True``. Returns ``False`` when the
        pointer is already there.
        """

        self._ensure_valid()
        length = len(self._sequence)
        if not 0 <= index < length:
            if not self._clamp_navigation:
                raise IndexOutOfRangeError(index, length=length)
            index = min(max(index, 0), length - 1)
        if index == self._pointer:
            return False
        with self._span("go_to", target=index):
            self._pointer = index
            self._subscribers.notify()
        return True

    def reset(self, value: T) -> None:
        """Drop all history and start over from ``value``."""

        self._ensure_valid()
        with self._span("reset"):
            self._sequence.replace(value)
            self._pointer = 0
            self._subscribers.notify()

    # -- subscriptions -----------------------------------------------------

    def subscribe(self, callback: Callback) -> Unsubscribe:
        return self._subscribers.subscribe(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # -- internals ---------------------------------------------------------

    def _ensure_valid(self) -> None:
        length = len(self._sequence)
        if length < 1:
            raise InvalidStateError(
                "History sequence is empty", length=length, pointer=self._pointer
            )
        if not 0 <= self._pointer < length:
            raise InvalidStateError(
                "History pointer out of bounds", length=length, pointer=self._pointer
            )

    def _span(self, operation: str, **extra: object):
        return telemetry.span(
            f"history::{operation}",
            logger_name=self._logger_name,
            component="history",
            metadata={"store": self.name, **extra},
        )

    def _record(self, event: str) -> None:
        telemetry.record_event(
            f"history.{event}",
            level="debug",
            data={
                "store": self.name,
                "pointer": self._pointer,
                "length": len(self._sequence),
            },
            logger_name=self._logger_name,
        )


__all__ = ["HistoryStore", "HistorySnapshot", "Comparator"]
