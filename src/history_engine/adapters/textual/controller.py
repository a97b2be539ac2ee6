"""Textual-facing adapter that mirrors a HistoryStore into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, TypeVar

from history_engine.history import HistoryStore, Unsubscribe
from history_engine.runtime import telemetry

T = TypeVar("T")

UNDO_KEYS = frozenset({"ctrl+z"})
REDO_KEYS = frozenset({"ctrl+y", "ctrl+shift+z"})


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class HistoryUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_value: Callable[[str], None]
    update_status: Callable[[str], None] = _noop
    update_timeline: Callable[[Sequence[str], int], None] = _noop
    log: Callable[[str], None] = _noop


class TextualHistoryAdapter(Generic[T]):
    """Subscribes once to a store and re-renders on every notification."""

    def __init__(
        self,
        store: HistoryStore[T],
        hooks: HistoryUIHooks,
        *,
        render: Callable[[T], str] = str,
    ) -> None:
        self.store = store
        self.hooks = hooks
        self._render = render
        self._unsubscribe: Optional[Unsubscribe] = store.subscribe(self._refresh)
        self._refresh()

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def submit(self, value: T) -> None:
        self.store.commit(value)

    def undo(self) -> bool:
        return self._navigate("undo", self.store.undo)

    def redo(self) -> bool:
        return self._navigate("redo", self.store.redo)

    def reset(self, value: T) -> None:
        self.store.reset(value)

    def handle_textual_key(self, key: str) -> bool:
        """Dispatch undo/redo shortcuts; return ``False`` for unrelated keys."""

        normalized = key.lower()
        if normalized in UNDO_KEYS:
            self.undo()
            return True
        if normalized in REDO_KEYS:
            self.redo()
            return True
        return False

    def close(self) -> None:
        """Release the store subscription. Safe to call repeatedly."""

        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    def status_line(self) -> str:
        snapshot = self.store.snapshot()
        undo_flag = "on" if snapshot.can_undo else "off"
        redo_flag = "on" if snapshot.can_redo else "off"
        return (
            f"{snapshot.pointer + 1}/{len(snapshot.entries)} "
            f"undo:{undo_flag} redo:{redo_flag}"
        )

    def _navigate(self, label: str, step: Callable[[], bool]) -> bool:
        moved = step()
        if not moved:
            self.hooks.update_status(f"{label}: nothing to {label}")
            self.hooks.log(f"{label} ignored at pointer={self.store.pointer}")
        return moved

    def _refresh(self) -> None:
        snapshot = self.store.snapshot()
        rendered = [self._render(entry) for entry in snapshot.entries]
        self.hooks.update_value(rendered[snapshot.pointer])
        self.hooks.update_timeline(rendered, snapshot.pointer)
        self.hooks.update_status(self.status_line())
        self.hooks.log(
            f"refresh store={self.store.name!r} pointer={snapshot.pointer} "
            f"length={len(rendered)}"
        )
        telemetry.record_event(
            "adapter.refresh",
            level="debug",
            data={"store": self.store.name, "pointer": snapshot.pointer},
        )


__all__ = ["TextualHistoryAdapter", "HistoryUIHooks", "UNDO_KEYS", "REDO_KEYS"]
