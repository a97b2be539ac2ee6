"""Executable Textual app for editing a value with undo/redo history."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Input, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use history_engine.adapters.textual.app"
    ) from exc

from history_engine.history import HistoryStore
from history_engine.runtime.settings import HistorySettings

from .controller import HistoryUIHooks, TextualHistoryAdapter


def create_default_store(
    initial: str = "", *, capacity: Optional[int] = None
) -> HistoryStore[str]:
    """Build a text history, falling back to environment settings.

    An explicit ``capacity`` of 0 means unbounded, matching
    ``HISTORY_ENGINE_CAPACITY``.
    """

    settings = HistorySettings.from_env()
    if capacity is not None:
        settings = HistorySettings(
            capacity=capacity or None, clamp_navigation=settings.clamp_navigation
        )
    return HistoryStore.from_settings(initial, settings, name="editor")


def format_timeline(entries: Sequence[str], pointer: int) -> str:
    lines: List[str] = []
    for index, entry in enumerate(entries):
        marker = ">" if index == pointer else " "
        lines.append(f"{marker} {index:>3}  {entry!r}")
    return "\n".join(lines)


@dataclass
class UIState:
    value_text: str = ""
    status_text: str = ""
    timeline: List[str] = field(default_factory=list)
    pointer: int = 0


class HistoryEditorApp(App[None]):
    """Minimal Textual UI around a single text ``HistoryStore``."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#value-view {
		height: 3;
		border: round $accent;
		padding: 0 1;
	}

	#timeline-view {
		height: 1fr;
		border: round $secondary;
		padding: 0 1;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        Binding("ctrl+z", "history_key('ctrl+z')", "Undo", priority=True),
        Binding("ctrl+y", "history_key('ctrl+y')", "Redo", priority=True),
        Binding(
            "ctrl+shift+z",
            "history_key('ctrl+shift+z')",
            "Redo",
            show=False,
            priority=True,
        ),
        Binding("ctrl+r", "reset", "Reset", priority=True),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, *, initial: str = "", capacity: Optional[int] = None) -> None:
        super().__init__()
        self._state = UIState()
        self._initial = initial
        self._capacity = capacity
        self.store: HistoryStore[str] | None = None
        self.adapter: TextualHistoryAdapter[str] | None = None
        self._value_widget: Static | None = None
        self._timeline_widget: Static | None = None
        self._status_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="history-area"):
            self._value_widget = Static("", id="value-view", markup=False)
            yield self._value_widget
            yield Input(placeholder="Type a value and press Enter to commit")
            self._timeline_widget = Static("", id="timeline-view", markup=False)
            yield self._timeline_widget
        self._status_widget = Static("", id="status-line")
        yield self._status_widget
        yield Footer()

    def on_mount(self) -> None:
        self.store = create_default_store(self._initial, capacity=self._capacity)
        hooks = HistoryUIHooks(
            update_value=self._update_value,
            update_status=self._update_status,
            update_timeline=self._update_timeline,
            log=self.log,
        )
        self.adapter = TextualHistoryAdapter(self.store, hooks)

    def on_unmount(self) -> None:
        if self.adapter:
            self.adapter.close()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if not self.adapter:
            return
        self.adapter.submit(event.value)
        event.input.value = ""

    def action_history_key(self, key: str) -> None:
        if self.adapter:
            self.adapter.handle_textual_key(key)

    def action_reset(self) -> None:
        if self.adapter:
            self.adapter.reset(self._initial)

    def _update_value(self, value: str) -> None:
        self._state.value_text = value
        if self._value_widget:
            self._value_widget.update(value)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _update_timeline(self, entries: Sequence[str], pointer: int) -> None:
        self._state.timeline = list(entries)
        self._state.pointer = pointer
        if self._timeline_widget:
            self._timeline_widget.update(format_timeline(entries, pointer))


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Edit a value with undo/redo history in the terminal."
    )
    parser.add_argument(
        "--initial",
        default="",
        help="Initial committed value (default: empty string)",
    )
    parser.add_argument(
        "--capacity",
        type=int,
        default=None,
        help=(
            "Maximum retained entries, 0 for unbounded "
            "(default: HISTORY_ENGINE_CAPACITY or unbounded)"
        ),
    )
    args = parser.parse_args(argv)
    if args.capacity is not None and args.capacity < 0:
        parser.error(f"--capacity cannot be negative, got {args.capacity}")
    return args


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    app = HistoryEditorApp(initial=args.initial, capacity=args.capacity)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
