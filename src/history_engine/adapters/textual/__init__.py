"""Textual host integration for history stores."""

from .controller import HistoryUIHooks, TextualHistoryAdapter

__all__ = ["HistoryUIHooks", "TextualHistoryAdapter"]
