"""History store, entry storage, and change subscriptions."""

from .errors import HistoryError, IndexOutOfRangeError, InvalidStateError
from .sequence import EntrySequence
from .store import Comparator, HistorySnapshot, HistoryStore
from .subscriptions import SubscriberList, Subscription, Unsubscribe

__all__ = [
    "HistoryStore",
    "HistorySnapshot",
    "Comparator",
    "EntrySequence",
    "SubscriberList",
    "Subscription",
    "Unsubscribe",
    "HistoryError",
    "InvalidStateError",
    "IndexOutOfRangeError",
]
