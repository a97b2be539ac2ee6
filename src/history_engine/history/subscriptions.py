"""Synchronous change notification for history stores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List

Callback = Callable[[], None]


@dataclass(slots=True)
class Subscription:
    """Single registration; ``active`` flips to ``False`` once disposed."""

    callback: Callback
    active: bool = True


class Unsubscribe:
    """Disposer returned from ``SubscriberList.subscribe``.

    Calling it more than once is a no-op.
    """

    __slots__ = ("_owner", "_subscription")

    def __init__(self, owner: "SubscriberList", subscription: Subscription) -> None:
        self._owner = owner
        self._subscription = subscription

    @property
    def active(self) -> bool:
        return self._subscription.active

    def __call__(self) -> None:
        if not self._subscription.active:
            return
        self._owner._discard(self._subscription)


class SubscriberList:
    """Ordered callback registry notified after each successful mutation."""

    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, callback: Callback) -> Unsubscribe:
        if not callable(callback):
            raise TypeError("callback must be callable")
        subscription = Subscription(callback)
        self._subscriptions.append(subscription)
        return Unsubscribe(self, subscription)

    def notify(self) -> int:
        """Invoke active callbacks in registration order; return how many ran.

        Registrations added while dispatching wait for the next call, and
        registrations removed while dispatching are skipped.
        """

        delivered = 0
        for subscription in tuple(self._subscriptions):
            if not subscription.active:
                continue
            subscription.callback()
            delivered += 1
        return delivered

    def clear(self) -> None:
        for subscription in self._subscriptions:
            subscription.active = False
        self._subscriptions.clear()

    def _discard(self, subscription: Subscription) -> None:
        subscription.active = False
        # identity match: two registrations of one callback are independent
        self._subscriptions = [
            item for item in self._subscriptions if item is not subscription
        ]


__all__ = ["Subscription", "SubscriberList", "Unsubscribe", "Callback"]
