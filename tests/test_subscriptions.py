import pytest

from history_engine.history import SubscriberList


def test_notify_runs_in_registration_order() -> None:
    subscribers = SubscriberList()
    order: list[str] = []
    subscribers.subscribe(lambda: order.append("first"))
    subscribers.subscribe(lambda: order.append("second"))

    delivered = subscribers.notify()

    assert order == ["first", "second"]
    assert delivered == 2


def test_unsubscribe_is_idempotent() -> None:
    subscribers = SubscriberList()
    calls: list[int] = []
    unsubscribe = subscribers.subscribe(lambda: calls.append(1))

    unsubscribe()
    unsubscribe()
    subscribers.notify()

    assert calls == []
    assert unsubscribe.active is False
    assert len(subscribers) == 0


def test_unsubscribe_removes_only_its_registration() -> None:
    subscribers = SubscriberList()
    calls: list[str] = []

    def callback() -> None:
        calls.append("hit")

    first = subscribers.subscribe(callback)
    subscribers.subscribe(callback)

    first()
    subscribers.notify()

    assert calls == ["hit"]
    assert len(subscribers) == 1


def test_unsubscribe_during_dispatch_skips_callback() -> None:
    subscribers = SubscriberList()
    calls: list[str] = []
    handles = {}

    def first() -> None:
        calls.append("first")
        handles["second"]()

    subscribers.subscribe(first)
    handles["second"] = subscribers.subscribe(lambda: calls.append("second"))

    subscribers.notify()

    assert calls == ["first"]


def test_subscribe_during_dispatch_waits_for_next_round() -> None:
    subscribers = SubscriberList()
    calls: list[str] = []

    def first() -> None:
        calls.append("first")
        if len(subscribers) == 1:
            subscribers.subscribe(lambda: calls.append("late"))

    subscribers.subscribe(first)

    subscribers.notify()
    assert calls == ["first"]

    subscribers.notify()
    assert calls == ["first", "first", "late"]


def test_clear_deactivates_everything() -> None:
    subscribers = SubscriberList()
    handle = subscribers.subscribe(lambda: None)

    subscribers.clear()

    assert len(subscribers) == 0
    assert handle.active is False


def test_rejects_non_callable() -> None:
    with pytest.raises(TypeError):
        SubscriberList().subscribe("nope")  # type: ignore[arg-type]
