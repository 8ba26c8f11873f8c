from __future__ import annotations

from unittest.mock import Mock

from iFiles.application.state import Store, create_store


def test_get_and_set():
    store = create_store(1)
    assert isinstance(store, Store)
    store.set(2)
    assert store.get() == 2


def test_subscribers_receive_new_and_old_values():
    store = create_store("a")
    callback = Mock()
    store.subscribe(callback)
    store.set("b")
    callback.assert_called_once_with("b", "a")


def test_setting_equal_value_does_not_notify():
    store = create_store({"x": 1})
    callback = Mock()
    store.subscribe(callback)
    store.set({"x": 1})
    callback.assert_not_called()


def test_update_applies_function():
    store = create_store(10)
    assert store.update(lambda value: value + 5) == 15
    assert store.get() == 15


def test_unsubscribe_and_cancel_stop_notifications():
    store = create_store(0)
    first, second = Mock(), Mock()
    sub_first = store.subscribe(first)
    sub_second = store.subscribe(second)
    store.unsubscribe(sub_first)
    sub_second.cancel()
    store.set(1)
    first.assert_not_called()
    second.assert_not_called()
    assert store.subscriber_count == 0


def test_failing_subscriber_does_not_block_others():
    store = create_store(0)
    failing = Mock(side_effect=RuntimeError("boom"))
    healthy = Mock()
    store.subscribe(failing)
    store.subscribe(healthy)
    store.set(1)
    healthy.assert_called_once_with(1, 0)


def test_stores_are_isolated():
    first, second = create_store([]), create_store([])
    first.set(["x"])
    assert second.get() == []
