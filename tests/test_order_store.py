"""Tests for the in-memory order store."""

import pytest

from order_relay.exceptions import InvalidTransitionError
from order_relay.models import OrderIntent, OrderRecord
from order_relay.services.order_store import OrderStore


def _record(store: OrderStore, symbol: str = "ES1!") -> OrderRecord:
    intent = OrderIntent.from_signal({"symbol": symbol, "side": "buy", "price": 4500})
    return OrderRecord.from_intent(intent, store.next_id())


def test_ids_are_unique_and_increasing() -> None:
    store = OrderStore()
    ids = [store.next_id() for _ in range(1000)]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_complete_moves_record_from_pending_to_history() -> None:
    store = OrderStore()
    first, second = _record(store), _record(store, "NQ1!")
    store.add_pending(first)
    store.add_pending(second)
    assert store.counts() == (2, 2)

    store.complete(first)
    pending, history = store.snapshot()
    assert [r.id for r in pending] == [second.id]
    assert [r.id for r in history] == [first.id]
    assert store.counts() == (1, 2)
    # Pending orders are listed first
    assert [r.id for r in store.all_orders()] == [second.id, first.id]
    assert store.pending_orders() == [second]
    assert store.history_orders() == [first]
    assert store.get(first.id) is first


def test_complete_rejects_orders_that_are_not_pending() -> None:
    store = OrderStore()
    record = _record(store)
    store.add_pending(record)
    store.complete(record)
    with pytest.raises(InvalidTransitionError):
        store.complete(record)
    assert store.counts() == (0, 1)


def test_duplicate_ids_are_rejected() -> None:
    store = OrderStore()
    record = _record(store)
    store.add_pending(record)
    with pytest.raises(ValueError):
        store.add_pending(record)


def test_get_unknown_id_returns_none() -> None:
    assert OrderStore().get(42) is None
