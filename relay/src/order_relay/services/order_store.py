"""
In-memory order store.

Holds the two collections that partition every known order: ``pending``
(not yet executed) and ``history`` (terminal).  Both are insertion
ordered and keyed by order id.  A record lives in exactly one of them
from creation until the process exits; nothing is persisted.

Ids come from a monotonic counter owned by the store, so rapid intake
never produces collisions.
"""

from __future__ import annotations

import itertools
import threading
from typing import Dict, List, Optional, Tuple

from ..exceptions import InvalidTransitionError
from ..models import OrderRecord


class OrderStore:
    """Owned repository of pending and completed orders."""

    def __init__(self, first_id: int = 1) -> None:
        self._ids = itertools.count(first_id)
        self._pending: Dict[int, OrderRecord] = {}
        self._history: Dict[int, OrderRecord] = {}
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def add_pending(self, record: OrderRecord) -> None:
        with self._lock:
            if record.id in self._pending or record.id in self._history:
                raise ValueError(f"Order id {record.id} is already tracked")
            self._pending[record.id] = record

    def complete(self, record: OrderRecord) -> None:
        """Move ``record`` from the pending collection to history."""
        with self._lock:
            if record.id not in self._pending:
                raise InvalidTransitionError(f"Order {record.id} is not pending")
            del self._pending[record.id]
            self._history[record.id] = record

    def get(self, order_id: int) -> Optional[OrderRecord]:
        with self._lock:
            record = self._pending.get(order_id)
            return record if record is not None else self._history.get(order_id)

    def pending_orders(self) -> List[OrderRecord]:
        with self._lock:
            return list(self._pending.values())

    def history_orders(self) -> List[OrderRecord]:
        with self._lock:
            return list(self._history.values())

    def snapshot(self) -> Tuple[List[OrderRecord], List[OrderRecord]]:
        """Return ``(pending, history)`` taken atomically."""
        with self._lock:
            return list(self._pending.values()), list(self._history.values())

    def all_orders(self) -> List[OrderRecord]:
        """Snapshot of every order, pending first."""
        with self._lock:
            return list(self._pending.values()) + list(self._history.values())

    def counts(self) -> Tuple[int, int]:
        """Return ``(pending_count, total_count)``."""
        with self._lock:
            pending = len(self._pending)
            return pending, pending + len(self._history)
