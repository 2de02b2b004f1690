"""Read-only views over the relay's order collections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..clients.broker_adapter import ExecutionChannel
from ..exceptions import NotFoundError
from ..models import OrderRecord
from .order_store import OrderStore


@dataclass
class OrderListing:
    pending_count: int
    total_count: int
    orders: List[OrderRecord]


class OrderStatusService:
    def __init__(self, store: OrderStore, channel: Optional[ExecutionChannel] = None) -> None:
        self.store = store
        self.channel = channel

    def list_orders(self) -> OrderListing:
        """Snapshot of all orders, pending first."""
        pending, history = self.store.snapshot()
        return OrderListing(
            pending_count=len(pending),
            total_count=len(pending) + len(history),
            orders=pending + history,
        )

    def get_order(self, order_id: int) -> OrderRecord:
        record = self.store.get(order_id)
        if record is None:
            raise NotFoundError(f"Order {order_id} not found")
        return record

    def health_check(self) -> Dict[str, Any]:
        # Reports broker state but never depends on it
        pending, total = self.store.counts()
        health: Dict[str, Any] = {
            "status": "healthy",
            "pending_count": pending,
            "total_count": total,
        }
        if self.channel is not None:
            health["broker"] = self.channel.name
            health["broker_configured"] = self.channel.configured
            health["broker_available"] = self.channel.is_available()
        return health
