"""Fake execution channels and executors for testing.

``FakeChannel`` records every order it is asked to submit and answers
with a configurable receipt, error or delay, so tests can drive the
relay through each branch of its execution policy without a network.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from order_relay.clients.broker_adapter import ExecutionChannel
from order_relay.clients.paper_exchange import PaperExchangeClient
from order_relay.models import ExecutionReceipt, OrderRecord, OrderStatus


class FakeChannel(ExecutionChannel):
    """A minimal execution channel used for capturing submissions in tests."""

    name = "Fake Venue"

    def __init__(
        self,
        *,
        available: bool = True,
        status: OrderStatus = OrderStatus.SUBMITTED,
        fill_price: Optional[float] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.available = available
        self.status = status
        self.fill_price = fill_price
        self.error = error
        self.delay = delay
        self.submitted: List[OrderRecord] = []
        self.closed = False

    def is_available(self) -> bool:
        return self.available

    async def submit(self, order: OrderRecord) -> ExecutionReceipt:
        self.submitted.append(order)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ExecutionReceipt(
            status=self.status,
            broker=self.name,
            execution_price=self.fill_price if self.fill_price is not None else order.price,
            external_order_id=f"fake-{order.id}",
            message="accepted by fake venue",
        )

    async def close(self) -> None:
        self.closed = True


class ExplodingPaperExchange(PaperExchangeClient):
    """Simulated executor whose every execution raises."""

    def __init__(self) -> None:
        super().__init__(delay=0)

    async def execute(self, order: OrderRecord, reason: str = "") -> ExecutionReceipt:
        raise RuntimeError("simulator exploded")
