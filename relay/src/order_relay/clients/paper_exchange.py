"""
Paper exchange client for simulated fallback execution.

This client fills orders without contacting any venue.  The relay uses
it whenever AMP Live is unconfigured, unreachable, errors, or times
out, so every accepted order reaches a terminal state.  Orders are
assumed to execute at their submitted price after an artificial delay.

A simulated fill is not a market execution.  Receipts are tagged with
``simulated=True`` and the broker name
``"Simulated Broker (AMP Live Unavailable)"`` so consumers can tell the
two apart.
"""

from __future__ import annotations

import asyncio
import logging

from ..models import SIMULATED_BROKER, ExecutionReceipt, OrderRecord, OrderStatus

logger = logging.getLogger(__name__)


class PaperExchangeClient:
    """Simulate order execution and return a filled receipt."""

    name = SIMULATED_BROKER

    def __init__(self, delay: float = 1.0) -> None:
        self.delay = delay

    async def execute(self, order: OrderRecord, reason: str = "AMP Live unavailable") -> ExecutionReceipt:
        """Pretend to execute ``order`` and return a filled receipt.

        :param order: The order to fill.
        :param reason: Why the real channel was bypassed; recorded in the
            receipt message.
        """
        logger.info("Simulating order execution for %s (order %s)", order.symbol, order.id)
        # Simulate execution latency
        await asyncio.sleep(self.delay)
        return ExecutionReceipt(
            status=OrderStatus.FILLED,
            broker=SIMULATED_BROKER,
            execution_price=order.price,
            simulated=True,
            message=f"Simulated fill: {reason}",
        )
