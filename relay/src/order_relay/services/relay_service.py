"""
Order relay service.

Accepts order intents from the TradingView webhook and the manual order
API, turns them into tracked ``OrderRecord`` instances and executes
them in the background.  Intake returns as soon as the record is in the
pending collection; execution never blocks the caller.

Execution policy per order:

* one attempt on the real execution channel, bounded by
  ``execution_timeout``;
* if the channel is unavailable, raises, or times out, one attempt on
  the simulated fallback;
* if the fallback itself raises, the order is marked ``Failed``.

Every path ends with the record moved to history.  ``Submitted`` is
terminal: orders accepted by AMP Live without a fill are not reconciled
afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Set

from ..clients.broker_adapter import ExecutionChannel
from ..clients.paper_exchange import PaperExchangeClient
from ..exceptions import ExecutionError, InternalError, ValidationError
from ..models import ExecutionReceipt, OrderIntent, OrderRecord, OrderSource, OrderStatus
from .event_store import EventStore
from .metrics_service import MetricsService
from .order_store import OrderStore

logger = logging.getLogger(__name__)


class OrderRelayService:
    def __init__(
        self,
        store: OrderStore,
        channel: ExecutionChannel,
        fallback: PaperExchangeClient,
        *,
        execution_timeout: float = 30.0,
        max_quantity: Optional[int] = None,
        event_store: Optional[EventStore] = None,
        metrics: Optional[MetricsService] = None,
    ) -> None:
        self.store = store
        self.channel = channel
        self.fallback = fallback
        self.execution_timeout = execution_timeout
        self.max_quantity = max_quantity
        self.event_store = event_store
        self.metrics = metrics
        self._tasks: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def receive_signal(self, payload: Any) -> OrderRecord:
        """Accept a trade-signal notification and queue it for execution.

        :raises ValidationError: when ``symbol``, ``side`` or ``price`` is
            missing or malformed.  No order is created in that case.
        :raises InternalError: when the order was created but could not be
            queued; it is left in history as ``Failed``.
        """
        return self._accept(payload, OrderSource.SIGNAL)

    def receive_manual_order(self, payload: Any) -> OrderRecord:
        """Accept a manual order submission and queue it for execution.

        :raises ValidationError: when ``symbol``, ``side`` or ``quantity``
            is missing or malformed.  No order is created in that case.
        """
        return self._accept(payload, OrderSource.MANUAL)

    def _accept(self, payload: Any, source: OrderSource) -> OrderRecord:
        # Intake must run inside the event loop that executes orders
        loop = asyncio.get_running_loop()
        parse = OrderIntent.from_signal if source is OrderSource.SIGNAL else OrderIntent.from_manual
        try:
            intent = parse(payload, max_quantity=self.max_quantity)
        except ValidationError as exc:
            logger.warning("Rejected %s intent: %s", source.value, exc)
            if self.metrics:
                self.metrics.order_rejected(source)
            raise
        record = OrderRecord.from_intent(intent, self.store.next_id())
        self.store.add_pending(record)
        logger.info(
            "Order %s created from %s: %s %d %s @ %s (%s)",
            record.id,
            source.value,
            record.side.value,
            record.quantity,
            record.symbol,
            record.price,
            record.type.value,
        )
        try:
            if self.metrics:
                self.metrics.order_received(source)
                self.metrics.set_counts(*self.store.counts())
            task = loop.create_task(self._execute(record), name=f"execute-order-{record.id}")
        except Exception as exc:
            # The record already exists, so it must still reach a terminal state
            logger.exception("Could not schedule order %s", record.id)
            record.mark_failed(f"intake failed: {exc!r}")
            self.store.complete(record)
            raise InternalError(f"Order {record.id} could not be queued") from exc
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return record

    async def _execute(self, record: OrderRecord) -> None:
        await self._audit("order_received", record)
        logger.info(
            "Executing order %s: %s %d %s", record.id, record.side.value, record.quantity, record.symbol
        )
        if self.channel.is_available():
            try:
                receipt = await asyncio.wait_for(self.channel.submit(record), timeout=self.execution_timeout)
            except asyncio.TimeoutError:
                reason = f"{self.channel.name} timed out after {self.execution_timeout:g}s"
                logger.error("Order %s: %s", record.id, reason)
            except ExecutionError as exc:
                reason = str(exc)
                logger.error("%s order execution failed for %s: %s", self.channel.name, record.id, exc)
            except Exception as exc:
                reason = f"unexpected {self.channel.name} error: {exc!r}"
                logger.exception("Unexpected error submitting order %s", record.id)
            else:
                await self._finish(record, receipt)
                return
            logger.info("Falling back to simulated execution for order %s", record.id)
        else:
            reason = f"{self.channel.name} unavailable"
            logger.warning("%s; order %s falls back to simulated execution", reason, record.id)

        try:
            receipt = await self.fallback.execute(record, reason=reason)
        except Exception as exc:
            logger.exception("Simulation failed for order %s", record.id)
            record.mark_failed(str(exc) or exc.__class__.__name__, broker=self.fallback.name)
            await self._complete(record, "order_failed")
            return
        await self._finish(record, receipt)

    async def _finish(self, record: OrderRecord, receipt: ExecutionReceipt) -> None:
        record.apply_receipt(receipt)
        event = "order_filled" if record.status is OrderStatus.FILLED else "order_submitted"
        logger.info(
            "Order %s %s via %s at %s", record.id, record.status.value.lower(), record.broker, record.execution_price
        )
        await self._complete(record, event)

    async def _complete(self, record: OrderRecord, event: str) -> None:
        self.store.complete(record)
        if self.metrics:
            self.metrics.order_completed(record)
            self.metrics.set_counts(*self.store.counts())
        await self._audit(event, record)

    async def _audit(self, event_type: str, record: OrderRecord) -> None:
        if self.event_store is None:
            return
        try:
            await self.event_store.record(event_type, record)
        except Exception as exc:
            # Non-critical: the audit log never changes an order's outcome
            logger.warning("Failed to write %s event for order %s: %s", event_type, record.id, exc)

    async def wait_for_pending(self) -> None:
        """Wait until every in-flight execution has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        await self.wait_for_pending()
        await self.channel.close()
