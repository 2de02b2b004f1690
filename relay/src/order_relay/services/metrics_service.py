"""
Metrics Service
===============

Publishes order relay activity as Prometheus metrics.  The relay calls
into this service on intake, rejection and completion; ``start`` runs
the Prometheus HTTP endpoint.

Configuration
-------------

* ``PROMETHEUS_PORT`` - port for the metrics endpoint (default 9108).
  ``0`` disables the endpoint; metrics are still collected.

Metrics
-------

* ``relay_pending_orders`` - orders waiting for execution.
* ``relay_total_orders`` - orders tracked since start.
* ``relay_orders_received_total{source=...}`` - accepted intents.
* ``relay_validation_rejections_total{source=...}`` - rejected intents.
* ``relay_orders_completed_total{status=...,simulated=...}`` - orders
  that reached a terminal state.
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, start_http_server

from ..models import OrderRecord, OrderSource

logger = logging.getLogger(__name__)

# Collectors are process-wide; prometheus_client rejects duplicate registration
PENDING_ORDERS = Gauge("relay_pending_orders", "Orders waiting for execution")
TOTAL_ORDERS = Gauge("relay_total_orders", "Orders tracked since process start")
ORDERS_RECEIVED = Counter(
    "relay_orders_received_total",
    "Order intents accepted by the relay",
    labelnames=["source"],
)
VALIDATION_REJECTIONS = Counter(
    "relay_validation_rejections_total",
    "Order intents rejected during validation",
    labelnames=["source"],
)
ORDERS_COMPLETED = Counter(
    "relay_orders_completed_total",
    "Orders that reached a terminal status",
    labelnames=["status", "simulated"],
)


class MetricsService:
    """Update relay gauges and counters."""

    def __init__(self, port: int = 9108) -> None:
        self.port = port

    def start(self) -> None:
        if self.port <= 0:
            logger.info("Prometheus endpoint disabled")
            return
        try:
            start_http_server(self.port)
        except OSError as exc:
            # Likely already started by another component
            logger.warning("Failed to start Prometheus server on port %d: %s", self.port, exc)
            return
        logger.info("Prometheus metrics exposed on port %d", self.port)

    def set_counts(self, pending: int, total: int) -> None:
        PENDING_ORDERS.set(pending)
        TOTAL_ORDERS.set(total)

    def order_received(self, source: OrderSource) -> None:
        ORDERS_RECEIVED.labels(source=source.value).inc()

    def order_rejected(self, source: OrderSource) -> None:
        VALIDATION_REJECTIONS.labels(source=source.value).inc()

    def order_completed(self, record: OrderRecord) -> None:
        ORDERS_COMPLETED.labels(status=record.status.value, simulated=str(record.simulated).lower()).inc()
