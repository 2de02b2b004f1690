"""
Order relay entry point.

Builds the relay from environment configuration and serves the HTTP
interface with aiohttp.  Run with::

    python -m order_relay.main

or the ``order-relay`` console script.
"""

from __future__ import annotations

import logging
from typing import Optional

from aiohttp import web

from .api import create_app
from .clients.broker_adapter import build_execution_channel
from .clients.paper_exchange import PaperExchangeClient
from .config import RelayConfig
from .services.event_store import EventStore
from .services.metrics_service import MetricsService
from .services.order_store import OrderStore
from .services.relay_service import OrderRelayService
from .services.status_service import OrderStatusService

logger = logging.getLogger(__name__)


def build_application(config: RelayConfig, metrics: Optional[MetricsService] = None) -> web.Application:
    """Wire store, channel, fallback and services into an aiohttp app.

    The execution channel connects on startup; in-flight orders are
    drained and the channel closed on cleanup.
    """
    store = OrderStore()
    channel = build_execution_channel(config.credentials, request_timeout=config.execution_timeout)
    fallback = PaperExchangeClient(delay=config.simulated_fill_delay)
    event_store = EventStore(config.event_store_path) if config.event_store_path else None
    relay = OrderRelayService(
        store,
        channel,
        fallback,
        execution_timeout=config.execution_timeout,
        max_quantity=config.max_order_quantity,
        event_store=event_store,
        metrics=metrics,
    )
    status = OrderStatusService(store, channel)
    app = create_app(relay, status)

    async def on_startup(_app: web.Application) -> None:
        if channel.configured and not await channel.connect():
            logger.warning("AMP Live handshake failed; orders will use simulated execution")

    async def on_cleanup(_app: web.Application) -> None:
        await relay.close()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


def main() -> None:
    config = RelayConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    metrics = MetricsService(port=config.prometheus_port)
    metrics.start()
    app = build_application(config, metrics=metrics)
    logger.info("Order relay listening on %s:%d", config.host, config.port)
    logger.info("TradingView webhook: http://localhost:%d/webhook/tradingview", config.port)
    logger.info("Manual orders: http://localhost:%d/api/execute-order", config.port)
    web.run_app(app, host=config.host, port=config.port, print=None)


if __name__ == "__main__":
    main()
