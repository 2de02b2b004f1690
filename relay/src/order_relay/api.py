"""
HTTP interface for the order relay.

Routes:

* ``POST /webhook/tradingview`` - trade-signal notification.
* ``POST /api/execute-order`` - manual order submission.
* ``GET /api/orders`` - all tracked orders, pending first.
* ``GET /api/orders/{order_id}`` - a single order.
* ``GET /health`` - liveness; independent of broker availability.

Intake endpoints accept JSON (whatever the declared content type, as
TradingView alerts are often sent as ``text/plain``) or form-encoded
bodies, and acknowledge before execution completes.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from aiohttp import web

from .exceptions import InternalError, NotFoundError, ValidationError
from .models import utcnow
from .services.relay_service import OrderRelayService
from .services.status_service import OrderStatusService

logger = logging.getLogger(__name__)

RELAY_KEY = web.AppKey("relay", OrderRelayService)
STATUS_KEY = web.AppKey("status", OrderStatusService)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_payload(request: web.Request) -> Any:
    """Return the request body as a dict (JSON or form) or raise ``ValidationError``."""
    if request.content_type in FORM_CONTENT_TYPES:
        form = await request.post()
        return {key: value for key, value in form.items() if isinstance(value, str)}
    body = await request.read()
    try:
        text = body.decode(request.charset or "utf-8")
    except (UnicodeDecodeError, LookupError):
        raise ValidationError("Request body is not valid text") from None
    if not text.strip():
        return {}
    try:
        return json.loads(text)
    except ValueError:
        raise ValidationError("Request body is not valid JSON") from None


class RelayApi:
    """aiohttp handlers bound to a relay and its status views."""

    def __init__(self, relay: OrderRelayService, status: OrderStatusService) -> None:
        self.relay = relay
        self.status = status

    def register(self, app: web.Application) -> None:
        app.router.add_post("/webhook/tradingview", self.tradingview_webhook)
        app.router.add_post("/api/execute-order", self.execute_order)
        app.router.add_get("/api/orders", self.list_orders)
        app.router.add_get("/api/orders/{order_id}", self.get_order)
        app.router.add_get("/health", self.health)

    async def tradingview_webhook(self, request: web.Request) -> web.Response:
        try:
            payload = await read_payload(request)
            logger.info("TradingView webhook received: %s", payload)
            order = self.relay.receive_signal(payload)
        except ValidationError as exc:
            logger.error("Invalid signal format: %s", exc)
            return web.json_response({"error": "Invalid signal format", "details": str(exc)}, status=400)
        except InternalError as exc:
            logger.error("Signal intake failed: %s", exc)
            return web.json_response({"error": "Internal server error"}, status=500)
        except Exception:
            logger.exception("Webhook error")
            return web.json_response({"error": "Internal server error"}, status=500)
        return web.json_response(
            {
                "success": True,
                "message": "Order received and queued for execution",
                "orderId": order.id,
            }
        )

    async def execute_order(self, request: web.Request) -> web.Response:
        try:
            payload = await read_payload(request)
            logger.info("Manual order execution request: %s", payload)
            order = self.relay.receive_manual_order(payload)
        except ValidationError as exc:
            logger.error("Invalid manual order: %s", exc)
            return web.json_response({"error": "Missing required order fields", "details": str(exc)}, status=400)
        except InternalError as exc:
            logger.error("Manual order intake failed: %s", exc)
            return web.json_response({"error": "Internal server error"}, status=500)
        except Exception:
            logger.exception("Manual order error")
            return web.json_response({"error": "Internal server error"}, status=500)
        body = order.to_dict()
        return web.json_response(
            {
                "success": True,
                "message": "Order queued for execution",
                "orderId": order.id,
                "executionPrice": body["price"],
                "executionTime": body["timestamp"],
            }
        )

    async def list_orders(self, request: web.Request) -> web.Response:
        try:
            listing = self.status.list_orders()
            orders = [order.to_dict() for order in listing.orders]
        except Exception:
            logger.exception("Failed to fetch orders")
            return web.json_response({"error": "Failed to fetch orders"}, status=500)
        return web.json_response(
            {
                "success": True,
                "pending": listing.pending_count,
                "total": listing.total_count,
                "orders": orders,
            }
        )

    async def get_order(self, request: web.Request) -> web.Response:
        try:
            order = self.status.get_order(int(request.match_info["order_id"]))
            body = order.to_dict()
        except (ValueError, NotFoundError):
            return web.json_response({"error": "Order not found"}, status=404)
        except Exception:
            logger.exception("Failed to fetch order")
            return web.json_response({"error": "Failed to fetch order"}, status=500)
        return web.json_response({"success": True, "order": body})

    async def health(self, request: web.Request) -> web.Response:
        health = self.status.health_check()
        body = {
            "status": health["status"],
            "timestamp": utcnow().isoformat(),
            "pendingOrders": health["pending_count"],
            "totalOrders": health["total_count"],
        }
        if "broker" in health:
            body["broker"] = health["broker"]
            body["brokerConfigured"] = health["broker_configured"]
            body["brokerAvailable"] = health["broker_available"]
        return web.json_response(body)


def create_app(relay: OrderRelayService, status: OrderStatusService) -> web.Application:
    app = web.Application()
    app[RELAY_KEY] = relay
    app[STATUS_KEY] = status
    RelayApi(relay, status).register(app)
    return app
