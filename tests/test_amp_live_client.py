"""Tests for the AMP Live execution channel.

A fake AMP Live venue is served in-process with aiohttp so the client
exercises real HTTP requests, headers and JSON bodies.
"""

from typing import Any, Dict, List

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from order_relay.clients.amp_live_client import AmpLiveClient
from order_relay.clients.broker_adapter import UnconfiguredChannel, build_execution_channel
from order_relay.config import BrokerCredentials
from order_relay.exceptions import ExecutionError
from order_relay.models import OrderIntent, OrderRecord, OrderStatus


def make_venue(order_response: Dict[str, Any], order_status: int = 200, account_status: int = 200):
    received: List[Dict[str, Any]] = []

    async def account(request: web.Request) -> web.Response:
        return web.json_response({"accountId": request.match_info.get("account_id")}, status=account_status)

    async def orders(request: web.Request) -> web.Response:
        received.append({"headers": request.headers, "body": await request.json()})
        return web.json_response(order_response, status=order_status)

    app = web.Application()
    app.router.add_get("/v1/accounts", account)
    app.router.add_get("/v1/accounts/{account_id}", account)
    app.router.add_post("/v1/orders", orders)
    return app, received


def make_order(**overrides: Any) -> OrderRecord:
    payload = {"symbol": "ES1!", "side": "buy", "quantity": 2, "price": 4500, "type": "limit"}
    payload.update(overrides)
    return OrderRecord.from_intent(OrderIntent.from_manual(payload), 1)


def make_client(server: TestServer, account_id: str = "ACC-1") -> AmpLiveClient:
    credentials = BrokerCredentials(
        api_key="key-123",
        api_secret="secret-456",
        account_id=account_id,
        base_url=str(server.make_url("")).rstrip("/"),
    )
    return AmpLiveClient(credentials, request_timeout=5, connect_attempts=1)


@pytest.mark.asyncio
async def test_submit_sends_order_and_reports_submitted() -> None:
    app, received = make_venue({"orderId": "AMP-77", "status": "accepted"})
    async with TestServer(app) as server:
        client = make_client(server)
        assert await client.connect() is True
        assert client.is_available() is True

        receipt = await client.submit(make_order(stopLoss=4490, timeInForce="gtc"))
        await client.close()

    assert receipt.status is OrderStatus.SUBMITTED
    assert receipt.broker == "AMP Live"
    assert receipt.external_order_id == "AMP-77"
    assert receipt.simulated is False
    assert len(received) == 1
    headers, body = received[0]["headers"], received[0]["body"]
    assert headers["Authorization"] == "Bearer key-123"
    assert headers["X-API-Secret"] == "secret-456"
    assert body == {
        "symbol": "ES1!",
        "side": "BUY",
        "quantity": 2,
        "orderType": "LIMIT",
        "price": 4500.0,
        "accountId": "ACC-1",
        "timeInForce": "GTC",
        "stopLoss": 4490.0,
    }
    assert client.is_available() is False


@pytest.mark.asyncio
async def test_filled_response_reports_fill_price() -> None:
    app, _ = make_venue({"id": 991, "status": "FILLED", "fillPrice": 4500.5})
    async with TestServer(app) as server:
        client = make_client(server)
        await client.connect()
        receipt = await client.submit(make_order())
        await client.close()

    assert receipt.status is OrderStatus.FILLED
    assert receipt.execution_price == 4500.5
    assert receipt.external_order_id == "991"


@pytest.mark.asyncio
async def test_venue_error_raises_execution_error_without_retry() -> None:
    app, received = make_venue({"error": "margin"}, order_status=503)
    async with TestServer(app) as server:
        client = make_client(server)
        await client.connect()
        with pytest.raises(ExecutionError, match="503"):
            await client.submit(make_order())
        await client.close()

    assert len(received) == 1


@pytest.mark.asyncio
async def test_failed_handshake_leaves_channel_unavailable() -> None:
    app, received = make_venue({}, account_status=401)
    async with TestServer(app) as server:
        client = make_client(server, account_id=None)
        assert await client.connect() is False
        assert client.is_available() is False
        with pytest.raises(ExecutionError, match="Not connected"):
            await client.submit(make_order())
        await client.close()

    assert received == []


@pytest.mark.asyncio
async def test_unconfigured_channel_is_never_available() -> None:
    channel = build_execution_channel(None)
    assert isinstance(channel, UnconfiguredChannel)
    assert channel.is_available() is False
    assert await channel.connect() is False
    with pytest.raises(ExecutionError):
        await channel.submit(make_order())


def test_credentials_select_amp_live_client() -> None:
    channel = build_execution_channel(BrokerCredentials(api_key="k", api_secret="s"))
    assert isinstance(channel, AmpLiveClient)
    assert channel.configured is True
    assert channel.is_available() is False


def test_market_order_without_price_sends_null_price() -> None:
    client = AmpLiveClient(BrokerCredentials(api_key="k", api_secret="s"))
    payload = client.build_order_payload(make_order(type="market", price=None))
    assert payload["price"] is None
    assert payload["orderType"] == "MARKET"
    assert "stopLoss" not in payload
