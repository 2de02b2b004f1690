"""
AMP Live REST client.

Asynchronous execution channel for the AMP Live paper/live trading API.
Requests carry the API key as a bearer token and the secret in the
``X-API-Secret`` header.  The connect handshake (an account lookup) is
retried with exponential backoff; order submission is never retried,
so a slow or failing venue cannot receive the same order twice.  The
relay decides what happens after a failed submission.

Note: AMP Live may accept an order without confirming a fill.  Such
orders are reported as ``Submitted`` and are not reconciled later;
fills and cancels arriving after submission are not tracked.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientResponse
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import BrokerCredentials
from ..exceptions import ExecutionError
from ..models import ExecutionReceipt, OrderRecord, OrderStatus, OrderType
from .broker_adapter import ExecutionChannel

logger = logging.getLogger(__name__)

BROKER_NAME = "AMP Live"


class AmpLiveClient(ExecutionChannel):
    """Asynchronous AMP Live REST API client."""

    name = BROKER_NAME

    def __init__(
        self,
        credentials: BrokerCredentials,
        *,
        request_timeout: float = 30.0,
        connect_attempts: int = 3,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Construct the client.

        Args:
            credentials: API key, secret, optional account id and base URL.
            request_timeout: Total timeout in seconds for a single HTTP request.
            connect_attempts: Handshake attempts before giving up.
            session: Optional externally managed ``aiohttp`` session.  When
                omitted the client creates one on :meth:`connect` and closes
                it in :meth:`close`.
        """
        self.credentials = credentials
        self.base_url = credentials.base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.connect_attempts = max(1, connect_attempts)
        self._session = session
        self._owns_session = session is None
        self._connected = False

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.credentials.api_key}",
            "X-API-Secret": self.credentials.api_secret,
            "Content-Type": "application/json",
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.request_timeout))
            self._owns_session = True
        return self._session

    @staticmethod
    async def _handle_response_errors(resp: ClientResponse) -> None:
        if resp.status >= 400:
            # Truncate bodies so account details do not end up in logs
            text = await resp.text()
            truncated = text[:200] if text else ""
            logger.error("AMP Live API error %s: %s", resp.status, truncated)
            raise ExecutionError(f"AMP Live API error: {resp.status} {resp.reason or ''}".strip())

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        session = self._get_session()
        url = f"{self.base_url}{path}"
        async with session.request(method, url, headers=self._headers(), json=payload) as resp:
            await self._handle_response_errors(resp)
            try:
                return await resp.json(content_type=None)
            except ValueError as exc:
                raise ExecutionError("AMP Live API returned a non-JSON body") from exc

    def is_available(self) -> bool:
        return self._connected

    async def connect(self) -> bool:
        """Verify credentials with an account lookup; return True on success."""
        path = f"/v1/accounts/{self.credentials.account_id}" if self.credentials.account_id else "/v1/accounts"
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.connect_attempts),
                wait=wait_exponential(min=1, max=8),
                retry=retry_if_exception_type((ExecutionError, aiohttp.ClientError, asyncio.TimeoutError)),
            ):
                with attempt:
                    await self._request("GET", path)
        except RetryError as exc:
            logger.error("Could not connect to AMP Live at %s: %s", self.base_url, exc.last_attempt.exception())
            self._connected = False
            return False
        logger.info("Connected to AMP Live at %s", self.base_url)
        self._connected = True
        return True

    async def close(self) -> None:
        self._connected = False
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        logger.info("Disconnected from AMP Live")

    def build_order_payload(self, order: OrderRecord) -> Dict[str, Any]:
        """Construct the JSON body for ``POST /v1/orders``."""
        payload: Dict[str, Any] = {
            "symbol": order.symbol,
            "side": order.side.value,
            "quantity": order.quantity,
            "orderType": order.type.value,
            "price": order.price if order.type is not OrderType.MARKET or order.price else None,
            "accountId": self.credentials.account_id,
            "timeInForce": order.time_in_force.value,
        }
        if order.stop_loss is not None:
            payload["stopLoss"] = order.stop_loss
        if order.take_profit is not None:
            payload["takeProfit"] = order.take_profit
        return payload

    async def submit(self, order: OrderRecord) -> ExecutionReceipt:
        if not self._connected:
            raise ExecutionError("Not connected to AMP Live")
        payload = self.build_order_payload(order)
        logger.info("Sending order %s to AMP Live: %s", order.id, payload)
        try:
            result = await self._request("POST", "/v1/orders", payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ExecutionError(f"AMP Live request failed: {exc!r}") from exc
        if not isinstance(result, dict):
            raise ExecutionError("AMP Live API returned an unexpected response")
        external_id = result.get("orderId") or result.get("id")
        venue_status = str(result.get("status", "")).lower()
        if venue_status == "filled":
            fill_price = result.get("fillPrice") or result.get("price") or order.price
            return ExecutionReceipt(
                status=OrderStatus.FILLED,
                broker=BROKER_NAME,
                execution_price=float(fill_price),
                external_order_id=str(external_id) if external_id is not None else None,
                message="Order filled by AMP Live",
            )
        return ExecutionReceipt(
            status=OrderStatus.SUBMITTED,
            broker=BROKER_NAME,
            execution_price=order.price,
            external_order_id=str(external_id) if external_id is not None else None,
            message="Order submitted to AMP Live",
        )
