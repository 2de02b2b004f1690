"""
Domain models for the order relay using Pydantic.  These models
validate caller-supplied order intents, carry a tracked order through
its lifecycle, and describe the outcome of an execution attempt.
Serialization uses camelCase keys so the JSON shape matches what the
trading-plan UI and TradingView alerts already send.
"""

from __future__ import annotations

import datetime
import math
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .exceptions import InvalidTransitionError, ValidationError

SIMULATED_BROKER = "Simulated Broker (AMP Live Unavailable)"


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP = "STOP"
    STOP_LIMIT = "STOP_LIMIT"


class TimeInForce(str, Enum):
    DAY = "DAY"
    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    SUBMITTED = "Submitted"
    FILLED = "Filled"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class OrderSource(str, Enum):
    SIGNAL = "signal-notification"
    MANUAL = "manual-submission"


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _is_missing(value: Any) -> bool:
    """Return True for values a caller would consider "not provided"."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    return str(value).strip()


def _parse_number(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be finite")
    return number


def _optional_number(name: str, value: Any) -> Optional[float]:
    if _is_missing(value):
        return None
    return _parse_number(name, value)


def _parse_quantity(value: Any) -> int:
    number = _parse_number("quantity", value)
    if not number.is_integer():
        raise ValidationError(f"quantity must be a whole number of contracts, got {value!r}")
    return int(number)


def _parse_side(value: Any) -> OrderSide:
    try:
        return OrderSide(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"side must be BUY or SELL, got {value!r}") from None


def _parse_order_type(value: Any) -> OrderType:
    if _is_missing(value):
        return OrderType.MARKET
    normalized = str(value).strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return OrderType(normalized)
    except ValueError:
        raise ValidationError(f"Unsupported order type {value!r}") from None


def _parse_time_in_force(value: Any) -> TimeInForce:
    if _is_missing(value):
        return TimeInForce.DAY
    try:
        return TimeInForce(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Unsupported time in force {value!r}") from None


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


class OrderIntent(BaseModel):
    """A validated order intent, prior to being assigned an identity.

    Use :meth:`from_signal` or :meth:`from_manual` to parse raw request
    payloads; both raise :class:`~order_relay.exceptions.ValidationError`
    when required fields are missing or malformed.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    symbol: str = Field(..., min_length=1, frozen=True, description="Instrument symbol, e.g. ES1!")
    side: OrderSide = Field(..., frozen=True)
    price: float = Field(0.0, ge=0, frozen=True, description="Limit/reference price; zero allowed for market orders")
    quantity: int = Field(..., gt=0, frozen=True, description="Number of contracts")
    type: OrderType = Field(OrderType.MARKET, frozen=True)
    time_in_force: TimeInForce = Field(TimeInForce.DAY, frozen=True)
    stop_loss: Optional[float] = Field(None, gt=0, frozen=True)
    take_profit: Optional[float] = Field(None, gt=0, frozen=True)
    source: OrderSource = Field(..., frozen=True)
    strategy: Optional[str] = Field(None, frozen=True)
    timeframe: Optional[str] = Field(None, frozen=True)
    requested_broker: Optional[str] = Field(None, frozen=True)

    @model_validator(mode="after")
    def _price_required_for_priced_orders(self) -> "OrderIntent":
        if self.type is not OrderType.MARKET and self.price <= 0:
            raise ValueError(f"price must be positive for {self.type.value} orders")
        return self

    @classmethod
    def _build(cls, max_quantity: Optional[int], **fields: Any) -> "OrderIntent":
        try:
            intent = cls(**fields)
        except PydanticValidationError as exc:
            raise ValidationError(_describe(exc)) from exc
        if max_quantity is not None and intent.quantity > max_quantity:
            raise ValidationError(
                f"quantity {intent.quantity} exceeds the maximum of {max_quantity} contracts per order"
            )
        return intent

    @classmethod
    def from_signal(cls, payload: Any, *, max_quantity: Optional[int] = None) -> "OrderIntent":
        """Parse a trade-signal notification (TradingView alert).

        ``symbol``, ``side`` and ``price`` are required; ``quantity``
        defaults to 1 contract when absent.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Signal payload must be a JSON object")
        missing = [name for name in ("symbol", "side", "price") if _is_missing(payload.get(name))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        raw_quantity = payload.get("quantity")
        # Zero in any form (0, "0", "") means one contract
        quantity = 0 if _is_missing(raw_quantity) else _parse_quantity(raw_quantity)
        return cls._build(
            max_quantity,
            symbol=_text(payload["symbol"]),
            side=_parse_side(payload["side"]),
            price=_parse_number("price", payload["price"]),
            quantity=quantity or 1,
            type=_parse_order_type(payload.get("orderType")),
            time_in_force=_parse_time_in_force(payload.get("timeInForce")),
            stop_loss=_optional_number("stopLoss", payload.get("stopLoss")),
            take_profit=_optional_number("takeProfit", payload.get("takeProfit")),
            source=OrderSource.SIGNAL,
            strategy=_text(payload.get("strategy")) or "Unknown",
            timeframe=_text(payload.get("timeframe")) or "Unknown",
        )

    @classmethod
    def from_manual(cls, payload: Any, *, max_quantity: Optional[int] = None) -> "OrderIntent":
        """Parse a manual order submission.

        ``symbol``, ``side`` and ``quantity`` are required; ``price``
        defaults to 0, which only market orders accept.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Order payload must be a JSON object")
        missing = [name for name in ("symbol", "side", "quantity") if _is_missing(payload.get(name))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        price = payload.get("price")
        return cls._build(
            max_quantity,
            symbol=_text(payload["symbol"]),
            side=_parse_side(payload["side"]),
            price=0.0 if _is_missing(price) else _parse_number("price", price),
            quantity=_parse_quantity(payload["quantity"]),
            type=_parse_order_type(payload.get("type")),
            time_in_force=_parse_time_in_force(payload.get("timeInForce")),
            stop_loss=_optional_number("stopLoss", payload.get("stopLoss")),
            take_profit=_optional_number("takeProfit", payload.get("takeProfit")),
            source=OrderSource.MANUAL,
            requested_broker=_text(payload.get("broker")),
        )


class ExecutionReceipt(BaseModel):
    """Outcome of a successful execution attempt."""

    status: OrderStatus
    broker: str
    execution_price: Optional[float] = None
    execution_time: datetime.datetime = Field(default_factory=utcnow)
    external_order_id: Optional[str] = None
    simulated: bool = False
    message: Optional[str] = None

    @field_validator("status")
    @classmethod
    def _status_must_be_terminal_success(cls, value: OrderStatus) -> OrderStatus:
        if value not in (OrderStatus.SUBMITTED, OrderStatus.FILLED):
            raise ValueError("a receipt reports either Submitted or Filled")
        return value


class OrderRecord(OrderIntent):
    """A tracked order.

    Intake fields are frozen.  The execution fields change exactly once,
    when the order leaves ``Pending`` through :meth:`apply_receipt` or
    :meth:`mark_failed`.
    """

    id: int = Field(..., frozen=True)
    timestamp: datetime.datetime = Field(default_factory=utcnow, frozen=True)
    status: OrderStatus = OrderStatus.PENDING
    broker: Optional[str] = None
    execution_price: Optional[float] = None
    execution_time: Optional[datetime.datetime] = None
    external_order_id: Optional[str] = None
    simulated: bool = False
    message: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_intent(cls, intent: OrderIntent, order_id: int) -> "OrderRecord":
        return cls(id=order_id, **intent.model_dump())

    def _ensure_pending(self) -> None:
        if self.status.is_terminal:
            raise InvalidTransitionError(
                f"Order {self.id} is already {self.status.value}; terminal orders cannot change"
            )

    def apply_receipt(self, receipt: ExecutionReceipt) -> None:
        self._ensure_pending()
        self.broker = receipt.broker
        self.execution_price = receipt.execution_price
        self.execution_time = receipt.execution_time
        self.external_order_id = receipt.external_order_id
        self.simulated = receipt.simulated
        self.message = receipt.message
        self.status = receipt.status

    def mark_failed(self, error: str, broker: Optional[str] = None) -> None:
        self._ensure_pending()
        self.broker = broker
        self.execution_time = utcnow()
        self.error = error
        self.status = OrderStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
