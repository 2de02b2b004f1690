"""
Execution channel abstraction.

An execution channel places orders with an external trading venue.
The concrete variant is chosen once at startup by
:func:`build_execution_channel`: when broker credentials are configured
the relay talks to AMP Live through :class:`AmpLiveClient`, otherwise it
holds an :class:`UnconfiguredChannel` that is never available.

Channels report failures by raising
:class:`~order_relay.exceptions.ExecutionError`.  They never fall back
to simulated execution themselves; that policy belongs to the relay.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Optional

from ..exceptions import ExecutionError
from ..models import ExecutionReceipt, OrderRecord

if TYPE_CHECKING:  # pragma: no cover
    from ..config import BrokerCredentials

logger = logging.getLogger(__name__)


class ExecutionChannel(abc.ABC):
    """Capability to submit an order to a real trading venue."""

    name: str = "unknown"
    configured: bool = True

    @abc.abstractmethod
    def is_available(self) -> bool:
        """Return True only while the channel holds a usable connection."""

    @abc.abstractmethod
    async def submit(self, order: OrderRecord) -> ExecutionReceipt:
        """Place ``order`` with the venue or raise ``ExecutionError``."""

    async def connect(self) -> bool:
        return self.is_available()

    async def close(self) -> None:
        return None


class UnconfiguredChannel(ExecutionChannel):
    """Channel used when no broker credentials are configured."""

    name = "AMP Live"
    configured = False

    def is_available(self) -> bool:
        return False

    async def submit(self, order: OrderRecord) -> ExecutionReceipt:
        raise ExecutionError("No broker credentials configured")


def build_execution_channel(
    credentials: Optional["BrokerCredentials"], *, request_timeout: float = 30.0
) -> ExecutionChannel:
    """Return the execution channel variant matching ``credentials``."""
    if credentials is None:
        logger.warning("AMP Live credentials not found; orders will use simulated execution")
        return UnconfiguredChannel()
    from .amp_live_client import AmpLiveClient

    return AmpLiveClient(credentials, request_timeout=request_timeout)
