"""Service layer for the order relay.

This package exposes the order store, the relay that drives orders
through execution, the read-only status views and the ambient audit
and metrics services.
"""

from .event_store import EventStore  # noqa: F401
from .metrics_service import MetricsService  # noqa: F401
from .order_store import OrderStore  # noqa: F401
from .relay_service import OrderRelayService  # noqa: F401
from .status_service import OrderListing, OrderStatusService  # noqa: F401
