"""Exception hierarchy for the order relay.

``ValidationError``, ``NotFoundError`` and ``InternalError`` are surfaced
to HTTP callers (400, 404 and 500 respectively).  ``ExecutionError``
never leaves the relay: it is raised by execution channels and
recovered by the simulated fallback.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for all order relay errors."""


class ValidationError(RelayError):
    """Raised when an order intent is malformed or incomplete."""


class ExecutionError(RelayError):
    """Raised when the real execution channel cannot place an order."""


class NotFoundError(RelayError):
    """Raised when no tracked order matches the requested id."""


class InvalidTransitionError(RelayError):
    """Raised when an order that already left ``Pending`` is transitioned again."""


class InternalError(RelayError):
    """Raised when intake fails unexpectedly after an order was created.

    The order has already been moved to a terminal ``Failed`` state.
    """
