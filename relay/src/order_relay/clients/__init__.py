"""Execution channels: the AMP Live REST client and the simulated fallback."""

from .broker_adapter import ExecutionChannel, UnconfiguredChannel, build_execution_channel  # noqa: F401
from .paper_exchange import PaperExchangeClient  # noqa: F401
