"""
Order relay for the trading-plan assistant.

Accepts trade signals (TradingView webhooks) and manual orders, tracks
each order from ``Pending`` to a terminal status, and forwards it to
AMP Live or, when AMP Live is unavailable, to a simulated executor.
"""

__version__ = "0.1.0"
