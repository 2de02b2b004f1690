"""
Runtime configuration for the order relay.

Settings come from environment variables; broker credentials come from
the secrets manager so they can be mounted as files.  Missing
credentials are not an error: the relay starts and executes every
order through the simulated fallback.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from .secrets_manager import BaseSecretsManager, get_default_secrets_manager


DEFAULT_AMP_LIVE_URL = "https://paper-api.ampletrader.com"


def _env_float(name: str, default: str) -> float:
    return float(os.environ.get(name, default))


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else None


@dataclass(frozen=True)
class BrokerCredentials:
    api_key: str
    api_secret: str = field(repr=False)
    account_id: Optional[str] = None
    base_url: str = DEFAULT_AMP_LIVE_URL


def load_broker_credentials(secrets: Optional[BaseSecretsManager] = None) -> Optional[BrokerCredentials]:
    """Return AMP Live credentials, or ``None`` when key or secret is missing."""
    secrets = secrets or get_default_secrets_manager()
    api_key = secrets.get_secret("AMP_LIVE_API_KEY")
    api_secret = secrets.get_secret("AMP_LIVE_SECRET")
    if not (api_key and api_secret):
        return None
    return BrokerCredentials(
        api_key=api_key,
        api_secret=api_secret,
        account_id=secrets.get_secret("AMP_LIVE_ACCOUNT_ID"),
        base_url=(os.environ.get("AMP_LIVE_PAPER_URL") or DEFAULT_AMP_LIVE_URL).rstrip("/"),
    )


@dataclass
class RelayConfig:
    host: str = "0.0.0.0"  # nosec B104
    port: int = 3001
    execution_timeout: float = 30.0
    simulated_fill_delay: float = 1.0
    max_order_quantity: Optional[int] = None
    event_store_path: Optional[str] = None
    prometheus_port: int = 9108
    log_level: str = "INFO"
    credentials: Optional[BrokerCredentials] = None

    @classmethod
    def from_env(cls, secrets: Optional[BaseSecretsManager] = None) -> "RelayConfig":
        config = cls(
            host=os.environ.get("HOST", "0.0.0.0"),  # nosec B104
            port=int(os.environ.get("PORT", "3001")),
            execution_timeout=_env_float("EXECUTION_TIMEOUT", "30"),
            simulated_fill_delay=_env_float("SIMULATED_FILL_DELAY", "1.0"),
            max_order_quantity=_env_optional_int("MAX_ORDER_QUANTITY"),
            event_store_path=os.environ.get("EVENT_STORE_PATH") or None,
            prometheus_port=int(os.environ.get("PROMETHEUS_PORT", "9108")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            credentials=load_broker_credentials(secrets),
        )
        if config.execution_timeout <= 0:
            raise ValueError("EXECUTION_TIMEOUT must be positive")
        if config.simulated_fill_delay < 0:
            raise ValueError("SIMULATED_FILL_DELAY must not be negative")
        return config
