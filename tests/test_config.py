"""Tests for environment-driven relay configuration."""

import pytest

from order_relay.config import DEFAULT_AMP_LIVE_URL, RelayConfig, load_broker_credentials
from order_relay.secrets_manager import EnvFileSecretsManager

RELAY_ENV = (
    "HOST",
    "PORT",
    "EXECUTION_TIMEOUT",
    "SIMULATED_FILL_DELAY",
    "MAX_ORDER_QUANTITY",
    "EVENT_STORE_PATH",
    "PROMETHEUS_PORT",
    "LOG_LEVEL",
    "AMP_LIVE_API_KEY",
    "AMP_LIVE_SECRET",
    "AMP_LIVE_ACCOUNT_ID",
    "AMP_LIVE_PAPER_URL",
    "AMP_LIVE_API_KEY_FILE",
    "AMP_LIVE_SECRET_FILE",
    "AMP_LIVE_ACCOUNT_ID_FILE",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in RELAY_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_without_credentials(clean_env):
    config = RelayConfig.from_env(EnvFileSecretsManager())

    assert config.port == 3001
    assert config.execution_timeout == 30.0
    assert config.simulated_fill_delay == 1.0
    assert config.max_order_quantity is None
    assert config.event_store_path is None
    assert config.prometheus_port == 9108
    assert config.log_level == "INFO"
    assert config.credentials is None


def test_overrides_from_environment(clean_env):
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("EXECUTION_TIMEOUT", "2.5")
    clean_env.setenv("SIMULATED_FILL_DELAY", "0")
    clean_env.setenv("MAX_ORDER_QUANTITY", "10")
    clean_env.setenv("PROMETHEUS_PORT", "0")
    clean_env.setenv("LOG_LEVEL", "debug")

    config = RelayConfig.from_env(EnvFileSecretsManager())

    assert config.port == 8080
    assert config.execution_timeout == 2.5
    assert config.simulated_fill_delay == 0.0
    assert config.max_order_quantity == 10
    assert config.prometheus_port == 0
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name, value",
    [("EXECUTION_TIMEOUT", "0"), ("SIMULATED_FILL_DELAY", "-1")],
)
def test_invalid_timing_is_rejected(clean_env, name, value):
    clean_env.setenv(name, value)
    with pytest.raises(ValueError):
        RelayConfig.from_env(EnvFileSecretsManager())


def test_credentials_require_key_and_secret(clean_env):
    clean_env.setenv("AMP_LIVE_API_KEY", "key")
    assert load_broker_credentials(EnvFileSecretsManager()) is None

    clean_env.setenv("AMP_LIVE_SECRET", "secret")
    clean_env.setenv("AMP_LIVE_ACCOUNT_ID", "ACC-9")
    credentials = load_broker_credentials(EnvFileSecretsManager())

    assert credentials is not None
    assert credentials.api_key == "key"
    assert credentials.account_id == "ACC-9"
    assert credentials.base_url == DEFAULT_AMP_LIVE_URL
    assert "secret" not in repr(credentials)


def test_paper_url_override(clean_env):
    clean_env.setenv("AMP_LIVE_API_KEY", "key")
    clean_env.setenv("AMP_LIVE_SECRET", "secret")
    clean_env.setenv("AMP_LIVE_PAPER_URL", "http://localhost:9000/")

    credentials = load_broker_credentials(EnvFileSecretsManager())

    assert credentials.base_url == "http://localhost:9000"
