"""
secrets_manager
================

Loads broker credentials without hard-coding where they live.  The
default implementation reads a value from the environment, or from a
file when the corresponding ``*_FILE`` environment variable is set, so
operators can mount the AMP Live key and secret as Docker or Kubernetes
secrets instead of exporting them.  ``VaultSecretsManager`` reads from
HashiCorp Vault and falls back to the environment.

Example usage::

    from order_relay.secrets_manager import get_default_secrets_manager

    secrets = get_default_secrets_manager()
    api_key = secrets.get_secret("AMP_LIVE_API_KEY")
"""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class BaseSecretsManager:
    """Abstract base class for secrets managers."""

    def get_secret(self, name: str) -> Optional[str]:  # pragma: no cover - override
        """Return the secret value for ``name`` or ``None`` if unavailable."""
        raise NotImplementedError


class EnvFileSecretsManager(BaseSecretsManager):
    """
    Loads secrets from environment variables and optional ``*_FILE`` paths.

    If ``{name}_FILE`` is set its contents are used and take precedence
    over ``{name}``.  Empty values are reported as ``None``.
    """

    def __init__(self, base_path: Optional[Path] = None) -> None:
        #: Optional base directory to resolve relative file paths.
        self.base_path = base_path
        self._cache: Dict[str, Optional[str]] = {}

    def get_secret(self, name: str) -> Optional[str]:
        if name in self._cache:
            return self._cache[name]

        file_path = os.getenv(f"{name}_FILE")
        if file_path:
            path = Path(file_path)
            if not path.is_absolute() and self.base_path is not None:
                path = self.base_path / path
            try:
                value: Optional[str] = path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                logger.warning("Failed to read secret %s from %s: %s", name, path, exc)
                value = None
        else:
            value = os.getenv(name)

        value = value or None
        self._cache[name] = value
        return value


class VaultSecretsManager(BaseSecretsManager):
    """Secrets manager backend for HashiCorp Vault.

    With ``VAULT_ADDR`` and ``VAULT_TOKEN`` set, secrets are read from
    ``{VAULT_ADDR}/v1/secret/data/{prefix}/{name}`` and the value is
    expected under ``data.data.value``.  Otherwise, or when the request
    fails, lookups go to :class:`EnvFileSecretsManager`.
    """

    def __init__(self, *, prefix: Optional[str] = None, timeout: float = 5.0) -> None:
        self.prefix = prefix or os.getenv("VAULT_PREFIX", "")
        self.timeout = timeout
        self.fallback = EnvFileSecretsManager(base_path=Path(os.getenv("SECRETS_BASE_PATH", "/")))

    def get_secret(self, name: str) -> Optional[str]:
        addr = os.getenv("VAULT_ADDR")
        token = os.getenv("VAULT_TOKEN")
        if not (addr and token):
            return self.fallback.get_secret(name)
        path = f"{self.prefix}/{name}" if self.prefix else name
        url = f"{addr.rstrip('/')}/v1/secret/data/{path}"
        req = urllib.request.Request(url, headers={"X-Vault-Token": token})
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                data = json.loads(resp.read().decode("utf-8"))
        except (urllib.error.URLError, OSError, ValueError) as exc:
            logger.warning("Vault lookup for %s failed, using environment: %s", name, exc)
            return self.fallback.get_secret(name)
        return data.get("data", {}).get("data", {}).get("value") or None


def get_default_secrets_manager() -> BaseSecretsManager:
    """
    Return the secrets manager selected by ``SECRETS_BACKEND``:

    * ``env`` (default) - environment variables and ``*_FILE`` paths.
    * ``vault`` - HashiCorp Vault with environment fallback.

    Unknown values fall back to ``env``.
    """
    backend = os.getenv("SECRETS_BACKEND", "env").lower()
    if backend == "vault":
        return VaultSecretsManager()
    if backend != "env":
        logger.warning("Unknown SECRETS_BACKEND %r, using environment", backend)
    return EnvFileSecretsManager(base_path=Path(os.getenv("SECRETS_BASE_PATH", "/")))
