#!/usr/bin/env python
"""Simple health check utility.

Reports whether the relay's configuration variables and broker secrets
are present, then queries the running relay's ``/health`` endpoint.
Operators can use it to verify the environment before sending live
webhooks.  Exits non-zero when the relay does not answer.
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Any, Dict, Optional

import aiohttp


KEYS = [
    "AMP_LIVE_API_KEY",
    "AMP_LIVE_SECRET",
    "AMP_LIVE_ACCOUNT_ID",
    "AMP_LIVE_PAPER_URL",
    "PORT",
    "EXECUTION_TIMEOUT",
    "SIMULATED_FILL_DELAY",
    "MAX_ORDER_QUANTITY",
    "EVENT_STORE_PATH",
    "PROMETHEUS_PORT",
]


async def fetch_health(url: str) -> Optional[Dict[str, Any]]:
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=5)) as resp:
                if resp.status == 200:
                    return await resp.json()
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        print(f"Relay unreachable: {exc!r}", file=sys.stderr)
    return None


def main() -> None:
    print("Health Check:")
    for key in KEYS:
        configured = os.environ.get(key) or os.environ.get(f"{key}_FILE")
        print(f"{key}: {'set' if configured else 'missing'}")
    base = os.environ.get("RELAY_URL", f"http://localhost:{os.environ.get('PORT', '3001')}")
    health = asyncio.run(fetch_health(f"{base.rstrip('/')}/health"))
    if health is None:
        sys.exit(1)
    for key, value in health.items():
        print(f"{key}: {value}")


if __name__ == "__main__":
    main()
