"""Order lifecycle audit log.

Every lifecycle transition of an order (``order_received``,
``order_submitted``, ``order_filled``, ``order_failed``) is appended as
one JSON line::

    {"type": "order_filled", "orderId": 7, "at": "2024-05-01T14:30:00.123456+00:00", "data": {...}}

``data`` is the order's camelCase snapshot at the time of the event.
Writes go through ``asyncio.to_thread`` under a lock so lines from
concurrent executions never interleave.  Set ``EVENT_STORE_PATH`` to
enable it.

The audit log is not a persistence layer: orders are not reloaded from
it on restart.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

from ..models import OrderRecord, utcnow


class EventStore:
    """Append-only JSON Lines log of order lifecycle events."""

    def __init__(self, path: str) -> None:
        self.path = Path(path).resolve()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    @staticmethod
    def build_event(event_type: str, order: OrderRecord) -> Dict[str, Any]:
        return {
            "type": event_type,
            "orderId": order.id,
            "at": utcnow().isoformat(),
            "data": order.to_dict(),
        }

    async def record(self, event_type: str, order: OrderRecord) -> None:
        """Append ``event_type`` for ``order`` to the log file."""
        line = json.dumps(self.build_event(event_type, order), ensure_ascii=False) + "\n"
        async with self._lock:
            await asyncio.to_thread(self._append, line)

    def _append(self, line: str) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line)

    def read_events(self) -> List[Dict[str, Any]]:
        """Return every logged event in write order; empty if nothing was logged."""
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
