"""Pytest configuration for path setup.

The relay package lives under ``relay/src``.  When the project is not
installed (``pip install -e .``), this file makes that directory and
the repository root importable so tests can use ``order_relay`` and
``tests.helpers`` directly.
"""

from __future__ import annotations

import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]

for path in (ROOT, ROOT / "relay" / "src"):
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)
