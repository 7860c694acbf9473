"""
Remedy Tracker package.

Policy:
    - No heavy initialization or re-exports at package import time.
    - Responsibilities live in sub-packages and are imported explicitly.
"""

from __future__ import annotations

__all__ = [
    "analytics",
    "api",
    "app_bootstrap",
    "expiry",
    "identity",
    "messaging",
    "reminders",
    "runtime",
    "store",
    "views",
]
