"""
Reminder package.

Purpose:
    - Keep the once-per-day reminder gate and the service that drives it
      (live snapshots + periodic sweep) together.
"""

from __future__ import annotations
