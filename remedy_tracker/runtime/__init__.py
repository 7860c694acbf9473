"""
Runtime support package (logging, periodic tasks, event stream).
"""

from __future__ import annotations
