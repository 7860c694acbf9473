"""
Document store package.

Purpose:
    - Keep the SQLAlchemy engine/session handling, ORM models and the
      per-collection stores (sales / medicines / users) in one place.
"""

from __future__ import annotations
