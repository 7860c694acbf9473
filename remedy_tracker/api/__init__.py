"""HTTP API routers (mounted under /api)."""
