"""
App lifecycle (lifespan).

Purpose:
    - Keep startup / shutdown side effects in one place.
    - `main.py` only attaches the lifespan.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from remedy_tracker.app_bootstrap.config_bootstrap import AppServices
from remedy_tracker.runtime.logging import suppress_uvicorn_access_log_paths
from remedy_tracker.runtime.periodic import BackgroundJobs


logger = logging.getLogger(__name__)

_SESSION_CLEANUP_INTERVAL_SECONDS = 600.0


def build_lifespan(services: AppServices) -> Callable[[FastAPI], AsyncIterator[None]]:
    """
    Build the FastAPI lifespan for one set of services.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        jobs = BackgroundJobs(logger=logger)
        await _startup(services, jobs)
        try:
            yield
        finally:
            await _shutdown(services, jobs)

    return lifespan


async def _startup(services: AppServices, jobs: BackgroundJobs) -> None:
    cfg = services.config_store.config

    # --- drop frequent polling requests from uvicorn.access ---
    suppress_uvicorn_access_log_paths("/api/health", "/favicon.ico")

    # --- notification stream ---
    loop = asyncio.get_running_loop()
    services.events.install(loop)
    await services.events.start_dispatcher()

    # --- session-changed log ---
    services.identity.on_session_changed(
        lambda change, uid: logger.info("session changed change=%s uid=%s", change, uid)
    )

    # --- live reminder evaluation ---
    # NOTE: started after the event stream so failure notifications reach clients.
    services.reminder_service.start()

    # --- background jobs ---
    # NOTE: the reminder sweep runs once at startup.
    if cfg.reminder_sweep_enabled:
        jobs.add(
            "reminder_sweep",
            services.reminder_service.tick,
            interval_seconds=float(cfg.reminder_sweep_interval_seconds),
            run_at_start=True,
        )
    jobs.add(
        "session_cleanup",
        services.sessions.cleanup_expired,
        interval_seconds=_SESSION_CLEANUP_INTERVAL_SECONDS,
        run_at_start=False,
    )
    logger.info("remedy tracker started sweep_enabled=%s", cfg.reminder_sweep_enabled)


async def _shutdown(services: AppServices, jobs: BackgroundJobs) -> None:
    # --- jobs first so nothing publishes into a stopped stream ---
    await jobs.stop()
    await asyncio.to_thread(services.reminder_service.stop)
    await services.events.stop_dispatcher()
    services.db.dispose()
    logger.info("remedy tracker stopped")
