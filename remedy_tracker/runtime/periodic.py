"""
Background jobs of the running app (reminder sweep, session cleanup).

A `BackgroundJobs` instance belongs to one lifespan: jobs are added on startup
and all of them are cancelled together on shutdown.

Policy:
    - Synchronous jobs run through asyncio.to_thread so the event loop never
      waits on the DB or the messaging gateway.
    - A failing run is logged and counted; the job keeps its schedule.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class JobStats:
    """Run counters of one job."""

    runs: int = 0
    failures: int = 0


@dataclass
class _Job:
    name: str
    interval_seconds: float
    task: asyncio.Task[None]
    stats: JobStats = field(default_factory=JobStats)


class BackgroundJobs:
    """Named interval jobs owned by the app lifespan."""

    def __init__(self, *, logger: logging.Logger) -> None:
        self._logger = logger
        self._jobs: dict[str, _Job] = {}

    def add(
        self,
        name: str,
        func: Callable[[], object],
        *,
        interval_seconds: float,
        run_at_start: bool,
    ) -> JobStats:
        """
        Schedule `func` (a plain sync callable) every interval_seconds.

        Args:
            name: job name (unique; also the asyncio task name).
            func: one run, executed in a worker thread.
            interval_seconds: delay between the end of one run and the next.
            run_at_start: run once immediately instead of waiting one interval.

        Returns:
            The job's live counters.
        """

        if name in self._jobs:
            raise ValueError(f"background job already scheduled: {name}")

        stats = JobStats()
        interval = float(interval_seconds)

        async def _loop() -> None:
            if not run_at_start:
                await asyncio.sleep(interval)
            while True:
                try:
                    await asyncio.to_thread(func)
                except asyncio.CancelledError:
                    raise
                except Exception:  # noqa: BLE001
                    stats.failures += 1
                    self._logger.exception("background job failed name=%s failures=%s", name, stats.failures)
                finally:
                    stats.runs += 1
                await asyncio.sleep(interval)

        task = asyncio.create_task(_loop(), name=name)
        self._jobs[name] = _Job(name=name, interval_seconds=interval, task=task, stats=stats)
        self._logger.info("background job scheduled name=%s interval=%ss run_at_start=%s", name, interval, run_at_start)
        return stats

    def names(self) -> list[str]:
        return sorted(self._jobs)

    async def stop(self) -> None:
        """Cancel every job and wait for them (a second call is a no-op)."""

        jobs = list(self._jobs.values())
        self._jobs.clear()
        if not jobs:
            return
        for job in jobs:
            job.task.cancel()
        await asyncio.gather(*(job.task for job in jobs), return_exceptions=True)
        self._logger.info("background jobs stopped count=%s", len(jobs))
