"""
Notification event stream for WebSocket clients.

Delivers app notifications (sale added, reminder sent, reminder failed, ...)
to connected UI clients in real time. This is the notifier that services
receive by injection; it is created in create_app() and started/stopped with
the app lifecycle.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Protocol, Set, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from fastapi import WebSocket


logger = logging.getLogger(__name__)

NOTIFY_SUCCESS = "success"
NOTIFY_ERROR = "error"

# --- backpressure ---
# NOTE:
# - the queue is bounded so a stalled client cannot grow memory.
# - sends time out and slow clients are dropped.
_EVENT_QUEUE_MAXSIZE = 1000
_SEND_TIMEOUT_SECONDS = 2.0
_RECENT_MAX = 100


class Notifier(Protocol):
    """Event sink the services depend on."""

    def notify(self, message: str, type: str = NOTIFY_SUCCESS, **data: Any) -> None:
        ...


@dataclass
class AppEvent:
    """
    One event on the stream.

    - `event_id` increases monotonically per process.
    - `type` is the notification kind ("success" / "error").
    """

    type: str
    event_id: int
    message: str
    data: Dict[str, Any]
    created_at: int


def _serialize_event(event: AppEvent) -> str:
    """Serialize an event to the minimal JSON payload sent to clients."""
    return json.dumps(
        {
            "event_id": int(event.event_id),
            "type": event.type,
            "message": event.message,
            "data": event.data,
            "created_at": int(event.created_at),
        },
        ensure_ascii=False,
        separators=(",", ":"),
    )


class EventStream:
    """
    Notification broadcaster.

    publish/notify are thread-safe (the reminder sweep runs in a worker thread).
    Recent events are kept in a ring buffer even before the dispatcher starts.
    """

    def __init__(self) -> None:
        self._queue: Optional[asyncio.Queue[AppEvent]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._dispatch_task: Optional[asyncio.Task[None]] = None
        self._clients: Set["WebSocket"] = set()
        self._ids = itertools.count(1)
        self._recent: Deque[AppEvent] = deque(maxlen=_RECENT_MAX)
        self._recent_lock = threading.Lock()

    # --- lifecycle ---

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """
        Bind the stream to the app's event loop.

        Repeated calls are ignored.
        """
        if self._queue is not None:
            return
        self._loop = loop
        self._queue = asyncio.Queue(maxsize=int(_EVENT_QUEUE_MAXSIZE))
        logger.info("event stream installed")

    async def start_dispatcher(self) -> None:
        """Start the task that fans events out to clients."""
        if self._dispatch_task is not None:
            return
        if self._queue is None:
            raise RuntimeError("event queue is not initialized. call install() first.")
        loop = asyncio.get_running_loop()
        self._dispatch_task = loop.create_task(self._dispatch_loop())
        logger.info("event stream dispatcher started")

    async def stop_dispatcher(self) -> None:
        """Cancel the dispatcher task (app shutdown)."""
        if self._dispatch_task is None:
            return
        self._dispatch_task.cancel()
        try:
            await self._dispatch_task
        except asyncio.CancelledError:  # pragma: no cover
            pass
        self._dispatch_task = None
        self._queue = None
        self._loop = None

    # --- publishing ---

    def notify(self, message: str, type: str = NOTIFY_SUCCESS, **data: Any) -> None:
        """Publish a user-facing notification."""

        self.publish(type=type, message=message, data=data)

    def publish(self, *, type: str, message: str, data: Optional[Dict[str, Any]] = None) -> AppEvent:
        """
        Record an event and queue it for delivery.

        Safe to call from any thread. Without an installed loop the event is
        only kept in the recent buffer.
        """
        event = AppEvent(
            type=str(type),
            event_id=next(self._ids),
            message=str(message or ""),
            data=dict(data or {}),
            created_at=int(time.time()),
        )
        with self._recent_lock:
            self._recent.append(event)

        loop = self._loop
        if self._queue is None or loop is None:
            return event
        try:
            loop.call_soon_threadsafe(self._enqueue_nonblocking, event)
        except RuntimeError:
            # --- shutdown race (loop already closed) ---
            pass
        return event

    def recent(self, limit: int = _RECENT_MAX) -> List[AppEvent]:
        """Return the most recent events, oldest first."""

        with self._recent_lock:
            items = list(self._recent)
        return items[-int(limit):] if limit > 0 else []

    def _enqueue_nonblocking(self, event: AppEvent) -> None:
        """Queue without blocking (dropped when full)."""

        if self._queue is None:
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("event stream queue full; dropped type=%s event_id=%s", event.type, int(event.event_id))

    # --- clients ---

    async def add_client(self, ws: "WebSocket") -> None:
        """Subscribe a WebSocket client."""
        self._clients.add(ws)

    async def remove_client(self, ws: "WebSocket") -> None:
        """Unsubscribe a WebSocket client (disconnect or send error)."""
        self._clients.discard(ws)

    def client_count(self) -> int:
        return int(len(self._clients))

    async def _dispatch_loop(self) -> None:
        while True:
            if self._queue is None:  # pragma: no cover
                await asyncio.sleep(0.1)
                continue
            event = await self._queue.get()
            payload = _serialize_event(event)

            logger.debug(
                "event stream broadcast type=%s event_id=%s clients=%s",
                event.type,
                int(event.event_id),
                len(self._clients),
            )
            dead_clients: List["WebSocket"] = []
            for ws in list(self._clients):
                try:
                    await asyncio.wait_for(ws.send_text(payload), timeout=float(_SEND_TIMEOUT_SECONDS))
                except Exception:  # noqa: BLE001
                    dead_clients.append(ws)

            for ws in dead_clients:
                await self.remove_client(ws)
