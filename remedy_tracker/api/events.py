"""
Notification stream API.

- WS  /api/events/stream : live notifications ({event_id, type, message, data, created_at})
- GET /api/events/recent : the latest notifications (for clients that just connected)

The WebSocket authenticates with the session cookie. It accepts first and
closes with 1008 (policy violation) when the session is missing or invalid.
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from remedy_tracker import schemas
from remedy_tracker.api.http_auth import require_user
from remedy_tracker.api.ws_auth import authenticate_ws_cookie_session
from remedy_tracker.app_bootstrap.dependencies import get_event_stream_dep
from remedy_tracker.runtime.event_stream import EventStream


router = APIRouter(prefix="/events", tags=["events"])
logger = logging.getLogger(__name__)


async def _close_policy_violation(websocket: WebSocket) -> None:
    """Close with 1008; a failing close is only logged."""

    try:
        await websocket.close(code=1008)
    except Exception as exc:  # noqa: BLE001
        logger.debug("events websocket close failed: %s", str(exc))


@router.get("/recent", response_model=List[schemas.EventResponse], dependencies=[Depends(require_user)])
def recent_events(
    limit: int = Query(20, ge=1, le=100),
    events: EventStream = Depends(get_event_stream_dep),
) -> List[schemas.EventResponse]:
    return [
        schemas.EventResponse(
            event_id=e.event_id,
            type=e.type,
            message=e.message,
            data=e.data,
            created_at=e.created_at,
        )
        for e in events.recent(limit)
    ]


@router.websocket("/stream")
async def stream_events(websocket: WebSocket) -> None:
    """
    Stream notifications over a WebSocket.

    The client registration is removed on disconnect.
    """
    # NOTE:
    # - accept before authenticating so a rejected client sees a 1008 close
    #   instead of a handshake error (reconnect loops stay quiet in the logs).
    await websocket.accept()

    user = authenticate_ws_cookie_session(websocket)
    if user is None:
        await _close_policy_violation(websocket)
        logger.info("events websocket rejected (auth failed)")
        return

    events: EventStream = websocket.app.state.services.events
    client_added = False
    try:
        await events.add_client(websocket)
        client_added = True
        logger.info("events websocket connected uid=%s", user.uid)

        # --- keep the connection open; client messages are ignored ---
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("events websocket disconnected by client")
    except Exception as exc:  # noqa: BLE001
        logger.warning("events websocket terminated by error: %s", str(exc))
    finally:
        if client_added:
            await events.remove_client(websocket)
        logger.info("events websocket disconnected")
