# taskboard/backend/routers/task_ws.py
from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from taskboard.backend.core.config import settings
from taskboard.backend.core.jwt import user_id_from_token
from taskboard.backend.services.task_events import task_events

logger = logging.getLogger(__name__)
ws_router = APIRouter()

MSG_PING = "ping"
MSG_PONG = "pong"


def _extract_bearer_token(websocket: WebSocket) -> str | None:
    auth_header = websocket.headers.get("authorization")
    if not auth_header:
        return None
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def _extract_token_fallback(websocket: WebSocket) -> str | None:
    # query param fallback (브라우저 WebSocket은 헤더를 못 붙임)
    q = websocket.query_params
    for key in ("access_token", "token"):
        if q.get(key):
            return q.get(key)
    return None


async def _pump_events(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        try:
            event = await asyncio.wait_for(queue.get(), timeout=settings.ws_heartbeat_sec)
        except asyncio.TimeoutError:
            await websocket.send_json({"type": MSG_PING})
            continue
        await websocket.send_json(event)


async def _read_client(websocket: WebSocket) -> None:
    while True:
        text = await websocket.receive_text()
        if text.strip().lower() == MSG_PING:
            await websocket.send_json({"type": MSG_PONG})


@ws_router.websocket("/ws/tasks")
async def task_channel(websocket: WebSocket):
    """Per-user private channel carrying task change events."""
    token = _extract_bearer_token(websocket) or _extract_token_fallback(websocket)
    user_id: UUID | None = user_id_from_token(token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # accept 전에 구독해야 handshake 직후 이벤트를 놓치지 않는다
    queue = task_events.subscribe(user_id)
    try:
        await websocket.accept()
    except Exception:
        task_events.unsubscribe(user_id, queue)
        raise

    pump = asyncio.create_task(_pump_events(websocket, queue))
    reader = asyncio.create_task(_read_client(websocket))
    try:
        done, _ = await asyncio.wait({pump, reader}, return_when=asyncio.FIRST_COMPLETED)
        for t in done:
            exc = t.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("task channel closed with error | user=%s | %s", user_id, exc)
    finally:
        for t in (pump, reader):
            t.cancel()
        await asyncio.gather(pump, reader, return_exceptions=True)
        task_events.unsubscribe(user_id, queue)
