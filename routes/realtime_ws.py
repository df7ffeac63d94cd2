from __future__ import annotations

import asyncio
import json
import logging
from contextlib import suppress

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from app.wiring import AppServices
from services.auth_token import verify_access_token
from services.dispatcher import ERROR_MESSAGE
from services.errors import InvalidAccessToken
from services.session_registry import Connection

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)

UNAUTHORIZED_CLOSE_CODE = 4401


async def _pump_outbound(websocket: WebSocket, connection: Connection) -> None:
    while True:
        message = await connection.next_message()
        if message is None:
            # closed server-side: superseded by a reconnect, or shutdown
            await websocket.close(code=connection.close_code)
            return
        await websocket.send_json(message)


@router.websocket("/ws")
async def ws_realtime(websocket: WebSocket, token: str | None = Query(default=None)) -> None:
    """
    Authenticated realtime channel: moderation results, presence, chat and call signaling.

    Frames in both directions:
      {"event": str, "data": {...}}
    """
    services: AppServices = websocket.app.state.services
    connection = Connection()
    try:
        user_id = verify_access_token(token, services.settings.jwt_secret)
    except InvalidAccessToken as exc:
        logger.warning("[realtime_ws] Rejecting connection %s: %s", connection.id, exc)
        await websocket.close(code=UNAUTHORIZED_CLOSE_CODE, reason="unauthorized")
        return
    connection.authenticate(user_id)

    await websocket.accept()
    services.dispatcher.connect(connection)
    logger.info("[realtime_ws] user=%s active on connection %s", user_id, connection.id)

    sender = asyncio.create_task(_pump_outbound(websocket, connection))
    try:
        while True:
            raw = await websocket.receive_text()
            if not connection.is_active:
                # the pump is already closing this socket
                break
            try:
                frame = json.loads(raw)
            except ValueError:
                connection.send(ERROR_MESSAGE, {"message": "Malformed frame"})
                continue
            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                connection.send(ERROR_MESSAGE, {"message": "Malformed frame"})
                continue
            services.dispatcher.relay(connection, frame["event"], frame.get("data"))
    except WebSocketDisconnect:
        pass
    finally:
        services.dispatcher.disconnect(connection)
        sender.cancel()
        with suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await sender
        logger.info("[realtime_ws] user=%s disconnected (%s)", user_id, connection.id)
