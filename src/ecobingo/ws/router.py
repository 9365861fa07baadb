"""WebSocket endpoint: token auth and bingo channel subscriptions."""

import json
import uuid

import jwt
import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from ecobingo.auth.jwt import auth_user_from_claims, verify_token
from ecobingo.ws.manager import ConnectionManager

logger = structlog.get_logger()

router = APIRouter()

CLOSE_UNAUTHENTICATED = 4001
CLOSE_TOO_MANY_CONNECTIONS = 4008


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    """Push channel for bingo events.

    Protocol:
        Client -> Server:
            {"action": "subscribe", "channel": "bingo_achieved"}
            {"action": "unsubscribe", "channel": "bingo_achieved"}
            {"action": "ping"}

        Server -> Client:
            {"channel": "bingo_achieved", "data": {...}}
            {"type": "pong"}
            {"type": "error", "message": "..."}
            {"type": "subscribed", "channel": "bingo_achieved"}
            {"type": "unsubscribed", "channel": "bingo_achieved"}
    """
    manager: ConnectionManager = websocket.app.state.connections

    try:
        user = auth_user_from_claims(verify_token(token, expected_type="access"))
    except (jwt.InvalidTokenError, KeyError) as e:
        await websocket.close(code=CLOSE_UNAUTHENTICATED, reason=f"Authentication failed: {e}")
        return

    if not manager.can_accept(user.user_id):
        await websocket.close(code=CLOSE_TOO_MANY_CONNECTIONS, reason="Too many connections")
        return

    conn_id = str(uuid.uuid4())
    await manager.connect(websocket, conn_id, user.user_id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(msg, dict):
                await websocket.send_json({"type": "error", "message": "Expected a JSON object"})
                continue

            action = msg.get("action")
            channel = str(msg.get("channel", ""))

            if action == "subscribe":
                if await manager.subscribe(conn_id, channel):
                    await websocket.send_json({"type": "subscribed", "channel": channel})
                else:
                    await websocket.send_json({"type": "error", "message": f"Invalid channel: {channel}"})
            elif action == "unsubscribe":
                await manager.unsubscribe(conn_id, channel)
                await websocket.send_json({"type": "unsubscribed", "channel": channel})
            elif action == "ping":
                await websocket.send_json({"type": "pong"})
            else:
                await websocket.send_json({"type": "error", "message": f"Unknown action: {action}"})

    except WebSocketDisconnect:
        await manager.disconnect(conn_id)
    except Exception:
        logger.exception("ws_error", conn_id=conn_id)
        await manager.disconnect(conn_id)
