"""
WebSocket Routes

Real-time notification delivery. Clients connect with their access token:

    const ws = new WebSocket('ws://localhost:8000/ws/notifications?token=ACCESS_TOKEN');
    ws.onmessage = (event) => {
        const message = JSON.parse(event.data);  // {type, data, timestamp}
    };

Message Types (Client -> Server):
- ping: Keep connection alive

Message Types (Server -> Client):
- connected: Connection established
- pong: Response to ping
- new_notification: A notification was created for this user
- error: Unparseable message
"""

import json
import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from taskflow.exceptions import InvalidTokenError
from taskflow.services.auth_service import validate_token
from taskflow.services.notification_registry import NotificationRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.websocket("/notifications")
async def notifications_socket(
    websocket: WebSocket,
    token: Annotated[str | None, Query()] = None,
):
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Token required")
        return
    try:
        claims = validate_token(token)
    except InvalidTokenError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return

    registry: NotificationRegistry = websocket.app.state.notification_registry
    user_id = claims["sub"]

    await websocket.accept()
    connection_id = await registry.register(user_id, websocket)

    try:
        await websocket.send_json(
            {"type": "connected", "data": {"connection_id": connection_id}, "timestamp": _now()}
        )
        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong", "timestamp": _now()})

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {connection_id}")
    finally:
        await registry.unregister(connection_id)
