"""
Notification Registry

In-process map from user id to that user's open WebSocket connections,
used to push freshly created notifications. Delivery is best effort: a
user without open connections simply misses the push, the stored
Notification row stays the durable record.

All reads and writes of the map happen under one asyncio.Lock.
Connection ids are generated and owned by the registry.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from fastapi import WebSocketDisconnect

logger = logging.getLogger(__name__)

NEW_NOTIFICATION = "new_notification"


class JsonSender(Protocol):
    async def send_json(self, data: Any) -> None: ...


@dataclass
class _Connection:
    websocket: JsonSender
    user_id: str
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationRegistry:
    def __init__(self):
        self._connections: dict[str, _Connection] = {}
        self._user_connections: dict[str, set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def register(self, user_id: str, websocket: JsonSender) -> str:
        """Track an accepted connection for ``user_id`` and return its id."""
        connection_id = str(uuid.uuid4())
        async with self._lock:
            self._connections[connection_id] = _Connection(websocket=websocket, user_id=user_id)
            self._user_connections[user_id].add(connection_id)
        logger.info(f"Notification socket registered: {connection_id} (user: {user_id})")
        return connection_id

    async def unregister(self, connection_id: str) -> bool:
        """Forget a connection. Returns False if it was not registered."""
        async with self._lock:
            connection = self._connections.pop(connection_id, None)
            if connection is None:
                return False

            user_connections = self._user_connections.get(connection.user_id)
            if user_connections is not None:
                user_connections.discard(connection_id)
                if not user_connections:
                    del self._user_connections[connection.user_id]

        logger.info(f"Notification socket unregistered: {connection_id}")
        return True

    async def lookup(self, user_id: str) -> frozenset[str]:
        """Snapshot of the connection ids currently open for ``user_id``."""
        async with self._lock:
            return frozenset(self._user_connections.get(user_id, ()))

    async def connection_count(self) -> int:
        async with self._lock:
            return len(self._connections)

    async def push_to_user(self, user_id: str, data: dict, message_type: str = NEW_NOTIFICATION) -> int:
        """
        Send ``data`` to every open connection of ``user_id``.

        Returns the number of connections that accepted the message.
        Connections that fail are unregistered.
        """
        message = {
            "type": message_type,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        async with self._lock:
            targets = [
                (connection_id, self._connections[connection_id].websocket)
                for connection_id in self._user_connections.get(user_id, ())
            ]

        if not targets:
            logger.debug("No open sockets for user %s, push dropped", user_id)
            return 0

        sent_count = 0
        for connection_id, websocket in targets:
            try:
                await websocket.send_json(message)
                sent_count += 1
            except WebSocketDisconnect:
                await self.unregister(connection_id)
            except Exception as e:
                logger.warning(f"Error pushing to {connection_id}: {e}")
                await self.unregister(connection_id)

        return sent_count
