"""Registry of open inbox websockets."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Open websockets keyed by the lowercase id of the user they belong to.

    A user may hold several sockets at once (one per device or tab); every
    one of them receives each realtime notification.
    """

    def __init__(self) -> None:
        self._sockets: dict[str, list[WebSocket]] = {}

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        sockets = self._sockets.setdefault(user_id.lower(), [])
        if websocket not in sockets:
            sockets.append(websocket)
        logger.debug("User %s now has %s inbox sockets", user_id, len(sockets))

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        key = user_id.lower()
        sockets = [socket for socket in self._sockets.get(key, []) if socket is not websocket]
        if sockets:
            self._sockets[key] = sockets
        else:
            self._sockets.pop(key, None)

    def is_connected(self, user_id: str) -> bool:
        return user_id.lower() in self._sockets

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> int:
        """Push ``message`` to the user's sockets and return how many took it.

        Sockets that fail to send are dropped from the registry.
        """

        delivered = 0
        for websocket in list(self._sockets.get(user_id.lower(), [])):
            try:
                await websocket.send_json(message)
            except Exception as exc:
                logger.debug("Dropping inbox socket of user %s: %s", user_id, exc)
                self.disconnect(user_id, websocket)
            else:
                delivered += 1
        return delivered


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
