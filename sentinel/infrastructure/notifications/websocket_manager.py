"""WebSocket Manager for pushing monitoring status to connected clients"""

import json
import logging
from threading import Lock
from typing import Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketManager:
    """
    Tracks open status WebSockets and broadcasts status messages to all of them.

    Connections that fail on send are dropped.
    """

    def __init__(self):
        self._connections: Set[WebSocket] = set()
        self._lock = Lock()
        logger.info("WebSocketManager initialized")

    async def add_connection(self, websocket: WebSocket) -> None:
        with self._lock:
            self._connections.add(websocket)
        logger.info(f"Added status WebSocket. Total connections: {self.get_total_connections()}")

    async def remove_connection(self, websocket: WebSocket) -> None:
        with self._lock:
            self._connections.discard(websocket)
        logger.info(f"Removed status WebSocket. Total connections: {self.get_total_connections()}")

    async def broadcast(self, message: dict) -> int:
        """
        Send a message to every connected client.

        Args:
            message: Message dictionary (will be JSON serialized)

        Returns:
            Number of connections the message was successfully sent to
        """
        with self._lock:
            connections = self._connections.copy()

        if not connections:
            return 0

        try:
            message_json = json.dumps(message)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize message to JSON: {e}")
            return 0

        sent_count = 0
        disconnected_connections = []
        for websocket in connections:
            try:
                await websocket.send_text(message_json)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Failed to send status to WebSocket: {e}")
                disconnected_connections.append(websocket)

        if disconnected_connections:
            with self._lock:
                for ws in disconnected_connections:
                    self._connections.discard(ws)

        logger.debug(f"Broadcast status to {sent_count}/{len(connections)} connections")
        return sent_count

    def get_total_connections(self) -> int:
        with self._lock:
            return len(self._connections)
