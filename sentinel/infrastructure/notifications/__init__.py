"""Notifications infrastructure for real-time status pushes"""

from .websocket_manager import WebSocketManager

__all__ = [
    "WebSocketManager",
]
