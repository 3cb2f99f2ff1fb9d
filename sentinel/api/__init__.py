"""
API layer for the Sentinel backend.

Exposes the monitoring HTTP and WebSocket endpoints under /api/v1/monitoring.
"""
