"""
Sentinel Backend root package.

This package contains the FastAPI app entry point (main.py), API routes,
the driver drowsiness monitoring core (domain + application layers), and
infrastructure adapters (camera, audio alarm, vision language model client,
WebSocket notifications).
"""
