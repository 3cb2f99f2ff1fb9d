"""Monitoring API: start/stop commands, status reads and live status over WebSocket"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...application.dto.monitoring_dto import MonitoringStatusResponse
from ...application.use_cases.monitoring import (
    GetMonitoringStatusUseCase,
    StartMonitoringUseCase,
    StopMonitoringUseCase,
)
from ...di.container import get_container
from ...infrastructure.notifications import WebSocketManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["monitoring"])


@router.post("/start", response_model=MonitoringStatusResponse)
async def start_monitoring() -> MonitoringStatusResponse:
    """
    Start monitoring

    Idempotent while already active. Camera failures come back as state
    ERROR with an errorMessage, not as an HTTP error.
    """
    container = get_container()
    start_monitoring_use_case = container.get(StartMonitoringUseCase)
    return await start_monitoring_use_case.execute()


@router.post("/stop", response_model=MonitoringStatusResponse)
async def stop_monitoring() -> MonitoringStatusResponse:
    """Stop monitoring, release the camera and silence the alarm"""
    container = get_container()
    stop_monitoring_use_case = container.get(StopMonitoringUseCase)
    return await stop_monitoring_use_case.execute()


@router.get("/status", response_model=MonitoringStatusResponse)
async def get_monitoring_status() -> MonitoringStatusResponse:
    container = get_container()
    get_status_use_case = container.get(GetMonitoringStatusUseCase)
    return await get_status_use_case.execute()


@router.websocket("/ws")
async def monitoring_status_websocket(websocket: WebSocket):
    """
    WebSocket endpoint for live monitoring status.

    Sends the current status on connect, then one message per observable
    change (state, verdict, cooldown tick). Text "ping" is answered with "pong".

    Example connection:
        ws://host/api/v1/monitoring/ws
    """
    container = get_container()
    manager: WebSocketManager = container.get(WebSocketManager)
    get_status_use_case = container.get(GetMonitoringStatusUseCase)

    await websocket.accept()
    logger.info("Monitoring WebSocket connection accepted")

    try:
        await manager.add_connection(websocket)

        status_response = await get_status_use_case.execute()
        await websocket.send_json(status_response.to_message())

        while True:
            try:
                message = await websocket.receive_text()
                if message == "ping":
                    await websocket.send_text("pong")
                else:
                    logger.debug(f"Ignoring WebSocket message: {message}")
            except WebSocketDisconnect:
                logger.info("Monitoring WebSocket disconnected")
                break
    except Exception as e:
        logger.error(f"Error in monitoring WebSocket connection: {e}", exc_info=True)
    finally:
        await manager.remove_connection(websocket)
