# Standard library imports
from pathlib import Path
from contextlib import asynccontextmanager
from typing import Optional
import logging
import asyncio

# External package imports
import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Local application imports
from .api.v1 import monitoring_router
from .application.dto.monitoring_dto import MonitoringStatusResponse
from .application.services.monitoring_state_machine import MonitoringStateMachine
from .core.config import get_settings
from .di.container import get_container, reset_container
from .domain.models.detection import MonitoringSnapshot
from .infrastructure.notifications import WebSocketManager

logger = logging.getLogger(__name__)

# Global instances
_status_queue: Optional[asyncio.Queue] = None


def enqueue_status(snapshot: MonitoringSnapshot) -> None:
    """
    State machine listener: queue the new status for WebSocket clients.

    Runs synchronously inside a transition, so it only enqueues. A single
    consumer task keeps pushes in the order the changes happened.
    """
    if _status_queue is None:
        return
    _status_queue.put_nowait(MonitoringStatusResponse.from_snapshot(snapshot).to_message())


async def process_status_queue(websocket_manager: WebSocketManager) -> None:
    """Background task forwarding queued status messages to connected WebSocket clients."""
    global _status_queue

    if _status_queue is None:
        logger.warning("Status queue not available")
        return

    logger.info("Status queue processor started")
    while True:
        try:
            message = await _status_queue.get()
            await websocket_manager.broadcast(message)
        except asyncio.CancelledError:
            logger.info("Status queue processor cancelled")
            break
        except Exception as e:
            logger.error(f"Error broadcasting monitoring status: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.

    Wires state machine changes to the WebSocket broadcaster on startup.
    On shutdown stops monitoring (camera released, alarm silenced), closes
    the shared HTTP client and drops the container so a later startup builds
    fresh adapters.
    """
    global _status_queue

    container = get_container()
    state_machine: MonitoringStateMachine = container.get(MonitoringStateMachine)
    websocket_manager: WebSocketManager = container.get(WebSocketManager)

    _status_queue = asyncio.Queue()
    state_machine.add_listener(enqueue_status)
    status_task = asyncio.create_task(process_status_queue(websocket_manager))
    logger.info("Monitoring status broadcaster started")

    yield

    state_machine.remove_listener(enqueue_status)
    try:
        await state_machine.shutdown()
        logger.info("Monitoring stopped during application shutdown")
    except Exception as e:
        logger.error(f"Error stopping monitoring: {e}", exc_info=True)

    status_task.cancel()
    try:
        await status_task
    except asyncio.CancelledError:
        pass
    _status_queue = None

    http_client: httpx.AsyncClient = container.get(httpx.AsyncClient)
    try:
        await http_client.aclose()
        logger.info("Closed shared HTTP client")
    except Exception as e:
        logger.error(f"Error closing HTTP client: {e}", exc_info=True)
    reset_container()

    logger.info("Application shutdown complete")


def create_application() -> FastAPI:
    """
    Create and configure FastAPI application.

    This function sets up the FastAPI application with:
    - Environment variable loading
    - Logging configuration
    - CORS middleware configuration
    - API route registration

    Returns:
        Configured FastAPI application instance
    """
    # Load environment variables from .env file
    env_path = Path(__file__).resolve().parent.parent / ".env"
    load_dotenv(env_path)

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    application = FastAPI(
        title="Sentinel Driver Monitoring API",
        version="1.0.0",
        description="Webcam drowsiness monitoring with a vision language model",
        lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    application.include_router(monitoring_router, prefix="/api/v1/monitoring")

    return application


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run("sentinel.main:app", host="0.0.0.0", port=8000)


# Create application instance
app = create_application()
