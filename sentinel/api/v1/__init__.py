from .monitoring_controller import router as monitoring_router


__all__ = ["monitoring_router"]
