"""HTTP and websocket endpoints for the chat relay."""

from .system import health_router
from .system import router as system_router
from .websocket import router as websocket_router

__all__ = ["health_router", "system_router", "websocket_router"]
