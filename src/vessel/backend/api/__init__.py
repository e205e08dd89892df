"""
API package for REST and WebSocket endpoints.
"""

from .terminal import router as terminal_router
from .websocket import router as websocket_router
from .workspace import router as workspace_router

__all__ = [
    "terminal_router",
    "websocket_router",
    "workspace_router",
]
