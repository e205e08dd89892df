"""Dependency injection functions for FastAPI routes"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from ..layout import WorkspaceRegistry
from ..terminal import TerminalManager

logger = logging.getLogger(__name__)


def get_terminal_manager(request: Request) -> TerminalManager:
    """Get the process-wide TerminalManager from app state

    Usage:
        @router.get("/terminals")
        async def list_terminals(terminal_manager: TerminalManagerDep):
            ...
    """
    return request.app.state.terminal_manager


def get_workspace_registry(request: Request) -> WorkspaceRegistry:
    """Get the WorkspaceRegistry from app state"""
    return request.app.state.workspace_registry


# ==================== Type Aliases ====================

TerminalManagerDep = Annotated[TerminalManager, Depends(get_terminal_manager)]
WorkspaceRegistryDep = Annotated[WorkspaceRegistry, Depends(get_workspace_registry)]
