"""Workspace management API endpoints"""

import logging

from fastapi import APIRouter

from ..schema.response import SuccessResponse
from ..schema.workspace import (
    CreateWorkspaceRequest,
    RenameWorkspaceRequest,
    SplitPaneRequest,
    ClosePaneRequest,
    WorkspaceOut,
    WorkspaceListOut,
    SplitPaneOut,
)
from ..layout import Workspace, WorkspaceRegistry
from ..exception import NotFoundError
from .dep import WorkspaceRegistryDep

logger = logging.getLogger(__name__)

# Router configuration
router = APIRouter(prefix="/workspaces", tags=["Workspace Management"])


def _require(registry: WorkspaceRegistry, workspace_id: str) -> Workspace:
    workspace = registry.get(workspace_id)
    if workspace is None:
        raise NotFoundError(f"Workspace not found: {workspace_id}")
    return workspace


def _out(registry: WorkspaceRegistry, workspace: Workspace) -> WorkspaceOut:
    return WorkspaceOut.from_workspace(
        workspace,
        focused=registry.focused_workspace_id == workspace.id,
    )


# ==================== API Endpoints ====================

@router.get("", response_model=SuccessResponse[WorkspaceListOut])
async def list_workspaces(registry: WorkspaceRegistryDep):
    """List all workspaces (grid view) plus the focused workspace id"""
    return SuccessResponse(data=WorkspaceListOut(
        workspaces=[_out(registry, ws) for ws in registry.list()],
        focused_workspace_id=registry.focused_workspace_id,
    ))


@router.post("", response_model=SuccessResponse[WorkspaceOut])
async def create_workspace(request: CreateWorkspaceRequest, registry: WorkspaceRegistryDep):
    """Create a new workspace with a single pane

    Business logic:
    1. Spawn the first terminal session
    2. Register the workspace around it

    Raises:
        SpawnError: The shell could not be started (nothing is registered)
    """
    logger.info(f"Creating workspace: name={request.name}")

    workspace = registry.create_workspace(request.name, working_directory=request.working_directory)
    return SuccessResponse(data=_out(registry, workspace))


@router.post("/unfocus", response_model=SuccessResponse[None])
async def unfocus_workspace(registry: WorkspaceRegistryDep):
    """Return to the grid view"""
    registry.unfocus()
    return SuccessResponse(data=None)


@router.get("/{workspace_id}", response_model=SuccessResponse[WorkspaceOut])
async def get_workspace(workspace_id: str, registry: WorkspaceRegistryDep):
    """Get one workspace and its layout tree

    Raises:
        NotFoundError: Workspace not found
    """
    return SuccessResponse(data=_out(registry, _require(registry, workspace_id)))


@router.patch("/{workspace_id}", response_model=SuccessResponse[WorkspaceOut])
async def rename_workspace(
    workspace_id: str,
    request: RenameWorkspaceRequest,
    registry: WorkspaceRegistryDep,
):
    """Rename a workspace

    Raises:
        NotFoundError: Workspace not found
    """
    workspace = registry.rename_workspace(workspace_id, request.name)
    if workspace is None:
        raise NotFoundError(f"Workspace not found: {workspace_id}")

    logger.info(f"Workspace renamed: id={workspace_id}, name={request.name}")
    return SuccessResponse(data=_out(registry, workspace))


@router.delete("/{workspace_id}", response_model=SuccessResponse[None])
async def delete_workspace(workspace_id: str, registry: WorkspaceRegistryDep):
    """Delete a workspace and destroy all of its terminal sessions

    Raises:
        NotFoundError: Workspace not found
    """
    if not registry.delete_workspace(workspace_id):
        raise NotFoundError(f"Workspace not found: {workspace_id}")
    return SuccessResponse(data=None)


@router.post("/{workspace_id}/split", response_model=SuccessResponse[SplitPaneOut])
async def split_pane(
    workspace_id: str,
    request: SplitPaneRequest,
    registry: WorkspaceRegistryDep,
):
    """Split a pane; the new pane is placed after the original

    An unknown terminal id is not an error: the layout is returned
    unchanged with ``terminalId: null`` so the UI can resynchronize.

    Raises:
        NotFoundError: Workspace not found
        SpawnError: The new shell could not be started (layout unchanged)
    """
    _require(registry, workspace_id)

    new_terminal_id = registry.split_pane(workspace_id, request.terminal_id, request.direction)
    return SuccessResponse(data=SplitPaneOut(
        terminal_id=new_terminal_id,
        workspace=_out(registry, registry.get(workspace_id)),
    ))


@router.post("/{workspace_id}/close", response_model=SuccessResponse[WorkspaceOut])
async def close_pane(
    workspace_id: str,
    request: ClosePaneRequest,
    registry: WorkspaceRegistryDep,
):
    """Close a pane and destroy its session

    Closing the last pane re-seeds the workspace with a fresh terminal.
    An unknown terminal id leaves the layout unchanged.

    Raises:
        NotFoundError: Workspace not found
    """
    _require(registry, workspace_id)

    registry.close_pane(workspace_id, request.terminal_id)
    return SuccessResponse(data=_out(registry, registry.get(workspace_id)))


@router.post("/{workspace_id}/focus", response_model=SuccessResponse[WorkspaceOut])
async def focus_workspace(workspace_id: str, registry: WorkspaceRegistryDep):
    """Show one workspace full-size

    Raises:
        NotFoundError: Workspace not found
    """
    if not registry.focus_workspace(workspace_id):
        raise NotFoundError(f"Workspace not found: {workspace_id}")
    return SuccessResponse(data=_out(registry, registry.get(workspace_id)))
