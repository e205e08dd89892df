"""Workspace and terminal schemas for the REST API"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..enums import SplitDirection
from ..layout import Workspace
from ..layout.tree import to_dict
from ..terminal import PTYSession


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==================== Input Schemas ====================

class CreateWorkspaceRequest(CamelModel):
    """Create workspace request"""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Workspace name",
        examples=["Backend Server"]
    )
    working_directory: Optional[str] = Field(
        None,
        description="Start directory for the workspace's terminals",
        examples=["~/projects/api"]
    )


class RenameWorkspaceRequest(CamelModel):
    """Rename workspace request"""

    name: str = Field(..., min_length=1, max_length=100, description="New workspace name")


class SplitPaneRequest(CamelModel):
    """Split pane request"""

    terminal_id: str = Field(..., min_length=1, description="Terminal shown in the pane to split")
    direction: SplitDirection = Field(..., description="horizontal (side by side) or vertical (stacked)")


class ClosePaneRequest(CamelModel):
    """Close pane request"""

    terminal_id: str = Field(..., min_length=1, description="Terminal shown in the pane to close")


# ==================== Output Schemas ====================

class WorkspaceOut(CamelModel):
    """Workspace output schema"""

    id: str = Field(..., description="Workspace ID")
    name: str = Field(..., description="Workspace name")
    root: Dict[str, Any] = Field(..., description="Layout tree (leaf/split nodes)")
    terminal_ids: List[str] = Field(..., description="Terminals in the layout, in pane order")
    working_directory: Optional[str] = Field(None, description="Start directory for new panes")
    focused: bool = Field(False, description="Whether this workspace is the focused one")

    @classmethod
    def from_workspace(cls, workspace: Workspace, focused: bool = False) -> 'WorkspaceOut':
        return cls(
            id=workspace.id,
            name=workspace.name,
            root=to_dict(workspace.root),
            terminal_ids=list(workspace.terminal_ids),
            working_directory=workspace.working_directory,
            focused=focused,
        )


class WorkspaceListOut(CamelModel):
    """All workspaces plus the focus pointer (null = grid view)"""

    workspaces: List[WorkspaceOut]
    focused_workspace_id: Optional[str] = None


class SplitPaneOut(CamelModel):
    """Split result; terminal_id is null when the target pane was not found"""

    terminal_id: Optional[str] = None
    workspace: WorkspaceOut


class TerminalOut(CamelModel):
    """Live terminal session"""

    id: str
    pid: int
    columns: int
    rows: int
    working_directory: str

    @classmethod
    def from_session(cls, pty_session: PTYSession) -> 'TerminalOut':
        return cls(
            id=pty_session.session_id,
            pid=pty_session.pid,
            columns=pty_session.columns,
            rows=pty_session.rows,
            working_directory=pty_session.working_directory,
        )
