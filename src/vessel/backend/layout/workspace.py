"""Workspaces and the workspace registry.

The registry owns every workspace's split tree plus the process-wide focus
pointer, and is the only caller that creates or destroys sessions on
behalf of the layout. Edits are synchronous and expected to run on a single
thread (the event loop); the session backend does its own locking.

Desync between the UI and the registry (unknown workspace, terminal not in
the tree) is a silent no-op; an ill-formed tree is a LayoutInvariantError.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple, Union

from ..enums import SplitDirection
from ..exception import LayoutInvariantError, ValidationError
from .ids import SessionIdGenerator
from .tree import Leaf, SplitNode, remove_leaf, split_leaf, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Workspace:
    """A named split tree of terminal panes.

    Attributes:
        id: Workspace id
        name: Display name
        root: Layout tree (always at least one leaf)
        terminal_ids: Ids of the tree's leaves, in leaf order
        working_directory: Start directory for the workspace's sessions
    """

    id: str
    name: str
    root: SplitNode
    terminal_ids: Tuple[str, ...]
    working_directory: Optional[str] = None


def _with_root(workspace: Workspace, root: SplitNode) -> Workspace:
    # terminal_ids is always derived from the tree, never edited by hand
    return replace(workspace, root=root, terminal_ids=tuple(validate(root)))


class WorkspaceRegistry:
    """
    Collection of workspaces plus the focused-workspace pointer.

    Session backend:
        Any object with ``create(session_id, columns, rows,
        working_directory=None, sink=None)`` and ``destroy(session_id)``;
        in the server this is the TerminalManager.

    Attributes:
        backend: Session backend
        sink: Output sink bound to every session the registry creates
        id_generator: Source of workspace and terminal ids
    """

    def __init__(
        self,
        backend,
        sink=None,
        id_generator: Optional[SessionIdGenerator] = None,
        default_columns: int = 80,
        default_rows: int = 24,
        default_working_directory: Optional[str] = None,
    ):
        self.backend = backend
        self.sink = sink
        self.id_generator = id_generator or SessionIdGenerator()
        self.default_columns = default_columns
        self.default_rows = default_rows
        self.default_working_directory = default_working_directory

        self._workspaces: Dict[str, Workspace] = {}
        self._focused_id: Optional[str] = None

    # ==================== Queries ====================

    @property
    def focused_workspace_id(self) -> Optional[str]:
        return self._focused_id

    def get(self, workspace_id: str) -> Optional[Workspace]:
        return self._workspaces.get(workspace_id)

    def list(self) -> List[Workspace]:
        return list(self._workspaces.values())

    def __len__(self) -> int:
        return len(self._workspaces)

    def find_workspace_of(self, terminal_id: str) -> Optional[Workspace]:
        for workspace in self._workspaces.values():
            if terminal_id in workspace.terminal_ids:
                return workspace
        return None

    # ==================== Workspace lifecycle ====================

    def create_workspace(self, name: str, working_directory: Optional[str] = None) -> Workspace:
        """
        Create a workspace holding a single pane.

        The pane's session is spawned right away; if that fails nothing is
        registered and the SpawnError propagates.
        """
        workspace_cwd = working_directory or self.default_working_directory
        root = Leaf(self._spawn(workspace_cwd))

        workspace = Workspace(
            id=self.id_generator.new_id(),
            name=name,
            root=root,
            terminal_ids=tuple(validate(root)),
            working_directory=workspace_cwd,
        )
        self._workspaces[workspace.id] = workspace

        logger.info(
            f"[WorkspaceRegistry] Workspace created: id={workspace.id}, "
            f"name={name}, terminal_id={root.terminal_id}"
        )
        return workspace

    def rename_workspace(self, workspace_id: str, name: str) -> Optional[Workspace]:
        workspace = self._workspaces.get(workspace_id)
        if workspace is None:
            return None

        workspace = replace(workspace, name=name)
        self._workspaces[workspace_id] = workspace
        return workspace

    def delete_workspace(self, workspace_id: str) -> bool:
        """
        Remove a workspace and destroy every session it owns.

        Clears focus if the workspace was focused. Unknown ids are a no-op.
        """
        workspace = self._workspaces.pop(workspace_id, None)
        if workspace is None:
            logger.debug(f"[WorkspaceRegistry] Delete of unknown workspace ignored: id={workspace_id}")
            return False

        for terminal_id in workspace.terminal_ids:
            self.backend.destroy(terminal_id)

        if self._focused_id == workspace_id:
            self._focused_id = None

        logger.info(
            f"[WorkspaceRegistry] Workspace deleted: id={workspace_id}, "
            f"sessions_destroyed={len(workspace.terminal_ids)}"
        )
        return True

    # ==================== Focus ====================

    def focus_workspace(self, workspace_id: str) -> bool:
        if workspace_id not in self._workspaces:
            logger.debug(f"[WorkspaceRegistry] Focus of unknown workspace ignored: id={workspace_id}")
            return False
        self._focused_id = workspace_id
        return True

    def unfocus(self) -> None:
        self._focused_id = None

    # ==================== Pane edits ====================

    def split_pane(
        self,
        workspace_id: str,
        terminal_id: str,
        direction: Union[SplitDirection, str],
    ) -> Optional[str]:
        """
        Split the pane showing ``terminal_id``; the new pane goes second.

        Returns:
            The new pane's terminal id, or None when the workspace or the
            terminal is unknown (nothing is spawned in that case)

        Raises:
            ValidationError: If direction is not horizontal/vertical
            SpawnError: If the new session cannot be started (layout unchanged)
        """
        try:
            direction = SplitDirection(direction)
        except ValueError:
            raise ValidationError(f"Invalid split direction: {direction}")

        workspace = self._workspaces.get(workspace_id)
        if workspace is None or terminal_id not in workspace.terminal_ids:
            logger.warning(
                f"[WorkspaceRegistry] Split target not found: "
                f"workspace_id={workspace_id}, terminal_id={terminal_id}"
            )
            return None

        new_terminal_id = self._spawn(workspace.working_directory)

        new_root = split_leaf(workspace.root, terminal_id, new_terminal_id, direction)
        if new_root is None:
            self.backend.destroy(new_terminal_id)
            raise LayoutInvariantError(
                f"Terminal {terminal_id} listed in workspace {workspace_id} but not in its tree"
            )

        self._workspaces[workspace_id] = _with_root(workspace, new_root)

        logger.info(
            f"[WorkspaceRegistry] Pane split: workspace_id={workspace_id}, "
            f"terminal_id={terminal_id}, new_terminal_id={new_terminal_id}, "
            f"direction={direction.value}"
        )
        return new_terminal_id

    def close_pane(self, workspace_id: str, terminal_id: str) -> bool:
        """
        Close the pane showing ``terminal_id`` and destroy its session.

        The parent split collapses into the surviving sibling. Closing the
        last pane re-seeds the workspace with a fresh pane and session.

        Returns:
            False when the workspace or the terminal is unknown (no-op)

        Raises:
            SpawnError: If the re-seed session cannot be started (layout and
                the old session are left untouched)
        """
        workspace = self._workspaces.get(workspace_id)
        if workspace is None or terminal_id not in workspace.terminal_ids:
            logger.warning(
                f"[WorkspaceRegistry] Close target not found: "
                f"workspace_id={workspace_id}, terminal_id={terminal_id}"
            )
            return False

        new_root = remove_leaf(workspace.root, terminal_id)
        if new_root is workspace.root:
            raise LayoutInvariantError(
                f"Terminal {terminal_id} listed in workspace {workspace_id} but not in its tree"
            )

        if new_root is None:
            # Last pane: the workspace is re-seeded, never left empty
            new_root = Leaf(self._spawn(workspace.working_directory))
            logger.info(
                f"[WorkspaceRegistry] Workspace re-seeded: workspace_id={workspace_id}, "
                f"terminal_id={new_root.terminal_id}"
            )

        self.backend.destroy(terminal_id)
        self._workspaces[workspace_id] = _with_root(workspace, new_root)

        logger.info(
            f"[WorkspaceRegistry] Pane closed: workspace_id={workspace_id}, terminal_id={terminal_id}"
        )
        return True

    def _spawn(self, working_directory: Optional[str]) -> str:
        terminal_id = self.id_generator.new_id()
        self.backend.create(
            terminal_id,
            self.default_columns,
            self.default_rows,
            working_directory=working_directory,
            sink=self.sink,
        )
        return terminal_id
