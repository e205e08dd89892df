"""Layout engine: split trees of terminal panes grouped into workspaces.

Components:
- tree: immutable Leaf/Split nodes and the pure edit functions
- Workspace / WorkspaceRegistry: workspace collection, pane edits, focus
- SessionIdGenerator: the single source of terminal and workspace ids
"""

from .ids import SessionIdGenerator
from .tree import Leaf, Split, SplitNode
from .workspace import Workspace, WorkspaceRegistry

__all__ = [
    'Leaf',
    'Split',
    'SplitNode',
    'SessionIdGenerator',
    'Workspace',
    'WorkspaceRegistry',
]
