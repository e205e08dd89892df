"""Enumeration types for backend"""
from enum import Enum


class SplitDirection(str, Enum):
    """Split direction enumeration

    HORIZONTAL: children are laid out side by side (left | right)
    VERTICAL: children are stacked (top / bottom)
    """
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class NodeType(str, Enum):
    """Layout tree node type enumeration"""
    LEAF = "leaf"
    SPLIT = "split"

