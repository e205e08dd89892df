"""Split tree algebra for pane layouts.

A layout is a binary tree: every leaf shows one terminal session, every
split divides its space between exactly two children. Nodes are immutable;
edits return a new root that shares every untouched subtree with the old
one (only the path from the root to the edited leaf is rebuilt).

All traversals use an explicit stack, so tree depth is not bounded by the
interpreter's recursion limit.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union

from ..enums import NodeType, SplitDirection
from ..exception import LayoutInvariantError


@dataclass(frozen=True)
class Leaf:
    """Pane bound to exactly one terminal session"""

    terminal_id: str

    @property
    def type(self) -> NodeType:
        return NodeType.LEAF


@dataclass(frozen=True)
class Split:
    """Binary division of space along ``direction``"""

    direction: SplitDirection
    children: Tuple['SplitNode', 'SplitNode']

    def __post_init__(self):
        try:
            object.__setattr__(self, "direction", SplitDirection(self.direction))
        except ValueError:
            raise LayoutInvariantError(f"Unknown split direction: {self.direction!r}")

        children = tuple(self.children)
        if len(children) != 2:
            raise LayoutInvariantError(
                f"Split must have exactly two children, got {len(children)}"
            )
        for child in children:
            if not isinstance(child, (Leaf, Split)):
                raise LayoutInvariantError(f"Invalid split child: {child!r}")
        object.__setattr__(self, "children", children)

    @property
    def type(self) -> NodeType:
        return NodeType.SPLIT


SplitNode = Union[Leaf, Split]

# Steps from the root down to a node: (split, index of the child taken)
TreePath = List[Tuple[Split, int]]


def _unknown(node) -> LayoutInvariantError:
    return LayoutInvariantError(f"Unknown layout node: {node!r}")


def iter_leaves(root: SplitNode) -> Iterator[Leaf]:
    """Yield leaves left to right (top to bottom)."""
    stack = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Leaf):
            yield node
        elif isinstance(node, Split):
            stack.append(node.children[1])
            stack.append(node.children[0])
        else:
            raise _unknown(node)


def leaf_ids(root: SplitNode) -> List[str]:
    return [leaf.terminal_id for leaf in iter_leaves(root)]


def count_leaves(root: SplitNode) -> int:
    return sum(1 for _ in iter_leaves(root))


def contains(root: SplitNode, terminal_id: str) -> bool:
    return any(leaf.terminal_id == terminal_id for leaf in iter_leaves(root))


def depth(root: SplitNode) -> int:
    """Number of splits on the longest root-to-leaf path."""
    deepest = 0
    stack = [(root, 0)]
    while stack:
        node, level = stack.pop()
        if isinstance(node, Leaf):
            deepest = max(deepest, level)
        elif isinstance(node, Split):
            stack.extend((child, level + 1) for child in node.children)
        else:
            raise _unknown(node)
    return deepest


def find_leaf_path(root: SplitNode, terminal_id: str) -> Optional[TreePath]:
    """Locate the leaf bound to ``terminal_id``.

    Returns:
        The path from the root to the leaf ([] when the root is that leaf),
        or None when no leaf matches.
    """
    stack: List[Tuple[SplitNode, TreePath]] = [(root, [])]
    while stack:
        node, path = stack.pop()
        if isinstance(node, Leaf):
            if node.terminal_id == terminal_id:
                return path
        elif isinstance(node, Split):
            stack.append((node.children[1], path + [(node, 1)]))
            stack.append((node.children[0], path + [(node, 0)]))
        else:
            raise _unknown(node)
    return None


def _rebuild(path: TreePath, replacement: SplitNode) -> SplitNode:
    """Copy the splits along ``path`` with the last step pointing at ``replacement``."""
    node = replacement
    for parent, index in reversed(path):
        if index == 0:
            node = Split(parent.direction, (node, parent.children[1]))
        else:
            node = Split(parent.direction, (parent.children[0], node))
    return node


def split_leaf(
    root: SplitNode,
    terminal_id: str,
    new_terminal_id: str,
    direction: SplitDirection,
) -> Optional[SplitNode]:
    """Replace the leaf ``terminal_id`` with Split(direction, [old, new]).

    Returns:
        The new root, or None when ``terminal_id`` is not in the tree.

    Raises:
        LayoutInvariantError: If ``new_terminal_id`` is already in the tree
    """
    path = find_leaf_path(root, terminal_id)
    if path is None:
        return None

    if contains(root, new_terminal_id):
        raise LayoutInvariantError(f"Terminal id already in layout: {new_terminal_id}")

    replacement = Split(direction, (Leaf(terminal_id), Leaf(new_terminal_id)))
    return _rebuild(path, replacement)


def remove_leaf(root: SplitNode, terminal_id: str) -> Optional[SplitNode]:
    """Remove the leaf ``terminal_id``; its parent split collapses into the sibling.

    Returns:
        The new root; None when the removed leaf was the whole tree; the
        same ``root`` object when ``terminal_id`` is not in the tree.
    """
    path = find_leaf_path(root, terminal_id)
    if path is None:
        return root
    if not path:
        return None

    parent, index = path[-1]
    sibling = parent.children[1 - index]
    return _rebuild(path[:-1], sibling)


def validate(root: SplitNode) -> List[str]:
    """Check the tree invariants and return its terminal ids in leaf order.

    Raises:
        LayoutInvariantError: On a malformed node, an empty terminal id or a
            terminal id bound to more than one leaf
    """
    ids: List[str] = []
    seen = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Leaf):
            if not isinstance(node.terminal_id, str) or not node.terminal_id:
                raise LayoutInvariantError(f"Leaf without terminal id: {node!r}")
            if node.terminal_id in seen:
                raise LayoutInvariantError(f"Terminal id bound to two leaves: {node.terminal_id}")
            seen.add(node.terminal_id)
            ids.append(node.terminal_id)
        elif isinstance(node, Split):
            if len(node.children) != 2:
                raise LayoutInvariantError(f"Split with {len(node.children)} children")
            stack.append(node.children[1])
            stack.append(node.children[0])
        else:
            raise _unknown(node)

    return ids


def to_dict(root: SplitNode) -> dict:
    """Render the tree in the wire format used by the REST API.

    Leaves: {"type": "leaf", "terminalId": ...}
    Splits: {"type": "split", "direction": ..., "children": [left, right]}
    """
    result: dict = {}
    stack = [(root, result)]
    while stack:
        node, out = stack.pop()
        if isinstance(node, Leaf):
            out["type"] = NodeType.LEAF.value
            out["terminalId"] = node.terminal_id
        elif isinstance(node, Split):
            first: dict = {}
            second: dict = {}
            out["type"] = NodeType.SPLIT.value
            out["direction"] = node.direction.value
            out["children"] = [first, second]
            stack.append((node.children[1], second))
            stack.append((node.children[0], first))
        else:
            raise _unknown(node)
    return result
