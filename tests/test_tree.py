"""Tests for the split tree algebra."""

import pytest

from vessel.backend.enums import NodeType, SplitDirection
from vessel.backend.exception import LayoutInvariantError
from vessel.backend.layout.tree import (
    Leaf,
    Split,
    contains,
    count_leaves,
    depth,
    find_leaf_path,
    leaf_ids,
    remove_leaf,
    split_leaf,
    to_dict,
    validate,
)

H = SplitDirection.HORIZONTAL
V = SplitDirection.VERTICAL


# =============================================================================
# Construction
# =============================================================================

class TestNodes:
    """Leaf and Split construction."""

    def test_split_accepts_direction_string(self):
        node = Split("vertical", (Leaf("a"), Leaf("b")))
        assert node.direction is V
        assert node.type is NodeType.SPLIT

    def test_split_rejects_unknown_direction(self):
        with pytest.raises(LayoutInvariantError):
            Split("diagonal", (Leaf("a"), Leaf("b")))

    @pytest.mark.parametrize("children", [(), (Leaf("a"),), (Leaf("a"), Leaf("b"), Leaf("c"))])
    def test_split_requires_two_children(self, children):
        with pytest.raises(LayoutInvariantError):
            Split(H, children)

    def test_split_rejects_foreign_child(self):
        with pytest.raises(LayoutInvariantError):
            Split(H, (Leaf("a"), "b"))

    def test_nodes_are_immutable(self):
        leaf = Leaf("a")
        with pytest.raises(AttributeError):
            leaf.terminal_id = "b"


# =============================================================================
# Queries
# =============================================================================

class TestQueries:
    """Leaf enumeration and lookup."""

    def test_leaf_order_is_left_to_right(self):
        root = Split(H, (Split(V, (Leaf("a"), Leaf("b"))), Leaf("c")))
        assert leaf_ids(root) == ["a", "b", "c"]
        assert count_leaves(root) == 3
        assert depth(root) == 2

    def test_single_leaf(self):
        root = Leaf("a")
        assert leaf_ids(root) == ["a"]
        assert depth(root) == 0
        assert find_leaf_path(root, "a") == []
        assert find_leaf_path(root, "b") is None

    def test_contains(self):
        root = Split(H, (Leaf("a"), Leaf("b")))
        assert contains(root, "b")
        assert not contains(root, "z")

    def test_find_leaf_path_records_child_indices(self):
        inner = Split(V, (Leaf("b"), Leaf("c")))
        root = Split(H, (Leaf("a"), inner))
        path = find_leaf_path(root, "c")
        assert [index for _, index in path] == [1, 1]
        assert path[0][0] is root
        assert path[1][0] is inner

    def test_deep_tree_does_not_hit_recursion_limit(self):
        root = Leaf("t0")
        for i in range(1, 1500):
            root = Split(H, (Leaf(f"t{i}"), root))
        assert count_leaves(root) == 1500
        assert depth(root) == 1499
        assert len(validate(root)) == 1500
        assert len(find_leaf_path(root, "t0")) == 1499
        assert remove_leaf(root, "t0").children[1].children[1].type is NodeType.SPLIT
        assert to_dict(root)["type"] == "split"


# =============================================================================
# Split
# =============================================================================

class TestSplitLeaf:
    """Replacing a leaf with a two-way split."""

    def test_split_single_leaf(self):
        root = split_leaf(Leaf("a"), "a", "b", H)
        assert root == Split(H, (Leaf("a"), Leaf("b")))

    def test_new_pane_goes_second(self):
        root = Split(H, (Leaf("a"), Leaf("b")))
        root = split_leaf(root, "a", "c", V)
        assert leaf_ids(root) == ["a", "c", "b"]
        assert root.children[0] == Split(V, (Leaf("a"), Leaf("c")))

    def test_untouched_subtrees_are_shared(self):
        right = Split(V, (Leaf("b"), Leaf("c")))
        root = Split(H, (Leaf("a"), right))
        new_root = split_leaf(root, "a", "d", V)
        assert new_root.children[1] is right
        # original is not modified
        assert leaf_ids(root) == ["a", "b", "c"]

    def test_unknown_target_returns_none(self):
        assert split_leaf(Leaf("a"), "zzz", "b", H) is None

    def test_duplicate_new_id_rejected(self):
        root = Split(H, (Leaf("a"), Leaf("b")))
        with pytest.raises(LayoutInvariantError):
            split_leaf(root, "a", "b", V)


# =============================================================================
# Remove
# =============================================================================

class TestRemoveLeaf:
    """Removing a leaf collapses its parent into the sibling."""

    def test_remove_promotes_sibling(self):
        root = Split(H, (Leaf("a"), Leaf("b")))
        assert remove_leaf(root, "a") == Leaf("b")
        assert remove_leaf(root, "b") == Leaf("a")

    def test_remove_promotes_sibling_subtree(self):
        sub = Split(V, (Leaf("b"), Leaf("c")))
        root = Split(H, (Leaf("a"), sub))
        assert remove_leaf(root, "a") is sub

    def test_remove_nested(self):
        root = Split(H, (Leaf("a"), Split(V, (Leaf("b"), Leaf("c")))))
        new_root = remove_leaf(root, "c")
        assert new_root == Split(H, (Leaf("a"), Leaf("b")))

    def test_remove_only_leaf_returns_none(self):
        assert remove_leaf(Leaf("a"), "a") is None

    def test_remove_unknown_returns_same_root(self):
        root = Split(H, (Leaf("a"), Leaf("b")))
        assert remove_leaf(root, "zzz") is root

    def test_split_then_remove_restores_tree(self):
        root = Split(H, (Leaf("a"), Split(V, (Leaf("b"), Leaf("c")))))
        assert remove_leaf(split_leaf(root, "b", "d", H), "d") == root


# =============================================================================
# Validation and wire form
# =============================================================================

class TestValidate:
    """Invariant checks."""

    def test_returns_ids_in_order(self):
        root = Split(V, (Leaf("x"), Leaf("y")))
        assert validate(root) == ["x", "y"]

    def test_duplicate_ids_rejected(self):
        with pytest.raises(LayoutInvariantError):
            validate(Split(H, (Leaf("a"), Leaf("a"))))

    def test_empty_id_rejected(self):
        with pytest.raises(LayoutInvariantError):
            validate(Leaf(""))

    def test_unknown_node_rejected(self):
        with pytest.raises(LayoutInvariantError):
            validate({"type": "leaf", "terminalId": "a"})


class TestToDict:
    """Wire rendering."""

    def test_leaf(self):
        assert to_dict(Leaf("a")) == {"type": "leaf", "terminalId": "a"}

    def test_nested(self):
        root = Split(H, (Leaf("a"), Split(V, (Leaf("b"), Leaf("c")))))
        assert to_dict(root) == {
            "type": "split",
            "direction": "horizontal",
            "children": [
                {"type": "leaf", "terminalId": "a"},
                {
                    "type": "split",
                    "direction": "vertical",
                    "children": [
                        {"type": "leaf", "terminalId": "b"},
                        {"type": "leaf", "terminalId": "c"},
                    ],
                },
            ],
        }
