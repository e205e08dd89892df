"""Tests for WorkspaceRegistry: workspace lifecycle, focus and pane edits."""

import random
import uuid

import pytest

from vessel.backend.enums import SplitDirection
from vessel.backend.exception import LayoutInvariantError, SpawnError, ValidationError
from vessel.backend.layout import Leaf, SessionIdGenerator, Split, WorkspaceRegistry
from vessel.backend.layout.tree import leaf_ids, validate


@pytest.fixture
def registry(fake_backend):
    return WorkspaceRegistry(fake_backend, sink="broadcast", default_columns=100, default_rows=30)


# =============================================================================
# Workspace lifecycle
# =============================================================================

class TestWorkspaceLifecycle:
    """create / rename / delete."""

    def test_create_spawns_single_pane(self, registry, fake_backend):
        workspace = registry.create_workspace("Backend")

        assert workspace.name == "Backend"
        assert isinstance(workspace.root, Leaf)
        assert workspace.terminal_ids == (workspace.root.terminal_id,)
        assert fake_backend.created == [workspace.root.terminal_id]
        assert registry.get(workspace.id) == workspace

    def test_create_uses_defaults_and_registry_sink(self, registry, fake_backend):
        workspace = registry.create_workspace("W", working_directory="/srv")
        spawned = fake_backend.live[workspace.root.terminal_id]

        assert spawned["columns"] == 100
        assert spawned["rows"] == 30
        assert spawned["working_directory"] == "/srv"
        assert spawned["sink"] == "broadcast"
        assert workspace.working_directory == "/srv"

    def test_workspace_and_terminal_ids_are_distinct(self, registry):
        first = registry.create_workspace("A")
        second = registry.create_workspace("B")
        ids = {first.id, second.id, *first.terminal_ids, *second.terminal_ids}
        assert len(ids) == 4

    def test_create_failure_registers_nothing(self, registry, fake_backend):
        fake_backend.fail_next = True
        with pytest.raises(SpawnError):
            registry.create_workspace("Broken")
        assert len(registry) == 0

    def test_rename(self, registry):
        workspace = registry.create_workspace("Old")
        renamed = registry.rename_workspace(workspace.id, "New")
        assert renamed.name == "New"
        assert registry.get(workspace.id).name == "New"
        assert renamed.root == workspace.root

    def test_rename_unknown(self, registry):
        assert registry.rename_workspace("missing", "x") is None

    def test_delete_destroys_every_session(self, registry, fake_backend):
        workspace = registry.create_workspace("W")
        first = workspace.root.terminal_id
        second = registry.split_pane(workspace.id, first, "horizontal")

        assert registry.delete_workspace(workspace.id) is True
        assert registry.get(workspace.id) is None
        assert sorted(fake_backend.destroyed) == sorted([first, second])

    def test_delete_unknown_is_noop(self, registry, fake_backend):
        assert registry.delete_workspace("missing") is False
        assert fake_backend.destroyed == []

    def test_find_workspace_of(self, registry):
        first = registry.create_workspace("A")
        second = registry.create_workspace("B")
        assert registry.find_workspace_of(second.root.terminal_id).id == second.id
        assert registry.find_workspace_of(first.root.terminal_id).id == first.id
        assert registry.find_workspace_of("nope") is None


# =============================================================================
# Focus
# =============================================================================

class TestFocus:
    """The process-wide focused workspace pointer."""

    def test_focus_and_unfocus(self, registry):
        workspace = registry.create_workspace("W")
        assert registry.focused_workspace_id is None

        assert registry.focus_workspace(workspace.id) is True
        assert registry.focused_workspace_id == workspace.id

        registry.unfocus()
        assert registry.focused_workspace_id is None

    def test_focus_unknown_is_noop(self, registry):
        workspace = registry.create_workspace("W")
        registry.focus_workspace(workspace.id)
        assert registry.focus_workspace("missing") is False
        assert registry.focused_workspace_id == workspace.id

    def test_deleting_focused_workspace_clears_focus(self, registry):
        workspace = registry.create_workspace("W")
        registry.focus_workspace(workspace.id)
        registry.delete_workspace(workspace.id)
        assert registry.focused_workspace_id is None

    def test_deleting_other_workspace_keeps_focus(self, registry):
        focused = registry.create_workspace("A")
        other = registry.create_workspace("B")
        registry.focus_workspace(focused.id)
        registry.delete_workspace(other.id)
        assert registry.focused_workspace_id == focused.id


# =============================================================================
# Split
# =============================================================================

class TestSplitPane:
    """Splitting a pane spawns a session and grows the tree."""

    def test_split_single_pane(self, registry, fake_backend):
        workspace = registry.create_workspace("W")
        t1 = workspace.root.terminal_id

        t2 = registry.split_pane(workspace.id, t1, SplitDirection.HORIZONTAL)

        updated = registry.get(workspace.id)
        assert updated.root == Split(SplitDirection.HORIZONTAL, (Leaf(t1), Leaf(t2)))
        assert updated.terminal_ids == (t1, t2)
        assert fake_backend.created == [t1, t2]

    def test_split_nested(self, registry):
        workspace = registry.create_workspace("W")
        t1 = workspace.root.terminal_id
        t2 = registry.split_pane(workspace.id, t1, "horizontal")
        t3 = registry.split_pane(workspace.id, t2, "vertical")

        root = registry.get(workspace.id).root
        assert root == Split("horizontal", (Leaf(t1), Split("vertical", (Leaf(t2), Leaf(t3)))))

    def test_split_unknown_terminal_is_noop(self, registry, fake_backend):
        workspace = registry.create_workspace("W")
        assert registry.split_pane(workspace.id, "zzz", "vertical") is None
        assert registry.get(workspace.id) == workspace
        assert len(fake_backend.created) == 1

    def test_split_terminal_of_other_workspace_is_noop(self, registry):
        first = registry.create_workspace("A")
        second = registry.create_workspace("B")
        assert registry.split_pane(first.id, second.root.terminal_id, "vertical") is None
        assert registry.get(first.id) == first

    def test_split_unknown_workspace_is_noop(self, registry):
        assert registry.split_pane("missing", "t1", "vertical") is None

    def test_split_invalid_direction(self, registry):
        workspace = registry.create_workspace("W")
        with pytest.raises(ValidationError):
            registry.split_pane(workspace.id, workspace.root.terminal_id, "diagonal")

    def test_split_spawn_failure_leaves_layout(self, registry, fake_backend):
        workspace = registry.create_workspace("W")
        fake_backend.fail_next = True
        with pytest.raises(SpawnError):
            registry.split_pane(workspace.id, workspace.root.terminal_id, "horizontal")
        assert registry.get(workspace.id) == workspace

    def test_split_tree_desync_destroys_new_session(self, registry, fake_backend, monkeypatch):
        workspace = registry.create_workspace("W")
        monkeypatch.setattr("vessel.backend.layout.workspace.split_leaf", lambda *args: None)

        with pytest.raises(LayoutInvariantError):
            registry.split_pane(workspace.id, workspace.root.terminal_id, "horizontal")

        new_terminal_id = fake_backend.created[-1]
        assert new_terminal_id != workspace.root.terminal_id
        assert fake_backend.destroyed == [new_terminal_id]
        assert new_terminal_id not in fake_backend.live
        assert registry.get(workspace.id) == workspace


# =============================================================================
# Close
# =============================================================================

class TestClosePane:
    """Closing a pane destroys its session and collapses the tree."""

    def test_close_collapses_parent(self, registry, fake_backend):
        workspace = registry.create_workspace("W")
        t1 = workspace.root.terminal_id
        t2 = registry.split_pane(workspace.id, t1, "horizontal")

        assert registry.close_pane(workspace.id, t1) is True

        updated = registry.get(workspace.id)
        assert updated.root == Leaf(t2)
        assert updated.terminal_ids == (t2,)
        assert fake_backend.destroyed == [t1]

    def test_close_nested_promotes_subtree(self, registry):
        workspace = registry.create_workspace("W")
        t1 = workspace.root.terminal_id
        t2 = registry.split_pane(workspace.id, t1, "horizontal")
        t3 = registry.split_pane(workspace.id, t2, "vertical")

        registry.close_pane(workspace.id, t1)

        assert registry.get(workspace.id).root == Split("vertical", (Leaf(t2), Leaf(t3)))

    def test_close_last_pane_reseeds(self, registry, fake_backend):
        workspace = registry.create_workspace("W")
        t1 = workspace.root.terminal_id

        assert registry.close_pane(workspace.id, t1) is True

        updated = registry.get(workspace.id)
        assert isinstance(updated.root, Leaf)
        assert updated.root.terminal_id != t1
        assert fake_backend.destroyed == [t1]
        assert list(fake_backend.live) == [updated.root.terminal_id]

    def test_reseed_failure_keeps_old_pane(self, registry, fake_backend):
        workspace = registry.create_workspace("W")
        t1 = workspace.root.terminal_id
        fake_backend.fail_next = True

        with pytest.raises(SpawnError):
            registry.close_pane(workspace.id, t1)

        assert registry.get(workspace.id) == workspace
        assert fake_backend.destroyed == []

    def test_close_unknown_terminal_is_noop(self, registry, fake_backend):
        workspace = registry.create_workspace("W")
        assert registry.close_pane(workspace.id, "zzz") is False
        assert registry.get(workspace.id) == workspace
        assert fake_backend.destroyed == []

    def test_close_terminal_of_other_workspace_is_noop(self, registry, fake_backend):
        first = registry.create_workspace("A")
        second = registry.create_workspace("B")
        assert registry.close_pane(first.id, second.root.terminal_id) is False
        assert fake_backend.destroyed == []

    def test_close_unknown_workspace_is_noop(self, registry):
        assert registry.close_pane("missing", "t1") is False


# =============================================================================
# Invariants under random edits
# =============================================================================

class TestRandomEdits:
    """Arbitrary split/close sequences keep every layout well-formed."""

    @pytest.mark.parametrize("seed", range(5))
    def test_invariants_hold(self, fake_backend, seed):
        rng = random.Random(seed)
        registry = WorkspaceRegistry(fake_backend)
        workspaces = [registry.create_workspace(f"W{i}").id for i in range(3)]

        for _ in range(200):
            workspace_id = rng.choice(workspaces)
            terminal_id = rng.choice(registry.get(workspace_id).terminal_ids)
            if rng.random() < 0.55:
                registry.split_pane(workspace_id, terminal_id, rng.choice(["horizontal", "vertical"]))
            else:
                registry.close_pane(workspace_id, terminal_id)

            all_ids = []
            for workspace in registry.list():
                ids = validate(workspace.root)
                assert ids
                assert tuple(ids) == workspace.terminal_ids == tuple(leaf_ids(workspace.root))
                all_ids.extend(ids)

            # every pane is live, every live session is shown exactly once
            assert len(all_ids) == len(set(all_ids))
            assert sorted(all_ids) == sorted(fake_backend.live)


# =============================================================================
# Id generation
# =============================================================================

class TestSessionIdGenerator:
    """Ids are never handed out twice, even after the session is gone."""

    def test_repeated_uuid_is_skipped(self, monkeypatch):
        values = iter([
            uuid.UUID(int=1), uuid.UUID(int=1), uuid.UUID(int=2),
            uuid.UUID(int=2), uuid.UUID(int=1), uuid.UUID(int=3),
        ])
        monkeypatch.setattr(uuid, "uuid4", lambda: next(values))
        generator = SessionIdGenerator()

        ids = [generator.new_id() for _ in range(3)]

        assert ids == [str(uuid.UUID(int=n)) for n in (1, 2, 3)]

    def test_ids_of_deleted_workspace_stay_issued(self, fake_backend, monkeypatch):
        registry = WorkspaceRegistry(fake_backend)
        workspace = registry.create_workspace("W")
        registry.delete_workspace(workspace.id)
        retired = [workspace.id, workspace.root.terminal_id]

        values = iter([uuid.UUID(retired[1]), uuid.UUID(retired[0])] + [uuid.uuid4() for _ in range(2)])
        monkeypatch.setattr(uuid, "uuid4", lambda: next(values))

        fresh = registry.create_workspace("W2")

        assert fresh.id not in retired
        assert fresh.root.terminal_id not in retired
