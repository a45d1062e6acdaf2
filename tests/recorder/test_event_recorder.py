import re

import pytest

from cnysa.config.options import canonicalize_options
from cnysa.recorder import EventKind, EventRecorder, StackFrame, has_ancestor
from cnysa.recorder.models import ROOT_ID, ROOT_TYPE


def kinds(recorder: EventRecorder) -> list[tuple[int, str]]:
    return [(event.resource_id, event.kind.value) for event in recorder.events]


class TestInitialState:
    """A fresh recorder already holds the synthetic root resource."""

    def test_root_registered_and_open(self):
        recorder = EventRecorder()
        assert list(recorder.resources) == [ROOT_ID]
        assert recorder.resources[ROOT_ID].type == ROOT_TYPE
        assert kinds(recorder) == [(1, "before")]
        assert recorder.continuation_stack == [1]
        assert recorder.current_scope == 1


class TestLifecycle:
    """Recording of create/enter/exit/destroy/settle notifications."""

    def test_create_then_destroy(self):
        recorder = EventRecorder()
        resource = recorder.on_create(2, "Timeout", 1)
        recorder.on_destroy(2)

        assert resource is not None
        assert resource.parents == (1,)
        assert resource.trigger_id is None
        assert not recorder.resources[2].alive
        assert kinds(recorder) == [(1, "before"), (2, "init"), (2, "destroy")]

    def test_first_enter_closes_root_scope(self):
        recorder = EventRecorder()
        recorder.on_create(2, "Task", 1)
        recorder.on_enter(2)
        recorder.on_exit(2)
        recorder.on_enter(2)
        recorder.on_exit(2)

        assert kinds(recorder) == [
            (1, "before"),
            (2, "init"),
            (1, "after"),
            (2, "before"),
            (2, "after"),
            (2, "before"),
            (2, "after"),
        ]
        assert recorder.continuation_stack == []

    def test_parents_are_stack_snapshot(self):
        recorder = EventRecorder()
        recorder.on_create(2, "Outer", 1)
        recorder.on_enter(2)
        inner = recorder.on_create(3, "Inner", 2)

        assert inner is not None
        assert inner.parents == (2,)
        assert inner.trigger_id is None

    def test_trigger_kept_when_not_current_scope(self):
        recorder = EventRecorder()
        recorder.on_create(2, "Future", 1)
        recorder.on_create(3, "Task", 1)
        recorder.on_enter(3)
        callback = recorder.on_create(4, "Handle", 2)

        assert callback is not None
        assert callback.parents == (3,)
        assert callback.trigger_id == 2
        assert callback.ancestry_links() == (3, 2)

    def test_duplicate_create_ignored(self):
        recorder = EventRecorder()
        recorder.on_create(2, "Task", 1)
        assert recorder.on_create(2, "Other", 1) is None
        assert recorder.resources[2].type == "Task"

    def test_unknown_ids_are_dropped(self):
        recorder = EventRecorder()
        recorder.on_enter(42)
        recorder.on_exit(42)
        recorder.on_destroy(42)
        assert kinds(recorder) == [(1, "before")]

    def test_settle_recorded_for_unknown_id(self):
        recorder = EventRecorder()
        recorder.on_settle(42)
        assert kinds(recorder)[-1] == (42, "promiseResolve")

    def test_root_is_never_destroyed(self):
        recorder = EventRecorder()
        recorder.on_destroy(ROOT_ID)
        assert recorder.resources[ROOT_ID].alive
        assert kinds(recorder) == [(1, "before")]

    def test_out_of_order_exit_removes_innermost_match(self):
        recorder = EventRecorder()
        recorder.on_create(2, "A", 1)
        recorder.on_create(3, "B", 1)
        recorder.on_enter(2)
        recorder.on_enter(3)
        recorder.on_exit(2)
        assert recorder.continuation_stack == [3]


class TestSuppression:
    """Type filters decide what is recorded."""

    def test_ignored_type_leaves_no_trace(self):
        recorder = EventRecorder(canonicalize_options(ignore_types="Timer"))
        assert recorder.on_create(2, "TimerHandle", 1) is None
        recorder.on_enter(2)
        recorder.on_exit(2)
        recorder.on_destroy(2)

        assert 2 not in recorder.resources
        assert kinds(recorder) == [(1, "before")]

    def test_include_filter(self):
        recorder = EventRecorder(canonicalize_options(include_types="^Task$"))
        recorder.on_create(2, "Task", 1)
        recorder.on_create(3, "Future", 1)
        assert 2 in recorder.resources
        assert 3 not in recorder.resources

    def test_markers_bypass_filters(self):
        recorder = EventRecorder(canonicalize_options(include_types="^Task$"))
        recorder.mark(2, "checkpoint")
        assert recorder.resources[2].type == "checkpoint"


class TestMarkers:
    """Markers are internal resources created and destroyed at once."""

    def test_mark_appends_internal_then_destroy(self):
        recorder = EventRecorder()
        resource = recorder.mark(2, "checkpoint")

        assert resource.internal
        assert not resource.alive
        assert kinds(recorder) == [(1, "before"), (2, "internal"), (2, "destroy")]

    def test_default_tags_are_numbered(self):
        recorder = EventRecorder()
        assert recorder.mark(2).type == "mark-1"
        assert recorder.mark(3).type == "mark-2"

    def test_marker_enter_does_not_close_root(self):
        recorder = EventRecorder()
        recorder.on_create(2, "scope", 1, custom=True)
        recorder.on_enter(2)
        assert recorder.continuation_stack == [1, 2]


class TestColors:
    """Highlight colors start at matching types and are inherited by descendants."""

    def test_highlight_inherited_by_children(self):
        recorder = EventRecorder(canonicalize_options(highlight_types="^Request$", colors=["red", "blue"]))
        recorder.on_create(2, "Request", 1)
        recorder.on_create(3, "Request", 1)
        recorder.on_enter(2)
        child = recorder.on_create(4, "Future", 2)

        assert recorder.resources[2].color == "red"
        assert recorder.resources[3].color == "blue"
        assert child is not None and child.color == "red"

    def test_no_highlight_by_default(self):
        recorder = EventRecorder()
        assert recorder.on_create(2, "Task", 1).color is None


class TestStackCapture:
    """Creation stacks are only captured on request."""

    def test_capture_disabled_by_default(self):
        calls = []
        recorder = EventRecorder(stack_capture=lambda skip: calls.append(skip) or ())
        recorder.on_create(2, "Task", 1)
        assert calls == []
        assert recorder.resources[2].captured_stack == ()

    def test_capture_enabled(self):
        frames = (StackFrame("spawn", "app.py", 10),)
        recorder = EventRecorder(canonicalize_options(capture_stacks=True), stack_capture=lambda skip: frames)
        recorder.on_create(2, "Task", 1)
        recorder.on_enter(2)

        assert recorder.resources[2].captured_stack == frames
        assert recorder.scopes[-1].frames == frames


class TestHasAncestor:
    """Ancestry constraint checks."""

    @pytest.fixture
    def recorder(self) -> EventRecorder:
        recorder = EventRecorder()
        recorder.on_create(2, "Request", 1)
        recorder.on_enter(2)
        recorder.on_create(3, "Task", 2)
        recorder.on_exit(2)
        recorder.on_enter(3)
        recorder.on_create(4, "Future", 3)
        recorder.on_exit(3)
        recorder.on_create(5, "Unrelated", 1)
        return recorder

    def test_none_always_passes(self, recorder):
        assert has_ancestor(recorder.resources, recorder.resources[5], None)

    def test_id_constraint_is_transitive(self, recorder):
        constraint = frozenset({2})
        assert has_ancestor(recorder.resources, recorder.resources[4], constraint)
        assert not has_ancestor(recorder.resources, recorder.resources[5], constraint)

    def test_pattern_constraint(self, recorder):
        constraint = re.compile("^Request$")
        assert has_ancestor(recorder.resources, recorder.resources[2], constraint)
        assert has_ancestor(recorder.resources, recorder.resources[4], constraint)
        assert not has_ancestor(recorder.resources, recorder.resources[1], constraint)

    def test_tracks_filtered_by_roots(self, recorder):
        assert [resource.id for resource in recorder.tracks(frozenset({3}))] == [3, 4]
        assert [resource.id for resource in recorder.tracks()] == [1, 2, 3, 4, 5]

    def test_iter_events_filters_ids(self, recorder):
        assert {event.resource_id for event in recorder.iter_events({4})} == {4}
        assert all(event.kind is EventKind.INIT for event in recorder.iter_events({4}))
