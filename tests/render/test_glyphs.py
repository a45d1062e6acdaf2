import pytest

from cnysa.recorder.models import EventKind
from cnysa.render.glyphs import PAD, Glyph, connector_glyph, select_glyph


class TestConnectorGlyph:
    """Connectors drawn on other tracks when a resource is created."""

    @pytest.mark.parametrize(
        "event_id,track,top,expected",
        [
            (5, 3, 2, Glyph.CONNECTOR),
            (5, 3, 3, Glyph.CONNECTOR_SCOPE),
            (5, 3, 4, None),
            (2, 3, 4, Glyph.CONNECTOR),
            (2, 3, 3, Glyph.CONNECTOR_SCOPE),
            (2, 3, 1, None),
            (3, 3, 1, None),
        ],
    )
    def test_table(self, event_id, track, top, expected):
        assert connector_glyph(event_id, track, top) is expected


class TestSelectGlyph:
    """Per-cell glyph selection."""

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (EventKind.INIT, Glyph.CREATE),
            (EventKind.INTERNAL, Glyph.MARK),
            (EventKind.BEFORE, Glyph.ENTER),
            (EventKind.AFTER, Glyph.EXIT),
            (EventKind.DESTROY, Glyph.DESTROY),
            (EventKind.PROMISE_RESOLVE, Glyph.SETTLE),
            (PAD, Glyph.UNKNOWN),
        ],
    )
    def test_own_track(self, kind, expected):
        assert select_glyph(kind, 4, 4, [], False) is expected

    def test_connector_only_for_creations(self):
        assert select_glyph("init", 5, 3, [3], True) is Glyph.CONNECTOR_SCOPE
        assert select_glyph("internal", 5, 3, [2], True) is Glyph.CONNECTOR
        assert select_glyph("destroy", 5, 3, [2], True) is Glyph.IDLE

    def test_no_connector_with_empty_stack(self):
        assert select_glyph("init", 5, 3, [], True) is Glyph.IDLE

    def test_no_connector_falls_through(self):
        # Track 2 sits between the creating scope (3) and nothing relevant.
        assert select_glyph("init", 4, 2, [3], True) is Glyph.IDLE
        assert select_glyph("init", 4, 2, [3], False) is Glyph.BLANK

    def test_connector_below_scope(self):
        # Track 3 lies between an outer scope (2) and the new resource (4).
        assert select_glyph("init", 4, 3, [2], True) is Glyph.CONNECTOR

    def test_steady_state(self):
        assert select_glyph(PAD, -1, 3, [1, 3], False) is Glyph.IN_SCOPE
        assert select_glyph(PAD, -1, 3, [1], True) is Glyph.IDLE
        assert select_glyph(PAD, -1, 3, [1], False) is Glyph.BLANK

    def test_deterministic(self):
        results = {select_glyph("init", 7, 3, [2, 5], True) for _ in range(10)}
        assert len(results) == 1

    def test_chars(self):
        assert [glyph.char for glyph in Glyph] == ["*", "*", "{", "}", "*", "*", "?", "|", ".", ".", "-", " "]
        assert Glyph.BLANK.style is None
