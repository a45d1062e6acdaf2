"""
Per-cell glyph selection for the timeline.

Selection is a pure function of the event, the track, the continuation stack
and the track's liveness. Styling lives in a separate table so the layout can
be tested without a terminal.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from cnysa.recorder.models import EventKind

PAD = "pad"


class Glyph(str, Enum):
    """Everything a timeline cell can show."""

    CREATE = "create"
    MARK = "mark"
    ENTER = "enter"
    EXIT = "exit"
    DESTROY = "destroy"
    SETTLE = "settle"
    UNKNOWN = "unknown"
    CONNECTOR = "connector"
    CONNECTOR_SCOPE = "connector_scope"
    IN_SCOPE = "in_scope"
    IDLE = "idle"
    BLANK = "blank"

    @property
    def char(self) -> str:
        return GLYPH_CHARS[self]

    @property
    def style(self) -> Optional[str]:
        return GLYPH_STYLES[self]


GLYPH_CHARS: dict[Glyph, str] = {
    Glyph.CREATE: "*",
    Glyph.MARK: "*",
    Glyph.ENTER: "{",
    Glyph.EXIT: "}",
    Glyph.DESTROY: "*",
    Glyph.SETTLE: "*",
    Glyph.UNKNOWN: "?",
    Glyph.CONNECTOR: "|",
    Glyph.CONNECTOR_SCOPE: ".",
    Glyph.IN_SCOPE: ".",
    Glyph.IDLE: "-",
    Glyph.BLANK: " ",
}

GLYPH_STYLES: dict[Glyph, Optional[str]] = {
    Glyph.CREATE: "green",
    Glyph.MARK: "bold cyan",
    Glyph.ENTER: "blue",
    Glyph.EXIT: "blue",
    Glyph.DESTROY: "red",
    Glyph.SETTLE: "bright_black",
    Glyph.UNKNOWN: "bright_black",
    Glyph.CONNECTOR: "green",
    Glyph.CONNECTOR_SCOPE: "green",
    Glyph.IN_SCOPE: "blue",
    Glyph.IDLE: "bright_black",
    Glyph.BLANK: None,
}

_OWN_GLYPHS: dict[str, Glyph] = {
    EventKind.INIT.value: Glyph.CREATE,
    EventKind.INTERNAL.value: Glyph.MARK,
    EventKind.BEFORE.value: Glyph.ENTER,
    EventKind.AFTER.value: Glyph.EXIT,
    EventKind.DESTROY.value: Glyph.DESTROY,
    EventKind.PROMISE_RESOLVE.value: Glyph.SETTLE,
}

_CREATION_KINDS = {EventKind.INIT.value, EventKind.INTERNAL.value}


def connector_glyph(event_id: int, track: int, top: int) -> Optional[Glyph]:
    """Return the ancestry connector drawn on ``track`` when ``event_id`` is created.

    ``top`` is the innermost open scope. Some combinations deliberately
    produce no connector and fall through to the steady-state glyph.
    """
    if event_id > track:
        if top < track:
            return Glyph.CONNECTOR
        if top == track:
            return Glyph.CONNECTOR_SCOPE
    elif event_id < track:
        if top > track:
            return Glyph.CONNECTOR
        if top == track:
            return Glyph.CONNECTOR_SCOPE
    return None


def select_glyph(
    kind: str,
    event_id: int,
    track: int,
    stack: Sequence[int],
    alive: bool,
) -> Glyph:
    """Choose the glyph for ``track`` at an event of ``kind`` on ``event_id``.

    Args:
        kind: An :class:`EventKind` value, or ``"pad"`` for spacer columns.
        event_id: Resource the event belongs to (-1 for spacers).
        track: Resource whose track is being drawn.
        stack: Continuation stack before the event is applied.
        alive: Whether ``track`` is alive before the event is applied.
    """
    kind = kind.value if isinstance(kind, EventKind) else kind
    if event_id == track:
        return _OWN_GLYPHS.get(kind, Glyph.UNKNOWN)

    if kind in _CREATION_KINDS and stack:
        connector = connector_glyph(event_id, track, stack[-1])
        if connector is not None:
            return connector

    if track in stack:
        return Glyph.IN_SCOPE
    if alive:
        return Glyph.IDLE
    return Glyph.BLANK
