"""
Multi-track timeline rendering.

Every recorded event becomes one column (followed by ``padding`` spacer
columns). Every track gets exactly one glyph per column, chosen by
:func:`cnysa.render.glyphs.select_glyph`. Tracks are then cut to the page
width and interleaved row by row, leaving out segments where nothing
happened on a track.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

from rich.text import Text

from cnysa.config.logging_config import get_logger
from cnysa.recorder.models import Event, EventKind, Resource
from cnysa.render.glyphs import PAD, Glyph, select_glyph

log = get_logger(__name__)

SEPARATOR_CHAR = ":"

ID_STYLE = "magenta"
TRIGGER_STYLE = "dim magenta"
TYPE_STYLE = "yellow"
INTERNAL_TYPE_STYLE = "cyan"
CUSTOM_TYPE_STYLE = "green"


@dataclass(frozen=True)
class _Column:
    kind: str
    resource_id: int


class TrackRows:
    """Accumulates one track's glyphs, cut into fixed-width segments."""

    def __init__(self, width: int):
        self.width = max(1, width)
        self.segments: list[Text] = []
        self._length = 0

    def append(self, char: str, style: Optional[str] = None) -> None:
        if self._length == 0:
            self.segments.append(Text())
        self.segments[-1].append(char, style=style)
        self._length = (self._length + 1) % self.width

    def __len__(self) -> int:
        return len(self.segments)


def is_idle_segment(segment: Text) -> bool:
    """A segment is idle when nothing but blanks was drawn in it."""
    return segment.plain.strip(" ") == ""


def resource_label(resource: Resource) -> Text:
    """Build the gutter label ``<id>[(<trigger>)] <type> ``."""
    label = Text()
    label.append(str(resource.id), style=ID_STYLE)
    if resource.trigger_id is not None:
        label.append(f"({resource.trigger_id})", style=TRIGGER_STYLE)
    label.append(" ")
    if resource.internal:
        type_style = INTERNAL_TYPE_STYLE
    elif resource.custom:
        type_style = CUSTOM_TYPE_STYLE
    else:
        type_style = TYPE_STYLE
    label.append(resource.type, style=type_style)
    label.append(" ")
    return label


def interleave(columns: Sequence[Sequence[Optional[Text]]], separator: Text) -> list[Text]:
    """Flatten per-track rows column-major, with a separator between row groups.

    ``None`` entries are suppressed rows; a row group with nothing left in it
    adds no separator.
    """
    result: list[Text] = []
    longest = max((len(rows) for rows in columns), default=0)
    for index in range(longest):
        group = [rows[index] for rows in columns if index < len(rows) and rows[index] is not None]
        if not group:
            continue
        if result:
            result.append(separator)
        result.extend(group)
    return result


def _padded(events: Iterable[Event], padding: int) -> Iterator[_Column]:
    for event in events:
        yield _Column(event.kind.value, event.resource_id)
        for _ in range(padding):
            yield _Column(PAD, -1)


class TimelineRenderer:
    """Render an event log as an aligned multi-track timeline page."""

    def __init__(
        self,
        resources: dict[int, Resource],
        events: Iterable[Event],
        width: int = 80,
        padding: int = 1,
    ):
        self.resources = resources
        self.events = events
        self.width = max(1, width)
        self.padding = max(0, padding)

    def render(self, tracks: Optional[Sequence[Resource]] = None) -> Text:
        if tracks is None:
            tracks = [resource for _, resource in sorted(self.resources.items())]
        track_ids = {resource.id for resource in tracks}
        events = [event for event in self.events if event.resource_id in track_ids]

        labels = {resource.id: resource_label(resource) for resource in tracks}
        gutter = max((label.cell_len for label in labels.values()), default=0)
        rows = self._draw(tracks, events, self.width - gutter)

        separator = Text(SEPARATOR_CHAR * self.width)
        columns: list[list[Optional[Text]]] = []
        for resource in tracks:
            label = labels[resource.id].copy()
            label.pad_right(gutter - label.cell_len)
            columns.append(
                [None if is_idle_segment(segment) else label + segment for segment in rows[resource.id].segments]
            )

        lines = [separator, *interleave(columns, separator), separator]
        log.debug("Rendered %d tracks over %d events", len(tracks), len(events))
        return Text("\n").join(lines)

    def _draw(self, tracks: Sequence[Resource], events: Sequence[Event], width: int) -> dict[int, TrackRows]:
        rows = {resource.id: TrackRows(width) for resource in tracks}
        alive = {resource.id: False for resource in tracks}
        stack: list[int] = []

        for column in _padded(events, self.padding):
            creator = self.resources.get(column.resource_id)
            for resource in tracks:
                glyph = select_glyph(column.kind, column.resource_id, resource.id, stack, alive[resource.id])
                rows[resource.id].append(glyph.char, self._style(glyph, resource, creator, column))
            self._apply(column, stack, alive)
        return rows

    @staticmethod
    def _style(glyph: Glyph, track: Resource, creator: Optional[Resource], column: _Column) -> Optional[str]:
        if glyph is Glyph.BLANK:
            return None
        if glyph in (Glyph.CONNECTOR, Glyph.CONNECTOR_SCOPE) and column.resource_id > track.id:
            highlight = creator.color if creator is not None else None
        else:
            highlight = track.color
        if highlight is None:
            return glyph.style
        return f"{glyph.style} {highlight}" if glyph.style else highlight

    @staticmethod
    def _apply(column: _Column, stack: list[int], alive: dict[int, bool]) -> None:
        kind, resource_id = column.kind, column.resource_id
        if kind in (EventKind.INIT.value, EventKind.INTERNAL.value):
            alive[resource_id] = True
        elif kind == EventKind.BEFORE.value:
            stack.append(resource_id)
        elif kind == EventKind.AFTER.value:
            if stack and stack[-1] == resource_id:
                stack.pop()
            elif resource_id in stack:
                # Badly nested input; drop the innermost matching scope.
                del stack[len(stack) - 1 - stack[::-1].index(resource_id)]
            elif stack:
                stack.pop()
        elif kind in (EventKind.DESTROY.value, EventKind.PROMISE_RESOLVE.value):
            alive[resource_id] = False
