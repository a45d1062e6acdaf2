"""
Ancestry traces: the call stack of the running code, followed by the
creation stacks of every scope it descends from, one generation per row.
"""

from __future__ import annotations

from typing import Optional, Sequence

from rich.text import Text

from cnysa.recorder.models import ROOT_ID, Resource, ScopeRecord, StackFrame
from cnysa.recorder.recorder import AncestryConstraint, has_ancestor
from cnysa.render.grid import assemble

PARENT_LINK_STYLE = "yellow"
TRIGGER_LINK_STYLE = "magenta"
HEADER_TYPE_STYLE = "bold"
CURRENT_STYLE = "bold green"


def format_frames(frames: Sequence[StackFrame]) -> list[Text]:
    return [Text(frame.format()) for frame in frames]


class AncestryAssembler:
    """
    Walk outward from the innermost open scope through ``parents`` and
    ``trigger_id`` links, branching once per distinct ancestry path.

    A branch ends at the root resource. A branch is dropped as soon as it
    reaches a resource that was filtered out of the registry or fails the
    ancestry constraint; its further ancestors are not followed.
    """

    def __init__(
        self,
        resources: dict[int, Resource],
        scopes: Sequence[ScopeRecord],
        constraint: AncestryConstraint = None,
    ):
        self.resources = resources
        self.scopes = scopes
        self.constraint = constraint

    def _qualifies(self, resource_id: int) -> Optional[Resource]:
        resource = self.resources.get(resource_id)
        if resource is None or not has_ancestor(self.resources, resource, self.constraint):
            return None
        return resource

    def header(self, path: Sequence[int]) -> Text:
        """Ids of ``path`` outermost first, innermost last, then the type."""
        text = Text()
        for position in range(len(path) - 1, -1, -1):
            resource_id = path[position]
            if position > 0 and self.resources[path[position - 1]].trigger_id == resource_id:
                style = TRIGGER_LINK_STYLE
            else:
                style = PARENT_LINK_STYLE
            text.append(str(resource_id), style=style)
            if position > 0:
                text.append(":")
        text.append(" ")
        text.append(self.resources[path[-1]].type, style=HEADER_TYPE_STYLE)
        return text

    def cell(self, path: Sequence[int], frames: Optional[Sequence[StackFrame]] = None) -> list[Text]:
        head = self.resources[path[-1]]
        return [self.header(path), *format_frames(head.captured_stack if frames is None else frames)]

    def paths(self) -> list[list[list[int]]]:
        """Ancestry paths grouped by generation."""
        if not self.scopes:
            return []
        top = self.scopes[-1].resource_id
        if top == ROOT_ID or self._qualifies(top) is None:
            return []

        generations: list[list[list[int]]] = []
        current = [[top]]
        while current:
            generations.append(current)
            following: list[list[int]] = []
            for path in current:
                for parent_id in self.resources[path[-1]].ancestry_links():
                    if parent_id == ROOT_ID or parent_id in path:
                        continue
                    if self._qualifies(parent_id) is None:
                        continue
                    following.append([*path, parent_id])
            current = following
        return generations

    def rows(self, current_frames: Sequence[StackFrame]) -> list[list[list[Text]]]:
        current_header = Text("(current)", style=CURRENT_STYLE)
        rows: list[list[list[Text]]] = [[[current_header, *format_frames(current_frames)]]]
        top_frames = self.scopes[-1].frames if self.scopes else None
        for generation, paths in enumerate(self.paths()):
            rows.append(
                [self.cell(path, top_frames if generation == 0 else None) for path in paths]
            )
        return rows

    def render(self, current_frames: Sequence[StackFrame]) -> Text:
        return assemble(self.rows(current_frames))
