"""
Event recorder: turns host lifecycle notifications into a resource registry
and an append-only event log.
"""

from __future__ import annotations

import itertools
import re
from typing import Callable, FrozenSet, Iterator, Optional, Union

from cnysa.config.logging_config import get_logger
from cnysa.config.options import CnysaOptions, canonicalize_options
from cnysa.hosts.stack_trace import capture_stack, trim_internal_frames
from cnysa.recorder.models import (
    ROOT_ID,
    ROOT_TYPE,
    Event,
    EventKind,
    Resource,
    ScopeRecord,
    StackFrame,
)

log = get_logger(__name__)

AncestryConstraint = Optional[Union[FrozenSet[int], re.Pattern]]


def has_ancestor(
    registry: dict[int, Resource],
    resource: Resource,
    constraint: AncestryConstraint,
) -> bool:
    """Return True if ``resource`` or one of its ancestors satisfies ``constraint``.

    ``constraint`` is either None (always satisfied), a type pattern, or a set
    of resource ids. Parents always have smaller ids than their children, so
    the recursion terminates without a visited set.
    """
    if constraint is None:
        return True
    if isinstance(constraint, re.Pattern):
        if constraint.search(resource.type):
            return True
    elif resource.id in constraint:
        return True
    for parent_id in resource.parents:
        parent = registry.get(parent_id)
        if parent is not None and parent_id < resource.id and has_ancestor(registry, parent, constraint):
            return True
    return False


class EventRecorder:
    """
    Listener that records every lifecycle notification it receives.

    The recorder owns the registry, the event log and the continuation stack.
    Renderers only ever read them.
    """

    def __init__(
        self,
        options: Optional[CnysaOptions] = None,
        stack_capture: Callable[[int], tuple[StackFrame, ...]] = capture_stack,
    ):
        self.options = options or canonicalize_options()
        self._capture = stack_capture
        self._colors = itertools.cycle(self.options.colors)
        self._mark_counter = itertools.count(1)
        self._root_scope_closed = False

        self.resources: dict[int, Resource] = {ROOT_ID: Resource(id=ROOT_ID, type=ROOT_TYPE)}
        self.events: list[Event] = [Event(ROOT_ID, EventKind.BEFORE)]
        self.scopes: list[ScopeRecord] = [ScopeRecord(ROOT_ID)]

    # -- read-only views -----------------------------------------------------

    @property
    def continuation_stack(self) -> list[int]:
        return [scope.resource_id for scope in self.scopes]

    @property
    def current_scope(self) -> Optional[int]:
        return self.scopes[-1].resource_id if self.scopes else None

    def tracks(self, constraint: AncestryConstraint = None) -> list[Resource]:
        """Resources that pass ``constraint``, in creation order."""
        return [
            resource
            for _, resource in sorted(self.resources.items())
            if has_ancestor(self.resources, resource, constraint)
        ]

    def iter_events(self, resource_ids: Optional[set[int]] = None) -> Iterator[Event]:
        for event in self.events:
            if resource_ids is None or event.resource_id in resource_ids:
                yield event

    # -- filtering -----------------------------------------------------------

    def is_suppressed(self, type: str) -> bool:
        """Return True if resources of ``type`` are never recorded."""
        if self.options.ignore_types is not None and self.options.ignore_types.search(type):
            return True
        if self.options.include_types is not None and not self.options.include_types.search(type):
            return True
        return False

    # -- intake --------------------------------------------------------------

    def on_create(
        self,
        resource_id: int,
        type: str,
        trigger_id: Optional[int] = None,
        *,
        internal: bool = False,
        custom: bool = False,
    ) -> Optional[Resource]:
        if not internal and not custom and self.is_suppressed(type):
            log.debug("Suppressed resource %s of type %s", resource_id, type)
            return None
        if resource_id in self.resources:
            log.debug("Ignoring duplicate creation of resource %s", resource_id)
            return None

        current = self.current_scope
        resource = Resource(
            id=resource_id,
            type=type,
            parents=tuple(self.continuation_stack),
            trigger_id=trigger_id if trigger_id is not None and trigger_id != current else None,
            internal=internal,
            custom=custom,
            captured_stack=self._capture_creation_stack(),
            color=self._pick_color(type, current),
        )
        self.resources[resource_id] = resource
        self._append(resource_id, EventKind.INTERNAL if internal else EventKind.INIT)
        return resource

    def on_enter(self, resource_id: int) -> None:
        resource = self.resources.get(resource_id)
        if resource is None:
            log.debug("Dropped enter of unknown resource %s", resource_id)
            return
        if not self._root_scope_closed and not resource.internal and not resource.custom:
            self._close_root_scope()
        self._append(resource_id, EventKind.BEFORE)
        self.scopes.append(ScopeRecord(resource_id, resource.captured_stack))

    def on_exit(self, resource_id: int) -> None:
        if resource_id not in self.resources:
            log.debug("Dropped exit of unknown resource %s", resource_id)
            return
        self._append(resource_id, EventKind.AFTER)
        if self.scopes and self.scopes[-1].resource_id == resource_id:
            self.scopes.pop()
        else:
            # Hosts guarantee nesting; tolerate violations without corrupting the stack.
            for index in range(len(self.scopes) - 1, -1, -1):
                if self.scopes[index].resource_id == resource_id:
                    del self.scopes[index]
                    break

    def on_destroy(self, resource_id: int) -> None:
        resource = self.resources.get(resource_id)
        if resource is None or resource.is_root:
            log.debug("Dropped destroy of resource %s", resource_id)
            return
        resource.alive = False
        self._append(resource_id, EventKind.DESTROY)

    def on_settle(self, resource_id: int) -> None:
        # Recorded even for unknown ids: the target may be realized later.
        resource = self.resources.get(resource_id)
        if resource is not None:
            resource.alive = False
        self._append(resource_id, EventKind.PROMISE_RESOLVE)

    # -- markers -------------------------------------------------------------

    def mark(self, resource_id: int, tag: Optional[str] = None) -> Resource:
        """Record an instantaneous marker resource with id ``resource_id``."""
        if tag is None:
            tag = f"mark-{next(self._mark_counter)}"
        resource = self.on_create(resource_id, tag, internal=True)
        assert resource is not None
        self.on_destroy(resource_id)
        return resource

    # -- helpers -------------------------------------------------------------

    def _append(self, resource_id: int, kind: EventKind) -> None:
        self.events.append(Event(resource_id, kind))

    def _close_root_scope(self) -> None:
        self._root_scope_closed = True
        self._append(ROOT_ID, EventKind.AFTER)
        for index in range(len(self.scopes) - 1, -1, -1):
            if self.scopes[index].resource_id == ROOT_ID:
                del self.scopes[index]
                break

    def _capture_creation_stack(self) -> tuple[StackFrame, ...]:
        if not self.options.capture_stacks:
            return ()
        return trim_internal_frames(self._capture(1))

    def _pick_color(self, type: str, current: Optional[int]) -> Optional[str]:
        creator = self.resources.get(current) if current is not None else None
        if creator is not None and creator.color is not None:
            return creator.color
        highlight = self.options.highlight_types
        if highlight is not None and highlight.search(type):
            return next(self._colors)
        return None
