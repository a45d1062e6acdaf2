"""
Lifecycle notification sources.

A host observes a runtime and turns what it sees into five notifications:
creation, scope enter, scope exit, destruction and settlement. Hosts carry
only integer ids and a type string; listeners never inspect payloads.
"""

from __future__ import annotations

import itertools
from typing import Any, Optional, Protocol, runtime_checkable

from cnysa.config.logging_config import get_logger
from cnysa.recorder.models import ROOT_ID

log = get_logger(__name__)


@runtime_checkable
class LifecycleListener(Protocol):
    """Receiver of host lifecycle notifications."""

    def on_create(self, resource_id: int, type: str, trigger_id: int) -> None: ...

    def on_enter(self, resource_id: int) -> None: ...

    def on_exit(self, resource_id: int) -> None: ...

    def on_destroy(self, resource_id: int) -> None: ...

    def on_settle(self, resource_id: int) -> None: ...


class AsyncHost:
    """
    Base class for lifecycle notification sources.

    Owns the id allocator (id 1 is reserved for top-level synchronous
    execution, so allocation starts at 2) and an explicit execution stack
    tracking which resource is currently running.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(ROOT_ID + 1)
        self._listeners: list[LifecycleListener] = []
        self._execution: list[int] = []
        self._objects: dict[int, int] = {}

    # -- listeners -----------------------------------------------------------

    def add_listener(self, listener: LifecycleListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: LifecycleListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self) -> list[LifecycleListener]:
        return list(self._listeners)

    # -- state ---------------------------------------------------------------

    def allocate_id(self) -> int:
        return next(self._ids)

    def execution_id(self) -> int:
        """Return the id of the resource currently executing (1 at top level)."""
        return self._execution[-1] if self._execution else ROOT_ID

    def id_of(self, obj: Any) -> Optional[int]:
        """Return the resource id assigned to a tracked object, if any."""
        return self._objects.get(id(obj))

    def _track_object(self, obj: Any, resource_id: int) -> None:
        self._objects[id(obj)] = resource_id

    def _forget_object(self, obj_key: int) -> None:
        self._objects.pop(obj_key, None)

    # -- custom scopes -------------------------------------------------------

    def enter_scope(self, resource_id: int) -> None:
        self._execution.append(resource_id)
        self._notify_enter(resource_id)

    def exit_scope(self, resource_id: int) -> None:
        self._notify_exit(resource_id)
        if self._execution and self._execution[-1] == resource_id:
            self._execution.pop()
        elif resource_id in self._execution:
            log.debug("Scope %s exited out of order", resource_id)
            self._execution.remove(resource_id)

    # -- fan-out -------------------------------------------------------------

    def _notify_create(self, resource_id: int, type: str, trigger_id: Optional[int] = None) -> None:
        trigger = self.execution_id() if trigger_id is None else trigger_id
        for listener in list(self._listeners):
            listener.on_create(resource_id, type, trigger)

    def _notify_enter(self, resource_id: int) -> None:
        for listener in list(self._listeners):
            listener.on_enter(resource_id)

    def _notify_exit(self, resource_id: int) -> None:
        for listener in list(self._listeners):
            listener.on_exit(resource_id)

    def _notify_destroy(self, resource_id: int) -> None:
        for listener in list(self._listeners):
            listener.on_destroy(resource_id)

    def _notify_settle(self, resource_id: int) -> None:
        for listener in list(self._listeners):
            listener.on_settle(resource_id)
