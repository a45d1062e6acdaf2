import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

ROOT_ID = 1
ROOT_TYPE = "(initial)"


class EventKind(str, Enum):
    """Lifecycle event kinds, in the order a resource normally sees them."""

    INIT = "init"
    BEFORE = "before"
    AFTER = "after"
    DESTROY = "destroy"
    PROMISE_RESOLVE = "promiseResolve"
    INTERNAL = "internal"


@dataclass(frozen=True)
class StackFrame:
    """One captured call-stack frame."""

    function: Optional[str]
    file: str
    line: Optional[int]

    def format(self) -> str:
        return f"{self.function or '(anonymous)'} ({self.file}:{self.line})"


@dataclass
class Resource:
    """A lifecycle-tracked unit of asynchronous work."""

    id: int
    type: str
    parents: tuple[int, ...] = ()
    trigger_id: Optional[int] = None
    internal: bool = False
    custom: bool = False
    captured_stack: tuple[StackFrame, ...] = ()
    alive: bool = True
    color: Optional[str] = None

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID

    def ancestry_links(self) -> tuple[int, ...]:
        """Parents followed by the trigger, without duplicates."""
        links = list(self.parents)
        if self.trigger_id is not None and self.trigger_id not in links:
            links.append(self.trigger_id)
        return tuple(links)


@dataclass(frozen=True)
class Event:
    """An entry in the append-only event log."""

    resource_id: int
    kind: EventKind
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ScopeRecord:
    """An open scope on the continuation stack and the stack it was created from."""

    resource_id: int
    frames: tuple[StackFrame, ...] = ()
