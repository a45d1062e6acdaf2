from .models import ROOT_ID, ROOT_TYPE, Event, EventKind, Resource, ScopeRecord, StackFrame
from .recorder import EventRecorder, has_ancestor

__all__ = [
    "ROOT_ID",
    "ROOT_TYPE",
    "Event",
    "EventKind",
    "EventRecorder",
    "Resource",
    "ScopeRecord",
    "StackFrame",
    "has_ancestor",
]
