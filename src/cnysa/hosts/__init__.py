from typing import Optional

from .asyncio_host import AsyncioHost, TracedCoroutine
from .base import AsyncHost, LifecycleListener
from .manual import ManualHost
from .stack_trace import capture_stack, trim_internal_frames

_default_host: Optional[AsyncioHost] = None


def get_default_host() -> AsyncioHost:
    """Return the process-wide asyncio host, creating it on first use."""
    global _default_host
    if _default_host is None:
        _default_host = AsyncioHost()
    return _default_host


__all__ = [
    "AsyncHost",
    "AsyncioHost",
    "LifecycleListener",
    "ManualHost",
    "TracedCoroutine",
    "capture_stack",
    "get_default_host",
    "trim_internal_frames",
]
