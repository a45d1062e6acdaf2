"""
A host driven by explicit calls.

Useful for instrumenting code that does not run on an asyncio loop (thread
pools, hand-written schedulers) and for producing deterministic event logs.

Example:
    host = ManualHost()
    cnysa = Cnysa({"width": 60}, host=host).enable()

    timer = host.create("Timeout")
    with host.running(timer):
        child = host.create("Request")
    host.destroy(timer)

    print(cnysa.create_snapshot())
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from cnysa.hosts.base import AsyncHost


class ManualHost(AsyncHost):
    """Host whose notifications are issued by the caller."""

    def create(self, type: str, trigger_id: Optional[int] = None) -> int:
        """Allocate a resource of ``type`` and announce its creation."""
        resource_id = self.allocate_id()
        self._notify_create(resource_id, type, trigger_id)
        return resource_id

    def enter(self, resource_id: int) -> None:
        self.enter_scope(resource_id)

    def exit(self, resource_id: int) -> None:
        self.exit_scope(resource_id)

    def destroy(self, resource_id: int) -> None:
        self._notify_destroy(resource_id)

    def settle(self, resource_id: int) -> None:
        self._notify_settle(resource_id)

    @contextmanager
    def running(self, resource_id: int) -> Iterator[int]:
        """Run the body of the ``with`` block inside the scope of ``resource_id``."""
        self.enter(resource_id)
        try:
            yield resource_id
        finally:
            self.exit(resource_id)
