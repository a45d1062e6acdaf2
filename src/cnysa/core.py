"""
The public facade: one ``Cnysa`` instance records one run and renders it.

Usage:
    from cnysa import Cnysa

    cnysa = Cnysa({"width": 100, "ignoreTypes": "Future"}).enable()
    asyncio.run(main(), loop_factory=cnysa.host.loop_factory)
    print(cnysa.create_snapshot())
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional, TypeVar, Union

from cnysa.config.logging_config import get_logger
from cnysa.config.options import CnysaOptions, canonicalize_options
from cnysa.hosts import get_default_host
from cnysa.hosts.asyncio_host import AsyncioHost
from cnysa.hosts.base import AsyncHost
from cnysa.hosts.stack_trace import capture_stack, trim_internal_frames
from cnysa.recorder.recorder import EventRecorder
from cnysa.registry import InstanceRegistry, default_registry
from cnysa.render.ancestry import AncestryAssembler
from cnysa.render.live import LivePrinter
from cnysa.render.output import render_output
from cnysa.render.timeline import TimelineRenderer

log = get_logger(__name__)

T = TypeVar("T")


class Cnysa:
    """
    Records lifecycle notifications from a host and renders them.

    Each instance owns an independent recorder. Constructing an instance
    makes it the current instance of ``registry`` (the process-wide default
    registry unless another is injected).
    """

    def __init__(
        self,
        options: Optional[Union[CnysaOptions, Mapping[str, Any]]] = None,
        host: Optional[AsyncHost] = None,
        registry: Optional[InstanceRegistry] = None,
        **overrides: Any,
    ):
        self.options = canonicalize_options(options, **overrides)
        self.host = host if host is not None else get_default_host()
        self.recorder = EventRecorder(self.options)
        self.printer: Optional[LivePrinter] = (
            LivePrinter(suppressed=self.recorder.is_suppressed) if self.options.live else None
        )
        self._enabled = False
        self.registry = registry if registry is not None else default_registry
        self.registry.register(self)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> "Cnysa":
        """Start receiving lifecycle notifications from the host."""
        self.host.add_listener(self.recorder)
        if self.printer is not None:
            self.host.add_listener(self.printer)
        if isinstance(self.host, AsyncioHost):
            self.host.attach_running()
        self._enabled = True
        log.info("cnysa enabled on %s", type(self.host).__name__)
        return self

    def disable(self) -> "Cnysa":
        """Stop receiving notifications; everything recorded so far is kept."""
        self.host.remove_listener(self.recorder)
        if self.printer is not None:
            self.host.remove_listener(self.printer)
        self._enabled = False
        log.info("cnysa disabled")
        return self

    # -- annotations ---------------------------------------------------------

    def mark(self, tag: Optional[str] = None) -> int:
        """Record an instantaneous marker and return its resource id."""
        resource_id = self.host.allocate_id()
        resource = self.recorder.mark(resource_id, tag)
        if self.printer is not None:
            self.printer.on_create(resource_id, resource.type, self.host.execution_id(), internal=True)
            self.printer.on_destroy(resource_id)
        return resource_id

    @contextmanager
    def scope(self, name: str) -> Iterator[int]:
        """Run the ``with`` body inside a custom resource named ``name``.

        Resources created in the body record the custom scope as their
        parent. The custom resource is destroyed when the block exits.
        """
        resource_id = self.host.allocate_id()
        trigger_id = self.host.execution_id()
        self.recorder.on_create(resource_id, name, trigger_id, custom=True)
        if self.printer is not None:
            self.printer.on_create(resource_id, name, trigger_id, internal=True)
        self.host.enter_scope(resource_id)
        try:
            yield resource_id
        finally:
            self.host.exit_scope(resource_id)
            self.recorder.on_destroy(resource_id)
            if self.printer is not None:
                self.printer.on_destroy(resource_id)

    def label(self, obj: T, alias: Optional[str] = None) -> T:
        """Print a live-log line naming ``obj`` (a tracked task or future)."""
        if self.printer is not None:
            self.printer.label(self.host.id_of(obj), alias)
        return obj

    # -- rendering -----------------------------------------------------------

    def create_snapshot(self, **overrides: Any) -> str:
        """Render the timeline of everything recorded so far."""
        options = canonicalize_options(self.options, **overrides)
        tracks = self.recorder.tracks(options.roots)
        renderer = TimelineRenderer(
            dict(self.recorder.resources),
            list(self.recorder.events),
            width=options.width,
            padding=options.padding,
        )
        return render_output(renderer.render(tracks), options)

    def create_ancestry_trace(self, **overrides: Any) -> str:
        """Render the call stack of the caller and of every scope it descends from."""
        options = canonicalize_options(self.options, **overrides)
        frames = trim_internal_frames(capture_stack(1))
        assembler = AncestryAssembler(
            dict(self.recorder.resources),
            list(self.recorder.scopes),
            options.roots,
        )
        return render_output(assembler.render(frames), options)
