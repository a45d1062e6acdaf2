"""
Lifecycle notifications for asyncio event loops.

Tracked resources:

- ``Task``: created through the loop's task factory. Every step of the
  coroutine (each ``send``/``throw`` the task performs) is one scope; the
  coroutine finishing settles the task and garbage collection destroys it.
- ``Handle`` / ``TimerHandle``: callbacks scheduled with ``call_soon`` and
  ``call_at``/``call_later``. Running the callback is one scope, after which
  the handle is destroyed.
- ``Future``: futures from ``loop.create_future()``; completion settles them.

Callbacks bound to futures and tasks are asyncio's own step/wakeup
machinery and are not tracked separately.

Example:
    host = AsyncioHost()
    cnysa = Cnysa(host=host).enable()
    asyncio.run(main(), loop_factory=host.loop_factory)
    print(cnysa.create_snapshot())
"""

from __future__ import annotations

import asyncio
import collections.abc
import functools
import warnings
import weakref
from typing import Any, Callable, Coroutine, Optional

from cnysa.config.logging_config import get_logger
from cnysa.hosts.base import AsyncHost

log = get_logger(__name__)

TASK_TYPE = "Task"
HANDLE_TYPE = "Handle"
TIMER_HANDLE_TYPE = "TimerHandle"
FUTURE_TYPE = "Future"

_PATCHED_METHODS = ("call_soon", "call_at", "create_future")


class TracedCoroutine(collections.abc.Coroutine):
    """Coroutine wrapper that reports every step of a task as a scope."""

    def __init__(self, coro: Coroutine[Any, Any, Any], resource_id: int, host: "AsyncioHost"):
        self._coro = coro
        self._resource_id = resource_id
        self._host = host

    @property
    def resource_id(self) -> int:
        return self._resource_id

    def send(self, value: Any) -> Any:
        self._host.enter_scope(self._resource_id)
        try:
            return self._coro.send(value)
        except BaseException:
            # StopIteration included: the coroutine is finished either way.
            self._host._notify_settle(self._resource_id)
            raise
        finally:
            self._host.exit_scope(self._resource_id)

    def throw(self, typ: Any, val: Any = None, tb: Any = None) -> Any:
        self._host.enter_scope(self._resource_id)
        try:
            if val is None and tb is None:
                return self._coro.throw(typ)
            return self._coro.throw(typ, val, tb)
        except BaseException:
            self._host._notify_settle(self._resource_id)
            raise
        finally:
            self._host.exit_scope(self._resource_id)

    def close(self) -> None:
        self._coro.close()

    def __await__(self):
        return self._coro.__await__()

    def __getattr__(self, name: str) -> Any:
        # cr_frame, cr_code, __qualname__ ... used by asyncio's task repr
        return getattr(self._coro, name)

    def __repr__(self) -> str:
        return repr(self._coro)


def _tracing_policy(host: "AsyncioHost") -> asyncio.AbstractEventLoopPolicy:
    # The policy API is deprecated since 3.14, but it is the only hook that
    # reaches loops created by asyncio.run() inside code we do not control.
    class TracingEventLoopPolicy(asyncio.DefaultEventLoopPolicy):  # type: ignore[name-defined]
        def new_event_loop(self) -> asyncio.AbstractEventLoop:
            return host.attach(super().new_event_loop())

    return TracingEventLoopPolicy()


class AsyncioHost(AsyncHost):
    """Host that instruments asyncio event loops."""

    def __init__(self) -> None:
        super().__init__()
        self._attached: dict[asyncio.AbstractEventLoop, Any] = {}
        self._previous_policy: Optional[asyncio.AbstractEventLoopPolicy] = None

    # -- loop instrumentation ------------------------------------------------

    def attach(self, loop: asyncio.AbstractEventLoop) -> asyncio.AbstractEventLoop:
        """Instrument ``loop``; attaching twice is a no-op."""
        if loop in self._attached:
            return loop
        previous_factory = loop.get_task_factory()
        self._attached[loop] = previous_factory
        loop.set_task_factory(functools.partial(self._task_factory, previous_factory))
        loop.call_soon = functools.partial(self._call_soon, loop.call_soon)  # type: ignore[method-assign]
        loop.call_at = functools.partial(self._call_at, loop.call_at)  # type: ignore[method-assign]
        loop.create_future = functools.partial(self._create_future, loop.create_future)  # type: ignore[method-assign]
        log.debug("Attached to event loop %r", loop)
        return loop

    def detach(self, loop: asyncio.AbstractEventLoop) -> None:
        """Undo :meth:`attach` for ``loop``."""
        if loop not in self._attached:
            return
        previous_factory = self._attached.pop(loop)
        if not loop.is_closed():
            loop.set_task_factory(previous_factory)
        for name in _PATCHED_METHODS:
            if name in vars(loop):
                delattr(loop, name)
        log.debug("Detached from event loop %r", loop)

    def detach_all(self) -> None:
        for loop in list(self._attached):
            self.detach(loop)

    def is_attached(self, loop: asyncio.AbstractEventLoop) -> bool:
        return loop in self._attached

    def attach_running(self) -> Optional[asyncio.AbstractEventLoop]:
        """Instrument the running loop, if called from inside one."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        return self.attach(loop)

    def loop_factory(self) -> asyncio.AbstractEventLoop:
        """Create an instrumented loop, e.g. for ``asyncio.run(..., loop_factory=...)``."""
        return self.attach(asyncio.new_event_loop())

    def install_policy(self) -> None:
        """Instrument every loop created from now on through the loop policy."""
        if self._previous_policy is not None:
            return
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", DeprecationWarning)
            self._previous_policy = asyncio.get_event_loop_policy()
            asyncio.set_event_loop_policy(_tracing_policy(self))

    def uninstall_policy(self) -> None:
        if self._previous_policy is None:
            return
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", DeprecationWarning)
            asyncio.set_event_loop_policy(self._previous_policy)
        self._previous_policy = None

    # -- hooks ---------------------------------------------------------------

    def _task_factory(
        self,
        previous_factory: Optional[Callable[..., asyncio.Task]],
        loop: asyncio.AbstractEventLoop,
        coro: Coroutine[Any, Any, Any],
        **kwargs: Any,
    ) -> asyncio.Task:
        resource_id = self.allocate_id()
        self._notify_create(resource_id, TASK_TYPE)
        traced = TracedCoroutine(coro, resource_id, self)
        if previous_factory is not None:
            task = previous_factory(loop, traced, **kwargs)
        else:
            task = asyncio.Task(traced, loop=loop, **kwargs)
        self._watch(task, resource_id)
        return task

    def _call_soon(
        self,
        original: Callable[..., asyncio.Handle],
        callback: Callable[..., Any],
        *args: Any,
        context: Any = None,
    ) -> asyncio.Handle:
        if self._is_internal_callback(callback):
            return original(callback, *args, context=context)
        resource_id = self.allocate_id()
        self._notify_create(resource_id, HANDLE_TYPE)
        return original(self._traced_callback(resource_id, callback), *args, context=context)

    def _call_at(
        self,
        original: Callable[..., asyncio.TimerHandle],
        when: float,
        callback: Callable[..., Any],
        *args: Any,
        context: Any = None,
    ) -> asyncio.TimerHandle:
        if self._is_internal_callback(callback):
            return original(when, callback, *args, context=context)
        resource_id = self.allocate_id()
        self._notify_create(resource_id, TIMER_HANDLE_TYPE)
        return original(when, self._traced_callback(resource_id, callback), *args, context=context)

    def _create_future(self, original: Callable[[], asyncio.Future]) -> asyncio.Future:
        future = original()
        resource_id = self.allocate_id()
        self._notify_create(resource_id, FUTURE_TYPE)
        self._watch(future, resource_id)
        future.add_done_callback(self._future_done)
        return future

    def _future_done(self, future: asyncio.Future) -> None:
        resource_id = self.id_of(future)
        if resource_id is not None:
            self._notify_settle(resource_id)

    def _traced_callback(self, resource_id: int, callback: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(callback)
        def run(*args: Any) -> Any:
            self.enter_scope(resource_id)
            try:
                return callback(*args)
            finally:
                self.exit_scope(resource_id)
                self._notify_destroy(resource_id)

        return run

    def _is_internal_callback(self, callback: Callable[..., Any]) -> bool:
        owner = getattr(callback, "__self__", None)
        return owner is self or isinstance(owner, asyncio.Future)

    def _watch(self, obj: Any, resource_id: int) -> None:
        key = id(obj)
        self._track_object(obj, resource_id)
        finalizer = weakref.finalize(obj, self._finalized, key, resource_id)
        finalizer.atexit = False

    def _finalized(self, key: int, resource_id: int) -> None:
        self._forget_object(key)
        self._notify_destroy(resource_id)
