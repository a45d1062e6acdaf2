import asyncio

import pytest

from cnysa.core import Cnysa
from cnysa.hosts import asyncio_host
from cnysa.hosts.asyncio_host import AsyncioHost
from cnysa.hosts.stack_trace import capture_stack, is_internal_frame, trim_internal_frames
from cnysa.recorder import StackFrame

STEP_FRAME = StackFrame("send", asyncio_host.__file__, 61)


class TestTrimInternalFrames:
    """Frames from the cnysa package never reach a trace."""

    def test_capture_starts_at_caller(self):
        frames = capture_stack()
        assert frames[0].function == "test_capture_starts_at_caller"

    def test_internal_frame_detected(self):
        assert is_internal_frame(STEP_FRAME)
        assert not is_internal_frame(StackFrame("main", __file__, 1))

    def test_leading_and_interleaved_frames_dropped(self):
        user = [StackFrame("child", "/app/worker.py", 10), StackFrame("main", "/app/main.py", 3)]
        frames = [STEP_FRAME, user[0], STEP_FRAME, user[1], STEP_FRAME]
        assert trim_internal_frames(frames) == tuple(user)

    @pytest.mark.asyncio
    async def test_task_step_wrapper_hidden(self, registry):
        host = AsyncioHost()
        instance = Cnysa({"width": 200, "color": False, "captureStacks": True}, host=host, registry=registry).enable()

        async def child():
            return instance.create_ancestry_trace()

        try:
            trace = await asyncio.create_task(child())
        finally:
            host.detach_all()
            instance.disable()

        assert "child" in trace
        assert "asyncio_host.py" not in trace
