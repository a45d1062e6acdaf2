"""
Call-stack capture.
"""

import sys
import traceback
from pathlib import Path
from typing import Iterable

from cnysa.recorder.models import StackFrame

_PACKAGE_DIR = str(Path(__file__).resolve().parent.parent)
_UNSET = object()


def capture_stack(skip: int = 0) -> tuple[StackFrame, ...]:
    """Capture the current call stack, innermost frame first.

    Args:
        skip: Number of leading frames to leave out, not counting this
            function's own frame.

    ``sys.tracebacklimit`` is lifted while capturing so that a limit set by
    the traced program does not truncate the stack.
    """
    try:
        frame = sys._getframe(skip + 1)
    except ValueError:
        return ()

    previous = getattr(sys, "tracebacklimit", _UNSET)
    if previous is not _UNSET:
        del sys.tracebacklimit
    try:
        summary = traceback.extract_stack(frame)
    finally:
        if previous is not _UNSET:
            sys.tracebacklimit = previous  # type: ignore[assignment]

    return tuple(
        StackFrame(function=entry.name or None, file=entry.filename, line=entry.lineno)
        for entry in reversed(summary)
    )


def is_internal_frame(frame: StackFrame) -> bool:
    """Return True for frames that belong to cnysa itself."""
    return Path(frame.file).resolve().as_posix().startswith(Path(_PACKAGE_DIR).as_posix() + "/")


def trim_internal_frames(frames: Iterable[StackFrame]) -> tuple[StackFrame, ...]:
    """Drop cnysa's own frames, including task step wrappers between user frames."""
    return tuple(frame for frame in frames if not is_internal_frame(frame))
