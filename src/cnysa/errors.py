"""
Exceptions raised by cnysa.

Unknown resource ids are never an error: the host runtime is the source of
truth and references to filtered resources are expected, so those events are
dropped quietly by the recorder.
"""

from __future__ import annotations


class CnysaError(Exception):
    """Base exception for cnysa errors."""

    pass


class InvalidOptionsError(CnysaError, ValueError):
    """Raised when rendering options cannot be canonicalized.

    A type filter that silently matched nothing (or everything) would corrupt
    every later rendering, so bad options fail at construction time.
    """

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class ConversionError(CnysaError):
    """Raised when styled text output cannot be converted to another format."""

    def __init__(self, format: str, message: str):
        super().__init__(f"Failed to convert output to {format}: {message}")
        self.format = format


__all__ = [
    "CnysaError",
    "ConversionError",
    "InvalidOptionsError",
]
