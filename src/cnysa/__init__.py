"""
cnysa: lifecycle timelines and ancestry traces for asyncio programs.
"""

from importlib.metadata import PackageNotFoundError, version

from cnysa.config.options import CnysaOptions, canonicalize_options
from cnysa.core import Cnysa
from cnysa.errors import CnysaError, ConversionError, InvalidOptionsError
from cnysa.hosts import AsyncHost, AsyncioHost, ManualHost, get_default_host
from cnysa.recorder import EventKind, EventRecorder, Resource
from cnysa.registry import InstanceRegistry, default_registry, get_cnysa, mark

try:
    __version__ = version("cnysa")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "AsyncHost",
    "AsyncioHost",
    "Cnysa",
    "CnysaError",
    "CnysaOptions",
    "ConversionError",
    "EventKind",
    "EventRecorder",
    "InstanceRegistry",
    "InvalidOptionsError",
    "ManualHost",
    "Resource",
    "canonicalize_options",
    "default_registry",
    "get_cnysa",
    "get_default_host",
    "mark",
]
