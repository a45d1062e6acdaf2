"""
Tracking of the most recently constructed ``Cnysa`` instance.

Ambient operations such as :func:`cnysa.mark` act on the current instance of
a registry. The process-wide :data:`default_registry` builds a default
instance from the config file and environment on first use.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from cnysa.config.logging_config import get_logger

if TYPE_CHECKING:
    from cnysa.core import Cnysa

log = get_logger(__name__)


class InstanceRegistry:
    """Holds the most recently registered instance, creating one on demand."""

    def __init__(self, factory: Optional[Callable[["InstanceRegistry"], "Cnysa"]] = None):
        self._factory = factory
        self._current: Optional["Cnysa"] = None

    def register(self, instance: "Cnysa") -> None:
        self._current = instance

    def peek(self) -> Optional["Cnysa"]:
        """Return the current instance without constructing one."""
        return self._current

    def current(self) -> "Cnysa":
        """Return the current instance, constructing a default one if needed."""
        if self._current is None:
            factory = self._factory or _default_factory
            log.debug("No cnysa instance registered; constructing a default one")
            self.register(factory(self))
        assert self._current is not None
        return self._current

    def clear(self) -> None:
        self._current = None


def _default_factory(registry: InstanceRegistry) -> "Cnysa":
    from cnysa.config.options import load_default_options
    from cnysa.core import Cnysa

    return Cnysa(load_default_options(), registry=registry).enable()


default_registry = InstanceRegistry()


def get_cnysa() -> "Cnysa":
    """Return the most recently constructed instance of the default registry."""
    return default_registry.current()


def mark(tag: Optional[str] = None) -> int:
    """Record a marker on the current default instance."""
    return get_cnysa().mark(tag)
