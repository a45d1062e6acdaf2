"""
Live event log: prints each lifecycle notification the moment it arrives,
indented by the number of open scopes.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from rich.console import Console
from rich.text import Text


def _clock() -> int:
    return int(time.time()) % 1000


class LivePrinter:
    """Lifecycle listener that writes a readable line per notification."""

    def __init__(
        self,
        console: Optional[Console] = None,
        suppressed: Optional[Callable[[str], bool]] = None,
        clock: Callable[[], int] = _clock,
    ):
        self.console = console or Console(highlight=False, soft_wrap=True)
        self._suppressed = suppressed or (lambda type: False)
        self._clock = clock
        self._start = clock()
        self._indent = ""
        self.types: dict[int, str] = {}
        self.triggers: dict[int, int] = {}

    def elapsed(self) -> int:
        seconds = self._clock() - self._start
        if seconds < 0:
            seconds += 1000
        return seconds

    def _line(self, symbol: str, style: str, resource_id: int) -> Text:
        line = Text(self._indent)
        line.append(f"{symbol} [", style=style)
        line.append(f"{self.elapsed():>3}")
        line.append(f"] {self.types[resource_id]} ", style=style)
        return line

    def _emit(self, line: Text) -> None:
        self.console.print(line)

    def trigger_chain(self, resource_id: int) -> Text:
        chain = Text(str(resource_id), style="yellow")
        seen = {resource_id}
        while resource_id in self.triggers:
            resource_id = self.triggers[resource_id]
            if resource_id in seen:
                break
            seen.add(resource_id)
            chain.append(":")
            chain.append(str(resource_id), style="magenta")
        return chain

    # -- listener interface --------------------------------------------------

    def on_create(self, resource_id: int, type: str, trigger_id: int, *, internal: bool = False) -> None:
        # Markers and custom scopes bypass type filters, as in the recorder.
        if not internal and self._suppressed(type):
            return
        self.types[resource_id] = type
        self.triggers[resource_id] = trigger_id
        line = self._line("+", "green", resource_id)
        line.append_text(self.trigger_chain(resource_id))
        self._emit(line)

    def on_enter(self, resource_id: int) -> None:
        if resource_id not in self.types:
            return
        line = self._line("*", "blue", resource_id)
        line.append(str(resource_id), style="yellow")
        line.append(" {", style="blue")
        self._emit(line)
        self._indent += "  "

    def on_exit(self, resource_id: int) -> None:
        if resource_id not in self.types:
            return
        self._indent = self._indent[:-2]
        line = Text(self._indent)
        line.append("}", style="blue")
        self._emit(line)

    def on_destroy(self, resource_id: int) -> None:
        if resource_id not in self.types:
            return
        line = self._line("-", "red", resource_id)
        line.append(str(resource_id), style="yellow")
        self._emit(line)

    def on_settle(self, resource_id: int) -> None:
        if resource_id not in self.types:
            return
        line = self._line(":", "bright_black", resource_id)
        line.append(str(resource_id), style="yellow")
        self._emit(line)

    def label(self, resource_id: Optional[int], alias: Optional[str] = None) -> None:
        """Print a ``>`` line naming a tracked resource, optionally with an alias."""
        line = Text(self._indent)
        line.append("> [", style="white")
        line.append(f"{self.elapsed():>3}")
        type = self.types.get(resource_id, "?") if resource_id is not None else "?"
        line.append(f"] {type} ", style="white")
        line.append(str(resource_id) if resource_id is not None else "?", style="yellow")
        if alias:
            line.append(" aka ", style="white")
            line.append(alias, style="cyan")
        self._emit(line)
