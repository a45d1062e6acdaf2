"""
Conversion of rendered pages into their final string form.
"""

from __future__ import annotations

import io

from rich.console import Console
from rich.text import Text

from cnysa.config.logging_config import get_logger
from cnysa.config.options import CnysaOptions
from cnysa.errors import ConversionError

log = get_logger(__name__)

SVG_TITLE = "cnysa"


def _page_width(text: Text, minimum: int) -> int:
    widest = max((line.cell_len for line in text.split("\n", allow_blank=True)), default=0)
    return max(minimum, widest, 1)


def render_text(text: Text, color: bool = True) -> str:
    """Render ``text`` as a string, with ANSI styles when ``color`` is set."""
    if not color:
        return text.plain
    console = Console(
        file=io.StringIO(),
        width=_page_width(text, 1),
        force_terminal=True,
        color_system="standard",
        highlight=False,
        soft_wrap=True,
    )
    with console.capture() as capture:
        console.print(text, end="")
    return capture.get()


def render_svg(text: Text, width: int) -> str:
    """Render ``text`` as an SVG image of a terminal.

    Raises:
        ConversionError: If rich fails to export the recording.
    """
    try:
        console = Console(
            file=io.StringIO(),
            record=True,
            width=_page_width(text, width),
            force_terminal=True,
            color_system="truecolor",
            highlight=False,
            soft_wrap=True,
        )
        console.print(text)
        return console.export_svg(title=SVG_TITLE)
    except Exception as e:
        log.debug("SVG conversion failed: %s", e)
        raise ConversionError("svg", str(e)) from e


def render_output(text: Text, options: CnysaOptions) -> str:
    """Convert a rendered page according to ``options.format``."""
    if options.format == "svg":
        return render_svg(text, options.width)
    return render_text(text, color=options.color)
