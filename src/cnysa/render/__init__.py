from .ancestry import AncestryAssembler
from .glyphs import Glyph, connector_glyph, select_glyph
from .grid import assemble
from .live import LivePrinter
from .output import render_output, render_svg, render_text
from .timeline import TimelineRenderer, interleave, resource_label

__all__ = [
    "AncestryAssembler",
    "Glyph",
    "LivePrinter",
    "TimelineRenderer",
    "assemble",
    "connector_glyph",
    "interleave",
    "render_output",
    "render_svg",
    "render_text",
    "resource_label",
    "select_glyph",
]
