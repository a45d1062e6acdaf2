"""
Grid layout for multi-line text blocks.
"""

from __future__ import annotations

from typing import Sequence, Union

from rich.text import Text

Line = Union[str, Text]
Cell = Sequence[Line]


def _as_text(line: Line) -> Text:
    return line if isinstance(line, Text) else Text(line)


def assemble(rows: Sequence[Sequence[Cell]]) -> Text:
    """Lay out ``rows`` of cells into one aligned page.

    Each cell is an independent block of lines. Every column is as wide as
    its widest cell across all rows; every row is as tall as its tallest
    cell. Cells are joined by a single space, rows by a blank line, and
    trailing whitespace is removed from every line.
    """
    column_widths: list[int] = []
    row_heights: list[int] = []
    for row in rows:
        tallest = 0
        for x, cell in enumerate(row):
            if len(column_widths) == x:
                column_widths.append(0)
            widest = max((_as_text(line).cell_len for line in cell), default=0)
            column_widths[x] = max(column_widths[x], widest)
            tallest = max(tallest, len(cell))
        row_heights.append(tallest)

    blocks: list[list[Text]] = []
    for row, height in zip(rows, row_heights):
        block: list[Text] = []
        for index in range(height):
            line = Text()
            for x, cell in enumerate(row):
                entry = _as_text(cell[index]) if index < len(cell) else Text()
                line.append_text(entry)
                line.append(" " * (column_widths[x] - entry.cell_len + 1))
            line.rstrip()
            block.append(line)
        while block and not block[-1].plain:
            block.pop()
        if block:
            blocks.append(block)

    lines: list[Text] = []
    for block in blocks:
        if lines:
            lines.append(Text())
        lines.extend(block)
    while lines and not lines[0].plain.strip():
        lines.pop(0)
    return Text("\n").join(lines)
