"""
DuoChat - Line Wrapper
Splits a message into display rows. Each character counts as one column.
"""

from enum import Enum
from typing import List, NamedTuple


class Side(Enum):
    LEFT = "left"
    RIGHT = "right"


class Row(NamedTuple):
    prefix: str
    text: str


def max_text_width(columns: int) -> int:
    """Half the screen, so the other side's messages keep their room."""
    return max(1, columns // 2)


def wrap(text: str, max_width: int, side: Side = Side.LEFT, indicator: str = '') -> List[Row]:
    """Chunk ``text`` into rows of ``max_width`` characters; only the first row gets ``indicator``.

    ``side`` does not change the split, it is accepted so callers can pass one layout
    description around. Empty text still produces a single empty row.
    """
    if max_width < 1:
        raise ValueError(f"max_width must be at least 1, got {max_width}")
    chunks = [text[i:i + max_width] for i in range(0, len(text), max_width)] or ['']
    return [Row(indicator if i == 0 else '', chunk) for i, chunk in enumerate(chunks)]


def line_offset(rows: List[Row]) -> int:
    """Width of the widest row, indicator included."""
    return max(len(row.prefix) + len(row.text) for row in rows)


def row_column(rows: List[Row], columns: int, side: Side) -> int:
    """Column the cursor goes to before each row is written.

    Right-side rows share one column, set by the widest row. For a wrapped message that
    is the indicator plus a full chunk, so the first row ends on the last column.
    """
    if side is Side.LEFT:
        return 0
    return max(0, columns - line_offset(rows))
