"""
Colour / attribute encoding for VGA text mode.

Each character cell of the 80x25 text framebuffer is two bytes: the
character code followed by an attribute byte whose high nibble is the
background colour and whose low nibble is the foreground colour.
"""

from __future__ import annotations
from typing import Dict


# ──────────────────────────────────────────────
# VGA text-mode geometry
# ──────────────────────────────────────────────

TEXT_COLUMNS = 80
TEXT_ROWS = 25
BYTES_PER_CELL = 2

# Cursor is parked on the bottom-right cell after the screen clear
CURSOR_ROW = 24
CURSOR_COL = 79


COLOUR_NAMES: Dict[int, str] = {
    0: "Black",
    1: "Blue",
    2: "Green",
    3: "Cyan",
    4: "Red",
    5: "Magenta",
    6: "Brown",
    7: "Light Grey",
    8: "Dark Grey",
    9: "Light Blue",
    10: "Light Green",
    11: "Light Cyan",
    12: "Light Red",
    13: "Light Magenta",
    14: "Yellow",
    15: "White",
}


def is_valid_colour(value: int) -> bool:
    return 0 <= value <= 15


def attribute_byte(background: int, foreground: int) -> int:
    """Pack background/foreground into one attribute byte ((bg << 4) | fg)."""
    return ((background << 4) | (foreground & 0x0F)) & 0xFF


def cell_offset(row: int, col: int) -> int:
    """Byte offset of a cell inside the text framebuffer."""
    return row * TEXT_COLUMNS * BYTES_PER_CELL + col * BYTES_PER_CELL


def cursor_offset() -> int:
    return cell_offset(CURSOR_ROW, CURSOR_COL)


def colour_table() -> str:
    """Human-readable list of colour codes, one per line."""
    return "\n".join(f"  {code:2d} = {name}" for code, name in COLOUR_NAMES.items())
