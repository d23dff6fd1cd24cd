"""
Assembly text buffer shared by the framer, expander and PRINT generator.

Instructions are indented, labels sit in column 0, and raw passthrough
lines are written exactly as the user typed them.
"""

from __future__ import annotations
from typing import List


INDENT = "        "


class AsmBuffer:
    """Ordered list of NASM source lines."""

    def __init__(self):
        self.lines: List[str] = []

    # ── Output helpers ────────────────────────

    def emit(self, line: str):
        """Emit an instruction or directive."""
        self.lines.append(f"{INDENT}{line}")

    def emit_many(self, lines: List[str]):
        for line in lines:
            self.emit(line)

    def emit_label(self, label: str):
        self.lines.append(f"{label}:")

    def emit_comment(self, text: str):
        self.lines.append(f"; {text}")

    def emit_raw(self, line: str):
        """Emit a line verbatim (user assembly passthrough)."""
        self.lines.append(line)

    def emit_blank(self):
        self.lines.append("")

    # ── Format helpers ────────────────────────

    @staticmethod
    def hex8(val: int) -> str:
        return f"0x{val & 0xFF:02X}"

    @staticmethod
    def hex16(val: int) -> str:
        return f"0x{val & 0xFFFF:04X}"

    def text(self) -> str:
        return "\n".join(self.lines) + "\n"
