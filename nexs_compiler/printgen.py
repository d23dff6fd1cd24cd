"""
PRINT macro generator.

Each `PRINT "text"` directive becomes one self-contained print block:

    jmp print_<id>              ; only when a previous block exists
    print_<id>:
            <BIOS teletype loop over message_<id>>
    print_done_<id>:
            sti
    message_<id> db "seg0",10,"seg1",...,0

Blocks are numbered from 0 in the order the expander meets them. Every
block after the first is preceded by `jmp print_<id>`, emitted after the
previous block's `message_<id-1> db` line and any lines in between.
The message table sits inline after `sti`, so control leaving a block
runs into its table bytes before reaching that jump. The last block has
no outward jump and falls through to whatever follows.

Known limitations, kept on purpose:
  - `\\n` is the only escape. An embedded `"` in the text is not escaped
    and produces a broken string literal for the assembler to reject.
  - Escape conversion stops at MAX_MESSAGE - 1 characters; the rest of
    the text is dropped.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .emitter import AsmBuffer

logger = logging.getLogger(__name__)


# Newline byte spliced between segments, and the BIOS teletype service
NEWLINE = 10
CARRIAGE_RETURN = 13
TELETYPE_FUNC = 0x0E
VIDEO_INT = 0x10

# Escape-conversion buffer, terminator included
MAX_MESSAGE = 2048


def convert_escapes(text: str, max_len: int = MAX_MESSAGE) -> str:
    """Turn each two-character `\\n` into a real newline.

    Output is capped at max_len - 1 characters; input past the cap is
    silently dropped.
    """
    out: List[str] = []
    i = 0
    while i < len(text) and len(out) + 1 < max_len:
        if text[i] == "\\" and text[i + 1:i + 2] == "n":
            out.append("\n")
            i += 2
        else:
            out.append(text[i])
            i += 1
    return "".join(out)


def split_segments(text: str) -> List[str]:
    """Split escape-converted text at each newline. Always >= 1 segment."""
    return text.split("\n")


def extract_message(line: str) -> Optional[str]:
    """Text strictly between the first and last `"` of a PRINT line."""
    start = line.find('"')
    end = line.rfind('"')
    if start < 0 or end <= start:
        return None
    return line[start + 1:end]


@dataclass
class PrintBlock:
    id: int
    segments: List[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"print_{self.id}"

    @property
    def message_label(self) -> str:
        return f"message_{self.id}"

    def data_operands(self) -> str:
        """`"Hi",10,"There",0` for segments ["Hi", "There"].

        Empty segments contribute no string literal, only the spliced
        newline bytes around them.
        """
        parts: List[str] = []
        for i, seg in enumerate(self.segments):
            if i:
                parts.append(str(NEWLINE))
            if seg:
                parts.append(f'"{seg}"')
        parts.append("0")
        return ",".join(parts)


class PrintGenerator:
    """Allocates print-block ids and emits chained print routines."""

    def __init__(self, out: AsmBuffer):
        self.out = out
        self.count = 0
        self.prev_id: Optional[int] = None
        self.blocks: List[PrintBlock] = []

    def generate(self, message: str) -> PrintBlock:
        """Emit one print block for the raw text between the quotes."""
        block = PrintBlock(self.count, split_segments(convert_escapes(message)))

        if self.prev_id is not None:
            self.out.emit(f"jmp {block.label}")
            self.out.emit_blank()

        self._emit_routine(block)
        self._emit_data(block)

        logger.debug(f"{block.label}: {len(block.segments)} segment(s)")
        self.count += 1
        self.prev_id = block.id
        self.blocks.append(block)
        return block

    def _emit_routine(self, block: PrintBlock):
        n = block.id
        out = self.out
        out.emit_label(block.label)
        out.emit_many([
            "cli",
            "xor ax, ax",
            "mov ds, ax",
            f"mov si, {block.message_label}",
        ])
        out.emit_label(f"print_loop_{n}")
        out.emit_many([
            "lodsb",
            "or al, al",
            f"jz print_done_{n}",
            f"cmp al, {NEWLINE}",
            f"jne print_char_{n}",
            # newline -> CR + LF
            f"mov al, {CARRIAGE_RETURN}",
            f"mov ah, {out.hex8(TELETYPE_FUNC)}",
            f"int {out.hex8(VIDEO_INT)}",
            f"mov al, {NEWLINE}",
            f"mov ah, {out.hex8(TELETYPE_FUNC)}",
            f"int {out.hex8(VIDEO_INT)}",
            f"jmp print_loop_{n}",
        ])
        out.emit_label(f"print_char_{n}")
        out.emit_many([
            f"mov ah, {out.hex8(TELETYPE_FUNC)}",
            f"int {out.hex8(VIDEO_INT)}",
            f"jmp print_loop_{n}",
        ])
        out.emit_label(f"print_done_{n}")
        out.emit("sti")

    def _emit_data(self, block: PrintBlock):
        self.out.emit_raw(f"{block.message_label} db {block.data_operands()}")
        self.out.emit_blank()
