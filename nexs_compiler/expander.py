"""
Directive expander: second pass over the loaded program lines.

Directive vocabulary (case-sensitive, one per line):

    STOP                 cli / hlt
    STOP_LOOP            cli / hlt / jmp $
    GO <label>:          jmp <label>
    PRINT "<text>"       chained BIOS teletype print block
    anything else        copied through verbatim

A `GO` line without the trailing colon, or a `PRINT` line without a
quoted string, is not an error: it is copied through unchanged, which
is how raw assembly starting with those letters gets embedded.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional

from .emitter import AsmBuffer
from .loader import WHITESPACE, trim
from .printgen import PrintGenerator, extract_message

logger = logging.getLogger(__name__)


STOP_SEQUENCES: Dict[str, List[str]] = {
    "STOP": ["cli", "hlt"],
    "STOP_LOOP": ["cli", "hlt", "jmp $"],
}

# Longest label kept by GO; anything longer falls through verbatim
MAX_LABEL = 127


def extract_go_label(line: str, max_len: int = MAX_LABEL) -> Optional[str]:
    """Label from `GO <label>:`, or None when the label or colon is missing."""
    p = len(line) - len(line.lstrip(WHITESPACE))
    if not line.startswith("GO", p):
        return None
    p += 2
    n = len(line)
    while p < n and line[p] in WHITESPACE:
        p += 1

    start = p
    while (p < n and line[p] != ":" and line[p] not in WHITESPACE
           and p - start < max_len):
        p += 1
    label = line[start:p]

    while p < n and line[p] in WHITESPACE:
        p += 1
    if label and p < n and line[p] == ":":
        return label
    return None


class DirectiveExpander:
    """Expands program lines into an AsmBuffer, in source order."""

    def __init__(self, out: AsmBuffer):
        self.out = out
        self.printer = PrintGenerator(out)

    def _passthrough(self, line: str):
        logger.debug(f"passthrough: {line}")
        self.out.emit_raw(line)

    def _expand_go(self, line: str):
        label = extract_go_label(line)
        if label is None:
            self._passthrough(line)
        else:
            self.out.emit(f"jmp {label}")

    def _expand_print(self, line: str):
        message = extract_message(line)
        if message is None:
            self._passthrough(line)
        else:
            self.printer.generate(message)

    def expand_line(self, line: str):
        line = trim(line)
        if line in STOP_SEQUENCES:
            self.out.emit_many(STOP_SEQUENCES[line])
        elif line.startswith("GO"):
            self._expand_go(line)
        elif line.startswith("PRINT"):
            self._expand_print(line)
        else:
            self._passthrough(line)

    def expand(self, lines: Iterable[str]):
        for line in lines:
            self.expand_line(line)
        logger.debug(f"Expanded {self.printer.count} PRINT block(s)")
