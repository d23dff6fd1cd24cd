"""
Line loader: first pass over a .nexs source.

Walks every raw line once, in order:
  - trims surrounding whitespace
  - drops `{` / `}` grouping lines (purely visual)
  - consumes `colour_bg N` / `colour_fg N` into a running ColourState
  - buffers every other non-empty line for the expansion pass

The loader must finish before anything is emitted, because the
screen-clear preamble uses the *final* colour state even when colour
directives appear after other directives.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from .attributes import attribute_byte, is_valid_colour

logger = logging.getLogger(__name__)


# Lines are bounded: MAX_LINE includes the terminator, so the longest
# kept line is MAX_LINE - 1 characters. Longer lines are truncated.
MAX_LINE = 1024

# C-locale whitespace; str.strip() with no argument also eats unicode spaces
WHITESPACE = " \t\n\r\f\v"

DEFAULT_BACKGROUND = 0
DEFAULT_FOREGROUND = 7

_LEADING_INT_RE = re.compile(r"[ \t\n\r\f\v]*([+-]?[0-9]+)")


def trim(line: str) -> str:
    """Strip leading/trailing whitespace. Idempotent."""
    return line.strip(WHITESPACE)


def is_brace_line(line: str) -> bool:
    """True for a line that is only `{` or `}` (optionally padded)."""
    return trim(line) in ("{", "}")


def parse_leading_int(text: str) -> int:
    """Lenient integer parse: leading digits only, anything else is 0."""
    m = _LEADING_INT_RE.match(text)
    return int(m.group(1)) if m else 0


@dataclass
class ColourState:
    background: int = DEFAULT_BACKGROUND
    foreground: int = DEFAULT_FOREGROUND

    @property
    def attribute(self) -> int:
        return attribute_byte(self.background, self.foreground)


@dataclass
class LoadedProgram:
    """Result of the first pass, handed whole to the expander."""
    colours: ColourState = field(default_factory=ColourState)
    lines: List[str] = field(default_factory=list)


# keyword -> ColourState field
COLOUR_DIRECTIVES: Tuple[Tuple[str, str], ...] = (
    ("colour_bg", "background"),
    ("colour_fg", "foreground"),
)


class LineLoader:
    """Single forward pass producing a LoadedProgram."""

    def __init__(self, max_line: int = MAX_LINE):
        self.max_line = max_line
        self.program = LoadedProgram()

    def _bound(self, raw: str, line_no: int) -> str:
        limit = self.max_line - 1
        text = raw.rstrip("\r\n")
        if len(text) > limit:
            logger.warning(f"Line {line_no}: longer than {limit} characters, truncated")
            text = text[:limit]
        return text

    def _apply_colour(self, line: str, line_no: int) -> bool:
        """Handle a colour directive. Returns True if the line was consumed."""
        for keyword, attr in COLOUR_DIRECTIVES:
            if not line.startswith(keyword):
                continue
            value = parse_leading_int(line[len(keyword):])
            if is_valid_colour(value):
                setattr(self.program.colours, attr, value)
                logger.debug(f"Line {line_no}: {attr} colour = {value}")
            else:
                logger.warning(
                    f"Invalid {attr} colour code {value}, "
                    f"keeping {getattr(self.program.colours, attr)}"
                )
            return True
        return False

    def feed(self, raw: str, line_no: int = 0):
        line = trim(self._bound(raw, line_no))
        if not line or is_brace_line(line):
            return
        if self._apply_colour(line, line_no):
            return
        self.program.lines.append(line)

    def load(self, raw_lines: Iterable[str]) -> LoadedProgram:
        for line_no, raw in enumerate(raw_lines, start=1):
            self.feed(raw, line_no)
        logger.debug(
            f"Loaded {len(self.program.lines)} program lines, "
            f"bg={self.program.colours.background} fg={self.program.colours.foreground}"
        )
        return self.program


def load_lines(raw_lines: Iterable[str], max_line: int = MAX_LINE) -> LoadedProgram:
    """Run the first pass over raw source lines."""
    return LineLoader(max_line=max_line).load(raw_lines)
