"""
NEXS Boot-Sector Compiler
=========================
Translates a tiny directive language (.nexs) into NASM source for a
512-byte x86 real-mode boot sector.

Architecture:
    ┌───────────┐    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌────────────┐
    │ .nexs src │───>│  Loader  │───>│  Framer  │───>│ Expander │───>│  Framer    │
    │  (lines)  │    │ (pass 1) │    │ header + │    │ (pass 2) │    │ footer +   │
    └───────────┘    └──────────┘    │ clear    │    │ + PRINT  │    │ signature  │
                                     └──────────┘    └──────────┘    └────────────┘

    - loader.py:     colour directives, brace lines, buffered program lines
    - attributes.py: VGA attribute byte and cursor offset
    - framer.py:     bits/org header, screen clear, pad + 0x55AA footer
    - expander.py:   STOP / STOP_LOOP / GO / passthrough dispatch
    - printgen.py:   PRINT blocks, escape conversion, chaining jumps
    - toolchain.py:  NASM / QEMU collaboration (optional)
"""

__version__ = "0.2.0"

from typing import Iterable, Optional, Union

from .attributes import attribute_byte, cursor_offset, COLOUR_NAMES
from .emitter import AsmBuffer
from .loader import ColourState, LoadedProgram, LineLoader, load_lines, trim
from .expander import DirectiveExpander, extract_go_label
from .printgen import PrintBlock, PrintGenerator, convert_escapes, split_segments
from .framer import BOOT_SECTOR, emit_header, emit_screen_clear, emit_footer
from .toolchain import (ToolchainError, BootImageError, assemble_image,
                        check_boot_image, run_image)


def compile_lines(lines: Iterable[str]) -> str:
    """Compile .nexs source lines to boot-sector assembly text."""
    # Pass 1 must finish first: the screen clear needs the final colours
    program = load_lines(lines)

    out = AsmBuffer()
    emit_header(out)
    emit_screen_clear(out, program.colours.attribute)
    DirectiveExpander(out).expand(program.lines)
    emit_footer(out)
    return out.text()


def compile_source(source: str, *, output: str = "asm",
                   assembler: Optional[str] = None) -> Union[str, bytes]:
    """Compile .nexs source text to NASM assembly or a boot image.

    Args:
        source: .nexs program text.
        output: 'asm' (default) for assembly text, or 'binary' to run the
            external assembler and return the verified 512-byte image.
        assembler: NASM executable override for 'binary' output.
    """
    # Only "\n" ends a line; "\r" is removed by the loader trim
    asm_text = compile_lines(source.split("\n"))
    if output == "binary":
        return assemble_image(asm_text, assembler=assembler)
    return asm_text
