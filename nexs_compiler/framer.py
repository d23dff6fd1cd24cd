"""
Boot-sector framing: header, screen-clear preamble and footer.

Layout of every generated file:

    bits 16 / org 0x7C00         header
    clear 80x25 text screen      preamble (uses the final colour state)
    ...expanded directives...
    cli / hlt / jmp $            terminal halt
    times 510-($-$$) db 0        pad to 510 bytes
    db 0x55 / db 0xAA            boot signature

Once assembled the image is exactly 512 bytes, which is what BIOS
requires to treat the sector as bootable.
"""

from __future__ import annotations

from .attributes import TEXT_COLUMNS, TEXT_ROWS, cursor_offset
from .emitter import AsmBuffer


# ──────────────────────────────────────────────
# Boot-sector profile (fixed, not configurable)
# ──────────────────────────────────────────────

BOOT_SECTOR = {
    "bits": 16,
    "org": 0x7C00,
    "sector_size": 512,
    "signature": (0x55, 0xAA),
    "video_segment": 0xB800,
    "cells": TEXT_COLUMNS * TEXT_ROWS,
    "description": "x86 real-mode BIOS boot sector",
}

# Bytes available before the signature
PAYLOAD_SIZE = BOOT_SECTOR["sector_size"] - len(BOOT_SECTOR["signature"])


def emit_header(out: AsmBuffer):
    out.emit_comment("════════════════════════════════════════════")
    out.emit_comment("NEXS Boot-Sector Compiler Output")
    out.emit_comment(f"Target: {BOOT_SECTOR['description']}")
    out.emit_comment("════════════════════════════════════════════")
    out.emit_blank()
    out.emit(f"bits {BOOT_SECTOR['bits']}")
    out.emit(f"org {out.hex16(BOOT_SECTOR['org'])}")
    out.emit_blank()


def emit_screen_clear(out: AsmBuffer, attribute: int):
    """Fill every text cell with a space in `attribute`, park DI bottom-right."""
    out.emit_comment("── Clear screen ──")
    out.emit_many([
        "cli",
        f"mov ax, {out.hex16(BOOT_SECTOR['video_segment'])}",
        "mov es, ax",
        "xor di, di",
        f"mov cx, {BOOT_SECTOR['cells']}",
        "mov al, ' '",
        f"mov ah, {out.hex8(attribute)}",
    ])
    out.emit_label("clear_loop")
    out.emit_many([
        "mov [es:di], al",
        "inc di",
        "mov [es:di], ah",
        "inc di",
        "loop clear_loop",
    ])
    out.emit_blank()
    out.emit(f"mov di, {cursor_offset()}")
    out.emit_blank()
    out.emit_comment("── Program ──")


def emit_footer(out: AsmBuffer):
    out.emit_blank()
    out.emit_comment("── End ──")
    out.emit_many([
        "cli",
        "hlt",
        "jmp $",
        f"times {PAYLOAD_SIZE}-($-$$) db 0",
    ])
    for byte in BOOT_SECTOR["signature"]:
        out.emit(f"db {out.hex8(byte)}")
