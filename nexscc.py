#!/usr/bin/env python3
"""
nexscc: NEXS Boot-Sector Compiler CLI

Usage:
    python nexscc.py <input.nexs> [-o output.nex] [-r] [-S]
                     [--nasm EXE] [--qemu EXE] [--verbose | --quiet]

Without -o the generated NASM source is printed to stdout. With -o the
source is assembled by NASM into a 512-byte boot image (-S writes the
assembly text instead).

Examples:
    python nexscc.py hello.nexs                     # asm to stdout
    python nexscc.py hello.nexs -o hello.nex        # build boot image
    python nexscc.py hello.nexs -o hello.nex -r     # build and boot in QEMU
    python nexscc.py hello.nexs -o hello.asm -S     # keep assembly text

Commands supported in .nexs files:
    STOP                 Insert 'cli; hlt' to stop execution
    STOP_LOOP            Insert 'cli; hlt; jmp $' to halt indefinitely
    GO <label>:          Jump to label (must end with colon)
    PRINT "text"         Print text to screen (use \\n for a line break)
    colour_bg <n>        Set background colour of the screen (0-15)
    colour_fg <n>        Set text (foreground) colour (0-15)
    { / }                Grouping lines, ignored
    anything else        Copied through as raw assembly
"""

import argparse
import logging
import sys
import os

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from nexs_compiler import __version__, compile_source
from nexs_compiler.attributes import colour_table
from nexs_compiler.toolchain import (TOOLCHAIN_DEFAULTS, BootImageError, ToolchainError,
                                     assemble_image, describe_image, run_image)

logger = logging.getLogger("nexscc")


def setup_logging(verbose: int, quiet: bool):
    """Route diagnostics to stderr; stdout carries assembly text."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nexscc",
        description="NEXS Boot-Sector Compiler: .nexs directives to a 512-byte boot image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Colour codes (colour_bg / colour_fg):\n" + colour_table(),
    )
    parser.add_argument("input", nargs="?", help="Input .nexs source file")
    parser.add_argument("-o", "--output",
                        help="Output boot image (default: assembly to stdout)")
    parser.add_argument("-r", "--run", action="store_true",
                        help="Boot the output image in QEMU after compiling")
    parser.add_argument("-S", "--asm-only", action="store_true",
                        help="Write assembly text to -o instead of assembling it")
    parser.add_argument("--nasm", default=TOOLCHAIN_DEFAULTS["assembler"],
                        help="NASM executable (default: %(default)s, env NEXS_NASM)")
    parser.add_argument("--qemu", default=TOOLCHAIN_DEFAULTS["emulator"],
                        help="QEMU executable (default: %(default)s, env NEXS_QEMU)")
    parser.add_argument("--colours", action="store_true",
                        help="List colour codes and exit")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Print compilation details to stderr")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only report errors")
    parser.add_argument("--version", action="version",
                        version=f"nexscc {__version__}")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.quiet)

    if args.colours:
        print(colour_table())
        return 0
    if not args.input:
        parser.error("the following arguments are required: input")
    if args.run and (not args.output or args.asm_only):
        parser.error("--run needs a boot image: give -o and drop -S")

    # Read input
    try:
        with open(args.input, "r", encoding="utf-8") as f:
            source = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    try:
        asm_text = compile_source(source)
        line_count = asm_text.count("\n")
        logger.debug(f"Generated {line_count} lines of assembly")

        if not args.output:
            sys.stdout.write(asm_text)
            return 0

        if args.asm_only:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(asm_text)
            print(f"Compiled '{args.input}' to '{args.output}'")
            return 0

        assemble_image(asm_text, args.output, assembler=args.nasm)
        info = describe_image(args.output)
        print(f"Compiled '{args.input}' to '{args.output}'")
        print("\nBootloader info:")
        print(f"  File name: {info['name']}")
        print(f"  File size: {info['size']} bytes")

        if args.run:
            run_image(args.output, emulator=args.qemu)

    except OSError as e:
        print(f"Error writing {args.output}: {e}", file=sys.stderr)
        return 1
    except ToolchainError as e:
        print(f"Toolchain error: {e}", file=sys.stderr)
        return 1
    except BootImageError as e:
        print(f"Boot image error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal compiler error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
