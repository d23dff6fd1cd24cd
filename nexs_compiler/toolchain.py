"""
External toolchain: NASM to build the flat boot image, QEMU to boot it.

Neither tool is needed to generate assembly text; this module only
wraps the subprocess calls and checks the resulting image.
"""

from __future__ import annotations
import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from .framer import BOOT_SECTOR

logger = logging.getLogger(__name__)


TOOLCHAIN_DEFAULTS = {
    "assembler": os.environ.get("NEXS_NASM", "nasm"),
    "emulator": os.environ.get("NEXS_QEMU", "qemu-system-x86_64"),
    "assemble_timeout": 30,
}


class ToolchainError(Exception):
    """Raised when an external tool is missing or fails."""
    def __init__(self, message: str, tool: str = "", stderr: str = ""):
        self.tool = tool
        self.stderr = stderr
        detail = f"\n{stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"{tool}: {message}{detail}" if tool else message)


class BootImageError(Exception):
    """Raised when a built image is not a valid 512-byte boot sector."""


def find_tool(name: str) -> str:
    """Resolve an executable on PATH (or an explicit path)."""
    path = shutil.which(name)
    if path is None:
        raise ToolchainError("executable not found on PATH", tool=name)
    return path


def check_boot_image(data: bytes):
    size = BOOT_SECTOR["sector_size"]
    signature = bytes(BOOT_SECTOR["signature"])
    if len(data) != size:
        raise BootImageError(
            f"boot image is {len(data)} bytes, expected exactly {size} "
            f"(program too large for one sector?)"
        )
    if data[-len(signature):] != signature:
        raise BootImageError(
            f"boot signature is {data[-2:].hex(' ').upper()}, "
            f"expected {signature.hex(' ').upper()}"
        )


def assemble_image(asm_text: str, output_path: Union[str, Path, None] = None, *,
                   assembler: Optional[str] = None,
                   timeout: Optional[int] = None) -> bytes:
    """Assemble NASM source into a flat binary and verify it.

    Writes the image to output_path when given. Returns the image bytes.
    """
    exe = find_tool(assembler or TOOLCHAIN_DEFAULTS["assembler"])
    timeout = timeout or TOOLCHAIN_DEFAULTS["assemble_timeout"]

    with tempfile.TemporaryDirectory(prefix="nexs_") as tmp:
        src = Path(tmp) / "boot.asm"
        binary = Path(tmp) / "boot.bin"
        src.write_text(asm_text, encoding="utf-8")

        cmd = [exe, "-f", "bin", str(src), "-o", str(binary)]
        logger.info(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired:
            raise ToolchainError(f"timed out after {timeout}s", tool=exe)

        if result.returncode != 0:
            raise ToolchainError(f"exited with status {result.returncode}",
                                 tool=exe, stderr=result.stderr)
        data = binary.read_bytes()

    check_boot_image(data)

    if output_path is not None:
        Path(output_path).write_bytes(data)
        logger.info(f"Wrote boot image: {output_path} ({len(data)} bytes)")
    return data


def run_image(image_path: Union[str, Path], *, emulator: Optional[str] = None,
              timeout: Optional[int] = None):
    """Boot a raw image in QEMU. Blocks until the emulator exits."""
    exe = find_tool(emulator or TOOLCHAIN_DEFAULTS["emulator"])
    cmd = [exe, "-drive", f"file={image_path},format=raw"]
    logger.info(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, timeout=timeout)
    except subprocess.TimeoutExpired:
        raise ToolchainError(f"timed out after {timeout}s", tool=exe)
    if result.returncode != 0:
        raise ToolchainError(f"exited with status {result.returncode}", tool=exe)


def describe_image(path: Union[str, Path]) -> Dict[str, object]:
    p = Path(path)
    return {"name": str(p), "size": p.stat().st_size}
