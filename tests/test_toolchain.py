"""
Toolchain and CLI tests for the NEXS Boot-Sector Compiler.

NASM / QEMU calls are replaced with fakes; the real NASM round trip is
skipped when nasm is not installed.
"""
import sys
import os
import shutil
import subprocess
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import nexscc
from nexs_compiler import compile_source, toolchain
from nexs_compiler.toolchain import (BootImageError, ToolchainError, assemble_image,
                                     check_boot_image, describe_image, find_tool, run_image)

GOOD_IMAGE = bytes(510) + b"\x55\xAA"

HELLO = 'colour_bg 1\ncolour_fg 14\nPRINT "Hi\\nThere"\nSTOP\n'


@pytest.fixture
def fake_tools(monkeypatch):
    """Pretend every tool is on PATH and record subprocess calls."""
    calls = []
    monkeypatch.setattr(toolchain.shutil, "which", lambda name: f"/usr/bin/{name}")

    def install(image=GOOD_IMAGE, returncode=0, stderr=""):
        def fake_run(cmd, **kwargs):
            calls.append(cmd)
            if "-o" in cmd and returncode == 0:
                with open(cmd[cmd.index("-o") + 1], "wb") as f:
                    f.write(image)
            return subprocess.CompletedProcess(cmd, returncode, "", stderr)
        monkeypatch.setattr(toolchain.subprocess, "run", fake_run)
        return calls

    return install


class TestBootImageCheck:
    def test_valid_image(self):
        check_boot_image(GOOD_IMAGE)

    def test_wrong_size(self):
        with pytest.raises(BootImageError, match="511 bytes"):
            check_boot_image(GOOD_IMAGE[1:])

    def test_wrong_signature(self):
        with pytest.raises(BootImageError, match="signature"):
            check_boot_image(bytes(512))


class TestAssemble:
    def test_missing_tool(self, monkeypatch):
        monkeypatch.setattr(toolchain.shutil, "which", lambda name: None)
        with pytest.raises(ToolchainError, match="not found"):
            find_tool("nasm")

    def test_assemble_invokes_nasm_flat_binary(self, fake_tools, tmp_path):
        calls = fake_tools()
        out = tmp_path / "boot.nex"
        data = assemble_image(compile_source(HELLO), out)
        assert data == GOOD_IMAGE
        assert out.read_bytes() == GOOD_IMAGE
        cmd = calls[0]
        assert cmd[0] == "/usr/bin/nasm"
        assert cmd[1:3] == ["-f", "bin"]

    def test_assembler_failure(self, fake_tools):
        fake_tools(returncode=1, stderr="boot.asm:12: error: label or instruction expected")
        with pytest.raises(ToolchainError) as exc:
            assemble_image("garbage")
        assert "label or instruction expected" in str(exc.value)

    def test_oversized_program_rejected(self, fake_tools):
        fake_tools(image=bytes(600))
        with pytest.raises(BootImageError):
            assemble_image("bits 16")

    def test_binary_output_from_compile_source(self, fake_tools):
        fake_tools()
        assert compile_source(HELLO, output="binary") == GOOD_IMAGE


class TestRun:
    def test_run_image_command(self, fake_tools):
        calls = fake_tools()
        run_image("boot.nex")
        assert calls[0] == ["/usr/bin/qemu-system-x86_64", "-drive", "file=boot.nex,format=raw"]

    def test_run_image_failure(self, fake_tools):
        fake_tools(returncode=1)
        with pytest.raises(ToolchainError, match="status 1"):
            run_image("boot.nex", emulator="qemu-system-i386")

    def test_describe_image(self, tmp_path):
        p = tmp_path / "boot.nex"
        p.write_bytes(GOOD_IMAGE)
        assert describe_image(p) == {"name": str(p), "size": 512}


@pytest.mark.skipif(shutil.which("nasm") is None, reason="nasm not installed")
class TestRealNasm:
    def test_hello_is_one_boot_sector(self):
        image = compile_source(HELLO, output="binary")
        assert len(image) == 512
        assert image[510:] == b"\x55\xAA"

    def test_three_chained_prints_fit(self):
        src = 'PRINT "one"\nPRINT "two\\nlines"\nPRINT "three"\nSTOP_LOOP\n'
        image = compile_source(src, output="binary")
        assert len(image) == 512
        assert b"two\nlines\x00" in image


class TestCli:
    def _write(self, tmp_path, text=HELLO):
        src = tmp_path / "hello.nexs"
        src.write_text(text, encoding="utf-8")
        return src

    def test_asm_to_stdout(self, tmp_path, capsys):
        assert nexscc.main([str(self._write(tmp_path))]) == 0
        out = capsys.readouterr().out
        assert "org 0x7C00" in out
        assert 'message_0 db "Hi",10,"There",0' in out

    def test_missing_input(self, tmp_path, capsys):
        assert nexscc.main([str(tmp_path / "nope.nexs")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_asm_only_writes_text(self, tmp_path):
        out = tmp_path / "hello.asm"
        assert nexscc.main([str(self._write(tmp_path)), "-o", str(out), "-S"]) == 0
        assert "times 510-($-$$) db 0" in out.read_text(encoding="utf-8")

    def test_build_image_prints_info(self, tmp_path, fake_tools, capsys):
        fake_tools()
        out = tmp_path / "hello.nex"
        assert nexscc.main([str(self._write(tmp_path)), "-o", str(out)]) == 0
        assert out.read_bytes() == GOOD_IMAGE
        assert "File size: 512 bytes" in capsys.readouterr().out

    def test_build_and_run(self, tmp_path, fake_tools):
        calls = fake_tools()
        out = tmp_path / "hello.nex"
        assert nexscc.main([str(self._write(tmp_path)), "-o", str(out), "-r"]) == 0
        assert calls[-1][0] == "/usr/bin/qemu-system-x86_64"

    def test_toolchain_error_exit_status(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(toolchain.shutil, "which", lambda name: None)
        out = tmp_path / "hello.nex"
        assert nexscc.main([str(self._write(tmp_path)), "-o", str(out)]) == 1
        assert "Toolchain error" in capsys.readouterr().err

    def test_run_requires_output(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            nexscc.main([str(self._write(tmp_path)), "-r"])
        assert exc.value.code == 2

    def test_colour_table(self, capsys):
        assert nexscc.main(["--colours"]) == 0
        assert "14 = Yellow" in capsys.readouterr().out
