"""
Shared fixtures: a fake AVR toolchain on PATH and a small firmware tree.

The fake tools are one Python script installed under the five program
names. Each invocation appends ``{"tool": ..., "argv": [...]}`` to the JSON
lines file named by FAKE_TOOL_LOG, so tests can see exactly what ran.

Behaviour switches (environment):
    FAKE_FAIL=<tool>   that tool exits 1 without writing anything
    FAKE_CORRUPT=1     avr-postproc appends a byte, so the round trip differs
    FAKE_NO_COF=1      avra does not write the .cof byproduct
"""
import json
import os
import stat
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from avr_roundtrip.options import RunConfig


FAKE_TOOL_SOURCE = r'''
import hashlib
import json
import os
import sys

tool = os.path.basename(sys.argv[0])
argv = sys.argv[1:]

log_path = os.environ.get("FAKE_TOOL_LOG")
if log_path:
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(json.dumps({"tool": tool, "argv": argv}) + "\n")

if os.environ.get("FAKE_FAIL") == tool:
    sys.stderr.write(tool + ": simulated failure\n")
    sys.exit(1)


def last_line(path):
    with open(path, encoding="ascii") as f:
        lines = [l.strip() for l in f if l.strip()]
    return lines[-1] if lines else ""


if tool == "avr-objdump":
    with open(argv[-1], "rb") as f:
        data = f.read()
    sys.stdout.write("fake disassembly of %s\n%s\n" % (argv[-1], data.hex()))

elif tool == "avr-postproc":
    payload = last_line(argv[-1])
    if os.environ.get("FAKE_CORRUPT"):
        payload += "ff"
    sys.stdout.write("; cleaned\n%s\n" % payload)

elif tool == "avra":
    src = argv[-1]
    base = src[:-len(".asm")] if src.endswith(".asm") else src
    payload = last_line(src)
    with open(base + ".hex", "w", encoding="ascii") as f:
        f.write(payload + "\n")
    with open(base + ".eep.hex", "w", encoding="ascii") as f:
        f.write(":00000001FF\n")
    with open(base + ".obj", "wb") as f:
        f.write(b"obj")
    if not os.environ.get("FAKE_NO_COF"):
        with open(base + ".cof", "wb") as f:
            f.write(b"cof")
    sys.stdout.write("AVRA: advanced AVR macro assembler\n")

elif tool == "avr-objcopy":
    src, dst = argv[-2], argv[-1]
    with open(dst, "wb") as f:
        f.write(bytes.fromhex(last_line(src)))

elif tool == "sha1sum":
    try:
        with open(argv[-1], "rb") as f:
            digest = hashlib.sha1(f.read()).hexdigest()
    except OSError as e:
        sys.stderr.write("sha1sum: %s\n" % e)
        sys.exit(1)
    sys.stdout.write("%s  %s\n" % (digest, argv[-1]))
'''

FAKE_TOOLS = ("sha1sum", "avr-objdump", "avr-objcopy", "avra", "avr-postproc")

FIRMWARE = bytes(range(256)) * 4


class FakeToolchain:
    def __init__(self, bindir, log_path):
        self.bindir = bindir
        self.log_path = log_path

    def calls(self, tool=None):
        if not self.log_path.exists():
            return []
        entries = [json.loads(line) for line in
                   self.log_path.read_text(encoding="utf-8").splitlines() if line]
        if tool is not None:
            entries = [e for e in entries if e["tool"] == tool]
        return entries

    def tools_run(self):
        return [e["tool"] for e in self.calls()]

    def remove(self, tool):
        (self.bindir / tool).unlink()


@pytest.fixture
def fake_toolchain(tmp_path, monkeypatch):
    """Install the fake tools first on PATH and run from an empty work dir."""
    bindir = tmp_path / "bin"
    bindir.mkdir()
    script = f"#!{sys.executable}\n" + FAKE_TOOL_SOURCE
    for name in FAKE_TOOLS:
        exe = bindir / name
        exe.write_text(script, encoding="utf-8")
        exe.chmod(exe.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    log_path = tmp_path / "tool_calls.jsonl"
    monkeypatch.setenv("PATH", str(bindir) + os.pathsep + os.environ.get("PATH", ""))
    monkeypatch.setenv("FAKE_TOOL_LOG", str(log_path))
    for var in ("FAKE_FAIL", "FAKE_CORRUPT", "FAKE_NO_COF"):
        monkeypatch.delenv(var, raising=False)

    workdir = tmp_path / "work"
    workdir.mkdir(exist_ok=True)
    monkeypatch.chdir(workdir)
    return FakeToolchain(bindir, log_path)


@pytest.fixture
def incdir(tmp_path):
    d = tmp_path / "avra"
    d.mkdir()
    (d / "m88def.inc").write_text(".equ SREG = 0x3f\n", encoding="ascii")
    return d


@pytest.fixture
def firmware(tmp_path):
    path = tmp_path / "work" / "firmware.bin"
    path.parent.mkdir(exist_ok=True)
    path.write_bytes(FIRMWARE)
    return path


@pytest.fixture
def make_config(firmware, incdir):
    def _make(**overrides):
        fields = dict(infile=firmware, incdir=incdir)
        fields.update(overrides)
        return RunConfig(**fields)
    return _make
