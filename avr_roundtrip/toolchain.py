"""
External toolchain access.

All real work (disassembly, assembly, format conversion, hashing) is done
by programs found on PATH. This module knows how to find them, how to run
one with its exit status checked, and how to read a ``sha1sum`` line.
"""

from __future__ import annotations
import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from . import config
from .config import ToolSpec
from .errors import ChecksumError, StageError, ToolNotFoundError

log = logging.getLogger(__name__)

__all__ = ['Checksum', 'Toolchain', 'prepend_cwd_to_path']


@dataclass(frozen=True)
class Checksum:
    path: Path
    digest: str

    def __str__(self) -> str:
        return f"{self.path}: {self.digest}"


def prepend_cwd_to_path(environ=None) -> str:
    """Put the current directory first on PATH so a local avr-postproc wins."""
    if environ is None:
        environ = os.environ
    old = environ.get("PATH", "")
    environ["PATH"] = os.getcwd() + (os.pathsep + old if old else "")
    return environ["PATH"]


class Toolchain:
    """Locates and runs the external programs the pipeline depends on."""

    def __init__(self, tools: Iterable[ToolSpec] = config.REQUIRED_TOOLS):
        self.tools: Dict[str, ToolSpec] = {t.role: t for t in tools}
        self.resolved: Dict[str, str] = {}

    def __getitem__(self, role: str) -> ToolSpec:
        return self.tools[role]

    # ── Preflight ────────────────────────────────────────────────────────
    def locate(self, spec: ToolSpec) -> str:
        path = shutil.which(spec.program)
        if path is None:
            raise ToolNotFoundError(spec.program, spec.hint)
        return path

    def preflight(self) -> Dict[str, str]:
        """Resolve every tool on PATH. Raises on the first one missing."""
        resolved = {}
        for role, spec in self.tools.items():
            resolved[role] = self.locate(spec)
            log.debug("Found %s: %s", spec.program, resolved[role])
        self.resolved = resolved
        return dict(resolved)

    # ── Invocation ───────────────────────────────────────────────────────
    def run(self, stage: str, role: str, args: Sequence[Union[str, Path]],
            stdout: Optional[Path] = None, quiet: bool = False) -> None:
        """
        Run one tool and wait for it.

        ``stdout`` redirects the tool's standard output into that file;
        ``quiet`` discards it. Any start failure or non-zero exit raises
        StageError naming the stage.
        """
        spec = self.tools[role]
        cmd: List[str] = [spec.program] + [str(a) for a in args]
        log.debug("[%s] %s%s", stage, shlex.join(cmd),
                  f" > {stdout}" if stdout is not None else "")
        try:
            if stdout is not None:
                with open(stdout, "wb") as out:
                    result = subprocess.run(cmd, stdout=out)
            else:
                result = subprocess.run(
                    cmd, stdout=subprocess.DEVNULL if quiet else None)
        except OSError as e:
            raise StageError(stage, f"{stage}: could not run {spec.program}: {e}",
                             command=cmd) from e
        if result.returncode != 0:
            raise StageError(
                stage,
                f"{stage} failed: {spec.program} exited with status {result.returncode}",
                command=cmd, returncode=result.returncode)

    def sha1(self, path: Path) -> Checksum:
        """SHA-1 of ``path`` as reported by the checksum tool."""
        spec = self.tools["checksum"]
        cmd = [spec.program, str(path)]
        log.debug("[verify] %s", shlex.join(cmd))
        try:
            result = subprocess.run(cmd, stdout=subprocess.PIPE,
                                    stderr=subprocess.PIPE, text=True)
        except OSError as e:
            raise ChecksumError(f"Failed to compute checksum of '{path}': {e}") from e
        if result.returncode != 0:
            detail = result.stderr.strip()
            raise ChecksumError(f"Failed to compute checksum of '{path}'"
                                + (f": {detail}" if detail else ""))
        fields = result.stdout.split()
        # sha1sum escapes odd file names and marks the line with a backslash
        digest = fields[0].lstrip("\\").lower() if fields else ""
        if len(digest) != 40 or any(c not in "0123456789abcdef" for c in digest):
            raise ChecksumError(f"Unexpected {spec.program} output for '{path}': "
                                f"{result.stdout.strip()!r}")
        return Checksum(Path(path), digest)
