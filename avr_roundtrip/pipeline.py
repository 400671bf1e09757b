"""
Round-trip pipeline runner.

    ┌─────────┐   ┌─────────────┐   ┌──────────────┐   ┌──────┐   ┌─────────────┐   ┌─────────┐
    │ INFILE  │──>│ avr-objdump │──>│ avr-postproc │──>│ avra │──>│ avr-objcopy │──>│ sha1sum │
    │         │   │  .raw.asm   │   │    .asm      │   │ .hex │   │ .reassembled│   │ compare │
    └─────────┘   └─────────────┘   └──────────────┘   └──────┘   └─────────────┘   └─────────┘

Stages run strictly in order and each one blocks until its tool exits.
After a stage succeeds, the files it consumed are deleted (unless
``save_temps``). If a stage fails, whatever earlier stages produced is
removed as well; the files written by the failing tool itself stay on disk
for inspection.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from . import config
from .errors import ChecksumError, ChecksumMismatchError, CleanupError, StageError
from .options import RunConfig, postproc_flags
from .toolchain import Checksum, Toolchain

log = logging.getLogger(__name__)

__all__ = ['Artifacts', 'RoundtripResult', 'Pipeline', 'run_roundtrip']


@dataclass(frozen=True)
class Artifacts:
    """Intermediate file names, built by appending suffixes to the input path."""
    raw_asm: Path
    asm: Path
    hex: Path
    eep_hex: Path
    obj: Path
    cof: Path
    reassembled: Path

    @classmethod
    def for_input(cls, infile: Path) -> "Artifacts":
        base = str(infile)
        return cls(
            raw_asm=Path(base + config.SUFFIX_RAW_ASM),
            asm=Path(base + config.SUFFIX_ASM),
            hex=Path(base + config.SUFFIX_HEX),
            eep_hex=Path(base + config.SUFFIX_EEP_HEX),
            obj=Path(base + config.SUFFIX_OBJ),
            cof=Path(base + config.SUFFIX_COF),
            reassembled=Path(base + config.SUFFIX_REASSEMBLED),
        )

    def all(self) -> List[Path]:
        return [self.raw_asm, self.asm, self.hex, self.eep_hex,
                self.obj, self.cof, self.reassembled]


@dataclass
class RoundtripResult:
    original: Checksum
    reassembled: Checksum
    kept: List[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.original.digest == self.reassembled.digest


class Pipeline:
    """Runs the five stages for one ``RunConfig``."""

    def __init__(self, cfg: RunConfig, toolchain: Optional[Toolchain] = None,
                 stdout=None):
        self.cfg = cfg
        self.toolchain = toolchain or Toolchain()
        self.files = Artifacts.for_input(cfg.infile)
        self.stdout = stdout
        # outputs of completed stages still on disk
        self.pending: List[Path] = []

    # ── Housekeeping ─────────────────────────────────────────────────────
    def produced(self, *paths: Path) -> None:
        """Record the outputs of a stage that just completed."""
        self.pending.extend(p for p in paths if p not in self.pending)

    def remove_temps(self, *paths: Path) -> None:
        if self.cfg.save_temps:
            return
        for path in paths:
            log.debug("Removing %s", path)
            try:
                path.unlink()
            except OSError as e:
                raise CleanupError(f"Failed to remove temporary file '{path}': {e}") from e
            if path in self.pending:
                self.pending.remove(path)

    def discard_pending(self) -> None:
        """Best-effort removal of completed-stage outputs after an abort."""
        if self.cfg.save_temps:
            return
        for path in list(self.pending):
            log.debug("Removing %s after abort", path)
            try:
                path.unlink()
            except OSError as e:
                log.warning("Could not remove %s: %s", path, e)
            self.pending.remove(path)

    # ── Stages ───────────────────────────────────────────────────────────
    def disassemble(self) -> None:
        cfg = self.cfg
        log.info("Disassembling %s (machine %s, type %s)", cfg.infile, cfg.machine, cfg.intype)
        self.toolchain.run("disassemble", "disassembler",
                           ["-m", cfg.machine, "-b", cfg.intype, "-s", "-D", cfg.infile],
                           stdout=self.files.raw_asm)
        self.produced(self.files.raw_asm)

    def postprocess(self) -> None:
        cfg = self.cfg
        log.info("Postprocessing %s with %s", self.files.raw_asm, cfg.chip_def_file)
        args = [config.POSTPROC_DEF_FLAG, cfg.chip_def_file]
        args += postproc_flags(cfg)
        args.append(self.files.raw_asm)
        self.toolchain.run("postprocess", "postproc", args, stdout=self.files.asm)
        self.produced(self.files.asm)
        self.remove_temps(self.files.raw_asm)

    def reassemble(self) -> None:
        log.info("Reassembling %s", self.files.asm)
        self.toolchain.run("reassemble", "assembler",
                           ["-I", self.cfg.incdir, self.files.asm], quiet=True)
        self.produced(self.files.hex, self.files.eep_hex, self.files.obj, self.files.cof)
        # source and avra byproducts, not needed for the comparison
        self.remove_temps(self.files.asm, self.files.obj, self.files.cof,
                          self.files.eep_hex)

    def convert(self) -> None:
        log.info("Converting %s to %s", self.files.hex, self.cfg.intype)
        self.toolchain.run("convert", "objcopy",
                           ["-I", "ihex", "-O", self.cfg.intype,
                            self.files.hex, self.files.reassembled])
        self.produced(self.files.reassembled)
        self.remove_temps(self.files.hex)

    def verify(self) -> RoundtripResult:
        original = self.toolchain.sha1(self.cfg.infile)
        reassembled = self.toolchain.sha1(self.files.reassembled)
        print(original, file=self.stdout)
        print(reassembled, file=self.stdout)
        self.remove_temps(self.files.reassembled)

        result = RoundtripResult(original, reassembled,
                                 kept=[p for p in self.files.all() if p.exists()]
                                 if self.cfg.save_temps else [])
        if not result.ok:
            raise ChecksumMismatchError(original, reassembled)
        print("Ok", file=self.stdout)
        return result

    def run(self) -> RoundtripResult:
        try:
            self.disassemble()
            self.postprocess()
            self.reassemble()
            self.convert()
            return self.verify()
        except (StageError, ChecksumError):
            self.discard_pending()
            raise


def run_roundtrip(cfg: RunConfig, toolchain: Optional[Toolchain] = None,
                  stdout=None) -> RoundtripResult:
    """Run the whole disassemble → reassemble → compare chain for ``cfg``.

    The toolchain is preflighted first; raises a RoundtripError subclass on
    any failure.
    """
    toolchain = toolchain or Toolchain()
    if not toolchain.resolved:
        toolchain.preflight()
    return Pipeline(cfg, toolchain, stdout=stdout).run()
