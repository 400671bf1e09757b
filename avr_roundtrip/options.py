"""
Command-line model for the round-trip verifier.

The parser turns argv into a frozen ``RunConfig``. Repeatable flags
(``-d``, ``-L``, ``-C``) are collected in the order given, duplicates
included, and later handed to the postprocessor one occurrence per value.
"""

from __future__ import annotations
import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from . import __version__
from . import config
from .errors import UsageError

__all__ = ['RunConfig', 'RoundtripArgumentParser', 'build_parser',
           'parse_args', 'validate_config', 'postproc_flags']

DESCRIPTION = (
    "Disassemble an AVR firmware image, postprocess and reassemble it, "
    "and check that the result is byte-identical to the original."
)


@dataclass(frozen=True)
class RunConfig:
    """Everything one pipeline run needs. Built once, never mutated."""
    infile: Path
    intype: str = config.DEFAULT_INTYPE
    machine: str = config.DEFAULT_MACHINE
    chip: str = config.DEFAULT_CHIP
    incdir: Path = Path(config.DEFAULT_INCDIR)
    data_ranges: Tuple[str, ...] = ()
    label_files: Tuple[str, ...] = ()
    comment_files: Tuple[str, ...] = ()
    save_temps: bool = False

    @property
    def chip_def_file(self) -> Path:
        return self.incdir / config.CHIP_DEF_PATTERN.format(chip=self.chip)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "RunConfig":
        return cls(
            infile=Path(args.infile),
            intype=args.intype,
            machine=args.machine,
            chip=args.chip,
            incdir=Path(args.incdir),
            data_ranges=tuple(args.data_ranges),
            label_files=tuple(args.label_files),
            comment_files=tuple(args.comment_files),
            save_temps=args.save_temps,
        )


class RoundtripArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit code 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> RoundtripArgumentParser:
    parser = RoundtripArgumentParser(
        prog="avrroundtrip",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="example:\n  avrroundtrip -c m88 -m avr4 firmware.bin",
    )
    parser.add_argument("infile", nargs="*", metavar="INFILE",
                        help="Firmware image to analyze (exactly one)")
    parser.add_argument("-I", "--intype", default=config.DEFAULT_INTYPE,
                        metavar="TYPE",
                        help=f"Input/output file type for objcopy (default: {config.DEFAULT_INTYPE})")
    parser.add_argument("-m", "--machine", default=config.DEFAULT_MACHINE,
                        metavar="MACHINE",
                        help=f"Disassembler machine type (default: {config.DEFAULT_MACHINE})")
    parser.add_argument("-c", "--chip", default=config.DEFAULT_CHIP,
                        metavar="CHIP",
                        help=f"Chip type, selects INCDIR/CHIPdef.inc (default: {config.DEFAULT_CHIP})")
    parser.add_argument("-d", "--data-range", dest="data_ranges", action="append",
                        default=[], metavar="RANGE",
                        help="Data range START-END passed to the postprocessor (repeatable)")
    parser.add_argument("-L", "--label", dest="label_files", action="append",
                        default=[], metavar="FILE",
                        help="Label file passed to the postprocessor (repeatable)")
    parser.add_argument("-C", "--comment", dest="comment_files", action="append",
                        default=[], metavar="FILE",
                        help="Comment file passed to the postprocessor (repeatable)")
    parser.add_argument("-t", "--save-temps", action="store_true",
                        help="Keep intermediate files")
    parser.add_argument("-i", "--incdir", default=config.DEFAULT_INCDIR,
                        metavar="DIR",
                        help=f"Include directory with the *def.inc files (default: {config.DEFAULT_INCDIR})")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity (-v stages, -vv commands)")
    parser.add_argument("--log-file", default=None, metavar="FILE",
                        help="Write a DEBUG log to FILE")
    parser.add_argument("--version", action="version",
                        version=f"avrroundtrip {__version__}")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None,
               parser: Optional[argparse.ArgumentParser] = None) -> argparse.Namespace:
    """Parse argv; ``args.infile`` is the single input path as a string."""
    if parser is None:
        parser = build_parser()
    args = parser.parse_args(argv)
    if len(args.infile) != 1:
        parser.error(f"expected exactly one INFILE, got {len(args.infile)}")
    args.infile = args.infile[0]
    return args


def validate_config(cfg: RunConfig) -> RunConfig:
    """Check the paths in ``cfg`` before any tool runs."""
    infile = cfg.infile
    if not infile.is_file() or not os.access(infile, os.R_OK):
        raise UsageError(f"could not read input file '{infile}'")
    if not cfg.incdir.is_dir():
        raise UsageError(f"include directory '{cfg.incdir}' does not exist")
    return cfg


def postproc_flags(cfg: RunConfig) -> List[str]:
    """Expand the collected lists into repeated ``flag value`` pairs."""
    flags: List[str] = []
    for flag, values in ((config.POSTPROC_DATA_RANGE_FLAG, cfg.data_ranges),
                         (config.POSTPROC_LABEL_FLAG, cfg.label_files),
                         (config.POSTPROC_COMMENT_FLAG, cfg.comment_files)):
        for value in values:
            flags.extend((flag, value))
    return flags
