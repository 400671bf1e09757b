"""
AVR Round-Trip Disassembly Verifier
===================================
Checks that a disassembled AVR firmware image reassembles to exactly the
same bytes, so the postprocessed listing can be trusted as source.

Pipeline (each step is an external program found on PATH):
    avr-objdump  → raw listing (.raw.asm)
    avr-postproc → labelled, reassemblable source (.asm)
    avra         → Intel hex (.hex)
    avr-objcopy  → image in the input's format (.reassembled)
    sha1sum      → compare with the original

Modules:
    - config.py:    defaults, tool table, intermediate file suffixes
    - options.py:   argv → frozen RunConfig
    - toolchain.py: PATH lookup, checked tool invocation, sha1sum parsing
    - pipeline.py:  the five stages and temp-file cleanup
    - logsetup.py:  rich console + optional file logging
"""

__version__ = "1.0.0"

from .errors import (RoundtripError, ToolNotFoundError, UsageError, StageError,
                     CleanupError, ChecksumError, ChecksumMismatchError)
from .options import RunConfig, build_parser, parse_args, validate_config
from .toolchain import Checksum, Toolchain, prepend_cwd_to_path
from .pipeline import Artifacts, Pipeline, RoundtripResult, run_roundtrip
