"""
AVR Round-Trip: Defaults and Toolchain Configuration
=====================================================

Everything the pipeline needs to know about its surroundings lives here:
default option values, the external programs it drives, and the suffixes
used to name intermediate files next to the input image.

The tools are looked up on PATH at run time. Nothing here is read from a
config file; change the constants or pass flags on the command line.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple


# =============================================================================
#  OPTION DEFAULTS
# =============================================================================
DEFAULT_INTYPE = "binary"           # objcopy BFD name: binary, ihex, ...
DEFAULT_MACHINE = "avr4"            # objdump -m architecture (ATmega8/48/88)
DEFAULT_CHIP = "m88"                # selects <incdir>/m88def.inc
DEFAULT_INCDIR = "/usr/share/avra"  # where avra installs the *def.inc files

CHIP_DEF_PATTERN = "{chip}def.inc"


# =============================================================================
#  INTERMEDIATE FILE SUFFIXES (appended to the input path, in pipeline order)
# =============================================================================
SUFFIX_RAW_ASM = ".raw.asm"         # objdump output
SUFFIX_ASM = ".asm"                 # postprocessed, fed to avra
SUFFIX_HEX = ".hex"                 # avra flash image (Intel hex)
SUFFIX_EEP_HEX = ".eep.hex"         # avra EEPROM image
SUFFIX_OBJ = ".obj"                 # avra object file
SUFFIX_COF = ".cof"                 # avra COFF debug file
SUFFIX_REASSEMBLED = ".reassembled"  # objcopy output, compared to input

ARTIFACT_SUFFIXES: Tuple[str, ...] = (
    SUFFIX_RAW_ASM,
    SUFFIX_ASM,
    SUFFIX_HEX,
    SUFFIX_EEP_HEX,
    SUFFIX_OBJ,
    SUFFIX_COF,
    SUFFIX_REASSEMBLED,
)


# =============================================================================
#  EXTERNAL TOOLS
# =============================================================================
@dataclass(frozen=True)
class ToolSpec:
    """One external program the pipeline depends on."""
    role: str
    program: str
    hint: str = ""


CHECKSUM = ToolSpec("checksum", "sha1sum", "coreutils")
DISASSEMBLER = ToolSpec("disassembler", "avr-objdump", "binutils-avr")
OBJCOPY = ToolSpec("objcopy", "avr-objcopy", "binutils-avr")
ASSEMBLER = ToolSpec("assembler", "avra", "avra")
POSTPROC = ToolSpec("postproc", "avr-postproc",
                    "avr-postproc (place it in the current directory or on PATH)")

# Preflight order
REQUIRED_TOOLS: Tuple[ToolSpec, ...] = (CHECKSUM, DISASSEMBLER, OBJCOPY,
                                        ASSEMBLER, POSTPROC)

# Flags the postprocessor takes once per collected value
POSTPROC_DEF_FLAG = "-i"
POSTPROC_DATA_RANGE_FLAG = "-d"
POSTPROC_LABEL_FLAG = "-L"
POSTPROC_COMMENT_FLAG = "-C"
