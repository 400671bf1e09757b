#!/usr/bin/env python3
"""
avrroundtrip: AVR disassembly round-trip verifier CLI

Usage:
    python avrroundtrip.py [options] <INFILE>

Disassembles INFILE with avr-objdump, cleans the listing with avr-postproc,
reassembles it with avra, converts the hex back with avr-objcopy and
compares SHA-1 sums with the original.

Examples:
    python avrroundtrip.py -c m88 -m avr4 firmware.bin
    python avrroundtrip.py -I ihex -c m328p -m avr5 firmware.hex
    python avrroundtrip.py -d 0x1f00-0x2000 -L labels.txt -C notes.txt -t firmware.bin
"""

import sys

from avr_roundtrip import __version__
from avr_roundtrip.errors import RoundtripError
from avr_roundtrip.logsetup import setup_logging, verbosity_to_level
from avr_roundtrip.options import RunConfig, build_parser, parse_args, validate_config
from avr_roundtrip.pipeline import Pipeline
from avr_roundtrip.toolchain import Toolchain, prepend_cwd_to_path


def main(argv=None) -> int:
    prepend_cwd_to_path()
    toolchain = Toolchain()
    verbose = 0

    try:
        toolchain.preflight()

        args = parse_args(argv, build_parser())
        verbose = args.verbose
        log = setup_logging(verbosity_to_level(args.verbose), args.log_file)
        log.info("avrroundtrip %s", __version__)

        cfg = validate_config(RunConfig.from_args(args))
        log.debug("Config: %s", cfg)

        Pipeline(cfg, toolchain).run()

    except RoundtripError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        if verbose > 1:
            import traceback
            traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
