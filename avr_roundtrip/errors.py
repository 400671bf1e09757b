"""
Exception hierarchy for the round-trip pipeline.

Every failure is terminal: library code raises one of these and the
command-line entry point turns it into a one-line message and exit code 1.
"""

from __future__ import annotations
from typing import Optional, Sequence

__all__ = [
    'RoundtripError', 'ToolNotFoundError', 'UsageError', 'StageError',
    'CleanupError', 'ChecksumError', 'ChecksumMismatchError',
]


class RoundtripError(Exception):
    """Base class for all pipeline failures."""
    pass


class ToolNotFoundError(RoundtripError):
    def __init__(self, program: str, hint: str = ""):
        self.program = program
        self.hint = hint
        msg = f"Required program '{program}' not found in PATH"
        if hint:
            msg += f". Please install {hint}."
        super().__init__(msg)


class UsageError(RoundtripError):
    """Bad command line or unusable input/include paths."""
    pass


class StageError(RoundtripError):
    """An external tool exited non-zero (or could not be started)."""

    def __init__(self, stage: str, message: str,
                 command: Optional[Sequence[str]] = None,
                 returncode: Optional[int] = None):
        self.stage = stage
        self.command = list(command) if command else []
        self.returncode = returncode
        super().__init__(message)


class CleanupError(RoundtripError):
    """An intermediate file could not be removed."""
    pass


class ChecksumError(RoundtripError):
    """The checksum of a file could not be computed."""
    pass


class ChecksumMismatchError(RoundtripError):
    def __init__(self, original, reassembled):
        self.original = original
        self.reassembled = reassembled
        super().__init__(
            f"Checksum mismatch: {original.path} ({original.digest}) != "
            f"{reassembled.path} ({reassembled.digest})")
