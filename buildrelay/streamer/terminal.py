"""Terminal capability probing and ANSI escape stripping."""

from __future__ import annotations

import os
import re
from typing import Protocol, TextIO

# CSI sequences (colors, cursor movement, erase) and two-byte escapes
ANSI_ESCAPE_RE = re.compile(r"\x1b(?:\[[0-?]*[ -/]*[@-~]|[@-Z\\-_])")


def strip_ansi_escapes(line: str) -> str:
    """Remove terminal escape sequences, keeping every other character."""
    return ANSI_ESCAPE_RE.sub("", line)


class TerminalProbe(Protocol):
    """Reports terminal capabilities of an output sink."""

    def is_terminal(self, sink: TextIO) -> bool: ...

    def width(self, sink: TextIO) -> int | None: ...


class StreamTerminal:
    """Probe backed by the sink's file descriptor.

    Width is read from the OS on every call so resizes during a run are
    picked up.

    Args:
        force_terminal: If not None, overrides isatty() detection.
    """

    def __init__(self, force_terminal: bool | None = None) -> None:
        self.force_terminal = force_terminal

    def is_terminal(self, sink: TextIO) -> bool:
        if self.force_terminal is not None:
            return self.force_terminal
        try:
            return sink.isatty()
        except (AttributeError, ValueError):
            return False

    def width(self, sink: TextIO) -> int | None:
        try:
            columns = os.get_terminal_size(sink.fileno()).columns
        except (AttributeError, OSError, ValueError):
            return None
        return columns if columns > 0 else None


class FixedTerminal:
    """Probe with fixed answers, for captured sinks and replays."""

    def __init__(self, interactive: bool, columns: int | None = None) -> None:
        self.interactive = interactive
        self.columns = columns

    def is_terminal(self, sink: TextIO) -> bool:
        return self.interactive

    def width(self, sink: TextIO) -> int | None:
        return self.columns


__all__ = [
    "ANSI_ESCAPE_RE",
    "FixedTerminal",
    "StreamTerminal",
    "TerminalProbe",
    "strip_ansi_escapes",
]
