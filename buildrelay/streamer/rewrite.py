"""Line rewriting for translator output.

This module handles:
- Classifying each output line as transient progress or durable output
- Redrawing progress lines in place on an interactive terminal
- Stripping escape sequences when the sink is not a terminal

The renderer is a two-state machine (BLANK / TRANSIENT_HELD) over injected
sinks, so it can be driven from a recorded transcript without a real
terminal.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import TextIO

from buildrelay.streamer.terminal import TerminalProbe, strip_ansi_escapes
from buildrelay.types import LineCounts, LineKind, RenderState

logger = logging.getLogger(__name__)

# "including <file> ..." with an optional "[n/m] " counter
PROGRESS_LINE_RE = re.compile(r"^(\[\d+/\d+\] )?including [^ ]+ ...$")

CLEAR_TO_EOL = "\x1b[K"


def classify_line(line: str) -> LineKind:
    """Classify one output line.

    Args:
        line: Line without its trailing newline.

    Returns:
        LineKind.PROGRESS for include-progress lines, else LineKind.DURABLE.
    """
    if PROGRESS_LINE_RE.match(line):
        return LineKind.PROGRESS
    return LineKind.DURABLE


class LineRenderer:
    """Renders classified lines to an interactive and a secondary sink.

    Progress lines overwrite each other on the interactive sink. Before a
    durable line is written, a held progress line is committed with a
    newline so it is not lost.

    Args:
        stdout: Interactive sink, used for progress lines.
        stderr: Secondary sink, used for durable lines.
        terminal: Probe for stdout's interactivity and width.
    """

    def __init__(
        self,
        stdout: TextIO,
        stderr: TextIO,
        terminal: TerminalProbe,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.terminal = terminal
        self.interactive = terminal.is_terminal(stdout)
        self.state = RenderState.BLANK
        self.counts = LineCounts()

    def feed(self, line: str) -> None:
        """Render one line (without its trailing newline)."""
        kind = classify_line(line)
        if kind is LineKind.PROGRESS:
            self.counts.progress += 1
        else:
            self.counts.durable += 1

        if not self.interactive:
            # Log files and editors show escapes as garbage
            self._write_durable(strip_ansi_escapes(line))
            return

        if kind is LineKind.PROGRESS:
            self._write_progress(line)
            return

        self._commit()
        self._write_durable(line)

    def close(self) -> None:
        """Commit a held progress line at end of stream."""
        self._commit()
        self.stdout.flush()
        self.stderr.flush()

    def _write_progress(self, line: str) -> None:
        # Re-measured every line to follow resizes; a wrapped line could not
        # be overwritten by the next carriage return.
        width = self.terminal.width(self.stdout)
        if width is not None and len(line) > width:
            line = line[:width]
        self.stdout.write(f"\r{line}{CLEAR_TO_EOL}")
        self.stdout.flush()
        self.state = RenderState.TRANSIENT_HELD

    def _write_durable(self, line: str) -> None:
        self.stderr.write(f"{line}\n")
        self.stderr.flush()

    def _commit(self) -> None:
        if self.state is RenderState.TRANSIENT_HELD:
            self.stdout.write("\n")
            self.stdout.flush()
            self.state = RenderState.BLANK


def _chomp(raw: str) -> str:
    """Remove one trailing "\n" and then one trailing "\r"."""
    if raw.endswith("\n"):
        raw = raw[:-1]
    if raw.endswith("\r"):
        raw = raw[:-1]
    return raw


def rewrite_output(
    lines: Iterable[str],
    stdout: TextIO,
    stderr: TextIO,
    terminal: TerminalProbe,
) -> LineCounts:
    """Relay lines through a LineRenderer until the input is exhausted.

    Args:
        lines: Output lines; one trailing "\n" or "\r\n" is removed.
        stdout: Interactive sink.
        stderr: Secondary sink.
        terminal: Probe for stdout.

    Returns:
        Number of lines relayed per kind.
    """
    renderer = LineRenderer(stdout, stderr, terminal)
    try:
        for raw in lines:
            renderer.feed(_chomp(raw))
    finally:
        renderer.close()
    logger.debug(
        "Relayed %d line(s): %d progress, %d durable",
        renderer.counts.total,
        renderer.counts.progress,
        renderer.counts.durable,
    )
    return renderer.counts


__all__ = [
    "CLEAR_TO_EOL",
    "PROGRESS_LINE_RE",
    "LineRenderer",
    "classify_line",
    "rewrite_output",
]
