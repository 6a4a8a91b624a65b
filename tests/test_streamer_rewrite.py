"""Tests for streamer/rewrite.py module.

Drives the line renderer with recorded transcripts and in-memory sinks.
"""

import io

import pytest

from buildrelay.streamer.rewrite import (
    CLEAR_TO_EOL,
    LineRenderer,
    classify_line,
    rewrite_output,
)
from buildrelay.streamer.terminal import FixedTerminal
from buildrelay.types import LineKind, RenderState

PROGRESS_1 = "[1/3] including build/make/core/main.mk ..."
PROGRESS_2 = "[2/3] including device/generic/BoardConfig.mk ..."
DURABLE = "build/core/product.mk:12: warning: something odd"


def render(lines, interactive=True, columns=None):
    """Render lines and return (stdout, stderr) text."""
    stdout = io.StringIO()
    stderr = io.StringIO()
    rewrite_output(lines, stdout, stderr, FixedTerminal(interactive, columns))
    return stdout.getvalue(), stderr.getvalue()


class TestClassifyLine:
    """Tests for classify_line function."""

    @pytest.mark.parametrize(
        "line",
        [
            "including build/core/main.mk ...",
            "[1/12] including build/core/main.mk ...",
            "[123/456] including vendor/x/y.mk ...",
        ],
    )
    def test_progress_lines(self, line):
        """Include lines, with or without counter, are progress."""
        assert classify_line(line) is LineKind.PROGRESS

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "including a file with spaces ...",
            "[1/2]including build/core/main.mk ...",
            "including build/core/main.mk",
            " including build/core/main.mk ...",
            "build/core/main.mk:1: error: oops",
            "[a/b] including x.mk ...",
        ],
    )
    def test_durable_lines(self, line):
        """Everything else is durable."""
        assert classify_line(line) is LineKind.DURABLE


class TestInteractiveRendering:
    """Rendering to an interactive terminal."""

    def test_progress_overwrites_in_place(self):
        """Progress lines use carriage return and clear-to-eol, no newline."""
        out, err = render([PROGRESS_1, PROGRESS_2])

        assert out == (
            f"\r{PROGRESS_1}{CLEAR_TO_EOL}\r{PROGRESS_2}{CLEAR_TO_EOL}\n"
        )
        assert err == ""

    def test_progress_committed_at_end(self):
        """A transcript ending in progress should end newline-terminated."""
        out, _ = render(["durable first", PROGRESS_1])

        assert out.endswith(f"{PROGRESS_1}{CLEAR_TO_EOL}\n")
        assert not out.endswith("\r")

    def test_durable_isolation(self):
        """Progress, durable, progress: one commit newline, fresh overwrite."""
        out, err = render([PROGRESS_1, DURABLE, PROGRESS_2])

        assert out == (
            f"\r{PROGRESS_1}{CLEAR_TO_EOL}\n"
            f"\r{PROGRESS_2}{CLEAR_TO_EOL}\n"
        )
        assert err == f"{DURABLE}\n"

    def test_durable_from_blank(self):
        """Durable lines with nothing held go straight to stderr."""
        out, err = render(["one", "two"])

        assert out == ""
        assert err == "one\ntwo\n"

    def test_durable_keeps_escapes(self):
        """Colors are kept on an interactive terminal."""
        line = "\x1b[31merror\x1b[0m"
        _, err = render([line])

        assert err == f"{line}\n"

    def test_truncates_to_width(self):
        """Progress lines longer than the terminal are cut to width."""
        out, _ = render([PROGRESS_1], columns=10)

        assert out == f"\r{PROGRESS_1[:10]}{CLEAR_TO_EOL}\n"

    def test_unknown_width_not_truncated(self):
        """Without a width the line is written whole."""
        out, _ = render([PROGRESS_1], columns=None)

        assert PROGRESS_1 in out

    def test_width_measured_per_line(self):
        """A resize between lines should change truncation."""
        widths = iter([30, 8])

        class ResizingTerminal(FixedTerminal):
            def width(self, sink):
                return next(widths)

        stdout = io.StringIO()
        stderr = io.StringIO()
        rewrite_output(
            [PROGRESS_1, PROGRESS_2],
            stdout,
            stderr,
            ResizingTerminal(interactive=True),
        )

        assert stdout.getvalue() == (
            f"\r{PROGRESS_1[:30]}{CLEAR_TO_EOL}\r{PROGRESS_2[:8]}{CLEAR_TO_EOL}\n"
        )

    def test_idempotent(self):
        """The same transcript renders byte-identically twice."""
        transcript = [PROGRESS_1, DURABLE, PROGRESS_2, "done", PROGRESS_1]

        assert render(transcript, columns=40) == render(transcript, columns=40)

    def test_trailing_newlines_removed(self):
        """Raw pipe lines should be rendered without their newline."""
        out, err = render([f"{PROGRESS_1}\n", "plain\r\n"])

        assert out == f"\r{PROGRESS_1}{CLEAR_TO_EOL}\n"
        assert err == "plain\n"

    def test_only_one_carriage_return_removed(self):
        """Only the CR of a CRLF ending is removed, inner CRs are kept."""
        _, err = render(["50%\r100% done\n", "a\r\r\n", "tail\r"], interactive=False)

        assert err == "50%\r100% done\na\r\ntail\n"


class TestNonInteractiveRendering:
    """Rendering when stdout is not a terminal."""

    def test_all_lines_durable(self):
        """Every line goes to stderr, newline-terminated."""
        out, err = render([PROGRESS_1, DURABLE], interactive=False)

        assert out == ""
        assert err == f"{PROGRESS_1}\n{DURABLE}\n"

    def test_strips_escapes(self):
        """Cursor and color escapes are removed, other text kept."""
        out, err = render(["abc\x1b[1Adef\x1b[0m!"], interactive=False)

        assert out == ""
        assert err == "abcdef!\n"

    def test_no_truncation(self):
        """Lines are not truncated even if a width is known."""
        _, err = render([PROGRESS_1], interactive=False, columns=5)

        assert err == f"{PROGRESS_1}\n"


class TestLineRenderer:
    """Tests for LineRenderer state transitions."""

    def test_state_transitions(self):
        """State should follow BLANK -> TRANSIENT_HELD -> BLANK."""
        renderer = LineRenderer(
            io.StringIO(), io.StringIO(), FixedTerminal(interactive=True)
        )
        assert renderer.state is RenderState.BLANK

        renderer.feed(PROGRESS_1)
        assert renderer.state is RenderState.TRANSIENT_HELD

        renderer.feed(PROGRESS_2)
        assert renderer.state is RenderState.TRANSIENT_HELD

        renderer.feed(DURABLE)
        assert renderer.state is RenderState.BLANK

        renderer.feed(PROGRESS_1)
        renderer.close()
        assert renderer.state is RenderState.BLANK

    def test_counts(self):
        """Should count lines by kind."""
        counts = rewrite_output(
            [PROGRESS_1, DURABLE, PROGRESS_2],
            io.StringIO(),
            io.StringIO(),
            FixedTerminal(interactive=False),
        )

        assert counts.progress == 2
        assert counts.durable == 1
        assert counts.total == 3

    def test_close_when_blank_writes_nothing(self):
        """Closing in BLANK should not add a newline."""
        stdout = io.StringIO()
        renderer = LineRenderer(stdout, io.StringIO(), FixedTerminal(True))
        renderer.close()

        assert stdout.getvalue() == ""
