"""Process runner that relays a build tool's output live.

This module handles:
- Launching the tool with stderr merged into its stdout pipe
- Relaying every output line through the LineRenderer
- Waiting for exit only after the pipe is drained
- Reporting launch failures and abnormal exits as fatal errors

There is no timeout or retry: the tool runs to completion or the calling
step aborts.
"""

from __future__ import annotations

import io
import logging
import shlex
import signal
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, TextIO, cast

from buildrelay.streamer.rewrite import rewrite_output
from buildrelay.streamer.terminal import StreamTerminal, TerminalProbe
from buildrelay.types import LineCounts

logger = logging.getLogger(__name__)


class StreamerError(Exception):
    """Raised when running a build tool fails."""

    def __init__(
        self,
        message: str,
        command: Sequence[str] | None = None,
        code: str = "streamer_error",
    ) -> None:
        super().__init__(message)
        self.command = list(command or [])
        self.code = code


class LaunchFailure(StreamerError):
    """Raised when the build tool cannot be started."""

    def __init__(self, message: str, command: Sequence[str] | None = None) -> None:
        super().__init__(message, command=command, code="launch_failure")


class AbnormalExit(StreamerError):
    """Raised when the build tool exits non-zero or is killed by a signal."""

    def __init__(
        self,
        message: str,
        command: Sequence[str] | None = None,
        exit_code: int | None = None,
        status: str = "",
    ) -> None:
        super().__init__(message, command=command, code="abnormal_exit")
        self.exit_code = exit_code
        self.status = status


@dataclass
class RunResult:
    """Result of a completed build tool run.

    Attributes:
        command: The command that was executed.
        exit_code: Process exit code (always 0 for a returned result).
        started_at: Start time.
        finished_at: Finish time.
        lines: Relayed line counts by kind.
    """

    command: list[str]
    exit_code: int
    started_at: datetime
    finished_at: datetime
    lines: LineCounts = field(default_factory=LineCounts)

    @property
    def duration(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


def describe_exit_status(returncode: int) -> str:
    """Describe a process exit status.

    Args:
        returncode: Popen.returncode; negative values are signal numbers.

    Returns:
        "exit status N" or "signal: <name>".
    """
    if returncode >= 0:
        return f"exit status {returncode}"
    signum = -returncode
    try:
        name = signal.strsignal(signum) or signal.Signals(signum).name
    except ValueError:
        name = f"signal {signum}"
    return f"signal: {name.lower()}"


def run_tool(
    executable: str | Path,
    args: Sequence[str],
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    terminal: TerminalProbe | None = None,
) -> RunResult:
    """Run a build tool to completion, relaying its output.

    Args:
        executable: Path of the tool.
        args: Arguments, not including the executable.
        env: Environment for the process (None = inherit).
        cwd: Working directory (None = current).
        stdout: Interactive sink (defaults to sys.stdout).
        stderr: Secondary sink (defaults to sys.stderr).
        terminal: Terminal probe (defaults to StreamTerminal()).

    Returns:
        RunResult for a successful run.

    Raises:
        LaunchFailure: If the process cannot be started.
        AbnormalExit: If the process exits non-zero or is killed.
        StreamerError: If waiting for the process fails otherwise.
    """
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr
    terminal = terminal if terminal is not None else StreamTerminal()

    cmd = [str(executable), *args]
    cmd_str = shlex.join(cmd)
    logger.debug("Executing: %s", cmd_str)

    started_at = datetime.now(timezone.utc)

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as e:
        logger.error("Failed to run %s: %s", cmd[0], e)
        raise LaunchFailure(f"Failed to run {cmd_str}: {e}", command=cmd) from e

    with proc:
        try:
            # Drain the pipe completely before waiting, or a full pipe
            # buffer would block the child forever. Lines end at "\n" only,
            # so a bare "\r" stays inside its line.
            lines = io.TextIOWrapper(
                cast(IO[bytes], proc.stdout),
                encoding="utf-8",
                errors="replace",
                newline="\n",
            )
            counts = rewrite_output(lines, stdout, stderr, terminal)
        except BaseException:
            proc.kill()
            proc.wait()
            raise

        try:
            returncode = proc.wait()
        except OSError as e:
            raise StreamerError(f"Failed to run {cmd_str}: {e}", command=cmd) from e

    finished_at = datetime.now(timezone.utc)

    if returncode != 0:
        status = describe_exit_status(returncode)
        logger.error("%s failed with: %s", cmd[0], status)
        raise AbnormalExit(
            f"{cmd_str} failed with: {status}",
            command=cmd,
            exit_code=returncode,
            status=status,
        )

    logger.debug(
        "%s finished in %.1fs", cmd[0], (finished_at - started_at).total_seconds()
    )
    return RunResult(
        command=cmd,
        exit_code=returncode,
        started_at=started_at,
        finished_at=finished_at,
        lines=counts,
    )


__all__ = [
    "AbnormalExit",
    "LaunchFailure",
    "RunResult",
    "StreamerError",
    "describe_exit_status",
    "run_tool",
]
