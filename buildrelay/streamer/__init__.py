"""Process output streamer module.

This module handles:
- Running the external build tool with a merged output pipe
- Redrawing progress lines in place on interactive terminals
- Stripping escape sequences for non-interactive sinks
"""

from buildrelay.streamer.runner import (
    AbnormalExit,
    LaunchFailure,
    RunResult,
    StreamerError,
    run_tool,
)

__all__ = ["AbnormalExit", "LaunchFailure", "RunResult", "StreamerError", "run_tool"]
