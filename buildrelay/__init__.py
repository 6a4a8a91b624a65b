"""buildrelay - build orchestration core for wrapping a parallel build tool.

This package provides a per-invocation output registry that many concurrent
rule-emission call sites append to, and a process output streamer that runs
the external build tool while redrawing its progress lines on a terminal.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
