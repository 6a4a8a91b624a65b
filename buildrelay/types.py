"""Shared type definitions for buildrelay.

This module contains enums and dataclasses shared across subpackages to
avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum


class LineKind(str, Enum):
    """Classification of one line of build tool output."""

    PROGRESS = "progress"
    DURABLE = "durable"


class RenderState(str, Enum):
    """State of the interactive terminal's current line."""

    BLANK = "blank"
    TRANSIENT_HELD = "transient_held"


@dataclass
class LineCounts:
    """Number of relayed lines per kind."""

    progress: int = 0
    durable: int = 0

    @property
    def total(self) -> int:
        return self.progress + self.durable


@dataclass
class MakeVar:
    """A build variable exported from the registry."""

    name: str
    value: str
    strict: bool = False
    paths: list[str] = field(default_factory=list)


__all__ = [
    "LineCounts",
    "LineKind",
    "MakeVar",
    "RenderState",
]
