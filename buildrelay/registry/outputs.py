"""Output registry for artifacts contributed by concurrent rule emitters.

This module handles:
- Thread-safe appends from arbitrarily many rule-emission call sites
- Lazy, single creation of the registry per build invocation
- Deterministic (sorted) drains for build-variable export

The registry belongs to an InvocationConfig; there is no module-level
instance. Appends from one caller keep their relative order, but nothing is
promised across callers, which is why drain() sorts.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buildrelay.invocation import InvocationConfig

logger = logging.getLogger(__name__)


class OutputRegistry:
    """Named, append-only lists of artifact paths for one invocation."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, list[str]] = {}

    def append(self, export_name: str, artifact_path: str) -> None:
        """Append one artifact path to an export list.

        Args:
            export_name: Build variable the list is exported as.
            artifact_path: Path of the artifact; must not contain spaces.
        """
        path = str(artifact_path)
        with self._lock:
            self._entries.setdefault(export_name, []).append(path)

    def append_many(self, items: Mapping[str, str]) -> None:
        """Append several (export name, path) pairs in one critical section.

        Args:
            items: Mapping of export name to artifact path.
        """
        with self._lock:
            for export_name, artifact_path in items.items():
                self._entries.setdefault(export_name, []).append(str(artifact_path))

    def drain(self, export_name: str) -> list[str]:
        """Return a sorted snapshot of an export list.

        Args:
            export_name: Build variable name.

        Returns:
            Lexicographically sorted copy; empty if nothing was appended.
        """
        with self._lock:
            snapshot = list(self._entries.get(export_name, ()))
        snapshot.sort()
        return snapshot

    def export_names(self) -> list[str]:
        """Return the sorted names that have at least one entry."""
        with self._lock:
            return sorted(name for name, paths in self._entries.items() if paths)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(paths) for paths in self._entries.values())


def get_outputs(invocation: InvocationConfig) -> OutputRegistry:
    """Return the invocation's registry, creating it on first access."""
    return invocation.outputs


def append(invocation: InvocationConfig, export_name: str, artifact_path: str) -> None:
    """Append an artifact path to the invocation's registry.

    Args:
        invocation: Build invocation that owns the registry.
        export_name: Build variable the list is exported as.
        artifact_path: Path of the artifact.
    """
    get_outputs(invocation).append(export_name, artifact_path)


def drain(invocation: InvocationConfig, export_name: str) -> list[str]:
    """Return the sorted artifact paths for an export name.

    Args:
        invocation: Build invocation that owns the registry.
        export_name: Build variable name.

    Returns:
        Sorted list of paths; empty if none were appended.
    """
    paths = get_outputs(invocation).drain(export_name)
    logger.debug("Drained %d path(s) for %s", len(paths), export_name)
    return paths


__all__ = ["OutputRegistry", "append", "drain", "get_outputs"]
