"""Build-variable export of drained registry lists.

This module handles:
- Serializing a drained list into a single space-joined value
- Collecting exported variables for an invocation
- Writing them as a make-vars file consumed by downstream build steps
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from buildrelay.registry.outputs import drain
from buildrelay.types import MakeVar

if TYPE_CHECKING:
    from buildrelay.invocation import InvocationConfig

logger = logging.getLogger(__name__)

MAKEVARS_HEADER = "# Generated by buildrelay; do not edit.\n"


def join_paths(paths: list[str]) -> str:
    """Join paths into a build-variable value.

    Args:
        paths: Paths, already in the desired order.

    Returns:
        Space-joined string.
    """
    return " ".join(paths)


class MakeVarsExporter:
    """Collects build variables exported from an invocation's registry."""

    def __init__(self, invocation: InvocationConfig) -> None:
        self.invocation = invocation
        self._vars: dict[str, MakeVar] = {}

    def export(self, name: str, strict: bool = False) -> MakeVar:
        """Drain an export name and record it as a build variable.

        Args:
            name: Export name, also used as the variable name.
            strict: Whether consumers must verify the value is unchanged.

        Returns:
            The recorded MakeVar.
        """
        paths = drain(self.invocation, name)
        var = MakeVar(name=name, value=join_paths(paths), strict=strict, paths=paths)
        self._vars[name] = var
        return var

    def strict(self, name: str) -> MakeVar:
        """Export a strict variable."""
        return self.export(name, strict=True)

    @property
    def variables(self) -> list[MakeVar]:
        """Exported variables sorted by name."""
        return [self._vars[name] for name in sorted(self._vars)]

    def render(self) -> str:
        """Render exported variables as make assignments.

        Strict variable names are also listed in STRICT_VARS.

        Returns:
            File content with one `NAME := value` line per variable.
        """
        lines = [MAKEVARS_HEADER]
        for var in self.variables:
            lines.append(f"{var.name} := {var.value}\n")
        strict_names = [v.name for v in self.variables if v.strict]
        if strict_names:
            lines.append("\n")
            lines.append(f"STRICT_VARS := {join_paths(strict_names)}\n")
        return "".join(lines)

    def write(self, path: Path) -> bool:
        """Write the rendered variables if the content changed.

        Args:
            path: Destination make-vars file.

        Returns:
            True if the file was written, False if it was already current.
        """
        content = self.render()
        if path.exists() and path.read_text(encoding="utf-8") == content:
            logger.debug("Make vars unchanged: %s", path)
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info("Wrote %d variable(s) to %s", len(self._vars), path)
        return True


__all__ = ["MAKEVARS_HEADER", "MakeVarsExporter", "join_paths"]
