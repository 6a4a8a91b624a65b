"""Output registry module.

This module handles:
- Accumulating artifact paths from concurrent rule emitters
- Deterministic drains and build-variable export
"""

from buildrelay.registry.exports import MakeVarsExporter
from buildrelay.registry.outputs import OutputRegistry, append, drain

__all__ = ["MakeVarsExporter", "OutputRegistry", "append", "drain"]
