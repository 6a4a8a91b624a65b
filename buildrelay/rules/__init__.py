"""Rule emission helpers.

Emitters declare build actions to the external build graph and record their
outputs in the invocation's output registry.
"""

from buildrelay.rules.base import BuildParams, ModuleContext, Rule

__all__ = ["BuildParams", "ModuleContext", "Rule"]
