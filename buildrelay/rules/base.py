"""Build action declarations shared by rule emitters.

The build graph that schedules and runs these actions is external; emitters
only see it through the ModuleContext protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from buildrelay.invocation import InvocationConfig


@dataclass(frozen=True)
class Rule:
    """A parameterized command template.

    Attributes:
        name: Rule name, unique within the build graph.
        command: Command template with $in, $out and $arg references.
        command_deps: Tools the command depends on.
        arg_names: Names of per-action arguments.
    """

    name: str
    command: str
    command_deps: tuple[str, ...] = ()
    arg_names: tuple[str, ...] = ()


@dataclass
class BuildParams:
    """One build action to declare to the build graph."""

    rule: Rule
    description: str
    output: str
    input: str | None = None
    implicit: list[str] = field(default_factory=list)
    args: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        missing = set(self.rule.arg_names) - set(self.args)
        if missing:
            raise ValueError(
                f"Rule {self.rule.name} missing args: {', '.join(sorted(missing))}"
            )


class ModuleContext(Protocol):
    """Per-module view of the build graph used by rule emitters."""

    invocation: InvocationConfig
    hiddenapi_public_list: str
    hiddenapi_flags: str

    def build(self, params: BuildParams) -> None: ...

    def path_for_module_out(self, *parts: str) -> str: ...


__all__ = ["BuildParams", "ModuleContext", "Rule"]
