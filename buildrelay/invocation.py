"""Per-invocation configuration and one-time initialization.

An InvocationConfig identifies one run of the build orchestrator. State that
must exist exactly once per run (such as the output registry) hangs off the
config through once(), so its lifetime is the invocation's lifetime rather
than the process's.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from buildrelay.config import Settings
    from buildrelay.registry.outputs import OutputRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Environment values treated as an explicit "off"
FALSE_VALUES = frozenset({"0", "n", "no", "off", "false"})

OUTPUT_REGISTRY_KEY = "buildrelay.outputRegistry"


@dataclass(eq=False)
class InvocationConfig:
    """Configuration for one build invocation.

    Equality and hashing are by identity: two configs with the same field
    values are still two distinct invocations.

    Attributes:
        out_dir: Root directory for generated build files.
        target_product: Product being built.
        host_prebuilt_tag: Host tag used to locate prebuilt tools.
        kati_args: Extra arguments forwarded to the translator.
        environment: Environment snapshot passed to subprocesses.
        parallel: Translator parallelism when goma is used.
        use_goma: Whether a distributed compiler cache is in use.
        kati_suffix: Cache-key suffix, set by gen_kati_suffix().
    """

    out_dir: Path = field(default_factory=lambda: Path("out"))
    target_product: str = "generic"
    host_prebuilt_tag: str = "linux-x86"
    kati_args: list[str] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)
    parallel: int = 1
    use_goma: bool = False
    kati_suffix: str = ""

    _once_values: dict[str, Any] = field(
        default_factory=dict, init=False, repr=False
    )
    # Reentrant so a factory may itself call once()
    _once_lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False
    )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        kati_args: list[str] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> InvocationConfig:
        """Create an invocation config from application settings.

        Args:
            settings: Application settings.
            kati_args: Extra translator arguments.
            environ: Environment snapshot (defaults to os.environ).

        Returns:
            New InvocationConfig.
        """
        return cls(
            out_dir=settings.out_dir,
            target_product=settings.target_product,
            host_prebuilt_tag=settings.host_prebuilt_tag,
            kati_args=list(kati_args or []),
            environment=dict(os.environ if environ is None else environ),
            parallel=settings.parallel,
            use_goma=settings.use_goma,
        )

    def once(self, key: str, factory: Callable[[], T]) -> T:
        """Return the value stored under key, creating it on first use.

        Concurrent first callers race on a single lock; the first one runs
        the factory and every caller observes the same value.

        Args:
            key: Name of the once-value.
            factory: Called at most once to create the value.

        Returns:
            The value for key.
        """
        with self._once_lock:
            try:
                return self._once_values[key]
            except KeyError:
                value = factory()
                self._once_values[key] = value
                logger.debug("Initialized once-value %s", key)
                return value

    @property
    def outputs(self) -> OutputRegistry:
        """The output registry owned by this invocation."""
        from buildrelay.registry.outputs import OutputRegistry

        return self.once(OUTPUT_REGISTRY_KEY, OutputRegistry)

    def env_is_false(self, name: str) -> bool:
        """Return True if an environment variable is explicitly false."""
        value = self.environment.get(name)
        return value is not None and value.lower() in FALSE_VALUES

    @property
    def soong_out_dir(self) -> Path:
        return self.out_dir / "soong"

    @property
    def kati_ninja_file(self) -> Path:
        """Ninja file generated by the translator for this suffix."""
        return self.out_dir / f"build{self.kati_suffix}.ninja"

    @property
    def soong_android_mk(self) -> Path:
        return self.soong_out_dir / f"Android-{self.target_product}.mk"

    @property
    def soong_make_vars_mk(self) -> Path:
        return self.soong_out_dir / f"make_vars-{self.target_product}.mk"


__all__ = ["FALSE_VALUES", "OUTPUT_REGISTRY_KEY", "InvocationConfig"]
