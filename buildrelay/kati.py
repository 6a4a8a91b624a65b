"""Translator (ckati) command composition and execution.

This module handles:
- Cache-key suffix generation for translator-generated ninja files
- Collapsing overlong suffixes to a hash, with the full suffix in a side file
- Composing the translator command line from an invocation config
- Running the translator through the output streamer
"""

from __future__ import annotations

import hashlib
import logging
import shlex
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from buildrelay.streamer.runner import RunResult, run_tool

if TYPE_CHECKING:
    from buildrelay.invocation import InvocationConfig
    from buildrelay.streamer.terminal import TerminalProbe

logger = logging.getLogger(__name__)

# Suffixes longer than this are replaced with a hash
MAX_SUFFIX_LENGTH = 64

MAIN_MAKEFILE = "build/core/main.mk"


def _sanitize(value: str) -> str:
    return value.replace("/", "_").replace(" ", "_")


def compute_kati_suffix(invocation: InvocationConfig) -> str:
    """Compute the full (uncollapsed) cache-key suffix.

    Encodes every common change to the translator's inputs: the target
    product, the translator arguments, and the ONE_SHOT_MAKEFILE directory.

    Args:
        invocation: Invocation config.

    Returns:
        Suffix string starting with '-'.
    """
    suffix = f"-{invocation.target_product}"
    if invocation.kati_args:
        suffix += "-" + _sanitize("_".join(invocation.kati_args))
    one_shot = invocation.environment.get("ONE_SHOT_MAKEFILE")
    if one_shot is not None:
        suffix += "-" + _sanitize(one_shot)
    return suffix


def collapse_suffix(suffix: str) -> str:
    """Return the short form of an overlong suffix.

    Args:
        suffix: Full suffix.

    Returns:
        '-' followed by the MD5 hex digest of the full suffix.
    """
    return "-" + hashlib.md5(suffix.encode("utf-8")).hexdigest()


def suffix_side_file(invocation: InvocationConfig) -> Path:
    """Path of the file holding the full suffix for a collapsed one."""
    ninja_file = str(invocation.kati_ninja_file)
    return Path(ninja_file.removesuffix("ninja") + "suf")


def gen_kati_suffix(invocation: InvocationConfig) -> str:
    """Generate the suffix and store it on the invocation config.

    If the suffix is too long it is replaced by a hash, and the full suffix
    is written next to the ninja file so it can be recovered. Failing to
    write that file is reported but does not stop the build.

    Args:
        invocation: Invocation config; its kati_suffix is set.

    Returns:
        The suffix now in effect.
    """
    suffix = compute_kati_suffix(invocation)
    if len(suffix) <= MAX_SUFFIX_LENGTH:
        invocation.kati_suffix = suffix
        return suffix

    short_suffix = collapse_suffix(suffix)
    invocation.kati_suffix = short_suffix
    logger.debug("Kati ninja suffix too long: %r", suffix)
    logger.debug("Replacing with: %r", short_suffix)

    side_file = suffix_side_file(invocation)
    try:
        side_file.parent.mkdir(parents=True, exist_ok=True)
        side_file.write_text(suffix, encoding="utf-8")
    except OSError as e:
        logger.error("Error writing suffix file: %s", e)
    return short_suffix


def kati_executable(invocation: InvocationConfig) -> str:
    """Return the prebuilt translator path for the host."""
    return f"prebuilts/build-tools/{invocation.host_prebuilt_tag}/bin/ckati"


def compose_kati_args(invocation: InvocationConfig) -> list[str]:
    """Compose the translator arguments.

    gen_kati_suffix() must have been called first.

    Args:
        invocation: Invocation config.

    Returns:
        Arguments, not including the executable.
    """
    out_dir = invocation.out_dir
    args = [
        "--ninja",
        f"--ninja_dir={out_dir}",
        f"--ninja_suffix={invocation.kati_suffix}",
        "--regen",
        f"--ignore_optional_include={out_dir / '%.P'}",
        "--color_warnings",
        "--gen_all_targets",
        "-f",
        MAIN_MAKEFILE,
    ]

    if not invocation.env_is_false("KATI_EMULATE_FIND"):
        args.append("--use_find_emulator")

    args.extend(invocation.kati_args)

    args.extend(
        [
            "BUILDING_WITH_NINJA=true",
            f"SOONG_ANDROID_MK={invocation.soong_android_mk}",
            f"SOONG_MAKEVARS_MK={invocation.soong_make_vars_mk}",
        ]
    )

    if invocation.use_goma:
        args.append(f"-j{invocation.parallel}")

    return args


def compose_kati_command(invocation: InvocationConfig) -> list[str]:
    """Compose the full translator command, generating the suffix."""
    gen_kati_suffix(invocation)
    return [kati_executable(invocation), *compose_kati_args(invocation)]


def run_kati(
    invocation: InvocationConfig,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    terminal: TerminalProbe | None = None,
) -> RunResult:
    """Run the translator for an invocation.

    Args:
        invocation: Invocation config.
        stdout: Interactive sink.
        stderr: Secondary sink.
        terminal: Terminal probe.

    Returns:
        RunResult of the translator run.

    Raises:
        LaunchFailure: If the translator cannot be started.
        AbnormalExit: If the translator fails.
    """
    cmd = compose_kati_command(invocation)
    logger.info("Running kati: %s", shlex.join(cmd))
    return run_tool(
        cmd[0],
        cmd[1:],
        env=invocation.environment,
        stdout=stdout,
        stderr=stderr,
        terminal=terminal,
    )


__all__ = [
    "MAX_SUFFIX_LENGTH",
    "collapse_suffix",
    "compose_kati_args",
    "compose_kati_command",
    "compute_kati_suffix",
    "gen_kati_suffix",
    "kati_executable",
    "run_kati",
    "suffix_side_file",
]
