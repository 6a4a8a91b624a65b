"""Hidden API rule emission helpers.

This module handles:
- Declaring the CSV generation and dex encoding actions for a module
- Recording their outputs in the invocation's output registry
- Exporting the accumulated outputs as build variables

Modules are processed concurrently by the build graph, so every helper may
be called from any worker thread.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buildrelay.rules.base import BuildParams, ModuleContext, Rule

if TYPE_CHECKING:
    from buildrelay.invocation import InvocationConfig
    from buildrelay.registry.exports import MakeVarsExporter

logger = logging.getLogger(__name__)

FLAGS_EXPORT = "SOONG_HIDDENAPI_FLAGS"
METADATA_EXPORT = "SOONG_HIDDENAPI_GREYLIST_METADATA"
DEX_INPUTS_EXPORT = "SOONG_HIDDENAPI_DEX_INPUTS"

GENERATE_CSV_RULE = Rule(
    name="hiddenAPIGenerateCSV",
    command=(
        "${config.Class2Greylist} --public-api-list ${publicAPIList} "
        "$in $outFlag $out"
    ),
    command_deps=("${config.Class2Greylist}",),
    arg_names=("outFlag", "publicAPIList"),
)

ENCODE_DEX_RULE = Rule(
    name="hiddenAPIEncodeDex",
    command=(
        "rm -rf $tmpDir && mkdir -p $tmpDir && mkdir $tmpDir/dex-input && "
        "mkdir $tmpDir/dex-output && "
        "unzip -o -q $in 'classes*.dex' -d $tmpDir/dex-input && "
        "for INPUT_DEX in $$(find $tmpDir/dex-input -maxdepth 1 "
        "-name 'classes*.dex' | sort); do "
        '  echo "--input-dex=$${INPUT_DEX}"; '
        '  echo "--output-dex=$tmpDir/dex-output/$$(basename $${INPUT_DEX})"; '
        "done | xargs ${config.HiddenAPI} encode --api-flags=$flags && "
        "${config.SoongZipCmd} -o $tmpDir/dex.jar -C $tmpDir/dex-output "
        '-f "$tmpDir/dex-output/classes*.dex" && '
        "${config.MergeZipsCmd} -D -zipToNotStrip $tmpDir/dex.jar "
        '-stripFile "classes*.dex" $out $tmpDir/dex.jar $in'
    ),
    command_deps=(
        "${config.HiddenAPI}",
        "${config.SoongZipCmd}",
        "${config.MergeZipsCmd}",
    ),
    arg_names=("flags", "tmpDir"),
)


def generate_csv(ctx: ModuleContext, classes_jar: str) -> tuple[str, str]:
    """Declare the flags and metadata CSV actions for a classes jar.

    Args:
        ctx: Module context.
        classes_jar: Input classes jar.

    Returns:
        Tuple of (flags_csv, metadata_csv) output paths.
    """
    flags_csv = ctx.path_for_module_out("hiddenapi", "flags.csv")
    metadata_csv = ctx.path_for_module_out("hiddenapi", "metadata.csv")
    public_list = ctx.hiddenapi_public_list

    for description, output, out_flag in (
        ("hiddenapi flags", flags_csv, "--write-flags-csv"),
        ("hiddenapi metadata", metadata_csv, "--write-metadata-csv"),
    ):
        ctx.build(
            BuildParams(
                rule=GENERATE_CSV_RULE,
                description=description,
                input=classes_jar,
                output=output,
                implicit=[public_list],
                args={"outFlag": out_flag, "publicAPIList": public_list},
            )
        )

    save_csv_outputs(ctx.invocation, flags_csv, metadata_csv)
    return flags_csv, metadata_csv


def encode_dex(ctx: ModuleContext, output: str, dex_input: str) -> None:
    """Declare the action encoding hidden API flags into a dex jar.

    Args:
        ctx: Module context.
        output: Encoded jar path.
        dex_input: Unencoded dex jar path.
    """
    flags = ctx.hiddenapi_flags
    ctx.build(
        BuildParams(
            rule=ENCODE_DEX_RULE,
            description="hiddenapi encode dex",
            input=dex_input,
            output=output,
            implicit=[flags],
            args={
                "flags": flags,
                "tmpDir": ctx.path_for_module_out("hiddenapi", "dex"),
            },
        )
    )

    save_dex_inputs(ctx.invocation, dex_input)


def save_csv_outputs(
    invocation: InvocationConfig, flags_csv: str, metadata_csv: str
) -> None:
    """Record a module's flags and metadata CSVs together."""
    invocation.outputs.append_many(
        {FLAGS_EXPORT: flags_csv, METADATA_EXPORT: metadata_csv}
    )


def save_dex_inputs(invocation: InvocationConfig, dex_input: str) -> None:
    """Record a module's unencoded dex jar."""
    invocation.outputs.append(DEX_INPUTS_EXPORT, dex_input)


def make_vars(exporter: MakeVarsExporter) -> None:
    """Export accumulated hidden API outputs as strict build variables."""
    for name in (FLAGS_EXPORT, METADATA_EXPORT, DEX_INPUTS_EXPORT):
        var = exporter.strict(name)
        logger.debug("Exported %s with %d path(s)", name, len(var.paths))


__all__ = [
    "DEX_INPUTS_EXPORT",
    "ENCODE_DEX_RULE",
    "FLAGS_EXPORT",
    "GENERATE_CSV_RULE",
    "METADATA_EXPORT",
    "encode_dex",
    "generate_csv",
    "make_vars",
    "save_csv_outputs",
    "save_dex_inputs",
]
