"""Thin CLI wrapper for buildrelay.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import logging
import shlex
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from buildrelay import __version__
from buildrelay.config import get_settings, print_settings_json
from buildrelay.invocation import InvocationConfig
from buildrelay.kati import compose_kati_command, gen_kati_suffix, run_kati
from buildrelay.streamer.runner import StreamerError, run_tool
from buildrelay.streamer.terminal import StreamTerminal

app = typer.Typer(
    name="buildrelay",
    help="buildrelay - run the build translator and relay its output",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)

# Let translator flags such as -k reach the variadic argument
PASSTHROUGH = {"ignore_unknown_options": True}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"buildrelay version {__version__}")
        raise typer.Exit()


def print_error(error: Exception) -> None:
    """Print an error in red on stderr."""
    err_console.print(
        f"[red]{escape(str(error))}[/red]", highlight=False, soft_wrap=True
    )


def setup_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """buildrelay - run the build translator and relay its output."""
    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
    else:
        if settings.force_terminal is None:
            terminal_display = "(detect)"
        else:
            terminal_display = str(settings.force_terminal)
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Paths:[/bold]")
        console.print(f"  Output directory:    {settings.out_dir}")
        console.print()
        console.print("[bold]Product:[/bold]")
        console.print(f"  Target product:      {settings.target_product}")
        console.print(f"  Host prebuilt tag:   {settings.host_prebuilt_tag}")
        console.print()
        console.print("[bold]Execution:[/bold]")
        console.print(f"  Parallel:            {settings.parallel}")
        console.print(f"  Use goma:            {settings.use_goma}")
        console.print(f"  Log level:           {settings.log_level}")
        console.print(f"  Force terminal:      {terminal_display}")


@app.command(context_settings=PASSTHROUGH)
def suffix(
    kati_args: Annotated[
        list[str] | None,
        typer.Argument(help="Translator arguments"),
    ] = None,
) -> None:
    """Print the cache-key suffix for the translator's ninja file."""
    invocation = InvocationConfig.from_settings(get_settings(), kati_args)
    console.print(
        gen_kati_suffix(invocation), markup=False, highlight=False, soft_wrap=True
    )


@app.command(context_settings=PASSTHROUGH)
def run(
    kati_args: Annotated[
        list[str] | None,
        typer.Argument(help="Translator arguments"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the command without running it"),
    ] = False,
) -> None:
    """Run the translator, relaying its output."""
    settings = get_settings()
    invocation = InvocationConfig.from_settings(settings, kati_args)

    if dry_run:
        cmd = compose_kati_command(invocation)
        console.print(shlex.join(cmd), markup=False, highlight=False, soft_wrap=True)
        return

    try:
        result = run_kati(
            invocation,
            terminal=StreamTerminal(force_terminal=settings.force_terminal),
        )
    except StreamerError as e:
        print_error(e)
        raise typer.Exit(code=1) from None

    logger.info(
        "kati finished in %.1fs (%d lines)", result.duration, result.lines.total
    )


@app.command("exec", context_settings=PASSTHROUGH)
def exec_tool(
    executable: Annotated[Path, typer.Argument(help="Tool to run")],
    args: Annotated[
        list[str] | None,
        typer.Argument(help="Tool arguments"),
    ] = None,
) -> None:
    """Run any tool, relaying its output like the translator's."""
    settings = get_settings()
    try:
        run_tool(
            executable,
            args or [],
            terminal=StreamTerminal(force_terminal=settings.force_terminal),
        )
    except StreamerError as e:
        print_error(e)
        raise typer.Exit(code=1) from None


__all__ = ["app"]


if __name__ == "__main__":
    app()
