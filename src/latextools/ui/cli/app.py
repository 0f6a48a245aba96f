"""Typer application wiring for the latextools CLI."""

from __future__ import annotations

from typing import Annotated

import typer

from latextools.version import get_version

from ._options import DIAGNOSTICS_PANEL
from .commands import build, clean, latexmkrc, parse
from .state import (
    debug_enabled,
    emit_error,
    enable_library_logging,
    get_cli_state,
    set_cli_state,
)


app = typer.Typer(
    help="Compile LaTeX documents with latexmk and interpret their logs.",
    context_settings={"help_option_names": ["--help"]},
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(get_version())
        raise typer.Exit()


@app.callback()
def configure(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Show full tracebacks when an unexpected error occurs.",
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the installed version and exit.",
        ),
    ] = False,
) -> None:
    """Compile LaTeX documents with latexmk and interpret their logs."""
    set_cli_state(ctx=ctx, verbosity=verbose, debug=debug)
    if debug:
        enable_library_logging()


app.command()(build)
app.command()(parse)
app.command()(clean)
app.command()(latexmkrc)


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise typer.Exit(code=1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - unexpected failures
        state = get_cli_state()
        if state.show_tracebacks:
            from rich.traceback import Traceback

            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main"]
