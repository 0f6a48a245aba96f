"""Implementation of the `latextools parse` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from latextools.adapters.latex.log import LogInterpreter, Severity, sort_diagnostics

from .._options import INPUTS_PANEL, OUTPUT_PANEL, JsonOption, LogFileArgument
from ..presenter import echo_json, present_diagnostics
from ..state import emit_error, get_cli_state


def parse(
    log_file: LogFileArgument,
    root: Annotated[
        Path | None,
        typer.Option(
            "--root",
            metavar="TEX",
            help="Root document the log belongs to (defaults to the log name with .tex).",
            dir_okay=False,
            resolve_path=True,
            rich_help_panel=INPUTS_PANEL,
        ),
    ] = None,
    json_output: JsonOption = False,
    no_info: Annotated[
        bool,
        typer.Option(
            "--no-info",
            help="Hide informational diagnostics such as box warnings.",
            rich_help_panel=OUTPUT_PANEL,
        ),
    ] = False,
) -> None:
    """Interpret an existing LaTeX log and list its diagnostics."""
    state = get_cli_state()
    try:
        log_text = log_file.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        emit_error(f"Unable to read {log_file}", exception=exc)
        raise typer.Exit(code=1) from exc

    interpreter = LogInterpreter()
    diagnostics = interpreter.parse(log_text, root or log_file.with_suffix(".tex"))
    if no_info:
        diagnostics = [item for item in diagnostics if item.severity is not Severity.INFO]
    ordered = sort_diagnostics(diagnostics)

    if json_output:
        stats = interpreter.statistics()
        echo_json(
            {
                "diagnostics": [item.to_dict() for item in ordered],
                "statistics": {
                    "total": stats.total,
                    "errors": stats.errors,
                    "warnings": stats.warnings,
                    "info": stats.info,
                    "outputPath": str(stats.output_path) if stats.output_path else None,
                },
            }
        )
        return

    present_diagnostics(state, ordered, title=log_file.name)


__all__ = ["parse"]
