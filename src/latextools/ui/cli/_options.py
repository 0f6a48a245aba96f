"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
BUILD_PANEL = "Build"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

TexFilesArgument = Annotated[
    list[Path],
    typer.Argument(
        metavar="FILE...",
        help="Root TeX documents to compile.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

TexFileArgument = Annotated[
    Path,
    typer.Argument(
        metavar="TEX",
        help="Root TeX document.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

LogFileArgument = Annotated[
    Path,
    typer.Argument(
        metavar="LOG",
        help="LaTeX log file to interpret.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        metavar="PATH",
        help="Configuration file (defaults to $LATEXTOOLS_CONFIG or ~/.config/latextools/config.yml).",
        dir_okay=False,
        rich_help_panel=INPUTS_PANEL,
    ),
]

EngineOption = Annotated[
    str | None,
    typer.Option(
        "-e",
        "--engine",
        help="TeX engine used when the document has no magic comment (pdflatex, xelatex, lualatex).",
        rich_help_panel=BUILD_PANEL,
    ),
]

SynctexOption = Annotated[
    bool | None,
    typer.Option(
        "--synctex/--no-synctex",
        help="Generate SyncTeX data (inherits from the configuration when omitted).",
        show_default=False,
        rich_help_panel=BUILD_PANEL,
    ),
]

ShellEscapeOption = Annotated[
    bool,
    typer.Option(
        "--shell-escape",
        help="Allow the engine to run external commands.",
        rich_help_panel=BUILD_PANEL,
    ),
]

CleanAuxOption = Annotated[
    bool,
    typer.Option(
        "--clean-aux",
        help="Ask latexmk to remove regeneratable files after the build.",
        rich_help_panel=BUILD_PANEL,
    ),
]

JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Print diagnostics as JSON instead of a table.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

__all__ = [
    "CleanAuxOption",
    "ConfigOption",
    "EngineOption",
    "JsonOption",
    "LogFileArgument",
    "ShellEscapeOption",
    "SynctexOption",
    "TexFileArgument",
    "TexFilesArgument",
]
