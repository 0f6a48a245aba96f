"""Implementation of the `latextools clean` command."""

from __future__ import annotations

import typer

from latextools.adapters.latex.cleaner import clean_auxiliary_files
from latextools.core.exceptions import LatexToolsError

from .._options import ConfigOption, TexFileArgument
from ..presenter import present_clean_result
from ..state import emit_error, emit_warning, get_cli_state
from ..utils import load_cli_config


def clean(tex_file: TexFileArgument, config_path: ConfigOption = None) -> None:
    """Remove auxiliary files generated next to a TeX document."""
    state = get_cli_state()
    config = load_cli_config(config_path)
    try:
        result = clean_auxiliary_files(tex_file, config.clean.aux_file_extensions)
    except LatexToolsError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    present_clean_result(state, tex_file, result)
    if result.failed:
        emit_warning(f"Failed to delete {len(result.failed)} file(s).")
        raise typer.Exit(code=1)


__all__ = ["clean"]
