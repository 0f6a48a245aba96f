"""Implementation of the `latextools latexmkrc` command."""

from __future__ import annotations

from typing import Annotated

import typer

from latextools.adapters.latex.latexmk import create_latexmkrc, latexmkrc_path
from latextools.core.exceptions import LatexmkrcError

from ..state import emit_error


def latexmkrc(
    create: Annotated[
        bool,
        typer.Option("--create", help="Create an empty latexmkrc when none exists."),
    ] = False,
) -> None:
    """Print the location of the global latexmkrc file."""
    path = latexmkrc_path()
    if create:
        try:
            created = create_latexmkrc(path)
        except LatexmkrcError as exc:
            emit_error(str(exc), exception=exc)
            raise typer.Exit(code=1) from exc
        if created:
            typer.echo(f"Created {path}")
            return
    typer.echo(str(path))


__all__ = ["latexmkrc"]
