"""Auxiliary helpers used by CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer

from latextools.core.config import LatexToolsConfig, load_config
from latextools.core.exceptions import ConfigurationError, exception_hint

from .state import emit_error


def load_cli_config(path: Path | None) -> LatexToolsConfig:
    """Load the configuration, turning failures into a clean CLI exit."""
    try:
        return load_config(path)
    except ConfigurationError as exc:
        hint = exception_hint(exc)
        message = str(exc)
        if hint and hint not in message:
            message = f"{message} ({hint})"
        emit_error(message, exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["load_cli_config"]
