"""CLI command implementations exposed via `latextools.ui.cli`."""

from __future__ import annotations

from .build import build
from .clean import clean
from .latexmkrc import latexmkrc
from .parse import parse


__all__ = ["build", "clean", "latexmkrc", "parse"]
