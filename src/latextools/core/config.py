"""Configuration models for latexmk builds, cleanup, and linter output.

BuildConfig

`engine` (`str | None`)
: TeX engine used when the document carries no `% !TEX program` magic comment.
  One of `pdflatex`, `xelatex` or `lualatex`; defaults to `pdflatex`.

`enable_synctex` (`bool`)
: Pass `-synctex=1` so PDF viewers can map between source and output.

`shell_escape` (`bool`)
: Pass `-shell-escape`, required by packages such as `minted`.

`clean_aux_files` (`bool`)
: Append `-c` so latexmk removes regeneratable files after the build.

`bibtex` (`bool`)
: Let latexmk run BibTeX/Biber when the document needs it.

CleanConfig

`aux_file_extensions` (`list[str]`)
: Extensions (`aux`, resolved as `<basename>.aux`) or wildcard patterns
  (`{basename}-*.tmp`, `*.bak`) removed by `latextools clean`.

LinterConfig

`suppress_errors`, `suppress_warnings`, `suppress_infos` (`bool`)
: Drop diagnostics of the given severity before they reach the linter.

`include_log_range` (`bool`)
: Attach the originating log span to every linter message.

LatexToolsConfig

`debug` (`bool`)
: Enable verbose logging of registry transitions and parser decisions.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from .exceptions import ConfigurationError


CONFIG_ENV_VAR = "LATEXTOOLS_CONFIG"
SUPPORTED_ENGINES = ("pdflatex", "xelatex", "lualatex")

DEFAULT_AUX_EXTENSIONS = [
    "aux",
    "bbl",
    "bcf",
    "blg",
    "fdb_latexmk",
    "fls",
    "lof",
    "log",
    "lot",
    "nav",
    "out",
    "run.xml",
    "snm",
    "synctex.gz",
    "toc",
    "{basename}-blx.bib",
]


class BuildConfig(BaseModel):
    """Options forwarded to latexmk."""

    model_config = ConfigDict(extra="forbid")

    engine: str | None = None
    enable_synctex: bool = True
    shell_escape: bool = False
    clean_aux_files: bool = False
    bibtex: bool = True

    @field_validator("engine")
    @classmethod
    def check_engine(cls, value: str | None) -> str | None:
        if value is None:
            return None
        candidate = value.strip().lower()
        if not candidate:
            return None
        if candidate not in SUPPORTED_ENGINES:
            raise ValueError(f"unsupported engine '{value}' (expected one of {SUPPORTED_ENGINES})")
        return candidate


class CleanConfig(BaseModel):
    """Auxiliary file patterns removed by the clean command."""

    model_config = ConfigDict(extra="forbid")

    aux_file_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_AUX_EXTENSIONS))


class LinterConfig(BaseModel):
    """Filtering applied before diagnostics reach a linter."""

    model_config = ConfigDict(extra="forbid")

    suppress_errors: bool = False
    suppress_warnings: bool = False
    suppress_infos: bool = False
    include_log_range: bool = False


class LatexToolsConfig(BaseModel):
    """Top-level configuration, usually read from ``config.yml``."""

    model_config = ConfigDict(extra="forbid")

    debug: bool = False
    build: BuildConfig = Field(default_factory=BuildConfig)
    clean: CleanConfig = Field(default_factory=CleanConfig)
    linter: LinterConfig = Field(default_factory=LinterConfig)


def default_config_path() -> Path:
    """Return the per-user configuration file location."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config).expanduser() if xdg_config else Path.home() / ".config"
    return base / "latextools" / "config.yml"


def _candidate_path(path: Path | str | None) -> tuple[Path | None, bool]:
    if path is not None:
        return Path(path).expanduser(), True
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser(), True
    default = default_config_path()
    return (default, False) if default.exists() else (None, False)


def load_config(path: Path | str | None = None) -> LatexToolsConfig:
    """Load configuration from ``path``, ``$LATEXTOOLS_CONFIG`` or the user file.

    Missing implicit files yield the defaults; a missing explicit file is an error.
    """
    candidate, explicit = _candidate_path(path)
    if candidate is None:
        return LatexToolsConfig()
    if not candidate.exists():
        if explicit:
            raise ConfigurationError(f"Configuration file not found: {candidate}")
        return LatexToolsConfig()

    try:
        raw: Any = yaml.safe_load(candidate.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read configuration file {candidate}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {candidate} must contain a mapping")

    try:
        return LatexToolsConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {candidate}: {exc}") from exc


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_AUX_EXTENSIONS",
    "SUPPORTED_ENGINES",
    "BuildConfig",
    "CleanConfig",
    "LatexToolsConfig",
    "LinterConfig",
    "default_config_path",
    "load_config",
]
