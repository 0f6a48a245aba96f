"""Helpers to assemble latexmk invocations for a TeX document."""

from __future__ import annotations

import logging
from pathlib import Path
import re
import sys

from latextools.core.config import SUPPORTED_ENGINES, BuildConfig
from latextools.core.exceptions import LatexmkrcError


logger = logging.getLogger(__name__)

_MAGIC_COMMENT_PATTERN = re.compile(r"^%\s*!TEX\s+(?:TS-)?program\s*=\s*(\w+)", re.IGNORECASE)

_ENGINE_FLAGS = {
    "pdflatex": "-pdf",
    "xelatex": "-xelatex",
    "lualatex": "-lualatex",
}


def detect_engine_from_magic_comment(tex_path: Path) -> str | None:
    """Return the engine requested by a ``% !TEX program = ...`` header comment.

    Only the leading run of comment and blank lines is inspected.
    """
    try:
        content = tex_path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None

    for line in content.splitlines():
        trimmed = line.strip()
        if trimmed and not trimmed.startswith("%"):
            break
        match = _MAGIC_COMMENT_PATTERN.match(trimmed)
        if match:
            engine = match.group(1).lower()
            if engine in SUPPORTED_ENGINES:
                return engine
    return None


def resolve_engine(tex_path: Path, config: BuildConfig) -> str:
    """Pick the engine: magic comment first, then configuration, then pdflatex."""
    return detect_engine_from_magic_comment(tex_path) or config.engine or "pdflatex"


def latexmk_engine_flag(engine: str) -> str:
    return _ENGINE_FLAGS.get(engine, "-pdf")


def build_latexmk_command(tex_path: Path, config: BuildConfig | None = None) -> list[str]:
    """Construct the latexmk argv used to compile ``tex_path`` from its directory."""
    config = config or BuildConfig()
    engine = resolve_engine(tex_path, config)
    command = [
        "latexmk",
        latexmk_engine_flag(engine),
        "-interaction=nonstopmode",
        "-file-line-error",
    ]
    if config.bibtex:
        command.insert(2, "-bibtex")
    if config.enable_synctex:
        command.append("-synctex=1")
    if config.shell_escape:
        command.append("-shell-escape")
    if config.clean_aux_files:
        command.append("-c")
    command.append(tex_path.name)
    return command


def log_path_for(tex_path: Path) -> Path:
    return tex_path.with_suffix(".log")


def pdf_path_for(tex_path: Path) -> Path:
    return tex_path.with_suffix(".pdf")


def latexmkrc_path(home: Path | None = None, *, platform: str | None = None) -> Path:
    """Return the global latexmkrc location (it may not exist yet).

    Windows installations also accept ``latexmkrc`` without the leading dot.
    """
    home_dir = home or Path.home()
    platform = platform or sys.platform
    candidates = [home_dir / ".latexmkrc"]
    if platform == "win32":
        candidates.append(home_dir / "latexmkrc")
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def create_latexmkrc(path: Path) -> bool:
    """Create an empty latexmkrc at ``path``; return ``False`` if it already existed."""
    if path.exists():
        return False
    try:
        path.write_text("", encoding="utf-8")
    except OSError as exc:
        raise LatexmkrcError(f"Unable to create {path}: {exc.strerror or exc}") from exc
    logger.info("Created %s", path)
    return True


__all__ = [
    "build_latexmk_command",
    "create_latexmkrc",
    "detect_engine_from_magic_comment",
    "latexmk_engine_flag",
    "latexmkrc_path",
    "log_path_for",
    "pdf_path_for",
    "resolve_engine",
]
