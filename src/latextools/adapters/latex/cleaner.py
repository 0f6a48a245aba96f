"""Removal of auxiliary files produced next to a TeX document."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
from pathlib import Path
import re

from latextools.core.exceptions import CleanupError, ConfigurationError


logger = logging.getLogger(__name__)

_PROTECTED_SUFFIXES = (".tex", ".pdf")


@dataclass(slots=True)
class CleanResult:
    """Files removed (or not) by :func:`clean_auxiliary_files`."""

    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def wildcard_to_regex(pattern: str, base_name: str) -> re.Pattern[str]:
    """Compile a ``*``/``?`` wildcard pattern with a ``{basename}`` placeholder."""
    expanded = pattern.replace("{basename}", base_name)
    escaped = re.escape(expanded).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}$")


def matches_pattern(filename: str, pattern: str, base_name: str) -> bool:
    return bool(wildcard_to_regex(pattern, base_name).match(filename))


def _is_name_pattern(pattern: str) -> bool:
    return "*" in pattern or "?" in pattern or "{basename}" in pattern


def _unlink(path: Path, result: CleanResult) -> None:
    try:
        path.unlink()
    except OSError as exc:
        logger.error("Failed to delete %s: %s", path, exc)
        result.failed.append(path.name)
        return
    logger.debug("Deleted %s", path)
    result.deleted.append(path.name)


def clean_auxiliary_files(tex_path: Path, patterns: Sequence[str]) -> CleanResult:
    """Delete auxiliary files of ``tex_path`` matching ``patterns``.

    Plain entries are extensions (``aux`` removes ``<basename>.aux``); entries
    with wildcards or a ``{basename}`` placeholder are matched against every
    file of the document directory and never remove ``.tex`` or ``.pdf`` files.
    """
    if not patterns:
        raise ConfigurationError("No auxiliary file extensions configured.")

    directory = tex_path.parent
    base_name = tex_path.stem
    try:
        entries = sorted(entry.name for entry in directory.iterdir() if entry.is_file())
    except OSError as exc:
        raise CleanupError(f"Failed to read directory {directory}") from exc

    result = CleanResult()
    for pattern in patterns:
        if _is_name_pattern(pattern):
            regex = wildcard_to_regex(pattern, base_name)
            for name in entries:
                if name in result.deleted or name.endswith(_PROTECTED_SUFFIXES):
                    continue
                if regex.match(name):
                    _unlink(directory / name, result)
            continue

        candidate = directory / f"{base_name}.{pattern}"
        if candidate.name not in result.deleted and candidate.exists():
            _unlink(candidate, result)
    return result


__all__ = ["CleanResult", "clean_auxiliary_files", "matches_pattern", "wildcard_to_regex"]
