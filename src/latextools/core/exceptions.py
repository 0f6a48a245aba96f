"""Custom exception hierarchy for the latexmk tooling."""

from __future__ import annotations


class LatexToolsError(RuntimeError):
    """Base exception for latex-tools failures."""


class ConfigurationError(LatexToolsError):
    """Raised when the user configuration cannot be loaded or validated."""


class CleanupError(LatexToolsError):
    """Raised when auxiliary files cannot be enumerated for cleanup."""


class LatexmkrcError(LatexToolsError):
    """Raised when the global latexmkrc file cannot be created."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "CleanupError",
    "ConfigurationError",
    "LatexToolsError",
    "LatexmkrcError",
    "exception_hint",
    "exception_messages",
]
