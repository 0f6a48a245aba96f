"""Primary public API for latextools."""

from __future__ import annotations

from latextools.adapters.latex.cleaner import CleanResult, clean_auxiliary_files
from latextools.adapters.latex.latexmk import build_latexmk_command
from latextools.adapters.latex.log import (
    Diagnostic,
    FileStack,
    Location,
    LogInterpreter,
    Point,
    Severity,
    Span,
    parse_log,
    parse_log_file,
    sort_diagnostics,
)
from latextools.adapters.latex.runner import BuildOutcome, LatexmkBuilder
from latextools.adapters.linter import LinterBridge
from latextools.core.config import LatexToolsConfig, load_config
from latextools.core.diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from latextools.core.events import CompositeSubscription, EventChannel, Subscription
from latextools.core.exceptions import (
    CleanupError,
    ConfigurationError,
    LatexmkrcError,
    LatexToolsError,
)
from latextools.core.registry import BuildRegistry, BuildStatus
from latextools.version import get_version


__version__ = get_version()

__all__ = [
    "BuildOutcome",
    "BuildRegistry",
    "BuildStatus",
    "CleanResult",
    "CleanupError",
    "CompositeSubscription",
    "ConfigurationError",
    "Diagnostic",
    "DiagnosticEmitter",
    "EventChannel",
    "FileStack",
    "LatexToolsConfig",
    "LatexToolsError",
    "LatexmkBuilder",
    "LatexmkrcError",
    "LinterBridge",
    "Location",
    "LogInterpreter",
    "LoggingEmitter",
    "NullEmitter",
    "Point",
    "Severity",
    "Span",
    "Subscription",
    "__version__",
    "build_latexmk_command",
    "clean_auxiliary_files",
    "load_config",
    "parse_log",
    "parse_log_file",
    "sort_diagnostics",
]
