"""Diagnostic emitters shared by the build orchestrator and the CLI."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


def _format_elapsed(value: Any) -> str:
    if isinstance(value, (int, float)):
        return f" in {value:.2f}s"
    return ""


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected build events."""
    data = dict(payload)
    file_name = data.get("file") or "<unknown>"

    if name == "build_started":
        command = data.get("command")
        suffix = f" ({' '.join(command)})" if command else ""
        return f"Compiling {file_name}{suffix}"

    if name == "build_finished":
        return f"Compiled {file_name} successfully{_format_elapsed(data.get('elapsed'))}"

    if name == "build_failed":
        error = data.get("error") or "unknown error"
        return f"Compilation of {file_name} failed ({error})"

    if name == "build_skipped":
        reason = data.get("reason") or "already building"
        return f"Skipped {file_name}: {reason}"

    if name == "build_interrupted":
        return f"Compilation of {file_name} was interrupted"

    return None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "format_event_message",
]
