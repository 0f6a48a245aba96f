"""Diagnostic emitter bridging the build orchestrator with CLI rendering utilities."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rich.traceback import Traceback

from latextools.core.diagnostics import DiagnosticEmitter, format_event_message

from .state import CLIState, emit_error, emit_warning, get_cli_state, render_message


class CliEmitter(DiagnosticEmitter):
    """Emit diagnostics using the rich-enabled CLI helpers.

    With ``quiet`` set, build progress events are not printed; warnings and
    errors are still shown. With ``debug_enabled`` set, errors that carry an
    exception are followed by its traceback.
    """

    def __init__(
        self,
        state: CLIState | None = None,
        *,
        debug_enabled: bool | None = None,
        quiet: bool = False,
    ) -> None:
        self._state = state or get_cli_state()
        if debug_enabled is None:
            debug_enabled = self._state.show_tracebacks
        self.debug_enabled = bool(debug_enabled)
        self.quiet = quiet

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        emit_warning(message, exception=exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        emit_error(message, exception=exc)
        if self.debug_enabled and exc is not None:
            self._state.err_console.print(
                Traceback.from_exception(type(exc), exc, exc.__traceback__)
            )

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        if self.quiet:
            return
        message = format_event_message(name, payload)
        if message:
            render_message("info", message)


__all__ = ["CliEmitter"]
