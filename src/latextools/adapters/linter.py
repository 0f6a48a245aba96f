"""Translate parsed diagnostics into linter messages."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import logging
from typing import Any

from latextools.adapters.latex.log import Diagnostic, Severity
from latextools.core.config import LinterConfig
from latextools.core.events import Subscription
from latextools.core.registry import BuildRegistry, DiagnosticsUpdated


logger = logging.getLogger(__name__)

LinterMessage = dict[str, Any]
MessageSink = Callable[[list[LinterMessage]], object]


def _message_key(diagnostic: Diagnostic) -> tuple[str, str, int, int, str]:
    start = diagnostic.location.position.start
    return (
        diagnostic.severity.value,
        str(diagnostic.location.full_path),
        start.row,
        start.column,
        diagnostic.excerpt,
    )


class LinterBridge:
    """Feed registry diagnostics to a linter-style message sink."""

    def __init__(self, config: LinterConfig | None = None, sink: MessageSink | None = None) -> None:
        self.config = config or LinterConfig()
        self.sink = sink

    def _suppressed(self, severity: Severity) -> bool:
        if severity is Severity.ERROR:
            return self.config.suppress_errors
        if severity is Severity.WARNING:
            return self.config.suppress_warnings
        return self.config.suppress_infos

    def to_message(self, diagnostic: Diagnostic) -> LinterMessage:
        position = diagnostic.location.position
        message: LinterMessage = {
            "severity": diagnostic.severity.value,
            "location": {
                "file": str(diagnostic.location.full_path),
                "position": [position.start.as_list(), position.end.as_list()],
            },
            "excerpt": diagnostic.excerpt,
        }
        if diagnostic.description:
            message["description"] = diagnostic.description
        if self.config.include_log_range and diagnostic.log_range is not None:
            message["logRange"] = [list(diagnostic.log_range[0]), list(diagnostic.log_range[1])]
        return message

    def to_messages(self, diagnostics: Iterable[Diagnostic]) -> list[LinterMessage]:
        """Filter, deduplicate and convert ``diagnostics`` preserving their order."""
        seen: set[tuple[str, str, int, int, str]] = set()
        messages: list[LinterMessage] = []
        for diagnostic in diagnostics:
            if self._suppressed(diagnostic.severity):
                continue
            key = _message_key(diagnostic)
            if key in seen:
                continue
            seen.add(key)
            messages.append(self.to_message(diagnostic))
        return messages

    def publish(self, diagnostics: Sequence[Diagnostic]) -> None:
        if self.sink is None:
            logger.warning("No linter sink configured; dropping %d diagnostics", len(diagnostics))
            return
        self.sink(self.to_messages(diagnostics))

    def attach(self, registry: BuildRegistry) -> Subscription:
        """Forward every diagnostics update of ``registry`` to the sink."""

        def _on_update(update: DiagnosticsUpdated) -> None:
            self.publish(update.diagnostics)

        return registry.on_diagnostics_updated(_on_update)

    def clear(self) -> None:
        self.publish([])


__all__ = ["LinterBridge", "LinterMessage", "MessageSink"]
