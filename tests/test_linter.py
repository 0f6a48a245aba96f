from __future__ import annotations

import logging
from pathlib import Path

import pytest

from latextools.adapters.latex.log import REST_OF_LINE, Diagnostic, Location, Severity, Span
from latextools.adapters.linter import LinterBridge, LinterMessage
from latextools.core.config import LinterConfig
from latextools.core.registry import BuildRegistry


PATH = Path("/project/main.tex")


def _diagnostic(
    severity: Severity,
    row: int,
    excerpt: str,
    *,
    description: str | None = None,
) -> Diagnostic:
    return Diagnostic(
        severity=severity,
        excerpt=excerpt,
        location=Location(file=PATH.name, full_path=PATH, position=Span.lines(row)),
        description=description,
        log_range=((4, 0), (5, 10)),
    )


def test_message_shape() -> None:
    bridge = LinterBridge()
    diagnostic = _diagnostic(Severity.ERROR, 3, "Undefined control sequence.", description="details")

    assert bridge.to_messages([diagnostic]) == [
        {
            "severity": "error",
            "location": {"file": str(PATH), "position": [[3, 0], [3, REST_OF_LINE]]},
            "excerpt": "Undefined control sequence.",
            "description": "details",
        }
    ]


def test_log_range_is_optional() -> None:
    bridge = LinterBridge(LinterConfig(include_log_range=True))

    messages = bridge.to_messages([_diagnostic(Severity.INFO, 0, "Overfull")])

    assert messages[0]["logRange"] == [[4, 0], [5, 10]]
    assert "description" not in messages[0]


def test_suppression_by_severity() -> None:
    bridge = LinterBridge(LinterConfig(suppress_warnings=True, suppress_infos=True))
    diagnostics = [
        _diagnostic(Severity.ERROR, 1, "error"),
        _diagnostic(Severity.WARNING, 2, "warning"),
        _diagnostic(Severity.INFO, 3, "info"),
    ]

    assert [message["excerpt"] for message in bridge.to_messages(diagnostics)] == ["error"]


def test_duplicates_are_removed_even_when_apart() -> None:
    bridge = LinterBridge()
    diagnostics = [
        _diagnostic(Severity.WARNING, 2, "same"),
        _diagnostic(Severity.INFO, 4, "other"),
        _diagnostic(Severity.WARNING, 2, "same"),
        _diagnostic(Severity.ERROR, 2, "same"),
    ]

    messages = bridge.to_messages(diagnostics)

    assert [(m["severity"], m["excerpt"]) for m in messages] == [
        ("warning", "same"),
        ("info", "other"),
        ("error", "same"),
    ]


def test_attach_forwards_registry_updates() -> None:
    received: list[list[LinterMessage]] = []
    bridge = LinterBridge(sink=received.append)
    registry = BuildRegistry()

    subscription = bridge.attach(registry)
    registry.publish_diagnostics(PATH, [_diagnostic(Severity.ERROR, 0, "boom")])
    subscription.dispose()
    registry.publish_diagnostics(PATH, [_diagnostic(Severity.ERROR, 1, "ignored")])

    assert len(received) == 1
    assert received[0][0]["excerpt"] == "boom"


def test_clear_pushes_empty_list() -> None:
    received: list[list[LinterMessage]] = []
    bridge = LinterBridge(sink=received.append)

    bridge.clear()

    assert received == [[]]


def test_missing_sink_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    bridge = LinterBridge()

    with caplog.at_level(logging.WARNING, logger="latextools.adapters.linter"):
        bridge.publish([_diagnostic(Severity.ERROR, 0, "boom")])

    assert "No linter sink" in caplog.text
