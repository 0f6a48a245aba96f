from __future__ import annotations

import logging

import pytest

from latextools.core.diagnostics import LoggingEmitter, NullEmitter, format_event_message
from latextools.core.exceptions import (
    ConfigurationError,
    LatexToolsError,
    exception_hint,
    exception_messages,
)
from latextools.ui.cli.diagnostics import CliEmitter
from latextools.ui.cli.state import CLIState, set_cli_state


def _raise_nested_error() -> None:
    try:
        raise FileNotFoundError("config.yml is missing")
    except FileNotFoundError as exc:
        raise ConfigurationError("Unable to load configuration") from exc


def test_null_emitter_is_noop(caplog: pytest.LogCaptureFixture) -> None:
    emitter = NullEmitter()
    with caplog.at_level(logging.WARNING):
        emitter.warning("nothing to see")
        emitter.error("still quiet")
    assert not caplog.records
    emitter.event("ignored", {"value": 1})
    assert emitter.debug_enabled is False


def test_logging_emitter_logs_messages(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter(debug_enabled=True)
    with caplog.at_level(logging.INFO):
        emitter.error("boom")
        emitter.event("build_finished", {"file": "main.tex", "elapsed": 1.234})
    messages = [record.getMessage() for record in caplog.records]
    assert "boom" in messages
    assert "Compiled main.tex successfully in 1.23s" in messages
    assert emitter.debug_enabled is True


def test_cli_emitter_bridges_state(capsys: pytest.CaptureFixture[str]) -> None:
    state = set_cli_state(verbosity=1, debug=False)
    emitter = CliEmitter(state=state)

    emitter.warning("Heads up", exc=None)
    emitter.error("Boom", exc=None)
    emitter.event("build_finished", {"file": "main.tex", "elapsed": 0.5})

    captured = capsys.readouterr()
    assert "Heads up" in captured.err
    assert "Boom" in captured.err
    assert "Compiled main.tex successfully" in captured.err
    assert captured.out == ""


def test_quiet_cli_emitter_hides_progress(capsys: pytest.CaptureFixture[str]) -> None:
    emitter = CliEmitter(state=CLIState(), quiet=True)

    emitter.event("build_started", {"file": "main.tex"})
    emitter.warning("Still visible")

    captured = capsys.readouterr()
    assert "Compiling" not in captured.out + captured.err
    assert "Still visible" in captured.err


def test_debug_cli_emitter_prints_traceback(capsys: pytest.CaptureFixture[str]) -> None:
    emitter = CliEmitter(state=CLIState(), debug_enabled=True)
    try:
        raise ValueError("bad input")
    except ValueError as exc:
        emitter.error("Failed to run latexmk", exc)

    err = capsys.readouterr().err
    assert "Failed to run latexmk" in err
    assert "Traceback" in err
    assert "ValueError" in err


def test_cli_emitter_without_debug_omits_traceback(capsys: pytest.CaptureFixture[str]) -> None:
    emitter = CliEmitter(state=CLIState(), debug_enabled=False)
    try:
        raise ValueError("bad input")
    except ValueError as exc:
        emitter.error("Failed to run latexmk", exc)

    assert "Traceback" not in capsys.readouterr().err


@pytest.mark.parametrize(
    ("name", "payload", "expected"),
    [
        (
            "build_started",
            {"file": "main.tex", "command": ["latexmk", "-pdf", "main.tex"]},
            "Compiling main.tex (latexmk -pdf main.tex)",
        ),
        ("build_failed", {"file": "main.tex", "error": "Exit code 12"}, "Compilation of main.tex failed (Exit code 12)"),
        ("build_skipped", {"file": "main.tex"}, "Skipped main.tex: already building"),
        ("build_interrupted", {"file": "main.tex"}, "Compilation of main.tex was interrupted"),
        ("unknown_event", {"file": "main.tex"}, None),
    ],
)
def test_format_event_message(name: str, payload: dict[str, object], expected: str | None) -> None:
    assert format_event_message(name, payload) == expected


def test_exception_chain_helpers() -> None:
    with pytest.raises(LatexToolsError) as excinfo:
        _raise_nested_error()

    assert exception_messages(excinfo.value) == [
        "Unable to load configuration",
        "config.yml is missing",
    ]
    assert exception_hint(excinfo.value) == "config.yml is missing"
