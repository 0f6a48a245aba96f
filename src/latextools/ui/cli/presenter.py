"""Rich-aware presenters for CLI output and diagnostics."""

from __future__ import annotations

from collections.abc import Sequence
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
import typer

from latextools.adapters.latex.cleaner import CleanResult
from latextools.adapters.latex.log import Diagnostic, Severity, count_by_severity, sort_diagnostics
from latextools.adapters.latex.runner import BuildOutcome

from .state import CLIState


if TYPE_CHECKING:  # pragma: no cover - typing only
    from rich.console import Console


_SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


def _get_console(state: CLIState, *, stderr: bool = False) -> Console | None:
    """Return the Rich console for interactive terminals, ``None`` otherwise."""
    console = state.err_console if stderr else state.console
    if console.is_terminal:
        return console
    return None


def _format_path(path: Path) -> str:
    """Format a path relative to the current working directory for display."""
    resolved = path.resolve()
    try:
        return str(resolved.relative_to(Path.cwd()))
    except ValueError:
        return str(resolved)


def _format_location(diagnostic: Diagnostic) -> str:
    return f"{diagnostic.location.file}:{diagnostic.start_row + 1}"


def _size_details(path: Path) -> str:
    """Return a human-readable size for a file if it exists."""
    try:
        size = path.stat().st_size
    except OSError:
        return ""
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):.2f} MiB"
    if size >= 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size} B"


def _severity_summary(diagnostics: Sequence[Diagnostic]) -> str:
    counts = count_by_severity(diagnostics)
    return (
        f"{counts[Severity.ERROR]} error(s), "
        f"{counts[Severity.WARNING]} warning(s), "
        f"{counts[Severity.INFO]} info"
    )


def present_diagnostics(
    state: CLIState,
    diagnostics: Sequence[Diagnostic],
    *,
    title: str | None = None,
) -> None:
    """Render diagnostics sorted by severity and source line."""
    ordered = sort_diagnostics(diagnostics)
    console = _get_console(state)
    if console is not None:
        table = Table(
            title=title or None,
            box=box.SQUARE,
            show_edge=True,
            header_style="bold cyan",
        )
        table.add_column("Severity")
        table.add_column("Location", style="bright_cyan", no_wrap=True)
        table.add_column("Message")
        for diagnostic in ordered:
            table.add_row(
                Text(diagnostic.severity.value, style=_SEVERITY_STYLES[diagnostic.severity]),
                _format_location(diagnostic),
                diagnostic.excerpt,
            )
        console.print(table)
        console.print(_severity_summary(ordered))
        return

    if title:
        typer.echo(title)
    for diagnostic in ordered:
        typer.echo(
            f"  {diagnostic.severity.value}: {_format_location(diagnostic)}: {diagnostic.excerpt}"
        )
    typer.echo(_severity_summary(ordered))


def present_build_summary(state: CLIState, outcomes: Sequence[BuildOutcome]) -> None:
    """Display one row per compiled document."""
    rows: list[tuple[str, str, str, str]] = []
    for outcome in outcomes:
        status = "interrupted" if outcome.interrupted else outcome.status.value
        pdf = outcome.pdf_path if outcome.pdf_path is not None else outcome.file.with_suffix(".pdf")
        detail = _size_details(pdf) if outcome.succeeded else (outcome.error or "")
        rows.append((_format_path(outcome.file), status, f"{outcome.elapsed:.2f}s", detail))

    console = _get_console(state)
    if console is not None:
        table = Table(box=box.SQUARE, header_style="bold cyan")
        table.add_column("Document", style="bright_cyan")
        table.add_column("Status")
        table.add_column("Time", justify="right")
        table.add_column("Details", style="magenta")
        for document, status, elapsed, detail in rows:
            style = "bright_green" if status == "success" else "bold red"
            table.add_row(document, Text(status, style=style), elapsed, detail)
        console.print(table)
        return

    for document, status, elapsed, detail in rows:
        suffix = f" ({detail})" if detail else ""
        typer.echo(f"  * {document}: {status} in {elapsed}{suffix}")


def _render_failure_panel(
    state: CLIState,
    title: str,
    rows: Sequence[tuple[str, str]],
) -> None:
    """Display a failure panel highlighting the primary problem."""
    console = _get_console(state, stderr=True)
    if console is not None:
        table = Table(box=box.SQUARE, show_header=False)
        for label, value in rows:
            table.add_row(Text(label, style="bold red"), Text(value, style="yellow"))
        console.print(Panel(table, box=box.SQUARE, title=title, border_style="red"))
        return

    typer.echo(title, err=True)
    for label, value in rows:
        typer.echo(f"  {label}: {value}", err=True)


def present_build_failure(state: CLIState, outcome: BuildOutcome, log_path: Path) -> None:
    errors = [item for item in outcome.diagnostics if item.severity is Severity.ERROR]
    rows: list[tuple[str, str]] = []
    if errors:
        primary = sort_diagnostics(errors)[0]
        rows.append(("Primary error", f"{_format_location(primary)}: {primary.excerpt}"))
    elif outcome.error:
        rows.append(("Error", outcome.error))
    rows.append(("Log file", _format_path(log_path)))
    rows.append(("Next steps", "Inspect the log or re-run with -v for details"))
    _render_failure_panel(state, f"LaTeX failure: {outcome.file.name}", rows)


def present_clean_result(state: CLIState, tex_path: Path, result: CleanResult) -> None:
    console = _get_console(state)
    if not result.deleted and not result.failed:
        typer.echo(f"No auxiliary files found for {tex_path.name}.")
        return
    if console is not None:
        table = Table(box=box.SQUARE, header_style="bold cyan", title=f"Cleaned {tex_path.name}")
        table.add_column("File", style="cyan")
        table.add_column("Result")
        for name in result.deleted:
            table.add_row(name, Text("deleted", style="bright_green"))
        for name in result.failed:
            table.add_row(name, Text("failed", style="bold red"))
        console.print(table)
        return

    typer.echo(f"Cleaned {len(result.deleted)} file(s) for {tex_path.name}.")
    for name in result.deleted:
        typer.echo(f"  - {name}")
    for name in result.failed:
        typer.echo(f"  ! {name} (failed)")


def echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


__all__ = [
    "echo_json",
    "present_build_failure",
    "present_build_summary",
    "present_clean_result",
    "present_diagnostics",
]
