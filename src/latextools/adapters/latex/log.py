"""Interpret latexmk/LaTeX log files into structured diagnostics.

The log is scanned line by line. Each line is offered, in priority order, to a
set of recognisers (output marker, fatal ``!`` error, ``file:line:`` error, box
warning, warning/info notice); the first one that matches consumes the line and
any continuation lines it owns. Lines nobody claims are scanned for ``(file``
and ``)`` tokens so diagnostics without an explicit path are attributed to the
file TeX had open at that point.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
import logging
import os
from pathlib import Path
import re
import sys
from typing import Any


logger = logging.getLogger(__name__)

REST_OF_LINE = sys.maxsize


class Severity(Enum):
    """Severity attached to a diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}


@dataclass(frozen=True, slots=True)
class Point:
    row: int
    column: int = 0

    def as_list(self) -> list[int]:
        return [self.row, self.column]


@dataclass(frozen=True, slots=True)
class Span:
    start: Point
    end: Point

    @classmethod
    def lines(cls, start_row: int, end_row: int | None = None) -> Span:
        """Span whole source lines; ``end_row`` defaults to ``start_row``."""
        last = start_row if end_row is None else max(end_row, start_row)
        return cls(Point(start_row, 0), Point(last, REST_OF_LINE))

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            "start": {"row": self.start.row, "column": self.start.column},
            "end": {"row": self.end.row, "column": self.end.column},
        }


@dataclass(frozen=True, slots=True)
class Location:
    file: str
    full_path: Path
    position: Span

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "fullPath": str(self.full_path),
            "position": self.position.to_dict(),
        }


LogRange = tuple[tuple[int, int], tuple[int, int]]


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One issue extracted from a compilation log."""

    severity: Severity
    excerpt: str
    location: Location
    description: str | None = None
    log_range: LogRange | None = None

    @property
    def start_row(self) -> int:
        return self.location.position.start.row

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "severity": self.severity.value,
            "excerpt": self.excerpt,
            "location": self.location.to_dict(),
        }
        if self.description:
            payload["description"] = self.description
        if self.log_range is not None:
            payload["logRange"] = [list(self.log_range[0]), list(self.log_range[1])]
        return payload


@dataclass(slots=True)
class LogStatistics:
    total: int
    errors: int
    warnings: int
    info: int
    output_path: Path | None = None


_INPUT_FILE_PATTERN = re.compile(r"(\([^()[\]]+|\))")
_INPUT_FILE_TRIM_PATTERN = re.compile(r'(^\([\s"]*|[\s"]+$)')


def _resolve(directory: str, candidate: str) -> Path:
    return Path(os.path.normpath(os.path.join(directory, candidate)))


class FileStack:
    """Files TeX currently has open, innermost last."""

    def __init__(self, root: Path | str) -> None:
        root_path = Path(os.path.abspath(root))
        self._directory = str(root_path.parent)
        self._paths: list[Path] = [root_path]

    def __len__(self) -> int:
        return len(self._paths)

    @property
    def current(self) -> Path:
        return self._paths[-1]

    def push(self, path: Path) -> None:
        self._paths.append(path)

    def pop(self) -> None:
        if len(self._paths) > 1:
            self._paths.pop()

    def track(self, line: str) -> None:
        """Apply the ``(file`` / ``)`` tokens found in ``line``."""
        for token in _INPUT_FILE_PATTERN.findall(line):
            if token == ")":
                self.pop()
                continue
            candidate = _INPUT_FILE_TRIM_PATTERN.sub("", token)
            if "." in candidate:
                resolved = _resolve(self._directory, candidate)
                logger.debug("entering %s", resolved)
                self.push(resolved)


@dataclass(slots=True)
class ScanContext:
    """Mutable state shared by the recognisers during a single parse."""

    root: Path
    files: FileStack
    output_path: Path | None = None
    directory: str = field(init=False)

    def __post_init__(self) -> None:
        self.directory = str(self.root.parent)

    def resolve(self, candidate: str) -> Path:
        return _resolve(self.directory, candidate)

    def location(self, span: Span, path: Path | None = None) -> Location:
        target = path if path is not None else self.files.current
        return Location(file=target.name, full_path=target, position=span)


ScanResult = tuple[Diagnostic | None, int]
Recogniser = Callable[[Sequence[str], int, ScanContext], ScanResult | None]


_OUTPUT_PATTERN = re.compile(r"^Output\swritten\son\s(?P<path>.*)\s\(.*\)\.$")
_FATAL_PATTERN = re.compile(r"^! (?:(?P<origin>.+?) Error: )?(?P<message>.+)$")
_FILE_LINE_PATTERN = re.compile(
    r"^(?P<path>.+\.tex):(?P<line>\d{1,9}): (?:(?P<origin>.+?) Error: )?(?P<message>.+)$"
)
_BOX_PATTERN = re.compile(
    r"^(?P<head>(?:Over|Under)full \\[hvd]box \([^)]*\))"
    r"(?: in paragraph| in alignment| detected)? at lines? "
    r"(?P<start>\d{1,9})\b(?:--(?P<end>\d{1,9})\b)?"
)
_WARNING_INFO_PATTERN = re.compile(
    r"^(?P<origin>Package|Class|LaTeX)(?: (?P<name>\S+))? (?P<kind>Warning|Info):\s*(?P<message>.*)$"
)
_CONTEXT_PATTERN = re.compile(r"^l\.(?P<line>\d{1,9})(?:\s|$)")
_HELP_TEXT_PATTERN = re.compile(r"^(?:The |This |You |See |Type |That makes )")
# A leading <tag> marks a source snippet; the rest of that line is source text.
_SNIPPET_MARKER_PATTERN = re.compile(r"^\s*(?:<[^>]*>|\.\.\.|\\\S+.*->)")
_INPUT_LINE_PATTERN = re.compile(r"on input line (?P<line>\d{1,9})\b")
_INPUT_LINE_SUFFIX_PATTERN = re.compile(r"\s*on input line \d+\.?$")
_WRAPPED_NUMBER_TAIL_PATTERN = re.compile(r"\bline(?P<digits> \d+)?$")
_LEADING_DIGITS_PATTERN = re.compile(r"^(?P<digits>\d+)(?P<rest>.*)$")
_WHITESPACE_PATTERN = re.compile(r"\s+")

_STRUCTURAL_PATTERNS = (
    _OUTPUT_PATTERN,
    _FATAL_PATTERN,
    _FILE_LINE_PATTERN,
    _BOX_PATTERN,
    _WARNING_INFO_PATTERN,
)

CONTINUATION_INDENT = 15


def _normalise(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def _is_structural(line: str) -> bool:
    return any(pattern.match(line) for pattern in _STRUCTURAL_PATTERNS)


def _indentation(line: str) -> int:
    return len(line) - len(line.lstrip())


def _log_range(lines: Sequence[str], start: int, end: int) -> LogRange:
    last = max(end - 1, start)
    return ((start, 0), (last, len(lines[last])))


def _source_row(line_number: int) -> int:
    return max(line_number - 1, 0)


def _error_text(origin: str | None, message: str) -> str:
    if origin and origin != "LaTeX":
        return f"{origin} Error: {message}"
    return message


def _skip_context_remainder(lines: Sequence[str], index: int) -> int:
    """Consume the indented line TeX prints after an ``l.<N>`` context line."""
    if index < len(lines) and lines[index][:1].isspace():
        return index + 1
    return index


def collect_error_continuation(
    lines: Sequence[str],
    start: int,
    *,
    indented_only: bool,
) -> tuple[list[str], int | None, str | None, int]:
    """Gather the text following an error line.

    Returns the continuation fragments, the source line number found on an
    ``l.<N>`` context line (if any), the source snippet made of that context
    line and its indented remainder, and the index of the first unconsumed line.
    Snippet markers such as ``<recently read>`` or ``...`` are skipped together
    with the indented remainder TeX prints beneath them.
    """
    parts: list[str] = []
    in_snippet = False
    index = start
    while index < len(lines):
        line = lines[index]
        if in_snippet and line[:1].isspace():
            in_snippet = False
            index += 1
            continue
        in_snippet = False
        if not line.strip():
            break
        context = _CONTEXT_PATTERN.match(line)
        if context:
            end = _skip_context_remainder(lines, index + 1)
            snippet = "\n".join(item.rstrip() for item in lines[index:end] if item.strip())
            return parts, int(context.group("line")), snippet, end
        if _is_structural(line):
            break
        if _SNIPPET_MARKER_PATTERN.match(line):
            in_snippet = True
        elif indented_only and not line[:1].isspace():
            break
        else:
            parts.append(line.strip())
        index += 1
    return parts, None, None, index


def join_wrapped_number(text: str, line: str) -> str | None:
    """Repair a number TeX split across two physical log lines.

    ``text`` must end with ``line`` or ``line <digits>`` and ``line`` must start
    with digits. A bare trailing ``line`` is joined to the number with a space,
    which repairs ``on input line`` wrapped right before its number. Both forms
    misfire when an unrelated continuation happens to start with a number.
    """
    accumulated = text.rstrip()
    tail = _WRAPPED_NUMBER_TAIL_PATTERN.search(accumulated)
    if tail is None:
        return None
    leading = _LEADING_DIGITS_PATTERN.match(line)
    if leading is None:
        return None
    joiner = "" if tail.group("digits") else " "
    joined = f"{accumulated}{joiner}{leading.group('digits')}"
    rest = leading.group("rest")
    if rest[:1].isspace():
        joined = f"{joined} {rest.strip()}"
    else:
        joined += rest.rstrip()
    return joined


def continuation_text(line: str, text: str, package: str | None) -> str | None:
    """Return ``text`` extended by ``line`` when it continues a warning/info."""
    if not line.strip():
        return None
    if _indentation(line) >= CONTINUATION_INDENT:
        return f"{text} {line.strip()}"
    if package:
        marker = f"({package})"
        if line.startswith(marker) and line[len(marker) : len(marker) + 1].isspace():
            return f"{text} {line[len(marker) :].strip()}"
    return join_wrapped_number(text, line)


def scan_output_marker(lines: Sequence[str], index: int, context: ScanContext) -> ScanResult | None:
    match = _OUTPUT_PATTERN.match(lines[index])
    if not match:
        return None
    context.output_path = context.resolve(match.group("path").replace('"', ""))
    return None, index + 1


def scan_fatal_error(lines: Sequence[str], index: int, context: ScanContext) -> ScanResult | None:
    match = _FATAL_PATTERN.match(lines[index])
    if not match:
        return None
    message = match.group("message")
    if _HELP_TEXT_PATTERN.match(message):
        return None, index + 1

    parts, line_number, snippet, end = collect_error_continuation(
        lines, index + 1, indented_only=False
    )
    excerpt = _normalise(" ".join([_error_text(match.group("origin"), message), *parts]))
    row = _source_row(line_number) if line_number is not None else 0
    diagnostic = Diagnostic(
        severity=Severity.ERROR,
        excerpt=excerpt,
        location=context.location(Span.lines(row)),
        description=snippet,
        log_range=_log_range(lines, index, end),
    )
    return diagnostic, end


def scan_file_line_error(
    lines: Sequence[str], index: int, context: ScanContext
) -> ScanResult | None:
    match = _FILE_LINE_PATTERN.match(lines[index])
    if not match:
        return None
    message = match.group("message")
    if _HELP_TEXT_PATTERN.match(message):
        return None, index + 1

    parts, _line_number, snippet, end = collect_error_continuation(
        lines, index + 1, indented_only=True
    )
    excerpt = _normalise(" ".join([_error_text(match.group("origin"), message), *parts]))
    row = _source_row(int(match.group("line")))
    diagnostic = Diagnostic(
        severity=Severity.ERROR,
        excerpt=excerpt,
        location=context.location(Span.lines(row), context.resolve(match.group("path"))),
        description=snippet,
        log_range=_log_range(lines, index, end),
    )
    return diagnostic, end


def scan_box_warning(lines: Sequence[str], index: int, context: ScanContext) -> ScanResult | None:
    match = _BOX_PATTERN.match(lines[index])
    if not match:
        return None
    start = _source_row(int(match.group("start")))
    end_group = match.group("end")
    end = _source_row(int(end_group)) if end_group else start
    diagnostic = Diagnostic(
        severity=Severity.INFO,
        excerpt=match.group("head"),
        location=context.location(Span.lines(start, end)),
        log_range=_log_range(lines, index, index + 1),
    )
    return diagnostic, index + 1


def scan_warning_info(lines: Sequence[str], index: int, context: ScanContext) -> ScanResult | None:
    match = _WARNING_INFO_PATTERN.match(lines[index])
    if not match:
        return None
    origin = match.group("origin")
    name = match.group("name")

    text = match.group("message")
    end = index + 1
    while end < len(lines):
        extended = continuation_text(lines[end], text, name)
        if extended is None:
            break
        text = extended
        end += 1

    text = _normalise(text)
    input_line = _INPUT_LINE_PATTERN.search(text)
    row = _source_row(int(input_line.group("line"))) if input_line else 0
    text = _INPUT_LINE_SUFFIX_PATTERN.sub("", text)
    if text.endswith("."):
        text = text[:-1]
    if origin != "LaTeX" or name:
        prefix = f"{origin} {name}" if name else origin
        text = f"{prefix}: {text}"

    diagnostic = Diagnostic(
        severity=Severity(match.group("kind").lower()),
        excerpt=text,
        location=context.location(Span.lines(row)),
        log_range=_log_range(lines, index, end),
    )
    return diagnostic, end


RECOGNISERS: tuple[Recogniser, ...] = (
    scan_output_marker,
    scan_fatal_error,
    scan_file_line_error,
    scan_box_warning,
    scan_warning_info,
)

_LINE_SPLIT_PATTERN = re.compile(r"\r?\n")


class LogInterpreter:
    """Convert raw LaTeX log text into an ordered list of diagnostics.

    Every call to :meth:`parse` starts from a clean slate, so one instance can
    be reused for any number of logs.
    """

    def __init__(self) -> None:
        self._diagnostics: list[Diagnostic] = []
        self._last: Diagnostic | None = None
        self._output_path: Path | None = None

    @property
    def diagnostics(self) -> Sequence[Diagnostic]:
        """Diagnostics produced by the latest parse."""
        return tuple(self._diagnostics)

    @property
    def output_path(self) -> Path | None:
        """Output file announced by the latest parsed log, if any."""
        return self._output_path

    def parse(self, log_text: str, root_file_path: Path | str) -> list[Diagnostic]:
        """Parse ``log_text`` produced while compiling ``root_file_path``."""
        root = Path(os.path.abspath(root_file_path))
        context = ScanContext(root=root, files=FileStack(root))
        self._diagnostics = []
        self._last = None
        self._output_path = None

        lines = _LINE_SPLIT_PATTERN.split(log_text)
        # The banner line routinely looks like a structural message.
        index = 1
        while index < len(lines):
            for recogniser in RECOGNISERS:
                result = recogniser(lines, index, context)
                if result is not None:
                    diagnostic, index = result
                    if diagnostic is not None:
                        self._add(diagnostic)
                    break
            else:
                context.files.track(lines[index])
                index += 1

        self._output_path = context.output_path
        logger.debug(
            "parsed %d diagnostics from log of %s", len(self._diagnostics), root.name
        )
        return list(self._diagnostics)

    def statistics(self) -> LogStatistics:
        counts = count_by_severity(self._diagnostics)
        return LogStatistics(
            total=len(self._diagnostics),
            errors=counts[Severity.ERROR],
            warnings=counts[Severity.WARNING],
            info=counts[Severity.INFO],
            output_path=self._output_path,
        )

    def _add(self, diagnostic: Diagnostic) -> None:
        last = self._last
        if (
            last is not None
            and last.location.full_path == diagnostic.location.full_path
            and last.start_row == diagnostic.start_row
            and last.excerpt == diagnostic.excerpt
        ):
            logger.debug("dropping repeated diagnostic: %s", diagnostic.excerpt)
            return
        self._diagnostics.append(diagnostic)
        self._last = diagnostic


def parse_log(log_text: str, root_file_path: Path | str) -> list[Diagnostic]:
    """Parse ``log_text`` with a fresh :class:`LogInterpreter`."""
    return LogInterpreter().parse(log_text, root_file_path)


def parse_log_file(log_path: Path, root_file_path: Path | str | None = None) -> list[Diagnostic]:
    """Parse a LaTeX log file; the root defaults to the matching ``.tex`` file."""
    if not log_path.exists():
        return []
    text = log_path.read_text(encoding="utf-8", errors="replace")
    root = root_file_path if root_file_path is not None else log_path.with_suffix(".tex")
    return parse_log(text, root)


def sort_diagnostics(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Order diagnostics by severity (errors first) and then by source row."""
    return sorted(diagnostics, key=lambda item: (item.severity.rank, item.start_row))


def count_by_severity(diagnostics: Iterable[Diagnostic]) -> dict[Severity, int]:
    counts = dict.fromkeys(Severity, 0)
    for diagnostic in diagnostics:
        counts[diagnostic.severity] += 1
    return counts


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(diagnostic.severity is Severity.ERROR for diagnostic in diagnostics)


__all__ = [
    "REST_OF_LINE",
    "Diagnostic",
    "FileStack",
    "Location",
    "LogInterpreter",
    "LogRange",
    "LogStatistics",
    "Point",
    "ScanContext",
    "Severity",
    "Span",
    "collect_error_continuation",
    "continuation_text",
    "count_by_severity",
    "has_errors",
    "join_wrapped_number",
    "parse_log",
    "parse_log_file",
    "scan_box_warning",
    "scan_fatal_error",
    "scan_file_line_error",
    "scan_output_marker",
    "scan_warning_info",
    "sort_diagnostics",
]
