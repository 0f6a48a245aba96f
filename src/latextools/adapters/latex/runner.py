"""Run latexmk for one or more documents and feed the build registry."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import selectors
import subprocess
import time
from typing import TextIO, cast

from latextools.core.config import BuildConfig
from latextools.core.diagnostics import DiagnosticEmitter, NullEmitter
from latextools.core.registry import BuildRegistry, BuildStatus

from .latexmk import build_latexmk_command, log_path_for, pdf_path_for
from .log import Diagnostic, Location, LogInterpreter, Severity, Span, has_errors


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BuildOutcome:
    """Result of compiling a single document."""

    file: Path
    status: BuildStatus
    returncode: int | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    output: str = ""
    elapsed: float = 0.0
    pdf_path: Path | None = None
    output_path: Path | None = None
    interrupted: bool = False
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is BuildStatus.SUCCESS


@dataclass(slots=True)
class _Job:
    tex_path: Path
    command: list[str]
    process: subprocess.Popen[str]
    started: float
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    open_streams: int = 0


def critical_error_diagnostic(tex_path: Path, returncode: int) -> Diagnostic:
    """Fallback error shown when a failed build left no parsable error in its log."""
    return Diagnostic(
        severity=Severity.ERROR,
        excerpt=f"Critical error: Compilation failed with exit code {returncode}",
        location=Location(file=tex_path.name, full_path=tex_path, position=Span.lines(0)),
    )


class LatexmkBuilder:
    """Spawn latexmk processes and translate their outcome into registry events.

    Processes for different documents run concurrently; their pipes are
    multiplexed on the calling thread so the registry is never touched from
    anywhere else.
    """

    def __init__(
        self,
        registry: BuildRegistry,
        config: BuildConfig | None = None,
        *,
        emitter: DiagnosticEmitter | None = None,
        interpreter: LogInterpreter | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or BuildConfig()
        self.emitter = emitter or NullEmitter()
        self.interpreter = interpreter or LogInterpreter()
        self.env = dict(env) if env is not None else None

    def command_for(self, tex_path: Path) -> list[str]:
        return build_latexmk_command(tex_path, self.config)

    def build(self, tex_path: Path) -> BuildOutcome:
        return self.build_many([tex_path])[0]

    def build_many(self, tex_paths: Iterable[Path]) -> list[BuildOutcome]:
        """Compile every document, returning outcomes in the order given."""
        outcomes: dict[Path, BuildOutcome] = {}
        order: list[Path] = []
        jobs: list[_Job] = []

        try:
            for raw_path in tex_paths:
                tex_path = Path(os.path.abspath(raw_path))
                order.append(tex_path)
                if tex_path in outcomes or any(job.tex_path == tex_path for job in jobs):
                    continue
                if self.registry.is_building(tex_path):
                    outcomes[tex_path] = self._skip(tex_path)
                    continue
                job_or_outcome = self._spawn(tex_path)
                if isinstance(job_or_outcome, BuildOutcome):
                    outcomes[tex_path] = job_or_outcome
                else:
                    jobs.append(job_or_outcome)

            for job in self._drain(jobs):
                outcomes[job.tex_path] = self._complete(job)
        except KeyboardInterrupt:
            for job in jobs:
                if job.tex_path not in outcomes:
                    self._abort(job)
            raise

        return [outcomes[path] for path in order]

    def _skip(self, tex_path: Path) -> BuildOutcome:
        self.emitter.warning(f"Build already in progress for {tex_path.name}.")
        self.emitter.event("build_skipped", {"file": tex_path.name, "reason": "already building"})
        return BuildOutcome(
            file=tex_path, status=BuildStatus.BUILDING, pdf_path=pdf_path_for(tex_path)
        )

    # Process handling --------------------------------------------------

    def _spawn(self, tex_path: Path) -> _Job | BuildOutcome:
        command = self.command_for(tex_path)
        self.registry.start_build(tex_path)
        self.emitter.event("build_started", {"file": tex_path.name, "command": command})
        try:
            process = subprocess.Popen(
                command,
                cwd=str(tex_path.parent),
                env=self.env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            return self._spawn_failure(tex_path, exc)
        return _Job(tex_path=tex_path, command=command, process=process, started=time.monotonic())

    def _spawn_failure(self, tex_path: Path, exc: OSError) -> BuildOutcome:
        summary = "latexmk not found" if isinstance(exc, FileNotFoundError) else str(exc)
        detail = f"Make sure latexmk is installed and in your PATH. ({exc})"
        self.registry.fail_build(tex_path, summary, detail)
        self.registry.publish_diagnostics(tex_path, [])
        self.emitter.error(f"Failed to run latexmk: {summary}", exc)
        self.emitter.event("build_failed", {"file": tex_path.name, "error": summary})
        return BuildOutcome(
            file=tex_path,
            status=BuildStatus.ERROR,
            output=detail,
            pdf_path=pdf_path_for(tex_path),
            error=summary,
        )

    @staticmethod
    def _drain(jobs: Sequence[_Job]) -> Iterable[_Job]:
        """Collect output of every job, yielding each one once its pipes close."""
        with selectors.DefaultSelector() as selector:
            for job in jobs:
                for stream, sink in (
                    (job.process.stdout, job.stdout),
                    (job.process.stderr, job.stderr),
                ):
                    if stream is not None:
                        selector.register(stream, selectors.EVENT_READ, (job, sink))
                        job.open_streams += 1
                if job.open_streams == 0:
                    yield job

            while selector.get_map():
                for key, _ in selector.select():
                    job, sink = key.data
                    stream = cast(TextIO, key.fileobj)
                    chunk = stream.readline()
                    if chunk:
                        sink.append(chunk)
                        continue
                    selector.unregister(stream)
                    job.open_streams -= 1
                    if job.open_streams == 0:
                        yield job

    def _complete(self, job: _Job) -> BuildOutcome:
        returncode = job.process.wait()
        elapsed = time.monotonic() - job.started
        stdout = "".join(job.stdout)
        stderr = "".join(job.stderr)
        tex_path = job.tex_path
        outcome = BuildOutcome(
            file=tex_path,
            status=BuildStatus.ERROR,
            returncode=returncode,
            output=stdout,
            elapsed=elapsed,
            pdf_path=pdf_path_for(tex_path),
        )

        if returncode < 0:
            # Killed by a signal: the outcome is unknown, so report neither.
            logger.debug("latexmk for %s terminated by signal %d", tex_path, -returncode)
            self.registry.reset(tex_path)
            self.emitter.event("build_interrupted", {"file": tex_path.name})
            outcome.status = BuildStatus.IDLE
            outcome.interrupted = True
            return outcome

        log_path = log_path_for(tex_path)
        diagnostics: list[Diagnostic] = []
        log_error: OSError | None = None
        try:
            log_text = log_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            log_error = exc
        else:
            diagnostics = self.interpreter.parse(log_text, tex_path)
            outcome.output_path = self.interpreter.output_path

        if returncode == 0 and log_error is None:
            self.registry.finish_build(tex_path, stdout, elapsed)
            outcome.status = BuildStatus.SUCCESS
            self.emitter.event("build_finished", {"file": tex_path.name, "elapsed": elapsed})
        elif returncode == 0:
            # latexmk claims success but left nothing to inspect.
            outcome.error = f"Unable to read {log_path.name}"
            self.registry.fail_build(tex_path, outcome.error, str(log_error))
            self.emitter.error(outcome.error, log_error)
            self.emitter.event("build_failed", {"file": tex_path.name, "error": outcome.error})
        else:
            if log_error is not None:
                self.emitter.warning(f"Unable to read {log_path.name}", log_error)
            outcome.error = f"Exit code {returncode}"
            self.registry.fail_build(tex_path, outcome.error, stderr or stdout)
            self.emitter.event("build_failed", {"file": tex_path.name, "error": outcome.error})
            if not has_errors(diagnostics):
                diagnostics.append(critical_error_diagnostic(tex_path, returncode))

        outcome.diagnostics = diagnostics
        self.registry.publish_diagnostics(tex_path, diagnostics)
        return outcome

    def _abort(self, job: _Job) -> None:
        if job.process.poll() is None:
            job.process.kill()
        job.process.wait()
        self.registry.reset(job.tex_path)
        self.emitter.event("build_interrupted", {"file": job.tex_path.name})


__all__ = ["BuildOutcome", "LatexmkBuilder", "critical_error_diagnostic"]
