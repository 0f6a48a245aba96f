"""Per-file build lifecycle tracking with publish/subscribe notifications.

The registry is the single source of truth for "what is this file's current
build state". It performs no I/O: an orchestrator drives it around the real
latexmk process and subscribers (status indicators, linters, the CLI) observe
the resulting transitions.

Each file moves through ``idle -> building -> success | error -> building ...``;
``reset`` returns a file to ``idle`` from any state. Transitions of different
files are independent, so several files may be ``building`` at once.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
import logging
import os
import time
from typing import TYPE_CHECKING, Any

from .events import EventChannel, Subscription


if TYPE_CHECKING:  # pragma: no cover - typing only
    from latextools.adapters.latex.log import Diagnostic


logger = logging.getLogger(__name__)

PathLike = str | os.PathLike[str]


class BuildStatus(str, Enum):
    IDLE = "idle"
    BUILDING = "building"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(slots=True)
class BuildRecord:
    """Mutable state of one tracked file."""

    status: BuildStatus = BuildStatus.IDLE
    start_time: float | None = None
    end_time: float | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class FileStatus:
    """Snapshot of a single file's build state."""

    file: str
    status: BuildStatus = BuildStatus.IDLE
    start_time: float | None = None
    end_time: float | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "file": self.file,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class RegistryStatus:
    """Aggregate view across every tracked file."""

    status: BuildStatus
    building_count: int
    files: list[FileStatus] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "buildingCount": self.building_count,
            "files": [entry.to_dict() for entry in self.files],
        }


@dataclass(frozen=True, slots=True)
class BuildStarted:
    file: str


@dataclass(frozen=True, slots=True)
class BuildFinished:
    file: str
    output: str
    elapsed_time: float | None = None


@dataclass(frozen=True, slots=True)
class BuildFailed:
    file: str
    error: str
    output: str


@dataclass(frozen=True, slots=True)
class StatusChanged:
    status: BuildStatus
    file: str | None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class DiagnosticsUpdated:
    file: str
    diagnostics: Sequence[Diagnostic]


def _key(path: PathLike) -> str:
    return os.fspath(path)


class BuildRegistry:
    """Track build state per file path and notify subscribers of transitions."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._records: dict[str, BuildRecord] = {}
        self._started: EventChannel[BuildStarted] = EventChannel("build-started")
        self._finished: EventChannel[BuildFinished] = EventChannel("build-finished")
        self._failed: EventChannel[BuildFailed] = EventChannel("build-failed")
        self._status_changed: EventChannel[StatusChanged] = EventChannel("status-changed")
        self._diagnostics: EventChannel[DiagnosticsUpdated] = EventChannel("diagnostics-updated")

    # Subscriptions -----------------------------------------------------

    def on_build_started(self, callback: Callable[[BuildStarted], object]) -> Subscription:
        return self._started.subscribe(callback)

    def on_build_finished(self, callback: Callable[[BuildFinished], object]) -> Subscription:
        return self._finished.subscribe(callback)

    def on_build_failed(self, callback: Callable[[BuildFailed], object]) -> Subscription:
        return self._failed.subscribe(callback)

    def on_status_changed(self, callback: Callable[[StatusChanged], object]) -> Subscription:
        return self._status_changed.subscribe(callback)

    def on_diagnostics_updated(
        self, callback: Callable[[DiagnosticsUpdated], object]
    ) -> Subscription:
        return self._diagnostics.subscribe(callback)

    # Transitions -------------------------------------------------------

    def start_build(self, path: PathLike) -> None:
        """Mark ``path`` as building.

        Duplicate starts are not rejected; callers check :meth:`is_building`
        first and decide their own policy.
        """
        key = _key(path)
        logger.debug("start_build(%s)", key)
        record = self._records.setdefault(key, BuildRecord())
        record.status = BuildStatus.BUILDING
        record.start_time = self._clock()
        record.end_time = None
        record.error = None
        self._started.emit(BuildStarted(file=key))
        self._status_changed.emit(StatusChanged(status=BuildStatus.BUILDING, file=key))

    def finish_build(
        self, path: PathLike, output: str, elapsed_time: float | None = None
    ) -> None:
        """Record a successful build of ``path``."""
        key = _key(path)
        logger.debug("finish_build(%s)", key)
        record = self._records.setdefault(key, BuildRecord())
        record.status = BuildStatus.SUCCESS
        record.end_time = self._clock()
        record.error = None
        if elapsed_time is None and record.start_time is not None:
            elapsed_time = record.end_time - record.start_time
        self._finished.emit(BuildFinished(file=key, output=output, elapsed_time=elapsed_time))
        self._status_changed.emit(StatusChanged(status=BuildStatus.SUCCESS, file=key))

    def fail_build(self, path: PathLike, error: str, output: str) -> None:
        """Record a failed build of ``path``; failure is a state, not an exception."""
        key = _key(path)
        logger.debug("fail_build(%s): %s", key, error)
        record = self._records.setdefault(key, BuildRecord())
        record.status = BuildStatus.ERROR
        record.end_time = self._clock()
        record.error = error
        self._failed.emit(BuildFailed(file=key, error=error, output=output))
        self._status_changed.emit(
            StatusChanged(status=BuildStatus.ERROR, file=key, error=error)
        )

    def reset(self, path: PathLike | None = None) -> None:
        """Forget ``path`` (or every file) and announce the ``idle`` state."""
        if path is None:
            logger.debug("reset(all)")
            self._records.clear()
            self._status_changed.emit(StatusChanged(status=BuildStatus.IDLE, file=None))
            return
        key = _key(path)
        logger.debug("reset(%s)", key)
        self._records.pop(key, None)
        self._status_changed.emit(StatusChanged(status=BuildStatus.IDLE, file=key))

    def publish_diagnostics(self, path: PathLike, diagnostics: Sequence[Diagnostic]) -> None:
        """Hand the latest diagnostics of ``path`` to subscribers."""
        key = _key(path)
        logger.debug("publish_diagnostics(%s): %d entries", key, len(diagnostics))
        self._diagnostics.emit(DiagnosticsUpdated(file=key, diagnostics=tuple(diagnostics)))

    # Queries -----------------------------------------------------------

    def get_status(self, path: PathLike | None = None) -> FileStatus | RegistryStatus:
        """Return one file's snapshot, or the aggregate when ``path`` is omitted."""
        if path is not None:
            return self._snapshot(_key(path))
        files = [self._snapshot(key) for key in self._records]
        building = sum(1 for entry in files if entry.status is BuildStatus.BUILDING)
        return RegistryStatus(
            status=BuildStatus.BUILDING if building else BuildStatus.IDLE,
            building_count=building,
            files=files,
        )

    def is_building(self, path: PathLike) -> bool:
        record = self._records.get(_key(path))
        return record is not None and record.status is BuildStatus.BUILDING

    def is_any_building(self) -> bool:
        return any(record.status is BuildStatus.BUILDING for record in self._records.values())

    def dispose(self) -> None:
        """Drop every record and subscriber."""
        logger.debug("dispose()")
        self._records.clear()
        for channel in (
            self._started,
            self._finished,
            self._failed,
            self._status_changed,
            self._diagnostics,
        ):
            channel.clear()

    def _snapshot(self, key: str) -> FileStatus:
        record = self._records.get(key)
        if record is None:
            return FileStatus(file=key)
        return FileStatus(
            file=key,
            status=record.status,
            start_time=record.start_time,
            end_time=record.end_time,
            error=record.error,
        )


__all__ = [
    "BuildFailed",
    "BuildFinished",
    "BuildRecord",
    "BuildRegistry",
    "BuildStarted",
    "BuildStatus",
    "DiagnosticsUpdated",
    "FileStatus",
    "RegistryStatus",
    "StatusChanged",
]
