from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from latextools.core.registry import (
    BuildFailed,
    BuildFinished,
    BuildRegistry,
    BuildStarted,
    BuildStatus,
    DiagnosticsUpdated,
    FileStatus,
    RegistryStatus,
    StatusChanged,
)


def _clock(values: list[float]) -> Iterator[float]:
    yield from values


@pytest.fixture()
def registry() -> BuildRegistry:
    ticks = _clock([10.0, 11.5, 20.0, 21.0, 30.0, 31.0, 40.0])
    return BuildRegistry(clock=lambda: next(ticks))


def test_finish_build_marks_success(registry: BuildRegistry) -> None:
    registry.start_build("a.tex")
    registry.finish_build("a.tex", "...", 1500)

    status = registry.get_status("a.tex")
    assert isinstance(status, FileStatus)
    assert status.status is BuildStatus.SUCCESS
    assert status.file == "a.tex"
    assert status.start_time == 10.0
    assert status.end_time == 11.5
    assert status.error is None
    assert not registry.is_building("a.tex")


def test_concurrent_builds_are_aggregated(registry: BuildRegistry) -> None:
    registry.start_build("a.tex")
    registry.start_build("b.tex")

    aggregate = registry.get_status()
    assert isinstance(aggregate, RegistryStatus)
    assert aggregate.status is BuildStatus.BUILDING
    assert aggregate.building_count == 2
    assert [entry.file for entry in aggregate.files] == ["a.tex", "b.tex"]
    assert registry.is_any_building()


def test_untracked_file_defaults_to_idle(registry: BuildRegistry) -> None:
    status = registry.get_status("never.tex")

    assert status == FileStatus(file="never.tex")
    assert status.to_dict() == {
        "status": "idle",
        "file": "never.tex",
        "startTime": None,
        "endTime": None,
        "error": None,
    }
    aggregate = registry.get_status()
    assert isinstance(aggregate, RegistryStatus)
    assert aggregate.to_dict() == {"status": "idle", "buildingCount": 0, "files": []}


def test_fail_build_records_error(registry: BuildRegistry) -> None:
    failures: list[BuildFailed] = []
    registry.on_build_failed(failures.append)

    registry.start_build("a.tex")
    registry.fail_build("a.tex", "Exit code 12", "stderr text")

    status = registry.get_status("a.tex")
    assert isinstance(status, FileStatus)
    assert status.status is BuildStatus.ERROR
    assert status.error == "Exit code 12"
    assert failures == [BuildFailed(file="a.tex", error="Exit code 12", output="stderr text")]


def test_rebuild_clears_previous_error(registry: BuildRegistry) -> None:
    registry.start_build("a.tex")
    registry.fail_build("a.tex", "boom", "")
    registry.start_build("a.tex")

    status = registry.get_status("a.tex")
    assert isinstance(status, FileStatus)
    assert status.status is BuildStatus.BUILDING
    assert status.error is None
    assert status.end_time is None


def test_events_are_published_in_order(registry: BuildRegistry) -> None:
    events: list[object] = []
    registry.on_build_started(events.append)
    registry.on_build_finished(events.append)
    registry.on_status_changed(events.append)

    registry.start_build("a.tex")
    registry.finish_build("a.tex", "out")

    assert events == [
        BuildStarted(file="a.tex"),
        StatusChanged(status=BuildStatus.BUILDING, file="a.tex"),
        BuildFinished(file="a.tex", output="out", elapsed_time=1.5),
        StatusChanged(status=BuildStatus.SUCCESS, file="a.tex"),
    ]


def test_reset_single_file(registry: BuildRegistry) -> None:
    changes: list[StatusChanged] = []
    registry.on_status_changed(changes.append)
    registry.start_build("a.tex")
    registry.start_build("b.tex")

    registry.reset("a.tex")

    assert changes[-1] == StatusChanged(status=BuildStatus.IDLE, file="a.tex")
    assert not registry.is_building("a.tex")
    assert registry.is_building("b.tex")
    aggregate = registry.get_status()
    assert isinstance(aggregate, RegistryStatus)
    assert [entry.file for entry in aggregate.files] == ["b.tex"]


def test_reset_all_emits_global_idle(registry: BuildRegistry) -> None:
    changes: list[StatusChanged] = []
    registry.on_status_changed(changes.append)
    registry.start_build("a.tex")
    registry.start_build("b.tex")

    registry.reset()

    assert changes[-1] == StatusChanged(status=BuildStatus.IDLE, file=None)
    assert not registry.is_any_building()


def test_path_and_string_share_record(registry: BuildRegistry, tmp_path: Path) -> None:
    path = tmp_path / "doc.tex"
    registry.start_build(path)

    assert registry.is_building(str(path))


def test_subscriber_added_during_dispatch_misses_current_event(registry: BuildRegistry) -> None:
    late: list[BuildStarted] = []

    def subscribe_late(_event: BuildStarted) -> None:
        registry.on_build_started(late.append)

    subscription = registry.on_build_started(subscribe_late)
    registry.start_build("a.tex")
    assert late == []

    subscription.dispose()
    registry.start_build("b.tex")
    assert late == [BuildStarted(file="b.tex")]


def test_failing_subscriber_does_not_block_others(registry: BuildRegistry) -> None:
    seen: list[StatusChanged] = []

    def explode(_event: StatusChanged) -> None:
        raise RuntimeError("subscriber failure")

    registry.on_status_changed(explode)
    registry.on_status_changed(seen.append)

    registry.start_build("a.tex")

    assert seen == [StatusChanged(status=BuildStatus.BUILDING, file="a.tex")]


def test_publish_diagnostics(registry: BuildRegistry) -> None:
    updates: list[DiagnosticsUpdated] = []
    registry.on_diagnostics_updated(updates.append)

    registry.publish_diagnostics("a.tex", [])

    assert updates == [DiagnosticsUpdated(file="a.tex", diagnostics=())]


def test_dispose_drops_records_and_subscribers(registry: BuildRegistry) -> None:
    events: list[object] = []
    registry.on_build_started(events.append)
    registry.start_build("a.tex")

    registry.dispose()
    registry.start_build("b.tex")

    assert events == [BuildStarted(file="a.tex")]
    aggregate = registry.get_status()
    assert isinstance(aggregate, RegistryStatus)
    assert [entry.file for entry in aggregate.files] == ["b.tex"]
