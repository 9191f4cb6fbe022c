"""Unit tests for polling/detection.py — change classification and sampling."""

import random
from datetime import UTC, datetime, timedelta

import pytest

from sharepoint_watch.graph.models import FileRecord
from sharepoint_watch.polling.detection import detect_changes, sample_files
from sharepoint_watch.polling.models import ChangeEvent, PollSnapshot

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
NOW = T0 + timedelta(minutes=1)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_file(id: str, offset_seconds: int | None) -> FileRecord:
    modified = T0 + timedelta(seconds=offset_seconds) if offset_seconds is not None else None
    return FileRecord(id=id, name=f"{id}.pdf", last_modified=modified)


def _ids(files: list[FileRecord]) -> list[str]:
    return [f.id for f in files]


# ---------------------------------------------------------------------------
# detect_changes tests
# ---------------------------------------------------------------------------


class TestDetectChanges:
    @pytest.mark.parametrize(
        ("event", "expected"),
        [
            (ChangeEvent.FILE_ADDED, ["B"]),
            (ChangeEvent.FILE_MODIFIED, []),
            (ChangeEvent.FILE_ADDED_OR_MODIFIED, ["B"]),
        ],
    )
    def test_new_file_is_reported_as_added(self, event: ChangeEvent, expected: list[str]) -> None:
        previous = PollSnapshot(last_poll_time=T0, last_known_files=[_make_file("A", -10)])
        current = [_make_file("A", -10), _make_file("B", 5)]

        changes, _ = detect_changes(previous, current, event, NOW)

        assert _ids(changes) == expected

    @pytest.mark.parametrize(
        ("event", "expected"),
        [
            (ChangeEvent.FILE_ADDED, []),
            (ChangeEvent.FILE_MODIFIED, ["A"]),
            (ChangeEvent.FILE_ADDED_OR_MODIFIED, ["A"]),
        ],
    )
    def test_advanced_timestamp_is_reported_as_modified(
        self, event: ChangeEvent, expected: list[str]
    ) -> None:
        previous = PollSnapshot(last_poll_time=T0, last_known_files=[_make_file("A", -10)])
        current = [_make_file("A", 5)]

        changes, _ = detect_changes(previous, current, event, NOW)

        assert _ids(changes) == expected

    @pytest.mark.parametrize("event", list(ChangeEvent))
    def test_first_poll_reports_nothing(self, event: ChangeEvent) -> None:
        current = [_make_file("A", -10), _make_file("B", 5)]

        changes, snapshot = detect_changes(PollSnapshot(), current, event, NOW)

        assert changes == []
        assert snapshot.last_poll_time == NOW
        assert _ids(snapshot.last_known_files) == ["A", "B"]

    def test_timestamp_equal_to_last_poll_is_not_modified(self) -> None:
        previous = PollSnapshot(last_poll_time=T0, last_known_files=[_make_file("A", -10)])

        changes, _ = detect_changes(
            previous, [_make_file("A", 0)], ChangeEvent.FILE_MODIFIED, NOW
        )

        assert changes == []

    def test_missing_timestamp_is_never_modified(self) -> None:
        previous = PollSnapshot(last_poll_time=T0, last_known_files=[_make_file("A", -10)])

        changes, _ = detect_changes(
            previous, [_make_file("A", None)], ChangeEvent.FILE_ADDED_OR_MODIFIED, NOW
        )

        assert changes == []

    def test_deleted_files_are_not_reported(self) -> None:
        previous = PollSnapshot(
            last_poll_time=T0, last_known_files=[_make_file("A", -10), _make_file("Gone", -10)]
        )

        changes, snapshot = detect_changes(
            previous, [_make_file("A", -10)], ChangeEvent.FILE_ADDED_OR_MODIFIED, NOW
        )

        assert changes == []
        assert _ids(snapshot.last_known_files) == ["A"]

    def test_snapshot_is_replaced_not_merged(self) -> None:
        first = PollSnapshot(last_poll_time=T0, last_known_files=[_make_file("X", -30)])
        _, second = detect_changes(first, [_make_file("Y", -5)], ChangeEvent.FILE_ADDED, NOW)

        later = NOW + timedelta(minutes=1)
        current = [_make_file("Z", 70)]
        _, third = detect_changes(second, current, ChangeEvent.FILE_ADDED, later)

        assert third.last_known_files == current
        assert third.last_poll_time == later

    def test_snapshot_list_is_a_copy(self) -> None:
        current = [_make_file("A", -10)]

        _, snapshot = detect_changes(PollSnapshot(), current, ChangeEvent.FILE_ADDED, NOW)
        current.append(_make_file("B", 5))

        assert _ids(snapshot.last_known_files) == ["A"]


# ---------------------------------------------------------------------------
# sample_files tests
# ---------------------------------------------------------------------------


class TestSampleFiles:
    def test_returns_at_most_limit(self) -> None:
        files = [_make_file(str(i), 0) for i in range(10)]

        sample = sample_files(files, 3, random.Random(7))

        assert len(sample) == 3
        assert set(_ids(sample)) <= set(_ids(files))

    def test_returns_everything_when_fewer_than_limit(self) -> None:
        files = [_make_file("A", 0), _make_file("B", 0)]

        assert sorted(_ids(sample_files(files, 3, random.Random(1)))) == ["A", "B"]

    def test_empty_listing(self) -> None:
        assert sample_files([], 3) == []
