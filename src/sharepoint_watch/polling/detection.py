"""Change detection between a fresh listing and the previous poll's snapshot."""

from __future__ import annotations

import logging
import random
from datetime import datetime

from sharepoint_watch.graph.models import FileRecord
from sharepoint_watch.polling.models import ChangeEvent, PollSnapshot

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 3


def _is_modified_since(file: FileRecord, since: datetime) -> bool:
    return file.last_modified is not None and file.last_modified > since


def detect_changes(
    previous: PollSnapshot,
    current: list[FileRecord],
    event: ChangeEvent,
    now: datetime,
) -> tuple[list[FileRecord], PollSnapshot]:
    """Classify the current listing against the previous snapshot.

    On the first poll (no last_poll_time) nothing is reported, so files that
    already existed never trigger. Deleted files are not reported.

    Args:
        previous: Snapshot written by the previous non-test poll.
        current: Complete listing fetched by this poll.
        event: Which kind of change to report.
        now: Time of this poll; becomes the next snapshot's last_poll_time.

    Returns:
        A tuple of (changes, next_snapshot). next_snapshot replaces the old one
        in full with the current listing, whether or not anything changed.
    """
    next_snapshot = PollSnapshot(last_poll_time=now, last_known_files=list(current))

    last_poll = previous.last_poll_time
    if last_poll is None:
        logger.info("[detect_changes] first poll, not triggering for existing files")
        return [], next_snapshot

    known_ids = {f.id for f in previous.last_known_files}
    changes: list[FileRecord] = []
    for file in current:
        is_known = file.id in known_ids
        if event == ChangeEvent.FILE_ADDED:
            matched = not is_known
        elif event == ChangeEvent.FILE_MODIFIED:
            matched = is_known and _is_modified_since(file, last_poll)
        else:
            matched = not is_known or _is_modified_since(file, last_poll)
        if matched:
            logger.info("[detect_changes] change detected; event:%s;name:%s", event, file.name)
            changes.append(file)

    return changes, next_snapshot


def sample_files(
    current: list[FileRecord],
    limit: int = DEFAULT_SAMPLE_SIZE,
    rng: random.Random | None = None,
) -> list[FileRecord]:
    """Pick up to ``limit`` arbitrary files for a test poll preview."""
    count = max(0, min(limit, len(current)))
    return (rng or random).sample(current, count)
