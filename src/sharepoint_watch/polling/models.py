"""Data models for poll state, trigger settings and emitted events."""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from sharepoint_watch.graph.models import FileRecord, format_timestamp, parse_timestamp

TRIGGER_NAME = "sharepointWatchTrigger"
TEST_EVENT = "test"
TEST_NOTE = (
    "This is a TEST execution showing existing files. In normal operation, "
    "only NEW or MODIFIED files will trigger this workflow."
)
DEFAULT_MIME_TYPE = "application/octet-stream"


class ChangeEvent(StrEnum):
    """Which file changes a trigger reports."""

    FILE_ADDED = "fileAdded"
    FILE_MODIFIED = "fileModified"
    FILE_ADDED_OR_MODIFIED = "fileAddedOrModified"


@dataclass
class PollSnapshot:
    """State recorded at the end of the previous non-test poll.

    Attributes:
        last_poll_time: When the previous poll ran; None before the first poll.
        last_known_files: Every file the previous poll saw.
    """

    last_poll_time: datetime | None = None
    last_known_files: list[FileRecord] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(
            {
                "lastPollTime": format_timestamp(self.last_poll_time),
                "lastKnownFiles": [f.to_dict() for f in self.last_known_files],
            }
        )

    @classmethod
    def from_json(cls, text: str) -> PollSnapshot:
        data = json.loads(text)
        return cls(
            last_poll_time=parse_timestamp(data.get("lastPollTime")),
            last_known_files=[FileRecord.from_dict(f) for f in data.get("lastKnownFiles") or []],
        )


@dataclass(frozen=True)
class TriggerSettings:
    """Configuration of one polling trigger.

    Attributes:
        event: Which changes to report.
        folder_path: Folder to monitor, relative to the Documents library.
        file_extensions: Lowercase extensions without dots; empty monitors every file.
        include_subfolders: Monitor the whole subtree.
        download_content: Attach each file's bytes to its event.
        max_depth: Subfolder levels to descend when include_subfolders is set.
        sample_size: Number of files a test poll returns.
    """

    event: ChangeEvent = ChangeEvent.FILE_ADDED
    folder_path: str = "/"
    file_extensions: tuple[str, ...] = ()
    include_subfolders: bool = False
    download_content: bool = False
    max_depth: int = 32
    sample_size: int = 3

    def state_key(self, instance_id: str) -> str:
        """Key for this trigger's snapshot.

        Changing the folder, event or filters yields a new key, so a
        reconfigured trigger starts from a fresh snapshot.
        """
        scope = "|".join(
            [
                self.folder_path,
                str(self.event),
                ",".join(sorted(self.file_extensions)),
                str(self.include_subfolders),
            ]
        )
        digest = hashlib.sha256(scope.encode("utf-8")).hexdigest()[:16]
        return f"{instance_id}/{digest}"


@dataclass(frozen=True)
class FolderInfo:
    """Location a poll ran against."""

    path: str
    drive_id: str
    site_id: str


@dataclass
class PollEvent:
    """One record emitted to the workflow host."""

    event: str
    file: FileRecord
    folder: FolderInfo
    timestamp: datetime
    test_mode: bool = False
    content: bytes | None = None
    download_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render the event as the JSON payload handed to the host."""
        data: dict[str, Any] = {
            "event": self.event,
            "trigger": TRIGGER_NAME,
            "file": self.file.to_dict(),
            "folder": {
                "path": self.folder.path,
                "driveId": self.folder.drive_id,
                "siteId": self.folder.site_id,
            },
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.test_mode:
            data["testMode"] = True
            data["testNote"] = TEST_NOTE
        if self.download_error is not None:
            data["downloadError"] = self.download_error
        if self.content is not None:
            data["binary"] = {
                "data": base64.b64encode(self.content).decode("ascii"),
                "mimeType": self.file.mime_type or DEFAULT_MIME_TYPE,
                "fileName": self.file.name,
                "fileSize": self.file.size,
            }
        return data
