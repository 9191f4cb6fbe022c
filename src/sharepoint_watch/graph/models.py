"""Data models for Microsoft Graph drive items and listing options."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

# Graph API JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_FILE = "file"
FIELD_FOLDER = "folder"
FIELD_SIZE = "size"
FIELD_WEB_URL = "webUrl"
FIELD_MIME_TYPE = "mimeType"
FIELD_LAST_MODIFIED = "lastModifiedDateTime"
FIELD_CREATED = "createdDateTime"
FIELD_CREATED_BY = "createdBy"
FIELD_LAST_MODIFIED_BY = "lastModifiedBy"
FIELD_DOWNLOAD_URL = "@microsoft.graph.downloadUrl"

# Snapshot JSON key for the download URL (the Graph annotation is not a valid record key)
RECORD_DOWNLOAD_URL = "downloadUrl"

# OData response keys
ODATA_NEXT_LINK = "@odata.nextLink"
ODATA_VALUE = "value"

DEFAULT_SELECT = (
    "id,name,lastModifiedDateTime,size,file,folder,webUrl,@microsoft.graph.downloadUrl"
)
FOLDER_SELECT = "id,name,folder"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a Graph ISO 8601 timestamp into an aware UTC datetime.

    Args:
        value: Timestamp such as "2024-05-01T10:00:00Z", or None.

    Returns:
        Aware datetime, or None when the value is missing or unparseable.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    """Render a datetime in the Graph wire format (UTC, trailing Z)."""
    if value is None:
        return None
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


@dataclass
class FileRecord:
    """A document in a drive, identified solely by its id."""

    id: str
    name: str
    last_modified: datetime | None = None
    size: int | None = None
    web_url: str | None = None
    download_url: str | None = None
    mime_type: str | None = None

    @property
    def extension(self) -> str:
        """Lowercased text after the last dot, or "" when there is none."""
        dot = self.name.rfind(".")
        return self.name[dot + 1 :].lower() if dot != -1 else ""

    @classmethod
    def from_graph_item(cls, raw: dict[str, Any]) -> FileRecord:
        """Map a raw Graph driveItem dict to a FileRecord."""
        file_facet = raw.get(FIELD_FILE) or {}
        return cls(
            id=raw.get(FIELD_ID, ""),
            name=raw.get(FIELD_NAME, ""),
            last_modified=parse_timestamp(raw.get(FIELD_LAST_MODIFIED)),
            size=raw.get(FIELD_SIZE),
            web_url=raw.get(FIELD_WEB_URL),
            download_url=raw.get(FIELD_DOWNLOAD_URL),
            mime_type=file_facet.get(FIELD_MIME_TYPE),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict with Graph-style keys."""
        return {
            FIELD_ID: self.id,
            FIELD_NAME: self.name,
            FIELD_LAST_MODIFIED: format_timestamp(self.last_modified),
            FIELD_SIZE: self.size,
            FIELD_WEB_URL: self.web_url,
            RECORD_DOWNLOAD_URL: self.download_url,
            FIELD_MIME_TYPE: self.mime_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileRecord:
        """Inverse of to_dict()."""
        return cls(
            id=data[FIELD_ID],
            name=data.get(FIELD_NAME, ""),
            last_modified=parse_timestamp(data.get(FIELD_LAST_MODIFIED)),
            size=data.get(FIELD_SIZE),
            web_url=data.get(FIELD_WEB_URL),
            download_url=data.get(RECORD_DOWNLOAD_URL),
            mime_type=data.get(FIELD_MIME_TYPE),
        )


@dataclass
class DocumentDetails:
    """A FileRecord plus the authorship metadata returned by an item lookup."""

    file: FileRecord
    created: datetime | None = None
    created_by: dict[str, Any] | None = None
    last_modified_by: dict[str, Any] | None = None

    @classmethod
    def from_graph_item(cls, raw: dict[str, Any]) -> DocumentDetails:
        return cls(
            file=FileRecord.from_graph_item(raw),
            created=parse_timestamp(raw.get(FIELD_CREATED)),
            created_by=raw.get(FIELD_CREATED_BY),
            last_modified_by=raw.get(FIELD_LAST_MODIFIED_BY),
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.file.to_dict()
        data[FIELD_CREATED] = format_timestamp(self.created)
        data[FIELD_CREATED_BY] = self.created_by
        data[FIELD_LAST_MODIFIED_BY] = self.last_modified_by
        return data


@dataclass(frozen=True)
class FolderRef:
    """A subfolder discovered during traversal."""

    name: str
    path: str


@dataclass(frozen=True)
class ListOptions:
    """Query options for a folder listing.

    Attributes:
        select: Comma-separated fields for $select; None uses DEFAULT_SELECT.
        top: Maximum number of files to return; None returns every file.
        filter: OData $filter expression; None sends no filter.
    """

    select: str | None = None
    top: int | None = None
    filter: str | None = None

    def query_params(self) -> dict[str, str]:
        """Build the OData query parameters for a children request."""
        select = self.select or DEFAULT_SELECT
        fields = [f.strip() for f in select.split(",") if f.strip()]
        # The file facet drives the files-only filter, so it must always be selected.
        if FIELD_FILE not in fields:
            fields.append(FIELD_FILE)
        params = {"$select": ",".join(fields)}
        if self.filter:
            params["$filter"] = self.filter
        if self.top:
            params["$top"] = str(self.top)
        return params
