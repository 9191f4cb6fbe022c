"""Item lookup and content download for drive files."""

from __future__ import annotations

import logging
from urllib.error import URLError
from urllib.parse import quote

from sharepoint_watch.graph.client import GraphClient
from sharepoint_watch.graph.errors import (
    DownloadFailedError,
    GraphApiError,
    NotFoundError,
    translate_graph_error,
)
from sharepoint_watch.graph.models import DocumentDetails

logger = logging.getLogger(__name__)


class ContentFetcher:
    """Reads single drive items: metadata and raw bytes."""

    def __init__(self, graph_client: GraphClient) -> None:
        self._graph = graph_client

    @staticmethod
    def _item_path(drive_id: str, file_id: str) -> str:
        return f"/drives/{drive_id}/items/{quote(file_id, safe='!')}"

    def fetch_content(self, drive_id: str, file_id: str) -> bytes:
        """Download the raw bytes of a file in a single GET.

        Raises:
            NotFoundError: On HTTP 404.
            PermissionDeniedError: On HTTP 403.
            AuthenticationError: On HTTP 401.
            DownloadFailedError: On any other HTTP or transport failure.
        """
        try:
            content = self._graph.get_content(f"{self._item_path(drive_id, file_id)}/content")
        except (GraphApiError, URLError) as exc:
            raise translate_graph_error(
                exc, f"file {file_id}", NotFoundError, DownloadFailedError
            ) from exc
        logger.info("[fetch_content] downloaded file; file_id:%s;bytes:%d", file_id, len(content))
        return content

    def get_document(self, drive_id: str, file_id: str) -> DocumentDetails:
        """Fetch the metadata of one drive item."""
        try:
            raw = self._graph.get(self._item_path(drive_id, file_id))
        except (GraphApiError, URLError) as exc:
            raise translate_graph_error(
                exc, f"file {file_id}", NotFoundError, DownloadFailedError
            ) from exc
        return DocumentDetails.from_graph_item(raw)
