"""One-shot document operations: list, get details and download."""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sharepoint_watch.graph.auth import TokenProvider, token_provider_from_config
from sharepoint_watch.graph.client import GraphClient
from sharepoint_watch.graph.content import ContentFetcher
from sharepoint_watch.graph.errors import SharePointError
from sharepoint_watch.graph.listing import FolderLister
from sharepoint_watch.graph.models import ListOptions, format_timestamp
from sharepoint_watch.graph.sites import SiteResolver
from sharepoint_watch.polling.models import DEFAULT_MIME_TYPE

if TYPE_CHECKING:
    from sharepoint_watch.config import AppConfig

logger = logging.getLogger(__name__)


class DocumentOperation(StrEnum):
    LIST_DOCUMENTS = "listDocuments"
    GET_DOCUMENT = "getDocument"
    DOWNLOAD_DOCUMENT = "downloadDocument"


@dataclass(frozen=True)
class DocumentRequest:
    """One input item of a document batch.

    Attributes:
        operation: What to do.
        library_path: Folder to list for listDocuments; "/" is the library root.
        document_id: Drive item ID for getDocument and downloadDocument.
        options: Listing options for listDocuments.
    """

    operation: DocumentOperation
    library_path: str = "/"
    document_id: str = ""
    options: ListOptions = field(default_factory=ListOptions)


@dataclass
class OperationResult:
    """Outcome of one request: either data (and content) or an error message."""

    index: int
    operation: str
    data: dict[str, Any] = field(default_factory=dict)
    content: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"index": self.index, "operation": self.operation, "error": self.error}
        payload: dict[str, Any] = {"index": self.index, **self.data}
        if self.content is not None:
            payload["binary"] = {
                "data": base64.b64encode(self.content).decode("ascii"),
                "mimeType": self.data.get("mimeType", DEFAULT_MIME_TYPE),
                "fileName": self.data.get("fileName"),
            }
        return payload


class DocumentOperationError(Exception):
    """Raised when an item fails and the batch is not configured to continue."""

    def __init__(self, index: int, cause: Exception) -> None:
        super().__init__(f"SharePoint operation failed for item {index}: {cause}")
        self.index = index
        self.cause = cause


class DocumentService:
    """Runs batches of document requests against one SharePoint site."""

    def __init__(
        self,
        token_provider: TokenProvider,
        site_url: str,
        clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
    ) -> None:
        self._tokens = token_provider
        self._site_url = site_url
        self._clock = clock

    def run(
        self,
        requests: list[DocumentRequest],
        continue_on_fail: bool = False,
    ) -> list[OperationResult]:
        """Execute each request and collect one result per item.

        The token and the site/drive resolution are shared by the batch.

        Args:
            requests: Items to process, in order.
            continue_on_fail: Record a failing item's error and keep going
                instead of aborting the batch.

        Returns:
            One OperationResult per request, in input order.

        Raises:
            DocumentOperationError: On the first failure when continue_on_fail is False.
        """
        if not requests:
            return []

        try:
            token = self._tokens.get_access_token()
            graph = GraphClient(token.access_token)
            site_id, drive_id = SiteResolver(graph).resolve(self._site_url)
        except SharePointError as exc:
            if not continue_on_fail:
                raise DocumentOperationError(0, exc) from exc
            logger.warning("[run] site resolution failed for batch; error:%s", exc)
            return [
                OperationResult(index=i, operation=str(r.operation), error=str(exc))
                for i, r in enumerate(requests)
            ]

        results: list[OperationResult] = []
        for index, request in enumerate(requests):
            try:
                result = self._execute(graph, site_id, drive_id, index, request)
            except (SharePointError, ValueError) as exc:
                if not continue_on_fail:
                    raise DocumentOperationError(index, exc) from exc
                logger.warning("[run] item failed; index:%d;error:%s", index, exc)
                result = OperationResult(
                    index=index, operation=str(request.operation), error=str(exc)
                )
            results.append(result)
        return results

    def _execute(
        self,
        graph: GraphClient,
        site_id: str,
        drive_id: str,
        index: int,
        request: DocumentRequest,
    ) -> OperationResult:
        timestamp = format_timestamp(self._clock())
        base = {"operation": str(request.operation), "siteId": site_id, "driveId": drive_id}

        if request.operation == DocumentOperation.LIST_DOCUMENTS:
            documents = FolderLister(graph).list_files(
                drive_id, request.library_path, request.options
            )
            data = {
                **base,
                "libraryPath": request.library_path,
                "documents": [d.to_dict() for d in documents],
                "totalCount": len(documents),
                "timestamp": timestamp,
            }
            return OperationResult(index=index, operation=str(request.operation), data=data)

        if not request.document_id:
            raise ValueError(f"documentId is required for {request.operation}")

        fetcher = ContentFetcher(graph)
        if request.operation == DocumentOperation.GET_DOCUMENT:
            details = fetcher.get_document(drive_id, request.document_id)
            data = {
                **base,
                "documentId": request.document_id,
                "document": details.to_dict(),
                "timestamp": timestamp,
            }
            return OperationResult(index=index, operation=str(request.operation), data=data)

        content = fetcher.fetch_content(drive_id, request.document_id)
        details = fetcher.get_document(drive_id, request.document_id)
        data = {
            **base,
            "documentId": request.document_id,
            "fileName": details.file.name,
            "mimeType": details.file.mime_type or DEFAULT_MIME_TYPE,
            "timestamp": timestamp,
        }
        return OperationResult(
            index=index, operation=str(request.operation), data=data, content=content
        )


def document_service_from_config(config: AppConfig) -> DocumentService:
    """Construct a DocumentService from application configuration."""
    return DocumentService(
        token_provider=token_provider_from_config(config),
        site_url=config.site_url,
    )
