"""Folder listings for a drive, flat or recursive, with pagination."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any
from urllib.error import URLError
from urllib.parse import quote, urlencode

from sharepoint_watch.graph.client import GraphClient
from sharepoint_watch.graph.errors import (
    GraphApiError,
    ListFailedError,
    SharePointError,
    translate_graph_error,
)
from sharepoint_watch.graph.models import (
    FIELD_FILE,
    FIELD_FOLDER,
    FIELD_NAME,
    FOLDER_SELECT,
    ODATA_NEXT_LINK,
    ODATA_VALUE,
    FileRecord,
    FolderRef,
    ListOptions,
)
from sharepoint_watch.graph.paths import (
    children_endpoint,
    join_folder_path,
    normalize_folder_path,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32


class FolderLister:
    """Lists files and subfolders of a drive through the children endpoint."""

    def __init__(self, graph_client: GraphClient) -> None:
        self._graph = graph_client

    def _pages(self, path: str, subject: str) -> Iterator[list[dict[str, Any]]]:
        """Yield the value array of each page, following @odata.nextLink."""
        next_path: str | None = path
        while next_path is not None:
            try:
                response = self._graph.get(next_path)
            except (GraphApiError, URLError) as exc:
                raise translate_graph_error(exc, f"folder {subject}") from exc

            items = response.get(ODATA_VALUE) if isinstance(response, dict) else None
            if not isinstance(items, list):
                raise ListFailedError(f"Invalid response from SharePoint API for path: {subject}")
            yield items
            next_path = response.get(ODATA_NEXT_LINK)

    def list_files(
        self,
        drive_id: str,
        path: str,
        options: ListOptions | None = None,
    ) -> list[FileRecord]:
        """List the files (not folders) directly inside a folder.

        Every page is fetched before returning. When options.top is set, the
        result is capped at that many files and paging stops once reached.

        Args:
            drive_id: Graph drive ID.
            path: Folder path as supplied by the user; "/" for the library root.
            options: Field selection, result limit and OData filter.

        Returns:
            FileRecords in listing order.

        Raises:
            InvalidPathError: If the path contains forbidden characters.
            FolderNotFoundError: On HTTP 404.
            PermissionDeniedError: On HTTP 403.
            AuthenticationError: On HTTP 401.
            ListFailedError: On any other HTTP or transport failure.
        """
        options = options or ListOptions()
        normalized = normalize_folder_path(path)
        endpoint = children_endpoint(drive_id, normalized)
        query = urlencode(options.query_params(), safe="$,@.'", quote_via=quote)
        logger.info("[list_files] listing folder; drive_id:%s;path:%s", drive_id, normalized)

        files: list[FileRecord] = []
        for items in self._pages(f"{endpoint}?{query}", path):
            files.extend(FileRecord.from_graph_item(i) for i in items if FIELD_FILE in i)
            if options.top and len(files) >= options.top:
                files = files[: options.top]
                break

        logger.info("[list_files] listed folder; path:%s;file_count:%d", normalized, len(files))
        return files

    def list_folders(self, drive_id: str, path: str) -> list[FolderRef]:
        """List the immediate subfolders of a folder.

        Returns:
            FolderRefs whose path is the clean drive-relative path of each subfolder.
        """
        normalized = normalize_folder_path(path)
        endpoint = children_endpoint(drive_id, normalized)
        query = urlencode({"$select": FOLDER_SELECT}, safe="$,", quote_via=quote)

        folders: list[FolderRef] = []
        for items in self._pages(f"{endpoint}?{query}", path):
            for item in items:
                if FIELD_FOLDER in item and item.get(FIELD_NAME):
                    name = item[FIELD_NAME]
                    folders.append(FolderRef(name=name, path=join_folder_path(normalized, name)))
        return folders

    def list_files_recursive(
        self,
        drive_id: str,
        root_path: str,
        max_depth: int = DEFAULT_MAX_DEPTH,
        options: ListOptions | None = None,
    ) -> list[FileRecord]:
        """List files in a folder and all of its subfolders.

        The root folder's own listing is fatal on failure. Failures inside a
        subfolder are logged and that branch contributes no files.

        Args:
            drive_id: Graph drive ID.
            root_path: Folder to start from.
            max_depth: Subfolder levels to descend; 0 lists the root folder only.
            options: Listing options applied to every folder.

        Returns:
            This folder's files followed by each subfolder's recursive result.
        """
        normalized = normalize_folder_path(root_path)
        files = self.list_files(drive_id, normalized, options)
        files.extend(self._list_subtree(drive_id, normalized, 1, max_depth, options))
        logger.info(
            "[list_files_recursive] traversal complete; root:%s;file_count:%d",
            normalized,
            len(files),
        )
        return files

    def _list_subtree(
        self,
        drive_id: str,
        path: str,
        depth: int,
        max_depth: int,
        options: ListOptions | None,
    ) -> list[FileRecord]:
        if depth > max_depth:
            logger.warning(
                "[_list_subtree] max depth reached, skipping subfolders; path:%s;max_depth:%d",
                path,
                max_depth,
            )
            return []

        try:
            folders = self.list_folders(drive_id, path)
        except SharePointError as exc:
            logger.warning("[_list_subtree] failed to list subfolders; path:%s;error:%s", path, exc)
            return []

        files: list[FileRecord] = []
        for folder in folders:
            try:
                files.extend(self.list_files(drive_id, folder.path, options))
            except SharePointError as exc:
                logger.warning(
                    "[_list_subtree] failed to list subfolder; path:%s;error:%s", folder.path, exc
                )
                continue
            files.extend(self._list_subtree(drive_id, folder.path, depth + 1, max_depth, options))
        return files
