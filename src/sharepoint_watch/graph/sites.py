"""Resolution of a SharePoint site URL into Graph site and drive identifiers."""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.error import URLError
from urllib.parse import quote, unquote, urlparse

from sharepoint_watch.graph.client import GraphClient
from sharepoint_watch.graph.errors import (
    GraphApiError,
    InvalidSiteUrlError,
    NoDrivesError,
    NotFoundError,
    translate_graph_error,
)
from sharepoint_watch.graph.models import FIELD_ID, FIELD_NAME, FIELD_WEB_URL, ODATA_VALUE

logger = logging.getLogger(__name__)

DOCUMENTS_DRIVE_NAME = "Documents"
_SHARED_DOCUMENTS_MARKERS = ("Shared Documents", "Shared%20Documents")
_SITE_NAME_PATTERN = re.compile(r"/(?:sites|teams)/([^/?#]+)", re.IGNORECASE)


def site_name_from_url(site_url: str) -> str:
    """Extract the decoded site name segment following /sites/ or /teams/.

    Raises:
        InvalidSiteUrlError: If the URL has no /sites/ or /teams/ segment.
    """
    match = _SITE_NAME_PATTERN.search(site_url)
    if match is None:
        raise InvalidSiteUrlError(f"Invalid SharePoint site URL format: {site_url}")
    return unquote(match.group(1))


class SiteResolver:
    """Turns a human-given site URL into (site_id, drive_id)."""

    def __init__(self, graph_client: GraphClient) -> None:
        self._graph = graph_client

    def resolve(self, site_url: str) -> tuple[str, str]:
        """Resolve both identifiers for a site URL."""
        site_id = self.resolve_site(site_url)
        drive_id = self.resolve_drive(site_id)
        return site_id, drive_id

    def resolve_site(self, site_url: str) -> str:
        """Resolve a site URL into a Graph site ID.

        Tries a direct hostname:path lookup first, then falls back to a site
        search matching the site name exactly (case-insensitive) and finally
        as a case-insensitive substring.

        Args:
            site_url: e.g. "https://contoso.sharepoint.com/sites/finance".

        Returns:
            The Graph site ID.

        Raises:
            InvalidSiteUrlError: If the direct lookup failed and the URL has no site name.
            NotFoundError: If no site matches; the message lists the sites found.
        """
        site_id = self._lookup_direct(site_url)
        if site_id:
            return site_id

        site_name = site_name_from_url(site_url)
        logger.info("[resolve_site] direct lookup failed, searching; site_name:%s", site_name)
        try:
            response = self._graph.get(f"/sites?search={quote(site_name)}")
        except (GraphApiError, URLError) as exc:
            raise translate_graph_error(exc, f"site search '{site_name}'", NotFoundError) from exc

        sites: list[dict[str, Any]] = response.get(ODATA_VALUE) or []
        if not sites:
            raise NotFoundError(f"No sites found matching '{site_name}'")

        wanted = site_name.lower()
        named = [s for s in sites if s.get(FIELD_NAME)]
        match = next((s for s in named if s[FIELD_NAME].lower() == wanted), None)
        if match is None:
            match = next((s for s in named if wanted in s[FIELD_NAME].lower()), None)
        if match is None:
            available = ", ".join(str(s.get(FIELD_NAME)) for s in sites)
            raise NotFoundError(f"Site '{site_name}' not found. Available sites: {available}")

        logger.info("[resolve_site] matched site by search; name:%s", match[FIELD_NAME])
        return str(match[FIELD_ID])

    def _lookup_direct(self, site_url: str) -> str | None:
        parsed = urlparse(site_url)
        if not parsed.hostname:
            return None
        site_path = unquote(parsed.path).rstrip("/")
        path = f"/sites/{parsed.hostname}"
        if site_path:
            path = f"{path}:{quote(site_path)}"
        try:
            response = self._graph.get(path)
        except (GraphApiError, URLError) as exc:
            logger.info("[_lookup_direct] direct site lookup failed; error:%s", exc)
            return None
        site_id = response.get(FIELD_ID)
        return str(site_id) if site_id else None

    def resolve_drive(self, site_id: str) -> str:
        """Pick the site's Documents library.

        Prefers the drive named "Documents" or whose web URL points at
        "Shared Documents"; otherwise the first drive returned.

        Raises:
            NoDrivesError: If the site has no drives.
        """
        try:
            response = self._graph.get(f"/sites/{site_id}/drives")
        except (GraphApiError, URLError) as exc:
            raise translate_graph_error(exc, f"drives of site {site_id}", NotFoundError) from exc

        drives: list[dict[str, Any]] = response.get(ODATA_VALUE) or []
        if not drives:
            raise NoDrivesError("No drives found for the site")

        for drive in drives:
            web_url = drive.get(FIELD_WEB_URL) or ""
            if drive.get(FIELD_NAME) == DOCUMENTS_DRIVE_NAME or any(
                marker in web_url for marker in _SHARED_DOCUMENTS_MARKERS
            ):
                return str(drive[FIELD_ID])

        logger.info("[resolve_drive] no Documents drive found, using first drive")
        return str(drives[0][FIELD_ID])
