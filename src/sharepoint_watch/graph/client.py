"""Microsoft Graph API client bound to a single access token."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib import request as urllib_request
from urllib.error import HTTPError

from sharepoint_watch.graph.errors import GraphApiError

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"


class GraphClient:
    """Authenticated client for Microsoft Graph API.

    One instance lives for one poll or one batch of operations; the token is
    never refreshed by the client.
    """

    def __init__(self, access_token: str) -> None:
        """Bind the client to a bearer token.

        Args:
            access_token: Token from TokenProvider.get_access_token().
        """
        self._access_token = access_token

    @staticmethod
    def _url(path: str) -> str:
        # @odata.nextLink values are absolute; everything else is relative to the base.
        if path.startswith(("https://", "http://")):
            return path
        return f"{GRAPH_BASE_URL}{path}"

    def _open(self, path: str, accept: str) -> bytes:
        req = urllib_request.Request(
            self._url(path),
            headers={
                "Authorization": f"Bearer {self._access_token}",
                "Accept": accept,
            },
            method="GET",
        )
        try:
            with urllib_request.urlopen(req) as resp:
                return resp.read()  # type: ignore[no-any-return]
        except HTTPError as exc:
            raw = exc.read()
            try:
                detail = json.loads(raw).get("error", {}).get("message", exc.reason)
            except Exception:
                detail = exc.reason
            logger.debug("[_open] Graph request failed; path:%s;status:%d", path, exc.code)
            raise GraphApiError(exc.code, str(detail)) from exc

    def get(self, path: str) -> dict[str, Any]:
        """Perform an authenticated GET request to the Graph API.

        Args:
            path: URL path relative to GRAPH_BASE_URL (must start with '/'),
                or an absolute URL such as an @odata.nextLink.

        Returns:
            Parsed JSON response body as a dict.

        Raises:
            GraphApiError: If the API returns a non-2xx status code.
            URLError: If the request cannot be sent.
        """
        body = self._open(path, "application/json")
        return json.loads(body)  # type: ignore[no-any-return]

    def get_content(self, path: str) -> bytes:
        """Perform an authenticated GET request and return the raw body.

        Args:
            path: URL path relative to GRAPH_BASE_URL (must start with '/').

        Returns:
            Response body bytes.

        Raises:
            GraphApiError: If the API returns a non-2xx status code.
            URLError: If the request cannot be sent.
        """
        return self._open(path, "application/octet-stream")
