"""Error taxonomy for SharePoint access through Microsoft Graph."""

from __future__ import annotations

from urllib.error import URLError


class SharePointError(Exception):
    """Base class for every SharePoint access failure."""


class AuthenticationError(SharePointError):
    """Raised when credentials are rejected or no access token is returned."""


class NotFoundError(SharePointError):
    """Raised when a site, drive, item or path does not resolve."""


class FolderNotFoundError(NotFoundError):
    """Raised when a folder path does not exist in the drive."""


class PermissionDeniedError(SharePointError):
    """Raised when Graph answers 403 for the requested resource."""


class InvalidPathError(SharePointError, ValueError):
    """Raised when a folder path contains characters SharePoint rejects."""


class InvalidSiteUrlError(SharePointError, ValueError):
    """Raised when a site URL cannot be parsed into a site name."""


class NoDrivesError(SharePointError):
    """Raised when a site exposes no document libraries."""


class ListFailedError(SharePointError):
    """Catch-all for transport or HTTP failures while listing."""


class DownloadFailedError(SharePointError):
    """Catch-all for transport or HTTP failures while fetching an item."""


class GraphApiError(Exception):
    """Raised when the Graph API returns a non-2xx response."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"Graph API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


def translate_graph_error(
    exc: GraphApiError | URLError,
    subject: str,
    not_found: type[NotFoundError] = FolderNotFoundError,
    fallback: type[SharePointError] = ListFailedError,
) -> SharePointError:
    """Map a raw client failure onto the SharePoint error taxonomy.

    Args:
        exc: The GraphApiError or transport error raised by the client.
        subject: Human-readable description of the resource, used in messages.
        not_found: Error class to use for HTTP 404.
        fallback: Error class for every other status and for transport errors.

    Returns:
        The taxonomy error; callers raise it ``from exc``.
    """
    if isinstance(exc, GraphApiError):
        if exc.status_code == 404:
            return not_found(f"Not found: {subject}. Please verify it exists in SharePoint.")
        if exc.status_code == 403:
            return PermissionDeniedError(
                f"Access denied to {subject}. Please check your permissions."
            )
        if exc.status_code == 401:
            return AuthenticationError(
                "Authentication failed. Please check your SharePoint credentials."
            )
        return fallback(f"Failed to access {subject}: {exc.message}")
    return fallback(f"Failed to access {subject}: {exc.reason}")
