"""Folder path normalization for drive-relative SharePoint paths."""

from __future__ import annotations

import re
import string
from urllib.parse import quote, unquote

from sharepoint_watch.graph.errors import InvalidPathError

# Marker returned by normalize_folder_path() for the drive root.
ROOT_PATH = "/"

_ROOT_ALIASES = frozenset({"/", "", "/root", "/shared documents", "shared documents"})
_INVALID_CHARS = re.compile(r'[<>:"|?*]')
_STRIP_CHARS = string.whitespace + "/"


def _decode(path: str) -> str:
    """URL-decode until stable so double-encoded input normalizes in one pass."""
    decoded = unquote(path)
    while decoded != path:
        path = decoded
        decoded = unquote(path)
    return decoded


def is_root_path(path: str) -> bool:
    """Return True if the path denotes the root of the Documents library.

    "/", "", "/root" and "Shared Documents" (with or without a leading slash,
    any case, URL-encoded or not) all address the drive root.
    """
    return _decode(path).strip().lower() in _ROOT_ALIASES


def normalize_folder_path(path: str) -> str:
    """Normalize a user-supplied folder path.

    Args:
        path: Path as typed by the user, e.g. "/Reports/2024/" or "Shared%20Documents".

    Returns:
        ROOT_PATH for any root alias, otherwise the decoded path without
        surrounding slashes or whitespace (e.g. "Reports/2024").

    Raises:
        InvalidPathError: If the path contains any of < > : " | ? *.
    """
    if is_root_path(path):
        return ROOT_PATH

    clean = _decode(path).strip(_STRIP_CHARS)
    if is_root_path(clean):
        return ROOT_PATH
    if _INVALID_CHARS.search(clean):
        raise InvalidPathError(f"Invalid characters in folder path: {path}")
    return clean


def join_folder_path(parent: str, name: str) -> str:
    """Join a normalized parent path and a child folder name."""
    if parent == ROOT_PATH:
        return name
    return f"{parent}/{name}"


def children_endpoint(drive_id: str, normalized_path: str) -> str:
    """Graph endpoint listing the children of a normalized folder path."""
    if normalized_path == ROOT_PATH:
        return f"/drives/{drive_id}/root/children"
    return f"/drives/{drive_id}/root:/{quote(normalized_path)}:/children"
