"""Unit tests for graph/client.py — authenticated HTTP calls."""

import json
from io import BytesIO
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError

import pytest

from sharepoint_watch.graph.client import GraphClient
from sharepoint_watch.graph.errors import GraphApiError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_response(body: bytes) -> MagicMock:
    mock_response = MagicMock()
    mock_response.read.return_value = body
    mock_response.__enter__ = lambda s: s
    mock_response.__exit__ = MagicMock(return_value=False)
    return mock_response


def _http_error(code: int, body: bytes) -> HTTPError:
    return HTTPError(
        url="https://graph.microsoft.com/v1.0/drives/d1/items/bad",
        code=code,
        msg="Error",
        hdrs=MagicMock(),  # type: ignore[arg-type]
        fp=BytesIO(body),
    )


# ---------------------------------------------------------------------------
# get() tests
# ---------------------------------------------------------------------------


class TestGraphClientGet:
    def test_get_constructs_correct_url_and_header(self) -> None:
        client = GraphClient("fake-token-abc")
        response_data = {"value": [{"id": "item-1"}]}

        with patch("sharepoint_watch.graph.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response(json.dumps(response_data).encode())
            result = client.get("/drives/d1/root/children")

        assert result == response_data
        call_args = mock_urlopen.call_args[0][0]
        assert call_args.full_url == "https://graph.microsoft.com/v1.0/drives/d1/root/children"
        assert call_args.get_header("Authorization") == "Bearer fake-token-abc"
        assert call_args.get_header("Accept") == "application/json"

    def test_get_uses_absolute_next_link_unchanged(self) -> None:
        client = GraphClient("tok")
        next_link = "https://graph.microsoft.com/v1.0/drives/d1/root/children?$skiptoken=abc"

        with patch("sharepoint_watch.graph.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response(b'{"value": []}')
            client.get(next_link)

        assert mock_urlopen.call_args[0][0].full_url == next_link

    def test_get_raises_graph_api_error_on_non_2xx(self) -> None:
        client = GraphClient("tok")
        error_body = json.dumps({"error": {"message": "Item not found"}}).encode()

        with (
            patch(
                "sharepoint_watch.graph.client.urllib_request.urlopen",
                side_effect=_http_error(404, error_body),
            ),
            pytest.raises(GraphApiError) as exc_info,
        ):
            client.get("/drives/d1/items/bad")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Item not found"

    def test_get_falls_back_to_reason_for_non_json_error_body(self) -> None:
        client = GraphClient("tok")

        with (
            patch(
                "sharepoint_watch.graph.client.urllib_request.urlopen",
                side_effect=_http_error(502, b"<html>Bad Gateway</html>"),
            ),
            pytest.raises(GraphApiError) as exc_info,
        ):
            client.get("/drives/d1/root/children")

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Error"


# ---------------------------------------------------------------------------
# get_content() tests
# ---------------------------------------------------------------------------


class TestGraphClientGetContent:
    def test_returns_raw_bytes(self) -> None:
        client = GraphClient("tok")

        with patch("sharepoint_watch.graph.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response(b"%PDF-1.7")
            content = client.get_content("/drives/d1/items/f1/content")

        assert content == b"%PDF-1.7"
        assert mock_urlopen.call_args[0][0].get_header("Accept") == "application/octet-stream"
