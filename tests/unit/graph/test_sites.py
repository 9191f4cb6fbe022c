"""Unit tests for graph/sites.py — site and drive resolution."""

from unittest.mock import MagicMock

import pytest

from sharepoint_watch.graph.errors import (
    GraphApiError,
    InvalidSiteUrlError,
    NoDrivesError,
    NotFoundError,
    PermissionDeniedError,
)
from sharepoint_watch.graph.sites import SiteResolver, site_name_from_url

SITE_URL = "https://contoso.sharepoint.com/sites/finance"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_resolver(responses: dict[str, object]) -> tuple[SiteResolver, MagicMock]:
    """Return (resolver, mock_graph) whose get() answers from a path -> response map.

    A response that is an exception instance is raised instead of returned.
    """
    mock_graph = MagicMock()

    def _get(path: str) -> object:
        response = responses[path]
        if isinstance(response, Exception):
            raise response
        return response

    mock_graph.get.side_effect = _get
    return SiteResolver(mock_graph), mock_graph


# ---------------------------------------------------------------------------
# site_name_from_url tests
# ---------------------------------------------------------------------------


class TestSiteNameFromUrl:
    def test_extracts_sites_segment(self) -> None:
        assert site_name_from_url(SITE_URL) == "finance"

    def test_extracts_teams_segment(self) -> None:
        assert site_name_from_url("https://contoso.sharepoint.com/teams/ops/") == "ops"

    def test_decodes_encoded_segment(self) -> None:
        assert site_name_from_url("https://contoso.sharepoint.com/sites/My%20Team") == "My Team"

    def test_raises_for_url_without_site(self) -> None:
        with pytest.raises(InvalidSiteUrlError):
            site_name_from_url("https://contoso.sharepoint.com/")


# ---------------------------------------------------------------------------
# resolve_site tests
# ---------------------------------------------------------------------------


class TestResolveSite:
    def test_direct_lookup_wins(self) -> None:
        resolver, mock_graph = _make_resolver(
            {"/sites/contoso.sharepoint.com:/sites/finance": {"id": "site-direct"}}
        )

        assert resolver.resolve_site(SITE_URL) == "site-direct"
        mock_graph.get.assert_called_once()

    def test_search_exact_match_preferred_over_substring(self) -> None:
        resolver, _ = _make_resolver(
            {
                "/sites/contoso.sharepoint.com:/sites/finance": GraphApiError(404, "nope"),
                "/sites?search=finance": {
                    "value": [
                        {"id": "s-sub", "name": "Finance-Archive"},
                        {"id": "s-exact", "name": "FINANCE"},
                    ]
                },
            }
        )

        assert resolver.resolve_site(SITE_URL) == "s-exact"

    def test_search_falls_back_to_substring_match(self) -> None:
        resolver, _ = _make_resolver(
            {
                "/sites/contoso.sharepoint.com:/sites/finance": GraphApiError(404, "nope"),
                "/sites?search=finance": {"value": [{"id": "s-sub", "name": "Finance Team"}]},
            }
        )

        assert resolver.resolve_site(SITE_URL) == "s-sub"

    def test_no_search_results_raises_not_found(self) -> None:
        resolver, _ = _make_resolver(
            {
                "/sites/contoso.sharepoint.com:/sites/finance": GraphApiError(404, "nope"),
                "/sites?search=finance": {"value": []},
            }
        )

        with pytest.raises(NotFoundError, match="No sites found matching 'finance'"):
            resolver.resolve_site(SITE_URL)

    def test_no_match_lists_available_sites(self) -> None:
        resolver, _ = _make_resolver(
            {
                "/sites/contoso.sharepoint.com:/sites/finance": GraphApiError(404, "nope"),
                "/sites?search=finance": {
                    "value": [{"id": "a", "name": "Marketing"}, {"id": "b", "name": "Legal"}]
                },
            }
        )

        with pytest.raises(NotFoundError, match="Available sites: Marketing, Legal"):
            resolver.resolve_site(SITE_URL)

    def test_encoded_url_is_not_double_encoded(self) -> None:
        resolver, mock_graph = _make_resolver(
            {"/sites/contoso.sharepoint.com:/sites/My%20Team": {"id": "site-team"}}
        )

        site_id = resolver.resolve_site("https://contoso.sharepoint.com/sites/My%20Team")

        assert site_id == "site-team"
        mock_graph.get.assert_called_once_with("/sites/contoso.sharepoint.com:/sites/My%20Team")

    def test_encoded_url_search_matches_decoded_name(self) -> None:
        resolver, _ = _make_resolver(
            {
                "/sites/contoso.sharepoint.com:/sites/My%20Team": GraphApiError(404, "nope"),
                "/sites?search=My%20Team": {"value": [{"id": "s-team", "name": "My Team"}]},
            }
        )

        assert resolver.resolve_site("https://contoso.sharepoint.com/sites/My%20Team") == "s-team"

    def test_search_403_maps_to_permission_denied(self) -> None:
        resolver, _ = _make_resolver(
            {
                "/sites/contoso.sharepoint.com:/sites/finance": GraphApiError(403, "denied"),
                "/sites?search=finance": GraphApiError(403, "denied"),
            }
        )

        with pytest.raises(PermissionDeniedError):
            resolver.resolve_site(SITE_URL)


# ---------------------------------------------------------------------------
# resolve_drive tests
# ---------------------------------------------------------------------------


class TestResolveDrive:
    def test_prefers_documents_drive(self) -> None:
        resolver, _ = _make_resolver(
            {
                "/sites/s1/drives": {
                    "value": [
                        {"id": "d-other", "name": "Site Assets"},
                        {"id": "d-docs", "name": "Documents"},
                    ]
                }
            }
        )

        assert resolver.resolve_drive("s1") == "d-docs"

    def test_matches_shared_documents_web_url(self) -> None:
        resolver, _ = _make_resolver(
            {
                "/sites/s1/drives": {
                    "value": [
                        {"id": "d-other", "name": "Assets", "webUrl": "https://x/Assets"},
                        {
                            "id": "d-shared",
                            "name": "Dokumente",
                            "webUrl": "https://x/sites/s1/Shared%20Documents",
                        },
                    ]
                }
            }
        )

        assert resolver.resolve_drive("s1") == "d-shared"

    def test_falls_back_to_first_drive(self) -> None:
        resolver, _ = _make_resolver(
            {"/sites/s1/drives": {"value": [{"id": "d-1", "name": "A"}, {"id": "d-2"}]}}
        )

        assert resolver.resolve_drive("s1") == "d-1"

    def test_raises_when_site_has_no_drives(self) -> None:
        resolver, _ = _make_resolver({"/sites/s1/drives": {"value": []}})

        with pytest.raises(NoDrivesError):
            resolver.resolve_drive("s1")


class TestResolve:
    def test_returns_site_and_drive(self) -> None:
        resolver, _ = _make_resolver(
            {
                "/sites/contoso.sharepoint.com:/sites/finance": {"id": "s1"},
                "/sites/s1/drives": {"value": [{"id": "d1", "name": "Documents"}]},
            }
        )

        assert resolver.resolve(SITE_URL) == ("s1", "d1")
