"""Client-credentials token acquisition with MSAL."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import msal

from sharepoint_watch.graph.errors import AuthenticationError

if TYPE_CHECKING:
    from sharepoint_watch.config import AppConfig

logger = logging.getLogger(__name__)

GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]
AUTHORITY_BASE_URL = "https://login.microsoftonline.com"


@dataclass(frozen=True)
class AccessToken:
    """Bearer credential held only for the duration of one operation."""

    access_token: str
    expires_in: int | None = None


class TokenProvider:
    """Acquires Graph access tokens for an Azure AD app registration."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        authority_host: str = AUTHORITY_BASE_URL,
    ) -> None:
        """Initialise the MSAL confidential client application.

        Args:
            client_id: Azure AD application (client) ID.
            client_secret: Azure AD application client secret.
            tenant_id: Azure AD tenant ID.
            authority_host: Login host, overridable for sovereign clouds.
        """
        authority = f"{authority_host.rstrip('/')}/{tenant_id}"
        self._app = msal.ConfidentialClientApplication(
            client_id=client_id,
            client_credential=client_secret,
            authority=authority,
        )

    def get_access_token(self) -> AccessToken:
        """Acquire a Bearer token using the client credentials flow.

        Returns:
            AccessToken with the token string and its lifetime in seconds.

        Raises:
            AuthenticationError: If MSAL cannot acquire a token.
        """
        try:
            result: dict[str, Any] = self._app.acquire_token_for_client(scopes=GRAPH_SCOPES) or {}
        except ValueError as exc:
            # MSAL raises ValueError when the tenant's authority cannot be discovered.
            logger.error("[get_access_token] authority discovery failed; error:%s", exc)
            raise AuthenticationError(f"Authentication error: {exc}") from exc

        if "access_token" not in result:
            error = result.get("error", "unknown_error")
            description = result.get("error_description", "No description provided")
            logger.error("[get_access_token] MSAL token acquisition failed; error:%s", error)
            raise AuthenticationError(
                f"Failed to obtain access token from Microsoft: {error}: {description}. "
                "Check your tenant ID, client ID, and client secret."
            )

        expires_in = result.get("expires_in")
        return AccessToken(
            access_token=str(result["access_token"]),
            expires_in=int(expires_in) if expires_in is not None else None,
        )


def token_provider_from_config(config: AppConfig) -> TokenProvider:
    """Construct a TokenProvider from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured TokenProvider instance.
    """
    return TokenProvider(
        client_id=config.client_id,
        client_secret=config.client_secret,
        tenant_id=config.tenant_id,
        authority_host=config.authority_host,
    )
