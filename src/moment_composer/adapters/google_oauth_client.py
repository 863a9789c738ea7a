"""Google OAuth2 endpoints implemented with httpx."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import httpx

from moment_composer.adapters.http_errors import json_object, raise_for_status
from moment_composer.domain.auth import OAuthTokenSet
from moment_composer.services.token_vault import OAuthProvider

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"

DEFAULT_SCOPES = (
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.send",
)


@dataclass
class HttpxGoogleOAuthClient(OAuthProvider):
    """OAuth provider for Google APIs."""

    client_id: str
    client_secret: str
    redirect_uri: str
    http_client: httpx.AsyncClient
    scopes: tuple[str, ...] = DEFAULT_SCOPES

    @classmethod
    def create(
        cls, client_id: str, client_secret: str, redirect_uri: str
    ) -> "HttpxGoogleOAuthClient":
        """Create an OAuth client with a managed httpx session."""
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            http_client=httpx.AsyncClient(),
        )

    def authorization_url(self, state: str) -> str:
        """Build the consent URL requesting offline access."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return str(httpx.URL(GOOGLE_AUTH_URL, params=params))

    async def exchange_code(self, code: str) -> OAuthTokenSet:
        """Exchange an authorization code for tokens."""
        response = await self.http_client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
            timeout=15,
        )
        raise_for_status(response, "google-oauth")
        return _token_set_from_payload(json_object(response, "google-oauth"))

    async def refresh(self, refresh_token: str) -> OAuthTokenSet:
        """Obtain a new access token from a refresh token."""
        response = await self.http_client.post(
            GOOGLE_TOKEN_URL,
            data={
                "refresh_token": refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "refresh_token",
            },
            timeout=15,
        )
        raise_for_status(response, "google-oauth")
        return _token_set_from_payload(json_object(response, "google-oauth"))

    async def revoke(self, token: str) -> None:
        """Revoke a token on Google's side."""
        response = await self.http_client.post(
            GOOGLE_REVOKE_URL, data={"token": token}, timeout=10
        )
        raise_for_status(response, "google-oauth")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _token_set_from_payload(payload: dict[str, object]) -> OAuthTokenSet:
    """Convert a token endpoint response into a token set."""
    expires_in = payload.get("expires_in")
    expires_at = None
    if isinstance(expires_in, int | float):
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=float(expires_in))
    refresh_token = payload.get("refresh_token")
    scope = payload.get("scope")
    return OAuthTokenSet(
        access_token=str(payload.get("access_token", "")),
        refresh_token=str(refresh_token) if refresh_token else None,
        expires_at=expires_at,
        scope=str(scope) if scope else None,
    )
