"""Gmail REST API client."""

from dataclasses import dataclass

import httpx

from moment_composer.adapters.http_errors import json_object, raise_for_status
from moment_composer.services.mail import MailClient

GMAIL_BASE_URL = "https://gmail.googleapis.com/gmail/v1/users/me"


@dataclass
class HttpxGmailClient(MailClient):
    """HTTPX-backed Gmail client."""

    http_client: httpx.AsyncClient
    base_url: str = GMAIL_BASE_URL

    @classmethod
    def create(cls) -> "HttpxGmailClient":
        """Create a Gmail client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient())

    async def list_messages(
        self, access_token: str, query: str, max_results: int
    ) -> dict[str, object]:
        """List message ids matching a search query."""
        response = await self.http_client.get(
            f"{self.base_url}/messages",
            params={"q": query, "maxResults": max_results},
            headers=_auth_headers(access_token),
            timeout=15,
        )
        raise_for_status(response, "gmail", auth_expiry=True)
        return json_object(response, "gmail")

    async def get_message(self, access_token: str, message_id: str) -> dict[str, object]:
        """Fetch a full message by id."""
        response = await self.http_client.get(
            f"{self.base_url}/messages/{message_id}",
            params={"format": "full"},
            headers=_auth_headers(access_token),
            timeout=15,
        )
        raise_for_status(response, "gmail", auth_expiry=True)
        return json_object(response, "gmail")

    async def send_message(self, access_token: str, raw: str) -> dict[str, object]:
        """Send a base64url-encoded RFC 2822 message."""
        response = await self.http_client.post(
            f"{self.base_url}/messages/send",
            json={"raw": raw},
            headers=_auth_headers(access_token),
            timeout=15,
        )
        raise_for_status(response, "gmail", auth_expiry=True)
        return json_object(response, "gmail")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _auth_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}
