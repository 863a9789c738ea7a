"""Knot shopping API client."""

from dataclasses import dataclass

import httpx

from moment_composer.adapters.http_errors import json_object, raise_for_status
from moment_composer.errors import ExternalServiceError
from moment_composer.services.shopping import ShoppingClient


@dataclass
class HttpxKnotClient(ShoppingClient):
    """HTTPX-backed client for Knot link sessions."""

    client_id: str
    secret: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, client_id: str, secret: str, environment: str) -> "HttpxKnotClient":
        """Create a Knot client for the given environment."""
        return cls(
            client_id=client_id,
            secret=secret,
            base_url=f"https://{environment}.knotapi.com",
            http_client=httpx.AsyncClient(),
        )

    async def create_session(self, external_user_id: str) -> str:
        """Create a link session and return its token."""
        response = await self.http_client.post(
            f"{self.base_url}/session/create",
            json={"type": "link", "external_user_id": external_user_id},
            auth=(self.client_id, self.secret),
            timeout=15,
        )
        raise_for_status(response, "knot")
        payload = json_object(response, "knot")
        session = payload.get("session")
        if not session:
            raise ExternalServiceError("knot", response.status_code, response.text)
        return str(session)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
