"""Google Calendar REST API client."""

from dataclasses import dataclass

import httpx

from moment_composer.adapters.http_errors import json_object, raise_for_status
from moment_composer.services.calendar import CalendarClient

CALENDAR_BASE_URL = "https://www.googleapis.com/calendar/v3/calendars/primary"


@dataclass
class HttpxGoogleCalendarClient(CalendarClient):
    """HTTPX-backed Google Calendar client for the primary calendar."""

    http_client: httpx.AsyncClient
    base_url: str = CALENDAR_BASE_URL

    @classmethod
    def create(cls) -> "HttpxGoogleCalendarClient":
        """Create a calendar client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient())

    async def list_events(
        self, access_token: str, time_min: str, time_max: str, max_results: int
    ) -> dict[str, object]:
        """List single events between two RFC 3339 timestamps."""
        response = await self.http_client.get(
            f"{self.base_url}/events",
            params={
                "timeMin": time_min,
                "timeMax": time_max,
                "singleEvents": "true",
                "orderBy": "startTime",
                "maxResults": max_results,
            },
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=15,
        )
        raise_for_status(response, "google-calendar", auth_expiry=True)
        return json_object(response, "google-calendar")

    async def insert_event(
        self, access_token: str, event: dict[str, object]
    ) -> dict[str, object]:
        """Insert an event and notify attendees."""
        response = await self.http_client.post(
            f"{self.base_url}/events",
            params={"sendUpdates": "all"},
            json=event,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=15,
        )
        raise_for_status(response, "google-calendar", auth_expiry=True)
        return json_object(response, "google-calendar")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
