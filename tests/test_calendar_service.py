"""Tests for the calendar facade."""

import asyncio
from datetime import datetime

from moment_composer.domain.auth import OAuthTokenSet
from moment_composer.domain.calendar import CreateEventData
from moment_composer.services.calendar import (
    DEFAULT_EVENT_DESCRIPTION,
    CalendarService,
    parse_event,
)
from moment_composer.services.token_vault import TokenVault
from tests.conftest import FakeCalendarClient


def _item(event_id: str, summary: str | None = "Standup") -> dict[str, object]:
    return {
        "id": event_id,
        "summary": summary,
        "start": {"dateTime": "2026-10-16T09:00:00+00:00", "timeZone": "UTC"},
        "end": {"dateTime": "2026-10-16T09:15:00+00:00", "timeZone": "UTC"},
        "htmlLink": f"https://calendar.google.com/{event_id}",
        "attendees": [{"email": "ana@example.com", "responseStatus": "accepted"}],
    }


def test_parse_event_normalizes_payload() -> None:
    event = parse_event(_item("e1", summary=None))

    assert event is not None
    assert event.summary == "No Title"
    assert event.start.date_time == "2026-10-16T09:00:00+00:00"
    assert event.attendees[0].response_status == "accepted"


def test_parse_event_accepts_all_day_dates() -> None:
    event = parse_event(
        {"id": "e2", "start": {"date": "2026-10-16"}, "end": {"date": "2026-10-17"}}
    )

    assert event is not None
    assert event.start.date_time == "2026-10-16"


def test_parse_event_rejects_malformed_items() -> None:
    assert parse_event({"id": "e3"}) is None
    assert parse_event("not an event") is None


def test_todays_events_cover_one_day(
    calendar_service: CalendarService,
    calendar_client: FakeCalendarClient,
    vault: TokenVault,
) -> None:
    vault.store_tokens("u1", OAuthTokenSet(access_token="a1"))
    calendar_client.items = [_item("e1"), {"id": "broken"}]

    events = asyncio.run(calendar_service.get_todays_events("u1"))

    assert [event.id for event in events] == ["e1"]
    time_min, time_max = calendar_client.queries[0]
    start = datetime.fromisoformat(time_min)
    end = datetime.fromisoformat(time_max)
    assert (start.hour, start.minute) == (0, 0)
    assert (end - start).days == 1


def test_create_event_with_equal_times_lasts_one_hour(
    calendar_service: CalendarService,
    calendar_client: FakeCalendarClient,
    vault: TokenVault,
) -> None:
    vault.store_tokens("u1", OAuthTokenSet(access_token="a1"))

    event = asyncio.run(
        calendar_service.create_event(
            "u1",
            CreateEventData(
                title="Coffee",
                start_time="2026-10-16T15:00:00+00:00",
                end_time="2026-10-16T15:00:00+00:00",
                attendees=["ana@example.com"],
            ),
        )
    )

    assert event is not None
    body = calendar_client.inserted[0]
    assert body["end"] == {"dateTime": "2026-10-16T16:00:00+00:00", "timeZone": "UTC"}
    assert body["description"] == DEFAULT_EVENT_DESCRIPTION
    assert body["attendees"] == [{"email": "ana@example.com"}]
    assert event.summary == "Coffee"


def test_create_event_with_invalid_times(
    calendar_service: CalendarService,
    calendar_client: FakeCalendarClient,
    vault: TokenVault,
) -> None:
    vault.store_tokens("u1", OAuthTokenSet(access_token="a1"))

    event = asyncio.run(
        calendar_service.create_event(
            "u1", CreateEventData(start_time="tomorrow", end_time="later")
        )
    )

    assert event is None
    assert calendar_client.inserted == []


def test_authorization_entry_points_delegate_to_vault(
    calendar_service: CalendarService, vault: TokenVault
) -> None:
    assert calendar_service.is_configured
    assert calendar_service.generate_authorization_url("u1").endswith("state=u1")
    assert asyncio.run(calendar_service.complete_authorization("c1", "u1")) is True
    assert calendar_service.is_authorized("u1")

    asyncio.run(calendar_service.revoke("u1"))

    assert not vault.is_authorized("u1")
