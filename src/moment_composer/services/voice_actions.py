"""Actions triggered by classified voice requests."""

import logging
from dataclasses import dataclass
from datetime import datetime

from moment_composer.domain import messages
from moment_composer.domain.calendar import CalendarEvent
from moment_composer.services.calendar import CalendarService
from moment_composer.services.mail import MailService
from moment_composer.services.shopping import ShoppingService

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionReply:
    """Text to show on the device, optionally spoken aloud."""

    text: str
    speak: bool = False


@dataclass
class VoiceActions:
    """Turns shopping, calendar and email requests into provider calls."""

    mail: MailService
    calendar: CalendarService
    shopping: ShoppingService
    email_context_size: int = 5

    async def shopping_request(self, user_id: str, text: str) -> ActionReply:
        """Open a shopping session for the spoken query."""
        session = await self.shopping.start_session(user_id, text)
        if session is None:
            return ActionReply(messages.SHOPPING_UNAVAILABLE)
        return ActionReply(
            f'Shopping request: "{session.query}". '
            "Open the dashboard to complete your purchase."
        )

    async def calendar_request(self, user_id: str, text: str) -> ActionReply:
        """Summarize today's calendar."""
        _logger.info("Processing calendar request for user %s: %s", user_id, text)
        if not self.calendar.is_configured:
            return ActionReply(messages.NOT_CONFIGURED, speak=True)
        if not self.calendar.is_authorized(user_id):
            return ActionReply(messages.AUTH_REQUIRED, speak=True)
        events = await self.calendar.get_todays_events(user_id)
        return ActionReply(summarize_events(events), speak=True)

    async def email_request(self, user_id: str, text: str) -> ActionReply:
        """Answer inbox questions or point to the dashboard for composing."""
        _logger.info("Processing email request for user %s: %s", user_id, text)
        if not self.mail.is_authorized(user_id):
            if self.calendar.generate_authorization_url(user_id) is None:
                return ActionReply(messages.NOT_CONFIGURED, speak=True)
            return ActionReply(messages.AUTH_REQUIRED, speak=True)

        lowered = text.lower()
        if any(word in lowered for word in ("check", "inbox", "unread")):
            unread = await self.mail.get_unread_count(user_id)
            if unread == 0:
                return ActionReply(
                    "You have no unread emails. Your inbox is all caught up!",
                    speak=True,
                )
            recent = await self.mail.get_recent_emails(user_id, 3)
            summary = ". ".join(f"{email.sender}: {email.subject}" for email in recent[:2])
            plural = "s" if unread > 1 else ""
            reply = f"You have {unread} unread email{plural}."
            if summary:
                reply += f" Recent messages: {summary}"
            return ActionReply(reply, speak=True)
        if "reply" in lowered or "respond" in lowered:
            return ActionReply(
                "To reply to emails, please use the dashboard or say which email "
                "you'd like to reply to.",
                speak=True,
            )
        if any(word in lowered for word in ("send", "compose", "write")):
            return ActionReply(
                "To compose and send emails, please use the dashboard where you can "
                "specify recipients and content.",
                speak=True,
            )

        unread = await self.mail.get_unread_count(user_id)
        recent = await self.mail.get_recent_emails(user_id, self.email_context_size)
        if recent:
            latest = recent[0]
            return ActionReply(
                f"Latest email from {latest.sender}: {latest.subject}. "
                f"You have {unread} unread emails total.",
                speak=True,
            )
        return ActionReply(
            f"You have {unread} unread emails. Use the dashboard to manage your email.",
            speak=True,
        )


def summarize_events(events: list[CalendarEvent]) -> str:
    """Build a spoken summary of a day's events."""
    if not events:
        return "You have no events today."
    plural = "s" if len(events) > 1 else ""
    first = events[0]
    starts_at = _format_time(first.start.date_time)
    when = f" at {starts_at}" if starts_at else ""
    return f"You have {len(events)} event{plural} today. First: {first.summary}{when}."


def _format_time(value: str) -> str | None:
    if len(value) <= len("YYYY-MM-DD"):
        return None
    try:
        return datetime.fromisoformat(value).strftime("%H:%M")
    except ValueError:
        return value
