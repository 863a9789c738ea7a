"""Mail facade backed by the shared token vault."""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from moment_composer.domain.auth import OAuthTokenSet
from moment_composer.domain.mail import MailMessage, SendEmailData
from moment_composer.errors import ExternalServiceError
from moment_composer.services.token_vault import TokenVault

_BODY_LIMIT = 1000

_logger = logging.getLogger(__name__)


class MailClient(Protocol):
    """Interface for mailbox API calls."""

    async def list_messages(
        self, access_token: str, query: str, max_results: int
    ) -> dict[str, object]:
        """List message references matching a query."""

    async def get_message(self, access_token: str, message_id: str) -> dict[str, object]:
        """Fetch a full message payload."""

    async def send_message(self, access_token: str, raw: str) -> dict[str, object]:
        """Send an encoded message."""


@dataclass
class MailService:
    """Reads and sends mail on behalf of authorized users."""

    client: MailClient
    vault: TokenVault

    def is_authorized(self, user_id: str) -> bool:
        """Return true when the user has mailbox credentials."""
        return self.vault.is_authorized(user_id)

    def store_tokens(self, user_id: str, tokens: OAuthTokenSet) -> None:
        """Install credentials obtained elsewhere."""
        self.vault.store_tokens(user_id, tokens)

    async def get_recent_emails(
        self, user_id: str, max_results: int = 10
    ) -> list[MailMessage]:
        """Return the newest inbox messages."""

        async def fetch(tokens: OAuthTokenSet) -> list[MailMessage]:
            listing = await self.client.list_messages(
                tokens.access_token, query="in:inbox", max_results=max_results
            )
            refs = listing.get("messages") or []
            messages: list[MailMessage] = []
            for ref in list(refs)[:max_results]:
                message_id = str(ref.get("id", ""))
                try:
                    payload = await self.client.get_message(
                        tokens.access_token, message_id
                    )
                except ExternalServiceError as exc:
                    _logger.warning("Skipping message %s: %s", message_id, exc)
                    continue
                parsed = parse_message(payload)
                if parsed is not None:
                    messages.append(parsed)
            return messages

        try:
            result = await self.vault.with_credentials(user_id, fetch)
        except (ExternalServiceError, httpx.HTTPError):
            _logger.exception("Failed to fetch emails for user %s", user_id)
            return []
        return result or []

    async def get_unread_count(self, user_id: str) -> int:
        """Return the estimated number of unread inbox messages."""

        async def count(tokens: OAuthTokenSet) -> int:
            listing = await self.client.list_messages(
                tokens.access_token, query="in:inbox is:unread", max_results=1
            )
            estimate = listing.get("resultSizeEstimate", 0)
            return int(estimate) if isinstance(estimate, int | float) else 0

        try:
            result = await self.vault.with_credentials(user_id, count)
        except (ExternalServiceError, httpx.HTTPError):
            _logger.exception("Failed to count unread emails for user %s", user_id)
            return 0
        return result or 0

    async def send_email(self, user_id: str, data: SendEmailData) -> bool:
        """Send an email; return false on any failure."""
        raw = build_raw_message(data)

        async def send(tokens: OAuthTokenSet) -> bool:
            response = await self.client.send_message(tokens.access_token, raw)
            _logger.info("Email sent for user %s, id=%s", user_id, response.get("id"))
            return True

        try:
            result = await self.vault.with_credentials(user_id, send)
        except (ExternalServiceError, httpx.HTTPError):
            _logger.exception("Failed to send email for user %s", user_id)
            return False
        return bool(result)


def parse_message(payload: dict[str, object]) -> MailMessage | None:
    """Convert a Gmail message payload to a ``MailMessage``."""
    body_payload = payload.get("payload")
    if not isinstance(body_payload, dict):
        return None
    headers = {
        str(header.get("name", "")).lower(): str(header.get("value", ""))
        for header in body_payload.get("headers") or []
        if isinstance(header, dict)
    }
    parts = [part for part in body_payload.get("parts") or [] if isinstance(part, dict)]
    body = _decode_body(body_payload.get("body"))
    if not body:
        for part in parts:
            if part.get("mimeType") == "text/plain":
                body = _decode_body(part.get("body"))
                if body:
                    break
    labels = [str(label) for label in payload.get("labelIds") or []]
    return MailMessage(
        id=str(payload.get("id", "")),
        thread_id=payload.get("threadId"),
        snippet=str(payload.get("snippet") or ""),
        subject=headers.get("subject", ""),
        sender=headers.get("from", ""),
        to=headers.get("to", ""),
        date=headers.get("date", ""),
        body=body[:_BODY_LIMIT],
        is_read="UNREAD" not in labels,
        has_attachments=any(part.get("filename") for part in parts),
        labels=labels,
    )


def build_raw_message(data: SendEmailData) -> str:
    """Encode an RFC 2822 message as unpadded base64url."""
    lines = [f"To: {', '.join(data.to)}", f"Subject: {data.subject}"]
    if data.cc:
        lines.append(f"Cc: {', '.join(data.cc)}")
    if data.bcc:
        lines.append(f"Bcc: {', '.join(data.bcc)}")
    content_type = "text/html" if data.is_html else "text/plain"
    lines.append(f"Content-Type: {content_type}; charset=utf-8")
    lines.append("")
    lines.append(data.body)
    encoded = base64.urlsafe_b64encode("\r\n".join(lines).encode("utf-8"))
    return encoded.decode("ascii").rstrip("=")


def _decode_body(body: object) -> str:
    if not isinstance(body, dict):
        return ""
    data = body.get("data")
    if not isinstance(data, str) or not data:
        return ""
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return ""
