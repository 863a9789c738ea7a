"""Models for mailbox messages."""

from pydantic import BaseModel, Field


class MailMessage(BaseModel):
    """Mailbox message parsed from the provider payload."""

    id: str
    thread_id: str | None = None
    snippet: str = ""
    subject: str = ""
    sender: str = ""
    to: str = ""
    date: str = ""
    body: str = ""
    is_read: bool = True
    has_attachments: bool = False
    labels: list[str] = Field(default_factory=list)


class SendEmailData(BaseModel):
    """Outgoing email content."""

    to: list[str]
    cc: list[str] = Field(default_factory=list)
    bcc: list[str] = Field(default_factory=list)
    subject: str
    body: str
    is_html: bool = False
