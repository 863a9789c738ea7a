"""Domain records kept in the per-user in-memory stores."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class StoredPhoto:
    """A captured photo and its asynchronously generated caption."""

    id: str
    data: bytes
    captured_at: datetime
    content_type: str
    filename: str
    size: int
    selected: bool = False
    caption: str | None = None
    caption_generated: bool = False
    caption_task: asyncio.Task[None] | None = field(
        default=None, repr=False, compare=False
    )


@dataclass
class TranscriptionEntry:
    """A finalized utterance with its classification outcome."""

    id: str
    text: str
    timestamp: datetime
    is_activation: bool
    selected: bool = False


@dataclass
class GeneratedSong:
    """A music generation job and its latest known result."""

    id: str
    job_id: str
    prompt: str
    tags: str
    created_at: datetime
    photo_count: int
    transcription_count: int
    title: str = ""
    status: str = "submitted"
    audio_url: str | None = None
    image_url: str | None = None
    completed_at: datetime | None = None
    metadata: dict[str, object] = field(default_factory=dict)
    favorite: bool = False


@dataclass
class ShoppingSession:
    """A shopping link session opened on behalf of a user."""

    id: str
    session_token: str
    query: str
    created_at: datetime
    merchant_id: int
    status: str = "active"


@dataclass
class CapturedPhoto:
    """Raw photo payload returned by the capture device."""

    request_id: str
    data: bytes
    timestamp: datetime
    content_type: str
    filename: str
    size: int


@dataclass(frozen=True)
class JobStatus:
    """Status snapshot returned when polling a generation job."""

    job_id: str
    status: str
    title: str | None = None
    audio_url: str | None = None
    image_url: str | None = None
    created_at: str | None = None
    metadata: dict[str, object] | None = None
