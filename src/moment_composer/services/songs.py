"""Song generation from the user's selected photos and utterances."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol
from uuid import uuid4

from moment_composer.domain.models import (
    GeneratedSong,
    JobStatus,
    StoredPhoto,
    TranscriptionEntry,
)

if TYPE_CHECKING:
    from moment_composer.services.sessions import SessionRegistry

DEFAULT_TAGS = "ambient, atmospheric, reflective"
DEFAULT_LEAD = "A song inspired by captured moments and conversations."

CAPTION_CHARS = 100
CAPTIONS_TOTAL_CHARS = 400
TRANSCRIPTION_CHARS = 500
PROMPT_CHARS = 2400

_logger = logging.getLogger(__name__)


class SongGenerationClient(Protocol):
    """Interface for the music generation provider."""

    async def submit(self, prompt: str, tags: str) -> str:
        """Submit a job and return its id."""

    async def poll_status(self, job_id: str) -> JobStatus:
        """Return the current status of a job."""


@dataclass
class SongService:
    """Submits generation jobs and feeds poll results to the tracker."""

    client: SongGenerationClient | None
    registry: "SessionRegistry"
    default_tags: str = DEFAULT_TAGS

    @property
    def is_configured(self) -> bool:
        """Return true when a generation provider is available."""
        return self.client is not None

    async def generate(
        self,
        user_id: str,
        custom_prompt: str | None = None,
        tags: str | None = None,
    ) -> GeneratedSong | None:
        """Submit a song built from the current selection.

        Returns None when no provider is configured. Provider errors
        propagate to the caller.
        """
        if self.client is None:
            _logger.warning("Song generation not configured")
            return None
        photos = self.registry.selected_photos(user_id)
        transcriptions = self.registry.selected_transcriptions(user_id)
        prompt = build_song_prompt(photos, transcriptions, custom_prompt)
        resolved_tags = tags or self.default_tags
        _logger.info(
            "Submitting song for user %s: prompt_length=%s photos=%s transcriptions=%s",
            user_id,
            len(prompt),
            len(photos),
            len(transcriptions),
        )
        job_id = await self.client.submit(prompt, resolved_tags)
        song = GeneratedSong(
            id=f"song-{uuid4().hex[:12]}",
            job_id=job_id,
            prompt=prompt,
            tags=resolved_tags,
            created_at=datetime.now(tz=UTC),
            photo_count=len(photos),
            transcription_count=len(transcriptions),
        )
        self.registry.add_song(user_id, song)
        self.registry.tracker.register(job_id, user_id)
        _logger.info("Song generation started for user %s, job %s", user_id, job_id)
        return song

    async def refresh_status(self, job_id: str) -> JobStatus | None:
        """Poll a job and apply the result to its song, if still tracked."""
        if self.client is None:
            _logger.warning("Song generation not configured")
            return None
        status = await self.client.poll_status(job_id)
        self.registry.tracker.apply_status(
            job_id,
            status.status,
            title=status.title,
            audio_url=status.audio_url,
            image_url=status.image_url,
            metadata=status.metadata,
        )
        return status


def build_song_prompt(
    photos: list[StoredPhoto],
    transcriptions: list[TranscriptionEntry],
    custom_prompt: str | None = None,
) -> str:
    """Compose a generation prompt within the provider's length limit."""
    parts = [custom_prompt.strip() if custom_prompt else DEFAULT_LEAD]

    if photos:
        plural = "s" if len(photos) > 1 else ""
        captions = ". ".join(
            photo.caption[:CAPTION_CHARS] for photo in photos if photo.caption
        )[:CAPTIONS_TOTAL_CHARS]
        if captions:
            parts.append(f"Visual inspiration from {len(photos)} photo{plural}: {captions}.")
        else:
            parts.append(f"Based on {len(photos)} memorable photo{plural}.")

    if transcriptions:
        spoken = " ".join(entry.text for entry in transcriptions)[:TRANSCRIPTION_CHARS]
        parts.append(f'Incorporating themes from spoken words: "{spoken}".')

    return " ".join(parts)[:PROMPT_CHARS]
