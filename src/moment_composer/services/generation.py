"""Correlation of music generation jobs with their owning users."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from moment_composer.domain.models import GeneratedSong
from moment_composer.services.bounded_store import BoundedStore

STATUS_SUBMITTED = "submitted"
STATUS_STREAMING = "streaming"
STATUS_COMPLETE = "complete"
STATUS_FAILED = "failed"

_STATUS_RANK = {
    STATUS_SUBMITTED: 0,
    STATUS_STREAMING: 1,
    STATUS_COMPLETE: 2,
}

_STATUS_ALIASES = {
    "queued": STATUS_SUBMITTED,
    "pending": STATUS_SUBMITTED,
    "submitted": STATUS_SUBMITTED,
    "streaming": STATUS_STREAMING,
    "complete": STATUS_COMPLETE,
    "completed": STATUS_COMPLETE,
    "error": STATUS_FAILED,
    "failed": STATUS_FAILED,
}

TERMINAL_STATUSES = frozenset({STATUS_COMPLETE, STATUS_FAILED})

_logger = logging.getLogger(__name__)


def normalize_status(raw: str | None) -> str | None:
    """Map a vendor status string to a song status, or None if unknown."""
    if not raw:
        return None
    return _STATUS_ALIASES.get(raw.strip().lower())


def is_valid_transition(current: str, new: str) -> bool:
    """Return true when ``new`` may follow ``current``.

    Statuses only move forward through submitted, streaming and complete;
    failure is reachable from any non-terminal status.
    """
    if current in TERMINAL_STATUSES:
        return False
    if new == STATUS_FAILED:
        return True
    return _STATUS_RANK.get(new, -1) >= _STATUS_RANK.get(current, 0)


@dataclass
class GenerationTracker:
    """Routes poll results for a job id back to the owner's song record."""

    songs_for: Callable[[str], BoundedStore[GeneratedSong] | None]
    _owners: dict[str, str] = field(default_factory=dict, init=False)

    def register(self, job_id: str, user_id: str) -> None:
        """Associate a newly submitted job with its owner."""
        self._owners[job_id] = user_id

    def unregister(self, job_id: str) -> bool:
        """Stop accepting updates for a job."""
        return self._owners.pop(job_id, None) is not None

    def owner_of(self, job_id: str) -> str | None:
        """Return the user tracking a job, if it is still active."""
        return self._owners.get(job_id)

    def is_active(self, job_id: str) -> bool:
        """Return true while updates are accepted for the job."""
        return job_id in self._owners

    def apply_status(  # noqa: PLR0913
        self,
        job_id: str,
        status: str | None,
        title: str | None = None,
        audio_url: str | None = None,
        image_url: str | None = None,
        metadata: dict[str, object] | None = None,
    ) -> GeneratedSong | None:
        """Apply a poll result; return the updated song or None if ignored."""
        user_id = self._owners.get(job_id)
        if user_id is None:
            return None
        store = self.songs_for(user_id)
        song = store.find(lambda item: item.job_id == job_id) if store else None
        if song is None:
            # Evicted by capacity; nothing left to update.
            self._owners.pop(job_id, None)
            return None

        normalized = normalize_status(status)
        if normalized is None:
            _logger.warning("Unknown status %r for job %s", status, job_id)
        elif is_valid_transition(song.status, normalized):
            song.status = normalized
        else:
            _logger.debug(
                "Ignoring status %s after %s for job %s", normalized, song.status, job_id
            )

        if title:
            song.title = title
        if audio_url:
            song.audio_url = audio_url
        if image_url:
            song.image_url = image_url
        if metadata:
            song.metadata = metadata

        if song.status in TERMINAL_STATUSES:
            if song.status == STATUS_COMPLETE:
                song.completed_at = datetime.now(tz=UTC)
            self._owners.pop(job_id, None)
        _logger.debug("Updated song %s for user %s: %s", song.id, user_id, song.status)
        return song
