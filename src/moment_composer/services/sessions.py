"""Per-user session state and voice/button event handling."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

import httpx

from moment_composer.domain import messages
from moment_composer.domain.intents import Intent
from moment_composer.domain.models import (
    CapturedPhoto,
    GeneratedSong,
    StoredPhoto,
    TranscriptionEntry,
)
from moment_composer.errors import ExternalServiceError
from moment_composer.services.bounded_store import (
    PHOTO_CAPACITY,
    SONG_CAPACITY,
    TRANSCRIPTION_CAPACITY,
    BoundedStore,
)
from moment_composer.services.captions import CaptionPipeline
from moment_composer.services.capture import CaptureScheduler
from moment_composer.services.generation import (
    STATUS_COMPLETE,
    STATUS_STREAMING,
    STATUS_SUBMITTED,
    GenerationTracker,
)
from moment_composer.services.intents import IntentClassifier, normalize_utterance
from moment_composer.services.voice_actions import ActionReply, VoiceActions

LONG_PRESS = "long"

RECENT_PHOTOS = 5
RECENT_TRANSCRIPTIONS = 5
RECENT_SONGS = 3
RECENT_ACTIVITY_LIMIT = 10
ACTIVITY_TEXT_CHARS = 50

_logger = logging.getLogger(__name__)


class DeviceSession(Protocol):
    """Interface to a connected pair of glasses."""

    async def request_photo(self) -> CapturedPhoto:
        """Ask the device for a photo and wait for it."""

    async def show_text(self, text: str, duration_ms: int = 3000) -> None:
        """Display a short notice."""

    async def speak(self, text: str) -> None:
        """Read text aloud."""


@dataclass
class UserSession:
    """Everything kept in memory for one user."""

    user_id: str
    photos: BoundedStore[StoredPhoto] = field(
        default_factory=lambda: BoundedStore(PHOTO_CAPACITY)
    )
    transcriptions: BoundedStore[TranscriptionEntry] = field(
        default_factory=lambda: BoundedStore(TRANSCRIPTION_CAPACITY)
    )
    songs: BoundedStore[GeneratedSong] = field(
        default_factory=lambda: BoundedStore(SONG_CAPACITY)
    )
    device: DeviceSession | None = None
    streaming: bool = False
    next_deadline: float | None = None
    connected_at: datetime | None = None

    @property
    def is_connected(self) -> bool:
        return self.device is not None


@dataclass
class SessionRegistry:
    """Keyed registry of user sessions.

    Sessions are created implicitly on first use and outlive device
    connections, so galleries and song history survive a reconnect.
    """

    classifier: IntentClassifier
    captions: CaptionPipeline
    actions: VoiceActions | None = None
    clock: Callable[[], float] = time.monotonic
    capture_period_seconds: float = 1.0
    capture_fallback_seconds: float = 30.0
    _sessions: dict[str, UserSession] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        self.scheduler = CaptureScheduler(
            capture=self.take_photo,
            clock=self.clock,
            period_seconds=self.capture_period_seconds,
            fallback_seconds=self.capture_fallback_seconds,
        )
        self.tracker = GenerationTracker(songs_for=self._songs_for)

    def ensure_session(self, user_id: str) -> UserSession:
        """Return the session for a user, creating it if needed."""
        session = self._sessions.get(user_id)
        if session is None:
            session = UserSession(user_id=user_id)
            self._sessions[user_id] = session
        return session

    def get_session(self, user_id: str) -> UserSession | None:
        """Return the session for a user, if one exists."""
        return self._sessions.get(user_id)

    def connect(self, user_id: str, device: DeviceSession) -> UserSession:
        """Attach a device and start its capture loop."""
        session = self.ensure_session(user_id)
        session.device = device
        session.streaming = False
        session.next_deadline = self.clock()
        session.connected_at = datetime.now(tz=UTC)
        self.scheduler.start(session)
        _logger.info("Device connected for user %s", user_id)
        return session

    def disconnect(self, user_id: str) -> None:
        """Detach the device and stop capturing; histories are kept."""
        self.scheduler.stop(user_id)
        session = self._sessions.get(user_id)
        if session is None:
            return
        session.streaming = False
        session.next_deadline = None
        session.device = None
        _logger.info("Device disconnected for user %s", user_id)

    async def handle_utterance(
        self, user_id: str, text: str, is_final: bool = True
    ) -> Intent | None:
        """Record a finalized utterance and run the action it asks for.

        Returns the classified intent, or None when the utterance was
        ignored (not final or empty).
        """
        if not is_final:
            return None
        normalized = normalize_utterance(text)
        if not normalized:
            return None
        intent = self.classifier.classify(normalized)
        self.record_transcription(user_id, normalized, intent is not Intent.NONE)
        if intent is Intent.NONE:
            return intent

        _logger.info("Intent %s for user %s", intent, user_id)
        try:
            await self._dispatch(user_id, intent, normalized)
        except Exception as exc:
            _logger.exception("Action %s failed for user %s", intent, user_id)
            await self._notify(user_id, _failure_notice(exc))
        return intent

    async def handle_button(self, user_id: str, button_id: str, press_type: str) -> None:
        """Long press toggles streaming; any other press takes one photo."""
        _logger.debug("Button %s (%s) for user %s", button_id, press_type, user_id)
        if press_type == LONG_PRESS:
            await self.toggle_streaming(user_id)
            return
        await self._notify(user_id, messages.BUTTON_PHOTO)
        await self.take_photo(user_id)

    async def toggle_streaming(self, user_id: str) -> bool:
        """Flip streaming mode and return the new state."""
        session = self.ensure_session(user_id)
        return await self.set_streaming(user_id, not session.streaming)

    async def set_streaming(self, user_id: str, enabled: bool) -> bool:
        session = self.ensure_session(user_id)
        session.streaming = enabled
        session.next_deadline = self.clock()
        _logger.info("Streaming %s for user %s", "on" if enabled else "off", user_id)
        await self._notify(
            user_id, messages.STREAMING_ON if enabled else messages.STREAMING_OFF
        )
        return enabled

    async def take_photo(self, user_id: str) -> StoredPhoto | None:
        """Capture one photo from the user's device and store it.

        Device failures are reported to the user and return None.
        """
        session = self._sessions.get(user_id)
        if session is None or session.device is None:
            _logger.warning("No device connected for user %s, skipping capture", user_id)
            return None
        try:
            captured = await session.device.request_photo()
        except Exception:
            _logger.exception("Photo capture failed for user %s", user_id)
            await self._notify(user_id, messages.CAPTURE_FAILED)
            return None
        return self.add_photo(user_id, captured)

    def add_photo(self, user_id: str, captured: CapturedPhoto) -> StoredPhoto:
        """Store a captured photo and schedule its caption."""
        session = self.ensure_session(user_id)
        photo = StoredPhoto(
            id=captured.request_id,
            data=captured.data,
            captured_at=_as_utc(captured.timestamp),
            content_type=captured.content_type,
            filename=captured.filename,
            size=captured.size,
        )
        evicted = session.photos.append(photo)
        if evicted is not None:
            _logger.debug("Evicted photo %s for user %s", evicted.id, user_id)
        _logger.info("Stored photo %s for user %s (%s bytes)", photo.id, user_id, photo.size)
        self.captions.start(photo)
        return photo

    def record_transcription(
        self, user_id: str, text: str, is_activation: bool
    ) -> TranscriptionEntry:
        session = self.ensure_session(user_id)
        entry = TranscriptionEntry(
            id=f"transcription-{uuid4().hex[:12]}",
            text=text,
            timestamp=datetime.now(tz=UTC),
            is_activation=is_activation,
        )
        session.transcriptions.append(entry)
        return entry

    def list_photos(self, user_id: str) -> list[StoredPhoto]:
        """Return stored photos, newest first."""
        session = self._sessions.get(user_id)
        return list(reversed(session.photos.all())) if session else []

    def latest_photo(self, user_id: str) -> StoredPhoto | None:
        session = self._sessions.get(user_id)
        if session is None:
            return None
        latest = session.photos.latest(1)
        return latest[0] if latest else None

    def get_photo(self, user_id: str, photo_id: str) -> StoredPhoto | None:
        session = self._sessions.get(user_id)
        if session is None:
            return None
        return session.photos.find(lambda photo: photo.id == photo_id)

    def select_photo(
        self, user_id: str, photo_id: str, selected: bool
    ) -> StoredPhoto | None:
        photo = self.get_photo(user_id, photo_id)
        if photo is not None:
            photo.selected = selected
        return photo

    def selected_photos(self, user_id: str) -> list[StoredPhoto]:
        session = self._sessions.get(user_id)
        if session is None:
            return []
        return session.photos.filter(lambda photo: photo.selected)

    def list_transcriptions(self, user_id: str) -> list[TranscriptionEntry]:
        """Return utterances, newest first."""
        session = self._sessions.get(user_id)
        return list(reversed(session.transcriptions.all())) if session else []

    def select_transcription(
        self, user_id: str, transcription_id: str, selected: bool
    ) -> TranscriptionEntry | None:
        session = self._sessions.get(user_id)
        if session is None:
            return None
        entry = session.transcriptions.find(lambda item: item.id == transcription_id)
        if entry is not None:
            entry.selected = selected
        return entry

    def selected_transcriptions(self, user_id: str) -> list[TranscriptionEntry]:
        session = self._sessions.get(user_id)
        if session is None:
            return []
        return session.transcriptions.filter(lambda entry: entry.selected)

    def list_songs(self, user_id: str) -> list[GeneratedSong]:
        """Return songs, newest first."""
        session = self._sessions.get(user_id)
        return list(reversed(session.songs.all())) if session else []

    def get_song(self, user_id: str, song_id: str) -> GeneratedSong | None:
        session = self._sessions.get(user_id)
        if session is None:
            return None
        return session.songs.find(lambda song: song.id == song_id)

    def add_song(self, user_id: str, song: GeneratedSong) -> None:
        session = self.ensure_session(user_id)
        evicted = session.songs.append(song)
        if evicted is not None:
            self.tracker.unregister(evicted.job_id)
            _logger.debug("Evicted song %s for user %s", evicted.id, user_id)

    def set_favorite(
        self, user_id: str, song_id: str, favorite: bool
    ) -> GeneratedSong | None:
        song = self.get_song(user_id, song_id)
        if song is not None:
            song.favorite = favorite
        return song

    def remove_song(self, user_id: str, song_id: str) -> bool:
        """Delete a song and stop tracking its job."""
        session = self._sessions.get(user_id)
        song = self.get_song(user_id, song_id)
        if session is None or song is None:
            return False
        session.songs.remove(song)
        self.tracker.unregister(song.job_id)
        _logger.info("Deleted song %s for user %s", song_id, user_id)
        return True

    def analytics(self, user_id: str) -> dict[str, int]:
        """Summarize the user's galleries."""
        photos = self.list_photos(user_id)
        transcriptions = self.list_transcriptions(user_id)
        songs = self.list_songs(user_id)
        return {
            "total_photos": len(photos),
            "total_transcriptions": len(transcriptions),
            "total_songs": len(songs),
            "selected_photos": sum(1 for photo in photos if photo.selected),
            "selected_transcriptions": sum(1 for entry in transcriptions if entry.selected),
            "favorite_songs": sum(1 for song in songs if song.favorite),
            "completed_songs": sum(1 for song in songs if song.status == STATUS_COMPLETE),
            "streaming_songs": sum(1 for song in songs if song.status == STATUS_STREAMING),
            "queued_songs": sum(1 for song in songs if song.status == STATUS_SUBMITTED),
            "activation_phrases": sum(1 for entry in transcriptions if entry.is_activation),
            "photos_with_captions": sum(
                1 for photo in photos if photo.caption and photo.caption_generated
            ),
        }

    def recent_activity(self, user_id: str) -> list[dict[str, object]]:
        """Return the latest photos, utterances and songs, newest first."""
        session = self._sessions.get(user_id)
        if session is None:
            return []
        activities: list[dict[str, object]] = []
        for photo in session.photos.latest(RECENT_PHOTOS):
            description = "Photo captured"
            if photo.caption:
                description += f": {_shorten(photo.caption)}"
            activities.append(
                {
                    "type": "photo",
                    "timestamp": photo.captured_at,
                    "description": description,
                    "data": {"id": photo.id, "caption": photo.caption},
                }
            )
        for entry in session.transcriptions.latest(RECENT_TRANSCRIPTIONS):
            kind = "Voice command" if entry.is_activation else "Voice note"
            activities.append(
                {
                    "type": "transcription",
                    "timestamp": entry.timestamp,
                    "description": f'{kind}: "{_shorten(entry.text)}"',
                    "data": {"id": entry.id, "is_activation": entry.is_activation},
                }
            )
        for song in session.songs.latest(RECENT_SONGS):
            activities.append(
                {
                    "type": "song",
                    "timestamp": song.created_at,
                    "description": f'Song {_song_verb(song.status)}: "{song.title or "Untitled"}"',
                    "data": {"id": song.id, "status": song.status, "job_id": song.job_id},
                }
            )
        activities.sort(key=lambda item: item["timestamp"], reverse=True)
        return activities[:RECENT_ACTIVITY_LIMIT]

    async def close(self) -> None:
        """Stop all capture loops and wait for pending captions."""
        await self.scheduler.close()
        await self.captions.drain()

    async def _dispatch(self, user_id: str, intent: Intent, text: str) -> None:
        if intent is Intent.PHOTO:
            await self._notify(user_id, messages.TAKING_PHOTO)
            await self.take_photo(user_id)
            return
        if self.actions is None:
            await self._notify(user_id, messages.NOT_CONFIGURED)
            return

        reply: ActionReply
        if intent is Intent.SHOPPING:
            await self._notify(user_id, messages.STARTING_SHOPPING)
            reply = await self.actions.shopping_request(user_id, text)
        elif intent is Intent.CALENDAR:
            await self._notify(user_id, messages.PROCESSING_CALENDAR)
            reply = await self.actions.calendar_request(user_id, text)
        else:
            await self._notify(user_id, messages.PROCESSING_EMAIL)
            reply = await self.actions.email_request(user_id, text)
        await self._notify(user_id, reply.text, speak=reply.speak)

    async def _notify(self, user_id: str, text: str, *, speak: bool = False) -> None:
        session = self._sessions.get(user_id)
        if session is None or session.device is None:
            return
        try:
            await session.device.show_text(text)
            if speak:
                await session.device.speak(text)
        except Exception:
            _logger.exception("Failed to deliver notice to user %s", user_id)

    def _songs_for(self, user_id: str) -> BoundedStore[GeneratedSong] | None:
        session = self._sessions.get(user_id)
        return session.songs if session else None


def _failure_notice(exc: Exception) -> str:
    if isinstance(exc, ExternalServiceError) and exc.is_rate_limited:
        return messages.RATE_LIMITED
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return messages.TIMED_OUT
    return messages.ACTION_FAILED


def _as_utc(value: datetime) -> datetime:
    """Treat naive device timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _shorten(text: str) -> str:
    if len(text) <= ACTIVITY_TEXT_CHARS:
        return text
    return f"{text[:ACTIVITY_TEXT_CHARS]}..."


def _song_verb(status: str) -> str:
    if status == STATUS_COMPLETE:
        return "completed"
    if status == STATUS_STREAMING:
        return "streaming"
    return "started"
