"""Tests for song prompt building and generation."""

import asyncio
from datetime import UTC, datetime

import pytest

from moment_composer.domain.models import JobStatus, StoredPhoto, TranscriptionEntry
from moment_composer.errors import ExternalServiceError
from moment_composer.services.captions import CaptionPipeline
from moment_composer.services.intents import IntentClassifier
from moment_composer.services.sessions import SessionRegistry
from moment_composer.services.songs import (
    DEFAULT_LEAD,
    DEFAULT_TAGS,
    SongService,
    build_song_prompt,
)
from tests.conftest import FakeSongClient, make_photo


def _photo(caption: str | None) -> StoredPhoto:
    return StoredPhoto(
        id="p",
        data=b"x",
        captured_at=datetime.now(tz=UTC),
        content_type="image/jpeg",
        filename="p.jpg",
        size=1,
        caption=caption,
        caption_generated=caption is not None,
    )


def _entry(text: str) -> TranscriptionEntry:
    return TranscriptionEntry(
        id="t", text=text, timestamp=datetime.now(tz=UTC), is_activation=False
    )


def test_prompt_defaults_to_lead() -> None:
    assert build_song_prompt([], []) == DEFAULT_LEAD


def test_prompt_includes_captions_and_words() -> None:
    prompt = build_song_prompt(
        [_photo("Sunset over water"), _photo("A red kite")],
        [_entry("what a day"), _entry("let's go home")],
        custom_prompt="  Lo-fi beat  ",
    )

    assert prompt == (
        "Lo-fi beat Visual inspiration from 2 photos: Sunset over water. A red kite. "
        'Incorporating themes from spoken words: "what a day let\'s go home".'
    )


def test_prompt_without_captions_counts_photos() -> None:
    prompt = build_song_prompt([_photo(None)], [])

    assert prompt.endswith("Based on 1 memorable photo.")


def test_prompt_respects_length_limits() -> None:
    photos = [_photo("c" * 150) for _ in range(6)]
    entries = [_entry("w" * 300) for _ in range(3)]

    prompt = build_song_prompt(photos, entries, custom_prompt="p" * 3000)

    assert len(prompt) == 2400
    short = build_song_prompt(photos, entries)
    captions = short.split("photos: ", 1)[1].split(". Incorporating")[0]
    assert len(captions) <= 400
    assert "c" * 101 not in short
    spoken = short.split('"')[1]
    assert len(spoken) == 500


def _registry() -> SessionRegistry:
    return SessionRegistry(classifier=IntentClassifier(), captions=CaptionPipeline(None))


def test_generate_uses_selection_and_registers_job() -> None:
    registry = _registry()
    client = FakeSongClient()
    service = SongService(client=client, registry=registry)
    photo = registry.add_photo("u1", make_photo("req-1"))
    registry.select_photo("u1", photo.id, True)
    entry = registry.record_transcription("u1", "ocean breeze", False)
    registry.select_transcription("u1", entry.id, True)
    registry.record_transcription("u1", "not selected", False)

    song = asyncio.run(service.generate("u1"))

    assert song is not None
    assert song.job_id == "clip-1"
    assert song.tags == DEFAULT_TAGS
    assert song.photo_count == 1
    assert song.transcription_count == 1
    assert "ocean breeze" in song.prompt
    assert "not selected" not in song.prompt
    assert registry.list_songs("u1") == [song]
    assert registry.tracker.owner_of("clip-1") == "u1"


def test_refresh_status_updates_song() -> None:
    registry = _registry()
    client = FakeSongClient()
    service = SongService(client=client, registry=registry)
    song = asyncio.run(service.generate("u1", tags="jazz"))
    assert song is not None
    client.statuses["clip-1"] = JobStatus(
        job_id="clip-1",
        status="complete",
        title="Blue Hour",
        audio_url="https://cdn/clip-1.mp3",
    )

    status = asyncio.run(service.refresh_status("clip-1"))

    assert status is not None
    assert song.status == "complete"
    assert song.title == "Blue Hour"
    assert song.tags == "jazz"
    assert not registry.tracker.is_active("clip-1")


def test_generate_without_provider_returns_none() -> None:
    service = SongService(client=None, registry=_registry())

    assert service.is_configured is False
    assert asyncio.run(service.generate("u1")) is None


def test_provider_errors_propagate() -> None:
    registry = _registry()
    client = FakeSongClient(error=ExternalServiceError("suno", 429, "slow down"))
    service = SongService(client=client, registry=registry)

    with pytest.raises(ExternalServiceError):
        asyncio.run(service.generate("u1"))
    assert registry.list_songs("u1") == []
