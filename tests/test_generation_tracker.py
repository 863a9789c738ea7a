"""Tests for generation job tracking."""

from datetime import UTC, datetime

from moment_composer.domain.models import GeneratedSong
from moment_composer.services.bounded_store import BoundedStore
from moment_composer.services.generation import (
    GenerationTracker,
    is_valid_transition,
    normalize_status,
)


def _song(job_id: str) -> GeneratedSong:
    return GeneratedSong(
        id=f"song-{job_id}",
        job_id=job_id,
        prompt="prompt",
        tags="ambient",
        created_at=datetime.now(tz=UTC),
        photo_count=1,
        transcription_count=0,
    )


def _tracker(store: BoundedStore[GeneratedSong]) -> GenerationTracker:
    stores = {"u1": store}
    return GenerationTracker(songs_for=stores.get)


def test_updates_flow_to_the_owner_song() -> None:
    store: BoundedStore[GeneratedSong] = BoundedStore(25)
    song = _song("clip-1")
    store.append(song)
    tracker = _tracker(store)
    tracker.register("clip-1", "u1")

    updated = tracker.apply_status(
        "clip-1", "streaming", title="Evening", audio_url="https://cdn/a.mp3"
    )

    assert updated is song
    assert song.status == "streaming"
    assert song.title == "Evening"
    assert song.audio_url == "https://cdn/a.mp3"
    assert song.completed_at is None


def test_complete_stamps_and_unregisters() -> None:
    store: BoundedStore[GeneratedSong] = BoundedStore(25)
    song = _song("clip-1")
    store.append(song)
    tracker = _tracker(store)
    tracker.register("clip-1", "u1")

    tracker.apply_status("clip-1", "complete", image_url="https://cdn/a.png")

    assert song.status == "complete"
    assert song.completed_at is not None
    assert song.image_url == "https://cdn/a.png"
    assert not tracker.is_active("clip-1")
    assert tracker.apply_status("clip-1", "streaming", title="Late") is None
    assert song.status == "complete"
    assert song.title == ""


def test_regressions_are_ignored_but_fields_update() -> None:
    store: BoundedStore[GeneratedSong] = BoundedStore(25)
    song = _song("clip-1")
    store.append(song)
    tracker = _tracker(store)
    tracker.register("clip-1", "u1")
    tracker.apply_status("clip-1", "streaming")

    tracker.apply_status("clip-1", "queued", title="Still going")

    assert song.status == "streaming"
    assert song.title == "Still going"


def test_failure_is_terminal() -> None:
    store: BoundedStore[GeneratedSong] = BoundedStore(25)
    song = _song("clip-1")
    store.append(song)
    tracker = _tracker(store)
    tracker.register("clip-1", "u1")

    tracker.apply_status("clip-1", "error")

    assert song.status == "failed"
    assert song.completed_at is None
    assert tracker.owner_of("clip-1") is None


def test_unknown_and_evicted_jobs_are_ignored() -> None:
    store: BoundedStore[GeneratedSong] = BoundedStore(1)
    tracker = _tracker(store)

    assert tracker.apply_status("missing", "complete") is None

    store.append(_song("clip-1"))
    tracker.register("clip-1", "u1")
    store.append(_song("clip-2"))

    assert tracker.apply_status("clip-1", "streaming") is None
    assert not tracker.is_active("clip-1")


def test_unknown_status_leaves_status_unchanged() -> None:
    store: BoundedStore[GeneratedSong] = BoundedStore(25)
    song = _song("clip-1")
    store.append(song)
    tracker = _tracker(store)
    tracker.register("clip-1", "u1")

    tracker.apply_status("clip-1", "mystery")

    assert song.status == "submitted"
    assert tracker.is_active("clip-1")


def test_status_normalization_and_transitions() -> None:
    assert normalize_status("QUEUED") == "submitted"
    assert normalize_status("completed") == "complete"
    assert normalize_status(None) is None
    assert is_valid_transition("submitted", "complete")
    assert is_valid_transition("streaming", "failed")
    assert not is_valid_transition("streaming", "submitted")
    assert not is_valid_transition("complete", "failed")
