"""Tests for background photo captioning."""

import asyncio
from datetime import UTC, datetime

from moment_composer.domain.models import StoredPhoto
from moment_composer.services.captions import (
    CAPTION_PROMPT,
    CaptionPipeline,
    _detect_mime_type,
    _to_data_url,
)
from tests.conftest import FakeCaptionClient


def _photo(photo_id: str = "p1") -> StoredPhoto:
    data = b"\x89PNG\r\n\x1a\n rest"
    return StoredPhoto(
        id=photo_id,
        data=data,
        captured_at=datetime.now(tz=UTC),
        content_type="image/png",
        filename=f"{photo_id}.png",
        size=len(data),
    )


def test_caption_is_attached_when_task_finishes() -> None:
    client = FakeCaptionClient(caption="  Waves under a pink sky.  ")
    pipeline = CaptionPipeline(client=client)
    photo = _photo()

    async def scenario() -> None:
        task = pipeline.start(photo)
        assert task is not None
        assert photo.caption_task is task
        assert photo.caption_generated is False
        await task

    asyncio.run(scenario())

    assert photo.caption == "Waves under a pink sky."
    assert photo.caption_generated is True
    assert client.calls[0].startswith("data:image/png;base64,")


def test_caption_failure_keeps_photo_and_sets_flag() -> None:
    pipeline = CaptionPipeline(client=FakeCaptionClient(error=RuntimeError("quota")))
    photo = _photo()

    async def scenario() -> None:
        pipeline.start(photo)
        await pipeline.drain()

    asyncio.run(scenario())

    assert photo.caption is None
    assert photo.caption_generated is True


def test_start_is_idempotent_per_photo() -> None:
    client = FakeCaptionClient()
    pipeline = CaptionPipeline(client=client)
    photo = _photo()

    async def scenario() -> None:
        first = pipeline.start(photo)
        second = pipeline.start(photo)
        assert first is second
        await pipeline.drain()

    asyncio.run(scenario())

    assert len(client.calls) == 1


def test_disabled_pipeline_skips_photos() -> None:
    pipeline = CaptionPipeline(client=None)
    photo = _photo()

    assert pipeline.is_enabled is False
    assert pipeline.start(photo) is None
    assert photo.caption_generated is False
    assert asyncio.run(pipeline.describe(b"bytes")) is None


def test_data_url_helpers() -> None:
    assert _detect_mime_type(b"\xff\xd8\xff\xe0") == "image/jpeg"
    assert _detect_mime_type(b"RIFF\x00\x00\x00\x00WEBPVP8") == "image/webp"
    assert _to_data_url(b"abc", "image/gif") == "data:image/gif;base64,YWJj"
    assert _to_data_url(b"abc", "application/octet-stream").startswith("data:image/jpeg")


def test_caption_prompt_mentions_music() -> None:
    assert "music generation" in CAPTION_PROMPT
