"""Background photo captioning with a vision model."""

import asyncio
import base64
import logging
from dataclasses import dataclass, field
from typing import Protocol

from moment_composer.domain.models import StoredPhoto

CAPTION_PROMPT = (
    "Describe this image in 1-2 sentences, focusing on the main subject, "
    "setting, mood, and any notable details. "
    "Keep it concise and vivid for music generation."
)

_logger = logging.getLogger(__name__)


class CaptionClient(Protocol):
    """Interface for vision description models."""

    async def describe(
        self,
        *,
        model: str,
        image_data_url: str,
        prompt: str,
        max_output_tokens: int,
    ) -> str | None:
        """Return a short description of the image."""


@dataclass
class CaptionPipeline:
    """Attaches captions to stored photos without blocking capture.

    Each photo gets at most one caption task; its handle is kept on the
    photo. The task always marks the photo as captioned when it finishes,
    even when the model call fails.
    """

    client: CaptionClient | None
    model: str = "gpt-4o-mini"
    max_output_tokens: int = 200
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    @property
    def is_enabled(self) -> bool:
        """Return true when a describing model is configured."""
        return self.client is not None

    def start(self, photo: StoredPhoto) -> asyncio.Task[None] | None:
        """Schedule captioning for a stored photo."""
        if self.client is None:
            _logger.debug("Caption client not configured, skipping photo %s", photo.id)
            return None
        if photo.caption_task is not None:
            return photo.caption_task
        task = asyncio.create_task(self._caption(photo))
        photo.caption_task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def describe(self, image_bytes: bytes, content_type: str | None = None) -> str | None:
        """Return a caption for raw image bytes, or None when disabled."""
        if self.client is None:
            return None
        caption = await self.client.describe(
            model=self.model,
            image_data_url=_to_data_url(image_bytes, content_type),
            prompt=CAPTION_PROMPT,
            max_output_tokens=self.max_output_tokens,
        )
        return caption.strip() if caption else None

    async def drain(self) -> None:
        """Wait for all in-flight caption tasks."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _caption(self, photo: StoredPhoto) -> None:
        caption: str | None = None
        try:
            caption = await self.describe(photo.data, photo.content_type)
        except Exception:
            _logger.exception("Caption generation failed for photo %s", photo.id)
        photo.caption = caption or None
        photo.caption_generated = True
        if caption:
            _logger.debug("Caption for photo %s: %s", photo.id, caption[:50])


def _to_data_url(image_bytes: bytes, content_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = content_type if content_type and content_type.startswith("image/") else None
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type or _detect_mime_type(image_bytes)};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
