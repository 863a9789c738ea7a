"""Pydantic models for device WebSocket events."""

import base64
import binascii
from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from moment_composer.domain.models import CapturedPhoto


class TranscriptionEvent(BaseModel):
    """Speech recognized by the glasses."""

    text: str
    is_final: bool = True


class ButtonEvent(BaseModel):
    """Hardware button press."""

    button_id: str = "main"
    press_type: str = "short"


class PhotoEvent(BaseModel):
    """Photo taken in response to a request."""

    request_id: str
    data: str
    content_type: str = "image/jpeg"
    filename: str | None = None
    timestamp: datetime | None = None

    @field_validator("data")
    @classmethod
    def _check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("data must be base64 encoded") from exc
        return value

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def to_captured_photo(self) -> CapturedPhoto:
        payload = base64.b64decode(self.data)
        return CapturedPhoto(
            request_id=self.request_id,
            data=payload,
            timestamp=self.timestamp or datetime.now(tz=UTC),
            content_type=self.content_type,
            filename=self.filename or f"{self.request_id}.jpg",
            size=len(payload),
        )


class PhotoErrorEvent(BaseModel):
    """Device-side failure for a photo request."""

    request_id: str
    message: str = Field(default="Photo capture failed")


EVENT_MODELS: dict[str, type[BaseModel]] = {
    "transcription": TranscriptionEvent,
    "button": ButtonEvent,
    "photo": PhotoEvent,
    "photo_error": PhotoErrorEvent,
}
