"""Pydantic request bodies for the HTTP API."""

from pydantic import BaseModel, Field


class SelectionRequest(BaseModel):
    """Mark a photo or utterance for the next song."""

    selected: bool = True


class FavoriteRequest(BaseModel):
    """Flag a song as favorite."""

    favorite: bool = True


class GenerateSongRequest(BaseModel):
    """Optional overrides for song generation."""

    custom_prompt: str | None = Field(default=None, max_length=2000)
    tags: str | None = Field(default=None, max_length=200)


class StreamingRequest(BaseModel):
    """Turn automatic capture on or off."""

    enabled: bool
