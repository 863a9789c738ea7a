"""Gallery, transcription, song and dashboard endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from moment_composer.api.dependencies import require_user
from moment_composer.api.schemas import (
    FavoriteRequest,
    GenerateSongRequest,
    SelectionRequest,
    StreamingRequest,
)
from moment_composer.errors import ExternalServiceError

if TYPE_CHECKING:
    from moment_composer.containers import AppContainer
    from moment_composer.domain.models import (
        GeneratedSong,
        ShoppingSession,
        StoredPhoto,
        TranscriptionEntry,
    )

router = APIRouter(prefix="/api", tags=["gallery"])
logger = logging.getLogger(__name__)


@router.get("/latest-photo")
async def latest_photo(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return metadata for the newest photo."""
    container: AppContainer = request.app.state.container
    photo = container.session_registry.latest_photo(user_id)
    if photo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No photo")
    return _photo_payload(photo)


@router.get("/photos")
async def list_photos(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return the photo gallery, newest first."""
    container: AppContainer = request.app.state.container
    photos = container.session_registry.list_photos(user_id)
    return {"photos": [_photo_payload(photo) for photo in photos]}


@router.get("/photos/{photo_id}")
async def photo_bytes(
    photo_id: str, request: Request, user_id: str = Depends(require_user)
) -> Response:
    """Return the raw image."""
    container: AppContainer = request.app.state.container
    photo = container.session_registry.get_photo(user_id, photo_id)
    if photo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No photo")
    return Response(
        content=photo.data,
        media_type=photo.content_type,
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/photos/{photo_id}/select")
async def select_photo(
    photo_id: str,
    body: SelectionRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    photo = container.session_registry.select_photo(user_id, photo_id, body.selected)
    if photo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No photo")
    return _photo_payload(photo)


@router.get("/transcriptions")
async def list_transcriptions(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return utterance history, newest first."""
    container: AppContainer = request.app.state.container
    entries = container.session_registry.list_transcriptions(user_id)
    return {"transcriptions": [_transcription_payload(entry) for entry in entries]}


@router.post("/transcriptions/{transcription_id}/select")
async def select_transcription(
    transcription_id: str,
    body: SelectionRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    entry = container.session_registry.select_transcription(
        user_id, transcription_id, body.selected
    )
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No transcription"
        )
    return _transcription_payload(entry)


@router.post("/streaming")
async def set_streaming(
    body: StreamingRequest, request: Request, user_id: str = Depends(require_user)
) -> dict[str, bool]:
    """Turn automatic capture on or off from the dashboard."""
    container: AppContainer = request.app.state.container
    enabled = await container.session_registry.set_streaming(user_id, body.enabled)
    return {"streaming": enabled}


@router.post("/songs", status_code=status.HTTP_201_CREATED)
async def generate_song(
    body: GenerateSongRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    """Start a song from the selected photos and utterances."""
    container: AppContainer = request.app.state.container
    if not container.song_service.is_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Song generation not configured",
        )
    try:
        song = await container.song_service.generate(
            user_id, custom_prompt=body.custom_prompt, tags=body.tags
        )
    except ExternalServiceError as exc:
        logger.warning("Song generation failed for user %s: %s", user_id, exc)
        code = (
            status.HTTP_429_TOO_MANY_REQUESTS
            if exc.is_rate_limited
            else status.HTTP_502_BAD_GATEWAY
        )
        raise HTTPException(status_code=code, detail="Song generation failed") from exc
    except httpx.HTTPError as exc:
        logger.warning("Song generation request error for user %s: %s", user_id, exc)
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="Song generation failed"
        ) from exc
    if song is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Song generation not configured",
        )
    return _song_payload(song)


@router.get("/songs")
async def list_songs(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return generated songs, newest first."""
    container: AppContainer = request.app.state.container
    songs = container.session_registry.list_songs(user_id)
    return {"songs": [_song_payload(song) for song in songs]}


@router.get("/songs/{song_id}")
async def song_status(
    song_id: str, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Poll the provider for an unfinished song and return its state."""
    container: AppContainer = request.app.state.container
    registry = container.session_registry
    song = registry.get_song(user_id, song_id)
    if song is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No song")
    if container.song_service.is_configured and registry.tracker.is_active(song.job_id):
        try:
            await container.song_service.refresh_status(song.job_id)
        except (ExternalServiceError, httpx.HTTPError):
            logger.exception("Failed to poll song %s for user %s", song_id, user_id)
    return _song_payload(song)


@router.post("/songs/{song_id}/favorite")
async def favorite_song(
    song_id: str,
    body: FavoriteRequest,
    request: Request,
    user_id: str = Depends(require_user),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    song = container.session_registry.set_favorite(user_id, song_id, body.favorite)
    if song is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No song")
    return _song_payload(song)


@router.delete("/songs/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_song(
    song_id: str, request: Request, user_id: str = Depends(require_user)
) -> Response:
    container: AppContainer = request.app.state.container
    if not container.session_registry.remove_song(user_id, song_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No song")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/analytics")
async def analytics(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return gallery counts and recent activity."""
    container: AppContainer = request.app.state.container
    registry = container.session_registry
    return {
        **registry.analytics(user_id),
        "recent_activity": registry.recent_activity(user_id),
    }


@router.get("/recent-activity")
async def recent_activity(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    return {"activities": container.session_registry.recent_activity(user_id)}


@router.get("/shopping-sessions")
async def shopping_sessions(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return shopping sessions opened by voice, oldest first."""
    container: AppContainer = request.app.state.container
    sessions = container.shopping_service.list_sessions(user_id)
    return {
        "configured": container.shopping_service.is_configured,
        "sessions": [_shopping_payload(session) for session in sessions],
    }


def _photo_payload(photo: StoredPhoto) -> dict[str, object]:
    return {
        "id": photo.id,
        "captured_at": photo.captured_at.isoformat(),
        "content_type": photo.content_type,
        "filename": photo.filename,
        "size": photo.size,
        "selected": photo.selected,
        "caption": photo.caption,
        "caption_generated": photo.caption_generated,
        "url": f"/api/photos/{photo.id}",
    }


def _transcription_payload(entry: TranscriptionEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "text": entry.text,
        "timestamp": entry.timestamp.isoformat(),
        "is_activation": entry.is_activation,
        "selected": entry.selected,
    }


def _song_payload(song: GeneratedSong) -> dict[str, object]:
    return {
        "id": song.id,
        "job_id": song.job_id,
        "title": song.title,
        "status": song.status,
        "audio_url": song.audio_url,
        "image_url": song.image_url,
        "created_at": song.created_at.isoformat(),
        "completed_at": song.completed_at.isoformat() if song.completed_at else None,
        "prompt": song.prompt,
        "tags": song.tags,
        "photo_count": song.photo_count,
        "transcription_count": song.transcription_count,
        "metadata": song.metadata,
        "favorite": song.favorite,
    }


def _shopping_payload(session: ShoppingSession) -> dict[str, object]:
    return {
        "id": session.id,
        "session_token": session.session_token,
        "query": session.query,
        "created_at": session.created_at.isoformat(),
        "merchant_id": session.merchant_id,
        "status": session.status,
    }
