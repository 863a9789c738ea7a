"""Suno music generation API client."""

from dataclasses import dataclass

import httpx

from moment_composer.adapters.http_errors import json_body, json_object, raise_for_status
from moment_composer.domain.models import JobStatus
from moment_composer.errors import ExternalServiceError
from moment_composer.services.songs import SongGenerationClient

SUNO_BASE_URL = "https://studio-api.prod.suno.com/api/v2/external/hackmit"


@dataclass
class HttpxSunoClient(SongGenerationClient):
    """HTTPX-backed client for Suno generation jobs."""

    api_key: str
    http_client: httpx.AsyncClient
    base_url: str = SUNO_BASE_URL

    @classmethod
    def create(cls, api_key: str, base_url: str = SUNO_BASE_URL) -> "HttpxSunoClient":
        """Create a Suno client with a managed httpx session."""
        return cls(api_key=api_key, http_client=httpx.AsyncClient(), base_url=base_url)

    async def submit(self, prompt: str, tags: str) -> str:
        """Submit a generation job and return its clip id."""
        response = await self.http_client.post(
            f"{self.base_url}/generate",
            json={"topic": prompt, "tags": tags, "make_instrumental": False},
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=30,
        )
        raise_for_status(response, "suno")
        payload = json_object(response, "suno")
        job_id = payload.get("id")
        if not job_id:
            raise ExternalServiceError("suno", response.status_code, response.text)
        return str(job_id)

    async def poll_status(self, job_id: str) -> JobStatus:
        """Fetch the current state of a clip."""
        response = await self.http_client.get(
            f"{self.base_url}/clips",
            params={"ids": job_id},
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=15,
        )
        raise_for_status(response, "suno")
        clips = json_body(response, "suno")
        if not isinstance(clips, list) or not clips or not isinstance(clips[0], dict):
            raise ExternalServiceError("suno", response.status_code, response.text)
        clip = clips[0]
        metadata = clip.get("metadata")
        return JobStatus(
            job_id=str(clip.get("id", job_id)),
            status=str(clip.get("status", "")),
            title=clip.get("title"),
            audio_url=clip.get("audio_url"),
            image_url=clip.get("image_url"),
            created_at=clip.get("created_at"),
            metadata=metadata if isinstance(metadata, dict) else None,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
