"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Provider credentials are optional; a missing credential disables the
    matching feature instead of failing startup.
    """

    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_redirect_uri: str | None = None
    openai_api_key: str | None = None
    openai_caption_model: str = "gpt-4o-mini"
    suno_api_key: str | None = None
    suno_base_url: str = "https://studio-api.prod.suno.com/api/v2/external/hackmit"
    knot_client_id: str | None = None
    knot_secret: str | None = None
    knot_environment: str = "development"
    knot_merchant_id: int = 45
    calendar_time_zone: str = "UTC"
    capture_interval_seconds: float = 1.0
    capture_fallback_seconds: float = 30.0
    photo_request_timeout_seconds: float = 15.0
    auth_redirect_path: str = "/webview"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def google_configured(self) -> bool:
        return bool(
            self.google_client_id and self.google_client_secret and self.google_redirect_uri
        )

    @property
    def knot_configured(self) -> bool:
        return bool(self.knot_client_id and self.knot_secret)
