"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from moment_composer.adapters.gmail_client import HttpxGmailClient
from moment_composer.adapters.google_calendar_client import HttpxGoogleCalendarClient
from moment_composer.adapters.google_oauth_client import HttpxGoogleOAuthClient
from moment_composer.adapters.knot_client import HttpxKnotClient
from moment_composer.adapters.openai_caption_client import OpenAICaptionClient
from moment_composer.adapters.suno_client import HttpxSunoClient
from moment_composer.config import Settings
from moment_composer.services.calendar import CalendarService
from moment_composer.services.captions import CaptionPipeline
from moment_composer.services.intents import IntentClassifier
from moment_composer.services.mail import MailService
from moment_composer.services.sessions import SessionRegistry
from moment_composer.services.shopping import ShoppingService
from moment_composer.services.songs import SongService
from moment_composer.services.token_vault import TokenVault
from moment_composer.services.voice_actions import VoiceActions


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    token_vault: TokenVault
    mail_service: MailService
    calendar_service: CalendarService
    shopping_service: ShoppingService
    session_registry: SessionRegistry
    song_service: SongService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()

    oauth_client = (
        HttpxGoogleOAuthClient.create(
            client_id=resolved_settings.google_client_id or "",
            client_secret=resolved_settings.google_client_secret or "",
            redirect_uri=resolved_settings.google_redirect_uri or "",
        )
        if resolved_settings.google_configured
        else None
    )
    token_vault = TokenVault(oauth_client)
    gmail_client = HttpxGmailClient.create()
    calendar_client = HttpxGoogleCalendarClient.create()
    mail_service = MailService(client=gmail_client, vault=token_vault)
    calendar_service = CalendarService(
        client=calendar_client,
        vault=token_vault,
        time_zone=resolved_settings.calendar_time_zone,
    )

    knot_client = (
        HttpxKnotClient.create(
            client_id=resolved_settings.knot_client_id or "",
            secret=resolved_settings.knot_secret or "",
            environment=resolved_settings.knot_environment,
        )
        if resolved_settings.knot_configured
        else None
    )
    shopping_service = ShoppingService(
        client=knot_client, merchant_id=resolved_settings.knot_merchant_id
    )

    caption_client = (
        OpenAICaptionClient.create(resolved_settings.openai_api_key)
        if resolved_settings.openai_api_key
        else None
    )
    session_registry = SessionRegistry(
        classifier=IntentClassifier(),
        captions=CaptionPipeline(
            client=caption_client, model=resolved_settings.openai_caption_model
        ),
        actions=VoiceActions(
            mail=mail_service, calendar=calendar_service, shopping=shopping_service
        ),
        capture_period_seconds=resolved_settings.capture_interval_seconds,
        capture_fallback_seconds=resolved_settings.capture_fallback_seconds,
    )

    suno_client = (
        HttpxSunoClient.create(
            resolved_settings.suno_api_key, base_url=resolved_settings.suno_base_url
        )
        if resolved_settings.suno_api_key
        else None
    )
    song_service = SongService(client=suno_client, registry=session_registry)

    async def close_resources() -> None:
        await session_registry.close()
        await gmail_client.close()
        await calendar_client.close()
        if oauth_client is not None:
            await oauth_client.close()
        if knot_client is not None:
            await knot_client.close()
        if caption_client is not None:
            await caption_client.close()
        if suno_client is not None:
            await suno_client.close()

    return AppContainer(
        settings=resolved_settings,
        token_vault=token_vault,
        mail_service=mail_service,
        calendar_service=calendar_service,
        shopping_service=shopping_service,
        session_registry=session_registry,
        song_service=song_service,
        close_resources=close_resources,
    )
