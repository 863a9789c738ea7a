"""Shared test fixtures."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from moment_composer.config import Settings
from moment_composer.containers import AppContainer
from moment_composer.domain.auth import OAuthTokenSet
from moment_composer.domain.models import CapturedPhoto, JobStatus
from moment_composer.errors import AuthExpiredError, ExternalServiceError
from moment_composer.services.calendar import CalendarClient, CalendarService
from moment_composer.services.captions import CaptionClient, CaptionPipeline
from moment_composer.services.intents import IntentClassifier
from moment_composer.services.mail import MailClient, MailService
from moment_composer.services.sessions import DeviceSession, SessionRegistry
from moment_composer.services.shopping import ShoppingClient, ShoppingService
from moment_composer.services.songs import SongGenerationClient, SongService
from moment_composer.services.token_vault import OAuthProvider, TokenVault
from moment_composer.services.voice_actions import VoiceActions


@dataclass
class FakeClock:
    """Manually advanced monotonic clock."""

    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeOAuthProvider(OAuthProvider):
    """OAuth provider issuing numbered access tokens."""

    refresh_error: Exception | None = None
    revoke_error: Exception | None = None
    exchange_error: Exception | None = None
    refresh_calls: int = 0
    revoked: list[str] = field(default_factory=list)

    def authorization_url(self, state: str) -> str:
        return f"https://auth.example.com/consent?state={state}"

    async def exchange_code(self, code: str) -> OAuthTokenSet:
        if self.exchange_error is not None:
            raise self.exchange_error
        return OAuthTokenSet(
            access_token=f"access-{code}",
            refresh_token=f"refresh-{code}",
            scope="calendar gmail",
        )

    async def refresh(self, refresh_token: str) -> OAuthTokenSet:
        self.refresh_calls += 1
        await asyncio.sleep(0)
        if self.refresh_error is not None:
            raise self.refresh_error
        return OAuthTokenSet(access_token=f"fresh-{self.refresh_calls}")

    async def revoke(self, token: str) -> None:
        if self.revoke_error is not None:
            raise self.revoke_error
        self.revoked.append(token)


@dataclass
class FakeMailClient(MailClient):
    """In-memory mailbox that rejects tokens listed as expired."""

    messages: dict[str, dict[str, object]] = field(default_factory=dict)
    unread_estimate: int = 0
    expired_tokens: set[str] = field(default_factory=set)
    broken_ids: set[str] = field(default_factory=set)
    sent: list[str] = field(default_factory=list)
    seen_tokens: list[str] = field(default_factory=list)

    def _check(self, access_token: str) -> None:
        self.seen_tokens.append(access_token)
        if access_token in self.expired_tokens:
            raise AuthExpiredError("expired")

    async def list_messages(
        self, access_token: str, query: str, max_results: int
    ) -> dict[str, object]:
        self._check(access_token)
        if "is:unread" in query:
            return {"resultSizeEstimate": self.unread_estimate}
        return {"messages": [{"id": message_id} for message_id in self.messages]}

    async def get_message(self, access_token: str, message_id: str) -> dict[str, object]:
        self._check(access_token)
        if message_id in self.broken_ids:
            raise ExternalServiceError("gmail", 500, "boom")
        return self.messages[message_id]

    async def send_message(self, access_token: str, raw: str) -> dict[str, object]:
        self._check(access_token)
        self.sent.append(raw)
        return {"id": f"sent-{len(self.sent)}"}


@dataclass
class FakeCalendarClient(CalendarClient):
    """In-memory calendar returning fixed items."""

    items: list[dict[str, object]] = field(default_factory=list)
    inserted: list[dict[str, object]] = field(default_factory=list)
    queries: list[tuple[str, str]] = field(default_factory=list)

    async def list_events(
        self, access_token: str, time_min: str, time_max: str, max_results: int
    ) -> dict[str, object]:
        self.queries.append((time_min, time_max))
        return {"items": self.items}

    async def insert_event(
        self, access_token: str, event: dict[str, object]
    ) -> dict[str, object]:
        self.inserted.append(event)
        return {"id": f"event-{len(self.inserted)}", **event}


@dataclass
class FakeCaptionClient(CaptionClient):
    """Caption client returning a fixed caption or raising."""

    caption: str | None = "A quiet beach at sunset."
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    async def describe(
        self,
        *,
        model: str,
        image_data_url: str,
        prompt: str,
        max_output_tokens: int,
    ) -> str | None:
        self.calls.append(image_data_url)
        if self.error is not None:
            raise self.error
        return self.caption


@dataclass
class FakeShoppingClient(ShoppingClient):
    """Shopping provider issuing numbered session tokens."""

    error: Exception | None = None
    users: list[str] = field(default_factory=list)

    async def create_session(self, external_user_id: str) -> str:
        if self.error is not None:
            raise self.error
        self.users.append(external_user_id)
        return f"knot-session-{len(self.users)}"


@dataclass
class FakeSongClient(SongGenerationClient):
    """Music provider with scripted poll results."""

    statuses: dict[str, JobStatus] = field(default_factory=dict)
    submitted: list[tuple[str, str]] = field(default_factory=list)
    error: Exception | None = None

    async def submit(self, prompt: str, tags: str) -> str:
        if self.error is not None:
            raise self.error
        self.submitted.append((prompt, tags))
        return f"clip-{len(self.submitted)}"

    async def poll_status(self, job_id: str) -> JobStatus:
        return self.statuses.get(job_id, JobStatus(job_id=job_id, status="submitted"))


@dataclass
class FakeDevice(DeviceSession):
    """Device that records notices and returns canned photos."""

    photo_data: bytes = b"\xff\xd8\xff fake jpeg"
    error: Exception | None = None
    shown: list[str] = field(default_factory=list)
    spoken: list[str] = field(default_factory=list)
    requests: int = 0
    on_request: Callable[[], None] | None = None

    async def request_photo(self) -> CapturedPhoto:
        self.requests += 1
        if self.on_request is not None:
            self.on_request()
        if self.error is not None:
            raise self.error
        return CapturedPhoto(
            request_id=f"req-{self.requests}",
            data=self.photo_data,
            timestamp=datetime.now(tz=UTC),
            content_type="image/jpeg",
            filename=f"photo_{self.requests}.jpg",
            size=len(self.photo_data),
        )

    async def show_text(self, text: str, duration_ms: int = 3000) -> None:
        self.shown.append(text)

    async def speak(self, text: str) -> None:
        self.spoken.append(text)


def make_photo(request_id: str, data: bytes = b"\xff\xd8\xff img") -> CapturedPhoto:
    return CapturedPhoto(
        request_id=request_id,
        data=data,
        timestamp=datetime.now(tz=UTC),
        content_type="image/jpeg",
        filename=f"{request_id}.jpg",
        size=len(data),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        google_client_id="client-id",
        google_client_secret="client-secret",
        google_redirect_uri="https://app.example.com/auth/google/callback",
        suno_api_key="suno-key",
        knot_client_id="knot-id",
        knot_secret="knot-secret",
        capture_interval_seconds=0.05,
    )


@pytest.fixture
def oauth_provider() -> FakeOAuthProvider:
    return FakeOAuthProvider()


@pytest.fixture
def vault(oauth_provider: FakeOAuthProvider) -> TokenVault:
    return TokenVault(oauth_provider)


@pytest.fixture
def mail_client() -> FakeMailClient:
    return FakeMailClient()


@pytest.fixture
def calendar_client() -> FakeCalendarClient:
    return FakeCalendarClient()


@pytest.fixture
def shopping_client() -> FakeShoppingClient:
    return FakeShoppingClient()


@pytest.fixture
def song_client() -> FakeSongClient:
    return FakeSongClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mail_service(mail_client: FakeMailClient, vault: TokenVault) -> MailService:
    return MailService(client=mail_client, vault=vault)


@pytest.fixture
def calendar_service(
    calendar_client: FakeCalendarClient, vault: TokenVault
) -> CalendarService:
    return CalendarService(client=calendar_client, vault=vault)


@pytest.fixture
def shopping_service(shopping_client: FakeShoppingClient) -> ShoppingService:
    return ShoppingService(client=shopping_client)


@pytest.fixture
def registry(
    mail_service: MailService,
    calendar_service: CalendarService,
    shopping_service: ShoppingService,
    clock: FakeClock,
) -> SessionRegistry:
    return SessionRegistry(
        classifier=IntentClassifier(),
        captions=CaptionPipeline(client=None),
        actions=VoiceActions(
            mail=mail_service, calendar=calendar_service, shopping=shopping_service
        ),
        clock=clock,
    )


@pytest.fixture
def container(
    settings: Settings,
    vault: TokenVault,
    mail_service: MailService,
    calendar_service: CalendarService,
    shopping_service: ShoppingService,
    song_client: FakeSongClient,
) -> AppContainer:
    registry = SessionRegistry(
        classifier=IntentClassifier(),
        captions=CaptionPipeline(client=None),
        actions=VoiceActions(
            mail=mail_service, calendar=calendar_service, shopping=shopping_service
        ),
        capture_period_seconds=settings.capture_interval_seconds,
    )

    async def close_resources() -> None:
        await registry.close()

    return AppContainer(
        settings=settings,
        token_vault=vault,
        mail_service=mail_service,
        calendar_service=calendar_service,
        shopping_service=shopping_service,
        session_registry=registry,
        song_service=SongService(client=song_client, registry=registry),
        close_resources=close_resources,
    )
