"""Shopping link sessions opened from voice requests."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

import httpx

from moment_composer.domain.models import ShoppingSession
from moment_composer.errors import ExternalServiceError
from moment_composer.services.bounded_store import BoundedStore

SHOPPING_SESSION_CAPACITY = 20

_logger = logging.getLogger(__name__)


class ShoppingClient(Protocol):
    """Interface for the shopping link provider."""

    async def create_session(self, external_user_id: str) -> str:
        """Create a link session and return its token."""


@dataclass
class ShoppingService:
    """Creates and remembers shopping sessions per user."""

    client: ShoppingClient | None
    merchant_id: int = 45
    capacity: int = SHOPPING_SESSION_CAPACITY
    _sessions: dict[str, BoundedStore[ShoppingSession]] = field(
        default_factory=dict, init=False
    )

    @property
    def is_configured(self) -> bool:
        """Return true when provider credentials are available."""
        return self.client is not None

    async def start_session(self, user_id: str, query: str) -> ShoppingSession | None:
        """Open a shopping session for a spoken request."""
        if self.client is None:
            _logger.warning("Shopping not configured, skipping session for %s", user_id)
            return None
        try:
            token = await self.client.create_session(user_id)
        except (ExternalServiceError, httpx.HTTPError):
            _logger.exception("Failed to create shopping session for user %s", user_id)
            return None
        session = ShoppingSession(
            id=f"shopping-{uuid4().hex[:12]}",
            session_token=token,
            query=query.strip(),
            created_at=datetime.now(tz=UTC),
            merchant_id=self.merchant_id,
        )
        self._store(user_id).append(session)
        _logger.info("Shopping session %s created for user %s", session.id, user_id)
        return session

    def list_sessions(self, user_id: str) -> list[ShoppingSession]:
        """Return the user's shopping sessions, oldest first."""
        store = self._sessions.get(user_id)
        return store.all() if store else []

    def _store(self, user_id: str) -> BoundedStore[ShoppingSession]:
        store = self._sessions.get(user_id)
        if store is None:
            store = BoundedStore(self.capacity)
            self._sessions[user_id] = store
        return store
