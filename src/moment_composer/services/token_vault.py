"""Per-user OAuth credential vault with refresh-on-expiry."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

import httpx

from moment_composer.domain.auth import OAuthTokenSet, TokenInfo
from moment_composer.errors import AuthExpiredError, ExternalServiceError

T = TypeVar("T")

_logger = logging.getLogger(__name__)


class OAuthProvider(Protocol):
    """Interface for an OAuth2 authorization server."""

    def authorization_url(self, state: str) -> str:
        """Return the consent URL carrying ``state``."""

    async def exchange_code(self, code: str) -> OAuthTokenSet:
        """Exchange an authorization code for a token set."""

    async def refresh(self, refresh_token: str) -> OAuthTokenSet:
        """Return a fresh token set for a refresh token."""

    async def revoke(self, token: str) -> None:
        """Revoke a token at the provider."""


@dataclass
class TokenVault:
    """Single source of truth for user credentials shared by API facades.

    Facades never touch tokens directly: every outbound call goes through
    ``with_credentials``, which refreshes at most once per expired call and
    serializes refreshes per user so concurrent failures share one refresh.
    """

    provider: OAuthProvider | None
    _tokens: dict[str, OAuthTokenSet] = field(default_factory=dict, init=False)
    _refresh_locks: dict[str, asyncio.Lock] = field(default_factory=dict, init=False)

    @property
    def is_configured(self) -> bool:
        """Return true when OAuth client credentials are available."""
        return self.provider is not None

    def generate_authorization_url(self, user_id: str) -> str | None:
        """Return the consent URL for a user, or None when not configured."""
        if self.provider is None:
            _logger.warning("OAuth not configured; cannot build authorization URL")
            return None
        return self.provider.authorization_url(state=user_id)

    async def complete_authorization(self, code: str, user_id: str) -> bool:
        """Exchange an authorization code and store the resulting tokens."""
        if self.provider is None:
            _logger.warning("OAuth not configured; ignoring authorization callback")
            return False
        try:
            tokens = await self.provider.exchange_code(code)
        except (ExternalServiceError, httpx.HTTPError):
            _logger.exception("Authorization code exchange failed for user %s", user_id)
            return False
        if not tokens.access_token:
            _logger.error("Token exchange for user %s returned no access token", user_id)
            return False
        self.store_tokens(user_id, tokens)
        _logger.info("Google account authorized for user %s", user_id)
        return True

    def store_tokens(self, user_id: str, tokens: OAuthTokenSet) -> None:
        """Install a token set, updating the existing one in place."""
        current = self._tokens.get(user_id)
        if current is None:
            self._tokens[user_id] = tokens
        elif current is not tokens:
            current.replace_with(tokens)

    def get_tokens(self, user_id: str) -> OAuthTokenSet | None:
        """Return the stored token set for a user."""
        return self._tokens.get(user_id)

    def is_authorized(self, user_id: str) -> bool:
        """Return true when a usable access token is stored."""
        tokens = self._tokens.get(user_id)
        return tokens is not None and bool(tokens.access_token)

    def token_info(self, user_id: str) -> TokenInfo | None:
        """Return a redacted summary of the stored token set."""
        tokens = self._tokens.get(user_id)
        if tokens is None:
            return None
        return TokenInfo(
            has_access_token=bool(tokens.access_token),
            has_refresh_token=bool(tokens.refresh_token),
            expires_at=tokens.expires_at,
            scope=tokens.scope,
        )

    async def with_credentials(
        self, user_id: str, api_call: Callable[[OAuthTokenSet], Awaitable[T]]
    ) -> T | None:
        """Run an API call with the user's credentials.

        Returns None when OAuth is not configured, the user is not
        authorized, or an expired token could not be refreshed. Errors other
        than token expiry propagate to the caller.
        """
        if self.provider is None:
            _logger.warning("OAuth not configured; skipping call for user %s", user_id)
            return None
        tokens = self._tokens.get(user_id)
        if tokens is None or not tokens.access_token:
            _logger.warning("User %s has no stored credentials", user_id)
            return None

        stale_access_token = tokens.access_token
        try:
            return await api_call(tokens)
        except AuthExpiredError:
            _logger.info("Access token expired for user %s, refreshing", user_id)

        if not await self._refresh(user_id, stale_access_token):
            return None
        refreshed = self._tokens.get(user_id)
        if refreshed is None:
            return None
        try:
            return await api_call(refreshed)
        except AuthExpiredError:
            _logger.warning("Access token still rejected after refresh for %s", user_id)
            return None

    async def revoke(self, user_id: str) -> None:
        """Revoke provider-side access and forget the user's tokens."""
        tokens = self._tokens.get(user_id)
        if tokens is not None and self.provider is not None:
            try:
                await self.provider.revoke(tokens.access_token)
            except (ExternalServiceError, httpx.HTTPError):
                _logger.warning(
                    "Token revocation failed for user %s", user_id, exc_info=True
                )
        self._tokens.pop(user_id, None)
        self._refresh_locks.pop(user_id, None)
        _logger.info("Removed credentials for user %s", user_id)

    async def _refresh(self, user_id: str, stale_access_token: str) -> bool:
        lock = self._refresh_locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            tokens = self._tokens.get(user_id)
            if tokens is None or self.provider is None:
                return False
            if tokens.access_token != stale_access_token:
                # Another caller refreshed while this one waited.
                return True
            if not tokens.refresh_token:
                _logger.warning("No refresh token stored for user %s", user_id)
                return False
            try:
                fresh = await self.provider.refresh(tokens.refresh_token)
            except (AuthExpiredError, ExternalServiceError, httpx.HTTPError):
                _logger.exception("Token refresh failed for user %s", user_id)
                return False
            tokens.replace_with(fresh)
            _logger.info("Refreshed access token for user %s", user_id)
            return True
