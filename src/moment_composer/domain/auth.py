"""OAuth credential records."""

from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass
class OAuthTokenSet:
    """OAuth2 credentials for a single user.

    The same instance is shared by every facade that acts on behalf of the
    user, so refreshes are applied in place.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    scope: str | None = None

    def replace_with(self, other: "OAuthTokenSet") -> None:
        """Overwrite this token set with freshly issued credentials."""
        self.access_token = other.access_token
        if other.refresh_token:
            self.refresh_token = other.refresh_token
        self.expires_at = other.expires_at
        if other.scope:
            self.scope = other.scope

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return true when the expiry timestamp is known and in the past."""
        if self.expires_at is None:
            return False
        return (now or datetime.now(tz=UTC)) >= self.expires_at


@dataclass(frozen=True)
class TokenInfo:
    """Redacted view of a stored token set."""

    has_access_token: bool
    has_refresh_token: bool
    expires_at: datetime | None
    scope: str | None
