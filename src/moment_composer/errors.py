"""Error types shared by adapters and services."""

_BODY_PREVIEW_CHARS = 300


class AuthExpiredError(Exception):
    """Raised when a provider rejects the current access token."""


class ExternalServiceError(Exception):
    """Raised when an external API answers with a non-success status."""

    def __init__(self, service: str, status_code: int, body: str) -> None:
        self.service = service
        self.status_code = status_code
        self.body = body[:_BODY_PREVIEW_CHARS]
        super().__init__(f"{service} returned HTTP {status_code}: {self.body}")

    @property
    def is_rate_limited(self) -> bool:
        """Return true for throttling responses."""
        return self.status_code == 429
