"""Status checks shared by the httpx adapters."""

import httpx

from moment_composer.errors import AuthExpiredError, ExternalServiceError


def raise_for_status(
    response: httpx.Response, service: str, *, auth_expiry: bool = False
) -> None:
    """Raise a typed error for non-success responses.

    With ``auth_expiry`` a 401 is reported as ``AuthExpiredError`` so the
    token vault can refresh and retry.
    """
    if response.is_success:
        return
    if auth_expiry and response.status_code == httpx.codes.UNAUTHORIZED:
        raise AuthExpiredError(f"{service} rejected the access token")
    raise ExternalServiceError(service, response.status_code, response.text)


def json_body(response: httpx.Response, service: str) -> object:
    """Decode a JSON body, reporting malformed payloads as service errors."""
    try:
        return response.json()
    except ValueError as exc:
        raise ExternalServiceError(service, response.status_code, response.text) from exc


def json_object(response: httpx.Response, service: str) -> dict[str, object]:
    """Decode a JSON body that must be an object."""
    payload = json_body(response, service)
    if not isinstance(payload, dict):
        raise ExternalServiceError(service, response.status_code, response.text)
    return payload
