"""Google account authorization, calendar and mail endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from moment_composer.api.dependencies import require_user
from moment_composer.domain.calendar import CreateEventData
from moment_composer.domain.mail import SendEmailData

if TYPE_CHECKING:
    from moment_composer.containers import AppContainer

router = APIRouter(tags=["google"])
logger = logging.getLogger(__name__)

MAX_UPCOMING_DAYS = 31


@router.get("/auth/google")
async def start_authorization(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, str]:
    """Return the consent URL for the caller."""
    container: AppContainer = request.app.state.container
    auth_url = container.calendar_service.generate_authorization_url(user_id)
    if auth_url is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google integration not configured",
        )
    return {"auth_url": auth_url}


@router.get("/auth/google/callback")
async def authorization_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """Finish the consent flow and send the browser back to the dashboard."""
    container: AppContainer = request.app.state.container
    redirect_path = container.settings.auth_redirect_path
    if error or not code or not state:
        logger.warning("Google authorization callback rejected: %s", error or "missing code")
        return RedirectResponse(f"{redirect_path}?calendar_auth=error")
    authorized = await container.calendar_service.complete_authorization(code, state)
    outcome = "success" if authorized else "error"
    return RedirectResponse(f"{redirect_path}?calendar_auth={outcome}")


@router.post("/auth/google/disconnect")
async def disconnect(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, bool]:
    """Revoke the caller's Google credentials."""
    container: AppContainer = request.app.state.container
    await container.calendar_service.revoke(user_id)
    return {"disconnected": True}


@router.get("/auth/google/status")
async def authorization_status(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    vault = container.token_vault
    info = vault.token_info(user_id)
    return {
        "configured": vault.is_configured,
        "authorized": vault.is_authorized(user_id),
        "token_info": (
            {
                "has_access_token": info.has_access_token,
                "has_refresh_token": info.has_refresh_token,
                "expires_at": info.expires_at.isoformat() if info.expires_at else None,
                "scope": info.scope,
            }
            if info
            else None
        ),
    }


@router.get("/api/emails")
async def list_emails(
    request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    """Return recent inbox messages and the unread count."""
    container: AppContainer = request.app.state.container
    mail = container.mail_service
    if not mail.is_authorized(user_id):
        return {
            "emails": [],
            "unread_count": 0,
            "auth_required": True,
            "auth_url": container.calendar_service.generate_authorization_url(user_id),
        }
    emails = await mail.get_recent_emails(user_id, 10)
    unread_count = await mail.get_unread_count(user_id)
    return {
        "emails": [
            email.model_dump(include={"id", "subject", "sender", "snippet", "date", "is_read"})
            for email in emails
        ],
        "unread_count": unread_count,
        "auth_required": False,
    }


@router.post("/api/emails")
async def send_email(
    body: SendEmailData, request: Request, user_id: str = Depends(require_user)
) -> dict[str, bool]:
    container: AppContainer = request.app.state.container
    if not container.mail_service.is_authorized(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Google authorization required"
        )
    sent = await container.mail_service.send_email(user_id, body)
    if not sent:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Send failed")
    return {"sent": True}


@router.get("/api/calendar-events")
async def list_calendar_events(
    request: Request, user_id: str = Depends(require_user), days: int = 7
) -> dict[str, object]:
    """Return upcoming events for the next ``days`` days."""
    container: AppContainer = request.app.state.container
    calendar = container.calendar_service
    if not calendar.is_authorized(user_id):
        return {
            "events": [],
            "auth_required": True,
            "auth_url": calendar.generate_authorization_url(user_id),
        }
    window = max(1, min(days, MAX_UPCOMING_DAYS))
    events = await calendar.get_upcoming_events(user_id, window)
    return {
        "events": [event.model_dump() for event in events],
        "auth_required": False,
    }


@router.post("/api/calendar-events", status_code=status.HTTP_201_CREATED)
async def create_calendar_event(
    body: CreateEventData, request: Request, user_id: str = Depends(require_user)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    calendar = container.calendar_service
    if not calendar.is_authorized(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Google authorization required"
        )
    event = await calendar.create_event(user_id, body)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Event could not be created"
        )
    return event.model_dump()
