"""WebSocket endpoint for connected glasses."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from moment_composer.adapters.websocket_device import WebSocketDevice
from moment_composer.api.device_models import (
    EVENT_MODELS,
    ButtonEvent,
    PhotoErrorEvent,
    PhotoEvent,
    TranscriptionEvent,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from moment_composer.containers import AppContainer
    from moment_composer.services.sessions import SessionRegistry

router = APIRouter(tags=["devices"])
logger = logging.getLogger(__name__)


@router.websocket("/ws/devices/{user_id}")
async def device_socket(websocket: WebSocket, user_id: str) -> None:
    """Receive device events and relay commands back to the glasses.

    Transcriptions and button presses run as tasks so the loop keeps
    reading; photo responses are resolved inline to unblock those tasks.
    """
    container: AppContainer = websocket.app.state.container
    registry = container.session_registry
    await websocket.accept()
    device = WebSocketDevice(
        websocket,
        photo_timeout_seconds=container.settings.photo_request_timeout_seconds,
    )
    registry.connect(user_id, device)
    tasks: set[asyncio.Task[Any]] = set()

    def _spawn(coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    await device.show_text("Connected")
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await device.send_error("invalid json")
                continue
            if not isinstance(message, dict):
                await device.send_error("event must be an object")
                continue
            event_name = message.get("event")
            model = EVENT_MODELS.get(event_name) if isinstance(event_name, str) else None
            if model is None:
                await device.send_error(f"unknown event: {event_name}")
                continue
            try:
                event = model.model_validate(message)
            except ValidationError as exc:
                logger.warning("Invalid %s event from user %s: %s", event_name, user_id, exc)
                await device.send_error(f"invalid {event_name} event")
                continue
            _handle_event(registry, device, user_id, event, _spawn)
    except WebSocketDisconnect:
        logger.info("Device socket closed for user %s", user_id)
    finally:
        device.fail_pending()
        session = registry.get_session(user_id)
        if session is not None and session.device is device:
            registry.disconnect(user_id)


def _handle_event(
    registry: SessionRegistry,
    device: WebSocketDevice,
    user_id: str,
    event: object,
    spawn: Callable[[Coroutine[Any, Any, Any]], None],
) -> None:
    if isinstance(event, TranscriptionEvent):
        spawn(registry.handle_utterance(user_id, event.text, event.is_final))
    elif isinstance(event, ButtonEvent):
        spawn(registry.handle_button(user_id, event.button_id, event.press_type))
    elif isinstance(event, PhotoEvent):
        device.resolve_photo(event.to_captured_photo())
    elif isinstance(event, PhotoErrorEvent):
        device.fail_photo(event.request_id, event.message)
