"""Device session backed by a FastAPI WebSocket."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from fastapi import WebSocket

from moment_composer.domain.models import CapturedPhoto
from moment_composer.services.sessions import DeviceSession

_logger = logging.getLogger(__name__)


class PhotoCaptureError(Exception):
    """Raised when the device reports that a photo could not be taken."""


@dataclass
class WebSocketDevice(DeviceSession):
    """Sends commands to the glasses and awaits photo responses.

    Photo requests are correlated by request id; the receive loop resolves
    them with ``resolve_photo`` or ``fail_photo``.
    """

    websocket: WebSocket
    photo_timeout_seconds: float = 15.0
    _send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _pending: dict[str, asyncio.Future[CapturedPhoto]] = field(
        default_factory=dict, init=False
    )

    async def request_photo(self) -> CapturedPhoto:
        request_id = f"photo-{uuid4().hex[:12]}"
        future: asyncio.Future[CapturedPhoto] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._send({"event": "request_photo", "request_id": request_id})
            return await asyncio.wait_for(future, timeout=self.photo_timeout_seconds)
        finally:
            self._pending.pop(request_id, None)

    async def show_text(self, text: str, duration_ms: int = 3000) -> None:
        await self._send({"event": "show_text", "text": text, "duration_ms": duration_ms})

    async def speak(self, text: str) -> None:
        await self._send({"event": "speak", "text": text})

    async def send_error(self, message: str) -> None:
        await self._send({"event": "error", "message": message})

    def resolve_photo(self, photo: CapturedPhoto) -> bool:
        """Complete the matching photo request; false if none is waiting."""
        future = self._pending.get(photo.request_id)
        if future is None or future.done():
            _logger.warning("Received unexpected photo %s", photo.request_id)
            return False
        future.set_result(photo)
        return True

    def fail_photo(self, request_id: str, message: str) -> bool:
        future = self._pending.get(request_id)
        if future is None or future.done():
            return False
        future.set_exception(PhotoCaptureError(message))
        return True

    def fail_pending(self, message: str = "device disconnected") -> None:
        """Fail every outstanding photo request."""
        for future in self._pending.values():
            if not future.done():
                future.set_exception(PhotoCaptureError(message))
        self._pending.clear()

    async def _send(self, payload: dict[str, Any]) -> None:
        async with self._send_lock:
            await self.websocket.send_json(payload)
