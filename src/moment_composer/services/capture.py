"""Periodic automatic photo capture for streaming mode."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

_logger = logging.getLogger(__name__)


class CaptureTarget(Protocol):
    """Per-user state the scheduler reads and updates."""

    user_id: str
    streaming: bool
    next_deadline: float | None


@dataclass
class CaptureScheduler:
    """Triggers at most one capture per tick while a user is streaming.

    A due tick first pushes the deadline ``fallback_seconds`` ahead, then
    runs the capture as its own task. A finished capture pulls the deadline
    back to the current time so the next tick can fire immediately, while a
    stalled one is retried once the fallback deadline passes.
    """

    capture: Callable[[str], Awaitable[object]]
    clock: Callable[[], float] = time.monotonic
    period_seconds: float = 1.0
    fallback_seconds: float = 30.0
    _loops: dict[str, asyncio.Task[None]] = field(default_factory=dict, init=False)
    _in_flight: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    def tick(self, target: CaptureTarget) -> asyncio.Task[None] | None:
        """Start a capture when the target is streaming and due."""
        if not target.streaming:
            return None
        now = self.clock()
        deadline = target.next_deadline if target.next_deadline is not None else 0.0
        if not now > deadline:
            return None
        target.next_deadline = now + self.fallback_seconds
        task = asyncio.create_task(self._capture(target))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    def start(self, target: CaptureTarget) -> None:
        """Run the periodic tick loop for a user until stopped."""
        self.stop(target.user_id)
        self._loops[target.user_id] = asyncio.create_task(
            self._run(target), name=f"capture-loop:{target.user_id}"
        )

    def stop(self, user_id: str) -> None:
        """Cancel the tick loop for a user; in-flight captures keep running."""
        loop = self._loops.pop(user_id, None)
        if loop is not None:
            loop.cancel()

    def is_running(self, user_id: str) -> bool:
        """Return true when a tick loop is active for the user."""
        loop = self._loops.get(user_id)
        return loop is not None and not loop.done()

    async def close(self) -> None:
        """Cancel every tick loop and wait for them to exit."""
        loops = list(self._loops.values())
        self._loops.clear()
        for loop in loops:
            loop.cancel()
        if loops:
            await asyncio.gather(*loops, return_exceptions=True)

    async def _run(self, target: CaptureTarget) -> None:
        while True:
            self.tick(target)
            await asyncio.sleep(self.period_seconds)

    async def _capture(self, target: CaptureTarget) -> None:
        try:
            await self.capture(target.user_id)
        except Exception:
            _logger.exception("Automatic capture failed for user %s", target.user_id)
            return
        target.next_deadline = self.clock()
