"""Deferred round-advance timers keyed by room identifier."""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger()

# Callback type: (room_id) -> Awaitable[None]
AdvanceCallback = Callable[[str], Awaitable[None]]


class RoundAdvanceScheduler:
    """Schedule the roundOver -> next round transition for each room.

    At most one timer exists per room; scheduling again replaces it. The
    callback is responsible for re-validating the room when it fires, since
    the room may have been deleted or moved on in the meantime.
    """

    def __init__(self, on_fire: AdvanceCallback) -> None:
        self._on_fire = on_fire
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def schedule(self, room_id: str, delay_seconds: float) -> None:
        self.cancel(room_id)
        self._tasks[room_id] = asyncio.create_task(self._run_timer(room_id, delay_seconds))

    def has_pending(self, room_id: str) -> bool:
        task = self._tasks.get(room_id)
        return task is not None and not task.done()

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def cancel(self, room_id: str) -> None:
        task = self._tasks.pop(room_id, None)
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def cancel_all(self) -> None:
        for room_id in list(self._tasks):
            self.cancel(room_id)

    async def wait_for(self, room_id: str) -> None:
        """Wait until the room's pending timer (if any) has fired."""
        task = self._tasks.get(room_id)
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run_timer(self, room_id: str, delay_seconds: float) -> None:
        try:
            await asyncio.sleep(delay_seconds)
            # Drop the entry first so the callback can schedule a follow-up.
            if self._tasks.get(room_id) is asyncio.current_task():
                del self._tasks[room_id]
            logger.debug("round advance timer fired", room_id=room_id)
            await self._on_fire(room_id)
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("round advance callback failed", room_id=room_id)
