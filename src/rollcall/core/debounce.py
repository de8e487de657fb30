"""Per-key debouncing for bursty reaction events.

Each key (Discord user, message) owns at most one pending task. A newer event
for the same key cancels the pending one while it is still inside its quiet
window. Once a task's window elapses it leaves the pending table and runs its
callback under a per-key lock, so callbacks for one key never interleave.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)


class Debouncer:
    """Scheduled-task table keyed by an arbitrary hashable.

    Usage:
        debouncer = Debouncer(delay=0.3)
        debouncer.schedule(("user-1", "msg-9"), lambda: handle(event))
    """

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._pending: dict[Hashable, asyncio.Task[None]] = {}
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._inflight: dict[Hashable, int] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule(
        self, key: Hashable, callback: Callable[[], Awaitable[None]]
    ) -> asyncio.Task[None]:
        """Run *callback* after the quiet window unless a newer call supersedes it."""
        previous = self._pending.get(key)
        if previous is not None and not previous.done():
            previous.cancel()
            logger.debug("debounce_superseded key=%s", key)
        task = asyncio.create_task(self._fire(key, callback), name=f"debounce-{key}")
        self._pending[key] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def is_pending(self, key: Hashable) -> bool:
        task = self._pending.get(key)
        return task is not None and not task.done()

    @property
    def pending_count(self) -> int:
        return sum(1 for t in self._pending.values() if not t.done())

    async def drain(self) -> None:
        """Wait until every scheduled callback has fired or been superseded."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel everything still waiting and wait for running callbacks."""
        for task in list(self._pending.values()):
            task.cancel()
        await self.drain()

    async def _fire(self, key: Hashable, callback: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self.delay)

        # Past the window: a newer event must queue behind us, not cancel us.
        if self._pending.get(key) is asyncio.current_task():
            del self._pending[key]

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._inflight[key] = self._inflight.get(key, 0) + 1
        try:
            async with lock:
                await callback()
        except Exception:  # Last-resort handler; callbacks log their own failures
            logger.exception("debounce_callback_failed key=%s", key)
        finally:
            self._inflight[key] -= 1
            if self._inflight[key] == 0:
                del self._inflight[key]
                self._locks.pop(key, None)
