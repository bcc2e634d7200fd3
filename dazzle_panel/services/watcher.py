from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from dazzle_panel.common.logging_config import trace
from dazzle_panel.constants import DEFAULT_WATCH_INTERVAL_MS

StatusCallback = Callable[[bool], None]
Probe = Callable[[], Awaitable[bool]]


class WatchScheduler:
    """
    Multiplexes any number of reachability watchers onto one polling task.

    - The task runs at the smallest interval requested so far; it only shrinks
      on registration and is never widened while watchers remain.
    - Every tick probes once and notifies all watchers when the status flips.
    - The task stops once the last watcher is removed.
    """

    def __init__(self, probe: Probe) -> None:
        self._probe = probe
        self._callbacks: list[StatusCallback] = []
        self._interval_ms: int | None = None
        self._last_status: bool | None = None
        self._timer: asyncio.Task | None = None
        self._initial: set[asyncio.Task] = set()

    @property
    def interval_ms(self) -> int | None:
        return self._interval_ms

    @property
    def active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def watcher_count(self) -> int:
        return len(self._callbacks)

    def watch(
        self, callback: StatusCallback, *, interval_ms: int = DEFAULT_WATCH_INTERVAL_MS
    ) -> Callable[[], None]:
        """Register callback; returns a function that unregisters it."""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be > 0")
        self._callbacks.append(callback)

        # Immediate delivery, independent of the shared tick
        task = asyncio.get_running_loop().create_task(self._deliver_initial(callback))
        self._initial.add(task)
        task.add_done_callback(self._initial.discard)

        if self._timer is None or interval_ms < (self._interval_ms or 0):
            self._arm(interval_ms)

        removed = False

        def unwatch() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            # A pending initial probe belongs to this registration only
            task.cancel()
            self._remove(callback)

        return unwatch

    def close(self) -> None:
        """Drop every watcher and stop polling."""
        self._callbacks.clear()
        self._stop()
        for task in list(self._initial):
            task.cancel()

    def _remove(self, callback: StatusCallback) -> None:
        for i, cb in enumerate(self._callbacks):
            if cb is callback:
                del self._callbacks[i]
                break
        if not self._callbacks:
            self._stop()

    def _arm(self, interval_ms: int) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._interval_ms = interval_ms
        self._timer = asyncio.get_running_loop().create_task(self._run(interval_ms))
        logging.debug("WatchScheduler: polling every %d ms", interval_ms)

    def _stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._interval_ms = None
        self._last_status = None

    async def _run(self, interval_ms: int) -> None:
        # Sleep, probe, notify: ticks are strictly sequential within this task
        try:
            while True:
                await asyncio.sleep(interval_ms / 1000.0)
                await self._tick()
        except asyncio.CancelledError:
            pass

    async def _tick(self) -> None:
        status = await self._probe()
        trace("Watch tick: reachable=%s", status)
        if not self._callbacks or status == self._last_status:
            return
        self._last_status = status
        for callback in list(self._callbacks):
            self._notify(callback, status)

    async def _deliver_initial(self, callback: StatusCallback) -> None:
        try:
            status = await self._probe()
        except asyncio.CancelledError:
            return
        if any(cb is callback for cb in self._callbacks):
            self._notify(callback, status)

    @staticmethod
    def _notify(callback: StatusCallback, status: bool) -> None:
        try:
            callback(status)
        except Exception as e:
            logging.error("Watcher callback failed: %s", e)
