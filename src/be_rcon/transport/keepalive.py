"""Periodic keep-alive task and one-shot liveness checks for a session."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class KeepAliveScheduler:
    """Own every timer of one session so close() can cancel all of them.

    ``start()`` runs ``on_tick`` every ``interval`` seconds in a task;
    ``arm_check()`` schedules a one-shot callback with ``loop.call_later``.
    After ``stop()`` nothing scheduled here fires again.
    """

    def __init__(self, interval: float, on_tick: Callable[[], None]) -> None:
        self.interval = interval
        self.on_tick = on_tick
        self._task: asyncio.Task[None] | None = None
        self._checks: set[asyncio.TimerHandle] = set()
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending_checks(self) -> int:
        return len(self._checks)

    def start(self) -> None:
        """Start the keep-alive loop on the running event loop."""
        if self._stopped or self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="rcon-keepalive")

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.interval)
            if self._stopped:
                return
            try:
                self.on_tick()
            except Exception:
                logger.exception("Keep-alive tick failed")

    def arm_check(self, delay: float, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` once after ``delay`` seconds."""
        if self._stopped:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, check not armed")
            return
        handle: asyncio.TimerHandle | None = None

        def _fire() -> None:
            if handle is not None:
                self._checks.discard(handle)
            callback()

        handle = loop.call_later(delay, _fire)
        self._checks.add(handle)

    def stop(self) -> None:
        """Cancel the keep-alive task and every armed check (idempotent)."""
        self._stopped = True
        for handle in self._checks:
            handle.cancel()
        self._checks.clear()
        if self._task is not None:
            current = None
            with contextlib.suppress(RuntimeError):
                current = asyncio.current_task()
            if self._task is not current:
                self._task.cancel()
            self._task = None
