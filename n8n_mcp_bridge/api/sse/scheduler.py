"""
SSE Heartbeat and Cleanup Scheduler
===================================

Periodic background tasks for the SSE bridge:
- KeepAliveTimer: one per session, emits ``heartbeat`` events
- SessionReaper: one per bridge, evicts sessions whose stream closed silently
"""

from typing import Any, Callable, Optional
import asyncio
import inspect

from n8n_mcp_bridge.config.logging import get_logger

logger = get_logger(__name__)


class PeriodicTask:
    """
    Repeating callback running as an ``asyncio.Task``.

    ``cancel()`` is synchronous and idempotent. Once it returns the callback
    will not run again, including when called from inside the callback.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Any],
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._callback = callback
        self._task: Optional[asyncio.Task[None]] = None
        self._cancelled = False
        self.runs = 0

    @property
    def active(self) -> bool:
        return self._task is not None and not self._cancelled and not self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        if self._cancelled:
            raise RuntimeError(f"{self.name} was cancelled and cannot be restarted")
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # A task evicting its own session exits through the _cancelled check.
        if task is not current:
            task.cancel()

    async def wait_closed(self) -> None:
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self.interval)
            if self._cancelled:
                break
            self.runs += 1
            try:
                result = self._callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Periodic task failed", task=self.name, error=str(e))


class KeepAliveTimer(PeriodicTask):
    """Per-session heartbeat; a failed beat triggers ``on_failure`` and stops the timer."""

    def __init__(
        self,
        session_id: str,
        interval: float,
        beat: Callable[[], bool],
        on_failure: Callable[[], Any],
    ) -> None:
        super().__init__(f"sse-heartbeat-{session_id}", interval, self._tick)
        self.session_id = session_id
        self._beat = beat
        self._on_failure = on_failure

    def _tick(self) -> None:
        if self._beat():
            return
        logger.info("Heartbeat failed, evicting session", session_id=self.session_id)
        self.cancel()
        self._on_failure()


class SessionReaper(PeriodicTask):
    """Global sweep evicting sessions whose transport closed without notification."""

    def __init__(self, interval: float, sweep: Callable[[], int]) -> None:
        super().__init__("sse-session-reaper", interval, self._tick)
        self._sweep = sweep

    def _tick(self) -> None:
        reaped = self._sweep()
        if reaped:
            logger.info("Reaped stale SSE sessions", count=reaped)
