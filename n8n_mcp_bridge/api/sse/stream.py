"""
SSE Event Stream
================

Writable stream abstraction handed to the bridge for each SSE connection.
Frames written here are drained by the streaming response generator.
"""

from typing import AsyncIterator, Callable, List, Optional
import asyncio

from n8n_mcp_bridge.config.logging import get_logger

from .exceptions import StreamClosedError

logger = get_logger(__name__)

CloseCallback = Callable[["EventStream"], None]


class EventStream:
    """
    Bounded, single-consumer frame buffer in front of an HTTP response.

    ``write`` never blocks: a closed stream or a consumer that has fallen
    ``maxsize`` frames behind raises ``StreamClosedError``. Close callbacks
    run exactly once, on the first ``close()``.
    """

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._close_callbacks: List[CloseCallback] = []

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, frame: str) -> None:
        if self._closed:
            raise StreamClosedError("Event stream is closed")
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            raise StreamClosedError("Event stream buffer is full; consumer is not reading")

    def flush(self) -> None:
        """Frames are handed to the response one per chunk, so there is nothing to flush."""
        if self._closed:
            raise StreamClosedError("Event stream is closed")

    def on_close(self, callback: CloseCallback) -> None:
        if self._closed:
            callback(self)
            return
        self._close_callbacks.append(callback)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        # Wake the consumer; drop a pending frame if the buffer is full.
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self._queue.put_nowait(None)

        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception as e:
                logger.error("Event stream close callback failed", error=str(e))

    async def frames(self) -> AsyncIterator[str]:
        """
        Yield frames in write order until the stream is closed.

        Cancellation of the consuming task (client disconnect) closes the
        stream, which fires the close callbacks.
        """
        try:
            while True:
                frame = await self._queue.get()
                if frame is None:
                    break
                yield frame
        finally:
            self.close()

    def pending(self) -> int:
        return self._queue.qsize()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<EventStream {state} pending={self.pending()}>"
