"""
SSE Connection Manager
=====================

Session registry for SSE connections.
Tracks which peers are connected, their streams, tool contexts and keep-alive timers.
"""

from typing import Any, Callable, Dict, List, Optional, Set
import asyncio
import inspect
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from n8n_mcp_bridge.config.logging import get_logger
from n8n_mcp_bridge.mcp_server.interfaces import ToolContext, ToolExecutionCapability

from .events import SSEEventType, create_heartbeat_payload, emit
from .models import SessionInfo, SessionState, SSEConnectionStats
from .scheduler import KeepAliveTimer
from .stream import EventStream

logger = get_logger(__name__)


@dataclass(eq=False)
class Session:
    """One connected peer: its stream, private tool context and keep-alive timer."""

    id: str
    stream: EventStream
    tool_context: ToolContext
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_heartbeat: Optional[datetime] = None
    state: SessionState = SessionState.CONNECTING
    keep_alive: Optional[KeepAliveTimer] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def info(self) -> SessionInfo:
        return SessionInfo(
            session_id=self.id,
            connected_at=self.connected_at,
            last_heartbeat=self.last_heartbeat,
            pending_frames=self.stream.pending(),
        )


class SSEConnectionManager:
    """
    Registry of live SSE sessions.

    Handles:
    - Admission: id generation, tool context creation, keep-alive start
    - Lookup by session id
    - Eviction: timer cancel, stream close, context release

    Every method that mutates the map is synchronous, so on one event loop
    admission and eviction never interleave.
    """

    def __init__(
        self,
        tool_capability: ToolExecutionCapability,
        heartbeat_interval: float = 30.0,
        buffer_size: int = 256,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        """Initialize connection manager."""
        self.logger: Any = logger.bind(component="sse_manager")
        self.tool_capability = tool_capability
        self.heartbeat_interval = heartbeat_interval
        self.buffer_size = buffer_size
        self._id_factory = id_factory
        self._sessions: Dict[str, Session] = {}
        self._releasing: Set["asyncio.Future[Any]"] = set()

    def create_stream(self) -> EventStream:
        return EventStream(maxsize=self.buffer_size)

    def admit(self, stream: EventStream) -> Session:
        """
        Register a new session for an open stream.

        Args:
            stream: Open event stream owned by the new session

        Returns:
            The registered session, keep-alive timer running

        Raises:
            ValueError: If the stream is already closed
            RuntimeError: If the id generator produced a duplicate
        """
        if stream.closed:
            raise ValueError("Cannot admit a closed stream")

        session_id = self._id_factory()
        if session_id in self._sessions:
            raise RuntimeError(f"Session id collision: {session_id}")

        session = Session(
            id=session_id,
            stream=stream,
            tool_context=self.tool_capability.create(),
        )
        session.keep_alive = KeepAliveTimer(
            session_id=session_id,
            interval=self.heartbeat_interval,
            beat=lambda: self._send_heartbeat(session),
            on_failure=lambda: self.evict(session_id, reason="heartbeat_failed"),
        )

        self._sessions[session_id] = session
        session.keep_alive.start()

        self.logger.debug("SSE session admitted", session_id=session_id)
        return session

    def lookup(self, session_id: Optional[str]) -> Optional[Session]:
        """Return the registered session for an id, or None."""
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def evict(self, session_id: Optional[str], reason: str = "closed") -> bool:
        """
        Tear down a session. Idempotent.

        Args:
            session_id: Session to remove
            reason: Reason recorded in the log

        Returns:
            True if a session was removed
        """
        if not session_id:
            return False
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        session.state = SessionState.CLOSING
        if session.keep_alive is not None:
            session.keep_alive.cancel()
        session.stream.close()
        session.state = SessionState.CLOSED

        self._release_context(session)

        self.logger.info(
            "SSE client disconnected",
            session_id=session_id,
            reason=reason,
            total_connections=len(self._sessions),
        )
        return True

    def sweep_closed(self) -> int:
        """Evict every session whose stream is already closed. Returns the count."""
        stale = [sid for sid, session in self._sessions.items() if session.stream.closed]
        for session_id in stale:
            self.evict(session_id, reason="stale")
        return len(stale)

    def close_all(self, reason: str = "shutdown") -> int:
        session_ids = list(self._sessions)
        for session_id in session_ids:
            self.evict(session_id, reason=reason)
        return len(session_ids)

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def stats(self) -> SSEConnectionStats:
        return SSEConnectionStats(
            total_connections=len(self._sessions),
            sessions=[session.info() for session in self._sessions.values()],
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def _send_heartbeat(self, session: Session) -> bool:
        if self._sessions.get(session.id) is not session:
            return False
        sent = emit(session.stream, SSEEventType.HEARTBEAT, create_heartbeat_payload())
        if sent:
            session.last_heartbeat = datetime.now(timezone.utc)
        return sent

    async def wait_released(self) -> None:
        """Wait for every pending tool-context release to finish."""
        while self._releasing:
            await asyncio.gather(*list(self._releasing), return_exceptions=True)

    def _release_context(self, session: Session) -> None:
        close = getattr(session.tool_context, "close", None)
        if close is None:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        result = close()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._releasing.add(task)
            task.add_done_callback(self._release_done)

    def _release_done(self, task: "asyncio.Future[Any]") -> None:
        self._releasing.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error("Failed to release tool context", error=str(error))
