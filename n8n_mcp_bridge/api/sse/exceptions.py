"""
SSE Bridge Exceptions
=====================

Exceptions raised by the SSE session bridge.
"""

from typing import Optional


class BridgeError(Exception):
    """Base exception for SSE bridge failures."""

    pass


class StreamClosedError(BridgeError):
    """Raised when writing to an event stream that can no longer accept frames."""

    pass


class AdmissionError(BridgeError):
    """Raised when a connection cannot be turned into an open session."""

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.session_id = session_id


class UnknownSessionError(BridgeError):
    """Raised when a request references a session id that is not registered."""

    def __init__(self, session_id: Optional[str]):
        super().__init__(f"Unknown session: {session_id}")
        self.session_id = session_id
