"""
Exception types raised by the session engine.

Structural misuse (unknown ids, wrong session state) is raised immediately.
Per-operation content store failures during apply and revert are never
raised; they are recorded on the operation and in the result instead.
"""


class SessionEngineError(Exception):
    """Base class for session engine errors."""


class SessionNotFoundError(SessionEngineError):
    """Raised when an operation requires a session id that is not known."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class InvalidSessionStateError(SessionEngineError):
    """Raised when a session or operation is not in a state that allows the call."""
