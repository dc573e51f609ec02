"""
Session arena owned by a session engine.

Each engine is given its own store at construction, so session lifetime and
test isolation do not depend on shared module state.
"""

from typing import Dict, Iterator, List, Optional

from multiedit.errors import SessionNotFoundError
from multiedit.models.session import EditSession


class SessionStore:
    """Sessions indexed by id, in creation order."""
    
    def __init__(self):
        self._sessions: Dict[str, EditSession] = {}
    
    def add(self, session: EditSession) -> None:
        if session.id in self._sessions:
            raise ValueError(f"Session already exists: {session.id}")
        self._sessions[session.id] = session
    
    def get(self, session_id: str) -> Optional[EditSession]:
        return self._sessions.get(session_id)
    
    def require(self, session_id: str) -> EditSession:
        """
        Get a session or raise.
        
        Raises:
            SessionNotFoundError: If the id is unknown
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session
    
    def remove(self, session_id: str) -> Optional[EditSession]:
        return self._sessions.pop(session_id, None)
    
    def values(self) -> List[EditSession]:
        return list(self._sessions.values())
    
    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
    
    def __len__(self) -> int:
        return len(self._sessions)
    
    def __iter__(self) -> Iterator[EditSession]:
        return iter(self.values())
