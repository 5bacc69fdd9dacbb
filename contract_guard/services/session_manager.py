"""In-memory store of chat sessions keyed by the id in the request path."""

import os
from datetime import UTC, datetime, timedelta

from contract_guard.models.session import Session
from contract_guard.utils.logging import get_logger

logger = get_logger(__name__)


class InMemorySessionManager:
    """Chat sessions held in process memory.

    Idle sessions expire after ``session_timeout_minutes``. A session that
    is busy resolving tool calls is never expired, even when idle for
    longer, so a running tool always has a history to write its result to.
    """

    def __init__(self, session_timeout_minutes: int | None = None):
        """Initialize session manager.

        Args:
            session_timeout_minutes: Idle minutes before a session expires,
                defaults to the SESSION_TIMEOUT_MINUTES env var or 60
        """
        if session_timeout_minutes is None:
            session_timeout_minutes = int(os.getenv("SESSION_TIMEOUT_MINUTES", "60"))
        self.sessions: dict[str, Session] = {}
        self.session_timeout = timedelta(minutes=session_timeout_minutes)

    def get_or_create_session(self, session_id: str) -> Session:
        """Return the session for ``session_id``, creating an empty one if needed."""
        self._expire_idle_sessions()

        session = self.sessions.get(session_id)
        if session is None:
            logger.info(f"Starting session {session_id}")
            session = self.sessions[session_id] = Session(session_id=session_id)
        else:
            session.update_activity()
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Return the session if it exists and has not expired."""
        self._expire_idle_sessions()

        session = self.sessions.get(session_id)
        if session:
            session.update_activity()
        return session

    def delete_session(self, session_id: str) -> bool:
        """Forget a session. Returns False if there was nothing to delete."""
        return self.sessions.pop(session_id, None) is not None

    def _expire_idle_sessions(self) -> None:
        cutoff = datetime.now(UTC) - self.session_timeout
        expired = [sid for sid, s in self.sessions.items() if s.last_activity < cutoff and not s.busy]

        for session_id in expired:
            del self.sessions[session_id]
        if expired:
            logger.info(f"Expired {len(expired)} idle sessions")


session_manager = InMemorySessionManager()
