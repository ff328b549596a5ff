"""
Session Manager
===============

Owns every open SessionController of the service.

Sessions share one ProcessingClient and one HandleRegistry; both are
constructed by the application and passed in. Closing the manager
tears down every session, which revokes all their handles.
"""

import logging
from typing import Dict, List, Optional

from pixelclip.errors import PixelClipError
from pixelclip.processing.client import ProcessingClient
from pixelclip.session.controller import SessionController
from pixelclip.session.handles import HandleRegistry
from pixelclip.session.naming import DEFAULT_STEM_LENGTH


logger = logging.getLogger(__name__)


class SessionNotFound(PixelClipError):
    """Raised when a session id is unknown or already closed."""
    pass


class SessionLimitReached(PixelClipError):
    """Raised when creating a session would exceed max_sessions."""
    pass


class SessionManager:
    """
    Registry of open sessions.

    Attributes:
        client: Shared processing client
        registry: Shared handle registry
        max_sessions: Maximum number of open sessions
    """

    def __init__(
        self,
        client: ProcessingClient,
        registry: HandleRegistry,
        max_sessions: int = 100,
        max_upload_bytes: Optional[int] = None,
        filename_stem_length: int = DEFAULT_STEM_LENGTH,
    ) -> None:
        self.client = client
        self.registry = registry
        self.max_sessions = max_sessions
        self._max_upload_bytes = max_upload_bytes
        self._filename_stem_length = filename_stem_length
        self._sessions: Dict[str, SessionController] = {}
        self._created_count: int = 0

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def create(self) -> SessionController:
        """
        Open a new session.

        Raises:
            SessionLimitReached: If max_sessions sessions are already open
        """
        if len(self._sessions) >= self.max_sessions:
            raise SessionLimitReached(
                f"Cannot open more than {self.max_sessions} sessions"
            )

        session = SessionController(
            client=self.client,
            registry=self.registry,
            max_upload_bytes=self._max_upload_bytes,
            filename_stem_length=self._filename_stem_length,
        )
        self._sessions[session.session_id] = session
        self._created_count += 1
        logger.info(f"Opened session {session.session_id} ({self.session_count} open)")
        return session

    def get(self, session_id: str) -> SessionController:
        """
        Look up an open session.

        Raises:
            SessionNotFound: If no open session has this id
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(f"Unknown session: {session_id}") from None

    def sessions(self) -> List[SessionController]:
        return list(self._sessions.values())

    def close(self, session_id: str) -> None:
        """
        Close and forget a session.

        Raises:
            SessionNotFound: If no open session has this id
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(f"Unknown session: {session_id}")
        session.close()

    def close_all(self) -> int:
        """
        Close every open session.

        Returns:
            Number of sessions closed.
        """
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            session.close()
        if sessions:
            logger.info(f"Closed {len(sessions)} sessions")
        return len(sessions)

    def metrics(self) -> dict:
        """
        Get session metrics for observability.

        Returns:
            Dict with open and created counts plus a per-state breakdown
        """
        states: Dict[str, int] = {}
        for session in self._sessions.values():
            states[session.state.value] = states.get(session.state.value, 0) + 1
        return {
            "open_sessions": self.session_count,
            "created_sessions": self._created_count,
            "sessions_by_state": states,
        }
