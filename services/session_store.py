"""
In-memory per-user request state.

SessionStore bridges "link accepted" and "quality chosen"; ProcessingGuard
keeps one extraction in flight per user. Both live on the event loop thread
and never await inside an operation, so every get/set/delete and every
test-and-insert is atomic with respect to other handlers.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Set

import structlog

from models.audio import AudioCodec
from models.session import UserSession

logger = structlog.get_logger(__name__)


class UserBusyError(Exception):
    """The user already has a request in flight."""

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} already has a request in progress")
        self.user_id = user_id


class SessionStore:
    """At most one pending session per user id."""

    def __init__(self):
        self._sessions: Dict[int, UserSession] = {}

    def get(self, user_id: int) -> Optional[UserSession]:
        return self._sessions.get(user_id)

    def set(self, user_id: int, session: UserSession) -> None:
        if user_id in self._sessions:
            logger.debug("session_replaced", user_id=user_id)
        self._sessions[user_id] = session

    def update_codec(self, user_id: int, codec: AudioCodec) -> Optional[UserSession]:
        """Switch the session codec. Returns None if there is no session."""
        session = self._sessions.get(user_id)
        if session is None:
            return None
        updated = session.with_codec(codec)
        self._sessions[user_id] = updated
        return updated

    def delete(self, user_id: int) -> bool:
        return self._sessions.pop(user_id, None) is not None

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


class ProcessingGuard:
    """Set of user ids with work in flight."""

    def __init__(self):
        self._active: Set[int] = set()

    def is_processing(self, user_id: int) -> bool:
        return user_id in self._active

    def try_acquire(self, user_id: int) -> bool:
        if user_id in self._active:
            return False
        self._active.add(user_id)
        return True

    def release(self, user_id: int) -> None:
        self._active.discard(user_id)

    @contextmanager
    def hold(self, user_id: int) -> Iterator[None]:
        """
        Hold the guard for the duration of a block.

        Raises:
            UserBusyError: the user already holds the guard
        """
        if not self.try_acquire(user_id):
            raise UserBusyError(user_id)
        try:
            yield
        finally:
            self.release(user_id)

    def __len__(self) -> int:
        return len(self._active)
