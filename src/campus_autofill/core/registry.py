"""Session registry interface and the in-process implementation."""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from campus_autofill.core.models import Session


class SessionRegistry(ABC):
    """Where live sessions are kept, keyed by session id."""

    @abstractmethod
    async def get(self, session_id: str) -> Optional[Session]:
        ...

    @abstractmethod
    async def put(self, session: Session) -> None:
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> Optional[Session]:
        """Remove a session and return it, or ``None`` if it was unknown."""

    @abstractmethod
    async def get_by_user(self, user_key: str) -> Optional[Session]:
        ...

    @abstractmethod
    async def all(self) -> List[Session]:
        ...


class InMemorySessionRegistry(SessionRegistry):
    """Registry held in process memory. Lost on restart."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._by_user: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> Optional[Session]:
        async with self._lock:
            return self._sessions.get(session_id)

    async def put(self, session: Session) -> None:
        async with self._lock:
            self._sessions[session.id] = session
            self._by_user[session.user_key] = session.id

    async def delete(self, session_id: str) -> Optional[Session]:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is not None and self._by_user.get(session.user_key) == session_id:
                del self._by_user[session.user_key]
            return session

    async def get_by_user(self, user_key: str) -> Optional[Session]:
        async with self._lock:
            session_id = self._by_user.get(user_key)
            return self._sessions.get(session_id) if session_id else None

    async def all(self) -> List[Session]:
        async with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)
