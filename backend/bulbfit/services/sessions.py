"""
In-memory selection sessions.

Each session owns its own CascadeController and therefore its own fetch
cache; nothing is shared between sessions and nothing survives a restart.
Idle sessions expire after settings.session_ttl_seconds and the store keeps
at most settings.max_sessions, dropping the least recently used first.
"""

import logging
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field

from bulbfit.config import settings
from bulbfit.services.catalog import CatalogGateway, get_catalog
from bulbfit.services.selection import CascadeController

logger = logging.getLogger(__name__)


@dataclass
class SelectionSession:
    session_id: str
    controller: CascadeController
    created_at: float = field(default_factory=time.monotonic)
    last_seen: float = field(default_factory=time.monotonic)

    def touch(self) -> None:
        self.last_seen = time.monotonic()


class SessionStore:
    def __init__(self, ttl_seconds: int | None = None, max_sessions: int | None = None):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.session_ttl_seconds
        self.max_sessions = max_sessions if max_sessions is not None else settings.max_sessions
        if self.max_sessions <= 0:
            raise ValueError(f"max_sessions must be positive, got {self.max_sessions}")
        self._sessions: OrderedDict[str, SelectionSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, gateway: CatalogGateway | None = None) -> SelectionSession:
        """Create a session and start loading its years."""
        self.prune()
        while len(self._sessions) >= self.max_sessions:
            _, oldest = self._sessions.popitem(last=False)
            oldest.controller.close()
            logger.info(f"Evicted session {oldest.session_id} (store full)")

        session = SelectionSession(
            session_id=uuid.uuid4().hex,
            controller=CascadeController(gateway or get_catalog()),
        )
        self._sessions[session.session_id] = session
        logger.info(f"Created selection session {session.session_id}")
        return session

    def get(self, session_id: str) -> SelectionSession | None:
        self.prune()
        session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
            self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.controller.close()
        logger.info(f"Closed selection session {session_id}")
        return True

    def prune(self) -> int:
        """Drop sessions idle longer than the TTL. Returns count removed."""
        cutoff = time.monotonic() - self.ttl_seconds
        expired = [sid for sid, s in self._sessions.items() if s.last_seen < cutoff]
        for sid in expired:
            self.delete(sid)
        return len(expired)

    def close_all(self) -> None:
        for sid in list(self._sessions):
            self.delete(sid)


# Global store used by the API
session_store = SessionStore()
