from __future__ import annotations

import secrets
import threading
import time
from typing import Callable, Optional

from invtrack.domain.models import Principal, Session


class SessionStore:
    """In-memory session table keyed by an opaque random token.

    Sessions expire a fixed ``ttl_seconds`` after issuance; activity does not
    extend them. A user may hold any number of sessions.
    """

    def __init__(self, ttl_seconds: float = 24 * 60 * 60, clock: Callable[[], float] = time.time):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def issue(self, principal: Principal) -> Session:
        now = self._clock()
        session = Session(
            token=secrets.token_urlsafe(32),
            principal=principal,
            issued_at=now,
            expires_at=now + self.ttl_seconds,
        )
        with self._lock:
            self._sessions[session.token] = session
        return session

    def get(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        now = self._clock()
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expired(now):
                del self._sessions[token]
                return None
            return session

    def revoke(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def revoke_user(self, user_id: int, keep: Optional[str] = None) -> int:
        with self._lock:
            doomed = [t for t, s in self._sessions.items() if s.principal.id == user_id and t != keep]
            for token in doomed:
                del self._sessions[token]
        return len(doomed)

    def refresh_principal(self, principal: Principal) -> None:
        """Swap in updated identity fields for every live session of a user."""
        with self._lock:
            for token, s in list(self._sessions.items()):
                if s.principal.id == principal.id:
                    self._sessions[token] = Session(
                        token=s.token, principal=principal, issued_at=s.issued_at, expires_at=s.expires_at
                    )

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            doomed = [t for t, s in self._sessions.items() if s.expired(now)]
            for token in doomed:
                del self._sessions[token]
        return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
