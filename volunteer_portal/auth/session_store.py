"""Server-side sessions created on successful login.

A ``SessionStore`` hands out an opaque token for a ``SessionData`` and turns
the token back into the session later. The login route stores the token in a
cookie; nothing else about the session leaves the server.
"""
import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol

from jose import JWTError, jwt

from volunteer_portal.config import Settings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionData:
    user_id: str
    email: str
    name: str
    logged_in: bool = True


class SessionStore(Protocol):
    def create(self, session: SessionData) -> str:
        """Persist ``session`` and return the token that identifies it."""
        ...

    def lookup(self, token: str) -> SessionData | None:
        """Return the live session for ``token``, or None."""
        ...


class SignedSessionStore:
    """Stateless store: the session travels inside a signed JWT."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 1440):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create(self, session: SessionData) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": session.user_id,
            "email": session.email,
            "name": session.name,
            "logged_in": session.logged_in,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def lookup(self, token: str) -> SessionData | None:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as exc:
            log.debug("Session token rejected: %s", exc)
            return None
        user_id = payload.get("sub")
        if user_id is None or not payload.get("logged_in"):
            return None
        return SessionData(
            user_id=user_id,
            email=payload.get("email", ""),
            name=payload.get("name", ""),
            logged_in=True,
        )


class MemorySessionStore:
    """Process-local store keyed by random tokens."""

    def __init__(self, expire_minutes: int = 1440, clock: Callable[[], float] = time.monotonic):
        self.ttl = expire_minutes * 60
        self.clock = clock
        self._sessions: dict[str, tuple[SessionData, float]] = {}

    def create(self, session: SessionData) -> str:
        now = self.clock()
        self._sweep(now)
        token = secrets.token_urlsafe(32)
        self._sessions[token] = (session, now + self.ttl)
        return token

    def _sweep(self, now: float) -> None:
        expired = [token for token, (_, expires_at) in self._sessions.items() if now >= expires_at]
        for token in expired:
            del self._sessions[token]

    def lookup(self, token: str) -> SessionData | None:
        entry = self._sessions.get(token)
        if entry is None:
            return None
        session, expires_at = entry
        if self.clock() >= expires_at:
            del self._sessions[token]
            return None
        return session

    def __len__(self):
        return len(self._sessions)


def build_session_store(settings: Settings) -> SessionStore:
    if settings.SESSION_BACKEND == "memory":
        return MemorySessionStore(expire_minutes=settings.SESSION_EXPIRE_MINUTES)
    return SignedSessionStore(
        secret=settings.SESSION_SECRET,
        algorithm=settings.SESSION_ALGORITHM,
        expire_minutes=settings.SESSION_EXPIRE_MINUTES,
    )
