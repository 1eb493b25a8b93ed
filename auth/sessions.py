"""
auth/sessions.py -- Server-side session registry for AUTH_MODE=session.

The browser holds only a random session id inside Starlette's signed session
cookie; the identity lives here, keyed by that id. One registry is built in
the application lifespan and stored on app.state.sessions -- there is no
module-level instance.

Unlike bearer tokens, sessions can be ended server-side: logout destroys one
session, and destroy_user() ends every session of a deleted or deactivated
account.

Concurrency: all access goes through one lock. A single session id is
assumed to see at most one concurrent login.
"""

from __future__ import annotations

import secrets
import threading
import time
from dataclasses import dataclass

from auth.models import TokenClaims


@dataclass
class _Entry:
    claims: TokenClaims
    expires_at: float  # time.monotonic() deadline


class SessionRegistry:
    """Thread-safe mapping of session id -> TokenClaims with a fixed TTL.

    Usage:
        sessions = SessionRegistry(ttl_seconds=86400)
        sid = sessions.create(claims)
        sessions.get(sid)        # claims, or None once expired/destroyed
        sessions.destroy(sid)
    """

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl_seconds = ttl_seconds
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def create(self, claims: TokenClaims) -> str:
        """Start a session for claims and return its new id (256 bits of entropy)."""
        sid = secrets.token_urlsafe(32)
        with self._lock:
            self._entries[sid] = _Entry(claims=claims, expires_at=time.monotonic() + self.ttl_seconds)
        return sid

    def get(self, sid: str) -> TokenClaims | None:
        with self._lock:
            entry = self._entries.get(sid)
            if entry is None:
                return None
            if time.monotonic() >= entry.expires_at:
                del self._entries[sid]
                return None
            return entry.claims

    def destroy(self, sid: str) -> bool:
        with self._lock:
            return self._entries.pop(sid, None) is not None

    def destroy_user(self, user_id: int) -> int:
        """End every session belonging to user_id. Returns the number ended."""
        with self._lock:
            doomed = [sid for sid, e in self._entries.items() if e.claims.id == user_id]
            for sid in doomed:
                del self._entries[sid]
        return len(doomed)

    def purge_expired(self) -> int:
        """Drop expired sessions. Returns the number removed."""
        now = time.monotonic()
        with self._lock:
            expired = [sid for sid, e in self._entries.items() if now >= e.expires_at]
            for sid in expired:
                del self._entries[sid]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
