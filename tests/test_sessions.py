"""
tests/test_sessions.py -- Unit tests for auth/sessions.py.

Covers create/get/destroy, per-user revocation, and TTL expiry.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from auth.models import Role, TokenClaims
from auth.sessions import SessionRegistry


def _claims(user_id: int = 1) -> TokenClaims:
    return TokenClaims(
        id=user_id,
        username=f"user{user_id}",
        email=f"user{user_id}@x.com",
        role=Role.user,
        expires_at=datetime.now(timezone.utc),
    )


class TestSessionRegistry:
    def test_create_and_get(self) -> None:
        registry = SessionRegistry(ttl_seconds=60)
        sid = registry.create(_claims())
        assert len(sid) >= 43
        assert registry.get(sid).id == 1
        assert registry.get("unknown") is None

    def test_ids_are_unique(self) -> None:
        registry = SessionRegistry(ttl_seconds=60)
        assert registry.create(_claims()) != registry.create(_claims())
        assert len(registry) == 2

    def test_destroy(self) -> None:
        registry = SessionRegistry(ttl_seconds=60)
        sid = registry.create(_claims())
        assert registry.destroy(sid) is True
        assert registry.destroy(sid) is False
        assert registry.get(sid) is None

    def test_destroy_user_ends_all_their_sessions(self) -> None:
        registry = SessionRegistry(ttl_seconds=60)
        registry.create(_claims(1))
        registry.create(_claims(1))
        keep = registry.create(_claims(2))
        assert registry.destroy_user(1) == 2
        assert len(registry) == 1
        assert registry.get(keep) is not None

    def test_expired_session_is_refused(self, monkeypatch) -> None:
        clock = [1000.0]
        monkeypatch.setattr("auth.sessions.time.monotonic", lambda: clock[0])
        registry = SessionRegistry(ttl_seconds=60)
        sid = registry.create(_claims())
        clock[0] += 59
        assert registry.get(sid) is not None
        clock[0] += 1
        assert registry.get(sid) is None
        assert len(registry) == 0

    @pytest.mark.parametrize("elapsed,expected", [(10, 0), (61, 2)])
    def test_purge_expired(self, monkeypatch, elapsed: int, expected: int) -> None:
        clock = [0.0]
        monkeypatch.setattr("auth.sessions.time.monotonic", lambda: clock[0])
        registry = SessionRegistry(ttl_seconds=60)
        registry.create(_claims(1))
        registry.create(_claims(2))
        clock[0] += elapsed
        assert registry.purge_expired() == expected
