"""
tests/test_user_store.py -- Unit tests for auth/store.py.

Both UserStore implementations run the same contract tests, so the
lifespan can swap one for the other without behavior changes.

Covers:
  - create_user hashes the password, defaults role to user, normalizes email
  - username and email uniqueness (DuplicateKeyError)
  - find / list / update / delete / set_password
  - concurrent duplicate registration yields exactly one account
"""

from __future__ import annotations

import threading
from collections.abc import Generator

import pytest

from auth.models import NewUser, Role
from auth.passwords import verify_password
from auth.store import MemoryUserStore, SQLUserStore, UserStore, build_user_store
from core.errors import DuplicateKeyError


@pytest.fixture(params=["sql", "memory"])
def store(request, tmp_path) -> Generator[UserStore, None, None]:
    if request.param == "sql":
        s: UserStore = SQLUserStore(f"sqlite:///{tmp_path / 'users.db'}")
    else:
        s = MemoryUserStore()
    yield s
    s.close()


def _candidate(username: str = "alice", email: str | None = None, password: str = "secret1") -> NewUser:
    return NewUser(username=username, email=email or f"{username}@x.com", password=password)


class TestCreate:
    def test_create_assigns_id_and_defaults(self, store: UserStore) -> None:
        user = store.create_user(_candidate())
        assert user.id is not None
        assert user.role is Role.user
        assert user.is_active is True
        assert user.created_at
        assert user.hashed_password != "secret1"
        assert verify_password("secret1", user.hashed_password)

    def test_create_admin_with_explicit_role(self, store: UserStore) -> None:
        assert store.create_user(_candidate("root"), role=Role.admin).role is Role.admin

    def test_email_is_lowercased(self, store: UserStore) -> None:
        user = store.create_user(_candidate(email="Alice@X.com"))
        assert user.email == "alice@x.com"
        assert store.find_by_email("ALICE@x.com").id == user.id

    def test_duplicate_username(self, store: UserStore) -> None:
        store.create_user(_candidate())
        with pytest.raises(DuplicateKeyError, match="username"):
            store.create_user(_candidate(email="other@x.com"))

    def test_duplicate_email(self, store: UserStore) -> None:
        store.create_user(_candidate())
        with pytest.raises(DuplicateKeyError, match="email"):
            store.create_user(_candidate("alice2", email="alice@x.com"))
        assert store.find_by_username("alice2") is None

    def test_ids_increase(self, store: UserStore) -> None:
        a = store.create_user(_candidate("a_user"))
        b = store.create_user(_candidate("b_user"))
        assert b.id > a.id


class TestLookup:
    def test_absent_lookups_return_none(self, store: UserStore) -> None:
        assert store.find_by_username("ghost") is None
        assert store.find_by_email("ghost@x.com") is None
        assert store.find_by_id(12345) is None

    def test_list_is_ordered_by_id(self, store: UserStore) -> None:
        for name in ("carol", "alice", "bob"):
            store.create_user(_candidate(name))
        assert [u.username for u in store.list_users()] == ["carol", "alice", "bob"]

    def test_has_users(self, store: UserStore) -> None:
        assert store.has_users() is False
        store.create_user(_candidate())
        assert store.has_users() is True

    def test_returned_records_are_detached(self, store: UserStore) -> None:
        user = store.create_user(_candidate())
        user.role = Role.admin
        assert store.find_by_id(user.id).role is Role.user


class TestMutation:
    def test_update_role_and_active(self, store: UserStore) -> None:
        user = store.create_user(_candidate())
        assert store.update_user(user.id, role=Role.admin, is_active=False) is True
        updated = store.find_by_id(user.id)
        assert updated.role is Role.admin
        assert updated.is_active is False

    def test_update_missing_user(self, store: UserStore) -> None:
        assert store.update_user(999, role=Role.admin) is False

    def test_delete(self, store: UserStore) -> None:
        user = store.create_user(_candidate())
        assert store.delete_user(user.id) is True
        assert store.delete_user(user.id) is False
        assert store.find_by_id(user.id) is None

    def test_deleted_username_can_be_reused(self, store: UserStore) -> None:
        user = store.create_user(_candidate())
        store.delete_user(user.id)
        assert store.create_user(_candidate()).username == "alice"

    def test_set_password(self, store: UserStore) -> None:
        user = store.create_user(_candidate())
        assert store.set_password(user.id, "changed1") is True
        stored = store.find_by_id(user.id)
        assert verify_password("changed1", stored.hashed_password)
        assert not verify_password("secret1", stored.hashed_password)
        assert store.set_password(999, "changed1") is False

    def test_count_active_admins(self, store: UserStore) -> None:
        a = store.create_user(_candidate("admin1"), role=Role.admin)
        store.create_user(_candidate("admin2"), role=Role.admin)
        store.create_user(_candidate("pleb"))
        assert store.count_active_admins() == 2
        store.update_user(a.id, is_active=False)
        assert store.count_active_admins() == 1


class TestConcurrency:
    def test_concurrent_duplicate_registration(self) -> None:
        """Parallel creates of one username give one account and N-1 DuplicateKeyErrors."""
        store = MemoryUserStore()
        results: list[str] = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def attempt(i: int) -> None:
            barrier.wait()
            try:
                store.create_user(_candidate("racer", email=f"racer{i}@x.com"))
                outcome = "ok"
            except DuplicateKeyError:
                outcome = "dup"
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 1
        assert results.count("dup") == 7
        assert len(store.list_users()) == 1


class TestFactory:
    def test_build_by_backend(self, tmp_path) -> None:
        assert isinstance(build_user_store("memory", "unused"), MemoryUserStore)
        sql = build_user_store("sql", f"sqlite:///{tmp_path / 'f.db'}")
        assert isinstance(sql, SQLUserStore)
        sql.close()

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            build_user_store("redis", "unused")
