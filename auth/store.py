"""
auth/store.py -- Persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository interface;
SQLUserStore and MemoryUserStore are interchangeable implementations chosen
once at startup (see api/main.py lifespan). Route, gate, and validator code
depend only on UserStore and never touch SQL directly.

Uniqueness: username and email are each globally unique. SQLUserStore relies
on UNIQUE constraints, so two concurrent inserts of the same username give
one row and one DuplicateKeyError -- there is no read-then-write race in
application code. MemoryUserStore performs check-and-insert under one lock.

Passwords: create_user() and set_password() take plaintext and hash it via
auth.passwords before anything is stored.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import NewUser, Role, User
from auth.passwords import hash_password
from core.errors import DuplicateKeyError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("role", String(16), nullable=False, server_default=Role.user.value),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. In-memory databases ignore the request.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _duplicate_message(store: UserStore, candidate: NewUser) -> str:
    if store.find_by_username(candidate.username) is not None:
        return "A user with that username already exists."
    return "A user with that email already exists."


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class UserStore(ABC):
    """Repository interface for User records.

    Lookups return None for absence and never raise for it.
    """

    @abstractmethod
    def find_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    def find_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    def find_by_id(self, user_id: int) -> User | None: ...

    @abstractmethod
    def create_user(self, candidate: NewUser, role: Role = Role.user) -> User:
        """Hash the candidate's password and persist a new active user.

        role stays Role.user unless a privileged caller (admin provisioning)
        passes Role.admin. Raises DuplicateKeyError on a username or email
        collision.
        """

    @abstractmethod
    def delete_user(self, user_id: int) -> bool:
        """Remove a user. Returns False if no such user exists."""

    @abstractmethod
    def list_users(self) -> list[User]:
        """Return every user ordered by id. Admin-only operation."""

    @abstractmethod
    def update_user(self, user_id: int, *, role: Role | None = None, is_active: bool | None = None) -> bool:
        """Change role and/or active flag. Returns False if user_id was not found."""

    @abstractmethod
    def set_password(self, user_id: int, plain: str) -> bool:
        """Replace the stored hash with a fresh hash of plain."""

    def has_users(self) -> bool:
        return bool(self.list_users())

    def count_active_admins(self) -> int:
        """Used by the admin routes to refuse removing the last active admin."""
        return sum(1 for u in self.list_users() if u.role is Role.admin and u.is_active)

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


class SQLUserStore(UserStore):
    """SQLAlchemy Core implementation. SQLite by default, any SQLAlchemy URL works.

    Usage:
        store = SQLUserStore("sqlite:///portal.db")
        user = store.create_user(NewUser(username="alice", email="a@x.com", password="secret1"))
        store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def _find_one(self, clause) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(clause)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_username(self, username: str) -> User | None:
        """Exact, case-sensitive username match."""
        return self._find_one(_users.c.username == username)

    def find_by_email(self, email: str) -> User | None:
        return self._find_one(_users.c.email == email.strip().lower())

    def find_by_id(self, user_id: int) -> User | None:
        return self._find_one(_users.c.id == user_id)

    def create_user(self, candidate: NewUser, role: Role = Role.user) -> User:
        role = Role(role)
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=candidate.username,
                        email=candidate.email.strip().lower(),
                        hashed_password=hash_password(candidate.password),
                        first_name=candidate.first_name,
                        last_name=candidate.last_name,
                        role=role.value,
                        is_active=1,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                user_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateKeyError(_duplicate_message(self, candidate)) from exc
        return self.find_by_id(user_id)

    def delete_user(self, user_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def list_users(self) -> list[User]:
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, user_id: int, *, role: Role | None = None, is_active: bool | None = None) -> bool:
        fields: dict = {}
        if role is not None:
            fields["role"] = Role(role).value
        if is_active is not None:
            fields["is_active"] = 1 if is_active else 0
        if not fields:
            return self.find_by_id(user_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def set_password(self, user_id: int, plain: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(hashed_password=hash_password(plain))
            )
            conn.commit()
        return result.rowcount > 0

    def has_users(self) -> bool:
        with self.engine.connect() as conn:
            count = conn.execute(select(func.count()).select_from(_users)).scalar()
        return (count or 0) > 0

    def count_active_admins(self) -> int:
        with self.engine.connect() as conn:
            count = conn.execute(
                select(func.count())
                .select_from(_users)
                .where((_users.c.role == Role.admin.value) & (_users.c.is_active == 1))
            ).scalar()
        return count or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class MemoryUserStore(UserStore):
    """Process-local store for single-worker deployments and tests.

    Returns copies of stored records so callers cannot mutate store state.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[int, User] = {}
        self._next_id = 1

    def find_by_username(self, username: str) -> User | None:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return replace(user)
        return None

    def find_by_email(self, email: str) -> User | None:
        email = email.strip().lower()
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return replace(user)
        return None

    def find_by_id(self, user_id: int) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user is not None else None

    def create_user(self, candidate: NewUser, role: Role = Role.user) -> User:
        role = Role(role)
        email = candidate.email.strip().lower()
        # Hash outside the lock; bcrypt is the slow part.
        hashed = hash_password(candidate.password)
        with self._lock:
            for existing in self._users.values():
                if existing.username == candidate.username:
                    raise DuplicateKeyError("A user with that username already exists.")
                if existing.email == email:
                    raise DuplicateKeyError("A user with that email already exists.")
            user = User(
                id=self._next_id,
                username=candidate.username,
                email=email,
                hashed_password=hashed,
                first_name=candidate.first_name,
                last_name=candidate.last_name,
                role=role,
                is_active=True,
                created_at=_now_iso(),
            )
            self._users[user.id] = user
            self._next_id += 1
            return replace(user)

    def delete_user(self, user_id: int) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def list_users(self) -> list[User]:
        with self._lock:
            return [replace(self._users[k]) for k in sorted(self._users)]

    def update_user(self, user_id: int, *, role: Role | None = None, is_active: bool | None = None) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            if role is not None:
                user.role = Role(role)
            if is_active is not None:
                user.is_active = bool(is_active)
            return True

    def set_password(self, user_id: int, plain: str) -> bool:
        hashed = hash_password(plain)
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            user.hashed_password = hashed
            return True


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        first_name=row.first_name,
        last_name=row.last_name,
        role=Role(row.role),
        is_active=bool(row.is_active),
        created_at=row.created_at,
    )


def build_user_store(backend: str, db_url: str) -> UserStore:
    """Return the UserStore for USER_STORE_BACKEND ("sql" or "memory")."""
    if backend == "memory":
        return MemoryUserStore()
    if backend == "sql":
        return SQLUserStore(db_url)
    raise ValueError(f"Unknown user store backend: {backend!r}")
