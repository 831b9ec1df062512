"""
auth/store.py -- SQLAlchemy Core persistence layer for credential records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. The service and route code never touch SQL directly.

Ownership: a UserStore is constructed explicitly (by the API lifespan, or by a
test) and passed to AuthService. There is no module-level client; close()
disposes the engine.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is the real guard against duplicate accounts. AuthService
  checks for an existing email first, but two concurrent signups can both pass
  that check; the loser's insert raises IntegrityError, which the service maps
  to DuplicateUser.

Email normalization: emails are stripped and lower-cased on both insert and
lookup, so "A@X.com" and "a@x.com" are the same identity and the UNIQUE index
enforces that.

Failures: OperationalError (database unreachable, locked, missing file) is
re-raised as StoreUnavailable. Everything else propagates unchanged.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from auth.errors import StoreUnavailable
from auth.models import User
from core.config import get_settings

logger = logging.getLogger("marketplace.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", Text),
    Column("password_hash", Text, nullable=False),
    Column("role", String(20), nullable=False),
    Column("profile_completed", Boolean, nullable=False, default=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_memory_url(db_url: str) -> bool:
    return ":memory:" in db_url or "mode=memory" in db_url


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for credential records.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user = store.insert(User(email="a@x.com", password_hash=h, role=Role.buyer, name="A"))
        same = store.find_by_email("A@X.COM")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        engine_kwargs: dict = {}
        if db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_url(db_url):
                # One connection for the engine's lifetime; an in-memory database dies with its last connection.
                engine_kwargs["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        try:
            _metadata.create_all(self.engine)
        except OperationalError as exc:
            raise StoreUnavailable() from exc

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        """Yield a connection, translating connectivity failures to StoreUnavailable."""
        try:
            with self.engine.connect() as conn:
                yield conn
        except OperationalError as exc:
            logger.error("Credential store unavailable: %s", exc.orig)
            raise StoreUnavailable() from exc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self._connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self._connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self._connect() as conn:
                conn.execute(text("SELECT 1"))
        except StoreUnavailable:
            return False
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, user: User) -> User:
        """Insert a new credential record and return it as stored.

        created_at and updated_at are stamped here; the caller's values are
        ignored. Raises sqlalchemy.exc.IntegrityError if the email already
        exists.
        """
        now = _now_iso()
        with self._connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=normalize_email(user.email),
                    name=user.name,
                    password_hash=user.password_hash,
                    role=user.role.value,
                    profile_completed=user.profile_completed,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            user_id = result.inserted_primary_key[0]
        logger.info("Inserted user id=%s role=%s", user_id, user.role.value)
        return User(
            id=user_id,
            email=normalize_email(user.email),
            name=user.name,
            password_hash=user.password_hash,
            role=user.role,
            profile_completed=user.profile_completed,
            created_at=now,
            updated_at=now,
        )

    def mark_profile_completed(self, user_id: int) -> bool:
        """Flip profile_completed to True and refresh updated_at.

        Called by the profile service, never by AuthService. Returns True if a
        row was updated, False if user_id was not found.
        """
        with self._connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(profile_completed=True, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name or "",
        password_hash=row.password_hash,
        role=row.role,
        profile_completed=bool(row.profile_completed),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
