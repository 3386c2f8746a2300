"""Identity store: users table access for the auth core.

Plain functions take an open connection (see finapp.db.connect);
SqlUserStore wraps them behind the collaborator interface the
authenticator and session issuer depend on.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional, Protocol

from finapp.db import connect, integrity_error_types
from finapp.util.time import utcnow_iso

from .models import Credential, Principal


class UniquenessViolation(Exception):
    """Username or email already taken (storage-level)."""


class UserStore(Protocol):
    def find_by_subject_or_username(self, key: str) -> Optional[Principal]: ...

    def find_credential_by_identifier(self, identifier: str) -> Optional[Credential]: ...

    def save(self, credential: Credential) -> Principal: ...

    def touch_last_login(self, subject_id: str) -> None: ...


def normalize_identifier(value: str) -> str:
    return (value or "").strip().lower()


def _principal(row: Any) -> Principal:
    return Principal(subject_id=str(row["user_id"]), username=str(row["username"]), email=str(row["email"]))


def get_user_by_subject_or_username(conn: Any, key: str) -> Optional[Any]:
    k = (key or "").strip()
    if not k:
        return None
    # A subject id match always wins over a username that happens to equal it.
    row = conn.execute("SELECT * FROM users WHERE user_id=?", (k,)).fetchone()
    if row is not None:
        return row
    return conn.execute("SELECT * FROM users WHERE username=?", (normalize_identifier(k),)).fetchone()


def get_user_by_identifier(conn: Any, identifier: str) -> Optional[Any]:
    ident = normalize_identifier(identifier)
    if not ident:
        return None
    return conn.execute(
        "SELECT * FROM users WHERE username=? OR email=?",
        (ident, ident),
    ).fetchone()


def insert_user(conn: Any, credential: Credential) -> Any:
    username = normalize_identifier(credential.username)
    email = normalize_identifier(credential.email)
    user_id = credential.subject_id or str(uuid.uuid4())
    now = utcnow_iso()
    conn.execute(
        """
        INSERT INTO users (user_id, username, email, password_hash, created_at, updated_at)
        VALUES (?,?,?,?,?,?)
        """,
        (user_id, username, email, credential.password_hash, now, now),
    )
    row = conn.execute("SELECT * FROM users WHERE user_id=?", (user_id,)).fetchone()
    assert row is not None
    return row


def touch_last_login(conn: Any, user_id: str) -> None:
    now = utcnow_iso()
    conn.execute(
        "UPDATE users SET last_login_at=?, updated_at=? WHERE user_id=?",
        (now, now, str(user_id)),
    )


class SqlUserStore:
    """UserStore over SQLite/Postgres. Every call is its own short transaction."""

    def __init__(self, db_dsn: str):
        self._dsn = db_dsn

    def find_by_subject_or_username(self, key: str) -> Optional[Principal]:
        with connect(self._dsn) as conn:
            row = get_user_by_subject_or_username(conn, key)
        return _principal(row) if row is not None else None

    def find_credential_by_identifier(self, identifier: str) -> Optional[Credential]:
        with connect(self._dsn) as conn:
            row = get_user_by_identifier(conn, identifier)
        if row is None:
            return None
        return Credential(
            subject_id=str(row["user_id"]),
            username=str(row["username"]),
            email=str(row["email"]),
            password_hash=str(row["password_hash"]),
        )

    def save(self, credential: Credential) -> Principal:
        try:
            with connect(self._dsn) as conn:
                row = insert_user(conn, credential)
        except integrity_error_types() as e:
            raise UniquenessViolation(str(e)) from e
        return _principal(row)

    def touch_last_login(self, subject_id: str) -> None:
        with connect(self._dsn) as conn:
            touch_last_login(conn, subject_id)
