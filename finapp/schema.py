"""Database schema for the finapp identity store.

Timestamps are ISO-8601 TEXT (UTC, with 'Z') so SQLite and Postgres behave
the same. Subject ids are UUID strings generated by the application, which
keeps the DDL identical on both engines apart from SQLite pragmas.

Only password hashes are stored; plaintext passwords never reach the database.
"""

from __future__ import annotations


SCHEMA_SQLITE = r"""
PRAGMA foreign_keys = ON;

-- Users / Auth
-- username and email are stored normalized (trimmed, lower-case) and are
-- both valid login identifiers.
CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    last_login_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_users_email ON users (email);
"""


def _sqlite_to_postgres(ddl: str) -> str:
    # Postgres has no PRAGMA statements; everything else is portable.
    lines = [line for line in ddl.splitlines() if not line.strip().upper().startswith("PRAGMA ")]
    return "\n".join(lines)


SCHEMA_POSTGRES = _sqlite_to_postgres(SCHEMA_SQLITE)


def get_schema_sql(dialect: str) -> str:
    d = (dialect or "").lower()
    if d.startswith("post"):
        return SCHEMA_POSTGRES
    return SCHEMA_SQLITE
