from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Sequence, Tuple
from urllib.parse import urlparse

from finapp.schema import get_schema_sql


def _debug(msg: str) -> None:
    print(f"[db] {msg}")


def _detect_dialect(dsn: str) -> str:
    """Return 'postgres' or 'sqlite'."""
    scheme = urlparse((dsn or "").strip()).scheme.lower()
    if scheme in ("postgres", "postgresql"):
        return "postgres"
    return "sqlite"


# Quoted SQL literals; '?' inside them must survive placeholder conversion.
_QUOTED = re.compile(r"('(?:[^']|'')*'|\"(?:[^\"]|\"\")*\")")


def _qmark_to_pct(sql: str) -> str:
    """Convert SQLite qmark placeholders (?) to psycopg2 placeholders (%s)."""
    parts = _QUOTED.split(sql)
    # re.split with a capture group puts the quoted literals at odd indexes.
    return "".join(p if i % 2 else p.replace("?", "%s") for i, p in enumerate(parts))


class PGConnection:
    """Makes a psycopg2 connection answer the sqlite3 calls this codebase uses."""

    dialect = "postgres"

    def __init__(self, conn: Any):
        self._conn = conn

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        cur = self._conn.cursor()
        cur.execute(_qmark_to_pct(sql), tuple(params or ()))
        return cur

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()


def integrity_error_types() -> Tuple[type, ...]:
    """Driver exceptions raised on UNIQUE / constraint violations."""
    types: List[type] = [sqlite3.IntegrityError]
    try:
        import psycopg2
    except ImportError:
        # Postgres driver not installed: only SQLite can be in use.
        return tuple(types)
    types.append(psycopg2.IntegrityError)
    return tuple(types)


@contextmanager
def connect(db_dsn: str) -> Iterator[Any]:
    """Connect to SQLite or Postgres; commit on success, roll back on error.

    - SQLite: uses WAL + NORMAL sync, rows are sqlite3.Row.
    - Postgres: uses psycopg2 (RealDictCursor) so rows behave like dicts.
    """
    dsn = (db_dsn or "").strip()

    if _detect_dialect(dsn) == "postgres":
        try:
            import psycopg2
            import psycopg2.extras
        except ImportError as e:
            raise RuntimeError(
                "Postgres selected but psycopg2 is not installed. "
                "Install finapp[postgres] and try again."
            ) from e
        conn: Any = PGConnection(psycopg2.connect(dsn, cursor_factory=psycopg2.extras.RealDictCursor))
    else:
        if dsn.lower().startswith("sqlite:///"):
            dsn = dsn[len("sqlite:///") :]
        Path(dsn).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(dsn, timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA busy_timeout=5000;")  # 5s

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_dsn: str) -> None:
    """Create all tables (idempotent)."""
    dialect = _detect_dialect(db_dsn)
    _debug(f"Initializing DB ({dialect}) at {db_dsn}")
    ddl = get_schema_sql(dialect)
    with connect(db_dsn) as conn:
        if dialect == "postgres":
            # Naive split is fine: the schema has no semicolons inside literals.
            for stmt in (s.strip() for s in ddl.split(";")):
                if stmt:
                    conn.execute(stmt)
        else:
            conn.executescript(ddl)
