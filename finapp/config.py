import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from dotenv import load_dotenv

# Load a local .env file if present (no-op otherwise).
load_dotenv()


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


def _env_csv(name: str, default: str) -> Tuple[str, ...]:
    raw = os.environ.get(name)
    if raw is None:
        raw = default
    return tuple(x.strip() for x in raw.split(",") if x.strip())


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Every field can be overridden with an environment variable of the same
    name (or a .env file). Tests construct Config(...) directly.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set FINAPP_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: FINAPP_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("FINAPP_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("FINAPP_DB_PATH", "./finapp.sqlite")
    )

    # -----------------
    # Auth mode
    # -----------------
    # header: Authorization: Bearer <token> only
    # cookie: httpOnly session cookie only
    # both:   header first, cookie as fallback
    AUTH_MODE: str = os.environ.get("AUTH_MODE", "header")

    # -----------------
    # Tokens (JWT)
    # -----------------
    # NOTE: In dev, this defaults to a fixed string so you can get started.
    # In production, you MUST set AUTH_JWT_SECRET to a strong random value.
    # Rotating it invalidates every outstanding token.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "dev_change_me")
    AUTH_TOKEN_TTL_SECONDS: int = int(os.environ.get("AUTH_TOKEN_TTL_SECONDS", "900"))

    # Passlib schemes; the first one is used for new hashes.
    AUTH_PASSWORD_SCHEMES: Tuple[str, ...] = _env_csv("AUTH_PASSWORD_SCHEMES", "pbkdf2_sha256")

    # -----------------
    # Session cookie
    # -----------------
    AUTH_COOKIE_NAME: str = os.environ.get("AUTH_COOKIE_NAME", "auth-token")
    AUTH_COOKIE_PATH: str = os.environ.get("AUTH_COOKIE_PATH", "/")
    AUTH_COOKIE_DOMAIN: str | None = (os.environ.get("AUTH_COOKIE_DOMAIN") or "").strip() or None
    AUTH_COOKIE_MAX_AGE_SECONDS: int = int(os.environ.get("AUTH_COOKIE_MAX_AGE_SECONDS", "900"))
    AUTH_COOKIE_SAMESITE: str = os.environ.get("AUTH_COOKIE_SAMESITE", "Strict")  # Strict|Lax|None

    # If AUTH_COOKIE_SECURE is unset, we default to secure cookies when PUBLIC_APP_URL is https.
    # NOTE: Browsers require Secure when SameSite=None; CookiePolicy enforces that.
    PUBLIC_APP_URL: str = os.environ.get("PUBLIC_APP_URL", "http://localhost:8000")
    AUTH_COOKIE_SECURE: bool = (
        _env_bool("AUTH_COOKIE_SECURE", None)
        if _env_bool("AUTH_COOKIE_SECURE", None) is not None
        else PUBLIC_APP_URL.lower().startswith("https://")
    )

    # -----------------
    # Route classes
    # -----------------
    # Requests under these prefixes are API routes: a rejected token ends the
    # request with 401. Everything else (pages) continues unauthenticated.
    AUTH_API_PREFIXES: Tuple[str, ...] = _env_csv("AUTH_API_PREFIXES", "/api/")
    # API paths that never hard-fail on a stale token, so a client can always re-login.
    AUTH_PUBLIC_API_PATHS: Tuple[str, ...] = _env_csv(
        "AUTH_PUBLIC_API_PATHS",
        "/api/login,/api/register,/api/logout,/api/auth/config",
    )

    # -----------------
    # CORS (development)
    # -----------------
    # Cookie mode across origins needs credentials + an explicit origin list.
    CORS_ALLOW_ORIGINS: str = os.environ.get("CORS_ALLOW_ORIGINS", "")

    def cors_origins(self) -> List[str]:
        return [o.strip() for o in (self.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]


def load_config() -> Config:
    return Config()
