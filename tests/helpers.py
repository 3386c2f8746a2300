from __future__ import annotations

from finapp.config import Config


# HS256 keys shorter than 32 bytes trigger PyJWT key-length warnings.
SECRET = "test-secret-0123456789abcdef-0123456789"
COOKIE = "auth-token"


class FakeClock:
    def __init__(self, t: float = 1_700_000_000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


def make_config(tmp_path, **overrides) -> Config:
    values = dict(
        DB_DSN=str(tmp_path / "finapp.sqlite"),
        AUTH_MODE="both",
        AUTH_JWT_SECRET=SECRET,
        AUTH_TOKEN_TTL_SECONDS=900,
        AUTH_COOKIE_NAME=COOKIE,
        AUTH_COOKIE_PATH="/",
        AUTH_COOKIE_DOMAIN=None,
        AUTH_COOKIE_MAX_AGE_SECONDS=900,
        AUTH_COOKIE_SAMESITE="Strict",
        AUTH_COOKIE_SECURE=False,
        AUTH_API_PREFIXES=("/api/",),
        AUTH_PUBLIC_API_PATHS=("/api/login", "/api/register", "/api/logout", "/api/auth/config"),
        AUTH_PASSWORD_SCHEMES=("pbkdf2_sha256",),
        CORS_ALLOW_ORIGINS="",
    )
    values.update(overrides)
    return Config(**values)


def tamper_signature(token: str) -> str:
    """Flip one character in the middle of the signature segment.

    The last base64url character of an HS256 signature carries padding bits,
    so changing it may not change the decoded bytes.
    """
    header, payload, sig = token.split(".")
    i = len(sig) // 2
    ch = "A" if sig[i] != "A" else "B"
    return ".".join([header, payload, sig[:i] + ch + sig[i + 1 :]])
