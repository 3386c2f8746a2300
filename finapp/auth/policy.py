"""Process-wide transport policies, built once from Config at startup.

- ModePolicy: which credential transports (header / cookie) are active.
- CookiePolicy: attributes of every session cookie the API writes.
- RoutePolicy: which paths hard-fail (401) when a presented token is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from finapp.config import Config


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


class AuthMode(str, Enum):
    HEADER_ONLY = "header"
    COOKIE_ONLY = "cookie"
    BOTH = "both"


# "jwt" is the historic name of header mode.
_MODE_ALIASES = {
    "header": AuthMode.HEADER_ONLY,
    "jwt": AuthMode.HEADER_ONLY,
    "bearer": AuthMode.HEADER_ONLY,
    "cookie": AuthMode.COOKIE_ONLY,
    "both": AuthMode.BOTH,
}


def parse_auth_mode(value: str | None) -> Optional[AuthMode]:
    """Return the AuthMode for a config/hint string, or None if unrecognized."""
    return _MODE_ALIASES.get((value or "").strip().lower())


class ModePolicy:
    def __init__(self, mode: AuthMode):
        self._mode = mode

    @classmethod
    def from_config(cls, cfg: Config) -> "ModePolicy":
        mode = parse_auth_mode(cfg.AUTH_MODE)
        if mode is None:
            raise ValueError(f"invalid_auth_mode: {cfg.AUTH_MODE!r} (expected header|cookie|both)")
        return cls(mode)

    @property
    def mode(self) -> AuthMode:
        return self._mode

    def is_header_enabled(self) -> bool:
        return self._mode in (AuthMode.HEADER_ONLY, AuthMode.BOTH)

    def is_cookie_enabled(self) -> bool:
        return self._mode in (AuthMode.COOKIE_ONLY, AuthMode.BOTH)

    def is_dual_mode(self) -> bool:
        return self._mode is AuthMode.BOTH

    def permits(self, mode: AuthMode) -> bool:
        if mode is AuthMode.HEADER_ONLY:
            return self.is_header_enabled()
        if mode is AuthMode.COOKIE_ONLY:
            return self.is_cookie_enabled()
        return self.is_dual_mode()

    def resolve_effective_mode(self, requested: str | None) -> AuthMode:
        """Honor a requested delivery mode when configuration permits it.

        Absent, unknown, and disallowed requests all fall back to the
        configured mode; disallowed ones are logged.
        """
        if requested is None or not requested.strip():
            return self._mode
        wanted = parse_auth_mode(requested)
        if wanted is not None and self.permits(wanted):
            return wanted
        _debug(f"mode hint {requested!r} not permitted under {self._mode.value}; using {self._mode.value}")
        return self._mode

    def describe(self) -> Dict[str, Any]:
        return {
            "mode": self._mode.value,
            "header_enabled": self.is_header_enabled(),
            "cookie_enabled": self.is_cookie_enabled(),
            "dual_mode": self.is_dual_mode(),
        }


_SAMESITE_VALUES = {"strict": "Strict", "lax": "Lax", "none": "None"}


@dataclass(frozen=True)
class CookieSpec:
    name: str
    max_age_seconds: int
    path: str = "/"
    same_site: str = "Strict"
    secure: bool = False
    domain: Optional[str] = None
    http_only: bool = True


@dataclass(frozen=True)
class CookieValue:
    """A materialized session cookie, ready to be written on a response."""

    spec: CookieSpec
    value: str
    max_age: int

    @property
    def is_clearing(self) -> bool:
        return self.max_age == 0

    def set_cookie_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for starlette's Response.set_cookie()."""
        return {
            "key": self.spec.name,
            "value": self.value,
            "max_age": self.max_age,
            "path": self.spec.path,
            "domain": self.spec.domain,
            "secure": self.spec.secure,
            "httponly": True,
            "samesite": self.spec.same_site,
        }

    def sets_cookie_in(self, set_cookie_headers: Iterable[str]) -> bool:
        """True if any Set-Cookie header value writes this cookie's name."""
        prefix = f"{self.spec.name}="
        return any(h.startswith(prefix) for h in set_cookie_headers)


class CookiePolicy:
    def __init__(self, spec: CookieSpec):
        same_site = _SAMESITE_VALUES.get((spec.same_site or "").strip().lower())
        if same_site is None:
            raise ValueError(f"invalid_cookie_samesite: {spec.same_site!r} (expected Strict|Lax|None)")
        if not spec.name:
            raise ValueError("cookie_name_blank")
        # httpOnly is not configurable; browsers require Secure when SameSite=None.
        self._spec = CookieSpec(
            name=spec.name,
            max_age_seconds=max(0, int(spec.max_age_seconds)),
            path=spec.path or "/",
            same_site=same_site,
            secure=True if same_site == "None" else bool(spec.secure),
            domain=spec.domain,
            http_only=True,
        )

    @classmethod
    def from_config(cls, cfg: Config) -> "CookiePolicy":
        return cls(
            CookieSpec(
                name=cfg.AUTH_COOKIE_NAME,
                max_age_seconds=cfg.AUTH_COOKIE_MAX_AGE_SECONDS,
                path=cfg.AUTH_COOKIE_PATH,
                same_site=cfg.AUTH_COOKIE_SAMESITE,
                secure=cfg.AUTH_COOKIE_SECURE,
                domain=cfg.AUTH_COOKIE_DOMAIN,
            )
        )

    @property
    def spec(self) -> CookieSpec:
        return self._spec

    @property
    def name(self) -> str:
        return self._spec.name

    def build(self, token: str) -> CookieValue:
        return CookieValue(spec=self._spec, value=str(token), max_age=self._spec.max_age_seconds)

    def build_clearing(self) -> CookieValue:
        return CookieValue(spec=self._spec, value="", max_age=0)


class RoutePolicy:
    """Route classes for failure handling.

    API routes reject a bad token with 401 and stop. Page routes, and the
    public API paths (login, register, ...), continue unauthenticated.
    """

    def __init__(self, api_prefixes: Tuple[str, ...] = ("/api/",), public_paths: Tuple[str, ...] = ()):
        self._api_prefixes = tuple(p for p in api_prefixes if p)
        self._public_paths = frozenset(p.rstrip("/") or "/" for p in public_paths)

    @classmethod
    def from_config(cls, cfg: Config) -> "RoutePolicy":
        return cls(api_prefixes=tuple(cfg.AUTH_API_PREFIXES), public_paths=tuple(cfg.AUTH_PUBLIC_API_PATHS))

    def is_api_route(self, path: str) -> bool:
        return any(path == p.rstrip("/") or path.startswith(p) for p in self._api_prefixes)

    def is_public_path(self, path: str) -> bool:
        return (path.rstrip("/") or "/") in self._public_paths

    def rejects_on_failure(self, path: str) -> bool:
        return self.is_api_route(path) and not self.is_public_path(path)
