"""Per-request authentication.

The authenticator is framework-free: it receives the raw Authorization
header, the request cookies and the path, and returns an immutable
AuthContext describing what happened. The HTTP layer (see
finapp.api.middleware) applies that context: it binds it to the request,
short-circuits with 401, and writes the clearing cookie.

States for one request:

    NO_CREDENTIAL                      nothing presented on an enabled transport
    (candidate) -> VALIDATED           token verified, principal resolved
    (candidate) -> REJECTED            token invalid/expired or subject gone

There is no state across requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple

from fastapi.security.utils import get_authorization_scheme_param

from .errors import TokenExpired, TokenInvalid
from .models import AuthSource, Principal
from .policy import CookiePolicy, ModePolicy, RoutePolicy
from .security import TokenCodec
from .store import UserStore


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


class AuthState(str, Enum):
    NO_CREDENTIAL = "no_credential"
    VALIDATED = "validated"
    REJECTED = "rejected"


class FailureReason(str, Enum):
    TOKEN_INVALID = "token_invalid"
    TOKEN_EXPIRED = "token_expired"
    PRINCIPAL_NOT_FOUND = "principal_not_found"


@dataclass(frozen=True)
class AuthContext:
    state: AuthState
    principal: Optional[Principal] = None
    source: Optional[AuthSource] = None
    failure: Optional[FailureReason] = None
    # Response instructions for the HTTP layer.
    clear_cookie: bool = False
    short_circuit: bool = False

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls(state=AuthState.NO_CREDENTIAL)

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.VALIDATED and self.principal is not None


class RequestAuthenticator:
    def __init__(
        self,
        *,
        modes: ModePolicy,
        codec: TokenCodec,
        store: UserStore,
        cookies: CookiePolicy,
        routes: RoutePolicy,
    ):
        self._modes = modes
        self._codec = codec
        self._store = store
        self._cookies = cookies
        self._routes = routes

    def extract(
        self,
        authorization: Optional[str],
        cookies: Mapping[str, str],
    ) -> Tuple[Optional[str], Optional[AuthSource]]:
        """Find the candidate token on the enabled transport(s).

        The header wins when both are enabled and present. A disabled
        transport is never read.
        """
        if self._modes.is_header_enabled() and authorization:
            scheme, param = get_authorization_scheme_param(authorization)
            if scheme.lower() == "bearer" and param.strip():
                return param.strip(), AuthSource.HEADER

        if self._modes.is_cookie_enabled():
            value = (cookies.get(self._cookies.name) or "").strip()
            if value:
                return value, AuthSource.COOKIE

        return None, None

    def authenticate(
        self,
        authorization: Optional[str],
        cookies: Mapping[str, str],
        path: str,
    ) -> AuthContext:
        token, source = self.extract(authorization, cookies)
        if token is None:
            return AuthContext.anonymous()

        try:
            claims = self._codec.validate(token)
        except TokenExpired:
            return self._reject(FailureReason.TOKEN_EXPIRED, source, path)
        except TokenInvalid:
            return self._reject(FailureReason.TOKEN_INVALID, source, path)

        principal = self._store.find_by_subject_or_username(claims.subject_id)
        if principal is None:
            return self._reject(FailureReason.PRINCIPAL_NOT_FOUND, source, path)

        return AuthContext(state=AuthState.VALIDATED, principal=principal, source=source)

    def _reject(self, reason: FailureReason, source: Optional[AuthSource], path: str) -> AuthContext:
        short_circuit = self._routes.rejects_on_failure(path)
        clear_cookie = source is AuthSource.COOKIE
        _debug(
            f"rejected {source.value if source else '-'} token on {path}: {reason.value}"
            f" ({'401' if short_circuit else 'continue anonymous'})"
        )
        return AuthContext(
            state=AuthState.REJECTED,
            source=source,
            failure=reason,
            clear_cookie=clear_cookie,
            short_circuit=short_circuit,
        )
