"""Authentication core.

The API accepts a session token on either transport, depending on AUTH_MODE:

- `Authorization: Bearer <token>` (scripts / API clients)
- an httpOnly cookie (browsers), set by `/api/login`

Both carry the same signed JWT. The request authenticator reads the enabled
transport(s), header first, and binds the resolved principal to the request.
"""

from .authenticator import AuthContext, AuthState, FailureReason, RequestAuthenticator
from .deps import get_auth_context, get_current_principal
from .issuer import LoginOutcome, SessionIssuer
from .policy import AuthMode, CookiePolicy, ModePolicy, RoutePolicy

__all__ = [
    "AuthContext",
    "AuthMode",
    "AuthState",
    "CookiePolicy",
    "FailureReason",
    "LoginOutcome",
    "ModePolicy",
    "RequestAuthenticator",
    "RoutePolicy",
    "SessionIssuer",
    "get_auth_context",
    "get_current_principal",
]
