"""Authentication error taxonomy.

Each error carries the HTTP status it maps to and a stable snake_case
``detail`` string so frontends can branch on it.

TokenInvalid and TokenExpired are internal validation reasons: the request
authenticator classifies them for cleanup and logging, and both collapse to
the same client-visible rejection.
"""

from __future__ import annotations


class AuthError(Exception):
    status_code: int = 401
    detail: str = "authentication_error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class TokenInvalid(AuthError):
    """Bad signature, malformed token, or missing required claims."""

    detail = "token_invalid"


class TokenExpired(AuthError):
    """Signature verified but the token is past its expiry."""

    detail = "token_expired"


class InvalidCredentials(AuthError):
    detail = "invalid_credentials"


class AuthenticationRequired(AuthError):
    detail = "authentication_required"


class AlreadyExists(AuthError):
    status_code = 409
    detail = "already_exists"


class InvalidRegistration(AuthError):
    status_code = 400
    detail = "invalid_registration"
