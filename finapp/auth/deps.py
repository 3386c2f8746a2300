from __future__ import annotations

from fastapi import Depends, Request

from .authenticator import AuthContext
from .errors import AuthenticationRequired
from .models import Principal


def get_auth_context(request: Request) -> AuthContext:
    """The AuthContext the authentication middleware bound to this request.

    A request that never went through the middleware is anonymous.
    """
    ctx = getattr(request.state, "auth", None)
    if isinstance(ctx, AuthContext):
        return ctx
    return AuthContext.anonymous()


def get_current_principal(ctx: AuthContext = Depends(get_auth_context)) -> Principal:
    """Require an authenticated principal (401 otherwise)."""
    if not ctx.is_authenticated:
        raise AuthenticationRequired()
    assert ctx.principal is not None
    return ctx.principal
