from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from finapp import __version__
from finapp.auth import (
    AuthContext,
    CookiePolicy,
    ModePolicy,
    RequestAuthenticator,
    RoutePolicy,
    SessionIssuer,
    get_auth_context,
    get_current_principal,
)
from finapp.auth.errors import AuthError, AuthenticationRequired
from finapp.auth.models import Principal
from finapp.auth.security import CredentialVerifier, TokenCodec
from finapp.auth.store import SqlUserStore, UserStore
from finapp.api.middleware import register_middleware
from finapp.config import Config, load_config
from finapp.db import init_db


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    """identifier is a username or an email address.

    mode is an optional delivery hint (header|cookie|both); the authMode
    query parameter is accepted too, the body wins when both are given.
    """

    identifier: str
    password: str
    mode: Optional[str] = None


def create_app(cfg: Config | None = None, store: UserStore | None = None) -> FastAPI:
    cfg = cfg or load_config()

    # Everything below is immutable after startup and shared by all requests.
    modes = ModePolicy.from_config(cfg)
    cookies = CookiePolicy.from_config(cfg)
    routes = RoutePolicy.from_config(cfg)
    codec = TokenCodec(secret=cfg.AUTH_JWT_SECRET, ttl_seconds=cfg.AUTH_TOKEN_TTL_SECONDS)
    verifier = CredentialVerifier(schemes=cfg.AUTH_PASSWORD_SCHEMES)
    user_store: UserStore = store or SqlUserStore(cfg.DB_DSN)

    authenticator = RequestAuthenticator(
        modes=modes, codec=codec, store=user_store, cookies=cookies, routes=routes
    )
    issuer = SessionIssuer(store=user_store, verifier=verifier, codec=codec, modes=modes, cookies=cookies)

    app = FastAPI(title="Personal Finance Tracker", version=__version__)
    app.state.cfg = cfg

    register_middleware(app, authenticator=authenticator, cookies=cookies, cors_origins=cfg.cors_origins())

    @app.on_event("startup")
    def _on_startup() -> None:
        # Ensure schema exists (only for the built-in SQL store).
        if store is None:
            init_db(cfg.DB_DSN)
        _debug(f"auth mode={modes.mode.value} cookie={cookies.name}")

    @app.exception_handler(AuthError)
    async def _auth_error(request: Request, exc: AuthError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationRequired) else None
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)

    # -----------------------------
    # Health (page-class route)
    # -----------------------------

    @app.get("/health")
    def health(ctx: AuthContext = Depends(get_auth_context)) -> Dict[str, Any]:
        return {"status": "ok", "authenticated": ctx.is_authenticated}

    # -----------------------------
    # Auth
    # -----------------------------

    @app.post("/api/register")
    def auth_register(payload: RegisterRequest) -> Dict[str, Any]:
        principal = issuer.register(payload.username, payload.email, payload.password)
        return {"message": "registration_successful", "user": principal.public()}

    @app.post("/api/login")
    def auth_login(
        payload: LoginRequest,
        response: Response,
        auth_mode: Optional[str] = Query(default=None, alias="authMode"),
    ) -> Dict[str, Any]:
        outcome = issuer.login(payload.identifier, payload.password, payload.mode or auth_mode)

        body: Dict[str, Any] = {
            "auth_mode": outcome.mode.value,
            "message": "login_successful",
            "user": outcome.principal.public(),
        }
        if outcome.token is not None:
            body["token"] = outcome.token
            body["token_type"] = "bearer"
        if outcome.cookie is not None:
            response.set_cookie(**outcome.cookie.set_cookie_kwargs())
        return body

    @app.post("/api/logout")
    def auth_logout(response: Response) -> Dict[str, Any]:
        """Clear the session cookie. Succeeds with or without a session."""
        response.set_cookie(**issuer.logout().set_cookie_kwargs())
        return {"ok": True}

    @app.get("/api/auth/config")
    def auth_config() -> Dict[str, Any]:
        """Let clients discover which transports the server accepts."""
        return modes.describe()

    @app.get("/api/me")
    def auth_me(principal: Principal = Depends(get_current_principal)) -> Dict[str, Any]:
        return {"user": principal.public()}

    return app


app = create_app()
