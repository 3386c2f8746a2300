"""
App-level middleware, registered in an explicit order.
"""

from __future__ import annotations

from typing import List

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finapp.auth.authenticator import RequestAuthenticator
from finapp.auth.errors import AuthenticationRequired
from finapp.auth.policy import CookiePolicy


def register_middleware(
    app: FastAPI,
    *,
    authenticator: RequestAuthenticator,
    cookies: CookiePolicy,
    cors_origins: List[str],
) -> None:
    """Attach middleware. Starlette runs the last one added first, so the
    effective order per request is: CORS -> authentication -> route handler.
    """

    @app.middleware("http")
    async def authenticate_request(request: Request, call_next):
        # The identity lookup is blocking I/O; keep it off the event loop.
        ctx = await run_in_threadpool(
            authenticator.authenticate,
            request.headers.get("authorization"),
            dict(request.cookies),
            request.url.path,
        )
        request.state.auth = ctx

        if ctx.short_circuit:
            err = AuthenticationRequired()
            response = JSONResponse(
                status_code=err.status_code,
                content={"detail": err.detail},
                headers={"WWW-Authenticate": "Bearer"},
            )
        else:
            response = await call_next(request)

        if ctx.clear_cookie:
            clearing = cookies.build_clearing()
            # Don't undo a cookie the handler just wrote (e.g. a fresh login).
            if not clearing.sets_cookie_in(response.headers.getlist("set-cookie")):
                response.set_cookie(**clearing.set_cookie_kwargs())
        return response

    # CORS is mainly needed for local development (frontend on another origin).
    # Cookie transport across origins requires credentials + explicit origins.
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
