from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from finapp.api.server import create_app
from finapp.auth.authenticator import RequestAuthenticator
from finapp.auth.issuer import SessionIssuer
from finapp.auth.policy import AuthMode, CookiePolicy, CookieSpec, ModePolicy, RoutePolicy
from finapp.auth.security import CredentialVerifier, TokenCodec
from finapp.auth.store import SqlUserStore
from finapp.db import init_db

from tests.helpers import COOKIE, SECRET, FakeClock, make_config


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def codec(clock):
    return TokenCodec(secret=SECRET, ttl_seconds=900, now=clock)


@pytest.fixture
def verifier():
    return CredentialVerifier()


@pytest.fixture
def store(tmp_path):
    dsn = str(tmp_path / "store.sqlite")
    init_db(dsn)
    return SqlUserStore(dsn)


@pytest.fixture
def cookie_policy():
    return CookiePolicy(CookieSpec(name=COOKIE, max_age_seconds=900))


@pytest.fixture
def route_policy():
    return RoutePolicy(api_prefixes=("/api/",), public_paths=("/api/login", "/api/register", "/api/logout"))


@pytest.fixture
def make_issuer(store, verifier, codec, cookie_policy):
    def _make(mode: AuthMode = AuthMode.BOTH) -> SessionIssuer:
        return SessionIssuer(
            store=store, verifier=verifier, codec=codec, modes=ModePolicy(mode), cookies=cookie_policy
        )

    return _make


@pytest.fixture
def make_authenticator(store, codec, cookie_policy, route_policy):
    def _make(mode: AuthMode = AuthMode.BOTH) -> RequestAuthenticator:
        return RequestAuthenticator(
            modes=ModePolicy(mode), codec=codec, store=store, cookies=cookie_policy, routes=route_policy
        )

    return _make


@pytest.fixture
def make_client(tmp_path):
    """Build a TestClient (startup events run) for a given config override."""
    clients = []

    def _make(**overrides) -> TestClient:
        client = TestClient(create_app(make_config(tmp_path, **overrides)))
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.__exit__(None, None, None)
