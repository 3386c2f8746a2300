from __future__ import annotations

from tests.helpers import COOKIE


PASSWORD = "correct horse battery"


def _register(client, username="alice", email="alice@example.com"):
    r = client.post("/api/register", json={"username": username, "email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text
    return r.json()["user"]


def _session_cookies(response):
    return [h for h in response.headers.get_list("set-cookie") if h.startswith(f"{COOKIE}=")]


def _is_clearing(header):
    return "Max-Age=0" in header


def test_register_and_conflict(make_client):
    client = make_client()
    user = _register(client)
    assert user["username"] == "alice"
    assert "password" not in user and "password_hash" not in user

    r = client.post("/api/register", json={"username": "ALICE", "email": "new@example.com", "password": PASSWORD})
    assert r.status_code == 409
    assert r.json() == {"detail": "already_exists"}


def test_register_validation(make_client):
    r = make_client().post("/api/register", json={"username": "alice", "email": "alice@example.com", "password": "x"})
    assert r.status_code == 400
    assert r.json()["detail"] == "password_too_short"


def test_login_hint_cookie_under_both(make_client):
    client = make_client(AUTH_MODE="both")
    _register(client)
    r = client.post("/api/login", params={"authMode": "cookie"}, json={"identifier": "alice", "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["auth_mode"] == "cookie"
    assert "token" not in body
    cookies = _session_cookies(r)
    assert len(cookies) == 1
    assert "HttpOnly" in cookies[0] and "SameSite=Strict" in cookies[0] and "Max-Age=900" in cookies[0]


def test_login_without_hint_under_both(make_client):
    client = make_client(AUTH_MODE="both")
    _register(client)
    r = client.post("/api/login", json={"identifier": "alice@example.com", "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["auth_mode"] == "both"
    assert body["token"]
    assert body["token_type"] == "bearer"
    cookies = _session_cookies(r)
    assert len(cookies) == 1
    assert cookies[0].startswith(f"{COOKIE}={body['token']}")


def test_login_body_hint_wins_over_query(make_client):
    client = make_client(AUTH_MODE="both")
    _register(client)
    r = client.post(
        "/api/login",
        params={"authMode": "cookie"},
        json={"identifier": "alice", "password": PASSWORD, "mode": "header"},
    )
    assert r.json()["auth_mode"] == "header"
    assert r.json()["token"]
    assert _session_cookies(r) == []


def test_disallowed_hint_falls_back(make_client):
    client = make_client(AUTH_MODE="header")
    _register(client)
    r = client.post("/api/login", params={"authMode": "cookie"}, json={"identifier": "alice", "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["auth_mode"] == "header"
    assert _session_cookies(r) == []


def test_invalid_credentials(make_client):
    client = make_client()
    _register(client)
    r = client.post("/api/login", json={"identifier": "alice", "password": "wrong password"})
    assert r.status_code == 401
    assert r.json() == {"detail": "invalid_credentials"}
    assert _session_cookies(r) == []


def test_me_with_bearer_token(make_client):
    client = make_client(AUTH_MODE="header")
    user = _register(client)
    token = client.post("/api/login", json={"identifier": "alice", "password": PASSWORD}).json()["token"]

    r = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["user"] == user


def test_me_with_cookie_session(make_client):
    client = make_client(AUTH_MODE="cookie")
    user = _register(client)
    client.post("/api/login", json={"identifier": "alice", "password": PASSWORD})

    # The client jar now carries the httpOnly session cookie.
    r = client.get("/api/me")
    assert r.status_code == 200
    assert r.json()["user"] == user


def test_me_requires_authentication(make_client):
    r = make_client().get("/api/me")
    assert r.status_code == 401
    assert r.json() == {"detail": "authentication_required"}
    assert r.headers["www-authenticate"] == "Bearer"
    assert _session_cookies(r) == []


def test_cookie_only_ignores_bearer_header(make_client):
    client = make_client(AUTH_MODE="both")
    _register(client)
    token = client.post("/api/login", params={"authMode": "header"}, json={"identifier": "alice", "password": PASSWORD}).json()["token"]

    cookie_only = make_client(AUTH_MODE="cookie")
    r = cookie_only.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "authentication_required"

    r = cookie_only.get("/health", headers={"Authorization": f"Bearer {token}"})
    assert r.json() == {"status": "ok", "authenticated": False}


def test_header_takes_precedence_over_cookie(make_client):
    client = make_client(AUTH_MODE="both")
    alice = _register(client, "alice", "alice@example.com")
    _register(client, "bob", "bob@example.com")
    alice_token = client.post("/api/login", params={"authMode": "header"}, json={"identifier": "alice", "password": PASSWORD}).json()["token"]
    bob_token = client.post("/api/login", params={"authMode": "header"}, json={"identifier": "bob", "password": PASSWORD}).json()["token"]

    r = client.get(
        "/api/me",
        headers={"Authorization": f"Bearer {alice_token}", "Cookie": f"{COOKIE}={bob_token}"},
    )
    assert r.status_code == 200
    assert r.json()["user"] == alice


def test_invalid_cookie_on_api_route(make_client):
    client = make_client(AUTH_MODE="both")
    r = client.get("/api/me", headers={"Cookie": f"{COOKIE}=not-a-token"})
    assert r.status_code == 401
    assert r.json() == {"detail": "authentication_required"}
    cookies = _session_cookies(r)
    assert len(cookies) == 1 and _is_clearing(cookies[0])


def test_invalid_cookie_on_page_route(make_client):
    client = make_client(AUTH_MODE="both")
    r = client.get("/health", headers={"Cookie": f"{COOKIE}=not-a-token"})
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "authenticated": False}
    cookies = _session_cookies(r)
    assert len(cookies) == 1 and _is_clearing(cookies[0])


def test_invalid_header_on_api_route_keeps_cookies(make_client):
    client = make_client(AUTH_MODE="both")
    r = client.get("/api/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401
    assert _session_cookies(r) == []


def test_stale_cookie_does_not_block_login(make_client):
    client = make_client(AUTH_MODE="cookie")
    _register(client)
    r = client.post(
        "/api/login",
        json={"identifier": "alice", "password": PASSWORD},
        headers={"Cookie": f"{COOKIE}=stale-token"},
    )
    assert r.status_code == 200
    cookies = _session_cookies(r)
    # Only the fresh session cookie; the stale-cookie cleanup must not undo it.
    assert len(cookies) == 1
    assert not _is_clearing(cookies[0])


def test_logout_without_session(make_client):
    r = make_client().post("/api/logout")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    cookies = _session_cookies(r)
    assert len(cookies) == 1 and _is_clearing(cookies[0])


def test_logout_after_cookie_login(make_client):
    client = make_client(AUTH_MODE="cookie")
    _register(client)
    client.post("/api/login", json={"identifier": "alice", "password": PASSWORD})
    assert client.get("/api/me").status_code == 200

    r = client.post("/api/logout")
    assert r.status_code == 200
    cookies = _session_cookies(r)
    assert len(cookies) == 1 and _is_clearing(cookies[0])
    assert client.get("/api/me").status_code == 401


def test_logout_with_stale_cookie_clears_once(make_client):
    r = make_client(AUTH_MODE="cookie").post("/api/logout", headers={"Cookie": f"{COOKIE}=stale-token"})
    assert r.status_code == 200
    assert len(_session_cookies(r)) == 1


def test_auth_config(make_client):
    r = make_client(AUTH_MODE="both").get("/api/auth/config")
    assert r.status_code == 200
    assert r.json() == {"mode": "both", "header_enabled": True, "cookie_enabled": True, "dual_mode": True}
