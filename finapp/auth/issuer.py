from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .errors import AlreadyExists, InvalidCredentials, InvalidRegistration
from .models import Credential, Principal
from .policy import AuthMode, CookiePolicy, CookieValue, ModePolicy
from .security import CredentialVerifier, TokenCodec
from .store import UniquenessViolation, UserStore, normalize_identifier


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
# Subject ids are UUID strings; a username must never be mistaken for one.
_SUBJECT_ID_RE = re.compile(r"^[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}$")

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class LoginOutcome:
    """What a successful login delivers, per the effective mode.

    header -> token only; cookie -> cookie only; both -> token and cookie.
    """

    principal: Principal
    mode: AuthMode
    token: Optional[str] = None
    cookie: Optional[CookieValue] = None


class SessionIssuer:
    def __init__(
        self,
        *,
        store: UserStore,
        verifier: CredentialVerifier,
        codec: TokenCodec,
        modes: ModePolicy,
        cookies: CookiePolicy,
    ):
        self._store = store
        self._verifier = verifier
        self._codec = codec
        self._modes = modes
        self._cookies = cookies

    def register(self, username: str, email: str, password: str) -> Principal:
        """Create an account. Does not log the new user in."""
        u = normalize_identifier(username)
        e = normalize_identifier(email)
        if len(u) < MIN_USERNAME_LENGTH:
            raise InvalidRegistration("username_too_short")
        if "@" in u or _SUBJECT_ID_RE.match(u):
            # Identifiers are matched against username OR email at login,
            # and session tokens are resolved by subject id first.
            raise InvalidRegistration("username_invalid")
        if not _EMAIL_RE.match(e):
            raise InvalidRegistration("email_invalid")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise InvalidRegistration("password_too_short")

        credential = Credential(username=u, email=e, password_hash=self._verifier.hash(password))
        try:
            principal = self._store.save(credential)
        except UniquenessViolation:
            # Which column collided is storage detail; callers only learn "taken".
            raise AlreadyExists() from None

        _debug(f"registered user {principal.username} ({principal.subject_id})")
        return principal

    def login(self, identifier: str, password: str, requested_mode: str | None = None) -> LoginOutcome:
        credential = self._store.find_credential_by_identifier(identifier)
        if credential is None:
            self._verifier.dummy_verify()
            _debug(f"login failed for {normalize_identifier(identifier)!r}")
            raise InvalidCredentials()
        if not self._verifier.verify(password, credential.password_hash):
            _debug(f"login failed for {normalize_identifier(identifier)!r}")
            raise InvalidCredentials()

        assert credential.subject_id is not None
        principal = Principal(
            subject_id=credential.subject_id,
            username=credential.username,
            email=credential.email,
        )
        self._store.touch_last_login(principal.subject_id)

        token = self._codec.issue(
            principal.subject_id,
            {"username": principal.username, "email": principal.email},
        )
        mode = self._modes.resolve_effective_mode(requested_mode)
        _debug(f"login {principal.username} ({principal.subject_id}) mode={mode.value}")

        return LoginOutcome(
            principal=principal,
            mode=mode,
            token=token if mode in (AuthMode.HEADER_ONLY, AuthMode.BOTH) else None,
            cookie=self._cookies.build(token) if mode in (AuthMode.COOKIE_ONLY, AuthMode.BOTH) else None,
        )

    def logout(self) -> CookieValue:
        """Always succeeds; the client discards its token, we clear the cookie."""
        return self._cookies.build_clearing()
