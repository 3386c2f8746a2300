from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Sequence

import jwt
from passlib.context import CryptContext

from finapp.util.time import epoch_seconds

from .errors import TokenExpired, TokenInvalid
from .models import TokenClaims


_JWT_ALG = "HS256"
_REQUIRED_CLAIMS = ["sub", "iat", "exp"]


class CredentialVerifier:
    """One-way password hashing behind a narrow hash/verify interface.

    The algorithm is whatever passlib scheme list is configured; the first
    scheme hashes new passwords, older ones still verify.
    """

    def __init__(self, schemes: Sequence[str] = ("pbkdf2_sha256",)):
        if not schemes:
            raise ValueError("password_schemes_blank")
        self._ctx = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("password_blank")
        return self._ctx.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not password or not password_hash:
            return False
        try:
            return self._ctx.verify(password, password_hash)
        except (ValueError, TypeError):
            # Unknown or malformed hash format.
            return False

    def dummy_verify(self) -> None:
        """Spend a verify's worth of time for identifiers with no account."""
        self._ctx.dummy_verify()


class TokenCodec:
    """Signs and validates self-contained session tokens (HS256 JWTs).

    Validation checks the signature before anything else; expiry is then
    checked against the codec's own clock so the two failure reasons stay
    distinguishable (TokenInvalid vs TokenExpired).
    """

    def __init__(
        self,
        *,
        secret: str,
        ttl_seconds: int,
        now: Callable[[], float] = epoch_seconds,
    ):
        if not secret:
            raise ValueError("jwt_secret_blank")
        if int(ttl_seconds) <= 0:
            raise ValueError("token_ttl_invalid")
        self._secret = secret
        self._ttl = int(ttl_seconds)
        self._now = now

    def issue(self, subject_id: str, claims: Mapping[str, Any], ttl: int | None = None) -> str:
        lifetime = self._ttl if ttl is None else int(ttl)
        if lifetime <= 0:
            raise ValueError("token_ttl_invalid")

        iat = int(self._now())
        payload: Dict[str, Any] = {
            "sub": str(subject_id),
            "username": str(claims.get("username") or ""),
            "email": str(claims.get("email") or ""),
            "iat": iat,
            "exp": iat + lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=_JWT_ALG)

    def validate(self, token: str) -> TokenClaims:
        if not token:
            raise TokenInvalid("token_blank")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_JWT_ALG],
                options={
                    # Expiry is checked below against our clock.
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidTokenError as e:
            raise TokenInvalid() from e

        exp = payload.get("exp")
        iat = payload.get("iat")
        if not isinstance(exp, int) or not isinstance(iat, int):
            raise TokenInvalid("token_claims_malformed")

        if self._now() >= exp:
            raise TokenExpired()

        return TokenClaims(
            subject_id=str(payload["sub"]),
            username=str(payload.get("username") or ""),
            email=str(payload.get("email") or ""),
            issued_at=iat,
            expires_at=exp,
        )
