from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request."""

    subject_id: str
    username: str
    email: str

    def public(self) -> Dict[str, Any]:
        return {"user_id": self.subject_id, "username": self.username, "email": self.email}


@dataclass(frozen=True)
class Credential:
    """Stored login material. password_hash is never decoded, only verified."""

    username: str
    email: str
    password_hash: str
    subject_id: Optional[str] = None  # assigned by the store on save


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    username: str
    email: str
    issued_at: int
    expires_at: int


class AuthSource(str, Enum):
    """Transport a candidate token was read from."""

    HEADER = "header"
    COOKIE = "cookie"
