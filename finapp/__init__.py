"""Personal finance tracker (finapp) - authentication backend.

This package holds the request-authentication core of the tracker:
- Users register with username/email/password (only a password hash is stored).
- Login issues a signed JWT delivered as a bearer token, an httpOnly cookie, or both.
- Every request passes through a single authenticator that reads the enabled transport(s).

Transactions, categories and budgets live elsewhere and only consume the
authenticated principal.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
