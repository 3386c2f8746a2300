"""Create a user in the configured DB.

Usage:
  python scripts/create_user.py --username alice --email alice@example.com --password '...'

NOTE: This is intended for local/dev.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from finapp.auth.errors import AuthError
from finapp.auth.policy import CookiePolicy, ModePolicy
from finapp.auth.issuer import SessionIssuer
from finapp.auth.security import CredentialVerifier, TokenCodec
from finapp.auth.store import SqlUserStore
from finapp.config import load_config
from finapp.db import init_db


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--username", required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    issuer = SessionIssuer(
        store=SqlUserStore(cfg.DB_DSN),
        verifier=CredentialVerifier(schemes=cfg.AUTH_PASSWORD_SCHEMES),
        codec=TokenCodec(secret=cfg.AUTH_JWT_SECRET, ttl_seconds=cfg.AUTH_TOKEN_TTL_SECONDS),
        modes=ModePolicy.from_config(cfg),
        cookies=CookiePolicy.from_config(cfg),
    )
    try:
        principal = issuer.register(args.username, args.email, args.password)
    except AuthError as e:
        print(f"Could not create user: {e.detail}")
        raise SystemExit(1)

    print("Created user:")
    print(principal.public())


if __name__ == "__main__":
    main()
