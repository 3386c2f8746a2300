from __future__ import annotations

import time
from datetime import datetime, timezone


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def epoch_seconds() -> float:
    """Wall-clock time used for token issuance and expiry checks."""
    return time.time()
