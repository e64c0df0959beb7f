"""
Helper utilities
"""

import secrets
import string
import time
from datetime import datetime, timezone
from typing import Optional

_BASE36 = string.digits + string.ascii_lowercase

def utcnow() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime to aware UTC

    Naive values are taken to already be in UTC, which is how
    they come back from SQLite.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def random_suffix(length: int = 8) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))

def generate_id(prefix: str, length: int = 8) -> str:
    """
    Generate a sortable unique id

    Args:
        prefix: Entity prefix, e.g. "notif"
        length: Length of the random suffix

    Returns:
        "<prefix>_<epoch milliseconds>_<random base-36 suffix>"
    """
    return f"{prefix}_{int(time.time() * 1000)}_{random_suffix(length)}"
