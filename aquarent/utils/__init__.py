"""Utilities package"""

from .validators import format_phone_number
from .helpers import generate_id, utcnow, as_utc

__all__ = [
    "format_phone_number",
    "generate_id",
    "utcnow",
    "as_utc"
]
