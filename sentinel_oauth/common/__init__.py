"""
Common utilities shared across the Sentinel OAuth packages.
"""

from .utils import (
    DATETIME_MAX,
    ensure_utc,
    from_unix_time,
    generate_secure_token,
    get_current_time,
    mask_sensitive_data,
    to_unix_time,
    urlsafe_b64decode,
    urlsafe_b64encode,
)

__all__ = [
    "DATETIME_MAX",
    "ensure_utc",
    "from_unix_time",
    "generate_secure_token",
    "get_current_time",
    "mask_sensitive_data",
    "to_unix_time",
    "urlsafe_b64decode",
    "urlsafe_b64encode",
]
