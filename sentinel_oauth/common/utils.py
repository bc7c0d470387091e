"""
Common utilities and helper functions for the Sentinel OAuth core.
"""

import base64
import secrets
from datetime import datetime, timezone
from typing import Optional, Union

# Upper bound used for "no upper bound" range queries: 10000-01-01T00:00:00Z.
DATETIME_MAX = 253402300800.0

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token."""
    return secrets.token_urlsafe(length)


def get_current_time() -> datetime:
    """Get the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Return the datetime as an aware UTC value.

    Naive datetimes are taken to already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_unix_time(value: datetime) -> float:
    """
    Convert a datetime to seconds since the unix epoch.

    Args:
        value: Datetime to convert (naive values are treated as UTC)

    Returns:
        Seconds since epoch, including fractions
    """
    return (ensure_utc(value) - EPOCH).total_seconds()


def from_unix_time(seconds: Union[int, float, str]) -> datetime:
    """Convert seconds since the unix epoch to an aware UTC datetime."""
    return datetime.fromtimestamp(float(seconds), tz=timezone.utc)


def urlsafe_b64encode(data: Union[str, bytes]) -> str:
    """Base64url encode a string or bytes value and return text."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.urlsafe_b64encode(data).decode("ascii")


def urlsafe_b64decode(data: str) -> bytes:
    """
    Decode base64url text, tolerating missing padding.

    Raises:
        ValueError: If the text is not valid base64
    """
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (UnicodeEncodeError, ValueError) as e:
        raise ValueError(f"Invalid base64 value: {e}") from e


def mask_sensitive_data(data: Optional[str], mask_char: str = "*", visible_chars: int = 4) -> str:
    """
    Mask sensitive data, showing only first and last few characters.

    Args:
        data: Data to mask
        mask_char: Character to use for masking
        visible_chars: Number of characters to show at start and end

    Returns:
        Masked string
    """
    if not data:
        return ""

    if len(data) <= visible_chars * 2:
        return mask_char * len(data)

    visible_start = visible_chars // 2
    visible_end = visible_chars - visible_start

    masked_length = len(data) - visible_chars
    return data[:visible_start] + mask_char * masked_length + data[-visible_end:]
