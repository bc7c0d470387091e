"""
Credential digests built from inbound request data.

Digests are transient: they are parsed, validated and discarded by the
client manager and never persisted.
"""

import base64
import binascii
import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from ..common.utils import ensure_utc, from_unix_time, get_current_time, urlsafe_b64decode, urlsafe_b64encode

_PARAM_PATTERN = re.compile(r'(\w+)\s*=\s*"((?:[^"\\]|\\.)*)"')


@dataclass
class BasicAuthenticationCipher:
    """The decoded password part of a Basic digest."""

    password: str
    redirect_uri: str

    def encode(self) -> str:
        """Obfuscate the cipher into the form carried as the Basic password."""
        payload = json.dumps({"password": self.password, "redirect_uri": self.redirect_uri})
        return urlsafe_b64encode(payload).rstrip("=")


@dataclass
class BasicAuthenticationDigest:
    """
    HTTP Basic credentials whose password carries an obfuscated cipher.

    The user id is the client id. The password is the base64url encoding of
    a JSON object with ``password`` and ``redirect_uri`` members.
    """

    user_id: str
    password: str

    @classmethod
    def from_header(cls, header: str) -> "BasicAuthenticationDigest":
        """
        Parse an ``Authorization: Basic ...`` header value.

        Raises:
            ValueError: If the header is not valid Basic credentials
        """
        if not header or not header.startswith("Basic "):
            raise ValueError("Not a Basic authorization header")

        try:
            decoded = base64.b64decode(header[6:].strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid Basic credentials: {e}") from e

        if ":" not in decoded:
            raise ValueError("Invalid Basic credentials: missing separator")

        user_id, password = decoded.split(":", 1)
        return cls(user_id=user_id, password=password)

    @classmethod
    def create(cls, user_id: str, password: str, redirect_uri: str) -> "BasicAuthenticationDigest":
        """Build a digest carrying the given password and redirect URI."""
        return cls(user_id=user_id, password=BasicAuthenticationCipher(password, redirect_uri).encode())

    def to_header(self) -> str:
        credentials = f"{self.user_id}:{self.password}"
        return "Basic " + base64.b64encode(credentials.encode("utf-8")).decode("ascii")

    def get_cipher(self) -> BasicAuthenticationCipher:
        """
        Decode the cipher carried in the password.

        Raises:
            ValueError: If the password is not a well-formed cipher
        """
        try:
            data = json.loads(urlsafe_b64decode(self.password).decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            raise ValueError(f"Malformed basic authentication cipher: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("Malformed basic authentication cipher: not an object")

        password = data.get("password")
        redirect_uri = data.get("redirect_uri")
        if not isinstance(password, str) or not isinstance(redirect_uri, str):
            raise ValueError("Malformed basic authentication cipher: missing password or redirect_uri")

        return BasicAuthenticationCipher(password=password, redirect_uri=redirect_uri)


@dataclass
class SignatureAuthenticationDigest:
    """
    Request data signed with the client's private key.

    The signed data is the newline-joined client id, user id, redirect
    URI, timestamp, nonce and payload, see :meth:`get_data`.
    """

    client_id: str
    user_id: str
    redirect_uri: str
    payload: str
    signature: str
    timestamp: Optional[int] = None
    nonce: Optional[str] = None

    FIELDS = ("client_id", "user_id", "redirect_uri", "payload", "signature", "timestamp", "nonce")

    def get_data(self) -> bytes:
        """The canonical bytes covered by the signature."""
        parts = [
            self.client_id,
            self.user_id,
            self.redirect_uri,
            str(self.timestamp) if self.timestamp is not None else "",
            self.nonce or "",
            self.payload,
        ]
        return "\n".join(parts).encode("utf-8")

    def is_fresh(self, maximum_clock_skew: timedelta, now: Optional[datetime] = None) -> bool:
        """Check that the digest timestamp lies within the allowed clock skew."""
        if self.timestamp is None:
            return False
        now = ensure_utc(now) if now is not None else get_current_time()
        try:
            issued = from_unix_time(self.timestamp)
        except (OverflowError, OSError, ValueError):
            return False
        return abs(now - issued) <= maximum_clock_skew

    @classmethod
    def from_header(cls, header: str) -> "SignatureAuthenticationDigest":
        """
        Parse an ``Authorization: Signature k="v", ...`` header value.

        Raises:
            ValueError: If the header is not a complete signature digest
        """
        if not header or not header.startswith("Signature "):
            raise ValueError("Not a Signature authorization header")

        params: Dict[str, str] = {}
        for key, value in _PARAM_PATTERN.findall(header[len("Signature "):]):
            params[key] = re.sub(r"\\(.)", r"\1", value)

        missing = [name for name in ("client_id", "user_id", "redirect_uri", "payload", "signature") if name not in params]
        if missing:
            raise ValueError(f"Signature digest is missing: {', '.join(missing)}")

        timestamp = params.get("timestamp")
        try:
            timestamp_value = int(timestamp) if timestamp else None
        except ValueError as e:
            raise ValueError(f"Invalid signature timestamp: {timestamp}") from e

        return cls(
            client_id=params["client_id"],
            user_id=params["user_id"],
            redirect_uri=params["redirect_uri"],
            payload=params["payload"],
            signature=params["signature"],
            timestamp=timestamp_value,
            nonce=params.get("nonce"),
        )

    def to_header(self) -> str:
        params = []
        for name in self.FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
            params.append(f'{name}="{escaped}"')
        return "Signature " + ", ".join(params)
