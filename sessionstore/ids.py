"""
Session identifiers.

A SessionId wraps a signed 128-bit integer. Its string form is the
unpadded URL-safe base64 encoding of the integer's 16 little-endian
bytes, which keeps it cookie-safe and exactly 22 characters long.
"""

import base64
import binascii
import secrets
from dataclasses import dataclass

from sessionstore.errors import SessionIdError

_ID_BYTES = 16
_ENCODED_LENGTH = 22
_MIN_VALUE = -(1 << 127)
_MAX_VALUE = (1 << 127) - 1


@dataclass(frozen=True, order=True)
class SessionId:
    """
    Opaque, hashable session identifier.

    Use ``SessionId.generate()`` for new sessions and
    ``SessionId.parse()`` for values coming back from a cookie or a
    storage row. ``SessionId.parse(str(session_id)) == session_id``
    holds for every identifier.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("SessionId value must be an int")
        if not _MIN_VALUE <= self.value <= _MAX_VALUE:
            raise SessionIdError(
                message="SessionId value must fit in a signed 128-bit integer",
                details={"value": str(self.value)},
            )

    @classmethod
    def generate(cls) -> "SessionId":
        """Create a new identifier from 128 cryptographically random bits."""
        raw = secrets.token_bytes(_ID_BYTES)
        return cls(int.from_bytes(raw, "little", signed=True))

    @classmethod
    def parse(cls, text: str) -> "SessionId":
        """
        Decode an identifier from its string form.

        Args:
            text: The 22-character URL-safe base64 string.

        Returns:
            The decoded SessionId.

        Raises:
            SessionIdError: If the text is not a valid encoded identifier.
        """
        if not isinstance(text, str) or len(text) != _ENCODED_LENGTH:
            raise SessionIdError(
                message=f"Invalid session id: {text!r}",
                details={"value": str(text)},
            )
        try:
            raw = base64.urlsafe_b64decode(text + "==")
        except (binascii.Error, ValueError) as e:
            raise SessionIdError(
                message=f"Invalid session id: {text!r}",
                details={"value": text},
            ) from e

        # Reject non-canonical encodings so parse/str stay inverse.
        if len(raw) != _ID_BYTES or _encode(raw) != text:
            raise SessionIdError(
                message=f"Invalid session id: {text!r}",
                details={"value": text},
            )
        return cls(int.from_bytes(raw, "little", signed=True))

    def __str__(self) -> str:
        return _encode(self.value.to_bytes(_ID_BYTES, "little", signed=True))

    def __repr__(self) -> str:
        return f"SessionId({str(self)!r})"


def _encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
