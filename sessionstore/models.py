"""
Session data model.

SessionRecord is what the stores persist; Session is the read view a
store hands back from ``load``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sessionstore.ids import SessionId


def utc_now() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_expiration(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize an expiration timestamp for storage.

    Naive datetimes are taken to be UTC. The result is converted to UTC
    and truncated to whole seconds, the resolution every backend can
    store exactly.

    Args:
        value: Expiration timestamp, or None for "never expires".

    Returns:
        The normalized timestamp, or None.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def _is_expired(expiration_time: Optional[datetime], now: Optional[datetime]) -> bool:
    if expiration_time is None:
        return False
    return expiration_time <= (now or utc_now())


@dataclass
class SessionRecord:
    """
    The unit of persistence.

    Attributes:
        id: Identifier the record is keyed by
        expiration_time: When the record stops being loadable; None means never
        data: Session state; a dict of JSON values with string keys
    """

    id: SessionId
    expiration_time: Optional[datetime] = None
    data: dict[str, Any] = field(default_factory=dict)

    def __setattr__(self, name: str, value: Any) -> None:
        # Also covers assignment after construction
        if name == "expiration_time":
            value = normalize_expiration(value)
        super().__setattr__(name, value)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the expiration time is set and not in the future."""
        return _is_expired(self.expiration_time, now)


@dataclass(frozen=True)
class Session:
    """
    Caller-visible view of a loaded session.

    Built from a SessionRecord by the stores; it is never written back.
    """

    id: SessionId
    expiration_time: Optional[datetime]
    data: dict[str, Any]

    @classmethod
    def from_record(cls, record: SessionRecord) -> "Session":
        return cls(
            id=record.id,
            expiration_time=record.expiration_time,
            data=record.data,
        )

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return _is_expired(self.expiration_time, now)
