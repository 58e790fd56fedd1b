from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, TypeVar
from uuid import UUID, uuid4

E = TypeVar("E", bound="Event")


@dataclass(frozen=True, slots=True, kw_only=True)
class Event:
    """
    Base event.

    - event_id: unique identity of this event instance
    - timestamp_utc: wall-clock creation time (diagnostics only)
    - sequence: monotonic ordering key assigned by the publisher

    Concrete events declare `event_type` as a ClassVar so it is not a field.
    """

    event_type: ClassVar[str] = "event"

    event_id: UUID
    timestamp_utc: datetime
    sequence: int

    @classmethod
    def create(cls: type[E], *, sequence: int, **fields: Any) -> E:
        if sequence <= 0:
            raise ValueError("sequence must be > 0")
        return cls(
            event_id=uuid4(),
            timestamp_utc=datetime.now(timezone.utc),
            sequence=sequence,
            **fields,
        )
