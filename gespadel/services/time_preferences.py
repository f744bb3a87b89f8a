"""Unavailable time-slot declarations and their bound."""
from __future__ import annotations

import datetime
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

import config
from gespadel.errors import SlotLimitExceededError


class TimeSlot(BaseModel):
    """One (date, hour) slot. Compared and hashed by value."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    hour: int = Field(ge=0, le=23)

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "hour": self.hour}


def slot_limit() -> int:
    """Current MAX_UNAVAILABLE_SLOTS."""
    return config.MAX_UNAVAILABLE_SLOTS


def unique_slots(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Drop repeats, keeping first-seen order."""
    seen: set[TimeSlot] = set()
    result = []
    for slot in slots:
        if slot not in seen:
            seen.add(slot)
            result.append(slot)
    return result


def toggle_slot(
    current_slots: Sequence[TimeSlot],
    slot: TimeSlot,
    max_slots: Optional[int] = None,
) -> list[TimeSlot]:
    """Return a new list with slot removed if present, or added if under the limit.

    Removing is always allowed. Adding at the limit raises SlotLimitExceededError
    and the caller's list is left as it was.
    """
    limit = slot_limit() if max_slots is None else max_slots
    if slot in current_slots:
        return [s for s in current_slots if s != slot]
    if len(current_slots) >= limit:
        raise SlotLimitExceededError(limit)
    return [*current_slots, slot]


def candidate_slots(
    start: datetime.date | datetime.datetime,
    end: datetime.date | datetime.datetime,
    hours: Optional[Sequence[int]] = None,
) -> list[TimeSlot]:
    """Every (day, hour) a registrant can mark unavailable between start and end inclusive."""
    if isinstance(start, datetime.datetime):
        start = start.date()
    if isinstance(end, datetime.datetime):
        end = end.date()
    hours = config.SLOT_HOURS if hours is None else hours
    slots = []
    day = start
    while day <= end:
        slots.extend(TimeSlot(date=day, hour=h) for h in hours)
        day += datetime.timedelta(days=1)
    return slots
