"""Unavailable time slots: toggling, bound and candidate grid."""
from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

import config
from gespadel.errors import SlotLimitExceededError
from gespadel.services.time_preferences import TimeSlot, candidate_slots, toggle_slot, unique_slots

FRI_18 = TimeSlot(date=date(2026, 11, 6), hour=18)
FRI_19 = TimeSlot(date=date(2026, 11, 6), hour=19)
SAT_20 = TimeSlot(date=date(2026, 11, 7), hour=20)


def test_slots_compare_by_value():
    assert TimeSlot(date=date(2026, 11, 6), hour=18) == FRI_18
    assert len({FRI_18, TimeSlot(date=date(2026, 11, 6), hour=18)}) == 1


def test_slot_hour_range():
    with pytest.raises(ValidationError):
        TimeSlot(date=date(2026, 11, 6), hour=24)


def test_toggle_adds_and_removes():
    slots = toggle_slot([], FRI_18, 2)
    assert slots == [FRI_18]
    slots = toggle_slot(slots, FRI_19, 2)
    assert slots == [FRI_18, FRI_19]
    assert toggle_slot(slots, FRI_18, 2) == [FRI_19]


def test_toggle_at_limit_rejects_and_leaves_input_unchanged():
    current = [FRI_18, FRI_19]
    with pytest.raises(SlotLimitExceededError):
        toggle_slot(current, SAT_20, 2)
    assert current == [FRI_18, FRI_19]


def test_toggle_remove_allowed_at_limit():
    assert toggle_slot([FRI_18, FRI_19], FRI_19, 2) == [FRI_18]


def test_toggle_uses_configured_bound(monkeypatch):
    monkeypatch.setattr(config, "MAX_UNAVAILABLE_SLOTS", 1)
    with pytest.raises(SlotLimitExceededError):
        toggle_slot([FRI_18], FRI_19)


def test_unique_slots_keeps_order():
    assert unique_slots([FRI_19, FRI_18, FRI_19]) == [FRI_19, FRI_18]


def test_candidate_slots_cover_every_day():
    slots = candidate_slots(
        datetime(2026, 11, 6, 18, tzinfo=timezone.utc),
        datetime(2026, 11, 8, 22, tzinfo=timezone.utc),
    )
    assert len(slots) == 3 * len(config.SLOT_HOURS)
    assert slots[0] == TimeSlot(date=date(2026, 11, 6), hour=config.SLOT_HOURS[0])
    assert slots[-1] == TimeSlot(date=date(2026, 11, 8), hour=config.SLOT_HOURS[-1])


def test_candidate_slots_custom_hours():
    slots = candidate_slots(date(2026, 11, 6), date(2026, 11, 6), hours=[9, 10])
    assert slots == [TimeSlot(date=date(2026, 11, 6), hour=9), TimeSlot(date=date(2026, 11, 6), hour=10)]
