"""Testes da aritmética de horários HH:MM."""

from datetime import timedelta, timezone

import pytest

from petcare.core.errors import InvalidTimeRange
from petcare.core.time_window import (
    contains,
    duration_minutes,
    ensure_ordered,
    format_hhmm,
    iter_slots,
    overlaps,
    parse_hhmm,
    utcnow,
)
from petcare.models.appointment import Appointment
from petcare.models.work_schedule import WorkSchedule
from tests.conftest import WORK_DAY


class TestParse:
    def test_parses_minutes_since_midnight(self):
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("09:30") == 570
        assert parse_hhmm("23:59") == 1439

    @pytest.mark.parametrize("value", ["9:30", "09-30", "", "24:00", "12:60", "ab:cd"])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidTimeRange):
            parse_hhmm(value)

    def test_format_round_trips_boundaries(self):
        assert format_hhmm(0) == "00:00"
        assert format_hhmm(615) == "10:15"


class TestOrdering:
    def test_end_after_start(self):
        assert ensure_ordered("10:00", "10:30") == (600, 630)

    @pytest.mark.parametrize("start,end", [("10:30", "10:00"), ("10:00", "10:00")])
    def test_end_not_after_start_rejected(self, start, end):
        with pytest.raises(InvalidTimeRange):
            ensure_ordered(start, end)


class TestOverlap:
    def test_partial_overlap(self):
        assert overlaps("10:00", "10:30", "10:15", "10:45")

    def test_containment_overlaps(self):
        assert overlaps("09:00", "17:00", "12:15", "12:45")

    def test_back_to_back_does_not_overlap(self):
        assert not overlaps("10:00", "10:30", "10:30", "11:00")
        assert not overlaps("10:30", "11:00", "10:00", "10:30")

    def test_disjoint(self):
        assert not overlaps("08:00", "09:00", "10:00", "11:00")

    def test_contains(self):
        assert contains("09:00", "17:00", "09:00", "17:00")
        assert not contains("09:00", "17:00", "08:59", "10:00")


class TestDuration:
    def test_without_break(self):
        assert duration_minutes("09:00", "17:00") == 480

    def test_break_is_subtracted(self):
        assert duration_minutes("09:00", "17:00", "12:00", "13:00") == 420

    def test_half_break_is_ignored(self):
        assert duration_minutes("09:00", "17:00", "12:00", None) == 480


class TestSlots:
    def test_slots_fill_the_window(self):
        slots = list(iter_slots("09:00", "10:00", 20))
        assert slots == [("09:00", "09:20"), ("09:20", "09:40"), ("09:40", "10:00")]

    def test_partial_tail_is_dropped(self):
        slots = list(iter_slots("09:00", "10:00", 25))
        assert slots == [("09:00", "09:25"), ("09:25", "09:50")]

    def test_invalid_step(self):
        with pytest.raises(InvalidTimeRange):
            list(iter_slots("09:00", "10:00", 0))


class TestUtcNow:
    def test_is_timezone_aware(self):
        now = utcnow()
        assert now.tzinfo is timezone.utc
        assert now.utcoffset() == timedelta(0)

    def test_model_timestamps_carry_timezone(self):
        appt = Appointment(pet_id=1, staff_id=1, appointment_date=WORK_DAY, start_time="10:00", end_time="10:30")
        schedule = WorkSchedule(staff_id=1, work_date=WORK_DAY, start_time="09:00", end_time="17:00")

        for stamp in (appt.created_at, appt.updated_at, schedule.created_at, schedule.updated_at):
            assert stamp.tzinfo is not None
