"""
ExtraBeam Backend - Calendar Unit Tests
=======================================

Recurrence expansion of unavailabilities and slot visibility rules.
"""

from datetime import date, datetime, time, timezone

import pytest

from extrabeam.exceptions import ValidationError
from extrabeam.models.mission import Slot
from extrabeam.models.unavailability import Unavailability
from extrabeam.services.slot_service import is_public_slot, slot_status
from extrabeam.services.unavailability_service import (
    expand_occurrences,
    js_weekday,
    occurs_on,
    parse_day,
    unavailability_service,
)


def make_rule(**overrides) -> Unavailability:
    fields = dict(
        id=1,
        entreprise_id=1,
        title="Unavailability",
        start_date=date(2024, 5, 1),  # a Wednesday
        start_time=time(9, 0),
        end_time=time(12, 0),
        recurrence_type="none",
        recurrence_end=None,
        weekday=None,
        exceptions=[],
    )
    fields.update(overrides)
    return Unavailability(**fields)


class TestHelpers:

    def test_js_weekday_sunday_is_zero(self):
        assert js_weekday(date(2024, 5, 5)) == 0
        assert js_weekday(date(2024, 5, 1)) == 3

    def test_parse_day_accepts_timestamps(self):
        assert parse_day("2024-05-01T10:00:00Z") == date(2024, 5, 1)
        assert parse_day("garbage") is None
        assert parse_day(None) is None


class TestOccurrences:

    def test_single_occurrence(self):
        rule = make_rule()
        assert occurs_on(rule, date(2024, 5, 1))
        assert not occurs_on(rule, date(2024, 5, 2))

    def test_daily_within_bounds(self):
        rule = make_rule(recurrence_type="daily", recurrence_end=date(2024, 5, 3))
        days = [o.start_date for o in expand_occurrences([rule], date(2024, 4, 28), date(2024, 5, 10))]
        assert days == [date(2024, 5, 1), date(2024, 5, 2), date(2024, 5, 3)]

    def test_weekly_uses_stored_weekday(self):
        rule = make_rule(recurrence_type="weekly", weekday=3)
        days = [o.start_date for o in expand_occurrences([rule], date(2024, 5, 1), date(2024, 5, 31))]
        assert days == [date(2024, 5, 1), date(2024, 5, 8), date(2024, 5, 15), date(2024, 5, 22), date(2024, 5, 29)]

    def test_monthly_matches_day_of_month(self):
        rule = make_rule(recurrence_type="monthly", start_date=date(2024, 1, 31))
        days = [o.start_date for o in expand_occurrences([rule], date(2024, 1, 1), date(2024, 5, 31))]
        # months without a 31st are skipped
        assert days == [date(2024, 1, 31), date(2024, 3, 31), date(2024, 5, 31)]

    def test_exceptions_are_skipped(self):
        rule = make_rule(recurrence_type="daily", exceptions=["2024-05-02"])
        days = [o.start_date for o in expand_occurrences([rule], date(2024, 5, 1), date(2024, 5, 3))]
        assert days == [date(2024, 5, 1), date(2024, 5, 3)]

    def test_open_ended_recurrence(self):
        rule = make_rule(recurrence_type="daily")
        occurrences = expand_occurrences([rule], date(2030, 1, 1), date(2030, 1, 2))
        assert len(occurrences) == 2
        assert occurrences[0].id == rule.id

    def test_rule_outside_window(self):
        rule = make_rule(start_date=date(2025, 1, 1))
        assert expand_occurrences([rule], date(2024, 1, 1), date(2024, 12, 31)) == []


class TestWindow:

    def test_missing_bounds(self):
        with pytest.raises(ValidationError, match="start et end requis"):
            unavailability_service.parse_window("2024-05-01", None)

    def test_inverted_bounds(self):
        with pytest.raises(ValidationError):
            unavailability_service.parse_window("2024-05-10", "2024-05-01")

    def test_window_too_long(self):
        with pytest.raises(ValidationError, match="trop longue"):
            unavailability_service.parse_window("2024-01-01", "2026-01-01")

    def test_full_leap_year_window_accepted(self):
        start, end = unavailability_service.parse_window("2024-01-01", "2025-01-01")
        assert (end - start).days == 366


class TestSlotVisibility:

    def test_free_slot_is_public(self):
        assert is_public_slot(None, None)
        assert slot_status(None, None) == "active"

    @pytest.mark.parametrize("status", ["validated", "paid", "completed"])
    def test_confirmed_missions_are_public(self, status):
        assert is_public_slot(7, status)

    @pytest.mark.parametrize("status", ["proposed", "refused", "pending_payment"])
    def test_other_missions_are_hidden(self, status):
        assert not is_public_slot(7, status)

    def test_pending_status_for_owner(self):
        assert slot_status(7, "proposed") == "pending"
        assert slot_status(7, "refused") == "pending"
        assert slot_status(7, "validated") == "active"

    def test_duration_hours(self):
        start = datetime(2024, 5, 1, 9, tzinfo=timezone.utc)
        assert Slot(start=start, end=start.replace(hour=12, minute=30)).duration_hours == 3.5
        assert Slot(start=start, end=start.replace(hour=8)).duration_hours == 0.0
