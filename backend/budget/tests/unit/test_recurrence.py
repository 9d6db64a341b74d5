"""
Unit tests for recurrence expansion.
"""

from datetime import date

import pytest

from budget.models import Recurrence
from budget.utils.recurrence import (MAX_OCCURRENCES, expand, occurrence_dates,
                                     occurs_on)


class TestExpand:
    def test_daily_includes_both_bounds(self):
        dates = expand(date(2024, 3, 1), date(2024, 3, 5), Recurrence.DAILY)

        assert dates == [date(2024, 3, day) for day in range(1, 6)]

    def test_weekly_steps_seven_days(self):
        dates = expand(date(2024, 3, 1), date(2024, 3, 29), Recurrence.WEEKLY)

        assert dates == [
            date(2024, 3, 1),
            date(2024, 3, 8),
            date(2024, 3, 15),
            date(2024, 3, 22),
            date(2024, 3, 29),
        ]

    def test_monthly_clamps_to_month_end_without_drift(self):
        dates = expand(date(2024, 1, 31), date(2024, 5, 31), Recurrence.MONTHLY)

        assert dates == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
            date(2024, 5, 31),
        ]

    def test_monthly_in_non_leap_year(self):
        dates = expand(date(2023, 1, 30), date(2023, 3, 30), Recurrence.MONTHLY)

        assert dates == [date(2023, 1, 30), date(2023, 2, 28), date(2023, 3, 30)]

    def test_yearly_from_leap_day(self):
        dates = expand(date(2024, 2, 29), date(2028, 3, 1), Recurrence.YEARLY)

        assert dates == [
            date(2024, 2, 29),
            date(2025, 2, 28),
            date(2026, 2, 28),
            date(2027, 2, 28),
            date(2028, 2, 29),
        ]

    def test_end_before_start_yields_start_only(self):
        dates = expand(date(2024, 3, 10), date(2024, 3, 1), Recurrence.DAILY)

        assert dates == [date(2024, 3, 10)]

    def test_end_equal_to_start(self):
        dates = expand(date(2024, 3, 10), date(2024, 3, 10), Recurrence.MONTHLY)

        assert dates == [date(2024, 3, 10)]

    def test_end_date_not_on_a_step_is_not_included(self):
        dates = expand(date(2024, 3, 1), date(2024, 3, 20), Recurrence.WEEKLY)

        assert dates[-1] == date(2024, 3, 15)

    def test_occurrences_are_capped(self):
        dates = expand(date(2024, 1, 1), date(2030, 12, 31), Recurrence.DAILY)

        assert len(dates) == MAX_OCCURRENCES == 366
        assert dates[0] == date(2024, 1, 1)
        assert dates[-1] == date(2024, 12, 31)

    def test_dates_strictly_increase(self):
        dates = expand(date(2024, 1, 31), date(2026, 1, 31), Recurrence.MONTHLY)

        assert all(a < b for a, b in zip(dates, dates[1:]))
        assert len(dates) == 25

    def test_stops_at_calendar_end(self):
        dates = expand(date(9999, 12, 30), date(9999, 12, 31), Recurrence.WEEKLY)

        assert dates == [date(9999, 12, 30)]

    @pytest.mark.parametrize("rule", [Recurrence.NONE, "HOURLY", ""])
    def test_rejects_non_expandable_rules(self, rule):
        with pytest.raises(ValueError):
            expand(date(2024, 1, 1), date(2024, 2, 1), rule)


class TestOccurrenceDates:
    def test_none_rule_is_single_date(self):
        assert occurrence_dates(date(2024, 3, 1), date(2024, 4, 1), Recurrence.NONE) == [
            date(2024, 3, 1)
        ]

    def test_missing_end_is_single_date(self):
        assert occurrence_dates(date(2024, 3, 1), None, Recurrence.DAILY) == [
            date(2024, 3, 1)
        ]

    def test_delegates_to_expand(self):
        assert len(
            occurrence_dates(date(2024, 3, 1), date(2024, 3, 3), Recurrence.DAILY)
        ) == 3


class TestOccursOn:
    def test_template_date_always_matches(self):
        assert occurs_on(date(2024, 3, 1), Recurrence.NONE, date(2024, 3, 1))

    def test_none_rule_matches_nothing_else(self):
        assert not occurs_on(date(2024, 3, 1), Recurrence.NONE, date(2024, 3, 2))

    def test_never_before_template(self):
        assert not occurs_on(date(2024, 3, 10), Recurrence.DAILY, date(2024, 3, 9))

    def test_weekly_matches_weekday(self):
        assert occurs_on(date(2024, 3, 4), Recurrence.WEEKLY, date(2024, 3, 18))
        assert not occurs_on(date(2024, 3, 4), Recurrence.WEEKLY, date(2024, 3, 19))

    def test_daily_matches_every_later_day(self):
        assert occurs_on(date(2024, 3, 1), Recurrence.DAILY, date(2025, 7, 19))

    def test_monthly_matches_day_of_month(self):
        assert occurs_on(date(2024, 1, 15), Recurrence.MONTHLY, date(2024, 6, 15))
        assert not occurs_on(date(2024, 1, 15), Recurrence.MONTHLY, date(2024, 6, 16))

    def test_monthly_display_match_does_not_clamp(self):
        # The materialized rows clamp, the calendar decoration does not
        assert not occurs_on(date(2024, 1, 31), Recurrence.MONTHLY, date(2024, 2, 29))

    def test_yearly_matches_day_and_month(self):
        assert occurs_on(date(2024, 5, 1), Recurrence.YEARLY, date(2026, 5, 1))
        assert not occurs_on(date(2024, 5, 1), Recurrence.YEARLY, date(2025, 5, 2))
        assert not occurs_on(date(2024, 5, 1), Recurrence.YEARLY, date(2025, 6, 1))
