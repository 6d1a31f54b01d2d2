"""Tests für Datums- und Geld-Hilfsfunktionen der Regel-Engine."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from models.enums import WorkDay
from rules.dates import (
    date_for_workday,
    days_between,
    format_date_fr,
    format_day_month_fr,
    format_month_fr,
    format_weekday_fr,
    hours_between,
    iso_week,
    max_iso_weeks,
    monday_of_iso_week,
    month_bounds,
    start_of_week,
    workday_of,
)
from rules.money import format_chf, percent_of, round2, to_decimal


class TestHoursBetween:
    @pytest.mark.parametrize("later, earlier, expected", [
        (datetime(2025, 3, 3, 10, 0), datetime(2025, 3, 2, 10, 0), 24),
        (datetime(2025, 3, 3, 10, 0), datetime(2025, 3, 2, 10, 1), 23),
        (datetime(2025, 3, 3, 10, 0), datetime(2025, 3, 3, 4, 0), 6),
        (datetime(2025, 3, 3, 10, 0), datetime(2025, 3, 3, 4, 30), 5),
    ])
    def test_truncates_to_whole_hours(self, later, earlier, expected):
        assert hours_between(later, earlier) == expected

    def test_negative_truncates_toward_zero(self):
        """-1.5h → -1, nicht -2."""
        assert hours_between(datetime(2025, 3, 3, 10, 0), datetime(2025, 3, 3, 11, 30)) == -1


class TestIsoWeeks:
    def test_iso_week_year_boundary(self):
        """Der 29.12.2025 gehört zur ISO-Woche 1 von 2026."""
        assert iso_week(date(2025, 12, 29)) == (2026, 1)

    def test_max_iso_weeks(self):
        assert max_iso_weeks(2020) == 53
        assert max_iso_weeks(2025) == 52

    def test_monday_of_iso_week(self):
        assert monday_of_iso_week(2025, 10) == date(2025, 3, 3)

    def test_start_of_week(self):
        assert start_of_week(date(2025, 3, 6)) == date(2025, 3, 3)
        assert start_of_week(datetime(2025, 3, 9, 18, 0)) == date(2025, 3, 3)

    def test_date_for_workday(self):
        assert date_for_workday(date(2025, 3, 3), WorkDay.VENDREDI) == date(2025, 3, 7)

    def test_workday_of_weekend_is_none(self):
        assert workday_of(date(2025, 3, 8)) is None
        assert workday_of(date(2025, 3, 4)) == WorkDay.MARDI


class TestMonthsAndFormats:
    def test_month_bounds_february_leap_year(self):
        assert month_bounds(date(2024, 2, 15)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_days_between_accepts_datetimes(self):
        assert days_between(datetime(2025, 3, 10, 8, 0), date(2025, 3, 1)) == 9

    def test_french_formats(self):
        assert format_date_fr(date(2025, 3, 1)) == "1 mars 2025"
        assert format_month_fr(date(2025, 8, 20)) == "août 2025"
        assert format_weekday_fr(date(2025, 3, 3)) == "lundi 3 mars"
        assert format_day_month_fr(datetime(2025, 12, 24, 9, 30)) == "24 décembre"


class TestMoney:
    def test_round_half_up(self):
        assert round2(Decimal("2.345")) == Decimal("2.35")
        assert round2(Decimal("2.344")) == Decimal("2.34")

    def test_float_goes_through_repr(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_percent_of(self):
        assert percent_of(Decimal("30"), 50) == Decimal("15.00")
        assert percent_of(Decimal("33.33"), Decimal("7.7")) == Decimal("2.57")

    def test_format_chf(self):
        assert format_chf(Decimal("12.5")) == "12.50 CHF"
        assert format_chf(7, "EUR") == "7.00 EUR"
