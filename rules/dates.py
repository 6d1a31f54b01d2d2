"""Gemeinsame Datums-Hilfsfunktionen der Regel-Engine.

Alle Regelmodule rechnen ausschließlich über diese Funktionen, damit
Rundung (ganze Stunden, Abschneiden Richtung 0) und ISO-Wochennummern
überall identisch sind.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional

from models.enums import WORK_DAYS, WorkDay

FRENCH_MONTHS = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]

FRENCH_WEEKDAYS = [
    "lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche",
]


def hours_between(later: datetime, earlier: datetime) -> int:
    """Ganze Stunden von earlier bis later, Richtung 0 abgeschnitten.

    Negativ, wenn later vor earlier liegt (z.B. -1.5h → -1).
    """
    return int((later - earlier) / timedelta(hours=1))


def days_between(later: date, earlier: date) -> int:
    """Ganze Kalendertage von earlier bis later."""
    return (_as_date(later) - _as_date(earlier)).days


def iso_week(day: date) -> tuple[int, int]:
    """(ISO-Jahr, ISO-Woche) eines Datums."""
    iso = day.isocalendar()
    return iso[0], iso[1]


def max_iso_weeks(year: int) -> int:
    """52 oder 53: der 28. Dezember liegt immer in der letzten ISO-Woche."""
    return date(year, 12, 28).isocalendar()[1]


def monday_of_iso_week(year: int, week: int) -> date:
    """Montag der ISO-Woche (year, week)."""
    return date.fromisocalendar(year, week, 1)


def start_of_week(day: date) -> date:
    """Montag der Woche, in der day liegt."""
    day = _as_date(day)
    return day - timedelta(days=day.weekday())


def workday_of(day: date) -> Optional[WorkDay]:
    """WorkDay eines Datums oder None für Samstag/Sonntag."""
    weekday = _as_date(day).weekday()
    return WORK_DAYS[weekday] if weekday < len(WORK_DAYS) else None


def date_for_workday(week_start: date, day: WorkDay) -> date:
    """Kalenderdatum eines Arbeitstags in der Woche ab week_start (Montag)."""
    return week_start + timedelta(days=day.day_index)


def month_bounds(month: date) -> tuple[date, date]:
    """Erster und letzter Tag des Kalendermonats von month."""
    last = calendar.monthrange(month.year, month.month)[1]
    return date(month.year, month.month, 1), date(month.year, month.month, last)


def format_date_fr(day: date) -> str:
    """date(2025, 3, 1) → "1 mars 2025"."""
    day = _as_date(day)
    return f"{day.day} {FRENCH_MONTHS[day.month - 1]} {day.year}"


def format_month_fr(day: date) -> str:
    """date(2025, 3, 1) → "mars 2025"."""
    return f"{FRENCH_MONTHS[day.month - 1]} {day.year}"


def format_weekday_fr(day: date) -> str:
    """date(2025, 3, 3) → "lundi 3 mars"."""
    day = _as_date(day)
    return f"{FRENCH_WEEKDAYS[day.weekday()]} {day.day} {FRENCH_MONTHS[day.month - 1]}"


def _as_date(value: date) -> date:
    # datetime ist Unterklasse von date; Vergleiche nur auf Tagesebene
    return value.date() if isinstance(value, datetime) else value


def format_day_month_fr(day: date) -> str:
    """date(2025, 3, 1) → "1 mars"."""
    day = _as_date(day)
    return f"{day.day} {FRENCH_MONTHS[day.month - 1]}"
