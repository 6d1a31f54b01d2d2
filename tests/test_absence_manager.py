"""Tests für Absagen: Policy-Grenzen, Urlaube, Ersatztermine, Statistik."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from config.defaults import default_walk_groups
from models.absence import RegularAssignment, VacationPeriod
from models.enums import (
    AbsenceStatus,
    AbsenceType,
    CancellationPolicy,
    TimePreference,
    WalkType,
    WorkDay,
)
from models.planning import WeeklySlotInstance
from rules.absence_manager import (
    attach_reschedule,
    calculate_absence_stats,
    calculate_cancellation_charge,
    confirm_reschedule,
    determine_cancellation_policy,
    generate_cancellation_notification,
    generate_vacation_absences,
    is_date_in_vacation,
    record_cancellation,
    suggest_reschedule_dates,
)
from rules.errors import InvalidRescheduleError

WALK = datetime(2025, 3, 10, 9, 0)   # Montag


def _cancel(notice: timedelta, absence_type=AbsenceType.EVENEMENT_FAMILIAL,
            package=False, **kwargs):
    return record_cancellation(
        animal_id="A1", client_id="C1", group_id="LU-B1",
        original_date=WALK, cancellation_time=WALK - notice,
        absence_type=absence_type, is_package_client=package,
        animal_name="Rex", client_name="Dupont", **kwargs,
    )


def _slots(year: int, weeks: list[int]) -> list[WeeklySlotInstance]:
    return [
        WeeklySlotInstance(year=year, week_number=week, group=group)
        for week in weeks
        for group in default_walk_groups()
    ]


# ─── Policy ───────────────────────────────────────────────────────────────────

class TestCancellationPolicy:
    @pytest.mark.parametrize("notice, policy, charge", [
        (timedelta(hours=48), CancellationPolicy.FULL_REFUND, Decimal("0.00")),
        (timedelta(hours=24), CancellationPolicy.FULL_REFUND, Decimal("0.00")),
        (timedelta(hours=23, minutes=59), CancellationPolicy.PARTIAL_CHARGE, Decimal("15.00")),
        (timedelta(hours=6), CancellationPolicy.PARTIAL_CHARGE, Decimal("15.00")),
        (timedelta(hours=5, minutes=59), CancellationPolicy.FULL_CHARGE, Decimal("30.00")),
        (timedelta(0), CancellationPolicy.FULL_CHARGE, Decimal("30.00")),
    ])
    def test_notice_boundaries(self, notice, policy, charge):
        record = _cancel(notice)
        assert record.policy == policy
        assert record.charge_amount == charge

    def test_cancelled_after_walk_is_full_charge(self):
        record = _cancel(timedelta(hours=-2))
        assert record.policy == CancellationPolicy.FULL_CHARGE
        assert record.charge_amount == Decimal("30.00")

    @pytest.mark.parametrize("absence_type", [AbsenceType.PROMENEUR_ABSENT, AbsenceType.METEO_EXTREME])
    def test_excused_always_free(self, absence_type):
        for package in (False, True):
            decision = determine_cancellation_policy(WALK, WALK, absence_type, package)
            assert decision.policy == CancellationPolicy.FULL_REFUND
            assert decision.charge_percent == 0

    @pytest.mark.parametrize("absence_type", [
        AbsenceType.CHIEN_MALADE, AbsenceType.RENDEZ_VOUS_VETERINAIRE,
    ])
    def test_medical_is_rescheduled_before_package(self, absence_type):
        decision = determine_cancellation_policy(WALK, WALK, absence_type, True)
        assert decision.policy == CancellationPolicy.RESCHEDULED
        assert decision.charge_percent == 0

    def test_package_client_gets_credit(self):
        record = _cancel(timedelta(hours=1), package=True)
        assert record.policy == CancellationPolicy.PACKAGE_CREDIT
        assert record.charge_amount == Decimal("0.00")
        assert not record.is_charged

    def test_configurable_thresholds(self):
        decision = determine_cancellation_policy(
            WALK, WALK - timedelta(hours=30), AbsenceType.AUTRE, False,
            full_refund_hours=48, partial_charge_hours=12, partial_charge_percent=40,
        )
        assert decision.policy == CancellationPolicy.PARTIAL_CHARGE
        assert decision.charge_percent == 40


class TestCancellationCharge:
    def test_custom_price_wins(self):
        assert calculate_cancellation_charge(50, custom_price=Decimal("45")) == Decimal("22.50")

    def test_base_price(self):
        assert calculate_cancellation_charge(100, base_price=Decimal("35")) == Decimal("35.00")

    def test_walk_type_does_not_change_amount(self):
        assert calculate_cancellation_charge(50, WalkType.INDIVIDUELLE) == Decimal("15.00")

    def test_zero_percent(self):
        assert calculate_cancellation_charge(0) == Decimal("0.00")

    def test_monotonic_in_percent(self):
        charges = [calculate_cancellation_charge(p) for p in range(0, 101, 10)]
        assert charges == sorted(charges)
        assert charges[-1] == Decimal("30.00")


class TestRecordCancellation:
    def test_record_fields(self):
        record = _cancel(timedelta(hours=10))
        assert record.id == "absence-A1-2025-03-10-LU-B1"
        assert record.created_at == WALK - timedelta(hours=10)
        assert record.reason == "Annulation tardive (< 24h)"
        assert record.status == AbsenceStatus.POLICY_DETERMINED

    def test_explicit_reason(self):
        assert _cancel(timedelta(hours=30), reason="Mariage").reason == "Mariage"

    def test_record_is_immutable(self):
        record = _cancel(timedelta(hours=10))
        with pytest.raises(ValidationError):
            record.charge_amount = Decimal("0")


# ─── Urlaube ──────────────────────────────────────────────────────────────────

class TestVacationAbsences:
    REGULAR = [
        RegularAssignment(group_id="LU-B1", day=WorkDay.LUNDI),
        RegularAssignment(group_id="ME-B2", day=WorkDay.MERCREDI),
        RegularAssignment(group_id="VE-B3", day=WorkDay.VENDREDI),
    ]

    def _vacation(self, start, end, reason=AbsenceType.VACANCES_CLIENT):
        return VacationPeriod(
            animal_id="A1", animal_name="Rex", client_id="C1", client_name="Dupont",
            start_date=start, end_date=end, reason=reason,
        )

    def test_dates_inside_range_inclusive(self):
        vacation = self._vacation(date(2025, 3, 5), date(2025, 3, 14))
        records = generate_vacation_absences(vacation, self.REGULAR, now=datetime(2025, 3, 1, 12))
        assert [r.original_date.date() for r in records] == [
            date(2025, 3, 5), date(2025, 3, 7), date(2025, 3, 10),
            date(2025, 3, 12), date(2025, 3, 14),
        ]
        assert records[0].id == "absence-A1-2025-03-05-ME-B2"
        assert records[0].original_date == datetime(2025, 3, 5, 0, 0)

    def test_treated_as_package_client(self):
        vacation = self._vacation(date(2025, 3, 5), date(2025, 3, 7))
        records = generate_vacation_absences(vacation, self.REGULAR, now=datetime(2025, 3, 5, 12))
        assert {r.policy for r in records} == {CancellationPolicy.PACKAGE_CREDIT}
        assert all(r.charge_amount == Decimal("0.00") for r in records)
        assert records[0].reason == "Vacances du 5 mars au 7 mars"

    def test_medical_reason_is_rescheduled(self):
        vacation = self._vacation(date(2025, 3, 10), date(2025, 3, 10), AbsenceType.CHIEN_MALADE)
        records = generate_vacation_absences(vacation, self.REGULAR, now=datetime(2025, 3, 1))
        assert len(records) == 1
        assert records[0].policy == CancellationPolicy.RESCHEDULED

    def test_weekend_only_creates_nothing(self):
        vacation = self._vacation(date(2025, 3, 8), date(2025, 3, 9))
        assert generate_vacation_absences(vacation, self.REGULAR, now=datetime(2025, 3, 1)) == []

    def test_invalid_ranges(self):
        with pytest.raises(ValidationError):
            self._vacation(date(2025, 3, 10), date(2025, 3, 9))
        with pytest.raises(ValidationError):
            self._vacation(date(2025, 1, 1), date(2025, 6, 1))

    def test_is_date_in_vacation(self):
        vacation = self._vacation(date(2025, 3, 5), date(2025, 3, 7))
        assert is_date_in_vacation(date(2025, 3, 7), [vacation]) is vacation
        assert is_date_in_vacation(datetime(2025, 3, 5, 18), [vacation]) is vacation
        assert is_date_in_vacation(date(2025, 3, 8), [vacation]) is None


# ─── Ersatztermine ────────────────────────────────────────────────────────────

class TestReschedule:
    def test_only_following_two_weeks(self):
        slots = _slots(2025, [10, 11, 12, 13])
        suggestions = suggest_reschedule_dates(
            date(2025, 3, 5), slots, preferred_days=[WorkDay.JEUDI], max_suggestions=30,
        )
        assert len(suggestions) == 30
        assert {s.date.isocalendar()[1] for s in suggestions} == {11, 12}

    def test_ranking_is_stable(self):
        slots = _slots(2025, [11, 12])
        suggestions = suggest_reschedule_dates(
            date(2025, 3, 5), slots, preferred_days=[WorkDay.JEUDI],
            time_preference=TimePreference.INDIFFERENT,
        )
        assert [(s.group_id, s.date) for s in suggestions] == [
            ("JE-B1", date(2025, 3, 13)),
            ("JE-B2", date(2025, 3, 13)),
            ("JE-B3", date(2025, 3, 13)),
            ("JE-B1", date(2025, 3, 20)),
            ("JE-B2", date(2025, 3, 20)),
        ]
        assert suggestions[0].priority == 10
        assert suggestions[0].is_preferred_slot

    def test_blocked_and_full_excluded(self):
        slots = _slots(2025, [11])
        slots[0] = slots[0].model_copy(update={"is_blocked": True})      # LU-B1
        slots[1] = slots[1].model_copy(update={"current_count": 4})      # LU-B2
        ids = [s.group_id for s in suggest_reschedule_dates(date(2025, 3, 5), slots, max_suggestions=15)]
        assert "LU-B1" not in ids and "LU-B2" not in ids
        assert len(ids) == 13

    def test_year_boundary(self):
        slots = _slots(2026, [1])
        suggestions = suggest_reschedule_dates(date(2025, 12, 17), slots, max_suggestions=1)
        assert suggestions[0].date == date(2025, 12, 29)

    def test_attach_and_confirm(self):
        record = _cancel(timedelta(hours=2), AbsenceType.CHIEN_MALADE)
        suggestion = suggest_reschedule_dates(WALK.date(), _slots(2025, [12]), max_suggestions=1)[0]

        suggested = attach_reschedule(record, suggestion)
        assert suggested.status == AbsenceStatus.RESCHEDULE_SUGGESTED
        assert suggested.reschedule_info.new_group_id == suggestion.group_id
        assert record.reschedule_info is None

        confirmed = confirm_reschedule(suggested)
        assert confirmed.status == AbsenceStatus.RESCHEDULE_CONFIRMED
        assert not suggested.reschedule_info.confirmed

    def test_confirm_without_suggestion_raises(self):
        with pytest.raises(InvalidRescheduleError):
            confirm_reschedule(_cancel(timedelta(hours=2)))


# ─── Statistik & Benachrichtigung ─────────────────────────────────────────────

class TestAbsenceStats:
    @pytest.fixture
    def records(self):
        other = record_cancellation(
            animal_id="A2", client_id="C2", group_id="ME-B1",
            original_date=datetime(2025, 3, 12, 9), cancellation_time=datetime(2025, 3, 12, 8),
            absence_type=AbsenceType.AUTRE, is_package_client=True, client_name="Martin",
        )
        return [_cancel(timedelta(hours=1)), _cancel(timedelta(hours=10)), other]

    def test_counts(self, records):
        stats = calculate_absence_stats(records)
        assert stats.total_absences == 3
        assert stats.by_policy[CancellationPolicy.FULL_CHARGE] == 1
        assert stats.by_policy[CancellationPolicy.PARTIAL_CHARGE] == 1
        assert stats.by_policy[CancellationPolicy.PACKAGE_CREDIT] == 1
        assert stats.by_type[AbsenceType.EVENEMENT_FAMILIAL] == 2
        assert stats.by_weekday[WorkDay.LUNDI] == 2
        assert stats.by_weekday[WorkDay.MERCREDI] == 1

    def test_revenue(self, records):
        stats = calculate_absence_stats(records)
        assert stats.total_charged_amount == Decimal("45.00")
        assert stats.total_lost_revenue == Decimal("45.00")   # 0 + 15 + 30

    def test_custom_price_above_base_is_no_loss(self):
        """Eine Gebühr über dem Basispreis zählt nicht als negativer Ausfall."""
        full = _cancel(timedelta(hours=1), custom_price=Decimal("50"))
        partial = _cancel(timedelta(hours=10), custom_price=Decimal("50"))
        stats = calculate_absence_stats([full, partial])
        assert full.charge_amount == Decimal("50.00")
        assert stats.total_charged_amount == Decimal("75.00")
        assert stats.total_lost_revenue == Decimal("5.00")   # 0 + (30 - 25)

    def test_top_clients(self, records):
        stats = calculate_absence_stats(records)
        assert [(c.client_id, c.absence_count) for c in stats.most_frequent_clients] == [
            ("C1", 2), ("C2", 1),
        ]

    def test_empty(self):
        stats = calculate_absence_stats([])
        assert stats.total_absences == 0
        assert stats.total_lost_revenue == Decimal("0.00")


class TestNotification:
    def test_charged(self):
        text = generate_cancellation_notification(_cancel(timedelta(hours=1)))
        assert "Chien: Rex" in text
        assert "Date: lundi 10 mars" in text
        assert "Montant: 30.00 CHF" in text

    def test_free_has_no_amount(self):
        text = generate_cancellation_notification(_cancel(timedelta(hours=30)))
        assert "Montant" not in text
        assert "Non facturé" in text

    def test_reschedule_state(self):
        record = _cancel(timedelta(hours=2), AbsenceType.CHIEN_MALADE)
        suggestion = suggest_reschedule_dates(WALK.date(), _slots(2025, [12]), max_suggestions=1)[0]
        suggested = attach_reschedule(record, suggestion)
        assert "En attente de confirmation" in generate_cancellation_notification(suggested)
        assert "Confirmé" in generate_cancellation_notification(confirm_reschedule(suggested))
