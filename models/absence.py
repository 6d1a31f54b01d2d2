"""Abwesenheiten, Urlaubsperioden und Report-Vorschläge (Pydantic v2)."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.enums import (
    AbsenceStatus,
    AbsenceType,
    CancellationPolicy,
    TimeBlock,
    WorkDay,
)

MAX_VACATION_DAYS = 90


class RescheduleInfo(BaseModel):
    """Report-Ziel einer abgesagten Balade."""

    model_config = ConfigDict(frozen=True)

    new_group_id: str
    new_date: date
    confirmed: bool = False


class AbsenceRecord(BaseModel):
    """Unveränderliches Protokoll einer Absage.

    Wird genau einmal pro Absage erzeugt. Änderungen (Report anhängen,
    Report bestätigen) erzeugen eine neue Instanz über model_copy().
    """

    model_config = ConfigDict(frozen=True)

    id: str
    animal_id: str
    animal_name: str = ""
    client_id: str
    client_name: str = ""
    original_group_id: str
    original_date: datetime
    absence_type: AbsenceType
    reason: Optional[str] = None
    cancellation_time: datetime
    policy: CancellationPolicy
    charge_amount: Decimal = Field(Decimal("0.00"), ge=0)
    reschedule_info: Optional[RescheduleInfo] = None
    created_at: Optional[datetime] = None
    created_by: str = "system"

    @property
    def status(self) -> AbsenceStatus:
        if self.reschedule_info is None:
            return AbsenceStatus.POLICY_DETERMINED
        if self.reschedule_info.confirmed:
            return AbsenceStatus.RESCHEDULE_CONFIRMED
        return AbsenceStatus.RESCHEDULE_SUGGESTED

    @property
    def is_charged(self) -> bool:
        return self.charge_amount > 0


class VacationPeriod(BaseModel):
    """Urlaubszeitraum eines Hundes (Start/Ende inklusive)."""

    id: str = ""
    animal_id: str
    animal_name: str = ""
    client_id: str
    client_name: str = ""
    start_date: date
    end_date: date
    reason: AbsenceType = AbsenceType.VACANCES_CLIENT
    notes: Optional[str] = None
    affected_group_ids: list[str] = []

    @model_validator(mode='after')
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"Enddatum ({self.end_date}) liegt vor dem Startdatum ({self.start_date})"
            )
        if (self.end_date - self.start_date).days > MAX_VACATION_DAYS:
            raise ValueError(
                f"Urlaubsperiode länger als {MAX_VACATION_DAYS} Tage"
            )
        return self

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class RegularAssignment(BaseModel):
    """Wiederkehrende Wochenzuweisung eines Hundes (Gruppe + Wochentag)."""

    group_id: str
    day: WorkDay


class RescheduleSuggestion(BaseModel):
    """Kandidat für einen Ersatztermin."""

    group_id: str
    date: date
    day: WorkDay
    block: TimeBlock
    available_places: int
    is_preferred_slot: bool
    priority: int


class PolicyDecision(BaseModel):
    """Ergebnis der Policy-Bestimmung."""

    policy: CancellationPolicy
    charge_percent: int = Field(ge=0, le=100)
    reason: str


class ClientAbsenceCount(BaseModel):
    client_id: str
    client_name: str
    absence_count: int


class AbsenceStats(BaseModel):
    """Aggregierte Abwesenheits-Statistik."""

    total_absences: int
    by_type: dict[AbsenceType, int]
    by_policy: dict[CancellationPolicy, int]
    by_weekday: dict[WorkDay, int]
    total_lost_revenue: Decimal
    total_charged_amount: Decimal
    most_frequent_clients: list[ClientAbsenceCount]
