"""Planungsmodelle: Gruppen-Vorlagen, Wochen-Slots, Zuweisungen, Routinen (Pydantic v2)."""

from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.enums import (
    ROUTINE_WALK_COUNT,
    GeographicSector,
    RoutineType,
    TimeBlock,
    TimePreference,
    WalkType,
    WorkDay,
)


class WalkGroup(BaseModel):
    """Wiederkehrende Gruppen-Vorlage, z.B. "LU-B1" = Montag Vormittag."""

    id: str                                   # "LU-B1"
    day: WorkDay
    block: TimeBlock
    default_capacity: int = Field(4, ge=1)
    default_sector: GeographicSector = GeographicSector.S1
    walk_type: WalkType = WalkType.COLLECTIVE
    pickup_duration: int = Field(30, ge=0)    # Minuten
    walk_duration: int = Field(60, ge=0)
    return_duration: int = Field(30, ge=0)

    @field_validator("id")
    @classmethod
    def normalize_id(cls, v: str) -> str:
        return v.upper()

    @property
    def total_duration(self) -> int:
        """Abholung + Balade + Rückfahrt in Minuten."""
        return self.pickup_duration + self.walk_duration + self.return_duration


class WeeklySlotInstance(BaseModel):
    """Konkrete Ausprägung einer WalkGroup in einer ISO-Woche."""

    year: int
    week_number: int = Field(ge=1, le=53)
    group: WalkGroup
    capacity: Optional[int] = Field(None, ge=0)   # None = default_capacity der Gruppe
    is_blocked: bool = False
    block_reason: Optional[str] = None
    current_count: int = Field(0, ge=0)

    @property
    def effective_capacity(self) -> int:
        return self.capacity if self.capacity is not None else self.group.default_capacity

    @property
    def slot_id(self) -> str:
        """"2025-W03-LU-B1"."""
        return f"{self.year}-W{self.week_number:02d}-{self.group.id}"

    @property
    def group_id(self) -> str:
        return self.group.id

    @property
    def day(self) -> WorkDay:
        return self.group.day

    @property
    def block(self) -> TimeBlock:
        return self.group.block

    @property
    def sector(self) -> GeographicSector:
        return self.group.default_sector

    @property
    def walk_type(self) -> WalkType:
        return self.group.walk_type

    @property
    def available_places(self) -> int:
        return max(0, self.effective_capacity - self.current_count)

    @property
    def is_full(self) -> bool:
        return self.current_count >= self.effective_capacity

    @property
    def walk_date(self) -> date:
        """Kalenderdatum des Slots (Montag der ISO-Woche + Wochentag)."""
        monday = date.fromisocalendar(self.year, self.week_number, 1)
        return monday + timedelta(days=self.day.day_index)

    def with_count(self, count: int) -> "WeeklySlotInstance":
        return self.model_copy(update={"current_count": count})


class Assignment(BaseModel):
    """Zuweisung eines Hundes zu einer Gruppe in einer bestimmten Woche."""

    animal_id: str
    year: int
    week_number: int = Field(ge=1, le=53)
    group_id: str
    is_confirmed: bool = False
    is_completed: bool = False

    @field_validator("group_id")
    @classmethod
    def normalize_group_id(cls, v: str) -> str:
        return v.upper()

    @property
    def slot_id(self) -> str:
        return f"{self.year}-W{self.week_number:02d}-{self.group_id}"

    def same_week(self, year: int, week_number: int) -> bool:
        return self.year == year and self.week_number == week_number


class DogRoutine(BaseModel):
    """Wöchentliche Routine eines Hundes (Frequenz + Präferenzen)."""

    animal_id: str
    routine_type: RoutineType
    preferred_days: list[WorkDay] = []
    time_preference: TimePreference = TimePreference.INDIFFERENT
    sector: Optional[GeographicSector] = None
    walk_type_preference: WalkType = WalkType.COLLECTIVE
    use_package: bool = False
    is_active: bool = True

    @property
    def expected_weekly_walks(self) -> int:
        return ROUTINE_WALK_COUNT[self.routine_type]
