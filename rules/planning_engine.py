"""Planungs-Engine: Kapazitäts-, Konflikt- und Routineprüfung für Wochen-Slots.

Reine Funktionen über einen Schnappschuss der Slot-Instanzen und Zuweisungen
einer Woche. Fachliche Verstöße werden als ValidationViolation zurückgegeben,
nur strukturell ungültige Eingaben (unbekannter Slot) lösen eine Exception aus.
"""

import logging
import re
from collections import defaultdict
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel

from models.enums import (
    BLOCK_LABELS,
    DAY_CODES,
    DAY_LABELS,
    DEFAULT_CAPACITIES,
    TIME_BLOCKS,
    WORK_DAYS,
    GeographicSector,
    RoutineType,
    TimeBlock,
    TimePreference,
    WalkType,
    WorkDay,
    block_matches_preference,
)
from models.planning import Assignment, DogRoutine, WeeklySlotInstance
from rules.errors import UnknownSlotError
from rules.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

ABSOLUTE_MAX_CAPACITY = 6
MAX_WALKS_PER_DOG_PER_WEEK = 5
NEAR_CAPACITY_PERCENT = 75

# Gewichte der Slot-Bewertung (auch für Report-Vorschläge)
SCORE_PREFERRED_DAY = 5
SCORE_PREFERRED_BLOCK = 3
SCORE_UNDER_HALF_FULL = 2

# Richtpreis je Balade-Art für die Wochenprognose
WALK_TYPE_PRICES = {
    WalkType.COLLECTIVE: Decimal("30"),
    WalkType.INDIVIDUELLE: Decimal("50"),
    WalkType.CANIRANDO: Decimal("70"),
    WalkType.SUR_MESURE: Decimal("45"),
}


# ─── Ergebnis-Modelle ───

class ValidationViolation(BaseModel):
    """Ein einzelner Regelverstoß."""

    severity: Literal["error", "warning"]
    code: str            # z.B. "slot_full"
    description: str
    entity: str          # slot_id / animal_id


class ValidationResult(BaseModel):
    """Alle gefundenen Verstöße; gültig, solange kein Error dabei ist."""

    violations: list[ValidationViolation]
    is_valid: bool

    @property
    def errors(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == "error"]

    @property
    def warnings(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == "warning"]

    @property
    def codes(self) -> list[str]:
        return [v.code for v in self.violations]

    @classmethod
    def from_violations(cls, violations: list[ValidationViolation]) -> "ValidationResult":
        has_errors = any(v.severity == "error" for v in violations)
        return cls(violations=violations, is_valid=not has_errors)


AssignmentValidation = ValidationResult


class SlotLoad(BaseModel):
    slot_id: str
    group_id: str
    current_count: int
    effective_capacity: int
    utilization_percent: float
    is_overbooked: bool
    is_blocked: bool = False


class WeeklyLoadReport(BaseModel):
    """Auslastung aller Slots einer Woche."""

    slots: list[SlotLoad]
    total_assignments: int
    total_capacity: int          # nur nicht blockierte Slots
    utilization_percent: int
    overbooked_slots: list[str]
    empty_slots: list[str]
    near_capacity_slots: list[str]
    day_distribution: dict[WorkDay, int]
    block_distribution: dict[TimeBlock, int]
    sector_distribution: dict[GeographicSector, int]

    def summary(self) -> str:
        """Textzusammenfassung der Woche (französisch, für Anzeige)."""
        lines = [
            f"Affectations: {self.total_assignments} / {self.total_capacity} places "
            f"({self.utilization_percent}%)",
        ]
        if self.overbooked_slots:
            lines.append(f"Créneaux surchargés: {', '.join(self.overbooked_slots)}")
        if self.near_capacity_slots:
            lines.append(f"Créneaux presque pleins: {', '.join(self.near_capacity_slots)}")
        if self.empty_slots:
            lines.append(f"Créneaux vides: {len(self.empty_slots)}")
        busiest = max(self.day_distribution.items(), key=lambda kv: kv[1], default=None)
        if busiest and busiest[1] > 0:
            lines.append(f"Jour le plus chargé: {DAY_LABELS[busiest[0]]} ({busiest[1]})")
        return "\n".join(lines)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        border = "red" if self.overbooked_slots else "cyan"
        console.print(Panel(self.summary(), title="Charge hebdomadaire", border_style=border))

        table = Table(box=box.ROUNDED)
        table.add_column("Créneau", style="bold")
        table.add_column("Chiens", justify="right")
        table.add_column("Capacité", justify="right")
        table.add_column("Taux", justify="right")
        for s in self.slots:
            if s.is_overbooked:
                rate = f"[red]{s.utilization_percent:.0f}%[/red]"
            elif s.is_blocked:
                rate = "[dim]bloqué[/dim]"
            else:
                rate = f"{s.utilization_percent:.0f}%"
            table.add_row(s.slot_id, str(s.current_count), str(s.effective_capacity), rate)
        console.print(table)


class RoutineCompliance(BaseModel):
    animal_id: str
    routine_type: RoutineType
    expected: int
    actual: int
    is_compliant: bool               # actual >= expected
    status: Literal["ok", "under", "over"]
    message: str


class SlotSuggestion(BaseModel):
    slot_id: str
    group_id: str
    day: WorkDay
    block: TimeBlock
    score: int
    current_count: int
    available_places: int
    is_preferred_day: bool
    is_preferred_block: bool


class AssignmentConflict(BaseModel):
    animal_id: str
    year: int
    week_number: int
    conflict_type: Literal["double_booking", "consecutive_blocks"]
    details: str
    affected_groups: list[str]


# ─── Hilfsfunktionen ───

_GROUP_ID_RE = re.compile(r"^([A-Z]{2})-(B[1-3])$")


def parse_group_id(group_id: str) -> Optional[tuple[WorkDay, TimeBlock]]:
    """"LU-B1" → (LUNDI, B1); None bei fremdem Format."""
    match = _GROUP_ID_RE.match(group_id.upper())
    if not match:
        return None
    for day, code in DAY_CODES.items():
        if code == match.group(1):
            return day, TimeBlock(match.group(2))
    return None


def build_group_id(day: WorkDay, block: TimeBlock) -> str:
    return f"{day.code}-{block.value}"


def score_slot(
    slot: WeeklySlotInstance,
    preferred_days: list[WorkDay],
    time_preference: TimePreference = TimePreference.INDIFFERENT,
) -> tuple[int, bool, bool]:
    """Bewertet einen Slot für einen Hund.

    +5 bevorzugter Tag (oder keine Tagespräferenz),
    +3 Block passt zur Zeitpräferenz (INDIFFERENT passt immer),
    +2 Slot weniger als halb voll.

    Returns:
        (score, is_preferred_day, is_preferred_block)
    """
    is_preferred_day = not preferred_days or slot.day in preferred_days
    is_preferred_block = block_matches_preference(slot.block, time_preference)
    score = 0
    if is_preferred_day:
        score += SCORE_PREFERRED_DAY
    if is_preferred_block:
        score += SCORE_PREFERRED_BLOCK
    if slot.current_count * 2 < slot.effective_capacity:
        score += SCORE_UNDER_HALF_FULL
    return score, is_preferred_day, is_preferred_block


def is_bookable(slot: WeeklySlotInstance) -> bool:
    """Nicht blockiert und noch mindestens ein Platz frei."""
    return not slot.is_blocked and slot.current_count < slot.effective_capacity


def _slot_index(slot_instances: list[WeeklySlotInstance]) -> dict[str, WeeklySlotInstance]:
    return {s.slot_id: s for s in slot_instances}


# ─── Zuweisungsprüfung ───

def validate_dog_assignment(
    animal_id: str,
    target_slot_id: str,
    current_assignments: list[Assignment],
    slot_instances: list[WeeklySlotInstance],
    routine: Optional[DogRoutine] = None,
    animal_sector: Optional[GeographicSector] = None,
    allow_same_day: bool = False,
    max_walks_per_week: int = MAX_WALKS_PER_DOG_PER_WEEK,
) -> ValidationResult:
    """Prüft, ob ein Hund dem Ziel-Slot zugewiesen werden darf.

    Reihenfolge der Prüfungen:
    1. Slot blockiert                         (error)
    2. Slot voll: current_count >= Kapazität  (error)
    3. Bereits im Slot / zweite Balade am selben Tag (error)
    4. Wochenlimit des Hundes erreicht        (error)
    5. Routine-Frequenz überschritten         (warning)
    6. Sektor des Hundes ≠ Sektor des Slots   (warning)
    7. Balade im angrenzenden Block desselben Tages (warning)

    Es werden alle Verstöße gesammelt, nicht nur der erste.

    Raises:
        UnknownSlotError: Ziel-Slot oder ein Slot einer Zuweisung derselben
            Woche ist nicht in slot_instances enthalten.
    """
    slots = _slot_index(slot_instances)
    target = slots.get(target_slot_id)
    if target is None:
        raise UnknownSlotError(target_slot_id)

    week_assignments = [
        a for a in current_assignments
        if a.animal_id == animal_id and a.same_week(target.year, target.week_number)
    ]
    week_slots = []
    for a in week_assignments:
        slot = slots.get(a.slot_id)
        if slot is None:
            raise UnknownSlotError(a.slot_id)
        week_slots.append(slot)

    violations: list[ValidationViolation] = []
    violations.extend(_check_blocked(target))
    violations.extend(_check_capacity(target))
    violations.extend(_check_same_day(animal_id, target, week_slots, allow_same_day))
    violations.extend(_check_weekly_limit(animal_id, len(week_assignments), max_walks_per_week))
    violations.extend(_check_routine_frequency(animal_id, routine, len(week_assignments)))
    sector = animal_sector or (routine.sector if routine else None)
    violations.extend(_check_sector(animal_id, target, sector))
    violations.extend(_check_consecutive(animal_id, target, week_slots))

    result = ValidationResult.from_violations(violations)
    logger.debug(
        f"Zuweisung {animal_id} → {target_slot_id}: "
        f"{'gültig' if result.is_valid else 'ungültig'} ({', '.join(result.codes) or '-'})"
    )
    return result


def _check_blocked(target: WeeklySlotInstance) -> list[ValidationViolation]:
    if not target.is_blocked:
        return []
    reason = f" ({target.block_reason})" if target.block_reason else ""
    return [ValidationViolation(
        severity="error",
        code="slot_blocked",
        entity=target.slot_id,
        description=f"Le créneau {target.group_id} est bloqué{reason}.",
    )]


def _check_capacity(target: WeeklySlotInstance) -> list[ValidationViolation]:
    if target.current_count < target.effective_capacity:
        return []
    return [ValidationViolation(
        severity="error",
        code="slot_full",
        entity=target.slot_id,
        description=(
            f"Le groupe {target.group_id} est complet "
            f"({target.current_count}/{target.effective_capacity})."
        ),
    )]


def _check_same_day(
    animal_id: str,
    target: WeeklySlotInstance,
    week_slots: list[WeeklySlotInstance],
    allow_same_day: bool,
) -> list[ValidationViolation]:
    if any(s.slot_id == target.slot_id for s in week_slots):
        return [ValidationViolation(
            severity="error",
            code="already_assigned",
            entity=animal_id,
            description=f"{animal_id} est déjà affecté au groupe {target.group_id}.",
        )]
    if allow_same_day:
        return []
    same_day = [s.group_id for s in week_slots if s.day == target.day]
    if not same_day:
        return []
    return [ValidationViolation(
        severity="error",
        code="same_day_double_booking",
        entity=animal_id,
        description=(
            f"{animal_id} a déjà une balade le {DAY_LABELS[target.day].lower()} "
            f"({', '.join(same_day)})."
        ),
    )]


def _check_weekly_limit(
    animal_id: str, existing: int, max_walks: int
) -> list[ValidationViolation]:
    if existing < max_walks:
        return []
    return [ValidationViolation(
        severity="error",
        code="max_weekly_walks",
        entity=animal_id,
        description=(
            f"{animal_id} a déjà {existing} balades cette semaine (max: {max_walks})."
        ),
    )]


def _check_routine_frequency(
    animal_id: str, routine: Optional[DogRoutine], existing: int
) -> list[ValidationViolation]:
    if routine is None or not routine.is_active:
        return []
    if routine.routine_type == RoutineType.PONCTUEL:
        return []
    expected = routine.expected_weekly_walks
    if existing + 1 <= expected:
        return []
    return [ValidationViolation(
        severity="warning",
        code="routine_exceeded",
        entity=animal_id,
        description=(
            f"{animal_id} a une routine {routine.routine_type.value} "
            f"({expected}x/sem.) et a déjà {existing} affectation(s) cette semaine."
        ),
    )]


def _check_sector(
    animal_id: str,
    target: WeeklySlotInstance,
    sector: Optional[GeographicSector],
) -> list[ValidationViolation]:
    if sector is None or sector == target.sector:
        return []
    return [ValidationViolation(
        severity="warning",
        code="sector_mismatch",
        entity=animal_id,
        description=(
            f"{animal_id} est dans le secteur {sector.value} "
            f"mais le groupe {target.group_id} est en {target.sector.value}."
        ),
    )]


def _check_consecutive(
    animal_id: str,
    target: WeeklySlotInstance,
    week_slots: list[WeeklySlotInstance],
) -> list[ValidationViolation]:
    # Eine Warnung pro angrenzendem Block (vorher/nachher)
    return [
        ValidationViolation(
            severity="warning",
            code="consecutive_walks",
            entity=animal_id,
            description=(
                f"{animal_id} a déjà une balade dans un créneau adjacent ({s.group_id})."
            ),
        )
        for s in week_slots
        if s.day == target.day and abs(s.block.block_index - target.block.block_index) == 1
    ]


def validate_capacity(
    capacity: int,
    walk_type: WalkType,
    max_capacity: int = ABSOLUTE_MAX_CAPACITY,
) -> ValidationResult:
    """Prüft eine (manuell gesetzte) Gruppengröße.

    1 ≤ capacity ≤ max_capacity; INDIVIDUELLE höchstens 1.
    Warnung, wenn die Empfehlung für die Balade-Art um mehr als 1 überschritten wird.
    """
    violations: list[ValidationViolation] = []
    default_cap = DEFAULT_CAPACITIES[walk_type]

    if capacity < 1:
        violations.append(ValidationViolation(
            severity="error",
            code="capacity_too_low",
            entity=walk_type.value,
            description="La capacité ne peut pas être inférieure à 1.",
        ))
    if walk_type == WalkType.INDIVIDUELLE and capacity > 1:
        violations.append(ValidationViolation(
            severity="error",
            code="individual_walk_capacity",
            entity=walk_type.value,
            description="Une balade individuelle ne peut accueillir qu'un seul chien.",
        ))
    elif capacity > max_capacity:
        violations.append(ValidationViolation(
            severity="error",
            code="capacity_too_high",
            entity=walk_type.value,
            description=f"La capacité ne peut pas dépasser {max_capacity}.",
        ))
    if capacity > default_cap + 1:
        violations.append(ValidationViolation(
            severity="warning",
            code="capacity_above_recommended",
            entity=walk_type.value,
            description=f"Capacité supérieure à la recommandation ({default_cap}).",
        ))
    return ValidationResult.from_violations(violations)


# ─── Wochenanalyse ───

def analyze_weekly_load(
    slot_instances: list[WeeklySlotInstance],
    near_capacity_percent: int = NEAR_CAPACITY_PERCENT,
) -> WeeklyLoadReport:
    """Auslastung pro Slot und für die ganze Woche.

    Überbucht heißt strikt current_count > effective_capacity; ein exakt
    voller Slot ist nicht überbucht.
    """
    slots: list[SlotLoad] = []
    overbooked: list[str] = []
    empty: list[str] = []
    near_capacity: list[str] = []
    day_distribution = {day: 0 for day in WORK_DAYS}
    block_distribution = {block: 0 for block in TIME_BLOCKS}
    sector_distribution = {sector: 0 for sector in GeographicSector}

    total_assignments = 0
    total_capacity = 0
    for slot in slot_instances:
        count = slot.current_count
        capacity = slot.effective_capacity
        is_overbooked = count > capacity
        if capacity > 0:
            utilization = round(count * 100 / capacity, 1)
        else:
            utilization = 100.0 if count else 0.0

        slots.append(SlotLoad(
            slot_id=slot.slot_id,
            group_id=slot.group_id,
            current_count=count,
            effective_capacity=capacity,
            utilization_percent=utilization,
            is_overbooked=is_overbooked,
            is_blocked=slot.is_blocked,
        ))

        total_assignments += count
        if not slot.is_blocked:
            total_capacity += capacity

        if is_overbooked:
            overbooked.append(slot.slot_id)
            logger.warning(f"Créneau surchargé: {slot.slot_id} ({count}/{capacity})")
        elif count == 0 and not slot.is_blocked:
            empty.append(slot.slot_id)
        elif count > 0 and count * 100 >= capacity * near_capacity_percent:
            near_capacity.append(slot.slot_id)

        day_distribution[slot.day] += count
        block_distribution[slot.block] += count
        sector_distribution[slot.sector] += count

    utilization_percent = round(total_assignments * 100 / total_capacity) if total_capacity else 0

    return WeeklyLoadReport(
        slots=slots,
        total_assignments=total_assignments,
        total_capacity=total_capacity,
        utilization_percent=utilization_percent,
        overbooked_slots=overbooked,
        empty_slots=empty,
        near_capacity_slots=near_capacity,
        day_distribution=day_distribution,
        block_distribution=block_distribution,
        sector_distribution=sector_distribution,
    )


def calculate_weekly_revenue(
    assignments: list[Assignment],
    slot_instances: list[WeeklySlotInstance],
    custom_prices: Optional[dict[str, Decimal]] = None,
    prices: Optional[dict[WalkType, Decimal]] = None,
) -> Decimal:
    """Erwarteter Umsatz der übergebenen Zuweisungen.

    Je Zuweisung der Richtpreis der Balade-Art des Slots, außer für Hunde mit
    Sonderpreis in custom_prices (animal_id → Preis).

    Raises:
        UnknownSlotError: Slot einer Zuweisung fehlt in slot_instances.
    """
    slots = _slot_index(slot_instances)
    prices = WALK_TYPE_PRICES if prices is None else prices
    custom_prices = custom_prices or {}
    total = ZERO
    for a in assignments:
        slot = slots.get(a.slot_id)
        if slot is None:
            raise UnknownSlotError(a.slot_id)
        price = custom_prices.get(a.animal_id, prices[slot.walk_type])
        total += to_decimal(price)
    return total


# ─── Routine ───

def check_routine_compliance(
    routine: DogRoutine,
    weekly_assignments_for_animal: list[Assignment],
) -> RoutineCompliance:
    """Vergleicht die Zuweisungen einer Woche mit der erwarteten Frequenz.

    Konform heißt actual >= expected; Überzuweisung bleibt konform
    (status "over" ist nur informativ).
    """
    expected = routine.expected_weekly_walks
    actual = sum(1 for a in weekly_assignments_for_animal if a.animal_id == routine.animal_id)

    if actual < expected:
        status = "under"
        message = f"{routine.animal_id} n'a que {actual}/{expected} balades prévues"
    elif actual > expected:
        status = "over"
        message = f"{routine.animal_id} a {actual} balades (routine: {expected})"
    else:
        status = "ok"
        message = f"{routine.animal_id}: {actual}/{expected} balades ({routine.routine_type.value})"

    return RoutineCompliance(
        animal_id=routine.animal_id,
        routine_type=routine.routine_type,
        expected=expected,
        actual=actual,
        is_compliant=actual >= expected,
        status=status,
        message=message,
    )


def check_week_compliance(
    routines: list[DogRoutine],
    assignments: list[Assignment],
    year: int,
    week_number: int,
) -> list[RoutineCompliance]:
    """Routine-Check aller aktiven Routinen (ohne PONCTUEL) für eine Woche."""
    week = [a for a in assignments if a.same_week(year, week_number)]
    return [
        check_routine_compliance(r, [a for a in week if a.animal_id == r.animal_id])
        for r in routines
        if r.is_active and r.routine_type != RoutineType.PONCTUEL
    ]


# ─── Vorschläge ───

def suggest_optimal_slots(
    animal_id: str,
    routine: DogRoutine,
    available_slot_instances: list[WeeklySlotInstance],
    max_suggestions: int = 5,
) -> list[SlotSuggestion]:
    """Rangliste freier Slots für einen Hund.

    Sortierung: Score absteigend, dann geringere Belegung, dann Wochentag.
    Blockierte und volle Slots werden ausgeschlossen.
    """
    suggestions: list[SlotSuggestion] = []
    for slot in available_slot_instances:
        if not is_bookable(slot):
            continue
        score, is_day, is_block = score_slot(slot, routine.preferred_days, routine.time_preference)
        suggestions.append(SlotSuggestion(
            slot_id=slot.slot_id,
            group_id=slot.group_id,
            day=slot.day,
            block=slot.block,
            score=score,
            current_count=slot.current_count,
            available_places=slot.available_places,
            is_preferred_day=is_day,
            is_preferred_block=is_block,
        ))

    suggestions.sort(key=lambda s: (-s.score, s.current_count, s.day.day_index))
    logger.debug(f"{len(suggestions)} créneaux candidats pour {animal_id}")
    return suggestions[:max_suggestions]


# ─── Konflikte ───

def detect_assignment_conflicts(
    assignments: list[Assignment],
    slot_instances: Optional[list[WeeklySlotInstance]] = None,
) -> list[AssignmentConflict]:
    """Findet Doppelbuchungen desselben Slots und direkt aufeinanderfolgende Blöcke.

    Tag und Block kommen aus der Slot-Instanz, sonst aus der Gruppen-ID;
    Gruppen mit fremdem ID-Format werden nur auf Doppelbuchung geprüft.
    """
    slots = _slot_index(slot_instances or [])
    by_animal_week: dict[tuple[str, int, int], list[Assignment]] = defaultdict(list)
    for a in assignments:
        by_animal_week[(a.animal_id, a.year, a.week_number)].append(a)

    conflicts: list[AssignmentConflict] = []
    for (animal_id, year, week), items in by_animal_week.items():
        group_ids = [a.group_id for a in items]
        duplicates = sorted({g for g in group_ids if group_ids.count(g) > 1})
        if duplicates:
            conflicts.append(AssignmentConflict(
                animal_id=animal_id,
                year=year,
                week_number=week,
                conflict_type="double_booking",
                details=f"{animal_id} est inscrit plusieurs fois au même groupe",
                affected_groups=duplicates,
            ))

        blocks_by_day: dict[WorkDay, set[int]] = defaultdict(set)
        for a in items:
            slot = slots.get(a.slot_id)
            parsed = (slot.day, slot.block) if slot else parse_group_id(a.group_id)
            if parsed:
                blocks_by_day[parsed[0]].add(parsed[1].block_index)

        for day in WORK_DAYS:
            blocks = sorted(blocks_by_day.get(day, ()))
            for first, second in zip(blocks, blocks[1:]):
                if second - first == 1:
                    conflicts.append(AssignmentConflict(
                        animal_id=animal_id,
                        year=year,
                        week_number=week,
                        conflict_type="consecutive_blocks",
                        details=(
                            f"{animal_id} a 2 balades consécutives le {DAY_LABELS[day]} "
                            f"({BLOCK_LABELS[TIME_BLOCKS[first]]} / {BLOCK_LABELS[TIME_BLOCKS[second]]})"
                        ),
                        affected_groups=[
                            build_group_id(day, TIME_BLOCKS[first]),
                            build_group_id(day, TIME_BLOCKS[second]),
                        ],
                    ))
    return conflicts
