"""Absagen und Abwesenheiten: Gebühren-Policy, Urlaube, Ersatztermine, Statistik.

Geschäftsregeln (Stunden vor der Balade, ganze Stunden abgeschnitten):
- >= 24h: kostenlos
- 6h bis < 24h: 50 %
- < 6h (auch nach der Balade erfasst): 100 %

Vorrangig davor, in dieser Reihenfolge: vom Unternehmen verursachte Absagen
(Promeneur abwesend, Unwetter) sind immer kostenlos, medizinische Gründe werden
verschoben, Forfait-Kunden erhalten eine Gutschrift auf den Forfait.
"""

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from models.absence import (
    AbsenceRecord,
    AbsenceStats,
    ClientAbsenceCount,
    PolicyDecision,
    RegularAssignment,
    RescheduleInfo,
    RescheduleSuggestion,
    VacationPeriod,
)
from models.enums import (
    ABSENCE_TYPE_LABELS,
    CANCELLATION_POLICY_LABELS,
    WORK_DAYS,
    AbsenceType,
    CancellationPolicy,
    TimePreference,
    WalkType,
    WorkDay,
)
from models.planning import WeeklySlotInstance
from rules.dates import (
    date_for_workday,
    format_day_month_fr,
    format_weekday_fr,
    hours_between,
    iso_week,
    start_of_week,
    workday_of,
)
from rules.errors import InvalidRescheduleError
from rules.money import ZERO, format_chf, percent_of, round2, to_decimal
from rules.planning_engine import is_bookable, score_slot

logger = logging.getLogger(__name__)

CANCELLATION_BASE_PRICE = Decimal("30")

FULL_REFUND_HOURS = 24
PARTIAL_CHARGE_HOURS = 6
PARTIAL_CHARGE_PERCENT = 50

_EXCUSED_TYPES = (AbsenceType.PROMENEUR_ABSENT, AbsenceType.METEO_EXTREME)
_MEDICAL_TYPES = (AbsenceType.CHIEN_MALADE, AbsenceType.RENDEZ_VOUS_VETERINAIRE)
_NOT_CHARGED_POLICIES = (
    CancellationPolicy.FULL_REFUND,
    CancellationPolicy.RESCHEDULED,
    CancellationPolicy.PACKAGE_CREDIT,
)


# ─── Policy ───

def determine_cancellation_policy(
    original_date: datetime,
    cancellation_time: datetime,
    absence_type: AbsenceType,
    is_package_client: bool,
    full_refund_hours: int = FULL_REFUND_HOURS,
    partial_charge_hours: int = PARTIAL_CHARGE_HOURS,
    partial_charge_percent: int = PARTIAL_CHARGE_PERCENT,
) -> PolicyDecision:
    """Bestimmt die Absage-Policy; die erste zutreffende Regel gewinnt."""
    if absence_type in _EXCUSED_TYPES:
        decision = PolicyDecision(
            policy=CancellationPolicy.FULL_REFUND,
            charge_percent=0,
            reason="Annulation non imputable au client",
        )
    elif absence_type in _MEDICAL_TYPES:
        decision = PolicyDecision(
            policy=CancellationPolicy.RESCHEDULED,
            charge_percent=0,
            reason="Report proposé pour raison médicale",
        )
    elif is_package_client:
        decision = PolicyDecision(
            policy=CancellationPolicy.PACKAGE_CREDIT,
            charge_percent=0,
            reason="Crédit appliqué sur le forfait mensuel",
        )
    else:
        hours = hours_between(original_date, cancellation_time)
        if hours >= full_refund_hours:
            decision = PolicyDecision(
                policy=CancellationPolicy.FULL_REFUND,
                charge_percent=0,
                reason=f"Annulation avec plus de {full_refund_hours}h de préavis",
            )
        elif hours >= partial_charge_hours:
            decision = PolicyDecision(
                policy=CancellationPolicy.PARTIAL_CHARGE,
                charge_percent=partial_charge_percent,
                reason=f"Annulation tardive (< {full_refund_hours}h)",
            )
        else:
            decision = PolicyDecision(
                policy=CancellationPolicy.FULL_CHARGE,
                charge_percent=100,
                reason="Annulation le jour même",
            )

    logger.debug(
        f"Policy {decision.policy.value} ({decision.charge_percent}%) "
        f"für {absence_type.value}, Forfait={is_package_client}"
    )
    return decision


def calculate_cancellation_charge(
    charge_percent: int,
    walk_type: WalkType = WalkType.COLLECTIVE,
    custom_price: Optional[Decimal] = None,
    base_price: Decimal = CANCELLATION_BASE_PRICE,
) -> Decimal:
    """round2(Basispreis × Prozent / 100).

    Der Basispreis ist custom_price, falls gesetzt, sonst base_price; die
    Balade-Art beeinflusst den Betrag nicht.
    """
    price = to_decimal(custom_price) if custom_price is not None else to_decimal(base_price)
    return percent_of(price, charge_percent)


def record_cancellation(
    animal_id: str,
    client_id: str,
    group_id: str,
    original_date: datetime,
    cancellation_time: datetime,
    absence_type: AbsenceType,
    is_package_client: bool,
    animal_name: str = "",
    client_name: str = "",
    custom_price: Optional[Decimal] = None,
    base_price: Decimal = CANCELLATION_BASE_PRICE,
    reason: Optional[str] = None,
    created_by: str = "system",
    full_refund_hours: int = FULL_REFUND_HOURS,
    partial_charge_hours: int = PARTIAL_CHARGE_HOURS,
    partial_charge_percent: int = PARTIAL_CHARGE_PERCENT,
) -> AbsenceRecord:
    """Erzeugt den AbsenceRecord einer einzelnen Absage (Policy + Gebühr)."""
    decision = determine_cancellation_policy(
        original_date, cancellation_time, absence_type, is_package_client,
        full_refund_hours=full_refund_hours,
        partial_charge_hours=partial_charge_hours,
        partial_charge_percent=partial_charge_percent,
    )
    charge = calculate_cancellation_charge(
        decision.charge_percent, custom_price=custom_price, base_price=base_price
    )
    return AbsenceRecord(
        id=f"absence-{animal_id}-{original_date.date().isoformat()}-{group_id}",
        animal_id=animal_id,
        animal_name=animal_name,
        client_id=client_id,
        client_name=client_name,
        original_group_id=group_id,
        original_date=original_date,
        absence_type=absence_type,
        reason=reason or decision.reason,
        cancellation_time=cancellation_time,
        policy=decision.policy,
        charge_amount=charge,
        created_at=cancellation_time,
        created_by=created_by,
    )


# ─── Urlaube ───

def generate_vacation_absences(
    vacation: VacationPeriod,
    regular_assignments: list[RegularAssignment],
    now: Optional[datetime] = None,
    base_price: Decimal = CANCELLATION_BASE_PRICE,
) -> list[AbsenceRecord]:
    """Erzeugt je regulärer Zuweisung und betroffenem Datum einen AbsenceRecord.

    Läuft Woche für Woche vom Montag der Startwoche bis zur Endwoche; nur
    Daten innerhalb [start_date, end_date] (inklusive) erzeugen Records.
    Die Policy wird immer wie für einen Forfait-Kunden bestimmt.
    """
    now = now or datetime.now()
    reason = (
        f"Vacances du {format_day_month_fr(vacation.start_date)} "
        f"au {format_day_month_fr(vacation.end_date)}"
    )
    records: list[AbsenceRecord] = []

    week_start = start_of_week(vacation.start_date)
    last_week = start_of_week(vacation.end_date)
    while week_start <= last_week:
        for assignment in regular_assignments:
            walk_day = date_for_workday(week_start, assignment.day)
            if not vacation.contains(walk_day):
                continue
            walk_time = datetime.combine(walk_day, time.min)
            decision = determine_cancellation_policy(
                walk_time, now, vacation.reason, is_package_client=True
            )
            records.append(AbsenceRecord(
                id=f"absence-{vacation.animal_id}-{walk_day.isoformat()}-{assignment.group_id}",
                animal_id=vacation.animal_id,
                animal_name=vacation.animal_name,
                client_id=vacation.client_id,
                client_name=vacation.client_name,
                original_group_id=assignment.group_id,
                original_date=walk_time,
                absence_type=vacation.reason,
                reason=reason,
                cancellation_time=now,
                policy=decision.policy,
                charge_amount=calculate_cancellation_charge(
                    decision.charge_percent, base_price=base_price
                ),
                created_at=now,
                created_by="system",
            ))
        week_start += timedelta(weeks=1)

    logger.info(
        f"Vacances {vacation.animal_id} ({vacation.start_date} au {vacation.end_date}): "
        f"{len(records)} absence(s) générée(s)"
    )
    return records


def is_date_in_vacation(day: date, vacations: list[VacationPeriod]) -> Optional[VacationPeriod]:
    """Erste Urlaubsperiode, die day enthält, sonst None."""
    if isinstance(day, datetime):
        day = day.date()
    for vacation in vacations:
        if vacation.contains(day):
            return vacation
    return None


# ─── Ersatztermine ───

def suggest_reschedule_dates(
    original_date: date,
    available_slots: list[WeeklySlotInstance],
    preferred_days: Optional[list[WorkDay]] = None,
    time_preference: TimePreference = TimePreference.INDIFFERENT,
    max_suggestions: int = 5,
) -> list[RescheduleSuggestion]:
    """Ersatztermine aus den zwei Wochen nach der Woche der Absage.

    Blockierte und volle Slots fallen weg. Priorität wie bei der
    Slot-Suche (+5 Tag, +3 Block, +2 weniger als halb voll); Sortierung
    absteigend und stabil.
    """
    preferred_days = list(preferred_days or [])
    first_monday = start_of_week(original_date) + timedelta(weeks=1)
    target_weeks = {iso_week(first_monday), iso_week(first_monday + timedelta(weeks=1))}

    suggestions: list[RescheduleSuggestion] = []
    for slot in available_slots:
        if (slot.year, slot.week_number) not in target_weeks or not is_bookable(slot):
            continue
        priority, is_day, is_block = score_slot(slot, preferred_days, time_preference)
        suggestions.append(RescheduleSuggestion(
            group_id=slot.group_id,
            date=slot.walk_date,
            day=slot.day,
            block=slot.block,
            available_places=slot.available_places,
            is_preferred_slot=is_day and is_block,
            priority=priority,
        ))

    suggestions.sort(key=lambda s: -s.priority)
    return suggestions[:max_suggestions]


def attach_reschedule(record: AbsenceRecord, suggestion: RescheduleSuggestion) -> AbsenceRecord:
    """Hängt einen (unbestätigten) Ersatztermin an; liefert einen neuen Record."""
    info = RescheduleInfo(new_group_id=suggestion.group_id, new_date=suggestion.date)
    return record.model_copy(update={"reschedule_info": info})


def confirm_reschedule(record: AbsenceRecord) -> AbsenceRecord:
    """Bestätigt den angehängten Ersatztermin.

    Raises:
        InvalidRescheduleError: Es ist kein Ersatztermin angehängt.
    """
    if record.reschedule_info is None:
        raise InvalidRescheduleError(
            f"Absence {record.id}: kein Ersatztermin zum Bestätigen vorhanden"
        )
    info = record.reschedule_info.model_copy(update={"confirmed": True})
    return record.model_copy(update={"reschedule_info": info})


# ─── Statistik ───

def calculate_absence_stats(
    records: list[AbsenceRecord],
    base_price: Decimal = CANCELLATION_BASE_PRICE,
) -> AbsenceStats:
    """Zählt Absagen nach Art, Policy und Wochentag und summiert Umsatzausfall.

    Entgangener Umsatz: voller Basispreis bei Gutschrift/Erlass/Report,
    sonst Basispreis minus erhobene Gebühr, mindestens 0 (eine Gebühr über
    dem Basispreis ist kein Ausfall). Top 5 Kunden nach Häufigkeit, bei
    Gleichstand in Reihenfolge des ersten Auftretens.
    """
    base = to_decimal(base_price)
    by_type = {t: 0 for t in AbsenceType}
    by_policy = {p: 0 for p in CancellationPolicy}
    by_weekday = {d: 0 for d in WORK_DAYS}
    client_counts: dict[str, ClientAbsenceCount] = {}
    lost = ZERO
    charged = ZERO

    for record in records:
        by_type[record.absence_type] += 1
        by_policy[record.policy] += 1
        weekday = workday_of(record.original_date)
        if weekday is not None:
            by_weekday[weekday] += 1

        if record.policy in _NOT_CHARGED_POLICIES:
            lost += base
        else:
            charged += record.charge_amount
            lost += max(ZERO, base - record.charge_amount)

        entry = client_counts.get(record.client_id)
        if entry is None:
            client_counts[record.client_id] = ClientAbsenceCount(
                client_id=record.client_id,
                client_name=record.client_name,
                absence_count=1,
            )
        else:
            entry.absence_count += 1

    top_clients = sorted(client_counts.values(), key=lambda c: -c.absence_count)[:5]

    return AbsenceStats(
        total_absences=len(records),
        by_type=by_type,
        by_policy=by_policy,
        by_weekday=by_weekday,
        total_lost_revenue=round2(lost),
        total_charged_amount=round2(charged),
        most_frequent_clients=top_clients,
    )


# ─── Benachrichtigung ───

def generate_cancellation_notification(record: AbsenceRecord, currency: str = "CHF") -> str:
    """Klartext-Nachricht (französisch) zu einer Absage."""
    lines = [
        "📅 Balade annulée",
        "",
        f"Chien: {record.animal_name or record.animal_id}",
        f"Date: {format_weekday_fr(record.original_date)}",
        f"Raison: {ABSENCE_TYPE_LABELS[record.absence_type]}",
        f"Facturation: {CANCELLATION_POLICY_LABELS[record.policy]}",
    ]
    if record.charge_amount > 0:
        lines.append(f"Montant: {format_chf(record.charge_amount, currency)}")

    info = record.reschedule_info
    if info is not None:
        state = "✅ Confirmé" if info.confirmed else "⏳ En attente de confirmation"
        lines.append("")
        lines.append(f"🔄 Report proposé: {format_weekday_fr(info.new_date)} {state}")

    return "\n".join(lines)
