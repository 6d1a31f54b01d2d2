"""Geschlossene Aufzählungen des Fachmodells (Wochentage, Blöcke, Routinen, Abrechnung).

Die Werte entsprechen den Spaltenwerten der Datenbank, damit Snapshots ohne
Umschlüsselung geladen werden können. Anzeigetexte (französisch) liegen in den
*_LABELS-Tabellen daneben.
"""

from enum import Enum


class WorkDay(str, Enum):
    """Arbeitstage. Ein Wochenende existiert im Modell nicht."""
    LUNDI = "lundi"
    MARDI = "mardi"
    MERCREDI = "mercredi"
    JEUDI = "jeudi"
    VENDREDI = "vendredi"

    @property
    def day_index(self) -> int:
        """0=Montag … 4=Freitag (wie date.weekday())."""
        return WORK_DAYS.index(self)

    @property
    def code(self) -> str:
        """Zweibuchstaben-Kürzel für Gruppen-IDs ("LU", "MA", …)."""
        return DAY_CODES[self]


class TimeBlock(str, Enum):
    B1 = "B1"   # Vormittag
    B2 = "B2"   # Mittag
    B3 = "B3"   # Nachmittag

    @property
    def block_index(self) -> int:
        return TIME_BLOCKS.index(self)


class TimePreference(str, Enum):
    MATIN = "MATIN"
    MIDI = "MIDI"
    APRESMIDI = "APRESMIDI"
    INDIFFERENT = "INDIFFERENT"


class GeographicSector(str, Enum):
    S1 = "S1"
    S2 = "S2"
    S3 = "S3"


class WalkType(str, Enum):
    """Art der Balade eines Wochen-Slots."""
    COLLECTIVE = "COLLECTIVE"
    INDIVIDUELLE = "INDIVIDUELLE"
    CANIRANDO = "CANIRANDO"
    SUR_MESURE = "SUR_MESURE"


class ServiceType(str, Enum):
    """Leistungsart einer abrechenbaren Aktivität."""
    INDIVIDUAL_WALK = "individual_walk"
    GROUP_WALK = "group_walk"       # die "kollektive" Balade (Forfait-fähig)
    CUSTOM_WALK = "custom_walk"
    EDUCATION = "education"
    DOG_SITTING = "dog_sitting"
    TRANSPORT = "transport"
    OTHER = "other"


class RoutineType(str, Enum):
    R1 = "R1"
    R2 = "R2"
    R3 = "R3"
    ROUTINE_PLUS = "ROUTINE_PLUS"
    PONCTUEL = "PONCTUEL"


class AbsenceType(str, Enum):
    VACANCES_CLIENT = "VACANCES_CLIENT"
    CHIEN_MALADE = "CHIEN_MALADE"
    CHIEN_CHALEURS = "CHIEN_CHALEURS"
    RENDEZ_VOUS_VETERINAIRE = "RENDEZ_VOUS_VETERINAIRE"
    EVENEMENT_FAMILIAL = "EVENEMENT_FAMILIAL"
    PROMENEUR_ABSENT = "PROMENEUR_ABSENT"
    METEO_EXTREME = "METEO_EXTREME"
    AUTRE = "AUTRE"


class CancellationPolicy(str, Enum):
    FULL_REFUND = "FULL_REFUND"
    PARTIAL_CHARGE = "PARTIAL_CHARGE"
    FULL_CHARGE = "FULL_CHARGE"
    RESCHEDULED = "RESCHEDULED"
    PACKAGE_CREDIT = "PACKAGE_CREDIT"


class AbsenceStatus(str, Enum):
    """Lebenszyklus eines AbsenceRecord nach der Policy-Bestimmung."""
    POLICY_DETERMINED = "policy_determined"
    RESCHEDULE_SUGGESTED = "reschedule_suggested"
    RESCHEDULE_CONFIRMED = "reschedule_confirmed"


class ActivityStatus(str, Enum):
    PLANNED = "planned"
    DONE = "done"
    INVOICED = "invoiced"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class ReminderLevel(str, Enum):
    FIRST = "first"
    SECOND = "second"
    FINAL = "final"


class ExpenseCategory(str, Enum):
    FUEL = "fuel"
    VEHICLE_MAINTENANCE = "vehicle_maintenance"
    DOG_EQUIPMENT = "dog_equipment"
    INSURANCE = "insurance"
    PHONE = "phone"
    ACCOUNTING = "accounting"
    TRAINING = "training"
    OTHER = "other"


# ─── Reihenfolgen & Kürzel ───

WORK_DAYS: list[WorkDay] = list(WorkDay)
TIME_BLOCKS: list[TimeBlock] = list(TimeBlock)

DAY_CODES: dict[WorkDay, str] = {
    WorkDay.LUNDI: "LU",
    WorkDay.MARDI: "MA",
    WorkDay.MERCREDI: "ME",
    WorkDay.JEUDI: "JE",
    WorkDay.VENDREDI: "VE",
}

# Erwartete Balades pro Woche je Routine
ROUTINE_WALK_COUNT: dict[RoutineType, int] = {
    RoutineType.R1: 1,
    RoutineType.R2: 2,
    RoutineType.R3: 3,
    RoutineType.ROUTINE_PLUS: 4,
    RoutineType.PONCTUEL: 0,
}

# Zeitpräferenz → passende Blöcke (INDIFFERENT passt immer)
PREFERENCE_BLOCKS: dict[TimePreference, tuple[TimeBlock, ...]] = {
    TimePreference.MATIN: (TimeBlock.B1,),
    TimePreference.MIDI: (TimeBlock.B2,),
    TimePreference.APRESMIDI: (TimeBlock.B3,),
    TimePreference.INDIFFERENT: (TimeBlock.B1, TimeBlock.B2, TimeBlock.B3),
}


def block_matches_preference(block: TimeBlock, preference: TimePreference) -> bool:
    """True wenn der Block zur Zeitpräferenz passt."""
    return block in PREFERENCE_BLOCKS[preference]


# ─── Anzeigetexte (französisch) ───

DAY_LABELS: dict[WorkDay, str] = {
    WorkDay.LUNDI: "Lundi",
    WorkDay.MARDI: "Mardi",
    WorkDay.MERCREDI: "Mercredi",
    WorkDay.JEUDI: "Jeudi",
    WorkDay.VENDREDI: "Vendredi",
}

BLOCK_LABELS: dict[TimeBlock, str] = {
    TimeBlock.B1: "Matin",
    TimeBlock.B2: "Midi",
    TimeBlock.B3: "Après-midi",
}

SERVICE_TYPE_LABELS: dict[ServiceType, str] = {
    ServiceType.INDIVIDUAL_WALK: "Balade individuelle",
    ServiceType.GROUP_WALK: "Balade collective",
    ServiceType.CUSTOM_WALK: "Balade sur mesure",
    ServiceType.EDUCATION: "Éducation canine",
    ServiceType.DOG_SITTING: "Dog sitting",
    ServiceType.TRANSPORT: "Transport",
    ServiceType.OTHER: "Autre prestation",
}

ROUTINE_LABELS: dict[RoutineType, str] = {
    RoutineType.R1: "1x/semaine",
    RoutineType.R2: "2x/semaine",
    RoutineType.R3: "3x/semaine",
    RoutineType.ROUTINE_PLUS: "4-5x/semaine",
    RoutineType.PONCTUEL: "Ponctuel",
}

ABSENCE_TYPE_LABELS: dict[AbsenceType, str] = {
    AbsenceType.VACANCES_CLIENT: "Vacances du client",
    AbsenceType.CHIEN_MALADE: "Chien malade",
    AbsenceType.CHIEN_CHALEURS: "Chien en chaleurs",
    AbsenceType.RENDEZ_VOUS_VETERINAIRE: "Rendez-vous vétérinaire",
    AbsenceType.EVENEMENT_FAMILIAL: "Événement familial",
    AbsenceType.PROMENEUR_ABSENT: "Promeneur absent",
    AbsenceType.METEO_EXTREME: "Météo extrême",
    AbsenceType.AUTRE: "Autre raison",
}

CANCELLATION_POLICY_LABELS: dict[CancellationPolicy, str] = {
    CancellationPolicy.FULL_REFUND: "Non facturé (annulation > 24h)",
    CancellationPolicy.PARTIAL_CHARGE: "Facturé 50% (annulation < 24h)",
    CancellationPolicy.FULL_CHARGE: "Facturé 100% (annulation jour même)",
    CancellationPolicy.RESCHEDULED: "Reporté",
    CancellationPolicy.PACKAGE_CREDIT: "Crédit forfait",
}

SECTOR_LABELS: dict[GeographicSector, str] = {
    GeographicSector.S1: "Nyon & proches",
    GeographicSector.S2: "Lac / Genève",
    GeographicSector.S3: "Jura / Campagne",
}

WALK_TYPE_LABELS: dict[WalkType, str] = {
    WalkType.COLLECTIVE: "Collective",
    WalkType.INDIVIDUELLE: "Individuelle",
    WalkType.CANIRANDO: "Cani-Rando",
    WalkType.SUR_MESURE: "Sur mesure",
}

# Standard-Gruppengröße je Balade-Art
DEFAULT_CAPACITIES: dict[WalkType, int] = {
    WalkType.COLLECTIVE: 4,
    WalkType.INDIVIDUELLE: 1,
    WalkType.CANIRANDO: 3,
    WalkType.SUR_MESURE: 4,
}

REMINDER_LEVEL_LABELS: dict[ReminderLevel, str] = {
    ReminderLevel.FIRST: "1er rappel",
    ReminderLevel.SECOND: "2e rappel",
    ReminderLevel.FINAL: "Dernier rappel",
}

PAYMENT_STATUS_LABELS: dict[PaymentStatus, str] = {
    PaymentStatus.DRAFT: "Brouillon",
    PaymentStatus.SENT: "Envoyée",
    PaymentStatus.PAID: "Payée",
    PaymentStatus.OVERDUE: "En retard",
}
