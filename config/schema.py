from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from models.billing import MonthlyPackage
from models.enums import RoutineType, ServiceType, TimeBlock
from models.planning import WalkGroup


# ─── UNTERNEHMEN ───

class CompanyConfig(BaseModel):
    """Stammdaten des Unternehmens (erscheinen auf Rechnungen und Mahnungen)."""
    # Firmenname, auch Signatur der Mahntexte
    name: str = Field("Django & Co",
        description="Firmenname")
    # Postanschrift für den Rechnungskopf
    address: str = Field("Nyon, Suisse",
        description="Adresse")
    email: str = Field("contact@django-and-co.ch")
    phone: str = Field("")
    # Währungskürzel für alle Beträge
    currency: str = Field("CHF", min_length=3, max_length=3,
        description="Währung (ISO 4217)")
    # Präfix der Rechnungsnummern, z.B. "FAC-2025-03-001"
    invoice_prefix: str = Field("FAC",
        description="Präfix für Rechnungsnummern")


# ─── PREISE ───

class PricingConfig(BaseModel):
    """Standardpreise je Leistungsart und Basispreis für Absagegebühren."""
    # Preis pro Einheit, wenn eine Aktivität keinen eigenen Preis trägt
    default_prices: dict[ServiceType, Decimal] = Field(
        description="Standardpreis pro Leistungsart")
    # Basis für die Absagegebühr (50 % / 100 % davon)
    cancellation_base_price: Decimal = Field(Decimal("30"), ge=0,
        description="Basispreis für Absagegebühren")

    @model_validator(mode='after')
    def _check_all_services_priced(self):
        missing = [s.value for s in ServiceType if s not in self.default_prices]
        if missing:
            raise ValueError(f"Standardpreis fehlt für: {', '.join(missing)}")
        return self


# ─── FAKTURIERUNG ───

class BillingConfig(BaseModel):
    """Rechnungsstellung: MwSt, Zahlungsfrist, Forfait-Anwendung."""
    # MwSt-Satz in Prozent (0 = nicht MwSt-pflichtig)
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100,
        description="MwSt-Satz in Prozent")
    # Zahlungsfrist ab Rechnungsdatum in Tagen
    payment_delay_days: int = Field(30, ge=0, le=365,
        description="Zahlungsfrist (Tage)")
    # Forfait-Preise für Hunde mit Forfait-Routine anwenden
    apply_package_discount: bool = Field(True,
        description="Monatsforfaits anwenden")


# ─── ABSAGEN ───

class CancellationConfig(BaseModel):
    """Schwellen der Absage-Policy (in ganzen Stunden vor der Balade)."""
    # Ab so vielen Stunden Vorlauf: kostenlos
    full_refund_hours: int = Field(24, ge=1,
        description="Kostenlose Absage ab (Stunden)")
    # Ab so vielen Stunden Vorlauf: Teilgebühr, darunter volle Gebühr
    partial_charge_hours: int = Field(6, ge=0,
        description="Teilgebühr ab (Stunden)")
    # Höhe der Teilgebühr in Prozent
    partial_charge_percent: int = Field(50, ge=0, le=100,
        description="Teilgebühr in Prozent")

    @model_validator(mode='after')
    def _check_order(self):
        if self.partial_charge_hours >= self.full_refund_hours:
            raise ValueError(
                f"partial_charge_hours ({self.partial_charge_hours}) muss kleiner als "
                f"full_refund_hours ({self.full_refund_hours}) sein"
            )
        return self


# ─── MAHNWESEN ───

class ReminderConfig(BaseModel):
    """Zahlungserinnerungen."""
    # Mindestabstand zwischen zwei Erinnerungen (Tage)
    interval_days: int = Field(7, ge=1, le=90,
        description="Tage zwischen zwei Erinnerungen")


# ─── PLANUNG ───

class BlockTime(BaseModel):
    """Uhrzeiten eines Tagesblocks."""
    block: TimeBlock
    # Beginn im Format "HH:MM"
    start_time: str
    # Ende im Format "HH:MM"
    end_time: str


class PlanningConfig(BaseModel):
    """Planungsoptionen und Tagesraster."""
    # Erlaubt mehrere Gruppen am selben Tag für denselben Hund
    allow_same_day_double_booking: bool = Field(False,
        description="Mehrere Balades pro Tag und Hund erlauben")
    # Ab dieser Auslastung gilt ein Slot als "fast voll"
    near_capacity_percent: int = Field(75, ge=1, le=100,
        description="Schwelle 'fast voll' in Prozent")
    # Harte Obergrenze an Balades pro Hund und Woche
    max_walks_per_week: int = Field(5, ge=1, le=15,
        description="Max. Balades pro Hund und Woche")
    # Anzahl Vorschläge bei Slot- und Report-Suche
    max_suggestions: int = Field(5, ge=1, le=20,
        description="Max. Vorschläge")
    # Absolute Obergrenze der Gruppengröße
    max_capacity: int = Field(6, ge=1, le=12,
        description="Max. Hunde pro Gruppe")
    # Uhrzeiten der drei Blöcke
    block_times: list[BlockTime] = Field(
        default=[
            BlockTime(block=TimeBlock.B1, start_time="09:30", end_time="11:30"),
            BlockTime(block=TimeBlock.B2, start_time="12:00", end_time="14:00"),
            BlockTime(block=TimeBlock.B3, start_time="14:30", end_time="16:30"),
        ],
        description="Uhrzeiten der Tagesblöcke")

    def block_time(self, block: TimeBlock) -> BlockTime:
        for bt in self.block_times:
            if bt.block == block:
                return bt
        raise KeyError(block)


# ─── GESAMT-CONFIG ───

class BusinessConfig(BaseModel):
    """Gesamtkonfiguration des Unternehmens."""
    company: CompanyConfig = Field(default_factory=CompanyConfig)
    pricing: PricingConfig
    billing: BillingConfig = Field(default_factory=BillingConfig)
    # Monatsforfaits R1..ROUTINE_PLUS
    packages: list[MonthlyPackage]
    cancellation: CancellationConfig = Field(default_factory=CancellationConfig)
    reminders: ReminderConfig = Field(default_factory=ReminderConfig)
    planning: PlanningConfig = Field(default_factory=PlanningConfig)
    # Wiederkehrende Gruppen (Tag × Block)
    walk_groups: list[WalkGroup]

    @field_validator("packages")
    @classmethod
    def _unique_packages(cls, v: list[MonthlyPackage]) -> list[MonthlyPackage]:
        seen = [p.routine_type for p in v]
        if len(seen) != len(set(seen)):
            raise ValueError("Doppelter Forfait für denselben Routinetyp")
        return v

    @field_validator("walk_groups")
    @classmethod
    def _unique_groups(cls, v: list[WalkGroup]) -> list[WalkGroup]:
        ids = [g.id for g in v]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"Doppelte Gruppen-IDs: {', '.join(dupes)}")
        return v

    def package_map(self) -> dict[RoutineType, MonthlyPackage]:
        """Routinetyp → Forfait (PONCTUEL fehlt immer)."""
        return {p.routine_type: p for p in self.packages}

    def group_map(self) -> dict[str, WalkGroup]:
        return {g.id: g for g in self.walk_groups}
