"""Abrechnungsmodelle: Kunden, Aktivitäten, Rechnungen, Forfaits, Berichte (Pydantic v2)."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.enums import (
    ActivityStatus,
    ExpenseCategory,
    PaymentStatus,
    ReminderLevel,
    RoutineType,
    ServiceType,
    WalkType,
)


class Client(BaseModel):
    """Kunde (Halter eines oder mehrerer Hunde)."""

    id: str
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""


class Animal(BaseModel):
    """Hund eines Kunden."""

    id: str
    name: str
    client_id: str
    breed: str = ""


class Activity(BaseModel):
    """Erbrachte (oder geplante) Leistung, Grundlage der Rechnung."""

    id: str
    client_id: str
    animal_id: str
    animal_name: str = ""
    service_type: ServiceType
    date: date
    unit_price: Optional[Decimal] = Field(None, ge=0)   # None = Standardpreis
    quantity: int = Field(1, ge=1)
    status: ActivityStatus = ActivityStatus.DONE
    is_from_routine: bool = False


class Expense(BaseModel):
    id: str
    category: ExpenseCategory
    amount: Decimal = Field(ge=0)
    date: date
    description: str = ""


class InvoiceRecord(BaseModel):
    """Gespeicherte Rechnung (Status, Betrag, Mahnhistorie)."""

    id: str
    invoice_number: str
    client_id: str
    client_name: str
    client_email: str = ""
    total: Decimal = Field(ge=0)
    status: PaymentStatus = PaymentStatus.DRAFT
    issue_date: date
    due_date: date
    last_reminder_date: Optional[date] = None
    reminder_count: int = Field(0, ge=0)


class MonthlyPackage(BaseModel):
    """Monatsforfait einer Routine (PONCTUEL hat keins)."""

    routine_type: RoutineType
    walk_type: WalkType = WalkType.COLLECTIVE
    walks_per_week: int = Field(ge=1)
    monthly_price: Decimal = Field(ge=0)
    price_per_walk: Decimal = Field(ge=0)
    description: str

    @field_validator("routine_type")
    @classmethod
    def _no_package_for_ponctuel(cls, v: RoutineType) -> RoutineType:
        if v == RoutineType.PONCTUEL:
            raise ValueError("PONCTUEL wird pro Balade abgerechnet, kein Forfait möglich")
        return v


class InvoiceLineItem(BaseModel):
    """Eine Rechnungszeile je (Hund, Leistungsart)."""

    description: str
    animal_id: str
    service_type: ServiceType
    is_package: bool = False
    quantity: int
    unit_price: Decimal
    total: Decimal
    activity_ids: list[str] = []


class InvoiceCalculation(BaseModel):
    """Berechnete (noch nicht gespeicherte) Rechnung."""

    client_id: str
    client_name: str
    period_start: date
    period_end: date
    lines: list[InvoiceLineItem]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    issue_date: date
    due_date: date
    notes: str = ""

    @property
    def walk_count(self) -> int:
        return sum(len(line.activity_ids) for line in self.lines)


class PaymentReminder(BaseModel):
    invoice_id: str
    invoice_number: str
    client_id: str
    client_name: str
    client_email: str = ""
    amount: Decimal
    due_date: date
    days_past_due: int
    reminder_level: ReminderLevel
    template_message: str


class ClientRevenue(BaseModel):
    client_id: str
    client_name: str
    revenue: Decimal


class MonthlyReport(BaseModel):
    """Monatsabschluss: Umsatz (nur bezahlte Rechnungen), Ausgaben, Gewinn."""

    month: date
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    invoices_sent: int
    invoices_paid: int
    invoices_overdue: int
    total_walks: int
    unique_clients: int
    average_revenue_per_client: Decimal
    top_clients: list[ClientRevenue]
    revenue_by_service_type: dict[ServiceType, Decimal]
    expenses_by_category: dict[ExpenseCategory, Decimal] = {}


class VolumeDiscount(BaseModel):
    percent: int
    description: str


class RevenueBreakdownItem(BaseModel):
    routine_type: RoutineType
    count: int
    revenue: Decimal


class RevenueEstimate(BaseModel):
    estimated: Decimal
    breakdown: list[RevenueBreakdownItem]
