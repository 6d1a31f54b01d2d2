"""Fakturierung: Monatsrechnungen aus Aktivitäten, Forfaits, Mahnungen, Monatsbericht.

Forfait-Regel (nur Balades collectives eines Hundes mit Forfait-Routine):
erwartet = Balades/Woche × 4.33. Wurden mindestens 75 % davon geleistet,
wird der Monatsforfait pauschal verrechnet, sonst der reduzierte
Forfait-Preis pro Balade.

Beträge werden pro Zeile einmal auf Rappen gerundet; Zwischensumme und
Total sind exakte Summen der gerundeten Werte.
"""

import logging
from collections import Counter
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from models.billing import (
    Activity,
    Client,
    ClientRevenue,
    Expense,
    InvoiceCalculation,
    InvoiceLineItem,
    InvoiceRecord,
    MonthlyPackage,
    MonthlyReport,
    PaymentReminder,
    RevenueBreakdownItem,
    RevenueEstimate,
    VolumeDiscount,
)
from models.enums import (
    SERVICE_TYPE_LABELS,
    ActivityStatus,
    ExpenseCategory,
    PaymentStatus,
    ReminderLevel,
    RoutineType,
    ServiceType,
)
from models.planning import DogRoutine
from rules.dates import (
    days_between,
    format_date_fr,
    format_day_month_fr,
    format_month_fr,
    month_bounds,
)
from rules.money import ZERO, format_chf, percent_of, round2, to_decimal

logger = logging.getLogger(__name__)

WEEKS_PER_MONTH = Decimal("4.33")
PACKAGE_USAGE_THRESHOLD = Decimal("0.75")
PONCTUEL_WALKS_PER_MONTH = 2
REMINDER_INTERVAL_DAYS = 7

DEFAULT_SERVICE_PRICES: dict[ServiceType, Decimal] = {
    ServiceType.GROUP_WALK: Decimal("30"),
    ServiceType.INDIVIDUAL_WALK: Decimal("50"),
    ServiceType.CUSTOM_WALK: Decimal("45"),
    ServiceType.EDUCATION: Decimal("60"),
    ServiceType.DOG_SITTING: Decimal("40"),
    ServiceType.TRANSPORT: Decimal("15"),
    ServiceType.OTHER: Decimal("30"),
}

DEFAULT_PACKAGES: dict[RoutineType, MonthlyPackage] = {
    RoutineType.R1: MonthlyPackage(
        routine_type=RoutineType.R1, walks_per_week=1,
        monthly_price=Decimal("115"), price_per_walk=Decimal("26.5"),
        description="Forfait 1 balade/semaine"),
    RoutineType.R2: MonthlyPackage(
        routine_type=RoutineType.R2, walks_per_week=2,
        monthly_price=Decimal("220"), price_per_walk=Decimal("25.4"),
        description="Forfait 2 balades/semaine"),
    RoutineType.R3: MonthlyPackage(
        routine_type=RoutineType.R3, walks_per_week=3,
        monthly_price=Decimal("315"), price_per_walk=Decimal("24.2"),
        description="Forfait 3 balades/semaine"),
    RoutineType.ROUTINE_PLUS: MonthlyPackage(
        routine_type=RoutineType.ROUTINE_PLUS, walks_per_week=4,
        monthly_price=Decimal("400"), price_per_walk=Decimal("23.5"),
        description="Forfait 4+ balades/semaine"),
}

# (Mindestanzahl Balades, Prozent, Beschreibung), höchste Schwelle zuerst
VOLUME_DISCOUNT_TIERS = [
    (16, 12, "12% (4+ balades/semaine)"),
    (12, 10, "10% (3 balades/semaine)"),
    (8, 8, "8% (2 balades/semaine)"),
    (4, 5, "5% (1 balade/semaine)"),
]


# ─── Rechnung ───

def calculate_invoice(
    client_id: str,
    client_name: str,
    activities: list[Activity],
    dog_routines: list[DogRoutine],
    period_start: date,
    period_end: date,
    tax_rate: Decimal = ZERO,
    payment_delay_days: int = 30,
    apply_package_discount: bool = True,
    issue_date: Optional[date] = None,
    packages: Optional[dict[RoutineType, MonthlyPackage]] = None,
    default_prices: Optional[dict[ServiceType, Decimal]] = None,
) -> InvoiceCalculation:
    """Berechnet die Rechnung eines Kunden für einen Zeitraum.

    Eine Zeile je (Hund, Leistungsart) in der Reihenfolge des ersten
    Auftretens. Ohne Forfait gilt der Preis der ersten Aktivität der
    Gruppe, sonst der Standardpreis der Leistungsart.
    """
    packages = DEFAULT_PACKAGES if packages is None else packages
    default_prices = DEFAULT_SERVICE_PRICES if default_prices is None else default_prices
    routines = {r.animal_id: r for r in dog_routines}

    groups: dict[tuple[str, ServiceType], list[Activity]] = {}
    for activity in activities:
        if not period_start <= activity.date <= period_end:
            logger.warning(
                f"Activité {activity.id} du {activity.date} hors période "
                f"{period_start} au {period_end} ({client_id})"
            )
        groups.setdefault((activity.animal_id, activity.service_type), []).append(activity)

    lines: list[InvoiceLineItem] = []
    for (animal_id, service_type), items in groups.items():
        quantity = sum(a.quantity for a in items)
        animal_name = items[0].animal_name or animal_id
        routine = routines.get(animal_id)
        has_package = routine is not None and routine.is_active and routine.use_package
        package = packages.get(routine.routine_type) if has_package else None

        if apply_package_discount and package and service_type == ServiceType.GROUP_WALK:
            lines.append(_package_line(animal_id, animal_name, package, items, quantity, period_start))
        else:
            unit_price = items[0].unit_price
            if unit_price is None:
                unit_price = default_prices[service_type]
            lines.append(InvoiceLineItem(
                description=f"{animal_name} - {SERVICE_TYPE_LABELS[service_type]} ({quantity}x)",
                animal_id=animal_id,
                service_type=service_type,
                quantity=quantity,
                unit_price=to_decimal(unit_price),
                total=round2(to_decimal(unit_price) * quantity),
                activity_ids=[a.id for a in items],
            ))

    rate = to_decimal(tax_rate)
    subtotal = sum((line.total for line in lines), ZERO)
    tax_amount = percent_of(subtotal, rate)
    issue = issue_date or date.today()

    return InvoiceCalculation(
        client_id=client_id,
        client_name=client_name,
        period_start=period_start,
        period_end=period_end,
        lines=lines,
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
        issue_date=issue,
        due_date=issue + timedelta(days=payment_delay_days),
        notes=f"Prestations du {format_day_month_fr(period_start)} au {format_date_fr(period_end)}",
    )


def _package_line(
    animal_id: str,
    animal_name: str,
    package: MonthlyPackage,
    items: list[Activity],
    quantity: int,
    period_start: date,
) -> InvoiceLineItem:
    expected = package.walks_per_week * WEEKS_PER_MONTH
    threshold = expected * PACKAGE_USAGE_THRESHOLD
    activity_ids = [a.id for a in items]

    if quantity >= threshold:
        logger.debug(f"{animal_id}: {quantity} >= {threshold} → forfait {package.monthly_price}")
        return InvoiceLineItem(
            description=f"{animal_name} - {package.description} ({format_month_fr(period_start)})",
            animal_id=animal_id,
            service_type=ServiceType.GROUP_WALK,
            is_package=True,
            quantity=1,
            unit_price=package.monthly_price,
            total=round2(package.monthly_price),
            activity_ids=activity_ids,
        )

    logger.debug(f"{animal_id}: {quantity} < {threshold} → {package.price_per_walk}/balade")
    return InvoiceLineItem(
        description=f"{animal_name} - Balades collectives ({quantity}x)",
        animal_id=animal_id,
        service_type=ServiceType.GROUP_WALK,
        is_package=True,
        quantity=quantity,
        unit_price=package.price_per_walk,
        total=round2(package.price_per_walk * quantity),
        activity_ids=activity_ids,
    )


def generate_monthly_invoices(
    month: date,
    clients: list[Client],
    activities: list[Activity],
    dog_routines: list[DogRoutine],
    tax_rate: Decimal = ZERO,
    payment_delay_days: int = 30,
    apply_package_discount: bool = True,
    issue_date: Optional[date] = None,
    packages: Optional[dict[RoutineType, MonthlyPackage]] = None,
    default_prices: Optional[dict[ServiceType, Decimal]] = None,
) -> list[InvoiceCalculation]:
    """Rechnungen aller Kunden für den Kalendermonat von month.

    Berücksichtigt nur erledigte (DONE) Aktivitäten im Monat. Kunden ohne
    solche Aktivitäten erhalten keine Rechnung.
    """
    period_start, period_end = month_bounds(month)
    invoices: list[InvoiceCalculation] = []

    for client in clients:
        client_activities = [
            a for a in activities
            if a.client_id == client.id
            and a.status == ActivityStatus.DONE
            and period_start <= a.date <= period_end
        ]
        if not client_activities:
            continue
        invoices.append(calculate_invoice(
            client_id=client.id,
            client_name=client.name,
            activities=client_activities,
            dog_routines=dog_routines,
            period_start=period_start,
            period_end=period_end,
            tax_rate=tax_rate,
            payment_delay_days=payment_delay_days,
            apply_package_discount=apply_package_discount,
            issue_date=issue_date,
            packages=packages,
            default_prices=default_prices,
        ))

    logger.info(
        f"{len(invoices)} facture(s) générée(s) pour {format_month_fr(period_start)} "
        f"({len(clients)} clients)"
    )
    return invoices


def format_invoice_number(prefix: str, month: date, sequence: int) -> str:
    """("FAC", 2025-03, 7) → "FAC-2025-03-007"."""
    return f"{prefix}-{month.year}-{month.month:02d}-{sequence:03d}"


# ─── Mahnwesen ───

def select_overdue_invoices(invoices: list[InvoiceRecord], today: date) -> list[InvoiceRecord]:
    """Überfällige Rechnungen: Status OVERDUE oder versendet und Fälligkeit vorbei."""
    return [
        inv for inv in invoices
        if inv.status == PaymentStatus.OVERDUE
        or (inv.status == PaymentStatus.SENT and inv.due_date < today)
    ]


def reminder_level_for(reminder_count: int) -> ReminderLevel:
    """0 → first, 1 → second, ab 2 → final."""
    if reminder_count == 0:
        return ReminderLevel.FIRST
    if reminder_count == 1:
        return ReminderLevel.SECOND
    return ReminderLevel.FINAL


def generate_payment_reminders(
    overdue_invoices: list[InvoiceRecord],
    reminder_interval_days: int = REMINDER_INTERVAL_DAYS,
    today: Optional[date] = None,
    company_name: str = "Django & Co",
    currency: str = "CHF",
) -> list[PaymentReminder]:
    """Erzeugt fällige Zahlungserinnerungen.

    Eine Erinnerung entsteht erst, wenn seit der letzten Erinnerung (oder,
    ohne Erinnerung, seit der Fälligkeit) mindestens reminder_interval_days
    vergangen sind. Die Stufe hängt nur von reminder_count ab.
    """
    today = today or date.today()
    reminders: list[PaymentReminder] = []

    for invoice in overdue_invoices:
        days_past_due = days_between(today, invoice.due_date)
        if invoice.last_reminder_date is not None:
            days_since_last = days_between(today, invoice.last_reminder_date)
        else:
            days_since_last = days_past_due
        if days_since_last < reminder_interval_days:
            continue

        level = reminder_level_for(invoice.reminder_count)
        reminders.append(PaymentReminder(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            client_id=invoice.client_id,
            client_name=invoice.client_name,
            client_email=invoice.client_email,
            amount=invoice.total,
            due_date=invoice.due_date,
            days_past_due=days_past_due,
            reminder_level=level,
            template_message=render_reminder_message(
                level,
                client_name=invoice.client_name,
                invoice_number=invoice.invoice_number,
                amount=invoice.total,
                due_date=invoice.due_date,
                days_past_due=days_past_due,
                company_name=company_name,
                currency=currency,
            ),
        ))

    logger.info(f"{len(reminders)} rappel(s) sur {len(overdue_invoices)} facture(s) en retard")
    return reminders


def render_reminder_message(
    level: ReminderLevel,
    client_name: str,
    invoice_number: str,
    amount: Decimal,
    due_date: date,
    days_past_due: int,
    company_name: str = "Django & Co",
    currency: str = "CHF",
) -> str:
    """Mahntext je Stufe; der Ton wird von Stufe zu Stufe schärfer."""
    due = format_date_fr(due_date)
    amount_str = format_chf(amount, currency)

    if level == ReminderLevel.FIRST:
        body = (
            "Nous espérons que tout va bien !\n\n"
            f"Nous vous contactons au sujet de la facture {invoice_number} "
            f"d'un montant de {amount_str},\n"
            f"dont la date d'échéance était le {due} ({days_past_due} jours).\n\n"
            "Si vous avez déjà effectué le paiement, veuillez ignorer ce message.\n\n"
            "Merci pour votre confiance !"
        )
    elif level == ReminderLevel.SECOND:
        body = (
            f"Nous vous relançons concernant la facture {invoice_number} "
            f"d'un montant de {amount_str},\n"
            f"en retard de {days_past_due} jours (échéance: {due}).\n\n"
            "Pourriez-vous nous confirmer la réception de cette facture et\n"
            "nous indiquer quand nous pouvons attendre le règlement ?\n\n"
            "N'hésitez pas à nous contacter si vous avez des questions."
        )
    else:
        body = (
            f"Malgré nos rappels précédents, la facture {invoice_number} "
            f"d'un montant de {amount_str}\n"
            f"reste impayée depuis {days_past_due} jours.\n\n"
            "Sans règlement de votre part sous 7 jours, nous serons contraints de\n"
            "suspendre nos services et d'engager une procédure de recouvrement.\n\n"
            "Nous restons à votre disposition pour trouver une solution."
        )

    return f"Bonjour {client_name},\n\n{body}\n\nCordialement,\n{company_name}"


# ─── Monatsbericht ───

def generate_monthly_report(
    month: date,
    invoices: list[InvoiceRecord],
    expenses: list[Expense],
    activities: list[Activity],
    default_prices: Optional[dict[ServiceType, Decimal]] = None,
) -> MonthlyReport:
    """Monatsabschluss aus den übergebenen Daten des Monats.

    Umsatz zählt nur bezahlte Rechnungen. Der Umsatz je Leistungsart kommt
    aus den Aktivitäten, unabhängig vom Rechnungsstatus; ohne erfassten
    Preis gilt der Standardpreis der Leistungsart.
    """
    default_prices = DEFAULT_SERVICE_PRICES if default_prices is None else default_prices
    paid = [inv for inv in invoices if inv.status == PaymentStatus.PAID]
    total_revenue = sum((inv.total for inv in paid), ZERO)
    total_expenses = sum((e.amount for e in expenses), ZERO)

    revenue_by_client: dict[str, ClientRevenue] = {}
    for inv in paid:
        entry = revenue_by_client.get(inv.client_id)
        if entry is None:
            revenue_by_client[inv.client_id] = ClientRevenue(
                client_id=inv.client_id, client_name=inv.client_name, revenue=inv.total
            )
        else:
            entry.revenue += inv.total
    top_clients = sorted(revenue_by_client.values(), key=lambda c: -c.revenue)[:5]

    revenue_by_service = {s: ZERO for s in ServiceType}
    for activity in activities:
        unit_price = activity.unit_price
        if unit_price is None:
            unit_price = default_prices[activity.service_type]
        revenue_by_service[activity.service_type] += to_decimal(unit_price) * activity.quantity

    expenses_by_category = {c: ZERO for c in ExpenseCategory}
    for expense in expenses:
        expenses_by_category[expense.category] += expense.amount

    unique_clients = len({a.client_id for a in activities})
    average = round2(total_revenue / unique_clients) if unique_clients else ZERO

    return MonthlyReport(
        month=month_bounds(month)[0],
        total_revenue=round2(total_revenue),
        total_expenses=round2(total_expenses),
        net_profit=round2(total_revenue - total_expenses),
        invoices_sent=sum(1 for inv in invoices if inv.status != PaymentStatus.DRAFT),
        invoices_paid=len(paid),
        invoices_overdue=sum(1 for inv in invoices if inv.status == PaymentStatus.OVERDUE),
        total_walks=len(activities),
        unique_clients=unique_clients,
        average_revenue_per_client=average,
        top_clients=top_clients,
        revenue_by_service_type={s: round2(v) for s, v in revenue_by_service.items()},
        expenses_by_category={c: round2(v) for c, v in expenses_by_category.items()},
    )


# ─── Hilfsrechnungen ───

def calculate_volume_discount(walk_count: int) -> VolumeDiscount:
    """Mengenrabatt nach Anzahl Balades; höchste erreichte Stufe gilt.

    Wird von calculate_invoice nicht angewendet.
    """
    for minimum, percent, description in VOLUME_DISCOUNT_TIERS:
        if walk_count >= minimum:
            return VolumeDiscount(percent=percent, description=description)
    return VolumeDiscount(percent=0, description="Tarif standard")


def count_routines(routines: list[DogRoutine]) -> list[tuple[RoutineType, int]]:
    """Aktive Routinen je Typ, in Enum-Reihenfolge."""
    counts = Counter(r.routine_type for r in routines if r.is_active)
    return [(t, counts[t]) for t in RoutineType if counts[t]]


def estimate_monthly_revenue(
    routine_counts: list[tuple[RoutineType, int]],
    packages: Optional[dict[RoutineType, MonthlyPackage]] = None,
    collective_price: Decimal = DEFAULT_SERVICE_PRICES[ServiceType.GROUP_WALK],
) -> RevenueEstimate:
    """Schätzt den Monatsumsatz aus der Anzahl Hunde je Routinetyp.

    Forfait-Typen: Monatspreis × Anzahl. PONCTUEL: 2 Balades collectives
    pro Monat × Anzahl.
    """
    packages = DEFAULT_PACKAGES if packages is None else packages
    breakdown: list[RevenueBreakdownItem] = []
    total = ZERO

    for routine_type, count in routine_counts:
        package = packages.get(routine_type)
        if package is not None:
            revenue = package.monthly_price * count
        elif routine_type == RoutineType.PONCTUEL:
            revenue = to_decimal(collective_price) * PONCTUEL_WALKS_PER_MONTH * count
        else:
            continue
        breakdown.append(RevenueBreakdownItem(
            routine_type=routine_type, count=count, revenue=round2(revenue)
        ))
        total += revenue

    return RevenueEstimate(estimated=round2(total), breakdown=breakdown)
