"""Gemeinsame Hilfsfunktionen für Excel- und PDF-Export."""

from datetime import date
from decimal import Decimal

from models.billing import InvoiceCalculation
from models.enums import PaymentStatus
from rules.dates import format_date_fr, format_month_fr, month_bounds
from rules.invoicing_engine import format_invoice_number

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "header":      "2E7D6B",
    "package":     "D9F2E6",
    "line":        "FFFFFF",
    "total":       "E8E8E8",
    "paid":        "C6EFCE",
    "sent":        "DDEBF7",
    "draft":       "F2F2F2",
    "overdue":     "FFC7CE",
    "free":        "F5F5F5",
    "ok":          "B3FFB3",
    "near_full":   "FFE699",
    "overbooked":  "FF9999",
    "blocked":     "BFBFBF",
}

STATUS_COLORS: dict[PaymentStatus, str] = {
    PaymentStatus.DRAFT: COLORS["draft"],
    PaymentStatus.SENT: COLORS["sent"],
    PaymentStatus.PAID: COLORS["paid"],
    PaymentStatus.OVERDUE: COLORS["overdue"],
}


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Wandelt RRGGBB-String in (r, g, b)-Tupel um."""
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


def money_str(amount: Decimal) -> str:
    """Decimal → "1'234.50" (Schweizer Tausendertrennung)."""
    return f"{amount:,.2f}".replace(",", "'")


# ─── Rechnungen ───────────────────────────────────────────────────────────────

def invoice_numbers(
    invoices: list[InvoiceCalculation], prefix: str, start: int = 1
) -> list[str]:
    """Fortlaufende Rechnungsnummern je Monat der Rechnungsperiode."""
    counters: dict[tuple[int, int], int] = {}
    numbers: list[str] = []
    for inv in invoices:
        key = (inv.period_start.year, inv.period_start.month)
        counters[key] = counters.get(key, start - 1) + 1
        numbers.append(format_invoice_number(prefix, inv.period_start, counters[key]))
    return numbers


def period_label(invoice: InvoiceCalculation) -> str:
    """Monatsname, wenn die Periode genau ein Kalendermonat ist, sonst Von-Bis."""
    start, end = invoice.period_start, invoice.period_end
    if (start, end) == month_bounds(start):
        return format_month_fr(start)
    return f"{format_date_fr(start)} - {format_date_fr(end)}"


# ─── Auslastung ───────────────────────────────────────────────────────────────

def utilization_color(
    current_count: int, capacity: int, is_blocked: bool, near_capacity_percent: int = 75
) -> str:
    """Ampelfarbe einer Slot-Zelle."""
    if is_blocked:
        return COLORS["blocked"]
    if current_count > capacity:
        return COLORS["overbooked"]
    if current_count == 0:
        return COLORS["free"]
    if current_count * 100 >= capacity * near_capacity_percent:
        return COLORS["near_full"]
    return COLORS["ok"]
