"""PDF-Export der Monatsrechnungen (fpdf2)."""

from pathlib import Path
from typing import Optional

from config.schema import BusinessConfig
from models.billing import InvoiceCalculation
from rules.dates import format_date_fr

from export.helpers import (
    COLORS, hex_to_rgb, invoice_numbers, money_str, period_label, today_str,
)


def _pdf_safe(text: str) -> str:
    """Ersetzt nicht-latin-1-fähige Zeichen für fpdf2-Built-in-Fonts."""
    return (
        text
        .replace("\u2014", " - ")   # Geviertstrich
        .replace("\u2013", "-")      # Halbgeviertstrich
        .replace("\u2019", "'")      # typografischer Apostroph
        .replace("\u2026", "...")    # Auslassungspunkte
        .encode("latin-1", "replace").decode("latin-1")
    )


# ─── A4-Hochformat-Dimensionen ────────────────────────────────────────────────
# Portrait A4: 210 × 297 mm, Margin 10 links+rechts → 190 mm
# Spalten: Beschreibung(110) + Menge(15) + Preis(30) + Total(35) = 190 mm

_COLS = {
    "desc":  110,
    "qty":   15,
    "unit":  30,
    "total": 35,
}
_ROW_HEADER_H = 7     # mm
_ROW_LINE_H   = 7     # mm
_FONT_HEADER  = 9     # pt
_FONT_CONTENT = 8     # pt


class _InvoicePdf:
    """Interner Wrapper um fpdf.FPDF für Rechnungsseiten."""

    def __init__(self, company_name: str):
        from fpdf import FPDF

        class _Pdf(FPDF):
            def __init__(inner, cn):
                super().__init__(orientation="P", unit="mm", format="A4")
                inner._company_name = cn
                inner._entity_title = ""
                inner.alias_nb_pages()
                inner.set_auto_page_break(auto=True, margin=18)
                inner.set_margins(left=10, top=22, right=10)

            def header(inner):
                inner.set_font("Helvetica", "B", 11)
                inner.set_xy(10, 8)
                inner.cell(100, 7, _pdf_safe(inner._company_name), border=0, align="L")
                inner.cell(0,   7, _pdf_safe(inner._entity_title), border=0, align="R")
                inner.ln(0)
                inner.set_draw_color(150, 150, 150)
                inner.line(10, 18, inner.w - 10, 18)

            def footer(inner):
                inner.set_y(-14)
                inner.set_font("Helvetica", "I", 7)
                inner.cell(
                    0, 8,
                    f"{today_str()}  |  Page {inner.page_no()}/{{nb}}",
                    border=0, align="C",
                )

        self._pdf = _Pdf(company_name)

    def set_entity(self, title: str) -> None:
        self._pdf._entity_title = title

    def add_page(self) -> None:
        self._pdf.add_page()

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._pdf.output(str(path))

    # ─── Zellen-Zeichnung ─────────────────────────────────────────────────────

    def draw_cell(
        self,
        x: float, y: float,
        w: float, h: float,
        text: str = "",
        bg_hex: Optional[str] = None,
        bold: bool = False,
        font_size: int = _FONT_CONTENT,
        text_color: tuple[int, int, int] = (0, 0, 0),
        align: str = "L",
    ) -> None:
        """Zeichnet eine Zelle mit Hintergrund, Rand und einzeiligem Text."""
        pdf = self._pdf

        if bg_hex:
            r, g, b = hex_to_rgb(bg_hex)
            pdf.set_fill_color(r, g, b)
            pdf.rect(x, y, w, h, style="F")

        pdf.set_draw_color(180, 180, 180)
        pdf.rect(x, y, w, h, style="D")

        if text:
            pdf.set_font("Helvetica", "B" if bold else "", font_size)
            pdf.set_text_color(*text_color)
            pdf.set_xy(x + 1, y)
            pdf.cell(w - 2, h, _pdf_safe(text), border=0, align=align)
            pdf.set_text_color(0, 0, 0)   # Reset

    def text_line(self, text: str, size: int = 9, bold: bool = False, h: float = 5) -> None:
        """Freier Text über die ganze Breite, ab aktueller Y-Position."""
        pdf = self._pdf
        pdf.set_font("Helvetica", "B" if bold else "", size)
        pdf.set_x(10)
        pdf.cell(0, h, _pdf_safe(text), border=0, align="L")
        pdf.ln(h)

    @property
    def y(self) -> float:
        return self._pdf.get_y()

    def set_y(self, y: float) -> None:
        self._pdf.set_y(y)


class InvoicePdfExporter:
    """Exportiert berechnete Rechnungen als PDF, eine Seite pro Rechnung."""

    def __init__(
        self,
        invoices: list[InvoiceCalculation],
        config: BusinessConfig,
        numbers: Optional[list[str]] = None,
    ):
        self.invoices = invoices
        self.config   = config
        self.currency = config.company.currency
        self.numbers  = numbers or invoice_numbers(invoices, config.company.invoice_prefix)
        self._table_x = 10.0

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> None:
        """Erzeugt eine PDF mit je einer Seite pro Rechnung."""
        pdf = _InvoicePdf(self.config.company.name)
        for number, invoice in zip(self.numbers, self.invoices):
            pdf.set_entity(f"Facture {number}")
            pdf.add_page()
            self._draw_invoice(pdf, number, invoice)
        pdf.save(output_path)

    # ─── Seitenaufbau ─────────────────────────────────────────────────────────

    def _draw_invoice(self, pdf: _InvoicePdf, number: str, inv: InvoiceCalculation) -> None:
        company = self.config.company

        pdf.set_y(24)
        for line in (company.address, company.email, company.phone):
            if line:
                pdf.text_line(line, size=8, h=4)

        pdf.set_y(pdf.y + 6)
        pdf.text_line(f"Facture N° {number}", size=14, bold=True, h=8)
        pdf.text_line(f"Client: {inv.client_name}", size=10, h=6)
        pdf.text_line(f"Période: {period_label(inv)}", size=9)
        pdf.text_line(f"Date: {format_date_fr(inv.issue_date)}", size=9)

        y = self._draw_table(pdf, inv, pdf.y + 6)
        y = self._draw_totals(pdf, inv, y + 2)

        pdf.set_y(y + 8)
        pdf.text_line(
            f"Payable jusqu'au {format_date_fr(inv.due_date)}", size=9, bold=True
        )
        if inv.notes:
            pdf.text_line(inv.notes, size=8)

    def _draw_table(self, pdf: _InvoicePdf, inv: InvoiceCalculation, y: float) -> float:
        """Zeichnet Kopf + Positionen und gibt die Y-Position danach zurück."""
        x = self._table_x
        headers = [
            ("Description", _COLS["desc"], "L"),
            ("Qté", _COLS["qty"], "C"),
            ("Prix unit.", _COLS["unit"], "R"),
            (f"Total {self.currency}", _COLS["total"], "R"),
        ]
        cx = x
        for label, w, align in headers:
            pdf.draw_cell(
                cx, y, w, _ROW_HEADER_H, label,
                bg_hex=COLORS["header"], bold=True,
                font_size=_FONT_HEADER, text_color=(255, 255, 255), align=align,
            )
            cx += w
        y += _ROW_HEADER_H

        for line in inv.lines:
            bg = COLORS["package"] if line.is_package else COLORS["line"]
            values = [
                (line.description, _COLS["desc"], "L"),
                (str(line.quantity), _COLS["qty"], "C"),
                (money_str(line.unit_price), _COLS["unit"], "R"),
                (money_str(line.total), _COLS["total"], "R"),
            ]
            cx = x
            for text, w, align in values:
                pdf.draw_cell(cx, y, w, _ROW_LINE_H, text, bg_hex=bg, align=align)
                cx += w
            y += _ROW_LINE_H
        return y

    def _draw_totals(self, pdf: _InvoicePdf, inv: InvoiceCalculation, y: float) -> float:
        label_x = self._table_x + _COLS["desc"] + _COLS["qty"]
        value_x = label_x + _COLS["unit"]
        rows = [("Sous-total", inv.subtotal, False)]
        if inv.tax_rate:
            rows.append((f"TVA {inv.tax_rate}%", inv.tax_amount, False))
        rows.append((f"Total {self.currency}", inv.total, True))

        for label, amount, bold in rows:
            bg = COLORS["total"] if bold else None
            pdf.draw_cell(label_x, y, _COLS["unit"], _ROW_LINE_H, label,
                          bg_hex=bg, bold=bold, align="R")
            pdf.draw_cell(value_x, y, _COLS["total"], _ROW_LINE_H, money_str(amount),
                          bg_hex=bg, bold=bold, align="R")
            y += _ROW_LINE_H
        return y
