"""Excel-Export für Rechnungen, Monatsbericht und Wochenauslastung (openpyxl)."""

from pathlib import Path
from typing import Optional

from config.schema import BusinessConfig
from models.billing import InvoiceCalculation, MonthlyReport
from models.enums import (
    BLOCK_LABELS,
    DAY_LABELS,
    SERVICE_TYPE_LABELS,
    TIME_BLOCKS,
    WORK_DAYS,
)
from rules.dates import format_date_fr, format_month_fr
from rules.planning_engine import WeeklyLoadReport, parse_group_id

from export.helpers import (
    COLORS, invoice_numbers, period_label, today_str, utilization_color,
)


class ExcelExporter:
    """Exportiert berechnete Rechnungen (und optional Berichte) in eine Excel-Datei.

    Sheets: Aperçu, je Rechnung ein Blatt, optional Rapport und Charge.
    """

    # Spaltenbreiten (Excel-Einheiten)
    COL_DESC_W = 48
    COL_NUM_W  = 12
    COL_DAY_W  = 18

    # Zeilenhöhen (Punkte)
    ROW_HEADER_H = 22
    ROW_SLOT_H   = 36

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

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(
        self,
        output_path: Path,
        report: Optional[MonthlyReport] = None,
        weekly_load: Optional[WeeklyLoadReport] = None,
    ) -> None:
        """Erstellt die Excel-Datei mit allen Sheets."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        self._sheet_apercu(wb)

        for number, invoice in zip(self.numbers, self.invoices):
            self._sheet_facture(wb, number, invoice)

        if report is not None:
            self._sheet_rapport(wb, report)

        if weekly_load is not None:
            self._sheet_charge(wb, weekly_load)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _write_header(self, ws, row: int, headers: list[str]) -> None:
        """Schreibt eine weiße, fette Kopfzeile auf Kopf-Farbe."""
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align(wrap=False)
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    def _money_cell(self, ws, row: int, col: int, amount, bold: bool = False):
        from openpyxl.styles import Font
        c = ws.cell(row=row, column=col, value=float(amount))
        c.number_format = "#,##0.00"
        c.border = self._thin_border()
        if bold:
            c.font = Font(bold=True)
        return c

    # ─── Sheet: Aperçu ────────────────────────────────────────────────────────

    def _sheet_apercu(self, wb) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet(title="Aperçu", index=0)

        row = 1
        ws.cell(row=row, column=1, value=self.config.company.name).font = Font(bold=True, size=14)
        row += 1
        ws.cell(row=row, column=1, value=f"Créé le: {today_str()}")
        ws.cell(row=row, column=3, value=f"Factures: {len(self.invoices)}")
        row += 2

        headers = ["N°", "Client", "Période", "Lignes", "Sous-total",
                   "TVA", f"Total ({self.currency})", "Échéance"]
        self._write_header(ws, row, headers)
        row += 1

        border = self._thin_border()
        for number, inv in zip(self.numbers, self.invoices):
            ws.cell(row=row, column=1, value=number).border = border
            ws.cell(row=row, column=2, value=inv.client_name).border = border
            ws.cell(row=row, column=3, value=period_label(inv)).border = border
            ws.cell(row=row, column=4, value=len(inv.lines)).border = border
            self._money_cell(ws, row, 5, inv.subtotal)
            self._money_cell(ws, row, 6, inv.tax_amount)
            self._money_cell(ws, row, 7, inv.total, bold=True)
            ws.cell(row=row, column=8, value=inv.due_date.strftime("%d.%m.%Y")).border = border
            row += 1

        if self.invoices:
            grand_total = sum(inv.total for inv in self.invoices)
            ws.cell(row=row, column=6, value="Total").font = Font(bold=True)
            c = self._money_cell(ws, row, 7, grand_total, bold=True)
            c.fill = self._fill(COLORS["total"])

        # Spaltenbreiten
        for col, width in zip("ABCDEFGH", (18, 28, 22, 8, 12, 10, 14, 12)):
            ws.column_dimensions[col].width = width

    # ─── Sheet: Facture ───────────────────────────────────────────────────────

    def _sheet_facture(self, wb, number: str, invoice: InvoiceCalculation) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet(title=f"Facture {number}"[:31])

        row = 1
        ws.cell(row=row, column=1, value=f"Facture {number}").font = Font(bold=True, size=13)
        row += 1
        ws.cell(row=row, column=1, value=f"Client: {invoice.client_name}")
        row += 1
        ws.cell(row=row, column=1, value=invoice.notes)
        row += 1
        ws.cell(row=row, column=1,
                value=f"Échéance: {format_date_fr(invoice.due_date)}")
        row += 2

        self._write_header(ws, row, ["Description", "Qté", "Prix unitaire", "Total"])
        row += 1

        border = self._thin_border()
        for line in invoice.lines:
            fill = self._fill(COLORS["package"] if line.is_package else COLORS["line"])
            c = ws.cell(row=row, column=1, value=line.description)
            c.border = border
            c.fill = fill
            q = ws.cell(row=row, column=2, value=line.quantity)
            q.border = border
            q.alignment = self._center_align(wrap=False)
            self._money_cell(ws, row, 3, line.unit_price)
            self._money_cell(ws, row, 4, line.total)
            row += 1

        row += 1
        for label, amount in (
            ("Sous-total", invoice.subtotal),
            (f"TVA ({invoice.tax_rate}%)", invoice.tax_amount),
            (f"Total {self.currency}", invoice.total),
        ):
            ws.cell(row=row, column=3, value=label).font = Font(bold=True)
            self._money_cell(ws, row, 4, amount, bold=True)
            row += 1

        ws.column_dimensions["A"].width = self.COL_DESC_W
        ws.column_dimensions["B"].width = 8
        ws.column_dimensions["C"].width = self.COL_NUM_W + 4
        ws.column_dimensions["D"].width = self.COL_NUM_W

    # ─── Sheet: Rapport ───────────────────────────────────────────────────────

    def _sheet_rapport(self, wb, report: MonthlyReport) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet(title="Rapport")

        row = 1
        ws.cell(row=row, column=1,
                value=f"Rapport mensuel {format_month_fr(report.month)}").font = Font(bold=True, size=13)
        row += 2

        self._write_header(ws, row, ["Indicateur", f"Valeur ({self.currency})"])
        row += 1
        border = self._thin_border()
        for label, value, is_money in (
            ("Chiffre d'affaires (payé)", report.total_revenue, True),
            ("Dépenses", report.total_expenses, True),
            ("Bénéfice net", report.net_profit, True),
            ("Factures envoyées", report.invoices_sent, False),
            ("Factures payées", report.invoices_paid, False),
            ("Factures en retard", report.invoices_overdue, False),
            ("Balades", report.total_walks, False),
            ("Clients actifs", report.unique_clients, False),
            ("CA moyen par client", report.average_revenue_per_client, True),
        ):
            ws.cell(row=row, column=1, value=label).border = border
            if is_money:
                c = self._money_cell(ws, row, 2, value)
                if label == "Bénéfice net" and value < 0:
                    c.fill = self._fill(COLORS["overdue"])
            else:
                ws.cell(row=row, column=2, value=value).border = border
            row += 1

        row += 1
        ws.cell(row=row, column=1, value="Meilleurs clients").font = Font(bold=True)
        row += 1
        self._write_header(ws, row, ["Client", "CA payé"])
        row += 1
        for entry in report.top_clients:
            ws.cell(row=row, column=1, value=entry.client_name).border = border
            self._money_cell(ws, row, 2, entry.revenue)
            row += 1

        row += 1
        ws.cell(row=row, column=1, value="CA par prestation").font = Font(bold=True)
        row += 1
        self._write_header(ws, row, ["Prestation", "Montant"])
        row += 1
        for service, amount in report.revenue_by_service_type.items():
            if amount == 0:
                continue
            ws.cell(row=row, column=1, value=SERVICE_TYPE_LABELS[service]).border = border
            self._money_cell(ws, row, 2, amount)
            row += 1

        ws.column_dimensions["A"].width = 32
        ws.column_dimensions["B"].width = 16

    # ─── Sheet: Charge ────────────────────────────────────────────────────────

    def _sheet_charge(self, wb, load: WeeklyLoadReport) -> None:
        """Raster Block × Tag mit Belegung/Kapazität und Ampelfarbe."""
        from openpyxl.utils import get_column_letter
        from openpyxl.styles import Font
        ws = wb.create_sheet(title="Charge")

        self._write_header(ws, 1, ["Bloc"] + [DAY_LABELS[d] for d in WORK_DAYS])
        near = self.config.planning.near_capacity_percent

        cells: dict[tuple, object] = {}
        for s in load.slots:
            parsed = parse_group_id(s.group_id)
            if parsed:
                cells[parsed] = s

        border = self._thin_border()
        for r, block in enumerate(TIME_BLOCKS, 2):
            c = ws.cell(row=r, column=1, value=BLOCK_LABELS[block])
            c.font = Font(bold=True)
            c.border = border
            for col, day in enumerate(WORK_DAYS, 2):
                s = cells.get((day, block))
                if s is None:
                    text, color = "", COLORS["free"]
                else:
                    text = f"{s.current_count}/{s.effective_capacity}"
                    if s.is_blocked:
                        text += "\nbloqué"
                    color = utilization_color(
                        s.current_count, s.effective_capacity, s.is_blocked, near
                    )
                c = ws.cell(row=r, column=col, value=text)
                c.fill = self._fill(color)
                c.alignment = self._center_align()
                c.border = border
            ws.row_dimensions[r].height = self.ROW_SLOT_H

        summary_row = len(TIME_BLOCKS) + 3
        for offset, line in enumerate(load.summary().split("\n")):
            ws.cell(row=summary_row + offset, column=1, value=line)

        ws.column_dimensions["A"].width = 14
        for col in range(2, 2 + len(WORK_DAYS)):
            ws.column_dimensions[get_column_letter(col)].width = self.COL_DAY_W
