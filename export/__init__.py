"""Export-Modul: Excel (openpyxl) und PDF (fpdf2) für Rechnungen und Berichte."""

from export.excel_export import ExcelExporter
from export.pdf_export import InvoicePdfExporter

__all__ = ["ExcelExporter", "InvoicePdfExporter"]
