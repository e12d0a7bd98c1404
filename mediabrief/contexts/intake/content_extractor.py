"""
Schedule file normalization into canonical content.

Dispatch is solely on the declared filename extension:
- Spreadsheets (.xlsx/.xlsm via openpyxl, legacy .xls via xlrd): every sheet
  serialized to pipe-delimited text rows
- CSV: decoded as UTF-8 text and passed on verbatim; non-blank lines are rows
- PDF: every page rendered to a PNG image (never text-extracted)
"""

import io
import os
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from zipfile import BadZipFile

import xlrd
from dotenv import load_dotenv
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.xldate import XLDateError, xldate_as_datetime

from mediabrief.contexts.intake.logger import (
    _log_debug,
    _log_warning,
    log_intake_result,
    log_intake_start,
)
from mediabrief.exceptions import EmptyDocument, UnsupportedFormat
from mediabrief.utils.pdf_processing import page_count, render_pages

load_dotenv()

PDF_RENDER_DPI = int(os.getenv("PDF_RENDER_DPI", "150"))
PDF_MAX_PAGES = int(os.getenv("PDF_MAX_PAGES", "20"))

WORKBOOK_EXTENSIONS = (".xlsx", ".xlsm")
LEGACY_WORKBOOK_EXTENSIONS = (".xls",)
SPREADSHEET_EXTENSIONS = WORKBOOK_EXTENSIONS + LEGACY_WORKBOOK_EXTENSIONS
CSV_EXTENSIONS = (".csv",)
PDF_EXTENSIONS = (".pdf",)
SUPPORTED_EXTENSIONS = SPREADSHEET_EXTENSIONS + CSV_EXTENSIONS + PDF_EXTENSIONS

CELL_SEPARATOR = " | "
SHEET_MARKER = "=== {name} ==="

# (sheet title, row value tuples) pairs in workbook order
SheetRows = Iterable[Tuple[str, Iterable[tuple]]]


@dataclass
class CanonicalContent:
    """
    Normalized schedule content, produced once per upload.

    Attributes:
        kind: "text" (rows) or "images" (pages)
        source_format: "spreadsheet", "csv" or "pdf"
        filename: Declared filename of the upload
        rows: Ordered non-blank text rows (text kind only). Spreadsheet sheet
              boundaries are kept separately in `lines` and are not rows.
        pages: Ordered PNG page images (images kind only)
        lines: Full text sent to the model: sheet boundary markers for
               spreadsheets, every decoded line for CSV
        total_pages: Page count of the source PDF, which can exceed
                     len(pages) when rendering was capped
    """

    kind: str
    source_format: str
    filename: str
    rows: List[str] = field(default_factory=list)
    pages: List[bytes] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)
    total_pages: Optional[int] = None

    @property
    def text(self) -> str:
        """Serialized text sent to the model (empty for image content)."""
        return "\n".join(self.lines or self.rows)

    @property
    def is_empty(self) -> bool:
        if self.kind == "images":
            return not self.pages
        return not self.rows

    @property
    def skipped_pages(self) -> int:
        """PDF pages left out by the render cap."""
        if self.total_pages is None:
            return 0
        return max(self.total_pages - len(self.pages), 0)


def extract_content(data: bytes, filename: str) -> CanonicalContent:
    """
    Normalize raw schedule bytes into canonical content.

    Args:
        data: Raw file bytes
        filename: Declared filename; only its extension is consulted

    Returns:
        CanonicalContent with text rows or page images

    Raises:
        UnsupportedFormat: Extension is not a spreadsheet, CSV or PDF extension
        EmptyDocument: No rows (spreadsheet/CSV) or no pages (PDF) could be extracted
    """
    extension = Path(filename).suffix.lower()

    if extension in WORKBOOK_EXTENSIONS:
        log_intake_start(filename, len(data), "spreadsheet")
        content = _extract_spreadsheet(data, filename)
    elif extension in LEGACY_WORKBOOK_EXTENSIONS:
        log_intake_start(filename, len(data), "spreadsheet (legacy .xls)")
        content = _extract_legacy_spreadsheet(data, filename)
    elif extension in CSV_EXTENSIONS:
        log_intake_start(filename, len(data), "csv")
        content = _extract_csv(data, filename)
    elif extension in PDF_EXTENSIONS:
        log_intake_start(filename, len(data), "pdf")
        content = _extract_pdf(data, filename)
    else:
        _log_warning(f"Rejected {filename}: unsupported extension '{extension}'")
        raise UnsupportedFormat(filename, extension, SUPPORTED_EXTENSIONS)

    if content.is_empty:
        _log_warning(f"{filename}: no extractable content")
        raise EmptyDocument(filename)

    log_intake_result(content)
    return content


# =============================================================================
# SPREADSHEET
# =============================================================================


def _extract_spreadsheet(data: bytes, filename: str) -> CanonicalContent:
    """Serialize every sheet of an .xlsx/.xlsm workbook."""
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as e:
        raise EmptyDocument(filename, reason=str(e)) from e

    try:
        # Different publishers put the schedule on different sheets, so read them all
        return _serialize_sheets(
            ((sheet.title, sheet.iter_rows(values_only=True)) for sheet in workbook.worksheets),
            filename,
        )
    finally:
        workbook.close()


def _extract_legacy_spreadsheet(data: bytes, filename: str) -> CanonicalContent:
    """Serialize every sheet of a legacy BIFF (.xls) workbook."""
    try:
        book = xlrd.open_workbook(file_contents=data)
    except Exception as e:
        # xlrd raises XLRDError, CompDocError or struct errors for malformed files
        raise EmptyDocument(filename, reason=str(e)) from e

    try:
        return _serialize_sheets(
            ((sheet.name, _legacy_row_values(sheet, book.datemode)) for sheet in book.sheets()),
            filename,
        )
    finally:
        book.release_resources()


def _legacy_row_values(sheet, datemode: int):
    for row_index in range(sheet.nrows):
        yield tuple(_legacy_cell_value(cell, datemode) for cell in sheet.row(row_index))


def _legacy_cell_value(cell, datemode: int):
    """Map an xlrd cell to the value openpyxl would give for the same cell."""
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return xldate_as_datetime(cell.value, datemode)
        except XLDateError:
            return cell.value
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    return cell.value


def _serialize_sheets(sheets: SheetRows, filename: str) -> CanonicalContent:
    """Serialize sheets in order, preserving row and column order within each."""
    rows: List[str] = []
    lines: List[str] = []
    for title, sheet_values in sheets:
        lines.append(SHEET_MARKER.format(name=title))
        sheet_rows = 0
        for values in sheet_values:
            row_text = _serialize_row(values)
            if row_text:
                rows.append(row_text)
                lines.append(row_text)
                sheet_rows += 1
        _log_debug(f"Sheet '{title}': {sheet_rows} row(s)")

    return CanonicalContent(
        kind="text", source_format="spreadsheet", filename=filename, rows=rows, lines=lines
    )


def _serialize_row(values) -> str:
    """Join a row's cells, keeping interior blanks so columns stay aligned."""
    cells = [_format_cell(value) for value in values]
    while cells and not cells[-1]:
        cells.pop()
    if not any(cells):
        return ""
    return CELL_SEPARATOR.join(cells)


def _format_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    # Embedded newlines would split a row in the serialized text
    return " ".join(str(value).split())


# =============================================================================
# CSV
# =============================================================================


def _extract_csv(data: bytes, filename: str) -> CanonicalContent:
    """Decode CSV bytes; the model gets every line, rows are the non-blank ones."""
    text = data.decode("utf-8-sig", errors="replace")
    lines = text.splitlines()
    rows = [line for line in lines if line.strip()]
    return CanonicalContent(
        kind="text", source_format="csv", filename=filename, rows=rows, lines=lines if rows else []
    )


# =============================================================================
# PDF
# =============================================================================


def _extract_pdf(data: bytes, filename: str) -> CanonicalContent:
    """Render every page (up to PDF_MAX_PAGES) to an image. Text extraction is never attempted."""
    total: Optional[int] = page_count(data)
    if total is not None and total > PDF_MAX_PAGES:
        _log_warning(f"{filename}: {total} pages, rendering first {PDF_MAX_PAGES}")

    try:
        pages = render_pages(data, resolution=PDF_RENDER_DPI, max_pages=PDF_MAX_PAGES)
    except Exception as e:
        # pdfminer raises a variety of syntax errors for malformed files
        raise EmptyDocument(filename, reason=str(e)) from e

    return CanonicalContent(
        kind="images", source_format="pdf", filename=filename, pages=pages, total_pages=total
    )
