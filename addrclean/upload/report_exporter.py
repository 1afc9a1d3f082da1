"""
Address Report Exporter
=======================
Renders a batch result as the two downloadable reports: the full results
table and the errors table, as CSV or as one Excel workbook with a sheet
per table. Status and severity values are shown with fixed Russian labels.
"""

import csv
import io
import logging

from openpyxl import Workbook
from openpyxl.styles import Font

from addrclean.address_models import BatchResult, RecordStatus, Severity

logger = logging.getLogger(__name__)


STATUS_LABELS: dict[RecordStatus, str] = {
    RecordStatus.SUCCESS: "Успешно",
    RecordStatus.WARNING: "Предупреждение",
    RecordStatus.ERROR: "Ошибка",
}

SEVERITY_LABELS: dict[Severity, str] = {
    Severity.HIGH: "Высокая",
    Severity.MEDIUM: "Средняя",
    Severity.LOW: "Низкая",
}

RESULTS_HEADER = ["Исходный адрес", "Нормализованный адрес", "Статус"]
ERRORS_HEADER = ["Адрес", "Ошибка", "Критичность"]

RESULTS_SHEET = "Результаты"
ERRORS_SHEET = "Ошибки"

# Semicolon so that Excel in a Russian locale splits columns on open
CSV_DELIMITER = ";"


def results_rows(result: BatchResult) -> list[list[str]]:
    """Header plus one row per record."""
    rows = [list(RESULTS_HEADER)]
    for record in result.records:
        rows.append([record.original, record.normalized, STATUS_LABELS[record.status]])
    return rows


def errors_rows(result: BatchResult) -> list[list[str]]:
    """Header plus one row per error record."""
    rows = [list(ERRORS_HEADER)]
    for error in result.errors:
        rows.append([error.address, error.message, SEVERITY_LABELS[error.severity]])
    return rows


REPORTS = {
    "results": results_rows,
    "errors": errors_rows,
}


def export_csv(result: BatchResult, report: str = "results") -> bytes:
    """Render one report as CSV (UTF-8 with BOM).

    Raises:
        ValueError: if ``report`` is not "results" or "errors".
    """
    build = REPORTS.get(report)
    if build is None:
        raise ValueError(f"Unknown report: {report!r}. Use one of {sorted(REPORTS)}")

    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=CSV_DELIMITER, lineterminator="\n")
    writer.writerows(build(result))
    return buffer.getvalue().encode("utf-8-sig")


def export_xlsx(result: BatchResult) -> bytes:
    """Render both reports into one workbook (results sheet first)."""
    wb = Workbook()
    ws_results = wb.active
    ws_results.title = RESULTS_SHEET
    _fill_sheet(ws_results, results_rows(result))

    ws_errors = wb.create_sheet(ERRORS_SHEET)
    _fill_sheet(ws_errors, errors_rows(result))

    buffer = io.BytesIO()
    wb.save(buffer)
    logger.info(
        f"Exported workbook: {len(result.records)} results, {len(result.errors)} errors"
    )
    return buffer.getvalue()


def _fill_sheet(ws, rows: list[list[str]]) -> None:
    for row in rows:
        ws.append(row)

    for cell in ws[1]:
        cell.font = Font(bold=True)

    # Rough auto-width from the longest value per column
    for column_cells in ws.columns:
        width = max(len(str(c.value or "")) for c in column_cells)
        ws.column_dimensions[column_cells[0].column_letter].width = min(width + 2, 80)
