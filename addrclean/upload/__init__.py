"""
Address File Upload & Export
============================
Reading address files into raw rows and rendering batch results as
downloadable reports.
"""

from .document_parser import (
    DocumentParserService,
    ParsedRecord,
    CSVParser,
    ExcelParser,
    JSONParser,
    detect_address_column,
)

from .report_exporter import (
    STATUS_LABELS,
    SEVERITY_LABELS,
    export_csv,
    export_xlsx,
    results_rows,
    errors_rows,
)

__all__ = [
    # Parser
    "DocumentParserService",
    "ParsedRecord",
    "CSVParser",
    "ExcelParser",
    "JSONParser",
    "detect_address_column",

    # Exporter
    "STATUS_LABELS",
    "SEVERITY_LABELS",
    "export_csv",
    "export_xlsx",
    "results_rows",
    "errors_rows",
]
