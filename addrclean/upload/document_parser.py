"""
Address File Parser Service
===========================
Parses uploaded CSV, Excel and JSON files into rows and extracts the
address column for batch cleaning. The header row is never part of the
returned data.
"""

import asyncio
import csv
import io
import json
import re
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Optional
import logging

from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)


# Column names tried, in order, when no address column is given
ADDRESS_COLUMN_CANDIDATES = (
    "address",
    "адрес",
    "full_address",
    "полный_адрес",
    "addr",
    "address1",
)

_EMPTY_VALUES = ("null", "none", "n/a", "na", "")

# Failures that mean "this file cannot be ingested" rather than a bug
INGESTION_ERRORS = (
    UnicodeDecodeError,
    csv.Error,
    json.JSONDecodeError,
    InvalidFileException,
    zipfile.BadZipFile,
    OSError,
)


@dataclass
class ParsedRecord:
    """A single parsed row from any file type"""
    row_number: int
    data: dict
    raw_text: Optional[str] = None


def _clean_key(key: Any) -> str:
    """Normalize column names"""
    if not key:
        return "unknown"
    return re.sub(r"\s+", "_", str(key).strip().lower())


def _clean_value(value: Any) -> Any:
    """Clean and normalize cell values"""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value.lower() in _EMPTY_VALUES:
            return None
    return value


class BaseParser(ABC):
    """Abstract base for all file parsers"""

    async def parse(self, file_path: Path) -> list[ParsedRecord]:
        """Parse file and return list of records"""
        return [record async for record in self.stream_parse(file_path)]

    @abstractmethod
    def stream_parse(self, file_path: Path) -> AsyncIterator[ParsedRecord]:
        """Stream parse for large files"""


class CSVParser(BaseParser):
    """
    CSV Parser with delimiter auto-detection.
    Tries UTF-8 (with or without BOM) first, then cp1251, the usual
    encoding of spreadsheet exports on Russian-locale machines.
    """

    ENCODINGS = ("utf-8-sig", "cp1251")

    def __init__(self, delimiter: str = None, encoding: str = None):
        self.delimiter = delimiter
        self.encoding = encoding

    async def stream_parse(self, file_path: Path) -> AsyncIterator[ParsedRecord]:
        import aiofiles

        async with aiofiles.open(file_path, "rb") as f:
            raw = await f.read()

        content = self._decode(raw)
        delimiter = self.delimiter or self._detect_delimiter(content[:1024])
        reader = csv.DictReader(io.StringIO(content), delimiter=delimiter)

        for row_num, row in enumerate(reader, start=1):
            cleaned = {
                _clean_key(k): _clean_value(v)
                for k, v in row.items()
                if k is not None
            }
            yield ParsedRecord(
                row_number=row_num,
                data=cleaned,
                raw_text=delimiter.join(str(v) for v in row.values() if v is not None),
            )

    def _decode(self, raw: bytes) -> str:
        encodings = (self.encoding,) if self.encoding else self.ENCODINGS
        for i, encoding in enumerate(encodings):
            try:
                return raw.decode(encoding)
            except UnicodeDecodeError:
                if i == len(encodings) - 1:
                    raise
                logger.debug(f"CSV is not {encoding}, trying next encoding")
        return ""

    def _detect_delimiter(self, sample: str) -> str:
        """
        Auto-detect CSV delimiter from the header row.
        Addresses contain commas, so data rows are not counted.
        """
        delimiters = [",", ";", "\t", "|"]
        header = sample.splitlines()[0] if sample else ""
        counts = {d: header.count(d) for d in delimiters}
        best = max(counts, key=counts.get)
        if counts[best]:
            return best

        # Single column: pick a delimiter the data does not use
        return min(delimiters, key=sample.count)


class ExcelParser(BaseParser):
    """
    Excel Parser for .xlsx workbooks (openpyxl, read-only mode).
    First row is the header.
    """

    def __init__(self, sheet_name: str = None):
        self.sheet_name = sheet_name

    async def stream_parse(self, file_path: Path) -> AsyncIterator[ParsedRecord]:
        import openpyxl

        # Run in thread pool for blocking I/O
        wb = await asyncio.to_thread(
            openpyxl.load_workbook, file_path, read_only=True, data_only=True
        )

        try:
            if self.sheet_name and self.sheet_name in wb.sheetnames:
                ws = wb[self.sheet_name]
            else:
                ws = wb.active

            rows = list(ws.iter_rows(values_only=True))
            if not rows:
                return

            headers = [_clean_key(h) if h else f"col_{i}" for i, h in enumerate(rows[0])]

            for row_num, row in enumerate(rows[1:], start=1):
                data = {
                    header: _clean_value(value)
                    for header, value in zip(headers, row)
                }
                yield ParsedRecord(row_number=row_num, data=data, raw_text=str(row))
        finally:
            wb.close()


class JSONParser(BaseParser):
    """
    JSON Parser for arrays (of strings or objects) and JSONL.
    A bare string item is treated as an address.
    """

    async def stream_parse(self, file_path: Path) -> AsyncIterator[ParsedRecord]:
        import aiofiles

        async with aiofiles.open(file_path, "r", encoding="utf-8-sig") as f:
            content = (await f.read()).strip()

        if not content:
            return

        if content.startswith("["):
            items = json.loads(content)
        else:
            items = [json.loads(line) for line in content.splitlines() if line.strip()]

        for row_num, item in enumerate(items, start=1):
            yield ParsedRecord(
                row_number=row_num,
                data=self._to_row(item),
                raw_text=json.dumps(item, ensure_ascii=False),
            )

    @staticmethod
    def _to_row(item: Any) -> dict:
        if isinstance(item, dict):
            return {_clean_key(k): _clean_value(v) for k, v in item.items()}
        return {"address": None if item is None else _clean_value(str(item))}


def detect_address_column(headers: list[str], preferred: str | None = None) -> str | None:
    """Pick the column holding addresses.

    Args:
        headers: Cleaned column names in file order.
        preferred: Explicit column name; used when present in the headers.

    Returns:
        Column name, the first column as fallback, or None without headers.
    """
    if not headers:
        return None
    if preferred:
        preferred = _clean_key(preferred)
        if preferred in headers:
            return preferred
        logger.warning(f"Address column {preferred!r} not found in {headers}")

    for candidate in ADDRESS_COLUMN_CANDIDATES:
        if candidate in headers:
            return candidate
    return headers[0]


class DocumentParserService:
    """
    Main service for reading address files.
    Routes to the appropriate parser based on file type.
    """

    def __init__(self):
        self.parsers: dict[str, BaseParser] = {
            "csv": CSVParser(),
            "xlsx": ExcelParser(),
            "json": JSONParser(),
            "jsonl": JSONParser(),
        }

    @property
    def supported_types(self) -> list[str]:
        return sorted(self.parsers)

    def get_parser(self, file_type: str) -> BaseParser:
        """Get appropriate parser for file type"""
        parser = self.parsers.get(file_type.lower().lstrip("."))
        if not parser:
            raise ValueError(f"No parser available for file type: {file_type}")
        return parser

    async def extract_addresses(
        self,
        file_path: Path,
        file_type: str,
        address_column: str | None = None,
    ) -> list[Optional[str]]:
        """
        Parse a file and return its address cells in row order.
        Empty cells are returned as None; the batch processor skips them.
        """
        records = await self.get_parser(file_type).parse(Path(file_path))
        if not records:
            return []

        column = detect_address_column(list(records[0].data), address_column)
        addresses = []
        for record in records:
            value = record.data.get(column)
            addresses.append(None if value is None else str(value))

        logger.info(f"Extracted {len(addresses)} rows from {file_path} (column {column!r})")
        return addresses

    async def load_addresses(
        self,
        file_path: Path,
        file_type: str,
        address_column: str | None = None,
    ) -> list[Optional[str]]:
        """
        Like extract_addresses, but an unreadable or malformed file yields
        an empty list instead of an exception.

        Raises:
            ValueError: if the file type is not supported.
        """
        self.get_parser(file_type)

        try:
            return await self.extract_addresses(file_path, file_type, address_column)
        except INGESTION_ERRORS as e:
            logger.warning(f"Could not ingest {file_path}: {e}", exc_info=True)
            return []
