"""Batch address cleaning.

Runs every row of a batch through the normalizer and the validator and
assembles the per-record results, the error list and summary statistics.

Each record is independent and side-effect free, so the async variant may
process records concurrently; ids are still assigned by input position and
results are returned in id order.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from addrclean.address_models import (
    AddressRecord,
    BatchResult,
    BatchSummary,
    ErrorRecord,
    RecordStatus,
    Severity,
    ValidationOutcome,
)
from addrclean.address_normalizer import AddressNormalizer
from addrclean.address_validator import AddressValidator


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def classify_status(outcome: ValidationOutcome) -> RecordStatus:
    """Derive the record status from a validation outcome."""
    if outcome.valid:
        return RecordStatus.SUCCESS
    if outcome.severity == Severity.HIGH:
        return RecordStatus.ERROR
    return RecordStatus.WARNING


def _is_empty(raw: Any) -> bool:
    return raw is None or not str(raw).strip()


@dataclass(slots=True)
class _BatchItem:
    id: int
    address: str


class BatchProcessor:
    """Orchestrates normalization and validation over a batch of rows."""

    def __init__(
        self,
        normalizer: AddressNormalizer | None = None,
        validator: AddressValidator | None = None,
    ):
        self.normalizer = normalizer or AddressNormalizer()
        self.validator = validator or AddressValidator(self.normalizer.street_markers)

    def process_one(self, record_id: int, original: str) -> tuple[AddressRecord, ErrorRecord | None]:
        """Normalize and validate a single row.

        Returns:
            Tuple of (record, error record or None when valid).
        """
        normalized = self.normalizer.normalize(original)
        outcome = self.validator.validate(normalized)
        record = AddressRecord(
            id=record_id,
            original=original,
            normalized=normalized,
            status=classify_status(outcome),
        )
        if outcome.valid:
            return record, None

        return record, ErrorRecord(
            id=record_id,
            address=original,
            message=outcome.message,
            severity=outcome.severity,
        )

    def process_batch(
        self,
        raw_addresses: Iterable[str | None],
        progress_callback: ProgressCallback | None = None,
    ) -> BatchResult:
        """Process a batch of raw address strings in input order.

        Empty rows are dropped and do not consume an id.

        Args:
            raw_addresses: Ordered raw address cells.
            progress_callback: Optional callback(completed, total) invoked
                after each record.

        Returns:
            BatchResult with records, errors and summary.
        """
        items = self._build_items(raw_addresses)
        logger.info(f"Processing batch of {len(items)} addresses")
        start_time = time.time()

        records: list[AddressRecord] = []
        errors: list[ErrorRecord] = []
        for completed, item in enumerate(items, start=1):
            record, error = self.process_one(item.id, item.address)
            records.append(record)
            if error:
                errors.append(error)
            if progress_callback:
                progress_callback(completed, len(items))

        return self._finish(records, errors, start_time)

    async def process_batch_async(
        self,
        raw_addresses: Iterable[str | None],
        concurrency: int = 10,
        progress_callback: ProgressCallback | None = None,
    ) -> BatchResult:
        """Process a batch concurrently, preserving id order in the output.

        Args:
            raw_addresses: Ordered raw address cells.
            concurrency: Maximum records processed at the same time.
            progress_callback: Optional callback(completed, total) invoked
                as each record finishes.

        Returns:
            BatchResult identical to ``process_batch`` on the same input.
        """
        items = self._build_items(raw_addresses)
        logger.info(f"Processing batch of {len(items)} addresses")
        semaphore = asyncio.Semaphore(max(1, concurrency))
        start_time = time.time()
        completed = 0

        async def process_item(item: _BatchItem):
            async with semaphore:
                return await asyncio.to_thread(self.process_one, item.id, item.address)

        results: list[tuple[AddressRecord, ErrorRecord | None]] = []
        for coro in asyncio.as_completed([process_item(item) for item in items]):
            results.append(await coro)
            completed += 1
            if progress_callback:
                progress_callback(completed, len(items))

        results.sort(key=lambda pair: pair[0].id)
        records = [record for record, _ in results]
        errors = [error for _, error in results if error]
        return self._finish(records, errors, start_time)

    def process_records(
        self,
        rows: Iterable[dict[str, Any]],
        address_field: str = "address",
        progress_callback: ProgressCallback | None = None,
    ) -> BatchResult:
        """Process dict rows, reading the address from one field.

        Rows missing the field are treated as empty and skipped.
        """
        return self.process_batch(
            (row.get(address_field) for row in rows),
            progress_callback=progress_callback,
        )

    @staticmethod
    def _build_items(raw_addresses: Iterable[str | None]) -> list[_BatchItem]:
        items: list[_BatchItem] = []
        skipped = 0
        for raw in raw_addresses:
            if _is_empty(raw):
                skipped += 1
                continue
            items.append(_BatchItem(id=len(items) + 1, address=str(raw)))

        if skipped:
            logger.debug(f"Skipped {skipped} empty rows")
        return items

    @staticmethod
    def _finish(
        records: list[AddressRecord],
        errors: list[ErrorRecord],
        start_time: float,
    ) -> BatchResult:
        summary = BatchSummary.from_results(records, errors)
        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Batch processed: {summary.total} addresses, "
            f"{summary.normalized_count} normalized, {summary.error_count} errors "
            f"in {elapsed_ms}ms"
        )
        return BatchResult(records=records, errors=errors, summary=summary)
