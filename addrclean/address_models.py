"""Address cleaning data models and enums.

This module defines the core data structures shared by the normalization
pipeline: dictionary entries, per-record results, error records, validation
outcomes and batch summaries.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RecordStatus(str, Enum):
    """Per-record outcome label derived from validation."""

    SUCCESS = "success"     # Passed every validation rule
    WARNING = "warning"     # Failed a medium/low severity rule
    ERROR = "error"         # Failed a high severity rule


class Severity(str, Enum):
    """Ordinal defect importance (high > medium > low)."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(slots=True, frozen=True)
class DictionaryEntry:
    """Single synonym rewrite: every whole-word ``key`` becomes ``canonical``."""

    key: str
    canonical: str


@dataclass(slots=True, frozen=True)
class ValidationOutcome:
    """Result of running the validation rule chain on a canonical address.

    Attributes:
        valid: True if every rule passed.
        message: Message of the first failing rule (empty when valid).
        severity: Severity of the first failing rule (LOW when valid).
        rule: Name of the failing rule, None when valid.
    """

    valid: bool
    message: str = ""
    severity: Severity = Severity.LOW
    rule: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "message": self.message,
            "severity": self.severity.value,
            "rule": self.rule,
        }


@dataclass(slots=True, frozen=True)
class AddressRecord:
    """One processed input row.

    Attributes:
        id: 1-based sequence number within the batch.
        original: Raw address as received.
        normalized: Canonical form produced by the normalizer.
        status: Outcome derived from validation.
    """

    id: int
    original: str
    normalized: str
    status: RecordStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "original": self.original,
            "normalized": self.normalized,
            "status": self.status.value,
        }


@dataclass(slots=True, frozen=True)
class ErrorRecord:
    """Defect found in one input row.

    Attributes:
        id: Id of the originating AddressRecord.
        address: Original (not normalized) address string.
        message: Validation message.
        severity: Severity of the failing rule.
    """

    id: int
    address: str
    message: str
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "address": self.address,
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass(slots=True, frozen=True)
class BatchSummary:
    """Aggregate statistics for one batch run.

    Always built with ``from_results`` so that it can never drift from the
    record and error collections.

    Attributes:
        total: Number of processed (non-empty) rows.
        normalized_count: Rows in status success.
        error_count: Number of error records.
        success_rate: Percentage of successful rows, None for an empty batch.
    """

    total: int = 0
    normalized_count: int = 0
    error_count: int = 0
    success_rate: int | None = None

    @classmethod
    def from_results(
        cls,
        records: list[AddressRecord],
        errors: list[ErrorRecord],
    ) -> "BatchSummary":
        total = len(records)
        normalized = sum(1 for r in records if r.status == RecordStatus.SUCCESS)
        rate = round(normalized / total * 100) if total > 0 else None
        return cls(
            total=total,
            normalized_count=normalized,
            error_count=len(errors),
            success_rate=rate,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "normalized_count": self.normalized_count,
            "error_count": self.error_count,
            "success_rate": self.success_rate,
        }


@dataclass(slots=True)
class BatchResult:
    """Everything a batch run hands to the export layer."""

    records: list[AddressRecord] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "errors": [e.to_dict() for e in self.errors],
            "summary": self.summary.to_dict(),
        }
