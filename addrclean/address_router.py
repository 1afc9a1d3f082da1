"""FastAPI router for address cleaning endpoints.

This module provides the REST API for single-address normalization,
batch processing, file upload, report export and dictionary inspection.
"""

import logging
import tempfile
import uuid
from pathlib import Path
from typing import Any, Literal

import aiofiles
from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from addrclean.address_models import BatchResult
from addrclean.batch_processor import BatchProcessor, classify_status
from addrclean.upload.document_parser import DocumentParserService
from addrclean.upload.report_exporter import export_csv, export_xlsx


logger = logging.getLogger(__name__)

# Router instance - configured with the processor in main.py
router = APIRouter(prefix="/api/address", tags=["Address Cleaning"])

# Global references (set during app startup)
_processor: BatchProcessor | None = None
_parser: DocumentParserService | None = None
_concurrency: int = 10
_max_batch_size: int = 10000
_address_column: str | None = None

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def configure_router(
    processor: BatchProcessor,
    parser: DocumentParserService | None = None,
    concurrency: int = 10,
    max_batch_size: int = 10000,
    address_column: str | None = None,
) -> None:
    """Configure the router with its service dependencies.

    Args:
        processor: Batch processor wrapping normalizer and validator.
        parser: File parser service for uploads.
        concurrency: Default concurrency for batch requests.
        max_batch_size: Maximum rows accepted per batch or upload.
        address_column: Forced upload column (None = auto-detect).
    """
    global _processor, _parser, _concurrency, _max_batch_size, _address_column
    _processor = processor
    _parser = parser or DocumentParserService()
    _concurrency = concurrency
    _max_batch_size = max_batch_size
    _address_column = address_column or None
    logger.info(
        f"Address router configured (concurrency={concurrency}, max_batch_size={max_batch_size})"
    )


def _require_processor() -> BatchProcessor:
    if not _processor:
        raise HTTPException(status_code=503, detail="Address processor not initialized")
    return _processor


# ============================================================================
# Request/Response Models
# ============================================================================


class NormalizeRequest(BaseModel):
    """Request model for single address normalization."""

    address: str = Field(
        ...,
        max_length=1000,
        description="Raw address string",
        examples=["СПб, Невский пр-т", "г. Москва, ул. Тверская д. 10"],
    )


class NormalizeResponse(BaseModel):
    """Response model for single address normalization."""

    original: str
    normalized: str
    status: str
    validation: dict[str, Any]


class BatchRequest(BaseModel):
    """Request model for batch cleaning."""

    addresses: list[str | None] = Field(
        ...,
        description="Raw address cells in input order; empty cells are skipped",
    )
    concurrency: int | None = Field(
        default=None,
        ge=1,
        le=50,
        description="Maximum records processed at the same time",
    )


class BatchResponse(BaseModel):
    """Response model for batch cleaning."""

    records: list[dict[str, Any]]
    errors: list[dict[str, Any]]
    summary: dict[str, Any]


async def _run_batch(addresses: list[str | None], concurrency: int | None) -> BatchResult:
    processor = _require_processor()
    if len(addresses) > _max_batch_size:
        raise HTTPException(
            status_code=413,
            detail=f"Batch too large: {len(addresses)} rows (max {_max_batch_size})",
        )

    return await processor.process_batch_async(
        addresses,
        concurrency=concurrency or _concurrency,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/normalize", response_model=NormalizeResponse)
async def normalize_address(request: NormalizeRequest) -> NormalizeResponse:
    """Normalize and validate one address.

    Returns:
        Canonical form, derived status and the validation outcome.
    """
    processor = _require_processor()

    normalized = processor.normalizer.normalize(request.address)
    outcome = processor.validator.validate(normalized)

    return NormalizeResponse(
        original=request.address,
        normalized=normalized,
        status=classify_status(outcome).value,
        validation=outcome.to_dict(),
    )


@router.post("/batch", response_model=BatchResponse)
async def process_batch(request: BatchRequest) -> BatchResponse:
    """Clean a batch of addresses.

    Returns records in input order, errors for invalid rows and the
    batch summary.
    """
    result = await _run_batch(request.addresses, request.concurrency)
    return BatchResponse(**result.to_dict())


@router.post("/upload", response_model=BatchResponse)
async def upload_addresses(
    file: UploadFile = File(...),
    address_column: str | None = Form(None),
) -> BatchResponse:
    """Clean the addresses of an uploaded CSV, Excel or JSON file.

    An unreadable file yields an empty batch; an unsupported extension
    is rejected with 400.
    """
    _require_processor()

    suffix = Path(file.filename or "").suffix
    try:
        _parser.get_parser(suffix)
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail=f"{e}. Supported: {', '.join(_parser.supported_types)}",
        )

    tmp_path = Path(tempfile.gettempdir()) / f"addrclean_{uuid.uuid4().hex}{suffix}"

    try:
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(await file.read())

        addresses = await _parser.load_addresses(
            tmp_path,
            suffix,
            address_column=address_column or _address_column,
        )
    finally:
        tmp_path.unlink(missing_ok=True)

    logger.info(f"Upload {file.filename}: {len(addresses)} rows")
    result = await _run_batch(addresses, None)
    return BatchResponse(**result.to_dict())


@router.post("/export")
async def export_report(
    request: BatchRequest,
    format: Literal["csv", "xlsx"] = Query("xlsx", description="File format"),
    report: Literal["results", "errors"] = Query(
        "results", description="Report for CSV export (xlsx contains both)"
    ),
) -> Response:
    """Clean a batch and download the report file."""
    result = await _run_batch(request.addresses, request.concurrency)
    if format == "xlsx":
        content = export_xlsx(result)
        return Response(
            content=content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": 'attachment; filename="addresses.xlsx"'},
        )

    content = export_csv(result, report=report)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="addresses_{report}.csv"'},
    )


@router.get("/dictionary")
async def get_dictionary() -> dict[str, Any]:
    """Return the city and street-type rewrite lists in application order."""
    processor = _require_processor()
    return processor.normalizer.store.to_dict()


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Check address cleaning service health."""
    return {
        "status": "healthy" if _processor else "not_initialized",
        "processor": _processor is not None,
        "fuzzy_matching": bool(_processor and _processor.normalizer.fuzzy_matcher),
        "supported_types": _parser.supported_types if _parser else [],
    }
