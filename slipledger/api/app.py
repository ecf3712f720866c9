"""FastAPI application for the slip ledger service.

Provides REST endpoints for slip text parsing, slip image scanning,
note categorization, jar allocation, monthly coaching, and health
checks.
"""

import shutil
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from functools import lru_cache
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from slipledger import __version__
from slipledger.budget.categories import get_ai_allowed_categories, get_categories_by_type
from slipledger.budget.coach import CategorySnapshot, JarSnapshot, coach_month, normalize_summary
from slipledger.budget.jars import get_jar_allocations, rules_from_percents
from slipledger.budget.note_classifier import classify_note, normalize_categories
from slipledger.errors import ImageLoadError
from slipledger.extraction.slip_parser import parse_slip_text
from slipledger.ocr.slip_processor import SlipProcessor
from slipledger.utils.config import AppConfig, load_config
from slipledger.utils.logger import get_logger

from .schemas import (
    CategoriesResponse,
    CoachRequest,
    CoachResponse,
    HealthResponse,
    JarAllocationItem,
    JarAllocationRequest,
    JarAllocationResponse,
    NoteClassificationRequest,
    NoteClassificationResponse,
    QualityMetricsResponse,
    SlipParseRequest,
    SlipParseResponse,
    SlipScanResponse,
    TransactionType,
)

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def _get_config() -> AppConfig:
    return load_config()


@lru_cache(maxsize=1)
def _get_processor() -> SlipProcessor:
    """Return the process-wide slip processor and its shared OCR runner."""
    return SlipProcessor(_get_config())


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    if _get_processor.cache_info().currsize:
        _get_processor().close()
        _get_processor.cache_clear()


app = FastAPI(
    title="Slip Ledger API",
    description="Parse Thai/English bank transfer slips and budget the money they move",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/tiff",
    "application/octet-stream",
}


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which("tesseract") is not None,
    )


@app.post("/slips/parse", response_model=SlipParseResponse)
async def parse_slip(request: SlipParseRequest) -> SlipParseResponse:
    """Parse already-recognized slip text."""
    parser_config = _get_config().parser
    parsed = parse_slip_text(
        request.text,
        request.confidence,
        placeholder=parser_config.placeholder_note,
        note_max_length=parser_config.note_max_length,
    )
    return SlipParseResponse(**parsed.to_dict())


@app.post("/slips/scan", response_model=SlipScanResponse)
async def scan_slip(file: Annotated[UploadFile, File(...)]) -> SlipScanResponse:
    """Recognize and parse an uploaded slip image.

    Args:
        file: Uploaded slip photo (PNG, JPEG, WebP, or TIFF).

    Returns:
        Parsed slip fields with preprocessing quality metrics.
    """
    start_time = time.time()

    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    filename = file.filename or "slip"
    try:
        content = await file.read()
        processor = _get_processor()
        scan = await run_in_threadpool(processor.scan, content, filename)
    except ImageLoadError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("Slip scan failed for %s: %s", filename, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return SlipScanResponse(
        success=True,
        scan_id=str(uuid.uuid4()),
        filename=filename,
        result=SlipParseResponse(**scan.parse_result.to_dict()),
        quality_metrics=QualityMetricsResponse(**asdict(scan.quality_metrics)),
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@app.post("/notes/classify", response_model=NoteClassificationResponse)
async def classify(request: NoteClassificationRequest) -> NoteClassificationResponse:
    """Suggest a category for a transaction note."""
    categories = normalize_categories(request.categories)
    try:
        result = classify_note(request.note, request.type.value, categories)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return NoteClassificationResponse(**asdict(result))


@app.post("/jars/allocate", response_model=JarAllocationResponse)
async def allocate_jars(request: JarAllocationRequest) -> JarAllocationResponse:
    """Split an income amount across the configured jars."""
    rules = rules_from_percents(_get_config().budget.jar_percents)
    allocations = get_jar_allocations(request.income, rules)
    return JarAllocationResponse(
        income=round(sum(a.amount for a in allocations), 2),
        allocations=[JarAllocationItem(**asdict(a)) for a in allocations],
    )


@app.get("/categories/{tx_type}", response_model=CategoriesResponse)
async def list_categories(tx_type: TransactionType, ai_only: bool = False) -> CategoriesResponse:
    """List the categories for a transaction type."""
    categories = (
        get_ai_allowed_categories(tx_type.value)
        if ai_only
        else get_categories_by_type(tx_type.value)
    )
    return CategoriesResponse(type=tx_type, categories=categories)


@app.post("/coach", response_model=CoachResponse)
async def coach(request: CoachRequest) -> CoachResponse:
    """Recommend budgeting changes from one month's totals."""
    summary = normalize_summary(
        month=request.month,
        total_income=request.total_income,
        total_expense=request.total_expense,
        total_luxury=request.total_luxury,
        saving_rate=request.saving_rate,
        net_saving=request.net_saving,
        jars=[JarSnapshot(**jar.model_dump()) for jar in request.jars],
        top_categories=[CategorySnapshot(**item.model_dump()) for item in request.top_categories],
    )
    return CoachResponse(**asdict(coach_month(summary)))
