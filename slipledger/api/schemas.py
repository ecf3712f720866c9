"""Pydantic request/response schemas for the FastAPI endpoints."""

from enum import StrEnum

from pydantic import BaseModel, Field


class TransactionType(StrEnum):
    """Direction of a transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class SlipParseRequest(BaseModel):
    """Recognized slip text submitted for parsing."""

    text: str
    confidence: float | None = None


class SlipParseResponse(BaseModel):
    """Structured fields parsed from slip text."""

    raw_text: str
    confidence: float | None
    amount: float | None
    date: str | None
    note: str
    inferred_type: TransactionType | None


class QualityMetricsResponse(BaseModel):
    """Image quality before and after preprocessing."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


class SlipScanResponse(BaseModel):
    """Response schema for an uploaded slip image."""

    success: bool
    scan_id: str
    filename: str
    result: SlipParseResponse
    quality_metrics: QualityMetricsResponse
    processing_time_ms: float


class NoteClassificationRequest(BaseModel):
    """Note to categorize with its transaction type and allowed categories."""

    note: str
    type: TransactionType = TransactionType.EXPENSE
    categories: list[str] = Field(default_factory=list)


class NoteClassificationResponse(BaseModel):
    """Suggested category for a note."""

    category: str
    confidence: float
    reason: str
    source: str


class JarAllocationRequest(BaseModel):
    """Income amount to split across jars."""

    income: float


class JarAllocationItem(BaseModel):
    """Amount assigned to one jar."""

    key: str
    label: str
    label_th: str
    percent: float
    amount: float


class JarAllocationResponse(BaseModel):
    """Jar split for one income amount."""

    income: float
    allocations: list[JarAllocationItem]


class CategoriesResponse(BaseModel):
    """Categories available for a transaction type."""

    type: TransactionType
    categories: list[str]


class JarSnapshotItem(BaseModel):
    """Target and actual amount for one jar."""

    key: str
    label: str = ""
    target: float = 0.0
    actual: float = 0.0


class CategorySnapshotItem(BaseModel):
    """Spending on one category."""

    category: str
    amount: float = 0.0
    count: int = 0


class CoachRequest(BaseModel):
    """One month's totals to coach on."""

    month: str = ""
    total_income: float = 0.0
    total_expense: float = 0.0
    total_luxury: float = 0.0
    saving_rate: float = 0.0
    net_saving: float = 0.0
    jars: list[JarSnapshotItem] = Field(default_factory=list)
    top_categories: list[CategorySnapshotItem] = Field(default_factory=list)


class CoachRecommendationItem(BaseModel):
    """One suggested change for next month."""

    title: str
    action: str
    priority: str
    jar_key: str
    category_hint: str
    note_hint: str


class CoachResponse(BaseModel):
    """Month summary with coaching recommendations."""

    summary: str
    recommendations: list[CoachRecommendationItem]
    confidence: float
    source: str


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
