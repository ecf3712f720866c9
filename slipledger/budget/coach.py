"""Rule-based monthly money coaching.

Looks at one month's totals and jar progress and returns up to four short
Thai recommendations, ordered by how pressing they are: overspending on
luxuries first, then jar shortfalls, then a low saving rate.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from slipledger.utils.logger import get_logger

from .jars import JarKey, round_currency

logger = get_logger(__name__)

Priority = Literal["high", "medium", "low"]

FALLBACK_CONFIDENCE = 0.62
MAX_RECOMMENDATIONS = 4
MAX_SNAPSHOT_ITEMS = 8
LUXURY_RATIO_LIMIT = 0.25
SAVING_RATE_TARGET = 0.2
DEFAULT_MONTH = "เดือนนี้"


@dataclass(frozen=True)
class JarSnapshot:
    """Target and actual amount put into one jar during the month."""

    key: str
    label: str
    target: float
    actual: float

    @property
    def gap(self) -> float:
        return max(0.0, self.target - self.actual)


@dataclass(frozen=True)
class CategorySnapshot:
    category: str
    amount: float
    count: int


@dataclass(frozen=True)
class MonthSummary:
    """Totals for the month being coached."""

    month: str
    total_income: float
    total_expense: float
    total_luxury: float
    saving_rate: float
    net_saving: float
    jars: tuple[JarSnapshot, ...] = ()
    top_categories: tuple[CategorySnapshot, ...] = ()


@dataclass(frozen=True)
class CoachRecommendation:
    title: str
    action: str
    priority: Priority
    jar_key: JarKey
    category_hint: str
    note_hint: str


@dataclass(frozen=True)
class CoachResult:
    """Summary line and recommendations for one month."""

    summary: str
    recommendations: list[CoachRecommendation] = field(default_factory=list)
    confidence: float = FALLBACK_CONFIDENCE
    source: str = "fallback"


def format_baht(value: float) -> str:
    """Group thousands and keep satang only when there are any."""
    text = f"{round_currency(value):,.2f}"
    return text[:-3] if text.endswith(".00") else text


def normalize_summary(
    month: str,
    total_income: float,
    total_expense: float,
    total_luxury: float,
    saving_rate: float,
    net_saving: float,
    jars: Sequence[JarSnapshot] = (),
    top_categories: Sequence[CategorySnapshot] = (),
) -> MonthSummary:
    """Build a :class:`MonthSummary` with a default month, clamped rate, and capped lists."""
    rate = saving_rate if math.isfinite(saving_rate) else 0.0
    return MonthSummary(
        month=month.strip() or DEFAULT_MONTH,
        total_income=total_income,
        total_expense=total_expense,
        total_luxury=total_luxury,
        saving_rate=min(1.0, max(0.0, rate)),
        net_saving=net_saving,
        jars=tuple(jars[:MAX_SNAPSHOT_ITEMS]),
        top_categories=tuple(
            CategorySnapshot(item.category, item.amount, max(0, item.count))
            for item in top_categories[:MAX_SNAPSHOT_ITEMS]
        ),
    )


def _find_jar(jars: Sequence[JarSnapshot], key: str) -> JarSnapshot | None:
    return next((jar for jar in jars if jar.key == key), None)


def coach_month(summary: MonthSummary) -> CoachResult:
    """Recommend what to change next month.

    Args:
        summary: Month totals, usually built with :func:`normalize_summary`.

    Returns:
        At most four recommendations. A month with nothing to fix still
        gets one low-priority "keep it up" recommendation.
    """
    recommendations: list[CoachRecommendation] = []

    luxury_ratio = (
        summary.total_luxury / summary.total_expense if summary.total_expense > 0 else 0.0
    )
    if luxury_ratio > LUXURY_RATIO_LIMIT:
        percent = math.floor(luxury_ratio * 100 + 0.5)
        recommendations.append(
            CoachRecommendation(
                title="ลดรายจ่ายฟุ่มเฟือย",
                action=f"สัดส่วนฟุ่มเฟือย {percent}% สูงเกินไป ลองตั้งเพดานไม่เกิน 15% ของรายจ่าย",
                priority="high",
                jar_key="expense",
                category_hint="Luxury (ฟุ่มเฟือย)",
                note_hint="ลดรายจ่ายฟุ่มเฟือยให้ไม่เกิน 15%",
            )
        )

    debt = _find_jar(summary.jars, "debt")
    if debt and debt.actual < debt.target:
        recommendations.append(
            CoachRecommendation(
                title="เร่งปิดหนี้ตามแผน",
                action=(
                    f"เดือนนี้ Debt ต่ำกว่าเป้า ฿{format_baht(debt.gap)} "
                    "เพิ่มรายการจ่ายหนี้ให้ถึงเป้า 20%"
                ),
                priority="high",
                jar_key="debt",
                category_hint="Debt (หนี้)",
                note_hint="เพิ่มการชำระหนี้ให้ถึงเป้าเดือนนี้",
            )
        )

    saving = _find_jar(summary.jars, "saving")
    if saving and saving.actual < saving.target:
        recommendations.append(
            CoachRecommendation(
                title="เติมกระปุกเงินออม",
                action=(
                    f"Saving ต่ำกว่าเป้า ฿{format_baht(saving.gap)} "
                    "ให้ตัดเงินเข้าออมทันทีหลังรายรับเข้า"
                ),
                priority="medium",
                jar_key="saving",
                category_hint="Saving (ออม)",
                note_hint="เติมกระปุกเงินออมรายเดือน",
            )
        )

    investment = _find_jar(summary.jars, "investment")
    if investment and investment.actual < investment.target:
        recommendations.append(
            CoachRecommendation(
                title="วินัยการลงทุนรายเดือน",
                action=(
                    f"Investment ยังขาด ฿{format_baht(investment.gap)} "
                    "ลองตั้ง Auto DCA รายสัปดาห์"
                ),
                priority="medium",
                jar_key="investment",
                category_hint="Investment (ลงทุน)",
                note_hint="ลงทุนแบบ DCA รายสัปดาห์",
            )
        )

    if summary.saving_rate < SAVING_RATE_TARGET:
        recommendations.append(
            CoachRecommendation(
                title="เพิ่มอัตราการออม",
                action=f"อัตราการออมปัจจุบัน {summary.saving_rate * 100:.1f}% ควรดันให้เกิน 20%",
                priority="high",
                jar_key="saving",
                category_hint="Saving (ออม)",
                note_hint="เพิ่มอัตราการออมให้เกิน 20%",
            )
        )

    if not recommendations:
        recommendations.append(
            CoachRecommendation(
                title="รักษาวินัยการเงินต่อเนื่อง",
                action=(
                    "ภาพรวมดีแล้ว ให้ติดตาม 4 กระปุกรายสัปดาห์"
                    "และทบทวนหมวดใช้จ่ายหลักทุกสิ้นเดือน"
                ),
                priority="low",
                jar_key="expense",
                category_hint="Other (อื่นๆ)",
                note_hint="รีวิวแผนการเงินประจำสัปดาห์",
            )
        )

    logger.debug("Coached %s with %d recommendations", summary.month, len(recommendations))
    return CoachResult(
        summary=(
            f"เดือน {summary.month} ภาพรวมสุทธิ ฿{format_baht(summary.net_saving)} "
            f"และอัตราการออม {summary.saving_rate * 100:.1f}%"
        ),
        recommendations=recommendations[:MAX_RECOMMENDATIONS],
    )
