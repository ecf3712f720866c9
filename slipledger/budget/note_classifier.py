"""Rule-based category suggestion for free-text transaction notes.

Keyword rules are checked in order; the first rule whose keyword appears
in the note and whose category hint matches one of the caller's allowed
categories wins. Without a hit the generic "Other" category is chosen.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from slipledger.utils.logger import get_logger

from .categories import TransactionKind

logger = get_logger(__name__)

MAX_CATEGORIES = 30
RULE_CONFIDENCE = 0.66
DEFAULT_CONFIDENCE = 0.45


@dataclass(frozen=True)
class KeywordRule:
    keywords: tuple[str, ...]
    category_hints: tuple[str, ...]
    reason: str


@dataclass(frozen=True)
class NoteClassification:
    """Suggested category for a note."""

    category: str
    confidence: float
    reason: str
    source: str = "fallback"


INCOME_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        ("salary", "เงินเดือน", "payroll"),
        ("salary", "เงินเดือน"),
        "พบคำที่สื่อว่าเป็นรายได้จากเงินเดือน",
    ),
    KeywordRule(("bonus", "โบนัส"), ("bonus", "โบนัส"), "พบคำว่าโบนัส"),
    KeywordRule(
        ("freelance", "ฟรีแลนซ์", "commission", "คอมมิชชั่น"),
        ("freelance", "ฟรีแลนซ์"),
        "พบคำที่สื่อถึงงานพิเศษ/ฟรีแลนซ์",
    ),
)

EXPENSE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("อาหาร", "ข้าว", "food", "meal", "กิน"), ("food", "อาหาร"), "พบคำเกี่ยวกับอาหาร"),
    KeywordRule(
        ("เดินทาง", "รถ", "น้ำมัน", "transport", "bts", "mrt"),
        ("transport", "เดินทาง"),
        "พบคำเกี่ยวกับการเดินทาง",
    ),
    KeywordRule(("ออม", "saving", "ฝาก"), ("saving", "ออม"), "พบคำเกี่ยวกับการออม"),
    KeywordRule(
        ("ลงทุน", "investment", "หุ้น", "กองทุน", "crypto"),
        ("investment", "ลงทุน"),
        "พบคำเกี่ยวกับการลงทุน",
    ),
    KeywordRule(
        ("หนี้", "debt", "ค่างวด", "loan", "ผ่อน"), ("debt", "หนี้"), "พบคำเกี่ยวกับการชำระหนี้"
    ),
    KeywordRule(
        ("บริจาค", "donation", "ทำบุญ"), ("donation", "บริจาค"), "พบคำเกี่ยวกับการบริจาค/ทำบุญ"
    ),
    KeywordRule(("หมอ", "ยา", "health", "hospital"), ("health", "สุขภาพ"), "พบคำเกี่ยวกับสุขภาพ"),
    KeywordRule(
        ("บิล", "ค่าไฟ", "ค่าน้ำ", "bill", "internet", "โทรศัพท์"),
        ("bill", "บิล", "สาธารณูปโภค"),
        "พบคำเกี่ยวกับบิล/สาธารณูปโภค",
    ),
    KeywordRule(("ช้อป", "shopping", "ซื้อของ"), ("shopping", "ช้อป"), "พบคำเกี่ยวกับการช้อปปิ้ง"),
    KeywordRule(
        ("หนัง", "เกม", "entertainment", "บันเทิง"),
        ("entertainment", "บันเทิง"),
        "พบคำเกี่ยวกับความบันเทิง",
    ),
)

_DEFAULT_REASON = "ไม่พบคำสำคัญชัดเจน จึงเลือกหมวดทั่วไป"
_OTHER_HINTS = ("other", "อื่น")


def normalize_categories(items: Iterable[object] | None) -> list[str]:
    """Trim and drop blanks, cap the list, then dedupe keeping order."""
    if items is None:
        return []
    texts = [text for text in (str(item or "").strip() for item in items) if text]
    return list(dict.fromkeys(texts[:MAX_CATEGORIES]))


def pick_category_by_contains(categories: list[str], hints: Iterable[str]) -> str | None:
    """Return the first category whose lowercased name contains a hint."""
    lowered = [(category, category.lower()) for category in categories]
    for hint in hints:
        for raw, low in lowered:
            if hint in low:
                return raw
    return None


def classify_note(
    note: str, tx_type: TransactionKind, categories: list[str]
) -> NoteClassification:
    """Suggest one of ``categories`` for a transaction note.

    Args:
        note: Free-text note written by the user or taken from a slip.
        tx_type: ``"income"`` or ``"expense"``; selects the rule set.
        categories: Allowed categories to choose from.

    Returns:
        The suggested category with a confidence and a Thai reason string.

    Raises:
        ValueError: If the note is blank or no category is allowed.
    """
    note = note.strip()
    if not note:
        raise ValueError("Note is required")
    if not categories:
        raise ValueError("Categories are required")

    lowered = note.lower()
    rules = INCOME_RULES if tx_type == "income" else EXPENSE_RULES
    for rule in rules:
        if not any(keyword in lowered for keyword in rule.keywords):
            continue
        picked = pick_category_by_contains(categories, rule.category_hints)
        if picked:
            logger.debug("Note matched rule for %s", picked)
            return NoteClassification(picked, RULE_CONFIDENCE, rule.reason)

    other = pick_category_by_contains(categories, _OTHER_HINTS) or categories[0]
    return NoteClassification(other, DEFAULT_CONFIDENCE, _DEFAULT_REASON)
