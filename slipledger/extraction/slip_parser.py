"""Heuristic parser for OCR text recognized from bank transfer slips.

Turns noisy Thai/English slip text into a structured result holding the
transfer amount, the transaction date, a short note, and the inferred
transaction direction. Everything here is pure: no I/O, no shared state,
and no exceptions for malformed input. Every extractor degrades to
``None`` (or the placeholder note) when its cues are missing.
"""

import math
import re
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Literal

from slipledger.utils.logger import get_logger

logger = get_logger(__name__)

TransactionType = Literal["income", "expense"]

PLACEHOLDER_NOTE = "OCR จากสลิป"
NOTE_MAX_LENGTH = 180
MAX_AMOUNT = Decimal("1000000000")
MIN_YEAR = 2000
MAX_YEAR = 2100
BUDDHIST_ERA_OFFSET = 543

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class SlipLines:
    """Normalized, line-split view of one slip's OCR text."""

    lines: tuple[str, ...]
    confidence: float | None

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class SlipParseResult:
    """Structured fields extracted from a single slip."""

    raw_text: str
    confidence: float | None
    amount: float | None
    date: str | None
    note: str
    inferred_type: TransactionType | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# --- Lookup tables -----------------------------------------------------------

_MONTHS: MappingProxyType[str, int] = MappingProxyType(
    {
        "ม.ค.": 1,
        "ก.พ.": 2,
        "มี.ค.": 3,
        "เม.ย.": 4,
        "พ.ค.": 5,
        "มิ.ย.": 6,
        "ก.ค.": 7,
        "ส.ค.": 8,
        "ก.ย.": 9,
        "ต.ค.": 10,
        "พ.ย.": 11,
        "ธ.ค.": 12,
        "มกราคม": 1,
        "กุมภาพันธ์": 2,
        "มีนาคม": 3,
        "เมษายน": 4,
        "พฤษภาคม": 5,
        "มิถุนายน": 6,
        "กรกฎาคม": 7,
        "สิงหาคม": 8,
        "กันยายน": 9,
        "ตุลาคม": 10,
        "พฤศจิกายน": 11,
        "ธันวาคม": 12,
        "jan": 1,
        "feb": 2,
        "mar": 3,
        "apr": 4,
        "may": 5,
        "jun": 6,
        "jul": 7,
        "aug": 8,
        "sep": 9,
        "oct": 10,
        "nov": 11,
        "dec": 12,
        "january": 1,
        "february": 2,
        "march": 3,
        "april": 4,
        "june": 6,
        "july": 7,
        "august": 8,
        "september": 9,
        "sept": 9,
        "october": 10,
        "november": 11,
        "december": 12,
    }
)

AMOUNT_LABELS: tuple[str, ...] = (
    "จำนวนเงิน",
    "จำนวน",
    "ยอดเงิน",
    "ยอดชำระ",
    "ยอดโอน",
    "amount",
    "total",
)
FEE_LABELS: frozenset[str] = frozenset({"ค่าธรรมเนียม", "ค่าบริการ", "fee"})
BALANCE_LABELS: frozenset[str] = frozenset({"คงเหลือ", "balance"})
DATE_LABELS: frozenset[str] = frozenset({"วันที่", "วันทำรายการ", "date"})
NOTE_LABELS: tuple[str, ...] = (
    "บันทึกช่วยจำ",
    "หมายเหตุ",
    "บันทึก",
    "ข้อความ",
    "memo",
    "note",
)

INCOME_HINTS: frozenset[str] = frozenset(
    {
        "received",
        "receive transfer",
        "incoming",
        "credit",
        "deposit",
        "โอนเข้า",
        "รับโอน",
        "เงินเข้า",
        "ได้รับเงิน",
    }
)
EXPENSE_HINTS: frozenset[str] = frozenset(
    {
        "transfer to",
        "payment",
        "debit",
        "withdraw",
        "โอนเงิน",
        "จ่าย",
        "ชำระ",
        "ถอนเงิน",
        "เงินออก",
    }
)

# --- Patterns ----------------------------------------------------------------

_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\u200d\ufeff]")
_WHITESPACE_RE = re.compile(r"\s+")
_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")

_NUMBER = r"[0-9][0-9,]*(?:\.[0-9]{1,2})?"
_CURRENCY = r"(?:บาท|thb|baht|฿)"

_LABEL_VALUE_RE = re.compile(
    rf"^\s*[:\-=]?\s*(?:\(?{_CURRENCY}\)?)?\s*[:\-=]?\s*({_NUMBER})(?![0-9])"
)
_SEPARATORS_ONLY_RE = re.compile(r"^[\s:\-=]*$")
_NEXT_LINE_VALUE_RE = re.compile(rf"^(?:{_CURRENCY}\s*)?({_NUMBER})(?![0-9])")
_CURRENCY_AMOUNT_RE = re.compile(rf"(?<![0-9.,])({_NUMBER})\s*{_CURRENCY}")

_THAI = "\u0e00-\u0e7f"
_NAMED_DATE_RE = re.compile(
    rf"(?<![0-9.,:])([0-9]{{1,2}})\s*[\-/]?\s*"
    rf"([A-Za-z{_THAI}$@][A-Za-z{_THAI}$@.\-]*)"
    rf"\s*[\-/,]?\s*([0-9]{{2,4}})(?![0-9])"
)
_NUMERIC_DATE_RE = re.compile(
    r"(?<![0-9.,:])([0-9]{1,2})[/\-.]([0-9]{1,2})[/\-.]([0-9]{2,4})(?![0-9])"
)
_TIMESTAMP_LINE_RE = re.compile(r"^[0-9]{1,2}(?![0-9]).*(?:(?<![0-9])[0-9]{1,2}:[0-9]{2}|น\.)")
_MONTH_KEY_STRIP_RE = re.compile(r"[\s.\-]")
_FEE_WORD_RE = re.compile(rf"ค่า[{_THAI}]+")


def _compile_labels(labels: Iterable[str]) -> re.Pattern[str]:
    """Build one alternation over ``labels``, longest first.

    Latin labels must stand as whole words so that ``fee`` does not match
    inside ``coffee``; Thai is written without spaces, so Thai labels match
    anywhere in the line.
    """
    parts = []
    for label in sorted(labels, key=len, reverse=True):
        escaped = re.escape(label)
        parts.append(rf"\b{escaped}\b" if label.isascii() else escaped)
    return re.compile("|".join(parts))


_AMOUNT_LABEL_RE = _compile_labels(AMOUNT_LABELS)
_FEE_OR_BALANCE_RE = _compile_labels(FEE_LABELS | BALANCE_LABELS)
_DATE_LABEL_RE = _compile_labels(DATE_LABELS)
_NOTE_LABEL_RE = _compile_labels(NOTE_LABELS)

# Recognized-text confusables for "ธ.ค." once the dots are stripped.
_DECEMBER_GARBLE_RE = re.compile(r"ธ|[s$][a@n]")


def _month_key(token: str) -> str:
    return _MONTH_KEY_STRIP_RE.sub("", token).lower()


_MONTH_KEYS: MappingProxyType[str, int] = MappingProxyType(
    {_month_key(name): number for name, number in _MONTHS.items()}
)


# --- Normalization -----------------------------------------------------------


def normalize_line(line: str) -> str:
    """Clean one recognized line: pipes, zero-width marks, SARA AM, spacing."""
    line = line.replace("|", " ")
    line = _ZERO_WIDTH_RE.sub("", line)
    line = line.replace("\u0e4d\u0e32", "\u0e33")
    return _WHITESPACE_RE.sub(" ", line).strip()


def split_lines(raw_text: Any, confidence: Any = None) -> SlipLines:
    """Split raw OCR text into trimmed, non-empty lines in original order.

    Args:
        raw_text: Recognized text. Non-string input is treated as empty.
        confidence: Engine confidence, normalized with
            :func:`normalize_confidence`.

    Returns:
        Immutable line view shared by every extractor.
    """
    text = raw_text if isinstance(raw_text, str) else ""
    lines = tuple(
        cleaned for cleaned in map(normalize_line, _LINE_SPLIT_RE.split(text)) if cleaned
    )
    return SlipLines(lines=lines, confidence=normalize_confidence(confidence))


def normalize_confidence(value: Any) -> float | None:
    """Clamp a 0-100 confidence score and round it to two decimals."""
    if isinstance(value, bool) or not isinstance(value, int | float | Decimal):
        return None
    try:
        numeric = float(value)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(numeric):
        return None
    clamped = min(100.0, max(0.0, numeric))
    return float(Decimal(repr(clamped)).quantize(_CENT, rounding=ROUND_HALF_UP))


# --- Amount ------------------------------------------------------------------


def parse_amount_token(token: str) -> float | None:
    """Parse a numeric token like ``1,250.00`` into a positive amount.

    Returns:
        The amount rounded half-up to the cent, or ``None`` when the token
        is not a credible transaction amount.
    """
    try:
        value = Decimal(token.replace(",", ""))
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0 or value > MAX_AMOUNT:
        return None
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def _labelled_amount(lines: list[str]) -> float | None:
    for index, line in enumerate(lines):
        # Merged columns put the fee or balance after the amount on one line.
        cut = _FEE_OR_BALANCE_RE.search(line)
        segment = line if cut is None else line[: cut.start()]
        for label in _AMOUNT_LABEL_RE.finditer(segment):
            rest = segment[label.end() :]
            match = _LABEL_VALUE_RE.match(rest)
            if (
                match is None
                and cut is None
                and _SEPARATORS_ONLY_RE.match(rest)
                and index + 1 < len(lines)
            ):
                match = _NEXT_LINE_VALUE_RE.match(lines[index + 1])
            if match is None:
                continue
            amount = parse_amount_token(match.group(1))
            if amount is not None:
                return amount
    return None


def _currency_marked_amount(lines: list[str]) -> float | None:
    for line in lines:
        if _FEE_OR_BALANCE_RE.search(line):
            continue
        for match in _CURRENCY_AMOUNT_RE.finditer(line):
            amount = parse_amount_token(match.group(1))
            if amount is not None:
                return amount
    return None


def extract_amount(slip: SlipLines) -> float | None:
    """Find the transfer amount, preferring labelled values over bare ones.

    A labelled value is read only from the part of its line before any fee
    or balance label, bare currency-marked values never from a line that
    carries one, and an unlabelled number without a currency marker is
    never returned.
    """
    lowered = [line.lower() for line in slip.lines]
    amount = _labelled_amount(lowered)
    if amount is None:
        amount = _currency_marked_amount(lowered)
    return amount


# --- Date --------------------------------------------------------------------


def normalize_year(year: int) -> int:
    """Convert Buddhist-era and two-digit years to Gregorian years.

    Two-digit years above 40 are read as the tail of a Buddhist-era
    ``25xx`` year (``69`` means 2569 B.E., i.e. 2026); the rest are taken
    as ``20xx``.
    """
    if year > 2400:
        return year - BUDDHIST_ERA_OFFSET
    if year < 100:
        if year > 40:
            return 2500 + year - BUDDHIST_ERA_OFFSET
        return 2000 + year
    return year


def to_iso_date(day: int, month: int, year: int) -> str | None:
    """Build an ISO date string, or ``None`` if the parts are not a real date."""
    year = normalize_year(year)
    if not (MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12 and 1 <= day <= 31):
        return None
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def guess_garbled_month(token: str) -> int | None:
    """Last-resort month guess for badly misrecognized Thai abbreviations.

    Lossy by nature: the clusters below were picked from observed
    misreadings of ``ธ.ค.`` and ``ม.ค.`` and are not a general rule. The
    January cluster only applies to abbreviation-length tokens, since most
    full Thai month names end in ``คม``.
    """
    key = _month_key(token)
    if _DECEMBER_GARBLE_RE.search(key):
        return 12
    if "ม" in key and len(key) <= 3:
        return 1
    return None


def resolve_month(token: str) -> int | None:
    """Map a month token (Thai, English, numeric, or garbled) to 1-12."""
    key = _month_key(token)
    if not key:
        return None
    if key in _MONTH_KEYS:
        return _MONTH_KEYS[key]
    if key.isdigit() and len(key) <= 2:
        return int(key)

    hits = {
        month
        for name, month in _MONTH_KEYS.items()
        if key.startswith(name)
        or (len(key) >= 2 and name.startswith(key))
        or name in key
    }
    if len(hits) == 1:
        return hits.pop()

    return guess_garbled_month(token)


def _date_from_line(line: str) -> str | None:
    for match in _NAMED_DATE_RE.finditer(line):
        month = resolve_month(match.group(2))
        if month is None:
            continue
        iso = to_iso_date(int(match.group(1)), month, int(match.group(3)))
        if iso:
            return iso
    for match in _NUMERIC_DATE_RE.finditer(line):
        iso = to_iso_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if iso:
            return iso
    return None


def _is_date_anchor(line: str) -> bool:
    return bool(_DATE_LABEL_RE.search(line.lower())) or bool(_TIMESTAMP_LINE_RE.match(line))


def extract_date(slip: SlipLines) -> str | None:
    """Locate the transaction date, anchored on date cues when present."""
    lines = slip.lines
    for index, line in enumerate(lines):
        if not _is_date_anchor(line):
            continue
        iso = _date_from_line(line)
        if iso is None and index + 1 < len(lines):
            iso = _date_from_line(lines[index + 1])
        if iso:
            return iso

    for pattern in (_NAMED_DATE_RE, _NUMERIC_DATE_RE):
        for line in lines:
            if pattern.search(line) is None:
                continue
            iso = _date_from_line(line)
            if iso:
                return iso
    return None


# --- Note --------------------------------------------------------------------


def _labelled_note(lines: tuple[str, ...]) -> str | None:
    for index, line in enumerate(lines):
        label = _NOTE_LABEL_RE.search(line.lower())
        if label is None:
            continue
        rest = line[label.end() :].strip(" :-=")
        if rest:
            return rest
        if index + 1 < len(lines):
            return lines[index + 1]
    return None


def _fee_like_word(lines: tuple[str, ...]) -> str | None:
    for line in reversed(lines):
        for match in _FEE_WORD_RE.finditer(line):
            word = match.group(0)
            if not any(word.startswith(label) for label in FEE_LABELS):
                return word
    return None


def extract_note(
    slip: SlipLines,
    placeholder: str = PLACEHOLDER_NOTE,
    max_length: int = NOTE_MAX_LENGTH,
) -> str:
    """Pick a short human-readable note for the transaction."""
    note = _labelled_note(slip.lines) or _fee_like_word(slip.lines) or placeholder
    return note[:max_length]


# --- Transaction type --------------------------------------------------------


def infer_transaction_type(text: str) -> TransactionType | None:
    """Infer income vs. expense from hint words; ambiguity yields ``None``."""
    lowered = text.lower()
    has_income = any(hint in lowered for hint in INCOME_HINTS)
    has_expense = any(hint in lowered for hint in EXPENSE_HINTS)
    if has_income and not has_expense:
        return "income"
    if has_expense and not has_income:
        return "expense"
    return None


# --- Orchestration -----------------------------------------------------------


def parse_slip_text(
    raw_text: Any,
    confidence: Any = None,
    placeholder: str = PLACEHOLDER_NOTE,
    note_max_length: int = NOTE_MAX_LENGTH,
) -> SlipParseResult:
    """Parse recognized slip text into a :class:`SlipParseResult`.

    Args:
        raw_text: Text returned by the recognition engine.
        confidence: Optional engine confidence on a 0-100 scale.
        placeholder: Note used when no better note is found.
        note_max_length: Hard cap on the note length.

    Returns:
        Parsed result. Never raises for any text input.
    """
    slip = split_lines(raw_text, confidence)
    text = slip.text
    result = SlipParseResult(
        raw_text=text,
        confidence=slip.confidence,
        amount=extract_amount(slip),
        date=extract_date(slip),
        note=extract_note(slip, placeholder, note_max_length),
        inferred_type=infer_transaction_type(text),
    )
    logger.debug(
        "Parsed slip: %d lines, amount=%s, date=%s, type=%s",
        len(slip.lines),
        result.amount,
        result.date,
        result.inferred_type,
    )
    return result
