"""Envelope budgeting: split incoming money into jars.

Each jar receives a fixed share of an income amount. Shares are rounded
to the cent and the last jar absorbs the rounding remainder, so the
allocations always add back up to the rounded income.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

JarKey = Literal["expense", "saving", "investment", "debt"]

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class JarRule:
    """Static definition of one jar."""

    key: str
    label: str
    label_th: str
    percent: float


@dataclass(frozen=True)
class JarAllocation:
    """Amount assigned to a jar for one income."""

    key: str
    label: str
    label_th: str
    percent: float
    amount: float


JAR_RULES: tuple[JarRule, ...] = (
    JarRule("expense", "Expense", "ค่าใช้จ่ายประจำวัน", 0.4),
    JarRule("saving", "Saving", "เงินออม", 0.2),
    JarRule("investment", "Investment", "เงินลงทุน", 0.2),
    JarRule("debt", "Debt", "ชำระหนี้", 0.2),
)

_JAR_KEYWORDS: tuple[tuple[JarKey, tuple[str, ...]], ...] = (
    ("saving", ("saving", "ออม")),
    ("investment", ("investment", "ลงทุน")),
    ("debt", ("debt", "หนี้")),
)


def round_currency(value: float | Decimal) -> Decimal:
    """Round half-up to the cent."""
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def rules_from_percents(percents: Mapping[str, float]) -> tuple[JarRule, ...]:
    """Rebuild the jar rules with configured percentages.

    Jars keep their labels and order; keys missing from ``percents`` are
    dropped.

    Raises:
        ValueError: If ``percents`` names a jar that does not exist.
    """
    known = {rule.key for rule in JAR_RULES}
    unknown = set(percents) - known
    if unknown:
        raise ValueError(f"Unknown jars: {', '.join(sorted(unknown))}")
    return tuple(
        JarRule(rule.key, rule.label, rule.label_th, percents[rule.key])
        for rule in JAR_RULES
        if rule.key in percents
    )


def get_jar_allocations(
    income: float, rules: Sequence[JarRule] = JAR_RULES
) -> list[JarAllocation]:
    """Split ``income`` across jars.

    Args:
        income: Incoming amount. Non-finite or negative values count as 0.
        rules: Jar definitions, in allocation order.

    Returns:
        One allocation per rule; the last one holds the remainder.
    """
    safe_income = income if math.isfinite(income) and income > 0 else 0.0
    total = round_currency(safe_income)
    remainder = total

    allocations = []
    for index, rule in enumerate(rules):
        if index == len(rules) - 1:
            amount = remainder
        else:
            amount = round_currency(Decimal(str(safe_income)) * Decimal(str(rule.percent)))
        remainder -= amount
        allocations.append(
            JarAllocation(rule.key, rule.label, rule.label_th, rule.percent, float(amount))
        )
    return allocations


def infer_jar_from_category(category: str) -> JarKey | None:
    """Map a category name to the saving/investment/debt jar it feeds."""
    normalized = category.lower().strip()
    for key, keywords in _JAR_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return key
    return None
