"""Percentage-of-income accounting against bucket targets (e.g. 50/30/20).

Comparisons use a fixed tolerance band of :data:`ACCEPTABLE_VARIANCE`
percentage points. Settings validation, in contrast, is strict: the three
targets must sum to exactly 100.
"""

from __future__ import annotations

from typing import TypeAlias

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from .models import HUNDRED, ZERO, Bucket, Transaction, UserSettings

ACCEPTABLE_VARIANCE: Decimal = Decimal(5)


# ---------------------------------------------------------------------------
# Comparison result (tagged union)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OnTrack:
    difference: Decimal


@dataclass(frozen=True, slots=True)
class UnderTarget:
    difference: Decimal


@dataclass(frozen=True, slots=True)
class OverTarget:
    difference: Decimal


PercentageComparison: TypeAlias = OnTrack | UnderTarget | OverTarget
"""``difference`` is always ``actual% - target%`` (negative when under)."""


def is_acceptable(comparison: PercentageComparison) -> bool:
    match comparison:
        case OnTrack():
            return True
        case UnderTarget() | OverTarget():
            return False


def absolute_difference(comparison: PercentageComparison) -> Decimal:
    match comparison:
        case OnTrack(difference=d) | UnderTarget(difference=d) | OverTarget(difference=d):
            return abs(d)


def describe(comparison: PercentageComparison) -> str:
    match comparison:
        case OnTrack(difference=d):
            sign = "+" if d > 0 else ""
            return f"on track ({sign}{_fmt(d)}%)"
        case UnderTarget(difference=d):
            return f"under target by {_fmt(abs(d))}%"
        case OverTarget(difference=d):
            return f"over target by {_fmt(abs(d))}%"


def _fmt(value: Decimal) -> str:
    # Drop trailing zeros without switching to exponent notation.
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


# ---------------------------------------------------------------------------
# Spending and percentages
# ---------------------------------------------------------------------------


def bucket_spending(bucket: Bucket, transactions: Sequence[Transaction]) -> Decimal:
    return sum((t.total for t in transactions if t.bucket == bucket), ZERO)


def all_bucket_spending(transactions: Sequence[Transaction]) -> dict[Bucket, Decimal]:
    """Spending per bucket; every bucket is present, absent ones at 0."""

    spending: dict[Bucket, Decimal] = {b: ZERO for b in Bucket}
    for t in transactions:
        spending[t.bucket] += t.total
    return spending


def safe_percentage(amount: Decimal, total_income: Decimal) -> Decimal:
    if total_income <= 0:
        return ZERO
    return amount / total_income * HUNDRED


def actual_percentage(
    bucket: Bucket, transactions: Sequence[Transaction], total_income: Decimal
) -> Decimal:
    if total_income <= 0:
        return ZERO
    return safe_percentage(bucket_spending(bucket, transactions), total_income)


def all_actual_percentages(
    transactions: Sequence[Transaction], total_income: Decimal
) -> dict[Bucket, Decimal]:
    if total_income <= 0:
        return {b: ZERO for b in Bucket}
    spending = all_bucket_spending(transactions)
    return {b: safe_percentage(spending[b], total_income) for b in Bucket}


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


def compare_to_target(actual: Decimal, target: Decimal) -> PercentageComparison:
    diff = actual - target
    if abs(diff) <= ACCEPTABLE_VARIANCE:
        return OnTrack(diff)
    if diff < 0:
        return UnderTarget(diff)
    return OverTarget(diff)


def compare_all_to_targets(
    transactions: Sequence[Transaction],
    total_income: Decimal,
    settings: UserSettings,
) -> dict[Bucket, PercentageComparison]:
    actuals = all_actual_percentages(transactions, total_income)
    return {b: compare_to_target(actuals[b], settings.percentage_for(b)) for b in Bucket}


def validate_allocation(needs: Decimal, wants: Decimal, savings: Decimal) -> bool:
    """True iff all three are non-negative and sum to exactly 100."""

    if needs < 0 or wants < 0 or savings < 0:
        return False
    return needs + wants + savings == HUNDRED


def validate_settings_allocation(settings: UserSettings) -> bool:
    return validate_allocation(
        settings.needs_percentage, settings.wants_percentage, settings.savings_percentage
    )


def target_amount(bucket: Bucket, total_income: Decimal, settings: UserSettings) -> Decimal:
    return total_income * settings.percentage_for(bucket) / HUNDRED


def all_target_amounts(total_income: Decimal, settings: UserSettings) -> dict[Bucket, Decimal]:
    return {b: target_amount(b, total_income, settings) for b in Bucket}


def variance(
    bucket: Bucket,
    transactions: Sequence[Transaction],
    total_income: Decimal,
    settings: UserSettings,
) -> Decimal:
    """Actual minus target spending; positive means overspent."""

    return bucket_spending(bucket, transactions) - target_amount(bucket, total_income, settings)


def all_variances(
    transactions: Sequence[Transaction],
    total_income: Decimal,
    settings: UserSettings,
) -> dict[Bucket, Decimal]:
    return {b: variance(b, transactions, total_income, settings) for b in Bucket}


def remaining_budget(
    bucket: Bucket,
    transactions: Sequence[Transaction],
    total_income: Decimal,
    settings: UserSettings,
) -> Decimal:
    return target_amount(bucket, total_income, settings) - bucket_spending(bucket, transactions)
