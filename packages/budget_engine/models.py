"""Entity records for ``budget_engine``.

These are the plain, immutable records the caller's persistence layer hands to
the engine. They are frozen ``dataclass`` instances: the engine never mutates
them and returns copies (``dataclasses.replace``) whenever a reference field
such as ``budget_period_id`` changes.

Monetary values are :class:`~decimal.Decimal` throughout; dates are
:class:`~datetime.date` (calendar days, no time zone).
"""

from __future__ import annotations

from typing import TypeAlias

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum

ZERO = Decimal(0)
HUNDRED = Decimal(100)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Bucket(StrEnum):
    """Top-level spending classification, independent of category."""

    NEEDS = "needs"
    WANTS = "wants"
    SAVINGS = "savings"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Methodology(StrEnum):
    """Budgeting methodology recorded on a period."""

    ZERO_BASED = "zeroBased"
    ENVELOPE = "envelope"
    PERCENTAGE = "percentage"

    @property
    def display_name(self) -> str:
        return {
            Methodology.ZERO_BASED: "Zero-Based",
            Methodology.ENVELOPE: "Envelope",
            Methodology.PERCENTAGE: "Percentage",
        }[self]


# ---------------------------------------------------------------------------
# Core records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single spending record.

    ``sub_total`` is expected to be non-negative but that is the caller's
    concern (see :mod:`budget_engine.validation`). ``tax`` is optional and
    counts as zero when absent.
    """

    id: str
    date: date
    sub_total: Decimal
    merchant: str
    bucket: Bucket
    tax: Decimal | None = None
    description: str | None = None
    category_id: str | None = None
    sub_category_id: str | None = None
    budget_period_id: str | None = None

    @property
    def total(self) -> Decimal:
        return self.sub_total + (self.tax if self.tax is not None else ZERO)


@dataclass(frozen=True, slots=True)
class IncomeSource:
    id: str
    source_name: str
    amount: Decimal
    budget_period_id: str | None = None


@dataclass(frozen=True, slots=True)
class BudgetPeriod:
    """A date-bounded budgeting window with its own income sources.

    The interval is closed on both ends: a transaction dated exactly on
    ``start_date`` or ``end_date`` belongs to the period. ``end_date >
    start_date`` is a caller invariant and is not enforced here.
    """

    id: str
    methodology: Methodology
    start_date: date
    end_date: date
    income_sources: tuple[IncomeSource, ...] = ()

    @property
    def total_income(self) -> Decimal:
        return total_income(self.income_sources)

    @property
    def duration_in_days(self) -> int:
        return (self.end_date - self.start_date).days

    @property
    def date_range(self) -> tuple[date, date]:
        return (self.start_date, self.end_date)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def is_active(self, today: date) -> bool:
        return self.contains(today)


@dataclass(frozen=True, slots=True)
class CategoryAllocation:
    id: str
    planned_amount: Decimal
    carry_over_amount: Decimal = ZERO
    budget_period_id: str | None = None
    category_id: str | None = None

    @property
    def total_available(self) -> Decimal:
        return self.planned_amount + self.carry_over_amount

    @property
    def has_carry_over(self) -> bool:
        return self.carry_over_amount > 0


@dataclass(frozen=True, slots=True)
class UserSettings:
    """Target bucket percentages (intended, not required, to sum to 100)."""

    needs_percentage: Decimal = Decimal(50)
    wants_percentage: Decimal = Decimal(30)
    savings_percentage: Decimal = Decimal(20)

    @classmethod
    def default(cls) -> UserSettings:
        return cls()

    @property
    def total_percentage(self) -> Decimal:
        return self.needs_percentage + self.wants_percentage + self.savings_percentage

    @property
    def has_valid_percentages(self) -> bool:
        return self.total_percentage == HUNDRED

    @property
    def has_non_negative_percentages(self) -> bool:
        return (
            self.needs_percentage >= 0
            and self.wants_percentage >= 0
            and self.savings_percentage >= 0
        )

    def percentage_for(self, bucket: Bucket) -> Decimal:
        match bucket:
            case Bucket.NEEDS:
                return self.needs_percentage
            case Bucket.WANTS:
                return self.wants_percentage
            case Bucket.SAVINGS:
                return self.savings_percentage

    def amount_for(self, bucket: Bucket, total_income: Decimal) -> Decimal:
        return total_income * self.percentage_for(bucket) / HUNDRED

    def bucket_amounts(self, total_income: Decimal) -> dict[Bucket, Decimal]:
        return {b: self.amount_for(b, total_income) for b in Bucket}


Transactions: TypeAlias = Sequence[Transaction]
"""An ordered collection of transactions (order matters for tie-breaks)."""

BudgetPeriods: TypeAlias = Sequence[BudgetPeriod]
"""An ordered collection of periods; the first containing period wins."""


# ---------------------------------------------------------------------------
# Collection helpers
# ---------------------------------------------------------------------------


def total_income(sources: Iterable[IncomeSource]) -> Decimal:
    return sum((s.amount for s in sources), ZERO)


def sorted_by_name(sources: Iterable[IncomeSource]) -> list[IncomeSource]:
    return sorted(sources, key=lambda s: s.source_name)


def sorted_by_date(periods: Iterable[BudgetPeriod]) -> list[BudgetPeriod]:
    """Newest period first (descending ``start_date``)."""

    return sorted(periods, key=lambda p: p.start_date, reverse=True)


def period_containing(periods: Iterable[BudgetPeriod], day: date) -> BudgetPeriod | None:
    return next((p for p in periods if p.contains(day)), None)


def total_planned(allocations: Iterable[CategoryAllocation]) -> Decimal:
    return sum((a.planned_amount for a in allocations), ZERO)


def total_carry_over(allocations: Iterable[CategoryAllocation]) -> Decimal:
    return sum((a.carry_over_amount for a in allocations), ZERO)


def total_available(allocations: Iterable[CategoryAllocation]) -> Decimal:
    return sum((a.total_available for a in allocations), ZERO)


def with_carry_over(allocations: Iterable[CategoryAllocation]) -> list[CategoryAllocation]:
    return [a for a in allocations if a.has_carry_over]


def sorted_by_amount(allocations: Iterable[CategoryAllocation]) -> list[CategoryAllocation]:
    """Largest planned amount first."""

    return sorted(allocations, key=lambda a: a.planned_amount, reverse=True)
