"""Spending aggregation and budget-health metrics.

All functions are total: every division has an explicit guard that returns a
defined value (``0`` or the unmodified input) instead of raising
``decimal.DivisionByZero``/``InvalidOperation``.

Category matching uses OR semantics: a transaction counts toward a category
when it is recorded there either as primary category or as sub-category.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .models import (
    HUNDRED,
    ZERO,
    Bucket,
    BudgetPeriod,
    CategoryAllocation,
    Transaction,
    total_planned,
)


@dataclass(frozen=True, slots=True)
class BudgetPeriodTotals:
    """Income, plan and spending for one period, with derived ratios."""

    total_income: Decimal
    total_planned: Decimal
    total_spent: Decimal
    total_remaining: Decimal

    @property
    def planned_percentage(self) -> Decimal:
        if self.total_income <= 0:
            return ZERO
        return self.total_planned / self.total_income * HUNDRED

    @property
    def spent_percentage(self) -> Decimal:
        if self.total_income <= 0:
            return ZERO
        return self.total_spent / self.total_income * HUNDRED

    @property
    def execution_percentage(self) -> Decimal:
        if self.total_planned <= 0:
            return ZERO
        return self.total_spent / self.total_planned * HUNDRED

    @property
    def is_over_allocated(self) -> bool:
        return self.total_planned > self.total_income

    @property
    def is_over_budget(self) -> bool:
        return self.total_spent > self.total_planned


# ---------------------------------------------------------------------------
# Spending
# ---------------------------------------------------------------------------


def spending_for(key: Bucket | str, transactions: Iterable[Transaction]) -> Decimal:
    """Sum of ``total`` for transactions in a bucket or a category.

    ``key`` is either a :class:`Bucket` or a category id. Category ids match
    ``category_id`` or ``sub_category_id``.
    """

    if isinstance(key, Bucket):
        return sum((t.total for t in transactions if t.bucket == key), ZERO)
    return sum(
        (t.total for t in transactions if t.category_id == key or t.sub_category_id == key),
        ZERO,
    )


def total_spent(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.total for t in transactions), ZERO)


def remaining(planned: Decimal, spent: Decimal) -> Decimal:
    """``planned - spent``; negative when overspent."""

    return planned - spent


def remaining_for_allocation(allocation: CategoryAllocation, spent: Decimal) -> Decimal:
    return allocation.total_available - spent


# ---------------------------------------------------------------------------
# Carry-over
# ---------------------------------------------------------------------------


def carry_over(
    category_id: str,
    previous_allocation: CategoryAllocation | None,
    previous_transactions: Sequence[Transaction],
) -> Decimal:
    """Unspent amount rolling into the next period, floored at zero.

    Overspending forfeits the rollover; it never reduces the next period.
    """

    if previous_allocation is None:
        return ZERO
    spent = spending_for(category_id, previous_transactions)
    return max(ZERO, remaining_for_allocation(previous_allocation, spent))


def all_carry_overs(
    allocations: Iterable[CategoryAllocation],
    previous_transactions: Sequence[Transaction],
) -> dict[str, Decimal]:
    """Positive carry-overs keyed by category id.

    Allocations without a category and categories with nothing to carry are
    absent from the result (not present with a zero value).
    """

    carry_overs: dict[str, Decimal] = {}
    for allocation in allocations:
        if allocation.category_id is None:
            continue
        amount = carry_over(allocation.category_id, allocation, previous_transactions)
        if amount > 0:
            carry_overs[allocation.category_id] = amount
    return carry_overs


# ---------------------------------------------------------------------------
# Totals and health
# ---------------------------------------------------------------------------


def period_totals(
    period: BudgetPeriod,
    allocations: Iterable[CategoryAllocation],
    transactions: Iterable[Transaction],
) -> BudgetPeriodTotals:
    planned = total_planned(allocations)
    spent = total_spent(transactions)
    return BudgetPeriodTotals(
        total_income=period.total_income,
        total_planned=planned,
        total_spent=spent,
        total_remaining=remaining(planned, spent),
    )


def utilization(planned: Decimal, spent: Decimal) -> Decimal:
    """Percent of ``planned`` already spent; 0 when nothing was planned."""

    if planned <= 0:
        return ZERO
    return spent / planned * HUNDRED


def is_over_budget(allocation: CategoryAllocation, spent: Decimal) -> bool:
    return spent > allocation.total_available


def over_budget_amount(allocation: CategoryAllocation, spent: Decimal) -> Decimal:
    left = remaining_for_allocation(allocation, spent)
    return abs(left) if left < 0 else ZERO


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def project_end_of_period(current_spent: Decimal, period: BudgetPeriod, as_of: date) -> Decimal:
    """Linear projection of spending to the end of ``period``.

    Returns ``current_spent`` unchanged when the period has no length or no
    day has elapsed yet (``as_of`` on or before ``start_date``).
    """

    total_days = period.duration_in_days
    if total_days <= 0:
        return current_spent

    days_elapsed = (min(as_of, period.end_date) - period.start_date).days
    if days_elapsed <= 0:
        return current_spent

    daily_rate = current_spent / Decimal(days_elapsed)
    return daily_rate * Decimal(total_days)


def daily_spending_limit(
    allocation: CategoryAllocation,
    spent: Decimal,
    period: BudgetPeriod,
    as_of: date,
) -> Decimal:
    """What can be spent per remaining day without exceeding the allocation."""

    left = remaining_for_allocation(allocation, spent)
    if left <= 0:
        return ZERO

    days_remaining = (period.end_date - min(as_of, period.end_date)).days
    if days_remaining <= 0:
        return left
    return left / Decimal(days_remaining)
