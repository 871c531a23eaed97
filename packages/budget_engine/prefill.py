"""Drafting a new budget period from a previous one.

Drafts are transient, uncommitted records. Each carries an optional
back-reference (``original_id``/``original_allocation_id``) to the record it
was copied from so a form can pre-fill from it; drafts are never persisted
as-is. Carry-over is computed with :func:`budget_engine.allocation.carry_over`
and is therefore never negative.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from . import allocation as alloc
from .logging_setup import get_logger
from .models import (
    HUNDRED,
    ZERO,
    BudgetPeriod,
    CategoryAllocation,
    Methodology,
    Transaction,
)

_logger = get_logger("budget_engine.prefill")


@dataclass(frozen=True, slots=True)
class IncomeSourceDraft:
    source_name: str
    amount: Decimal
    original_id: str | None = None


@dataclass(frozen=True, slots=True)
class CategoryAllocationDraft:
    category_id: str
    planned_amount: Decimal
    carry_over_amount: Decimal = ZERO
    original_allocation_id: str | None = None

    @property
    def total_available(self) -> Decimal:
        return self.planned_amount + self.carry_over_amount


@dataclass(frozen=True, slots=True)
class BudgetPeriodDraft:
    methodology: Methodology
    start_date: date
    end_date: date
    income_sources: tuple[IncomeSourceDraft, ...] = ()
    allocations: tuple[CategoryAllocationDraft, ...] = ()


@dataclass(frozen=True, slots=True)
class DraftValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BudgetDraftSummary:
    total_income: Decimal
    total_planned: Decimal
    total_carry_over: Decimal
    total_available: Decimal
    allocated_percentage: Decimal
    remaining_to_allocate: Decimal

    @property
    def is_fully_allocated(self) -> bool:
        return self.remaining_to_allocate == 0

    @property
    def is_over_allocated(self) -> bool:
        return self.remaining_to_allocate < 0


# ---------------------------------------------------------------------------
# Full prefill
# ---------------------------------------------------------------------------


def prefill(
    previous_period: BudgetPeriod,
    previous_allocations: Sequence[CategoryAllocation],
    previous_transactions: Sequence[Transaction],
    start_date: date,
    end_date: date,
    methodology: Methodology | None = None,
) -> BudgetPeriodDraft:
    """Build a draft for a new period from ``previous_period``.

    Income sources are copied 1:1, allocations are copied with carry-over, and
    the methodology defaults to the previous period's.
    """

    draft = BudgetPeriodDraft(
        methodology=methodology if methodology is not None else previous_period.methodology,
        start_date=start_date,
        end_date=end_date,
        income_sources=tuple(copy_incomes(previous_period)),
        allocations=tuple(copy_allocations(previous_allocations, previous_transactions)),
    )
    _logger.debug(
        "prefill:draft from_period=%s incomes=%d allocations=%d skipped=%d",
        previous_period.id,
        len(draft.income_sources),
        len(draft.allocations),
        len(previous_allocations) - len(draft.allocations),
    )
    return draft


# ---------------------------------------------------------------------------
# Incomes
# ---------------------------------------------------------------------------


def copy_incomes(period: BudgetPeriod) -> list[IncomeSourceDraft]:
    return [
        IncomeSourceDraft(source_name=s.source_name, amount=s.amount, original_id=s.id)
        for s in period.income_sources
    ]


def copy_incomes_with_adjustment(period: BudgetPeriod, factor: Decimal) -> list[IncomeSourceDraft]:
    """Copy incomes with ``amount * factor`` (``Decimal("1.1")`` for +10%)."""

    return [
        IncomeSourceDraft(source_name=s.source_name, amount=s.amount * factor, original_id=s.id)
        for s in period.income_sources
    ]


# ---------------------------------------------------------------------------
# Allocations
# ---------------------------------------------------------------------------


def _draft_from(
    allocation: CategoryAllocation,
    category_id: str,
    *,
    transactions: Sequence[Transaction] | None,
    factor: Decimal | None = None,
) -> CategoryAllocationDraft:
    # ``transactions=None`` means no carry-over.
    carry = (
        alloc.carry_over(category_id, allocation, transactions)
        if transactions is not None
        else ZERO
    )
    planned = allocation.planned_amount * factor if factor is not None else allocation.planned_amount
    return CategoryAllocationDraft(
        category_id=category_id,
        planned_amount=planned,
        carry_over_amount=carry,
        original_allocation_id=allocation.id,
    )


def copy_allocations(
    allocations: Iterable[CategoryAllocation], transactions: Sequence[Transaction]
) -> list[CategoryAllocationDraft]:
    """Copy allocations with carry-over; allocations without a category are skipped."""

    return [
        _draft_from(a, a.category_id, transactions=transactions)
        for a in allocations
        if a.category_id is not None
    ]


def copy_allocations_without_carry_over(
    allocations: Iterable[CategoryAllocation],
) -> list[CategoryAllocationDraft]:
    return [
        _draft_from(a, a.category_id, transactions=None)
        for a in allocations
        if a.category_id is not None
    ]


def copy_allocations_with_adjustment(
    allocations: Iterable[CategoryAllocation],
    transactions: Sequence[Transaction],
    factor: Decimal,
    include_carry_over: bool = True,
) -> list[CategoryAllocationDraft]:
    """Copy allocations with ``planned_amount * factor``.

    Carry-over is computed from the unscaled previous allocation and only when
    ``include_carry_over`` is true.
    """

    source = transactions if include_carry_over else None
    return [
        _draft_from(a, a.category_id, transactions=source, factor=factor)
        for a in allocations
        if a.category_id is not None
    ]


def copy_selective_allocations(
    allocations: Iterable[CategoryAllocation],
    category_ids: Collection[str],
    transactions: Sequence[Transaction],
) -> list[CategoryAllocationDraft]:
    selected = [
        a for a in allocations if a.category_id is not None and a.category_id in category_ids
    ]
    return copy_allocations(selected, transactions)


# ---------------------------------------------------------------------------
# Validation and summary
# ---------------------------------------------------------------------------


def validate_draft(draft: BudgetPeriodDraft) -> DraftValidationResult:
    """Collect every problem with ``draft`` rather than stopping at the first."""

    errors: list[str] = []

    if draft.end_date <= draft.start_date:
        errors.append("End date must be after start date")

    if not draft.income_sources:
        errors.append("At least one income source is required")

    for income in draft.income_sources:
        if income.amount <= 0:
            errors.append(f"Income amount must be greater than 0 for '{income.source_name}'")
        if not income.source_name.strip():
            errors.append("Income source name cannot be empty")

    for draft_alloc in draft.allocations:
        if draft_alloc.planned_amount < 0:
            errors.append("Planned amount cannot be negative")
        if draft_alloc.carry_over_amount < 0:
            errors.append("Carry over amount cannot be negative")

    if errors:
        _logger.debug("validate_draft:invalid errors=%d first=%r", len(errors), errors[0])
    return DraftValidationResult(is_valid=not errors, errors=errors)


def draft_summary(draft: BudgetPeriodDraft) -> BudgetDraftSummary:
    income = sum((s.amount for s in draft.income_sources), ZERO)
    planned = sum((a.planned_amount for a in draft.allocations), ZERO)
    carried = sum((a.carry_over_amount for a in draft.allocations), ZERO)
    allocated_pct = planned / income * HUNDRED if income > 0 else ZERO
    return BudgetDraftSummary(
        total_income=income,
        total_planned=planned,
        total_carry_over=carried,
        total_available=planned + carried,
        allocated_percentage=allocated_pct,
        remaining_to_allocate=income - planned,
    )
