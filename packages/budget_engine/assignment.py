"""Interval assignment of transactions to budget periods.

A transaction belongs to the **first** period, in caller-supplied order, whose
closed interval ``[start_date, end_date]`` contains the transaction date.
Callers wanting a different tie-break (e.g., most recent period wins) must
sort the periods before calling; see :func:`budget_engine.models.sorted_by_date`.

Nothing here raises for missing matches. Absence is always an explicit value:
``None``, an empty list, or an :class:`Orphaned` status.
"""

from __future__ import annotations

from typing import TypeAlias

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import StrEnum

from .logging_setup import get_logger
from .models import HUNDRED, ZERO, BudgetPeriod, Transaction

_logger = get_logger("budget_engine.assignment")


class OrphanReason(StrEnum):
    NO_PERIODS = "no periods exist"
    BEFORE_EARLIEST = "date before earliest period"
    AFTER_LATEST = "date after latest period"
    IN_GAP = "date in gap between periods"


@dataclass(frozen=True, slots=True)
class Assigned:
    period_id: str
    label: str


@dataclass(frozen=True, slots=True)
class Orphaned:
    reason: OrphanReason


AssignmentStatus: TypeAlias = Assigned | Orphaned


def is_assigned(status: AssignmentStatus) -> bool:
    match status:
        case Assigned():
            return True
        case Orphaned():
            return False


@dataclass(frozen=True, slots=True)
class ReassignmentResult:
    """Outcome of re-running assignment against an edited period set."""

    assigned: dict[str, list[Transaction]] = field(default_factory=dict)
    orphaned: list[Transaction] = field(default_factory=list)
    total_processed: int = 0

    @property
    def assigned_count(self) -> int:
        return sum(len(txs) for txs in self.assigned.values())

    @property
    def orphaned_count(self) -> int:
        return len(self.orphaned)

    @property
    def success_rate(self) -> Decimal:
        if self.total_processed == 0:
            return ZERO
        return Decimal(self.assigned_count) / Decimal(self.total_processed) * HUNDRED


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


def assign_to_period(
    transaction: Transaction, periods: Sequence[BudgetPeriod]
) -> BudgetPeriod | None:
    """Return the first period containing ``transaction.date`` or ``None``."""

    for period in periods:
        if period.contains(transaction.date):
            return period
    return None


def assign_many(
    transactions: Sequence[Transaction], periods: Sequence[BudgetPeriod]
) -> dict[str, list[Transaction]]:
    """Group transactions by the id of their containing period.

    Unmatched transactions are left out of the mapping; use
    :func:`find_orphaned` to retrieve them. Input order is preserved within
    each group.
    """

    assignments: dict[str, list[Transaction]] = {}
    for tx in transactions:
        period = assign_to_period(tx, periods)
        if period is not None:
            assignments.setdefault(period.id, []).append(tx)
    return assignments


def find_orphaned(
    transactions: Sequence[Transaction], periods: Sequence[BudgetPeriod]
) -> list[Transaction]:
    return [tx for tx in transactions if assign_to_period(tx, periods) is None]


def is_orphaned(transaction: Transaction, periods: Sequence[BudgetPeriod]) -> bool:
    return assign_to_period(transaction, periods) is None


def classify(transaction: Transaction, periods: Sequence[BudgetPeriod]) -> AssignmentStatus:
    period = assign_to_period(transaction, periods)
    if period is not None:
        return Assigned(period_id=period.id, label=_period_label(period))
    return Orphaned(reason=_orphan_reason(transaction, periods))


def reassign_on_period_change(
    transactions: Sequence[Transaction], updated_periods: Sequence[BudgetPeriod]
) -> ReassignmentResult:
    """Re-run assignment after the user edits period boundaries.

    Returned transactions are copies: assigned ones carry their new
    ``budget_period_id`` and orphaned ones have it cleared. The caller persists
    whichever copies differ from what it stored.
    """

    assigned: dict[str, list[Transaction]] = {}
    orphaned: list[Transaction] = []
    for tx in transactions:
        period = assign_to_period(tx, updated_periods)
        if period is not None:
            assigned.setdefault(period.id, []).append(replace(tx, budget_period_id=period.id))
        else:
            orphaned.append(replace(tx, budget_period_id=None))

    result = ReassignmentResult(
        assigned=assigned, orphaned=orphaned, total_processed=len(transactions)
    )
    _logger.info(
        "reassign_on_period_change:done total=%d assigned=%d orphaned=%d periods=%d",
        result.total_processed,
        result.assigned_count,
        result.orphaned_count,
        len(updated_periods),
    )
    return result


def suggest_period(
    transaction: Transaction, periods: Sequence[BudgetPeriod]
) -> BudgetPeriod | None:
    """Suggest the period whose start date is closest to the transaction date.

    Exact ties keep the first period encountered, so the answer depends on the
    order of ``periods``.
    """

    best: BudgetPeriod | None = None
    best_gap: int | None = None
    for period in periods:
        gap = abs((period.start_date - transaction.date).days)
        if best_gap is None or gap < best_gap:
            best, best_gap = period, gap
    return best


# ---------------------------------------------------------------------------
# Overlap detection
# ---------------------------------------------------------------------------


def find_overlapping(
    transaction: Transaction, periods: Sequence[BudgetPeriod]
) -> list[BudgetPeriod]:
    """All periods containing the transaction date (more than one = ambiguous)."""

    return [p for p in periods if p.contains(transaction.date)]


def periods_overlap(first: BudgetPeriod, second: BudgetPeriod) -> bool:
    # Closed intervals: periods sharing a boundary day overlap.
    return first.start_date <= second.end_date and first.end_date >= second.start_date


def has_overlaps(periods: Sequence[BudgetPeriod]) -> bool:
    for i, first in enumerate(periods):
        for second in periods[i + 1 :]:
            if periods_overlap(first, second):
                return True
    return False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _period_label(period: BudgetPeriod) -> str:
    return f"{period.start_date.isoformat()} - {period.end_date.isoformat()}"


def _orphan_reason(transaction: Transaction, periods: Sequence[BudgetPeriod]) -> OrphanReason:
    if not periods:
        return OrphanReason.NO_PERIODS

    earliest = min(periods, key=lambda p: p.start_date)
    if transaction.date < earliest.start_date:
        return OrphanReason.BEFORE_EARLIEST

    latest = max(periods, key=lambda p: p.end_date)
    if transaction.date > latest.end_date:
        return OrphanReason.AFTER_LATEST

    return OrphanReason.IN_GAP
