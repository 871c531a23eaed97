"""Commit-time validation rules for entities.

The calculation services never raise; this module is the caller-side guard a
persistence layer runs before committing a record. Each rule raises
:class:`BudgetValidationError` on the first violation it finds. Use
:func:`budget_engine.prefill.validate_draft` instead when every problem with a
draft should be reported at once.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from .assignment import periods_overlap
from .models import HUNDRED, BudgetPeriod, CategoryAllocation, IncomeSource, Transaction, UserSettings


class BudgetValidationError(ValueError):
    """A record failed a validation rule.

    ``code`` is a stable, machine-readable identifier (e.g.
    ``"transaction_amount_invalid"``); the message is human-readable.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def validate_transaction(transaction: Transaction, *, today: date) -> None:
    if transaction.sub_total <= 0:
        raise BudgetValidationError(
            "transaction_amount_invalid",
            "Transaction amount is invalid: Subtotal must be greater than 0",
        )
    if transaction.tax is not None and transaction.tax < 0:
        raise BudgetValidationError(
            "transaction_amount_invalid", "Transaction amount is invalid: Tax cannot be negative"
        )
    if not transaction.merchant.strip():
        raise BudgetValidationError(
            "transaction_merchant_required", "Transaction merchant is required"
        )
    if transaction.date > today:
        raise BudgetValidationError(
            "transaction_date_invalid",
            "Transaction date is invalid: Transaction date cannot be in the future",
        )


def validate_transaction_strict(transaction: Transaction, *, today: date) -> None:
    """:func:`validate_transaction` plus a required category."""

    validate_transaction(transaction, today=today)
    if transaction.category_id is None:
        raise BudgetValidationError("required_field_missing", "Required field 'category' is missing")


# ---------------------------------------------------------------------------
# Periods and incomes
# ---------------------------------------------------------------------------


def validate_budget_period(period: BudgetPeriod) -> None:
    if period.end_date <= period.start_date:
        raise BudgetValidationError(
            "budget_period_date_invalid",
            "Budget period dates are invalid: End date must be after start date",
        )
    if not period.income_sources:
        raise BudgetValidationError(
            "budget_period_no_income", "Budget period must have at least one income source"
        )
    for income in period.income_sources:
        if income.amount <= 0:
            raise BudgetValidationError(
                "income_amount_invalid",
                f"Income amount must be greater than 0 for '{income.source_name}'",
            )
    for income in period.income_sources:
        validate_not_empty(income.source_name, "income source name")


def validate_no_overlap(period: BudgetPeriod, existing: Iterable[BudgetPeriod]) -> None:
    """Reject ``period`` if it overlaps any other period (same id is skipped for updates)."""

    for other in existing:
        if other.id == period.id:
            continue
        if periods_overlap(period, other):
            raise BudgetValidationError(
                "budget_period_overlap",
                "Budget period overlaps with existing period "
                f"({other.start_date.isoformat()} - {other.end_date.isoformat()})",
            )


def validate_income_source(income: IncomeSource) -> None:
    if income.amount <= 0:
        raise BudgetValidationError(
            "income_amount_invalid", "Income amount must be greater than 0"
        )
    validate_not_empty(income.source_name, "income source name")


# ---------------------------------------------------------------------------
# Allocations and settings
# ---------------------------------------------------------------------------


def validate_category_allocation(allocation: CategoryAllocation) -> None:
    if allocation.planned_amount < 0:
        raise BudgetValidationError(
            "allocation_amount_invalid",
            "Allocation amount is invalid: Planned amount cannot be negative",
        )
    if allocation.carry_over_amount < 0:
        raise BudgetValidationError(
            "allocation_amount_invalid",
            "Allocation amount is invalid: Carry over amount cannot be negative",
        )
    if allocation.category_id is None:
        raise BudgetValidationError(
            "allocation_category_required", "Allocation must have a category assigned"
        )
    if allocation.budget_period_id is None:
        raise BudgetValidationError(
            "allocation_budget_period_required", "Allocation must be assigned to a budget period"
        )


def validate_percentages(settings: UserSettings) -> None:
    for name, value in (
        ("needs", settings.needs_percentage),
        ("wants", settings.wants_percentage),
        ("savings", settings.savings_percentage),
    ):
        if value < 0:
            raise BudgetValidationError(
                "percentage_negative", f"Percentage for '{name}' cannot be negative"
            )
    total = settings.total_percentage
    if total != HUNDRED:
        raise BudgetValidationError(
            "percentage_sum_invalid", f"Percentages must sum to 100, but sum to {total}"
        )


# ---------------------------------------------------------------------------
# General helpers
# ---------------------------------------------------------------------------


def validate_date_range(start_date: date, end_date: date) -> None:
    if end_date <= start_date:
        raise BudgetValidationError("invalid_date_range", "End date must be after start date")


def validate_not_empty(value: str, field_name: str) -> None:
    if not value.strip():
        raise BudgetValidationError(
            "required_field_missing", f"Required field '{field_name}' is missing"
        )


def validate_decimal_range(value: Decimal, lo: Decimal, hi: Decimal, field_name: str) -> None:
    """Inclusive range check."""

    if value < lo or value > hi:
        raise BudgetValidationError(
            "value_out_of_range", f"{field_name} must be between {lo} and {hi}"
        )
