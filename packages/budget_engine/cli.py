"""CLI for the ``budget_engine`` package.

This module exposes callable command handlers (``cmd_totals``, ``cmd_compare``,
``cmd_assign``, ``cmd_prefill``) and a Typer-based console interface over them.
Each handler reads a JSON snapshot (see :mod:`budget_engine.snapshot`), runs
the pure calculation services and prints a single JSON document to stdout.
Errors go to stderr and produce a non-zero exit status.

Environment variables are loaded from a local ``.env`` using
``python-dotenv`` (existing variables win) before any command runs.
"""

from __future__ import annotations

import json
import sys
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from . import allocation as alloc
from . import assignment, percentages, prefill
from .logging_setup import configure_logging, get_logger
from .models import BudgetPeriod, Methodology, Transaction
from .snapshot import Snapshot, SnapshotError, load_snapshot, resolve_decimal_places, to_jsonable

_logger = get_logger("budget_engine.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def _load(snapshot_path: str) -> Snapshot | None:
    """Load a snapshot, reporting failures on stderr and returning ``None``."""

    try:
        return load_snapshot(snapshot_path)
    except FileNotFoundError:
        print(f"Error: File not found: {snapshot_path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {snapshot_path}", file=sys.stderr)
    except IsADirectoryError:
        print(f"Error: Not a file: {snapshot_path}", file=sys.stderr)
    except SnapshotError as e:
        print(f"Error: {e}", file=sys.stderr)
    return None


def _require_period(snapshot: Snapshot, period_id: str) -> BudgetPeriod | None:
    period = snapshot.period(period_id)
    if period is None:
        print(f"Error: No budget period with id {period_id!r}", file=sys.stderr)
    return period


def _period_transactions(snapshot: Snapshot, period: BudgetPeriod) -> list[Transaction]:
    # Membership by date (first containing period wins), not by stored id.
    return assignment.assign_many(snapshot.transactions, snapshot.periods).get(period.id, [])


def _parse_decimal(raw: str, name: str) -> Decimal | None:
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        print(f"Error: {name} must be a decimal number, got {raw!r}", file=sys.stderr)
        return None
    if not value.is_finite():
        print(f"Error: {name} must be finite, got {raw!r}", file=sys.stderr)
        return None
    return value


def _emit(payload: Any) -> None:
    print(json.dumps(to_jsonable(payload, places=resolve_decimal_places()), indent=2))


# ---- Command handlers ----------------------------------------------------------


def cmd_totals(snapshot_path: str, *, period_id: str, as_of: date) -> int:
    """Print period totals, per-allocation health and a spending projection."""

    snapshot = _load(snapshot_path)
    if snapshot is None:
        return 1
    period = _require_period(snapshot, period_id)
    if period is None:
        return 1

    allocations = snapshot.allocations_for(period.id)
    transactions = _period_transactions(snapshot, period)
    totals = alloc.period_totals(period, allocations, transactions)

    rows = []
    for a in allocations:
        spent = alloc.spending_for(a.category_id, transactions) if a.category_id else Decimal(0)
        rows.append(
            {
                "allocation_id": a.id,
                "category_id": a.category_id,
                "planned": a.planned_amount,
                "carry_over": a.carry_over_amount,
                "spent": spent,
                "remaining": alloc.remaining_for_allocation(a, spent),
                "utilization": alloc.utilization(a.total_available, spent),
                "is_over_budget": alloc.is_over_budget(a, spent),
                "over_budget_amount": alloc.over_budget_amount(a, spent),
                "daily_limit": alloc.daily_spending_limit(a, spent, period, as_of),
            }
        )

    _emit(
        {
            "period_id": period.id,
            "as_of": as_of,
            "totals": totals,
            "planned_percentage": totals.planned_percentage,
            "spent_percentage": totals.spent_percentage,
            "execution_percentage": totals.execution_percentage,
            "is_over_allocated": totals.is_over_allocated,
            "is_over_budget": totals.is_over_budget,
            "projected_spending": alloc.project_end_of_period(totals.total_spent, period, as_of),
            "allocations": rows,
        }
    )
    return 0


def cmd_compare(snapshot_path: str, *, period_id: str) -> int:
    """Print bucket spending as a share of income against the target split."""

    snapshot = _load(snapshot_path)
    if snapshot is None:
        return 1
    period = _require_period(snapshot, period_id)
    if period is None:
        return 1

    settings = snapshot.settings
    income = period.total_income
    transactions = _period_transactions(snapshot, period)
    actuals = percentages.all_actual_percentages(transactions, income)
    comparisons = percentages.compare_all_to_targets(transactions, income, settings)

    buckets = {}
    for bucket, comparison in comparisons.items():
        buckets[bucket.value] = {
            "spent": percentages.bucket_spending(bucket, transactions),
            "actual_percentage": actuals[bucket],
            "target_percentage": settings.percentage_for(bucket),
            "target_amount": percentages.target_amount(bucket, income, settings),
            "variance": percentages.variance(bucket, transactions, income, settings),
            "remaining": percentages.remaining_budget(bucket, transactions, income, settings),
            "comparison": comparison,
            "acceptable": percentages.is_acceptable(comparison),
            "description": percentages.describe(comparison),
        }

    _emit(
        {
            "period_id": period.id,
            "total_income": income,
            "settings_valid": percentages.validate_settings_allocation(settings),
            "buckets": buckets,
        }
    )
    return 0


def cmd_assign(snapshot_path: str) -> int:
    """Print where every transaction lands under the snapshot's periods."""

    snapshot = _load(snapshot_path)
    if snapshot is None:
        return 1

    periods = snapshot.periods
    result = assignment.reassign_on_period_change(snapshot.transactions, periods)

    statuses = []
    for tx in snapshot.transactions:
        status = assignment.classify(tx, periods)
        entry: dict[str, Any] = {"transaction_id": tx.id, "status": status}
        overlapping = assignment.find_overlapping(tx, periods)
        if len(overlapping) > 1:
            entry["overlapping_period_ids"] = [p.id for p in overlapping]
        if not assignment.is_assigned(status):
            suggestion = assignment.suggest_period(tx, periods)
            entry["suggested_period_id"] = suggestion.id if suggestion else None
        statuses.append(entry)

    _emit(
        {
            "has_overlaps": assignment.has_overlaps(periods),
            "total_processed": result.total_processed,
            "assigned_count": result.assigned_count,
            "orphaned_count": result.orphaned_count,
            "success_rate": result.success_rate,
            "assigned": {pid: [t.id for t in txs] for pid, txs in result.assigned.items()},
            "orphaned": [t.id for t in result.orphaned],
            "transactions": statuses,
        }
    )
    return 0


def cmd_prefill(
    snapshot_path: str,
    *,
    from_period_id: str,
    start: date,
    end: date,
    methodology: Methodology | None = None,
    income_factor: str | None = None,
    allocation_factor: str | None = None,
    carry_over: bool = True,
) -> int:
    """Print a draft for a new period built from ``from_period_id``."""

    snapshot = _load(snapshot_path)
    if snapshot is None:
        return 1
    previous = _require_period(snapshot, from_period_id)
    if previous is None:
        return 1

    allocations = snapshot.allocations_for(previous.id)
    transactions = _period_transactions(snapshot, previous)

    incomes = prefill.copy_incomes(previous)
    if income_factor is not None:
        factor = _parse_decimal(income_factor, "--income-factor")
        if factor is None:
            return 1
        incomes = prefill.copy_incomes_with_adjustment(previous, factor)

    if allocation_factor is not None:
        factor = _parse_decimal(allocation_factor, "--allocation-factor")
        if factor is None:
            return 1
        drafts = prefill.copy_allocations_with_adjustment(
            allocations, transactions, factor, include_carry_over=carry_over
        )
    elif carry_over:
        drafts = prefill.copy_allocations(allocations, transactions)
    else:
        drafts = prefill.copy_allocations_without_carry_over(allocations)

    draft = prefill.BudgetPeriodDraft(
        methodology=methodology if methodology is not None else previous.methodology,
        start_date=start,
        end_date=end,
        income_sources=tuple(incomes),
        allocations=tuple(drafts),
    )
    validation = prefill.validate_draft(draft)
    summary = prefill.draft_summary(draft)
    if not validation.is_valid:
        _logger.warning("prefill:draft_invalid errors=%d", len(validation.errors))

    _emit(
        {
            "draft": draft,
            "summary": summary,
            "is_fully_allocated": summary.is_fully_allocated,
            "is_over_allocated": summary.is_over_allocated,
            "validation": validation,
        }
    )
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Budget period calculations over a JSON snapshot: totals, 50/30/20 "
        "comparisons, transaction assignment and next-period prefill."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
SNAPSHOT_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--snapshot",
    help="Path to a budget snapshot JSON file",
    dir_okay=False,
    file_okay=True,
    exists=False,  # allow non-existent here; the handler will report nice errors
)
DATE_FORMATS = ["%Y-%m-%d"]


@app.command("totals")
def totals_cmd(
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    *,
    period_id: str = typer.Option(..., help="Id of the budget period to total."),
    as_of: datetime | None = typer.Option(
        None, formats=DATE_FORMATS, help="Projection date (defaults to today)."
    ),
) -> None:
    """Totals, allocation health and projected spending for one period."""

    day = as_of.date() if as_of is not None else date.today()
    raise typer.Exit(cmd_totals(str(snapshot), period_id=period_id, as_of=day))


@app.command("compare")
def compare_cmd(
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    *,
    period_id: str = typer.Option(..., help="Id of the budget period to compare."),
) -> None:
    """Compare bucket spending to the target percentages."""

    raise typer.Exit(cmd_compare(str(snapshot), period_id=period_id))


@app.command("assign")
def assign_cmd(snapshot: Annotated[Path, SNAPSHOT_OPTION]) -> None:
    """Assign every transaction to a period and report orphans and overlaps."""

    raise typer.Exit(cmd_assign(str(snapshot)))


@app.command("prefill")
def prefill_cmd(
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    *,
    from_period_id: str = typer.Option(..., help="Id of the period to copy from."),
    start: datetime = typer.Option(..., formats=DATE_FORMATS, help="New period start date."),
    end: datetime = typer.Option(..., formats=DATE_FORMATS, help="New period end date."),
    methodology: Methodology | None = typer.Option(
        None, help="Methodology for the new period (defaults to the previous one)."
    ),
    income_factor: str | None = typer.Option(
        None, help="Multiply copied income amounts (e.g. 1.1 for +10%)."
    ),
    allocation_factor: str | None = typer.Option(
        None, help="Multiply copied planned amounts."
    ),
    carry_over: bool = typer.Option(
        True, "--carry-over/--no-carry-over", help="Roll unspent amounts forward."
    ),
) -> None:
    """Draft a new budget period from a previous one."""

    raise typer.Exit(
        cmd_prefill(
            str(snapshot),
            from_period_id=from_period_id,
            start=start.date(),
            end=end.date(),
            methodology=methodology,
            income_factor=income_factor,
            allocation_factor=allocation_factor,
            carry_over=carry_over,
        )
    )


@app.callback()
def _root() -> None:
    """Load ``.env`` from the current directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main(argv: list[str] | None = None) -> int:
    """Run the CLI with ``argv`` (defaults to ``sys.argv[1:]``); return the exit code."""

    try:
        app(args=argv)
    except SystemExit as e:
        if e.code is None:
            return 0
        return e.code if isinstance(e.code, int) else 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    app()
