from datetime import date
from decimal import Decimal

from budget_engine import allocation as alloc
from budget_engine.allocation import BudgetPeriodTotals
from budget_engine.models import Bucket
from tests.helpers.records import JAN, D, mk_alloc, mk_period, mk_tx


def test_spending_for_bucket_and_category():
    txs = [
        mk_tx(date(2025, 1, 2), "100", tax="8", bucket=Bucket.NEEDS, category_id="food"),
        mk_tx(date(2025, 1, 3), "50", bucket=Bucket.WANTS, sub_category_id="food"),
        mk_tx(date(2025, 1, 4), "20", bucket=Bucket.WANTS, category_id="fun"),
    ]

    assert alloc.spending_for(Bucket.NEEDS, txs) == D("108")
    assert alloc.spending_for(Bucket.WANTS, txs) == D("70")
    assert alloc.spending_for(Bucket.SAVINGS, txs) == D("0")
    # Category matches the primary or the sub-category.
    assert alloc.spending_for("food", txs) == D("158")
    assert alloc.spending_for("missing", txs) == D("0")
    assert alloc.total_spent(txs) == D("178")


def test_bucket_spending_accepts_plain_string_bucket():
    txs = [
        mk_tx(date(2025, 1, 2), "40", bucket="wants"),
        mk_tx(date(2025, 1, 3), "5", bucket=Bucket.WANTS),
    ]

    assert alloc.spending_for(Bucket.WANTS, txs) == D("45")


def test_remaining_can_go_negative():
    assert alloc.remaining(D("100"), D("150")) == D("-50")
    a = mk_alloc("100", carry_over="20")
    assert alloc.remaining_for_allocation(a, D("30")) == D("90")


def test_carry_over_is_unspent_amount():
    previous = mk_alloc("1000", category_id="food")
    txs = [mk_tx(date(2025, 1, 5), "600", category_id="food")]

    assert alloc.carry_over("food", previous, txs) == D("400")


def test_carry_over_never_negative():
    previous = mk_alloc("1000", category_id="food")
    txs = [mk_tx(date(2025, 1, 5), "1200", category_id="food")]

    assert alloc.carry_over("food", previous, txs) == D("0")


def test_carry_over_without_previous_allocation_is_zero():
    txs = [mk_tx(date(2025, 1, 5), "10", category_id="food")]
    assert alloc.carry_over("food", None, txs) == D("0")


def test_carry_over_includes_previous_carry_over():
    previous = mk_alloc("100", category_id="food", carry_over="50")
    txs = [mk_tx(date(2025, 1, 5), "120", category_id="food")]

    assert alloc.carry_over("food", previous, txs) == D("30")


def test_all_carry_overs_omits_zero_and_uncategorized():
    allocations = [
        mk_alloc("300", category_id="food"),
        mk_alloc("100", category_id="fun"),
        mk_alloc("500", category_id=None),
    ]
    txs = [
        mk_tx(date(2025, 1, 5), "100", category_id="food"),
        mk_tx(date(2025, 1, 6), "100", category_id="fun"),
    ]

    assert alloc.all_carry_overs(allocations, txs) == {"food": D("200")}


def test_period_totals_and_ratios():
    period = mk_period(*JAN, incomes=("3000", "2000"))
    allocations = [mk_alloc("2500"), mk_alloc("1500", category_id="rent")]
    txs = [mk_tx(date(2025, 1, 10), "1000"), mk_tx(date(2025, 1, 11), "2000")]

    totals = alloc.period_totals(period, allocations, txs)

    assert totals == BudgetPeriodTotals(
        total_income=D("5000"),
        total_planned=D("4000"),
        total_spent=D("3000"),
        total_remaining=D("1000"),
    )
    assert totals.planned_percentage == D("80")
    assert totals.spent_percentage == D("60")
    assert totals.execution_percentage == D("75")
    assert not totals.is_over_allocated
    assert not totals.is_over_budget


def test_totals_ratios_are_zero_without_income_or_plan():
    totals = BudgetPeriodTotals(
        total_income=D("0"), total_planned=D("0"), total_spent=D("10"), total_remaining=D("-10")
    )

    assert totals.planned_percentage == 0
    assert totals.spent_percentage == 0
    assert totals.execution_percentage == 0
    assert totals.is_over_budget
    assert not totals.is_over_allocated


def test_over_allocated_flag():
    totals = BudgetPeriodTotals(
        total_income=D("100"), total_planned=D("120"), total_spent=D("0"), total_remaining=D("120")
    )
    assert totals.is_over_allocated


def test_utilization():
    assert alloc.utilization(D("200"), D("50")) == D("25")
    assert alloc.utilization(D("0"), D("50")) == 0
    assert alloc.utilization(D("-5"), D("50")) == 0


def test_over_budget_uses_carry_over():
    a = mk_alloc("100", carry_over="20")

    assert not alloc.is_over_budget(a, D("120"))
    assert alloc.is_over_budget(a, D("121"))
    assert alloc.over_budget_amount(a, D("150")) == D("30")
    assert alloc.over_budget_amount(a, D("50")) == D("0")


def test_projection_is_linear():
    # 31-day period, 10 days elapsed.
    period = mk_period(date(2025, 1, 1), date(2025, 2, 1))

    projected = alloc.project_end_of_period(D("1000"), period, as_of=date(2025, 1, 11))

    assert projected == D("3100")


def test_projection_returns_spent_when_no_time_elapsed():
    period = mk_period(*JAN)

    assert alloc.project_end_of_period(D("42"), period, as_of=date(2025, 1, 1)) == D("42")
    assert alloc.project_end_of_period(D("42"), period, as_of=date(2024, 12, 1)) == D("42")


def test_projection_with_zero_length_period():
    period = mk_period(date(2025, 1, 1), date(2025, 1, 1))
    assert alloc.project_end_of_period(D("42"), period, as_of=date(2025, 1, 1)) == D("42")


def test_projection_after_period_end_uses_full_duration():
    period = mk_period(*JAN)
    assert alloc.project_end_of_period(D("300"), period, as_of=date(2025, 3, 1)) == D("300")


def test_daily_spending_limit():
    period = mk_period(*JAN)
    a = mk_alloc("310")

    # 21 days remain after Jan 10.
    assert alloc.daily_spending_limit(a, D("100"), period, as_of=date(2025, 1, 10)) == D("10")


def test_daily_spending_limit_when_nothing_left():
    period = mk_period(*JAN)
    a = mk_alloc("100")

    assert alloc.daily_spending_limit(a, D("100"), period, as_of=date(2025, 1, 10)) == 0
    assert alloc.daily_spending_limit(a, D("150"), period, as_of=date(2025, 1, 10)) == 0


def test_daily_spending_limit_on_last_day_returns_remaining():
    period = mk_period(*JAN)
    a = mk_alloc("100")

    assert alloc.daily_spending_limit(a, D("40"), period, as_of=date(2025, 1, 31)) == D("60")
    assert alloc.daily_spending_limit(a, D("40"), period, as_of=date(2025, 2, 15)) == D("60")


def test_results_are_decimal():
    period = mk_period(*JAN)
    assert isinstance(alloc.project_end_of_period(D("1"), period, date(2025, 1, 4)), Decimal)
