import dataclasses
from datetime import date

from budget_engine import models
from budget_engine.models import Bucket, IncomeSource, Methodology, UserSettings
from tests.helpers.records import FEB, JAN, MAR, D, mk_alloc, mk_period, mk_tx


def test_display_names():
    assert [b.display_name for b in Bucket] == ["Needs", "Wants", "Savings"]
    assert Methodology.ZERO_BASED.display_name == "Zero-Based"
    assert Methodology.ENVELOPE.display_name == "Envelope"
    assert Methodology("percentage").display_name == "Percentage"


def test_transaction_total_treats_missing_tax_as_zero():
    assert mk_tx(date(2025, 1, 1), "10").total == D("10")
    assert mk_tx(date(2025, 1, 1), "10", tax="0.80").total == D("10.80")


def test_period_shape():
    jan = mk_period(*JAN, incomes=("3000", "250.50"))

    assert jan.total_income == D("3250.50")
    assert jan.duration_in_days == 30
    assert jan.date_range == JAN


def test_is_active_includes_both_ends():
    jan = mk_period(*JAN)

    assert jan.is_active(date(2025, 1, 1))
    assert jan.is_active(date(2025, 1, 31))
    assert not jan.is_active(date(2025, 2, 1))


def test_sorted_by_date_is_newest_first():
    jan, feb, mar = (mk_period(*r, id=n) for r, n in ((JAN, "jan"), (FEB, "feb"), (MAR, "mar")))

    assert [p.id for p in models.sorted_by_date([feb, jan, mar])] == ["mar", "feb", "jan"]


def test_period_containing_returns_first_match():
    wide = mk_period(date(2025, 1, 1), date(2025, 3, 31), id="q1")
    feb = mk_period(*FEB, id="feb")

    assert models.period_containing([wide, feb], date(2025, 2, 14)).id == "q1"
    assert models.period_containing([feb, wide], date(2025, 2, 14)).id == "feb"
    assert models.period_containing([feb], date(2025, 4, 1)) is None


def test_income_helpers():
    sources = [
        IncomeSource(id="2", source_name="Salary", amount=D("4000")),
        IncomeSource(id="1", source_name="Freelance", amount=D("650")),
    ]

    assert models.total_income(sources) == D("4650")
    assert models.total_income([]) == D("0")
    assert [s.source_name for s in models.sorted_by_name(sources)] == ["Freelance", "Salary"]


def test_allocation_totals():
    allocations = [
        mk_alloc("300", carry_over="25"),
        mk_alloc("1200", carry_over="0"),
        mk_alloc("80", carry_over="10"),
    ]

    assert models.total_planned(allocations) == D("1580")
    assert models.total_carry_over(allocations) == D("35")
    assert models.total_available(allocations) == D("1615")
    assert allocations[0].total_available == D("325")


def test_carry_over_filter_and_amount_sort():
    small = mk_alloc("80", carry_over="10", id="small")
    big = mk_alloc("1200", id="big")
    mid = mk_alloc("300", carry_over="25", id="mid")

    assert [a.id for a in models.with_carry_over([small, big, mid])] == ["small", "mid"]
    assert not big.has_carry_over
    assert [a.id for a in models.sorted_by_amount([small, big, mid])] == ["big", "mid", "small"]


def test_settings_defaults_and_checks():
    settings = UserSettings.default()

    assert settings.total_percentage == D("100")
    assert settings.has_valid_percentages
    assert settings.has_non_negative_percentages

    skewed = UserSettings(
        needs_percentage=D("70"), wants_percentage=D("40"), savings_percentage=D("-10")
    )
    assert skewed.has_valid_percentages
    assert not skewed.has_non_negative_percentages


def test_bucket_amounts():
    settings = UserSettings.default()

    assert settings.percentage_for(Bucket.SAVINGS) == D("20")
    assert settings.amount_for(Bucket.NEEDS, D("4000")) == D("2000")
    assert settings.bucket_amounts(D("4000")) == {
        Bucket.NEEDS: D("2000"),
        Bucket.WANTS: D("1200"),
        Bucket.SAVINGS: D("800"),
    }


def test_settings_hold_only_target_percentages():
    assert [f.name for f in dataclasses.fields(UserSettings)] == [
        "needs_percentage",
        "wants_percentage",
        "savings_percentage",
    ]
