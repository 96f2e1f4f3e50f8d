from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from src.analytics.financial_summary import calculate_financial_summary


def test_revenue_totals_match_when_all_sales_are_current(now, make_entry):
    entries = [
        make_entry(bdr="A", gbp_amount=1000),
        make_entry(bdr="A", gbp_amount=2000),
        make_entry(bdr="B", gbp_amount=1500),
    ]

    result = calculate_financial_summary([], [], now, entries)

    assert result.total_revenue == 4500
    assert result.monthly_revenue == 4500
    assert result.quarterly_revenue == 4500
    assert result.total_sales == 3
    assert result.average_deal_size == 1500
    assert result.revenue_per_bdr == 2250


def test_older_sales_only_count_towards_total(now, make_entry):
    entries = [make_entry(gbp_amount=100), make_entry(gbp_amount=50, created_at=now - timedelta(days=45))]

    result = calculate_financial_summary([], [], now, entries)

    assert result.total_revenue == 150
    assert result.monthly_revenue == 100
    assert result.quarterly_revenue == 100


def test_pipeline_items_never_add_revenue(now, make_item):
    result = calculate_financial_summary([make_item(status="Sold")], [], now, [])

    assert result.total_revenue == 0
    assert result.total_sales == 0
    assert result.average_deal_size == 0.0


def test_null_amounts_are_zero(now, make_entry):
    result = calculate_financial_summary([], [], now, [make_entry(gbp_amount=None), make_entry(gbp_amount=10)])

    assert result.total_revenue == 10
    assert result.total_sales == 2
    assert result.average_deal_size == 5


def test_revenue_ratios_and_breakdowns(now, make_entry, make_log):
    entries = [
        make_entry(gbp_amount=300, status="Paid", month="2025-07"),
        make_entry(gbp_amount=100, status="Pending", month="2025-06"),
        make_entry(gbp_amount=200),
    ]
    logs = [make_log("Call_Completed") for _ in range(4)] + [make_log("Partner_List_Sent")]

    result = calculate_financial_summary([], logs, now, entries)

    assert result.revenue_per_call == 150
    assert result.revenue_per_list == 600
    assert result.revenue_by_status == {"Paid": 300, "Pending": 100, "Unknown": 200}
    assert list(result.revenue_by_month) == ["2025-06", "2025-07", "Unknown"]


def test_money_is_exact_decimal(now, make_entry):
    entries = [make_entry(gbp_amount=Decimal(amount)) for amount in ("0.1", "0.2", "0.3")]

    result = calculate_financial_summary([], [], now, entries)

    assert result.total_revenue == Decimal("0.6")
    assert result.monthly_revenue == Decimal("0.6")
    assert result.average_deal_size == Decimal("0.20")
    assert result.revenue_by_status == {"Unknown": Decimal("0.6")}


def test_ratios_round_half_up_to_pence(now, make_entry, make_log):
    logs = [make_log("Call_Completed") for _ in range(8)]

    result = calculate_financial_summary([], logs, now, [make_entry(gbp_amount=Decimal("0.2"))])

    assert result.revenue_per_call == Decimal("0.03")


def test_financial_summary_leaves_inputs_untouched(now, make_entry, make_item):
    items = [make_item(status="Sold")]
    entries = [make_entry(gbp_amount=Decimal("99.99"), status="Paid")]
    before = ([item.model_dump() for item in items], [entry.model_dump() for entry in entries])

    first = calculate_financial_summary(items, [], now, entries)
    second = calculate_financial_summary(items, [], now, entries)

    assert first == second
    assert ([item.model_dump() for item in items], [entry.model_dump() for entry in entries]) == before
