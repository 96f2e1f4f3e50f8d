from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from src.analytics.team_performance import calculate_team_performance


def test_empty_snapshot_has_zero_conversion_rate(now):
    result = calculate_team_performance([], [], [], now)

    assert result.benchmark_metrics.team_conversion_rate == 0
    assert result.rankings == []
    assert result.top_performers == []
    assert result.needs_support == []


def test_bdr_with_most_sales_is_top_performer(now, make_entry):
    entries = [
        make_entry(bdr="A", gbp_amount=1000),
        make_entry(bdr="A", gbp_amount=2000),
        make_entry(bdr="B", gbp_amount=1500),
    ]

    result = calculate_team_performance([], [], entries, now)

    assert result.top_performers == ["A"]
    assert result.needs_support == ["B"]
    assert [row.bdr for row in result.rankings] == ["A", "B"]
    assert result.rankings[0].sales_count == 2
    assert result.rankings[0].revenue == 3000
    assert result.benchmark_metrics.total_revenue == 4500
    assert result.benchmark_metrics.total_sales == 3


def test_ties_at_the_cutoff_are_all_top_performers(now, make_entry):
    entries = [
        make_entry(bdr="Dan", gbp_amount=500),
        make_entry(bdr="Dan", gbp_amount=500),
        make_entry(bdr="Cara", gbp_amount=100),
        make_entry(bdr="Ben", gbp_amount=100),
        make_entry(bdr="Amy", gbp_amount=50),
    ]

    result = calculate_team_performance([], [], entries, now)

    assert [row.bdr for row in result.rankings] == ["Dan", "Ben", "Cara", "Amy"]
    assert result.top_performers == ["Dan", "Ben", "Cara"]
    assert result.needs_support == ["Amy"]


def test_bdrs_without_sales_need_support(now, make_item, make_log, make_entry):
    items = [make_item(bdr="Zed")]
    logs = [make_log("Call_Completed", bdr="Yara")]
    entries = [make_entry(bdr="Xan")]

    result = calculate_team_performance(items, logs, entries, now)

    assert result.top_performers == ["Xan"]
    assert sorted(result.needs_support) == ["Yara", "Zed"]
    assert result.total_bdrs == 3
    yara = next(row for row in result.rankings if row.bdr == "Yara")
    assert yara.calls == 1
    assert yara.sales_count == 0


def test_sold_pipeline_items_never_count_as_sales(now, make_item):
    result = calculate_team_performance([make_item(status="Sold", bdr="A")], [], [], now)

    assert result.rankings[0].sales_count == 0
    assert result.top_performers == []


def test_null_amount_counts_as_zero_value_sale(now, make_entry):
    entries = [make_entry(bdr="A", gbp_amount=None), make_entry(bdr="A", gbp_amount=250)]

    result = calculate_team_performance([], [], entries, now)

    assert result.rankings[0].sales_count == 2
    assert result.rankings[0].revenue == 250


def test_entries_without_bdr_are_unassigned(now, make_entry):
    result = calculate_team_performance([], [], [make_entry(bdr="")], now)

    assert result.rankings[0].bdr == "Unassigned"


def test_conversion_rate_against_logged_calls(now, make_log, make_entry):
    logs = [make_log("Call_Completed") for _ in range(4)]

    result = calculate_team_performance([], logs, [make_entry()], now)

    assert result.benchmark_metrics.team_conversion_rate == 25.0
    assert result.benchmark_metrics.avg_calls_per_bdr == 4.0


def test_conversion_rate_is_positive_without_logged_calls(now, make_entry):
    result = calculate_team_performance([], [], [make_entry(), make_entry()], now)

    assert result.benchmark_metrics.team_conversion_rate == 100.0


def test_active_bdrs_only_counts_recent_activity(now, make_log):
    logs = [
        make_log("Note_Added", bdr="Alice"),
        make_log("Note_Added", bdr="Bob", timestamp=now - timedelta(days=20)),
    ]

    assert calculate_team_performance([], logs, [], now).active_bdrs == 1
    assert calculate_team_performance([], logs, []).active_bdrs == 2


def test_same_input_gives_same_output(now, make_log, make_entry):
    logs = [make_log("Call_Completed", bdr="A")]
    entries = [make_entry(bdr="A"), make_entry(bdr="B", gbp_amount=5)]

    assert calculate_team_performance([], logs, entries, now) == calculate_team_performance(
        [], logs, entries, now
    )


def test_conversion_rate_is_rounded_to_two_places(now, make_log, make_entry):
    logs = [make_log("Call_Completed") for _ in range(3)]

    result = calculate_team_performance([], logs, [make_entry()], now)

    assert result.benchmark_metrics.team_conversion_rate == 33.33


def test_revenue_is_summed_exactly(now, make_entry):
    entries = [make_entry(bdr="A", gbp_amount=Decimal(amount)) for amount in ("0.1", "0.2", "0.3")]

    result = calculate_team_performance([], [], entries, now)

    assert result.rankings[0].revenue == Decimal("0.60")
    assert result.benchmark_metrics.total_revenue == Decimal("0.6")


def test_team_performance_leaves_inputs_untouched(now, make_item, make_log, make_entry):
    items = [make_item(bdr="Zed")]
    logs = [make_log("Call_Completed", bdr="A")]
    entries = [make_entry(bdr="A"), make_entry(bdr="", gbp_amount=None)]
    before = (
        [item.model_dump() for item in items],
        [log.model_dump() for log in logs],
        [entry.model_dump() for entry in entries],
    )

    calculate_team_performance(items, logs, entries, now)

    assert (
        [item.model_dump() for item in items],
        [log.model_dump() for log in logs],
        [entry.model_dump() for entry in entries],
    ) == before
