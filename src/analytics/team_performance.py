from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from src.analytics.activity import (
    active_bdrs_in,
    collect_bdrs,
    count_activities,
    count_activities_by_bdr,
    round_half_up,
    round_money,
)
from src.models.reporting import ActivityLog, ActivityType, FinanceEntry, PipelineItem
from src.schemas.reporting import BdrPerformanceRow, BenchmarkMetrics, TeamPerformanceResult
from src.shared.time import window_ending_at

ACTIVE_BDR_LOOKBACK_DAYS = 7
UNASSIGNED_BDR = "Unassigned"


def calculate_team_performance(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    finance_entries: Sequence[FinanceEntry],
    now: Optional[datetime] = None,
) -> TeamPerformanceResult:
    """Rank BDRs by finance-entry sales and revenue.

    Sales and revenue come only from ``finance_entries``; pipeline items and
    activity logs contribute the roster and the auxiliary activity columns.
    The upper half of BDRs with at least one sale are top performers (ties with
    the last qualifying position included); every other BDR needs support.
    """
    aggregate = _aggregate_by_bdr(pipeline_items, activity_logs, finance_entries)
    ranked = sorted(
        aggregate.values(),
        key=lambda row: (-int(row["sales_count"]), -Decimal(row["revenue"]), str(row["bdr"])),
    )
    top_keys = _top_performer_keys(ranked)

    rankings: List[BdrPerformanceRow] = []
    for index, row in enumerate(ranked, start=1):
        key = (int(row["sales_count"]), Decimal(row["revenue"]))
        rankings.append(
            BdrPerformanceRow(
                rank=index,
                bdr=str(row["bdr"]),
                sales_count=int(row["sales_count"]),
                revenue=round_money(Decimal(row["revenue"])),
                calls=int(row["calls"]),
                agreements=int(row["agreements"]),
                lists=int(row["lists"]),
                classification="top_performer" if key in top_keys else "needs_support",
            )
        )

    if now is not None:
        recent = window_ending_at(now, ACTIVE_BDR_LOOKBACK_DAYS)
        active_bdrs = len(active_bdrs_in(activity_logs, recent))
    else:
        active_bdrs = len({log.bdr for log in activity_logs if log.bdr})

    return TeamPerformanceResult(
        total_bdrs=len(rankings),
        active_bdrs=active_bdrs,
        top_performers=[row.bdr for row in rankings if row.classification == "top_performer"],
        needs_support=[row.bdr for row in rankings if row.classification == "needs_support"],
        benchmark_metrics=_benchmark_metrics(ranked, activity_logs),
        rankings=rankings,
    )


def _aggregate_by_bdr(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    finance_entries: Sequence[FinanceEntry],
) -> Dict[str, Dict[str, Decimal | int | str]]:
    calls_by_bdr = count_activities_by_bdr(activity_logs, ActivityType.CALL_COMPLETED)
    agreements_by_bdr = count_activities_by_bdr(activity_logs, ActivityType.AGREEMENT_SENT)
    lists_by_bdr = count_activities_by_bdr(activity_logs, ActivityType.PARTNER_LIST_SENT)

    aggregate: Dict[str, Dict[str, Decimal | int | str]] = {}
    for bdr in collect_bdrs(pipeline_items, activity_logs, finance_entries):
        aggregate[bdr] = _new_bucket(bdr, calls_by_bdr, agreements_by_bdr, lists_by_bdr)
    for entry in finance_entries:
        # Unattributed sales still count towards team totals.
        bdr = entry.bdr or UNASSIGNED_BDR
        bucket = aggregate.setdefault(
            bdr, _new_bucket(bdr, calls_by_bdr, agreements_by_bdr, lists_by_bdr)
        )
        bucket["sales_count"] = int(bucket["sales_count"]) + 1
        bucket["revenue"] = Decimal(bucket["revenue"]) + entry.revenue_amount
    return aggregate


def _new_bucket(
    bdr: str,
    calls_by_bdr: Dict[str, int],
    agreements_by_bdr: Dict[str, int],
    lists_by_bdr: Dict[str, int],
) -> Dict[str, Decimal | int | str]:
    return {
        "bdr": bdr,
        "sales_count": 0,
        "revenue": Decimal("0"),
        "calls": calls_by_bdr.get(bdr, 0),
        "agreements": agreements_by_bdr.get(bdr, 0),
        "lists": lists_by_bdr.get(bdr, 0),
    }


def _top_performer_keys(ranked: List[Dict[str, Decimal | int | str]]) -> set[tuple[int, Decimal]]:
    sellers = [row for row in ranked if int(row["sales_count"]) > 0]
    if not sellers:
        return set()
    cutoff_index = math.ceil(len(sellers) / 2) - 1
    cutoff = (int(sellers[cutoff_index]["sales_count"]), Decimal(sellers[cutoff_index]["revenue"]))
    return {
        (int(row["sales_count"]), Decimal(row["revenue"]))
        for row in sellers
        if (int(row["sales_count"]), Decimal(row["revenue"])) >= cutoff
    }


def _benchmark_metrics(
    ranked: List[Dict[str, Decimal | int | str]], activity_logs: Sequence[ActivityLog]
) -> BenchmarkMetrics:
    bdr_count = len(ranked)
    total_calls = count_activities(activity_logs, ActivityType.CALL_COMPLETED)
    total_agreements = count_activities(activity_logs, ActivityType.AGREEMENT_SENT)
    total_lists = count_activities(activity_logs, ActivityType.PARTNER_LIST_SENT)
    total_sales = sum(int(row["sales_count"]) for row in ranked)
    total_revenue = sum((Decimal(row["revenue"]) for row in ranked), Decimal("0"))

    # Never below the sales count: a sale needs no logged call.
    opportunities = max(total_calls, total_sales)
    team_conversion_rate = (
        round_half_up(total_sales / opportunities * 100, 2) if opportunities else 0.0
    )

    def per_bdr(total: float) -> float:
        return round_half_up(total / bdr_count, 1) if bdr_count else 0.0

    return BenchmarkMetrics(
        team_conversion_rate=team_conversion_rate,
        avg_calls_per_bdr=per_bdr(total_calls),
        avg_agreements_per_bdr=per_bdr(total_agreements),
        avg_lists_per_bdr=per_bdr(total_lists),
        avg_sales_per_bdr=per_bdr(total_sales),
        avg_revenue_per_bdr=round_money(total_revenue / bdr_count) if bdr_count else Decimal("0"),
        total_sales=total_sales,
        total_revenue=total_revenue,
    )
