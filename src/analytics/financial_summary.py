from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, Sequence

from src.analytics.activity import count_activities, finance_entries_in, round_money, sum_revenue
from src.models.reporting import ActivityLog, ActivityType, FinanceEntry, PipelineItem
from src.schemas.reporting import FinancialSummaryResult
from src.shared.time import period_window

UNKNOWN_LABEL = "Unknown"


def calculate_financial_summary(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    now: datetime,
    finance_entries: Sequence[FinanceEntry],
) -> FinancialSummaryResult:
    """Revenue totals from finance entries; pipeline items never contribute revenue."""
    _ = pipeline_items
    total_revenue = sum_revenue(finance_entries)
    monthly_revenue = sum_revenue(finance_entries_in(finance_entries, period_window(now, "month")))
    quarterly_revenue = sum_revenue(
        finance_entries_in(finance_entries, period_window(now, "quarter"))
    )

    total_sales = len(finance_entries)
    bdr_count = len({entry.bdr for entry in finance_entries if entry.bdr})
    total_calls = count_activities(activity_logs, ActivityType.CALL_COMPLETED)
    total_lists = count_activities(activity_logs, ActivityType.PARTNER_LIST_SENT)

    revenue_by_status: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    revenue_by_month: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for entry in finance_entries:
        revenue_by_status[entry.status or UNKNOWN_LABEL] += entry.revenue_amount
        revenue_by_month[entry.month or UNKNOWN_LABEL] += entry.revenue_amount

    return FinancialSummaryResult(
        total_revenue=total_revenue,
        monthly_revenue=monthly_revenue,
        quarterly_revenue=quarterly_revenue,
        total_sales=total_sales,
        average_deal_size=_per_unit(total_revenue, total_sales),
        revenue_per_bdr=_per_unit(total_revenue, bdr_count),
        revenue_per_call=_per_unit(total_revenue, total_calls),
        revenue_per_list=_per_unit(total_revenue, total_lists),
        revenue_by_status=dict(revenue_by_status),
        revenue_by_month=dict(sorted(revenue_by_month.items())),
    )


def _per_unit(revenue: Decimal, units: int) -> Decimal:
    if not units:
        return Decimal("0")
    return round_money(revenue / units)
