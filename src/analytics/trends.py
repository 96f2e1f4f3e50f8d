from __future__ import annotations

from datetime import datetime
from typing import List, Sequence

from src.analytics.activity import (
    count_activities,
    finance_entries_in,
    round_half_up,
    sum_revenue,
)
from src.models.reporting import ActivityLog, ActivityType, FinanceEntry, PipelineItem
from src.schemas.reporting import (
    MonthlyAgreementsPoint,
    QuarterlyListsOutPoint,
    TrendResult,
    WeeklyCallVolumePoint,
)
from src.shared.time import quarter_label, rolling_windows


def calculate_trends(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    now: datetime,
    finance_entries: Sequence[FinanceEntry],
    quarters: int = 2,
    weeks: int = 4,
    months: int = 4,
    weekly_call_target: int = 40,
    monthly_agreement_target: int = 20,
) -> TrendResult:
    _ = pipeline_items
    weekly_call_volume: List[WeeklyCallVolumePoint] = []
    for window in rolling_windows(now, "week", weeks):
        calls = count_activities(activity_logs, ActivityType.CALL_COMPLETED, window)
        weekly_call_volume.append(
            WeeklyCallVolumePoint(
                week=window.start.strftime("%b %d"),
                period_start=window.start,
                period_end=window.end,
                calls=calls,
                target=weekly_call_target,
                variance=_variance_pct(calls, weekly_call_target),
            )
        )

    monthly_agreements: List[MonthlyAgreementsPoint] = []
    for window in rolling_windows(now, "month", months):
        agreements = count_activities(activity_logs, ActivityType.AGREEMENT_SENT, window)
        monthly_agreements.append(
            MonthlyAgreementsPoint(
                month=window.start.strftime("%b %Y"),
                period_start=window.start,
                period_end=window.end,
                agreements=agreements,
                target=monthly_agreement_target,
                variance=_variance_pct(agreements, monthly_agreement_target),
            )
        )

    # Quarters are disjoint, so no finance entry lands in two buckets.
    quarterly_lists_out: List[QuarterlyListsOutPoint] = []
    for window in rolling_windows(now, "quarter", quarters):
        quarter_sales = finance_entries_in(finance_entries, window)
        quarterly_lists_out.append(
            QuarterlyListsOutPoint(
                quarter=quarter_label(window.start),
                period_start=window.start,
                period_end=window.end,
                lists=count_activities(activity_logs, ActivityType.PARTNER_LIST_SENT, window),
                conversions=len(quarter_sales),
                revenue=sum_revenue(quarter_sales),
            )
        )

    return TrendResult(
        weekly_call_volume=weekly_call_volume,
        monthly_agreements=monthly_agreements,
        quarterly_lists_out=quarterly_lists_out,
    )


def _variance_pct(actual: int, target: int) -> int:
    if not target:
        return 0
    return int(round_half_up((actual - target) / target * 100))
