from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from src.analytics.activity import (
    active_bdrs_in,
    classify_against_target,
    collect_bdrs,
    count_activities,
    round_half_up,
    to_bounds,
)
from src.models.reporting import (
    ActivityLog,
    ActivityType,
    BdrTargets,
    FinanceEntry,
    KpiTargets,
    PipelineItem,
)
from src.schemas.reporting import (
    KpiMetric,
    KpiResult,
    KpiStatus,
    PeriodKpiReport,
    PeriodKpis,
    TeamTargets,
)
from src.shared.time import TimeWindow, period_window, window_ending_at

ACTIVE_BDR_LOOKBACK_DAYS = 7
CONVERSION_RATE_TARGET = 20.0

# KPI name -> activity type whose logs count towards it.
KPI_ACTIVITY_TYPES: Dict[str, ActivityType] = {
    "steady_call_volume": ActivityType.CALL_COMPLETED,
    "agreement_rate": ActivityType.AGREEMENT_SENT,
    "lists_out": ActivityType.PARTNER_LIST_SENT,
}


def calculate_kpis(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    targets: KpiTargets,
    now: datetime,
    window: Optional[TimeWindow] = None,
) -> KpiResult:
    """Count this window's calls, agreements and lists against the configured targets.

    ``pipeline_items`` is accepted for signature parity with the other calculators;
    no KPI is currently derived from it. When ``window`` is omitted the ISO week
    containing ``now`` is evaluated.
    """
    _ = pipeline_items
    evaluation_window = window or period_window(now, "week")
    metrics = {
        name: _kpi_metric(
            count_activities(activity_logs, activity_type, evaluation_window),
            getattr(targets, name),
        )
        for name, activity_type in KPI_ACTIVITY_TYPES.items()
    }
    return KpiResult(**metrics, window=to_bounds(evaluation_window))


def calculate_team_targets(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    bdr_targets: BdrTargets,
    now: datetime,
) -> Tuple[TeamTargets, TeamTargets, List[str]]:
    all_bdrs = collect_bdrs(pipeline_items, activity_logs)
    recently_active = set(
        active_bdrs_in(activity_logs, window_ending_at(now, ACTIVE_BDR_LOOKBACK_DAYS))
    )
    active_bdrs = [bdr for bdr in all_bdrs if bdr in recently_active]
    headcount = len(active_bdrs)
    weekly = TeamTargets(
        calls=headcount * bdr_targets.weekly_calls,
        agreements=headcount * bdr_targets.weekly_agreements,
        lists_out=headcount * bdr_targets.weekly_lists_out,
        sales=headcount * bdr_targets.weekly_sales,
    )
    monthly = TeamTargets(
        calls=headcount * bdr_targets.monthly_calls,
        agreements=headcount * bdr_targets.monthly_agreements,
        lists_out=headcount * bdr_targets.monthly_lists_out,
        sales=headcount * bdr_targets.monthly_sales,
    )
    return weekly, monthly, active_bdrs


def calculate_period_kpis(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    bdr_targets: BdrTargets,
    now: datetime,
    finance_entries: Sequence[FinanceEntry] = (),
) -> PeriodKpiReport:
    weekly_targets, monthly_targets, active_bdrs = calculate_team_targets(
        pipeline_items, activity_logs, bdr_targets, now
    )

    def weekly_block(window: TimeWindow) -> PeriodKpis:
        return PeriodKpis(
            call_volume=_activity_kpi(
                activity_logs, ActivityType.CALL_COMPLETED, window, weekly_targets.calls
            ),
            agreements=_activity_kpi(
                activity_logs, ActivityType.AGREEMENT_SENT, window, weekly_targets.agreements
            ),
            lists_out=_activity_kpi(
                activity_logs, ActivityType.PARTNER_LIST_SENT, window, weekly_targets.lists_out
            ),
            sales=_kpi_metric(_count_sales(finance_entries, window), weekly_targets.sales),
            window=to_bounds(window),
        )

    def monthly_block(window: TimeWindow) -> PeriodKpis:
        return PeriodKpis(
            call_volume=_activity_kpi(
                activity_logs, ActivityType.CALL_COMPLETED, window, monthly_targets.calls
            ),
            agreements=_activity_kpi(
                activity_logs, ActivityType.AGREEMENT_SENT, window, monthly_targets.agreements
            ),
            lists_out=_activity_kpi(
                activity_logs, ActivityType.PARTNER_LIST_SENT, window, monthly_targets.lists_out
            ),
            conversion_rate=_conversion_kpi(activity_logs, finance_entries, window),
            window=to_bounds(window),
        )

    return PeriodKpiReport(
        this_week=weekly_block(period_window(now, "week")),
        last_week=weekly_block(period_window(now, "week", 1)),
        this_month=monthly_block(period_window(now, "month")),
        last_month=monthly_block(period_window(now, "month", 1)),
        weekly_team_targets=weekly_targets,
        monthly_team_targets=monthly_targets,
        active_bdrs=active_bdrs,
    )


def _kpi_metric(current: float, target: float) -> KpiMetric:
    return KpiMetric(
        current=current, target=target, status=classify_against_target(current, target)
    )


def _activity_kpi(
    activity_logs: Sequence[ActivityLog],
    activity_type: ActivityType,
    window: TimeWindow,
    target: float,
) -> KpiMetric:
    return _kpi_metric(count_activities(activity_logs, activity_type, window), target)


def _count_sales(finance_entries: Sequence[FinanceEntry], window: TimeWindow) -> int:
    # Every finance entry is a sale regardless of payment status; dated by invoice when known.
    return sum(1 for entry in finance_entries if window.contains(entry.sale_date))


def _conversion_kpi(
    activity_logs: Sequence[ActivityLog],
    finance_entries: Sequence[FinanceEntry],
    window: TimeWindow,
) -> KpiMetric:
    calls = count_activities(activity_logs, ActivityType.CALL_COMPLETED, window)
    sales = _count_sales(finance_entries, window)
    rate = (sales / calls) * 100 if calls else 0.0
    return KpiMetric(
        current=round_half_up(rate, 2),
        target=CONVERSION_RATE_TARGET,
        status=_conversion_status(rate),
    )


def _conversion_status(rate: float) -> KpiStatus:
    if rate >= 25:
        return "excellent"
    if rate >= 18:
        return "good"
    if rate >= 12:
        return "needs_attention"
    return "critical"
