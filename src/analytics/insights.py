from __future__ import annotations

from collections import Counter
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Sequence

from src.analytics.activity import round_half_up
from src.analytics.call_analytics import get_all_call_completions
from src.analytics.pipeline_health import count_calls_scheduled_between, count_overdue_partner_lists
from src.models.reporting import ActivityLog, PipelineItem
from src.schemas.reporting import (
    CriticalAction,
    PredictiveInsights,
    TeamPerformanceResult,
    TrendResult,
)
from src.shared.time import TimeWindow, add_days, start_of_week, window_ending_at

LOW_WEEKLY_CALLS_THRESHOLD = 25
MIN_UPCOMING_CALLS_NEXT_WEEK = 30
MIN_UPCOMING_CALLS_NEXT_2_WEEKS = 40
LOW_CALL_WEEK_RATIO = 0.8
OPPORTUNITY_LOOKBACK_DAYS = 30

PRIORITY_ORDER = {"urgent": 3, "high": 2, "medium": 1}


def identify_critical_actions(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    team_performance: TeamPerformanceResult,
    now: datetime,
) -> List[CriticalAction]:
    actions: List[CriticalAction] = []

    overdue = count_overdue_partner_lists(pipeline_items, now)
    if overdue > 0:
        actions.append(
            CriticalAction(
                priority="urgent",
                category="lists",
                action=f"Send {overdue} overdue partner lists immediately",
                metric=overdue,
                deadline="Today",
            )
        )

    week_to_date = TimeWindow(start=start_of_week(now), end=now)
    calls_this_week = len(get_all_call_completions(activity_logs, week_to_date))
    if calls_this_week < LOW_WEEKLY_CALLS_THRESHOLD:
        actions.append(
            CriticalAction(
                priority="high",
                category="calls",
                action="Boost call volume - current week significantly below target",
                metric=calls_this_week,
                deadline="End of week",
            )
        )

    if team_performance.needs_support:
        actions.append(
            CriticalAction(
                priority="medium",
                category="team",
                action="Provide support to underperforming BDRs: "
                + ", ".join(team_performance.needs_support),
                metric=len(team_performance.needs_support),
                deadline="This week",
            )
        )

    upcoming = count_calls_scheduled_between(pipeline_items, now, add_days(now, 7))
    if upcoming < MIN_UPCOMING_CALLS_NEXT_WEEK:
        actions.append(
            CriticalAction(
                priority="high",
                category="calls",
                action="Schedule more calls for next week to maintain pipeline",
                metric=upcoming,
                deadline="End of week",
            )
        )

    # sorted() is stable, so equal priorities keep their discovery order.
    return sorted(actions, key=lambda action: -PRIORITY_ORDER[action.priority])


def generate_predictive_insights(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    trends: TrendResult,
    now: datetime,
) -> PredictiveInsights:
    weekly = trends.weekly_call_volume
    monthly = trends.monthly_agreements
    quarterly = trends.quarterly_lists_out

    avg_weekly_calls = sum(point.calls for point in weekly) / len(weekly) if weekly else 0.0
    avg_monthly_agreements = (
        sum(point.agreements for point in monthly) / len(monthly) if monthly else 0.0
    )
    avg_quarterly_revenue = (
        sum((point.revenue for point in quarterly), Decimal("0")) / len(quarterly)
        if quarterly
        else Decimal("0")
    )

    risk_factors: List[str] = []
    low_call_weeks = sum(1 for point in weekly if point.calls < point.target * LOW_CALL_WEEK_RATIO)
    if low_call_weeks > 1:
        risk_factors.append("Declining call volume trend could impact future pipeline")
    upcoming = count_calls_scheduled_between(pipeline_items, now, add_days(now, 14))
    if upcoming < MIN_UPCOMING_CALLS_NEXT_2_WEEKS:
        risk_factors.append("Insufficient upcoming calls scheduled for next 2 weeks")

    opportunities: List[str] = []
    recent = window_ending_at(now, OPPORTUNITY_LOOKBACK_DAYS)
    activity_by_bdr = Counter(
        log.bdr for log in activity_logs if log.bdr and recent.contains(log.timestamp)
    )
    if activity_by_bdr:
        top_bdr, _ = activity_by_bdr.most_common(1)[0]
        opportunities.append(
            f"{top_bdr} showing strong activity - consider replicating their approach"
        )

    return PredictiveInsights(
        expected_calls_next_week=int(round_half_up(avg_weekly_calls * 1.1)),
        expected_agreements_next_month=int(round_half_up(avg_monthly_agreements * 1.05)),
        expected_revenue_next_quarter=int(
            (avg_quarterly_revenue * Decimal("1.1")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        ),
        risk_factors=risk_factors,
        opportunities=opportunities,
    )
