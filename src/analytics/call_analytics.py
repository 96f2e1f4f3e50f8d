from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Sequence

from src.analytics.activity import count_activities, logs_of_type, percent_change, round_half_up
from src.models.reporting import CALL_BOOKED_STATUS, ActivityLog, ActivityType
from src.schemas.reporting import CallCompletion, CallMetrics, CallPeriodCount, CallVolumeTrends
from src.shared.time import TimeWindow, ensure_aware, period_window, start_of_week

# A booked call that moves to one of these statuses did not happen.
NOT_HELD_STATUSES = ("no show", "rescheduled")
DUPLICATE_WINDOW_SECONDS = 60


def detect_automatic_call_completions(
    activity_logs: Sequence[ActivityLog], window: TimeWindow
) -> List[CallCompletion]:
    """Status changes out of "Call Booked" imply the call took place."""
    completions: List[CallCompletion] = []
    for log in logs_of_type(activity_logs, ActivityType.STATUS_CHANGE, window):
        if log.previous_status != CALL_BOOKED_STATUS or not log.new_status:
            continue
        if log.new_status == CALL_BOOKED_STATUS or log.new_status.lower() in NOT_HELD_STATUSES:
            continue
        completions.append(
            CallCompletion(
                id=log.id,
                bdr=log.bdr,
                timestamp=log.timestamp,
                pipeline_item_id=log.pipeline_item_id,
                lead_id=log.lead_id,
                previous_status=log.previous_status,
                new_status=log.new_status,
                description=f"Automatic call completion: {log.previous_status} -> {log.new_status}",
                is_automatic=True,
            )
        )
    return completions


def get_all_call_completions(
    activity_logs: Sequence[ActivityLog], window: TimeWindow
) -> List[CallCompletion]:
    manual = [
        CallCompletion(
            id=log.id,
            bdr=log.bdr,
            timestamp=log.timestamp,
            pipeline_item_id=log.pipeline_item_id,
            lead_id=log.lead_id,
            description="Call completed",
        )
        for log in logs_of_type(activity_logs, ActivityType.CALL_COMPLETED, window)
    ]
    unique: List[CallCompletion] = []
    for completion in manual + detect_automatic_call_completions(activity_logs, window):
        if not any(_is_duplicate(completion, kept) for kept in unique):
            unique.append(completion)
    return unique


def calculate_call_metrics(
    activity_logs: Sequence[ActivityLog], window: TimeWindow
) -> CallMetrics:
    completions = get_all_call_completions(activity_logs, window)

    by_bdr: Dict[str, int] = defaultdict(int)
    by_period: Dict[str, int] = defaultdict(int)
    for completion in completions:
        if completion.bdr:
            by_bdr[completion.bdr] += 1
        timestamp = completion.timestamp
        by_period[f"day-{timestamp:%Y-%m-%d}"] += 1
        by_period[f"week-{start_of_week(timestamp):%Y-%m-%d}"] += 1
        by_period[f"month-{timestamp:%Y-%m}"] += 1

    agreements = count_activities(activity_logs, ActivityType.AGREEMENT_SENT, window)
    total = len(completions)
    automatic = sum(1 for completion in completions if completion.is_automatic)
    return CallMetrics(
        total=total,
        manual=total - automatic,
        automatic=automatic,
        by_bdr=dict(by_bdr),
        by_period=dict(by_period),
        conversion_rate=(agreements / total) * 100 if total else 0.0,
        average_calls_per_bdr=total / len(by_bdr) if by_bdr else 0.0,
    )


def calculate_call_volume_trends(
    activity_logs: Sequence[ActivityLog], now: datetime
) -> CallVolumeTrends:
    this_week = period_window(now, "week")
    last_week = period_window(now, "week", 1)
    this_month = period_window(now, "month")
    last_month = period_window(now, "month", 1)

    this_week_calls = len(get_all_call_completions(activity_logs, this_week))
    last_week_calls = len(get_all_call_completions(activity_logs, last_week))
    this_month_calls = len(get_all_call_completions(activity_logs, this_month))
    last_month_calls = len(get_all_call_completions(activity_logs, last_month))

    return CallVolumeTrends(
        this_week=CallPeriodCount(count=this_week_calls, period=_week_label(this_week)),
        last_week=CallPeriodCount(count=last_week_calls, period=_week_label(last_week)),
        this_month=CallPeriodCount(count=this_month_calls, period=f"{this_month.start:%B %Y}"),
        last_month=CallPeriodCount(count=last_month_calls, period=f"{last_month.start:%B %Y}"),
        weekly_change_pct=round_half_up(percent_change(this_week_calls, last_week_calls), 1),
        monthly_change_pct=round_half_up(percent_change(this_month_calls, last_month_calls), 1),
    )


def _is_duplicate(candidate: CallCompletion, kept: CallCompletion) -> bool:
    if candidate.pipeline_item_id is None or candidate.pipeline_item_id != kept.pipeline_item_id:
        return False
    gap = abs((ensure_aware(candidate.timestamp) - ensure_aware(kept.timestamp)).total_seconds())
    return gap < DUPLICATE_WINDOW_SECONDS


def _week_label(window: TimeWindow) -> str:
    return f"{window.start:%b} {window.start.day} - {window.end:%b} {window.end.day}"
