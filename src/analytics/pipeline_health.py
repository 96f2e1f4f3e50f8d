from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from src.analytics.activity import (
    count_activities,
    finance_entries_in,
    logs_of_type,
    round_half_up,
)
from src.models.reporting import (
    CALL_BOOKED_STATUS,
    CALLS_CATEGORY,
    CLOSED_LIST_STATUSES,
    ActivityLog,
    ActivityType,
    FinanceEntry,
    PipelineItem,
)
from src.schemas.reporting import (
    ActiveListsOut,
    ConversionFunnel,
    PendingAgreements,
    PipelineHealthResult,
    UpcomingCalls,
)
from src.shared.time import TimeWindow, add_days, end_of_week, ensure_aware

SMALL_LIST_RANGE = (3, 8)
MEDIUM_LIST_RANGE = (9, 15)
LARGE_LIST_MIN = 16


def assess_pipeline_health(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    now: datetime,
    finance_entries: Sequence[FinanceEntry],
    window: Optional[TimeWindow] = None,
) -> PipelineHealthResult:
    """Build the calls -> proposals -> agreements -> lists -> sales funnel.

    ``sales_generated`` is the number of finance entries in scope and never looks
    at pipeline ``Sold`` statuses. With ``window`` set, activity stages and finance
    entries are limited to it; otherwise every record up to ``now`` counts, and
    undated records stay in scope.
    """
    funnel = ConversionFunnel(
        calls_booked=sum(
            1
            for item in pipeline_items
            if item.category == CALLS_CATEGORY and item.status == CALL_BOOKED_STATUS
        ),
        calls_conducted=_stage_count(activity_logs, ActivityType.CALL_COMPLETED, now, window),
        proposals_sent=_stage_count(activity_logs, ActivityType.PROPOSAL_SENT, now, window),
        agreements_signed=_stage_count(activity_logs, ActivityType.AGREEMENT_SENT, now, window),
        lists_sent=_stage_count(activity_logs, ActivityType.PARTNER_LIST_SENT, now, window),
        sales_generated=_sales_count(finance_entries, now, window),
    )
    return PipelineHealthResult(
        upcoming_calls=_upcoming_calls(pipeline_items, now),
        pending_agreements=_pending_agreements(pipeline_items, now),
        active_lists_out=_active_lists_out(pipeline_items),
        conversion_funnel=funnel,
    )


def count_overdue_partner_lists(pipeline_items: Sequence[PipelineItem], now: datetime) -> int:
    reference = ensure_aware(now)
    return sum(
        1
        for item in pipeline_items
        if item.expected_close_date is not None
        and ensure_aware(item.expected_close_date) < reference
        and item.partner_list_sent_date is None
        and "Agreement" in item.status
    )


def count_calls_scheduled_between(
    pipeline_items: Sequence[PipelineItem], after: datetime, until: Optional[datetime]
) -> int:
    """Calls dated strictly after ``after`` and no later than ``until`` (open-ended when None)."""
    lower = ensure_aware(after)
    upper = ensure_aware(until) if until is not None else None
    count = 0
    for item in pipeline_items:
        if item.call_date is None:
            continue
        call_date = ensure_aware(item.call_date)
        if call_date <= lower:
            continue
        if upper is not None and call_date > upper:
            continue
        count += 1
    return count


def _upcoming_calls(pipeline_items: Sequence[PipelineItem], now: datetime) -> UpcomingCalls:
    next_week_end = end_of_week(add_days(now, 7))
    following_week_end = end_of_week(add_days(now, 14))
    return UpcomingCalls(
        next_week=count_calls_scheduled_between(pipeline_items, now, next_week_end),
        next_2_weeks=count_calls_scheduled_between(pipeline_items, next_week_end, following_week_end),
        total=count_calls_scheduled_between(pipeline_items, now, None),
    )


def _pending_agreements(pipeline_items: Sequence[PipelineItem], now: datetime) -> PendingAgreements:
    return PendingAgreements(
        proposals_awaiting_response=sum(
            1
            for item in pipeline_items
            if "Proposal" in item.status and "Agreement" not in item.status
        ),
        agreements_awaiting_lists=sum(
            1
            for item in pipeline_items
            if "Agreement" in item.status and item.partner_list_sent_date is None
        ),
        overdue_partner_lists=count_overdue_partner_lists(pipeline_items, now),
    )


def _active_lists_out(pipeline_items: Sequence[PipelineItem]) -> ActiveListsOut:
    open_lists = [
        item
        for item in pipeline_items
        if item.partner_list_sent_date is not None and item.status not in CLOSED_LIST_STATUSES
    ]
    sized: List[int] = [item.partner_list_size for item in open_lists if item.partner_list_size]
    average_size = sum(sized) / len(sized) if sized else 0.0
    return ActiveListsOut(
        total=len(open_lists),
        small_lists=sum(1 for size in sized if SMALL_LIST_RANGE[0] <= size <= SMALL_LIST_RANGE[1]),
        medium_lists=sum(1 for size in sized if MEDIUM_LIST_RANGE[0] <= size <= MEDIUM_LIST_RANGE[1]),
        large_lists=sum(1 for size in sized if size >= LARGE_LIST_MIN),
        average_list_size=round_half_up(average_size, 1),
    )


def _stage_count(
    activity_logs: Sequence[ActivityLog],
    activity_type: ActivityType,
    now: datetime,
    window: Optional[TimeWindow],
) -> int:
    if window is not None:
        return count_activities(activity_logs, activity_type, window)
    return sum(
        1 for log in logs_of_type(activity_logs, activity_type) if _not_after(log.timestamp, now)
    )


def _sales_count(
    finance_entries: Sequence[FinanceEntry], now: datetime, window: Optional[TimeWindow]
) -> int:
    if window is not None:
        return len(finance_entries_in(finance_entries, window))
    return sum(1 for entry in finance_entries if _not_after(entry.created_at, now))


def _not_after(value: Optional[datetime], now: datetime) -> bool:
    return value is None or ensure_aware(value) <= ensure_aware(now)
