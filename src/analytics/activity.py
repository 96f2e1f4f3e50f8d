from __future__ import annotations

import math
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from src.models.reporting import ActivityLog, ActivityType, FinanceEntry, PipelineItem
from src.schemas.reporting import KpiStatus, WindowBounds
from src.shared.time import TimeWindow

CENTS = Decimal("0.01")


def logs_of_type(
    activity_logs: Iterable[ActivityLog],
    activity_type: ActivityType,
    window: Optional[TimeWindow] = None,
) -> List[ActivityLog]:
    matches: List[ActivityLog] = []
    for log in activity_logs:
        if log.activity_type is not activity_type:
            continue
        if window is not None and not window.contains(log.timestamp):
            continue
        matches.append(log)
    return matches


def count_activities(
    activity_logs: Iterable[ActivityLog],
    activity_type: ActivityType,
    window: Optional[TimeWindow] = None,
) -> int:
    return len(logs_of_type(activity_logs, activity_type, window))


def count_activities_by_bdr(
    activity_logs: Iterable[ActivityLog], activity_type: ActivityType
) -> Dict[str, int]:
    counts: Dict[str, int] = defaultdict(int)
    for log in activity_logs:
        if log.bdr and log.activity_type is activity_type:
            counts[log.bdr] += 1
    return counts


def finance_entries_in(
    finance_entries: Iterable[FinanceEntry], window: Optional[TimeWindow]
) -> List[FinanceEntry]:
    if window is None:
        return list(finance_entries)
    return [entry for entry in finance_entries if window.contains(entry.created_at)]


def sum_revenue(finance_entries: Iterable[FinanceEntry]) -> Decimal:
    return sum((entry.revenue_amount for entry in finance_entries), Decimal("0"))


def collect_bdrs(
    pipeline_items: Sequence[PipelineItem],
    activity_logs: Sequence[ActivityLog],
    finance_entries: Sequence[FinanceEntry] = (),
) -> List[str]:
    """BDR names in first-seen order across all three record streams."""
    seen: Dict[str, None] = {}
    for item in pipeline_items:
        if item.bdr:
            seen.setdefault(item.bdr, None)
    for log in activity_logs:
        if log.bdr:
            seen.setdefault(log.bdr, None)
    for entry in finance_entries:
        if entry.bdr:
            seen.setdefault(entry.bdr, None)
    return list(seen)


def active_bdrs_in(activity_logs: Iterable[ActivityLog], window: TimeWindow) -> List[str]:
    seen: Dict[str, None] = {}
    for log in activity_logs:
        if log.bdr and window.contains(log.timestamp):
            seen.setdefault(log.bdr, None)
    return list(seen)


def classify_against_target(current: float, target: float) -> KpiStatus:
    if current >= target * 1.25:
        return "excellent"
    if current >= target:
        return "good"
    if current >= target * 0.5:
        return "needs_attention"
    return "critical"


def to_bounds(window: TimeWindow) -> WindowBounds:
    return WindowBounds(start=window.start, end=window.end)


def percent_change(current: float, previous: float) -> float:
    if previous:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves towards positive infinity, so -87.5 becomes -87 and 2.5 becomes 3."""
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)
