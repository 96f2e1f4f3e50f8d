from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import Field

from src.models.reporting import ActivityLog, BdrTargets, FinanceEntry, KpiTargets, PipelineItem
from src.shared.base import BaseSchema

KpiStatus = Literal["excellent", "good", "needs_attention", "critical"]
PerformanceClassification = Literal["top_performer", "needs_support"]
ActionPriority = Literal["urgent", "high", "medium"]
ActionCategory = Literal["calls", "agreements", "lists", "team"]


class WindowBounds(BaseSchema):
    start: datetime
    end: datetime


class KpiMetric(BaseSchema):
    current: float
    target: float
    status: KpiStatus


class KpiResult(BaseSchema):
    steady_call_volume: KpiMetric
    agreement_rate: KpiMetric
    lists_out: KpiMetric
    window: WindowBounds


class TeamTargets(BaseSchema):
    calls: float
    agreements: float
    lists_out: float
    sales: float


class PeriodKpis(BaseSchema):
    call_volume: KpiMetric
    agreements: KpiMetric
    lists_out: KpiMetric
    sales: Optional[KpiMetric] = None
    conversion_rate: Optional[KpiMetric] = None
    window: WindowBounds


class PeriodKpiReport(BaseSchema):
    this_week: PeriodKpis
    last_week: PeriodKpis
    this_month: PeriodKpis
    last_month: PeriodKpis
    weekly_team_targets: TeamTargets
    monthly_team_targets: TeamTargets
    active_bdrs: List[str]


class BdrPerformanceRow(BaseSchema):
    rank: int
    bdr: str
    sales_count: int
    revenue: Decimal
    calls: int
    agreements: int
    lists: int
    classification: PerformanceClassification


class BenchmarkMetrics(BaseSchema):
    team_conversion_rate: float
    avg_calls_per_bdr: float
    avg_agreements_per_bdr: float
    avg_lists_per_bdr: float
    avg_sales_per_bdr: float
    avg_revenue_per_bdr: Decimal
    total_sales: int
    total_revenue: Decimal


class TeamPerformanceResult(BaseSchema):
    total_bdrs: int
    active_bdrs: int
    top_performers: List[str]
    needs_support: List[str]
    benchmark_metrics: BenchmarkMetrics
    rankings: List[BdrPerformanceRow]


class ConversionFunnel(BaseSchema):
    calls_booked: int
    calls_conducted: int
    proposals_sent: int
    agreements_signed: int
    lists_sent: int
    sales_generated: int


class UpcomingCalls(BaseSchema):
    next_week: int
    next_2_weeks: int
    total: int


class PendingAgreements(BaseSchema):
    proposals_awaiting_response: int
    agreements_awaiting_lists: int
    overdue_partner_lists: int


class ActiveListsOut(BaseSchema):
    total: int
    small_lists: int
    medium_lists: int
    large_lists: int
    average_list_size: float


class PipelineHealthResult(BaseSchema):
    upcoming_calls: UpcomingCalls
    pending_agreements: PendingAgreements
    active_lists_out: ActiveListsOut
    conversion_funnel: ConversionFunnel


class WeeklyCallVolumePoint(BaseSchema):
    week: str
    period_start: datetime
    period_end: datetime
    calls: int
    target: int
    variance: int


class MonthlyAgreementsPoint(BaseSchema):
    month: str
    period_start: datetime
    period_end: datetime
    agreements: int
    target: int
    variance: int


class QuarterlyListsOutPoint(BaseSchema):
    quarter: str
    period_start: datetime
    period_end: datetime
    lists: int
    conversions: int
    revenue: Decimal


class TrendResult(BaseSchema):
    weekly_call_volume: List[WeeklyCallVolumePoint]
    monthly_agreements: List[MonthlyAgreementsPoint]
    quarterly_lists_out: List[QuarterlyListsOutPoint]


class FinancialSummaryResult(BaseSchema):
    total_revenue: Decimal
    monthly_revenue: Decimal
    quarterly_revenue: Decimal
    total_sales: int
    average_deal_size: Decimal
    revenue_per_bdr: Decimal
    revenue_per_call: Decimal
    revenue_per_list: Decimal
    revenue_by_status: Dict[str, Decimal]
    revenue_by_month: Dict[str, Decimal]


class CallCompletion(BaseSchema):
    id: Optional[int | str] = None
    bdr: Optional[str] = None
    timestamp: datetime
    pipeline_item_id: Optional[int | str] = None
    lead_id: Optional[int | str] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    description: str
    is_automatic: bool = False


class CallMetrics(BaseSchema):
    total: int
    manual: int
    automatic: int
    by_bdr: Dict[str, int]
    by_period: Dict[str, int]
    conversion_rate: float
    average_calls_per_bdr: float


class CallPeriodCount(BaseSchema):
    count: int
    period: str


class CallVolumeTrends(BaseSchema):
    this_week: CallPeriodCount
    last_week: CallPeriodCount
    this_month: CallPeriodCount
    last_month: CallPeriodCount
    weekly_change_pct: float
    monthly_change_pct: float


class CriticalAction(BaseSchema):
    priority: ActionPriority
    category: ActionCategory
    action: str
    assigned_to: Optional[str] = None
    metric: Optional[float] = None
    deadline: Optional[str] = None


class PredictiveInsights(BaseSchema):
    expected_calls_next_week: int
    expected_agreements_next_month: int
    expected_revenue_next_quarter: int
    risk_factors: List[str]
    opportunities: List[str]


class ReportingSnapshot(BaseSchema):
    pipeline_items: List[PipelineItem] = Field(default_factory=list)
    activity_logs: List[ActivityLog] = Field(default_factory=list)
    finance_entries: List[FinanceEntry] = Field(default_factory=list)
    targets: KpiTargets = Field(default_factory=KpiTargets)
    bdr_targets: BdrTargets = Field(default_factory=BdrTargets)
    as_of: Optional[datetime] = None


class ExecutiveDashboard(BaseSchema):
    kpis: KpiResult
    period_kpis: PeriodKpiReport
    team_performance: TeamPerformanceResult
    pipeline_health: PipelineHealthResult
    trends: TrendResult
    financial_summary: FinancialSummaryResult
    call_trends: CallVolumeTrends
    critical_actions: List[CriticalAction]
    predictive_insights: PredictiveInsights
