from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from src.analytics.call_analytics import calculate_call_volume_trends
from src.analytics.financial_summary import calculate_financial_summary
from src.analytics.insights import generate_predictive_insights, identify_critical_actions
from src.analytics.kpi import calculate_kpis, calculate_period_kpis
from src.analytics.pipeline_health import assess_pipeline_health
from src.analytics.team_performance import calculate_team_performance
from src.analytics.trends import calculate_trends
from src.core.config import Settings
from src.schemas.reporting import ExecutiveDashboard, KpiResult, ReportingSnapshot
from src.shared.time import parse_window_spec

logger = logging.getLogger(__name__)


class ReportingService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def resolve_now(self, snapshot: ReportingSnapshot, now: Optional[datetime] = None) -> datetime:
        if now is not None:
            return now
        if snapshot.as_of is not None:
            return snapshot.as_of
        return datetime.now(ZoneInfo(self.settings.reporting_timezone))

    def calculate_kpis(
        self,
        snapshot: ReportingSnapshot,
        window_spec: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> KpiResult:
        reference = self.resolve_now(snapshot, now)
        window = parse_window_spec(window_spec or self.settings.kpi_default_window, reference)
        result = calculate_kpis(
            snapshot.pipeline_items, snapshot.activity_logs, snapshot.targets, reference, window
        )
        logger.info(
            "Calculated KPIs window=%s..%s logs=%d",
            window.start.isoformat(),
            window.end.isoformat(),
            len(snapshot.activity_logs),
        )
        return result

    def build_executive_dashboard(
        self, snapshot: ReportingSnapshot, now: Optional[datetime] = None
    ) -> ExecutiveDashboard:
        reference = self.resolve_now(snapshot, now)
        pipeline_items = snapshot.pipeline_items
        activity_logs = snapshot.activity_logs
        finance_entries = snapshot.finance_entries

        team_performance = calculate_team_performance(
            pipeline_items, activity_logs, finance_entries, reference
        )
        trends = calculate_trends(
            pipeline_items,
            activity_logs,
            reference,
            finance_entries,
            quarters=self.settings.trend_quarters,
            weeks=self.settings.trend_weeks,
            months=self.settings.trend_months,
            weekly_call_target=self.settings.weekly_call_target,
            monthly_agreement_target=self.settings.monthly_agreement_target,
        )
        dashboard = ExecutiveDashboard(
            kpis=self.calculate_kpis(snapshot, now=reference),
            period_kpis=calculate_period_kpis(
                pipeline_items, activity_logs, snapshot.bdr_targets, reference, finance_entries
            ),
            team_performance=team_performance,
            pipeline_health=assess_pipeline_health(
                pipeline_items, activity_logs, reference, finance_entries
            ),
            trends=trends,
            financial_summary=calculate_financial_summary(
                pipeline_items, activity_logs, reference, finance_entries
            ),
            call_trends=calculate_call_volume_trends(activity_logs, reference),
            critical_actions=identify_critical_actions(
                pipeline_items, activity_logs, team_performance, reference
            ),
            predictive_insights=generate_predictive_insights(
                pipeline_items, activity_logs, trends, reference
            ),
        )
        logger.info(
            "Built executive dashboard as_of=%s pipeline=%d logs=%d finance=%d",
            reference.isoformat(),
            len(pipeline_items),
            len(activity_logs),
            len(finance_entries),
        )
        return dashboard
