from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_reporting_service
from src.schemas.reporting import ExecutiveDashboard, KpiResult, ReportingSnapshot
from src.services.reporting_service import ReportingService
from src.shared.response import Meta, ResponseEnvelope


router = APIRouter(prefix="/reporting", tags=["reporting"])

CALCULATION_VERSION = "v1"


def _record_counts(snapshot: ReportingSnapshot) -> dict[str, int]:
    return {
        "pipelineItems": len(snapshot.pipeline_items),
        "activityLogs": len(snapshot.activity_logs),
        "financeEntries": len(snapshot.finance_entries),
    }


@router.post("/executive-dashboard")
def executive_dashboard(
    snapshot: ReportingSnapshot,
    service: ReportingService = Depends(get_reporting_service),
) -> ResponseEnvelope[ExecutiveDashboard]:
    now = service.resolve_now(snapshot)
    data = service.build_executive_dashboard(snapshot, now)
    meta = Meta(
        as_of=now.isoformat(),
        source="crm_snapshot",
        time_window="rolling",
        calculation_version=CALCULATION_VERSION,
        timezone=service.settings.reporting_timezone,
        record_counts=_record_counts(snapshot),
    )
    return ResponseEnvelope(data=data, meta=meta)


@router.post("/kpis")
def kpis(
    snapshot: ReportingSnapshot,
    window: Optional[str] = Query(default=None),
    service: ReportingService = Depends(get_reporting_service),
) -> ResponseEnvelope[KpiResult]:
    now = service.resolve_now(snapshot)
    data = service.calculate_kpis(snapshot, window, now)
    meta = Meta(
        as_of=now.isoformat(),
        source="crm_snapshot",
        time_window=window or service.settings.kpi_default_window,
        calculation_version=CALCULATION_VERSION,
        timezone=service.settings.reporting_timezone,
        record_counts=_record_counts(snapshot),
    )
    return ResponseEnvelope(data=data, meta=meta)
