from __future__ import annotations

from src.core.config import get_settings
from src.services.reporting_service import ReportingService


def get_reporting_service() -> ReportingService:
    return ReportingService(settings=get_settings())
