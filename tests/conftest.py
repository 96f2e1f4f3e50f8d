from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import pytest
from fastapi.testclient import TestClient

from src.main import create_app
from src.models.reporting import ActivityLog, FinanceEntry, PipelineItem


# Tuesday; the ISO week runs from Monday 2025-07-28 to Sunday 2025-08-03.
NOW = datetime(2025, 7, 29, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def make_log() -> Callable[..., ActivityLog]:
    counter = {"next_id": 1}

    def _make(
        activity_type: str,
        timestamp: Optional[datetime] = NOW,
        bdr: Optional[str] = "Alice",
        **fields: Any,
    ) -> ActivityLog:
        log_id = fields.pop("id", counter["next_id"])
        counter["next_id"] += 1
        return ActivityLog(
            id=log_id, activity_type=activity_type, timestamp=timestamp, bdr=bdr, **fields
        )

    return _make


@pytest.fixture()
def make_entry() -> Callable[..., FinanceEntry]:
    def _make(
        bdr: str = "Alice",
        gbp_amount: Optional[float] = 1000.0,
        created_at: Optional[datetime] = NOW,
        **fields: Any,
    ) -> FinanceEntry:
        return FinanceEntry(bdr=bdr, gbp_amount=gbp_amount, created_at=created_at, **fields)

    return _make


@pytest.fixture()
def make_item() -> Callable[..., PipelineItem]:
    def _make(status: str = "Call Booked", bdr: Optional[str] = "Alice", **fields: Any) -> PipelineItem:
        return PipelineItem(status=status, bdr=bdr, **fields)

    return _make


@pytest.fixture()
def days_from_now() -> Callable[[float], datetime]:
    def _shift(days: float) -> datetime:
        return NOW + timedelta(days=days)

    return _shift


@pytest.fixture()
def client() -> TestClient:
    app = create_app()
    return TestClient(app)
