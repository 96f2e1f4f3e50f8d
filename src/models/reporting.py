from __future__ import annotations

import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import Field, TypeAdapter, ValidationError, ValidationInfo, field_validator

from src.shared.base import RecordModel

logger = logging.getLogger(__name__)

_DATETIME_ADAPTER = TypeAdapter(datetime)

SOLD_STATUS = "Sold"
CALL_BOOKED_STATUS = "Call Booked"
CALLS_CATEGORY = "Calls"
CLOSED_LIST_STATUSES = ("Sold", "List Out - Not Sold", "Free Q&A Offered")


class ActivityType(str, Enum):
    CALL_COMPLETED = "Call_Completed"
    CALL_BOOKED = "Call_Booked"
    AGREEMENT_SENT = "Agreement_Sent"
    PARTNER_LIST_SENT = "Partner_List_Sent"
    PROPOSAL_SENT = "Proposal_Sent"
    STATUS_CHANGE = "Status_Change"
    LEAD_CREATED = "Lead_Created"
    NOTE_ADDED = "Note_Added"
    UNKNOWN = "Unknown"

    @classmethod
    def _missing_(cls, value: object) -> "ActivityType":
        # Matching is exact: "call_completed" is not "Call_Completed".
        return cls.UNKNOWN


def parse_optional_datetime(value: Any, field_name: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    try:
        return _DATETIME_ADAPTER.validate_python(value)
    except ValidationError:
        logger.warning("Skipping unparseable %s value: %r", field_name, value)
        return None


class PipelineItem(RecordModel):
    id: Optional[int | str] = None
    status: str = ""
    bdr: Optional[str] = None
    category: Optional[str] = None
    call_date: Optional[datetime] = None
    expected_close_date: Optional[datetime] = None
    partner_list_sent_date: Optional[datetime] = None
    partner_list_size: Optional[int] = None
    last_updated: Optional[datetime] = None

    @field_validator(
        "call_date", "expected_close_date", "partner_list_sent_date", "last_updated", mode="before"
    )
    @classmethod
    def _parse_dates(cls, value: Any, info: ValidationInfo) -> Optional[datetime]:
        return parse_optional_datetime(value, info.field_name)

    @field_validator("bdr", mode="before")
    @classmethod
    def _parse_bdr(cls, value: Any) -> Optional[str]:
        return bdr_name(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> str:
        return value or ""


class ActivityLog(RecordModel):
    id: Optional[int | str] = None
    activity_type: ActivityType = ActivityType.UNKNOWN
    timestamp: Optional[datetime] = None
    bdr: Optional[str] = None
    pipeline_item_id: Optional[int | str] = None
    lead_id: Optional[int | str] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Optional[datetime]:
        return parse_optional_datetime(value, "timestamp")

    @field_validator("bdr", mode="before")
    @classmethod
    def _parse_bdr(cls, value: Any) -> Optional[str]:
        return bdr_name(value)

    @field_validator("activity_type", mode="before")
    @classmethod
    def _parse_activity_type(cls, value: Any) -> ActivityType:
        if isinstance(value, ActivityType):
            return value
        if not isinstance(value, str):
            return ActivityType.UNKNOWN
        return ActivityType(value)


class FinanceEntry(RecordModel):
    id: Optional[int | str] = None
    bdr: str = ""
    gbp_amount: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    invoice_date: Optional[datetime] = None
    status: Optional[str] = None
    month: Optional[str] = None

    @field_validator("created_at", "invoice_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any, info: ValidationInfo) -> Optional[datetime]:
        return parse_optional_datetime(value, info.field_name)

    @field_validator("bdr", mode="before")
    @classmethod
    def _parse_bdr(cls, value: Any) -> str:
        return bdr_name(value) or ""

    @property
    def revenue_amount(self) -> Decimal:
        """Booked GBP amount; a missing amount is a zero-value sale, not an excluded one."""
        return self.gbp_amount if self.gbp_amount is not None else Decimal("0")

    @property
    def sale_date(self) -> Optional[datetime]:
        return self.invoice_date or self.created_at


class KpiTargets(RecordModel):
    steady_call_volume: float = Field(default=0, ge=0)
    agreement_rate: float = Field(default=0, ge=0)
    lists_out: float = Field(default=0, ge=0)


class BdrTargets(RecordModel):
    weekly_calls: float = Field(default=10, ge=0)
    weekly_agreements: float = Field(default=3, ge=0)
    weekly_lists_out: float = Field(default=1, ge=0)
    weekly_sales: float = Field(default=0.5, ge=0)
    monthly_calls: float = Field(default=40, ge=0)
    monthly_agreements: float = Field(default=12, ge=0)
    monthly_lists_out: float = Field(default=4, ge=0)
    monthly_sales: float = Field(default=2, ge=0)


def bdr_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        name = value.get("name")
        return str(name) if name else None
    return str(value) or None
