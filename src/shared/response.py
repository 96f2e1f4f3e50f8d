from __future__ import annotations

from typing import Generic, Optional, TypeVar

from src.shared.base import BaseSchema


T = TypeVar("T")


class Meta(BaseSchema):
    as_of: str
    source: str
    time_window: str
    calculation_version: str
    timezone: Optional[str] = None
    record_counts: Optional[dict[str, int]] = None


class ResponseEnvelope(BaseSchema, Generic[T]):
    data: T
    meta: Optional[Meta] = None
