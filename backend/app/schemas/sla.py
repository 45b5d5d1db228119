"""Pydantic schemas for the SLA engine API."""
import uuid
from datetime import datetime

from pydantic import BaseModel


class SlaCheckResponse(BaseModel):
    success: bool
    shops_checked: int
    alerts_created: int


class DelayAssessmentOut(BaseModel):
    case_id: uuid.UUID
    case_number: str
    type_key: str
    status_key: str
    created_at: datetime
    max_processing_days: int
    alert_days: int
    elapsed_days: float
    remaining_days: float
    whole_days_remaining: int
    current_day_index: int
    progress_percent: float
    status_class: str
    is_paused: bool
    is_overdue: bool
    should_alert: bool


class TimelineMarkerOut(BaseModel):
    day: int
    date: datetime
    state: str  # past, current, overdue, upcoming

    model_config = {"from_attributes": True}


class TerminalMarkerOut(BaseModel):
    status_key: str
    label: str

    model_config = {"from_attributes": True}


class TimelineOut(BaseModel):
    case_id: uuid.UUID
    max_processing_days: int
    current_day: int
    whole_days_remaining: int
    progress_percent: float
    is_overdue: bool
    is_paused: bool
    markers: list[TimelineMarkerOut]
    terminal: TerminalMarkerOut | None


class ShopSlaSummary(BaseModel):
    shop_id: uuid.UUID
    active_count: int
    paused_count: int
    approaching_count: int
    overdue_count: int
    late_rate: float  # overdue / running (not paused) cases


class SlaAlertOut(BaseModel):
    id: uuid.UUID
    shop_id: uuid.UUID
    case_id: uuid.UUID | None
    type: str
    title: str
    message: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SlaAlertListResponse(BaseModel):
    items: list[SlaAlertOut]
    total: int
