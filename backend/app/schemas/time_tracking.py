"""
Schemas für Stempeluhr, Tages-/Wochenberichte und Freigaben.
"""
import uuid
from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, computed_field, field_validator

from app.utils.day_bounds import as_utc
from app.utils.time_format import format_clock, format_hours_minutes

# SQLite liefert naive Zeitstempel – immer als UTC ausgeben
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]

BreakType = Literal["Coffee", "Lunch", "Rest"]


# ── Requests ──────────────────────────────────────────────────────────────────

class ClockInRequest(BaseModel):
    notes: str | None = None


class ClockOutRequest(BaseModel):
    notes: str | None = None
    expected_entry_id: uuid.UUID | None = None


class BreakStartRequest(BaseModel):
    break_type: BreakType
    expected_entry_id: uuid.UUID | None = None


class BreakEndRequest(BaseModel):
    expected_entry_id: uuid.UUID | None = None


class ApproveEntryRequest(BaseModel):
    notes: str | None = None


class RejectEntryRequest(BaseModel):
    reason: str

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Reason must not be empty")
        return v.strip()


class DailyApprovalRequest(BaseModel):
    notes: str | None = None


# ── Responses ─────────────────────────────────────────────────────────────────

class TimeEntryOut(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    session_id: uuid.UUID
    kind: str | None                # work | break
    break_type: str | None
    clock_in: UtcDatetime
    clock_out: UtcDatetime | None
    duration_minutes: int | None
    notes: str | None
    approval_status: str            # pending | approved | rejected
    approved_by: uuid.UUID | None
    approved_at: UtcDatetime | None
    approval_notes: str | None
    rejection_reason: str | None
    needs_review: bool

    model_config = {"from_attributes": True}


class CurrentSessionOut(BaseModel):
    state: str                      # clocked_out | working | on_break
    is_active: bool
    is_on_break: bool
    break_type: str | None
    session_id: uuid.UUID | None
    entry_id: uuid.UUID | None
    clock_in_time: UtcDatetime | None
    break_start_time: UtcDatetime | None
    elapsed_minutes: int
    elapsed_seconds: int
    break_elapsed_minutes: int
    break_elapsed_seconds: int
    session_break_minutes: int
    total_worked_today: int
    total_break_today: int

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def elapsed_display(self) -> str:
        return format_clock(self.break_elapsed_seconds if self.is_on_break else self.elapsed_seconds)


class BreakRequirementsOut(BaseModel):
    can_take_break: bool
    requires_meal_break: bool
    suggested_break_type: str | None
    next_break_in: int | None
    compliance_message: str | None

    model_config = {"from_attributes": True}


class DailySummaryOut(BaseModel):
    employee_id: uuid.UUID
    work_date: date
    total_work_minutes: int
    total_break_minutes: int
    session_count: int
    break_count: int
    overtime_minutes: int
    is_long_day: bool
    needs_meal_break: bool
    needs_rest_break: bool
    compliance_notes: str | None
    is_approved: bool
    approved_by: uuid.UUID | None
    approved_at: UtcDatetime | None
    entries: list[TimeEntryOut]

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def total_work_display(self) -> str:
        return format_hours_minutes(self.total_work_minutes)


class DayBucketOut(BaseModel):
    work_date: date
    work_minutes: int
    break_minutes: int
    session_count: int
    break_count: int
    is_long_day: bool
    entries: list[TimeEntryOut]

    model_config = {"from_attributes": True}


class WeeklyReportOut(BaseModel):
    employee_id: uuid.UUID
    week_start: date
    week_end: date
    days: list[DayBucketOut]
    total_work_minutes: int
    total_break_minutes: int
    total_sessions: int
    total_breaks: int
    overtime_minutes: int
    average_daily_minutes: int
    long_days: list[date]

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def total_work_display(self) -> str:
        return format_hours_minutes(self.total_work_minutes)

    @computed_field
    @property
    def overtime_display(self) -> str:
        return format_hours_minutes(self.overtime_minutes)


class ClosedEntryOut(BaseModel):
    entry_id: uuid.UUID
    employee_id: uuid.UUID
    clock_in: UtcDatetime
    clock_out: UtcDatetime
    duration_minutes: int

    model_config = {"from_attributes": True}


class ReconciliationReportOut(BaseModel):
    checked_at: UtcDatetime
    horizon_hours: int
    closed_count: int
    skipped: int
    closed: list[ClosedEntryOut]

    model_config = {"from_attributes": True}


class DailyApprovalOut(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    work_date: date
    approved_by: uuid.UUID | None
    approved_at: UtcDatetime
    notes: str | None

    model_config = {"from_attributes": True}
