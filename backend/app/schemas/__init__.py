from app.schemas.auth import Token, LoginRequest, RefreshRequest
from app.schemas.employee import EmployeeCreate, EmployeeOut
from app.schemas.time_tracking import (
    ClockInRequest, ClockOutRequest, BreakStartRequest, BreakEndRequest,
    CurrentSessionOut, BreakRequirementsOut, TimeEntryOut,
    DailySummaryOut, DayBucketOut, WeeklyReportOut, ReconciliationReportOut,
    ApproveEntryRequest, RejectEntryRequest, DailyApprovalOut,
)

__all__ = [
    "Token", "LoginRequest", "RefreshRequest",
    "EmployeeCreate", "EmployeeOut",
    "ClockInRequest", "ClockOutRequest", "BreakStartRequest", "BreakEndRequest",
    "CurrentSessionOut", "BreakRequirementsOut", "TimeEntryOut",
    "DailySummaryOut", "DayBucketOut", "WeeklyReportOut", "ReconciliationReportOut",
    "ApproveEntryRequest", "RejectEntryRequest", "DailyApprovalOut",
]
