"""
Stempeluhr-API – Ein-/Ausstempeln, Pausen, Tages- und Wochenberichte.

Fehler der Zeiterfassung (TimeTrackingError) werden zentral in main.py auf
HTTP-Statuscodes abgebildet.
"""
import uuid
from datetime import date

from fastapi import APIRouter

from app.api.deps import DB, CurrentEmployee, CurrentUser, ManagerOrAdmin, resolve_employee
from app.schemas.time_tracking import (
    BreakEndRequest,
    BreakRequirementsOut,
    BreakStartRequest,
    ClockInRequest,
    ClockOutRequest,
    CurrentSessionOut,
    DailySummaryOut,
    ReconciliationReportOut,
    WeeklyReportOut,
)
from app.services.daily_summary_service import DailySummaryService
from app.services.session_service import SessionService
from app.services.stale_session_service import StaleSessionService
from app.services.weekly_report_service import WeeklyReportService

router = APIRouter(prefix="/time-tracking", tags=["time-tracking"])


# ── Aktueller Zustand ─────────────────────────────────────────────────────────

@router.get("/session", response_model=CurrentSessionOut)
async def get_current_session(
    current_user: CurrentUser,
    db: DB,
    employee_id: uuid.UUID | None = None,
):
    employee = await resolve_employee(db, current_user, employee_id)
    return await SessionService(db).get_current_session(employee.id)


@router.get("/break-requirements", response_model=BreakRequirementsOut)
async def get_break_requirements(employee: CurrentEmployee, db: DB):
    return await SessionService(db).get_break_requirements(employee.id)


# ── Übergänge (nur für das eigene Profil) ─────────────────────────────────────

@router.post("/clock-in", response_model=CurrentSessionOut)
async def clock_in(payload: ClockInRequest, employee: CurrentEmployee, db: DB):
    return await SessionService(db).clock_in(employee.id, notes=payload.notes)


@router.post("/clock-out", response_model=CurrentSessionOut)
async def clock_out(payload: ClockOutRequest, employee: CurrentEmployee, db: DB):
    return await SessionService(db).clock_out(
        employee.id, notes=payload.notes, expected_entry_id=payload.expected_entry_id
    )


@router.post("/breaks", response_model=CurrentSessionOut)
async def start_break(payload: BreakStartRequest, employee: CurrentEmployee, db: DB):
    return await SessionService(db).start_break(
        employee.id, payload.break_type, expected_entry_id=payload.expected_entry_id
    )


@router.post("/breaks/end", response_model=CurrentSessionOut)
async def end_break(payload: BreakEndRequest, employee: CurrentEmployee, db: DB):
    return await SessionService(db).end_break(
        employee.id, expected_entry_id=payload.expected_entry_id
    )


@router.post("/resume", response_model=CurrentSessionOut)
async def resume_work(payload: BreakEndRequest, employee: CurrentEmployee, db: DB):
    return await SessionService(db).resume_work(
        employee.id, expected_entry_id=payload.expected_entry_id
    )


# ── Berichte ──────────────────────────────────────────────────────────────────

@router.get("/daily-summary", response_model=DailySummaryOut)
async def get_daily_summary(
    current_user: CurrentUser,
    db: DB,
    work_date: date | None = None,
    employee_id: uuid.UUID | None = None,
):
    """Standard: heute, eigenes Profil. Manager dürfen employee_id angeben."""
    employee = await resolve_employee(db, current_user, employee_id)
    return await DailySummaryService(db).get_daily_summary(employee.id, work_date)


@router.get("/weekly-report", response_model=WeeklyReportOut)
async def get_weekly_report(
    current_user: CurrentUser,
    db: DB,
    week_of: date | None = None,
    employee_id: uuid.UUID | None = None,
):
    """Woche (Mo–So), die week_of enthält. Standard: aktuelle Woche."""
    employee = await resolve_employee(db, current_user, employee_id)
    return await WeeklyReportService(db).get_weekly_report(employee.id, week_of)


# ── Wartung ───────────────────────────────────────────────────────────────────

@router.post("/reconcile", response_model=ReconciliationReportOut)
async def reconcile_stale_sessions(current_user: ManagerOrAdmin, db: DB):
    """Schließt vergessene Sitzungen des eigenen Tenants und markiert sie zur Prüfung."""
    return await StaleSessionService(db).reconcile(tenant_id=current_user.tenant_id)
