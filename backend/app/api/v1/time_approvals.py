import uuid
from datetime import date

from fastapi import APIRouter, HTTPException
from sqlalchemy import select

from app.api.deps import DB, ManagerOrAdmin
from app.models.employee import Employee
from app.models.time_entry import TimeEntry
from app.schemas.time_tracking import (
    ApproveEntryRequest,
    DailyApprovalOut,
    DailyApprovalRequest,
    RejectEntryRequest,
    TimeEntryOut,
)
from app.services.approval_service import ApprovalService

router = APIRouter(tags=["time-approvals"])


async def _get_entry(db, entry_id: uuid.UUID, tenant_id: uuid.UUID) -> TimeEntry:
    result = await db.execute(
        select(TimeEntry).where(
            TimeEntry.id == entry_id,
            TimeEntry.tenant_id == tenant_id,
        )
    )
    entry = result.scalar_one_or_none()
    if not entry:
        raise HTTPException(status_code=404, detail="Time entry not found")
    return entry


@router.get("/time-entries/pending", response_model=list[TimeEntryOut])
async def list_pending_entries(
    current_user: ManagerOrAdmin,
    db: DB,
    employee_id: uuid.UUID | None = None,
):
    """Abgeschlossene, noch nicht entschiedene Einträge des Tenants."""
    return await ApprovalService(db).list_pending(current_user.tenant_id, employee_id)


@router.post("/time-entries/{entry_id}/approve", response_model=TimeEntryOut)
async def approve_entry(
    entry_id: uuid.UUID,
    payload: ApproveEntryRequest,
    current_user: ManagerOrAdmin,
    db: DB,
):
    entry = await _get_entry(db, entry_id, current_user.tenant_id)
    return await ApprovalService(db).approve_entry(entry, current_user, payload.notes)


@router.post("/time-entries/{entry_id}/reject", response_model=TimeEntryOut)
async def reject_entry(
    entry_id: uuid.UUID,
    payload: RejectEntryRequest,
    current_user: ManagerOrAdmin,
    db: DB,
):
    entry = await _get_entry(db, entry_id, current_user.tenant_id)
    try:
        return await ApprovalService(db).reject_entry(entry, current_user, payload.reason)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post(
    "/daily-summaries/{employee_id}/{work_date}/approve",
    response_model=DailyApprovalOut,
)
async def approve_day(
    employee_id: uuid.UUID,
    work_date: date,
    payload: DailyApprovalRequest,
    current_user: ManagerOrAdmin,
    db: DB,
):
    result = await db.execute(
        select(Employee).where(
            Employee.id == employee_id,
            Employee.tenant_id == current_user.tenant_id,
        )
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return await ApprovalService(db).approve_day(employee, work_date, current_user, payload.notes)
