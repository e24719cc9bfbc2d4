"""
ApprovalService: Manager-Freigabe einzelner Zeiteinträge und ganzer Arbeitstage.
"""
import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import Employee
from app.models.time_entry import (
    APPROVAL_APPROVED,
    APPROVAL_PENDING,
    APPROVAL_REJECTED,
    DailyApproval,
    TimeEntry,
)
from app.models.user import User
from app.services.errors import InvalidTransition, PersistenceFailure

logger = logging.getLogger(__name__)


class ApprovalService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_pending(self, tenant_id: uuid.UUID, employee_id: uuid.UUID | None = None) -> list[TimeEntry]:
        conditions = [
            TimeEntry.tenant_id == tenant_id,
            TimeEntry.approval_status == APPROVAL_PENDING,
            TimeEntry.clock_out.is_not(None),
        ]
        if employee_id:
            conditions.append(TimeEntry.employee_id == employee_id)
        result = await self.db.execute(
            select(TimeEntry).where(*conditions).order_by(TimeEntry.clock_in)
        )
        return list(result.scalars().all())

    async def approve_entry(self, entry: TimeEntry, manager: User, notes: str | None = None) -> TimeEntry:
        return await self._decide(entry, manager, APPROVAL_APPROVED, notes=notes)

    async def reject_entry(self, entry: TimeEntry, manager: User, reason: str) -> TimeEntry:
        if not reason or not reason.strip():
            raise ValueError("A rejection reason is required")
        return await self._decide(entry, manager, APPROVAL_REJECTED, reason=reason)

    async def approve_day(
        self,
        employee: Employee,
        work_date: date,
        manager: User,
        notes: str | None = None,
    ) -> DailyApproval:
        employee_id = employee.id
        existing = await self.db.execute(
            select(DailyApproval).where(
                DailyApproval.employee_id == employee_id,
                DailyApproval.work_date == work_date,
            )
        )
        approval = existing.scalar_one_or_none()
        if approval:
            return approval

        approval = DailyApproval(
            tenant_id=employee.tenant_id,
            employee_id=employee_id,
            work_date=work_date,
            approved_by=manager.id,
            notes=notes,
        )
        self.db.add(approval)
        try:
            await self.db.commit()
        except IntegrityError:
            # Parallel freigegeben – vorhandenen Datensatz zurückgeben
            await self.db.rollback()
            result = await self.db.execute(
                select(DailyApproval).where(
                    DailyApproval.employee_id == employee_id,
                    DailyApproval.work_date == work_date,
                )
            )
            return result.scalar_one()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailure("Could not store daily approval") from e
        await self.db.refresh(approval)
        logger.info("Day %s of employee %s approved by %s", work_date, employee_id, manager.id)
        return approval

    async def _decide(
        self,
        entry: TimeEntry,
        manager: User,
        status: str,
        notes: str | None = None,
        reason: str | None = None,
    ) -> TimeEntry:
        if entry.clock_out is None:
            raise InvalidTransition(
                "approve" if status == APPROVAL_APPROVED else "reject",
                "open",
                "Only closed time entries can be approved or rejected",
            )

        entry.approval_status = status
        entry.approved_by = manager.id
        entry.approved_at = datetime.now(timezone.utc)
        entry.approval_notes = notes
        entry.rejection_reason = reason
        # Geprüfte Einträge brauchen keinen Review mehr
        entry.needs_review = False
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailure("Could not store approval decision") from e
        await self.db.refresh(entry)
        logger.info("Time entry %s %s by %s", entry.id, status, manager.id)
        return entry
