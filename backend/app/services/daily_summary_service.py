"""
Tageszusammenfassung: gespeicherte Einträge eines Kalendertags plus das
laufende Intervall, falls es an diesem Tag begonnen hat. Eine Sitzung über
Mitternacht zählt beim Tag ihres clock_in (wie im Wochenbericht). Reine
Projektion, wird bei jeder Abfrage neu berechnet und nie gespeichert.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.time_entry import DailyApproval, TimeEntry
from app.services import compliance_service
from app.services.errors import PersistenceFailure
from app.services.session_service import entry_minutes
from app.services.time_entry_repository import SqlTimeEntryRepository, TimeEntryStore
from app.utils.day_bounds import as_utc, day_bounds, get_tz, local_date, utcnow, whole_minutes


@dataclass
class DailySummary:
    employee_id: uuid.UUID
    work_date: date
    total_work_minutes: int = 0
    total_break_minutes: int = 0
    session_count: int = 0
    break_count: int = 0
    is_approved: bool = False
    approved_by: uuid.UUID | None = None
    approved_at: datetime | None = None
    compliance_notes: str | None = None
    needs_meal_break: bool = False
    needs_rest_break: bool = False
    entries: list = field(default_factory=list)

    @property
    def overtime_minutes(self) -> int:
        return compliance_service.overtime_minutes(
            self.total_work_minutes, compliance_service.STANDARD_DAY_MINUTES
        )

    @property
    def is_long_day(self) -> bool:
        return compliance_service.is_long_day(self.total_work_minutes)


def build_daily_summary(
    employee_id: uuid.UUID,
    work_date: date,
    entries: Iterable[TimeEntry],
    now: datetime,
    approval: DailyApproval | None = None,
    horizon_hours: int | None = None,
) -> DailySummary:
    """
    entries: alle Einträge mit clock_in an work_date.
    Offene Einträge zählen live bis now, solange sie jünger als der
    Stale-Horizont sind; ältere warten auf reconcile und zählen nicht.
    """
    if horizon_hours is None:
        horizon_hours = settings.STALE_SESSION_HORIZON_HOURS
    live_since = now - timedelta(hours=horizon_hours)
    summary = DailySummary(employee_id=employee_id, work_date=work_date)

    for entry in entries:
        summary.entries.append(entry)
        if entry.clock_out is None:
            if as_utc(entry.clock_in) <= live_since:
                continue
            minutes = whole_minutes(entry.clock_in, now)
        else:
            minutes = entry_minutes(entry)

        if entry.is_break:
            summary.total_break_minutes += minutes
            summary.break_count += 1
        else:
            summary.total_work_minutes += minutes
            summary.session_count += 1

    result = compliance_service.evaluate(
        summary.total_work_minutes, summary.total_break_minutes, summary.break_count
    )
    summary.needs_meal_break = result.needs_meal_break
    summary.needs_rest_break = result.needs_rest_break
    summary.compliance_notes = result.notes

    if approval is not None:
        summary.is_approved = True
        summary.approved_by = approval.approved_by
        summary.approved_at = as_utc(approval.approved_at)
    return summary


class DailySummaryService:

    def __init__(
        self,
        db: AsyncSession,
        repository: TimeEntryStore | None = None,
        clock: Callable[[], datetime] | None = None,
        tz=None,
    ):
        self.db = db
        self.repo = repository or SqlTimeEntryRepository(db)
        self.clock = clock or utcnow
        self.tz = tz or get_tz()

    async def get_daily_summary(
        self, employee_id: uuid.UUID, work_date: date | None = None
    ) -> DailySummary:
        now = as_utc(self.clock())
        work_date = work_date or local_date(now, self.tz)
        start, end = day_bounds(work_date, self.tz)
        entries = await self.repo.query_entries(employee_id, start, end)
        approval = await self._get_approval(employee_id, work_date)
        return build_daily_summary(employee_id, work_date, entries, now, approval)

    async def _get_approval(self, employee_id: uuid.UUID, work_date: date) -> DailyApproval | None:
        try:
            result = await self.db.execute(
                select(DailyApproval).where(
                    DailyApproval.employee_id == employee_id,
                    DailyApproval.work_date == work_date,
                )
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not load daily approval") from e
        return result.scalar_one_or_none()
