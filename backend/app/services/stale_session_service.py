"""
Bereinigung vergessener Sitzungen.

Offene Einträge, deren clock_in länger als STALE_SESSION_HORIZON_HOURS
zurückliegt, werden zwangsweise geschlossen – am Horizont, spätestens aber
um Mitternacht des Einstempel-Tags – und für die Manager-Prüfung markiert.
Mehrfaches oder paralleles Ausführen ist unkritisch: bereits geschlossene
Einträge werden übersprungen, nie doppelt geschlossen.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.time_entry import TimeEntry
from app.services.errors import ConcurrentModification, PersistenceFailure, TimeTrackingError
from app.services.time_entry_repository import SqlTimeEntryRepository, TimeEntryStore
from app.utils.day_bounds import as_utc, day_bounds, get_tz, local_date, utcnow
from app.utils.time_format import format_duration

logger = logging.getLogger(__name__)

AUTO_CLOSE_NOTE = "Auto-closed: stale session, needs manager review"


@dataclass
class ClosedEntry:
    entry_id: uuid.UUID
    employee_id: uuid.UUID
    clock_in: datetime
    clock_out: datetime
    duration_minutes: int


@dataclass
class ReconciliationReport:
    checked_at: datetime
    horizon_hours: int
    closed: list[ClosedEntry] = field(default_factory=list)
    skipped: int = 0

    @property
    def closed_count(self) -> int:
        return len(self.closed)


class StaleSessionService:

    def __init__(
        self,
        db: AsyncSession,
        repository: TimeEntryStore | None = None,
        clock: Callable[[], datetime] | None = None,
        tz=None,
        horizon_hours: int | None = None,
    ):
        self.db = db
        self.repo = repository or SqlTimeEntryRepository(db)
        self.clock = clock or utcnow
        self.tz = tz or get_tz()
        if horizon_hours is None:
            horizon_hours = settings.STALE_SESSION_HORIZON_HOURS
        self.horizon_hours = horizon_hours

    def close_time_for(self, entry: TimeEntry) -> datetime:
        """Horizont-Grenze, aber nie über das Ende des Einstempel-Tags hinaus."""
        clock_in = as_utc(entry.clock_in)
        _, end_of_day = day_bounds(local_date(clock_in, self.tz), self.tz)
        return min(clock_in + timedelta(hours=self.horizon_hours), end_of_day)

    async def close_stale(
        self,
        now: datetime | None = None,
        employee_id: uuid.UUID | None = None,
        tenant_id: uuid.UUID | None = None,
    ) -> ReconciliationReport:
        """Schließt veraltete Einträge, ohne zu committen."""
        now = as_utc(now or self.clock())
        report = ReconciliationReport(checked_at=now, horizon_hours=self.horizon_hours)
        horizon = now - timedelta(hours=self.horizon_hours)

        for entry in await self.repo.query_stale_entries(
            horizon, employee_id=employee_id, tenant_id=tenant_id
        ):
            clock_out = self.close_time_for(entry)
            notes = f"{entry.notes} | {AUTO_CLOSE_NOTE}" if entry.notes else AUTO_CLOSE_NOTE
            try:
                duration = await self.repo.close_entry(
                    entry.id, clock_out, notes, needs_review=True
                )
            except ConcurrentModification:
                # Parallel geschlossen – nichts mehr zu tun
                report.skipped += 1
                continue

            logger.warning(
                "Auto-closed stale time entry %s (employee %s, clock_in %s, %s)",
                entry.id, entry.employee_id, entry.clock_in, format_duration(duration),
            )
            report.closed.append(
                ClosedEntry(
                    entry_id=entry.id,
                    employee_id=entry.employee_id,
                    clock_in=as_utc(entry.clock_in),
                    clock_out=clock_out,
                    duration_minutes=duration,
                )
            )
        return report

    async def reconcile(
        self,
        now: datetime | None = None,
        tenant_id: uuid.UUID | None = None,
    ) -> ReconciliationReport:
        """Ohne tenant_id: alle Tenants (Celery-Beat-Lauf)."""
        try:
            report = await self.close_stale(now, tenant_id=tenant_id)
            await self.db.commit()
        except TimeTrackingError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Stale session reconciliation failed")
            raise PersistenceFailure("Could not reconcile stale sessions") from e

        if report.closed_count:
            logger.info("Reconciliation closed %d stale entries", report.closed_count)
        return report
