"""
Persistenz-Schnittstelle für Zeiteinträge.

Der Repository-Layer committet nie selbst – die aufrufenden Services
bestimmen die Transaktionsgrenzen. SQLAlchemy-Fehler werden als
PersistenceFailure gemeldet, nicht automatisch wiederholt.
"""
import uuid
from datetime import datetime
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.time_entry import TimeEntry, KIND_WORK
from app.services.errors import ConcurrentModification, PersistenceFailure
from app.utils.day_bounds import as_utc, whole_minutes


class TimeEntryStore(Protocol):
    async def insert_entry(
        self,
        employee_id: uuid.UUID,
        clock_in: datetime,
        notes: str | None = None,
        *,
        tenant_id: uuid.UUID,
        session_id: uuid.UUID,
        kind: str = KIND_WORK,
        break_type: str | None = None,
    ) -> uuid.UUID: ...

    async def close_entry(
        self,
        entry_id: uuid.UUID,
        clock_out: datetime,
        notes: str | None = None,
        *,
        needs_review: bool = False,
    ) -> int: ...

    async def query_entries(
        self, employee_id: uuid.UUID, start: datetime, end: datetime
    ) -> list[TimeEntry]: ...

    async def query_open_entry(self, employee_id: uuid.UUID) -> TimeEntry | None: ...

    async def query_session_entries(self, session_id: uuid.UUID) -> list[TimeEntry]: ...

    async def query_stale_entries(
        self,
        before: datetime,
        employee_id: uuid.UUID | None = None,
        tenant_id: uuid.UUID | None = None,
    ) -> list[TimeEntry]: ...


class SqlTimeEntryRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert_entry(
        self,
        employee_id: uuid.UUID,
        clock_in: datetime,
        notes: str | None = None,
        *,
        tenant_id: uuid.UUID,
        session_id: uuid.UUID,
        kind: str = KIND_WORK,
        break_type: str | None = None,
    ) -> uuid.UUID:
        entry = TimeEntry(
            tenant_id=tenant_id,
            employee_id=employee_id,
            session_id=session_id,
            kind=kind,
            break_type=break_type,
            clock_in=as_utc(clock_in),
            notes=notes,
        )
        try:
            self.db.add(entry)
            await self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not store time entry") from e
        return entry.id

    async def close_entry(
        self,
        entry_id: uuid.UUID,
        clock_out: datetime,
        notes: str | None = None,
        *,
        needs_review: bool = False,
    ) -> int:
        """
        Schließt einen offenen Eintrag. Bedingtes UPDATE (clock_out IS NULL):
        wurde der Eintrag inzwischen von jemand anderem geschlossen, schlägt
        der Aufruf mit ConcurrentModification fehl statt zu überschreiben.
        """
        try:
            row = await self.db.execute(
                select(TimeEntry.clock_in).where(TimeEntry.id == entry_id)
            )
            current = row.one_or_none()
            if current is None:
                raise ConcurrentModification(f"Time entry {entry_id} no longer exists")

            duration = whole_minutes(current.clock_in, clock_out)
            values = {
                "clock_out": as_utc(clock_out),
                "duration_minutes": duration,
            }
            if notes is not None:
                values["notes"] = notes
            if needs_review:
                values["needs_review"] = True

            result = await self.db.execute(
                update(TimeEntry)
                .where(TimeEntry.id == entry_id, TimeEntry.clock_out.is_(None))
                .values(**values)
                .execution_options(synchronize_session="evaluate")
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not close time entry") from e

        if result.rowcount == 0:
            raise ConcurrentModification(f"Time entry {entry_id} was already closed")
        return duration

    async def query_entries(
        self, employee_id: uuid.UUID, start: datetime, end: datetime
    ) -> list[TimeEntry]:
        """Alle Einträge mit clock_in in [start, end), aufsteigend sortiert."""
        try:
            result = await self.db.execute(
                select(TimeEntry)
                .where(
                    TimeEntry.employee_id == employee_id,
                    TimeEntry.clock_in >= as_utc(start),
                    TimeEntry.clock_in < as_utc(end),
                )
                .order_by(TimeEntry.clock_in)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not query time entries") from e
        return list(result.scalars().all())

    async def query_open_entry(self, employee_id: uuid.UUID) -> TimeEntry | None:
        try:
            result = await self.db.execute(
                select(TimeEntry)
                .where(
                    TimeEntry.employee_id == employee_id,
                    TimeEntry.clock_out.is_(None),
                )
                .order_by(TimeEntry.clock_in.desc())
                .limit(1)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not query open time entry") from e
        return result.scalar_one_or_none()

    async def query_session_entries(self, session_id: uuid.UUID) -> list[TimeEntry]:
        try:
            result = await self.db.execute(
                select(TimeEntry)
                .where(TimeEntry.session_id == session_id)
                .order_by(TimeEntry.clock_in)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not query session entries") from e
        return list(result.scalars().all())

    async def query_stale_entries(
        self,
        before: datetime,
        employee_id: uuid.UUID | None = None,
        tenant_id: uuid.UUID | None = None,
    ) -> list[TimeEntry]:
        conditions = [
            TimeEntry.clock_out.is_(None),
            TimeEntry.clock_in < as_utc(before),
        ]
        if employee_id is not None:
            conditions.append(TimeEntry.employee_id == employee_id)
        if tenant_id is not None:
            conditions.append(TimeEntry.tenant_id == tenant_id)
        try:
            result = await self.db.execute(
                select(TimeEntry).where(*conditions).order_by(TimeEntry.clock_in)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not query stale time entries") from e
        return list(result.scalars().all())
