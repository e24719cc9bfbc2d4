"""
Wochenbericht (Montag–Sonntag).

Jeder Eintrag landet in genau einem Tages-Bucket – dem lokalen Kalendertag
seines clock_in, auch wenn eine Sitzung über Mitternacht läuft. Summiert
werden nur abgeschlossene Einträge; offene werden im Bucket gelistet, aber
nicht gezählt. Wochensummen sind immer die Summe der Buckets.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.time_entry import TimeEntry
from app.services import compliance_service
from app.services.session_service import entry_minutes
from app.services.time_entry_repository import SqlTimeEntryRepository, TimeEntryStore
from app.utils.day_bounds import as_utc, get_tz, local_date, utcnow, week_bounds, week_start

logger = logging.getLogger(__name__)


@dataclass
class DayBucket:
    work_date: date
    work_minutes: int = 0
    break_minutes: int = 0
    session_count: int = 0
    break_count: int = 0
    entries: list = field(default_factory=list)

    @property
    def is_long_day(self) -> bool:
        return compliance_service.is_long_day(self.work_minutes)

    @property
    def compliance(self) -> compliance_service.ComplianceResult:
        return compliance_service.evaluate(self.work_minutes, self.break_minutes, self.break_count)


@dataclass
class WeeklyReport:
    employee_id: uuid.UUID
    week_start: date
    days: list[DayBucket]

    @property
    def week_end(self) -> date:
        return self.week_start + timedelta(days=6)

    @property
    def total_work_minutes(self) -> int:
        return sum(d.work_minutes for d in self.days)

    @property
    def total_break_minutes(self) -> int:
        return sum(d.break_minutes for d in self.days)

    @property
    def total_sessions(self) -> int:
        return sum(d.session_count for d in self.days)

    @property
    def total_breaks(self) -> int:
        return sum(d.break_count for d in self.days)

    @property
    def overtime_minutes(self) -> int:
        return compliance_service.overtime_minutes(
            self.total_work_minutes, compliance_service.STANDARD_WEEK_MINUTES
        )

    @property
    def average_daily_minutes(self) -> int:
        return round(self.total_work_minutes / 7)

    @property
    def long_days(self) -> list[date]:
        return [d.work_date for d in self.days if d.is_long_day]


def build_weekly_report(
    employee_id: uuid.UUID,
    week_of: date,
    entries: Iterable[TimeEntry],
    tz=None,
) -> WeeklyReport:
    tz = tz or get_tz()
    monday = week_start(week_of)
    days = [DayBucket(work_date=monday + timedelta(days=i)) for i in range(7)]
    buckets = {d.work_date: d for d in days}

    for entry in entries:
        bucket = buckets.get(local_date(entry.clock_in, tz))
        if bucket is None:
            logger.debug("Time entry %s outside week of %s ignored", entry.id, monday)
            continue
        bucket.entries.append(entry)
        if entry.clock_out is None:
            continue
        if entry.is_break:
            bucket.break_minutes += entry_minutes(entry)
            bucket.break_count += 1
        else:
            bucket.work_minutes += entry_minutes(entry)
            bucket.session_count += 1

    for bucket in days:
        bucket.entries.sort(key=lambda e: as_utc(e.clock_in))
    return WeeklyReport(employee_id=employee_id, week_start=monday, days=days)


class WeeklyReportService:

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

    async def get_weekly_report(
        self, employee_id: uuid.UUID, week_containing: date | None = None
    ) -> WeeklyReport:
        week_of = week_containing or local_date(self.clock(), self.tz)
        start, end = week_bounds(week_of, self.tz)
        entries = await self.repo.query_entries(employee_id, start, end)
        return build_weekly_report(employee_id, week_of, entries, self.tz)
