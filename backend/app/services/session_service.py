"""
SessionService: Stempeluhr-Zustandsautomat eines Mitarbeiters.

    clocked_out → working → on_break → working → … → clocked_out

Eine Sitzung besteht aus typisierten Teilintervallen (Arbeit/Pause) mit
gemeinsamer session_id. Pausenbeginn schließt das Arbeitsintervall, Pausenende
öffnet ein neues. Der Zustand wird bei jeder Abfrage aus der Datenbank
rekonstruiert; verstrichene Zeiten werden beim Lesen aus der Uhr berechnet.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.locks import get_lock_registry
from app.models.employee import Employee
from app.models.time_entry import TimeEntry, BREAK_TYPES, KIND_BREAK, KIND_WORK
from app.services import compliance_service
from app.services.errors import (
    BreakNotYetAllowed,
    ConcurrentModification,
    InvalidTransition,
    PersistenceFailure,
    TimeTrackingError,
    UnknownEmployee,
)
from app.services.stale_session_service import StaleSessionService
from app.services.time_entry_repository import SqlTimeEntryRepository, TimeEntryStore
from app.utils.day_bounds import as_utc, day_bounds, get_tz, local_date, utcnow, whole_minutes

logger = logging.getLogger(__name__)

STATE_CLOCKED_OUT = "clocked_out"
STATE_WORKING = "working"
STATE_ON_BREAK = "on_break"


@dataclass
class CurrentSession:
    state: str = STATE_CLOCKED_OUT
    session_id: uuid.UUID | None = None
    entry_id: uuid.UUID | None = None
    break_type: str | None = None
    clock_in_time: datetime | None = None
    break_start_time: datetime | None = None
    elapsed_minutes: int = 0          # Arbeit der laufenden Sitzung, ohne Pausen
    elapsed_seconds: int = 0
    break_elapsed_minutes: int = 0
    break_elapsed_seconds: int = 0
    session_break_minutes: int = 0
    open_interval_minutes: int = 0
    total_worked_today: int = 0       # nur abgeschlossene Intervalle
    total_break_today: int = 0
    breaks_today: int = 0

    @property
    def is_active(self) -> bool:
        return self.state != STATE_CLOCKED_OUT

    @property
    def is_on_break(self) -> bool:
        return self.state == STATE_ON_BREAK

    @property
    def is_working(self) -> bool:
        return self.state == STATE_WORKING

    @property
    def work_today_minutes(self) -> int:
        return self.total_worked_today + (self.open_interval_minutes if self.is_working else 0)

    @property
    def break_today_minutes(self) -> int:
        return self.total_break_today + (self.open_interval_minutes if self.is_on_break else 0)


def state_of(open_entry: TimeEntry | None) -> str:
    if open_entry is None:
        return STATE_CLOCKED_OUT
    return STATE_ON_BREAK if open_entry.is_break else STATE_WORKING


def entry_minutes(entry: TimeEntry) -> int:
    """Dauer eines abgeschlossenen Eintrags in ganzen Minuten."""
    if entry.duration_minutes is not None:
        return max(0, entry.duration_minutes)
    if entry.clock_out is None:
        return 0
    return whole_minutes(entry.clock_in, entry.clock_out)


def build_current_session(
    open_entry: TimeEntry | None,
    session_entries: Iterable[TimeEntry],
    today_entries: Iterable[TimeEntry],
    now: datetime,
) -> CurrentSession:
    """Reine Rekonstruktion des Live-Zustands aus gespeicherten Einträgen."""
    current = CurrentSession()

    for entry in today_entries:
        if entry.clock_out is None:
            continue
        if entry.is_break:
            current.total_break_today += entry_minutes(entry)
            current.breaks_today += 1
        else:
            current.total_worked_today += entry_minutes(entry)

    if open_entry is None:
        return current

    open_seconds = max(0, int((as_utc(now) - as_utc(open_entry.clock_in)).total_seconds()))
    closed_work = [
        e for e in session_entries
        if not e.is_break and e.clock_out is not None and e.id != open_entry.id
    ]
    closed_breaks = [
        e for e in session_entries
        if e.is_break and e.clock_out is not None and e.id != open_entry.id
    ]
    session_start = min(as_utc(e.clock_in) for e in [*session_entries, open_entry])

    worked = sum(entry_minutes(e) for e in closed_work)
    worked_seconds = sum(
        int((as_utc(e.clock_out) - as_utc(e.clock_in)).total_seconds()) for e in closed_work
    )

    current.state = state_of(open_entry)
    current.session_id = open_entry.session_id
    current.entry_id = open_entry.id
    current.clock_in_time = session_start
    current.open_interval_minutes = open_seconds // 60
    current.session_break_minutes = sum(entry_minutes(e) for e in closed_breaks)

    if open_entry.is_break:
        current.break_type = open_entry.break_label
        current.break_start_time = as_utc(open_entry.clock_in)
        current.break_elapsed_minutes = open_seconds // 60
        current.break_elapsed_seconds = open_seconds
        current.elapsed_minutes = worked
        current.elapsed_seconds = worked_seconds
    else:
        current.elapsed_minutes = worked + open_seconds // 60
        current.elapsed_seconds = worked_seconds + open_seconds

    return current


class SessionService:

    def __init__(
        self,
        db: AsyncSession,
        repository: TimeEntryStore | None = None,
        locks=None,
        clock: Callable[[], datetime] | None = None,
        tz=None,
    ):
        self.db = db
        self.repo = repository or SqlTimeEntryRepository(db)
        self.locks = locks or get_lock_registry()
        self.clock = clock or utcnow
        self.tz = tz or get_tz()

    # ── Lesen ─────────────────────────────────────────────────────────────────

    async def get_current_session(self, employee_id: uuid.UUID) -> CurrentSession:
        now = as_utc(self.clock())
        open_entry = await self.repo.query_open_entry(employee_id)
        session_entries = []
        if open_entry is not None:
            session_entries = await self.repo.query_session_entries(open_entry.session_id)
        start, end = day_bounds(local_date(now, self.tz), self.tz)
        today_entries = await self.repo.query_entries(employee_id, start, end)
        return build_current_session(open_entry, session_entries, today_entries, now)

    async def get_break_requirements(
        self, employee_id: uuid.UUID
    ) -> compliance_service.BreakRequirements:
        session = await self.get_current_session(employee_id)
        return compliance_service.break_requirements(
            is_working=session.is_working,
            session_work_minutes=session.elapsed_minutes,
            total_work_minutes=session.work_today_minutes,
            total_break_minutes=session.break_today_minutes,
            break_count=session.breaks_today,
        )

    # ── Übergänge ─────────────────────────────────────────────────────────────

    async def clock_in(self, employee_id: uuid.UUID, notes: str | None = None) -> CurrentSession:
        async with self._transition("clock_in", employee_id):
            employee = await self._get_employee(employee_id)

            # Vergessene Sitzungen vorher schließen
            stale = StaleSessionService(self.db, repository=self.repo, clock=self.clock, tz=self.tz)
            await stale.close_stale(employee_id=employee_id)

            open_entry = await self.repo.query_open_entry(employee_id)
            state = state_of(open_entry)
            if state != STATE_CLOCKED_OUT:
                raise InvalidTransition("clock_in", state)

            await self.repo.insert_entry(
                employee_id,
                self.clock(),
                notes,
                tenant_id=employee.tenant_id,
                session_id=uuid.uuid4(),
                kind=KIND_WORK,
            )
        return await self.get_current_session(employee_id)

    async def clock_out(
        self,
        employee_id: uuid.UUID,
        notes: str | None = None,
        expected_entry_id: uuid.UUID | None = None,
    ) -> CurrentSession:
        async with self._transition("clock_out", employee_id):
            open_entry = await self._require_state(
                "clock_out", employee_id, STATE_WORKING, expected_entry_id
            )
            await self.repo.close_entry(open_entry.id, self.clock(), notes)
        return await self.get_current_session(employee_id)

    async def start_break(
        self,
        employee_id: uuid.UUID,
        break_type: str,
        expected_entry_id: uuid.UUID | None = None,
    ) -> CurrentSession:
        if break_type not in BREAK_TYPES:
            raise ValueError(f"Unknown break type: {break_type}")

        async with self._transition("start_break", employee_id):
            open_entry = await self._require_state(
                "start_break", employee_id, STATE_WORKING, expected_entry_id
            )
            now = self.clock()
            session_entries = await self.repo.query_session_entries(open_entry.session_id)
            session = build_current_session(open_entry, session_entries, [], now)
            if session.elapsed_minutes < compliance_service.MIN_WORK_BEFORE_BREAK:
                raise BreakNotYetAllowed(
                    session.elapsed_minutes, compliance_service.MIN_WORK_BEFORE_BREAK
                )

            await self.repo.close_entry(open_entry.id, now)
            await self.repo.insert_entry(
                employee_id,
                now,
                f"{break_type} break",
                tenant_id=open_entry.tenant_id,
                session_id=open_entry.session_id,
                kind=KIND_BREAK,
                break_type=break_type,
            )
        return await self.get_current_session(employee_id)

    async def end_break(
        self,
        employee_id: uuid.UUID,
        expected_entry_id: uuid.UUID | None = None,
        action: str = "end_break",
    ) -> CurrentSession:
        async with self._transition(action, employee_id):
            open_entry = await self._require_state(
                action, employee_id, STATE_ON_BREAK, expected_entry_id
            )
            now = self.clock()
            await self.repo.close_entry(open_entry.id, now)
            await self.repo.insert_entry(
                employee_id,
                now,
                f"Resumed from {open_entry.break_label} break",
                tenant_id=open_entry.tenant_id,
                session_id=open_entry.session_id,
                kind=KIND_WORK,
            )
        return await self.get_current_session(employee_id)

    async def resume_work(
        self,
        employee_id: uuid.UUID,
        expected_entry_id: uuid.UUID | None = None,
    ) -> CurrentSession:
        return await self.end_break(employee_id, expected_entry_id, action="resume_work")

    # ── Hilfsfunktionen ───────────────────────────────────────────────────────

    @asynccontextmanager
    async def _transition(self, action: str, employee_id: uuid.UUID) -> AsyncIterator[None]:
        """
        Serialisiert pro Mitarbeiter und committet erst am Ende. Jeder Fehler
        rollt zurück – ein Leser sieht nie einen halben Übergang.
        """
        async with self.locks.hold(employee_id):
            try:
                yield
                await self.db.commit()
            except TimeTrackingError:
                await self.db.rollback()
                raise
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.exception("Persisting %s for employee %s failed", action, employee_id)
                raise PersistenceFailure(f"Could not persist {action.replace('_', ' ')}") from e
        logger.info("Employee %s: %s", employee_id, action)

    async def _require_state(
        self,
        action: str,
        employee_id: uuid.UUID,
        required: str,
        expected_entry_id: uuid.UUID | None,
    ) -> TimeEntry:
        open_entry = await self.repo.query_open_entry(employee_id)
        if expected_entry_id is not None and (
            open_entry is None or open_entry.id != expected_entry_id
        ):
            raise ConcurrentModification(
                "The open time entry changed since it was last read – refresh and retry"
            )
        state = state_of(open_entry)
        if state != required:
            raise InvalidTransition(action, state)
        return open_entry

    async def _get_employee(self, employee_id: uuid.UUID) -> Employee:
        try:
            employee = await self.db.get(Employee, employee_id)
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not load employee") from e
        if employee is None or not employee.is_active:
            raise UnknownEmployee(employee_id)
        return employee
