"""
Tests für die Tageszusammenfassung.
build_daily_summary ist rein; DailySummaryService läuft gegen SQLite.
"""
import uuid
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from app.core.locks import EmployeeLockRegistry
from app.models.time_entry import KIND_BREAK, KIND_WORK, TimeEntry, classify_notes
from app.services.compliance_service import MEAL_BREAK_NOTE, REST_BREAK_NOTE
from app.services.daily_summary_service import DailySummaryService, build_daily_summary
from app.services.session_service import SessionService
from tests.conftest import BERLIN, FakeClock, add_entry, berlin

DAY = date(2025, 3, 10)
EMPLOYEE_ID = uuid.uuid4()


def make_entry(start: datetime, end: datetime | None, kind=KIND_WORK, break_type=None, notes=None):
    return TimeEntry(
        id=uuid.uuid4(),
        employee_id=EMPLOYEE_ID,
        session_id=uuid.uuid4(),
        kind=kind,
        break_type=break_type,
        clock_in=start,
        clock_out=end,
        duration_minutes=int((end - start).total_seconds() // 60) if end else None,
        notes=notes,
    )


def summarize(entries, now, approval=None):
    return build_daily_summary(EMPLOYEE_ID, DAY, entries, now, approval)


# ── Reine Aggregation ─────────────────────────────────────────────────────────

def test_empty_day():
    summary = summarize([], berlin(2025, 3, 10, 12))
    assert summary.total_work_minutes == 0
    assert summary.total_break_minutes == 0
    assert summary.session_count == 0
    assert summary.break_count == 0
    assert summary.compliance_notes is None
    assert summary.overtime_minutes == 0
    assert not summary.is_long_day
    assert not summary.is_approved


def test_six_hours_without_break_flags_meal_and_rest():
    entries = [make_entry(berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 14))]
    summary = summarize(entries, berlin(2025, 3, 10, 18))

    assert summary.total_work_minutes == 360
    assert summary.session_count == 1
    assert summary.needs_meal_break
    assert summary.needs_rest_break
    assert summary.compliance_notes == f"{MEAL_BREAK_NOTE}; {REST_BREAK_NOTE}"


def test_split_day_with_lunch_is_compliant():
    entries = [
        make_entry(berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 11)),
        make_entry(berlin(2025, 3, 10, 11), berlin(2025, 3, 10, 11, 30), KIND_BREAK, "Lunch"),
        make_entry(berlin(2025, 3, 10, 11, 30), berlin(2025, 3, 10, 14, 30)),
    ]
    summary = summarize(entries, berlin(2025, 3, 10, 18))

    assert summary.total_work_minutes == 360
    assert summary.total_break_minutes == 30
    assert summary.session_count == 2
    assert summary.break_count == 1
    assert summary.compliance_notes is None
    assert len(summary.entries) == 3


def test_overtime_and_long_day():
    entries = [make_entry(berlin(2025, 3, 10, 7), berlin(2025, 3, 10, 15, 20))]
    summary = summarize(entries, berlin(2025, 3, 10, 20))
    assert summary.total_work_minutes == 500
    assert summary.overtime_minutes == 20
    assert summary.is_long_day


def test_exactly_eight_hours_no_overtime():
    entries = [make_entry(berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 16))]
    summary = summarize(entries, berlin(2025, 3, 10, 20))
    assert summary.overtime_minutes == 0
    assert not summary.is_long_day


def test_open_entry_counted_live_today():
    """Laufendes Intervall zählt heute mit seinen bisherigen Minuten – genau einmal."""
    entries = [make_entry(berlin(2025, 3, 10, 9), None)]
    summary = summarize(entries, berlin(2025, 3, 10, 11, 0, 45))
    assert summary.total_work_minutes == 120
    assert summary.session_count == 1


def test_open_break_counted_live_today():
    entries = [
        make_entry(berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 10)),
        make_entry(berlin(2025, 3, 10, 10), None, KIND_BREAK, "Coffee"),
    ]
    summary = summarize(entries, berlin(2025, 3, 10, 10, 10))
    assert summary.total_work_minutes == 120
    assert summary.total_break_minutes == 10
    assert summary.break_count == 1


def test_open_entry_after_midnight_counts_on_clock_in_day():
    """Nachtschicht: 19:00 eingestempelt, jetzt 01:00 am Folgetag."""
    entries = [make_entry(berlin(2025, 3, 10, 19), None)]
    summary = summarize(entries, berlin(2025, 3, 11, 1))
    assert summary.total_work_minutes == 360
    assert summary.session_count == 1
    assert summary.needs_meal_break
    assert summary.needs_rest_break


def test_open_entry_ignored_once_stale():
    entries = [make_entry(berlin(2025, 3, 10, 9), None)]
    summary = summarize(entries, berlin(2025, 3, 11, 9))
    assert summary.total_work_minutes == 0
    assert summary.session_count == 0
    assert len(summary.entries) == 1


def test_summary_is_idempotent():
    entries = [
        make_entry(berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 12)),
        make_entry(berlin(2025, 3, 10, 12), None),
    ]
    now = berlin(2025, 3, 10, 13)
    first = summarize(entries, now)
    second = summarize(entries, now)
    assert first.total_work_minutes == second.total_work_minutes == 300


def test_approval_is_read_from_record():
    approved_at = datetime(2025, 3, 11, 9, tzinfo=timezone.utc)
    manager_id = uuid.uuid4()
    approval = SimpleNamespace(approved_by=manager_id, approved_at=approved_at)
    summary = summarize([], berlin(2025, 3, 11, 9), approval)
    assert summary.is_approved
    assert summary.approved_by == manager_id
    assert summary.approved_at == approved_at


def test_legacy_entries_classified_by_notes():
    """Einträge ohne kind: Notiz mit 'break' gilt als Pause."""
    legacy_break = make_entry(
        berlin(2025, 3, 10, 12), berlin(2025, 3, 10, 12, 30), kind=None, notes="Lunch Break"
    )
    legacy_work = make_entry(berlin(2025, 3, 10, 8), berlin(2025, 3, 10, 12), kind=None)
    summary = summarize([legacy_work, legacy_break], berlin(2025, 3, 10, 20))
    assert summary.total_work_minutes == 240
    assert summary.total_break_minutes == 30
    assert classify_notes("coffee BREAK") == KIND_BREAK
    assert classify_notes(None) == KIND_WORK


# ── Service gegen DB ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_service_uses_local_day_bounds(db, employee):
    # 00:30 Berliner Zeit am 10.03. ist noch der 09.03. in UTC
    await add_entry(db, employee, berlin(2025, 3, 10, 0, 30), berlin(2025, 3, 10, 2, 30))
    await add_entry(db, employee, berlin(2025, 3, 9, 22), berlin(2025, 3, 9, 23))

    svc = DailySummaryService(db, clock=FakeClock(berlin(2025, 3, 12, 9)), tz=BERLIN)
    summary = await svc.get_daily_summary(employee.id, DAY)
    assert summary.total_work_minutes == 120
    assert summary.session_count == 1


@pytest.mark.asyncio
async def test_service_defaults_to_today(db, employee):
    clock = FakeClock(berlin(2025, 3, 10, 10))
    await add_entry(db, employee, berlin(2025, 3, 10, 8), None)

    summary = await DailySummaryService(db, clock=clock, tz=BERLIN).get_daily_summary(employee.id)
    assert summary.work_date == DAY
    assert summary.total_work_minutes == 120

    clock.advance(days=1)
    yesterday = await DailySummaryService(db, clock=clock, tz=BERLIN).get_daily_summary(
        employee.id, DAY
    )
    assert yesterday.total_work_minutes == 0


@pytest.mark.asyncio
async def test_session_across_midnight_stays_on_clock_in_day(db, employee):
    employee_id = employee.id
    clock = FakeClock(berlin(2025, 3, 10, 19))
    sessions = SessionService(db, locks=EmployeeLockRegistry(), clock=clock, tz=BERLIN)
    await sessions.clock_in(employee_id)
    clock.advance(hours=6)

    current = await sessions.get_current_session(employee_id)
    summaries = DailySummaryService(db, clock=clock, tz=BERLIN)
    clock_in_day = await summaries.get_daily_summary(employee_id, DAY)
    today = await summaries.get_daily_summary(employee_id)

    assert current.is_working
    assert today.work_date == date(2025, 3, 11)
    assert today.total_work_minutes == 0
    assert clock_in_day.total_work_minutes == 360
    assert clock_in_day.needs_meal_break
    assert clock_in_day.needs_rest_break
